import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT / "src"))

import chess

from rookmove.utils.chess_env import RulesAdapter
from rookmove.utils.chess_utils import (
    EngineMove,
    parse_bestmove,
    parse_move_text,
    validate_and_normalize_move,
)

PROMOTION_FEN = "8/4P3/8/8/8/8/k7/4K3 w - - 0 1"
FOOLS_MATE = "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"


def test_parse_bestmove():
    assert parse_bestmove("bestmove e2e4") == EngineMove("e2", "e4")
    assert parse_bestmove("bestmove e7e8q ponder d7d6") == EngineMove("e7", "e8", "q")
    assert parse_bestmove("bestmove (none)") is None
    assert parse_bestmove("bestmove") is None


def test_parse_move_text_no_move():
    assert parse_move_text(None) is None
    assert parse_move_text("") is None
    assert parse_move_text("(none)") is None


def test_engine_move_conversions():
    move = chess.Move.from_uci("a7a8n")
    engine_move = EngineMove.from_chess_move(move)
    assert engine_move == EngineMove("a7", "a8", "n")
    assert engine_move.uci() == "a7a8n"
    assert engine_move.to_chess_move() == move


def test_validate_keeps_legal_moves():
    move = EngineMove("e2", "e4")
    assert validate_and_normalize_move(chess.STARTING_FEN, move) is move


def test_validate_rejects_illegal_moves():
    assert validate_and_normalize_move(chess.STARTING_FEN, EngineMove("e2", "e5")) is None
    assert validate_and_normalize_move(chess.STARTING_FEN, EngineMove("z9", "e5")) is None


def test_validate_adds_queen_promotion():
    normalized = validate_and_normalize_move(PROMOTION_FEN, EngineMove("e7", "e8"))
    assert normalized == EngineMove("e7", "e8", "q")
    under = EngineMove("e7", "e8", "r")
    assert validate_and_normalize_move(PROMOTION_FEN, under) is under


def test_rules_adapter_apply_leaves_input_untouched():
    rules = RulesAdapter()
    after = rules.apply(chess.STARTING_FEN, chess.Move.from_uci("e2e4"))
    assert after != chess.STARTING_FEN
    assert rules.side_to_move(after) is chess.BLACK
    assert len(rules.legal_moves(chess.STARTING_FEN)) == 20


def test_rules_adapter_game_end():
    rules = RulesAdapter()
    assert rules.is_checkmate(FOOLS_MATE)
    assert rules.is_game_over(FOOLS_MATE)
    assert rules.get_result(FOOLS_MATE) == "0-1"
    assert rules.king_square(FOOLS_MATE, chess.WHITE) == chess.E1
    assert rules.king_square("8/8/8/8/8/8/8/R5K1 w - - 0 1", chess.BLACK) is None

    stalemate = "7k/8/8/8/8/8/5q2/7K w - - 0 1"
    assert rules.is_stalemate(stalemate)
    assert rules.is_draw(stalemate)
    assert rules.get_result(stalemate) == "1/2-1/2"


def test_rules_adapter_termination():
    rules = RulesAdapter()
    assert rules.termination(FOOLS_MATE) == "checkmate"
    assert rules.termination("7k/8/8/8/8/8/5q2/7K w - - 0 1") == "stalemate"
    assert rules.termination("7k/8/8/8/8/8/8/7K w - - 0 1") == "draw"
    assert rules.termination(chess.STARTING_FEN) is None


def test_rules_adapter_accepts_board_with_history():
    board = chess.Board()
    for uci in ["g1f3", "g8f6", "f3g1", "f6g8"] * 2:
        board.push_uci(uci)
    rules = RulesAdapter()
    assert rules.is_game_over(board)
    assert rules.get_result(board) == "1/2-1/2"
    assert not rules.is_game_over(board.fen())
    assert len(board.move_stack) == 8
