"""
Chess move utilities shared by the engine and heuristic layers.

Engine replies carry moves in coordinate text (``e2e4``, ``e7e8q``).  The
helpers here turn that text into :class:`EngineMove` values and check a move
against a position before it is played.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import chess

__all__ = [
    "EngineMove",
    "parse_bestmove",
    "parse_move_text",
    "validate_and_normalize_move",
]

NO_MOVE_TOKEN = "(none)"


@dataclass(frozen=True)
class EngineMove:
    """A move as exchanged with the engine: two squares and an optional promotion."""

    from_square: str
    to_square: str
    promotion: Optional[str] = None

    def uci(self) -> str:
        return f"{self.from_square}{self.to_square}{self.promotion or ''}"

    def to_chess_move(self) -> chess.Move:
        return chess.Move.from_uci(self.uci())

    @classmethod
    def from_chess_move(cls, move: chess.Move) -> "EngineMove":
        promotion = chess.piece_symbol(move.promotion) if move.promotion else None
        return cls(
            chess.square_name(move.from_square),
            chess.square_name(move.to_square),
            promotion,
        )


def parse_move_text(text: Optional[str]) -> Optional[EngineMove]:
    """Split coordinate move text into fixed two-character square slices.

    ``None``, an empty string and the literal ``(none)`` all mean "no move".
    """
    if not text or text == NO_MOVE_TOKEN:
        return None
    promotion = text[4:] or None
    return EngineMove(text[0:2], text[2:4], promotion)


def parse_bestmove(line: str) -> Optional[EngineMove]:
    """Parse a ``bestmove <move> [ponder <move>]`` line.

    >>> parse_bestmove("bestmove e7e8q ponder d7d6")
    EngineMove(from_square='e7', to_square='e8', promotion='q')
    """
    parts = line.split()
    move_text = parts[1] if len(parts) > 1 else None
    return parse_move_text(move_text)


def validate_and_normalize_move(fen: str, move: EngineMove) -> Optional[EngineMove]:
    """Return *move* if it is legal in *fen*, else ``None``.

    Promotion moves sent without a piece letter are tried as queen promotions.
    """
    board = chess.Board(fen)
    try:
        candidate = chess.Move.from_uci(move.uci())
    except ValueError:
        return None

    if candidate in board.legal_moves:
        return move

    if move.promotion is None:
        promoted = chess.Move(candidate.from_square, candidate.to_square, promotion=chess.QUEEN)
        if promoted in board.legal_moves:
            return EngineMove(move.from_square, move.to_square, "q")
    return None
