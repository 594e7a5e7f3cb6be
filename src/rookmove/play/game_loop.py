from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Protocol

import chess

from ..utils.chess_env import RulesAdapter
from ..utils.chess_utils import EngineMove, parse_move_text, validate_and_normalize_move

logger = logging.getLogger(__name__)


class Player(Protocol):
    async def select_move(self, board: chess.Board) -> Optional[EngineMove]: ...


class ScriptedPlayer:
    """Plays a fixed sequence of UCI moves, standing in for a human side."""

    def __init__(self, moves: Iterable[str]):
        self._moves = list(moves)
        self.error: Optional[str] = None

    async def select_move(self, board: chess.Board) -> Optional[EngineMove]:
        if not self._moves:
            self.error = "Scripted player has no moves left"
            return None
        move = parse_move_text(self._moves.pop(0))
        if move is None or validate_and_normalize_move(board.fen(), move) is None:
            self.error = f"Scripted move is not legal here: {move.uci() if move else None}"
            return None
        return move


@dataclass
class GameConfig:
    """Configuration for a single game."""

    start_fen: str = chess.STARTING_FEN
    max_moves: int = 200


@dataclass
class GameState:
    """State accumulated while a game is played."""

    fen: str = chess.STARTING_FEN
    moves: List[str] = field(default_factory=list)
    result: str = "*"
    termination: Optional[str] = None
    error: Optional[str] = None


class GameLoop:
    """Alternates two players on one board until the game ends."""

    def __init__(
        self,
        white: Player,
        black: Player,
        config: Optional[GameConfig] = None,
        rules: Optional[RulesAdapter] = None,
    ):
        self.players = {chess.WHITE: white, chess.BLACK: black}
        self.config = config or GameConfig()
        self.rules = rules or RulesAdapter()
        self.board = chess.Board(self.config.start_fen)
        self.state = GameState(fen=self.board.fen())
        self._running = asyncio.Event()
        self._running.set()

    def pause(self) -> None:
        self._running.clear()

    def resume(self) -> None:
        self._running.set()

    @property
    def is_paused(self) -> bool:
        return not self._running.is_set()

    async def run(self) -> GameState:
        for _ in range(self.config.max_moves):
            if self.rules.is_game_over(self.board):
                break
            await self._running.wait()

            player = self.players[self.board.turn]
            move = await player.select_move(self.board)
            if move is None:
                self.state.error = getattr(player, "error", None)
                logger.warning(f"Game stopped after {len(self.state.moves)} moves: {self.state.error}")
                break

            self.board.push(move.to_chess_move())
            self.state.moves.append(move.uci())
            self.state.fen = self.board.fen()

        self.state.result = self.rules.get_result(self.board)
        self.state.termination = self.rules.termination(self.board)
        return self.state
