"""
Chess Rules Adapter

Thin wrapper around python-chess that answers rules questions for a position.
A position is a FEN string or a ``chess.Board``; a board keeps its move stack
so repetition draws can be claimed.  Positions are never mutated: every
operation works on its own board and :meth:`RulesAdapter.apply` returns a new
FEN.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Union

import chess

logger = logging.getLogger(__name__)

Position = Union[str, chess.Board]


class RulesAdapter:
    """
    Legal-move generation, move application and game-end checks.
    """

    @staticmethod
    def board(position: Position) -> chess.Board:
        if isinstance(position, chess.Board):
            return position.copy()
        return chess.Board(position)

    def legal_moves(self, position: Position) -> List[chess.Move]:
        """Legal moves in python-chess generation order."""
        return list(self.board(position).legal_moves)

    def apply(self, position: Position, move: chess.Move) -> str:
        """Return the FEN reached by playing *move* from *position*."""
        board = self.board(position)
        board.push(move)
        return board.fen()

    def side_to_move(self, position: Position) -> chess.Color:
        return self.board(position).turn

    def king_square(self, position: Position, color: chess.Color) -> Optional[chess.Square]:
        """Square of *color*'s king, or ``None`` when the board has none."""
        return self.board(position).king(color)

    def is_game_over(self, position: Position) -> bool:
        return self.board(position).is_game_over(claim_draw=True)

    def is_checkmate(self, position: Position) -> bool:
        return self.board(position).is_checkmate()

    def is_stalemate(self, position: Position) -> bool:
        return self.board(position).is_stalemate()

    def is_draw(self, position: Position) -> bool:
        board = self.board(position)
        return (
            board.is_stalemate()
            or board.is_insufficient_material()
            or board.can_claim_draw()
        )

    def termination(self, position: Position) -> Optional[str]:
        """Why the game is over (``checkmate``, ``stalemate`` or ``draw``), else ``None``."""
        if self.is_checkmate(position):
            return "checkmate"
        if self.is_stalemate(position):
            return "stalemate"
        if self.is_draw(position):
            return "draw"
        return None

    def get_result(self, position: Position) -> str:
        """Game result string (``1-0``, ``0-1``, ``1/2-1/2`` or ``*``)."""
        return self.board(position).result(claim_draw=True)
