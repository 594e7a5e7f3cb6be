"""
Engine-free move selectors.

Every selector takes a position (FEN) and its non-empty legal-move list and
returns one of those moves.  Positions are never mutated; candidate moves are
tried on fresh boards.

* ``select_random`` - uniform choice.
* ``select_huddle`` - gather the mover's pieces around its own king.
* ``select_swarm``  - converge the mover's pieces on the opponent's king.

Huddle and swarm score a move by the summed Chebyshev (king-move) distance
of the mover's pieces to the target square after the move and keep the first
move with the smallest sum, so they are deterministic.
"""

from __future__ import annotations

import logging
import random
from typing import List, Optional, Sequence

import chess

from ..utils.board_utils import chebyshev_distance_sum, color_plane
from ..utils.chess_env import RulesAdapter

logger = logging.getLogger(__name__)


def select_random(position: str, legal_moves: Sequence[chess.Move], rng: Optional[random.Random] = None) -> chess.Move:
    """Pick one legal move with uniform probability."""
    rng = rng or random
    return legal_moves[rng.randrange(len(legal_moves))]


def _stable_min(scored: List[tuple[int, chess.Move]]) -> chess.Move:
    best_move = scored[0][1]
    best_total = scored[0][0]
    for total, move in scored[1:]:
        if total < best_total:
            best_total = total
            best_move = move
    return best_move


def select_huddle(
    position: str,
    legal_moves: Sequence[chess.Move],
    rng: Optional[random.Random] = None,
    rules: Optional[RulesAdapter] = None,
) -> chess.Move:
    """Move that keeps the mover's pieces closest to the mover's king."""
    rules = rules or RulesAdapter()
    mover = rules.side_to_move(position)
    if rules.king_square(position, mover) is None:
        logger.warning("Huddle: own king not found, falling back to random move")
        return select_random(position, legal_moves, rng)

    scored = []
    for move in legal_moves:
        after = rules.board(rules.apply(position, move))
        # The king may itself be the piece that moved.
        king = after.king(mover)
        scored.append((chebyshev_distance_sum(color_plane(after, mover), king), move))
    return _stable_min(scored)


def select_swarm(
    position: str,
    legal_moves: Sequence[chess.Move],
    rng: Optional[random.Random] = None,
    rules: Optional[RulesAdapter] = None,
) -> chess.Move:
    """Move that brings the mover's pieces closest to the opponent's king."""
    rules = rules or RulesAdapter()
    mover = rules.side_to_move(position)
    target = rules.king_square(position, not mover)
    if target is None:
        logger.warning("Swarm: opponent king not found, falling back to random move")
        return select_random(position, legal_moves, rng)

    scored = []
    for move in legal_moves:
        after = rules.board(rules.apply(position, move))
        scored.append((chebyshev_distance_sum(color_plane(after, mover), target), move))
    return _stable_min(scored)
