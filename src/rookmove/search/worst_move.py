from __future__ import annotations

import logging
import random
from typing import Optional, Protocol, Sequence

import chess

from ..engine.errors import RookMoveError
from ..utils.chess_env import RulesAdapter
from .heuristics import select_random

logger = logging.getLogger(__name__)

DEFAULT_DEPTH = 8


class Evaluator(Protocol):
    async def evaluate(self, position: str, depth: int) -> int: ...


async def select_worst(
    position: str,
    legal_moves: Sequence[chess.Move],
    evaluator: Evaluator,
    depth: int = DEFAULT_DEPTH,
    rng: Optional[random.Random] = None,
    rules: Optional[RulesAdapter] = None,
) -> chess.Move:
    """Pick the legal move whose successor position scores lowest.

    Each successor is evaluated once, in legal-move order; the first move
    with the strictly lowest score wins.  Candidates whose evaluation fails
    are skipped.  If none succeeds a random legal move is returned.
    """
    if len(legal_moves) == 1:
        return legal_moves[0]

    rules = rules or RulesAdapter()
    worst_move: Optional[chess.Move] = None
    worst_score = float("inf")

    for move in legal_moves:
        try:
            score = await evaluator.evaluate(rules.apply(position, move), depth)
        except (RookMoveError, OSError) as exc:
            logger.warning(f"Error evaluating move {move.uci()}: {exc}")
            continue

        if score < worst_score:
            worst_score = score
            worst_move = move

    if worst_move is None:
        logger.warning("No move could be evaluated, falling back to random move")
        return select_random(position, legal_moves, rng)

    logger.debug(f"Worst move {worst_move.uci()} scored {worst_score} cp")
    return worst_move
