"""
Error hierarchy for the engine layer.

All custom exceptions inherit from :class:`RookMoveError` so callers can catch
the whole family at once.  A search that produces no move is *not* an error:
it is reported as ``None`` by the coordinator and the dispatcher.

Usage:
    from rookmove.engine.errors import EvaluationTimeout

    try:
        score = await evaluator.evaluate(fen, depth=8)
    except EvaluationTimeout as e:
        logger.warning(f"Skipping candidate: {e.message}")
"""

from __future__ import annotations

__all__ = [
    "EngineNotReady",
    "EvaluationTimeout",
    "InitializationError",
    "RookMoveError",
]


class RookMoveError(Exception):
    """Base exception for all rookmove errors."""

    code: str = "ROOKMOVE_ERROR"

    def __init__(self, message: str = "") -> None:
        self.message = message or self.__class__.__doc__ or self.code
        super().__init__(self.message)


class InitializationError(RookMoveError):
    """The engine handshake never completed."""

    code = "ENGINE_INIT_FAILED"


class EngineNotReady(RookMoveError):
    """A search, evaluation or option command was issued outside READY."""

    code = "ENGINE_NOT_READY"


class EvaluationTimeout(RookMoveError):
    """No depth-matching score arrived within the evaluation window."""

    code = "EVALUATION_TIMEOUT"
