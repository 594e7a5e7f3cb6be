from __future__ import annotations

import logging
import re
from typing import Optional

from .coordinator import RequestCoordinator, is_bestmove
from .errors import EvaluationTimeout

logger = logging.getLogger(__name__)

_SCORE_CP = re.compile(r"score cp (-?\d+)")
_DEPTH = re.compile(r"\bdepth (\d+)\b")

# Score reported when the search ends before any line reaches the target depth.
NEUTRAL_SCORE = 0


def parse_info_score(line: str, depth: int) -> Optional[int]:
    """Centipawn score of an ``info`` line reporting exactly *depth*, else ``None``."""
    if not line.startswith("info"):
        return None
    score = _SCORE_CP.search(line)
    reported = _DEPTH.search(line)
    if score is None or reported is None or int(reported.group(1)) != depth:
        return None
    return int(score.group(1))


class PositionEvaluator:
    """Centipawn scores for single positions at a fixed search depth."""

    def __init__(self, coordinator: RequestCoordinator, *, timeout_ms: int = 3_000) -> None:
        self.coordinator = coordinator
        self.timeout_ms = timeout_ms

    @classmethod
    def from_config(cls, coordinator: RequestCoordinator, config: Optional[dict] = None) -> "PositionEvaluator":
        engine_cfg = (config or {}).get("engine", {})
        return cls(coordinator, timeout_ms=engine_cfg.get("evaluation_timeout_ms", 3_000))

    async def evaluate(self, position: str, depth: int) -> int:
        """Score *position* (side to move's view) once the search reaches *depth*.

        Shallower ``info`` lines are ignored.  A ``bestmove`` arriving first
        yields :data:`NEUTRAL_SCORE`.

        Raises:
            EngineNotReady: The session is not READY.
            EvaluationTimeout: No depth-matching score within ``timeout_ms``.
        """

        def matcher(line: str) -> bool:
            return is_bestmove(line) or parse_info_score(line, depth) is not None

        def parse(line: str) -> int:
            if is_bestmove(line):
                logger.debug(f"No depth {depth} score before {line!r}; using neutral score")
                return NEUTRAL_SCORE
            return parse_info_score(line, depth)

        def on_timeout() -> int:
            raise EvaluationTimeout(f"Position evaluation timed out after {self.timeout_ms} ms")

        return await self.coordinator.issue(
            [f"position fen {position}", f"go depth {depth}"],
            matcher,
            parse,
            self.timeout_ms,
            on_timeout=on_timeout,
        )
