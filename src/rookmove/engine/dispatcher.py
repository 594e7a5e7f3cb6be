from __future__ import annotations

import asyncio
import logging
import random
from typing import Optional

from ..search.heuristics import select_huddle, select_random, select_swarm
from ..search.worst_move import DEFAULT_DEPTH, select_worst
from ..utils.chess_env import RulesAdapter
from ..utils.chess_utils import EngineMove
from ..utils.config_schema import HEURISTIC_LEVELS, SEARCH_LEVELS, AILevel, AISettings
from .base_engine import BaseEngine
from .coordinator import RequestCoordinator
from .errors import EngineNotReady
from .evaluator import PositionEvaluator
from .session import EngineSession

logger = logging.getLogger(__name__)

_DISTANCE_SELECTORS = {
    AILevel.HUDDLE: select_huddle,
    AILevel.SWARM: select_swarm,
}


class MoveDispatcher(BaseEngine):
    """Routes a (position, settings) request to a heuristic or the engine.

    Every answered request takes at least the minimum "thinking" delay so
    that fast heuristics and engine searches feel alike to the player.
    """

    def __init__(
        self,
        session: EngineSession,
        *,
        rules: Optional[RulesAdapter] = None,
        coordinator: Optional[RequestCoordinator] = None,
        evaluator: Optional[PositionEvaluator] = None,
        minimum_delay_ms: int = 500,
        time_budget_buffer_ms: int = 100,
        worstfish_depth: int = DEFAULT_DEPTH,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.session = session
        self.rules = rules or RulesAdapter()
        self.coordinator = coordinator or RequestCoordinator(session)
        self.evaluator = evaluator or PositionEvaluator(self.coordinator)
        self.minimum_delay_ms = minimum_delay_ms
        self.time_budget_buffer_ms = time_budget_buffer_ms
        self.worstfish_depth = worstfish_depth
        self.rng = rng

    @classmethod
    def from_config(cls, config: dict, session: Optional[EngineSession] = None, **kwargs) -> "MoveDispatcher":
        session = session or EngineSession.from_config(config)
        coordinator = RequestCoordinator.from_config(session, config)
        pacing = config.get("pacing", {})
        return cls(
            session,
            coordinator=coordinator,
            evaluator=PositionEvaluator.from_config(coordinator, config),
            minimum_delay_ms=pacing.get("minimum_delay_ms", 500),
            time_budget_buffer_ms=pacing.get("time_budget_buffer_ms", 100),
            worstfish_depth=config.get("worstfish", {}).get("depth", DEFAULT_DEPTH),
            **kwargs,
        )

    async def select_move(
        self,
        position: str,
        settings: AISettings,
        minimum_delay_ms: Optional[int] = None,
    ) -> Optional[EngineMove]:
        """Choose a move for the side to move in *position*.

        Returns ``None`` straight away when there is no legal move, and
        ``None`` after pacing when the engine gives no move.

        Raises:
            EngineNotReady: ``worstfish`` or an engine level was requested
                while the session is not READY.
        """
        legal_moves = self.rules.legal_moves(position)
        if not legal_moves:
            logger.info("No legal moves; game is over")
            return None

        loop = asyncio.get_running_loop()
        start = loop.time()
        level = settings.level

        if level is AILevel.RANDOM:
            move = EngineMove.from_chess_move(select_random(position, legal_moves, self.rng))
        elif level in HEURISTIC_LEVELS:
            chosen = _DISTANCE_SELECTORS[level](position, legal_moves, self.rng, rules=self.rules)
            move = EngineMove.from_chess_move(chosen)
        elif level is AILevel.WORSTFISH:
            self._require_ready()
            chosen = await select_worst(
                position,
                legal_moves,
                self.evaluator,
                depth=settings.depth or self.worstfish_depth,
                rng=self.rng,
                rules=self.rules,
            )
            move = EngineMove.from_chess_move(chosen)
        else:
            self._require_ready()
            move = await self.coordinator.issue_search(position, settings)

        delay_ms = self.effective_minimum_delay(settings, minimum_delay_ms)
        elapsed_ms = (loop.time() - start) * 1000
        if elapsed_ms < delay_ms:
            await asyncio.sleep((delay_ms - elapsed_ms) / 1000)

        logger.debug(f"{level.value} chose {move.uci() if move else None}")
        return move

    def effective_minimum_delay(self, settings: AISettings, minimum_delay_ms: Optional[int] = None) -> int:
        """Minimum wall time for a request, in milliseconds.

        Engine searches with a time budget of at least the default delay are
        paced to the budget plus a small buffer instead.
        """
        delay = self.minimum_delay_ms if minimum_delay_ms is None else minimum_delay_ms
        if settings.level in SEARCH_LEVELS and settings.time and settings.time >= self.minimum_delay_ms:
            budget = settings.time + self.time_budget_buffer_ms
            delay = max(budget, budget if minimum_delay_ms is None else minimum_delay_ms)
        return delay

    def _require_ready(self) -> None:
        if not self.session.is_ready:
            raise EngineNotReady("Stockfish is not ready")

    async def aclose(self) -> None:
        await self.session.aclose()
