"""
Request/response correlation over an engine session.

The engine broadcasts unordered text lines.  :class:`RequestCoordinator`
turns them into single awaitable results: each request is an entry in a FIFO
table holding a matcher, a parser, a future and its own timeout timer.  On
every inbound line the first live entry whose matcher accepts the line is
removed from the table, its timer cancelled, and only then is its future
resolved.

One coordinator belongs to one session.  It runs a single request at a time;
further requests wait on an :class:`asyncio.Lock` in arrival order.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional

from ..utils.chess_utils import EngineMove, parse_bestmove
from ..utils.config_schema import AISettings
from .errors import EngineNotReady
from .session import EngineSession

logger = logging.getLogger(__name__)

Matcher = Callable[[str], bool]
Parser = Callable[[str], Any]
TimeoutHandler = Callable[[], Any]

BESTMOVE = "bestmove"


def is_bestmove(line: str) -> bool:
    return line.startswith(BESTMOVE)


@dataclass(eq=False)
class PendingRequest:
    matcher: Matcher
    parse: Parser
    future: asyncio.Future
    timer: Optional[asyncio.TimerHandle] = None
    resolved: bool = field(default=False)


def build_search_commands(position: str, settings: AISettings) -> List[str]:
    """Commands for a search, in the order they are sent."""
    commands = []
    if settings.limit_strength and settings.elo_rating:
        commands.append("setoption name UCI_LimitStrength value true")
        commands.append(f"setoption name UCI_Elo value {settings.elo_rating}")
    else:
        commands.append("setoption name UCI_LimitStrength value false")

    if settings.skill_level is not None:
        commands.append(f"setoption name Skill Level value {settings.skill_level}")

    commands.append(f"position fen {position}")

    go = "go"
    # movetime takes precedence over depth
    if settings.time is not None:
        go += f" movetime {settings.time}"
    elif settings.depth is not None:
        go += f" depth {settings.depth}"
    if settings.nodes is not None:
        go += f" nodes {settings.nodes}"
    commands.append(go)
    return commands


class RequestCoordinator:
    """Single-shot, timeout-bound requests over an :class:`EngineSession`."""

    def __init__(self, session: EngineSession, *, search_timeout_ms: int = 5_000) -> None:
        self.session = session
        self.search_timeout_ms = search_timeout_ms
        self._pending: List[PendingRequest] = []
        self._lock = asyncio.Lock()
        # bestmove lines still due from searches that were resolved early.
        self._owed_bestmoves = 0
        self._subscribed = False

    @classmethod
    def from_config(cls, session: EngineSession, config: Optional[dict] = None) -> "RequestCoordinator":
        engine_cfg = (config or {}).get("engine", {})
        return cls(session, search_timeout_ms=engine_cfg.get("search_timeout_ms", 5_000))

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def issue(
        self,
        commands: Iterable[str],
        matcher: Matcher,
        parse: Parser,
        timeout_ms: int,
        *,
        on_timeout: TimeoutHandler,
    ) -> Any:
        """Send *commands* and resolve with ``parse(line)`` for the first line
        accepted by *matcher*.

        If no line matches within *timeout_ms* the request is dropped and the
        result is ``on_timeout()``; an exception raised there propagates to
        the caller.

        Raises:
            EngineNotReady: The session is not READY.
        """
        commands = list(commands)
        async with self._lock:
            if not self.session.is_ready:
                raise EngineNotReady(f"Engine is not ready (state: {self.session.state.value})")
            self._ensure_subscribed()

            loop = asyncio.get_running_loop()
            request = PendingRequest(matcher=matcher, parse=parse, future=loop.create_future())
            request.timer = loop.call_later(timeout_ms / 1000, self._expire, request, on_timeout, timeout_ms)
            self._pending.append(request)

            try:
                for command in commands:
                    self.session.send(command)
                return await request.future
            finally:
                if not request.resolved:
                    # send failed or the caller was cancelled
                    self._remove(request)
                    self._abandon_search()

    async def issue_search(self, position: str, settings: AISettings) -> Optional[EngineMove]:
        """Run an engine search and return its best move.

        ``None`` when the engine reports ``(none)`` or stays silent past the
        search timeout.
        """
        return await self.issue(
            build_search_commands(position, settings),
            is_bestmove,
            parse_bestmove,
            self.search_timeout_ms,
            on_timeout=_no_move,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_subscribed(self) -> None:
        # terminate() clears subscribers, so re-check on every request.
        if not self._subscribed or not self.session.is_subscribed(self._on_line):
            self._owed_bestmoves = 0
            self.session.subscribe(self._on_line)
            self._subscribed = True

    def _on_line(self, line: str) -> None:
        if self._owed_bestmoves and is_bestmove(line):
            self._owed_bestmoves -= 1
            logger.debug(f"Dropping late reply: {line}")
            return

        for request in list(self._pending):
            if request.resolved or request.future.done() or not request.matcher(line):
                continue
            self._remove(request)
            if not is_bestmove(line):
                self._abandon_search()
            try:
                request.future.set_result(request.parse(line))
            except Exception as exc:
                request.future.set_exception(exc)
            return

    def _expire(self, request: PendingRequest, on_timeout: TimeoutHandler, timeout_ms: int) -> None:
        if request.resolved or request.future.done():
            return
        self._remove(request)
        logger.warning(f"Engine request timed out after {timeout_ms} ms")
        self._abandon_search()
        try:
            request.future.set_result(on_timeout())
        except Exception as exc:
            request.future.set_exception(exc)

    def _abandon_search(self) -> None:
        """Stop a search whose result is no longer wanted and drop its bestmove."""
        if not self.session.is_ready:
            return
        self._owed_bestmoves += 1
        self.session.send("stop")

    def _remove(self, request: PendingRequest) -> None:
        request.resolved = True
        if request.timer is not None:
            request.timer.cancel()
        if request in self._pending:
            self._pending.remove(request)


def _no_move() -> None:
    return None
