"""
Engine session lifecycle.

An :class:`EngineSession` owns one engine process: it spawns it, runs the
``uci``/``isready`` handshake, writes commands and fans every other inbound
line out to its subscribers.  Sessions are plain objects; the application
creates one, awaits :meth:`EngineSession.initialize`, uses it and finally
calls :meth:`EngineSession.terminate`.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Callable, List, Optional

from .errors import EngineNotReady, InitializationError
from .stockfish_engine import EngineProcess, EngineSpawner, stockfish_spawner

logger = logging.getLogger(__name__)

MessageHandler = Callable[[str], None]

UCI_OK = "uciok"
READY_OK = "readyok"


class SessionState(str, Enum):
    NOT_STARTED = "not_started"
    HANDSHAKE_UCI_SENT = "handshake_uci_sent"
    HANDSHAKE_READY_SENT = "handshake_ready_sent"
    READY = "ready"
    FAILED = "failed"
    TERMINATED = "terminated"


class EngineSession:
    """Single engine process with handshake tracking and message fan-out."""

    def __init__(self, spawner: Optional[EngineSpawner] = None, *, init_timeout_ms: int = 10_000) -> None:
        self._spawner = spawner or stockfish_spawner()
        self.init_timeout_ms = init_timeout_ms

        self.state = SessionState.NOT_STARTED
        self._process: Optional[EngineProcess] = None
        self._reader: Optional[asyncio.Task] = None
        self._handlers: List[MessageHandler] = []
        self._init_future: Optional[asyncio.Future] = None
        self._init_timer: Optional[asyncio.TimerHandle] = None

    @classmethod
    def from_config(cls, config: Optional[dict] = None) -> "EngineSession":
        engine_cfg = (config or {}).get("engine", {})
        spawner = stockfish_spawner(engine_cfg.get("path", "stockfish"), engine_cfg.get("args") or ())
        return cls(spawner, init_timeout_ms=engine_cfg.get("init_timeout_ms", 10_000))

    @property
    def is_ready(self) -> bool:
        return self.state is SessionState.READY

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Bring the engine to READY.

        Returns at once when already READY; concurrent callers share the
        handshake already in flight.

        Raises:
            InitializationError: The process failed or the handshake did not
                finish within ``init_timeout_ms``.
        """
        if self.is_ready:
            return
        if self._init_future is not None:
            return await asyncio.shield(self._init_future)

        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._init_future = future

        try:
            self._process = await self._spawner()
        except asyncio.CancelledError:
            if self._init_future is future:
                self._fail_init("Engine start was cancelled")
            raise
        except Exception as exc:
            message = f"Failed to start engine process: {exc}"
            if self._init_future is future:
                self._fail_init(message)
            raise InitializationError(message) from exc

        if self._init_future is not future:
            # terminate() ran while the process was starting
            process, self._process = self._process, None
            process.kill()
            return await future

        self._reader = loop.create_task(self._read_loop(self._process))
        self._init_timer = loop.call_later(
            self.init_timeout_ms / 1000,
            self._fail_init,
            f"Engine initialization timed out after {self.init_timeout_ms} ms",
        )
        self.state = SessionState.HANDSHAKE_UCI_SENT
        self._write("uci")
        return await asyncio.shield(future)

    def terminate(self) -> None:
        """Kill the engine, drop all subscribers and return to NOT_STARTED.

        Pending requests are not notified; they resolve through their own
        timers.
        """
        self._stop_process()
        self._handlers.clear()
        self.state = SessionState.NOT_STARTED
        self._settle_init(InitializationError("Engine session terminated during initialization"))
        logger.info("Engine session terminated")

    async def aclose(self) -> None:
        """Terminate and wait for the engine process to exit."""
        process = self._process
        self.terminate()
        if process is not None:
            await process.wait()

    # ------------------------------------------------------------------
    # Messaging
    # ------------------------------------------------------------------

    def send(self, command: str) -> None:
        """Write one command line to the engine (READY only)."""
        if not self.is_ready:
            raise EngineNotReady(f"Engine is not ready (state: {self.state.value})")
        self._write(command)

    def subscribe(self, handler: MessageHandler) -> None:
        if handler not in self._handlers:
            self._handlers.append(handler)

    def is_subscribed(self, handler: MessageHandler) -> bool:
        return handler in self._handlers

    def unsubscribe(self, handler: MessageHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def feed_line(self, line: str) -> None:
        """Handle one inbound line from the engine."""
        logger.debug(f"Engine: {line}")

        if line == UCI_OK:
            if self.state is SessionState.HANDSHAKE_UCI_SENT:
                self.state = SessionState.HANDSHAKE_READY_SENT
                self._write("isready")
            return

        if line == READY_OK:
            if self.state is SessionState.HANDSHAKE_READY_SENT:
                self.state = SessionState.READY
                logger.info("Engine initialized successfully")
                self._settle_init(None)
            return

        for handler in list(self._handlers):
            # Skip handlers removed earlier in this pass.
            if handler not in self._handlers:
                continue
            try:
                handler(line)
            except Exception:
                logger.error(f"Engine message handler failed on {line!r}", exc_info=True)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _write(self, command: str) -> None:
        if self._process is None:
            raise EngineNotReady("Engine process is not running")
        logger.debug(f"Sending: {command}")
        self._process.write_line(command)

    async def _read_loop(self, process: EngineProcess) -> None:
        while True:
            line = await process.read_line()
            if line is None:
                break
            line = line.strip()
            if line:
                self.feed_line(line)

        if self._process is not process:
            return
        if self.is_ready:
            logger.error("Engine process exited unexpectedly")
            self._process = None
            self._reader = None
            self.state = SessionState.TERMINATED
        else:
            self._fail_init("Engine process exited before the handshake completed")

    def _fail_init(self, message: str) -> None:
        if self.is_ready or self._init_future is None:
            return
        logger.error(message)
        self._stop_process()
        self.state = SessionState.FAILED
        self._settle_init(InitializationError(message))

    def _settle_init(self, error: Optional[Exception]) -> None:
        if self._init_timer is not None:
            self._init_timer.cancel()
            self._init_timer = None
        future, self._init_future = self._init_future, None
        if future is None or future.done():
            return
        if error is None:
            future.set_result(None)
        else:
            future.set_exception(error)
            # Mark retrieved so an unawaited failure does not warn at GC time.
            future.exception()

    def _stop_process(self) -> None:
        reader, self._reader = self._reader, None
        process, self._process = self._process, None
        if reader is not None and reader is not _current_task():
            reader.cancel()
        if process is not None:
            process.kill()


def _current_task() -> Optional[asyncio.Task]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None
