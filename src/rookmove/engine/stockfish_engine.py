from __future__ import annotations

import asyncio
import logging
import os
import shutil
from typing import Awaitable, Callable, Optional, Protocol, Sequence

logger = logging.getLogger(__name__)


class EngineProcess(Protocol):
    """Line-oriented pipe to a running UCI engine."""

    def write_line(self, line: str) -> None: ...

    async def read_line(self) -> Optional[str]:
        """Next line without its terminator, or ``None`` once the engine exits."""
        ...

    def kill(self) -> None: ...

    async def wait(self) -> None: ...


EngineSpawner = Callable[[], Awaitable[EngineProcess]]


def resolve_engine_path(path: str) -> str:
    """Locate the engine executable.

    Existing paths are used as given; bare command names are looked up on
    ``PATH``.

    Raises:
        FileNotFoundError: If the executable cannot be found.
    """
    if os.path.isabs(path) or os.sep in path:
        if os.path.exists(path):
            return path
    else:
        found = shutil.which(path)
        if found:
            return found
    raise FileNotFoundError(
        f"Stockfish engine not found at '{path}'. Please install Stockfish or update the path in your config file."
    )


class StockfishProcess:
    """Asynchronous pipe around a UCI engine subprocess.

    Writes are fire-and-forget: each command is buffered on the stdin
    transport and flushed by the event loop, so callers never block on the
    engine.
    """

    def __init__(self, proc: asyncio.subprocess.Process) -> None:
        self._proc = proc

    @classmethod
    async def spawn(cls, path: str = "stockfish", args: Sequence[str] = ()) -> "StockfishProcess":
        executable = resolve_engine_path(path)
        proc = await asyncio.create_subprocess_exec(
            executable,
            *args,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )
        logger.info(f"Started engine process {executable} (pid {proc.pid})")
        return cls(proc)

    @property
    def pid(self) -> int:
        return self._proc.pid

    def write_line(self, line: str) -> None:
        assert self._proc.stdin is not None
        self._proc.stdin.write((line + "\n").encode())

    async def read_line(self) -> Optional[str]:
        assert self._proc.stdout is not None
        raw = await self._proc.stdout.readline()
        if not raw:
            return None
        return raw.decode(errors="replace").rstrip("\r\n")

    def kill(self) -> None:
        if self._proc.returncode is None:
            try:
                self._proc.kill()
            except ProcessLookupError:
                pass

    async def wait(self) -> None:
        await self._proc.wait()


def stockfish_spawner(path: str = "stockfish", args: Sequence[str] = ()) -> EngineSpawner:
    """Factory handed to :class:`~rookmove.engine.session.EngineSession`."""

    async def _spawn() -> EngineProcess:
        return await StockfishProcess.spawn(path, args)

    return _spawn
