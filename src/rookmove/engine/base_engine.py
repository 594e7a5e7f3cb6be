from typing import Optional, Protocol

from ..utils.chess_utils import EngineMove
from ..utils.config_schema import AISettings


class BaseEngine(Protocol):
    """Minimal interface any engine-backed move source must provide."""

    async def select_move(
        self,
        position: str,
        settings: AISettings,
        minimum_delay_ms: Optional[int] = None,
    ) -> Optional[EngineMove]:  # noqa: D401
        """Return a move for the side to move in *position*, or ``None``.

        ``None`` means no move: the game is over, or the engine declined to
        answer in time.  Implementations expose an *async* API so callers
        can await them alongside other engine work.
        """
        ...

    async def aclose(self) -> None:
        ...
