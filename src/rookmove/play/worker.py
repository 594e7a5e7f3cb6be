from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import chess

from ..engine.dispatcher import MoveDispatcher
from ..engine.errors import InitializationError, RookMoveError
from ..utils.chess_utils import EngineMove, validate_and_normalize_move
from ..utils.config_schema import (
    ENGINE_LEVELS,
    AILevel,
    AISettings,
    presets_from_config,
    settings_for_level,
)

logger = logging.getLogger(__name__)

NO_MOVE_ERROR = "AI could not find a move"
INVALID_MOVE_ERROR = "AI suggested an invalid move"


@dataclass
class WorkerState:
    """Mutable state for an AI player."""

    board: chess.Board = field(default_factory=chess.Board)
    initialized: bool = False
    init_attempts: int = 0
    thinking: bool = False
    error: Optional[str] = None


class AIPlayer:
    """Player that asks a :class:`MoveDispatcher` for moves and plays them.

    ``level`` (default: ``player.default_level`` from *config*, else
    ``medium``) is used for every move unless per-colour ``levels`` are given
    (AI-vs-AI play), in which case a colour without an entry plays
    ``medium``.
    """

    def __init__(
        self,
        dispatcher: MoveDispatcher,
        level: Optional[AILevel | str] = None,
        *,
        levels: Optional[Dict[chess.Color, AILevel | str]] = None,
        custom_settings: Optional[dict] = None,
        minimum_delay_ms: Optional[int] = None,
        config: Optional[dict] = None,
    ):
        player_cfg = (config or {}).get("player", {})
        self.dispatcher = dispatcher
        self.level = AILevel(level or player_cfg.get("default_level", AILevel.MEDIUM))
        self.levels = {color: AILevel(lvl) for color, lvl in (levels or {}).items()}
        self.custom_settings = custom_settings
        self.minimum_delay_ms = minimum_delay_ms
        self.presets = presets_from_config(config)
        self.max_init_attempts = player_cfg.get("max_init_attempts", 3)
        self.retry_delay_ms = player_cfg.get("retry_delay_ms", 2_000)
        self.state = WorkerState()

    # ------------------------------------------------------------------
    # Engine readiness
    # ------------------------------------------------------------------

    @property
    def needs_engine(self) -> bool:
        used = set(self.levels.values()) if self.levels else {self.level}
        return bool(used & ENGINE_LEVELS)

    @property
    def error(self) -> Optional[str]:
        return self.state.error

    @property
    def can_retry_init(self) -> bool:
        return self.state.init_attempts >= self.max_init_attempts and not self.state.initialized

    async def ensure_ready(self) -> bool:
        """Initialize the engine session, retrying up to ``max_init_attempts`` times."""
        if self.state.initialized or not self.needs_engine:
            self.state.initialized = True
            return True

        while self.state.init_attempts < self.max_init_attempts:
            self.state.init_attempts += 1
            try:
                await self.dispatcher.session.initialize()
            except InitializationError as exc:
                self.state.error = exc.message
                logger.warning(f"Engine initialization attempt {self.state.init_attempts} failed: {exc.message}")
                if self.state.init_attempts < self.max_init_attempts:
                    await asyncio.sleep(self.retry_delay_ms / 1000)
                continue

            self.state.initialized = True
            self.state.error = None
            return True
        return False

    def retry_initialization(self) -> None:
        """Reset the retry budget after the attempts ran out."""
        self.state.init_attempts = 0
        self.state.initialized = False
        self.state.error = None

    # ------------------------------------------------------------------
    # Moves
    # ------------------------------------------------------------------

    def settings_for(self, color: chess.Color) -> AISettings:
        level = self.levels.get(color, AILevel.MEDIUM) if self.levels else self.level
        return settings_for_level(level, self.custom_settings, self.presets)

    async def select_move(self, board: chess.Board) -> Optional[EngineMove]:
        """Ask the dispatcher for a move and check it against *board*.

        Records an error and returns ``None`` when no usable move comes back.
        """
        self.state.thinking = True
        self.state.error = None
        try:
            settings = self.settings_for(board.turn)
            move = await self.dispatcher.select_move(board.fen(), settings, self.minimum_delay_ms)
        except RookMoveError as exc:
            self.state.error = exc.message
            logger.error(f"AI move failed: {exc.message}")
            return None
        finally:
            self.state.thinking = False

        if move is None:
            self.state.error = NO_MOVE_ERROR
            return None

        validated = validate_and_normalize_move(board.fen(), move)
        if validated is None:
            self.state.error = INVALID_MOVE_ERROR
            logger.warning(f"Engine suggested illegal move {move.uci()} in {board.fen()}")
        return validated

    async def play_move(self) -> Optional[chess.Move]:
        """Select and play a move on the internal board."""
        move = await self.select_move(self.state.board)
        if move is None:
            return None
        chess_move = move.to_chess_move()
        self.state.board.push(chess_move)
        return chess_move
