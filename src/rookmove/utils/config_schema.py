"""Pydantic models describing the project's configuration and AI settings.

These models mirror the structure of ``configs/rookmove.yaml``.  Every field
carries a default so that an empty file, or no file at all, yields a working
configuration; unknown keys are rejected so that typos surface as clear
validation errors.

:class:`AISettings` is the per-request difficulty/style profile handed to the
move dispatcher.  It is frozen: a request never sees its settings change.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class AILevel(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    WORSTFISH = "worstfish"
    RANDOM = "random"
    HUDDLE = "huddle"
    SWARM = "swarm"
    CUSTOM = "custom"


# Levels answered without an engine search.
HEURISTIC_LEVELS = frozenset({AILevel.RANDOM, AILevel.HUDDLE, AILevel.SWARM})
# Levels that need a READY engine session.
ENGINE_LEVELS = frozenset(set(AILevel) - HEURISTIC_LEVELS)
# Levels answered by a single engine search.
SEARCH_LEVELS = ENGINE_LEVELS - {AILevel.WORSTFISH}


class AISettings(BaseModel):
    """Difficulty/style profile for a single move request."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    level: AILevel
    depth: Optional[int] = Field(None, ge=1)
    time: Optional[int] = Field(None, ge=0, description="Search time budget in ms")
    nodes: Optional[int] = Field(None, ge=1)
    elo_rating: Optional[int] = Field(None, ge=0)
    limit_strength: Optional[bool] = None
    skill_level: Optional[int] = Field(None, ge=0, le=20)


DEFAULT_LEVELS: Dict[AILevel, AISettings] = {
    AILevel.EASY: AISettings(level=AILevel.EASY, elo_rating=1320, limit_strength=True, skill_level=1, time=500),
    AILevel.MEDIUM: AISettings(level=AILevel.MEDIUM, elo_rating=1800, limit_strength=True, skill_level=8, time=1000),
    AILevel.HARD: AISettings(level=AILevel.HARD, elo_rating=2400, limit_strength=True, skill_level=15, time=2000),
    AILevel.WORSTFISH: AISettings(level=AILevel.WORSTFISH, depth=8),
    AILevel.RANDOM: AISettings(level=AILevel.RANDOM),
    AILevel.HUDDLE: AISettings(level=AILevel.HUDDLE),
    AILevel.SWARM: AISettings(level=AILevel.SWARM),
}

CUSTOM_DEPTH_RANGE = (1, 20)
CUSTOM_TIME_RANGE_MS = (100, 10_000)
CUSTOM_DEFAULT_DEPTH = 5
CUSTOM_DEFAULT_TIME_MS = 1000


def _clamp(value: int, bounds: tuple[int, int]) -> int:
    low, high = bounds
    return max(low, min(value, high))


def custom_settings(depth: Optional[int] = None, time: Optional[int] = None, **extra) -> AISettings:
    """Build ``custom`` settings, clamping depth to 1..20 and time to 100..10000 ms."""
    return AISettings(
        level=AILevel.CUSTOM,
        depth=_clamp(depth or CUSTOM_DEFAULT_DEPTH, CUSTOM_DEPTH_RANGE),
        time=_clamp(time or CUSTOM_DEFAULT_TIME_MS, CUSTOM_TIME_RANGE_MS),
        **extra,
    )


def settings_for_level(
    level: AILevel | str,
    custom: Optional[dict] = None,
    presets: Optional[Dict[AILevel, AISettings]] = None,
) -> AISettings:
    """Resolve *level* to its settings profile.

    ``custom`` with overrides returns those overrides as-is; any level
    without a preset falls back to ``medium``.
    """
    presets = presets or DEFAULT_LEVELS
    try:
        level = AILevel(level)
    except ValueError:
        return presets[AILevel.MEDIUM]

    if level is AILevel.CUSTOM and custom:
        return AISettings(level=AILevel.CUSTOM, **custom)
    return presets.get(level, presets[AILevel.MEDIUM])


class EngineConfig(BaseModel):
    path: str = "stockfish"
    args: list[str] = Field(default_factory=list)
    init_timeout_ms: int = 10_000
    search_timeout_ms: int = 5_000
    evaluation_timeout_ms: int = 3_000


class PacingConfig(BaseModel):
    minimum_delay_ms: int = 500
    time_budget_buffer_ms: int = 100


class WorstfishConfig(BaseModel):
    depth: int = 8


class PlayerConfig(BaseModel):
    max_init_attempts: int = 3
    retry_delay_ms: int = 2_000
    default_level: AILevel = AILevel.MEDIUM


class LevelOverride(BaseModel):
    model_config = ConfigDict(extra="forbid")

    depth: Optional[int] = None
    time: Optional[int] = None
    nodes: Optional[int] = None
    elo_rating: Optional[int] = None
    limit_strength: Optional[bool] = None
    skill_level: Optional[int] = Field(None, ge=0, le=20)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    quiet: bool = True


class ConfigModel(BaseModel):
    """Complete configuration model."""

    model_config = ConfigDict(extra="forbid")

    engine: EngineConfig = EngineConfig()
    pacing: PacingConfig = PacingConfig()
    worstfish: WorstfishConfig = WorstfishConfig()
    player: PlayerConfig = PlayerConfig()
    levels: Dict[AILevel, LevelOverride] = Field(default_factory=dict)
    logging: LoggingConfig = LoggingConfig()


def presets_from_config(config: Optional[dict]) -> Dict[AILevel, AISettings]:
    """Level presets with the ``levels`` section of *config* applied on top."""
    presets = dict(DEFAULT_LEVELS)
    for level, override in ((config or {}).get("levels") or {}).items():
        level = AILevel(level)
        values = {k: v for k, v in dict(override).items() if v is not None}
        base = presets.get(level, AISettings(level=level))
        presets[level] = base.model_copy(update=values)
    return presets
