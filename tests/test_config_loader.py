import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT / "src"))

import pytest
import yaml

from rookmove.utils.config_loader import load_config
from rookmove.utils.config_schema import (
    AILevel,
    custom_settings,
    presets_from_config,
    settings_for_level,
)


def test_load_config_applies_defaults(tmp_path: Path) -> None:
    """Loading a minimal config should fill in default values."""
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text(yaml.safe_dump({"engine": {"path": "/opt/stockfish"}}))

    config = load_config(str(cfg_path))
    assert config["engine"]["path"] == "/opt/stockfish"
    assert config["engine"]["init_timeout_ms"] == 10_000
    assert config["pacing"]["minimum_delay_ms"] == 500
    assert config["player"]["max_init_attempts"] == 3


def test_load_shipped_config() -> None:
    config = load_config(str(ROOT / "configs" / "rookmove.yaml"))
    assert config["worstfish"]["depth"] == 8


def test_load_config_unknown_section(tmp_path: Path) -> None:
    """A misspelt top-level section should raise a clear error."""
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text(yaml.safe_dump({"pacng": {}}))

    with pytest.raises(ValueError):
        load_config(str(cfg_path))


def test_load_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "absent.yaml"))


def test_level_overrides_from_config(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text(yaml.safe_dump({"levels": {"hard": {"elo_rating": 2600, "time": 3000}}}))

    presets = presets_from_config(load_config(str(cfg_path)))
    hard = settings_for_level("hard", presets=presets)
    assert hard.elo_rating == 2600
    assert hard.time == 3000
    assert hard.skill_level == 15


def test_settings_for_level():
    assert settings_for_level("easy").elo_rating == 1320
    assert settings_for_level("worstfish").depth == 8
    assert settings_for_level("grandmaster").level is AILevel.MEDIUM
    assert settings_for_level("custom").level is AILevel.MEDIUM
    assert settings_for_level("custom", {"depth": 3}).depth == 3


def test_custom_settings_are_clamped():
    settings = custom_settings(depth=50, time=20)
    assert settings.depth == 20
    assert settings.time == 100
    defaults = custom_settings()
    assert (defaults.depth, defaults.time) == (5, 1000)
