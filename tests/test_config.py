"""Integration tests for the ConfigManager."""

from __future__ import annotations

from pathlib import Path

import pytest

from imagemap_publisher.core.config import ConfigManager
from imagemap_publisher.core.exceptions import ValidationError


def _loaded(tmp_path: Path, text: str) -> ConfigManager:
    """Write *text* as config.toml and return a loaded manager."""
    config_dir = tmp_path / "cfg"
    config_dir.mkdir()
    (config_dir / "config.toml").write_text(text)
    cfg = ConfigManager(config_dir=config_dir)
    cfg.load()
    return cfg


class TestConfigManagerDefaults:
    """Tests for an unloaded configuration."""

    def test_get_returns_default_when_empty(self) -> None:
        """An empty config returns the provided default."""
        cfg = ConfigManager(config_dir=Path("/nonexistent"))
        assert cfg.get("width_set", default="line") == "line"

    def test_default_config_dir(self) -> None:
        """The default directory is ~/.config/imagemap-publisher."""
        assert ConfigManager().config_dir == Path.home() / ".config" / "imagemap-publisher"


class TestConfigManagerResolve:
    """Tests for CLI-flag-over-config resolution."""

    def test_override_wins(self, tmp_path: Path) -> None:
        """An explicit value beats the configured one."""
        cfg = _loaded(tmp_path, 'resample = "bicubic"\n')

        assert cfg.resolve("resample", "nearest") == "nearest"

    def test_false_override_is_kept(self, tmp_path: Path) -> None:
        """``False`` is a real override, not a missing value."""
        cfg = _loaded(tmp_path, "cleanup = true\n")

        assert cfg.resolve("cleanup", False) is False

    def test_none_falls_back_to_config_then_default(self, tmp_path: Path) -> None:
        """``None`` defers to config, then to the default."""
        cfg = _loaded(tmp_path, 'resample = "bicubic"\n')

        assert cfg.resolve("resample", None) == "bicubic"
        assert cfg.resolve("cleanup", None, default=False) is False


class TestConfigManagerToml:
    """Tests for TOML-based configuration loading."""

    def test_load_global_config(self, tmp_path: Path) -> None:
        """Global config.toml values are loaded correctly."""
        config_dir = tmp_path / "cfg"
        config_dir.mkdir()
        (config_dir / "config.toml").write_text("cleanup = true\n")

        cfg = ConfigManager(config_dir=config_dir)
        cfg.load()

        assert cfg.get("cleanup") is True

    def test_per_tool_config_overrides_global(self, tmp_path: Path) -> None:
        """A tool's TOML file overrides the global value for that tool only."""
        config_dir = tmp_path / "cfg"
        tools_dir = config_dir / "tools"
        tools_dir.mkdir(parents=True)
        (config_dir / "config.toml").write_text('resample = "lanczos"\n')
        (tools_dir / "variant_resizer.toml").write_text('resample = "bicubic"\n')

        cfg = ConfigManager(config_dir=config_dir)
        cfg.load()

        assert cfg.get("resample", tool="variant_resizer") == "bicubic"
        assert cfg.get("resample", tool="variant_uploader") == "lanczos"

    def test_load_missing_dir_is_silent(self, tmp_path: Path) -> None:
        """Loading from a non-existent directory does not raise."""
        cfg = ConfigManager(config_dir=tmp_path / "does_not_exist")
        cfg.load()

        assert cfg.get("anything") is None

    def test_invalid_toml_raises(self, tmp_path: Path) -> None:
        """A malformed file raises ``ValidationError``."""
        config_dir = tmp_path / "cfg"
        config_dir.mkdir()
        (config_dir / "config.toml").write_text("width_set = \n")

        with pytest.raises(ValidationError, match="Invalid configuration file"):
            ConfigManager(config_dir=config_dir).load()
