"""Unit tests for config.py - environment settings and persisted preferences."""

import pytest

from nlask.config import (
    DEFAULT_MODEL,
    Preferences,
    get_config,
    load_preferences,
    save_preferences,
)
from nlask.exceptions import ConfigurationError
from nlask.theme import Theme, ThemeMode


@pytest.fixture
def env(monkeypatch, tmp_path):
    """A clean environment with NLASK_HOME pointing at a temp directory."""
    for key in ("OPENROUTER_ASK_MODEL", "OPENROUTER_ASK_BASE_URL", "NLASK_SHELL", "NLASK_REQUEST_TIMEOUT"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("OPENROUTER_ASK_API_KEY", "test-key")
    monkeypatch.setenv("NLASK_HOME", str(tmp_path / "ask"))
    return monkeypatch


class TestGetConfig:
    """Tests for loading configuration from the environment."""

    def test_defaults(self, env, tmp_path):
        config = get_config()
        assert config.api_key == "test-key"
        assert config.model == DEFAULT_MODEL
        assert config.theme == ThemeMode.DARK
        assert config.home_dir == tmp_path / "ask"
        assert config.history_file == tmp_path / "ask" / "history"

    def test_missing_api_key(self, env):
        env.delenv("OPENROUTER_ASK_API_KEY")
        with pytest.raises(ConfigurationError) as exc_info:
            get_config()
        assert exc_info.value.missing_key == "OPENROUTER_ASK_API_KEY"

    def test_model_override(self, env):
        env.setenv("OPENROUTER_ASK_MODEL", "env/model")
        assert get_config().model == "env/model"
        assert get_config(model="cli/model").model == "cli/model"

    def test_shell_override(self, env):
        env.setenv("NLASK_SHELL", "/bin/bash")
        assert get_config().shell == "/bin/bash"

    def test_bad_timeout(self, env):
        env.setenv("NLASK_REQUEST_TIMEOUT", "soon")
        with pytest.raises(ConfigurationError, match="NLASK_REQUEST_TIMEOUT"):
            get_config()

    def test_theme_from_preferences(self, env, tmp_path):
        save_preferences(Preferences(theme=ThemeMode.LIGHT), tmp_path / "ask" / "config")
        assert get_config().theme == ThemeMode.LIGHT
        assert get_config(theme=ThemeMode.DARK).theme == ThemeMode.DARK


class TestPreferences:
    """Tests for the key=value config file."""

    def test_missing_file_gives_defaults(self, tmp_path):
        prefs = load_preferences(tmp_path / "config")
        assert prefs.theme == ThemeMode.DARK
        assert prefs.extra == {}

    def test_round_trip_keeps_unknown_keys(self, tmp_path):
        path = tmp_path / "config"
        path.write_text("theme=light\nfavourite=zsh\n")
        prefs = load_preferences(path)
        assert prefs.theme == ThemeMode.LIGHT
        prefs.theme = ThemeMode.DARK
        save_preferences(prefs, path)
        assert path.read_text() == "theme=dark\nfavourite=zsh\n"

    def test_invalid_theme_falls_back(self, tmp_path):
        path = tmp_path / "config"
        path.write_text("theme=purple\n")
        assert load_preferences(path).theme == ThemeMode.DARK

    def test_save_creates_directory(self, tmp_path):
        path = tmp_path / "nested" / "config"
        save_preferences(Preferences(theme=ThemeMode.LIGHT), path)
        assert path.read_text() == "theme=light\n"


class TestTheme:
    """Tests for colour themes."""

    def test_parse(self):
        assert ThemeMode.parse(" Light ") == ThemeMode.LIGHT
        assert ThemeMode.parse("sepia") is None

    def test_modes_differ(self):
        light = Theme.from_mode(ThemeMode.LIGHT)
        dark = Theme.from_mode(ThemeMode.DARK)
        assert light.command_color != dark.command_color
        assert dark.command_text("ls").endswith("ls\033[0m")

    def test_readline_markers(self):
        prompt = Theme.from_mode(ThemeMode.DARK).readline_prompt("run>")
        assert prompt.startswith("\x01")
        assert "\x02run>\x01" in prompt
