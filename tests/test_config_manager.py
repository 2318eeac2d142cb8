import json
from pathlib import Path

import pytest

from wipecord.config_manager import (
    DEFAULT_CDP_PORT,
    DEFAULT_DISCORD_URL,
    DEFAULT_LOGIN_TIMEOUT,
    ConfigManager,
)
from wipecord.timing import SettleTimings


@pytest.fixture
def mock_home(monkeypatch, tmp_path: Path):
    """
    Fixture to mock the user's home directory using pytest's temporary directory.
    This makes the test cross-platform and avoids manual cleanup.
    """
    monkeypatch.setattr(Path, "home", lambda: tmp_path)
    return tmp_path


@pytest.fixture
def mock_config_path(mock_home):
    """Fixture for the default config location inside the mocked home."""
    path = mock_home / ".config/wipecord"
    path.mkdir(parents=True, exist_ok=True)
    return path / "config.json"


def test_defaults_when_config_missing(mock_home):
    """
    With no config file every getter falls back to its default.
    """
    manager = ConfigManager()

    assert manager.config == {}
    assert manager.get_cdp_port() == DEFAULT_CDP_PORT
    assert manager.get_discord_url() == DEFAULT_DISCORD_URL
    assert manager.get_login_timeout() == DEFAULT_LOGIN_TIMEOUT
    assert manager.get_selectors_path() is None
    assert manager.get_chrome_path() is None
    assert manager.get_settle_timings() == SettleTimings()
    assert manager.get_block_media() is True
    assert manager.get_user_data_dir() == mock_home / ".config" / "wipecord" / "chrome-profile"


def test_load_default_location(mock_config_path):
    mock_config_path.write_text(json.dumps({"cdp_port": 9333, "chrome_path": "/opt/chrome"}))

    manager = ConfigManager()

    assert manager.get_cdp_port() == 9333
    assert manager.get_chrome_path() == "/opt/chrome"


def test_custom_config_path_loading(tmp_path):
    """
    Verify that the `ConfigManager` can load settings from a custom,
    user-specified file path.
    """
    path = tmp_path / "custom.json"
    path.write_text(json.dumps({"discord_url": "https://ptb.discord.com/channels/@me"}))

    manager = ConfigManager(config_path=str(path))

    assert manager.get_discord_url() == "https://ptb.discord.com/channels/@me"


@pytest.mark.parametrize("content", ["this is not json", "[1, 2, 3]"])
def test_malformed_config_falls_back_to_defaults(mock_config_path, content):
    """
    A corrupted or non-object config file is ignored rather than fatal.
    """
    mock_config_path.write_text(content)

    manager = ConfigManager()

    assert manager.config == {}
    assert manager.get_cdp_port() == DEFAULT_CDP_PORT


@pytest.mark.parametrize("port", ["9222", 0, 70000, True, None])
def test_invalid_port_uses_default(mock_config_path, port):
    mock_config_path.write_text(json.dumps({"cdp_port": port}))
    assert ConfigManager().get_cdp_port() == DEFAULT_CDP_PORT


@pytest.mark.parametrize("timeout", [0, -5, "soon"])
def test_invalid_login_timeout_uses_default(mock_config_path, timeout):
    mock_config_path.write_text(json.dumps({"login_timeout": timeout}))
    assert ConfigManager().get_login_timeout() == DEFAULT_LOGIN_TIMEOUT


def test_timing_overrides(mock_config_path):
    """
    Known timings are overridden, unknown or invalid ones are ignored.
    """
    mock_config_path.write_text(
        json.dumps({"timings": {"commit": 2.5, "pagination": 0, "warp": 1, "menu": "fast"}})
    )

    timings = ConfigManager().get_settle_timings()

    assert timings.commit == 2.5
    assert timings.pagination == 0.0
    assert timings.menu == SettleTimings().menu


def test_paths_are_expanded(mock_config_path, mock_home):
    mock_config_path.write_text(
        json.dumps({"selectors_path": "~/sel.yaml", "user_data_dir": "~/profile"})
    )

    manager = ConfigManager()

    assert manager.get_selectors_path() == Path("~/sel.yaml").expanduser()
    assert manager.get_user_data_dir() == Path("~/profile").expanduser()



@pytest.mark.parametrize("value, expected", [(False, False), (True, True), ("no", True), (0, True)])
def test_block_media_setting(mock_config_path, value, expected):
    """Only a real boolean turns media blocking off."""
    mock_config_path.write_text(json.dumps({"block_media": value}))
    assert ConfigManager().get_block_media() is expected
