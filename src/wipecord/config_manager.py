"""
Config Manager

Load wipecord settings from ~/.config/wipecord/config.json. Every key is
optional; a missing or unreadable file means defaults.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

from .timing import SettleTimings

logger = logging.getLogger(__name__)

DEFAULT_CDP_PORT = 9222
DEFAULT_DISCORD_URL = "https://discord.com/channels/@me"
DEFAULT_LOGIN_TIMEOUT = 300


class ConfigManager:
    """Manage settings for browser connection, timings and selectors"""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize config manager

        Args:
            config_path: Path to config.json (default: ~/.config/wipecord/config.json)
        """
        if config_path:
            self.config_path = Path(config_path).expanduser()
        else:
            self.config_path = Path.home() / ".config" / "wipecord" / "config.json"

        self.config = self._load_config()

    def _load_config(self) -> dict[str, Any]:
        """
        Load settings from config file

        Returns:
            Settings dictionary (empty on any problem)
        """
        if not self.config_path.exists():
            logger.info(f"No config file at {self.config_path}, using defaults")
            return {}

        try:
            with open(self.config_path) as f:
                config = json.load(f)
        except Exception as e:
            logger.error(f"Error loading config: {str(e)}")
            return {}

        if not isinstance(config, dict):
            logger.error(f"Config file {self.config_path} must contain a JSON object")
            return {}

        logger.info(f"Loaded config from {self.config_path}")
        return config

    def get_cdp_port(self) -> int:
        port = self.config.get("cdp_port", DEFAULT_CDP_PORT)

        if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
            logger.warning(f"Invalid cdp_port {port!r}, using {DEFAULT_CDP_PORT}")
            return DEFAULT_CDP_PORT

        return port

    def get_chrome_path(self) -> Optional[str]:
        return self.config.get("chrome_path")

    def get_user_data_dir(self) -> Path:
        """
        Get the Chrome profile directory used when wipecord launches Chrome

        A dedicated profile keeps the Discord login between runs without
        touching the everyday browser profile.
        """
        if "user_data_dir" in self.config:
            return Path(self.config["user_data_dir"]).expanduser()
        return Path.home() / ".config" / "wipecord" / "chrome-profile"

    def get_discord_url(self) -> str:
        return self.config.get("discord_url", DEFAULT_DISCORD_URL)

    def get_login_timeout(self) -> float:
        timeout = self.config.get("login_timeout", DEFAULT_LOGIN_TIMEOUT)

        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            logger.warning(f"Invalid login_timeout {timeout!r}, using {DEFAULT_LOGIN_TIMEOUT}")
            return DEFAULT_LOGIN_TIMEOUT

        return timeout

    def get_selectors_path(self) -> Optional[Path]:
        """
        Get a user-supplied selector table, if configured

        Returns:
            Path to a YAML selector table, or None for the packaged one
        """
        path = self.config.get("selectors_path")
        if not path:
            return None
        return Path(path).expanduser()

    def get_block_media(self) -> bool:
        """Whether image and media requests are blocked in the Discord tab (default: on)"""
        block = self.config.get("block_media", True)

        if not isinstance(block, bool):
            logger.warning(f"Invalid block_media {block!r}, using True")
            return True

        return block

    def get_settle_timings(self) -> SettleTimings:
        return SettleTimings().with_overrides(self.config.get("timings"))

