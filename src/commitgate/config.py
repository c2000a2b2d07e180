"""Configuration management for commitgate.

Settings are looked up in this order, the first existing file wins:

- an explicit path passed with ``--config``
- ``.commitgate.yml`` at the repository root
- the platform user config directory:
  - Linux: ~/.config/commitgate/commitgate.yml
  - macOS: ~/Library/Application Support/commitgate/commitgate.yml
  - Windows: C:\\Users\\<user>\\AppData\\Local\\commitgate\\commitgate.yml

Values from the file are merged over the defaults below.
"""

import copy
import logging
import os
from typing import Any, Dict, List, Optional

import yaml
from appdirs import user_config_dir

log = logging.getLogger(__name__)

REPO_CONFIG_FILENAME = ".commitgate.yml"

# Default configuration values
DEFAULT_CONFIG: Dict[str, Any] = {
    # Files exempt from every per-file check
    "skip": [".githooks/pre-commit", "CHANGELOG.md"],
    # Unfinished-work token that must not be committed
    "forbidden_marker": "TODO",
    "markdown": {
        # Section pages never get an `updated` date
        "index_pattern": r"_index(\.[a-z]{2,3})?\.md$",
        "date_format": "%Y-%m-%d",
    },
    "config_pair": {
        "files": ["config.toml", "theme.toml"],
        "marker": "[extra]",
    },
    "tools": {
        # Preference order, first available wins
        "compressors": ["oxipng", "optipng"],
        # Every available minifier is compared
        "minifiers": ["terser", "uglifyjs"],
    },
    "social_cards": {
        "enabled": True,
        "command": "social-cards-zola",
        "content_dir": "content",
        "static_dir": "static",
        "output_dir": "static/img/social_cards",
        "base_url": "http://127.0.0.1:1111",
    },
    "font_subset": {
        # Regenerated whenever this file is committed
        "config": "config.toml",
        "command": "subset_font",
        "font": "static/fonts/Inter4.woff2",
        "output_dir": "static/",
        "output_file": "static/custom_subset.css",
    },
}

# Singleton instance
_config_instance: Optional["Config"] = None


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence.

    Args:
        base: Base dictionary with default values.
        override: Dictionary with values to override.

    Returns:
        Merged dictionary.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class Config:
    """Configuration manager for commitgate.

    Uses singleton pattern for global access, see `get_config`.
    """

    APP_NAME = "commitgate"
    CONFIG_FILENAME = "commitgate.yml"

    def __init__(self, config_path: Optional[str] = None, repo_root: Optional[str] = None):
        """Initialize configuration.

        Args:
            config_path: Optional path to config file. If None, the repository
                file is tried first, then the user config directory.
            repo_root: Repository root used to find ``.commitgate.yml``.
        """
        self._config: Dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)
        self._config_path = config_path or self._get_default_config_path(repo_root)
        self._loaded = False

    def _get_default_config_path(self, repo_root: Optional[str] = None) -> str:
        """Get the default configuration file path.

        Returns:
            Path to the repository config file if one exists, else the user one.
        """
        if repo_root:
            repo_config = os.path.join(repo_root, REPO_CONFIG_FILENAME)
            if os.path.exists(repo_config):
                return repo_config
        config_dir = user_config_dir(self.APP_NAME)
        return os.path.join(config_dir, self.CONFIG_FILENAME)

    def load(self) -> "Config":
        """Load configuration from file.

        Returns:
            Self for chaining.
        """
        if self._loaded:
            return self

        if os.path.exists(self._config_path):
            try:
                with open(self._config_path, "r", encoding="utf-8") as f:
                    user_config = yaml.safe_load(f) or {}
                self._config = deep_merge(copy.deepcopy(DEFAULT_CONFIG), user_config)
                log.debug("Loaded configuration from %s", self._config_path)
            except (IOError, yaml.YAMLError) as e:
                log.warning("Error loading config file %s: %s", self._config_path, e)
                self._config = copy.deepcopy(DEFAULT_CONFIG)
        else:
            log.debug("No config file found at %s, using defaults", self._config_path)

        self._loaded = True
        return self

    @property
    def config_path(self) -> str:
        """Get the path to the configuration file."""
        return self._config_path

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dot-separated key.

        Args:
            key: Dot-separated key path (e.g., "social_cards.command").
            default: Default value if key not found.

        Returns:
            Configuration value or default.
        """
        self.load()
        parts = key.split(".")
        value = self._config
        for part in parts:
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default
        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value by dot-separated key.

        This only affects the runtime configuration, not the file.
        """
        self.load()
        parts = key.split(".")
        config = self._config
        for part in parts[:-1]:
            if part not in config:
                config[part] = {}
            config = config[part]
        config[parts[-1]] = value

    @property
    def skip(self) -> List[str]:
        """Files exempt from per-file checks."""
        return list(self.get("skip", []))

    @property
    def forbidden_marker(self) -> str:
        """Token that must not appear in committed files."""
        return self.get("forbidden_marker", "TODO")

    @property
    def index_pattern(self) -> str:
        """Regular expression matching section index pages."""
        return self.get("markdown.index_pattern", DEFAULT_CONFIG["markdown"]["index_pattern"])

    @property
    def date_format(self) -> str:
        return self.get("markdown.date_format", "%Y-%m-%d")

    @property
    def config_pair(self) -> List[str]:
        """The two configuration files whose marked sections must stay in sync."""
        return list(self.get("config_pair.files", ["config.toml", "theme.toml"]))

    @property
    def config_pair_marker(self) -> str:
        return self.get("config_pair.marker", "[extra]")

    @property
    def compressors(self) -> List[str]:
        return list(self.get("tools.compressors", []))

    @property
    def minifiers(self) -> List[str]:
        return list(self.get("tools.minifiers", []))

    @property
    def social_cards_enabled(self) -> bool:
        return bool(self.get("social_cards.enabled", True))


def get_config(config_path: Optional[str] = None, repo_root: Optional[str] = None) -> Config:
    """Get the global configuration instance.

    Args:
        config_path: Optional path to config file. Only used on first call.
        repo_root: Optional repository root. Only used on first call.

    Returns:
        The global Config instance.
    """
    global _config_instance  # pylint: disable=global-statement
    if _config_instance is None:
        _config_instance = Config(config_path, repo_root)
    return _config_instance


def reset_config() -> None:
    """Reset the global configuration instance.

    Useful for testing.
    """
    global _config_instance  # pylint: disable=global-statement
    _config_instance = None
