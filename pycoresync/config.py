"""Configuration management for pycoresync.

Settings are resolved in this order: environment variable, user config
file (``~/.config/pycoresync/config``), built-in default. Command line
options override all of them at the call site.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .exceptions import CoreSyncConfigError
from .utils import DEFAULT_WORKERS

logger = logging.getLogger(__name__)

DEFAULT_REPO_URL = "git@github.com:glowplug-studio/supacharger-demo.git"
DEFAULT_REPO_SLUG = "glowplug-studio/supacharger-demo"
DEFAULT_BRANCH = "main"
DEFAULT_API_URL = "https://api.github.com"

# Config file key -> (environment variable, default)
SETTINGS: dict[str, tuple[str, Optional[str]]] = {
    "repo_url": ("PYCORESYNC_REPO_URL", DEFAULT_REPO_URL),
    "repo_slug": ("PYCORESYNC_REPO", DEFAULT_REPO_SLUG),
    "branch": ("PYCORESYNC_BRANCH", DEFAULT_BRANCH),
    "api_url": ("PYCORESYNC_API_URL", DEFAULT_API_URL),
    "github_token": ("GITHUB_TOKEN", None),
    "workers": ("PYCORESYNC_WORKERS", str(DEFAULT_WORKERS)),
}


class Config:
    """Access to pycoresync settings."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_dir: Directory holding the config file. Defaults to
                ~/.config/pycoresync
        """
        if config_dir is None:
            config_dir = Path.home() / ".config" / "pycoresync"
        self.config_dir = config_dir

    def get_config_path(self) -> Path:
        """Get the path of the user config file."""
        return self.config_dir / "config"

    def _load_file(self) -> dict[str, str]:
        """Read ``KEY=value`` lines from the user config file."""
        path = self.get_config_path()
        values: dict[str, str] = {}
        if not path.exists():
            return values

        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(f"Failed to read config file {path}: {e}")
            return values

        for line in content.splitlines():
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, _, value = line.partition("=")
            values[key.strip().lower()] = value.strip().strip("\"'")
        return values

    def get(self, key: str) -> Optional[str]:
        """Resolve a setting.

        Args:
            key: Setting name (see SETTINGS)

        Returns:
            Resolved value or None if unset

        Raises:
            CoreSyncConfigError: If the key is unknown
        """
        if key not in SETTINGS:
            raise CoreSyncConfigError(f"Unknown setting: {key}")

        env_var, default = SETTINGS[key]
        env_value = os.environ.get(env_var)
        if env_value:
            return env_value

        file_value = self._load_file().get(key)
        if file_value:
            return file_value

        return default

    def save_value(self, key: str, value: str) -> None:
        """Persist a setting in the user config file.

        Args:
            key: Setting name (see SETTINGS)
            value: Value to store

        Raises:
            CoreSyncConfigError: If the key is unknown or the file cannot be written
        """
        if key not in SETTINGS:
            raise CoreSyncConfigError(f"Unknown setting: {key}")

        values = self._load_file()
        values[key] = value

        path = self.get_config_path()
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            lines = [f"{k}={v}" for k, v in sorted(values.items())]
            path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        except OSError as e:
            raise CoreSyncConfigError(f"Failed to write config file {path}: {e}") from e
        logger.debug(f"Saved setting {key} to {path}")

    def as_dict(self) -> dict[str, Optional[str]]:
        """Return all resolved settings."""
        return {key: self.get(key) for key in SETTINGS}

    @property
    def repo_url(self) -> str:
        return self.get("repo_url") or DEFAULT_REPO_URL

    @property
    def repo_slug(self) -> str:
        return self.get("repo_slug") or DEFAULT_REPO_SLUG

    @property
    def branch(self) -> str:
        return self.get("branch") or DEFAULT_BRANCH

    @property
    def api_url(self) -> str:
        return self.get("api_url") or DEFAULT_API_URL

    @property
    def github_token(self) -> Optional[str]:
        return self.get("github_token")

    @property
    def workers(self) -> int:
        value = self.get("workers")
        try:
            return max(1, int(value)) if value else DEFAULT_WORKERS
        except ValueError:
            logger.warning(f"Invalid workers setting {value!r}, using default")
            return DEFAULT_WORKERS


config = Config()
