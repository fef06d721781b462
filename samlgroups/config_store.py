"""
XDG Group Configuration Store

Loads and saves the group configuration as a single JSON document under an
XDG-style configuration directory:

    ~/.config/saml2aws-groups/groups.json             (default profile)
    ~/.config/saml2aws-groups/<profile>/groups.json   (named profiles)

Saves are atomic (write to a temp file, then rename) so a failed save never
leaves a partially written file behind. The previous file is optionally kept
as groups.json.backup.

Usage:
    from samlgroups.config_store import ConfigStore

    store = ConfigStore()
    config = store.load_or_default()
    store.save(config)

Module: config_store
"""

import json
import os
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import structlog
from pydantic import ValidationError

from .models import ConfigMetadata, GroupConfig
from .version import __version__

logger = structlog.get_logger(__name__)

APP_DIR_NAME = "saml2aws-groups"
CONFIG_FILE_NAME = "groups.json"
DEFAULT_PROFILE = "default"


class ConfigStoreError(Exception):
    """Base class for configuration store failures"""

    def __init__(self, message: str, path: Path):
        super().__init__(message)
        self.path = path


class ConfigLoadError(ConfigStoreError):
    """Raised when the stored configuration cannot be read or parsed"""


class ConfigSaveError(ConfigStoreError):
    """Raised when the configuration cannot be written"""


class ConfigStore:
    """
    Group configuration store

    Each operation loads the whole configuration, and each save writes the
    whole configuration back. There is no locking: the last writer wins.
    """

    def __init__(self, base_dir: Optional[Path] = None, profile: str = DEFAULT_PROFILE):
        """
        Initialize the store

        Args:
            base_dir: Base configuration directory (defaults to ~/.config/saml2aws-groups)
            profile: Profile name to use (defaults to "default")
        """
        self.base_dir = Path(base_dir) if base_dir else self._get_default_base_dir()
        self.profile = profile

    @staticmethod
    def _get_default_base_dir() -> Path:
        """
        Gets the default XDG base directory

        Honors XDG_CONFIG_HOME when set.

        Returns:
            Path to ~/.config/saml2aws-groups
        """
        xdg_home = os.getenv("XDG_CONFIG_HOME")
        root = Path(xdg_home) if xdg_home else Path.home() / ".config"
        return root / APP_DIR_NAME

    def get_profile_dir(self, profile_name: Optional[str] = None) -> Path:
        profile = profile_name or self.profile
        if profile == DEFAULT_PROFILE:
            return self.base_dir
        return self.base_dir / profile

    @property
    def config_path(self) -> Path:
        return self.get_profile_dir() / CONFIG_FILE_NAME

    @property
    def backup_path(self) -> Path:
        return self.config_path.with_suffix(".json.backup")

    def exists(self) -> bool:
        return self.config_path.is_file()

    def list_profiles(self) -> list[str]:
        """
        Lists all profiles that hold a configuration file

        Returns:
            List of profile names, "default" first
        """
        profiles = [DEFAULT_PROFILE]

        if self.base_dir.is_dir():
            for entry in sorted(self.base_dir.iterdir()):
                if entry.is_dir() and (entry / CONFIG_FILE_NAME).is_file():
                    profiles.append(entry.name)

        return profiles

    def load_or_default(self) -> GroupConfig:
        """
        Loads the configuration, or an empty one if none has been saved yet

        Returns:
            The stored group configuration

        Raises:
            ConfigLoadError: If the file is unreadable, not JSON, or fails validation
        """
        path = self.config_path

        if not path.exists():
            logger.debug("No configuration file, using empty configuration", path=str(path))
            return GroupConfig()

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error("Invalid JSON in configuration file", path=str(path), error=str(e))
            raise ConfigLoadError(f"Invalid JSON in configuration file: {path}. {e}", path) from e
        except UnicodeDecodeError as e:
            logger.error("Configuration file is not valid UTF-8", path=str(path), error=str(e))
            raise ConfigLoadError(f"Configuration file is not valid UTF-8: {path}. {e}", path) from e
        except OSError as e:
            logger.error("Failed to read configuration file", path=str(path), error=str(e))
            raise ConfigLoadError(f"Failed to read configuration file: {path}. {e}", path) from e

        if data is None:
            return GroupConfig()

        try:
            config = GroupConfig.model_validate(data)
        except ValidationError as e:
            logger.error("Configuration file failed validation", path=str(path), errors=e.error_count())
            raise ConfigLoadError(f"Invalid configuration file: {path}. {e}", path) from e

        logger.debug("Configuration loaded", path=str(path), groups=len(config.groups))
        return config

    def save(self, config: GroupConfig, backup: bool = True) -> Path:
        """
        Writes the whole configuration atomically

        Args:
            config: Configuration to persist; its metadata is updated once the write succeeds
            backup: Copy the previous file to groups.json.backup first

        Returns:
            Path of the written file

        Raises:
            ConfigSaveError: If the directory or file cannot be written
        """
        path = self.config_path

        metadata = ConfigMetadata(
            saved_at=datetime.now(timezone.utc).isoformat(),
            source="cli",
            version=__version__,
        )
        stamped = config.model_copy(update={"metadata": metadata})
        content = json.dumps(stamped.to_json_dict(), indent=2, ensure_ascii=False)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)

            if backup and path.exists():
                shutil.copy2(path, self.backup_path)
                logger.debug("Backup created", path=str(self.backup_path))

            fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".groups_", suffix=".tmp")
            try:
                with open(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                    f.write("\n")
                Path(tmp_path).replace(path)
            except BaseException:
                Path(tmp_path).unlink(missing_ok=True)
                raise
        except OSError as e:
            logger.error("Failed to write configuration file", path=str(path), error=str(e))
            raise ConfigSaveError(f"Failed to write configuration file: {path}. {e}", path) from e

        config.metadata = metadata
        logger.info("Configuration saved", path=str(path), groups=len(config.groups))
        return path
