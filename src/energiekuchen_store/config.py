"""
Configuration for the energy store.

Settings can be loaded from a YAML file:

    storage_path: ~/.energiekuchen/energiekuchen.db
    storage_key: energiekuchen-data
    share_base_url: https://energiekuchen.de
    import_max_level: 5
"""

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .models import ConfigError
from .schema import (
    APP_NAME,
    DEFAULT_VERSION,
    ENTRY_MAX_LEVEL,
    ENTRY_MIN_LEVEL,
    IMPORT_MAX_LEVEL,
    IMPORT_MIN_LEVEL,
    MAX_ACTIVITIES,
    MAX_URL_LENGTH,
    SHARE_BASE_URL,
    STORAGE_KEY,
)


def get_default_config_path() -> Path:
    """Get the default config file path."""
    return Path.home() / ".energiekuchen" / "config.yaml"


@dataclass
class EnergyConfig:
    """
    Settings for storage, sharing and validation.

    Attributes:
        app_name: Prefix of export file names
        storage_path: SQLite file holding the storage slot
        storage_key: Slot key of the dataset
        share_base_url: Origin that share links point to
        max_url_length: Longest share URL that may be produced
        max_activities: Per-chart activity cap
        entry_min_level: Lowest level accepted when adding/updating
        entry_max_level: Highest level accepted when adding/updating
        import_min_level: Lowest level accepted on import and load
        import_max_level: Highest level accepted on import and load
        data_version: Version tag for new and unversioned datasets
    """
    app_name: str = APP_NAME
    storage_path: str = "~/.energiekuchen/energiekuchen.db"
    storage_key: str = STORAGE_KEY
    share_base_url: str = SHARE_BASE_URL
    max_url_length: int = MAX_URL_LENGTH
    max_activities: int = MAX_ACTIVITIES
    entry_min_level: int = ENTRY_MIN_LEVEL
    entry_max_level: int = ENTRY_MAX_LEVEL
    import_min_level: int = IMPORT_MIN_LEVEL
    import_max_level: int = IMPORT_MAX_LEVEL
    data_version: str = DEFAULT_VERSION

    def __post_init__(self):
        self.validate()
        # Ensure share_base_url has no trailing slash
        self.share_base_url = self.share_base_url.rstrip("/")

    def validate(self) -> None:
        """
        Check that the settings are consistent.

        Raises:
            ConfigError: On wrongly typed values, inverted level ranges
                or non-positive limits
        """
        for f in fields(self):
            value = getattr(self, f.name)
            # bool is an int subclass but never a valid limit
            if not isinstance(value, f.type) or isinstance(value, bool):
                raise ConfigError(
                    f"{f.name} must be of type {f.type.__name__}, "
                    f"got {type(value).__name__}"
                )
        if self.entry_min_level > self.entry_max_level:
            raise ConfigError(
                f"entry_min_level ({self.entry_min_level}) is above "
                f"entry_max_level ({self.entry_max_level})"
            )
        if self.import_min_level > self.import_max_level:
            raise ConfigError(
                f"import_min_level ({self.import_min_level}) is above "
                f"import_max_level ({self.import_max_level})"
            )
        if self.max_activities <= 0:
            raise ConfigError("max_activities must be positive")
        if self.max_url_length <= 0:
            raise ConfigError("max_url_length must be positive")
        if not self.storage_key:
            raise ConfigError("storage_key must not be empty")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EnergyConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")
        return cls(**data)

    @classmethod
    def from_file(cls, path: Path) -> "EnergyConfig":
        """
        Load config from a YAML file.

        Raises:
            ConfigError: If the file is missing, unparsable or has unknown keys
        """
        path = Path(path).expanduser()
        if not path.exists():
            raise ConfigError(f"Config not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Config is not valid YAML: {path}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config must be a mapping: {path}")
        return cls.from_dict(data)

    def to_file(self, path: Path) -> None:
        """Save config to a YAML file."""
        path = Path(path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(asdict(self), f, sort_keys=False)


def load_config(path: Optional[Path] = None) -> EnergyConfig:
    """
    Load config from path (or the default location) when it exists.

    Falls back to defaults when no file is present. An explicitly given
    path that does not exist is an error.
    """
    if path is not None:
        return EnergyConfig.from_file(path)

    default_path = get_default_config_path()
    if default_path.exists():
        return EnergyConfig.from_file(default_path)
    return EnergyConfig()
