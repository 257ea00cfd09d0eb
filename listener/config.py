"""Centralized configuration helpers for the report listener."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import yaml
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.changed_components import CHANGED_COMPONENTS_PATH, CHANGED_COMPONENTS_VARIABLE
from .core.errors import ListenerError, MissingConfigurationError
from .core.levels import DEFAULT_META_INFO_THRESHOLD, LogLevel
from .core.models import Attribute

# Absolute project root derived from this file's location.
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent

# Canonical artifact directories used across the project.
ARTIFACTS_ROOT: Path = PROJECT_ROOT / "artifacts"
RECORDINGS_DIR: Path = ARTIFACTS_ROOT / "recordings"
REPORT_DIR: Path = ARTIFACTS_ROOT / "reports"
DEFAULT_CONFIG_FILE: Path = Path("listener.yml")


def ensure_directories() -> None:
    """Ensure that the artifact directories exist before writing anything."""
    for path in (ARTIFACTS_ROOT, RECORDINGS_DIR, REPORT_DIR):
        path.mkdir(parents=True, exist_ok=True)


class ListenerSettings(BaseSettings):
    """Runtime parameters of the listener; the environment overrides the YAML file."""

    testset: str
    endpoint: Optional[str] = None
    access_token: Optional[str] = None
    project: Optional[str] = None
    description: str = ""
    attributes: str = Field(default="", description="'key:value;tag' pairs attached to the run")
    file_upload_patterns: List[str] = Field(default_factory=list)
    run_level_logs: bool = False
    meta_info_threshold: LogLevel = DEFAULT_META_INFO_THRESHOLD
    system_summary_keys: List[str] = Field(default_factory=list)
    changed_components_variable: str = CHANGED_COMPONENTS_VARIABLE
    changed_components_path: Path = CHANGED_COMPONENTS_PATH
    recordings_dir: Path = RECORDINGS_DIR

    model_config = SettingsConfigDict(
        env_prefix="LISTENER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    @property
    def run_attributes(self) -> Set[Attribute]:
        return parse_attributes(self.attributes)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the settings for logging, without the access token."""
        return self.model_dump(mode="json", exclude={"access_token"})


def parse_attributes(text: Optional[str]) -> Set[Attribute]:
    """Parse ``"key:value;tag"`` into attributes; a bare word is a value-less key."""
    attributes: Set[Attribute] = set()
    for entry in (text or "").split(";"):
        entry = entry.strip()
        if not entry:
            continue
        key, sep, value = entry.partition(":")
        attributes.add(Attribute(key.strip(), value.strip() if sep else None))
    return attributes


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.is_file():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ListenerError(f"Configuration file {path} must contain a mapping")
    return data


def load_settings(config_path: Path | str | None = None) -> ListenerSettings:
    """Build the settings from ``listener.yml`` (optional) and the environment."""
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_FILE
    file_values = _read_yaml(path)
    try:
        return ListenerSettings(**file_values)
    except ValidationError as exc:
        missing = [str(err["loc"][0]) for err in exc.errors() if err["type"] == "missing"]
        if missing:
            raise MissingConfigurationError(missing) from exc
        raise ListenerError(f"Invalid configuration: {exc}") from exc
