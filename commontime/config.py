"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import Dict, List, Optional, Sequence

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import OutputMode, WorkingHours


class WorkingHoursConfig(BaseModel):
    """Daily window in which meetings may take place."""
    start_hour: int = 9
    end_hour: int = 18

    @field_validator("start_hour", "end_hour")
    @classmethod
    def validate_hour(cls, v: int) -> int:
        """Validate hour is between 0 and 24."""
        if not 0 <= v <= 24:
            raise ValueError(f"Hour must be between 0 and 24, got {v}")
        return v

    @model_validator(mode="after")
    def validate_hours_order(self) -> "WorkingHoursConfig":
        """Ensure the configured window opens before it closes."""
        if self.end_hour <= self.start_hour:
            raise ValueError("end_hour must be later than start_hour")
        return self

    def to_working_hours(self, timezone: str) -> WorkingHours:
        return WorkingHours.from_hours(self.start_hour, self.end_hour, timezone=timezone)


class DefaultsConfig(BaseModel):
    """Default settings for availability searches."""
    duration_minutes: int = 30
    granularity_minutes: int = 1
    output_mode: OutputMode = OutputMode.INTERVALS

    @field_validator("duration_minutes", "granularity_minutes")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Ensure minute values are positive."""
        if value <= 0:
            raise ValueError(f"Value must be greater than zero, got {value}")
        return value


class Participant(BaseModel):
    """Participant configuration."""
    name: str  # Used as alias
    email: str
    calendar_id: str = ""  # Optional: for JSON busy data mapping


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Europe/Berlin"
    working_hours: WorkingHoursConfig = Field(default_factory=WorkingHoursConfig)
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    participants: List[Participant] = Field(default_factory=list)
    busy_data_file: Optional[Path] = None
    graph_endpoint: Optional[str] = None

    @field_validator("participants")
    @classmethod
    def validate_participants(cls, value: List[Participant]) -> List[Participant]:
        """Ensure participant aliases and emails are unique."""
        for field in ("name", "email"):
            keys = [getattr(p, field).lower() for p in value]
            duplicates = sorted({key for key in keys if keys.count(key) > 1})
            if duplicates:
                raise ValueError(f"Duplicate participant {field} detected: {', '.join(duplicates)}")
        return value

    def get_working_hours(self) -> WorkingHours:
        return self.working_hours.to_working_hours(self.timezone)

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from a YAML file.

        A relative ``busy_data_file`` is resolved against the config's folder.

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path} (see config.example.yaml)")

        try:
            data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)
        if config.busy_data_file is not None and not config.busy_data_file.is_absolute():
            config.busy_data_file = config_path.parent / config.busy_data_file
        return config

    def find_participant(self, identifier: str) -> Participant | None:
        """Find a participant by alias or email, ignoring case."""
        key = identifier.lower()
        return next(
            (p for p in self.participants if key in (p.name.lower(), p.email.lower())),
            None
        )

    def resolve_participants(self, identifiers: Sequence[str]) -> Dict[str, str]:
        """
        Map each identifier (alias or email) to a lower-cased email address.

        Raises:
            ValueError: If no identifiers are given or an alias is unknown
        """
        if not identifiers:
            raise ValueError("No participants provided.")

        resolved: Dict[str, str] = {}
        for identifier in identifiers:
            participant = self.find_participant(identifier)
            if participant:
                resolved[identifier] = participant.email.lower()
            elif "@" in identifier:
                resolved[identifier] = identifier.lower()

        unknown = sorted(set(identifiers) - set(resolved))
        if unknown:
            raise ValueError(
                f"Unknown participant identifier(s): {', '.join(unknown)}. "
                "Use an email address or a configured name."
            )

        return resolved


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    config_path = Path.cwd() / "config.yaml"

    if not config_path.exists():
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
