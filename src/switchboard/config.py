"""Configuration loading and validation for Switchboard."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class AgentConfig(BaseModel):
    """A configured agent."""

    id: str


class LinkDef(BaseModel):
    """Raw link definition as written in the config file.

    Direction and kind stay plain strings here; they are parsed into
    enums by ``switchboard.links.validate_links`` so that a bad value is
    reported with the full link context.
    """

    model_config = ConfigDict(populate_by_name=True)

    from_agent: str = Field(alias="from")
    to_agent: str = Field(alias="to")
    direction: str = "two_way"
    kind: str | None = None
    relationship: str | None = None  # Legacy: peer, superior, subordinate

    @property
    def kind_value(self) -> str:
        """Kind string to parse, falling back to the legacy field."""
        if self.kind is not None:
            return self.kind
        if self.relationship is not None:
            return self.relationship
        return "peer"

    @property
    def kind_field(self) -> str:
        """Name of the field the kind string came from, for error messages."""
        if self.kind is None and self.relationship is not None:
            return "relationship"
        return "kind"


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "switchboard.db"


class StoreConfig(BaseModel):
    """Conversation store configuration."""

    max_workers: int = 4

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v: int) -> int:
        """Validate the worker pool has at least one thread."""
        if v < 1:
            raise ValueError("max_workers must be at least 1")
        return v


class CompactionConfig(BaseModel):
    """Compaction configuration."""

    keep_recent: int = 20
    window: int = 200

    @field_validator("keep_recent", "window")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @model_validator(mode="after")
    def validate_window(self) -> "CompactionConfig":
        """The window must leave something older than keep_recent to roll up."""
        if self.window <= self.keep_recent:
            raise ValueError("compaction.window must be greater than compaction.keep_recent")
        return self


class Config(BaseModel):
    """Root configuration for Switchboard."""

    data_dir: Path = Path("./data")
    log_level: str = "INFO"
    log_json: bool = True

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    compaction: CompactionConfig = Field(default_factory=CompactionConfig)
    agents: list[AgentConfig] = Field(default_factory=list)
    links: list[LinkDef] = Field(default_factory=list)

    @field_validator("agents", mode="before")
    @classmethod
    def coerce_agent_ids(cls, v: object) -> object:
        """Allow agents to be listed as bare id strings."""
        if isinstance(v, list):
            return [{"id": item} if isinstance(item, str) else item for item in v]
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log_level is valid."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of: {allowed}")
        return v_upper

    @property
    def database_path(self) -> Path:
        """Get full path to database file."""
        return self.data_dir / self.database.path

    @property
    def agent_ids(self) -> list[str]:
        """Configured agent ids, in config order."""
        return [agent.id for agent in self.agents]

    @classmethod
    def load(cls, config_path: Path | str = Path("config.yaml")) -> "Config":
        """Load configuration from YAML file with env var overlay.

        Args:
            config_path: Path to YAML configuration file.

        Returns:
            Validated Config instance.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            ValueError: If config is invalid.
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}

        # Environment variable overrides
        if "SWITCHBOARD_DATA_DIR" in os.environ:
            yaml_config["data_dir"] = os.environ["SWITCHBOARD_DATA_DIR"]
        if "SWITCHBOARD_LOG_LEVEL" in os.environ:
            yaml_config["log_level"] = os.environ["SWITCHBOARD_LOG_LEVEL"]
        if "SWITCHBOARD_LOG_JSON" in os.environ:
            yaml_config["log_json"] = os.environ["SWITCHBOARD_LOG_JSON"].lower() == "true"

        return cls.model_validate(yaml_config)

    @classmethod
    def load_or_default(cls, config_path: Path | str | None = None) -> "Config":
        """Load configuration, falling back to defaults if file not found.

        Args:
            config_path: Optional path to YAML configuration file.

        Returns:
            Config instance (from file or defaults).
        """
        if config_path is None:
            for path in [Path("config.yaml"), Path("config.yml")]:
                if path.exists():
                    return cls.load(path)
            return cls()

        try:
            return cls.load(config_path)
        except FileNotFoundError:
            return cls()
