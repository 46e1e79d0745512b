"""
Configuration system for docmigrate using Pydantic.
"""

import os
from pathlib import Path
from typing import Any, List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class StoreConnection(BaseModel):
    """Document store connection configuration."""

    backend: Literal["mongodb", "memory"] = Field(
        "mongodb", description="Store backend"
    )
    uri: str = Field("mongodb://localhost:27017", description="MongoDB connection URI")
    database: str = Field("docmigrate", description="Database name")
    server_selection_timeout_ms: int = Field(
        5000, description="Server selection timeout in milliseconds"
    )
    operation_timeout_seconds: float = Field(
        60.0, description="Time budget for a single store operation"
    )

    @field_validator("database")
    @classmethod
    def validate_database(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Database name is required")
        return v

    @field_validator("operation_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Operation timeout must be positive")
        return v


class MigrationSettings(BaseModel):
    """Options for one reconciliation run."""

    concurrency_limit: int = Field(
        1, ge=1, description="Maximum collections reconciled concurrently within a phase"
    )
    dry_run: bool = Field(
        False, description="Plan only, never call the store"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "INFO", description="Log level"
    )
    format: str = Field(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )
    file: Optional[str] = Field(None, description="Log file path")
    max_size: int = Field(10485760, description="Max log file size in bytes")  # 10MB
    backup_count: int = Field(5, description="Number of backup log files")


class DocMigrateConfig(BaseSettings):
    """Main docmigrate configuration."""

    service_name: str = Field("docmigrate", description="Service name")
    debug: bool = Field(False, description="Enable debug mode")

    store: StoreConnection = Field(
        default_factory=StoreConnection, description="Document store connection"
    )
    snapshots: List[str] = Field(
        default_factory=list, description="Schema snapshot files (one old, one new)"
    )
    migration: MigrationSettings = Field(
        default_factory=MigrationSettings, description="Migration run options"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )

    # Directory the snapshot paths are resolved against.
    base_dir: Optional[str] = Field(None, exclude=True)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="DOCMIGRATE_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "DocMigrateConfig":
        """Load configuration from a YAML file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}

            if not isinstance(data, dict):
                raise ConfigurationError(f"Configuration file must contain a mapping: {path}")

            data = cls._expand_env_vars(data)
            data.setdefault("base_dir", str(Path(path).resolve().parent))

            return cls(**data)
        except FileNotFoundError:
            raise ConfigurationError(f"Configuration file not found: {path}")
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}")
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

    @classmethod
    def _expand_env_vars(cls, data: Any) -> Any:
        """Recursively expand environment variables in configuration data."""
        if isinstance(data, dict):
            return {k: cls._expand_env_vars(v) for k, v in data.items()}
        elif isinstance(data, list):
            return [cls._expand_env_vars(item) for item in data]
        elif isinstance(data, str):
            return os.path.expandvars(data)
        else:
            return data

    def snapshot_paths(self) -> List[Path]:
        """Snapshot file paths, resolved relative to the configuration file."""
        base = Path(self.base_dir) if self.base_dir else Path.cwd()
        return [p if p.is_absolute() else base / p for p in map(Path, self.snapshots)]

    def load_snapshots(self):
        """Parse every configured snapshot file."""
        from .schema.loader import load_snapshot

        return [load_snapshot(path) for path in self.snapshot_paths()]

    def validate_config(self) -> None:
        """Validate the configuration and its snapshots for consistency."""
        from .schema.model import select_snapshots

        if not self.snapshots:
            raise ConfigurationError("No schema snapshots configured")
        select_snapshots(self.load_snapshots())

    def to_yaml(self, path: Union[str, Path]) -> None:
        """Save configuration to a YAML file."""
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(
                self.model_dump(exclude_none=True, exclude={"base_dir"}),
                f,
                default_flow_style=False,
                indent=2,
                sort_keys=False,
            )
