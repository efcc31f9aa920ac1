"""
Configuration system for tableprep using Pydantic.
"""

import logging
import logging.handlers
import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError
from .schema.models import TableSpec


class ConnectionSettings(BaseModel):
    """MySQL connection and pool settings.

    Keys not declared here are kept and handed to the driver untouched,
    so any ``aiomysql.create_pool`` option can be set from configuration.
    """

    model_config = ConfigDict(
        extra="allow",
        frozen=True,
        populate_by_name=True,
    )

    host: str = Field("localhost", description="Database host")
    port: int = Field(3306, description="Database port")
    user: str = Field("root", description="Database user")
    password: str = Field("", description="Database password")
    database: str = Field(..., description="Database name")

    connection_limit: int = Field(
        10,
        ge=1,
        alias="connectionLimit",
        description="Maximum number of pooled connections",
    )
    debug: bool = Field(False, description="Echo every statement to the log")
    timestamp_fallback: bool = Field(
        False,
        description="Use a trigger instead of a second CURRENT_TIMESTAMP default",
    )
    autocommit: bool = Field(True, description="Commit every statement")

    @field_validator("database")
    @classmethod
    def validate_database(cls, v):
        if not v or not v.strip():
            raise ValueError("Database name is required")
        return v

    @property
    def passthrough_options(self) -> Dict[str, Any]:
        """Driver options that tableprep does not interpret itself."""
        return dict(self.model_extra or {})

    def to_connection_kwargs(self) -> Dict[str, Any]:
        """Convert to aiomysql connection kwargs."""
        kwargs = {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "db": self.database,
            "autocommit": self.autocommit,
            "echo": self.debug,
        }
        kwargs.update(self.passthrough_options)
        return kwargs

    def to_pool_kwargs(self) -> Dict[str, Any]:
        """Convert to aiomysql.create_pool kwargs."""
        kwargs = self.to_connection_kwargs()
        kwargs.setdefault("minsize", 1)
        kwargs["maxsize"] = self.connection_limit
        if kwargs["minsize"] > kwargs["maxsize"]:
            kwargs["minsize"] = kwargs["maxsize"]
        return kwargs


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


class TableprepConfig(BaseSettings):
    """Main tableprep configuration."""

    connection: ConnectionSettings = Field(
        ..., description="Database connection settings"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    tables: List[TableSpec] = Field(
        default_factory=list, description="Tables reconciled by `tableprep sync`"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="TABLEPREP_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "TableprepConfig":
        """Load configuration from a YAML file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}

            data = cls._expand_env_vars(data)

            return cls(**data)
        except FileNotFoundError:
            raise ConfigurationError(f"Configuration file not found: {path}")
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}")
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

    @classmethod
    def from_env(cls) -> "TableprepConfig":
        """Load configuration from TABLEPREP_* environment variables."""
        try:
            return cls()
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

    def get_table(self, name: str) -> TableSpec:
        """Get a declared table by name."""
        for table in self.tables:
            if table.name == name:
                return table
        raise ConfigurationError(f"Table '{name}' is not declared in configuration")

    def to_yaml(self, path: Union[str, Path]) -> None:
        """Save configuration to a YAML file."""
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                self.model_dump(mode="json", by_alias=True, exclude_none=True),
                f,
                default_flow_style=False,
                indent=2,
                sort_keys=False,
            )


def configure_logging(config: LoggingConfig, debug: bool = False) -> None:
    """Install root log handlers described by ``config``."""
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if debug else config.level)

    formatter = logging.Formatter(config.format)

    for handler in list(root.handlers):
        root.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if config.file:
        file_handler = logging.handlers.RotatingFileHandler(
            config.file,
            maxBytes=config.max_size,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
