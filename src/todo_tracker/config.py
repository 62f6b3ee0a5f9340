"""Configuration management using pydantic-settings.

This module provides configuration loading with the following precedence:
1. CLI arguments (highest priority)
2. Environment variables (TODO_* prefix)
3. Global config file (~/.config/todo-tracker/config.toml)
4. Built-in defaults (lowest priority)
"""

import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_config_path() -> Path:
    """Get the global config file path (XDG compliant).

    Returns:
        Path to config file:
        - Linux/macOS: ~/.config/todo-tracker/config.toml
        - Windows: %APPDATA%/todo-tracker/config.toml
    """
    if os.name == "nt":  # Windows
        base = Path(os.environ.get("APPDATA", Path.home()))
    else:  # Linux/macOS
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return base / "todo-tracker" / "config.toml"


def default_data_path() -> str:
    """Backing file used when TODO_DATA_PATH is not set."""
    return str(Path.home() / ".todo-mcp-data.json")


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Environment variables use the TODO_ prefix:
    - TODO_DATA_PATH
    - TODO_WEB_PORT
    - TODO_CORS_ORIGIN
    etc.
    """

    model_config = SettingsConfigDict(
        env_prefix="TODO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage
    data_path: str = Field(default_factory=default_data_path, description="JSON backing file shared by all front-ends")

    # Web dashboard
    web_host: str = Field(default="127.0.0.1", description="HTTP server bind address")
    web_port: int = Field(default=3456, ge=1, le=65535, description="HTTP server port")
    cors_origin: str | None = Field(
        default=None,
        description="Comma separated list of allowed cross-origin callers (all when unset)",
    )

    # Logging Configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: Literal["json", "console"] = Field(
        default="json",
        description="Log output format",
    )
    log_file: str | None = Field(default=None, description="Log file path (optional)")

    @property
    def resolved_data_path(self) -> Path:
        """Backing file path with ~ expanded."""
        return Path(self.data_path).expanduser()

    @property
    def cors_origins(self) -> list[str]:
        """Allowed origins, or ["*"] when unrestricted."""
        if not self.cors_origin:
            return ["*"]
        return [origin.strip() for origin in self.cors_origin.split(",") if origin.strip()]


def load_toml_config(path: Path | None = None) -> dict[str, Any]:
    """Load configuration from TOML file.

    Args:
        path: Path to config file (uses default if None)

    Returns:
        Configuration dictionary (empty if file doesn't exist)
    """
    config_path = path or get_config_path()
    if config_path.exists():
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    return {}


def flatten_toml_config(toml_config: dict[str, Any]) -> dict[str, Any]:
    """Flatten nested TOML config to flat dictionary for Settings.

    Args:
        toml_config: Nested TOML configuration

    Returns:
        Flattened configuration dictionary
    """
    overrides: dict[str, Any] = {}

    if "storage" in toml_config and "data_path" in toml_config["storage"]:
        overrides["data_path"] = toml_config["storage"]["data_path"]

    if "web" in toml_config:
        for key in ["host", "port"]:
            if key in toml_config["web"]:
                overrides[f"web_{key}"] = toml_config["web"][key]
        if "cors_origin" in toml_config["web"]:
            overrides["cors_origin"] = toml_config["web"]["cors_origin"]

    if "server" in toml_config:
        for key in ["log_level", "log_format", "log_file"]:
            if key in toml_config["server"]:
                overrides[key] = toml_config["server"][key]

    return overrides


def get_default_config() -> dict[str, Any]:
    """Get default configuration for init-config."""
    return {
        "storage": {
            "data_path": default_data_path(),
        },
        "web": {
            "host": "127.0.0.1",
            "port": 3456,
        },
        "server": {
            "log_level": "INFO",
            "log_format": "json",
        },
    }


def load_settings_with_toml(config_path: Path | None = None, **cli_overrides: Any) -> Settings:
    """Load settings with TOML config as base, env vars as override.

    Environment variables beat the TOML file, and explicit CLI overrides
    (non-None keyword arguments) beat both.

    Args:
        config_path: Optional path to TOML config file
        **cli_overrides: Values passed on the command line

    Returns:
        Settings instance with merged configuration
    """
    toml_values = flatten_toml_config(load_toml_config(config_path))
    env_settings = Settings()
    # pydantic-settings gives init kwargs priority over env vars, so only
    # forward TOML values for fields the environment left at their default.
    explicit = env_settings.model_fields_set
    merged = {key: value for key, value in toml_values.items() if key not in explicit}
    merged.update({key: value for key, value in cli_overrides.items() if value is not None})
    return Settings(**merged)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings instance (cached)
    """
    return Settings()
