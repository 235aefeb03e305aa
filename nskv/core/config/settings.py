"""
Settings for the nskv keyspace layer.

Simple, reliable environment variable configuration for the store connection,
the key prefix and logging.
"""

import os
import tomllib
from pathlib import Path

from dotenv import load_dotenv

# Load .env file for local development - look in current working directory
load_dotenv(".env")

_FALSE_STRINGS = {"", "0", "false", "no", "off"}


def _get_version_from_pyproject() -> str:
    """
    Read version from pyproject.toml file.

    Returns:
        Version string from pyproject.toml, or fallback version
    """
    current_path = Path(__file__)
    for parent in [current_path.parent, *current_path.parents]:
        pyproject_path = parent / "pyproject.toml"
        if pyproject_path.exists():
            try:
                with open(pyproject_path, "rb") as f:
                    pyproject_data = tomllib.load(f)
                    version = pyproject_data.get("project", {}).get("version")
                    if version:
                        return version
            except (OSError, tomllib.TOMLDecodeError):
                continue

    return "0.1.0"


def _env_flag(value: str | None) -> bool:
    """Interpret REDIS_CLUSTER-style flags: any non-zero number or truthy word."""
    if value is None:
        return False
    value = value.strip().lower()
    try:
        return float(value) != 0
    except ValueError:
        return value not in _FALSE_STRINGS


class Settings:
    """Keyspace settings with environment-based configuration."""

    def __init__(self):
        # ================================================================
        # Version
        # ================================================================
        self.version: str = _get_version_from_pyproject()

        # ================================================================
        # Logging & Environment
        # ================================================================
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO")
        self.log_dir: str = os.getenv("LOG_DIR", "./logs")
        self.environment: str = os.getenv("ENVIRONMENT", "DEV")

        # ================================================================
        # Redis Configuration
        # ================================================================
        self.redis_connection: str | None = os.getenv("REDIS_CONNECTION") or None
        self.redis_cluster: bool = _env_flag(os.getenv("REDIS_CLUSTER"))
        self.redis_hprefix: str = os.getenv("REDIS_HPREFIX", "")
        self.redis_max_connections: int = int(os.getenv("REDIS_MAX_CONNECTIONS", "64"))

        self._validate_settings()

    def _validate_settings(self):
        """Validate settings values."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR"]
        if self.log_level.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        self.log_level = self.log_level.upper()

        valid_environments = ["DEV", "PROD"]
        if self.environment.upper() not in valid_environments:
            self.environment = "DEV"  # Default fallback
        self.environment = self.environment.upper()

        if self.redis_max_connections < 1:
            raise ValueError("REDIS_MAX_CONNECTIONS must be a positive integer")

    @property
    def has_redis(self) -> bool:
        """Check if a Redis connection string is configured."""
        return self.redis_connection is not None

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "DEV"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "PROD"


# Global settings instance
settings = Settings()
