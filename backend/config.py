"""Configuration module for the backend.

Loads and validates environment variables used by the application.
"""

import os
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


class ConfigError(Exception):
    """Raised when a configuration value is malformed."""
    pass


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self) -> None:
        # Application settings
        self.environment = os.getenv("ENVIRONMENT", "development")
        self.debug = self._get_bool("DEBUG", False)
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        self.json_logs = self._get_bool("LOG_JSON", self.environment == "production")

        # Error logging
        self.log_call_stack_directly = self._get_bool("LOG_CALL_STACK_DIRECTLY", False)
        self.error_chain_max_depth = self._get_int("ERROR_CHAIN_MAX_DEPTH", 100)

        # CORS extra origins (comma-separated)
        self.cors_allowed_origins = os.getenv("CORS_ALLOWED_ORIGINS", "")

    def _get_bool(self, key: str, default: bool) -> bool:
        """Get a boolean environment variable.

        Args:
            key: The environment variable name.
            default: The value used when the variable is not set.

        Returns:
            The parsed value or default.

        Raises:
            ConfigError: If the value isn't a recognised boolean.
        """
        value = self._get_optional(key)
        if value is None:
            return default
        value = value.strip().lower()
        if value in _TRUE_VALUES:
            return True
        if value in _FALSE_VALUES:
            return False
        raise ConfigError(f"Environment variable '{key}' must be a boolean, got '{value}'.")

    def _get_int(self, key: str, default: int) -> int:
        """Get a positive integer environment variable.

        Raises:
            ConfigError: If the value isn't a positive integer.
        """
        value = self._get_optional(key)
        if value is None or not value.strip():
            return default
        try:
            parsed = int(value)
        except ValueError as e:
            raise ConfigError(f"Environment variable '{key}' must be an integer, got '{value}'.") from e
        if parsed <= 0:
            raise ConfigError(f"Environment variable '{key}' must be positive, got {parsed}.")
        return parsed

    def _get_optional(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get an optional environment variable.

        Args:
            key: The environment variable name.
            default: The default value if not set.

        Returns:
            The environment variable value or default.
        """
        return os.getenv(key, default)


# Global config instance
config = Config()
