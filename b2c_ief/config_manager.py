"""
Configuration Management for the B2C IEF reconcilers

This module provides centralized configuration management with validation and
environment variable handling. Credentials are read from the same variables the
Azure SDK uses (AZURE_TENANT_ID, AZURE_CLIENT_ID, AZURE_CLIENT_SECRET) and can
be supplied through a .env file.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError, MissingConfigurationError
from .logging_config import configure_logging

logger = logging.getLogger(__name__)

DEFAULT_GRAPH_BASE_URL = "https://graph.microsoft.com/beta"
GRAPH_SCOPE = "https://graph.microsoft.com/.default"


@dataclass
class GraphConfig:
    """Service principal and endpoint used to reach the trustFramework API."""

    tenant_id: str = field(default_factory=lambda: os.getenv("AZURE_TENANT_ID", ""))
    client_id: str = field(default_factory=lambda: os.getenv("AZURE_CLIENT_ID", ""))
    client_secret: str = field(
        default_factory=lambda: os.getenv("AZURE_CLIENT_SECRET", ""), repr=False
    )
    base_url: str = field(
        default_factory=lambda: os.getenv(
            "B2C_IEF_GRAPH_BASE_URL", DEFAULT_GRAPH_BASE_URL
        )
    )

    def is_configured(self) -> bool:
        """Check if all service principal credentials are present."""
        return bool(self.tenant_id and self.client_id and self.client_secret)

    def validate(self) -> None:
        """Validate Graph configuration."""
        missing = [
            name
            for name, value in (
                ("AZURE_TENANT_ID", self.tenant_id),
                ("AZURE_CLIENT_ID", self.client_id),
                ("AZURE_CLIENT_SECRET", self.client_secret),
            )
            if not value
        ]
        if missing:
            raise MissingConfigurationError(
                "Missing one or more required Azure AD B2C credentials",
                missing_keys=missing,
            )
        if not self.base_url.startswith("https://"):
            raise ConfigurationError("Graph base URL must use HTTPS")
        self.base_url = self.base_url.rstrip("/")

    def get_safe_client_id(self) -> str:
        """Get client ID for logging (masked)."""
        if len(self.client_id) > 8:
            return self.client_id[:8] + "..."
        return self.client_id or "Not configured"


@dataclass
class LoggingConfig:
    """Configuration for logging behavior."""

    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    format: str = field(default_factory=lambda: os.getenv("LOG_FORMAT", "json"))
    file_output: Optional[str] = field(default_factory=lambda: os.getenv("LOG_FILE"))

    def __post_init__(self) -> None:
        """Validate logging configuration."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.level.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        self.level = self.level.upper()
        if self.format not in ("json", "console"):
            raise ValueError("Log format must be one of: ['json', 'console']")

    def get_log_level(self) -> int:
        """Convert string log level to logging constant."""
        return int(getattr(logging, self.level))


@dataclass
class B2CIEFConfig:
    """Main configuration class that aggregates all configuration sections."""

    graph: GraphConfig = field(default_factory=GraphConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_environment(cls, env_file: Optional[str] = None) -> "B2CIEFConfig":
        """
        Create configuration from environment variables.

        Args:
            env_file: Optional .env file to load before reading the environment.
                When omitted, a .env in the working directory is used if present.

        Returns:
            B2CIEFConfig: Configured instance
        """
        load_dotenv(env_file, override=False)
        return cls()

    def validate_all(self) -> None:
        """Validate all configuration sections."""
        try:
            self.graph.validate()
            self.logging.__post_init__()
            logger.info("Configuration validation successful")
        except Exception as e:
            logger.error(f"Configuration validation failed: {e}")
            raise

    def log_configuration_summary(self) -> None:
        """Log a summary of the current configuration (without sensitive data)."""
        logger.info(f"Tenant: {self.graph.tenant_id or 'Not configured'}")
        logger.info(f"Client ID: {self.graph.get_safe_client_id()}")
        logger.info(f"Graph endpoint: {self.graph.base_url}")
        logger.info(f"Logging: level={self.logging.level} format={self.logging.format}")
        if self.logging.file_output:
            logger.info(f"Log File: {self.logging.file_output}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary for serialization."""
        return {
            "graph": {
                "tenant_id": self.graph.tenant_id,
                "client_id": self.graph.get_safe_client_id(),
                "base_url": self.graph.base_url,
                "configured": self.graph.is_configured(),
                # Don't include client secret in serialization
            },
            "logging": {
                "level": self.logging.level,
                "format": self.logging.format,
                "file_output": self.logging.file_output,
            },
        }


def setup_logging(config: LoggingConfig) -> None:
    """
    Setup logging configuration based on config.
    """
    configure_logging(
        level=config.get_log_level(),
        renderer=config.format,
        file_output=config.file_output,
    )
    logger.info(
        f"Logging configured: level={config.level}, file={config.file_output or 'console'}"
    )


def create_config_from_env(env_file: Optional[str] = None) -> B2CIEFConfig:
    """
    Factory function to create and validate configuration from environment.

    Raises:
        MissingConfigurationError: If credentials are missing
        ValueError: If logging configuration is invalid
    """
    config = B2CIEFConfig.from_environment(env_file)
    config.validate_all()
    return config
