"""Configuration module for the Odds Relay.

Handles environment variable parsing with defaults and validation.
"""

import os
from urllib.parse import urlparse

from pydantic import BaseModel, Field, ValidationError, field_validator

DEFAULT_LEAGUE_ID = 1
DEFAULT_REQUEST_TIMEOUT = 5.0


class ConfigurationError(ValueError):
    """Raised when required settings are missing or invalid."""


class OddsRelayConfig(BaseModel):
    """Configuration for a single relay invocation."""

    odds_parent_url: str = Field(..., description="Upstream odds API base URL")
    proxy_url: str = Field(..., description="Fetch relay base URL, ending in 'url='")
    league_id: int = Field(default=DEFAULT_LEAGUE_ID, ge=0, description="League selector")
    request_timeout: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT, gt=0, description="Relay timeout in seconds"
    )
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("odds_parent_url", "proxy_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate URL format."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("must be a valid HTTP/HTTPS URL")
        if not urlparse(v).netloc:
            raise ValueError("must have a valid domain")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_log_levels:
            raise ValueError(f"Invalid log_level: {v}. Must be one of {valid_log_levels}")
        return v.upper()

    class Config:
        """Pydantic configuration."""

        json_schema_extra = {
            "example": {
                "odds_parent_url": "https://odds.example.com/api/odds?lid=",
                "proxy_url": "https://script.google.com/macros/s/abc/exec?url=",
                "league_id": 1,
                "request_timeout": 5.0,
                "log_level": "INFO",
            }
        }


def load_config() -> OddsRelayConfig:
    """Load configuration from environment variables with defaults.

    Returns:
        OddsRelayConfig: Parsed and validated configuration object

    Raises:
        ConfigurationError: If required environment variables are missing or invalid
    """
    odds_parent_url = os.getenv("ODDS_PARENT_URL")
    proxy_url = os.getenv("PROXY_URL")

    missing = [
        name
        for name, value in (("ODDS_PARENT_URL", odds_parent_url), ("PROXY_URL", proxy_url))
        if not value
    ]
    if missing:
        raise ConfigurationError(
            f"Required API URLs are not configured: {', '.join(missing)} "
            "environment variable(s) must be set"
        )

    try:
        league_id = int(os.getenv("LEAGUE_ID", str(DEFAULT_LEAGUE_ID)))
    except ValueError as e:
        raise ConfigurationError("LEAGUE_ID must be a valid integer") from e

    try:
        request_timeout = float(
            os.getenv("REQUEST_TIMEOUT", str(DEFAULT_REQUEST_TIMEOUT))
        )
    except ValueError as e:
        raise ConfigurationError("REQUEST_TIMEOUT must be a number of seconds") from e

    try:
        return OddsRelayConfig(
            odds_parent_url=odds_parent_url,
            proxy_url=proxy_url,
            league_id=league_id,
            request_timeout=request_timeout,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {details}") from e
