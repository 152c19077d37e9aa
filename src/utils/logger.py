"""
Structured Logger configuration for the Odds Relay.

This module provides a centralized logger configuration with structured JSON logging
and context propagation for the fetch, normalize and projection stages.

Environment-aware logging:
- In Kubernetes: Writes JSON logs to /var/log/odds-relay/app.log for Promtail collection
- Locally / in Lambda: Writes JSON logs to stdout
"""

import logging
import os
import sys
from typing import Any, Optional

from aws_lambda_powertools import Logger
from aws_lambda_powertools.logging import correlation_paths


class OddsRelayLogger:
    """
    Centralized logger for the Odds Relay with structured logging.

    Wraps the Powertools Logger so every module logs with the same service
    name and serializer.
    """

    LOG_FILE_PATH = "/var/log/odds-relay/app.log"

    def __init__(self, service_name: str = "odds-relay"):
        """
        Initialize the logger with service configuration.

        Args:
            service_name: Name of the service for log identification
        """
        self.service_name = service_name
        self.is_kubernetes = self._detect_kubernetes()

        self._logger = Logger(
            service=service_name,
            level=os.getenv("LOG_LEVEL", "INFO"),
            use_datetime_directive=True,
            json_default=self._custom_serializer,
        )

        self._configure_handler()

    @staticmethod
    def _detect_kubernetes() -> bool:
        """Detect if running in a Kubernetes pod."""
        return os.getenv("KUBERNETES_SERVICE_HOST") is not None

    def _configure_handler(self) -> None:
        """
        Configure the appropriate log handler based on environment.

        In Kubernetes: FileHandler to the app log plus warnings on stderr.
        Elsewhere: keep the default stdout handler.
        """
        if not self.is_kubernetes:
            return

        try:
            os.makedirs(os.path.dirname(self.LOG_FILE_PATH), exist_ok=True)

            underlying_logger = logging.getLogger(self._logger.name)
            underlying_logger.handlers.clear()

            file_handler = logging.FileHandler(self.LOG_FILE_PATH)
            file_handler.setFormatter(self._logger._get_log_formatter())
            underlying_logger.addHandler(file_handler)

            stderr_handler = logging.StreamHandler(sys.stderr)
            stderr_handler.setLevel(logging.WARNING)
            stderr_handler.setFormatter(
                logging.Formatter("%(levelname)s - %(message)s")
            )
            underlying_logger.addHandler(stderr_handler)

        except (PermissionError, OSError) as e:
            import warnings

            warnings.warn(
                f"Cannot write to {self.LOG_FILE_PATH}: {e}. Falling back to stdout.",
                stacklevel=2,
            )

    def get_logger(self) -> Logger:
        """
        Get the configured structured Logger instance.

        Returns:
            Configured Logger instance
        """
        return self._logger

    def inject_context(self, handler):
        """
        Decorator to inject Lambda context into logs.

        Args:
            handler: Function to decorate

        Returns:
            Decorated function with context injection
        """
        return self._logger.inject_lambda_context(
            correlation_id_path=correlation_paths.API_GATEWAY_REST, log_event=True
        )(handler)

    def log_fetch_start(self, league_id: int, relay_url: str) -> None:
        """
        Log the start of a relay fetch.

        Args:
            league_id: League selector sent upstream
            relay_url: Relay base URL
        """
        self._logger.info(
            "Starting odds fetch",
            extra={
                "operation": "fetch_start",
                "league_id": league_id,
                "relay_url": relay_url,
                "service": self.service_name,
            },
        )

    def log_pipeline_complete(self, summary: dict[str, Any]) -> None:
        """
        Log the completion of a pipeline run with its counters.

        Args:
            summary: Counters collected during the run
        """
        self._logger.info(
            "Odds pipeline completed",
            extra={
                "operation": "pipeline_complete",
                "summary": summary,
                "service": self.service_name,
            },
        )

    def log_api_call(
        self,
        endpoint: str,
        method: str,
        status_code: Optional[int] = None,
        duration_ms: Optional[float] = None,
        error: Optional[str] = None,
    ) -> None:
        """
        Log relay call details with timing and status information.

        Args:
            endpoint: URL called
            method: HTTP method used
            status_code: HTTP response status code
            duration_ms: Request duration in milliseconds
            error: Error message if call failed
        """
        log_data = {
            "operation": "api_call",
            "endpoint": endpoint,
            "method": method,
            "service": self.service_name,
        }

        if status_code is not None:
            log_data["status_code"] = status_code
        if duration_ms is not None:
            log_data["duration_ms"] = duration_ms
        if error is not None:
            log_data["error"] = error

        if error or (status_code and status_code >= 400):
            self._logger.error(f"API call failed: {method} {endpoint}", extra=log_data)
        else:
            self._logger.info(
                f"API call successful: {method} {endpoint}", extra=log_data
            )

    @staticmethod
    def _custom_serializer(obj: Any) -> Any:
        """
        Custom JSON serializer for complex objects including Pydantic models.

        Args:
            obj: Object to serialize

        Returns:
            Serializable representation of the object
        """
        if hasattr(obj, "isoformat"):
            return obj.isoformat()
        elif hasattr(obj, "model_dump"):
            return obj.model_dump()
        elif isinstance(obj, (set, frozenset)):
            return sorted(str(item) for item in obj)
        elif hasattr(obj, "__dict__"):
            return obj.__dict__
        else:
            return str(obj)


# Global logger instance
relay_logger = OddsRelayLogger()


def get_logger() -> Logger:
    """
    Get the global logger instance.

    Returns:
        Configured structured Logger
    """
    return relay_logger.get_logger()
