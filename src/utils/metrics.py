"""
OpenTelemetry metrics configuration for the Odds Relay.

This module provides centralized metrics collection using OpenTelemetry with an
OTLP exporter. Includes counter and histogram definitions for tracking relay
calls, fetch failures and the normalization pipeline.
"""

import logging
import os
import time
from collections.abc import Generator
from contextlib import contextmanager
from typing import Optional

from opentelemetry import metrics
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.sdk.metrics import Counter, Histogram, MeterProvider
from opentelemetry.sdk.metrics.export import (
    AggregationTemporality,
    PeriodicExportingMetricReader,
)
from opentelemetry.sdk.resources import Resource

logger = logging.getLogger(__name__)


class OddsRelayMetrics:
    """
    Centralized metrics collection for the Odds Relay using OpenTelemetry.

    Metrics are always collected; they are exported only when
    OTEL_EXPORTER_OTLP_ENDPOINT is configured.
    """

    def __init__(
        self, service_name: str = "odds-relay", service_version: str = "1.0.0"
    ):
        """
        Initialize OpenTelemetry metrics with OTLP exporter configuration.

        Args:
            service_name: Name of the service for metric identification
            service_version: Version of the service
        """
        self.service_name = service_name
        self.service_version = service_version

        resource = Resource.create(
            {
                "service.name": service_name,
                "service.version": service_version,
                "service.instance.id": os.getenv("HOSTNAME", "local"),
                "deployment.environment": os.getenv("DEPLOYMENT_ENV", "production"),
                "cloud.provider": "aws",
                "cloud.platform": "aws_lambda",
            }
        )

        metric_readers = []
        otlp_endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")

        if otlp_endpoint:
            try:
                otlp_exporter = OTLPMetricExporter(
                    endpoint=otlp_endpoint,
                    headers=self._parse_otlp_headers(),
                    timeout=30,
                    preferred_temporality={
                        Counter: AggregationTemporality.DELTA,
                        Histogram: AggregationTemporality.DELTA,
                    },
                )

                metric_reader = PeriodicExportingMetricReader(
                    exporter=otlp_exporter,
                    export_interval_millis=int(
                        os.getenv("OTEL_METRIC_EXPORT_INTERVAL", "5000")
                    ),
                    export_timeout_millis=int(
                        os.getenv("OTEL_METRIC_EXPORT_TIMEOUT", "30000")
                    ),
                )
                metric_readers.append(metric_reader)

                logger.info(
                    "OpenTelemetry metrics configured",
                    extra={"endpoint": otlp_endpoint},
                )
            except Exception as e:
                logger.warning(
                    f"Failed to configure OTLP metrics exporter: {e}",
                    extra={"error": str(e), "endpoint": otlp_endpoint},
                    exc_info=True,
                )
        else:
            logger.debug(
                "OTEL_EXPORTER_OTLP_ENDPOINT not configured. Metrics will be collected but not exported."
            )

        self.meter_provider = MeterProvider(
            resource=resource, metric_readers=metric_readers
        )
        metrics.set_meter_provider(self.meter_provider)

        self.metric_readers = metric_readers
        self.meter = metrics.get_meter(service_name, service_version)

        self._init_counters()
        self._init_histograms()

    def _parse_otlp_headers(self) -> dict[str, str]:
        """
        Parse OTLP headers from environment variable.

        Returns:
            Dictionary of headers for OTLP exporter
        """
        headers_str = os.getenv("OTEL_EXPORTER_OTLP_HEADERS", "")
        headers = {}

        if headers_str:
            for header in headers_str.split(","):
                if "=" in header:
                    key, value = header.strip().split("=", 1)
                    headers[key] = value

        return headers

    def _init_counters(self) -> None:
        """Initialize counter metrics for tracking events."""
        self.relay_requests_counter = self.meter.create_counter(
            name="relay_requests_total",
            description="Total number of requests made to the fetch relay",
            unit="1",
        )

        self.relay_failures_counter = self.meter.create_counter(
            name="relay_failures_total",
            description="Total number of relay fetches degraded to an empty payload",
            unit="1",
        )

        self.matches_normalized_counter = self.meter.create_counter(
            name="matches_normalized_total",
            description="Total number of unique matches produced by normalization",
            unit="1",
        )

        self.duplicate_matches_counter = self.meter.create_counter(
            name="duplicate_matches_total",
            description="Total number of duplicate matches dropped",
            unit="1",
        )

        self.matches_skipped_counter = self.meter.create_counter(
            name="matches_skipped_total",
            description="Total number of malformed matches skipped by stage",
            unit="1",
        )

    def _init_histograms(self) -> None:
        """Initialize histogram metrics for tracking distributions."""
        self.relay_request_duration_histogram = self.meter.create_histogram(
            name="relay_request_duration_seconds",
            description="Distribution of relay response times",
            unit="s",
        )

        self.pipeline_duration_histogram = self.meter.create_histogram(
            name="pipeline_duration_seconds",
            description="Distribution of full pipeline execution times",
            unit="s",
        )

    def record_relay_request(
        self,
        status_code: int,
        duration_seconds: float,
        labels: Optional[dict[str, str]] = None,
    ) -> None:
        """
        Record a relay call with timing and status information.

        Args:
            status_code: HTTP response status code, 0 for network errors
            duration_seconds: Request duration in seconds
            labels: Additional labels for the metric
        """
        attributes = dict(labels or {})
        attributes.update(
            {
                "service": self.service_name,
                "status_code": str(status_code),
                "status_class": f"{status_code // 100}xx",
            }
        )

        self.relay_requests_counter.add(1, attributes)
        self.relay_request_duration_histogram.record(duration_seconds, attributes)

    def record_relay_failure(
        self, error_type: str, labels: Optional[dict[str, str]] = None
    ) -> None:
        """
        Record a fetch that degraded to an empty payload.

        Args:
            error_type: Name of the error class
            labels: Additional labels for the metric
        """
        attributes = dict(labels or {})
        attributes.update({"service": self.service_name, "error_type": error_type})
        self.relay_failures_counter.add(1, attributes)

    def record_normalization(
        self,
        unique_matches: int,
        duplicates_dropped: int,
        labels: Optional[dict[str, str]] = None,
    ) -> None:
        """
        Record the outcome of one normalization pass.

        Args:
            unique_matches: Matches kept
            duplicates_dropped: Matches discarded as duplicates
            labels: Additional labels for the metric
        """
        attributes = dict(labels or {})
        attributes.update({"service": self.service_name})
        self.matches_normalized_counter.add(unique_matches, attributes)
        self.duplicate_matches_counter.add(duplicates_dropped, attributes)

    def record_skipped_matches(
        self, count: int, stage: str, labels: Optional[dict[str, str]] = None
    ) -> None:
        """
        Record matches skipped because they could not be decoded or projected.

        Args:
            count: Number of matches skipped
            stage: Pipeline stage that skipped them
            labels: Additional labels for the metric
        """
        if count <= 0:
            return
        attributes = dict(labels or {})
        attributes.update({"service": self.service_name, "stage": stage})
        self.matches_skipped_counter.add(count, attributes)

    @contextmanager
    def time_operation(
        self, operation_name: str, labels: Optional[dict[str, str]] = None
    ) -> Generator[None, None, None]:
        """
        Context manager to time an operation and record the duration.

        Args:
            operation_name: Name of the operation being timed
            labels: Additional labels for the metric

        Yields:
            None
        """
        start_time = time.time()
        try:
            yield
        finally:
            duration = time.time() - start_time
            attributes = dict(labels or {})
            attributes.update(
                {"service": self.service_name, "operation": operation_name}
            )
            self.pipeline_duration_histogram.record(duration, attributes)

    def shutdown(self, timeout_seconds: int = 30) -> bool:
        """
        Shutdown metrics collection and force flush all pending metrics.

        Args:
            timeout_seconds: Maximum time to wait for export completion

        Returns:
            True if shutdown succeeded, False otherwise
        """
        try:
            logger.info("Shutting down metrics provider and flushing pending metrics")

            for reader in self.metric_readers:
                reader.force_flush(timeout_millis=timeout_seconds * 1000)

            self.meter_provider.shutdown()
            return True

        except Exception as e:
            logger.error(f"Error during metrics shutdown: {e}", exc_info=True)
            return False


# Global metrics instance
relay_metrics = OddsRelayMetrics()


def get_metrics() -> OddsRelayMetrics:
    """
    Get the global metrics instance.

    Returns:
        Configured OddsRelayMetrics instance
    """
    return relay_metrics
