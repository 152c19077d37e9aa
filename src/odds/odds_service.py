"""
Odds pipeline orchestration.

This module provides the OddsService class that runs one stateless pass of
fetch, normalize and project, with logging and metrics around each stage.
"""

from typing import Optional

import httpx

from ..api.relay_client import RelayClient
from ..utils.logger import get_logger, relay_logger
from ..utils.metrics import get_metrics
from .config import DEFAULT_REQUEST_TIMEOUT, OddsRelayConfig
from .models import FormattedMatch, NormalizationResult
from .normalizer import normalize
from .projector import project

logger = get_logger()
metrics = get_metrics()


class OddsService:
    """
    Runs the fetch -> normalize -> project pipeline.

    Holds no state between calls; every call starts with an empty league
    registry and an empty set of seen match ids.
    """

    def __init__(
        self,
        api_base: str,
        relay_url: str,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the service.

        Args:
            api_base: Upstream odds API base URL
            relay_url: Relay base URL ending in ``url=``
            timeout: Relay timeout in seconds
            transport: Optional httpx transport, used by tests
        """
        self.client = RelayClient(
            api_base, relay_url, timeout=timeout, transport=transport
        )

    @classmethod
    def from_config(
        cls,
        config: OddsRelayConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "OddsService":
        """Create a service from a loaded configuration."""
        return cls(
            config.odds_parent_url,
            config.proxy_url,
            timeout=config.request_timeout,
            transport=transport,
        )

    async def fetch_normalized(self, league_id: int = 1) -> NormalizationResult:
        """
        Fetch and normalize one league's data.

        Args:
            league_id: League selector

        Returns:
            NormalizationResult for this call only
        """
        fetch_result = await self.client.fetch(league_id)
        result = normalize(fetch_result.payload)
        metrics.record_normalization(len(result.matches), result.duplicates_dropped)
        metrics.record_skipped_matches(result.rows_skipped, stage="normalize")
        return result

    async def get_formatted_matches(self, league_id: int = 1) -> list[FormattedMatch]:
        """
        Run the full pipeline.

        Upstream failures produce an empty list rather than an exception.

        Args:
            league_id: League selector

        Returns:
            Formatted matches in first-occurrence order
        """
        with metrics.time_operation("get_formatted_matches"):
            result = await self.fetch_normalized(league_id)
            formatted = project(result.matches)

        skipped_in_projection = len(result.matches) - len(formatted)
        metrics.record_skipped_matches(skipped_in_projection, stage="project")

        relay_logger.log_pipeline_complete(
            {
                "league_id": league_id,
                "leagues": len(result.leagues),
                "matches_returned": len(formatted),
                "duplicates_dropped": result.duplicates_dropped,
                "rows_skipped": result.rows_skipped + skipped_in_projection,
            }
        )
        return formatted

    async def get_leagues(self, league_id: int = 1) -> list[str]:
        """
        Return the distinct league names seen in one fetch, sorted.

        Args:
            league_id: League selector
        """
        result = await self.fetch_normalized(league_id)
        return sorted(result.leagues)


async def get_formatted_matches(
    api_base: str,
    relay_url: str,
    league_id: int = 1,
    timeout: float = DEFAULT_REQUEST_TIMEOUT,
) -> list[FormattedMatch]:
    """
    Convenience wrapper running the pipeline once.

    Args:
        api_base: Upstream odds API base URL
        relay_url: Relay base URL ending in ``url=``
        league_id: League selector
        timeout: Relay timeout in seconds

    Returns:
        Formatted matches, empty when the upstream is unavailable
    """
    service = OddsService(api_base, relay_url, timeout=timeout)
    return await service.get_formatted_matches(league_id)
