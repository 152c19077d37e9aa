"""
Fetch relay client for the upstream odds API.

The upstream odds API cannot be called directly, so every request goes through
a relay that takes the target URL in a single ``url`` query parameter and
returns the target's body verbatim. The upstream body is a JSON-like array
written with single quotes; this module repairs it, parses it and extracts the
league/match section.

Every failure degrades to an empty payload. Failures are still returned as
explicit error values on ``FetchResult`` so they show up in logs and metrics.
"""

import json
import time
from typing import Any, Optional
from urllib.parse import quote

import httpx
from pydantic import BaseModel, Field

from ..odds.config import DEFAULT_REQUEST_TIMEOUT
from ..odds.format_helpers import add_cache_busting
from ..utils.logger import get_logger, relay_logger
from ..utils.metrics import get_metrics

logger = get_logger()
metrics = get_metrics()

# Position of the league/match section in the upstream top-level array
PAYLOAD_INDEX = 3
LOG_SNIPPET_LENGTH = 500

# Characters encodeURIComponent leaves unescaped besides alphanumerics and "-_.~"
_URI_COMPONENT_SAFE = "!*'()"


class RelayError(Exception):
    """Base exception for relay fetch failures."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_text: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_text = response_text


class UpstreamFetchError(RelayError):
    """Network failure, timeout or non-success HTTP status from the relay."""


class ParseError(RelayError):
    """Relay body could not be parsed after quote repair."""


class ShapeError(RelayError):
    """Parsed body does not carry a list at the expected position."""


class FetchResult(BaseModel):
    """Outcome of a relay fetch. ``payload`` is always a list."""

    payload: list[Any] = Field(default_factory=list)
    error: Optional[RelayError] = None
    status_code: Optional[int] = None

    class Config:
        """Pydantic configuration."""

        arbitrary_types_allowed = True

    @property
    def ok(self) -> bool:
        """True when the fetch produced a payload without error."""
        return self.error is None


def build_relay_url(api_base: str, relay_url: str, league_id: int = 1) -> str:
    """
    Build the relay URL for a league.

    Args:
        api_base: Upstream base URL, the league id is appended verbatim
        relay_url: Relay base URL ending in its ``url=`` parameter
        league_id: League selector

    Returns:
        Relay URL with the cache-busted, percent-encoded target appended
    """
    target = add_cache_busting(f"{api_base}{league_id}")
    return relay_url + quote(target, safe=_URI_COMPONENT_SAFE)


def _reject_constant(name: str) -> Any:
    # NaN/Infinity are not JSON
    raise ValueError(f"Invalid JSON constant: {name}")


def clean_payload_text(raw_text: str) -> str:
    """
    Turn the single-quoted upstream dialect into JSON.

    This is a textual replacement: a value containing an apostrophe is
    corrupted by it.
    """
    return raw_text.replace("'", '"')


def extract_payload(raw_text: str) -> list[Any]:
    """
    Parse a relay body and return the league/match section.

    Args:
        raw_text: Body returned by the relay

    Returns:
        The list found at index 3 of the top-level array

    Raises:
        ParseError: If the repaired text is not valid JSON
        ShapeError: If the parsed value is not a list of more than three
            elements or its element at index 3 is not a list
    """
    logger.debug(
        "Raw relay response",
        extra={"snippet": raw_text[:LOG_SNIPPET_LENGTH], "length": len(raw_text)},
    )

    # Upstream uses single quotes; repair them before parsing
    cleaned = clean_payload_text(raw_text)
    logger.debug("Cleaned relay response", extra={"snippet": cleaned[:LOG_SNIPPET_LENGTH]})

    try:
        parsed = json.loads(cleaned, parse_constant=_reject_constant)
    except ValueError as e:
        raise ParseError(
            f"JSON parsing failed: {e}", response_text=raw_text[:LOG_SNIPPET_LENGTH]
        ) from e

    if not isinstance(parsed, list) or len(parsed) <= PAYLOAD_INDEX:
        raise ShapeError(
            "Parsed data is not an array or does not have enough elements at index 3 "
            f"(type={type(parsed).__name__}, "
            f"length={len(parsed) if isinstance(parsed, list) else 'not array'})"
        )

    # Leagues and matches live at index 3
    payload = parsed[PAYLOAD_INDEX]
    if not isinstance(payload, list):
        raise ShapeError(
            f"Element at index 3 is {type(payload).__name__}, expected an array"
        )

    logger.debug(
        "Payload found at index 3", extra={"league_entries": len(payload)}
    )
    return payload


class RelayClient:
    """
    Client for fetching upstream odds through the fetch relay.

    No retries are attempted; one bounded request is made per fetch.
    """

    def __init__(
        self,
        api_base: str,
        relay_url: str,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the relay client.

        Args:
            api_base: Upstream odds API base URL
            relay_url: Relay base URL ending in ``url=``
            timeout: Request timeout in seconds
            transport: Optional httpx transport, used by tests
        """
        self.api_base = api_base
        self.relay_url = relay_url
        self.timeout = timeout
        self.transport = transport

    @property
    def headers(self) -> dict[str, str]:
        """Request headers sent to the relay."""
        return {"User-Agent": "odds-relay/1.0", "Accept": "*/*"}

    async def fetch(self, league_id: int = 1) -> FetchResult:
        """
        Fetch the league/match section for a league.

        Never raises for upstream problems; inspect ``FetchResult.error``.

        Args:
            league_id: League selector appended to the upstream base URL

        Returns:
            FetchResult with the payload or the error that emptied it
        """
        relay_logger.log_fetch_start(league_id, self.relay_url)

        # Request through the relay, then pull the league/match section
        try:
            text, status_code = await self._get_text(
                build_relay_url(self.api_base, self.relay_url, league_id)
            )
            payload = extract_payload(text)
        except RelayError as e:
            logger.error(
                f"Relay fetch degraded to empty payload: {e}",
                extra={
                    "error_type": type(e).__name__,
                    "status_code": e.status_code,
                    "response_text": e.response_text,
                    "league_id": league_id,
                },
            )
            # Degrade to an empty payload, keeping the error on the result
            metrics.record_relay_failure(type(e).__name__)
            return FetchResult(error=e, status_code=e.status_code)

        return FetchResult(payload=payload, status_code=status_code)

    async def _get_text(self, url: str) -> tuple[str, int]:
        """
        Issue the GET request and return the body text and status.

        Raises:
            UpstreamFetchError: On network errors, timeouts or non-2xx status
        """
        logger.debug("Fetching from relay", extra={"url": url})
        start_time = time.time()

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, follow_redirects=True, transport=self.transport
            ) as client:
                response = await client.get(url, headers=self.headers)
        except httpx.TimeoutException as e:
            # No status code on network errors, recorded as 0
            metrics.record_relay_request(0, time.time() - start_time)
            raise UpstreamFetchError(
                f"Relay request timed out after {self.timeout}s"
            ) from e
        except httpx.RequestError as e:
            metrics.record_relay_request(0, time.time() - start_time)
            raise UpstreamFetchError(f"Relay request failed: {e}") from e

        # Record API call metrics
        duration = time.time() - start_time
        metrics.record_relay_request(response.status_code, duration)
        relay_logger.log_api_call(
            endpoint=self.relay_url,
            method="GET",
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 2),
        )

        # No retries: any non-2xx status empties the payload
        if not response.is_success:
            raise UpstreamFetchError(
                f"Failed to fetch from relay. Status: {response.status_code}",
                status_code=response.status_code,
                response_text=response.text[:LOG_SNIPPET_LENGTH],
            )

        return response.text, response.status_code


async def fetch_raw(
    api_base: str,
    relay_url: str,
    league_id: int = 1,
    timeout: float = DEFAULT_REQUEST_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> list[Any]:
    """
    Fetch the league/match section, returning an empty list on any failure.

    Args:
        api_base: Upstream odds API base URL
        relay_url: Relay base URL ending in ``url=``
        league_id: League selector
        timeout: Request timeout in seconds
        transport: Optional httpx transport

    Returns:
        List of ``[league_meta, matches]`` entries, possibly empty
    """
    client = RelayClient(api_base, relay_url, timeout=timeout, transport=transport)
    result = await client.fetch(league_id)
    return result.payload
