"""Unit tests for the fetch relay client."""

import json
from unittest.mock import patch

import httpx
import pytest

from src.api.relay_client import (
    FetchResult,
    ParseError,
    RelayClient,
    ShapeError,
    UpstreamFetchError,
    build_relay_url,
    clean_payload_text,
    extract_payload,
    fetch_raw,
)

API_BASE = "https://odds.example.com/api/odds?lid="
RELAY_URL = "https://relay.example.com/exec?url="


class TestBuildRelayUrl:
    """Test cases for relay URL construction."""

    def test_encodes_cache_busted_target(self):
        """Test that the target is cache-busted then percent-encoded."""
        with patch("src.odds.format_helpers.time") as mock_time:
            mock_time.time.return_value = 1700000000.5

            url = build_relay_url(API_BASE, RELAY_URL, 3)

        assert url == (
            "https://relay.example.com/exec?url="
            "https%3A%2F%2Fodds.example.com%2Fapi%2Fodds%3Flid%3D3%26_%3D1700000000500"
        )

    def test_uri_component_safe_characters_are_kept(self):
        """Test that characters encodeURIComponent leaves alone are not escaped."""
        url = build_relay_url("https://x.example.com/a(b)!*'~?q=", RELAY_URL, 1)
        assert "a(b)!*'~" in url


class TestExtractPayload:
    """Test cases for payload extraction."""

    def test_single_quotes_are_repaired(self):
        """Test the single-quote dialect is parsed."""
        payload = extract_payload("[1,2,3,[[['L1','League'],[]]]]")
        assert payload == [[["L1", "League"], []]]

    def test_clean_payload_text(self):
        assert clean_payload_text("{'a': 'b'}") == '{"a": "b"}'

    def test_invalid_json_raises_parse_error(self):
        with pytest.raises(ParseError):
            extract_payload("<html>not json</html>")

    @pytest.mark.parametrize("body", ["{'a': 1}", "[1,2,3]", "[]", "'text'", "42"])
    def test_wrong_shape_raises_shape_error(self, body):
        with pytest.raises(ShapeError):
            extract_payload(body)

    def test_non_list_at_index_three_raises_shape_error(self):
        with pytest.raises(ShapeError):
            extract_payload("[0,0,0,{'not': 'a list'}]")

    def test_apostrophe_in_value_breaks_parsing(self):
        """Test the known fragility of the textual repair."""
        with pytest.raises(ParseError):
            extract_payload("[0,0,0,[[['L1','Queen's Cup'],[]]]]")

    @pytest.mark.parametrize(
        "body",
        [
            "[1,2,3,[[['L','N'],[NaN]]]]",
            "[1,2,3,[[['L','N'],[Infinity]]]]",
            "[1,2,3,[[['L','N'],[-Infinity]]]]",
        ],
    )
    def test_non_finite_constants_raise_parse_error(self, body):
        """Test that NaN and Infinity are rejected like any invalid JSON."""
        with pytest.raises(ParseError):
            extract_payload(body)


class TestRelayClientFetch:
    """Test cases for RelayClient.fetch."""

    @pytest.mark.asyncio
    async def test_success_returns_payload(self, relay_transport, make_relay_body, make_row):
        """Test a successful fetch through the relay."""
        entries = [[["L1", "League"], [make_row()]]]
        requests: list = []
        client = RelayClient(
            API_BASE,
            RELAY_URL,
            transport=relay_transport(make_relay_body(entries), requests=requests),
        )

        result = await client.fetch(league_id=7)

        assert isinstance(result, FetchResult)
        assert result.ok
        assert result.status_code == 200
        assert result.payload == entries
        assert len(requests) == 1
        assert requests[0].method == "GET"
        target = requests[0].url.params["url"]
        assert target.startswith(f"{API_BASE}7&_=")

    @pytest.mark.asyncio
    async def test_error_status_degrades_to_empty(self, relay_transport):
        """Test that a non-2xx status yields an empty payload and an error value."""
        client = RelayClient(
            API_BASE, RELAY_URL, transport=relay_transport("upstream down", status_code=502)
        )

        result = await client.fetch()

        assert result.payload == []
        assert not result.ok
        assert isinstance(result.error, UpstreamFetchError)
        assert result.error.status_code == 502
        assert result.error.response_text == "upstream down"

    @pytest.mark.asyncio
    async def test_invalid_json_degrades_to_empty(self, relay_transport):
        client = RelayClient(API_BASE, RELAY_URL, transport=relay_transport("oops"))

        result = await client.fetch()

        assert result.payload == []
        assert isinstance(result.error, ParseError)

    @pytest.mark.asyncio
    async def test_relay_error_object_degrades_to_empty(self, relay_transport):
        """Test the relay's own {error} response."""
        body = json.dumps({"error": "Exception: fetch failed"})
        client = RelayClient(API_BASE, RELAY_URL, transport=relay_transport(body))

        result = await client.fetch()

        assert result.payload == []
        assert isinstance(result.error, ShapeError)

    @pytest.mark.asyncio
    async def test_short_array_degrades_to_empty(self, relay_transport):
        client = RelayClient(API_BASE, RELAY_URL, transport=relay_transport("[1,2,3]"))

        result = await client.fetch()

        assert result.payload == []
        assert isinstance(result.error, ShapeError)

    @pytest.mark.asyncio
    async def test_network_error_degrades_to_empty(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = RelayClient(API_BASE, RELAY_URL, transport=httpx.MockTransport(handler))

        result = await client.fetch()

        assert result.payload == []
        assert isinstance(result.error, UpstreamFetchError)
        assert result.status_code is None

    @pytest.mark.asyncio
    async def test_timeout_degrades_to_empty(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        client = RelayClient(
            API_BASE, RELAY_URL, timeout=0.5, transport=httpx.MockTransport(handler)
        )

        result = await client.fetch()

        assert result.payload == []
        assert isinstance(result.error, UpstreamFetchError)
        assert "timed out after 0.5s" in str(result.error)

    @pytest.mark.asyncio
    async def test_follows_relay_redirect(self, make_relay_body):
        """Test that relay redirects are followed to the final body."""
        body = make_relay_body([])

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "relay.example.com":
                return httpx.Response(
                    302, headers={"Location": "https://content.example.com/final"}
                )
            return httpx.Response(200, text=body)

        client = RelayClient(API_BASE, RELAY_URL, transport=httpx.MockTransport(handler))

        result = await client.fetch()

        assert result.ok
        assert result.payload == []

    @pytest.mark.asyncio
    async def test_failure_is_recorded_in_metrics(self, relay_transport):
        client = RelayClient(
            API_BASE, RELAY_URL, transport=relay_transport("", status_code=500)
        )

        with patch("src.api.relay_client.metrics") as mock_metrics:
            await client.fetch()

        mock_metrics.record_relay_failure.assert_called_once_with("UpstreamFetchError")
        mock_metrics.record_relay_request.assert_called_once()


class TestFetchRaw:
    """Test cases for the fetch_raw convenience wrapper."""

    @pytest.mark.asyncio
    async def test_returns_payload(self, relay_transport, make_relay_body):
        entries = [[["L1", "League"], []]]
        payload = await fetch_raw(
            API_BASE, RELAY_URL, transport=relay_transport(make_relay_body(entries))
        )
        assert payload == entries

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body,status_code",
        [
            ("", 500),
            ("not json", 200),
            ("{'a': 1}", 200),
            ("[1,2,3]", 200),
            ("[1,2,3,[NaN]]", 200),
        ],
    )
    async def test_never_raises(self, relay_transport, body, status_code):
        payload = await fetch_raw(
            API_BASE, RELAY_URL, transport=relay_transport(body, status_code=status_code)
        )
        assert payload == []
