"""
Integration tests for the complete odds pipeline.

These tests run fetch, normalization and projection together over a mocked
relay transport, and drive the Lambda handler end to end.
"""

import json
import os
from unittest.mock import patch

import httpx
import pytest

from src.lambda_handler import lambda_handler
from src.odds.odds_service import OddsService

API_BASE = "https://odds.example.com/api/odds?lid="
RELAY_URL = "https://relay.example.com/exec?url="


class MockContext:
    function_name = "odds-relay-test"
    memory_limit_in_mb = 128
    invoked_function_arn = "arn:aws:lambda:us-east-1:123456789012:function:odds-relay-test"
    aws_request_id = "test-request-id"


@pytest.mark.integration
class TestOddsPipelineIntegration:
    """Integration tests for the fetch -> normalize -> project workflow."""

    @pytest.mark.asyncio
    async def test_single_match_end_to_end(self, relay_transport, make_relay_body, make_row):
        body = make_relay_body([[["L1", "Premier League"], [make_row()]]])
        service = OddsService(API_BASE, RELAY_URL, transport=relay_transport(body))

        matches = await service.get_formatted_matches()

        assert [m.to_json_dict() for m in matches] == [
            {
                "league": "Premier League",
                "time": "12:30PM",
                "homeTeam": "Arsenal",
                "awayTeam": "Chelsea",
                "isHomeTeamHighlighted": True,
                "isAwayTeamHighlighted": False,
                "odds": "1+0.5",
                "finalGoalPoints": "2+0.25",
            }
        ]

    @pytest.mark.asyncio
    async def test_mixed_payload(self, relay_transport, make_relay_body, make_row):
        """Test duplicates, malformed rows and odds edge cases together."""
        body = make_relay_body(
            [
                [
                    ["L1", "Serie A"],
                    [
                        make_row(match_id=1, start_time="1:00AM", highlight=0),
                        make_row(match_id=2, odds_line=0, odds_cents=-1),
                        ["too", "short"],
                    ],
                ],
                [["L2"], [make_row(match_id=3, odds_cents=-25, goal_points_cents=-50)]],
                [["L3", "Cup"], [make_row(match_id=1, home_team="Duplicate")]],
                [["L4", "Bad Times"], [make_row(match_id=4, start_time="noon")]],
            ]
        )
        service = OddsService(API_BASE, RELAY_URL, transport=relay_transport(body))

        matches = await service.get_formatted_matches()

        assert [m.home_team for m in matches] == ["Arsenal", "Arsenal", "Arsenal"]
        first, second, third = matches
        assert first.time == "11:30PM"
        assert first.is_home_team_highlighted is False
        assert first.is_away_team_highlighted is True
        assert second.odds == ""
        assert third.league == "Unknown League"
        assert third.odds == "1-0.25"
        assert third.final_goal_points == "2-0.5"

    @pytest.mark.asyncio
    async def test_runs_are_idempotent(self, relay_transport, make_relay_body, make_row):
        body = make_relay_body([[["L1", "League"], [make_row(match_id=n) for n in range(5)]]])
        service = OddsService(API_BASE, RELAY_URL, transport=relay_transport(body))

        first = await service.get_formatted_matches()
        second = await service.get_formatted_matches()

        assert first == second
        assert len(first) == 5

    @pytest.mark.asyncio
    async def test_relay_failure_yields_empty_list(self, relay_transport):
        service = OddsService(
            API_BASE, RELAY_URL, transport=relay_transport("Service Unavailable", 503)
        )

        assert await service.get_formatted_matches() == []


@pytest.mark.integration
class TestLambdaHandlerIntegration:
    """Drive the HTTP entry point over a mocked relay."""

    def _invoke(self, transport: httpx.MockTransport) -> dict:
        original = OddsService.from_config

        def from_config(config):
            return original(config, transport=transport)

        with (
            patch.dict(
                os.environ,
                {"ODDS_PARENT_URL": API_BASE, "PROXY_URL": RELAY_URL, "LEAGUE_ID": "1"},
            ),
            patch("src.lambda_handler.OddsService.from_config", side_effect=from_config),
        ):
            return lambda_handler({"httpMethod": "GET"}, MockContext())

    def test_handler_returns_formatted_matches(
        self, relay_transport, make_relay_body, make_row
    ):
        requests: list = []
        body = make_relay_body([[["L1", "Premier League"], [make_row()]]])

        response = self._invoke(relay_transport(body, requests=requests))

        assert response["statusCode"] == 200
        payload = json.loads(response["body"])
        assert payload[0]["time"] == "12:30PM"
        assert payload[0]["isHomeTeamHighlighted"] is True
        assert requests[0].url.params["url"].startswith(f"{API_BASE}1&_=")

    def test_handler_returns_empty_array_on_relay_failure(self, relay_transport):
        response = self._invoke(relay_transport("", status_code=500))

        assert response["statusCode"] == 200
        assert response["body"] == "[]"
