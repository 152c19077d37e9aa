"""Shared fixtures for building upstream rows and relay bodies."""

import json
from typing import Any, Optional

import httpx
import pytest


def build_row(
    match_id: Any = 1001,
    start_time: Any = "2:00PM",
    home_team: Any = "Arsenal",
    away_team: Any = "Chelsea",
    highlight: Any = 1,
    odds_cents: Any = 50,
    goal_points_cents: Any = 25,
    odds_line: Any = 1,
    goal_points_line: Any = 2,
) -> list[Any]:
    """Build a positional upstream match row."""
    row: list[Any] = [None] * 60
    row[3] = match_id
    row[8] = start_time
    row[16] = home_team
    row[20] = away_team
    row[34] = highlight
    row[50] = odds_cents
    row[51] = goal_points_cents
    row[52] = odds_line
    row[55] = goal_points_line
    return row


def build_relay_body(league_entries: list[Any]) -> str:
    """Wrap league entries the way the upstream does, single quotes included."""
    return json.dumps(["meta", 0, {"x": 1}, league_entries]).replace('"', "'")


@pytest.fixture
def make_row():
    return build_row


@pytest.fixture
def make_relay_body():
    return build_relay_body


@pytest.fixture
def relay_transport():
    """Factory for an httpx.MockTransport answering every request with one response."""

    def factory(body: str = "", status_code: int = 200, requests: Optional[list] = None):
        def handler(request: httpx.Request) -> httpx.Response:
            if requests is not None:
                requests.append(request)
            return httpx.Response(status_code, text=body)

        return httpx.MockTransport(handler)

    return factory
