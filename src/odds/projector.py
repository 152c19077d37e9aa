"""
Response projection for the Odds Relay.

Maps normalized matches onto the public ``FormattedMatch`` shape.
"""

from typing import Any

from ..utils.logger import get_logger
from .format_helpers import format_goal_points, format_odds, format_text
from .models import UNKNOWN_LEAGUE, FormattedMatch, NormalizedMatch
from .time_helpers import InvalidTimeFormat, subtract_90_minutes

logger = get_logger()

HOME_HIGHLIGHT_VALUE = 1


def is_home_highlight(selector: Any) -> bool:
    """True only for a numeric selector exactly equal to 1 (not True, not "1")."""
    if isinstance(selector, bool) or not isinstance(selector, (int, float)):
        return False
    return selector == HOME_HIGHLIGHT_VALUE


def project_match(match: NormalizedMatch) -> FormattedMatch:
    """
    Build the output record for a single match.

    Raises:
        InvalidTimeFormat: If the match start time cannot be parsed
    """
    highlighted_team = (
        match.home_team if is_home_highlight(match.highlight_selector) else match.away_team
    )

    return FormattedMatch(
        league=match.league or UNKNOWN_LEAGUE,
        time=subtract_90_minutes(match.start_time),
        home_team=format_text(match.home_team),
        away_team=format_text(match.away_team),
        is_home_team_highlighted=highlighted_team == match.home_team,
        is_away_team_highlighted=highlighted_team == match.away_team,
        odds=format_odds(match.odds_line, match.odds_cents),
        final_goal_points=format_goal_points(
            match.goal_points_line, match.goal_points_cents
        ),
    )


def project(normalized: list[NormalizedMatch]) -> list[FormattedMatch]:
    """
    Project normalized matches into output records.

    Matches with an unparseable start time are skipped with a warning.

    Args:
        normalized: Deduplicated matches in output order

    Returns:
        Formatted matches in the same order
    """
    if not normalized:
        logger.info(
            "No match data available from source (after filtering/processing). "
            "Returning empty array."
        )
        return []

    formatted: list[FormattedMatch] = []
    for match in normalized:
        try:
            formatted.append(project_match(match))
        except InvalidTimeFormat as e:
            logger.warning(
                f"Skipping match with invalid start time: {e}",
                extra={"match_id": match.match_id, "league": match.league},
            )

    return formatted
