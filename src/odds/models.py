"""Data models for the Odds Relay.

Contains the Pydantic models for decoded upstream rows, normalized matches and
the public output record, plus the single decoding function for the upstream
positional row layout.
"""

from typing import Any, Optional, Union

from pydantic import BaseModel, Field, ValidationError

MatchId = Union[int, float, str]

# Upstream row layout. The provider may change it without notice; this table is
# the only place the positional indices are allowed to appear.
RAW_MATCH_FIELD_INDEX: dict[str, int] = {
    "match_id": 3,
    "start_time": 8,
    "home_team": 16,
    "away_team": 20,
    "highlight_selector": 34,
    "odds_cents": 50,
    "goal_points_cents": 51,
    "odds_line": 52,
    "goal_points_line": 55,
}

MIN_ROW_LENGTH = max(RAW_MATCH_FIELD_INDEX.values()) + 1

LEAGUE_NAME_INDEX = 1
UNKNOWN_LEAGUE = "Unknown League"


class RawMatchDecodeError(ValueError):
    """Raised when an upstream row cannot be decoded into a RawMatch."""


class RawMatch(BaseModel):
    """A single upstream match row decoded into named fields.

    Only the identifier and the kick-off time are validated. Display cells keep
    the upstream value untouched (null and "" included) so they render exactly
    as received.

    Attributes:
        match_id: Unique identifier used for deduplication
        start_time: 12-hour kick-off time string
        home_team: Home team name
        away_team: Away team name
        highlight_selector: 1 highlights the home team, anything else the away team
        odds_cents: Odds adjustment in hundredths
        goal_points_cents: Goal-points adjustment in hundredths
        odds_line: Whole part of the odds line
        goal_points_line: Whole part of the goal-points line
    """

    match_id: MatchId = Field(..., description="Unique match identifier")
    start_time: str = Field(..., description="Kick-off time, e.g. '2:00PM'")
    home_team: Any = Field(None, description="Home team name")
    away_team: Any = Field(None, description="Away team name")
    highlight_selector: Any = Field(None, description="Highlight flag (1 = home)")
    odds_cents: Any = Field(None, description="Odds adjustment in hundredths")
    goal_points_cents: Any = Field(
        None, description="Goal-points adjustment in hundredths"
    )
    odds_line: Any = Field(None, description="Whole part of the odds line")
    goal_points_line: Any = Field(None, description="Whole part of the goal line")

    class Config:
        """Pydantic configuration."""

        frozen = True

    @staticmethod
    def identity_of(row: Any) -> MatchId:
        """Read the match identifier from a positional row.

        Raises:
            RawMatchDecodeError: If the row is not a list or has no usable
                identifier
        """
        if not isinstance(row, list):
            raise RawMatchDecodeError(
                f"Match row must be a list, got {type(row).__name__}"
            )

        index = RAW_MATCH_FIELD_INDEX["match_id"]
        match_id = row[index] if len(row) > index else None
        if isinstance(match_id, bool) or not isinstance(match_id, (int, float, str)):
            raise RawMatchDecodeError(
                f"Match row has invalid fields: match_id ({type(match_id).__name__})"
            )
        return match_id

    @classmethod
    def from_row(cls, row: Any) -> "RawMatch":
        """Decode a positional upstream row.

        Args:
            row: The raw array for one match

        Returns:
            RawMatch with named fields

        Raises:
            RawMatchDecodeError: If the row is not a list, is too short, or
                its identifier or start time are of the wrong type
        """
        cls.identity_of(row)
        if len(row) < MIN_ROW_LENGTH:
            raise RawMatchDecodeError(
                f"Match row has {len(row)} elements, expected at least {MIN_ROW_LENGTH}"
            )

        try:
            return cls(
                **{field: row[index] for field, index in RAW_MATCH_FIELD_INDEX.items()}
            )
        except ValidationError as e:
            invalid = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            raise RawMatchDecodeError(
                f"Match row has invalid fields: {', '.join(invalid)}"
            ) from e


class NormalizedMatch(RawMatch):
    """A decoded match tagged with the name of the league it was listed under."""

    league: Optional[str] = Field(None, description="League name from the league meta")

    @classmethod
    def from_raw(cls, raw: RawMatch, league: Optional[str]) -> "NormalizedMatch":
        """Attach league context to a decoded match."""
        return cls(**raw.model_dump(), league=league)


class FormattedMatch(BaseModel):
    """Public output record, serialized with camelCase keys."""

    league: str = Field(..., description="League name or 'Unknown League'")
    time: str = Field(..., description="Adjusted kick-off time")
    home_team: str = Field(..., alias="homeTeam")
    away_team: str = Field(..., alias="awayTeam")
    is_home_team_highlighted: bool = Field(..., alias="isHomeTeamHighlighted")
    is_away_team_highlighted: bool = Field(..., alias="isAwayTeamHighlighted")
    odds: str = Field(..., description="Formatted odds line, may be empty")
    final_goal_points: str = Field(..., alias="finalGoalPoints")

    class Config:
        """Pydantic configuration."""

        frozen = True
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "league": "Premier League",
                "time": "12:30PM",
                "homeTeam": "Arsenal",
                "awayTeam": "Chelsea",
                "isHomeTeamHighlighted": True,
                "isAwayTeamHighlighted": False,
                "odds": "1+0.5",
                "finalGoalPoints": "2+0.25",
            }
        }

    def to_json_dict(self) -> dict[str, Any]:
        """Dump with the public camelCase keys."""
        return self.model_dump(by_alias=True)


class NormalizationResult(BaseModel):
    """Outcome of one normalization pass.

    The league registry lives here so it is scoped to a single call.
    """

    matches: list[NormalizedMatch] = Field(default_factory=list)
    leagues: set[str] = Field(default_factory=set)
    duplicates_dropped: int = Field(0, ge=0)
    rows_skipped: int = Field(0, ge=0)
