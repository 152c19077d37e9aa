"""
Match normalization for the Odds Relay.

Turns the upstream ``[league_meta, matches]`` entries into a flat, deduplicated
list of decoded matches tagged with their league name.
"""

from typing import Any, Optional

from ..utils.logger import get_logger
from .format_helpers import format_number
from .models import (
    LEAGUE_NAME_INDEX,
    NormalizationResult,
    NormalizedMatch,
    RawMatch,
    RawMatchDecodeError,
)

logger = get_logger()


def league_name_from_meta(league_meta: Any) -> Optional[str]:
    """Return the league name at index 1 of the league meta, if present.

    Falsy names (None, "", 0) count as missing.
    """
    if not isinstance(league_meta, list) or len(league_meta) <= LEAGUE_NAME_INDEX:
        return None
    name = league_meta[LEAGUE_NAME_INDEX]
    if not name:
        return None
    return name if isinstance(name, str) else format_number(name)


def normalize(raw: list[Any]) -> NormalizationResult:
    """
    Deduplicate matches and attach league context.

    The first occurrence of a match id wins; later duplicates are dropped.
    Output order follows the league/match traversal order.

    Args:
        raw: ``[league_meta, matches]`` entries from the relay payload

    Returns:
        NormalizationResult with the unique matches and the leagues seen in
        this call
    """
    seen_ids: set[Any] = set()
    matches: list[NormalizedMatch] = []
    leagues: set[str] = set()
    duplicates_dropped = 0
    rows_skipped = 0

    for entry in raw:
        if not isinstance(entry, list) or len(entry) < 2:
            logger.warning(
                "League entry is not a [league_meta, matches] pair, skipping",
                extra={"entry_type": type(entry).__name__},
            )
            continue

        league_meta, league_matches = entry[0], entry[1]

        if not isinstance(league_matches, list):
            logger.warning(
                "'matches' within API response is not a list, skipping league",
                extra={
                    "league_meta": league_meta,
                    "matches_type": type(league_matches).__name__,
                },
            )
            continue

        league = league_name_from_meta(league_meta)

        for row in league_matches:
            if league is not None:
                leagues.add(league)

            try:
                match_id = RawMatch.identity_of(row)
            except RawMatchDecodeError as e:
                rows_skipped += 1
                logger.warning(
                    f"Skipping match row without identifier: {e}",
                    extra={"league": league},
                )
                continue

            if match_id in seen_ids:
                duplicates_dropped += 1
                logger.debug(
                    "Dropping duplicate match",
                    extra={"match_id": match_id, "league": league},
                )
                continue

            # Claimed before decoding so a later duplicate cannot replace it
            seen_ids.add(match_id)

            try:
                raw_match = RawMatch.from_row(row)
            except RawMatchDecodeError as e:
                rows_skipped += 1
                logger.warning(
                    f"Skipping undecodable match row: {e}",
                    extra={"match_id": match_id, "league": league},
                )
                continue

            matches.append(NormalizedMatch.from_raw(raw_match, league))

    logger.info(
        "Normalized matches",
        extra={
            "unique_matches": len(matches),
            "duplicates_dropped": duplicates_dropped,
            "rows_skipped": rows_skipped,
            "league_count": len(leagues),
        },
    )

    return NormalizationResult(
        matches=matches,
        leagues=leagues,
        duplicates_dropped=duplicates_dropped,
        rows_skipped=rows_skipped,
    )
