"""Display formatting helpers for odds and goal-point lines.

Numbers are rendered the way the client has always received them: integral
values without a trailing ".0" and negative zero as "0". Upstream cells are
not always numbers; strings are shown as received and a pair with a missing
or non-numeric part renders as an empty cell.
"""

import math
import time
from typing import Any, Optional, Union

Number = Union[int, float]

# Literal display string that collapses to an empty cell
EMPTY_LINE_SENTINEL = "0-0.01"
SUPPRESSED_ODDS_VALUE = -0.01


def add_cache_busting(url: str) -> str:
    """Append a millisecond timestamp so intermediate caches are bypassed.

    The URL is expected to already carry a query string.

    Args:
        url: URL to decorate (not escaped here)

    Returns:
        URL with "&_=<epoch millis>" appended
    """
    timestamp = int(time.time() * 1000)
    return f"{url}&_={timestamp}"


def format_number(value: Any) -> str:
    """Render a value the way a JavaScript template string would."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def format_text(value: Any) -> str:
    """Render a display cell, None as an empty string."""
    if value is None:
        return ""
    return value if isinstance(value, str) else format_number(value)


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def to_number(value: Any) -> Optional[Number]:
    """Numeric value of an upstream cell, or None when it has none.

    Numeric strings count ("50" -> 50.0); booleans and non-finite values do not.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else None
    if isinstance(value, str) and value.strip():
        try:
            number = float(value)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def format_odds(whole: Any, cents_like: Any) -> str:
    """Format an odds pair as a compact signed string.

    Examples:
        format_odds(1, 50) -> "1+0.5"
        format_odds(1, -50) -> "1-0.5"
        format_odds(2, 0) -> "2"
        format_odds(3, -1) -> "3"
        format_odds(0, -1) -> ""
        format_odds("01", 50) -> "01+0.5"
        format_odds(None, 50) -> ""

    Args:
        whole: Whole part of the line, rendered as received
        cents_like: Fractional part expressed in hundredths

    Returns:
        Display string, possibly empty
    """
    cents = to_number(cents_like)
    if is_blank(whole) or cents is None:
        return ""

    val = cents / 100
    whole_str = format_number(whole)

    if f"{whole_str}{format_number(val)}" == EMPTY_LINE_SENTINEL:
        return ""

    if val == SUPPRESSED_ODDS_VALUE or val == 0:
        return whole_str
    if val > 0:
        return f"{whole_str}+{format_number(val)}"
    return f"{whole_str}{format_number(val)}"


def format_goal_points(line: Any, cents_like: Any) -> str:
    """Format the goal-points pair.

    Unlike format_odds there is no -0.01 suppression and zero renders as "+0";
    only the literal "0-0.01" collapses to an empty string. A missing line or
    adjustment renders as an empty string.

    Args:
        line: Goal line, rendered as received
        cents_like: Adjustment expressed in hundredths

    Returns:
        Display string, possibly empty
    """
    cents = to_number(cents_like)
    if is_blank(line) or cents is None:
        return ""

    val = cents / 100
    format_val = f"+{format_number(val)}" if val >= 0 else format_number(val)
    formatted = f"{format_number(line)}{format_val}"
    return "" if formatted == EMPTY_LINE_SENTINEL else formatted
