"""
Hours Policy - Duration rounding, the sign-out cap and hour aggregation
"""
import math
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Tuple

from timeclock.core.exceptions import ValidationError
from timeclock.core.time_utils import to_naive_utc
from timeclock.schemas.time_session import TimeSession, UserHoursSummary

SECONDS_PER_HOUR = Decimal(3600)


def elapsed_hours(check_in: datetime, check_out: datetime, decimals: int = 2) -> float:
    """
    Hours between two instants, rounded half-up to ``decimals`` places.

    A check-out earlier than the check-in (clock skew) counts as zero.
    """
    delta = to_naive_utc(check_out) - to_naive_utc(check_in)
    seconds = max(Decimal(str(delta.total_seconds())), Decimal(0))
    quantum = Decimal(1).scaleb(-decimals)
    return float((seconds / SECONDS_PER_HOUR).quantize(quantum, rounding=ROUND_HALF_UP))


def apply_cap(raw_hours: float, cap: float) -> Tuple[float, bool]:
    """Return (total_hours, is_flagged) for an uncapped duration"""
    return min(raw_hours, cap), raw_hours > cap


def validate_hours(value: Any) -> float:
    """
    Coerce an administrator-supplied hours value to a finite, non-negative float.

    Raises:
        ValidationError: value is non-numeric, NaN, infinite or negative
    """
    if value is None or isinstance(value, bool):
        raise ValidationError("Please enter a valid number of hours.", {"hours": value})

    if isinstance(value, str):
        try:
            value = Decimal(value.strip())
        except InvalidOperation:
            raise ValidationError("Please enter a valid number of hours.", {"hours": value})

    try:
        hours = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Please enter a valid number of hours.", {"hours": str(value)})

    if not math.isfinite(hours) or hours < 0:
        raise ValidationError("Please enter a valid number of hours.", {"hours": str(value)})

    return hours


def summarize(sessions: Iterable[TimeSession]) -> List[UserHoursSummary]:
    """
    Aggregate sessions per member the same way the summary query does.

    Only closed sessions add to total_hours; every session counts toward
    session_count, flagged_sessions and last_activity.
    """
    rows: Dict[str, Dict[str, Any]] = {}

    for session in sessions:
        row = rows.setdefault(session.ts_user_code, {
            "user_code": session.ts_user_code,
            "total_hours": 0.0,
            "flagged_sessions": 0,
            "session_count": 0,
            "open_session": False,
            "last_activity": None,
        })
        row["session_count"] += 1
        if session.ts_is_flagged:
            row["flagged_sessions"] += 1
        if session.ts_check_out_at is None:
            row["open_session"] = True
        else:
            row["total_hours"] += session.ts_total_hours or 0.0

        check_in = to_naive_utc(session.ts_check_in_at)
        if row["last_activity"] is None or check_in > row["last_activity"]:
            row["last_activity"] = check_in

    return [UserHoursSummary(**rows[code]) for code in sorted(rows)]
