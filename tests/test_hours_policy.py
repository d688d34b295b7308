"""
Hours policy tests: rounding, capping, input validation and aggregation.
"""
from datetime import datetime, timedelta, timezone

import pytest

from timeclock.core.exceptions import ValidationError
from timeclock.schemas.time_session import TimeSession
from timeclock.services.hours_policy import apply_cap, elapsed_hours, summarize, validate_hours


BASE = datetime(2026, 3, 2, 10, 0, 0)


class TestElapsedHours:

    def test_fifteen_and_a_half_minutes(self):
        assert elapsed_hours(BASE, BASE + timedelta(minutes=15, seconds=30)) == 0.26

    def test_rounds_half_up(self):
        # 18 seconds = 0.005h, exactly halfway between 0.00 and 0.01
        assert elapsed_hours(BASE, BASE + timedelta(seconds=18)) == 0.01

    def test_just_below_half_rounds_down(self):
        assert elapsed_hours(BASE, BASE + timedelta(seconds=17)) == 0.0

    def test_zero_duration(self):
        assert elapsed_hours(BASE, BASE) == 0.0

    def test_negative_duration_clamps_to_zero(self):
        assert elapsed_hours(BASE, BASE - timedelta(minutes=5)) == 0.0

    def test_mixed_aware_and_naive(self):
        aware = BASE.replace(tzinfo=timezone.utc)
        assert elapsed_hours(aware, BASE + timedelta(hours=2)) == 2.0

    def test_respects_decimals(self):
        assert elapsed_hours(BASE, BASE + timedelta(minutes=20), decimals=1) == 0.3


class TestApplyCap:

    def test_under_cap(self):
        assert apply_cap(4.99, 5.0) == (4.99, False)

    def test_exactly_at_cap_is_not_flagged(self):
        assert apply_cap(5.0, 5.0) == (5.0, False)

    def test_over_cap(self):
        assert apply_cap(6.5, 5.0) == (5.0, True)


class TestValidateHours:

    @pytest.mark.parametrize("value,expected", [(0, 0.0), (3, 3.0), (2.5, 2.5), ("1.75", 1.75), (" 4 ", 4.0)])
    def test_accepts(self, value, expected):
        assert validate_hours(value) == expected

    @pytest.mark.parametrize("value", [None, True, "abc", "", -1, -0.01, float("nan"), float("inf"), [1]])
    def test_rejects(self, value):
        with pytest.raises(ValidationError) as exc:
            validate_hours(value)
        assert exc.value.message == "Please enter a valid number of hours."
        assert exc.value.details["category"] == "invalid_input"


class TestSummarize:

    def _session(self, ts_id, user_code, check_in, check_out=None, hours=None, flagged=False):
        return TimeSession(
            ts_id=ts_id,
            ts_user_code=user_code,
            ts_check_in_at=check_in,
            ts_check_out_at=check_out,
            ts_total_hours=hours,
            ts_is_flagged=flagged,
            ts_created_at=check_in,
        )

    def test_open_sessions_count_but_add_no_hours(self):
        sessions = [
            self._session("a", "20000", BASE, BASE + timedelta(hours=2), 2.0),
            self._session("b", "20000", BASE + timedelta(days=1), BASE + timedelta(days=1, hours=6), 5.0, True),
            self._session("c", "20000", BASE + timedelta(days=2)),
            self._session("d", "10000", BASE, BASE, 3.0),
        ]

        summary = summarize(sessions)

        assert [row.user_code for row in summary] == ["10000", "20000"]
        row = summary[1]
        assert row.total_hours == 7.0
        assert row.flagged_sessions == 1
        assert row.session_count == 3
        assert row.open_session is True
        assert row.last_activity == BASE + timedelta(days=2)

    def test_empty(self):
        assert summarize([]) == []
