"""
Virtual Fridge Backend — Date and Sanitizing Helper Tests
===========================================================

What:  Tests for utils.dates (label parsing, day arithmetic) and
       utils.sanitize (CR/LF rejection).
"""

from datetime import date, datetime

import pytest

from virtual_fridge.utils.dates import add_days, date_diff_in_days, parse_date
from virtual_fridge.utils.sanitize import sanitize_log_value


class TestParseDate:

    def test_month_year_label(self):
        assert parse_date("05-2026", "mm-yyyy") == date(2026, 5, 1)

    def test_default_format_is_iso(self):
        assert parse_date("2026-05-14") == date(2026, 5, 14)

    def test_separators_are_ignored(self):
        """Digit groups matter, not the characters between them."""
        assert parse_date("14.05.2026", "dd-mm-yyyy") == date(2026, 5, 14)
        assert parse_date("2026/05/14") == date(2026, 5, 14)

    def test_missing_year_defaults_to_current_year(self):
        assert parse_date("07", "mm") == date(date.today().year, 7, 1)

    def test_no_digits_rejected(self):
        with pytest.raises(ValueError, match="Invalid date input"):
            parse_date("best before soon", "mm-yyyy")

    def test_too_few_groups_rejected(self):
        with pytest.raises(ValueError, match="Invalid date input"):
            parse_date("2026", "yyyy-mm-dd")

    def test_impossible_date_rejected(self):
        with pytest.raises(ValueError):
            parse_date("13-2026", "mm-yyyy")


class TestDayArithmetic:

    def test_diff_counts_calendar_days(self):
        assert date_diff_in_days(date(2026, 5, 1), date(2026, 5, 15)) == 14

    def test_diff_is_negative_for_past_dates(self):
        assert date_diff_in_days(date(2026, 5, 15), date(2026, 5, 1)) == -14

    def test_diff_ignores_time_of_day(self):
        start = datetime(2026, 5, 1, 23, 59)
        end = datetime(2026, 5, 2, 0, 1)
        assert date_diff_in_days(start, end) == 1

    def test_add_days_crosses_month_end(self):
        assert add_days(date(2026, 1, 30), 3) == date(2026, 2, 2)


class TestSanitizeLogValue:

    def test_plain_value_passes_through(self):
        assert sanitize_log_value("5000112637922") == "5000112637922"

    def test_non_string_is_stringified(self):
        assert sanitize_log_value(42) == "42"

    @pytest.mark.parametrize("value", ["abc\n123", "abc\r123", "\r\n"])
    def test_crlf_rejected(self, value):
        with pytest.raises(ValueError, match="CRLF"):
            sanitize_log_value(value)
