"""
Tests for Dose Generator Tool
Tests frequency parsing and dose time expansion
"""

import pytest
from datetime import datetime, date, time

from tools.dose_generator import doses_per_day, daily_slots, generate_dose_times


# =============================================================================
# Frequency Parsing
# =============================================================================

class TestDosesPerDay:

    @pytest.mark.parametrize("frequency,expected", [
        ("once daily", 1),
        ("Twice daily", 2),
        ("three times daily", 3),
        ("thrice a day", 3),
        ("every morning", 1),
        ("", 1),
        (None, 1),
    ])
    def test_frequency_text(self, frequency, expected):
        assert doses_per_day(frequency) == expected

    def test_slots(self):
        assert daily_slots("once daily") == [time(8, 0)]
        assert daily_slots("twice daily") == [time(8, 0), time(20, 0)]
        assert daily_slots("three times daily") == [time(8, 0), time(14, 0), time(20, 0)]


# =============================================================================
# Dose Expansion
# =============================================================================

class TestGenerateDoseTimes:

    def test_thirty_days_twice_daily(self):
        times = generate_dose_times("twice daily", start_date=date(2026, 3, 1), days=30)

        assert len(times) == 60
        assert times[0] == datetime(2026, 3, 1, 8, 0)
        assert times[1] == datetime(2026, 3, 1, 20, 0)
        assert times[-1] == datetime(2026, 3, 30, 20, 0)

    def test_sorted_and_unique(self):
        times = generate_dose_times("three times daily", start_date=date(2026, 3, 1), days=5)

        assert times == sorted(times)
        assert len(set(times)) == 15

    def test_history_days_precede_start(self):
        times = generate_dose_times(
            "once daily",
            start_date=date(2026, 3, 10),
            days=2,
            history_days=3
        )

        assert times == [
            datetime(2026, 3, 7, 8, 0),
            datetime(2026, 3, 8, 8, 0),
            datetime(2026, 3, 9, 8, 0),
            datetime(2026, 3, 10, 8, 0),
            datetime(2026, 3, 11, 8, 0),
        ]

    def test_defaults_to_utc_today(self, monkeypatch):
        class LateEvening(datetime):
            @classmethod
            def utcnow(cls):
                return cls(2026, 3, 10, 23, 30)

        monkeypatch.setattr("tools.dose_generator.datetime", LateEvening)

        times = generate_dose_times("once daily", days=1)
        assert times == [datetime(2026, 3, 10, 8, 0)]

    def test_zero_days(self):
        assert generate_dose_times("twice daily", start_date=date(2026, 3, 1), days=0) == []

    def test_negative_window_rejected(self):
        with pytest.raises(ValueError):
            generate_dose_times("once daily", days=-1)
        with pytest.raises(ValueError):
            generate_dose_times("once daily", history_days=-1)
