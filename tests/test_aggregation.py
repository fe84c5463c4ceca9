import asyncio

from swimtrackr.core.aggregation import (
    attendance_rate, completion_rate, count_of, gather_statistics, growth_rate, percentage, safe_ratio
)
from types import SimpleNamespace


class TestPercentages:
    def test_rounds_half_up(self):
        assert percentage(1, 8) == 13
        assert percentage(1, 3) == 33
        assert percentage(2, 3) == 67

    def test_zero_total_is_zero(self):
        assert completion_rate(0, 0) == 0
        assert completion_rate(5, 0) == 0
        assert completion_rate(None, None) == 0

    def test_clamped_to_range(self):
        assert percentage(12, 10) == 100
        assert percentage(-3, 10) == 0

    def test_attendance_is_seat_fill_rate(self):
        assert attendance_rate(9, 12) == 75
        assert attendance_rate(3, 0) == 0


class TestRatios:
    def test_growth_rate(self):
        assert growth_rate(15, 10) == 50.0
        assert growth_rate(5, 10) == -50.0
        assert growth_rate(7, 0) == 0.0

    def test_safe_ratio_guards_division_by_zero(self):
        assert safe_ratio(10, 4) == 2.5
        assert safe_ratio(10, 0) == 0.0


def test_count_of_prefers_exact_count():
    assert count_of(SimpleNamespace(data=[{"id": 1}], count=7)) == 7
    assert count_of(SimpleNamespace(data=[{"id": 1}, {"id": 2}], count=None)) == 2
    assert count_of(None) == 0


def test_gather_statistics_degrades_failed_job_to_default():
    def broken():
        raise RuntimeError("store unavailable")

    stats = asyncio.run(gather_statistics({
        "students": (lambda: 12, 0),
        "sessions": (broken, 0),
        "recent": (lambda: ["a"], []),
    }))
    assert stats == {"students": 12, "sessions": 0, "recent": ["a"]}
