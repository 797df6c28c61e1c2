"""
Chart data: range filters, per-category totals and the weekly trend.
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from ext_core.models import Expense
from ledger.charts import (
    COLORS,
    DAY_NAMES,
    category_totals,
    filter_by_range,
    week_color,
    week_start,
    weekly_trend,
    WEEK_COLORS,
)

TODAY = date(2025, 10, 15)  # a Wednesday


def _exp(amount, category="Food", when="2025-10-15T12:00:00", id=None):
    return Expense(id=id or f"{category}-{when}-{amount}", amount=amount, category=category, date=when)


class TestFilterByRange:
    def setup_method(self):
        self.expenses = [
            _exp(1, when="2025-10-15T08:00:00", id="today"),
            _exp(2, when="2025-10-13T08:00:00", id="monday"),
            _exp(3, when="2025-10-12T23:00:00", id="last-sunday"),
            _exp(4, when="2025-10-01T00:00:00", id="first"),
            _exp(5, when="2025-09-30T12:00:00", id="september"),
            _exp(6, when="", id="undated"),
        ]

    def _ids(self, range_name):
        return [e.id for e in filter_by_range(self.expenses, range_name, now=TODAY)]

    def test_today(self):
        assert self._ids("today") == ["today"]

    def test_week_starts_monday(self):
        assert self._ids("week") == ["today", "monday"]

    def test_month(self):
        assert self._ids("month") == ["today", "monday", "last-sunday", "first"]

    def test_unknown_range(self):
        with pytest.raises(ValueError):
            filter_by_range(self.expenses, "year", now=TODAY)

    def test_aware_timestamps_use_reference_zone(self):
        # 23:30 UTC on the 14th is already the 15th at UTC+2
        e = _exp(1, when="2025-10-14T23:30:00+00:00")
        now = datetime(2025, 10, 15, 9, 0, tzinfo=timezone(timedelta(hours=2)))
        assert filter_by_range([e], "today", now=now) == [e]


class TestCategoryTotals:
    def test_known_order_and_colors(self):
        data = category_totals(
            [_exp(10, "Travel"), _exp(5.555, "Food"), _exp(4.445, "food")]
        )
        assert [t.category for t in data] == ["Food", "Travel"]
        assert data[0].total == 10.0
        assert data[0].count == 2
        assert data[0].color == COLORS[0]
        assert data[1].color == COLORS[1]

    def test_zero_categories_dropped(self):
        assert category_totals([]) == []

    def test_unknown_categories_follow_known(self):
        data = category_totals([_exp(3, "Pets"), _exp(2, "Other")])
        assert [t.category for t in data] == ["Other", "Pets"]
        assert data[1].color == COLORS[7 % len(COLORS)]

    def test_custom_vocabulary(self):
        data = category_totals([_exp(3, "groceries")], categories=["Groceries"])
        assert data[0].category == "Groceries"


class TestWeeklyTrend:
    def test_week_labels_cover_month(self):
        trend = weekly_trend([], today=TODAY)
        assert trend.week_labels == [
            "Sep 29-Oct 5",
            "Oct 6-Oct 12",
            "Oct 13-Oct 19",
            "Oct 20-Oct 26",
            "Oct 27-Nov 2",
        ]
        assert [r["day"] for r in trend.rows] == list(DAY_NAMES)
        assert not trend.has_data

    def test_daily_totals(self):
        trend = weekly_trend(
            [
                _exp(10, when="2025-10-15T09:00:00"),
                _exp(2.5, when="2025-10-15T19:00:00"),
                _exp(7, when="2025-10-01T09:00:00"),
                # outside the month, even though its week is shown
                _exp(99, when="2025-09-30T09:00:00"),
                _exp(99, when="2025-11-01T09:00:00"),
            ],
            today=TODAY,
        )
        rows = {r["day"]: r for r in trend.rows}
        assert rows["Wed"]["Oct 13-Oct 19"] == 12.5
        assert rows["Wed"]["Sep 29-Oct 5"] == 7
        assert rows["Tue"]["Sep 29-Oct 5"] == 0
        assert rows["Sat"]["Oct 27-Nov 2"] == 0
        assert trend.has_data


def test_week_start():
    assert week_start(TODAY) == date(2025, 10, 13)
    assert week_start(date(2025, 10, 13)) == date(2025, 10, 13)


def test_week_color_cycles():
    assert week_color(0) == WEEK_COLORS[0]
    assert week_color(len(WEEK_COLORS)) == WEEK_COLORS[0]
