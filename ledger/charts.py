# ledger/charts.py
"""
Chart data for the spending views.

- filter_by_range: today / this week (Monday start) / this month
- category_totals: bar/pie data, one row per category with spending
- weekly_trend: line data, one line per Monday-start week of the month
"""
from __future__ import annotations

import calendar
from collections import OrderedDict
from datetime import date, datetime, timedelta, tzinfo
from typing import Dict, Iterable, List, Optional, Union

from ext_core.models import CategoryTotal, Expense, WeeklyTrend
from ext_utils.categories import DEFAULT_CATEGORIES, category_key

RANGES = ("today", "week", "month")

COLORS = ["#6366F1", "#F59E42", "#EF4444", "#10B981", "#FBBF24", "#7C3AED", "#3B82F6"]
WEEK_COLORS = [
    "#4F46E5",
    "#F59E42",
    "#EF4444",
    "#10B981",
    "#E11D48",
    "#A21CAF",
    "#FACC15",
    "#6366F1",
]

DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
# fixed English abbreviations; strftime("%b") follows the locale
MONTH_ABBR = ("", "Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def _local_date(dt: datetime, tz: Optional[tzinfo]) -> date:
    """Calendar day of `dt` as seen from `tz` (None = the machine's local time)."""
    if dt.tzinfo is None:
        return dt.date()
    if tz is None:
        return dt.astimezone().date()
    return dt.astimezone(tz).date()


def _expense_day(e: Expense, tz: Optional[tzinfo]) -> Optional[date]:
    when = e.when
    if when is None:
        return None
    return _local_date(when, tz)


def _ref_parts(ref: Union[date, datetime, None]):
    if ref is None:
        ref = datetime.now().astimezone()
    if isinstance(ref, datetime):
        return ref.date(), ref.tzinfo
    return ref, None


def week_start(day: date) -> date:
    return day - timedelta(days=day.weekday())


def filter_by_range(
    expenses: Iterable[Expense],
    range_name: str = "month",
    now: Union[date, datetime, None] = None,
) -> List[Expense]:
    """Expenses dated today / this week / this month, relative to `now`."""
    if range_name not in RANGES:
        raise ValueError(f"Unknown range {range_name!r}; expected one of {RANGES}")

    today, tz = _ref_parts(now)
    monday = week_start(today)

    out = []
    for e in expenses:
        day = _expense_day(e, tz)
        if day is None:
            continue
        if range_name == "today":
            keep = day == today
        elif range_name == "week":
            keep = monday <= day < monday + timedelta(days=7)
        else:
            keep = (day.year, day.month) == (today.year, today.month)
        if keep:
            out.append(e)
    return out


def category_totals(
    expenses: Iterable[Expense],
    categories: Iterable[str] = DEFAULT_CATEGORIES,
) -> List[CategoryTotal]:
    """
    Spending per category. Known categories come first in the given order,
    then anything else in first-seen order. Categories with no spending
    are left out.
    """
    buckets: "OrderedDict[str, CategoryTotal]" = OrderedDict()
    for name in categories:
        key = category_key(name)
        if key not in buckets:
            buckets[key] = CategoryTotal(category=name, total=0.0)

    for e in expenses:
        key = category_key(e.category or "")
        if not key:
            continue
        if key not in buckets:
            buckets[key] = CategoryTotal(category=e.category.strip(), total=0.0)
        bucket = buckets[key]
        bucket.total += e.amount
        bucket.count += 1

    out = []
    for i, bucket in enumerate(buckets.values()):
        bucket.color = COLORS[i % len(COLORS)]
        if bucket.total > 0:
            bucket.total = round(bucket.total, 2)
            out.append(bucket)
    return out


def _short(day: date) -> str:
    return f"{MONTH_ABBR[day.month]} {day.day}"


def weekly_trend(
    expenses: Iterable[Expense],
    today: Union[date, datetime, None] = None,
) -> WeeklyTrend:
    """
    Daily totals for every Monday-start week touching the month of `today`.
    Days of those weeks that fall outside the month count as zero.
    """
    ref_day, tz = _ref_parts(today)
    month_start = ref_day.replace(day=1)
    month_end = ref_day.replace(
        day=calendar.monthrange(ref_day.year, ref_day.month)[1]
    )

    daily: Dict[date, float] = {}
    for e in expenses:
        day = _expense_day(e, tz)
        if day is None or not (month_start <= day <= month_end):
            continue
        daily[day] = daily.get(day, 0.0) + e.amount

    labels: List[str] = []
    lines: Dict[str, Dict[str, float]] = {}
    start = week_start(month_start)
    while start <= month_end:
        end = start + timedelta(days=6)
        label = f"{_short(start)}-{_short(end)}"
        labels.append(label)
        totals = {}
        for i, name in enumerate(DAY_NAMES):
            day = start + timedelta(days=i)
            totals[name] = round(daily.get(day, 0.0), 2)
        lines[label] = totals
        start += timedelta(days=7)

    rows = []
    for name in DAY_NAMES:
        row: Dict[str, object] = {"day": name}
        for label in labels:
            row[label] = lines[label][name]
        rows.append(row)
    return WeeklyTrend(rows=rows, week_labels=labels)


def week_color(index: int) -> str:
    return WEEK_COLORS[index % len(WEEK_COLORS)]
