"""Upcoming release ordering and bucketing."""

import calendar
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from formulacardz.models.catalog import Drop

THIS_WEEK = timedelta(days=7)


@dataclass(frozen=True, slots=True)
class DropSchedule:
    this_week: tuple[Drop, ...]
    this_month: tuple[Drop, ...]
    later: tuple[Drop, ...]


def _aware(moment: datetime) -> datetime:
    # The service sends UTC; naive values are read as UTC
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def sort_drops(drops: Iterable[Drop]) -> list[Drop]:
    """Soonest release first."""
    return sorted(drops, key=lambda drop: _aware(drop.release_date))


def end_of_month(moment: datetime) -> datetime:
    """Last instant of the calendar month containing `moment`."""
    last_day = calendar.monthrange(moment.year, moment.month)[1]
    return moment.replace(day=last_day, hour=23, minute=59, second=59, microsecond=999999)


def categorize_drops(drops: Iterable[Drop], now: datetime) -> DropSchedule:
    """
    Split drops into this week, later this month, and after this month.

    Releases already in the past fall in no bucket.
    """
    now = _aware(now)
    week_end = now + THIS_WEEK
    month_end = end_of_month(now)

    this_week: list[Drop] = []
    this_month: list[Drop] = []
    later: list[Drop] = []

    for drop in sort_drops(drops):
        release = _aware(drop.release_date)
        if now <= release <= week_end:
            this_week.append(drop)
        elif week_end < release <= month_end:
            this_month.append(drop)
        elif release > week_end:
            later.append(drop)

    return DropSchedule(tuple(this_week), tuple(this_month), tuple(later))
