"""
Month grid for the Arbora scheduling view.

Months are zero-based (0 = January) and weekday columns start on Sunday
(0 = Sunday), which is how the scheduling page lays out its seven
columns. The grid is a flat list: ``None`` for each blank cell before day
1, then one ``DayCell`` per calendar day. ``today`` is always passed in by
the caller, so the same inputs always give the same grid.
"""

from __future__ import annotations

import calendar
import datetime as dt
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

from .schemas import DayCell, Job, MonthGrid


def _check_month(month_index: int) -> None:
    if not 0 <= month_index <= 11:
        raise ValueError(f"month index must be between 0 and 11, got {month_index}")


def days_in_month(year: int, month_index: int) -> int:
    _check_month(month_index)
    return calendar.monthrange(year, month_index + 1)[1]


def first_weekday(year: int, month_index: int) -> int:
    """Weekday of day 1, Sunday = 0."""
    _check_month(month_index)
    return (dt.date(year, month_index + 1, 1).weekday() + 1) % 7


def format_day_key(year: int, month_index: int, day: int) -> str:
    return f"{year:04d}-{month_index + 1:02d}-{day:02d}"


def shift_month(year: int, month_index: int, delta: int) -> Tuple[int, int]:
    """Move ``delta`` months, carrying into the year on under/overflow."""
    _check_month(month_index)
    total = year * 12 + month_index + delta
    return total // 12, total % 12


def group_jobs_by_date(jobs: Iterable[Job]) -> Dict[str, List[Job]]:
    grouped: Dict[str, List[Job]] = defaultdict(list)
    for job in jobs:
        if job.scheduled_date:
            grouped[job.scheduled_date].append(job)
    return dict(grouped)


def build_month_grid(
    year: int,
    month_index: int,
    jobs: Iterable[Job] = (),
    today: Optional[dt.date] = None,
) -> MonthGrid:
    blanks = first_weekday(year, month_index)
    by_date = group_jobs_by_date(jobs)
    today_key = today.isoformat() if today is not None else None

    cells: List[Optional[DayCell]] = [None] * blanks
    for day in range(1, days_in_month(year, month_index) + 1):
        key = format_day_key(year, month_index, day)
        cells.append(
            DayCell(
                day=day,
                date=key,
                is_today=key == today_key,
                jobs=by_date.get(key, []),
            )
        )

    title = f"{calendar.month_name[month_index + 1]} {year}"
    return MonthGrid(
        year=year,
        month=month_index,
        title=title,
        leading_blanks=blanks,
        cells=cells,
        prev=list(shift_month(year, month_index, -1)),
        next=list(shift_month(year, month_index, 1)),
    )
