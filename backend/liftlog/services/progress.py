"""Progress views over workout history: time-range cutoffs, date ordering, chart aggregation."""

import calendar
from datetime import datetime, timedelta, timezone

from liftlog.schemas.workout import ChartPoint, ProgressStats, TimeRange, WorkoutLogEntry

_MONTHS_BACK: dict[str, int] = {"month": 1, "quarter": 3}


def parse_entry_date(s: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp (trailing Z allowed). Naive values are taken as UTC."""
    if not s or not isinstance(s, str):
        return None
    try:
        dt = datetime.fromisoformat(s.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _months_before(dt: datetime, months: int) -> datetime:
    """Same day-of-month `months` calendar months earlier, clamped to the month's last day."""
    total = dt.year * 12 + (dt.month - 1) - months
    year, month = divmod(total, 12)
    month += 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def cutoff_for(time_range: TimeRange, now: datetime | None = None) -> datetime:
    """week: now - 7 days; month: now - 1 calendar month; quarter: now - 3 calendar months."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    if time_range == "week":
        return now - timedelta(days=7)
    months = _MONTHS_BACK.get(time_range)
    if months is None:
        raise ValueError(f"Unknown time range: {time_range!r}")
    return _months_before(now, months)


def select_progress(
    entries: list[WorkoutLogEntry],
    exercise_id: str,
    time_range: TimeRange,
    now: datetime | None = None,
) -> list[WorkoutLogEntry]:
    """Entries of one exercise on or after the cutoff, oldest first. Undated entries are dropped."""
    cutoff = cutoff_for(time_range, now)
    dated: list[tuple[datetime, WorkoutLogEntry]] = []
    for entry in entries:
        if entry.exercise_id != exercise_id:
            continue
        dt = parse_entry_date(entry.date)
        if dt is not None and dt >= cutoff:
            dated.append((dt, entry))
    dated.sort(key=lambda pair: pair[0])
    return [entry for _, entry in dated]


def summarize_progress(entries: list[WorkoutLogEntry]) -> tuple[list[ChartPoint], ProgressStats]:
    """Per-day volume/reps/max weight for the chart, plus overall stats."""
    points: dict[str, ChartPoint] = {}
    weights: list[float] = []
    total_sets = 0
    for entry in entries:
        dt = parse_entry_date(entry.date)
        if dt is None:
            continue
        day = dt.date().isoformat()
        point = points.get(day)
        if point is None:
            point = ChartPoint(date=dt.strftime("%b %d"), day=day)
            points[day] = point
        for s in entry.sets:
            point.total_weight += s.weight * s.reps
            point.total_reps += s.reps
            point.max_weight = max(point.max_weight, s.weight)
            point.sets += 1
            weights.append(s.weight)
        total_sets += len(entry.sets)

    stats = ProgressStats(
        total_workouts=len(entries),
        total_sets=total_sets,
        average_weight=round(sum(weights) / len(weights), 1) if weights else 0.0,
        max_weight=max(weights) if weights else 0.0,
    )
    return [points[d] for d in sorted(points)], stats
