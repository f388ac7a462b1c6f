"""Build a WorkoutLogEntry from what the user typed in the logger form."""

from datetime import datetime, timezone
from typing import Iterable

from liftlog.schemas.workout import SetInput, WorkoutLogEntry, WorkoutSet


def iso_timestamp(now: datetime | None = None) -> str:
    """UTC timestamp with millisecond precision and a Z suffix, e.g. 2024-01-15T10:00:00.000Z."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def build_log_entry(
    exercise_id: str,
    exercise_name: str,
    muscle_group: str,
    sets: Iterable[SetInput],
    now: datetime | None = None,
) -> WorkoutLogEntry:
    """
    Keep only sets with reps > 0 (in the order entered), clamp negative weights to 0,
    and stamp the entry with the current time. Raises ValueError if no set is left.
    """
    valid = [
        WorkoutSet(reps=s.reps, weight=max(0.0, float(s.weight)))
        for s in sets
        if s.reps > 0
    ]
    if not valid:
        raise ValueError("Please add at least one set with reps > 0")
    return WorkoutLogEntry(
        exercise_id=exercise_id,
        exercise_name=exercise_name,
        muscle_group=muscle_group,
        date=iso_timestamp(now),
        sets=valid,
    )
