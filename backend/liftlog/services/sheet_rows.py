"""Flatten workout entries to Sheets rows (one per set) and rebuild entries from rows."""

import math
import re

from liftlog.schemas.workout import WorkoutLogEntry, WorkoutSet

SHEET_HEADERS = [
    "Date",
    "Exercise Name",
    "Muscle Group",
    "Set Number",
    "Reps",
    "Weight (kg)",
    "Difficulty Level",
    "Notes",
]
SHEET_COLUMNS = "A:H"

_NON_ALNUM_RUN = re.compile(r"[^a-z0-9]+")


def slugify(*parts: str) -> str:
    """Lowercase, collapse every non-alphanumeric run to one hyphen, trim hyphens."""
    text = "-".join(p for p in parts if p)
    return _NON_ALNUM_RUN.sub("-", text.lower()).strip("-")


def _format_number(value: float | int) -> str:
    f = float(value)
    if f.is_integer():
        return str(int(f))
    return repr(f)


def flatten_entry(entry: WorkoutLogEntry, difficulty: str | None = None) -> list[list[str]]:
    """One row per set: date, name, muscle group, 1-based set number, reps, weight, difficulty, notes."""
    return [
        [
            entry.date,
            entry.exercise_name,
            entry.muscle_group,
            str(i),
            str(s.reps),
            _format_number(s.weight),
            difficulty or "",
            "",
        ]
        for i, s in enumerate(entry.sets, start=1)
    ]


def _parse_int(v: object, default: int) -> int:
    try:
        f = float(str(v).strip().replace(",", "."))
    except (TypeError, ValueError):
        return default
    if not math.isfinite(f):
        return default
    return max(0, int(f))


def _parse_weight(v: object) -> float:
    try:
        f = float(str(v).strip().replace(",", "."))
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(f) or f < 0:
        return 0.0
    return f


def parse_rows(values: list[list[object]]) -> list[WorkoutLogEntry]:
    """
    Rebuild entries from a values range whose first row is the header.
    Rows are grouped by (date, exercise name) in first-seen order; exerciseId is
    a slug of muscle group + name since the sheet does not store the real id.
    Rows without a date or name are skipped.
    """
    groups: dict[tuple[str, str], dict] = {}
    for row in values[1:]:
        if not isinstance(row, list):
            continue
        cells = [("" if c is None else str(c)) for c in row] + [""] * (len(SHEET_HEADERS) - len(row))
        # Set Number (column D) is not needed: sets keep row order within a group
        date_s, name, muscle_group, _, reps_s, weight_s = (c.strip() for c in cells[:6])
        if not date_s or not name:
            continue
        key = (date_s, name)
        group = groups.get(key)
        if group is None:
            group = {
                "exercise_id": slugify(muscle_group, name),
                "exercise_name": name,
                "muscle_group": muscle_group,
                "date": date_s,
                "sets": [],
            }
            groups[key] = group
        group["sets"].append(WorkoutSet(reps=_parse_int(reps_s, 0), weight=_parse_weight(weight_s)))
    return [WorkoutLogEntry.model_validate(g) for g in groups.values()]
