"""Pydantic schemas for workout log entries (local store, Sheets rows, API)."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

TimeRange = Literal["week", "month", "quarter"]


class WorkoutSet(BaseModel):
    """One set within an entry: reps at a given weight (kg)."""

    reps: int = Field(ge=0)
    weight: float = Field(ge=0)


class WorkoutLogEntry(BaseModel):
    """
    One logged performance of an exercise. Serialized with camelCase keys
    (by_alias=True) so the stored JSON matches what the web client writes.
    """

    model_config = ConfigDict(populate_by_name=True)

    exercise_id: str = Field(alias="exerciseId")
    exercise_name: str = Field(alias="exerciseName")
    muscle_group: str = Field(alias="muscleGroup")
    date: str  # ISO-8601, client clock at creation
    sets: list[WorkoutSet] = Field(min_length=1)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class SetInput(BaseModel):
    """Raw set as typed by the user; non-positive reps are dropped by the producer."""

    reps: int = 0
    weight: float = 0


class LogWorkoutRequest(BaseModel):
    """Body for POST /workouts/log."""

    model_config = ConfigDict(populate_by_name=True)

    exercise_id: str = Field(alias="exerciseId", min_length=1)
    exercise_name: str = Field(alias="exerciseName", min_length=1)
    muscle_group: str = Field(alias="muscleGroup", min_length=1)
    sets: list[SetInput] = Field(default_factory=list)
    difficulty: str | None = Field(None, max_length=32)


class LogWorkoutResponse(BaseModel):
    logged: bool
    entry: dict[str, Any]


class ChartPoint(BaseModel):
    """Per-day aggregate for the progress chart."""

    model_config = ConfigDict(populate_by_name=True)

    date: str  # label, e.g. "Jan 15"
    day: str  # ISO date used for ordering
    total_weight: float = Field(0.0, alias="totalWeight")
    total_reps: int = Field(0, alias="totalReps")
    max_weight: float = Field(0.0, alias="maxWeight")
    sets: int = 0


class ProgressStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_workouts: int = Field(0, alias="totalWorkouts")
    total_sets: int = Field(0, alias="totalSets")
    average_weight: float = Field(0.0, alias="averageWeight")
    max_weight: float = Field(0.0, alias="maxWeight")
