"""Workouts API: log sets, read history (sheet or local), progress for one exercise."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from liftlog.api.deps import get_synchronizer
from liftlog.schemas.workout import LogWorkoutRequest, LogWorkoutResponse, TimeRange
from liftlog.services.progress import summarize_progress
from liftlog.services.workout_logger import build_log_entry
from liftlog.services.workout_sync import WorkoutLogSynchronizer

router = APIRouter(prefix="/workouts", tags=["workouts"])


@router.post("/log", response_model=LogWorkoutResponse, status_code=201)
async def log_workout(
    body: LogWorkoutRequest,
    sync: Annotated[WorkoutLogSynchronizer, Depends(get_synchronizer)],
) -> LogWorkoutResponse:
    try:
        entry = build_log_entry(body.exercise_id, body.exercise_name, body.muscle_group, body.sets)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    logged = await sync.log_workout(entry, difficulty=body.difficulty)
    return LogWorkoutResponse(logged=logged, entry=entry.to_json_dict())


@router.get("/history")
async def get_history(
    sync: Annotated[WorkoutLogSynchronizer, Depends(get_synchronizer)],
    muscle_group: str | None = Query(None, max_length=64),
) -> list[dict]:
    entries = await sync.get_workout_history(muscle_group)
    return [e.to_json_dict() for e in entries]


@router.get("/progress")
async def get_progress(
    sync: Annotated[WorkoutLogSynchronizer, Depends(get_synchronizer)],
    exercise_id: str = Query(..., min_length=1),
    time_range: TimeRange = Query("month"),
) -> dict:
    entries = await sync.get_progress_data(exercise_id, time_range)
    points, stats = summarize_progress(entries)
    return {
        "exerciseId": exercise_id,
        "timeRange": time_range,
        "entries": [e.to_json_dict() for e in entries],
        "chart": [p.model_dump(by_alias=True) for p in points],
        "stats": stats.model_dump(by_alias=True),
    }
