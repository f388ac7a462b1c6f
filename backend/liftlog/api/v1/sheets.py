"""Google Sheets setup: validate/save config, cache the OAuth sign-in token, check the sheet."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from liftlog.api.deps import get_local_store, get_synchronizer, get_token_store
from liftlog.schemas.sheets import (
    SheetsConfig,
    SheetsConfigDraft,
    SheetsStatus,
    SheetsTokenIn,
    validate_sheets_config,
)
from liftlog.services.local_store import LocalStore
from liftlog.services.sheets_settings import save_config
from liftlog.services.token_store import TokenStore
from liftlog.services.workout_sync import Failed, WorkoutLogSynchronizer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sheets", tags=["sheets"])


def _status(sync: WorkoutLogSynchronizer) -> SheetsStatus:
    target, _ = sync.resolve_target()
    mode = {"remote-oauth": "oauth", "remote-apikey": "apikey"}.get(target, "local")
    signed_in = sync.tokens.is_signed_in()
    return SheetsStatus(
        configured=sync.config is not None,
        signed_in=signed_in,
        mode=mode,
        token_expires_at=sync.tokens.expires_at() if signed_in else None,
    )


@router.post("/validate")
async def validate_config(body: SheetsConfigDraft) -> dict:
    draft = body.resolved()
    return {"errors": validate_sheets_config(draft), "spreadsheetId": draft.spreadsheet_id}


@router.get("/config")
async def get_config(sync: Annotated[WorkoutLogSynchronizer, Depends(get_synchronizer)]) -> dict | None:
    if sync.config is None:
        return None
    return sync.config.model_dump(by_alias=True)


@router.put("/config")
async def put_config(
    body: SheetsConfigDraft,
    sync: Annotated[WorkoutLogSynchronizer, Depends(get_synchronizer)],
    store: Annotated[LocalStore, Depends(get_local_store)],
) -> dict:
    draft = body.resolved()
    errors = validate_sheets_config(draft)
    if errors:
        raise HTTPException(status_code=422, detail=errors)
    config = SheetsConfig(
        api_key=draft.api_key.strip(),
        spreadsheet_id=draft.spreadsheet_id.strip(),
        sheet_name=draft.sheet_name.strip(),
    )
    if not save_config(store, config):
        logger.warning("Google Sheets config applied but could not be persisted")
    sync.configure(config)
    return config.model_dump(by_alias=True)


@router.get("/status", response_model=SheetsStatus)
async def get_status(sync: Annotated[WorkoutLogSynchronizer, Depends(get_synchronizer)]) -> SheetsStatus:
    return _status(sync)


@router.put("/token", response_model=SheetsStatus)
async def put_token(
    body: SheetsTokenIn,
    sync: Annotated[WorkoutLogSynchronizer, Depends(get_synchronizer)],
    tokens: Annotated[TokenStore, Depends(get_token_store)],
) -> SheetsStatus:
    if not tokens.save(body.access_token, body.expires_in):
        raise HTTPException(status_code=500, detail="Could not store access token")
    return _status(sync)


@router.delete("/token", response_model=SheetsStatus)
async def delete_token(
    sync: Annotated[WorkoutLogSynchronizer, Depends(get_synchronizer)],
    tokens: Annotated[TokenStore, Depends(get_token_store)],
) -> SheetsStatus:
    tokens.clear()
    return _status(sync)


@router.post("/check")
async def check_sheet(sync: Annotated[WorkoutLogSynchronizer, Depends(get_synchronizer)]) -> dict:
    if sync.config is None:
        raise HTTPException(status_code=400, detail="Google Sheets is not configured")
    result = await sync.check_sheet()
    if isinstance(result, Failed):
        return {"ok": False, "error": result.reason}
    return {"ok": True, **result.data}
