"""Persisted Google Sheets connection config (setup form) with env defaults."""

import logging

from pydantic import ValidationError

from liftlog.config import settings
from liftlog.schemas.sheets import SheetsConfig, SheetsConfigDraft, validate_sheets_config
from liftlog.services.local_store import SHEETS_CONFIG_KEY, LocalStore, read_json, write_json

logger = logging.getLogger(__name__)


def config_from_env() -> SheetsConfig | None:
    draft = SheetsConfigDraft(
        api_key=settings.google_sheets_api_key,
        spreadsheet_id=settings.google_sheets_spreadsheet_id,
        sheet_name=settings.google_sheets_sheet_name,
    )
    if validate_sheets_config(draft):
        return None
    return SheetsConfig(
        api_key=draft.api_key,
        spreadsheet_id=draft.spreadsheet_id,
        sheet_name=draft.sheet_name,
    )


def load_config(store: LocalStore) -> SheetsConfig | None:
    """Saved config if present and valid, else the one from env, else None (local-only mode)."""
    data = read_json(store, SHEETS_CONFIG_KEY, None)
    if isinstance(data, dict):
        try:
            config = SheetsConfig.model_validate(data)
        except ValidationError:
            logger.warning("Saved Google Sheets config is invalid, ignoring")
        else:
            if config.api_key and config.spreadsheet_id and config.sheet_name:
                return config
    return config_from_env()


def save_config(store: LocalStore, config: SheetsConfig) -> bool:
    return write_json(store, SHEETS_CONFIG_KEY, config.model_dump(by_alias=True))
