"""Google Sheets connection config: schemas and validation helpers."""

import re

from pydantic import BaseModel, ConfigDict, Field

_SPREADSHEET_ID_RE = re.compile(r"/spreadsheets/d/([a-zA-Z0-9_-]+)")


class SheetsConfig(BaseModel):
    """Validated connection config. Stored under the googleSheets_config key with camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)

    api_key: str = Field(alias="apiKey")
    spreadsheet_id: str = Field(alias="spreadsheetId")
    sheet_name: str = Field("WorkoutLogs", alias="sheetName")


class SheetsConfigDraft(BaseModel):
    """Partially filled config as submitted from the setup form."""

    model_config = ConfigDict(populate_by_name=True)

    api_key: str | None = Field(None, alias="apiKey")
    spreadsheet_id: str | None = Field(None, alias="spreadsheetId")
    sheet_name: str | None = Field(None, alias="sheetName")
    spreadsheet_url: str | None = Field(None, alias="spreadsheetUrl")

    def resolved(self) -> "SheetsConfigDraft":
        """Fill spreadsheet_id from spreadsheet_url when only the URL was given."""
        if self.spreadsheet_id or not self.spreadsheet_url:
            return self
        return self.model_copy(update={"spreadsheet_id": extract_spreadsheet_id(self.spreadsheet_url)})


class SheetsTokenIn(BaseModel):
    """Result of the OAuth sign-in flow: bearer token plus lifetime."""

    access_token: str = Field(min_length=1)
    expires_in: int = Field(3600, gt=0)  # seconds


class SheetsStatus(BaseModel):
    configured: bool
    signed_in: bool
    mode: str  # "oauth" | "apikey" | "local"
    token_expires_at: int | None = None


def validate_sheets_config(config: SheetsConfigDraft) -> list[str]:
    """Return human-readable errors for missing fields; empty list means valid. No I/O."""
    errors: list[str] = []
    if not (config.api_key or "").strip():
        errors.append("Google Sheets API key is required")
    if not (config.spreadsheet_id or "").strip():
        errors.append("Spreadsheet ID is required")
    if not (config.sheet_name or "").strip():
        errors.append("Sheet name is required")
    return errors


def extract_spreadsheet_id(url: str) -> str | None:
    """Pull the spreadsheet id out of a docs.google.com/spreadsheets/d/<id>/... URL."""
    m = _SPREADSHEET_ID_RE.search(url or "")
    return m.group(1) if m else None
