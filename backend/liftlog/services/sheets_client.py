"""
Google Sheets API v4 client: values read (API key or OAuth), values append (OAuth only),
spreadsheet metadata. Raises httpx.HTTPError on transport/HTTP failures and ValueError
on malformed bodies; callers decide how to fall back.
"""
import logging
from typing import Any
from urllib.parse import quote

import httpx

from liftlog.schemas.sheets import SheetsConfig
from liftlog.services.http_client import get_http_client
from liftlog.services.sheet_rows import SHEET_COLUMNS

logger = logging.getLogger(__name__)


def _spreadsheet_path(config: SheetsConfig) -> str:
    """Path relative to the shared client's base URL (.../v4/spreadsheets/)."""
    return quote(config.spreadsheet_id, safe="")


def _range_path(config: SheetsConfig, cells: str = SHEET_COLUMNS) -> str:
    return quote(f"{config.sheet_name}!{cells}", safe="!:")


def _auth(config: SheetsConfig, access_token: str | None) -> tuple[dict[str, str], dict[str, str]]:
    """Headers and query params: bearer token when given, else the read-only API key."""
    if access_token:
        return {"Authorization": f"Bearer {access_token}"}, {}
    return {}, {"key": config.api_key}


def _log_response_error(method: str, url: str, response: httpx.Response) -> None:
    """Log HTTP error without sensitive data (query string holds the API key)."""
    body = (response.text or "")[:500]
    logger.warning(
        "Google Sheets %s %s -> %s body=%s",
        method,
        url,
        response.status_code,
        body,
    )


def _json_object(r: httpx.Response) -> dict[str, Any]:
    data = r.json() if r.content else {}
    if not isinstance(data, dict):
        raise ValueError("Unexpected Sheets API response body")
    return data


async def get_values(
    config: SheetsConfig,
    access_token: str | None = None,
    cells: str = SHEET_COLUMNS,
) -> list[list[Any]]:
    """GET values for sheet!cells. Returns rows (header row included), or [] when the range is empty."""
    client = get_http_client()
    url = f"{_spreadsheet_path(config)}/values/{_range_path(config, cells)}"
    headers, params = _auth(config, access_token)
    r = await client.get(url, params=params, headers=headers)
    if r.status_code >= 400:
        _log_response_error("GET", url, r)
    r.raise_for_status()
    values = _json_object(r).get("values") or []
    if not isinstance(values, list):
        raise ValueError("Sheets API 'values' is not a list")
    return [row for row in values if isinstance(row, list)]


async def append_rows(
    config: SheetsConfig,
    access_token: str,
    rows: list[list[str]],
) -> dict[str, Any]:
    """POST values:append (requires OAuth). Returns the API response (updates summary)."""
    if not access_token:
        raise ValueError("Appending rows requires an OAuth access token")
    client = get_http_client()
    url = f"{_spreadsheet_path(config)}/values/{_range_path(config)}:append"
    params = {"valueInputOption": "USER_ENTERED", "insertDataOption": "INSERT_ROWS"}
    r = await client.post(
        url,
        params=params,
        headers={"Authorization": f"Bearer {access_token}"},
        json={"values": rows},
    )
    if r.status_code >= 400:
        _log_response_error("POST", url, r)
    r.raise_for_status()
    return _json_object(r)


async def get_spreadsheet(config: SheetsConfig, access_token: str | None = None) -> dict[str, Any]:
    """GET spreadsheet metadata (sheet tabs and their titles)."""
    client = get_http_client()
    url = _spreadsheet_path(config)
    headers, params = _auth(config, access_token)
    params["fields"] = "sheets.properties.title"
    r = await client.get(url, params=params, headers=headers)
    if r.status_code >= 400:
        _log_response_error("GET", url, r)
    r.raise_for_status()
    return _json_object(r)


def sheet_titles(metadata: dict[str, Any]) -> list[str]:
    out: list[str] = []
    for sheet in metadata.get("sheets") or []:
        if isinstance(sheet, dict):
            title = (sheet.get("properties") or {}).get("title")
            if isinstance(title, str):
                out.append(title)
    return out
