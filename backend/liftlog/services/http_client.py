"""
Shared httpx.AsyncClient bound to the Google Sheets API v4 base URL.
Created in app lifespan; sheets_client issues requests relative to the base URL.
"""
from __future__ import annotations

import httpx

from liftlog.config import settings

_sheets_http: httpx.AsyncClient | None = None


def get_http_client() -> httpx.AsyncClient:
    """Return the shared Sheets client. Must be initialized via init_http_client() first."""
    if _sheets_http is None:
        raise RuntimeError("Sheets HTTP client not initialized; ensure app lifespan has run init_http_client().")
    return _sheets_http


def init_http_client(
    timeout: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
    base_url: str | None = None,
) -> httpx.AsyncClient:
    """
    Create the shared client once. base_url defaults to settings.sheets_api_base_url;
    tests pass an httpx.MockTransport in place of the network.
    """
    global _sheets_http
    if _sheets_http is not None:
        return _sheets_http
    root = (base_url or settings.sheets_api_base_url).rstrip("/") + "/"
    _sheets_http = httpx.AsyncClient(
        base_url=root,
        timeout=httpx.Timeout(timeout, connect=min(timeout, 10.0)),
        headers={"Accept": "application/json"},
        transport=transport,
    )
    return _sheets_http


async def close_http_client() -> None:
    """Close the shared client. Call from app lifespan shutdown."""
    global _sheets_http
    if _sheets_http is not None:
        await _sheets_http.aclose()
        _sheets_http = None
