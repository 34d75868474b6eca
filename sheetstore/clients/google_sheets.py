"""Google Sheets values API client.

Talks to the range-addressed REST endpoints directly with ``httpx`` so every
call goes through :func:`request_with_retry` and carries a bearer token from
the :class:`AccessTokenManager`. Failures leave this module as typed
exceptions from :mod:`sheetstore.core.errors`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, TYPE_CHECKING
from urllib.parse import quote

import httpx

from sheetstore.core.errors import (
    AuthenticationError,
    SheetsRequestError,
    TransientTransportError,
)
from sheetstore.utils.http import RetryConfig, Sleep, is_retryable_status, request_with_retry

if TYPE_CHECKING:  # pragma: no cover - type hints only
    from sheetstore.services.access_tokens import AccessTokenManager

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://sheets.googleapis.com/v4/spreadsheets"


def _encode_range(range_: str) -> str:
    return quote(range_, safe="!:'()*")


class GoogleSheetsClient:
    """Read, append, update and clear cell ranges of one spreadsheet."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        token_manager: "AccessTokenManager",
        *,
        spreadsheet_id: str,
        base_url: str = DEFAULT_API_BASE_URL,
        retry_config: RetryConfig | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if not spreadsheet_id:
            raise ValueError("spreadsheet_id must be configured.")
        self._http = http_client
        self._tokens = token_manager
        self._spreadsheet_id = spreadsheet_id
        self._base_url = base_url.rstrip("/")
        self._retry = retry_config or RetryConfig()
        self._sleep = sleep

    async def get_values(self, range_: str) -> List[List[Any]]:
        """Return the rows of ``range_``; an empty range yields ``[]``."""
        payload = await self._request(
            "GET",
            f"values/{_encode_range(range_)}",
            params={"majorDimension": "ROWS"},
        )
        return payload.get("values") or []

    async def batch_get(self, ranges: Sequence[str]) -> List[Dict[str, Any]]:
        """Read several ranges in one round trip and return the value ranges."""
        params = [("ranges", range_) for range_ in ranges]
        params.append(("majorDimension", "ROWS"))
        payload = await self._request("GET", "values:batchGet", params=params)
        return payload.get("valueRanges") or []

    async def append_values(
        self, range_: str, rows: Iterable[Sequence[Any]]
    ) -> Dict[str, Any]:
        """Append ``rows`` after the last populated row of ``range_``."""
        payload = await self._request(
            "POST",
            f"values/{_encode_range(range_)}:append",
            params={
                "valueInputOption": "USER_ENTERED",
                "insertDataOption": "INSERT_ROWS",
            },
            json={"values": [list(row) for row in rows]},
        )
        return payload.get("updates", {})

    async def batch_update_values(self, data: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Write several explicit ranges in a single call."""
        return await self._request(
            "POST",
            "values:batchUpdate",
            json={"valueInputOption": "USER_ENTERED", "data": data},
        )

    async def clear_values(self, range_: str) -> Dict[str, Any]:
        """Blank the cells of ``range_`` without removing rows."""
        return await self._request(
            "POST",
            f"values/{_encode_range(range_)}:clear",
            json={},
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Any = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        url = f"{self._base_url}/{self._spreadsheet_id}/{path}"
        response = await self._send(method, url, params=params, json=json)
        if response.status_code == httpx.codes.UNAUTHORIZED:
            # The backend may revoke a token before its advertised expiry.
            self._tokens.invalidate()
            response = await self._send(method, url, params=params, json=json)
        return self._parse(method, path, response)

    async def _send(
        self, method: str, url: str, *, params: Any, json: Optional[Dict[str, Any]]
    ) -> httpx.Response:
        token = await self._tokens.get_access_token()
        headers = {"Authorization": f"Bearer {token}", "Cache-Control": "no-store"}
        try:
            return await request_with_retry(
                self._http.request,
                method,
                url,
                params=params,
                json=json,
                headers=headers,
                retry_config=self._retry,
                sleep=self._sleep,
            )
        except httpx.TransportError as exc:
            raise TransientTransportError(
                f"Network failure calling the Sheets API: {exc.__class__.__name__}"
            ) from exc

    @staticmethod
    def _parse(method: str, path: str, response: httpx.Response) -> Dict[str, Any]:
        status = response.status_code
        if response.is_success:
            if not response.content:
                return {}
            return response.json()

        message = _api_error_message(response)
        logger.error("Sheets API %s %s failed (%d): %s", method, path, status, message)
        if is_retryable_status(status):
            raise TransientTransportError(
                f"Sheets API still failing after retries ({status}): {message}",
                status_code=status,
            )
        if status == httpx.codes.UNAUTHORIZED:
            raise AuthenticationError(f"Sheets API rejected the access token: {message}")
        raise SheetsRequestError(
            f"Sheets API rejected the request ({status}): {message}",
            status_code=status,
        )


def _api_error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return str(error.get("message") or error.get("status") or error)
    return str(body)


__all__ = ["DEFAULT_API_BASE_URL", "GoogleSheetsClient"]
