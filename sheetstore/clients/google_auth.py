"""
Google OAuth token endpoint client.

Redeems signed service-account assertions (RFC 7523 jwt-bearer grant) for
short-lived bearer tokens.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Tuple

import httpx

from sheetstore.core.errors import AuthenticationError
from sheetstore.utils.http import RetryConfig, Sleep, request_with_retry

logger = logging.getLogger(__name__)

JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"


class GoogleTokenClient:
    """Exchange signed assertions at the token endpoint."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        token_uri: str,
        retry_config: RetryConfig | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._http = http_client
        self._token_uri = token_uri
        self._retry = retry_config or RetryConfig()
        self._sleep = sleep

    async def exchange_assertion(self, assertion: str) -> Tuple[str, int]:
        """
        Exchange an assertion for an access token.

        Returns a tuple of (access_token, expires_in_seconds).
        """
        payload = {"grant_type": JWT_BEARER_GRANT, "assertion": assertion}
        logger.debug("Exchanging service-account assertion at %s", self._token_uri)
        try:
            response = await request_with_retry(
                self._http.post,
                self._token_uri,
                data=payload,
                headers={"Cache-Control": "no-store"},
                retry_config=self._retry,
                sleep=self._sleep,
            )
        except httpx.HTTPError as exc:
            raise AuthenticationError(
                f"Token endpoint unreachable: {exc.__class__.__name__}"
            ) from exc

        if response.status_code != httpx.codes.OK:
            raise AuthenticationError(
                f"Token exchange failed ({response.status_code}): "
                f"{_error_description(response)}"
            )

        try:
            token_payload = response.json()
        except ValueError as exc:
            raise AuthenticationError("Token endpoint returned invalid JSON.") from exc

        access_token = token_payload.get("access_token")
        expires_in = token_payload.get("expires_in")
        if not access_token or not expires_in:
            raise AuthenticationError("Incomplete token payload returned from Google.")

        return access_token, int(expires_in)


def _error_description(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("error_description") or body.get("error") or body)
    return str(body)


__all__ = ["GoogleTokenClient", "JWT_BEARER_GRANT"]
