"""
Service-account key loading and assertion signing.

The signer is pure compute: it never performs I/O and never retries. A key
that cannot be parsed raises :class:`CredentialError` as soon as the signer is
built, so a misconfigured deployment fails at startup rather than on the
first request.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

from google.auth import crypt, jwt

from sheetstore.core.config import SPREADSHEETS_SCOPE, ServiceAccountSettings
from sheetstore.core.errors import CredentialError

MAX_ASSERTION_LIFETIME = 3600


def _normalise_private_key(key: str) -> str:
    key = key.replace("\r\n", "\n").replace("\r", "\n")
    key = key.replace("\\n", "\n")
    if key and not key.endswith("\n"):
        key += "\n"
    return key


@dataclass(frozen=True)
class ServiceAccountKey:
    """Identity and key material of the service account."""

    client_email: str
    private_key: str
    token_uri: str
    scope: str = SPREADSHEETS_SCOPE
    private_key_id: Optional[str] = None

    @classmethod
    def from_info(
        cls, info: Mapping[str, Any], *, scope: str = SPREADSHEETS_SCOPE
    ) -> "ServiceAccountKey":
        """Build a key from the JSON structure Google issues for service accounts."""
        client_email = str(info.get("client_email") or "").strip()
        private_key = _normalise_private_key(str(info.get("private_key") or ""))
        token_uri = str(info.get("token_uri") or "").strip()
        missing = [
            name
            for name, value in (
                ("client_email", client_email),
                ("private_key", private_key),
                ("token_uri", token_uri),
            )
            if not value
        ]
        if missing:
            raise CredentialError(
                f"Service account key is missing: {', '.join(missing)}."
            )
        return cls(
            client_email=client_email,
            private_key=private_key,
            token_uri=token_uri,
            scope=scope,
            private_key_id=info.get("private_key_id") or None,
        )

    @classmethod
    def from_file(
        cls, path: str | Path, *, scope: str = SPREADSHEETS_SCOPE
    ) -> "ServiceAccountKey":
        key_path = Path(path)
        try:
            payload = json.loads(key_path.read_text(encoding="utf-8-sig"))
        except OSError as exc:
            raise CredentialError(f"Cannot read key file {key_path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise CredentialError(
                f"Key file {key_path} is not valid JSON: {exc.msg}"
            ) from exc
        if not isinstance(payload, dict):
            raise CredentialError(f"Key file {key_path} must hold a JSON object.")
        return cls.from_info(payload, scope=scope)

    @classmethod
    def from_settings(cls, settings: ServiceAccountSettings) -> "ServiceAccountKey":
        if settings.key_file:
            return cls.from_file(settings.key_file, scope=settings.scope)
        return cls.from_info(
            {
                "client_email": settings.client_email,
                "private_key": settings.private_key,
                "private_key_id": settings.private_key_id,
                "token_uri": settings.token_uri,
            },
            scope=settings.scope,
        )


class AssertionSigner:
    """Produce RS256-signed JWT assertions for the jwt-bearer grant."""

    def __init__(
        self,
        key: ServiceAccountKey,
        *,
        lifetime_seconds: int = MAX_ASSERTION_LIFETIME,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not 0 < lifetime_seconds <= MAX_ASSERTION_LIFETIME:
            raise ValueError("Assertion lifetime must be within (0, 3600] seconds.")
        try:
            self._signer = crypt.RSASigner.from_string(
                key.private_key, key.private_key_id
            )
        except (ValueError, TypeError, IndexError) as exc:
            raise CredentialError(
                f"Private key for {key.client_email} could not be loaded."
            ) from exc
        self._key = key
        self._lifetime = lifetime_seconds
        self._clock = clock

    @property
    def key(self) -> ServiceAccountKey:
        return self._key

    def claims(self) -> dict[str, Any]:
        issued_at = int(self._clock())
        return {
            "iss": self._key.client_email,
            "scope": self._key.scope,
            "aud": self._key.token_uri,
            "iat": issued_at,
            "exp": issued_at + self._lifetime,
        }

    def sign(self) -> str:
        """Return a freshly signed assertion."""
        token = jwt.encode(self._signer, self.claims())
        return token.decode("utf-8") if isinstance(token, bytes) else token


__all__ = ["AssertionSigner", "MAX_ASSERTION_LIFETIME", "ServiceAccountKey"]
