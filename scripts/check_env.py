"""Pre-flight check for a sheetstore deployment.

Run it before (re)starting the service, or from cron, to catch:

* settings that do not load from the ``.env`` file (missing spreadsheet id,
  no service-account key source, out-of-range retry values);
* a service-account private key that cannot sign, typically a key pasted
  into ``.env`` with its newlines mangled;
* unexpected edits to ``.env`` since the last recorded baseline.

Nothing here talks to Google; the key check signs a throwaway assertion
locally.

Example::

    python -m scripts.check_env record --env-file /srv/sheetstore/.env \
        --hash-file /srv/sheetstore/.env.sha256
    python -m scripts.check_env verify --env-file /srv/sheetstore/.env \
        --hash-file /srv/sheetstore/.env.sha256
"""

from __future__ import annotations

import argparse
import hashlib
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from sheetstore.clients.service_account import AssertionSigner, ServiceAccountKey
from sheetstore.core.config import AppSettings, load_settings
from sheetstore.core.errors import CredentialError

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_CHECKSUM_ERROR = 3
EXIT_CREDENTIAL_ERROR = 4
EXIT_RUNTIME_ERROR = 5


def _fingerprint(env_file: Path) -> str:
    return hashlib.sha256(env_file.read_bytes()).hexdigest()


def _load(env_file: Path) -> AppSettings:
    if not env_file.is_file():
        raise FileNotFoundError(f"No environment file at {env_file}.")
    return load_settings(env_file)


def _check_signing_key(settings: AppSettings) -> str:
    """Sign one assertion locally and return the service-account e-mail."""
    key = ServiceAccountKey.from_settings(settings.service_account)
    AssertionSigner(
        key, lifetime_seconds=settings.token.assertion_lifetime_seconds
    ).sign()
    return key.client_email


def _compare_baseline(env_file: Path, hash_file: Path) -> int:
    if not hash_file.is_file():
        print(
            f"No baseline at {hash_file}; run 'record' first.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    recorded = hash_file.read_text(encoding="utf-8").strip()
    current = _fingerprint(env_file)
    if recorded != current:
        print(
            f"{env_file} changed since the baseline was recorded "
            f"(baseline {recorded[:12]}, now {current[:12]}). "
            "Review the edit before restarting the service.",
            file=sys.stderr,
        )
        return EXIT_CHECKSUM_ERROR

    print(f"{env_file} matches its baseline.")
    return EXIT_OK


def _write_baseline(env_file: Path, hash_file: Path) -> int:
    fingerprint = _fingerprint(env_file)
    hash_file.write_text(fingerprint + "\n", encoding="utf-8")
    print(f"Baseline {fingerprint[:12]} written to {hash_file}.")
    return EXIT_OK


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="check_env",
        description="Validate sheetstore settings and signing key; track .env drift.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    check = commands.add_parser("check", help="Validate settings and the signing key.")
    record = commands.add_parser(
        "record", help="Validate, then store the .env fingerprint as the baseline."
    )
    verify = commands.add_parser(
        "verify", help="Validate, then compare the .env fingerprint with the baseline."
    )

    for command in (check, record, verify):
        command.add_argument(
            "--env-file",
            type=Path,
            default=Path(".env"),
            help="Environment file to validate (default: ./.env).",
        )
    for command in (record, verify):
        command.add_argument(
            "--hash-file",
            type=Path,
            required=True,
            help="File holding the recorded SHA256 fingerprint.",
        )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = _parser().parse_args(argv)
    env_file: Path = args.env_file

    try:
        settings = _load(env_file)
        client_email = _check_signing_key(settings)
    except FileNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except ValidationError as exc:
        print(
            f"Settings in {env_file} are invalid:\n{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR
    except CredentialError as exc:
        print(f"Service-account key cannot sign: {exc}", file=sys.stderr)
        return EXIT_CREDENTIAL_ERROR
    except Exception as exc:  # pylint: disable=broad-except
        print(f"Unexpected error while validating {env_file}: {exc}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    print(
        f"Settings OK for spreadsheet {settings.sheets.spreadsheet_id} "
        f"as {client_email}."
    )
    if args.command == "record":
        return _write_baseline(env_file, args.hash_file)
    if args.command == "verify":
        return _compare_baseline(env_file, args.hash_file)
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
