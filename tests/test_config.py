try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest
from pydantic import ValidationError

from sheetstore.core.config import ServiceAccountSettings, TokenSettings, load_settings


def test_every_group_reads_the_same_env_file(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("SHEETSTORE_SHEET_SPREADSHEET_ID", raising=False)
    env_file = tmp_path / "custom.env"
    env_file.write_text(
        "\n".join(
            [
                "SHEETSTORE_LOG_LEVEL=debug",
                "SHEETSTORE_SHEET_SPREADSHEET_ID=from-file",
                "SHEETSTORE_SHEET_RANGE_LOG=Historico!A:E",
                "SHEETSTORE_RETRY_ATTEMPTS=5",
                "SHEETSTORE_TOKEN_SAFETY_MARGIN_SECONDS=120",
            ]
        )
        + "\n",
        encoding="utf-8",
    )

    settings = load_settings(env_file)

    assert settings.log_level == "DEBUG"
    assert settings.sheets.spreadsheet_id == "from-file"
    assert settings.sheets.table_ranges()["log"] == "Historico!A:E"
    assert settings.sheets.table_ranges()["tasks"] == "Demandas!A2:AB"
    assert settings.retry.attempts == 5
    assert settings.retry.backoff_seconds == 2.0
    assert settings.token.safety_margin_seconds == 120


def test_spreadsheet_id_is_required(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("SHEETSTORE_SHEET_SPREADSHEET_ID", raising=False)

    with pytest.raises(ValidationError):
        load_settings(tmp_path / "absent.env")


def test_service_account_needs_key_file_or_inline_key(monkeypatch) -> None:
    for key in ("SHEETSTORE_GOOGLE_CLIENT_EMAIL", "SHEETSTORE_GOOGLE_PRIVATE_KEY"):
        monkeypatch.delenv(key, raising=False)

    with pytest.raises(ValidationError):
        ServiceAccountSettings(_env_file=None)

    assert ServiceAccountSettings(_env_file=None, key_file="/etc/key.json").key_file


def test_assertion_lifetime_is_capped_at_one_hour() -> None:
    with pytest.raises(ValidationError):
        TokenSettings(_env_file=None, assertion_lifetime_seconds=7200)
