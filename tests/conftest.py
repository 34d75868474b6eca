"""Pytest configuration shared across the suite."""

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import json
from types import SimpleNamespace
from typing import Any, Dict, List, NamedTuple, Optional, Tuple, Union

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from sheetstore.clients import (
    AssertionSigner,
    GoogleSheetsClient,
    GoogleTokenClient,
    ServiceAccountKey,
)
from sheetstore.core.config import SheetsSettings
from sheetstore.schemas.tables import TableRegistry
from sheetstore.services import (
    AccessTokenManager,
    BatchReader,
    MutationWriter,
    RowLocator,
    SchemaMapper,
    WorkbookService,
)
from sheetstore.utils.a1 import parse_bounds, quote_title, split_range
from sheetstore.utils.http import RetryConfig

TOKEN_URI = "https://oauth2.test/token"
API_BASE_URL = "https://sheets.test/v4/spreadsheets"
SPREADSHEET_ID = "sheet-1"
CLIENT_EMAIL = "robot@test-project.iam.gserviceaccount.com"

_API_PREFIX = f"/v4/spreadsheets/{SPREADSHEET_ID}/"


def _seed_tabs() -> Dict[str, List[List[str]]]:
    return {
        "Demandas": [
            ["Código", "Nome", "CNPJ", "Regime"],
            ["T-1", "Alpha Ltda", "11.111.111/0001-11", "Simples", "", "Ana", "CONCLUÍDO"],
            ["T-2", "Beta SA", "", "Presumido"],
            ["", "Linha sem código"],
            ["T-3", "Gamma ME"],
        ],
        "Colaboradores": [
            ["ID", "Nome", "Departamento", "Departamento (alt)", "E-mail"],
            ["C-1", "Ana", "Fiscal", "", "ana@example.com"],
            ["C-2", "Bruno", "bruno@example.com", "Contábil", "bruno@example.com"],
            ["C-3", "", "ECD"],
        ],
        "LOG": [
            ["ID", "Data", "Descrição", "Usuário", "Demanda"],
            ["L-1", "01/01/2025, 10:00:00", "Status alterado", "Ana", "T-1"],
        ],
        "Comentarios": [
            ["ID", "Demanda", "Data", "Autor", "Texto"],
            ["K-1", "T-1", "01/01/2025, 10:00:00", "Ana", "Primeiro"],
            ["K-2", "T-2", "01/01/2025, 11:00:00", "", "Outro"],
            ["K-3", "T-1", "02/01/2025, 09:30:00", "Bruno", "Segundo"],
        ],
        "Detalhes": [
            ["ID", "Nome", "Descrição", "Checklist"],
            [
                "T-1",
                "Alpha Ltda",
                "Fechamento mensal",
                '[{"id": "c1", "text": "Conferir notas", "isDone": true}]',
            ],
        ],
        "Configurações": [
            ["ID", "Nome", "Configurações"],
            ["C-1", "Ana", '{"theme": "dark", "pinnedTasks": ["T-1"]}'],
        ],
        "Notificacao": [
            ["ID", "Destinatário", "Remetente", "Demanda", "Mensagem", "Lida", "Data"],
            ["N-1", "Ana", "Bruno", "T-1", "Veja a demanda", "FALSE", "01/01/2025, 10:00:00"],
            ["N-2", "Bruno", "Ana", "", "Oi", "TRUE", "01/01/2025, 10:05:00"],
        ],
    }


class Call(NamedTuple):
    op: str
    ranges: Tuple[str, ...]


class FakeSheetsBackend:
    """In-memory workbook speaking the Sheets values REST dialect."""

    def __init__(self, tabs: Optional[Dict[str, List[List[str]]]] = None) -> None:
        self.tabs = {
            title: [list(row) for row in rows]
            for title, rows in (tabs if tabs is not None else _seed_tabs()).items()
        }
        self.calls: List[Call] = []
        self.token_requests: List[Dict[str, str]] = []
        self.bearer_tokens: List[str] = []
        self.revoked_tokens: set[str] = set()
        self.reverse_batch = False
        self._failures: List[Union[int, Exception]] = []

    # Test controls ----------------------------------------------------------
    def fail_next(self, failure: Union[int, Exception], times: int = 1) -> None:
        """Answer the next Sheets calls with ``failure`` (status or exception)."""
        self._failures.extend([failure] * times)

    def insert_row(self, title: str, row: int, values: List[str]) -> None:
        self.tabs[title].insert(row - 1, list(values))

    def delete_row(self, title: str, row: int) -> None:
        del self.tabs[title][row - 1]

    def cell(self, title: str, column: int, row: int) -> str:
        rows = self.tabs[title]
        if row - 1 >= len(rows) or column >= len(rows[row - 1]):
            return ""
        return rows[row - 1][column]

    def ops(self) -> List[str]:
        return [call.op for call in self.calls]

    # Transport ----------------------------------------------------------------
    def handle(self, request: httpx.Request) -> httpx.Response:
        if str(request.url).startswith(TOKEN_URI):
            return self._token(request)

        token = request.headers.get("Authorization", "").removeprefix("Bearer ")
        self.bearer_tokens.append(token)
        if self._failures:
            failure = self._failures.pop(0)
            self.calls.append(Call("failed", ()))
            if isinstance(failure, Exception):
                raise failure
            return httpx.Response(
                failure, json={"error": {"code": failure, "message": "forced failure"}}
            )
        if token in self.revoked_tokens:
            self.calls.append(Call("unauthorized", ()))
            return httpx.Response(
                401, json={"error": {"code": 401, "message": "Invalid Credentials"}}
            )

        path = request.url.path
        assert path.startswith(_API_PREFIX), path
        resource = path[len(_API_PREFIX):]

        if resource == "values:batchGet":
            ranges = tuple(request.url.params.get_list("ranges"))
            self.calls.append(Call("batchGet", ranges))
            value_ranges = [self._read(range_) for range_ in ranges]
            if self.reverse_batch:
                value_ranges.reverse()
            return httpx.Response(
                200, json={"spreadsheetId": SPREADSHEET_ID, "valueRanges": value_ranges}
            )
        if resource == "values:batchUpdate":
            data = _json(request)["data"]
            self.calls.append(Call("batchUpdate", tuple(item["range"] for item in data)))
            for item in data:
                self._write(item["range"], item["values"])
            return httpx.Response(200, json={"totalUpdatedCells": len(data)})

        range_ = resource[len("values/"):]
        if range_.endswith(":append"):
            range_ = range_[: -len(":append")]
            self.calls.append(Call("append", (range_,)))
            return httpx.Response(200, json={"updates": self._append(range_, _json(request))})
        if range_.endswith(":clear"):
            range_ = range_[: -len(":clear")]
            self.calls.append(Call("clear", (range_,)))
            self._clear(range_)
            return httpx.Response(200, json={"clearedRange": range_})

        self.calls.append(Call("get", (range_,)))
        return httpx.Response(200, json=self._read(range_))

    def _token(self, request: httpx.Request) -> httpx.Response:
        form = dict(httpx.QueryParams(request.content.decode("utf-8")))
        self.token_requests.append(form)
        return httpx.Response(
            200,
            json={
                "access_token": f"token-{len(self.token_requests)}",
                "expires_in": 3600,
                "token_type": "Bearer",
            },
        )

    # Cell storage ---------------------------------------------------------------
    def _read(self, range_: str) -> Dict[str, Any]:
        title, cells = split_range(range_)
        rows = self.tabs.setdefault(title, [])
        bounds = parse_bounds(cells)
        first_row = bounds.first_row or 1
        last_row = bounds.last_row or len(rows)
        last_column = None if bounds.last_column is None else bounds.last_column + 1

        values = []
        for row in rows[first_row - 1:last_row]:
            selected = list(row[bounds.first_column:last_column])
            while selected and selected[-1] == "":
                selected.pop()
            values.append(selected)
        while values and not values[-1]:
            values.pop()

        payload: Dict[str, Any] = {
            "range": f"{quote_title(title)}!{cells}",
            "majorDimension": "ROWS",
        }
        if values:
            payload["values"] = values
        return payload

    def _set(self, title: str, column: int, row: int, value: Any) -> None:
        rows = self.tabs.setdefault(title, [])
        while len(rows) < row:
            rows.append([])
        target = rows[row - 1]
        while len(target) <= column:
            target.append("")
        target[column] = "" if value is None else str(value)

    def _write(self, range_: str, values: List[List[Any]]) -> None:
        title, cells = split_range(range_)
        bounds = parse_bounds(cells)
        for row_offset, row_values in enumerate(values):
            for column_offset, value in enumerate(row_values):
                self._set(
                    title,
                    bounds.first_column + column_offset,
                    (bounds.first_row or 1) + row_offset,
                    value,
                )

    def _append(self, range_: str, body: Dict[str, Any]) -> Dict[str, Any]:
        title, cells = split_range(range_)
        bounds = parse_bounds(cells)
        rows = self.tabs.setdefault(title, [])
        last_filled = 0
        for index, row in enumerate(rows, start=1):
            if any(str(value).strip() for value in row):
                last_filled = index
        target = max(last_filled + 1, bounds.first_row or 1)
        rows[:] = rows[: target - 1]
        for offset, row_values in enumerate(body["values"]):
            for column_offset, value in enumerate(row_values):
                self._set(title, bounds.first_column + column_offset, target + offset, value)
        return {
            "updatedRange": f"{quote_title(title)}!A{target}",
            "updatedRows": len(body["values"]),
        }

    def _clear(self, range_: str) -> None:
        title, cells = split_range(range_)
        bounds = parse_bounds(cells)
        rows = self.tabs.get(title, [])
        first_row = bounds.first_row or 1
        last_row = bounds.last_row or len(rows)
        for row in rows[first_row - 1:last_row]:
            last_column = len(row) if bounds.last_column is None else bounds.last_column + 1
            for column in range(bounds.first_column, min(last_column, len(row))):
                row[column] = ""


def _json(request: httpx.Request) -> Dict[str, Any]:
    return json.loads(request.content.decode("utf-8"))


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_private_key: rsa.RSAPrivateKey) -> str:
    return rsa_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")


@pytest.fixture(scope="session")
def public_key_pem(rsa_private_key: rsa.RSAPrivateKey) -> str:
    return rsa_private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("utf-8")


@pytest.fixture
def service_account_key(private_key_pem: str) -> ServiceAccountKey:
    return ServiceAccountKey.from_info(
        {
            "client_email": CLIENT_EMAIL,
            "private_key": private_key_pem,
            "private_key_id": "key-1",
            "token_uri": TOKEN_URI,
        }
    )


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def backend() -> FakeSheetsBackend:
    return FakeSheetsBackend()


@pytest.fixture
def tables() -> TableRegistry:
    return TableRegistry.from_ranges(
        SheetsSettings(spreadsheet_id=SPREADSHEET_ID).table_ranges()
    )


@pytest.fixture
def stack(
    backend: FakeSheetsBackend,
    tables: TableRegistry,
    service_account_key: ServiceAccountKey,
    sleeps: List[float],
) -> SimpleNamespace:
    """Real client stack wired to the in-memory workbook."""

    async def record_sleep(delay: float) -> None:
        sleeps.append(delay)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(backend.handle))
    retry = RetryConfig(attempts=3, backoff_seconds=2.0)
    tokens = AccessTokenManager(
        AssertionSigner(service_account_key),
        GoogleTokenClient(
            http_client, token_uri=TOKEN_URI, retry_config=retry, sleep=record_sleep
        ),
    )
    sheets = GoogleSheetsClient(
        http_client,
        tokens,
        spreadsheet_id=SPREADSHEET_ID,
        base_url=API_BASE_URL,
        retry_config=retry,
        sleep=record_sleep,
    )
    mapper = SchemaMapper()
    locator = RowLocator(sheets, tables)
    reader = BatchReader(sheets, tables, mapper)
    writer = MutationWriter(sheets, tables, locator, mapper)
    return SimpleNamespace(
        backend=backend,
        http_client=http_client,
        tokens=tokens,
        sheets=sheets,
        tables=tables,
        locator=locator,
        reader=reader,
        writer=writer,
        workbook=WorkbookService(reader, writer),
    )
