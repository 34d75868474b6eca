try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import httpx
import pytest

from sheetstore.main import app

pytestmark = pytest.mark.anyio("asyncio")


@pytest.fixture()
def overrides(stack):
    from sheetstore import dependencies

    app.dependency_overrides.clear()
    app.dependency_overrides[dependencies.get_workbook_service] = lambda: stack.workbook

    yield stack

    app.dependency_overrides.clear()


@pytest.fixture()
async def client(overrides):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://testserver",
    ) as test_client:
        yield test_client


async def test_healthcheck(client):
    response = await client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "environment": "test"}


async def test_fetch_tables_returns_records_with_rows(client):
    response = await client.get("/api/tables", params=[("names", "tasks"), ("names", "log")])

    assert response.status_code == 200
    body = response.json()
    assert list(body) == ["tasks", "log"]
    first = body["tasks"][0]
    assert first["primary_key"] == "T-1"
    assert first["last_known_row"] == 2
    assert first["fields"]["status_contabil"] == "EM ABERTO"


async def test_update_field_writes_cell(overrides, client):
    response = await client.patch(
        "/api/tables/tasks/records/T-2",
        json={"field": "status_reinf", "value": "CONCLUÍDO", "audit_info": "Ana 04/03"},
    )

    assert response.status_code == 204
    assert overrides.backend.cell("Demandas", 16, 3) == "CONCLUÍDO"
    assert overrides.backend.cell("Demandas", 24, 3) == "Ana 04/03"


async def test_stale_record_maps_to_conflict(overrides, client):
    overrides.backend.delete_row("Demandas", 3)

    response = await client.patch(
        "/api/tables/tasks/records/T-2",
        json={"field": "status_fiscal", "value": "CONCLUÍDO"},
    )

    assert response.status_code == 409
    body = response.json()
    assert body["error"] == "stale_record"
    assert "refresh" in body["detail"].lower()


async def test_exhausted_retries_map_to_service_unavailable(overrides, client):
    overrides.backend.fail_next(503, times=3)

    response = await client.get("/api/tables", params={"names": "tasks"})

    assert response.status_code == 503
    assert response.json()["error"] == "temporarily_unavailable"


async def test_unknown_table_maps_to_unprocessable(client):
    response = await client.delete("/api/tables/invoices/records/1")

    assert response.status_code == 422
    assert response.json()["error"] == "unmapped_field"


async def test_rejected_request_maps_to_bad_gateway(overrides, client):
    overrides.backend.fail_next(403)

    response = await client.get("/api/log")

    assert response.status_code == 502
    assert response.json()["error"] == "spreadsheet_rejected"


async def test_append_row_by_field_name(overrides, client):
    response = await client.post(
        "/api/tables/comments/rows",
        json={"values": {"id": "K-9", "task_id": "T-3", "text": "Via API"}},
    )

    assert response.status_code == 201
    assert overrides.backend.tabs["Comentarios"][4][:5] == ["K-9", "T-3", "", "Anônimo", "Via API"]


async def test_soft_delete_then_reload(client):
    response = await client.delete("/api/comments/K-1")
    assert response.status_code == 204

    response = await client.get("/api/tasks/T-1/comments")
    assert [c["id"] for c in response.json()] == ["K-3"]


async def test_comment_create_and_edit(client):
    created = await client.post(
        "/api/tasks/T-3/comments", json={"author": "Ana", "text": "Documentos recebidos"}
    )
    assert created.status_code == 201
    comment_id = created.json()["id"]

    edited = await client.patch(f"/api/comments/{comment_id}", json={"text": "Conferido"})
    assert edited.status_code == 204

    listed = await client.get("/api/tasks/T-3/comments")
    assert [c["text"] for c in listed.json()] == ["Conferido"]


async def test_log_endpoints(client):
    created = await client.post(
        "/api/log",
        json={"description": "Prioridade alterada", "user_name": "Ana", "task_id": "T-1"},
    )
    assert created.status_code == 201

    listed = await client.get("/api/log")
    assert [entry["description"] for entry in listed.json()] == [
        "Status alterado",
        "Prioridade alterada",
    ]


async def test_task_detail_put_then_get(client):
    response = await client.put(
        "/api/tasks/T-3/detail",
        json={
            "name": "Gamma ME",
            "description": "Abertura",
            "checklist": [{"id": "a", "text": "Contrato social", "isDone": True}],
        },
    )
    assert response.status_code == 204

    detail = (await client.get("/api/tasks/T-3/detail")).json()
    assert detail["description"] == "Abertura"
    assert detail["checklist"][0]["text"] == "Contrato social"


async def test_user_settings_are_served_in_camel_case(client):
    response = await client.get("/api/users/C-1/settings")

    assert response.status_code == 200
    body = response.json()
    assert body["theme"] == "dark"
    assert body["pinnedTasks"] == ["T-1"]


async def test_user_settings_put(overrides, client):
    response = await client.put(
        "/api/users/C-2/settings",
        json={"user_name": "Bruno", "settings": {"theme": "dark", "adminMode": True}},
    )

    assert response.status_code == 204
    assert overrides.backend.tabs["Configurações"][2][:2] == ["C-2", "Bruno"]


async def test_notifications_endpoints(client):
    sent = await client.post(
        "/api/notifications",
        json={"recipient": "Bruno", "sender": "Ana", "message": "Revise a ECF"},
    )
    assert sent.status_code == 201
    notification_id = sent.json()["id"]

    marked = await client.post(f"/api/notifications/{notification_id}/read")
    assert marked.status_code == 204

    inbox = (await client.get("/api/notifications", params={"recipient": "Bruno"})).json()
    assert [(n["id"], n["is_read"]) for n in inbox] == [
        ("N-2", True),
        (notification_id, True),
    ]
