"""
FastAPI routes exposing the workbook to the dashboard.

Errors keep their meaning on the wire: a stale record is a 409 telling the
user to refresh, an exhausted retry budget is a 503 telling them to try
again.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import JSONResponse

from sheetstore.core.errors import (
    AuthenticationError,
    MappingError,
    RecordNotFoundError,
    SheetStoreError,
    SheetsRequestError,
    TransientTransportError,
)
from sheetstore.core.config import AppSettings
from sheetstore.dependencies import SettingsDependency, get_workbook_service
from sheetstore.schemas import (
    AppendRowRequest,
    CommentCreateRequest,
    CommentEditRequest,
    CommentEntry,
    FieldUpdateRequest,
    LogChangeRequest,
    LogEntry,
    NotificationCreateRequest,
    NotificationEntry,
    TaskDetail,
    TaskDetailSaveRequest,
    UserSettings,
    UserSettingsSaveRequest,
)
from sheetstore.services import WorkbookService

router = APIRouter()
logger = logging.getLogger(__name__)

Workbook = Annotated[WorkbookService, Depends(get_workbook_service)]


def error_response(exc: SheetStoreError) -> JSONResponse:
    """Translate a client error into a response the dashboard can act on."""
    if isinstance(exc, RecordNotFoundError):
        status, code = HTTPStatus.CONFLICT, "stale_record"
        message = "This record changed in the spreadsheet. Please refresh and try again."
    elif isinstance(exc, TransientTransportError):
        status, code = HTTPStatus.SERVICE_UNAVAILABLE, "temporarily_unavailable"
        message = "Temporary network issue while talking to the spreadsheet. Try again."
    elif isinstance(exc, MappingError):
        status, code = HTTPStatus.UNPROCESSABLE_ENTITY, "unmapped_field"
        message = str(exc)
    elif isinstance(exc, AuthenticationError):
        status, code = HTTPStatus.BAD_GATEWAY, "authentication_failed"
        message = "The spreadsheet service rejected our credentials."
    elif isinstance(exc, SheetsRequestError):
        status, code = HTTPStatus.BAD_GATEWAY, "spreadsheet_rejected"
        message = str(exc)
    else:
        status, code = HTTPStatus.INTERNAL_SERVER_ERROR, "spreadsheet_error"
        message = str(exc)
    return JSONResponse(
        status_code=status,
        content={"error": code, "detail": message},
    )


async def handle_sheetstore_error(request: Request, exc: SheetStoreError) -> JSONResponse:
    """Exception handler registered on the application."""
    logger.warning(
        "%s %s failed: %s: %s",
        request.method,
        request.url.path,
        exc.__class__.__name__,
        exc,
    )
    return error_response(exc)


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck(settings: AppSettings = SettingsDependency) -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok", "environment": settings.environment}


@router.get("/tables", status_code=HTTPStatus.OK)
async def fetch_tables(
    workbook: Workbook,
    names: Annotated[List[str], Query(min_length=1)],
) -> Dict[str, List[Dict[str, Any]]]:
    """Bulk-load several tables in one spreadsheet round trip."""
    tables = await workbook.fetch_all(names)
    return {
        name: [record.to_dict() for record in records]
        for name, records in tables.items()
    }


@router.patch("/tables/{table}/records/{key}", status_code=HTTPStatus.NO_CONTENT)
async def update_record_field(
    table: str, key: str, payload: FieldUpdateRequest, workbook: Workbook
) -> Response:
    await workbook.update_field(
        table, key, payload.field, payload.value, audit_info=payload.audit_info
    )
    return Response(status_code=HTTPStatus.NO_CONTENT)


@router.post("/tables/{table}/rows", status_code=HTTPStatus.CREATED)
async def append_table_row(
    table: str, payload: AppendRowRequest, workbook: Workbook
) -> dict:
    await workbook.append_row(table, payload.values)
    return {"status": "appended"}


@router.delete("/tables/{table}/records/{key}", status_code=HTTPStatus.NO_CONTENT)
async def clear_record(table: str, key: str, workbook: Workbook) -> Response:
    await workbook.clear_row(table, key)
    return Response(status_code=HTTPStatus.NO_CONTENT)


@router.get("/log", status_code=HTTPStatus.OK)
async def list_log(workbook: Workbook) -> List[LogEntry]:
    return await workbook.fetch_logs()


@router.post("/log", status_code=HTTPStatus.CREATED)
async def log_change(payload: LogChangeRequest, workbook: Workbook) -> LogEntry:
    return await workbook.log_change(
        payload.description, payload.user_name, task_id=payload.task_id
    )


@router.get("/tasks/{task_id}/comments", status_code=HTTPStatus.OK)
async def list_comments(task_id: str, workbook: Workbook) -> List[CommentEntry]:
    return await workbook.list_comments(task_id)


@router.post("/tasks/{task_id}/comments", status_code=HTTPStatus.CREATED)
async def add_comment(
    task_id: str, payload: CommentCreateRequest, workbook: Workbook
) -> CommentEntry:
    return await workbook.add_comment(task_id, payload.author, payload.text)


@router.patch("/comments/{comment_id}", status_code=HTTPStatus.NO_CONTENT)
async def edit_comment(
    comment_id: str, payload: CommentEditRequest, workbook: Workbook
) -> Response:
    await workbook.edit_comment(comment_id, payload.text)
    return Response(status_code=HTTPStatus.NO_CONTENT)


@router.delete("/comments/{comment_id}", status_code=HTTPStatus.NO_CONTENT)
async def delete_comment(comment_id: str, workbook: Workbook) -> Response:
    await workbook.delete_comment(comment_id)
    return Response(status_code=HTTPStatus.NO_CONTENT)


@router.get("/tasks/{task_id}/detail", status_code=HTTPStatus.OK)
async def get_task_detail(task_id: str, workbook: Workbook) -> Optional[TaskDetail]:
    return await workbook.get_task_detail(task_id)


@router.put("/tasks/{task_id}/detail", status_code=HTTPStatus.NO_CONTENT)
async def save_task_detail(
    task_id: str, payload: TaskDetailSaveRequest, workbook: Workbook
) -> Response:
    await workbook.save_task_detail(TaskDetail(task_id=task_id, **payload.model_dump()))
    return Response(status_code=HTTPStatus.NO_CONTENT)


@router.get("/users/{user_id}/settings", status_code=HTTPStatus.OK)
async def get_user_settings(user_id: str, workbook: Workbook) -> Optional[UserSettings]:
    return await workbook.get_user_settings(user_id)


@router.put("/users/{user_id}/settings", status_code=HTTPStatus.NO_CONTENT)
async def save_user_settings(
    user_id: str, payload: UserSettingsSaveRequest, workbook: Workbook
) -> Response:
    await workbook.save_user_settings(user_id, payload.user_name, payload.settings)
    return Response(status_code=HTTPStatus.NO_CONTENT)


@router.get("/notifications", status_code=HTTPStatus.OK)
async def list_notifications(
    recipient: str, workbook: Workbook
) -> List[NotificationEntry]:
    return await workbook.list_notifications(recipient)


@router.post("/notifications", status_code=HTTPStatus.CREATED)
async def send_notification(
    payload: NotificationCreateRequest, workbook: Workbook
) -> NotificationEntry:
    return await workbook.send_notification(
        recipient=payload.recipient,
        sender=payload.sender,
        message=payload.message,
        task_id=payload.task_id,
    )


@router.post("/notifications/{notification_id}/read", status_code=HTTPStatus.NO_CONTENT)
async def mark_notification_read(notification_id: str, workbook: Workbook) -> Response:
    await workbook.mark_notification_read(notification_id)
    return Response(status_code=HTTPStatus.NO_CONTENT)


__all__ = ["error_response", "handle_sheetstore_error", "router"]
