"""
Dashboard-facing operations on the spreadsheet workbook.

``WorkbookService`` is what the dashboard layer talks to. It exposes the
generic table operations (bulk read, field update, append, soft delete) and
the task-centric helpers built on them: audit log, comments, task details,
user settings and notifications.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from pydantic import ValidationError

from sheetstore.schemas.entries import (
    ChecklistItem,
    CommentEntry,
    LogEntry,
    NotificationEntry,
    TaskDetail,
    UserSettings,
)
from sheetstore.schemas.records import DomainRecord
from sheetstore.schemas.tables import (
    COLLABORATORS,
    COMMENTS,
    DETAIL,
    LOG,
    NOTIFICATIONS,
    SETTINGS,
    TASKS,
)
from sheetstore.services.batch_reader import BatchReader
from sheetstore.services.mutation_writer import MutationWriter, RowValues

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%d/%m/%Y, %H:%M:%S"
DASHBOARD_TABLES = (TASKS, COLLABORATORS, LOG, COMMENTS)


class WorkbookService:
    """Coordinate reads and writes for the obligations dashboard."""

    def __init__(
        self,
        reader: BatchReader,
        writer: MutationWriter,
        *,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._now = now

    # Generic table operations -------------------------------------------
    async def fetch_all(self, table_names: Sequence[str]) -> Dict[str, List[DomainRecord]]:
        return await self._reader.fetch_all(table_names)

    async def update_field(
        self,
        table: str,
        primary_key: str,
        field: str,
        value: Any,
        audit_info: Optional[str] = None,
    ) -> None:
        await self._writer.update_field(
            table, primary_key, field, value, audit_info=audit_info
        )

    async def append_row(self, table: str, values: RowValues) -> None:
        await self._writer.append_row(table, values)

    async def clear_row(self, table: str, primary_key: str) -> None:
        await self._writer.clear_row(table, primary_key)

    async def load_dashboard(self) -> Dict[str, List[DomainRecord]]:
        """Tasks, collaborators, log and comments in a single round trip."""
        return await self._reader.fetch_all(DASHBOARD_TABLES)

    async def fetch_collaborators(self) -> List[DomainRecord]:
        return await self._reader.fetch_table(COLLABORATORS)

    # Audit log ------------------------------------------------------------
    async def fetch_logs(self) -> List[LogEntry]:
        records = await self._reader.fetch_table(LOG)
        return [LogEntry(**record.fields) for record in records]

    async def log_change(
        self, description: str, user_name: str, task_id: Optional[str] = None
    ) -> LogEntry:
        entry = LogEntry(
            timestamp=self._timestamp(),
            description=description,
            user=user_name,
            task_id=task_id or "",
        )
        await self._writer.append_row(LOG, entry.model_dump())
        return entry

    # Comments ---------------------------------------------------------------
    async def list_comments(self, task_id: str) -> List[CommentEntry]:
        """Comments of ``task_id``; blanked (deleted) rows are skipped."""
        records = await self._reader.fetch_table(COMMENTS)
        return [
            CommentEntry(**record.fields)
            for record in records
            if record["task_id"] == task_id and record["text"].strip()
        ]

    async def add_comment(self, task_id: str, author: str, text: str) -> CommentEntry:
        entry = CommentEntry(
            task_id=task_id,
            timestamp=self._timestamp(),
            author=author,
            text=text,
        )
        await self._writer.append_row(COMMENTS, entry.model_dump())
        return entry

    async def edit_comment(self, comment_id: str, text: str) -> None:
        await self._writer.update_field(COMMENTS, comment_id, "text", text)

    async def delete_comment(self, comment_id: str) -> None:
        await self._writer.clear_row(COMMENTS, comment_id)

    # Task details -------------------------------------------------------------
    async def get_task_detail(self, task_id: str) -> Optional[TaskDetail]:
        record = _find(await self._reader.fetch_table(DETAIL), task_id)
        if record is None:
            return None
        return TaskDetail(
            task_id=task_id,
            name=record["name"],
            description=record["description"],
            checklist=_decode_checklist(record["checklist"]),
        )

    async def save_task_detail(self, detail: TaskDetail) -> None:
        checklist = json.dumps(
            [item.model_dump(by_alias=True) for item in detail.checklist],
            ensure_ascii=False,
        )
        await self._writer.upsert_row(
            DETAIL,
            detail.task_id,
            {
                "name": detail.name,
                "description": detail.description,
                "checklist": checklist,
            },
        )

    # User settings --------------------------------------------------------------
    async def get_user_settings(self, user_id: str) -> Optional[UserSettings]:
        record = _find(await self._reader.fetch_table(SETTINGS), user_id)
        if record is None or not record["settings"].strip():
            return None
        try:
            return UserSettings.model_validate_json(record["settings"])
        except ValidationError:
            logger.warning("Settings JSON for user %r is malformed.", user_id)
            return None

    async def save_user_settings(
        self, user_id: str, user_name: str, settings: UserSettings
    ) -> None:
        await self._writer.upsert_row(
            SETTINGS,
            user_id,
            {
                "user_name": user_name,
                "settings": settings.model_dump_json(by_alias=True),
            },
        )

    # Notifications ------------------------------------------------------------
    async def list_notifications(self, recipient: str) -> List[NotificationEntry]:
        records = await self._reader.fetch_table(NOTIFICATIONS)
        return [
            _notification_from(record)
            for record in records
            if record["recipient"] == recipient
        ]

    async def send_notification(
        self,
        *,
        recipient: str,
        sender: str,
        message: str,
        task_id: str = "",
    ) -> NotificationEntry:
        entry = NotificationEntry(
            recipient=recipient,
            sender=sender,
            task_id=task_id,
            message=message,
            timestamp=self._timestamp(),
        )
        await self._writer.append_row(NOTIFICATIONS, entry.model_dump())
        return entry

    async def mark_notification_read(self, notification_id: str) -> None:
        # Located by id like every other mutation; the table grows constantly.
        await self._writer.update_field(NOTIFICATIONS, notification_id, "is_read", True)

    def _timestamp(self) -> str:
        return self._now().strftime(TIMESTAMP_FORMAT)


def _find(records: List[DomainRecord], primary_key: str) -> Optional[DomainRecord]:
    wanted = primary_key.strip()
    for record in records:
        if record.primary_key.strip() == wanted:
            return record
    return None


def _decode_checklist(raw: str) -> List[ChecklistItem]:
    try:
        items = json.loads(raw or "[]")
    except ValueError:
        logger.warning("Checklist JSON is malformed; treating it as empty.")
        return []
    if not isinstance(items, list):
        return []
    try:
        return [ChecklistItem.model_validate(item) for item in items]
    except ValidationError:
        logger.warning("Checklist items are malformed; treating them as empty.")
        return []


def _notification_from(record: DomainRecord) -> NotificationEntry:
    fields: Mapping[str, str] = record.fields
    return NotificationEntry(
        id=fields["id"],
        recipient=fields["recipient"],
        sender=fields["sender"],
        task_id=fields["task_id"],
        message=fields["message"],
        is_read=fields["is_read"].strip().upper() == "TRUE",
        timestamp=fields["timestamp"],
    )


__all__ = ["DASHBOARD_TABLES", "TIMESTAMP_FORMAT", "WorkbookService"]
