"""
Pydantic models for the auxiliary tables: log, comments, task details,
user settings and notifications.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def new_entry_id() -> str:
    """Generate an identifier for a freshly appended row."""
    return uuid4().hex


class Department(str, Enum):
    TODOS = "Todos"
    FISCAL = "Fiscal"
    CONTABIL = "Contábil"
    LUCRO_REINF = "Distribuição de Lucro/EFD-Reinf"
    ECD = "ECD"
    ECF = "ECF"


class LogEntry(BaseModel):
    """Audit trail line appended to the log table."""

    id: str = Field(default_factory=new_entry_id)
    timestamp: str
    description: str
    user: str
    task_id: str = ""


class CommentEntry(BaseModel):
    """Comment attached to a task."""

    id: str = Field(default_factory=new_entry_id)
    task_id: str
    timestamp: str
    author: str = "Anônimo"
    text: str


class NotificationEntry(BaseModel):
    """Notification addressed to one collaborator."""

    id: str = Field(default_factory=new_entry_id)
    recipient: str
    sender: str
    task_id: str = ""
    message: str
    is_read: bool = False
    timestamp: str


class ChecklistItem(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=new_entry_id)
    text: str
    is_done: bool = False


class TaskDetail(BaseModel):
    """Free-form description and checklist kept per task."""

    task_id: str
    name: str = ""
    description: str = ""
    checklist: List[ChecklistItem] = Field(default_factory=list)


class NotificationPreferences(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    mentions: bool = True
    my_tasks: bool = True
    general: bool = True


class UserSettings(BaseModel):
    """Per-user dashboard preferences, stored as JSON in the settings table.

    Keys are serialised in camelCase so rows written by the web dashboard
    keep decoding.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    density: Literal["comfortable", "compact"] = "comfortable"
    auto_refresh: bool = True
    reduce_motion: bool = False
    default_department: Department = Department.TODOS
    default_year: Optional[str] = None
    default_tab: Optional[
        Literal["my_day", "my_obligations", "kanban", "reports", "team", "settings"]
    ] = None
    enable_notifications: bool = True
    notification_preferences: NotificationPreferences = Field(
        default_factory=NotificationPreferences
    )
    theme: Literal["light", "dark"] = "light"
    admin_mode: bool = False
    pinned_tasks: List[str] = Field(default_factory=list)
    read_deadline_notifications: List[str] = Field(default_factory=list)


__all__ = [
    "ChecklistItem",
    "CommentEntry",
    "Department",
    "LogEntry",
    "NotificationEntry",
    "NotificationPreferences",
    "TaskDetail",
    "UserSettings",
    "new_entry_id",
]
