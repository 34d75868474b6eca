"""Public schema exports."""

from .entries import (
    ChecklistItem,
    CommentEntry,
    Department,
    LogEntry,
    NotificationEntry,
    NotificationPreferences,
    TaskDetail,
    UserSettings,
)
from .records import DomainRecord
from .requests import (
    AppendRowRequest,
    CommentCreateRequest,
    CommentEditRequest,
    FieldUpdateRequest,
    LogChangeRequest,
    NotificationCreateRequest,
    TaskDetailSaveRequest,
    UserSettingsSaveRequest,
)
from .tables import TableDescriptor, TableRegistry

__all__ = [
    "AppendRowRequest",
    "ChecklistItem",
    "CommentCreateRequest",
    "CommentEditRequest",
    "CommentEntry",
    "Department",
    "DomainRecord",
    "FieldUpdateRequest",
    "LogChangeRequest",
    "LogEntry",
    "NotificationCreateRequest",
    "NotificationEntry",
    "NotificationPreferences",
    "TableDescriptor",
    "TableRegistry",
    "TaskDetail",
    "TaskDetailSaveRequest",
    "UserSettings",
    "UserSettingsSaveRequest",
]
