"""
Pydantic models for HTTP request payloads.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from sheetstore.schemas.entries import ChecklistItem, UserSettings


class FieldUpdateRequest(BaseModel):
    """Single-field edit of an existing record."""

    field: str = Field(..., min_length=1, description="Logical field name.")
    value: str = Field(..., description="New cell value.")
    audit_info: Optional[str] = Field(
        None,
        description="Editor stamp (name and time) written to the audit column.",
    )


class AppendRowRequest(BaseModel):
    """Row appended to an append-only table, by field name or by position."""

    values: Union[Dict[str, Any], List[Any]]


class LogChangeRequest(BaseModel):
    description: str = Field(..., min_length=1)
    user_name: str = Field(..., min_length=1)
    task_id: Optional[str] = None


class CommentCreateRequest(BaseModel):
    author: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1)


class CommentEditRequest(BaseModel):
    text: str = Field(..., min_length=1)


class NotificationCreateRequest(BaseModel):
    recipient: str = Field(..., min_length=1)
    sender: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    task_id: str = ""


class TaskDetailSaveRequest(BaseModel):
    name: str = ""
    description: str = ""
    checklist: List[ChecklistItem] = Field(default_factory=list)


class UserSettingsSaveRequest(BaseModel):
    user_name: str = Field(..., min_length=1)
    settings: UserSettings


__all__ = [
    "AppendRowRequest",
    "CommentCreateRequest",
    "CommentEditRequest",
    "FieldUpdateRequest",
    "LogChangeRequest",
    "NotificationCreateRequest",
    "TaskDetailSaveRequest",
    "UserSettingsSaveRequest",
]
