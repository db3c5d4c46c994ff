from __future__ import annotations

import logging
from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"

    @classmethod
    def parse(cls, raw: Any, default: TaskStatus | None = None) -> TaskStatus | None:
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return default


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @classmethod
    def parse(cls, raw: Any, default: TaskPriority | None = None) -> TaskPriority | None:
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return default


PRIORITY_RANK: dict[TaskPriority, int] = {
    TaskPriority.URGENT: 4,
    TaskPriority.HIGH: 3,
    TaskPriority.MEDIUM: 2,
    TaskPriority.LOW: 1,
}


class SortKey(str, Enum):
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    COMPLETED_AT = "completed_at"
    DUE_DATE = "due_date"
    PRIORITY = "priority"
    TITLE = "title"
    STATUS = "status"
    ASSIGNED_TO = "assigned_to"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class GroupMode(str, Enum):
    LIST = "list"
    STATUS = "status"


DEFAULT_SORT_KEY = SortKey.CREATED_AT
DEFAULT_SORT_DIRECTION = SortDirection.DESC


def coerce_sort_key(raw: Any) -> SortKey:
    if isinstance(raw, SortKey):
        return raw
    try:
        return SortKey(str(raw).strip())
    except ValueError:
        logger.warning("Unknown sort key %r; falling back to %s", raw, DEFAULT_SORT_KEY.value)
        return DEFAULT_SORT_KEY


def coerce_sort_direction(raw: Any) -> SortDirection:
    if isinstance(raw, SortDirection):
        return raw
    try:
        return SortDirection(str(raw).strip().lower())
    except ValueError:
        return DEFAULT_SORT_DIRECTION


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


class Task(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    user_id: str | None = None
    title: str = ""
    description: str | None = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: str | None = None
    project_id: str | None = None
    tags: list[str] = Field(default_factory=list)
    assigned_to: str | None = None
    completed_at: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("title", mode="before")
    @classmethod
    def _title_as_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator(
        "user_id",
        "description",
        "due_date",
        "project_id",
        "assigned_to",
        "completed_at",
        "created_at",
        "updated_at",
        mode="before",
    )
    @classmethod
    def _optional_as_text(cls, value: Any) -> str | None:
        return _optional_text(value)

    @field_validator("status", mode="before")
    @classmethod
    def _lenient_status(cls, value: Any) -> TaskStatus:
        return TaskStatus.parse(value, TaskStatus.TODO)

    @field_validator("priority", mode="before")
    @classmethod
    def _lenient_priority(cls, value: Any) -> TaskPriority:
        return TaskPriority.parse(value, TaskPriority.MEDIUM)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_list(cls, value: Any) -> list[str]:
        if not value:
            return []
        if isinstance(value, str):
            return [value]
        return [str(tag) for tag in value if tag is not None]


class Project(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    user_id: str | None = None
    name: str = ""
    color: str = ""
    created_at: str | None = None
    updated_at: str | None = None

    @field_validator("id", "name", "color", mode="before")
    @classmethod
    def _as_text(cls, value: Any) -> str:
        return "" if value is None else str(value)


class TaskComment(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    task_id: str
    user_id: str | None = None
    content: str = ""
    created_at: str | None = None

    @field_validator("id", "task_id", "content", mode="before")
    @classmethod
    def _as_text(cls, value: Any) -> str:
        return "" if value is None else str(value)


class FilterSpec(BaseModel):
    """Independently optional constraints; ``None`` means "not set"."""

    model_config = ConfigDict(extra="ignore")

    search: str | None = None
    status: list[TaskStatus] | None = None
    priority: list[TaskPriority] | None = None
    project_id: str | None = None
    tags: list[str] | None = None
    due_date_from: str | None = None
    due_date_to: str | None = None
    assigned_to: str | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _known_statuses(cls, value: Any) -> list[TaskStatus] | None:
        if value is None:
            return None
        if isinstance(value, str):
            value = [value]
        parsed = [TaskStatus.parse(item) for item in value]
        return [item for item in parsed if item is not None]

    @field_validator("priority", mode="before")
    @classmethod
    def _known_priorities(cls, value: Any) -> list[TaskPriority] | None:
        if value is None:
            return None
        if isinstance(value, str):
            value = [value]
        parsed = [TaskPriority.parse(item) for item in value]
        return [item for item in parsed if item is not None]

    @field_validator("tags", mode="before")
    @classmethod
    def _tag_list(cls, value: Any) -> list[str] | None:
        if value is None:
            return None
        if isinstance(value, str):
            return [value]
        return [str(tag) for tag in value if tag is not None]

    @field_validator(
        "search", "project_id", "due_date_from", "due_date_to", "assigned_to", mode="before"
    )
    @classmethod
    def _blank_as_unset(cls, value: Any) -> str | None:
        text = _optional_text(value)
        return text if text else None

    def is_empty(self) -> bool:
        return not any(
            [
                self.search,
                self.status,
                self.priority,
                self.project_id,
                self.tags,
                self.due_date_from,
                self.due_date_to,
                self.assigned_to,
            ]
        )


class ViewState(BaseModel):
    filters: FilterSpec = Field(default_factory=FilterSpec)
    sort_by: SortKey = DEFAULT_SORT_KEY
    sort_order: SortDirection = DEFAULT_SORT_DIRECTION
    group_by: GroupMode = GroupMode.LIST

    @field_validator("sort_by", mode="before")
    @classmethod
    def _sort_key(cls, value: Any) -> SortKey:
        return coerce_sort_key(value)

    @field_validator("sort_order", mode="before")
    @classmethod
    def _sort_direction(cls, value: Any) -> SortDirection:
        return coerce_sort_direction(value)


class SavedView(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    user_id: str | None = None
    name: str
    filters: FilterSpec = Field(default_factory=FilterSpec)
    sort_by: SortKey = DEFAULT_SORT_KEY
    sort_order: SortDirection = DEFAULT_SORT_DIRECTION
    created_at: str | None = None

    @field_validator("id", "user_id", "created_at", mode="before")
    @classmethod
    def _optional_as_text(cls, value: Any) -> str | None:
        return _optional_text(value)

    @field_validator("filters", mode="before")
    @classmethod
    def _filters_or_empty(cls, value: Any) -> Any:
        return value or {}

    @field_validator("sort_by", mode="before")
    @classmethod
    def _sort_key(cls, value: Any) -> SortKey:
        if value is None:
            return DEFAULT_SORT_KEY
        return coerce_sort_key(value)

    @field_validator("sort_order", mode="before")
    @classmethod
    def _sort_direction(cls, value: Any) -> SortDirection:
        return coerce_sort_direction(value)
