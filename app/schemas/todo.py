"""Pydantic schemas for todo and calendar resources."""
from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, Field, ValidationInfo, field_validator

DueTime = Annotated[str, Field(pattern=r"^([01]\d|2[0-3]):[0-5]\d$")]
Tag = Annotated[str, Field(min_length=1, max_length=30)]
Initials = Annotated[str, Field(min_length=1, max_length=10)]


class TodoPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TodoStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TodoCategory(str, Enum):
    INSPECTION = "inspection"
    REPAIR = "repair"
    CLEANING = "cleaning"
    PHOTOGRAPHY = "photography"
    PAPERWORK = "paperwork"
    CUSTOMER_CONTACT = "customer-contact"
    PARTS_ORDER = "parts-order"
    SCHEDULING = "scheduling"
    FOLLOW_UP = "follow-up"
    GENERAL = "general"


class RecurringPattern(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class AttachmentType(str, Enum):
    IMAGE = "image"
    DOCUMENT = "document"
    LINK = "link"


class CalendarEventType(str, Enum):
    TODO = "todo"
    APPOINTMENT = "appointment"
    REMINDER = "reminder"
    DEADLINE = "deadline"


class TodoView(str, Enum):
    LIST = "list"
    KANBAN = "kanban"
    CALENDAR = "calendar"


class TodoWindow(str, Enum):
    """Date windows accepted by the todo listing."""

    OVERDUE = "overdue"
    TODAY = "today"
    UPCOMING = "upcoming"


TODO_CATEGORY_CONFIGS: dict[TodoCategory, dict[str, str]] = {
    TodoCategory.INSPECTION: {"label": "Inspection", "description": "Vehicle inspection tasks"},
    TodoCategory.REPAIR: {"label": "Repair", "description": "Mechanical and body repair tasks"},
    TodoCategory.CLEANING: {"label": "Cleaning", "description": "Detailing and cleaning tasks"},
    TodoCategory.PHOTOGRAPHY: {"label": "Photography", "description": "Vehicle photography tasks"},
    TodoCategory.PAPERWORK: {
        "label": "Paperwork",
        "description": "Documentation and administrative tasks",
    },
    TodoCategory.CUSTOMER_CONTACT: {
        "label": "Customer Contact",
        "description": "Customer communication tasks",
    },
    TodoCategory.PARTS_ORDER: {
        "label": "Parts Order",
        "description": "Parts ordering and procurement",
    },
    TodoCategory.SCHEDULING: {
        "label": "Scheduling",
        "description": "Appointment and scheduling tasks",
    },
    TodoCategory.FOLLOW_UP: {"label": "Follow-up", "description": "Follow-up and reminder tasks"},
    TodoCategory.GENERAL: {"label": "General", "description": "General tasks and reminders"},
}


class TodoAttachment(BaseModel):
    id: str
    name: str
    type: AttachmentType
    url: str
    size: int | None = Field(default=None, ge=0)


class TodoBase(BaseModel):
    description: str | None = None
    due_date: date | None = None
    due_time: DueTime | None = None
    vehicle_id: str | None = None
    vehicle_name: str | None = None
    notes: str | None = None
    is_recurring: bool | None = None
    recurring_pattern: RecurringPattern | None = None

    @field_validator("tags", check_fields=False)
    @classmethod
    def validate_tags(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        unique_tags: list[str] = []
        for tag in value:
            cleaned = tag.strip()
            if not cleaned:
                msg = "Tags must not be empty"
                raise ValueError(msg)
            if cleaned not in unique_tags:
                unique_tags.append(cleaned)
        return unique_tags


class TodoCreate(TodoBase):
    title: Annotated[str, Field(min_length=1, max_length=200)]
    priority: TodoPriority = TodoPriority.MEDIUM
    status: TodoStatus = TodoStatus.PENDING
    category: TodoCategory = TodoCategory.GENERAL
    assigned_to: Initials
    assigned_by: Initials
    tags: list[Tag] | None = Field(default=None, max_length=20)
    attachments: list[TodoAttachment] | None = None


class TodoUpdate(TodoBase):
    title: Annotated[str, Field(min_length=1, max_length=200)] | None = None
    priority: TodoPriority | None = None
    status: TodoStatus | None = None
    category: TodoCategory | None = None
    assigned_to: Initials | None = None
    assigned_by: Initials | None = None
    tags: list[Tag] | None = Field(default=None, max_length=20)
    attachments: list[TodoAttachment] | None = None
    completed_by: Initials | None = None

    @field_validator("title", "priority", "status", "category", "assigned_to", "assigned_by")
    @classmethod
    def reject_null(cls, value, info: ValidationInfo):
        if value is None:
            msg = f"{info.field_name} must not be null"
            raise ValueError(msg)
        return value


class Todo(TodoBase):
    """A todo as stored in the dealership's todos slot."""

    id: str
    title: str
    priority: TodoPriority
    status: TodoStatus
    category: TodoCategory
    assigned_to: str
    assigned_by: str
    tags: list[str] | None = None
    attachments: list[TodoAttachment] | None = None
    completed_at: datetime | None = None
    completed_by: str | None = None
    created_at: datetime
    updated_at: datetime


class TodoRead(Todo):
    is_overdue: bool = False
    due_label: str | None = None


class CalendarEvent(BaseModel):
    id: str
    title: str
    description: str | None = None
    start: str
    end: str
    all_day: bool
    type: CalendarEventType
    todo_id: str | None = None
    assigned_to: str | None = None
    vehicle_id: str | None = None
    vehicle_name: str | None = None
    location: str | None = None
    attendees: list[str] | None = None
    color: str | None = None
    created_by: str
    created_at: datetime
    updated_at: datetime


class TodoSettings(BaseModel):
    default_priority: TodoPriority = TodoPriority.MEDIUM
    default_category: TodoCategory = TodoCategory.GENERAL
    auto_assign_to_self: bool = True
    enable_notifications: bool = True
    show_completed_tasks: bool = False
    default_view: TodoView = TodoView.LIST
    reminder_minutes: int = Field(default=15, ge=0)


class TodoStats(BaseModel):
    total: int
    pending: int
    in_progress: int
    completed: int
    overdue: int
    by_category: dict[TodoCategory, int]
    by_priority: dict[TodoPriority, int]
    by_user: dict[str, int]
