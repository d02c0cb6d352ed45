"""Todo tracking and derived calendar events for a dealership."""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Any

from app.schemas.todo import (
    TODO_CATEGORY_CONFIGS,
    CalendarEvent,
    CalendarEventType,
    RecurringPattern,
    Todo,
    TodoCategory,
    TodoCreate,
    TodoPriority,
    TodoSettings,
    TodoStats,
    TodoStatus,
)
from app.services.storage import KeyValueStore, generate_id, tenant_key, utcnow

TODOS_KEY = "dealership_todos"
CALENDAR_EVENTS_KEY = "dealership_calendar_events"
TODO_SETTINGS_KEY = "dealership_todo_settings"

ASSIGNED_TO_EVERYONE = "ALL"
CLOSED_STATUSES = frozenset({TodoStatus.COMPLETED, TodoStatus.CANCELLED})
UNTIMED_EVENT_START = "09:00"
UNTIMED_EVENT_END = "10:00"

PRIORITY_COLORS: dict[TodoPriority, str] = {
    TodoPriority.LOW: "#6B7280",
    TodoPriority.MEDIUM: "#F59E0B",
    TodoPriority.HIGH: "#F97316",
    TodoPriority.URGENT: "#EF4444",
}

logger = logging.getLogger(__name__)


def _local_now() -> datetime:
    return datetime.now()


def is_overdue(todo: Todo, now: datetime | None = None) -> bool:
    """Return whether an open todo is past its due date or due time.

    A todo due today is overdue only when it has a due time earlier than the
    current ``HH:MM``.
    """

    if todo.status in CLOSED_STATUSES or todo.due_date is None:
        return False

    now = now or _local_now()
    today = now.date()
    if todo.due_date < today:
        return True
    if todo.due_date == today and todo.due_time and todo.due_time < now.strftime("%H:%M"):
        return True
    return False


def add_hours_to_time(value: str, hours: int) -> str:
    """Shift an ``HH:MM`` string by whole hours, wrapping past midnight."""

    hour, minute = (int(part) for part in value.split(":"))
    return f"{(hour + hours) % 24:02d}:{minute:02d}"


def get_priority_color(priority: TodoPriority) -> str:
    return PRIORITY_COLORS[priority]


def get_category_config(category: TodoCategory) -> dict[str, str]:
    return TODO_CATEGORY_CONFIGS[category]


def format_due_date(due_date: date, due_time: str | None = None, today: date | None = None) -> str:
    """Render a due date the way the task list shows it.

    ``Today``/``Tomorrow`` for the next two days, ``Mon D`` otherwise (with the
    year when it differs from the current one), followed by `` at H:MM AM``
    when a time is set.
    """

    today = today or _local_now().date()
    if due_date == today:
        label = "Today"
    elif due_date == today + timedelta(days=1):
        label = "Tomorrow"
    else:
        label = f"{due_date.strftime('%b')} {due_date.day}"
        if due_date.year != today.year:
            label = f"{label}, {due_date.year}"

    if not due_time:
        return label

    hour, minute = (int(part) for part in due_time.split(":"))
    suffix = "AM" if hour < 12 else "PM"
    display_hour = hour % 12 or 12
    return f"{label} at {display_hour}:{minute:02d} {suffix}"


def _default_todos(today: date) -> list[dict[str, Any]]:
    return [
        {
            "title": "Complete emissions inspection",
            "description": "Perform emissions testing on newly acquired vehicles",
            "priority": TodoPriority.HIGH,
            "category": TodoCategory.INSPECTION,
            "assigned_to": "MW",
            "assigned_by": "JS",
            "due_date": today + timedelta(days=2),
            "due_time": "14:00",
            "vehicle_id": "1",
            "vehicle_name": "2023 Honda Accord",
            "tags": ["emissions", "inspection", "priority"],
            "notes": "Check OBD2 codes before testing",
        },
        {
            "title": "Order brake pads for Toyota Corolla",
            "description": "Front brake pads need replacement",
            "priority": TodoPriority.MEDIUM,
            "category": TodoCategory.PARTS_ORDER,
            "assigned_to": "SJ",
            "assigned_by": "JS",
            "due_date": today + timedelta(days=1),
            "vehicle_id": "5",
            "vehicle_name": "2019 Toyota Corolla",
            "tags": ["parts", "brakes", "urgent"],
        },
        {
            "title": "Schedule professional photography",
            "description": "Book photographer for completed vehicles",
            "priority": TodoPriority.MEDIUM,
            "status": TodoStatus.IN_PROGRESS,
            "category": TodoCategory.PHOTOGRAPHY,
            "assigned_to": "JS",
            "assigned_by": "JS",
            "due_date": today + timedelta(days=3),
            "tags": ["photography", "marketing"],
            "notes": "Contact Elite Photography Services",
        },
        {
            "title": "Follow up with customer on trade-in",
            "description": "Call customer about pending trade-in paperwork",
            "priority": TodoPriority.HIGH,
            "category": TodoCategory.CUSTOMER_CONTACT,
            "assigned_to": "SJ",
            "assigned_by": "JS",
            "due_date": today,
            "due_time": "10:00",
            "tags": ["customer", "paperwork", "trade-in"],
        },
        {
            "title": "Weekly team meeting",
            "description": "Review progress and assign new tasks",
            "priority": TodoPriority.MEDIUM,
            "category": TodoCategory.GENERAL,
            "assigned_to": ASSIGNED_TO_EVERYONE,
            "assigned_by": "JS",
            "due_date": today + timedelta(days=7),
            "due_time": "09:00",
            "is_recurring": True,
            "recurring_pattern": RecurringPattern.WEEKLY,
            "tags": ["meeting", "team", "planning"],
        },
    ]


class TodoManager:
    """Task CRUD, filters, statistics and calendar shadow records.

    Every todo with a due date owns exactly one calendar event keyed by its
    id. Events are never patched: any due date/time change deletes the old
    event and builds a new one.
    """

    def __init__(self, store: KeyValueStore, dealership_id: str):
        self.store = store
        self.dealership_id = dealership_id

    def _key(self, prefix: str) -> str:
        return tenant_key(prefix, self.dealership_id)

    async def initialize_defaults(self, today: date | None = None) -> list[Todo]:
        existing = await self.get_todos()
        if existing:
            return existing

        today = today or _local_now().date()
        timestamp = utcnow()
        todos = [
            Todo(
                **TodoCreate(**data).model_dump(),
                id=generate_id("todo"),
                created_at=timestamp,
                updated_at=timestamp,
            )
            for data in _default_todos(today)
        ]
        await self.save_todos(todos)
        logger.info(
            "Seeded default todos",
            extra={"dealership_id": self.dealership_id, "count": len(todos)},
        )
        return todos

    async def get_todos(self) -> list[Todo]:
        data = await self.store.get_json(self._key(TODOS_KEY))
        if not data:
            return []
        return [Todo.model_validate(item) for item in data]

    async def save_todos(self, todos: list[Todo]) -> None:
        await self.store.set_json(
            self._key(TODOS_KEY), [todo.model_dump(mode="json") for todo in todos]
        )

    async def get_todo(self, todo_id: str) -> Todo | None:
        todos = await self.get_todos()
        return next((todo for todo in todos if todo.id == todo_id), None)

    async def add_todo(self, payload: TodoCreate) -> Todo:
        todos = await self.get_todos()
        timestamp = utcnow()
        todo = Todo(
            **payload.model_dump(),
            id=generate_id("todo"),
            created_at=timestamp,
            updated_at=timestamp,
        )
        todos.insert(0, todo)
        await self.save_todos(todos)

        if todo.due_date is not None:
            await self.create_calendar_event_from_todo(todo)
        return todo

    async def update_todo(self, todo_id: str, updates: dict[str, Any]) -> Todo | None:
        """Merge ``updates`` into a todo.

        Moving to ``completed`` from any other status stamps ``completed_at``
        and ``completed_by`` (falling back to the assignee). Any status may
        follow any other.
        """

        todos = await self.get_todos()
        index = next((i for i, todo in enumerate(todos) if todo.id == todo_id), None)
        if index is None:
            return None

        previous = todos[index]
        timestamp = utcnow()
        merged = {**previous.model_dump(), **updates, "updated_at": timestamp}
        todo = Todo.model_validate(merged)

        if updates.get("status") == TodoStatus.COMPLETED and previous.status != TodoStatus.COMPLETED:
            todo.completed_at = timestamp
            todo.completed_by = updates.get("completed_by") or todo.assigned_to

        todos[index] = todo
        await self.save_todos(todos)

        if "due_date" in updates or "due_time" in updates:
            await self.update_calendar_event_from_todo(todo)
        return todo

    async def delete_todo(self, todo_id: str) -> bool:
        todos = await self.get_todos()
        remaining = [todo for todo in todos if todo.id != todo_id]
        if len(remaining) == len(todos):
            return False

        await self.save_todos(remaining)
        await self.remove_calendar_event_for_todo(todo_id)
        return True

    async def get_todos_by_user(self, user_initials: str) -> list[Todo]:
        """Todos assigned to or created by the user, plus those assigned to ``ALL``."""

        todos = await self.get_todos()
        return [
            todo
            for todo in todos
            if todo.assigned_to in (user_initials, ASSIGNED_TO_EVERYONE)
            or todo.assigned_by == user_initials
        ]

    async def get_todos_by_category(self, category: TodoCategory) -> list[Todo]:
        return [todo for todo in await self.get_todos() if todo.category == category]

    async def get_todos_by_vehicle(self, vehicle_id: str) -> list[Todo]:
        return [todo for todo in await self.get_todos() if todo.vehicle_id == vehicle_id]

    async def get_todos_by_status(self, status: TodoStatus) -> list[Todo]:
        return [todo for todo in await self.get_todos() if todo.status == status]

    async def get_todos_by_priority(self, priority: TodoPriority) -> list[Todo]:
        return [todo for todo in await self.get_todos() if todo.priority == priority]

    async def get_overdue_todos(self, now: datetime | None = None) -> list[Todo]:
        now = now or _local_now()
        return [todo for todo in await self.get_todos() if is_overdue(todo, now)]

    async def get_todays_todos(self, today: date | None = None) -> list[Todo]:
        today = today or _local_now().date()
        return [todo for todo in await self.get_todos() if todo.due_date == today]

    async def get_upcoming_todos(self, days: int = 7, today: date | None = None) -> list[Todo]:
        """Todos due between today and ``days`` days ahead, both ends included."""

        today = today or _local_now().date()
        horizon = today + timedelta(days=days)
        return [
            todo
            for todo in await self.get_todos()
            if todo.due_date is not None and today <= todo.due_date <= horizon
        ]

    async def search_todos(self, query: str) -> list[Todo]:
        term = query.lower()

        def matches(todo: Todo) -> bool:
            return (
                term in todo.title.lower()
                or (todo.description is not None and term in todo.description.lower())
                or (todo.vehicle_name is not None and term in todo.vehicle_name.lower())
                or any(term in tag.lower() for tag in todo.tags or [])
                or (todo.notes is not None and term in todo.notes.lower())
            )

        return [todo for todo in await self.get_todos() if matches(todo)]

    async def get_calendar_events(self) -> list[CalendarEvent]:
        data = await self.store.get_json(self._key(CALENDAR_EVENTS_KEY))
        if not data:
            return []
        return [CalendarEvent.model_validate(item) for item in data]

    async def save_calendar_events(self, events: list[CalendarEvent]) -> None:
        await self.store.set_json(
            self._key(CALENDAR_EVENTS_KEY),
            [event.model_dump(mode="json") for event in events],
        )

    async def create_calendar_event_from_todo(self, todo: Todo) -> CalendarEvent | None:
        """Replace the todo's calendar event; returns ``None`` without a due date."""

        events = [event for event in await self.get_calendar_events() if event.todo_id != todo.id]
        if todo.due_date is None:
            await self.save_calendar_events(events)
            return None

        day = todo.due_date.isoformat()
        if todo.due_time:
            start = f"{day}T{todo.due_time}:00"
            end = f"{day}T{add_hours_to_time(todo.due_time, 1)}:00"
        else:
            start = f"{day}T{UNTIMED_EVENT_START}:00"
            end = f"{day}T{UNTIMED_EVENT_END}:00"

        timestamp = utcnow()
        event = CalendarEvent(
            id=generate_id("event"),
            title=todo.title,
            description=todo.description,
            start=start,
            end=end,
            all_day=not todo.due_time,
            type=CalendarEventType.TODO,
            todo_id=todo.id,
            assigned_to=todo.assigned_to,
            vehicle_id=todo.vehicle_id,
            vehicle_name=todo.vehicle_name,
            color=get_priority_color(todo.priority),
            created_by=todo.assigned_by,
            created_at=timestamp,
            updated_at=timestamp,
        )
        events.append(event)
        await self.save_calendar_events(events)
        return event

    async def update_calendar_event_from_todo(self, todo: Todo) -> CalendarEvent | None:
        return await self.create_calendar_event_from_todo(todo)

    async def remove_calendar_event_for_todo(self, todo_id: str) -> None:
        events = await self.get_calendar_events()
        await self.save_calendar_events([event for event in events if event.todo_id != todo_id])

    async def get_todo_settings(self) -> TodoSettings:
        data = await self.store.get_json(self._key(TODO_SETTINGS_KEY))
        if data is not None:
            return TodoSettings.model_validate(data)

        settings = TodoSettings()
        await self.save_todo_settings(settings)
        return settings

    async def save_todo_settings(self, settings: TodoSettings) -> None:
        await self.store.set_json(self._key(TODO_SETTINGS_KEY), settings.model_dump(mode="json"))

    async def get_todo_stats(self, now: datetime | None = None) -> TodoStats:
        now = now or _local_now()
        todos = await self.get_todos()

        by_category = {category: 0 for category in TodoCategory}
        by_priority = {priority: 0 for priority in TodoPriority}
        by_user: dict[str, int] = {}
        for todo in todos:
            by_category[todo.category] += 1
            by_priority[todo.priority] += 1
            if todo.assigned_to != ASSIGNED_TO_EVERYONE:
                by_user[todo.assigned_to] = by_user.get(todo.assigned_to, 0) + 1

        return TodoStats(
            total=len(todos),
            pending=sum(1 for todo in todos if todo.status == TodoStatus.PENDING),
            in_progress=sum(1 for todo in todos if todo.status == TodoStatus.IN_PROGRESS),
            completed=sum(1 for todo in todos if todo.status == TodoStatus.COMPLETED),
            overdue=sum(1 for todo in todos if is_overdue(todo, now)),
            by_category=by_category,
            by_priority=by_priority,
            by_user=by_user,
        )
