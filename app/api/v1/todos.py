"""Todo and calendar API routes."""
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.v1.common import data_response, get_store
from app.schemas.todo import (
    CalendarEvent,
    Todo,
    TodoCategory,
    TodoCreate,
    TodoPriority,
    TodoRead,
    TodoSettings,
    TodoStats,
    TodoStatus,
    TodoUpdate,
    TodoWindow,
)
from app.services.storage import KeyValueStore
from app.services.todos import (
    TodoManager,
    format_due_date,
    get_category_config,
    is_overdue,
)


router = APIRouter(prefix="/dealerships/{dealership_id}", tags=["todos"])
catalog_router = APIRouter(prefix="/todos", tags=["todos"])


def get_todo_manager(dealership_id: str, store: KeyValueStore = Depends(get_store)) -> TodoManager:
    return TodoManager(store, dealership_id)


def _to_read(todo: Todo, now: datetime) -> TodoRead:
    due_label = None
    if todo.due_date:
        due_label = format_due_date(todo.due_date, todo.due_time, today=now.date())
    return TodoRead(**todo.model_dump(), is_overdue=is_overdue(todo, now), due_label=due_label)


@catalog_router.get("/categories")
async def list_categories() -> dict[str, list[dict[str, str]]]:
    payload = [
        {"value": category.value, **get_category_config(category)} for category in TodoCategory
    ]
    return data_response(payload)


def _narrow(todos: list[Todo], subset: list[Todo]) -> list[Todo]:
    keep = {todo.id for todo in subset}
    return [todo for todo in todos if todo.id in keep]


@router.post("/todos", status_code=status.HTTP_201_CREATED)
async def create_todo(
    payload: TodoCreate, manager: TodoManager = Depends(get_todo_manager)
) -> dict[str, TodoRead]:
    """Create a todo; a due date also creates its calendar event."""

    settings = await manager.get_todo_settings()
    defaults = {
        "priority": settings.default_priority,
        "category": settings.default_category,
    }
    missing = {key: value for key, value in defaults.items() if key not in payload.model_fields_set}
    if missing:
        payload = payload.model_copy(update=missing)

    todo = await manager.add_todo(payload)
    return data_response(_to_read(todo, datetime.now()))


@router.get("/todos")
async def list_todos(
    q: str | None = None,
    status_filter: TodoStatus | None = Query(None, alias="status"),
    priority: TodoPriority | None = None,
    category: TodoCategory | None = None,
    vehicle_id: str | None = None,
    user: str | None = None,
    view: TodoWindow | None = None,
    days: int = Query(7, ge=0, le=365),
    manager: TodoManager = Depends(get_todo_manager),
) -> dict[str, list[TodoRead]]:
    """List todos, combining every supplied filter."""

    now = datetime.now()
    if view is TodoWindow.OVERDUE:
        todos = await manager.get_overdue_todos(now)
    elif view is TodoWindow.TODAY:
        todos = await manager.get_todays_todos(now.date())
    elif view is TodoWindow.UPCOMING:
        todos = await manager.get_upcoming_todos(days, now.date())
    else:
        todos = await manager.get_todos()

    if q:
        todos = _narrow(todos, await manager.search_todos(q))
    if status_filter is not None:
        todos = _narrow(todos, await manager.get_todos_by_status(status_filter))
    if priority is not None:
        todos = _narrow(todos, await manager.get_todos_by_priority(priority))
    if category is not None:
        todos = _narrow(todos, await manager.get_todos_by_category(category))
    if vehicle_id:
        todos = _narrow(todos, await manager.get_todos_by_vehicle(vehicle_id))
    if user:
        todos = _narrow(todos, await manager.get_todos_by_user(user))

    return data_response([_to_read(todo, now) for todo in todos])


@router.get("/todos/stats")
async def todo_stats(manager: TodoManager = Depends(get_todo_manager)) -> dict[str, TodoStats]:
    return data_response(await manager.get_todo_stats(datetime.now()))


@router.get("/todos/settings")
async def get_todo_settings(
    manager: TodoManager = Depends(get_todo_manager),
) -> dict[str, TodoSettings]:
    return data_response(await manager.get_todo_settings())


@router.put("/todos/settings")
async def update_todo_settings(
    payload: TodoSettings, manager: TodoManager = Depends(get_todo_manager)
) -> dict[str, TodoSettings]:
    await manager.save_todo_settings(payload)
    return data_response(payload)


@router.post("/todos/seed")
async def seed_todos(manager: TodoManager = Depends(get_todo_manager)) -> dict[str, list[TodoRead]]:
    """Load the sample task list into an empty dealership.

    Seeded todos do not get calendar events.
    """

    now = datetime.now()
    todos = await manager.initialize_defaults(now.date())
    return data_response([_to_read(todo, now) for todo in todos])


@router.get("/todos/{todo_id}")
async def retrieve_todo(
    todo_id: str, manager: TodoManager = Depends(get_todo_manager)
) -> dict[str, TodoRead]:
    todo = await manager.get_todo(todo_id)
    if todo is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")
    return data_response(_to_read(todo, datetime.now()))


@router.put("/todos/{todo_id}")
async def update_todo(
    todo_id: str,
    payload: TodoUpdate,
    manager: TodoManager = Depends(get_todo_manager),
) -> dict[str, TodoRead]:
    """Update a todo; changing its due date or time rebuilds its calendar event."""

    todo = await manager.update_todo(todo_id, payload.model_dump(exclude_unset=True))
    if todo is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")
    return data_response(_to_read(todo, datetime.now()))


@router.delete("/todos/{todo_id}")
async def delete_todo(
    todo_id: str, manager: TodoManager = Depends(get_todo_manager)
) -> dict[str, dict[str, bool]]:
    if not await manager.delete_todo(todo_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")
    return data_response({"deleted": True})


@router.get("/calendar/events")
async def list_calendar_events(
    manager: TodoManager = Depends(get_todo_manager),
) -> dict[str, list[CalendarEvent]]:
    return data_response(await manager.get_calendar_events())
