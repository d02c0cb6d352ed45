"""Pydantic schemas for the dealership reconditioning service."""

from .contact import (
    CallLogEntry,
    Contact,
    ContactCategory,
    ContactCreate,
    ContactSettings,
    ContactStats,
    ContactUpdate,
)
from .integrations import (
    CommitRequest,
    CommitResult,
    ConnectionCheck,
    DeploymentState,
    DeploymentStatus,
    GitHubCredentials,
    GitHubCredentialsRead,
    PanelSnapshot,
    RepoFile,
)
from .location import (
    Location,
    LocationCreate,
    LocationSettings,
    LocationStats,
    LocationType,
    LocationUpdate,
)
from .registry import (
    DashboardOverview,
    Dealership,
    LoginRequest,
    RegisterDealership,
    RegisterUser,
    SessionRead,
    User,
)
from .todo import (
    CalendarEvent,
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

__all__ = [
    "CalendarEvent",
    "CallLogEntry",
    "CommitRequest",
    "CommitResult",
    "ConnectionCheck",
    "Contact",
    "ContactCategory",
    "ContactCreate",
    "ContactSettings",
    "ContactStats",
    "ContactUpdate",
    "DashboardOverview",
    "Dealership",
    "DeploymentState",
    "DeploymentStatus",
    "GitHubCredentials",
    "GitHubCredentialsRead",
    "Location",
    "LocationCreate",
    "LocationSettings",
    "LocationStats",
    "LocationType",
    "LocationUpdate",
    "LoginRequest",
    "PanelSnapshot",
    "RegisterDealership",
    "RegisterUser",
    "RepoFile",
    "SessionRead",
    "TodoCategory",
    "TodoCreate",
    "TodoPriority",
    "TodoRead",
    "TodoSettings",
    "TodoStats",
    "TodoStatus",
    "TodoUpdate",
    "TodoWindow",
    "User",
]
