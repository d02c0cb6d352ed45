"""Pydantic schemas for the external status panels and GitHub integration."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, Field, field_validator


class ConnectionCheck(BaseModel):
    success: bool
    message: str


class DeploymentState(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    PENDING = "pending"


class DeploymentStatus(BaseModel):
    status: DeploymentState
    deploy_url: str | None = None
    error_message: str | None = None
    deploy_id: str | None = None
    claimed: bool | None = None
    claim_url: str | None = None


class PanelSnapshot(BaseModel):
    """Latest result cached by a polling status panel."""

    name: str
    interval_seconds: float
    running: bool
    checked_at: datetime | None = None
    result: dict[str, Any] | None = None
    error: str | None = None


class GitHubCredentials(BaseModel):
    username: Annotated[str, Field(min_length=1)]
    token: Annotated[str, Field(min_length=1)]
    repository: Annotated[str, Field(min_length=3, pattern=r"^[^/\s]+/[^/\s]+$")]

    @field_validator("username", "token", "repository")
    @classmethod
    def strip_whitespace(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            msg = "Please fill in all fields"
            raise ValueError(msg)
        return cleaned


class GitHubCredentialsRead(BaseModel):
    username: str
    repository: str
    has_token: bool


class RepoFileType(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


class RepoFile(BaseModel):
    path: str
    type: RepoFileType
    size: int | None = None


class CommitRequest(BaseModel):
    message: Annotated[str, Field(min_length=1)]
    branch: Annotated[str, Field(min_length=1)] = "main"
    path: Annotated[str, Field(min_length=1)] = "README.md"
    content: str | None = None


class CommitResult(BaseModel):
    sha: str
    branch: str
    path: str
