"""External integration endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.api.v1.common import data_response, get_store
from app.schemas.integrations import (
    CommitRequest,
    CommitResult,
    DeploymentStatus,
    GitHubCredentials,
    GitHubCredentialsRead,
    PanelSnapshot,
    RepoFile,
)
from app.services import github as github_service
from app.services.deployment import deploy_project
from app.services.status_poller import StatusPanel
from app.services.storage import KeyValueStore

router = APIRouter(prefix="/integrations", tags=["integrations"])


def _get_panel(request: Request, name: str) -> StatusPanel:
    panels: dict[str, StatusPanel] = request.app.state.status_panels
    return panels[name]


async def _panel_snapshot(panel: StatusPanel, refresh: bool) -> PanelSnapshot:
    snapshot = panel.snapshot()
    if refresh or snapshot.checked_at is None:
        snapshot = await panel.refresh()
    return snapshot


@router.get("/supabase/status")
async def supabase_status(request: Request, refresh: bool = False) -> dict[str, PanelSnapshot]:
    """Return the latest Supabase connection check, polling now if none is cached."""

    return data_response(await _panel_snapshot(_get_panel(request, "supabase"), refresh))


@router.get("/deployment/status")
async def deployment_status(request: Request, refresh: bool = False) -> dict[str, PanelSnapshot]:
    return data_response(await _panel_snapshot(_get_panel(request, "deployment"), refresh))


@router.post("/deployment", status_code=status.HTTP_202_ACCEPTED)
async def trigger_deployment() -> dict[str, DeploymentStatus]:
    return data_response(await deploy_project())


@router.get("/github/credentials")
async def get_github_credentials(
    store: KeyValueStore = Depends(get_store),
) -> dict[str, GitHubCredentialsRead]:
    credentials = await _require_credentials(store)
    return data_response(_credentials_read(credentials))


@router.put("/github/credentials")
async def save_github_credentials(
    payload: GitHubCredentials, store: KeyValueStore = Depends(get_store)
) -> dict[str, GitHubCredentialsRead]:
    """Store the GitHub token and repository; the token is never echoed back."""

    await github_service.save_credentials(store, payload)
    return data_response(_credentials_read(payload))


@router.delete("/github/credentials")
async def clear_github_credentials(
    store: KeyValueStore = Depends(get_store),
) -> dict[str, dict[str, bool]]:
    await github_service.clear_credentials(store)
    return data_response({"deleted": True})


@router.get("/github/contents")
async def list_github_contents(
    path: str = "", store: KeyValueStore = Depends(get_store)
) -> dict[str, list[RepoFile]]:
    credentials = await _require_credentials(store)
    client = github_service.get_github_client(credentials)
    try:
        files = await client.list_contents(path)
    except github_service.GitHubAPIError as exc:
        raise _bad_gateway(exc) from exc
    return data_response(files)


@router.post("/github/commits", status_code=status.HTTP_201_CREATED)
async def commit_to_github(
    payload: CommitRequest, store: KeyValueStore = Depends(get_store)
) -> dict[str, CommitResult]:
    """Commit one file to the configured repository."""

    credentials = await _require_credentials(store)
    client = github_service.get_github_client(credentials)
    try:
        result = await client.commit_file(
            payload.message, branch=payload.branch, path=payload.path, content=payload.content
        )
    except github_service.GitHubAPIError as exc:
        raise _bad_gateway(exc) from exc
    return data_response(result)


async def _require_credentials(store: KeyValueStore) -> GitHubCredentials:
    try:
        return await github_service.require_credentials(store)
    except github_service.GitHubNotConfiguredError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "GITHUB_NOT_CONFIGURED", "message": str(exc)},
        ) from exc


def _credentials_read(credentials: GitHubCredentials) -> GitHubCredentialsRead:
    return GitHubCredentialsRead(
        username=credentials.username,
        repository=credentials.repository,
        has_token=bool(credentials.token),
    )


def _bad_gateway(exc: github_service.GitHubAPIError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail={"code": "GITHUB_API_ERROR", "message": str(exc)},
    )
