"""GitHub contents browsing and single-file commits over the REST v3 API."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import httpx

from app.core.config import Settings, get_settings
from app.schemas.integrations import CommitResult, GitHubCredentials, RepoFile, RepoFileType
from app.services.storage import KeyValueStore, utcnow

GITHUB_API_URL = "https://api.github.com"
GITHUB_CREDENTIALS_KEY = "github_credentials"
GITHUB_MEDIA_TYPE = "application/vnd.github.v3+json"
BLOB_FILE_MODE = "100644"

logger = logging.getLogger(__name__)


class GitHubError(Exception):
    """Base error for GitHub operations."""


class GitHubNotConfiguredError(GitHubError):
    """Raised when no GitHub credentials have been saved."""


class GitHubAPIError(GitHubError):
    """Raised when GitHub answers with a non-2xx response or cannot be reached."""

    def __init__(self, message: str, *, status_code: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


async def load_credentials(store: KeyValueStore) -> GitHubCredentials | None:
    data = await store.get_json(GITHUB_CREDENTIALS_KEY)
    if data is None:
        return None
    return GitHubCredentials.model_validate(data)


async def require_credentials(store: KeyValueStore) -> GitHubCredentials:
    credentials = await load_credentials(store)
    if credentials is None:
        raise GitHubNotConfiguredError("GitHub credentials are not configured")
    return credentials


async def save_credentials(store: KeyValueStore, credentials: GitHubCredentials) -> None:
    await store.set_json(GITHUB_CREDENTIALS_KEY, credentials.model_dump())


async def clear_credentials(store: KeyValueStore) -> None:
    await store.remove(GITHUB_CREDENTIALS_KEY)


def default_readme_content(now: datetime | None = None) -> str:
    stamp = (now or utcnow()).isoformat()
    return f"# ReconPro\n\nDealership Reconditioning Manager\n\nUpdated: {stamp}\n"


class GitHubClient:
    """Repository operations authenticated with a personal access token."""

    def __init__(
        self,
        credentials: GitHubCredentials,
        *,
        api_url: str = GITHUB_API_URL,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.credentials = credentials
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def repo_url(self) -> str:
        return f"{self.api_url}/repos/{self.credentials.repository}"

    async def list_contents(self, path: str = "") -> list[RepoFile]:
        """List one directory of the default branch."""

        directory = path.strip("/")
        url = f"{self.repo_url}/contents/{directory}" if directory else f"{self.repo_url}/contents"
        data = await self._request("GET", url)
        if not isinstance(data, list):
            raise GitHubAPIError(f"GitHub API error: '{directory}' is not a directory")
        return [
            RepoFile(
                path=item["path"],
                type=RepoFileType.DIRECTORY if item.get("type") == "dir" else RepoFileType.FILE,
                size=item.get("size"),
            )
            for item in data
        ]

    async def commit_file(
        self,
        message: str,
        *,
        branch: str = "main",
        path: str = "README.md",
        content: str | None = None,
    ) -> CommitResult:
        """Write one file to ``branch`` as a new commit.

        The branch head is read, a blob and a tree based on the head's tree
        are created, a commit parented on the head is created, and the branch
        ref is moved without forcing. The first failing step aborts the rest;
        objects created before the failure are left in place.
        """

        if not message:
            raise ValueError("Please enter a commit message")

        content = default_readme_content() if content is None else content
        log_context = {"repository": self.credentials.repository, "branch": branch, "path": path}

        branch_data = await self._request("GET", f"{self.repo_url}/branches/{branch}")
        head_sha = branch_data["commit"]["sha"]
        base_tree_sha = branch_data["commit"]["commit"]["tree"]["sha"]

        await self._request("GET", f"{self.repo_url}/git/trees/{head_sha}")

        blob = await self._request(
            "POST",
            f"{self.repo_url}/git/blobs",
            json={"content": content, "encoding": "utf-8"},
        )
        tree = await self._request(
            "POST",
            f"{self.repo_url}/git/trees",
            json={
                "base_tree": base_tree_sha,
                "tree": [
                    {"path": path, "mode": BLOB_FILE_MODE, "type": "blob", "sha": blob["sha"]}
                ],
            },
        )
        commit = await self._request(
            "POST",
            f"{self.repo_url}/git/commits",
            json={"message": message, "tree": tree["sha"], "parents": [head_sha]},
        )
        await self._request(
            "PATCH",
            f"{self.repo_url}/git/refs/heads/{branch}",
            json={"sha": commit["sha"], "force": False},
        )

        logger.info("Committed file to GitHub", extra={**log_context, "sha": commit["sha"]})
        return CommitResult(sha=commit["sha"], branch=branch, path=path)

    async def _request(
        self,
        method: str,
        url: str,
        *,
        json: dict[str, Any] | None = None,
    ) -> Any:
        headers = {
            "Authorization": f"Bearer {self.credentials.token}",
            "Accept": GITHUB_MEDIA_TYPE,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(method, url, headers=headers, json=json)
        except httpx.HTTPError as exc:
            logger.error("GitHub request failed", extra={"url": url}, exc_info=exc)
            raise GitHubAPIError(str(exc) or "Unable to reach GitHub") from exc

        if response.status_code >= 400:
            logger.error(
                "GitHub API error",
                extra={"url": url, "status_code": response.status_code, "body": response.text},
            )
            raise GitHubAPIError(
                f"GitHub API error: {response.status_code} - {_upstream_message(response)}",
                status_code=response.status_code,
                body=response.text,
            )

        if response.status_code == 204 or not response.content:
            return None
        return response.json()


def _upstream_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase


def get_github_client(
    credentials: GitHubCredentials, settings: Settings | None = None
) -> GitHubClient:
    settings = settings or get_settings()
    return GitHubClient(credentials, api_url=settings.github_api_url)
