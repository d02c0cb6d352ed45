from __future__ import annotations

import asyncio
import json
import logging

import httpx
import pytest
from postgrest.exceptions import APIError

from app.core.config import Settings
from app.core.logging import JSONLogFormatter
from app.schemas.integrations import ConnectionCheck, DeploymentState, GitHubCredentials
from app.services.deployment import get_deployment_status
from app.services.github import GitHubAPIError, GitHubClient, default_readme_content
from app.services.status_poller import StatusPanel
from app.services.supabase import (
    NOT_CONFIGURED_HINT,
    MockSupabaseClient,
    SupabaseClient,
    check_supabase_connection,
)

REPO_PATH = "/repos/acme/recon-site"
CREDENTIALS = {"username": "octo", "token": "ghp_secret", "repository": "acme/recon-site"}
CONFIGURED = Settings(supabase_url="https://abc123.supabase.co", supabase_anon_key="anon-key")


def _github_handler(calls: list[tuple[str, str, dict | None]], failures: dict | None = None):
    failures = failures or {}
    routes = {
        ("GET", f"{REPO_PATH}/branches/main"): {
            "commit": {"sha": "head-sha", "commit": {"tree": {"sha": "base-tree-sha"}}}
        },
        ("GET", f"{REPO_PATH}/git/trees/head-sha"): {"sha": "base-tree-sha", "tree": []},
        ("POST", f"{REPO_PATH}/git/blobs"): {"sha": "blob-sha"},
        ("POST", f"{REPO_PATH}/git/trees"): {"sha": "new-tree-sha"},
        ("POST", f"{REPO_PATH}/git/commits"): {"sha": "new-commit-sha"},
        ("PATCH", f"{REPO_PATH}/git/refs/heads/main"): {"object": {"sha": "new-commit-sha"}},
        ("GET", f"{REPO_PATH}/contents/docs"): [
            {"path": "docs/guide.md", "type": "file", "size": 120},
            {"path": "docs/images", "type": "dir", "size": 0},
        ],
    }

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer ghp_secret"
        assert request.headers["Accept"] == "application/vnd.github.v3+json"
        body = json.loads(request.content) if request.content else None
        key = (request.method, request.url.path)
        calls.append((request.method, request.url.path, body))
        if key in failures:
            return failures[key]
        return httpx.Response(200, json=routes[key])

    return handler


def _client(handler) -> GitHubClient:
    return GitHubClient(
        GitHubCredentials(**CREDENTIALS), transport=httpx.MockTransport(handler)
    )


@pytest.mark.anyio("asyncio")
async def test_commit_file_runs_the_full_git_data_sequence():
    calls: list[tuple[str, str, dict | None]] = []
    client = _client(_github_handler(calls))

    result = await client.commit_file(
        "Update README", path="README.md", content="# ReconPro\n"
    )

    assert result.sha == "new-commit-sha"
    assert [(method, path) for method, path, _ in calls] == [
        ("GET", f"{REPO_PATH}/branches/main"),
        ("GET", f"{REPO_PATH}/git/trees/head-sha"),
        ("POST", f"{REPO_PATH}/git/blobs"),
        ("POST", f"{REPO_PATH}/git/trees"),
        ("POST", f"{REPO_PATH}/git/commits"),
        ("PATCH", f"{REPO_PATH}/git/refs/heads/main"),
    ]
    assert calls[2][2] == {"content": "# ReconPro\n", "encoding": "utf-8"}
    assert calls[3][2] == {
        "base_tree": "base-tree-sha",
        "tree": [{"path": "README.md", "mode": "100644", "type": "blob", "sha": "blob-sha"}],
    }
    assert calls[4][2] == {
        "message": "Update README",
        "tree": "new-tree-sha",
        "parents": ["head-sha"],
    }
    assert calls[5][2] == {"sha": "new-commit-sha", "force": False}


@pytest.mark.anyio("asyncio")
async def test_commit_aborts_on_first_error_with_upstream_message():
    calls: list[tuple[str, str, dict | None]] = []
    failures = {
        ("POST", f"{REPO_PATH}/git/blobs"): httpx.Response(
            422, json={"message": "Invalid request"}
        )
    }
    client = _client(_github_handler(calls, failures))

    with pytest.raises(GitHubAPIError) as exc_info:
        await client.commit_file("Update README")

    assert str(exc_info.value) == "GitHub API error: 422 - Invalid request"
    assert exc_info.value.status_code == 422
    assert [path for _, path, _ in calls][-1] == f"{REPO_PATH}/git/blobs"
    assert len(calls) == 3


@pytest.mark.anyio("asyncio")
async def test_github_error_falls_back_to_reason_phrase():
    calls: list[tuple[str, str, dict | None]] = []
    failures = {("GET", f"{REPO_PATH}/branches/main"): httpx.Response(404, text="nope")}
    client = _client(_github_handler(calls, failures))

    with pytest.raises(GitHubAPIError, match="GitHub API error: 404 - Not Found"):
        await client.commit_file("Update README")


@pytest.mark.anyio("asyncio")
async def test_commit_requires_a_message():
    client = _client(_github_handler([]))

    with pytest.raises(ValueError, match="Please enter a commit message"):
        await client.commit_file("")


@pytest.mark.anyio("asyncio")
async def test_list_contents_maps_directory_types():
    client = _client(_github_handler([]))

    files = await client.list_contents("/docs/")

    assert [(item.path, item.type.value, item.size) for item in files] == [
        ("docs/guide.md", "file", 120),
        ("docs/images", "directory", 0),
    ]


def test_default_readme_content_carries_timestamp():
    content = default_readme_content()

    assert content.startswith("# ReconPro\n\nDealership Reconditioning Manager\n\nUpdated: ")
    assert content.endswith("\n")


@pytest.mark.anyio("asyncio")
async def test_github_credentials_endpoints(client):
    missing = await client.get("/api/v1/integrations/github/credentials")
    assert missing.status_code == 400
    assert missing.json()["error"]["code"] == "GITHUB_NOT_CONFIGURED"

    blank = await client.put(
        "/api/v1/integrations/github/credentials", json={**CREDENTIALS, "username": "   "}
    )
    assert blank.status_code == 422
    assert blank.json()["error"]["message"] == "Please fill in all fields"

    saved = await client.put("/api/v1/integrations/github/credentials", json=CREDENTIALS)
    assert saved.status_code == 200
    assert saved.json()["data"] == {
        "username": "octo",
        "repository": "acme/recon-site",
        "has_token": True,
    }

    fetched = await client.get("/api/v1/integrations/github/credentials")
    assert "token" not in fetched.json()["data"]

    cleared = await client.delete("/api/v1/integrations/github/credentials")
    assert cleared.json()["data"] == {"deleted": True}

    after_clear = await client.get("/api/v1/integrations/github/credentials")
    assert after_clear.status_code == 400


@pytest.mark.anyio("asyncio")
async def test_github_commit_and_contents_endpoints(client, monkeypatch):
    calls: list[tuple[str, str, dict | None]] = []
    handler = _github_handler(calls)

    def fake_get_github_client(credentials, settings=None):
        return GitHubClient(credentials, transport=httpx.MockTransport(handler))

    monkeypatch.setattr("app.services.github.get_github_client", fake_get_github_client)

    not_configured = await client.post(
        "/api/v1/integrations/github/commits", json={"message": "Update README"}
    )
    assert not_configured.status_code == 400

    await client.put("/api/v1/integrations/github/credentials", json=CREDENTIALS)

    commit_resp = await client.post(
        "/api/v1/integrations/github/commits", json={"message": "Update README"}
    )
    assert commit_resp.status_code == 201
    assert commit_resp.json()["data"] == {
        "sha": "new-commit-sha",
        "branch": "main",
        "path": "README.md",
    }
    assert calls[2][2]["content"].startswith("# ReconPro\n")

    contents_resp = await client.get(
        "/api/v1/integrations/github/contents", params={"path": "docs"}
    )
    assert [item["type"] for item in contents_resp.json()["data"]] == ["file", "directory"]

    empty_message = await client.post(
        "/api/v1/integrations/github/commits", json={"message": ""}
    )
    assert empty_message.status_code == 422


@pytest.mark.anyio("asyncio")
async def test_github_upstream_error_is_surfaced_verbatim(client, monkeypatch):
    failures = {
        ("PATCH", f"{REPO_PATH}/git/refs/heads/main"): httpx.Response(
            422, json={"message": "Update is not a fast forward"}
        )
    }
    handler = _github_handler([], failures)
    monkeypatch.setattr(
        "app.services.github.get_github_client",
        lambda credentials, settings=None: GitHubClient(
            credentials, transport=httpx.MockTransport(handler)
        ),
    )
    await client.put("/api/v1/integrations/github/credentials", json=CREDENTIALS)

    response = await client.post(
        "/api/v1/integrations/github/commits", json={"message": "Update README"}
    )

    assert response.status_code == 502
    assert response.json()["error"] == {
        "code": "GITHUB_API_ERROR",
        "message": "GitHub API error: 422 - Update is not a fast forward",
    }


def test_placeholder_supabase_values_count_as_unconfigured():
    assert CONFIGURED.supabase_configured is True
    assert Settings().supabase_configured is False
    assert (
        Settings(
            supabase_url="https://your-project-id.supabase.co", supabase_anon_key="anon-key"
        ).supabase_configured
        is False
    )
    assert (
        Settings(
            supabase_url="https://abc123.supabase.co", supabase_anon_key="your-anon-key-here"
        ).supabase_configured
        is False
    )


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Records the builder calls made against one table."""

    def __init__(self, table: str, calls: list, outcome):
        self.calls = calls
        self.outcome = outcome
        self.calls.append(("table", table))

    def _record(self, name: str, *args):
        self.calls.append((name, *args))
        return self

    def select(self, columns):
        return self._record("select", columns)

    def insert(self, rows):
        return self._record("insert", rows)

    def update(self, values):
        return self._record("update", values)

    def delete(self):
        return self._record("delete")

    def eq(self, column, value):
        return self._record("eq", column, value)

    def limit(self, count):
        return self._record("limit", count)

    async def execute(self):
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return FakeResponse(self.outcome)


class FakeSupabase:
    def __init__(self, outcome=None):
        self.calls: list[tuple] = []
        self.outcome = outcome

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(name, self.calls, self.outcome)


def _supabase(outcome=None) -> tuple[SupabaseClient, FakeSupabase]:
    fake = FakeSupabase(outcome)
    client = SupabaseClient(CONFIGURED.supabase_url, CONFIGURED.supabase_anon_key, client=fake)
    return client, fake


@pytest.mark.anyio("asyncio")
async def test_supabase_connection_check_selects_one_dealership():
    client, fake = _supabase([{"id": "demo-dealership-1"}])

    result = await check_supabase_connection(client=client, settings=CONFIGURED)

    assert result == ConnectionCheck(success=True, message="Connected successfully")
    assert fake.calls == [("table", "dealerships"), ("select", "id"), ("limit", 1)]


@pytest.mark.anyio("asyncio")
async def test_supabase_select_applies_filters():
    client, fake = _supabase([{"id": "t-1", "status": "pending"}])

    result = await client.select("todos", filters={"status": "pending", "assigned_to": "SJ"})

    assert result.ok is True
    assert result.data == [{"id": "t-1", "status": "pending"}]
    assert fake.calls == [
        ("table", "todos"),
        ("select", "*"),
        ("eq", "status", "pending"),
        ("eq", "assigned_to", "SJ"),
    ]


@pytest.mark.anyio("asyncio")
async def test_supabase_insert_update_delete_requests():
    client, fake = _supabase([{"id": "c-1", "name": "Elite Detailing"}])

    inserted = await client.insert("contacts", {"name": "Elite Detailing"})
    assert inserted.ok is True
    assert inserted.data == [{"id": "c-1", "name": "Elite Detailing"}]
    assert fake.calls == [("table", "contacts"), ("insert", {"name": "Elite Detailing"})]

    fake.calls.clear()
    updated = await client.update("vehicles", {"status": "ready"}, filters={"id": "v-1"})
    assert updated.ok is True
    assert fake.calls == [
        ("table", "vehicles"),
        ("update", {"status": "ready"}),
        ("eq", "id", "v-1"),
    ]

    fake.calls.clear()
    deleted = await client.delete("locations", filters={"id": "loc-1"})
    assert deleted.ok is True
    assert fake.calls == [("table", "locations"), ("delete",), ("eq", "id", "loc-1")]


@pytest.mark.anyio("asyncio")
async def test_supabase_rejects_unknown_tables():
    client, fake = _supabase([])

    for call in (
        client.select("invoices"),
        client.insert("invoices", {}),
        client.update("invoices", {}, filters={"id": "1"}),
        client.delete("invoices", filters={"id": "1"}),
    ):
        with pytest.raises(ValueError, match="Unknown Supabase table: invoices"):
            await call

    assert fake.calls == []


@pytest.mark.anyio("asyncio")
async def test_supabase_errors_are_returned_not_raised():
    error = APIError({"message": "Invalid API key", "code": "401", "hint": None, "details": None})
    client, _ = _supabase(error)

    check = await check_supabase_connection(client=client, settings=CONFIGURED)
    assert check == ConnectionCheck(success=False, message="Invalid API key")

    for result in (
        await client.insert("contacts", {"name": "x"}),
        await client.update("vehicles", {"status": "ready"}, filters={"id": "v-1"}),
        await client.delete("todos", filters={"id": "t-1"}),
    ):
        assert result.ok is False
        assert result.error == "Invalid API key"

    deployment = await get_deployment_status(client=client, settings=CONFIGURED)
    assert deployment.status is DeploymentState.ERROR
    assert deployment.error_message == "Invalid API key"


@pytest.mark.anyio("asyncio")
async def test_supabase_transport_errors_are_returned():
    client, _ = _supabase(httpx.ConnectError("Connection refused"))

    result = await client.select("users")

    assert result.ok is False
    assert result.error == "Connection refused"


@pytest.mark.anyio("asyncio")
async def test_mock_supabase_client_reports_not_configured():
    mock = MockSupabaseClient()

    selected = await mock.select("todos")
    assert selected.data == []
    assert selected.error == "Supabase not configured"

    inserted = await mock.insert("contacts", {"name": "x"})
    assert inserted.ok is False

    with pytest.raises(ValueError):
        await mock.select("invoices")


@pytest.mark.anyio("asyncio")
async def test_deployment_status_success_is_simulated():
    client, _ = _supabase([])
    status = await get_deployment_status(client=client, settings=CONFIGURED)

    assert status.status is DeploymentState.SUCCESS
    assert status.deploy_id == "demo-deployment-id"
    assert status.claimed is False
    assert status.deploy_url == CONFIGURED.deploy_site_url
    assert status.claim_url == CONFIGURED.deploy_claim_url


@pytest.mark.anyio("asyncio")
async def test_status_endpoints_without_supabase(client):
    supabase_resp = await client.get("/api/v1/integrations/supabase/status")
    assert supabase_resp.status_code == 200
    snapshot = supabase_resp.json()["data"]
    assert snapshot["name"] == "supabase"
    assert snapshot["running"] is False
    assert snapshot["checked_at"] is not None
    assert snapshot["result"] == {"success": False, "message": NOT_CONFIGURED_HINT}

    deployment_resp = await client.get("/api/v1/integrations/deployment/status")
    result = deployment_resp.json()["data"]["result"]
    assert result["status"] == "error"
    assert result["error_message"] == "Supabase not configured"

    trigger_resp = await client.post("/api/v1/integrations/deployment")
    assert trigger_resp.status_code == 202
    assert trigger_resp.json()["data"]["status"] == "pending"
    assert trigger_resp.json()["data"]["deploy_id"] == "new-deployment-id"


@pytest.mark.anyio("asyncio")
async def test_status_panel_refresh_records_failures():
    outcomes = [RuntimeError("backend down"), ConnectionCheck(success=True, message="ok")]

    async def check():
        outcome = outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    panel = StatusPanel("supabase", check, interval_seconds=30)

    failed = await panel.refresh()
    assert failed.error == "backend down"
    assert failed.result is None

    recovered = await panel.refresh()
    assert recovered.error is None
    assert recovered.result == {"success": True, "message": "ok"}


@pytest.mark.anyio("asyncio")
async def test_status_panels_poll_independently_until_stopped():
    counts = {"fast": 0, "slow": 0}

    def counting(name):
        async def check():
            counts[name] += 1
            return ConnectionCheck(success=True, message=name)

        return check

    fast = StatusPanel("fast", counting("fast"), interval_seconds=0.01)
    slow = StatusPanel("slow", counting("slow"), interval_seconds=60)
    fast.start()
    slow.start()
    await asyncio.sleep(0.1)

    assert fast.running and slow.running
    await fast.stop()
    assert fast.running is False
    assert slow.running is True
    await slow.stop()

    assert counts["fast"] >= 2
    assert counts["slow"] == 1


def test_json_log_formatter_includes_extra_fields():
    formatter = JSONLogFormatter("test")
    record = logging.LogRecord(
        name="app.services.github",
        level=logging.ERROR,
        pathname=__file__,
        lineno=1,
        msg="GitHub API error",
        args=(),
        exc_info=None,
    )
    record.status_code = 502

    payload = json.loads(formatter.format(record))

    assert payload["service"] == "recon-manager"
    assert payload["environment"] == "test"
    assert payload["level"] == "ERROR"
    assert payload["message"] == "GitHub API error"
    assert payload["status_code"] == 502
