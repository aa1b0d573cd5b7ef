"""HTTP tests for the files, branches, history and ssh routers."""

from __future__ import annotations

from collections.abc import Iterator
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from codeyard.workspace_runtime.app import app
from codeyard.workspace_runtime.errors import AccountNotFoundError, BoundaryUnavailableError
from codeyard.workspace_runtime.models.sandbox import CommandResult, ConnectionInfo
from codeyard.workspace_runtime.sandbox.users import SandboxUserManager


async def _save(client: AsyncClient, path: str, content: bytes, branch: str | None = None) -> dict:
    params = {"dir": branch} if branch else None
    resp = await client.post(
        "/api/files/acme/save",
        params=params,
        files={"file": ("upload", content)},
        data={"path": path},
    )
    assert resp.status_code == 200, resp.text
    return resp.json()


# -- Access gate ---------------------------------------------------------------


@pytest.mark.integration
async def test_missing_token_is_rejected(client: AsyncClient) -> None:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as anonymous:
        resp = await anonymous.get("/api/files/acme/tree")
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Bearer"


@pytest.mark.integration
async def test_wrong_token_is_rejected_before_any_work(client: AsyncClient, tmp_path) -> None:
    resp = await client.get("/api/files/acme/tree", headers={"Authorization": "Bearer wrong"})
    assert resp.status_code == 401
    assert not (tmp_path / "data" / "apps" / "acme").exists()


@pytest.mark.integration
async def test_health_is_open(client: AsyncClient) -> None:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as anonymous:
        resp = await anonymous.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


# -- Files ---------------------------------------------------------------------


@pytest.mark.integration
async def test_file_lifecycle(client: AsyncClient) -> None:
    saved = await _save(client, "site/index.html", b"<h1>hi</h1>")
    assert saved["success"] is True
    assert saved["size"] == 11

    resp = await client.get("/api/files/acme/content", params={"path": "site/index.html"})
    assert resp.status_code == 200
    assert resp.content == b"<h1>hi</h1>"
    assert resp.headers["content-type"].startswith("text/html")

    resp = await client.get("/api/files/acme/tree")
    assert resp.status_code == 200
    [site] = resp.json()
    assert site["name"] == "site"
    assert site["type"] == "directory"
    assert site["children"][0]["name"] == "index.html"

    resp = await client.post("/api/files/acme/delete", json={"path": "site/index.html"})
    assert resp.status_code == 200
    assert resp.json()["success"] is True

    resp = await client.get("/api/files/acme/content", params={"path": "site/index.html"})
    assert resp.status_code == 404


@pytest.mark.integration
async def test_save_with_commit_message(client: AsyncClient) -> None:
    resp = await client.post(
        "/api/files/acme/save",
        files={"file": ("upload", b"x")},
        data={"path": "a.txt", "commit_message": "Initial content"},
    )
    assert resp.status_code == 200

    resp = await client.get("/api/history/acme/list")
    assert resp.json()[0]["message"] == "Initial content"


@pytest.mark.integration
async def test_create_and_delete_directory(client: AsyncClient) -> None:
    resp = await client.post("/api/files/acme/create-dir", json={"path": "assets/img"})
    assert resp.status_code == 201

    await _save(client, "assets/img/logo.svg", b"<svg/>")

    resp = await client.post("/api/files/acme/delete-dir", json={"path": "assets"})
    assert resp.status_code == 200

    resp = await client.post("/api/files/acme/delete-dir", json={"path": "assets"})
    assert resp.status_code == 404


@pytest.mark.integration
@pytest.mark.parametrize("path", ["../escape.txt", "a;b.txt", ".git/config", "docs/.git/HEAD"])
async def test_forbidden_paths(client: AsyncClient, path: str) -> None:
    resp = await client.post("/api/files/acme/save", files={"file": ("upload", b"x")}, data={"path": path})
    assert resp.status_code == 400


@pytest.mark.parametrize("tenant", ["Acme", "1app"])
async def test_tenant_must_be_an_account_name(client: AsyncClient, tenant: str) -> None:
    resp = await client.get(f"/api/files/{tenant}/tree")
    assert resp.status_code == 400


@pytest.mark.integration
async def test_delete_missing_file(client: AsyncClient) -> None:
    resp = await client.post("/api/files/acme/delete", json={"path": "never.txt"})
    assert resp.status_code == 404


@pytest.mark.integration
async def test_unknown_branch_selector(client: AsyncClient) -> None:
    resp = await client.get("/api/files/acme/tree", params={"dir": "ghost"})
    assert resp.status_code == 404


# -- Branches ------------------------------------------------------------------


@pytest.mark.integration
async def test_branch_endpoints(client: AsyncClient) -> None:
    await _save(client, "index.html", b"main")

    resp = await client.post("/api/branches/acme/create", json={"branch": "feature-one"})
    assert resp.status_code == 201
    assert resp.json() == {"success": True, "branches": [{"name": "feature-one"}]}

    resp = await client.post("/api/branches/acme/create", json={"branch": "feature-one"})
    assert resp.status_code == 409

    resp = await client.post("/api/branches/acme/create", json={"branch": "bad name"})
    assert resp.status_code == 400

    resp = await client.get("/api/branches/acme/list")
    assert resp.json() == [{"name": "feature-one"}]

    await _save(client, "index.html", b"feature", branch="feature-one")
    resp = await client.get("/api/files/acme/content", params={"path": "index.html", "dir": "feature-one"})
    assert resp.content == b"feature"
    resp = await client.get("/api/files/acme/content", params={"path": "index.html"})
    assert resp.content == b"main"


# -- History -------------------------------------------------------------------


@pytest.mark.integration
async def test_history_endpoints(client: AsyncClient) -> None:
    await _save(client, "notes.md", b"one\n")
    await _save(client, "notes.md", b"two\n")

    resp = await client.get("/api/history/acme/count")
    assert resp.json() == {"count": 2}

    resp = await client.get("/api/history/acme/list", params={"limit": 1})
    [latest] = resp.json()
    assert latest["message"] == "Save file notes.md"

    resp = await client.get(f"/api/history/acme/commits/{latest['hash']}/files")
    assert resp.json() == {"files": [{"path": "notes.md", "type": "modified", "old_path": None}]}

    resp = await client.get(f"/api/history/acme/commits/{latest['hash']}/diff", params={"path": "notes.md"})
    assert resp.json() == {"before": "one\n", "after": "two\n", "was_created": False, "was_deleted": False}

    resp = await client.get("/api/history/acme/list", params={"offset": 1})
    first = resp.json()[0]["hash"]
    resp = await client.get(f"/api/history/acme/commits/{first}/diff-head", params={"path": "notes.md"})
    assert resp.json()["before"] == "one\n"
    assert resp.json()["after"] == "two\n"


@pytest.mark.integration
async def test_history_diff_of_binary_file(client: AsyncClient) -> None:
    await _save(client, "logo.png", b"\x89PNG\r\n\x1a\n\xff\xfe")

    resp = await client.get("/api/history/acme/list")
    [commit] = resp.json()
    resp = await client.get(f"/api/history/acme/commits/{commit['hash']}/diff", params={"path": "logo.png"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["was_created"] is True
    assert "PNG" in body["after"]


@pytest.mark.integration
async def test_history_of_new_tenant(client: AsyncClient) -> None:
    resp = await client.get("/api/history/newcomer/count")
    assert resp.json() == {"count": 0}
    resp = await client.get("/api/history/newcomer/list")
    assert resp.json() == []
    resp = await client.get("/api/history/newcomer/commits/deadbeef/files")
    assert resp.json() == {"files": []}


@pytest.mark.integration
async def test_history_pagination_bounds(client: AsyncClient) -> None:
    resp = await client.get("/api/history/acme/list", params={"limit": 0})
    assert resp.status_code == 422


# -- SSH -----------------------------------------------------------------------


@pytest.fixture
def sandbox() -> Iterator[AsyncMock]:
    mock = AsyncMock(spec=SandboxUserManager)
    app.state.sandbox_manager = mock
    yield mock
    app.state.sandbox_manager = None


@pytest.mark.integration
async def test_ssh_disabled(client: AsyncClient) -> None:
    resp = await client.post("/api/ssh/acme/credentials")
    assert resp.status_code == 503


@pytest.mark.integration
async def test_credentials_for_new_account(client: AsyncClient, sandbox: AsyncMock) -> None:
    sandbox.provision_account.return_value = ConnectionInfo(
        username="acme", host="localhost", port=22, password="Fresh"
    )

    resp = await client.post("/api/ssh/acme/credentials")

    assert resp.status_code == 200
    assert resp.json()["connection"]["password"] == "Fresh"
    sandbox.rotate_password.assert_not_awaited()


@pytest.mark.integration
async def test_credentials_for_existing_account_rotate(client: AsyncClient, sandbox: AsyncMock) -> None:
    sandbox.provision_account.return_value = ConnectionInfo(username="acme", host="localhost", port=22)
    sandbox.rotate_password.return_value = ConnectionInfo(
        username="acme", host="localhost", port=22, password="Rotated"
    )

    resp = await client.post("/api/ssh/acme/credentials")

    assert resp.json()["connection"]["password"] == "Rotated"
    tenant, new_password = sandbox.rotate_password.await_args.args
    assert tenant == "acme"
    assert len(new_password) == 16


@pytest.mark.integration
async def test_credentials_sandbox_unreachable(client: AsyncClient, sandbox: AsyncMock) -> None:
    sandbox.provision_account.side_effect = BoundaryUnavailableError("SSH sandbox is not accessible")
    resp = await client.post("/api/ssh/acme/credentials")
    assert resp.status_code == 503


@pytest.mark.integration
async def test_upload_key(client: AsyncClient, sandbox: AsyncMock) -> None:
    resp = await client.post("/api/ssh/acme/keys/upload", json={"public_key": "ssh-ed25519 AAAA dev@laptop"})
    assert resp.status_code == 200
    sandbox.authorize_key.assert_awaited_once_with("acme", "ssh-ed25519 AAAA dev@laptop", auto_provision=True)


@pytest.mark.integration
async def test_account_and_delete(client: AsyncClient, sandbox: AsyncMock) -> None:
    sandbox.describe_account.return_value = None
    resp = await client.get("/api/ssh/acme/account")
    assert resp.json() == {"exists": False, "connection": None}

    sandbox.delete_account.side_effect = AccountNotFoundError("User 'acme' does not exist")
    resp = await client.post("/api/ssh/acme/delete")
    assert resp.status_code == 404


@pytest.mark.integration
async def test_sandbox_status(client: AsyncClient, sandbox: AsyncMock) -> None:
    sandbox.test_connection.return_value = CommandResult(stdout="sandbox\nroot\nup 1 day")
    resp = await client.get("/api/ssh/status")
    assert resp.json() == {"reachable": True, "output": "sandbox\nroot\nup 1 day", "error": None}

    sandbox.test_connection.side_effect = BoundaryUnavailableError("SSH connection to ssh-sandbox:22 failed")
    resp = await client.get("/api/ssh/status")
    assert resp.json()["reachable"] is False
