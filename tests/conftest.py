"""Shared pytest fixtures for the yoo test suite.

Provides reusable fixtures for:
- Mock subprocess helpers for git
- Scripted prompters
- In-memory fakes for the saga's collaborators (git, catalog, host, registry)
- A real local git "server" (bare repositories) for integration tests
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from yoo.errors import GitFailure, NoTemplatesAvailable, VccError
from yoo.models import ProjectRequest, RemoteProject, TemplateDescriptor


# ---------------------------------------------------------------------------
# Mock Subprocess (generic)
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_subprocess():
    """Mock asyncio subprocess for testing git command execution.

    Returns a factory that creates mock subprocess instances with configurable
    stdout, stderr, and return codes.

    Usage:
        def test_command(mock_subprocess):
            proc = mock_subprocess(stdout="output", returncode=0)
            with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
                ...
    """
    def factory(
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
    ) -> AsyncMock:
        mock_proc = AsyncMock()
        mock_proc.communicate = AsyncMock(
            return_value=(stdout.encode("utf-8"), stderr.encode("utf-8"))
        )
        mock_proc.returncode = returncode
        mock_proc.pid = 99999
        mock_proc.kill = MagicMock()
        mock_proc.wait = AsyncMock(return_value=returncode)
        return mock_proc

    return factory


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

class ScriptedPrompter:
    """Prompter that replays canned answers and records what it was asked.

    ``answers`` maps a prompt prefix to the answer for ``ask``; unknown
    prompts get their default.  ``UserCancelled`` instances in any script are
    raised instead of returned.
    """

    def __init__(
        self,
        answers: dict[str, Any] | None = None,
        confirms: Sequence[Any] = (),
        selections: Sequence[Any] = (),
    ) -> None:
        self.answers = dict(answers or {})
        self.confirms = list(confirms)
        self.selections = list(selections)
        self.asked: list[str] = []
        self.confirm_calls: list[str] = []
        self.select_calls: list[tuple[str, list[str]]] = []

    @staticmethod
    def _reply(value: Any) -> Any:
        if isinstance(value, BaseException):
            raise value
        return value

    def ask(self, message: str, default: str | None = None) -> str:
        self.asked.append(message)
        for prefix, answer in self.answers.items():
            if message.startswith(prefix):
                return self._reply(answer)
        return default or ""

    def confirm(self, message: str, default: bool = False) -> bool:
        self.confirm_calls.append(message)
        if not self.confirms:
            return default
        return self._reply(self.confirms.pop(0))

    def select(self, message: str, options: Sequence[str]) -> int:
        self.select_calls.append((message, list(options)))
        if not self.selections:
            return 0
        return self._reply(self.selections.pop(0))


@pytest.fixture
def prompter() -> ScriptedPrompter:
    return ScriptedPrompter()


@pytest.fixture
def make_prompter():
    """Factory for prompters with scripted answers."""
    return ScriptedPrompter


# ---------------------------------------------------------------------------
# Saga collaborators
# ---------------------------------------------------------------------------

class FakeRepo:
    """Records git calls; ``fail_on`` maps an operation name to an error."""

    def __init__(self, path: Path, calls: list[tuple], fail_on: dict[str, BaseException]) -> None:
        self.path = path
        self.calls = calls
        self.fail_on = fail_on
        self.branches = ["main"]
        self.remotes = ["origin"]

    def _call(self, operation: str, *args: Any) -> None:
        self.calls.append((operation, *args))
        if operation in self.fail_on:
            raise self.fail_on[operation]

    async def reinitialize(self, message: str, initial_branch: str = "master") -> None:
        self._call("reinitialize", message)
        self.remotes = []
        self.branches = [initial_branch]

    async def delete_remote(self, name: str = "origin") -> None:
        self._call("delete_remote", name)
        self.remotes.remove(name)

    async def set_remote(self, url: str, name: str = "origin") -> None:
        self._call("set_remote", url)
        self.remotes.append(name)

    async def rename_current_branch(self, name: str) -> None:
        self._call("rename_current_branch", name)
        self.branches[0] = name

    async def create_branch_and_checkout(self, name: str) -> None:
        self._call("create_branch_and_checkout", name)
        self.branches.append(name)

    async def push(self, branch: str, remote: str = "origin") -> None:
        self._call(f"push:{branch}", branch)

    async def has_uncommitted_changes(self) -> bool:
        self._call("has_uncommitted_changes")
        return False

    async def list_branches(self) -> list[str]:
        self._call("list_branches")
        return list(self.branches)


class FakeVcs:
    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.fail_on: dict[str, BaseException] = {}
        self.repo: FakeRepo | None = None

    async def clone(self, source: str, destination: Path) -> FakeRepo:
        self.calls.append(("clone", source, str(destination)))
        if "clone" in self.fail_on:
            raise self.fail_on["clone"]
        (Path(destination) / "README.md").write_text("# template\n", encoding="utf-8")
        self.repo = FakeRepo(Path(destination), self.calls, self.fail_on)
        return self.repo

    def open(self, path: Path) -> FakeRepo:
        self.repo = self.repo or FakeRepo(Path(path), self.calls, self.fail_on)
        return self.repo


class FakeCatalog:
    def __init__(self, templates: list[TemplateDescriptor]) -> None:
        self.templates = templates
        self.calls = 0

    async def list(self) -> list[TemplateDescriptor]:
        self.calls += 1
        if not self.templates:
            raise NoTemplatesAvailable()
        return list(self.templates)


class FakeHosting:
    def __init__(self, remote: RemoteProject) -> None:
        self.remote = remote
        self.created: list[tuple[str, str]] = []
        self.deleted: list[Any] = []
        self.create_error: Exception | None = None
        self.delete_error: Exception | None = None

    async def create_project(self, name: str, description: str) -> RemoteProject:
        self.created.append((name, description))
        if self.create_error:
            raise self.create_error
        return self.remote

    async def delete_project(self, project_id: Any) -> None:
        self.deleted.append(project_id)
        if self.delete_error:
            raise self.delete_error


class FakeRegistry:
    def __init__(self) -> None:
        self.registered: list[tuple[ProjectRequest, RemoteProject]] = []
        self.error: Exception | None = None

    async def register_project(self, request: ProjectRequest, remote: RemoteProject) -> dict:
        self.registered.append((request, remote))
        if self.error:
            raise self.error
        return {"id": 501, "name": request.name}


@pytest.fixture
def template() -> TemplateDescriptor:
    return TemplateDescriptor(
        name="react-app",
        repo="git@git.example.com:templates/react-app.git",
        brief="React + Vite starter",
    )


@pytest.fixture
def remote_project() -> RemoteProject:
    return RemoteProject(
        id=42,
        name="my-app",
        ssh_url="git@git.example.com:team/my-app.git",
        http_url="https://git.example.com/team/my-app.git",
        web_url="https://git.example.com/team/my-app",
    )


@pytest.fixture
def project_request() -> ProjectRequest:
    return ProjectRequest(
        name="my-app",
        description="A demo application",
        build_cmd="npm run build",
        dist="dist",
        category="web",
        tags=("react", "demo"),
    )


@pytest.fixture
def fake_vcs() -> FakeVcs:
    return FakeVcs()


@pytest.fixture
def fake_catalog(template: TemplateDescriptor) -> FakeCatalog:
    return FakeCatalog([template])


@pytest.fixture
def fake_hosting(remote_project: RemoteProject) -> FakeHosting:
    return FakeHosting(remote_project)


@pytest.fixture
def fake_registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def transport_failure() -> VccError:
    """A push that failed because the remote host could not be reached."""
    return VccError(
        "push",
        "exit 128: git push",
        command="git push --set-upstream origin master:master",
        stderr="fatal: unable to access 'https://git.example.com/': Could not resolve host",
        kind=GitFailure.NETWORK_AUTH,
    )


# ---------------------------------------------------------------------------
# Real git
# ---------------------------------------------------------------------------

def _git(*args: str, cwd: Path) -> str:
    result = subprocess.run(
        ["git", *args], cwd=cwd, check=True, capture_output=True, text=True
    )
    return result.stdout.strip()


@pytest.fixture
def git_identity(monkeypatch: pytest.MonkeyPatch) -> None:
    """Give git a committer identity without touching the user's config."""
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Yoo Test")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@yoo.local")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Yoo Test")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@yoo.local")
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", os.devnull)


@pytest.fixture
def template_origin(tmp_path: Path, git_identity: None) -> Path:
    """Bare repository holding a small template with one commit on ``main``."""
    work = tmp_path / "template-src"
    work.mkdir()
    _git("init", "--initial-branch", "main", cwd=work)
    _git("config", "commit.gpgsign", "false", cwd=work)
    (work / "README.md").write_text("# Template\n", encoding="utf-8")
    (work / "package.json").write_text('{"name": "template"}\n', encoding="utf-8")
    _git("add", ".", cwd=work)
    _git("commit", "-m", "Initial template", cwd=work)

    bare = tmp_path / "template.git"
    _git("clone", "--bare", str(work), str(bare), cwd=tmp_path)
    return bare


@pytest.fixture
def empty_remote(tmp_path: Path) -> Path:
    """Bare repository standing in for the freshly created project remote."""
    bare = tmp_path / "remote.git"
    _git("init", "--bare", str(bare), cwd=tmp_path)
    return bare
