"""Git working-copy operations.

Every operation shells out to ``git`` through ``_run_git`` and raises
``VccError`` (operation name, command, stderr, failure kind) when git exits
non-zero.  Callers never parse git output themselves.
"""

from __future__ import annotations

import asyncio
import base64
import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from yoo.errors import GitFailure, VccError
from yoo.utils import print_debug

DEFAULT_REMOTE = "origin"


@dataclass(frozen=True)
class GitAuth:
    """Credentials git needs to talk to the project remote.

    HTTP basic credentials are passed as an ``http.<scope>.extraHeader``
    through ``GIT_CONFIG_*`` variables so they never land in ``.git/config``
    or the process list.  git only attaches the header to URLs under
    *scope* (the git host's base URL); without a scope no header is sent.
    SSH uses the agent unless an explicit key is given.
    """

    username: str = ""
    password: str = ""
    ssh_key: Path | None = None
    scope: str = ""

    def env(self) -> dict[str, str]:
        env: dict[str, str] = {"GIT_TERMINAL_PROMPT": "0"}
        if self.username and self.password and self.scope:
            token = base64.b64encode(f"{self.username}:{self.password}".encode()).decode()
            env.update({
                "GIT_CONFIG_COUNT": "1",
                "GIT_CONFIG_KEY_0": f"http.{self.scope.rstrip('/')}/.extraHeader",
                "GIT_CONFIG_VALUE_0": f"Authorization: Basic {token}",
            })
        if self.ssh_key:
            env["GIT_SSH_COMMAND"] = f'ssh -i "{self.ssh_key}" -o IdentitiesOnly=yes'
        return env


async def _run_git(
    *args: str,
    operation: str,
    cwd: str | Path | None = None,
    timeout: float = 300.0,
    env: dict[str, str] | None = None,
) -> tuple[str, str]:
    """Run a git command asynchronously and return (stdout, stderr).

    Raises VccError if git is missing, times out or exits non-zero.
    """
    cmd = ["git"] + list(args)
    cmd_str = " ".join(cmd)
    merged_env = {**os.environ, **env} if env else None
    print_debug(f"$ {cmd_str} (cwd={cwd or '.'})")

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd) if cwd else None,
            env=merged_env,
        )
    except FileNotFoundError as exc:
        raise VccError(
            operation, "git executable not found on PATH", command=cmd_str,
            kind=GitFailure.UNKNOWN,
        ) from exc

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.CancelledError:
        process.kill()
        await process.wait()
        raise
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        raise VccError(
            operation,
            f"timed out after {timeout}s: {cmd_str}",
            command=cmd_str,
            kind=GitFailure.NETWORK_AUTH,
        )

    stdout = stdout_bytes.decode("utf-8", errors="replace").strip()
    stderr = stderr_bytes.decode("utf-8", errors="replace").strip()

    if process.returncode != 0:
        raise VccError(
            operation,
            f"exit {process.returncode}: {cmd_str}\n{stderr}",
            command=cmd_str,
            stderr=stderr,
        )

    return stdout, stderr


class GitRepository:
    """A git working copy bound to one directory."""

    def __init__(
        self,
        path: str | Path,
        auth: GitAuth | None = None,
        timeout: float = 300.0,
    ) -> None:
        self.path = Path(path).resolve()
        self.auth = auth or GitAuth()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    async def clone(
        cls,
        source: str,
        destination: str | Path,
        auth: GitAuth | None = None,
        timeout: float = 300.0,
    ) -> "GitRepository":
        """Clone *source* into *destination* (which must be absent or empty)."""
        auth = auth or GitAuth()
        await _run_git(
            "clone", source, str(destination),
            operation="clone", timeout=timeout, env=auth.env(),
        )
        return cls(destination, auth=auth, timeout=timeout)

    @classmethod
    def open(
        cls,
        path: str | Path,
        auth: GitAuth | None = None,
        timeout: float = 300.0,
    ) -> "GitRepository":
        """Bind to an existing working copy, failing if *path* has no ``.git``."""
        repo_path = Path(path).resolve()
        if not (repo_path / ".git").exists():
            raise VccError(
                "open",
                f"not a git repository: {repo_path}",
                kind=GitFailure.NOT_FOUND,
            )
        return cls(repo_path, auth=auth, timeout=timeout)

    async def _git(self, *args: str, operation: str) -> str:
        stdout, _ = await _run_git(
            *args,
            operation=operation,
            cwd=self.path,
            timeout=self.timeout,
            env=self.auth.env(),
        )
        return stdout

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    async def init(self, initial_branch: str = "master") -> None:
        self.path.mkdir(parents=True, exist_ok=True)
        await self._git("init", "--initial-branch", initial_branch, operation="init")

    async def reinitialize(self, message: str, initial_branch: str = "master") -> None:
        """Drop the existing history and commit the working tree as one commit."""
        shutil.rmtree(self.path / ".git")
        await self.init(initial_branch)
        await self._git("add", "--all", operation="add")
        await self._git("commit", "--quiet", "-m", message, operation="commit")

    # ------------------------------------------------------------------
    # Remotes
    # ------------------------------------------------------------------

    async def list_remotes(self) -> list[str]:
        stdout = await self._git("remote", operation="list-remotes")
        return [line.strip() for line in stdout.splitlines() if line.strip()]

    async def delete_remote(self, name: str = DEFAULT_REMOTE) -> None:
        await self._git("remote", "remove", name, operation="delete-remote")

    async def set_remote(self, url: str, name: str = DEFAULT_REMOTE) -> None:
        """Point remote *name* at *url*, adding it if it does not exist yet."""
        if name in await self.list_remotes():
            await self._git("remote", "set-url", name, url, operation="set-remote")
        else:
            await self._git("remote", "add", name, url, operation="set-remote")

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    async def rename_current_branch(self, name: str) -> None:
        await self._git("branch", "-M", name, operation="rename-branch")

    async def create_branch_and_checkout(self, name: str) -> None:
        """Create *name* from HEAD and switch to it; fails if it already exists."""
        await self._git("checkout", "-b", name, operation="create-branch")

    async def list_branches(self) -> list[str]:
        stdout = await self._git(
            "branch", "--format=%(refname:short)", operation="list-branches"
        )
        return [line.strip() for line in stdout.splitlines() if line.strip()]

    async def push(self, branch: str, remote: str = DEFAULT_REMOTE) -> None:
        """Push local *branch* to *remote* and set it as upstream."""
        await self._git(
            "push", "--set-upstream", remote, f"{branch}:{branch}", operation="push"
        )

    # ------------------------------------------------------------------
    # Working tree
    # ------------------------------------------------------------------

    async def has_uncommitted_changes(self) -> bool:
        stdout = await self._git("status", "--porcelain", operation="status")
        return bool(stdout.strip())


class GitClient:
    """Factory binding auth and timeout to every repository it hands out."""

    def __init__(self, auth: GitAuth | None = None, timeout: float = 300.0) -> None:
        self.auth = auth or GitAuth()
        self.timeout = timeout

    async def clone(self, source: str, destination: str | Path) -> GitRepository:
        return await GitRepository.clone(
            source, destination, auth=self.auth, timeout=self.timeout
        )

    def open(self, path: str | Path) -> GitRepository:
        return GitRepository.open(path, auth=self.auth, timeout=self.timeout)
