"""yoo configuration.

Centralised, typed configuration for the CLI.  All settings use Pydantic v2
models so they are validated at construction time, can be read from
environment variables and overridden by command-line flags.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field

from yoo.errors import ConfigError

DEFAULT_CREDENTIALS_PATH = Path.home() / ".yoo" / "credentials.json"


class ServerConfig(BaseModel):
    """Registration service endpoint and login."""

    url: str = Field(default="")
    email: str = Field(default="")
    password: str = Field(default="")
    timeout: float = Field(default=30.0, ge=1, description="Per-request timeout in seconds")


class GitLabConfig(BaseModel):
    """Git host on which the project repository is created."""

    url: str = Field(default="https://gitlab.com")
    token: str = Field(default="", description="Personal access token sent as PRIVATE-TOKEN")
    namespace_id: int | None = Field(default=None)
    visibility: Literal["private", "internal", "public"] = Field(default="private")


class GitConfig(BaseModel):
    """How the local git working copy talks to the remote."""

    protocol: Literal["ssh", "http"] = Field(
        default="ssh", description="Which clone URL of the new repository becomes origin"
    )
    username: str = Field(default="", description="HTTP push user")
    password: str = Field(default="", description="HTTP push password or token")
    ssh_key: Path | None = Field(default=None)
    timeout: float = Field(default=300.0, ge=1, description="Per-command timeout in seconds")
    fresh_history: bool = Field(
        default=False, description="Drop the template history and start from one commit"
    )


class Config(BaseModel):
    """Global yoo configuration.

    Created once by the CLI entry point and passed to the commands, which
    build the API clients and the saga from it.
    """

    server: ServerConfig = Field(default_factory=ServerConfig)
    gitlab: GitLabConfig = Field(default_factory=GitLabConfig)
    git: GitConfig = Field(default_factory=GitConfig)
    credentials_path: Path = Field(default=DEFAULT_CREDENTIALS_PATH)
    workdir: Path = Field(default_factory=Path.cwd)
    debug: bool = Field(default=False)

    # ------------------------------------------------------------------
    # Derived paths
    # ------------------------------------------------------------------

    @staticmethod
    def project_record_path(workspace: Path) -> Path:
        """Where the created project is recorded inside a workspace.

        Lives under ``.git`` so it never shows up as an uncommitted change.
        """
        return Path(workspace) / ".git" / "yoo" / "project.json"

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            YOO_SERVER, YOO_EMAIL, YOO_PASSWORD, YOO_TIMEOUT,
            GITLAB_URL, GITLAB_TOKEN, GITLAB_NAMESPACE_ID, GITLAB_VISIBILITY,
            GITLAB_USERNAME, GITLAB_PASSWORD, YOO_SSH_KEY, YOO_GIT_PROTOCOL,
            YOO_GIT_TIMEOUT, YOO_FRESH_HISTORY, YOO_CREDENTIALS, YOO_DEBUG.
        """
        server_kwargs: dict[str, Any] = {}
        if os.environ.get("YOO_SERVER"):
            server_kwargs["url"] = os.environ["YOO_SERVER"]
        if os.environ.get("YOO_EMAIL"):
            server_kwargs["email"] = os.environ["YOO_EMAIL"]
        if os.environ.get("YOO_PASSWORD"):
            server_kwargs["password"] = os.environ["YOO_PASSWORD"]
        if os.environ.get("YOO_TIMEOUT"):
            server_kwargs["timeout"] = float(os.environ["YOO_TIMEOUT"])

        gitlab_kwargs: dict[str, Any] = {}
        if os.environ.get("GITLAB_URL"):
            gitlab_kwargs["url"] = os.environ["GITLAB_URL"]
        if os.environ.get("GITLAB_TOKEN"):
            gitlab_kwargs["token"] = os.environ["GITLAB_TOKEN"]
        if os.environ.get("GITLAB_NAMESPACE_ID"):
            gitlab_kwargs["namespace_id"] = int(os.environ["GITLAB_NAMESPACE_ID"])
        if os.environ.get("GITLAB_VISIBILITY"):
            gitlab_kwargs["visibility"] = os.environ["GITLAB_VISIBILITY"]

        git_kwargs: dict[str, Any] = {}
        if os.environ.get("GITLAB_USERNAME"):
            git_kwargs["username"] = os.environ["GITLAB_USERNAME"]
        if os.environ.get("GITLAB_PASSWORD"):
            git_kwargs["password"] = os.environ["GITLAB_PASSWORD"]
        if os.environ.get("YOO_SSH_KEY"):
            git_kwargs["ssh_key"] = Path(os.environ["YOO_SSH_KEY"]).expanduser()
        if os.environ.get("YOO_GIT_PROTOCOL"):
            git_kwargs["protocol"] = os.environ["YOO_GIT_PROTOCOL"]
        if os.environ.get("YOO_GIT_TIMEOUT"):
            git_kwargs["timeout"] = float(os.environ["YOO_GIT_TIMEOUT"])
        if os.environ.get("YOO_FRESH_HISTORY"):
            git_kwargs["fresh_history"] = _env_flag("YOO_FRESH_HISTORY")

        kwargs: dict[str, Any] = {
            "server": ServerConfig(**server_kwargs),
            "gitlab": GitLabConfig(**gitlab_kwargs),
            "git": GitConfig(**git_kwargs),
            "debug": _env_flag("YOO_DEBUG"),
        }
        if os.environ.get("YOO_CREDENTIALS"):
            kwargs["credentials_path"] = Path(os.environ["YOO_CREDENTIALS"]).expanduser()

        return cls(**kwargs)

    def with_overrides(self, **values: Any) -> "Config":
        """Return a copy with command-line values applied on top.

        Keys are ``section__field`` (``server__url``) or top-level field
        names.  ``None`` values are ignored so unset flags keep the
        environment's value.
        """
        updates: dict[str, Any] = {}
        sections: dict[str, dict[str, Any]] = {}
        for key, value in values.items():
            if value is None:
                continue
            if "__" in key:
                section, name = key.split("__", 1)
                sections.setdefault(section, {})[name] = value
            else:
                updates[key] = value

        for section, fields in sections.items():
            current: BaseModel = getattr(self, section)
            updates[section] = current.model_copy(update=fields)

        return self.model_copy(update=updates)

    def require(self, *fields: str) -> None:
        """Raise ``ConfigError`` unless every dotted *field* is set."""
        missing: list[str] = []
        for dotted in fields:
            value: Any = self
            for part in dotted.split("."):
                value = getattr(value, part)
            if value in (None, ""):
                missing.append(dotted)
        if missing:
            raise ConfigError(missing, "Set them with flags or environment variables (see --help)")


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in {"1", "true", "yes", "on"}
