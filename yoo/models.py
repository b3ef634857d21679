"""Data model for the scaffolding saga.

Wire-facing records (requests, templates, remote projects) are Pydantic v2
models; the effect log is a plain append-only container.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from yoo.errors import ProjectValidationError, SagaInvariantError

NAME_PATTERN = re.compile(r"^[A-Za-z0-9]+(-[A-Za-z0-9]+)*$")


# ---------------------------------------------------------------------------
# Requests and remote records
# ---------------------------------------------------------------------------


class ProjectRequest(BaseModel):
    """What the user asked for.  Frozen once built."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    build_cmd: str | None = None
    dist: str | None = Field(default=None, description="Build output directory")
    category: str | None = None
    tags: tuple[str, ...] = ()

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, value: Any) -> Any:
        if isinstance(value, str):
            return tuple(tag.strip() for tag in value.split(",") if tag.strip())
        return value


class TemplateDescriptor(BaseModel):
    """One entry of the template catalog."""

    model_config = ConfigDict(frozen=True)

    name: str
    repo: str = Field(description="Clone source URI")
    brief: str = ""

    def label(self) -> str:
        return f"{self.name} -- {self.brief}" if self.brief else self.name


class RemoteProject(BaseModel):
    """Repository created on the git host."""

    model_config = ConfigDict(frozen=True)

    id: int | str
    name: str = ""
    ssh_url: str
    http_url: str
    web_url: str = ""

    def clone_url(self, protocol: str = "ssh") -> str:
        return self.http_url if protocol == "http" else self.ssh_url


def validate_project_name(name: str) -> str:
    """Return *name* unchanged or raise ``ProjectValidationError``.

    Accepted names are ASCII letters and digits, optionally split into
    groups by single hyphens: ``my-app``, ``App2``, ``a-b-c``.
    """
    if not name:
        raise ProjectValidationError("name", "must not be empty")
    if not NAME_PATTERN.fullmatch(name):
        raise ProjectValidationError(
            "name",
            f"'{name}' may only contain letters, digits and single inner hyphens",
        )
    return name


def validate_request(request: ProjectRequest) -> ProjectRequest:
    """Validate the parts of a request that the saga depends on."""
    validate_project_name(request.name)
    if not request.description.strip():
        raise ProjectValidationError("description", "must not be empty")
    return request


# ---------------------------------------------------------------------------
# Effect log
# ---------------------------------------------------------------------------


class Effect(str, Enum):
    """Durable external effects a saga run can commit."""

    DIRECTORY_CREATED = "directory-created"
    TEMPLATE_CLONED = "template-cloned"
    REMOTE_CREATED = "remote-created"
    BRANCH_PUSHED = "branch-pushed"
    REMOTE_REGISTERED = "remote-registered"


@dataclass(frozen=True)
class EffectRecord:
    """A committed effect and the data needed to undo it."""

    effect: Effect
    detail: dict[str, Any] = field(default_factory=dict)
    recorded_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def describe(self) -> str:
        if self.effect is Effect.BRANCH_PUSHED:
            return f"{self.effect.value}({self.detail.get('branch', '?')})"
        return self.effect.value


class SagaEffectLog:
    """Ordered, append-only record of committed effects."""

    def __init__(self, records: tuple[EffectRecord, ...] = (), frozen: bool = False) -> None:
        self._records: list[EffectRecord] = list(records)
        self._frozen = frozen

    def record(self, effect: Effect, **detail: Any) -> EffectRecord:
        if self._frozen:
            raise SagaInvariantError("Effect log snapshots are read-only")
        entry = EffectRecord(effect=effect, detail=dict(detail))
        self._records.append(entry)
        return entry

    def has(self, effect: Effect, **detail: Any) -> bool:
        """Return ``True`` if a record of *effect* matches every given detail."""
        return any(
            rec.effect is effect and all(rec.detail.get(k) == v for k, v in detail.items())
            for rec in self._records
        )

    def find(self, effect: Effect) -> EffectRecord | None:
        for rec in self._records:
            if rec.effect is effect:
                return rec
        return None

    def require(self, step: str, effect: Effect, **detail: Any) -> None:
        """Refuse to run *step* unless *effect* has been committed."""
        if not self.has(effect, **detail):
            wanted = EffectRecord(effect, detail).describe()
            raise SagaInvariantError(f"Step '{step}' requires '{wanted}' to be committed first")

    def snapshot(self) -> "SagaEffectLog":
        return SagaEffectLog(tuple(self._records), frozen=True)

    @property
    def entries(self) -> tuple[EffectRecord, ...]:
        return tuple(self._records)

    @property
    def remote_project_id(self) -> int | str | None:
        rec = self.find(Effect.REMOTE_CREATED)
        return rec.detail.get("project_id") if rec else None

    @property
    def pushed_branches(self) -> list[str]:
        return [r.detail["branch"] for r in self._records if r.effect is Effect.BRANCH_PUSHED]

    def describe(self) -> list[str]:
        return [rec.describe() for rec in self._records]

    def __contains__(self, effect: object) -> bool:
        return any(rec.effect is effect for rec in self._records)

    def __iter__(self) -> Iterator[EffectRecord]:
        return iter(tuple(self._records))

    def __reversed__(self) -> Iterator[EffectRecord]:
        return iter(tuple(reversed(self._records)))

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"SagaEffectLog({', '.join(self.describe())})"
