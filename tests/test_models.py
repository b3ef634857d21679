"""Unit tests for the data model (yoo.models).

Tests cover:
- Project name validation (accepted and rejected shapes)
- validate_request description checks
- ProjectRequest immutability and tag parsing
- TemplateDescriptor / RemoteProject helpers
- SagaEffectLog append-only behaviour, lookups and snapshots
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from yoo.errors import ProjectValidationError, SagaInvariantError
from yoo.models import (
    Effect,
    ProjectRequest,
    RemoteProject,
    SagaEffectLog,
    TemplateDescriptor,
    validate_project_name,
    validate_request,
)

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Name validation
# ---------------------------------------------------------------------------

class TestValidateProjectName:
    @pytest.mark.parametrize(
        "name",
        ["my-app", "app", "App2", "a-b-c", "X", "2048", "web-Portal-v2"],
    )
    def test_accepts_valid_names(self, name):
        assert validate_project_name(name) == name

    @pytest.mark.parametrize(
        "name",
        [
            "my app",
            " my-app",
            "my-app ",
            "my_app",
            "my.app",
            "my/app",
            "-my-app",
            "my-app-",
            "my--app",
            "-",
            "app!",
            "café",
            "tab\tname",
        ],
    )
    def test_rejects_invalid_names(self, name):
        with pytest.raises(ProjectValidationError) as exc_info:
            validate_project_name(name)
        assert exc_info.value.field == "name"

    def test_rejects_empty_name(self):
        with pytest.raises(ProjectValidationError, match="must not be empty"):
            validate_project_name("")


class TestValidateRequest:
    def test_valid_request_passes(self, project_request):
        assert validate_request(project_request) is project_request

    def test_blank_description_rejected(self):
        request = ProjectRequest(name="my-app", description="   ")
        with pytest.raises(ProjectValidationError) as exc_info:
            validate_request(request)
        assert exc_info.value.field == "description"

    def test_bad_name_reported_before_description(self):
        request = ProjectRequest(name="bad name", description="")
        with pytest.raises(ProjectValidationError) as exc_info:
            validate_request(request)
        assert exc_info.value.field == "name"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

class TestProjectRequest:
    def test_is_frozen(self, project_request):
        with pytest.raises(ValidationError):
            project_request.name = "other"

    def test_tags_from_comma_string(self):
        request = ProjectRequest(name="a", description="b", tags="react, demo,,  web ")
        assert request.tags == ("react", "demo", "web")

    def test_optional_fields_default_to_none(self):
        request = ProjectRequest(name="a", description="b")
        assert request.build_cmd is None
        assert request.dist is None
        assert request.category is None
        assert request.tags == ()


class TestTemplateDescriptor:
    def test_label_with_brief(self, template):
        assert template.label() == "react-app -- React + Vite starter"

    def test_label_without_brief(self):
        assert TemplateDescriptor(name="bare", repo="x").label() == "bare"


class TestRemoteProject:
    def test_clone_url_by_protocol(self, remote_project):
        assert remote_project.clone_url("ssh") == remote_project.ssh_url
        assert remote_project.clone_url("http") == remote_project.http_url

    def test_clone_url_defaults_to_ssh(self, remote_project):
        assert remote_project.clone_url() == remote_project.ssh_url


# ---------------------------------------------------------------------------
# SagaEffectLog
# ---------------------------------------------------------------------------

class TestSagaEffectLog:
    def test_starts_empty(self):
        log = SagaEffectLog()
        assert len(log) == 0
        assert Effect.DIRECTORY_CREATED not in log
        assert log.remote_project_id is None

    def test_records_in_order(self):
        log = SagaEffectLog()
        log.record(Effect.DIRECTORY_CREATED, path="/tmp/x")
        log.record(Effect.TEMPLATE_CLONED, template="t")
        log.record(Effect.REMOTE_CREATED, project_id=7)
        assert [r.effect for r in log] == [
            Effect.DIRECTORY_CREATED,
            Effect.TEMPLATE_CLONED,
            Effect.REMOTE_CREATED,
        ]
        assert [r.effect for r in reversed(log)][0] is Effect.REMOTE_CREATED

    def test_has_matches_detail(self):
        log = SagaEffectLog()
        log.record(Effect.BRANCH_PUSHED, branch="master")
        assert log.has(Effect.BRANCH_PUSHED)
        assert log.has(Effect.BRANCH_PUSHED, branch="master")
        assert not log.has(Effect.BRANCH_PUSHED, branch="dev")

    def test_remote_project_id_and_branches(self):
        log = SagaEffectLog()
        log.record(Effect.REMOTE_CREATED, project_id=42)
        log.record(Effect.BRANCH_PUSHED, branch="master")
        log.record(Effect.BRANCH_PUSHED, branch="dev")
        assert log.remote_project_id == 42
        assert log.pushed_branches == ["master", "dev"]

    def test_describe(self):
        log = SagaEffectLog()
        log.record(Effect.REMOTE_CREATED, project_id=1)
        log.record(Effect.BRANCH_PUSHED, branch="master")
        assert log.describe() == ["remote-created", "branch-pushed(master)"]

    def test_require_passes_when_present(self):
        log = SagaEffectLog()
        log.record(Effect.TEMPLATE_CLONED)
        log.require("detach-template", Effect.TEMPLATE_CLONED)

    def test_require_raises_when_missing(self):
        log = SagaEffectLog()
        log.record(Effect.BRANCH_PUSHED, branch="master")
        with pytest.raises(SagaInvariantError, match="branch-pushed\\(dev\\)"):
            log.require("register", Effect.BRANCH_PUSHED, branch="dev")

    def test_snapshot_is_read_only_and_detached(self):
        log = SagaEffectLog()
        log.record(Effect.DIRECTORY_CREATED, path="/tmp/x")
        snap = log.snapshot()
        log.record(Effect.TEMPLATE_CLONED)

        assert len(snap) == 1
        with pytest.raises(SagaInvariantError):
            snap.record(Effect.REMOTE_CREATED, project_id=1)

    def test_entries_is_a_copy(self):
        log = SagaEffectLog()
        log.record(Effect.DIRECTORY_CREATED, path="/tmp/x")
        entries = log.entries
        log.record(Effect.TEMPLATE_CLONED)
        assert len(entries) == 1
