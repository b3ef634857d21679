"""``yoo create``: interactive scaffolding with rollback on failure."""

from __future__ import annotations

import asyncio
import time
from pathlib import Path

from yoo.compensation import compensate
from yoo.config import Config
from yoo.context import AppContext
from yoo.errors import AuthenticationFailed, ScaffoldError, UserCancelled
from yoo.models import ProjectRequest, RemoteProject
from yoo.prompts import Prompter
from yoo.utils import (
    console,
    format_duration,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
    save_json,
)

REQUIRED_SETTINGS = ("server.url", "server.email", "server.password", "gitlab.token")


def prompt_request(prompter: Prompter) -> ProjectRequest:
    """Ask for everything a ``ProjectRequest`` needs.

    Values are not validated here; the saga's first step does that.
    """
    name = prompter.ask("Project name")
    description = prompter.ask("Description")
    build_cmd = prompter.ask("Build command", default="")
    dist = prompter.ask("Build output directory", default="")
    category = prompter.ask("Category", default="")
    tags = prompter.ask("Tags (comma separated)", default="")
    return ProjectRequest(
        name=name,
        description=description,
        build_cmd=build_cmd or None,
        dist=dist or None,
        category=category or None,
        tags=tags,
    )


def resolve_workspace(workdir: Path, answer: str, name: str) -> Path:
    """Turn the directory answer into an absolute path; blank means ``./<name>``."""
    target = Path(answer.strip() or name).expanduser()
    if not target.is_absolute():
        target = Path(workdir) / target
    return target.resolve()


async def create(
    config: Config,
    context: AppContext | None = None,
    *,
    rollback: bool = True,
) -> int:
    """Run the scaffolding saga and roll back whatever a failure left behind.

    Args:
        config: Effective configuration.
        context: Pre-built clients; built from *config* when omitted.
        rollback: Compensate on failure.  When ``False`` the effect log is
            printed instead so the leftovers can be inspected.

    Returns:
        ``0`` on success or user cancellation, ``1`` on failure, ``130``
        when interrupted (after rolling back).
    """
    config.require(*REQUIRED_SETTINGS)
    context = context or AppContext.from_config(config)

    try:
        request = prompt_request(context.prompter)
        answer = context.prompter.ask("Target directory", default=f"./{request.name}")
    except UserCancelled as exc:
        print_warning(str(exc))
        return 0
    workspace = resolve_workspace(config.workdir, answer, request.name)

    started = time.monotonic()
    saga = context.saga(workspace)
    try:
        remote = await saga.run(request)
    except ScaffoldError as exc:
        return await _handle_failure(exc, context, rollback=rollback)

    await _record_project(workspace, remote, saga.registration or {})
    print_summary_table(
        {
            "Project": request.name,
            "Directory": str(workspace),
            "Repository": remote.web_url or str(remote.id),
            "Clone URL": remote.clone_url(config.git.protocol),
            "Branches": ", ".join(saga.effects.pushed_branches),
            "Took": format_duration(time.monotonic() - started),
        },
        title="Project created",
    )
    print_success(f"Done. cd {workspace} and start working on dev.")
    return 0


async def _handle_failure(exc: ScaffoldError, context: AppContext, *, rollback: bool) -> int:
    cancelled = isinstance(exc.cause, UserCancelled)
    interrupted = isinstance(exc.cause, (KeyboardInterrupt, asyncio.CancelledError))
    if cancelled:
        print_warning(str(exc.cause))
        status = 0
    elif interrupted:
        print_warning(f"Interrupted during {exc.step}.")
        status = 130
    else:
        print_error(str(exc))
        if isinstance(exc.cause, AuthenticationFailed):
            print_warning("Check YOO_EMAIL / YOO_PASSWORD (or --email / --password).")
        status = 1

    if not exc.effects:
        return status

    if not rollback:
        print_warning("Rollback disabled; these effects were left in place:")
        for line in exc.effects.describe():
            console.print(f"  - {line}")
        project_id = exc.effects.remote_project_id
        if project_id is not None:
            print_warning(f"Remote project {project_id} still exists on the git host.")
        return status

    report = await compensate(exc.effects, hosting=context.hosting, keep_directory=cancelled)
    if not report.ok:
        print_warning(
            f"Rollback incomplete: {len(report.failures)} action(s) failed; "
            "clean up the remaining items by hand."
        )
    return status


async def _record_project(workspace: Path, remote: RemoteProject, registration: dict) -> None:
    path = Config.project_record_path(workspace)
    try:
        await save_json(
            {"project": remote.model_dump(), "registration_id": registration.get("id")},
            path,
        )
    except OSError as exc:
        print_warning(f"Could not write {path}: {exc}")
