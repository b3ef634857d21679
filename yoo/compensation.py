"""Best-effort rollback of a failed scaffolding run.

Walks the effect log newest-first and undoes what can be undone:

* ``remote-created``    -> delete the repository on the git host
* ``template-cloned``   -> empty the workspace, when it already existed
* ``directory-created`` -> remove the outermost directory the run created

Pushed branches disappear with the remote.  A ``remote-registered`` record
is only written by the final step, so it never needs undoing.  Each action
runs on its own; a failure is reported and the remaining actions still run.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path

from yoo.api.gitlab import GitLabClient
from yoo.models import Effect, EffectRecord, SagaEffectLog
from yoo.utils import clear_directory, print_info, print_warning


@dataclass
class CompensationAction:
    """Outcome of undoing one effect."""

    effect: Effect
    target: str
    succeeded: bool
    error: str | None = None


@dataclass
class CompensationReport:
    actions: list[CompensationAction] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(action.succeeded for action in self.actions)

    @property
    def failures(self) -> list[CompensationAction]:
        return [action for action in self.actions if not action.succeeded]


async def compensate(
    effects: SagaEffectLog,
    *,
    hosting: GitLabClient,
    keep_directory: bool = False,
) -> CompensationReport:
    """Undo the compensable effects in *effects*, newest first.

    Args:
        effects: The log carried by the ``ScaffoldError``.  Read, never written.
        hosting: Client used to delete a created remote repository.
        keep_directory: Leave the workspace and its contents in place
            (user cancellation).

    Returns:
        What was attempted and what failed.  Never raises for a failed action.
    """
    report = CompensationReport()
    directory_created = Effect.DIRECTORY_CREATED in effects

    for record in reversed(effects):
        if record.effect is Effect.REMOTE_CREATED:
            report.actions.append(await _delete_remote(record, hosting))
        elif keep_directory:
            continue
        elif record.effect is Effect.TEMPLATE_CLONED and not directory_created:
            report.actions.append(_empty_workspace(record))
        elif record.effect is Effect.DIRECTORY_CREATED:
            report.actions.append(_remove_directory(record))

    return report


async def _delete_remote(record: EffectRecord, hosting: GitLabClient) -> CompensationAction:
    project_id = record.detail.get("project_id")
    target = str(record.detail.get("web_url") or project_id)
    try:
        await hosting.delete_project(project_id)
    except Exception as exc:  # noqa: BLE001
        print_warning(f"Could not delete remote repository {target}: {exc}")
        return CompensationAction(record.effect, target, succeeded=False, error=str(exc))
    print_info(f"Deleted remote repository {target}")
    return CompensationAction(record.effect, target, succeeded=True)


def _empty_workspace(record: EffectRecord) -> CompensationAction:
    path = Path(record.detail["path"])
    try:
        if path.is_dir():
            clear_directory(path)
    except Exception as exc:  # noqa: BLE001
        print_warning(f"Could not empty {path}: {exc}")
        return CompensationAction(record.effect, str(path), succeeded=False, error=str(exc))
    print_info(f"Emptied {path}")
    return CompensationAction(record.effect, str(path), succeeded=True)


def _remove_directory(record: EffectRecord) -> CompensationAction:
    path = Path(record.detail["path"])
    try:
        if path.exists():
            shutil.rmtree(path)
    except Exception as exc:  # noqa: BLE001
        print_warning(f"Could not remove {path}: {exc}")
        return CompensationAction(record.effect, str(path), succeeded=False, error=str(exc))
    print_info(f"Removed {path}")
    return CompensationAction(record.effect, str(path), succeeded=True)
