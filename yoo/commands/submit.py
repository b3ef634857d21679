"""``yoo submit``: push a branch of the current project."""

from __future__ import annotations

import json

from yoo.config import Config
from yoo.context import AppContext
from yoo.utils import load_json, print_error, print_success, spinner


async def submit(
    config: Config,
    context: AppContext | None = None,
    branch: str | None = None,
) -> int:
    """Push *branch* (picked interactively when ``None``) to ``origin``.

    Refuses to push while the working tree has uncommitted changes.

    Returns:
        ``0`` once pushed, ``1`` when the push was refused.
    """
    context = context or AppContext.from_config(config)
    repo = context.vcs.open(config.workdir)

    if await repo.has_uncommitted_changes():
        print_error("There are uncommitted changes; commit or stash them first.")
        return 1

    branches = await repo.list_branches()
    if branch is None:
        if not branches:
            print_error("The repository has no branches to submit.")
            return 1
        branch = branches[context.prompter.select("Select a branch to submit", branches)]
    elif branch not in branches:
        print_error(f"Unknown branch '{branch}'. Local branches: {', '.join(branches)}")
        return 1

    with spinner(f"Pushing {branch}..."):
        await repo.push(branch)

    print_success(f"Pushed {branch} to origin.")
    web_url = _recorded_web_url(config)
    if web_url:
        print_success(f"Project page: {web_url}")
    return 0


def _recorded_web_url(config: Config) -> str:
    path = Config.project_record_path(config.workdir)
    if not path.exists():
        return ""
    try:
        record = load_json(path)
    except json.JSONDecodeError:
        return ""
    return (record.get("project") or {}).get("web_url", "")
