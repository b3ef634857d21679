"""Scaffolding saga.

Drives the ordered steps that turn a template into a registered project:

 1. validate           -- check name and description (pure)
 2. prepare-directory  -- create the workspace if it is absent
 3. confirm-cleanup    -- empty a non-empty workspace after confirmation
 4. select-template    -- fetch the catalog and let the user pick
 5. clone-template     -- clone the template into the workspace
 6. detach-template    -- drop the template's origin (or its whole history)
 7. create-remote      -- create the repository on the git host
 8. push-master        -- point origin at it and push ``master``
 9. push-dev           -- branch ``dev`` from ``master`` and push it
10. register           -- record the project with the registration service

Each step that commits a durable effect appends it to the effect log right
after it succeeds, and refuses to run unless the effects it builds on are
already logged.  The saga never undoes anything itself: a failure raises
``ScaffoldError`` carrying the step name, the cause and a snapshot of the
log, and the caller decides whether to compensate (see ``yoo.compensation``).
"""

from __future__ import annotations

import asyncio
from enum import Enum
from pathlib import Path

from yoo.api.gitlab import GitLabClient
from yoo.api.registry import RegistryClient
from yoo.errors import (
    ProjectValidationError,
    SagaInvariantError,
    ScaffoldError,
    UserCancelled,
)
from yoo.models import (
    Effect,
    ProjectRequest,
    RemoteProject,
    SagaEffectLog,
    TemplateDescriptor,
    validate_request,
)
from yoo.prompts import Prompter
from yoo.templates import TemplateCatalog, select_template
from yoo.utils import clear_directory, is_empty_dir, print_debug, print_info, spinner
from yoo.vcs import DEFAULT_REMOTE, GitClient, GitRepository

MASTER_BRANCH = "master"
DEV_BRANCH = "dev"


class Step(str, Enum):
    VALIDATE = "validate"
    PREPARE_DIRECTORY = "prepare-directory"
    CONFIRM_CLEANUP = "confirm-cleanup"
    SELECT_TEMPLATE = "select-template"
    CLONE_TEMPLATE = "clone-template"
    DETACH_TEMPLATE = "detach-template"
    CREATE_REMOTE = "create-remote"
    PUSH_MASTER = "push-master"
    PUSH_DEV = "push-dev"
    REGISTER = "register"


class ScaffoldSaga:
    """One scaffolding run into one workspace.

    Attributes:
        workspace: Absolute path of the project directory.  Owned by this
            run; two sagas must never share it.
        effects: Effects committed so far.  Only ``run`` appends to it.
        registration: The registration service's record, once registered.
    """

    def __init__(
        self,
        workspace: str | Path,
        *,
        vcs: GitClient,
        catalog: TemplateCatalog,
        hosting: GitLabClient,
        registry: RegistryClient,
        prompter: Prompter,
        remote_protocol: str = "ssh",
        fresh_history: bool = False,
    ) -> None:
        self.workspace = Path(workspace).resolve()
        self.vcs = vcs
        self.catalog = catalog
        self.hosting = hosting
        self.registry = registry
        self.prompter = prompter
        self.remote_protocol = remote_protocol
        self.fresh_history = fresh_history

        self.effects = SagaEffectLog()
        self.registration: dict | None = None
        self._started = False
        self._step = Step.VALIDATE

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    async def run(self, request: ProjectRequest) -> RemoteProject:
        """Execute every step in order and return the created project.

        Raises:
            ScaffoldError: wrapping whatever the failing step raised.
            SagaInvariantError: if this instance has already run.
        """
        if self._started:
            raise SagaInvariantError("A ScaffoldSaga instance can only run once")
        self._started = True

        try:
            self._enter(Step.VALIDATE)
            validate_request(request)

            self._enter(Step.PREPARE_DIRECTORY)
            self._prepare_directory()

            self._enter(Step.CONFIRM_CLEANUP)
            self._confirm_cleanup()

            self._enter(Step.SELECT_TEMPLATE)
            template = await self._select_template()

            self._enter(Step.CLONE_TEMPLATE)
            repo = await self._clone_template(template)

            self._enter(Step.DETACH_TEMPLATE)
            await self._detach_template(repo, request, template)

            self._enter(Step.CREATE_REMOTE)
            remote = await self._create_remote(request)

            self._enter(Step.PUSH_MASTER)
            await self._push_master(repo, remote)

            self._enter(Step.PUSH_DEV)
            await self._push_dev(repo)

            self._enter(Step.REGISTER)
            await self._register(request, remote)
        except (Exception, KeyboardInterrupt, asyncio.CancelledError) as exc:
            raise ScaffoldError(self._step.value, exc, self.effects.snapshot()) from exc

        return remote

    def _enter(self, step: Step) -> None:
        self._step = step
        print_debug(f"step {step.value}; effects so far: {self.effects.describe()}")

    def _commit(self, effect: Effect, **detail: object) -> None:
        record = self.effects.record(effect, **detail)
        print_debug(f"committed {record.describe()} {detail}")

    # ------------------------------------------------------------------
    # Local steps
    # ------------------------------------------------------------------

    def _prepare_directory(self) -> None:
        if not self.workspace.exists():
            # Rollback removes the outermost directory mkdir creates.
            topmost = self.workspace
            while not topmost.parent.exists():
                topmost = topmost.parent
            self.workspace.mkdir(parents=True)
            self._commit(
                Effect.DIRECTORY_CREATED, path=str(topmost), workspace=str(self.workspace)
            )
            print_info(f"Created {self.workspace}")
        elif not self.workspace.is_dir():
            raise ProjectValidationError(
                "directory", f"{self.workspace} exists and is not a directory"
            )

    def _confirm_cleanup(self) -> None:
        if is_empty_dir(self.workspace):
            return
        confirmed = self.prompter.confirm(
            f"[yellow]![/yellow] {self.workspace} is not empty. "
            "Remove its contents and continue?",
            default=False,
        )
        if not confirmed:
            raise UserCancelled()
        removed = clear_directory(self.workspace)
        print_info(f"Removed {removed} entr{'y' if removed == 1 else 'ies'} from {self.workspace}")

    async def _select_template(self) -> TemplateDescriptor:
        with spinner("Fetching templates..."):
            templates = await self.catalog.list()
        index = self.prompter.select(
            "Select a template", [template.label() for template in templates]
        )
        return select_template(templates, index)

    # ------------------------------------------------------------------
    # Effectful steps
    # ------------------------------------------------------------------

    async def _clone_template(self, template: TemplateDescriptor) -> GitRepository:
        with spinner(f"Cloning {template.repo}..."):
            repo = await self.vcs.clone(template.repo, self.workspace)
        self._commit(
            Effect.TEMPLATE_CLONED,
            template=template.name,
            source=template.repo,
            path=str(self.workspace),
        )
        print_info(f"Cloned template [bold]{template.name}[/bold]")
        return repo

    async def _detach_template(
        self, repo: GitRepository, request: ProjectRequest, template: TemplateDescriptor
    ) -> None:
        self.effects.require(Step.DETACH_TEMPLATE.value, Effect.TEMPLATE_CLONED)
        if self.fresh_history:
            await repo.reinitialize(
                f"chore: scaffold {request.name} from template {template.name}",
                initial_branch=MASTER_BRANCH,
            )
            print_info("Started a fresh history")
        else:
            await repo.delete_remote(DEFAULT_REMOTE)
            print_info("Detached the template's origin")

    async def _create_remote(self, request: ProjectRequest) -> RemoteProject:
        self.effects.require(Step.CREATE_REMOTE.value, Effect.TEMPLATE_CLONED)
        with spinner("Creating the remote repository..."):
            remote = await self.hosting.create_project(request.name, request.description)
        # Logged before anything that depends on the remote.
        self._commit(Effect.REMOTE_CREATED, project_id=remote.id, web_url=remote.web_url)
        print_info(f"Created remote repository {remote.web_url or remote.id}")
        return remote

    async def _push_master(self, repo: GitRepository, remote: RemoteProject) -> None:
        self.effects.require(Step.PUSH_MASTER.value, Effect.REMOTE_CREATED)
        await repo.set_remote(remote.clone_url(self.remote_protocol))
        await repo.rename_current_branch(MASTER_BRANCH)
        with spinner(f"Pushing {MASTER_BRANCH}..."):
            await repo.push(MASTER_BRANCH)
        self._commit(Effect.BRANCH_PUSHED, branch=MASTER_BRANCH)
        print_info(f"Pushed {MASTER_BRANCH}")

    async def _push_dev(self, repo: GitRepository) -> None:
        self.effects.require(Step.PUSH_DEV.value, Effect.BRANCH_PUSHED, branch=MASTER_BRANCH)
        await repo.create_branch_and_checkout(DEV_BRANCH)
        with spinner(f"Pushing {DEV_BRANCH}..."):
            await repo.push(DEV_BRANCH)
        self._commit(Effect.BRANCH_PUSHED, branch=DEV_BRANCH)
        print_info(f"Pushed {DEV_BRANCH}")

    async def _register(self, request: ProjectRequest, remote: RemoteProject) -> None:
        self.effects.require(Step.REGISTER.value, Effect.BRANCH_PUSHED, branch=DEV_BRANCH)
        with spinner("Registering the project..."):
            self.registration = await self.registry.register_project(request, remote)
        self._commit(Effect.REMOTE_REGISTERED, registration_id=self.registration.get("id"))
        print_info(f"Registered [bold]{request.name}[/bold]")
