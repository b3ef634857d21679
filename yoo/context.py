"""Clients for one CLI invocation, built from the configuration.

The context is created once and threaded through the commands and the
saga; nothing in yoo keeps clients or credentials in module globals.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from yoo.api import ApiClient, CredentialCache, GitLabClient, RegistryClient
from yoo.config import Config
from yoo.prompts import ConsolePrompter, Prompter
from yoo.saga import ScaffoldSaga
from yoo.templates import TemplateCatalog
from yoo.vcs import GitAuth, GitClient


@dataclass
class AppContext:
    config: Config
    api: ApiClient
    registry: RegistryClient
    catalog: TemplateCatalog
    hosting: GitLabClient
    vcs: GitClient
    prompter: Prompter

    @classmethod
    def from_config(cls, config: Config, prompter: Prompter | None = None) -> "AppContext":
        api = ApiClient(
            config.server.url,
            CredentialCache(config.credentials_path),
            email=config.server.email,
            password=config.server.password,
            timeout=config.server.timeout,
        )
        registry = RegistryClient(api)
        hosting = GitLabClient(
            config.gitlab.url,
            config.gitlab.token,
            namespace_id=config.gitlab.namespace_id,
            visibility=config.gitlab.visibility,
            timeout=config.server.timeout,
        )
        vcs = GitClient(
            GitAuth(
                username=config.git.username,
                password=config.git.password,
                ssh_key=config.git.ssh_key,
                scope=config.gitlab.url,
            ),
            timeout=config.git.timeout,
        )
        return cls(
            config=config,
            api=api,
            registry=registry,
            catalog=TemplateCatalog(registry),
            hosting=hosting,
            vcs=vcs,
            prompter=prompter or ConsolePrompter(),
        )

    def saga(self, workspace: str | Path) -> ScaffoldSaga:
        return ScaffoldSaga(
            workspace,
            vcs=self.vcs,
            catalog=self.catalog,
            hosting=self.hosting,
            registry=self.registry,
            prompter=self.prompter,
            remote_protocol=self.config.git.protocol,
            fresh_history=self.config.git.fresh_history,
        )
