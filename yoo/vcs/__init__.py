"""Version-control capability: git working copies driven through subprocesses."""

from .repository import DEFAULT_REMOTE, GitAuth, GitClient, GitRepository

__all__ = [
    "DEFAULT_REMOTE",
    "GitAuth",
    "GitClient",
    "GitRepository",
]
