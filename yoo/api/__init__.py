"""HTTP clients: the registration service and the git host."""

from .client import ApiClient
from .credentials import Credential, CredentialCache
from .gitlab import GitLabClient
from .registry import RegistryClient

__all__ = [
    "ApiClient",
    "Credential",
    "CredentialCache",
    "GitLabClient",
    "RegistryClient",
]
