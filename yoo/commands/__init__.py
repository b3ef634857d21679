"""CLI commands.  Each returns the process exit code."""

from .create import create
from .submit import submit

__all__ = ["create", "submit"]
