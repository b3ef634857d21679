"""Interactive prompts.

The saga and the commands only see the ``Prompter`` protocol; the console
implementation uses ``rich.prompt`` and turns Ctrl-C / EOF into
``UserCancelled`` so an abort at a prompt is handled like any other step
failure.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from rich.prompt import Confirm, IntPrompt, Prompt

from yoo.errors import UserCancelled
from yoo.utils import console


class Prompter(Protocol):
    def ask(self, message: str, default: str | None = None) -> str: ...

    def confirm(self, message: str, default: bool = False) -> bool: ...

    def select(self, message: str, options: Sequence[str]) -> int: ...


class ConsolePrompter:
    """Blocking prompts on the shared Rich console."""

    def ask(self, message: str, default: str | None = None) -> str:
        try:
            if default is None:
                return Prompt.ask(message, console=console).strip()
            return Prompt.ask(message, default=default, console=console).strip()
        except (KeyboardInterrupt, EOFError) as exc:
            raise UserCancelled() from exc

    def confirm(self, message: str, default: bool = False) -> bool:
        try:
            return Confirm.ask(message, default=default, console=console)
        except (KeyboardInterrupt, EOFError) as exc:
            raise UserCancelled() from exc

    def select(self, message: str, options: Sequence[str]) -> int:
        """Show a numbered list and return the zero-based index picked."""
        for number, option in enumerate(options, 1):
            console.print(f"  [cyan]{number})[/cyan] {option}")
        choices = [str(n) for n in range(1, len(options) + 1)]
        try:
            picked = IntPrompt.ask(message, choices=choices, default=1, console=console)
        except (KeyboardInterrupt, EOFError) as exc:
            raise UserCancelled() from exc
        return picked - 1
