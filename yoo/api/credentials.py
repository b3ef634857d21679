"""Bearer credential and its on-disk cache.

The cache is a JSON object with a single ``authorization`` key holding the
encoded credential (``"<type> <token>"``).  It is read on demand and
overwritten wholesale after every successful login; nothing ever deletes it.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, Field

from yoo.utils import load_json, print_debug, save_json

CACHE_KEY = "authorization"


class Credential(BaseModel):
    """A bearer-style token returned by ``POST /users/login``."""

    access_token: str
    token_type: str = Field(default="Bearer")

    def encode(self) -> str:
        """Return the ``Authorization`` header value."""
        return f"{self.token_type} {self.access_token}"

    @classmethod
    def decode(cls, text: str) -> "Credential | None":
        """Parse ``"<type> <token>"``; returns ``None`` for anything else."""
        parts = text.strip().split(" ", 1)
        if len(parts) != 2 or not parts[0] or not parts[1].strip():
            return None
        return cls(token_type=parts[0], access_token=parts[1].strip())


class CredentialCache:
    """File-backed cache for the current credential."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _ensure_file(self) -> None:
        if not self.path.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text("{}", encoding="utf-8")

    def load(self) -> Credential | None:
        """Return the cached credential, or ``None`` when there is none."""
        self._ensure_file()
        try:
            data = load_json(self.path)
        except json.JSONDecodeError:
            print_debug(f"credential cache {self.path} is not valid JSON; ignoring it")
            return None
        encoded = data.get(CACHE_KEY)
        if not isinstance(encoded, str):
            return None
        return Credential.decode(encoded)

    async def save(self, credential: Credential) -> None:
        await save_json({CACHE_KEY: credential.encode()}, self.path)
        print_debug(f"credential cached at {self.path}")
