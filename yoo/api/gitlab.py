"""GitLab v4 client for creating and deleting project repositories.

Authenticates with a personal access token sent as ``PRIVATE-TOKEN``; there
is no login flow and no retry on rejection.
"""

from __future__ import annotations

from typing import Any

import httpx

from yoo.errors import ApiError, AuthenticationFailed
from yoo.models import RemoteProject
from yoo.utils import print_debug


class GitLabClient:
    """Creates the remote repository a scaffolded project is pushed to."""

    def __init__(
        self,
        base_url: str,
        token: str,
        namespace_id: int | None = None,
        visibility: str = "private",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.namespace_id = namespace_id
        self.visibility = visibility
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{self.base_url}/api/v4",
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            headers={"PRIVATE-TOKEN": self.token},
            transport=self._transport,
        )

    async def _request(self, method: str, path: str, json: Any = None) -> httpx.Response:
        print_debug(f"{method} {self.base_url}/api/v4{path}")
        try:
            async with self._client() as client:
                response = await client.request(method, path, json=json)
        except httpx.HTTPError as exc:
            raise ApiError(f"GitLab request {method} {path} failed: {exc}") from exc

        if response.status_code == 401:
            raise AuthenticationFailed(
                "GitLab rejected the access token", status=401, body=response.text
            )
        if not response.is_success:
            raise ApiError.unexpected(
                response.status_code, response.text, str(response.request.url)
            )
        return response

    async def create_project(self, name: str, description: str) -> RemoteProject:
        """``POST /projects``; returns the new repository's handle and URLs."""
        payload: dict[str, Any] = {
            "name": name,
            "description": description,
            "visibility": self.visibility,
        }
        if self.namespace_id is not None:
            payload["namespace_id"] = self.namespace_id

        response = await self._request("POST", "/projects", json=payload)
        data = response.json()
        try:
            return RemoteProject(
                id=data["id"],
                name=data.get("path", name),
                ssh_url=data["ssh_url_to_repo"],
                http_url=data["http_url_to_repo"],
                web_url=data.get("web_url", ""),
            )
        except (KeyError, TypeError) as exc:
            raise ApiError(f"GitLab returned an unexpected project payload: {data!r}") from exc

    async def delete_project(self, project_id: int | str) -> None:
        """``DELETE /projects/:id``."""
        await self._request("DELETE", f"/projects/{project_id}")
