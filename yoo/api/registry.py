"""Registration service endpoints used by yoo."""

from __future__ import annotations

from typing import Any

from yoo.api.client import ApiClient
from yoo.errors import ApiError
from yoo.models import ProjectRequest, RemoteProject, TemplateDescriptor


class RegistryClient:
    """Typed wrappers around the registration service's endpoints."""

    def __init__(self, api: ApiClient) -> None:
        self.api = api

    async def list_templates(self) -> list[TemplateDescriptor]:
        """``GET /templates``; returns the catalog as descriptors."""
        data = await self.api.call("GET", "/templates")
        content = (data or {}).get("content", []) if isinstance(data, dict) else []
        try:
            return [TemplateDescriptor.model_validate(item) for item in content]
        except ValueError as exc:
            raise ApiError(f"Malformed template catalog: {exc}") from exc

    async def register_project(
        self, request: ProjectRequest, remote: RemoteProject
    ) -> dict[str, Any]:
        """``POST /projects``; records the project's metadata and repository URLs.

        Returns:
            The service's ``data`` object, which carries the record ``id``.
        """
        payload: dict[str, Any] = {
            "name": request.name,
            "description": request.description,
            "build_cmd": request.build_cmd or "",
            "dist": request.dist or "",
            "ssh_url": remote.ssh_url,
            "http_url": remote.http_url,
            "web_url": remote.web_url,
            "pid": remote.id,
        }
        if request.category:
            payload["category"] = request.category
        if request.tags:
            payload["tags"] = list(request.tags)

        data = await self.api.authenticated_call("POST", "/projects", json=payload)
        return data if isinstance(data, dict) else {"id": data}
