"""Async client for the registration service.

Wraps the service's JSON envelope (``{"code": 0, "data": ...}``) and the
bearer-credential lifecycle: a credential is loaded from the cache or
obtained by logging in, attached to every authenticated request, and
replaced by exactly one fresh login when the service rejects it.

Typical usage::

    client = ApiClient("https://registry.example.com", CredentialCache(path),
                       email="dev@example.com", password="secret")
    data = await client.authenticated_call("POST", "/projects", json=payload)
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from yoo.api.credentials import Credential, CredentialCache
from yoo.errors import ApiError, AuthenticationFailed
from yoo.utils import print_debug

# Statuses the service uses when it refuses a credential.
REJECTED_STATUSES = frozenset({400, 401})

RequestFactory = Callable[[str], Awaitable[httpx.Response]]


class ApiClient:
    """Registration service client holding the login and credential cache.

    One instance is built per CLI invocation and passed explicitly to the
    catalog, the registry and the saga.
    """

    def __init__(
        self,
        base_url: str,
        credentials: CredentialCache,
        email: str = "",
        password: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.credentials = credentials
        self.email = email
        self.password = password
        self.timeout = timeout
        self._transport = transport

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        """Return a fresh ``AsyncClient`` configured with our base URL and timeout."""
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            transport=self._transport,
        )

    async def _send(
        self,
        method: str,
        path: str,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        print_debug(f"{method} {self.base_url}{path}")
        try:
            async with self._client() as client:
                return await client.request(method, path, json=json, headers=headers)
        except httpx.ConnectError as exc:
            raise ApiError(f"Cannot connect to {self.base_url}: {exc}") from exc
        except httpx.TimeoutException as exc:
            raise ApiError(
                f"Request to {self.base_url}{path} timed out after {self.timeout}s"
            ) from exc
        except httpx.HTTPError as exc:
            raise ApiError(f"HTTP error calling {self.base_url}{path}: {exc}") from exc

    @staticmethod
    def _unwrap(response: httpx.Response) -> Any:
        """Return the envelope's ``data`` or raise ``ApiError``.

        Anything but HTTP 200 with ``code == 0`` is a failure.
        """
        url = str(response.request.url)
        if response.status_code != 200:
            raise ApiError.unexpected(response.status_code, response.text, url)
        try:
            envelope = response.json()
        except ValueError as exc:
            raise ApiError(
                f"Response from {url} is not JSON", status=response.status_code,
                body=response.text,
            ) from exc
        if not isinstance(envelope, dict):
            raise ApiError(
                f"Unexpected response shape from {url}", status=response.status_code,
                body=response.text,
            )
        if envelope.get("code") != 0:
            raise ApiError(
                f"Service reported failure from {url}: "
                f"code={envelope.get('code')} {envelope.get('msg', '')}".rstrip(),
                status=response.status_code,
                body=response.text,
            )
        return envelope.get("data")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def call(self, method: str, path: str, json: Any = None) -> Any:
        """Send an unauthenticated request and return the envelope's ``data``."""
        response = await self._send(method, path, json=json)
        return self._unwrap(response)

    async def login(self) -> Credential:
        """Log in with the configured email and password and cache the result.

        Every call performs a fresh login; tokens from earlier logins are not
        reused or consulted.
        """
        if not self.email or not self.password:
            raise AuthenticationFailed("No email/password configured for the registration service")

        response = await self._send(
            "POST", "/users/login", json={"email": self.email, "password": self.password}
        )
        if response.status_code in REJECTED_STATUSES:
            raise AuthenticationFailed(status=response.status_code, body=response.text)
        data = self._unwrap(response)
        try:
            credential = Credential.model_validate(data)
        except ValueError as exc:
            raise ApiError(f"Login response has no usable token: {data!r}") from exc

        await self.credentials.save(credential)
        return credential

    async def with_reauth(self, send: RequestFactory) -> httpx.Response:
        """Run *send* with a credential, re-authenticating at most once.

        *send* receives the ``Authorization`` header value and returns the raw
        response.  If the service rejects the credential, one fresh login is
        performed and *send* is called one more time; a second rejection
        raises ``AuthenticationFailed``.
        """
        credential = self.credentials.load()
        if credential is None:
            print_debug("no cached credential; logging in")
            credential = await self.login()

        response = await send(credential.encode())
        if response.status_code not in REJECTED_STATUSES:
            return response

        print_debug(f"credential rejected (HTTP {response.status_code}); logging in again")
        credential = await self.login()
        response = await send(credential.encode())
        if response.status_code in REJECTED_STATUSES:
            raise AuthenticationFailed(
                "The registration service rejected a freshly issued credential; "
                "check the configured email and password",
                status=response.status_code,
                body=response.text,
            )
        return response

    async def authenticated_call(self, method: str, path: str, json: Any = None) -> Any:
        """Send a request carrying the bearer credential and return ``data``."""

        async def send(authorization: str) -> httpx.Response:
            return await self._send(
                method, path, json=json, headers={"Authorization": authorization}
            )

        response = await self.with_reauth(send)
        return self._unwrap(response)
