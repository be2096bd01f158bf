"""HTTP transport implementing the Transport protocol.

Talks to a JSON REST backend laid out as ``/<collection>`` and
``/<collection>/<id>`` (e.g. the public JSONPlaceholder mock service).

Usage:
    from optisync.adapters.http import HttpTransport

    transport = HttpTransport("https://jsonplaceholder.typicode.com", timeout=10.0)
    users = await transport.list(Collection.USERS)
    transport.close()
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from functools import partial
from typing import TYPE_CHECKING, Any

import requests
from pydantic import ValidationError

from optisync.core.resources import Collection, Entity
from optisync.errors import TransportError

if TYPE_CHECKING:
    from optisync.config import ClientSettings


class HttpTransport:
    """requests-backed Transport.

    requests is synchronous, so each call runs in the loop's default
    executor. Connection errors, timeouts, non-2xx statuses and malformed
    bodies all surface as ``TransportError``.

    Args:
        base_url: Backend root URL.
        timeout: Per-request timeout in seconds.
        session: Session to reuse (created if omitted).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: ClientSettings) -> HttpTransport:
        """Create a transport from client settings."""
        return cls(settings.base_url, timeout=settings.request_timeout)

    async def list(self, collection: Collection) -> list[Entity]:
        data = await self._call("GET", self._url(collection))
        if not isinstance(data, list):
            raise TransportError(f"expected a list of {collection.value}, got {type(data).__name__}")
        return [self._parse(collection, item) for item in data]

    async def create(self, collection: Collection, payload: Mapping[str, Any]) -> Entity:
        data = await self._call("POST", self._url(collection), dict(payload))
        if not data:
            raise TransportError(f"empty response creating {collection.label}")
        return self._parse(collection, data)

    async def update(
        self, collection: Collection, entity_id: int, payload: Mapping[str, Any]
    ) -> Entity | None:
        data = await self._call("PUT", self._url(collection, entity_id), dict(payload))
        if not data:
            return None
        return self._parse(collection, data)

    async def delete(self, collection: Collection, entity_id: int) -> None:
        await self._call("DELETE", self._url(collection, entity_id))

    def close(self) -> None:
        self._session.close()

    def _url(self, collection: Collection, entity_id: int | None = None) -> str:
        url = f"{self._base_url}{collection.path}"
        return url if entity_id is None else f"{url}/{entity_id}"

    async def _call(self, method: str, url: str, body: dict[str, Any] | None = None) -> Any:
        return await asyncio.get_running_loop().run_in_executor(
            None, partial(self._request, method, url, body)
        )

    def _request(self, method: str, url: str, body: dict[str, Any] | None) -> Any:
        try:
            response = self._session.request(method, url, json=body, timeout=self._timeout)
        except requests.Timeout as e:
            raise TransportError(f"{method} {url} timed out after {self._timeout}s") from e
        except requests.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise TransportError(
                f"{method} {url} returned {response.status_code}", status=response.status_code
            )
        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"{method} {url} returned invalid JSON", status=response.status_code
            ) from e

    @staticmethod
    def _parse(collection: Collection, data: Any) -> Entity:
        if not isinstance(data, Mapping):
            raise TransportError(f"malformed {collection.label}: {data!r}")
        try:
            return collection.entity_type.from_wire(data)
        except ValidationError as e:
            raise TransportError(f"malformed {collection.label} from server: {e}") from e
