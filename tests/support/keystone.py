"""In-process Keystone stand-in served through ``httpx.MockTransport``."""

from __future__ import annotations

import itertools
import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

from endpointsync.adapters.http_resilience import ResilientClient

if TYPE_CHECKING:
    from collections.abc import Callable

    from endpointsync.adapters.http_resilience import ResilienceConfig

TOKEN = "gAAAA-admin-token"
IDENTITY_URL = "http://keystone-internal:5000"


@dataclass
class FakeKeystone:
    endpoints: dict[str, dict[str, Any]] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)
    # (method, path prefix) -> forced response
    overrides: dict[tuple[str, str], httpx.Response] = field(default_factory=dict)
    issue_token: bool = True
    _ids: itertools.count[int] = field(default_factory=lambda: itertools.count(1))

    def add(self, **endpoint: Any) -> dict[str, Any]:
        endpoint.setdefault("id", f"existing-{len(self.endpoints) + 1}")
        endpoint.setdefault("name", "")
        endpoint.setdefault("region_id", "regionOne")
        endpoint.setdefault("enabled", True)
        self.endpoints[endpoint["id"]] = endpoint
        return endpoint

    def body(self, index: int = -1) -> dict[str, Any]:
        return json.loads(self.requests[index].content)

    @property
    def calls(self) -> list[tuple[str, str]]:
        return [(request.method, request.url.path) for request in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        for (method, prefix), response in self.overrides.items():
            if request.method == method and path.startswith(prefix):
                return response
        if path == "/v3/auth/tokens" and request.method == "POST":
            headers = {"X-Subject-Token": TOKEN} if self.issue_token else {}
            return httpx.Response(201, headers=headers, json={"token": {"methods": ["password"]}})
        if path == "/v3/endpoints" and request.method == "GET":
            return httpx.Response(200, json={"endpoints": self._filter(request.url.params)})
        if path == "/v3/endpoints" and request.method == "POST":
            payload = json.loads(request.content)["endpoint"]
            endpoint = self.add(id=f"ep-{next(self._ids)}", **payload)
            return httpx.Response(201, json={"endpoint": endpoint})
        if path.startswith("/v3/endpoints/"):
            return self._item(request, path.rsplit("/", 1)[-1])
        return httpx.Response(404, json={"error": {"code": 404, "message": "no route"}})

    def _filter(self, params: httpx.QueryParams) -> list[dict[str, Any]]:
        return [
            endpoint
            for endpoint in self.endpoints.values()
            if all(endpoint.get(key) == value for key, value in params.items())
        ]

    def _item(self, request: httpx.Request, endpoint_id: str) -> httpx.Response:
        if endpoint_id not in self.endpoints:
            message = f"Could not find endpoint: {endpoint_id}."
            return httpx.Response(404, json={"error": {"code": 404, "message": message}})
        if request.method == "DELETE":
            del self.endpoints[endpoint_id]
            return httpx.Response(204)
        if request.method == "PATCH":
            self.endpoints[endpoint_id].update(json.loads(request.content)["endpoint"])
            return httpx.Response(200, json={"endpoint": self.endpoints[endpoint_id]})
        return httpx.Response(200, json={"endpoint": self.endpoints[endpoint_id]})


def make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[ResilienceConfig], ResilientClient]:
    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(  # noqa: SLF001  # type: ignore[reportPrivateUsage]
            base_url=resilience.base_url or "",
            headers=dict(resilience.default_headers or {}),
            transport=httpx.MockTransport(handler),
        )
        return client

    return factory
