"""HTTP client for the Keystone v3 endpoint registry."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import BaseModel, ValidationError

from endpointsync.adapters.http_resilience import ResilienceConfig, ResilientClient
from endpointsync.domain.availability import resolve_availability
from endpointsync.domain.errors import IdentityServiceError
from endpointsync.domain.model import RemoteEndpoint

from .schema import (
    EndpointCreate,
    EndpointCreateRequest,
    EndpointListResponse,
    EndpointResponse,
    EndpointUpdate,
    EndpointUpdateRequest,
    ErrorResponse,
    TokenRequest,
)

if TYPE_CHECKING:
    from endpointsync.domain.context import ReconcileContext
    from endpointsync.domain.model import Availability, EndpointRequest

log = getLogger(__name__)

AUTH_TOKEN_HEADER = "X-Auth-Token"
SUBJECT_TOKEN_HEADER = "X-Subject-Token"
_POLL_SECONDS = 0.1


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def identity_root(url: str) -> str:
    """Normalise a published identity URL to its root, without the ``/v3`` suffix."""

    root = url.strip().rstrip("/")
    if root.endswith("/v3"):
        root = root[: -len("/v3")]
    return root


def run_bounded[T](
    operation: Callable[[], Awaitable[T]],
    context: ReconcileContext,
    *,
    runner: asyncio.Runner | None = None,
) -> T:
    """Run ``operation`` within the context's deadline.

    The operation runs on ``runner``'s loop when given, else on a fresh one.
    It is abandoned as soon as the context is cancelled or its deadline
    passes; ``ReconcileCancelledError`` is raised in that case.
    """

    context.check()
    if runner is None:
        return asyncio.run(_bounded(operation, context))
    return runner.run(_bounded(operation, context))


async def _bounded[T](operation: Callable[[], Awaitable[T]], context: ReconcileContext) -> T:
    task = asyncio.ensure_future(operation())
    try:
        while True:
            remaining = context.remaining()
            wait = _POLL_SECONDS if remaining is None else min(_POLL_SECONDS, remaining)
            done, _ = await asyncio.wait({task}, timeout=wait)
            if done:
                return task.result()
            context.check()
    finally:
        if not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)


async def send(
    client: ResilientClient,
    method: str,
    path: str,
    *,
    expected: frozenset[int],
    json: object | None = None,
    params: dict[str, str] | None = None,
) -> httpx.Response:
    """Issue one request and translate every failure into ``IdentityServiceError``."""

    try:
        response = await client.request(method, path, json=json, params=params)
    except httpx.HTTPError as exc:
        raise IdentityServiceError(f"{method} {path} failed: {exc}") from exc

    if response.status_code not in expected:
        message = _error_message(response)
        log.error("Keystone %s %s returned %s: %s", method, path, response.status_code, message)
        raise IdentityServiceError(
            f"{method} {path} returned {response.status_code}: {message}",
            status_code=response.status_code,
        )
    return response


def _error_message(response: httpx.Response) -> str:
    try:
        return ErrorResponse.model_validate(response.json()).error.message or response.reason_phrase
    except (ValueError, ValidationError):
        return response.reason_phrase


def _parse[M: BaseModel](response: httpx.Response, model: type[M]) -> M:
    try:
        return model.model_validate(response.json())
    except (ValueError, ValidationError) as exc:
        raise IdentityServiceError(
            f"unexpected Keystone payload for {response.request.method} {response.request.url.path}"
        ) from exc


async def authenticate(
    client: ResilientClient,
    *,
    user: str,
    password: str,
    project: str,
    user_domain: str,
    project_domain: str,
) -> str:
    """Obtain a project-scoped token with the password method."""

    body = TokenRequest.password(
        user=user,
        password=password,
        project=project,
        user_domain=user_domain,
        project_domain=project_domain,
    )
    response = await send(
        client,
        "POST",
        "/v3/auth/tokens",
        expected=frozenset({200, 201}),
        json=body.model_dump(exclude_none=True),
    )
    token = response.headers.get(SUBJECT_TOKEN_HEADER)
    if not token:
        raise IdentityServiceError("Keystone issued no token", status_code=response.status_code)
    return token


@dataclass(slots=True)
class KeystoneAdminClient:
    """Endpoint CRUD bound to one reconcile pass.

    ``resilience`` must carry the identity root as ``base_url``. Every call of
    the pass, token request included, goes through one ``ResilientClient`` on
    one event loop, so its rate limit and connection pool span the whole pass.
    ``close`` releases both.
    """

    resilience: ResilienceConfig
    context: ReconcileContext
    region: str | None = None
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    _runner: asyncio.Runner | None = field(default=None, init=False, repr=False)
    _client: ResilientClient | None = field(default=None, init=False, repr=False)

    def authenticate(
        self,
        *,
        user: str,
        password: str,
        project: str,
        user_domain: str,
        project_domain: str,
    ) -> str:
        """Obtain an admin token and send it with every later request."""

        async def issue(client: ResilientClient) -> str:
            token = await authenticate(
                client,
                user=user,
                password=password,
                project=project,
                user_domain=user_domain,
                project_domain=project_domain,
            )
            client.headers[AUTH_TOKEN_HEADER] = token
            return token

        return self._run(issue)

    def close(self) -> None:
        if self._runner is None:
            return
        runner, client = self._runner, self._client
        self._runner = self._client = None
        try:
            if client is not None:
                runner.run(client.aclose())
        finally:
            runner.close()

    def list_endpoints(self, service_id: str, availability: Availability) -> list[RemoteEndpoint]:
        return self._run(lambda client: self._list(client, service_id, availability))

    def create_endpoint(self, request: EndpointRequest) -> str:
        return self._run(lambda client: self._create(client, request))

    def update_endpoint(self, request: EndpointRequest, endpoint_id: str) -> str:
        return self._run(lambda client: self._update(client, request, endpoint_id))

    def delete_endpoint(self, request: EndpointRequest) -> None:
        if not request.service_id:
            log.warning("Refusing to delete %s endpoints without a service id", request.availability)
            return
        self._run(lambda client: self._delete(client, request))

    def _run[T](self, operation: Callable[[ResilientClient], Awaitable[T]]) -> T:
        if self._runner is None:
            self._runner = asyncio.Runner()

        async def call() -> T:
            # created on the runner's loop, which the limiter binds to
            if self._client is None:
                self._client = self.client_factory(self.resilience)
            return await operation(self._client)

        return run_bounded(call, self.context, runner=self._runner)

    async def _list(
        self,
        client: ResilientClient,
        service_id: str,
        availability: Availability,
    ) -> list[RemoteEndpoint]:
        params = {"service_id": service_id, "interface": str(availability)}
        if self.region:
            params["region_id"] = self.region
        response = await send(
            client, "GET", "/v3/endpoints", expected=frozenset({200}), params=params
        )
        payload = _parse(response, EndpointListResponse)
        return [
            RemoteEndpoint(
                id=item.id,
                service_id=item.service_id,
                availability=resolve_availability(item.interface),
                url=item.url,
                name=item.name,
                region=item.region_id,
            )
            for item in payload.endpoints
        ]

    async def _create(self, client: ResilientClient, request: EndpointRequest) -> str:
        body = EndpointCreateRequest(
            endpoint=EndpointCreate(
                service_id=request.service_id,
                interface=str(request.availability),
                url=request.url,
                name=request.name or None,
                region_id=self.region,
            )
        )
        response = await send(
            client,
            "POST",
            "/v3/endpoints",
            expected=frozenset({200, 201}),
            json=body.model_dump(exclude_none=True),
        )
        return _parse(response, EndpointResponse).endpoint.id

    async def _update(
        self,
        client: ResilientClient,
        request: EndpointRequest,
        endpoint_id: str,
    ) -> str:
        body = EndpointUpdateRequest(endpoint=EndpointUpdate(url=request.url))
        response = await send(
            client,
            "PATCH",
            f"/v3/endpoints/{endpoint_id}",
            expected=frozenset({200}),
            json=body.model_dump(),
        )
        return _parse(response, EndpointResponse).endpoint.id

    async def _delete(self, client: ResilientClient, request: EndpointRequest) -> None:
        matches = await self._list(client, request.service_id, request.availability)
        for remote in matches:
            await send(
                client,
                "DELETE",
                f"/v3/endpoints/{remote.id}",
                expected=frozenset({204, 404}),
            )
            log.info("Deleted %s endpoint %s", request.availability, remote.id)

