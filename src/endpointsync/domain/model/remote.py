"""Records owned by the identity service's endpoint registry."""

from __future__ import annotations

from dataclasses import dataclass

from endpointsync.domain.model.enums import Availability


@dataclass(frozen=True, slots=True)
class RemoteEndpoint:
    id: str
    service_id: str
    availability: Availability
    url: str
    name: str = ""
    region: str | None = None


@dataclass(frozen=True, slots=True)
class EndpointRequest:
    """Desired registration of one endpoint for a service."""

    name: str
    service_id: str
    availability: Availability
    url: str = ""
