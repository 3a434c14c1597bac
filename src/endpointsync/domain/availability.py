"""Mapping from endpoint-type labels to identity-service availabilities."""

from __future__ import annotations

from endpointsync.domain.errors import UnknownAvailabilityError
from endpointsync.domain.model import Availability


def resolve_availability(label: str) -> Availability:
    """Return the availability for ``label``.

    Only the exact public/internal/admin labels are accepted so that two spec
    keys can never map onto the same remote availability.
    """

    try:
        return Availability(label)
    except ValueError:
        raise UnknownAvailabilityError(label) from None
