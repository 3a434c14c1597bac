"""Typed finalizer markers.

Finalizers are persisted as plain strings on the resource metadata. Inside the
domain they are handled as ``FinalizerKey`` values so that the marker placed on
a dependency on behalf of one endpoint cannot be confused with the endpoint's
own marker.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

DEFAULT_FINALIZER_DOMAIN = "openstack.org"


@dataclass(frozen=True, slots=True)
class FinalizerKey:
    """Composite ``(owner_kind, owner_name)`` marker.

    ``owner_name`` is ``None`` for the marker a controller places on the
    resources it reconciles directly.
    """

    owner_kind: str
    owner_name: str | None = None
    domain: str = DEFAULT_FINALIZER_DOMAIN

    def render(self) -> str:
        base = f"{self.domain}/{self.owner_kind.lower()}"
        if self.owner_name is None:
            return base
        return f"{base}-{self.owner_name}"

    def __str__(self) -> str:
        return self.render()


@dataclass(slots=True)
class FinalizerSet:
    """Ordered, duplicate-free finalizer collection that tracks modifications."""

    _items: list[str] = field(default_factory=list)
    changed: bool = False

    @classmethod
    def from_strings(cls, values: Iterable[str]) -> FinalizerSet:
        items: list[str] = []
        for value in values:
            if value not in items:
                items.append(value)
        return cls(_items=items)

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key: object) -> bool:
        if isinstance(key, FinalizerKey):
            key = key.render()
        return key in self._items

    def contains(self, key: FinalizerKey) -> bool:
        return key.render() in self._items

    def add(self, key: FinalizerKey) -> bool:
        """Add ``key``; return ``True`` when the set was modified."""

        rendered = key.render()
        if rendered in self._items:
            return False
        self._items.append(rendered)
        self.changed = True
        return True

    def remove(self, key: FinalizerKey) -> bool:
        """Remove ``key``; return ``True`` when the set was modified."""

        rendered = key.render()
        if rendered not in self._items:
            return False
        self._items.remove(rendered)
        self.changed = True
        return True

    def as_list(self) -> list[str]:
        return list(self._items)
