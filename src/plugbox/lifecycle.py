"""
Lifecycle-managed plugin resources.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


def _noop_release(_: Any) -> None:
    return None


@dataclass(frozen=True)
class Lifecycle(Generic[T]):
    """
    A plugin whose value is acquired at boot and released on destroy.

    ``acquire`` has its parameters injected by name from the other plugins and
    may be a coroutine function. ``release`` receives the acquired value and
    may be a coroutine function as well. Resources are released in reverse
    acquisition order.
    """

    acquire: Callable[..., Any]
    release: Callable[[T], Any] = _noop_release

    @classmethod
    def make(cls, acquire: Callable[..., Any], release: Callable[[T], Any]) -> Lifecycle[T]:
        """Create a lifecycle from an acquire and a release function."""
        return cls(acquire, release)

    @classmethod
    def pure(cls, value: T) -> Lifecycle[T]:
        """Wrap an already built value; nothing is released."""
        return cls(lambda: value)

    @classmethod
    def fromFactory(cls, factory: Callable[..., Any]) -> Lifecycle[T]:  # noqa: N802
        """Build the value from a factory with injected dependencies; nothing is released."""
        return cls(factory)
