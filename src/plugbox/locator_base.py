"""
Abstract Locator interface and the empty locator.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Any

from .errors import UnresolvedDependency
from .introspection import Dependency


class Locator(ABC):
    """
    Abstract interface for name-based dependency locators.

    A locator answers "what value satisfies dependency name X", falling back
    to its parent when it does not know the name itself. Resolution may
    suspend (factories can be coroutines), so lookups are awaitable.
    """

    @abstractmethod
    def has_key_locally(self, name: str) -> bool:
        """Check if this locator has a binding for the name itself."""

    @abstractmethod
    def has_key(self, name: str) -> bool:
        """Check if this locator (or its parent chain) can provide the name."""

    @abstractmethod
    def is_empty(self) -> bool:
        """Check if this is an empty locator."""

    @abstractmethod
    async def resolve(self, name: str, chain: tuple[str, ...] = ()) -> Any:
        """
        Resolve a name, tracking the chain of names being resolved.

        Args:
            name: The dependency name
            chain: Names whose resolution led here, outermost first

        Raises:
            UnresolvedDependency: If no provider exists for the name
            CircularDependencyError: If the name is already in the chain
        """

    async def get(self, name: str) -> Any:
        """
        Get the value bound to a name.

        Raises:
            UnresolvedDependency: If no provider exists for the name
        """
        return await self.resolve(name)

    async def find(self, name: str, default: Any = None) -> Any:
        """Get the value bound to a name, or ``default`` when there is none."""
        if not self.has_key(name):
            return default
        return await self.resolve(name)

    @abstractmethod
    def get_instance_count(self) -> int:
        """Get the number of instances currently memoized in this locator."""

    @abstractmethod
    async def run(self, func: Callable[..., Any], dependencies: Sequence[Dependency] | None = None) -> Any:
        """
        Execute a function with dependency injection.

        Args:
            func: Function to execute with injected dependencies
            dependencies: Precomputed dependency list; introspected when omitted

        Returns:
            The result of the function call, awaited if it is awaitable
        """

    @property
    @abstractmethod
    def parent(self) -> Locator | None:
        """Get the parent locator, if any."""

    @abstractmethod
    def has_parent(self) -> bool:
        """Check if this locator has a parent."""

    @staticmethod
    def empty() -> Locator:
        """
        Create an empty Locator that has no dependencies and can be used as a null object.

        Returns:
            An empty Locator instance
        """
        return LocatorEmpty.instance()


class LocatorEmpty(Locator):
    """
    Empty locator implementation that provides no dependencies.

    This is a singleton that serves as a null object for parent locators.
    """

    _instance: LocatorEmpty | None = None

    def __init__(self) -> None:
        """Private constructor - use instance() instead."""
        if LocatorEmpty._instance is not None:
            raise RuntimeError("LocatorEmpty is a singleton - use instance() method")

    @classmethod
    def instance(cls) -> LocatorEmpty:
        """Get the singleton empty locator instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def has_key_locally(self, name: str) -> bool:  # noqa: ARG002
        """Empty locator has no keys locally."""
        return False

    def has_key(self, name: str) -> bool:  # noqa: ARG002
        """Empty locator has no keys."""
        return False

    def is_empty(self) -> bool:
        """Empty locator is always empty."""
        return True

    async def resolve(self, name: str, chain: tuple[str, ...] = ()) -> Any:
        """Empty locator cannot provide any instances."""
        raise UnresolvedDependency(name, chain[-1] if chain else None)

    def get_instance_count(self) -> int:
        """Empty locator has no instances."""
        return 0

    async def run(self, func: Callable[..., Any], dependencies: Sequence[Dependency] | None = None) -> Any:  # noqa: ARG002
        """Empty locator cannot inject dependencies."""
        raise ValueError("Empty locator cannot execute functions with dependency injection")

    @property
    def parent(self) -> Locator | None:
        """Empty locator has no parent."""
        return None

    def has_parent(self) -> bool:
        """Empty locator has no parent."""
        return False
