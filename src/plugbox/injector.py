"""
Injector - name-based dependency resolution with parent fallback and child scopes.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable, Sequence
from functools import partial
from typing import Any

from .aio import maybe_await
from .bindings import Binding
from .core import ModuleDef
from .errors import CircularDependencyError, UnresolvedDependency
from .introspection import Dependency, SignatureIntrospector
from .locator_base import Locator

logger = logging.getLogger(__name__)


class Injector(Locator):
    """
    Resolves names against its own bindings, then against its parent.

    Factory bindings are invoked with their own dependencies resolved through
    this same injector, so plugins may depend on other plugins. A factory's
    result is memoized for the lifetime of the injector: concurrent requests
    share one pending computation, so each factory runs at most once. Once
    it completes the result is kept as a plain value, which any event loop
    may read later. Requests that would wait on each other in a cycle fail
    with CircularDependencyError.

    A child injector (see create_child) adds bindings on top of its parent
    and may restrict which names it is allowed to look up there. Lookups it
    delegates are answered, and memoized, by the parent.
    """

    def __init__(
        self,
        modules: Iterable[ModuleDef] = (),
        parent: Locator | None = None,
        inherited: Iterable[str] | None = None,
    ):
        """
        Create a new Injector.

        Args:
            modules: Provider sets; on name collision later modules win
            parent: Parent locator consulted for names not bound here
            inherited: Names that may be looked up in the parent; all names when None
        """
        self._bindings: dict[str, Binding] = {}
        for module in modules:
            for binding in module.bindings:
                self._bindings[binding.name] = binding

        self._parent = parent if parent is not None else Locator.empty()
        self._inherited = frozenset(inherited) if inherited is not None else None
        self._values: dict[str, Any] = {}
        self._pending: dict[str, asyncio.Future[Any]] = {}
        # factory name -> name its pending computation is currently waiting for
        self._awaiting: dict[str, str] = {}

    def _inherits(self, name: str) -> bool:
        return self._inherited is None or name in self._inherited

    def has_key_locally(self, name: str) -> bool:
        """Check if this injector binds the name itself."""
        return name in self._bindings

    def has_key(self, name: str) -> bool:
        """Check if this injector (or the visible part of its parent chain) binds the name."""
        return self.has_key_locally(name) or (self._inherits(name) and self._parent.has_key(name))

    def is_empty(self) -> bool:
        return False

    def names(self) -> set[str]:
        """Names bound directly in this injector."""
        return set(self._bindings)

    def validate(self) -> None:
        """
        Check the factories bound here for dependency cycles without invoking them.

        Only names bound in this injector are followed; values and names
        provided elsewhere end a path.

        Raises:
            CircularDependencyError: If factories depend on each other in a cycle
        """
        graph = {
            name: [dep for dep in SignatureIntrospector.extract_names(binding.implementation) if dep in self._bindings]
            for name, binding in self._bindings.items()
            if binding.is_factory
        }
        visited: set[str] = set()

        def visit(name: str, path: list[str]) -> None:
            if name in path:
                raise CircularDependencyError([*path[path.index(name) :], name])
            if name in visited or name not in graph:
                return
            path.append(name)
            for dependency in graph[name]:
                visit(dependency, path)
            path.pop()
            visited.add(name)

        for name in graph:
            visit(name, [])

    async def resolve(self, name: str, chain: tuple[str, ...] = ()) -> Any:
        if name in chain:
            raise CircularDependencyError([*chain[chain.index(name) :], name])

        binding = self._bindings.get(name)
        if binding is None:
            if self._inherits(name):
                return await self._parent.resolve(name, chain)
            raise UnresolvedDependency(name, chain[-1] if chain else None)

        if not binding.is_factory:
            return binding.implementation
        return await self._produce(binding, chain)

    async def _produce(self, binding: Binding, chain: tuple[str, ...]) -> Any:
        if binding.name in self._values:
            return self._values[binding.name]

        future = self._pending.get(binding.name)
        if future is None:
            logger.debug("Invoking factory for %r", binding.name)
            dependencies = SignatureIntrospector.extract_dependencies(binding.implementation)
            future = asyncio.ensure_future(self._call(binding.implementation, dependencies, (*chain, binding.name)))
            future.add_done_callback(partial(self._settle, binding.name))
            self._pending[binding.name] = future
        else:
            self._check_wait(binding.name, chain)

        # One waiter being cancelled must not cancel the shared computation
        return await asyncio.shield(future)

    def _check_wait(self, name: str, chain: tuple[str, ...]) -> None:
        """Refuse to wait on a computation that is itself waiting on this chain."""
        path = [name]
        waiting_for = self._awaiting.get(name)
        while waiting_for is not None and waiting_for not in path:
            path.append(waiting_for)
            if waiting_for in chain:
                raise CircularDependencyError([*chain[chain.index(waiting_for) :], *path])
            waiting_for = self._awaiting.get(waiting_for)

    def _settle(self, name: str, future: asyncio.Future[Any]) -> None:
        if self._pending.get(name) is not future:
            return
        del self._pending[name]
        # Failures are forgotten so the next request retries the factory
        if not future.cancelled() and future.exception() is None:
            self._values[name] = future.result()

    async def _call(
        self,
        func: Callable[..., Any],
        dependencies: Sequence[Dependency],
        chain: tuple[str, ...],
    ) -> Any:
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for dep in dependencies:
            if dep.is_optional and not self.has_key(dep.name):
                if dep.positional:
                    args.append(dep.default_value)
                continue

            value = await self._resolve_for(dep.name, chain)
            if dep.positional or dep.parameter is None:
                args.append(value)
            else:
                kwargs[dep.parameter] = value

        return await maybe_await(func(*args, **kwargs))

    async def _resolve_for(self, name: str, chain: tuple[str, ...]) -> Any:
        if not chain:
            return await self.resolve(name, chain)
        self._awaiting[chain[-1]] = name
        try:
            return await self.resolve(name, chain)
        finally:
            self._awaiting.pop(chain[-1], None)

    async def run(self, func: Callable[..., Any], dependencies: Sequence[Dependency] | None = None) -> Any:
        """
        Execute a function with dependency injection.

        Args:
            func: Function to execute with injected dependencies
            dependencies: Precomputed dependency list; introspected when omitted

        Returns:
            The result of the function call, awaited if it is awaitable

        Raises:
            UnresolvedDependency: If a required name has no provider

        Example:
            async def main(db, user_id):
                return await db.fetch(user_id)

            result = await injector.run(main)
        """
        if dependencies is None:
            dependencies = SignatureIntrospector.extract_dependencies(func)
        return await self._call(func, dependencies, ())

    def is_resolved(self, name: str) -> bool:
        """Check if a factory result for the name is already memoized here."""
        return name in self._values

    def get_instance_count(self) -> int:
        """Get the number of factory results memoized (or pending) in this injector."""
        return len(self._values) + len(self._pending)

    @property
    def parent(self) -> Locator | None:
        """Get the parent locator, if any."""
        return self._parent if not self._parent.is_empty() else None

    def has_parent(self) -> bool:
        """Check if this injector has a parent."""
        return not self._parent.is_empty()

    def create_child(self, modules: Iterable[ModuleDef], inherited: Iterable[str] | None = None) -> Injector:
        """
        Create a child injector with this injector as parent.

        Args:
            modules: Provider sets of the child; later ones shadow earlier ones
            inherited: Names the child may resolve through this injector;
                all names when None

        Returns:
            A new child injector
        """
        return Injector(modules, self, inherited)
