"""
Plugin resolution: turns a plugin configuration into a boot context.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from .errors import CircularDependencyError, PluginResolutionError, UnresolvedDependency
from .aio import maybe_await
from .introspection import SignatureIntrospector
from .lifecycle import Lifecycle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Ref:
    """Plugin specification that resolves to the value of another plugin."""

    name: str

    def __str__(self) -> str:
        return f"Ref({self.name})"


class BootContext(Mapping[str, Any]):
    """
    Read-only mapping of plugin name to resolved value.

    Owns the release functions of every lifecycle-managed plugin and runs
    them, last acquired first, on destroy.
    """

    def __init__(self, instances: dict[str, Any], finalizers: list[tuple[str, Callable[[Any], Any], Any]]):
        self._instances = instances
        self._finalizers = list(finalizers)
        self._destroyed = False

    def __getitem__(self, name: str) -> Any:
        return self._instances[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._instances)

    def __len__(self) -> int:
        return len(self._instances)

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    async def destroy(self) -> None:
        """
        Release every acquired resource in reverse acquisition order.

        A failing release does not stop the others; the first failure is
        re-raised once all releases ran. Destroying twice is a no-op.
        """
        if self._destroyed:
            return
        self._destroyed = True

        first_error: Exception | None = None
        while self._finalizers:
            name, release, value = self._finalizers.pop()
            logger.debug("Releasing plugin %r", name)
            try:
                await maybe_await(release(value))
            except Exception as exc:
                logger.exception("Failed to release plugin %r", name)
                if first_error is None:
                    first_error = exc

        if first_error is not None:
            raise first_error


class PluginResolver:
    """
    Resolves plugin specifications into concrete values.

    Supported specifications:

    - ``Ref(name)``: the resolved value of another plugin
    - ``Lifecycle``: ``acquire`` is called with other plugins injected by
      parameter name, ``release`` runs when the boot context is destroyed
    - ``dict``, ``list`` and ``tuple`` literals: resolved element by element
    - anything else, callables included: used verbatim

    Independent plugins are initialized concurrently, each at most once.
    """

    async def resolve(self, config: Mapping[str, Any]) -> BootContext:
        """
        Resolve every plugin in the configuration.

        Args:
            config: Mapping of plugin name to plugin specification

        Returns:
            A boot context with exactly the configuration's names

        Raises:
            PluginResolutionError: If any plugin fails, references an unknown
                plugin, or takes part in a dependency cycle. Resources already
                acquired are released before the error propagates.
        """
        return await _Wiring(config).run()


class _Wiring:
    """State of one resolve() call."""

    def __init__(self, config: Mapping[str, Any]):
        self._config = dict(config)
        self._tasks: dict[str, asyncio.Future[Any]] = {}
        self._finalizers: list[tuple[str, Callable[[Any], Any], Any]] = []

    async def run(self) -> BootContext:
        self._validate()

        for name in self._config:
            self._tasks[name] = asyncio.ensure_future(self._initialize(name))

        try:
            values = await asyncio.gather(*self._tasks.values())
        except BaseException:
            await self._abort()
            raise

        logger.debug("Resolved %d plugins", len(values))
        return BootContext(dict(zip(self._config, values, strict=True)), self._finalizers)

    def _validate(self) -> None:
        """Check for unknown references and cycles before anything is initialized."""
        graph = {name: self._dependencies(spec) for name, spec in self._config.items()}

        for name, dependencies in graph.items():
            for dependency in dependencies:
                if dependency not in graph:
                    raise PluginResolutionError(name, UnresolvedDependency(dependency, name))

        visited: set[str] = set()

        def visit(name: str, path: list[str]) -> None:
            if name in path:
                cycle = path[path.index(name) :] + [name]
                raise PluginResolutionError(name, CircularDependencyError(cycle))
            if name in visited:
                return
            path.append(name)
            for dependency in graph[name]:
                visit(dependency, path)
            path.pop()
            visited.add(name)

        for name in graph:
            visit(name, [])

    def _dependencies(self, spec: Any) -> list[str]:
        if isinstance(spec, Ref):
            return [spec.name]
        if isinstance(spec, Lifecycle):
            return [
                dep.name
                for dep in SignatureIntrospector.extract_dependencies(spec.acquire)
                if not dep.is_optional or dep.name in self._config
            ]
        if type(spec) is dict:
            return [name for value in spec.values() for name in self._dependencies(value)]
        if type(spec) in (list, tuple):
            return [name for value in spec for name in self._dependencies(value)]
        return []

    async def _initialize(self, name: str) -> Any:
        logger.debug("Initializing plugin %r", name)
        try:
            return await self._build(self._config[name], name)
        except PluginResolutionError:
            raise
        except Exception as exc:
            raise PluginResolutionError(name, exc) from exc

    async def _value(self, name: str) -> Any:
        return await asyncio.shield(self._tasks[name])

    async def _build(self, spec: Any, owner: str) -> Any:
        if isinstance(spec, Ref):
            return await self._value(spec.name)

        if isinstance(spec, Lifecycle):
            return await self._acquire(spec, owner)

        if type(spec) is dict:
            return {key: await self._build(value, owner) for key, value in spec.items()}
        if type(spec) is list:
            return [await self._build(value, owner) for value in spec]
        if type(spec) is tuple:
            return tuple([await self._build(value, owner) for value in spec])

        return spec

    async def _acquire(self, lifecycle: Lifecycle[Any], owner: str) -> Any:
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for dep in SignatureIntrospector.extract_dependencies(lifecycle.acquire):
            if dep.is_optional and dep.name not in self._config:
                if dep.positional:
                    args.append(dep.default_value)
                continue

            value = await self._value(dep.name)
            if dep.positional or dep.parameter is None:
                args.append(value)
            else:
                kwargs[dep.parameter] = value

        value = await maybe_await(lifecycle.acquire(*args, **kwargs))
        self._finalizers.append((owner, lifecycle.release, value))
        return value

    async def _abort(self) -> None:
        for task in self._tasks.values():
            task.cancel()
        await asyncio.gather(*self._tasks.values(), return_exceptions=True)

        try:
            await BootContext({}, self._finalizers).destroy()
        except Exception:
            logger.exception("Failed to release plugins of an aborted boot")
