"""
Container - boots plugins into a root injector and runs programs against it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator, Mapping
from enum import Enum
from types import MappingProxyType, TracebackType
from typing import Any

from .aio import maybe_await
from .core import ProviderRegistry
from .errors import (
    BootFailure,
    BootTimeout,
    CircularDependencyError,
    ContainerStateError,
    MainFailed,
    PluginResolutionError,
    PostconditionFailed,
    PreconditionFailed,
    TeardownFailed,
)
from .injector import Injector
from .introspection import Dependency, SignatureIntrospector
from .keys import OUTCOME
from .program import Program
from .resolver import BootContext, PluginResolver

logger = logging.getLogger(__name__)

DEFAULT_BOOT_TIMEOUT_MS = 30_000

INJECTED_HOOKS = ("setup", "teardown", "preconditions", "main", "postconditions")


class ContainerState(Enum):
    """Lifecycle states of a container."""

    UNINITIALIZED = "uninitialized"
    BOOTING = "booting"
    BOOTED = "booted"
    # Plugins resolved but setup failed; only destroy is allowed
    FAILED = "failed"


class PluginConfigBuilder:
    """
    Mutable plugin configuration handed to the ``configure`` hook.

    It is frozen once the hook returns; the frozen mapping is what gets
    resolved.
    """

    def __init__(self, plugins: Mapping[str, Any] | None = None):
        self._plugins: dict[str, Any] = dict(plugins or {})
        self._frozen = False

    def add_plugin(self, name: str, impl: Any) -> PluginConfigBuilder:
        """Add (or replace) a plugin specification."""
        if self._frozen:
            raise ContainerStateError("Plugin configuration is frozen")
        self._plugins[name] = impl
        return self

    def remove_plugin(self, name: str) -> None:
        if self._frozen:
            raise ContainerStateError("Plugin configuration is frozen")
        del self._plugins[name]

    def __contains__(self, name: object) -> bool:
        return name in self._plugins

    def __iter__(self) -> Iterator[str]:
        return iter(self._plugins)

    def __len__(self) -> int:
        return len(self._plugins)

    def freeze(self) -> Mapping[str, Any]:
        self._frozen = True
        return MappingProxyType(dict(self._plugins))


class Container:
    """
    Owns plugin configuration, the boot context and the root injector.

    Boot (``init``) runs once: configure, resolve plugins under a timeout,
    build the root injector, run setup. Every ``execute`` call then gets its
    own child injectors holding that call's arguments, so concurrent calls
    never see each other's bindings. ``destroy`` runs teardown and releases
    the plugins.

    Example:
        container = Container(my_program)
        container.add_plugin("db", Lifecycle.make(connect, disconnect))
        await container.init()
        result = await container.execute({"user_id": 42})
        await container.destroy()
    """

    def __init__(
        self,
        program: Program | object,
        resolver: PluginResolver | None = None,
        boot_timeout_ms: float = DEFAULT_BOOT_TIMEOUT_MS,
    ):
        self._program = program if isinstance(program, Program) else Program(program)
        self._resolver = resolver if resolver is not None else PluginResolver()
        self._boot_timeout_ms = boot_timeout_ms

        self._plugins: dict[str, Any] = {}
        self._plugin_config: Mapping[str, Any] = MappingProxyType({})
        self._context: BootContext | None = None
        self._injector: Injector | None = None
        self._dependencies: dict[str, tuple[Dependency, ...]] = {}
        self._state = ContainerState.UNINITIALIZED

    @property
    def program(self) -> Program:
        return self._program

    @property
    def state(self) -> ContainerState:
        return self._state

    @property
    def plugin_config(self) -> Mapping[str, Any]:
        """The configuration that was resolved at boot (empty before boot)."""
        return self._plugin_config

    @property
    def context(self) -> BootContext | None:
        return self._context

    @property
    def injector(self) -> Injector | None:
        """The root injector, present while booted."""
        return self._injector

    def add_plugin(self, name: str, impl: Any) -> None:
        """Register a plugin specification to be resolved at boot."""
        if self._state is not ContainerState.UNINITIALIZED:
            raise ContainerStateError(f"Cannot add plugin {name!r} to a {self._state.value} container")
        self._plugins[name] = impl

    async def init(self, timeout_ms: float | None = None) -> None:
        """
        Boot the container.

        Args:
            timeout_ms: Time allowed for plugin resolution; defaults to the
                container's boot timeout

        Raises:
            ContainerStateError: If the container is not uninitialized
            BootTimeout: If plugin resolution did not finish in time
            BootFailure: If a plugin failed to resolve or plugin factories
                depend on each other in a cycle

        Whatever setup raises propagates unchanged. The container is then
        left FAILED with its plugins resolved; call destroy to release them.
        """
        if self._state is not ContainerState.UNINITIALIZED:
            raise ContainerStateError(f"Cannot init a {self._state.value} container")
        if timeout_ms is None:
            timeout_ms = self._boot_timeout_ms

        self._state = ContainerState.BOOTING
        try:
            builder = PluginConfigBuilder(self._plugins)
            await maybe_await(self._program.configure()(builder))
            config = builder.freeze()

            logger.debug("Resolving %d plugins (timeout %g ms)", len(config), timeout_ms)
            deadline = asyncio.timeout(timeout_ms / 1000)
            try:
                async with deadline:
                    context = await self._resolver.resolve(config)
            except TimeoutError as exc:
                if deadline.expired():
                    raise BootTimeout(timeout_ms) from None
                raise BootFailure(exc) from exc
            except PluginResolutionError as exc:
                raise BootFailure(exc.cause, exc.plugin) from exc.cause
            except Exception as exc:
                raise BootFailure(exc) from exc

            injector = Injector([ProviderRegistry.build(context)])
            try:
                injector.validate()
            except CircularDependencyError as exc:
                await self._release(context)
                raise BootFailure(exc, exc.cycle[0]) from exc
        except BaseException:
            self._state = ContainerState.UNINITIALIZED
            raise

        self._plugin_config = config
        self._context = context
        self._injector = injector
        self._dependencies = {
            hook: SignatureIntrospector.extract_dependencies(self._program.hook(hook)) for hook in INJECTED_HOOKS
        }
        logger.info("Plugins resolved: %s", ", ".join(config) or "<none>")

        try:
            await self._injector.run(self._program.setup(), self._dependencies["setup"])
        except BaseException:
            self._state = ContainerState.FAILED
            raise
        self._state = ContainerState.BOOTED
        logger.info("Container booted")

    async def execute(self, args: Mapping[str, Any] | None = None, /, **kwargs: Any) -> Any:
        """
        Run preconditions, main and postconditions for one set of arguments.

        Arguments are bound by name for this call only, on top of the boot
        plugins. Postconditions additionally see the main result as
        ``$outcome``.

        Returns:
            The result of ``main``

        Raises:
            ContainerStateError: If the container is not booted
            PreconditionFailed: If preconditions failed; main did not run
            MainFailed: If main failed; postconditions did not run
            PostconditionFailed: If postconditions failed; the outcome is withheld
        """
        if self._state is not ContainerState.BOOTED or self._injector is None:
            raise ContainerStateError(f"Cannot execute on a {self._state.value} container")
        root = self._injector
        plugin_names = tuple(self._plugin_config)

        call_args = dict(args or {}, **kwargs)
        if OUTCOME in call_args:
            raise ValueError(f"{OUTCOME!r} is reserved and cannot be passed as an argument")

        venue = root.create_child([ProviderRegistry.values(call_args)], plugin_names)

        if self._program.has_preconditions():
            try:
                await venue.run(self._program.preconditions(), self._dependencies["preconditions"])
            except Exception as exc:
                raise PreconditionFailed(exc) from exc

        try:
            outcome = await venue.run(self._program.main(), self._dependencies["main"])
        except Exception as exc:
            raise MainFailed(exc) from exc

        if self._program.has_postconditions():
            ensure = root.create_child([ProviderRegistry.values({**call_args, OUTCOME: outcome})], plugin_names)
            try:
                await ensure.run(self._program.postconditions(), self._dependencies["postconditions"])
            except Exception as exc:
                raise PostconditionFailed(exc) from exc

        return outcome

    async def destroy(self) -> None:
        """
        Run teardown and release the boot context.

        A no-op when the container was never booted or is already destroyed.
        The boot context is released even if the teardown hook fails.

        Raises:
            TeardownFailed: With the first error of the teardown hook or of
                releasing the plugins
        """
        context, root = self._context, self._injector
        if context is None or root is None:
            return
        teardown_dependencies = self._dependencies.get("teardown")

        self._context = None
        self._injector = None
        self._dependencies = {}
        self._state = ContainerState.UNINITIALIZED

        error: Exception | None = None
        if self._program.has_teardown():
            try:
                await root.run(self._program.teardown(), teardown_dependencies)
            except Exception as exc:
                logger.exception("Teardown hook failed")
                error = exc

        try:
            await context.destroy()
        except Exception as exc:
            error = error or exc

        logger.info("Container destroyed")
        if error is not None:
            raise TeardownFailed(error) from error

    @staticmethod
    async def _release(context: BootContext) -> None:
        try:
            await context.destroy()
        except Exception:
            logger.exception("Failed to release plugins of a failed boot")

    async def __aenter__(self) -> Container:
        await self.init()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.destroy()
