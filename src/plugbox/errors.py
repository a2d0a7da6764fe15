"""
Error taxonomy for plugbox.

Every error raised by the container derives from ContainerError. Errors that
wrap a failure raised by user code keep it as ``cause`` and as ``__cause__``.
"""

from __future__ import annotations

from collections.abc import Sequence


class ContainerError(Exception):
    """Base class for all plugbox errors."""


class ContainerStateError(ContainerError):
    """Raised when an operation is not valid in the container's current state."""


class ProgramError(ContainerError):
    """Raised when a program does not provide the hooks a container needs."""


class UnresolvedDependency(ContainerError):
    """Raised when no provider exists for a required name."""

    def __init__(self, name: str, dependent: str | None = None):
        self.name = name
        self.dependent = dependent
        msg = f"No provider found for {name!r}"
        if dependent:
            msg += f" (required by {dependent!r})"
        super().__init__(msg)


class CircularDependencyError(ContainerError):
    """Raised when resolving a name requires that same name."""

    def __init__(self, cycle: Sequence[str]):
        self.cycle = list(cycle)
        cycle_str = " -> ".join(self.cycle)
        super().__init__(f"Circular dependency detected: {cycle_str}")


class PluginResolutionError(ContainerError):
    """Raised when a plugin specification cannot be turned into a value."""

    def __init__(self, plugin: str, cause: BaseException):
        self.plugin = plugin
        self.cause = cause
        super().__init__(f"Plugin {plugin!r} failed to initialize: {cause}")


class BootTimeout(ContainerError):
    """Raised when plugin resolution does not complete in time."""

    def __init__(self, timeout_ms: float):
        self.timeout_ms = timeout_ms
        super().__init__(
            f"The context failed to boot in a timely fashion ({timeout_ms:g} ms). "
            "Check your plugins and their connectivity"
        )


class BootFailure(ContainerError):
    """Raised when plugins cannot be resolved or wired before the boot timeout."""

    def __init__(self, cause: BaseException, plugin: str | None = None):
        self.cause = cause
        self.plugin = plugin
        msg = "The context failed to boot"
        if plugin:
            msg += f" (plugin {plugin!r})"
        super().__init__(f"{msg}: {cause}")


class PhaseFailed(ContainerError):
    """A lifecycle hook failed. ``phase`` names the hook, ``cause`` is its error."""

    phase = "unknown"

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"{self.phase} failed: {cause!r}")


class PreconditionFailed(PhaseFailed):
    phase = "preconditions"


class MainFailed(PhaseFailed):
    phase = "main"


class PostconditionFailed(PhaseFailed):
    phase = "postconditions"


class TeardownFailed(PhaseFailed):
    phase = "teardown"
