"""
plugbox - boot named plugins into a shared registry and run a five-phase
lifecycle against it, with dependencies injected by parameter name.

    configure -> setup -> preconditions -> main -> postconditions -> teardown

Plugins are resolved once at boot into a root injector. Every execution gets
fresh child injectors holding only that call's arguments.
"""

from .bindings import Binding, BindingType
from .container import DEFAULT_BOOT_TIMEOUT_MS, Container, ContainerState, PluginConfigBuilder
from .core import ModuleDef, ProviderRegistry
from .errors import (
    BootFailure,
    BootTimeout,
    CircularDependencyError,
    ContainerError,
    ContainerStateError,
    MainFailed,
    PhaseFailed,
    PluginResolutionError,
    PostconditionFailed,
    PreconditionFailed,
    ProgramError,
    TeardownFailed,
    UnresolvedDependency,
)
from .injector import Injector
from .introspection import Dependency, SignatureIntrospector, inject
from .keys import OUTCOME, Id
from .lifecycle import Lifecycle
from .locator_base import Locator
from .program import Program
from .resolver import BootContext, PluginResolver, Ref

__all__ = [
    # Container
    "Container",
    "ContainerState",
    "PluginConfigBuilder",
    "DEFAULT_BOOT_TIMEOUT_MS",
    "Program",
    # Plugins
    "PluginResolver",
    "BootContext",
    "Ref",
    "Lifecycle",
    # Injection
    "Injector",
    "Locator",
    "ModuleDef",
    "ProviderRegistry",
    "Binding",
    "BindingType",
    "SignatureIntrospector",
    "Dependency",
    "inject",
    "Id",
    "OUTCOME",
    # Errors
    "ContainerError",
    "ContainerStateError",
    "ProgramError",
    "UnresolvedDependency",
    "CircularDependencyError",
    "PluginResolutionError",
    "BootTimeout",
    "BootFailure",
    "PhaseFailed",
    "PreconditionFailed",
    "MainFailed",
    "PostconditionFailed",
    "TeardownFailed",
]
