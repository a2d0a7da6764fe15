"""
Core components: provider sets (modules) and the builders that fill them.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from .bindings import Binding


@dataclass(frozen=True)
class ModuleDef:
    """
    A module definition containing named bindings.

    Modules are immutable collections of bindings; adding a binding replaces
    the internal list instead of mutating it, so a module handed to an
    injector is never changed behind its back.
    """

    bindings: list[Binding]

    def __init__(self, bindings: list[Binding] | None = None) -> None:
        # Use object.__setattr__ since we're frozen
        object.__setattr__(self, "bindings", list(bindings or []))

    def add_binding(self, binding: Binding) -> None:
        """Add a binding to this module."""
        new_bindings = self.bindings + [binding]
        object.__setattr__(self, "bindings", new_bindings)

    def make(self, name: str) -> BindingBuilder:
        """Create a binding builder for the given name."""
        return BindingBuilder(name, self)

    def names(self) -> set[str]:
        return {binding.name for binding in self.bindings}

    def __iter__(self) -> Iterator[Binding]:
        return iter(self.bindings)

    def __len__(self) -> int:
        return len(self.bindings)


class BindingBuilder:
    """Builder for creating bindings."""

    def __init__(self, name: str, module: ModuleDef):
        self._name = name
        self._module = module

    def using(self) -> UsingBuilder:
        """Create a UsingBuilder for fluent binding configuration."""
        return UsingBuilder(self._name, self._module.add_binding)


class UsingBuilder:
    """Builder that finalizes a binding as either a value or a factory."""

    def __init__(self, name: str, finalize_callback: Callable[[Binding], None]):
        self._name = name
        self._finalize_callback = finalize_callback

    def value(self, instance: Any) -> None:
        """Bind to a specific instance value, even if it is callable."""
        self._finalize_callback(Binding.value(self._name, instance))

    def func(self, factory: Callable[..., Any]) -> None:
        """Bind to a factory whose parameters are injected by name."""
        self._finalize_callback(Binding.factory(self._name, factory))


class ProviderRegistry:
    """Turns flat name -> value mappings into modules."""

    @staticmethod
    def build(entries: Mapping[str, Any]) -> ModuleDef:
        """
        Build a module where callables become factories and everything else a value.

        This is how a boot context is exposed for injection: a plugin that
        resolved to a function is invoked (once per injector) with its own
        dependencies injected, any other plugin is handed out as-is.
        """
        module = ModuleDef()
        for name, entry in entries.items():
            if callable(entry):
                module.make(name).using().func(entry)
            else:
                module.make(name).using().value(entry)
        return module

    @staticmethod
    def values(entries: Mapping[str, Any]) -> ModuleDef:
        """Build a module of value bindings only."""
        module = ModuleDef()
        for name, entry in entries.items():
            module.make(name).using().value(entry)
        return module
