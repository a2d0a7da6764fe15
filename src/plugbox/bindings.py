"""
Binding definitions and types for plugbox.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any


class BindingType(Enum):
    """Types of bindings supported."""

    FACTORY = "factory"
    VALUE = "value"


@dataclass(frozen=True)
class Binding:
    """A name bound either to a factory or to a static value."""

    name: str
    binding_type: BindingType
    implementation: Any | Callable[..., Any]

    @classmethod
    def factory(cls, name: str, func: Callable[..., Any]) -> Binding:
        return cls(name, BindingType.FACTORY, func)

    @classmethod
    def value(cls, name: str, value: Any) -> Binding:
        return cls(name, BindingType.VALUE, value)

    @property
    def is_factory(self) -> bool:
        return self.binding_type is BindingType.FACTORY

    def __str__(self) -> str:
        impl_name = getattr(self.implementation, "__name__", repr(self.implementation))
        return f"{self.name} -> {impl_name} ({self.binding_type.value})"
