"""
Signature introspection: works out which names a callable wants injected.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from dataclasses import dataclass
from typing import Annotated, Any, TypeVar, get_args, get_origin, get_type_hints

from .keys import Id

F = TypeVar("F", bound=Callable[..., Any])

INJECT_ATTRIBUTE = "__inject__"


@dataclass(frozen=True)
class Dependency:
    """A single injectable parameter of a callable."""

    name: str
    parameter: str | None = None
    type_hint: Any = inspect.Parameter.empty
    is_optional: bool = False
    default_value: Any = inspect.Parameter.empty
    positional: bool = False

    def __str__(self) -> str:
        if self.parameter is None or self.parameter == self.name:
            return self.name
        return f"{self.parameter}={self.name}"


def inject(*names: str) -> Callable[[F], F]:
    """
    Declare the dependencies of a function explicitly.

    The names are resolved in order and passed positionally, so they do not
    have to match the parameter identifiers:

        @inject("db", "$outcome")
        def postconditions(database, result): ...
    """

    def decorator(func: F) -> F:
        setattr(func, INJECT_ATTRIBUTE, tuple(names))
        return func

    return decorator


class SignatureIntrospector:
    """Extracts dependency information from function and class signatures."""

    _SKIPPED_KINDS = (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)

    @staticmethod
    def extract_names(func: Callable[..., Any]) -> tuple[str, ...]:
        """Ordered dependency names of ``func``."""
        return tuple(dep.name for dep in SignatureIntrospector.extract_dependencies(func))

    @staticmethod
    def extract_dependencies(func: Callable[..., Any]) -> tuple[Dependency, ...]:
        """
        Extract the dependencies of a callable.

        An explicit ``@inject`` declaration wins over the signature. Otherwise
        every regular parameter becomes a dependency named after its
        identifier, or after an ``Id`` found in an ``Annotated`` hint.

        Args:
            func: Function, class or callable object

        Returns:
            Dependencies in declaration order; empty when the callable takes
            no parameters or its signature cannot be inspected
        """
        declared = getattr(func, INJECT_ATTRIBUTE, None)
        if declared is not None:
            return tuple(Dependency(name, positional=True) for name in declared)

        try:
            signature = inspect.signature(func)
        except (TypeError, ValueError):
            return ()

        hints = SignatureIntrospector._type_hints(func)
        dependencies: list[Dependency] = []
        for param in signature.parameters.values():
            if param.kind in SignatureIntrospector._SKIPPED_KINDS:
                continue

            annotation = hints.get(param.name, param.annotation)
            dependencies.append(
                Dependency(
                    name=SignatureIntrospector._dependency_name(param.name, annotation),
                    parameter=param.name,
                    type_hint=annotation,
                    is_optional=param.default is not inspect.Parameter.empty,
                    default_value=param.default,
                    positional=param.kind is inspect.Parameter.POSITIONAL_ONLY,
                )
            )
        return tuple(dependencies)

    @staticmethod
    def _dependency_name(parameter: str, annotation: Any) -> str:
        if get_origin(annotation) is Annotated:
            for metadata in get_args(annotation)[1:]:
                if isinstance(metadata, Id):
                    return metadata.value
        return parameter

    @staticmethod
    def _type_hints(func: Callable[..., Any]) -> dict[str, Any]:
        target: Any = func
        if inspect.isclass(func):
            target = func.__init__
        elif not (inspect.isfunction(func) or inspect.ismethod(func)):
            target = getattr(func, "__call__", func)

        try:
            return get_type_hints(target, include_extras=True)
        except (NameError, TypeError, AttributeError):
            # Unresolvable forward references: fall back to raw annotations
            return {}
