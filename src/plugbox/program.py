"""
Program - the set of lifecycle hooks a container drives.
"""

from __future__ import annotations

import importlib
from collections.abc import Callable
from typing import Any

from .errors import ProgramError

HOOKS = ("configure", "setup", "teardown", "preconditions", "main", "postconditions")


def _noop(*_args: Any, **_kwargs: Any) -> None:
    return None


class Program:
    """
    Wraps an object exposing lifecycle hooks.

    The source can be a module, a class instance or any namespace with some
    of the attributes ``configure``, ``setup``, ``teardown``,
    ``preconditions``, ``main`` and ``postconditions``. Only ``main`` is
    mandatory; absent hooks are replaced by no-ops.

    ``configure`` receives the plugin configuration builder. Every other hook
    gets its parameters injected by name.
    """

    def __init__(self, source: object):
        main = getattr(source, "main", None)
        if not callable(main):
            raise ProgramError(f"{source!r} does not define a callable 'main' hook")

        self._source = source
        self._hooks: dict[str, Callable[..., Any]] = {}
        for hook in HOOKS:
            func = getattr(source, hook, None)
            if func is not None and not callable(func):
                raise ProgramError(f"Hook {hook!r} of {source!r} is not callable")
            self._hooks[hook] = func if func is not None else _noop
        self._present = frozenset(hook for hook in HOOKS if getattr(source, hook, None) is not None)

    @classmethod
    def load(cls, module_name: str) -> Program:
        """Import a module by dotted name and wrap it."""
        return cls(importlib.import_module(module_name))

    @property
    def source(self) -> object:
        return self._source

    def hook(self, name: str) -> Callable[..., Any]:
        """Get a hook by name."""
        if name not in self._hooks:
            raise KeyError(f"Unknown hook: {name}")
        return self._hooks[name]

    def has_hook(self, name: str) -> bool:
        return name in self._present

    def configure(self) -> Callable[..., Any]:
        return self._hooks["configure"]

    def setup(self) -> Callable[..., Any]:
        return self._hooks["setup"]

    def teardown(self) -> Callable[..., Any]:
        return self._hooks["teardown"]

    def preconditions(self) -> Callable[..., Any]:
        return self._hooks["preconditions"]

    def main(self) -> Callable[..., Any]:
        return self._hooks["main"]

    def postconditions(self) -> Callable[..., Any]:
        return self._hooks["postconditions"]

    def has_preconditions(self) -> bool:
        return self.has_hook("preconditions")

    def has_postconditions(self) -> bool:
        return self.has_hook("postconditions")

    def has_teardown(self) -> bool:
        return self.has_hook("teardown")

    def __repr__(self) -> str:
        return f"Program({self._source!r})"
