"""
Dependency names and name annotations.
"""

from __future__ import annotations

from dataclasses import dataclass

OUTCOME = "$outcome"
"""Reserved name under which postconditions receive the result of ``main``."""


@dataclass(frozen=True)
class Id:
    """
    Explicit dependency name for a parameter.

    Used inside ``Annotated`` when the name to inject differs from the
    parameter identifier, or is not a valid identifier at all:

        def postconditions(result: Annotated[int, Id(OUTCOME)]) -> None: ...
    """

    value: str

    def __repr__(self) -> str:
        return f"Id({self.value!r})"

    def __str__(self) -> str:
        return self.value
