"""
Helpers for hooks and factories that may be either sync or async.
"""

from __future__ import annotations

import inspect
from typing import Any


async def maybe_await(result: Any) -> Any:
    """Await ``result`` if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(result):
        return await result
    return result
