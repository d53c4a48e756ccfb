"""
Tool registry, the surface flows are replayed against.

Maps tool names to handler callables. Handlers take the payload as keyword
arguments and may be plain functions or coroutines.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Optional

from tool_payloads import parse_payload

logger = logging.getLogger(__name__)

ToolHandler = Callable[..., Any]


def element_id_of(result: Any) -> Optional[str]:
    """Pull an element id out of whatever a handler returned."""
    if result is None:
        return None
    if isinstance(result, str):
        return result or None
    if isinstance(result, dict):
        value = result.get("id")
    else:
        value = getattr(result, "id", None)
    return str(value) if value is not None else None


class ToolRegistry:
    def __init__(self):
        self._handlers: dict[str, ToolHandler] = {}

    def register(self, name: str, handler: ToolHandler) -> None:
        """Add or replace the handler for a tool name."""
        self._handlers[name] = handler

    def unregister(self, name: str) -> bool:
        return self._handlers.pop(name, None) is not None

    def has(self, name: str) -> bool:
        return name in self._handlers

    def names(self) -> list[str]:
        return list(self._handlers)

    async def invoke(self, name: str, payload: dict[str, Any]) -> Optional[str]:
        """
        Run a tool and return the id of the element it produced.

        Unknown tools are skipped with a warning. Errors raised by the
        handler, or by payload validation for known tool shapes, propagate.
        """
        handler = self._handlers.get(name)
        if handler is None:
            logger.warning(f"Unknown tool: {name}")
            return None

        typed = parse_payload(name, payload)
        kwargs = typed.model_dump(exclude_unset=True) if typed is not None else dict(payload)

        result = handler(**kwargs)
        if inspect.isawaitable(result):
            result = await result
        return element_id_of(result)
