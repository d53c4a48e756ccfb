"""
Parameter transformer. Rewrites a recorded tool payload with replay
parameters, using the transform of the tool's primary domain.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from parameter_schemas import ParameterSchemaRegistry

logger = logging.getLogger(__name__)

Transform = Callable[[dict, dict], dict]

_SCALED_FIELDS = ("size", "width", "height", "fontSize")
_COLOR_FIELDS = ("strokeColor", "backgroundColor")


def transform_visual(payload: dict[str, Any], parameters: dict[str, Any]) -> dict[str, Any]:
    """Offset position, scale dimensions, override colors, add rotation."""
    transformed = dict(payload)

    # Fields recorded as null count as 0
    if parameters.get("xOffset") is not None and "x" in transformed:
        transformed["x"] = (transformed["x"] or 0) + parameters["xOffset"]
    if parameters.get("yOffset") is not None and "y" in transformed:
        transformed["y"] = (transformed["y"] or 0) + parameters["yOffset"]

    scale = parameters.get("scale")
    if scale is not None:
        for field in _SCALED_FIELDS:
            if field in transformed:
                transformed[field] = (transformed[field] or 0) * scale

    color = parameters.get("color")
    if color is not None:
        for field in _COLOR_FIELDS:
            if field in transformed:
                transformed[field] = color

    if parameters.get("rotation") is not None and "angle" in transformed:
        transformed["angle"] = (transformed["angle"] or 0) + parameters["rotation"]

    return transformed


def transform_business(payload: dict[str, Any], parameters: dict[str, Any]) -> dict[str, Any]:
    """Template text, offset values, override roles."""
    transformed = dict(payload)

    template = parameters.get("textTemplate")
    if template is not None and "text" in transformed:
        index = parameters.get("instanceIndex") or 0
        transformed["text"] = template.replace("{index}", str(index), 1)

    if parameters.get("valueOffset") is not None and "salary" in transformed:
        transformed["salary"] = (transformed["salary"] or 0) + parameters["valueOffset"]

    if parameters.get("roleOverride") is not None and "role" in transformed:
        transformed["role"] = parameters["roleOverride"]

    return transformed


def transform_generic(payload: dict[str, Any], parameters: dict[str, Any]) -> dict[str, Any]:
    """Stamp the instance index when one was supplied."""
    transformed = dict(payload)
    if parameters.get("instanceIndex") is not None:
        transformed["instanceIndex"] = parameters["instanceIndex"]
    return transformed


DEFAULT_TRANSFORMS: dict[str, Transform] = {
    "visual": transform_visual,
    "business": transform_business,
    "generic": transform_generic,
}


class ParameterTransformer:
    """Dispatches payload rewrites to the transform registered for a domain."""

    def __init__(self, registry: ParameterSchemaRegistry, transforms: Optional[dict[str, Transform]] = None):
        self.registry = registry
        self._transforms: dict[str, Transform] = dict(transforms or DEFAULT_TRANSFORMS)

    def register(self, domain: str, transform: Transform) -> None:
        self._transforms[domain] = transform

    def apply(self, payload: dict[str, Any], parameters: Optional[dict[str, Any]], tool_name: str) -> dict[str, Any]:
        """
        Rewrite a payload for replay.

        Unknown tools, and calls without parameters, get the payload back
        unmodified.
        """
        if not parameters:
            return dict(payload)

        domain = self.registry.primary_domain(tool_name)
        if domain is None:
            logger.debug(f"No schema for tool {tool_name}, payload left as recorded")
            return dict(payload)

        transform = self._transforms.get(domain)
        if transform is None:
            logger.warning(f"No transform registered for domain {domain}")
            return dict(payload)
        return transform(payload, parameters)
