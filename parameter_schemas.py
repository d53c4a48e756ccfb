"""
Parameter schema registry.

Maps tool names to the parameters each tool accepts. Seeded with the
canvas drawing tools and a few non-visual tools; extended at runtime with
``register``.
"""

from __future__ import annotations

from typing import Optional

from flow_models import ParameterMetadata


def _param(name, type_, description, domain, **extra) -> ParameterMetadata:
    return ParameterMetadata(name=name, type=type_, description=description, domain=domain, **extra)


# Parameters every flow accepts, whatever tools it uses
GENERIC_PARAMETERS: list[ParameterMetadata] = [
    _param("count", "number", "Number of times to execute", "generic"),
    _param("spacing", "number", "Spacing between instances", "generic"),
    _param("delay", "number", "Delay between executions (seconds)", "generic"),
    _param("condition", "string", "Condition to check before execution", "generic"),
    _param("priority", "enum", "Execution priority", "generic", enum_values=["high", "medium", "low"]),
]

# Parameters consumed by the payload transforms of each domain
TRANSFORM_PARAMETERS: dict[str, list[ParameterMetadata]] = {
    "visual": [
        _param("xOffset", "number", "Horizontal offset added to x", "visual"),
        _param("yOffset", "number", "Vertical offset added to y", "visual"),
        _param("scale", "number", "Size multiplier", "visual"),
        _param("color", "string", "Stroke and fill color override", "visual"),
        _param("rotation", "number", "Rotation added to the angle", "visual"),
    ],
    "business": [
        _param("textTemplate", "string", "Text template, {index} is the instance number", "business"),
        _param("instanceIndex", "number", "Instance number used by textTemplate", "business"),
        _param("valueOffset", "number", "Amount added to numeric values", "business"),
        _param("roleOverride", "enum", "Role to assign", "business", enum_values=["admin", "user", "moderator"]),
    ],
}

# Payload fields of recorded invocations are replayed as recorded, so the
# built-in entries do not mark them required. Schema listings
# (get_all_tool_schemas, GET /api/tool-schemas) therefore report
# required=False even for fields a tool cannot do without, such as x, y,
# size, text, imageUrl, username, email, title, to, subject or elementId.
BUILTIN_TOOL_SCHEMAS: dict[str, list[ParameterMetadata]] = {
    # Drawing tools (visual domain)
    "drawSquare": [
        _param("x", "number", "X position", "visual"),
        _param("y", "number", "Y position", "visual"),
        _param("size", "number", "Size of square", "visual"),
        _param("strokeColor", "string", "Border color", "visual"),
        _param("backgroundColor", "string", "Fill color", "visual"),
        _param("strokeWidth", "number", "Border thickness", "visual"),
        _param("opacity", "number", "Transparency", "visual"),
    ],
    "drawCircle": [
        _param("x", "number", "X position", "visual"),
        _param("y", "number", "Y position", "visual"),
        _param("size", "number", "Radius", "visual"),
        _param("strokeColor", "string", "Border color", "visual"),
        _param("backgroundColor", "string", "Fill color", "visual"),
        _param("strokeWidth", "number", "Border thickness", "visual"),
        _param("opacity", "number", "Transparency", "visual"),
    ],
    "addText": [
        _param("x", "number", "X position", "visual"),
        _param("y", "number", "Y position", "visual"),
        _param("text", "string", "Text content", "business"),
        _param("fontSize", "number", "Font size", "visual"),
        _param("strokeColor", "string", "Text color", "visual"),
    ],
    "addImage": [
        _param("x", "number", "X position", "visual"),
        _param("y", "number", "Y position", "visual"),
        _param("imageUrl", "string", "Image URL", "business"),
        _param("width", "number", "Image width", "visual"),
        _param("height", "number", "Image height", "visual"),
    ],
    # Business tools
    "createUser": [
        _param("username", "string", "Username", "business"),
        _param("email", "string", "Email address", "business"),
        _param("role", "enum", "User role", "business", enum_values=["admin", "user", "moderator"]),
        _param("active", "boolean", "Account active", "business"),
    ],
    "createJob": [
        _param("title", "string", "Job title", "business"),
        _param("description", "string", "Job description", "business"),
        _param("salary", "number", "Salary amount", "business"),
        _param("location", "string", "Job location", "business"),
        _param("type", "enum", "Job type", "business", enum_values=["full-time", "part-time", "contract"]),
    ],
    "sendEmail": [
        _param("to", "string", "Recipient email", "business"),
        _param("subject", "string", "Email subject", "business"),
        _param("body", "string", "Email body", "business"),
        _param("priority", "enum", "Email priority", "business", enum_values=["high", "normal", "low"]),
    ],
    # Generic tools
    "move": [
        _param("elementId", "string", "Element to move", "generic"),
        _param("x", "number", "New X position", "visual"),
        _param("y", "number", "New Y position", "visual"),
    ],
    "deleteElement": [
        _param("elementId", "string", "Element to delete", "generic"),
    ],
}


class ParameterSchemaRegistry:
    """Tool name -> parameter metadata, plus the generic parameter set."""

    def __init__(self, schemas: Optional[dict[str, list[ParameterMetadata]]] = None):
        source = BUILTIN_TOOL_SCHEMAS if schemas is None else schemas
        self._schemas: dict[str, list[ParameterMetadata]] = {
            tool: list(params) for tool, params in source.items()
        }

    def register(self, tool_name: str, parameters: list[ParameterMetadata]) -> None:
        """Add or replace the parameters of a tool."""
        self._schemas[tool_name] = list(parameters)

    def get(self, tool_name: str) -> Optional[list[ParameterMetadata]]:
        params = self._schemas.get(tool_name)
        return list(params) if params is not None else None

    def get_all(self) -> dict[str, list[ParameterMetadata]]:
        return {tool: list(params) for tool, params in self._schemas.items()}

    def primary_domain(self, tool_name: str) -> Optional[str]:
        """
        Classify a tool: business beats visual beats generic.

        Returns None for unknown tools.
        """
        params = self._schemas.get(tool_name)
        if params is None:
            return None
        domains = {p.domain for p in params}
        if "business" in domains:
            return "business"
        if "visual" in domains:
            return "visual"
        return "generic"

    @staticmethod
    def generic_parameters() -> list[ParameterMetadata]:
        return list(GENERIC_PARAMETERS)

    @staticmethod
    def transform_parameters(domain: str) -> list[ParameterMetadata]:
        return list(TRANSFORM_PARAMETERS.get(domain, []))

    def __contains__(self, tool_name: str) -> bool:
        return tool_name in self._schemas
