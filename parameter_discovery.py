"""
Parameter discovery. Works out what a recorded flow can be
parameterized by, and checks supplied parameters against that.
"""

from __future__ import annotations

import logging
from typing import Any

from flow_models import Flow, FlowParameterSchema, ParameterMetadata, ValidationResult
from parameter_schemas import ParameterSchemaRegistry

logger = logging.getLogger(__name__)

# Domains whose payload transforms take extra parameters
_TRANSFORM_DOMAINS = ("visual", "business")

# Tool-specific example phrasings
_TOOL_EXAMPLES = {
    "addText": "with different text",
    "createUser": "for different roles",
    "sendEmail": "with high priority",
}


def discover(flow: Flow, registry: ParameterSchemaRegistry) -> FlowParameterSchema:
    """
    Build the parameter schema of a flow.

    Starts from the generic parameters and adds the registered parameters of
    every tool the flow uses, in first-seen order. A name already present is
    never added again. The transform parameters of each domain present are
    appended last.
    """
    parameters: list[ParameterMetadata] = registry.generic_parameters()
    names = {p.name for p in parameters}

    def add(param: ParameterMetadata) -> None:
        if param.name not in names:
            names.add(param.name)
            parameters.append(param)

    used_tools = flow.tool_names()
    for tool_name in used_tools:
        for param in registry.get(tool_name) or []:
            add(param)

    domains = {p.domain for p in parameters}
    for domain in _TRANSFORM_DOMAINS:
        if domain in domains:
            for param in registry.transform_parameters(domain):
                add(param)

    examples = generate_examples(flow.name, parameters, used_tools)
    logger.debug(f"Discovered {len(parameters)} parameter(s) for flow {flow.name}")
    return FlowParameterSchema(
        flow_id=flow.id,
        flow_name=flow.name,
        parameters=parameters,
        examples=examples,
    )


def generate_examples(flow_name: str, parameters: list[ParameterMetadata], used_tools: list[str]) -> list[str]:
    """Natural-language phrasings a user could use to replay the flow."""
    phrases = ["5 times", "with high priority"]

    domains = {p.domain for p in parameters}
    if "visual" in domains:
        phrases += ["in red", "at position 100, 200", "twice as large"]
    if "business" in domains:
        phrases += ["for admin users", "with custom text"]

    for tool_name in used_tools:
        if tool_name in _TOOL_EXAMPLES:
            phrases.append(_TOOL_EXAMPLES[tool_name])

    examples = []
    for phrase in phrases:
        example = f'"{flow_name} {phrase}"'
        if example not in examples:
            examples.append(example)
    return examples


def _matches_type(value: Any, param: ParameterMetadata) -> bool:
    if param.type == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if param.type == "boolean":
        return isinstance(value, bool)
    return isinstance(value, str)


def validate_parameters(parameters: dict[str, Any], schema: FlowParameterSchema) -> ValidationResult:
    """
    Check supplied parameters against a flow schema.

    Each offending parameter is reported once: unknown name, wrong kind,
    value outside the enum, or a required parameter left out.
    """
    errors: list[str] = []
    by_name = {p.name: p for p in schema.parameters}

    for key, value in parameters.items():
        param = by_name.get(key)
        if param is None:
            errors.append(f"Unknown parameter: {key}")
            continue

        if value is None:
            if param.required:
                errors.append(f"Required parameter {key} is missing")
            continue

        if not _matches_type(value, param):
            kind = "string" if param.type == "enum" else param.type
            errors.append(f"Parameter {key} must be a {kind}")
        elif param.type == "enum" and param.enum_values and value not in param.enum_values:
            errors.append(f"Parameter {key} must be one of: {', '.join(param.enum_values)}")

    for param in schema.parameters:
        if param.required and param.name not in parameters:
            errors.append(f"Required parameter {param.name} is missing")

    return ValidationResult(valid=not errors, errors=errors)
