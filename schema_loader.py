"""
Tool schema loader.

Loads YAML files that describe the parameters of extra tools and
registers them, so new tools become parameterizable without code changes.

Example file:

    createInvoice:
      - name: amount
        type: number
        description: Invoice amount
        domain: business
      - name: currency
        type: enum
        domain: business
        enum_values: [EUR, USD]
"""

from typing import Dict, List
from pathlib import Path
import logging

import yaml
from pydantic import ValidationError

from flow_models import ParameterMetadata
from parameter_schemas import ParameterSchemaRegistry

logger = logging.getLogger(__name__)


def parse_tool_schemas(data: Dict) -> Dict[str, List[ParameterMetadata]]:
    """
    Convert a mapping loaded from YAML into parameter metadata.

    Args:
        data: ``{tool_name: [parameter, ...]}``

    Returns:
        Tool name -> metadata list

    Raises:
        ValueError: If the document is malformed
    """
    if not isinstance(data, dict):
        raise ValueError("Tool schema file must contain a YAML dictionary")

    schemas: Dict[str, List[ParameterMetadata]] = {}
    for tool_name, params in data.items():
        if not isinstance(tool_name, str) or not tool_name.strip():
            raise ValueError(f"Invalid tool name: {tool_name!r}")
        if not isinstance(params, list):
            raise ValueError(f"'{tool_name}' must map to a list of parameters")

        parsed = []
        for index, raw in enumerate(params):
            if not isinstance(raw, dict):
                raise ValueError(f"'{tool_name}[{index}]' must be a dictionary")
            try:
                parsed.append(ParameterMetadata(**raw))
            except ValidationError as e:
                raise ValueError(f"Invalid parameter '{tool_name}[{index}]': {e}") from e
            if parsed[-1].type == "enum" and not parsed[-1].enum_values:
                raise ValueError(f"'{tool_name}.{parsed[-1].name}' is an enum without enum_values")
        schemas[tool_name] = parsed

    return schemas


def load_tool_schemas(file_path: str) -> Dict[str, List[ParameterMetadata]]:
    """
    Load tool schemas from a YAML file.

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If the document is invalid
        yaml.YAMLError: If YAML parsing fails
    """
    path = Path(file_path)

    if not path.exists():
        raise FileNotFoundError(f"Tool schema file not found: {file_path}")

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    return parse_tool_schemas(data)


def register_tool_schemas(registry: ParameterSchemaRegistry, file_path: str) -> List[str]:
    """Load a schema file into the registry. Returns the registered tool names."""
    schemas = load_tool_schemas(file_path)
    for tool_name, params in schemas.items():
        if tool_name in registry:
            logger.info(f"Overriding schema for tool: {tool_name}")
        registry.register(tool_name, params)
    logger.info(f"Registered {len(schemas)} tool schema(s) from {file_path}")
    return list(schemas)
