"""
Flow manager, the entry point the chat layer talks to.

Ties the store, schema registry, transformer and replay engine together.
Construct one per process and hand it to whoever needs it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import flow_config
from flow_engine import FlowExecutor
from flow_matcher import find_all_by_name, find_by_name
from flow_models import (
    ExecutionReport,
    Flow,
    FlowNotFoundError,
    FlowParameterSchema,
    FlowStep,
    ParameterMetadata,
    ValidationResult,
)
from parameter_discovery import discover, validate_parameters
from parameter_schemas import ParameterSchemaRegistry
from parameter_transformer import ParameterTransformer
from persistence import FlowStore, JSONFlowStore
from schema_loader import register_tool_schemas
from tool_registry import ToolRegistry

logger = logging.getLogger(__name__)

# Payload keys of the executeFlow meta tool that are not replay parameters
_META_KEYS = {"flowName"}


class FlowManager:
    def __init__(
        self,
        store: Optional[FlowStore] = None,
        tools: Optional[ToolRegistry] = None,
        registry: Optional[ParameterSchemaRegistry] = None,
        step_delay: Optional[float] = None,
        tool_schemas_file: Optional[str] = None,
    ):
        self.store = store if store is not None else JSONFlowStore()
        self.tools = tools if tools is not None else ToolRegistry()
        self.registry = registry if registry is not None else ParameterSchemaRegistry()
        self.transformer = ParameterTransformer(self.registry)
        self.executor = FlowExecutor(self.tools, self.transformer, step_delay=step_delay)

        schemas_file = tool_schemas_file or flow_config.TOOL_SCHEMAS_FILE
        if schemas_file:
            register_tool_schemas(self.registry, schemas_file)

        self.tools.register("executeFlow", self.execute_flow_tool)

    # --- Flow CRUD ---

    def create_flow(self, name: str, description: Optional[str] = None) -> Flow:
        """Create an empty flow and persist it right away."""
        return self.store.upsert(Flow(name=name, description=description))

    def save_flow(self, flow: Flow) -> Flow:
        return self.store.upsert(flow)

    def delete_flow(self, flow_id: str) -> bool:
        return self.store.remove(flow_id)

    def list_flows(self) -> list[Flow]:
        return self.store.list()

    def get_flow(self, flow_id: str) -> Optional[Flow]:
        return self.store.get(flow_id)

    def find_flow_by_name(self, name: str) -> Optional[Flow]:
        return find_by_name(self.store.list(), name)

    def find_flows_by_name(self, name: str) -> list[Flow]:
        return find_all_by_name(self.store.list(), name)

    def publish_flow(self, flow_id: str, workspace_id: str) -> bool:
        flow = self.store.get(flow_id)
        if flow is None:
            return False
        flow.is_published = True
        flow.workspace_id = workspace_id
        self.store.upsert(flow)
        return True

    def add_step_to_flow(self, flow_id: str, step: FlowStep) -> bool:
        flow = self.store.get(flow_id)
        if flow is None:
            return False
        flow.steps.append(step)
        self.store.upsert(flow)
        return True

    # --- Parameters ---

    def get_flow_parameter_schema(self, flow_id: str) -> Optional[FlowParameterSchema]:
        flow = self.store.get(flow_id)
        if flow is None:
            return None
        return discover(flow, self.registry)

    def get_all_flow_parameter_schemas(self) -> list[FlowParameterSchema]:
        return [discover(flow, self.registry) for flow in self.store.list()]

    def validate_flow_parameters(self, flow_id: str, parameters: dict[str, Any]) -> ValidationResult:
        schema = self.get_flow_parameter_schema(flow_id)
        if schema is None:
            return ValidationResult(valid=False, errors=["Flow not found"])
        return validate_parameters(parameters, schema)

    def register_tool_schema(self, tool_name: str, parameters: list[ParameterMetadata]) -> None:
        self.registry.register(tool_name, parameters)

    def get_all_tool_schemas(self) -> dict[str, list[ParameterMetadata]]:
        return self.registry.get_all()

    # --- Execution ---

    async def execute_flow(
        self,
        flow: Flow,
        parameters: Optional[dict[str, Any]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ExecutionReport:
        """Replay a flow. The stored flow is never modified."""
        return await self.executor.execute(flow, parameters, cancel_event=cancel_event)

    async def execute_flow_by_name(
        self,
        name: str,
        parameters: Optional[dict[str, Any]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ExecutionReport:
        flow = self.find_flow_by_name(name)
        if flow is None:
            raise FlowNotFoundError(f"Flow not found: {name}")
        return await self.execute_flow(flow, parameters, cancel_event=cancel_event)

    async def execute_flow_tool(self, flowName: str = "", **payload: Any) -> Optional[str]:
        """
        The ``executeFlow`` tool: replay a flow named in a tool call.

        Unset parameters are dropped. An unknown name is logged, not raised.
        """
        parameters = {
            k: v for k, v in payload.items()
            if v is not None and k not in _META_KEYS
        }
        try:
            report = await self.execute_flow_by_name(flowName, parameters)
        except FlowNotFoundError:
            logger.error(f"Flow not found: {flowName}")
            return None
        logger.info(f"Executed flow {report.flow_name} with parameters {parameters}")
        return None
