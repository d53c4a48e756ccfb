"""
Flow Replay Engine

Replays saved flows against the tool registry.

No AI needed: walks the recorded steps and re-issues every tool call,
rewritten with the replay parameters. A ``count`` parameter expands the
flow into several instances laid out side by side.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import flow_config
from flow_models import ExecutionReport, Flow
from parameter_transformer import ParameterTransformer
from tool_payloads import ELEMENT_REF_FIELDS
from tool_registry import ToolRegistry

logger = logging.getLogger(__name__)


def instance_parameters(parameters: dict[str, Any], index: int, count: int, spacing: float) -> dict[str, Any]:
    """Parameters of one instance; instances after the first are shifted right."""
    params = dict(parameters)
    if count > 1:
        params["xOffset"] = (parameters.get("xOffset") or 0) + index * spacing
        params["yOffset"] = parameters.get("yOffset") or 0
    return params


def _remap_element_refs(payload: dict[str, Any], id_map: dict[str, str]) -> dict[str, Any]:
    """Point element references at the elements created during this replay."""
    if not id_map:
        return payload
    remapped = dict(payload)
    for field in ELEMENT_REF_FIELDS:
        ref = remapped.get(field)
        if isinstance(ref, str) and ref in id_map:
            remapped[field] = id_map[ref]
    return remapped


class FlowCancelled(Exception):
    pass


class FlowExecutor:
    """Replays a flow, optionally many times."""

    def __init__(
        self,
        tools: ToolRegistry,
        transformer: ParameterTransformer,
        step_delay: Optional[float] = None,
    ):
        self.tools = tools
        self.transformer = transformer
        self.step_delay = flow_config.STEP_DELAY if step_delay is None else step_delay

    async def execute(
        self,
        flow: Flow,
        parameters: Optional[dict[str, Any]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ExecutionReport:
        """
        Execute all steps of the flow, once per instance.

        A failing tool call stops the replay and the error propagates; effects
        already applied stay on the canvas. Setting ``cancel_event`` stops
        further tool calls without undoing earlier ones.
        """
        parameters = dict(parameters or {})
        count = parameters.get("count")
        count = flow_config.DEFAULT_COUNT if count is None else int(count)
        spacing = parameters.get("spacing")
        spacing = flow_config.DEFAULT_SPACING if spacing is None else spacing

        report = ExecutionReport(flow_id=flow.id, flow_name=flow.name)
        logger.info(f"Executing flow {flow.name}: {len(flow.steps)} step(s), {max(count, 0)} instance(s)")

        try:
            for index in range(count):
                params = instance_parameters(parameters, index, count, spacing)
                await self._run_instance(flow, params, report, cancel_event)
                report.instances += 1
        except FlowCancelled:
            report.status = "cancelled"
            logger.info(f"Flow {flow.name} cancelled after {report.invocations} invocation(s)")
            return report

        logger.info(f"Flow {flow.name} finished: {report.invocations} invocation(s)")
        return report

    async def _run_instance(
        self,
        flow: Flow,
        params: dict[str, Any],
        report: ExecutionReport,
        cancel_event: Optional[asyncio.Event],
    ) -> None:
        id_map: dict[str, str] = {}
        for step in flow.steps:
            for invocation in step.tools_used:
                if cancel_event is not None and cancel_event.is_set():
                    raise FlowCancelled()

                payload = _remap_element_refs(invocation.payload, id_map)
                payload = self.transformer.apply(payload, params, invocation.tool)
                try:
                    element_id = await self.tools.invoke(invocation.tool, payload)
                except Exception as e:
                    logger.error(f"Error executing {invocation.tool} in flow {flow.name}: {e}")
                    raise

                report.invocations += 1
                if element_id:
                    report.element_ids.append(element_id)
                    if invocation.element_id:
                        id_map[invocation.element_id] = element_id

            await self._pause(cancel_event)

    async def _pause(self, cancel_event: Optional[asyncio.Event]) -> None:
        """Inter-step delay; returns early when cancelled."""
        if self.step_delay <= 0:
            return
        if cancel_event is None:
            await asyncio.sleep(self.step_delay)
            return
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=self.step_delay)
        except asyncio.TimeoutError:
            pass
