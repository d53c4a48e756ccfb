"""
Flow Recorder. Captures the tool calls made while recording is on and
turns them into a named, replayable flow.

Tool calls arrive either directly from the chat layer or as the response
payload of the language service:

    {"success": true, "message": "...", "tools": [{"tool": "drawSquare", "payload": {...}, "elementId": "abc"}]}
"""

from __future__ import annotations

import logging
from typing import Any, Optional, TYPE_CHECKING

from pydantic import ValidationError

from flow_models import Flow, FlowRecorderState, FlowStep, RecordingError, ToolInvocation

if TYPE_CHECKING:
    from flow_manager import FlowManager

logger = logging.getLogger(__name__)

# Meta tools that replay other flows instead of drawing
_SKIP_TOOLS = {"executeFlow"}

_UNTITLED = "Untitled flow"


def extract_tool_calls(response: dict[str, Any]) -> list[ToolInvocation]:
    """
    Extract successful tool calls from a language service response.

    Failed responses, meta tools and malformed entries are skipped.
    """
    if not response.get("success"):
        return []

    invocations: list[ToolInvocation] = []
    for entry in response.get("tools") or []:
        if not isinstance(entry, dict):
            continue
        tool_name = entry.get("tool", "")
        if not tool_name or tool_name in _SKIP_TOOLS:
            continue
        try:
            invocations.append(ToolInvocation(
                tool=tool_name,
                payload=entry.get("payload") or {},
                element_id=entry.get("elementId"),
            ))
        except ValidationError as e:
            logger.warning(f"Skipping malformed tool call {tool_name}: {e}")
    return invocations


def describe_step(step: FlowStep) -> str:
    """Build a human-readable description for a step."""
    if not step.tools_used:
        return "No tool effects"
    parts = []
    for invocation in step.tools_used:
        payload = invocation.payload
        if invocation.tool == "addText":
            text = str(payload.get("text", ""))
            preview = text[:40] + ("..." if len(text) > 40 else "")
            parts.append(f"Text '{preview}'")
        elif "x" in payload and "y" in payload:
            parts.append(f"{invocation.tool} at ({payload['x']}, {payload['y']})")
        elif "elementId" in payload:
            parts.append(f"{invocation.tool} on {payload['elementId']}")
        else:
            parts.append(invocation.tool)
    return ", ".join(parts)


class FlowRecorder:
    """Holds the in-progress flow between start and save."""

    def __init__(self, manager: "FlowManager"):
        self.manager = manager
        self._state = FlowRecorderState()
        self._stopped: Optional[Flow] = None

    @property
    def state(self) -> FlowRecorderState:
        return self._state.model_copy(deep=True)

    @property
    def is_recording(self) -> bool:
        return self._state.is_recording

    def start(self, name: Optional[str] = None, description: Optional[str] = None) -> Flow:
        """Begin recording into a new, empty flow."""
        if self._state.is_recording:
            raise RecordingError("Already recording")
        flow = Flow(name=name or _UNTITLED, description=description)
        self._state = FlowRecorderState(is_recording=True, current_flow=flow)
        self._stopped = None
        logger.info(f"Recording started: {flow.id}")
        return flow

    def record_step(
        self,
        user_message: str,
        assistant_response: str,
        tools_used: list[ToolInvocation],
    ) -> Optional[FlowStep]:
        """
        Append one request's tool effects to the flow.

        Ignored when not recording or when the request had no tool effects.
        """
        if not self._state.is_recording or not tools_used:
            return None
        step = FlowStep(
            user_message=user_message,
            assistant_response=assistant_response,
            tools_used=list(tools_used),
        )
        self._state.recorded_steps.append(step)
        self._state.current_flow.steps.append(step)
        logger.info(f"[Step {len(self._state.recorded_steps)}] {describe_step(step)}")
        return step

    def record_response(self, user_message: str, response: dict[str, Any]) -> Optional[FlowStep]:
        """Record the tool calls found in a language service response."""
        return self.record_step(
            user_message,
            str(response.get("message", "")),
            extract_tool_calls(response),
        )

    def stop(self) -> Optional[Flow]:
        """
        Stop recording.

        Returns the recorded flow, or None when nothing was recorded.
        """
        if not self._state.is_recording:
            raise RecordingError("Not recording")
        flow = self._state.current_flow
        self._state = FlowRecorderState()
        logger.info(f"Recording stopped: {len(flow.steps)} step(s)")
        if not flow.steps:
            self._stopped = None
            return None
        self._stopped = flow
        return flow.model_copy(deep=True)

    def save(self, name: Optional[str] = None, description: Optional[str] = None) -> Flow:
        """Name the stopped flow and persist it."""
        if self._state.is_recording:
            self.stop()
        if self._stopped is None:
            raise RecordingError("Nothing recorded to save")
        flow = self._stopped
        if name:
            flow.name = name
        if description is not None:
            flow.description = description
        saved = self.manager.save_flow(flow)
        self._stopped = None
        logger.info(f"Saved flow '{saved.name}' ({saved.id})")
        return saved

    def discard(self) -> None:
        self._state = FlowRecorderState()
        self._stopped = None
