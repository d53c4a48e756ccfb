"""
Flow data models.

Defines the JSON structure for recorded flows and the derived
parameter schemas used to replay them.
"""

from __future__ import annotations

import random
import string
import time
from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ParameterType = Literal["number", "string", "boolean", "enum"]
ParameterDomain = Literal["generic", "visual", "business", "custom"]


class FlowError(Exception):
    """Base class for flow engine errors."""


class FlowNotFoundError(FlowError):
    pass


class RecordingError(FlowError):
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    """Build an id like ``flow_1718000000000_k3j9x0q2a``."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


class ToolInvocation(BaseModel):
    tool: str
    payload: dict[str, Any] = Field(default_factory=dict)
    element_id: Optional[str] = None  # id handed back by the canvas, read-only copy


class FlowStep(BaseModel):
    id: str = Field(default_factory=lambda: new_id("step"))
    user_message: str = ""
    assistant_response: str = ""
    tools_used: list[ToolInvocation] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utcnow)


class Flow(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=lambda: new_id("flow"))
    name: str
    description: Optional[str] = None
    steps: list[FlowStep] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    is_published: bool = False
    workspace_id: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("flow name must not be empty")
        return value

    def tool_names(self) -> list[str]:
        """Distinct tool names in first-seen order."""
        seen: list[str] = []
        for step in self.steps:
            for invocation in step.tools_used:
                if invocation.tool not in seen:
                    seen.append(invocation.tool)
        return seen


class ParameterMetadata(BaseModel):
    name: str
    type: ParameterType
    description: str = ""
    domain: ParameterDomain = "generic"
    enum_values: Optional[list[str]] = None
    default_value: Any = None
    required: bool = False


class FlowParameterSchema(BaseModel):
    flow_id: str
    flow_name: str
    parameters: list[ParameterMetadata] = Field(default_factory=list)
    examples: list[str] = Field(default_factory=list)


class ValidationResult(BaseModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)


class ExecutionReport(BaseModel):
    flow_id: str
    flow_name: str
    status: Literal["completed", "cancelled"] = "completed"
    instances: int = 0
    invocations: int = 0
    element_ids: list[str] = Field(default_factory=list)


class FlowRecorderState(BaseModel):
    is_recording: bool = False
    current_flow: Optional[Flow] = None
    recorded_steps: list[FlowStep] = Field(default_factory=list)
