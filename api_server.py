"""
Flow Engine API Server

FastAPI server exposing flow recording, parameter discovery and replay over
HTTP, so the chat front end (or any HTTP client) can drive the flow engine.

Usage:
    python -m uvicorn api_server:app --host 0.0.0.0 --port 8090
"""

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field, ValidationError

import flow_config
from flow_manager import FlowManager
from flow_models import (
    Flow,
    FlowParameterSchema,
    FlowRecorderState,
    FlowStep,
    ParameterMetadata,
    RecordingError,
    ToolInvocation,
    ValidationResult,
)
from flow_recorder import FlowRecorder

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    if getattr(app.state, "manager", None) is None:
        app.state.manager = FlowManager()
    app.state.recorder = FlowRecorder(app.state.manager)
    app.state.executions = {}

    canvas = None
    if flow_config.API_CANVAS:
        from canvas_tools import CanvasToolSurface

        canvas = CanvasToolSurface()
        await canvas.open()
        canvas.register_all(app.state.manager.tools)
    try:
        yield
    finally:
        if canvas is not None:
            await canvas.close()


app = FastAPI(
    title="Flow Engine API",
    description="Record, discover parameters of, and replay canvas flows",
    version="1.0.0",
    lifespan=lifespan,
)


# --- Request/Response models ---


class FlowCreate(BaseModel):
    name: str
    description: Optional[str] = None


class PublishRequest(BaseModel):
    workspace_id: str


class ExecuteRequest(BaseModel):
    parameters: dict[str, Any] = Field(default_factory=dict)
    wait: bool = True  # False runs in the background, poll /api/executions/{id}


class ExecuteByNameRequest(ExecuteRequest):
    name: str


class RecordingStart(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class RecordingStep(BaseModel):
    user_message: str
    assistant_response: str = ""
    tools_used: list[ToolInvocation] = Field(default_factory=list)
    response: Optional[dict[str, Any]] = None  # raw language service response


class RecordingSave(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


# --- Helpers ---


def _manager(request: Request) -> FlowManager:
    return request.app.state.manager


def _recorder(request: Request) -> FlowRecorder:
    return request.app.state.recorder


def _require_flow(manager: FlowManager, flow_id: str) -> Flow:
    flow = manager.get_flow(flow_id)
    if flow is None:
        raise HTTPException(status_code=404, detail="Flow not found")
    return flow


async def _run_execution(app: FastAPI, execution_id: str, flow: Flow, parameters: dict):
    """Background coroutine: replays a flow and records the outcome."""
    entry = app.state.executions[execution_id]
    try:
        report = await app.state.manager.execute_flow(flow, parameters, cancel_event=entry["cancel"])
        entry["report"] = report.model_dump()
        entry["status"] = report.status
    except Exception as e:
        logger.error(f"Execution {execution_id} failed: {e}")
        entry["status"] = "failed"
        entry["error"] = str(e)
    entry["finished_at"] = datetime.now(timezone.utc).isoformat()


async def _execute(request: Request, flow: Flow, req: ExecuteRequest):
    if req.wait:
        try:
            return await _manager(request).execute_flow(flow, req.parameters)
        except Exception as e:
            raise HTTPException(status_code=502, detail=f"Tool invocation failed: {e}")

    execution_id = str(uuid.uuid4())[:8]
    request.app.state.executions[execution_id] = {
        "execution_id": execution_id,
        "flow_id": flow.id,
        "status": "running",
        "started_at": datetime.now(timezone.utc).isoformat(),
        "finished_at": None,
        "report": None,
        "error": None,
        "cancel": asyncio.Event(),
    }
    asyncio.create_task(_run_execution(request.app, execution_id, flow, req.parameters))
    return {"execution_id": execution_id, "status": "running"}


# --- Endpoints ---


@app.get("/health")
async def health(request: Request):
    return {
        "status": "ok",
        "flows": len(_manager(request).list_flows()),
        "tools": _manager(request).tools.names(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# --- Flow CRUD ---


@app.get("/api/flows")
async def list_flows(request: Request) -> list[Flow]:
    return _manager(request).list_flows()


@app.post("/api/flows", response_model=Flow, status_code=201)
async def create_flow(req: FlowCreate, request: Request):
    """Create an empty flow."""
    try:
        return _manager(request).create_flow(req.name, req.description)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@app.get("/api/flows/search")
async def search_flows(name: str, request: Request):
    """Best match plus every candidate for a loosely typed name."""
    manager = _manager(request)
    return {
        "match": manager.find_flow_by_name(name),
        "candidates": manager.find_flows_by_name(name),
    }


@app.get("/api/flows/{flow_id}", response_model=Flow)
async def get_flow(flow_id: str, request: Request):
    return _require_flow(_manager(request), flow_id)


@app.put("/api/flows/{flow_id}", response_model=Flow)
async def save_flow(flow_id: str, flow: Flow, request: Request):
    """Insert or replace a flow."""
    if flow.id != flow_id:
        raise HTTPException(status_code=400, detail="Flow id does not match path")
    return _manager(request).save_flow(flow)


@app.delete("/api/flows/{flow_id}")
async def delete_flow(flow_id: str, request: Request):
    if not _manager(request).delete_flow(flow_id):
        raise HTTPException(status_code=404, detail="Flow not found")
    return {"status": "deleted", "flow_id": flow_id}


@app.post("/api/flows/{flow_id}/publish")
async def publish_flow(flow_id: str, req: PublishRequest, request: Request):
    if not _manager(request).publish_flow(flow_id, req.workspace_id):
        raise HTTPException(status_code=404, detail="Flow not found")
    return {"status": "published", "flow_id": flow_id, "workspace_id": req.workspace_id}


@app.post("/api/flows/{flow_id}/steps", response_model=Flow)
async def add_step(flow_id: str, step: FlowStep, request: Request):
    manager = _manager(request)
    if not manager.add_step_to_flow(flow_id, step):
        raise HTTPException(status_code=404, detail="Flow not found")
    return manager.get_flow(flow_id)


# --- Parameters ---


@app.get("/api/flows/{flow_id}/schema", response_model=FlowParameterSchema)
async def get_flow_schema(flow_id: str, request: Request):
    schema = _manager(request).get_flow_parameter_schema(flow_id)
    if schema is None:
        raise HTTPException(status_code=404, detail="Flow not found")
    return schema


@app.get("/api/schemas")
async def list_flow_schemas(request: Request) -> list[FlowParameterSchema]:
    return _manager(request).get_all_flow_parameter_schemas()


@app.post("/api/flows/{flow_id}/validate", response_model=ValidationResult)
async def validate_flow_parameters(flow_id: str, parameters: dict[str, Any], request: Request):
    """Validation problems are reported in the body, never as an HTTP error."""
    return _manager(request).validate_flow_parameters(flow_id, parameters)


@app.get("/api/tool-schemas")
async def list_tool_schemas(request: Request) -> dict[str, list[ParameterMetadata]]:
    return _manager(request).get_all_tool_schemas()


@app.put("/api/tool-schemas/{tool_name}")
async def register_tool_schema(tool_name: str, parameters: list[ParameterMetadata], request: Request):
    _manager(request).register_tool_schema(tool_name, parameters)
    return {"status": "registered", "tool": tool_name, "parameters": len(parameters)}


# --- Execution ---


@app.post("/api/flows/{flow_id}/execute")
async def execute_flow(flow_id: str, req: ExecuteRequest, request: Request):
    flow = _require_flow(_manager(request), flow_id)
    return await _execute(request, flow, req)


@app.post("/api/execute")
async def execute_flow_by_name(req: ExecuteByNameRequest, request: Request):
    """Replay the flow a loosely typed name resolves to."""
    flow = _manager(request).find_flow_by_name(req.name)
    if flow is None:
        raise HTTPException(status_code=404, detail=f"Flow not found: {req.name}")
    return await _execute(request, flow, req)


@app.get("/api/executions")
async def list_executions(request: Request):
    return [
        {k: v for k, v in e.items() if k != "cancel"}
        for e in request.app.state.executions.values()
    ]


@app.get("/api/executions/{execution_id}")
async def get_execution(execution_id: str, request: Request):
    entry = request.app.state.executions.get(execution_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Execution not found")
    return {k: v for k, v in entry.items() if k != "cancel"}


@app.post("/api/executions/{execution_id}/cancel")
async def cancel_execution(execution_id: str, request: Request):
    """Stop issuing tool calls; effects already applied stay."""
    entry = request.app.state.executions.get(execution_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Execution not found")
    entry["cancel"].set()
    return {"execution_id": execution_id, "status": "cancelling"}


# --- Recording ---


@app.get("/api/recording", response_model=FlowRecorderState)
async def recording_state(request: Request):
    return _recorder(request).state


@app.post("/api/recording/start", response_model=Flow)
async def recording_start(req: RecordingStart, request: Request):
    try:
        return _recorder(request).start(req.name, req.description)
    except RecordingError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))


@app.post("/api/recording/step")
async def recording_step(req: RecordingStep, request: Request):
    """Append a step; requests without tool effects are ignored."""
    recorder = _recorder(request)
    if not recorder.is_recording:
        raise HTTPException(status_code=409, detail="Not recording")
    if req.response is not None:
        step = recorder.record_response(req.user_message, req.response)
    else:
        step = recorder.record_step(req.user_message, req.assistant_response, req.tools_used)
    return {"recorded": step is not None, "step": step}


@app.post("/api/recording/stop")
async def recording_stop(request: Request):
    try:
        flow = _recorder(request).stop()
    except RecordingError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"flow": flow, "steps": len(flow.steps) if flow else 0}


@app.post("/api/recording/save", response_model=Flow)
async def recording_save(req: RecordingSave, request: Request):
    try:
        return _recorder(request).save(req.name, req.description)
    except RecordingError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))


@app.post("/api/recording/discard")
async def recording_discard(request: Request):
    _recorder(request).discard()
    return {"status": "discarded"}


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
    uvicorn.run(app, host="0.0.0.0", port=flow_config.API_PORT)
