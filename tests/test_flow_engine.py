"""
Unit tests for the flow replay engine.

Tool handlers are plain recorders, no canvas involved.
"""

import asyncio
import unittest

from flow_engine import FlowExecutor, instance_parameters
from flow_models import Flow, FlowStep, ToolInvocation
from parameter_schemas import ParameterSchemaRegistry
from parameter_transformer import ParameterTransformer
from tool_registry import ToolRegistry


class Canvas:
    """Records every tool call and hands out sequential element ids."""

    def __init__(self):
        self.calls = []
        self.fail_on = None

    def handler(self, tool_name):
        def _handler(**payload):
            if self.fail_on is not None and len(self.calls) == self.fail_on:
                raise RuntimeError("canvas exploded")
            self.calls.append((tool_name, payload))
            return {"id": f"el-{len(self.calls)}"}
        return _handler


def step(*invocations):
    return FlowStep(user_message="draw", tools_used=list(invocations))


class TestInstanceParameters(unittest.TestCase):
    def test_single_instance_untouched(self):
        self.assertEqual(instance_parameters({"color": "red"}, 0, 1, 200), {"color": "red"})

    def test_offsets(self):
        params = instance_parameters({"xOffset": 10}, 2, 3, 150)
        self.assertEqual(params, {"xOffset": 310, "yOffset": 0})


class TestFlowExecutor(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.canvas = Canvas()
        self.tools = ToolRegistry()
        for name in ("drawSquare", "drawCircle", "addText", "move"):
            self.tools.register(name, self.canvas.handler(name))
        self.executor = FlowExecutor(self.tools, ParameterTransformer(ParameterSchemaRegistry()), step_delay=0)
        self.square = Flow(name="Square", steps=[
            step(ToolInvocation(tool="drawSquare", payload={"x": 0, "y": 0, "size": 50}, element_id="rec-1")),
        ])

    async def test_replays_as_recorded(self):
        report = await self.executor.execute(self.square)

        self.assertEqual(len(self.canvas.calls), 1)
        tool, payload = self.canvas.calls[0]
        self.assertEqual(tool, "drawSquare")
        self.assertEqual((payload["x"], payload["y"], payload["size"]), (0, 0, 50))
        self.assertEqual(report.status, "completed")
        self.assertEqual(report.instances, 1)
        self.assertEqual(report.element_ids, ["el-1"])

    async def test_multi_instance_expansion(self):
        """count=3, spacing=150, xOffset=10 places copies at x 10, 160, 310."""
        report = await self.executor.execute(self.square, {"count": 3, "spacing": 150, "xOffset": 10})

        xs = [payload["x"] for _, payload in self.canvas.calls]
        ys = [payload["y"] for _, payload in self.canvas.calls]
        self.assertEqual(xs, [10, 160, 310])
        self.assertEqual(ys, [0, 0, 0])
        self.assertEqual(report.instances, 3)
        self.assertEqual(report.invocations, 3)

    async def test_default_spacing(self):
        await self.executor.execute(self.square, {"count": 2})
        self.assertEqual([payload["x"] for _, payload in self.canvas.calls], [0, 200])

    async def test_step_order(self):
        flow = Flow(name="Pair", steps=[
            step(
                ToolInvocation(tool="drawSquare", payload={"x": 0, "y": 0, "size": 10}),
                ToolInvocation(tool="drawCircle", payload={"x": 5, "y": 5, "size": 10}),
            ),
            step(ToolInvocation(tool="addText", payload={"x": 1, "y": 1, "text": "hi"})),
        ])
        await self.executor.execute(flow, {"count": 2})
        self.assertEqual(
            [tool for tool, _ in self.canvas.calls],
            ["drawSquare", "drawCircle", "addText"] * 2,
        )

    async def test_flow_not_mutated(self):
        before = self.square.model_dump()
        await self.executor.execute(self.square, {"count": 2, "color": "red", "scale": 3})
        self.assertEqual(self.square.model_dump(), before)

    async def test_error_propagates(self):
        """A failing tool stops the replay; earlier effects stay."""
        self.canvas.fail_on = 1
        with self.assertRaises(RuntimeError):
            await self.executor.execute(self.square, {"count": 3})
        self.assertEqual(len(self.canvas.calls), 1)

    async def test_unknown_tool_skipped(self):
        flow = Flow(name="Mixed", steps=[
            step(
                ToolInvocation(tool="teleport", payload={}),
                ToolInvocation(tool="drawSquare", payload={"x": 0, "y": 0, "size": 10}),
            ),
        ])
        with self.assertLogs("tool_registry", level="WARNING"):
            report = await self.executor.execute(flow)
        self.assertEqual([tool for tool, _ in self.canvas.calls], ["drawSquare"])
        self.assertEqual(report.invocations, 2)

    async def test_element_references_follow_replay(self):
        """A recorded move targets the element created earlier in the same instance."""
        flow = Flow(name="Slide", steps=[
            step(ToolInvocation(tool="drawSquare", payload={"x": 0, "y": 0, "size": 10}, element_id="rec-1")),
            step(ToolInvocation(tool="move", payload={"elementId": "rec-1", "x": 50, "y": 50})),
        ])
        await self.executor.execute(flow, {"count": 2})

        moves = [payload for tool, payload in self.canvas.calls if tool == "move"]
        self.assertEqual([m["elementId"] for m in moves], ["el-1", "el-3"])

    async def test_zero_count(self):
        report = await self.executor.execute(self.square, {"count": 0})
        self.assertEqual(self.canvas.calls, [])
        self.assertEqual(report.instances, 0)

    async def test_cancel_before_start(self):
        cancel = asyncio.Event()
        cancel.set()
        report = await self.executor.execute(self.square, {"count": 3}, cancel_event=cancel)
        self.assertEqual(report.status, "cancelled")
        self.assertEqual(self.canvas.calls, [])

    async def test_cancel_midway(self):
        """Cancelling stops further calls but keeps what was drawn."""
        cancel = asyncio.Event()
        draw = self.canvas.handler("drawSquare")

        def draw_then_cancel(**payload):
            cancel.set()
            return draw(**payload)

        self.tools.register("drawSquare", draw_then_cancel)
        executor = FlowExecutor(self.tools, ParameterTransformer(ParameterSchemaRegistry()), step_delay=5)

        report = await executor.execute(self.square, {"count": 3}, cancel_event=cancel)
        self.assertEqual(report.status, "cancelled")
        self.assertEqual(report.invocations, 1)
        self.assertEqual(len(self.canvas.calls), 1)

    async def test_async_handler(self):
        seen = []

        async def draw(**payload):
            seen.append(payload)
            return "async-id"

        self.tools.register("drawSquare", draw)
        report = await self.executor.execute(self.square)
        self.assertEqual(len(seen), 1)
        self.assertEqual(report.element_ids, ["async-id"])


if __name__ == '__main__':
    unittest.main()
