"""
Tests for the flow command line.
"""

import tempfile
import unittest

import flow_cli
from flow_models import Flow, FlowStep, ToolInvocation
from persistence import JSONFlowStore


class TestFlowCli(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        store = JSONFlowStore(self.tmp.name)
        self.flow = store.upsert(Flow(name="Square", steps=[
            FlowStep(tools_used=[ToolInvocation(tool="drawSquare", payload={"x": 0, "y": 0, "size": 50})]),
        ]))

    def run_cli(self, *args):
        return flow_cli.main(["--data-dir", self.tmp.name, *args])

    def test_list(self):
        with self.assertLogs("flow_cli", level="INFO") as logs:
            self.assertEqual(self.run_cli("list"), 0)
        self.assertIn("Square", logs.output[0])

    def test_schema_by_name(self):
        with self.assertLogs("flow_cli", level="INFO") as logs:
            self.assertEqual(self.run_cli("schema", "square"), 0)
        self.assertTrue(any("xOffset" in line for line in logs.output))

    def test_validate(self):
        self.assertEqual(self.run_cli("validate", self.flow.id, "--params", '{"count": 2}'), 0)
        with self.assertLogs("flow_cli", level="WARNING"):
            self.assertEqual(self.run_cli("validate", self.flow.id, "--params", '{"count": "x"}'), 1)

    def test_bad_params(self):
        with self.assertLogs("flow_cli", level="ERROR"):
            self.assertEqual(self.run_cli("validate", self.flow.id, "--params", "[1]"), 1)

    def test_delete(self):
        self.assertEqual(self.run_cli("delete", self.flow.id), 0)
        with self.assertLogs("flow_cli", level="ERROR"):
            self.assertEqual(self.run_cli("delete", self.flow.id), 1)


if __name__ == '__main__':
    unittest.main()
