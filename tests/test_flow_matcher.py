"""
Unit tests for flow name matching.
"""

import unittest

from flow_matcher import find_all_by_name, find_by_name
from flow_models import Flow


class TestFindByName(unittest.TestCase):
    """Test tiered name resolution."""

    def setUp(self):
        self.flows = [Flow(name="Star Burst"), Flow(name="Star"), Flow(name="My Star")]

    def match(self, query):
        flow = find_by_name(self.flows, query)
        return flow.name if flow else None

    def test_exact_beats_partial(self):
        """Exact match wins even when a startsWith match comes first in the store."""
        self.assertEqual(self.match("star"), "Star")

    def test_case_and_whitespace(self):
        self.assertEqual(self.match("  STAR "), "Star")

    def test_starts_with(self):
        self.assertEqual(self.match("sta"), "Star Burst")

    def test_contains(self):
        self.assertEqual(self.match("burst"), "Star Burst")
        self.assertEqual(self.match("y st"), "My Star")

    def test_short_query_never_uses_contains(self):
        """Two-character queries stop after the startsWith tier."""
        self.assertIsNone(self.match("ar"))
        self.assertIsNone(self.match("ur"))

    def test_reverse_containment_prefers_longest(self):
        self.assertEqual(self.match("please draw a star burst now"), "Star Burst")
        self.assertEqual(self.match("draw my star please"), "My Star")

    def test_reverse_containment_tie_uses_store_order(self):
        flows = [Flow(name="box"), Flow(name="dot")]
        self.assertEqual(find_by_name(flows, "a dot and a box").name, "box")

    def test_no_match(self):
        self.assertIsNone(self.match("hexagon"))
        self.assertIsNone(find_by_name([], "star"))


class TestFindAllByName(unittest.TestCase):
    def setUp(self):
        self.flows = [Flow(name="Star"), Flow(name="Star Burst"), Flow(name="My Star"), Flow(name="Circle")]

    def test_either_direction(self):
        names = [f.name for f in find_all_by_name(self.flows, "STAR")]
        self.assertEqual(names, ["Star", "Star Burst", "My Star"])

        names = [f.name for f in find_all_by_name(self.flows, "draw my star")]
        self.assertEqual(names, ["Star", "My Star"])

    def test_none(self):
        self.assertEqual(find_all_by_name(self.flows, "hexagon"), [])


if __name__ == '__main__':
    unittest.main()
