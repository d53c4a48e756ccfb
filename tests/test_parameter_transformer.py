"""
Unit tests for payload transforms.
"""

import copy
import unittest

from parameter_schemas import ParameterSchemaRegistry
from parameter_transformer import (
    ParameterTransformer,
    transform_business,
    transform_generic,
    transform_visual,
)


class TestVisual(unittest.TestCase):
    """Test the visual transform."""

    def setUp(self):
        self.payload = {"x": 100, "y": 50, "size": 40, "strokeColor": "#000", "angle": 0.5}

    def test_no_recognized_parameters(self):
        """Unrelated parameters give an equal copy, never the input itself."""
        result = transform_visual(self.payload, {"wobble": 1})
        self.assertEqual(result, self.payload)
        self.assertIsNot(result, self.payload)

    def test_offsets(self):
        result = transform_visual(self.payload, {"xOffset": 10, "yOffset": -5})
        self.assertEqual((result["x"], result["y"]), (110, 45))

    def test_offset_needs_payload_field(self):
        result = transform_visual({"size": 10}, {"xOffset": 10})
        self.assertNotIn("x", result)

    def test_scale(self):
        result = transform_visual({"size": 40, "width": 10, "height": 20, "fontSize": 16}, {"scale": 2})
        self.assertEqual(result, {"size": 80, "width": 20, "height": 40, "fontSize": 32})

    def test_color_only_overrides_present_fields(self):
        result = transform_visual(self.payload, {"color": "red"})
        self.assertEqual(result["strokeColor"], "red")
        self.assertNotIn("backgroundColor", result)

    def test_rotation(self):
        self.assertEqual(transform_visual(self.payload, {"rotation": 1})["angle"], 1.5)
        self.assertEqual(transform_visual({"angle": None}, {"rotation": 2})["angle"], 2)
        self.assertNotIn("angle", transform_visual({"x": 1}, {"rotation": 2}))

    def test_null_fields_count_as_zero(self):
        result = transform_visual({"x": None, "y": 1, "size": None}, {"xOffset": 10, "yOffset": 2, "scale": 3})
        self.assertEqual(result, {"x": 10, "y": 3, "size": 0})

    def test_input_not_mutated(self):
        original = copy.deepcopy(self.payload)
        transform_visual(self.payload, {"xOffset": 5, "scale": 3, "color": "blue", "rotation": 1})
        self.assertEqual(self.payload, original)


class TestBusiness(unittest.TestCase):
    """Test the business transform."""

    def test_text_template(self):
        result = transform_business({"text": "old"}, {"textTemplate": "Item {index}", "instanceIndex": 2})
        self.assertEqual(result["text"], "Item 2")

    def test_text_template_default_index(self):
        result = transform_business({"text": "old"}, {"textTemplate": "Item {index}"})
        self.assertEqual(result["text"], "Item 0")

    def test_value_offset_and_role(self):
        result = transform_business({"salary": 1000, "role": "user"}, {"valueOffset": 250, "roleOverride": "admin"})
        self.assertEqual(result, {"salary": 1250, "role": "admin"})

    def test_null_salary(self):
        self.assertEqual(transform_business({"salary": None}, {"valueOffset": 250}), {"salary": 250})

    def test_missing_fields_untouched(self):
        result = transform_business({"title": "Dev"}, {"valueOffset": 250, "roleOverride": "admin"})
        self.assertEqual(result, {"title": "Dev"})


class TestGeneric(unittest.TestCase):
    def test_instance_index(self):
        self.assertEqual(transform_generic({"elementId": "a"}, {"instanceIndex": 3}), {"elementId": "a", "instanceIndex": 3})
        self.assertEqual(transform_generic({"elementId": "a"}, {"count": 3}), {"elementId": "a"})


class TestDispatch(unittest.TestCase):
    """Test domain selection by tool."""

    def setUp(self):
        self.transformer = ParameterTransformer(ParameterSchemaRegistry())

    def test_visual_tool(self):
        result = self.transformer.apply({"x": 0, "y": 0, "size": 10}, {"xOffset": 10}, "drawSquare")
        self.assertEqual(result["x"], 10)

    def test_business_beats_visual(self):
        """addText has a business parameter, so only business rules apply."""
        payload = {"x": 0, "y": 0, "text": "hi"}
        result = self.transformer.apply(payload, {"xOffset": 10, "textTemplate": "#{index}"}, "addText")
        self.assertEqual(result, {"x": 0, "y": 0, "text": "#0"})

    def test_generic_tool(self):
        result = self.transformer.apply({"elementId": "a"}, {"instanceIndex": 1, "xOffset": 5}, "deleteElement")
        self.assertEqual(result, {"elementId": "a", "instanceIndex": 1})

    def test_unknown_tool(self):
        payload = {"x": 0}
        result = self.transformer.apply(payload, {"xOffset": 10}, "teleport")
        self.assertEqual(result, payload)

    def test_empty_parameters(self):
        payload = {"x": 0}
        result = self.transformer.apply(payload, {}, "drawSquare")
        self.assertEqual(result, payload)
        self.assertIsNot(result, payload)

    def test_registered_transform(self):
        self.transformer.register("visual", lambda payload, params: {**payload, "tagged": True})
        result = self.transformer.apply({"x": 0}, {"xOffset": 1}, "drawCircle")
        self.assertEqual(result, {"x": 0, "tagged": True})


if __name__ == '__main__':
    unittest.main()
