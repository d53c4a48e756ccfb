"""
Typed payloads of the known canvas tools.

Each model carries the fields its tool understands. Unknown keys are kept
as extras so payloads recorded by newer tools still round-trip.
"""

from __future__ import annotations

from typing import Any, ClassVar, Literal, Optional

from pydantic import BaseModel, ConfigDict

FillStyle = Literal["hachure", "solid", "cross-hatch", "zigzag"]
StrokeStyle = Literal["solid", "dashed", "dotted"]


class ToolPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    # Fields passed positionally to the canvas function, in order.
    # Every other set field goes into the trailing options object.
    positional: ClassVar[tuple[str, ...]] = ()
    has_options: ClassVar[bool] = True

    def call_args(self) -> list[Any]:
        """Arguments for the canvas function: positionals, then options."""
        data = self.model_dump(exclude_none=True)
        args = [data.pop(name, None) for name in self.positional]
        if self.has_options:
            args.append(data)
        return args


class StrokeOptions(ToolPayload):
    strokeColor: Optional[str] = None
    strokeWidth: Optional[float] = None
    strokeStyle: Optional[StrokeStyle] = None
    roughness: Optional[float] = None
    opacity: Optional[float] = None


class ShapeOptions(StrokeOptions):
    backgroundColor: Optional[str] = None
    fillStyle: Optional[FillStyle] = None


class DrawSquarePayload(ShapeOptions):
    positional: ClassVar[tuple[str, ...]] = ("x", "y", "size")
    x: float = 100
    y: float = 100
    size: float = 100
    roundness: Optional[float] = None


class DrawCirclePayload(ShapeOptions):
    positional: ClassVar[tuple[str, ...]] = ("x", "y", "size")
    x: float = 100
    y: float = 100
    size: float = 50


class DrawLinePayload(StrokeOptions):
    positional: ClassVar[tuple[str, ...]] = ("x", "y", "width", "height")
    x: float = 100
    y: float = 100
    width: float = 200
    height: float = 200


class AddTextPayload(ShapeOptions):
    positional: ClassVar[tuple[str, ...]] = ("x", "y", "text")
    x: float = 100
    y: float = 100
    text: str = "Hello World"
    fontSize: Optional[float] = None
    fontFamily: Optional[int] = None
    textAlign: Optional[Literal["left", "center", "right"]] = None
    verticalAlign: Optional[Literal["top", "middle", "bottom"]] = None
    angle: Optional[float] = None


class AddImagePayload(ToolPayload):
    positional: ClassVar[tuple[str, ...]] = ("x", "y", "imageUrl")
    x: float = 100
    y: float = 100
    imageUrl: str = "https://picsum.photos/seed/picsum/200/300"
    width: Optional[float] = None
    height: Optional[float] = None
    scale: Optional[list[float]] = None
    opacity: Optional[float] = None
    angle: Optional[float] = None


class AddFramePayload(ShapeOptions):
    positional: ClassVar[tuple[str, ...]] = ("x", "y", "width", "height", "name")
    x: float = 100
    y: float = 100
    width: float = 400
    height: float = 300
    name: str = "Frame"
    angle: Optional[float] = None


class MovePayload(ToolPayload):
    positional: ClassVar[tuple[str, ...]] = ("elementId", "x", "y")
    has_options: ClassVar[bool] = False
    elementId: str
    x: float
    y: float


class DeleteElementPayload(ToolPayload):
    positional: ClassVar[tuple[str, ...]] = ("elementId",)
    has_options: ClassVar[bool] = False
    elementId: str


class EditStrokePayload(ToolPayload):
    positional: ClassVar[tuple[str, ...]] = ("elementId", "strokeColor", "strokeWidth", "strokeStyle")
    has_options: ClassVar[bool] = False
    elementId: str
    strokeColor: Optional[str] = None
    strokeWidth: Optional[float] = None
    strokeStyle: Optional[StrokeStyle] = None


class AddArrowPayload(StrokeOptions):
    positional: ClassVar[tuple[str, ...]] = ("fromElementId", "toElementId")
    fromElementId: str
    toElementId: str
    startArrowhead: Optional[str] = None
    endArrowhead: Optional[str] = None


PAYLOAD_MODELS: dict[str, type[ToolPayload]] = {
    "drawSquare": DrawSquarePayload,
    "drawCircle": DrawCirclePayload,
    "drawLine": DrawLinePayload,
    "addText": AddTextPayload,
    "addImage": AddImagePayload,
    "addFrame": AddFramePayload,
    "move": MovePayload,
    "moveTo": MovePayload,
    "deleteElement": DeleteElementPayload,
    "editStroke": EditStrokePayload,
    "addArrow": AddArrowPayload,
}

# Payload fields that reference other canvas elements
ELEMENT_REF_FIELDS = ("elementId", "fromElementId", "toElementId")


def parse_payload(tool_name: str, payload: dict[str, Any]) -> Optional[ToolPayload]:
    """
    Validate a payload against its tool model.

    Returns None for tools without a model.

    Raises:
        pydantic.ValidationError: If the payload does not fit the model
    """
    model = PAYLOAD_MODELS.get(tool_name)
    if model is None:
        return None
    return model.model_validate(payload)
