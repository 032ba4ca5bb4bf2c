"""Pydantic models for tool inputs, results and the request/response envelope."""
import json
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Latitude = Annotated[float, Field(ge=-90.0, le=90.0, description="Latitude in decimal degrees")]
Longitude = Annotated[float, Field(ge=-180.0, le=180.0, description="Longitude in decimal degrees")]


class ToolInput(BaseModel):
    """
    Base class of every operation input.

    Inputs are immutable once parsed and reject NaN and Infinity.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)


class ToolOutput(BaseModel):
    """Base class of every operation result; immutable once computed."""

    model_config = ConfigDict(frozen=True)


class SingleNumberInput(ToolInput):
    """Input for operations requiring a single number."""

    value: float = Field(..., description="The number to operate on")


class TwoNumberInput(ToolInput):
    """Input for operations requiring two numbers."""

    a: float = Field(..., description="First number")
    b: float = Field(..., description="Second number")


class TwoPointInput(ToolInput):
    """Two 2D points given as flat coordinates."""

    x1: float = Field(..., description="X coordinate of first point")
    y1: float = Field(..., description="Y coordinate of first point")
    x2: float = Field(..., description="X coordinate of second point")
    y2: float = Field(..., description="Y coordinate of second point")


class Point2D(ToolInput):
    x: float
    y: float


class Vector3D(ToolInput):
    x: float
    y: float
    z: float


class Quaternion(ToolInput):
    x: float
    y: float
    z: float
    w: float


class Coordinate(ToolInput):
    lat: Latitude
    lon: Longitude


class OperationResult(ToolOutput):
    """Computed value plus an echo of the operation name and the operands used."""

    result: float = Field(..., description="The result of the operation")
    operation: str = Field(..., description="The operation that was performed")
    inputs: List[float] = Field(..., description="The input values, in the order supplied")


class SafeResult(ToolOutput):
    """Operation outcome that reports failure as data rather than as an error envelope."""

    operation: str = Field(..., description="The operation that was requested")
    inputs: List[float] = Field(..., description="The operands, in the order supplied")
    success: bool = Field(..., description="Whether the operation was successful")
    result: Optional[Any] = Field(default=None, description="Result payload if successful")
    error: Optional[str] = Field(default=None, description="Error message if the operation failed")

    @classmethod
    def ok(cls, operation: str, inputs: List[float], result: Any) -> "SafeResult":
        return cls(operation=operation, inputs=inputs, success=True, result=result)

    @classmethod
    def failed(cls, operation: str, inputs: List[float], error: str) -> "SafeResult":
        return cls(operation=operation, inputs=inputs, success=False, error=error)


class ToolRequest(BaseModel):
    """One tool invocation as it travels on the wire."""

    tool: str = Field(..., min_length=1, description="Name of the tool to invoke")
    arguments: Dict[str, Any] = Field(default_factory=dict, description="Raw tool input")


class ContentItem(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolResponse(BaseModel):
    """
    Outer envelope returned by every tool invocation.

    The first content item carries either the serialized result or ``{"error": "..."}``.
    """

    model_config = ConfigDict(frozen=True)

    content: List[ContentItem] = Field(..., min_length=1)
    is_error: bool = False

    @classmethod
    def text(cls, text: str, is_error: bool = False) -> "ToolResponse":
        return cls(content=[ContentItem(text=text)], is_error=is_error)

    @property
    def body(self) -> str:
        """Text of the first content item."""
        return self.content[0].text

    def payload(self) -> Any:
        """Decode the nested JSON payload."""
        return json.loads(self.body)
