"""Arithmetic tools, including the composite pythagorean and distance_2d tools."""
import math
from typing import List, Optional

from pydantic import Field

from compute_tools.common.errors import CompositionError, DomainError
from compute_tools.common.models import (
    OperationResult,
    Point2D,
    SingleNumberInput,
    ToolOutput,
    TwoNumberInput,
    TwoPointInput,
)
from compute_tools.composition.delegate import STAGE_PARSE_PAYLOAD, Delegate
from compute_tools.tools.base import tool


class PythagoreanResult(ToolOutput):
    """Hypotenuse of a right triangle plus a trace of the sub-operations used."""

    hypotenuse: float = Field(..., description="Length of the hypotenuse")
    leg_a: float = Field(..., description="First leg")
    leg_b: float = Field(..., description="Second leg")
    calculation_steps: List[str] = Field(default_factory=list)
    tool_calls: List[str] = Field(default_factory=list)


class DistanceResult(ToolOutput):
    """Euclidean distance between two points in the plane."""

    distance: float = Field(..., description="Distance between the two points")
    point1: Point2D
    point2: Point2D
    delta_x: float = Field(..., description="x2 - x1")
    delta_y: float = Field(..., description="y2 - y1")
    calculation_steps: List[str] = Field(default_factory=list)


def _binary(name: str, data: TwoNumberInput, value: float) -> OperationResult:
    return OperationResult(result=value, operation=name, inputs=[data.a, data.b])


@tool("add", TwoNumberInput)
def add(data: TwoNumberInput) -> OperationResult:
    """Add two numbers."""
    return _binary("add", data, data.a + data.b)


@tool("subtract", TwoNumberInput)
def subtract(data: TwoNumberInput) -> OperationResult:
    """Subtract the second number from the first."""
    return _binary("subtract", data, data.a - data.b)


@tool("multiply", TwoNumberInput)
def multiply(data: TwoNumberInput) -> OperationResult:
    """Multiply two numbers."""
    return _binary("multiply", data, data.a * data.b)


@tool("divide", TwoNumberInput)
def divide(data: TwoNumberInput) -> OperationResult:
    """
    Divide the first number by the second.

    :raises DomainError: If the divisor is zero
    """
    if data.b == 0:
        raise DomainError("Division by zero is not allowed")
    return _binary("divide", data, data.a / data.b)


@tool("remainder", TwoNumberInput)
def remainder(data: TwoNumberInput) -> OperationResult:
    """
    Truncated remainder of a divided by b; the result takes the sign of the dividend.

    :raises DomainError: If the divisor is zero
    """
    if data.b == 0:
        raise DomainError("Remainder by zero is not allowed")
    return _binary("remainder", data, math.fmod(data.a, data.b))


@tool("modulus", TwoNumberInput)
def modulus(data: TwoNumberInput) -> OperationResult:
    """
    Modulus of a by b, always taking the sign of the divisor.

    :raises DomainError: If the divisor is zero
    """
    if data.b == 0:
        raise DomainError("Modulus by zero is not allowed")
    value = math.fmod(math.fmod(data.a, data.b) + data.b, data.b)
    return _binary("modulus", data, value)


@tool("power", TwoNumberInput)
def power(data: TwoNumberInput) -> OperationResult:
    """
    Raise a to the power of b.

    :raises DomainError: For 0^0, 0 to a negative power, a negative base with a
        fractional exponent, or a result that does not fit a double
    """
    base, exponent = data.a, data.b
    if base == 0 and exponent == 0:
        raise DomainError("0^0 is mathematically undefined")
    if base == 0 and exponent < 0:
        raise DomainError("0 raised to negative power is undefined")
    if base < 0 and not exponent.is_integer():
        raise DomainError("Negative base with fractional exponent results in complex number")

    try:
        value = math.pow(base, exponent)
    except (OverflowError, ValueError):
        raise DomainError("Result is too large or undefined") from None
    if not math.isfinite(value):
        raise DomainError("Result is too large or undefined")
    return _binary("power", data, value)


@tool("sqrt", SingleNumberInput)
def sqrt(data: SingleNumberInput) -> OperationResult:
    """
    Square root of a non-negative number.

    :raises DomainError: If the value is negative
    """
    if data.value < 0:
        raise DomainError("Cannot compute square root of negative number")
    return OperationResult(result=math.sqrt(data.value), operation="sqrt", inputs=[data.value])


@tool("square", SingleNumberInput)
def square(data: SingleNumberInput) -> OperationResult:
    """Square a number."""
    return OperationResult(result=data.value * data.value, operation="square", inputs=[data.value])


@tool("pythagorean", TwoNumberInput)
def pythagorean(data: TwoNumberInput) -> PythagoreanResult:
    """
    Hypotenuse of a right triangle from its two legs, built from square, add and sqrt.

    :param TwoNumberInput data: Legs ``a`` and ``b``

    :return: Hypotenuse with the intermediate steps
    :rtype: PythagoreanResult
    :raises DomainError: If a leg is negative or the result overflows
    """
    if data.a < 0 or data.b < 0:
        raise DomainError("Triangle legs must be non-negative")

    steps: List[str] = []
    calls: List[str] = []

    a_squared = square(SingleNumberInput(value=data.a)).result
    calls.append(f"square({data.a})")
    steps.append(f"Step 1: Square first leg: {data.a}² = {a_squared}")

    b_squared = square(SingleNumberInput(value=data.b)).result
    calls.append(f"square({data.b})")
    steps.append(f"Step 2: Square second leg: {data.b}² = {b_squared}")

    if not math.isfinite(a_squared + b_squared):
        raise DomainError("Result is too large or undefined")
    total = add(TwoNumberInput(a=a_squared, b=b_squared)).result
    calls.append(f"add({a_squared}, {b_squared})")
    steps.append(f"Step 3: Add squares: {a_squared} + {b_squared} = {total}")

    hypotenuse = sqrt(SingleNumberInput(value=total)).result
    calls.append(f"sqrt({total})")
    steps.append(f"Step 4: Take square root: sqrt({total}) = {hypotenuse}")

    return PythagoreanResult(
        hypotenuse=hypotenuse,
        leg_a=data.a,
        leg_b=data.b,
        calculation_steps=steps,
        tool_calls=calls,
    )


@tool("distance_2d", TwoPointInput, composite=True)
def distance_2d(data: TwoPointInput, delegate: Optional[Delegate] = None) -> DistanceResult:
    """
    Euclidean distance between two points, delegating the hypotenuse to pythagorean.

    Deltas are computed locally; their absolute values are the legs handed to
    pythagorean. Without a delegate, pythagorean is called directly.

    :param TwoPointInput data: Flat coordinates of both points
    :param Delegate delegate: Delegate used to reach the pythagorean tool

    :return: Distance, both points and the signed deltas
    :rtype: DistanceResult
    :raises DomainError: If the coordinate difference overflows
    :raises CompositionError: If the delegated call fails at any stage
    """
    delta_x = data.x2 - data.x1
    delta_y = data.y2 - data.y1
    if not (math.isfinite(delta_x) and math.isfinite(delta_y)):
        raise DomainError("Coordinate difference is too large")

    legs = {"a": abs(delta_x), "b": abs(delta_y)}
    if delegate is None:
        hypotenuse = pythagorean(TwoNumberInput(**legs)).hypotenuse
        via = "direct call"
    else:
        payload = delegate.call("pythagorean", legs)
        try:
            hypotenuse = float(payload["hypotenuse"])
        except (KeyError, TypeError, ValueError):
            raise CompositionError(
                "Failed to parse pythagorean result: missing numeric hypotenuse",
                stage=STAGE_PARSE_PAYLOAD,
            ) from None
        via = type(delegate).__name__

    return DistanceResult(
        distance=hypotenuse,
        point1=Point2D(x=data.x1, y=data.y1),
        point2=Point2D(x=data.x2, y=data.y2),
        delta_x=delta_x,
        delta_y=delta_y,
        calculation_steps=[
            f"delta_x = {data.x2} - {data.x1} = {delta_x}",
            f"delta_y = {data.y2} - {data.y1} = {delta_y}",
            f"pythagorean({legs['a']}, {legs['b']}) via {via} = {hypotenuse}",
        ],
    )
