"""Category tool routing an operation name and an operand list to one basic math computation."""
from typing import Callable, Dict, List, NamedTuple

from pydantic import BaseModel, Field

from compute_tools.common.errors import ArityError, ToolError, UnknownOperationError
from compute_tools.common.models import (
    SafeResult,
    SingleNumberInput,
    ToolInput,
    TwoNumberInput,
    TwoPointInput,
)
from compute_tools.tools import basic_math
from compute_tools.tools.base import tool


class Route(NamedTuple):
    """Arity and adapter of one supported operation."""

    arity: int
    run: Callable[[List[float]], BaseModel]
    arity_hint: str = ""


def _two(function: Callable[[TwoNumberInput], BaseModel]) -> Callable[[List[float]], BaseModel]:
    return lambda operands: function(TwoNumberInput(a=operands[0], b=operands[1]))


def _one(function: Callable[[SingleNumberInput], BaseModel]) -> Callable[[List[float]], BaseModel]:
    return lambda operands: function(SingleNumberInput(value=operands[0]))


def _points(operands: List[float]) -> BaseModel:
    x1, y1, x2, y2 = operands
    return basic_math.distance_2d(TwoPointInput(x1=x1, y1=y1, x2=x2, y2=y2))


# Insertion order is the order listed in the unknown-operation message
ROUTES: Dict[str, Route] = {
    "add": Route(2, _two(basic_math.add)),
    "subtract": Route(2, _two(basic_math.subtract)),
    "multiply": Route(2, _two(basic_math.multiply)),
    "divide": Route(2, _two(basic_math.divide)),
    "power": Route(2, _two(basic_math.power)),
    "remainder": Route(2, _two(basic_math.remainder)),
    "modulus": Route(2, _two(basic_math.modulus)),
    "sqrt": Route(1, _one(basic_math.sqrt)),
    "square": Route(1, _one(basic_math.square)),
    "distance_2d": Route(4, _points, " (x1, y1, x2, y2)"),
}


class BasicMathRequest(ToolInput):
    """Operation name plus its operands, in order."""

    operation: str = Field(..., description="The operation to perform")
    operands: List[float] = Field(..., description="The operands for the operation")


def route(operation: str, operand_count: int) -> Route:
    """
    Resolve an operation name and check its arity.

    :param str operation: Requested operation
    :param int operand_count: Number of operands supplied

    :return: Matching route
    :rtype: Route
    :raises UnknownOperationError: If the operation is not supported
    :raises ArityError: If the operand count does not match the declared arity
    """
    if operation not in ROUTES:
        raise UnknownOperationError(
            f"Unknown operation: {operation}. Supported: {', '.join(ROUTES)}"
        )
    selected = ROUTES[operation]
    if operand_count != selected.arity:
        noun = "operand" if selected.arity == 1 else "operands"
        raise ArityError(
            f"{operation.capitalize()} requires exactly {selected.arity} {noun}{selected.arity_hint}"
        )
    return selected


@tool("basic_math_category", BasicMathRequest)
def basic_math_category(data: BasicMathRequest) -> SafeResult:
    """
    Perform any basic math operation by name; failures are reported in the result.

    States:
        1. Route the operation name (unknown name -> failure)
        2. Validate the operand count against the declared arity
        3. Compute with the matching pure function

    :param BasicMathRequest data: Operation and operands

    :return: SafeResult echoing the operation and operands
    :rtype: SafeResult
    """
    operands = list(data.operands)
    try:
        selected = route(data.operation, len(operands))
        outcome = selected.run(operands)
    except ToolError as exc:
        return SafeResult.failed(data.operation, operands, exc.message)
    return SafeResult.ok(data.operation, operands, outcome.model_dump(mode="json"))
