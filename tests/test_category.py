"""Test the basic_math_category routing tool."""
import pytest

from compute_tools.common.errors import ArityError, UnknownOperationError
from compute_tools.tools.category import BasicMathRequest, ROUTES, basic_math_category, route
from compute_tools.tools.catalog import default_registry


@pytest.mark.parametrize(
    "operation,operands,expected",
    [
        ("add", [2, 3], 5.0),
        ("divide", [9, 3], 3.0),
        ("modulus", [-7, 3], 2.0),
        ("sqrt", [16], 4.0),
        ("square", [5], 25.0),
    ],
)
def test_category_success(operation: str, operands, expected: float) -> None:
    """The routed computation result is nested under result."""
    outcome = basic_math_category(BasicMathRequest(operation=operation, operands=operands))
    assert outcome.success
    assert outcome.error is None
    assert outcome.operation == operation
    assert outcome.inputs == [float(v) for v in operands]
    assert outcome.result["result"] == expected


def test_category_distance_2d() -> None:
    """distance_2d takes four operands in x1, y1, x2, y2 order."""
    outcome = basic_math_category(BasicMathRequest(operation="distance_2d", operands=[0, 0, 3, 4]))
    assert outcome.success
    assert outcome.result["distance"] == 5.0


def test_category_unknown_operation() -> None:
    """An unknown operation fails with the list of supported operations."""
    outcome = basic_math_category(BasicMathRequest(operation="cube", operands=[2]))
    assert not outcome.success
    assert outcome.result is None
    assert outcome.error == (
        "Unknown operation: cube. Supported: add, subtract, multiply, divide, power, "
        "remainder, modulus, sqrt, square, distance_2d"
    )


@pytest.mark.parametrize(
    "operation,operands,message",
    [
        ("add", [1], "Add requires exactly 2 operands"),
        ("sqrt", [1, 2], "Sqrt requires exactly 1 operand"),
        ("distance_2d", [1, 2, 3], "Distance_2d requires exactly 4 operands (x1, y1, x2, y2)"),
    ],
)
def test_category_arity(operation: str, operands, message: str) -> None:
    """The operand count must match the declared arity."""
    outcome = basic_math_category(BasicMathRequest(operation=operation, operands=operands))
    assert not outcome.success
    assert outcome.error == message


def test_category_domain_error_is_data() -> None:
    """Computation failures are reported in the result, not as an error envelope."""
    response = default_registry().invoke(
        "basic_math_category", {"operation": "divide", "operands": [1, 0]}
    )
    assert not response.is_error
    payload = response.payload()
    assert payload["success"] is False
    assert payload["error"] == "Division by zero is not allowed"
    assert payload["inputs"] == [1.0, 0.0]


def test_category_invalid_request_uses_error_envelope() -> None:
    """A request that does not parse is still an invalid-input error."""
    response = default_registry().invoke("basic_math_category", {"operation": "add"})
    assert response.is_error


def test_route_errors() -> None:
    """route raises typed errors for unknown names and wrong arity."""
    assert route("power", 2) is ROUTES["power"]
    with pytest.raises(UnknownOperationError):
        route("log", 1)
    with pytest.raises(ArityError):
        route("power", 3)
