"""Input and result envelopes: raw payload <-> typed values <-> response text."""
import json
from typing import Any, Mapping, Type, TypeVar

from pydantic import BaseModel, ValidationError
from pydantic_core import PydanticSerializationError

from compute_tools.common.errors import InvalidInputError, SerializationError, ToolError
from compute_tools.common.models import ToolInput, ToolResponse

InputT = TypeVar("InputT", bound=ToolInput)


def _describe_validation_error(exc: ValidationError) -> str:
    """Flatten a pydantic ValidationError into ``field: message`` clauses."""
    parts = []
    for err in exc.errors():
        location = ".".join(str(item) for item in err["loc"]) or "input"
        parts.append(f"{location}: {err['msg']}")
    return "; ".join(parts)


def parse_input(model: Type[InputT], arguments: Any) -> InputT:
    """
    Validate a raw payload into the typed input of one operation.

    Documented defaults are applied by the model itself when a field is absent.

    :param type model: ToolInput subclass describing the operation input
    :param arguments: Raw payload, normally a decoded JSON object

    :return: Typed, immutable input
    :raises InvalidInputError: If the payload is not an object or fails validation
    """
    if isinstance(arguments, str):
        try:
            arguments = json.loads(arguments)
        except ValueError as exc:
            raise InvalidInputError(f"Invalid input: request body is not valid JSON ({exc})") from exc

    if not isinstance(arguments, Mapping):
        raise InvalidInputError(
            f"Invalid input: expected a JSON object, got {type(arguments).__name__}"
        )

    try:
        return model.model_validate(dict(arguments))
    except ValidationError as exc:
        raise InvalidInputError(f"Invalid input: {_describe_validation_error(exc)}") from exc


def error_response(error: Exception) -> ToolResponse:
    """
    Build the uniform failure payload ``{"error": message}``.

    :param Exception error: ToolError (or any exception caught at a tool boundary)

    :return: Error-shaped ToolResponse
    :rtype: ToolResponse
    """
    message = error.message if isinstance(error, ToolError) else str(error)
    return ToolResponse.text(json.dumps({"error": message}), is_error=True)


def success_response(result: BaseModel) -> ToolResponse:
    """
    Serialize a computed result into a ToolResponse.

    Serialization is total: an encoding failure is reported as an error payload.

    :param BaseModel result: Computed result model

    :return: ToolResponse carrying the JSON text of the result
    :rtype: ToolResponse
    """
    try:
        return ToolResponse.text(result.model_dump_json())
    except (PydanticSerializationError, TypeError, ValueError) as exc:
        return error_response(SerializationError(f"Failed to serialize result: {exc}"))
