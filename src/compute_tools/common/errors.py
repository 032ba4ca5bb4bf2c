"""Error taxonomy shared by every tool."""
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Kinds of failure a tool invocation can report."""

    INVALID_INPUT = "InvalidInput"
    DOMAIN_ERROR = "DomainError"
    ARITY_ERROR = "ArityError"
    UNKNOWN_OPERATION = "UnknownOperation"
    COMPOSITION_ERROR = "CompositionError"
    SERIALIZATION_ERROR = "SerializationError"


class ToolError(Exception):
    """
    Base class for value-level tool failures.

    Envelopes turn these into error payloads; they never reach the host runtime.
    """

    kind: ErrorKind = ErrorKind.INVALID_INPUT

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(ToolError):
    """Malformed, missing or out-of-range request fields."""

    kind = ErrorKind.INVALID_INPUT


class DomainError(ToolError):
    """Mathematically undefined operation on well-formed input."""

    kind = ErrorKind.DOMAIN_ERROR


class ArityError(ToolError):
    """Wrong number of operands for a dispatched operation."""

    kind = ErrorKind.ARITY_ERROR


class UnknownOperationError(ToolError):
    """Operation or tool name outside the supported set."""

    kind = ErrorKind.UNKNOWN_OPERATION


class CompositionError(ToolError):
    """A delegated call to another tool failed at the given stage."""

    kind = ErrorKind.COMPOSITION_ERROR

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage


class SerializationError(ToolError):
    """A computed result could not be encoded into the response format."""

    kind = ErrorKind.SERIALIZATION_ERROR
