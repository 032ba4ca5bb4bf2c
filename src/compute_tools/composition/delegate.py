"""Delegates used by composite tools to call another tool through its request/response contract."""
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from compute_tools.client.client import ToolClient
from compute_tools.common.errors import CompositionError
from compute_tools.common.logger import logger
from compute_tools.common.models import ToolRequest, ToolResponse

STAGE_SERIALIZE = "serialize request"
STAGE_CALL = "call"
STAGE_PARSE_RESPONSE = "parse response"
STAGE_PARSE_PAYLOAD = "parse nested payload"


class Delegate(ABC):
    """
    One synchronous request/response exchange with another tool.

    Stages, in order:
        1. Serialize the nested ToolRequest
        2. Call the tool (transport specific)
        3. Parse the outer ToolResponse envelope
        4. Parse the nested JSON payload

    A failure at any stage, or an error payload from the delegate, raises
    CompositionError naming the stage. There is no retry.
    """

    @abstractmethod
    def _send(self, body: str) -> str:
        """Deliver a serialized request and return the raw serialized response."""

    def call(self, tool_name: str, arguments: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Invoke another tool and return its decoded success payload.

        :param str tool_name: Internal name of the delegate tool
        :param Mapping arguments: Nested request body

        :return: Decoded result payload
        :rtype: dict
        :raises CompositionError: If any stage fails or the delegate reports an error
        """
        try:
            body = ToolRequest(tool=tool_name, arguments=dict(arguments)).model_dump_json()
        except (ValidationError, PydanticSerializationError, TypeError, ValueError) as exc:
            raise CompositionError(
                f"Failed to serialize {tool_name} input: {exc}", stage=STAGE_SERIALIZE
            ) from exc

        try:
            raw = self._send(body)
        except OSError as exc:
            logger.error(f"🔗❌ Call to {tool_name} failed: {exc}")
            raise CompositionError(f"Error calling {tool_name} tool: {exc}", stage=STAGE_CALL) from exc

        try:
            response = ToolResponse.model_validate_json(raw)
        except ValidationError as exc:
            raise CompositionError(
                f"Failed to parse {tool_name} response wrapper: {exc}", stage=STAGE_PARSE_RESPONSE
            ) from exc

        try:
            payload = response.payload()
        except ValueError as exc:
            raise CompositionError(
                f"Failed to parse {tool_name} result: {exc}", stage=STAGE_PARSE_PAYLOAD
            ) from exc
        if not isinstance(payload, dict):
            raise CompositionError(
                f"Failed to parse {tool_name} result: expected a JSON object", stage=STAGE_PARSE_PAYLOAD
            )

        if response.is_error:
            raise CompositionError(
                f"{tool_name} tool returned an error: {payload.get('error', response.body)}",
                stage=STAGE_CALL,
            )
        return payload


class InProcessDelegate(Delegate):
    """Call a sibling tool through a registry in the same process."""

    def __init__(self, registry: Any):
        self.registry = registry

    def _send(self, body: str) -> str:
        request = ToolRequest.model_validate_json(body)
        return self.registry.handle(request).model_dump_json()


class RemoteDelegate(Delegate):
    """Call a tool hosted by a ToolServer in another process."""

    def __init__(self, host: str = "127.0.0.1", port: int = 9000):
        self.client = ToolClient(host=host, port=port)

    def _send(self, body: str) -> str:
        logger.info(f"🔗 Delegating to {self.client.host}:{self.client.port}")
        return self.client.send_raw(body)
