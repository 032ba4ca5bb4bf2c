"""Worker process evaluating one tool request."""
from multiprocessing.connection import Connection
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, IPvAnyAddress, ValidationError, field_validator

from compute_tools.common.envelope import error_response
from compute_tools.common.errors import InvalidInputError
from compute_tools.common.logger import logger
from compute_tools.common.models import ToolRequest, ToolResponse
from compute_tools.composition.delegate import RemoteDelegate
from compute_tools.tools.catalog import default_registry


class WorkerProcess(BaseModel):
    """
    Worker process responsible for evaluating a single tool request.

    Lifecycle:
        - Spawned by the parent server process
        - Receives one request line only
        - Sends ``{"line", "response"}`` through a Pipe, the response being ToolResponse JSON
        - Terminates immediately after computation
    """

    # Immutable; Connection is an arbitrary type
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    conn: Connection = Field(..., description="Connection object for sending the response back to the server")
    request_line: str = Field(..., description="One ToolRequest as JSON text")
    line_number: int = Field(..., ge=1, description="Line number in the request stream")
    delegate_host: Optional[IPvAnyAddress] = Field(default=None, description="Server hosting delegated tools")
    delegate_port: int = Field(default=9000, ge=1, le=65535, description="Port of the delegate server")

    @field_validator("request_line")
    def request_must_not_be_empty(cls, v: str) -> str:
        """Ensure that the request line is not empty."""
        if not v.strip():
            raise ValueError("Request line cannot be empty")
        return v

    def evaluate(self) -> ToolResponse:
        """
        Parse the request line and dispatch it to the matching tool.

        :return: Exactly one response, error shaped when the line is malformed
        :rtype: ToolResponse
        """
        try:
            request = ToolRequest.model_validate_json(self.request_line)
        except ValidationError as exc:
            reason = exc.errors()[0]["msg"]
            return error_response(
                InvalidInputError(f"Invalid request on line {self.line_number}: {reason}")
            )

        delegate = None
        if self.delegate_host is not None:
            delegate = RemoteDelegate(host=str(self.delegate_host), port=self.delegate_port)
        return default_registry(delegate).handle(request)

    def run(self) -> None:
        """
        Evaluate the request and send the response through the pipe.

        :return: None
        """
        logger.info(f"👷🏁 Worker started on line {self.line_number}")

        response: Optional[ToolResponse] = None
        try:
            response = self.evaluate()
        except Exception as exc:
            # Last resort: the caller must still get one response for this line
            logger.error(f"👷❌ Worker failed on line {self.line_number}: {exc}")
            response = error_response(exc)
        finally:
            if response is None:
                response = error_response(RuntimeError("Worker produced no response"))
            self.conn.send({"line": self.line_number, "response": response.model_dump_json()})
            self.conn.close()

        status = "error" if response.is_error else "ok"
        logger.info(f"👷✅ Worker finished on line {self.line_number}: {status}")
