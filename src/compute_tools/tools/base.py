"""Tool interface and the registry that maps tool names to pure computations."""
from typing import Any, Callable, Dict, List, Mapping, Optional, Type

from pydantic import BaseModel, ConfigDict, Field

from compute_tools.common.envelope import error_response, parse_input, success_response
from compute_tools.common.errors import DomainError, ToolError, UnknownOperationError
from compute_tools.common.logger import logger
from compute_tools.common.models import ToolInput, ToolRequest, ToolResponse
from compute_tools.composition.delegate import Delegate, InProcessDelegate


class Tool(BaseModel):
    """
    One named, independently invokable computation.

    The wrapped function is pure: it receives a typed input and returns a result model,
    raising ToolError subclasses for value-level failures. Composite tools additionally
    receive the delegate used to reach other tools.

    Two adapters sit on top of the same function:
        - ``execute``: in-process call with an already typed input
        - ``invoke``: request/response call with a raw payload, always returning a ToolResponse
    """

    # Immutable once registered; the function and input class are arbitrary types
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1, description="Unique tool name")
    description: str = Field(default="", description="Human-readable summary")
    input_model: Type[ToolInput] = Field(..., description="Declared input schema")
    function: Callable[..., BaseModel] = Field(..., description="Pure computation")
    composite: bool = Field(default=False, description="Whether the tool calls other tools")

    def input_schema(self) -> Dict[str, Any]:
        """
        Return the JSON schema of the declared input.

        :return: JSON schema dictionary
        :rtype: dict
        """
        return self.input_model.model_json_schema()

    def execute(self, data: ToolInput, delegate: Optional[Delegate] = None) -> BaseModel:
        """
        Run the pure computation on a typed input.

        :param ToolInput data: Parsed input
        :param Delegate delegate: Delegate handed to composite tools

        :return: Result model
        :raises ToolError: If the computation is undefined for this input
        """
        if self.composite:
            return self.function(data, delegate=delegate)
        return self.function(data)

    def invoke(self, arguments: Any, delegate: Optional[Delegate] = None) -> ToolResponse:
        """
        Parse, execute and serialize in one step.

        :param arguments: Raw payload (mapping or JSON text)
        :param Delegate delegate: Delegate handed to composite tools

        :return: Exactly one ToolResponse, success or error shaped
        :rtype: ToolResponse
        """
        try:
            data = parse_input(self.input_model, arguments)
            result = self.execute(data, delegate)
        except ToolError as exc:
            logger.warning(f"🧮❌ {self.name} failed ({exc.kind.value}): {exc.message}")
            return error_response(exc)
        except ArithmeticError as exc:
            # Division by zero or overflow a tool did not anticipate
            logger.error(f"🧮💥 {self.name} raised {type(exc).__name__}: {exc}")
            return error_response(DomainError(f"Arithmetic error in {self.name}: {exc}"))
        return success_response(result)


class ToolRegistry:
    """
    Static table of tools keyed by name.

    A name maps to exactly one computation: registering a name twice is rejected.
    """

    def __init__(self, delegate: Optional[Delegate] = None):
        self._tools: Dict[str, Tool] = {}
        self._delegate = delegate

    @property
    def delegate(self) -> Delegate:
        """Delegate handed to composite tools; in-process unless configured otherwise."""
        if self._delegate is None:
            self._delegate = InProcessDelegate(self)
        return self._delegate

    def with_delegate(self, delegate: Delegate) -> "ToolRegistry":
        """
        Return a registry sharing the same tools but composing through another delegate.

        :param Delegate delegate: Delegate for composite tools (e.g. a RemoteDelegate)

        :return: New registry
        :rtype: ToolRegistry
        """
        clone = ToolRegistry(delegate=delegate)
        clone._tools = dict(self._tools)
        return clone

    def register(self, tool: Tool) -> Tool:
        """
        Add a tool to the table.

        :param Tool tool: Tool to register

        :return: The registered tool
        :rtype: Tool
        :raises ValueError: If the name is already taken
        """
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool
        return tool

    def tool(
        self,
        name: str,
        input_model: Type[ToolInput],
        description: Optional[str] = None,
        composite: bool = False,
    ) -> Callable[[Callable[..., BaseModel]], Callable[..., BaseModel]]:
        """
        Decorator registering a pure function as a tool.

        The function is returned unchanged so it stays callable in library mode.
        """

        def decorator(function: Callable[..., BaseModel]) -> Callable[..., BaseModel]:
            doc = (function.__doc__ or "").strip()
            self.register(
                Tool(
                    name=name,
                    description=description or (doc.splitlines()[0] if doc else ""),
                    input_model=input_model,
                    function=function,
                    composite=composite,
                )
            )
            return function

        return decorator

    def get(self, name: str) -> Tool:
        """
        Look up a tool by name.

        :raises UnknownOperationError: If no tool has this name
        """
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownOperationError(
                f"Unknown tool: {name}. Available: {', '.join(self.names())}"
            ) from None

    def names(self) -> List[str]:
        return sorted(self._tools)

    def schemas(self) -> Dict[str, Dict[str, Any]]:
        """Declared input schema of every tool, keyed by name."""
        return {name: self._tools[name].input_schema() for name in self.names()}

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def invoke(self, name: str, arguments: Mapping[str, Any]) -> ToolResponse:
        """
        Dispatch one invocation; never raises for tool-level failures.

        :param str name: Tool name
        :param Mapping arguments: Raw payload

        :return: ToolResponse
        :rtype: ToolResponse
        """
        try:
            tool = self.get(name)
        except UnknownOperationError as exc:
            logger.warning(f"🧮❓ {exc.message}")
            return error_response(exc)
        return tool.invoke(arguments, self.delegate)

    def handle(self, request: ToolRequest) -> ToolResponse:
        return self.invoke(request.tool, request.arguments)


# Registry populated by the tool modules at import time (see compute_tools.tools.catalog)
registry = ToolRegistry()
tool = registry.tool
