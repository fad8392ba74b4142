"""Tool Registry - Describes tools and dispatches invocations.

The registry provides:
- Tool registration with typed parameter descriptors
- The discovery manifest the orchestration layer reads
- Invocation with timing and failure isolation

Example usage:
    from opaltools.tools.registry import ToolRegistry
    from opaltools.tools.runtime_tool import runtime_tool_definition

    registry = ToolRegistry()
    registry.register(runtime_tool_definition())

    manifest = registry.discovery()
    result = registry.invoke("calculate_experiment_runtime", body)
    if result.success:
        print(result.data["days"])
    else:
        print(f"[{result.status_code}] {result.error_message}")
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class ParameterType(Enum):
    """Parameter types understood by the orchestration layer."""
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    LIST = "list"
    DICTIONARY = "object"


class ToolError(Exception):
    """Failure a tool reports back to its caller.

    Attributes:
        message: User-facing explanation.
        status_code: HTTP-style status for the response.
        code: Machine-readable cause, if any.
    """

    def __init__(self, message: str, status_code: int = 400, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


class ToolNotFoundError(KeyError):
    """No tool registered under the requested name."""


@dataclass(frozen=True)
class ToolParameter:
    """One parameter of a tool."""
    name: str
    type: ParameterType
    description: str
    required: bool = True

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "type": self.type.value,
            "description": self.description,
            "required": self.required,
        }


@dataclass
class ToolDefinition:
    """A named operation the orchestration layer can call.

    Attributes:
        name: Unique tool name, also the last path segment of the endpoint.
        description: What the tool does, shown to the orchestrator.
        parameters: Parameter descriptors.
        handler: Callable receiving the request body dict, returning a
            JSON-serializable dict or raising ToolError.
        http_method: Method the endpoint accepts.
    """
    name: str
    description: str
    parameters: list[ToolParameter]
    handler: Callable[[dict], dict]
    http_method: str = "POST"

    @property
    def endpoint(self) -> str:
        return f"/tools/{self.name}"

    def to_dict(self) -> dict:
        """Discovery entry for this tool."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": [p.to_dict() for p in self.parameters],
            "endpoint": self.endpoint,
            "http_method": self.http_method,
        }


@dataclass
class ToolResult:
    """Outcome of a single tool invocation."""
    tool_name: str
    success: bool
    data: Optional[dict] = None
    error_message: Optional[str] = None
    status_code: int = 200
    error_code: Optional[str] = None
    execution_time_ms: float = 0.0

    def to_dict(self) -> dict:
        if self.success:
            return dict(self.data or {})
        return {"error": self.error_message, "code": self.error_code}


class ToolRegistry:
    """Holds tool definitions and dispatches calls to their handlers.

    Populated once at start-up, read-only afterwards.
    """

    def __init__(self, service_name: str = "opal-experiment-tools"):
        self.service_name = service_name
        self._tools: dict[str, ToolDefinition] = {}
        self._hooks: list[Callable[[ToolResult], None]] = []

    def register(self, tool: ToolDefinition) -> None:
        """Register a tool.

        Raises:
            ValueError: If a tool with the same name is already registered
        """
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' already registered")
        self._tools[tool.name] = tool
        logger.info(f"Registered tool: {tool.name} at {tool.endpoint}")

    def add_result_hook(self, hook: Callable[[ToolResult], None]) -> None:
        """Add a hook called with every ToolResult."""
        self._hooks.append(hook)

    @property
    def registered_tools(self) -> list[str]:
        """List of registered tool names."""
        return list(self._tools.keys())

    def get(self, name: str) -> ToolDefinition:
        try:
            return self._tools[name]
        except KeyError:
            raise ToolNotFoundError(name) from None

    def discovery(self) -> dict:
        """Discovery manifest listing every registered tool."""
        return {"functions": [tool.to_dict() for tool in self._tools.values()]}

    def invoke(self, name: str, params: Optional[dict[str, Any]] = None) -> ToolResult:
        """Run a tool against a request body.

        ToolError from the handler becomes an unsuccessful result with its
        status code; any other exception becomes a 500 result.

        Raises:
            ToolNotFoundError: If no tool is registered under name
        """
        tool = self.get(name)
        start_time = time.time()

        try:
            data = tool.handler(params or {})
            result = ToolResult(tool_name=name, success=True, data=data)
        except ToolError as e:
            logger.warning(f"Tool {name} rejected request: {e.message}")
            result = ToolResult(
                tool_name=name,
                success=False,
                error_message=e.message,
                status_code=e.status_code,
                error_code=e.code,
            )
        except Exception as e:
            logger.exception(f"Tool {name} failed unexpectedly")
            result = ToolResult(
                tool_name=name,
                success=False,
                error_message=f"Unexpected error in {name}: {e}",
                status_code=500,
            )

        result.execution_time_ms = (time.time() - start_time) * 1000
        logger.debug(
            f"Tool {name} finished in {result.execution_time_ms:.1f}ms "
            f"(status {result.status_code})"
        )

        for hook in self._hooks:
            try:
                hook(result)
            except Exception as e:
                logger.warning(f"Hook error for {name}: {e}")

        return result
