"""Tool layer: descriptors, registry, runtime tool handler and server config.

Example usage:
    from opaltools.tools import build_default_registry, load_default_config

    config = load_default_config()
    registry = build_default_registry(config)
    result = registry.invoke("calculate_experiment_runtime", {
        "BCR": 0.2, "MDE": 0.1, "sigLevel": 95,
        "numVariations": 2, "dailyVisitors": 5000,
    })
"""

from .registry import (
    ParameterType,
    ToolDefinition,
    ToolError,
    ToolNotFoundError,
    ToolParameter,
    ToolRegistry,
    ToolResult,
)
from .runtime_tool import (
    TOOL_NAME,
    build_default_registry,
    calculate_experiment_runtime,
    describe_error,
    runtime_tool_definition,
)
from .server_config import (
    ServerConfig,
    config_from_env,
    configure_logging,
    load_default_config,
    load_server_config,
    save_server_config,
)

__all__ = [
    "ParameterType",
    "ToolDefinition",
    "ToolError",
    "ToolNotFoundError",
    "ToolParameter",
    "ToolRegistry",
    "ToolResult",
    "TOOL_NAME",
    "build_default_registry",
    "calculate_experiment_runtime",
    "describe_error",
    "runtime_tool_definition",
    "ServerConfig",
    "config_from_env",
    "configure_logging",
    "load_default_config",
    "load_server_config",
    "save_server_config",
]
