"""Tool registry: declarations, manifest projection, and server-side dispatch.

Each tool is a `ToolDeclaration`. Declarations with an executor run on the
server; declarations without one are client tools that are only advertised to
the model and executed by the browser.
"""

from __future__ import annotations

import inspect
import json
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ValidationError

from portfolio_agent.observability.metrics import TOOL_EXECUTIONS
from portfolio_agent.shared.exceptions import ClientToolInvocationError, ToolExecutionError
from portfolio_agent.shared.logging import get_logger

logger = get_logger(__name__)

ToolExecutor = Callable[[Any], Any | Awaitable[Any]]
ToolStatus = Literal["ok", "error", "unknown_tool"]


@dataclass(frozen=True)
class ToolDeclaration:
    """A tool the model may call."""

    name: str
    description: str
    input_model: type[BaseModel]
    executor: ToolExecutor | None = None

    @property
    def is_server_tool(self) -> bool:
        return self.executor is not None

    @property
    def input_schema(self) -> dict[str, Any]:
        schema = self.input_model.model_json_schema()
        schema.pop("title", None)
        schema.pop("description", None)
        schema.setdefault("properties", {})
        schema.setdefault("required", [])
        return schema

    def to_manifest(self) -> dict[str, Any]:
        """Provider-facing projection. Never includes the executor."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }


@dataclass
class ToolExecution:
    """Result of executing a tool."""

    tool_name: str
    tool_input: dict[str, Any]
    result: str
    status: ToolStatus = "ok"
    error: str | None = None

    @property
    def is_error(self) -> bool:
        return self.status != "ok"

    @property
    def content(self) -> str:
        """Text handed back to the model in the tool_result block."""
        return f"Error: {self.error}" if self.is_error else self.result


class ToolRegistry:
    """Name-keyed set of tool declarations, in declaration order."""

    def __init__(self, declarations: Iterable[ToolDeclaration]) -> None:
        self._tools: dict[str, ToolDeclaration] = {}
        for declaration in declarations:
            if declaration.name in self._tools:
                raise ValueError(f"Duplicate tool name: {declaration.name}")
            self._tools[declaration.name] = declaration

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def list(self) -> list[ToolDeclaration]:
        """Declarations in registration order, server and client tools alike."""
        return list(self._tools.values())

    def get(self, name: str) -> ToolDeclaration | None:
        return self._tools.get(name)

    def manifest(self) -> list[dict[str, Any]]:
        """All declarations in the provider's tool format."""
        return [declaration.to_manifest() for declaration in self._tools.values()]

    def is_client_tool(self, name: str) -> bool:
        declaration = self._tools.get(name)
        return declaration is not None and not declaration.is_server_tool

    async def execute(self, tool_name: str, tool_input: dict[str, Any]) -> ToolExecution:
        """Execute a server tool and return its result.

        Unknown tools and executor failures come back as error executions.
        Executing a client tool is a programming error and raises.
        """
        declaration = self._tools.get(tool_name)
        if declaration is None:
            available = ", ".join(self._tools)
            logger.warning("unknown_tool_requested", tool=tool_name)
            TOOL_EXECUTIONS.labels(tool=tool_name, status="unknown_tool").inc()
            return ToolExecution(
                tool_name=tool_name,
                tool_input=tool_input,
                result="",
                status="unknown_tool",
                error=f"Unknown tool: {tool_name}. Available tools: {available}",
            )

        if declaration.executor is None:
            raise ClientToolInvocationError(tool_name)

        logger.debug("executing_tool", tool=tool_name, tool_input=tool_input)

        try:
            params = declaration.input_model.model_validate(tool_input)
            output = declaration.executor(params)
            if inspect.isawaitable(output):
                output = await output
        except ValidationError as e:
            error = ToolExecutionError(tool_name, f"Invalid input for {tool_name}: {e}")
            return self._failed(tool_name, tool_input, error)
        except Exception as e:
            logger.exception("tool_execution_failed", tool=tool_name)
            return self._failed(tool_name, tool_input, ToolExecutionError(tool_name, str(e)))

        result = output if isinstance(output, str) else json.dumps(output, default=str)
        TOOL_EXECUTIONS.labels(tool=tool_name, status="ok").inc()
        return ToolExecution(tool_name=tool_name, tool_input=tool_input, result=result)

    @staticmethod
    def _failed(
        tool_name: str, tool_input: dict[str, Any], error: ToolExecutionError
    ) -> ToolExecution:
        logger.warning("tool_execution_error", tool=tool_name, error=error.message)
        TOOL_EXECUTIONS.labels(tool=tool_name, status="error").inc()
        return ToolExecution(
            tool_name=tool_name,
            tool_input=tool_input,
            result="",
            status="error",
            error=error.message,
        )
