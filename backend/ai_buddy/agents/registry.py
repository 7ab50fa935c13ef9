"""
Tool interface and the name-keyed registry the agent dispatches against.

The registry is built once at startup and never changes afterwards: the
chat node advertises its schemas to the model, the tool node resolves
tool-call names through lookup().
"""

from abc import ABC, abstractmethod
from types import MappingProxyType
from typing import Any, ClassVar, Iterable, Iterator

from pydantic import BaseModel

from ai_buddy.auth.models import Identity


class AgentTool(ABC):
    """
    A capability the model may call.

    Subclasses set name/description/args_schema and implement invoke().
    invoke() receives validated arguments plus the caller identity, and
    returns a payload (str, or anything JSON-serialisable). Raising aborts
    the whole turn.
    """

    name: ClassVar[str]
    description: ClassVar[str]
    args_schema: ClassVar[type[BaseModel]]

    @abstractmethod
    async def invoke(self, arguments: BaseModel, context: Identity) -> Any:
        ...

    def schema(self) -> dict[str, Any]:
        """OpenAI function-tool definition, accepted by every bind_tools()."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.args_schema.model_json_schema(),
            },
        }


class ToolRegistry:
    """Immutable mapping from tool name to tool."""

    def __init__(self, tools: Iterable[AgentTool]):
        entries: dict[str, AgentTool] = {}
        for tool in tools:
            if tool.name in entries:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            entries[tool.name] = tool
        self._tools = MappingProxyType(entries)
        self._schemas = tuple(tool.schema() for tool in entries.values())

    def lookup(self, name: str) -> AgentTool | None:
        return self._tools.get(name)

    def schemas(self) -> list[dict[str, Any]]:
        return list(self._schemas)

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[AgentTool]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)
