"""
Shared fixtures: a scripted model gateway, controllable tools, an identity.
"""
# pylint: disable=redefined-outer-name

import asyncio
from typing import Any

import pytest
from langchain_core.messages import AIMessage
from pydantic import BaseModel

from ai_buddy.agents.executor import AgentExecutor
from ai_buddy.agents.registry import AgentTool, ToolRegistry
from ai_buddy.auth.models import CurrentUser, Identity


@pytest.fixture
def anyio_backend():
    return "asyncio"


def ai_text(text: str) -> AIMessage:
    return AIMessage(content=text)


def ai_calls(*calls: tuple[str, str, dict]) -> AIMessage:
    """Assistant message requesting (call_id, tool_name, args) tool calls."""
    return AIMessage(
        content="",
        tool_calls=[{"id": cid, "name": name, "args": args} for cid, name, args in calls],
    )


class ScriptedGateway:
    """Returns queued assistant messages in order and records every request."""

    def __init__(self, *responses: AIMessage | Exception):
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    async def invoke(self, messages, tools):
        self.calls.append({"messages": list(messages), "tools": list(tools)})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class LoopingGateway:
    """Always asks for another tool call."""

    def __init__(self, tool_name: str = "echo"):
        self.tool_name = tool_name
        self.count = 0

    async def invoke(self, messages, tools):
        self.count += 1
        return ai_calls((f"call-{self.count}", self.tool_name, {"text": str(self.count)}))


class EchoArgs(BaseModel):
    text: str


class EchoTool(AgentTool):
    """Echoes its input after an optional delay; records every context it receives."""

    description = "Echo text back"
    args_schema = EchoArgs

    def __init__(self, name: str = "echo", delay: float = 0.0, fail: Exception | None = None):
        self.name = name
        self.delay = delay
        self.fail = fail
        self.contexts: list[Identity] = []
        self.finished = 0
        self.cancelled = False

    async def invoke(self, arguments: EchoArgs, context: Identity) -> str:
        self.contexts.append(context)
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.fail is not None:
            raise self.fail
        self.finished += 1
        return f"{self.name}:{arguments.text}"


@pytest.fixture
def identity() -> Identity:
    return Identity(
        connection_id="conn-1",
        token="secret-token",
        user=CurrentUser(user_id="u-1", email="a@example.com", username="alice", role="user"),
    )


@pytest.fixture
def echo_tool() -> EchoTool:
    return EchoTool()


@pytest.fixture
def registry(echo_tool) -> ToolRegistry:
    return ToolRegistry([echo_tool])


@pytest.fixture
def make_executor():
    def _make(gateway, *tools, **kwargs) -> AgentExecutor:
        return AgentExecutor(ToolRegistry(tools), gateway, **kwargs)

    return _make
