"""
LangGraph node implementations.

Graph topology:

    START → chat → (route_after_chat) → END
              ↑            ↓ tool_calls present
              └──────── tools

chat:
    - Sends the full message history plus the registry's tool schemas
      to the model gateway
    - Appends the returned AIMessage (text or tool_calls)

route_after_chat (router):
    - "tools"   → tools if the last AIMessage requested tool calls
    - "__end__" → END otherwise

tools:
    - Dispatches every requested call concurrently, with the caller identity
    - Appends one ToolMessage per call, in request order
    - All-or-nothing: one failed call fails the node and nothing is appended

Both nodes count themselves against the run's step budget.
"""

import asyncio
import json
from typing import Any

from langchain_core.messages import AIMessage, ToolCall, ToolMessage
from langchain_core.runnables import RunnableConfig
from langgraph.graph import END
from pydantic import ValidationError

from ai_buddy.agents.gateway import ModelGateway
from ai_buddy.agents.registry import ToolRegistry
from ai_buddy.auth.models import Identity
from ai_buddy.core.errors import (
    StepLimitExceeded,
    ToolExecutionError,
    ToolNotFoundError,
    ToolTimeoutError,
)
from ai_buddy.core.graph_state import AgentState
from ai_buddy.core.logging import get_logger

log = get_logger(__name__)


def _check_step_budget(state: AgentState, config: RunnableConfig) -> None:
    max_steps = config["configurable"].get("max_steps")
    if max_steps is not None and state.get("steps", 0) >= max_steps:
        raise StepLimitExceeded(max_steps)


def _serialize_payload(payload: Any) -> str:
    if isinstance(payload, str):
        return payload
    return json.dumps(payload, default=str)


# ── chat ──────────────────────────────────────────────────────────────────────

def make_chat_node(gateway: ModelGateway, registry: ToolRegistry):
    """Build the reasoning node: model gateway with every registered tool advertised."""
    schemas = registry.schemas()

    async def chat_node(state: AgentState, config: RunnableConfig) -> dict:
        _check_step_budget(state, config)

        response = await gateway.invoke(state["messages"], schemas)

        log.debug(
            "chat_response",
            has_tool_calls=bool(response.tool_calls),
            content_length=len(response.content) if response.content else 0,
        )
        return {"messages": [response], "steps": 1}

    return chat_node


# ── tools ─────────────────────────────────────────────────────────────────────

async def _dispatch(
    registry: ToolRegistry,
    call: ToolCall,
    context: Identity,
    timeout: float | None,
) -> ToolMessage:
    tool = registry.lookup(call["name"])
    if tool is None:
        raise ToolNotFoundError(call["name"])

    try:
        arguments = tool.args_schema.model_validate(call["args"])
    except ValidationError as exc:
        raise ToolExecutionError(f"Invalid arguments for {tool.name}: {exc}") from exc

    log.debug("tool_dispatch", tool_name=tool.name, call_id=call["id"])
    try:
        payload = await asyncio.wait_for(tool.invoke(arguments, context), timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise ToolTimeoutError(tool.name, timeout) from exc

    return ToolMessage(
        content=_serialize_payload(payload),
        name=tool.name,
        tool_call_id=call["id"],
    )


def make_tool_node(registry: ToolRegistry, *, timeout: float | None = None):
    """Build the tool executor node over a fixed registry."""

    async def tool_node(state: AgentState, config: RunnableConfig) -> dict:
        _check_step_budget(state, config)

        last = state["messages"][-1]
        context: Identity = config["configurable"]["context"]

        tasks = [
            asyncio.ensure_future(_dispatch(registry, call, context, timeout))
            for call in last.tool_calls
        ]
        try:
            # gather keeps request order regardless of completion order
            results = await asyncio.gather(*tasks)
        except Exception as exc:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            log.warning("tool_failed", error_type=type(exc).__name__, error=str(exc))
            raise

        return {"messages": results, "steps": 1}

    return tool_node


# ── Router (conditional edge function) ────────────────────────────────────────

def route_after_chat(state: AgentState) -> str:
    """
    Inspect the last assistant message.
    Returns "tools" to route to the tool executor,
    or "__end__" to finish the graph.
    """
    last = state["messages"][-1]
    if isinstance(last, AIMessage) and last.tool_calls:
        return "tools"
    return END
