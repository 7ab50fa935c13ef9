"""
Shopping assistant graph executor.

    START → chat → (route_after_chat) → END
              ↑              ↓ tool_calls
              └──────────── tools

chat:             model gateway with the registry's tools advertised
route_after_chat: routes to tools or END, re-evaluated after every chat step
tools:            concurrent, all-or-nothing tool dispatch (back to chat)

The compiled graph holds no conversation data: every run() gets its own
AgentState, and concurrent runs share only the registry and gateway.
Nothing is checkpointed.
"""

import sys

from langgraph.graph import END, START, StateGraph

from ai_buddy.agents.gateway import ModelGateway, build_gateway, content_text
from ai_buddy.agents.nodes import make_chat_node, make_tool_node, route_after_chat
from ai_buddy.agents.registry import ToolRegistry
from ai_buddy.agents.tools import build_default_registry
from ai_buddy.auth.models import Identity
from ai_buddy.core.config import Settings, get_settings
from ai_buddy.core.graph_state import AgentState, new_conversation
from ai_buddy.core.logging import get_logger

log = get_logger(__name__)

_UNSET = object()


class AgentExecutor:
    """
    Runs one conversation turn through the chat/tools graph.

    Args:
        registry:     tools advertised to the model and dispatched by name
        gateway:      model gateway used by the chat node
        max_steps:    default bound on node executions per run (None = unbounded)
        tool_timeout: per tool call timeout in seconds (None = no timeout)
    """

    def __init__(
        self,
        registry: ToolRegistry,
        gateway: ModelGateway,
        *,
        max_steps: int | None = None,
        tool_timeout: float | None = None,
    ):
        if max_steps is not None and max_steps < 1:
            raise ValueError("max_steps must be positive or None")
        self.registry = registry
        self.gateway = gateway
        self.max_steps = max_steps
        self._graph = self._build(tool_timeout)

    def _build(self, tool_timeout: float | None):
        workflow = StateGraph(AgentState)

        # Nodes
        workflow.add_node("chat", make_chat_node(self.gateway, self.registry))
        workflow.add_node("tools", make_tool_node(self.registry, timeout=tool_timeout))

        # Edges
        workflow.add_edge(START, "chat")
        workflow.add_conditional_edges(
            "chat",
            route_after_chat,
            {"tools": "tools", END: END},
        )
        workflow.add_edge("tools", "chat")  # loop: tool results → model

        return workflow.compile()

    async def run(
        self,
        state: AgentState | str,
        identity: Identity,
        *,
        max_steps: int | None = _UNSET,
    ) -> AgentState:
        """
        Drive the graph to END and return the terminal state.

        Any node failure (gateway error, unknown tool, tool error, step limit)
        propagates out of run(); no partial state is returned.
        """
        if isinstance(state, str):
            state = new_conversation(state)
        limit = self.max_steps if max_steps is _UNSET else max_steps

        config = {
            "configurable": {"context": identity, "max_steps": limit},
            # the step budget is enforced by the nodes; keep langgraph's own
            # recursion guard out of the way
            "recursion_limit": sys.maxsize if limit is None else limit + 2,
        }
        result = await self._graph.ainvoke(state, config=config)

        log.debug("run_complete", steps=result["steps"], messages=len(result["messages"]))
        return result

    async def reply(self, text: str, identity: Identity, **kwargs) -> str:
        """Run a fresh turn for one user message and return the assistant's text."""
        result = await self.run(new_conversation(text), identity, **kwargs)
        return final_content(result)


def final_content(state: AgentState) -> str:
    """Content of the terminal message (always an assistant message)."""
    return content_text(state["messages"][-1].content)


def build_executor(settings: Settings | None = None) -> AgentExecutor:
    """Wire registry, gateway and limits from configuration. Call once per process."""
    settings = settings or get_settings()
    return AgentExecutor(
        build_default_registry(settings),
        build_gateway(settings),
        max_steps=settings.agent_max_steps,
        tool_timeout=settings.tool_timeout_seconds,
    )
