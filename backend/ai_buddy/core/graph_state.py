import operator
from typing import Annotated, TypedDict

from langchain_core.messages import AnyMessage, HumanMessage
from langgraph.graph.message import add_messages


class AgentState(TypedDict):
    """State owned by a single executor run. Nodes only ever append to it."""
    messages: Annotated[list[AnyMessage], add_messages]  # full turn history (auto-appended)
    steps:    Annotated[int, operator.add]               # node executions so far


def new_conversation(text: str) -> AgentState:
    """Fresh state seeded with one user message."""
    return {"messages": [HumanMessage(content=text)], "steps": 0}
