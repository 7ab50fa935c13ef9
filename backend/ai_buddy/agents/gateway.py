"""
Model gateway — the single seam between the agent graph and LLM inference.

Contract:
    await gateway.invoke(messages, tools) -> AIMessage

The returned AIMessage may carry tool_calls alongside or instead of text.
Errors from the underlying client are passed through untouched; the
gateway only adds a timeout and rejects responses that are not assistant
messages or that carry tool calls the client could not parse. There is no
retry here.
"""

import asyncio
from typing import Any, Protocol, Sequence

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, SystemMessage

from ai_buddy.core.config import Settings, get_settings
from ai_buddy.core.errors import GatewayError, ModelTimeoutError
from ai_buddy.core.llm import get_chat_model


class ModelGateway(Protocol):
    async def invoke(
        self,
        messages: Sequence[BaseMessage],
        tools: Sequence[dict[str, Any]],
    ) -> AIMessage:
        ...


def content_text(content: Any) -> str:
    """Flatten provider content blocks (e.g. Gemini's list form) into plain text."""
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class ChatModelGateway:
    """ModelGateway backed by a LangChain chat model."""

    def __init__(
        self,
        model: BaseChatModel,
        *,
        system_prompt: str | None = None,
        timeout: float | None = None,
    ):
        self._model = model
        self._system_prompt = system_prompt
        self._timeout = timeout

    async def invoke(
        self,
        messages: Sequence[BaseMessage],
        tools: Sequence[dict[str, Any]],
    ) -> AIMessage:
        llm = self._model.bind_tools(list(tools)) if tools else self._model

        prompt = list(messages)
        if self._system_prompt:
            prompt.insert(0, SystemMessage(content=self._system_prompt))

        try:
            response = await asyncio.wait_for(llm.ainvoke(prompt), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            raise ModelTimeoutError(self._timeout) from exc

        if not isinstance(response, AIMessage):
            raise GatewayError(f"Expected an assistant message, got {type(response).__name__}")

        if response.invalid_tool_calls:
            names = ", ".join(str(call.get("name")) for call in response.invalid_tool_calls)
            raise GatewayError(f"Model returned unparseable tool calls: {names}")

        if not isinstance(response.content, str):
            response = response.model_copy(update={"content": content_text(response.content)})
        return response


def build_gateway(settings: Settings | None = None) -> ChatModelGateway:
    settings = settings or get_settings()
    return ChatModelGateway(
        get_chat_model(settings),
        system_prompt=settings.system_prompt,
        timeout=settings.model_timeout_seconds,
    )
