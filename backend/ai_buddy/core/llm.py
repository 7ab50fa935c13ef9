"""
LLM factory — returns the appropriate LangChain chat model based on LITELLM_MODE.

  proxy   → ChatOpenAI pointed at the LiteLLM proxy container (dev default)
  library → ChatLiteLLM using the litellm library in-process (production)

Both return the same LangChain BaseChatModel interface, so the model gateway
is unaware of the underlying routing mechanism. Streaming is off: the agent
only ever emits the final assistant message of a turn.
"""

from langchain_core.language_models.chat_models import BaseChatModel

from ai_buddy.core.config import Settings, get_settings


def get_chat_model(
    settings: Settings | None = None,
    *,
    model: str | None = None,
    temperature: float | None = None,
) -> BaseChatModel:
    """
    Return a configured chat model.

    Args:
        settings:    Settings to read from. Defaults to get_settings().
        model:       Override the model name. Defaults to settings.primary_model.
        temperature: Override the sampling temperature.
    """
    settings = settings or get_settings()
    model_name = model or settings.primary_model
    temperature = settings.temperature if temperature is None else temperature

    if settings.litellm_mode == "library":
        from langchain_community.chat_models import ChatLiteLLM

        return ChatLiteLLM(
            model=model_name,
            streaming=False,
            temperature=temperature,
        )

    from langchain_openai import ChatOpenAI

    return ChatOpenAI(
        base_url=settings.litellm_base_url,
        api_key=settings.litellm_master_key or "unused",
        model=model_name,
        streaming=False,
        temperature=temperature,
    )
