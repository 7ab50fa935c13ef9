from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── LiteLLM ───────────────────────────────────────────────────────────────
    # mode: "proxy" = external LiteLLM container (dev default)
    #       "library" = litellm imported directly (production, no network hop)
    litellm_mode: str = "proxy"
    litellm_base_url: str = "http://litellm:4000/v1"
    litellm_master_key: str = ""

    # ── Model ─────────────────────────────────────────────────────────────────
    primary_model: str = "gemini-2.5-flash"
    temperature: float = 0.5
    system_prompt: str | None = None
    model_timeout_seconds: float | None = 60.0

    # ── Agent graph ───────────────────────────────────────────────────────────
    # None = no bound on chat/tools cycling
    agent_max_steps: int | None = None
    tool_timeout_seconds: float | None = 30.0
    max_message_length: int = 8_000

    # ── Auth (JWT issued by the auth service) ────────────────────────────────
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    auth_cookie_name: str = "token"

    # ── Downstream services used by the tools ────────────────────────────────
    product_service_url: str = "http://localhost:3001"
    cart_service_url: str = "http://localhost:3002"

    # ── App ───────────────────────────────────────────────────────────────────
    environment: str = "development"
    log_level: str | None = None             # overrides the environment default
    cors_origins: list[str] = ["http://localhost:3000"]
    port: int = 3005

    model_config = {"env_file": ".env"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
