from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

# Must come after load_dotenv so env vars are available
from ai_buddy.agents.executor import AgentExecutor, build_executor  # noqa: E402
from ai_buddy.api import chat_ws, health                            # noqa: E402
from ai_buddy.core.config import get_settings                       # noqa: E402
from ai_buddy.core.logging import configure_logging, get_logger     # noqa: E402

configure_logging()
log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Registry and gateway are built once and shared read-only by every turn
    if getattr(app.state, "executor", None) is None:
        app.state.executor = build_executor(get_settings())
    log.info(
        "startup",
        version="0.1.0",
        environment=get_settings().environment,
        tools=app.state.executor.registry.names,
    )
    yield
    log.info("shutdown")


def create_app(executor: AgentExecutor | None = None) -> FastAPI:
    app = FastAPI(
        title="AI Buddy",
        description="Shopping assistant agent over WebSocket",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.executor = executor

    settings = get_settings()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(chat_ws.router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("ai_buddy.main:app", host="0.0.0.0", port=get_settings().port, reload=True)
