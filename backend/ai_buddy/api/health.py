from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request):
    """Health check endpoint. Reports whether the agent is wired and which tools it exposes."""
    executor = getattr(request.app.state, "executor", None)
    if executor is None:
        return {"status": "starting", "tools": []}
    return {"status": "ok", "tools": executor.registry.names}
