"""
Chat WebSocket — one long-lived connection per client.

Protocol:
  - Handshake:      credential in the auth cookie, ?token= or Bearer header.
                    Invalid or missing → closed with code 4001, no turn runs.
  - Client sends:   raw text, or {"event": "message", "data": "<text>"}
  - Server sends:   {"event": "message", "data": "<assistant text>"}
  - On a failed turn: {"event": "error", "data": {"type": ..., "detail": ...}}
                    and the connection stays open for the next turn.

Every inbound message starts a fresh conversation; turns on one connection
run one after another.
"""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ai_buddy.agents.executor import AgentExecutor, final_content
from ai_buddy.auth.deps import authenticate_websocket
from ai_buddy.auth.models import Identity
from ai_buddy.core.config import get_settings
from ai_buddy.core.errors import AuthenticationError, InvalidMessageError
from ai_buddy.core.graph_state import new_conversation
from ai_buddy.core.logging import bind_connection, get_logger
from ai_buddy.middleware.sanitize import parse_inbound, sanitize_message

log = get_logger(__name__)
router = APIRouter(tags=["chat"])

AUTH_FAILED_CLOSE_CODE = 4001


def message_event(content: str) -> dict:
    return {"event": "message", "data": content}


def error_event(exc: Exception) -> dict:
    return {"event": "error", "data": {"type": type(exc).__name__, "detail": str(exc)}}


async def _run_turn(
    websocket: WebSocket,
    executor: AgentExecutor,
    identity: Identity,
    frame: str,
) -> None:
    settings = get_settings()
    try:
        text = sanitize_message(parse_inbound(frame), settings.max_message_length)
    except InvalidMessageError as exc:
        await websocket.send_json(error_event(exc))
        return

    try:
        result = await executor.run(new_conversation(text), identity)
    except Exception as exc:
        log.exception("turn_failed", error_type=type(exc).__name__)
        await websocket.send_json(error_event(exc))
        return

    log.info("turn_complete", steps=result["steps"], messages=len(result["messages"]))
    await websocket.send_json(message_event(final_content(result)))


@router.websocket("/ws/chat")
async def chat_socket(websocket: WebSocket):
    try:
        identity = authenticate_websocket(websocket)
    except AuthenticationError as exc:
        log.warning("ws_auth_failed", reason=str(exc))
        await websocket.close(code=AUTH_FAILED_CLOSE_CODE, reason=str(exc))
        return

    executor: AgentExecutor = websocket.app.state.executor
    await websocket.accept()
    bind_connection(identity.connection_id, identity.user.user_id if identity.user else None)
    log.info("ws_connected")

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            frame = message.get("text")
            if frame is None:
                await websocket.send_json(error_event(InvalidMessageError("Only text frames are accepted.")))
                continue
            await _run_turn(websocket, executor, identity, frame)
    except WebSocketDisconnect as exc:
        log.info("ws_disconnected", code=exc.code)
