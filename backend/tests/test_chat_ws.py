"""
Tests for the chat WebSocket transport and the app wiring.
"""
# pylint: disable=redefined-outer-name

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from ai_buddy.agents.executor import AgentExecutor
from ai_buddy.agents.registry import ToolRegistry
from ai_buddy.api.chat_ws import AUTH_FAILED_CLOSE_CODE
from ai_buddy.auth.security import create_access_token
from ai_buddy.core.logging import configure_logging, get_logger
from ai_buddy.main import create_app

from conftest import EchoTool, ScriptedGateway, ai_calls, ai_text


@pytest.fixture
def token() -> str:
    return create_access_token("u-42", email="bob@example.com", username="bob")


@pytest.fixture
def wired():
    """Build an app around a scripted executor; returns (client, gateway, tool)."""

    def _make(*responses):
        tool = EchoTool("echo")
        gateway = ScriptedGateway(*responses)
        executor = AgentExecutor(ToolRegistry([tool]), gateway)
        return TestClient(create_app(executor=executor)), gateway, tool

    return _make


#############################################################################
# Handshake authentication
#############################################################################
def test_missing_credential_is_rejected(wired):
    client, gateway, _ = wired(ai_text("never"))
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/ws/chat"):
            pass
    assert exc_info.value.code == AUTH_FAILED_CLOSE_CODE
    assert gateway.calls == []


def test_invalid_credential_is_rejected(wired):
    client, _, _ = wired()
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/ws/chat", headers={"cookie": "token=not-a-jwt"}):
            pass
    assert exc_info.value.code == AUTH_FAILED_CLOSE_CODE


def test_expired_credential_is_rejected(wired):
    client, _, _ = wired()
    expired = create_access_token("u-1", expires_delta=timedelta(seconds=-10))
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect(f"/ws/chat?token={expired}"):
            pass
    assert exc_info.value.code == AUTH_FAILED_CLOSE_CODE


@pytest.mark.parametrize("style", ["cookie", "query", "bearer"])
def test_credential_sources(wired, token, style):
    client, _, _ = wired(ai_text("hi back"))
    url, headers = "/ws/chat", {}
    if style == "cookie":
        headers["cookie"] = f"token={token}"
    elif style == "query":
        url = f"/ws/chat?token={token}"
    else:
        headers["authorization"] = f"Bearer {token}"

    with client.websocket_connect(url, headers=headers) as ws:
        ws.send_text("hello")
        assert ws.receive_json() == {"event": "message", "data": "hi back"}


#############################################################################
# Turns
#############################################################################
def test_turns_are_independent_and_carry_the_connection_token(wired, token):
    client, gateway, tool = wired(
        ai_calls(("c1", "echo", {"text": "a"})),
        ai_text("first"),
        ai_calls(("c2", "echo", {"text": "b"})),
        ai_text("second"),
    )

    with client.websocket_connect("/ws/chat", headers={"cookie": f"token={token}"}) as ws:
        ws.send_text("one")
        assert ws.receive_json()["data"] == "first"
        ws.send_text("two")
        assert ws.receive_json()["data"] == "second"

    # each turn starts from a single user message
    assert [m.content for m in gateway.calls[2]["messages"]] == ["two"]
    assert [ctx.token for ctx in tool.contexts] == [token, token]
    assert tool.contexts[0] == tool.contexts[1]
    assert tool.contexts[0].user.user_id == "u-42"


def test_enveloped_frames_are_accepted(wired, token):
    client, gateway, _ = wired(ai_text("ok"))
    with client.websocket_connect("/ws/chat", headers={"cookie": f"token={token}"}) as ws:
        ws.send_json({"event": "message", "data": "find shoes"})
        assert ws.receive_json() == {"event": "message", "data": "ok"}
    assert gateway.calls[0]["messages"][0].content == "find shoes"


def test_failed_turn_emits_error_and_connection_survives(wired, token):
    client, _, _ = wired(
        ai_calls(("c1", "missing", {})),
        ai_text("recovered"),
    )
    with client.websocket_connect("/ws/chat", headers={"cookie": f"token={token}"}) as ws:
        ws.send_text("break it")
        event = ws.receive_json()
        assert event["event"] == "error"
        assert event["data"]["type"] == "ToolNotFoundError"
        assert "missing" in event["data"]["detail"]

        ws.send_text("again")
        assert ws.receive_json() == {"event": "message", "data": "recovered"}


def test_empty_message_is_rejected_without_running(wired, token):
    client, gateway, _ = wired()
    with client.websocket_connect("/ws/chat", headers={"cookie": f"token={token}"}) as ws:
        ws.send_text("   ")
        event = ws.receive_json()
    assert event["event"] == "error"
    assert event["data"]["type"] == "InvalidMessageError"
    assert gateway.calls == []


def test_oversized_message_is_rejected(wired, token):
    client, gateway, _ = wired()
    with client.websocket_connect("/ws/chat", headers={"cookie": f"token={token}"}) as ws:
        ws.send_text("x" * 8_001)
        assert ws.receive_json()["data"]["type"] == "InvalidMessageError"
    assert gateway.calls == []


#############################################################################
# Health
#############################################################################
def test_health_lists_tools(wired):
    client, _, _ = wired()
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "tools": ["echo"]}


#############################################################################
# Frames and logging
#############################################################################
def test_binary_frame_is_rejected_and_connection_survives(wired, token):
    client, gateway, _ = wired(ai_text("still here"))
    with client.websocket_connect("/ws/chat", headers={"cookie": f"token={token}"}) as ws:
        ws.send_bytes(b"\x00\x01")
        event = ws.receive_json()
        assert event["event"] == "error"
        assert event["data"]["type"] == "InvalidMessageError"

        ws.send_text("hello")
        assert ws.receive_json() == {"event": "message", "data": "still here"}
    assert len(gateway.calls) == 1


@pytest.mark.parametrize("environment", ["development", "production"])
def test_turns_run_with_logging_configured(wired, token, monkeypatch, environment):
    from ai_buddy.core.config import get_settings

    monkeypatch.setattr(get_settings(), "environment", environment)
    configure_logging()

    log = get_logger("tests")
    log.debug("debug_event", a=1)
    log.info("info_event")
    log.warning("warning_event")

    client, _, _ = wired(
        ai_calls(("c1", "echo", {"text": "a"})),
        ai_text("logged"),
        ai_calls(("c2", "missing", {})),
    )
    with client:  # runs the lifespan startup/shutdown logging too
        with client.websocket_connect("/ws/chat", headers={"cookie": f"token={token}"}) as ws:
            ws.send_text("one")
            assert ws.receive_json() == {"event": "message", "data": "logged"}
            ws.send_text("two")
            assert ws.receive_json()["data"]["type"] == "ToolNotFoundError"
