"""
Tests for the generation WebSocket stream

Runs the handler in a bare FastAPI app with mock clients.
"""

from datetime import datetime, timezone

from fastapi import FastAPI, WebSocket
from fastapi.testclient import TestClient

from deckforge.agents.pipeline import GenerationPipeline
from deckforge.clients.image_client import MockImageClient
from deckforge.clients.mock_llm_client import MockLLMClient
from deckforge.handlers.websocket import GenerationStreamHandler
from deckforge.models.messages import create_error_message, format_timestamp

MEETING_TEXT = "Referat fra møtet i prosjektgruppen. Vi gikk gjennom status og ble enige om veien videre."


def mock_pipeline(**kwargs):
    return GenerationPipeline(
        llm_client=MockLLMClient(latency=0, chunk_delay=0),
        image_client=MockImageClient(),
        **kwargs,
    )


def make_client():
    handler = GenerationStreamHandler(pipeline_factory=mock_pipeline)
    app = FastAPI()

    @app.websocket("/ws")
    async def ws(websocket: WebSocket):
        await handler.handle_connection(websocket)

    return TestClient(app)


def receive_until_done(websocket):
    messages = []
    while True:
        message = websocket.receive_json()
        messages.append(message)
        if message["type"] in ("result", "error"):
            return messages


def test_streams_progress_checkpoints_and_result():
    with make_client().websocket_connect("/ws") as websocket:
        websocket.send_json({"request": {"input_text": MEETING_TEXT}, "deck_id": "deck-7"})
        messages = receive_until_done(websocket)

    result = messages[-1]
    assert result["type"] == "result"
    assert result["payload"]["deck_id"] == "deck-7"
    assert result["payload"]["deck"]["deck"]["title"] == "Møtereferat"
    assert len(result["payload"]["deck"]["slides"]) == 5

    checkpoints = [m for m in messages if m["type"] == "checkpoint"]
    assert [c["payload"]["stage"] for c in checkpoints] == ["outline"] + ["content"] * 5
    assert any(m["type"] == "progress" for m in messages)
    assert all(m["timestamp"].endswith("Z") for m in messages)


def test_invalid_messages_get_errors():
    with make_client().websocket_connect("/ws") as websocket:
        websocket.send_text("ping")
        assert websocket.receive_text() == "pong"

        websocket.send_json({"type": "ping"})
        assert websocket.receive_json()["type"] == "pong"

        websocket.send_text("{not json")
        error = websocket.receive_json()
        assert error["payload"]["code"] == "INVALID_JSON"

        websocket.send_json({"request": {"input_text": ""}})
        error = websocket.receive_json()
        assert error["type"] == "error"
        assert error["payload"]["code"] == "INVALID_REQUEST"


def test_pipeline_errors_are_reported():
    with make_client().websocket_connect("/ws") as websocket:
        websocket.send_json({"request": {"input_text": MEETING_TEXT, "template_id": "project_update"}})
        messages = receive_until_done(websocket)

    assert messages[-1]["type"] == "error"
    assert messages[-1]["payload"]["code"] == "TEMPLATE_NOT_FOUND"


def test_message_helpers():
    assert format_timestamp(datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)) == "2025-01-02T03:04:05Z"
    assert format_timestamp(datetime(2025, 1, 2, 3, 4, 5)) == "2025-01-02T03:04:05Z"

    message = create_error_message("CONTENT_FAILED", "Model timeout", slide_index=3)
    assert message.payload == {"code": "CONTENT_FAILED", "message": "Model timeout", "slide_index": 3}
    assert message.message_id.startswith("msg_")
