"""
WebSocket Handler for deckforge

Streams one generation run to the client:

    client → {"request": {...GenerationRequest...}, "deck_id": "optional"}
    server → progress* / checkpoint* → result | error

Progress messages are queued without waiting; checkpoint messages wait until
everything queued before them has been sent. A single sender task writes to
the socket so messages keep their order.
"""

import asyncio
import json
import uuid
from typing import Any, Callable, Dict, Optional

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from starlette.websockets import WebSocketState

from config.settings import get_settings
from deckforge.agents.errors import PipelineError
from deckforge.agents.pipeline import GenerationPipeline, create_pipeline
from deckforge.models.deck import GenerationRequest
from deckforge.models.messages import (
    StreamMessage,
    create_checkpoint_message,
    create_error_message,
    create_pong_message,
    create_progress_message,
    create_result_message,
)
from deckforge.models.progress import PipelineProgress
from deckforge.utils.logger import setup_logger

logger = setup_logger(__name__)

PipelineFactory = Callable[..., GenerationPipeline]


class GenerationStreamHandler:
    """Runs generation requests received over a WebSocket."""

    def __init__(self, pipeline_factory: Optional[PipelineFactory] = None):
        self.settings = get_settings()
        self.pipeline_factory = pipeline_factory or (
            lambda **kwargs: create_pipeline(self.settings, **kwargs)
        )

    async def handle_connection(self, websocket: WebSocket):
        await websocket.accept()
        logger.info("🔌 Generation stream connected")

        try:
            while True:
                raw_data = await websocket.receive_text()

                if raw_data.strip() == "ping":
                    await websocket.send_text("pong")
                    continue

                try:
                    data = json.loads(raw_data)
                except json.JSONDecodeError:
                    await self._send(websocket, create_error_message("INVALID_JSON", "Message is not valid JSON"))
                    continue

                if isinstance(data, dict) and data.get("type") == "ping":
                    await self._send(websocket, create_pong_message())
                    continue

                await self._run_generation(websocket, data)

        except WebSocketDisconnect:
            logger.info("Generation stream disconnected")
        except Exception as e:
            logger.error(f"WebSocket error: {e}")
            if websocket.client_state == WebSocketState.CONNECTED:
                await websocket.close(code=1011)

    @staticmethod
    async def _send(websocket: WebSocket, message: StreamMessage):
        await websocket.send_json(message.model_dump(mode='json'))

    @staticmethod
    def _parse_request(data: Any):
        if not isinstance(data, dict):
            raise ValueError("Expected a JSON object")
        body: Dict[str, Any] = data.get("request", data)
        deck_id = data.get("deck_id") or body.get("deck_id") or f"deck_{uuid.uuid4().hex[:12]}"
        request = GenerationRequest.model_validate({k: v for k, v in body.items() if k != "deck_id"})
        return request, deck_id

    async def _run_generation(self, websocket: WebSocket, data: Any):
        try:
            request, deck_id = self._parse_request(data)
        except (ValidationError, ValueError) as e:
            await self._send(websocket, create_error_message("INVALID_REQUEST", str(e)))
            return

        queue: asyncio.Queue = asyncio.Queue()

        async def sender():
            while True:
                message = await queue.get()
                try:
                    await self._send(websocket, message)
                except Exception as e:
                    logger.warning(f"⚠️  Dropping stream message: {e}")
                finally:
                    queue.task_done()

        def on_progress(progress: PipelineProgress):
            queue.put_nowait(create_progress_message(progress))

        async def on_checkpoint(progress: PipelineProgress):
            queue.put_nowait(create_checkpoint_message(progress))
            await queue.join()

        sender_task = asyncio.create_task(sender())
        pipeline = self.pipeline_factory(on_progress=on_progress, on_checkpoint=on_checkpoint, deck_id=deck_id)
        logger.info(f"🚀 Streaming generation for deck {deck_id}")

        try:
            result = await pipeline.generate(request)
            await pipeline.drain_progress()
            queue.put_nowait(create_result_message(result, deck_id))
        except PipelineError as e:
            logger.error(f"❌ Generation failed for deck {deck_id}: {e}")
            queue.put_nowait(create_error_message(e.code.value, e.message, e.slide_index))
        except Exception as e:
            logger.error(f"❌ Unexpected error for deck {deck_id}: {e}", exc_info=True)
            queue.put_nowait(create_error_message("INTERNAL_ERROR", str(e)))
        finally:
            await queue.join()
            sender_task.cancel()
