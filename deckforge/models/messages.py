"""
WebSocket Message Models

Messages streamed to a client while a deck is generated. Every message
carries a type, a timestamp and a payload.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from deckforge.models.deck import GenerationResult
from deckforge.models.progress import PipelineProgress


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def format_timestamp(dt: datetime) -> str:
    """
    Format datetime to ISO 8601 with 'Z' suffix for UTC.

    JavaScript clients parse a timestamp without the suffix as local time.
    """
    if dt.tzinfo is None:
        return dt.isoformat() + 'Z'
    return dt.astimezone(timezone.utc).isoformat().replace('+00:00', 'Z')


class MessageType(str, Enum):
    PROGRESS = "progress"      # fire-and-forget UI hint
    CHECKPOINT = "checkpoint"  # composed outline or finished slide
    RESULT = "result"          # the finished outline and deck
    ERROR = "error"
    PONG = "pong"


class StreamMessage(BaseModel):
    message_id: str = Field(default_factory=lambda: f"msg_{uuid.uuid4().hex[:12]}")
    type: MessageType
    timestamp: str = Field(default_factory=lambda: format_timestamp(utc_now()))
    payload: Dict[str, Any] = Field(default_factory=dict)


def create_progress_message(progress: PipelineProgress) -> StreamMessage:
    return StreamMessage(type=MessageType.PROGRESS, payload=progress.model_dump(mode='json', exclude_none=True))


def create_checkpoint_message(progress: PipelineProgress) -> StreamMessage:
    return StreamMessage(type=MessageType.CHECKPOINT, payload=progress.model_dump(mode='json', exclude_none=True))


def create_result_message(result: GenerationResult, deck_id: Optional[str] = None) -> StreamMessage:
    payload = result.model_dump(mode='json', exclude_none=True)
    if deck_id:
        payload["deck_id"] = deck_id
    return StreamMessage(type=MessageType.RESULT, payload=payload)


def create_error_message(code: str, message: str, slide_index: Optional[int] = None) -> StreamMessage:
    payload: Dict[str, Any] = {"code": code, "message": message}
    if slide_index is not None:
        payload["slide_index"] = slide_index
    return StreamMessage(type=MessageType.ERROR, payload=payload)


def create_pong_message() -> StreamMessage:
    return StreamMessage(type=MessageType.PONG)
