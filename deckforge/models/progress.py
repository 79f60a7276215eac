"""
Progress Models for deckforge

A single discriminated event type carried on both the progress channel and
the checkpoint channel of the pipeline.
"""

from typing import Any, Dict, Literal, Optional
from pydantic import BaseModel, Field

from deckforge.models.slide import BlockKind, Outline, Slide

PipelineStage = Literal["outline", "content", "validation", "repair", "images", "template"]


class PipelineProgress(BaseModel):
    """
    One progress notification.

    Only `stage` is always present; the remaining fields are set depending on
    the stage (e.g. `delta`/`block_index` while a slide is streaming,
    `image_index`/`image_url` during image generation).
    """
    stage: PipelineStage
    message: Optional[str] = None
    slide_index: Optional[int] = Field(None, description="0-based slide index")
    total_slides: Optional[int] = None
    outline: Optional[Outline] = None
    slide: Optional[Slide] = None
    slot_content: Optional[Dict[str, Any]] = Field(None, description="Golden template slot content")
    block_index: Optional[int] = None
    block_kind: Optional[BlockKind] = None
    delta: Optional[str] = Field(None, description="New text since the previous emission")
    total_images: Optional[int] = None
    image_index: Optional[int] = Field(None, description="1-based image counter")
    image_url: Optional[str] = None
