"""
Image Models for deckforge
"""

from typing import List, Optional
from pydantic import BaseModel, Field

from deckforge.models.deck import Deck, FailedImage


class ImageResult(BaseModel):
    """What an image client returns for one prompt."""
    url: str
    revised_prompt: Optional[str] = None


class ImageGenerationResult(BaseModel):
    """Outcome of one orchestrated image pass over a deck."""
    deck: Deck
    failed_images: List[FailedImage] = Field(default_factory=list)
    total_attempted: int = 0
    total_success: int = 0
