"""
Deck and Request Models for deckforge

The request that drives one pipeline run and the deck it produces.
"""

from typing import List, Optional
from pydantic import BaseModel, Field
from enum import Enum

from deckforge.models.slide import Outline, Slide


class ThemeId(str, Enum):
    NORDIC_MINIMALISM = "nordic_minimalism"
    NORDIC_LIGHT = "nordic_light"
    NORDIC_DARK = "nordic_dark"
    CORPORATE_BLUE = "corporate_blue"
    MINIMAL_WARM = "minimal_warm"
    MODERN_CONTRAST = "modern_contrast"


class TextMode(str, Enum):
    """How the input text is treated."""
    GENERATE = "generate"    # input is a short prompt, expand it
    CONDENSE = "condense"    # input is long notes, summarize them
    PRESERVE = "preserve"    # keep the wording, only structure it


class Amount(str, Enum):
    """Desired content density per slide."""
    BRIEF = "brief"
    MEDIUM = "medium"
    DETAILED = "detailed"


class ImageMode(str, Enum):
    NONE = "none"
    AI = "ai"


class ImageStyle(str, Enum):
    PHOTOREALISTIC = "photorealistic"
    ILLUSTRATION = "illustration"
    MINIMALIST = "minimalist"
    ISOMETRIC = "isometric"
    EDITORIAL = "editorial"
    DEFAULT = "default"


class GoldenTemplateId(str, Enum):
    EXECUTIVE_BRIEF = "executive_brief"
    FEATURE_SHOWCASE = "feature_showcase"
    PROJECT_UPDATE = "project_update"


class DeckMeta(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    language: str = Field("no", description="Deck language code")
    theme_id: ThemeId = Field(ThemeId.NORDIC_LIGHT, description="Visual theme")


class Deck(BaseModel):
    """The terminal artifact of the pipeline."""
    deck: DeckMeta
    slides: List[Slide] = Field(..., min_length=1)


class GenerationRequest(BaseModel):
    """
    Everything one pipeline run needs. Immutable for the duration of the run.
    """
    input_text: str = Field(..., min_length=1, max_length=50000, description="Raw input text")
    text_mode: TextMode = Field(TextMode.GENERATE, description="generate, condense or preserve")
    language: str = Field("no", description="Target language code")
    tone: Optional[str] = Field(None, description="Optional tone, e.g. 'formal'")
    audience: Optional[str] = Field(None, description="Optional audience description")
    amount: Amount = Field(Amount.MEDIUM, description="brief, medium or detailed")
    num_slides: Optional[int] = Field(None, ge=1, le=50, description="Exact slide count")
    theme_id: Optional[ThemeId] = Field(None, description="Theme for the finished deck")
    image_mode: ImageMode = Field(ImageMode.NONE, description="none or ai")
    image_style: Optional[ImageStyle] = Field(None, description="Style for generated images")
    additional_instructions: Optional[str] = Field(None, max_length=1000)
    template_id: Optional[GoldenTemplateId] = Field(None, description="Golden template to fill")
    outline: Optional[Outline] = Field(None, description="Pre-supplied outline, skips outline generation")

    class Config:
        frozen = True


class FailedImage(BaseModel):
    """A slide whose image could not be generated."""
    slide_index: int
    error: str
    error_code: str
    retryable: bool


class GenerationResult(BaseModel):
    outline: Outline
    deck: Deck
    failed_images: List[FailedImage] = Field(default_factory=list)
