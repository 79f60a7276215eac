"""Pydantic models for deckforge"""

from deckforge.models.slide import (
    Block,
    BlockKind,
    Outline,
    OutlineSlide,
    LenientOutline,
    Slide,
    SlideType,
    SplitResult,
    sanitize_outline,
)
from deckforge.models.deck import (
    Amount,
    Deck,
    DeckMeta,
    FailedImage,
    GenerationRequest,
    GenerationResult,
    GoldenTemplateId,
    ImageMode,
    ImageStyle,
    TextMode,
    ThemeId,
)
from deckforge.models.analysis import ContentAnalysis, Comparison, Feature, ProcessStep, SlideTypeRecommendation
from deckforge.models.validation import ConstraintViolation, DeckValidationResult, SlideValidationResult
from deckforge.models.progress import PipelineProgress
from deckforge.models.images import ImageGenerationResult, ImageResult
from deckforge.models.template import (
    GeneratedSlot,
    GoldenSlot,
    GoldenTemplate,
    SlotConstraints,
    SlotContent,
    SlotExample,
    SlotItem,
    TemplateOption,
)
