"""
Golden Template Models for deckforge

Golden templates fix the structure of a deck up front: the language model
only fills each slot's content within the slot's limits, it never decides
slide types or layout.
"""

from typing import List, Literal, Optional
from pydantic import BaseModel, Field

from deckforge.models.deck import GoldenTemplateId

GoldenSlideType = Literal[
    "cover",
    "stats",
    "content",
    "bullets",
    "cta",
    "icon_grid",
    "timeline",
    "checklist",
    "numbered_steps",
    "circle_diagram",
]


class SlotConstraints(BaseModel):
    """Content limits for one slot."""
    title_max_chars: Optional[int] = None
    body_max_chars: Optional[int] = None
    item_count: Optional[int] = Field(None, description="Exact number of items")
    item_count_min: Optional[int] = None
    item_count_max: Optional[int] = None
    item_max_chars: Optional[int] = None
    requires_image: bool = False
    image_aspect: Optional[str] = None
    image_style: Optional[str] = None


class SlotExample(BaseModel):
    title: Optional[str] = None
    body: Optional[str] = None
    items: List[str] = Field(default_factory=list)


class GoldenSlot(BaseModel):
    """One slide of a golden template, with a fixed type."""
    position: int = Field(..., ge=1, description="1-based position in the deck")
    slide_type: GoldenSlideType
    layout_variant: str = "default"
    purpose: str
    constraints: SlotConstraints = Field(default_factory=SlotConstraints)
    example: Optional[SlotExample] = None


class GoldenTemplate(BaseModel):
    id: GoldenTemplateId
    name: str
    description: str
    use_cases: List[str] = Field(default_factory=list)
    slide_count: int
    slots: List[GoldenSlot]


class SlotItem(BaseModel):
    """A bullet, step or statistic inside a slot."""
    text: Optional[str] = None
    value: Optional[str] = None
    label: Optional[str] = None
    sublabel: Optional[str] = None
    icon: Optional[str] = None
    description: Optional[str] = None


class GeneratedSlot(BaseModel):
    """What the language model returns for one slot."""
    title: Optional[str] = None
    body: Optional[str] = None
    items: Optional[List[SlotItem]] = None
    image_description: Optional[str] = None


class SlotContent(GeneratedSlot):
    """Generated content tagged with the slot it belongs to."""
    position: int


class TemplateOption(BaseModel):
    """Template summary for selection UIs."""
    id: GoldenTemplateId
    name: str
    description: str
    slide_count: int
