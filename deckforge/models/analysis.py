"""
Content Analysis Models for deckforge

A read-only snapshot of what the input text contains, computed once per
request and consumed by composition, distribution, content generation and
image prompting.
"""

from typing import List, Literal
from pydantic import BaseModel, Field

from deckforge.models.slide import SlideType


class ProcessStep(BaseModel):
    order: int = Field(..., description="1-based position in the process")
    text: str


class Comparison(BaseModel):
    left: str
    right: str
    basis: str = Field("", description="What is being compared, e.g. 'tid'")


class Feature(BaseModel):
    title: str
    description: str


class ContentAnalysis(BaseModel):
    """Heuristic, LLM-free extraction over the raw input text."""
    key_messages: List[str] = Field(default_factory=list)
    quotes: List[str] = Field(default_factory=list)
    decisions: List[str] = Field(default_factory=list)
    action_items: List[str] = Field(default_factory=list)
    statistics: List[str] = Field(default_factory=list)
    topics: List[str] = Field(default_factory=list)
    word_count: int = 0
    suggested_slide_count: int = 4
    sequential_process: List[ProcessStep] = Field(default_factory=list)
    comparisons: List[Comparison] = Field(default_factory=list)
    features: List[Feature] = Field(default_factory=list)
    has_roadmap: bool = False

    class Config:
        frozen = True


class SlideTypeRecommendation(BaseModel):
    """A slide type the content supports, with why."""
    type: SlideType
    confidence: Literal["high", "medium", "low"]
    reason: str
