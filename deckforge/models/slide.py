"""
Slide Models for deckforge

Blocks, slides and outlines. These are the shapes the language model is asked
to produce and the shapes every deterministic stage consumes.
"""

from typing import Annotated, List, Optional
from pydantic import BaseModel, Field
from enum import Enum


class BlockKind(str, Enum):
    """Structural content units a slide is built from."""
    TITLE = "title"
    TEXT = "text"
    BULLETS = "bullets"
    IMAGE = "image"
    TABLE = "table"
    CALLOUT = "callout"
    STAT_BLOCK = "stat_block"
    TIMELINE_STEP = "timeline_step"
    ICON_CARD = "icon_card"
    NUMBERED_CARD = "numbered_card"


class SlideType(str, Enum):
    """Enumerated layout categories. The type dictates the required block structure."""
    # Structure slides
    COVER = "cover"
    AGENDA = "agenda"
    SECTION_HEADER = "section_header"
    # Basic content
    BULLETS = "bullets"
    TWO_COLUMN_TEXT = "two_column_text"
    TEXT_PLUS_IMAGE = "text_plus_image"
    DECISIONS_LIST = "decisions_list"
    ACTION_ITEMS_TABLE = "action_items_table"
    SUMMARY_NEXT_STEPS = "summary_next_steps"
    QUOTE_CALLOUT = "quote_callout"
    # Premium visual slides
    TIMELINE_ROADMAP = "timeline_roadmap"
    NUMBERED_GRID = "numbered_grid"
    ICON_CARDS_WITH_IMAGE = "icon_cards_with_image"
    SUMMARY_WITH_STATS = "summary_with_stats"
    HERO_STATS = "hero_stats"
    SPLIT_WITH_CALLOUTS = "split_with_callouts"
    PERSON_SPOTLIGHT = "person_spotlight"


class Block(BaseModel):
    """
    One structural content unit within a slide.

    A tagged union flattened into a single model: `kind` selects which of the
    optional fields are meaningful (e.g. `items` for bullets, `value`/`label`
    for stat blocks).
    """
    kind: BlockKind = Field(..., description="Block kind discriminator")

    # title / text / callout / card headings
    text: Optional[str] = Field(None, description="Main text of the block")
    # bullets
    items: Optional[List[str]] = Field(None, description="Bullet items, in order")
    # image
    url: Optional[str] = Field(None, description="Image URL (empty until generated)")
    alt: Optional[str] = Field(None, description="Image alt text, also used as image brief")
    crop_mode: Optional[str] = Field(None, description="cover, contain or fill")
    # table
    columns: Optional[List[str]] = Field(None, description="Table column headers")
    rows: Optional[List[List[str]]] = Field(None, description="Table rows")
    # callout
    style: Optional[str] = Field(None, description="Callout style: info, warning, success, quote")
    # stat_block
    value: Optional[str] = Field(None, description="Statistic value, e.g. '95%'")
    label: Optional[str] = Field(None, description="What the statistic measures")
    sublabel: Optional[str] = Field(None, description="Optional statistic context")
    # timeline_step
    step: Optional[int] = Field(None, description="Timeline step number")
    description: Optional[str] = Field(None, description="Card or step description")
    status: Optional[str] = Field(None, description="Timeline status: completed, current, upcoming")
    # icon_card / numbered_card
    icon: Optional[str] = Field(None, description="Icon name for icon cards")
    bg_color: Optional[str] = Field(None, description="Icon card colour: pink, purple, blue, cyan, green, orange")
    number: Optional[int] = Field(None, description="Card number for numbered cards")


class Slide(BaseModel):
    """A generated slide: a fixed type, a layout variant and ordered blocks."""
    type: SlideType = Field(..., description="Slide type")
    layout_variant: str = Field("default", description="Layout variant label")
    blocks: List[Block] = Field(..., min_length=1, description="Ordered blocks")

    def first_block(self, kind: BlockKind) -> Optional[Block]:
        """Return the first block of the given kind, if any."""
        for block in self.blocks:
            if block.kind == kind:
                return block
        return None

    @property
    def title(self) -> str:
        block = self.first_block(BlockKind.TITLE)
        return (block.text or "") if block else ""


class SplitResult(BaseModel):
    """Replacement slides produced when an overloaded slide is split."""
    slides: List[Slide] = Field(..., min_length=2, max_length=4)


# =========================================================================
# OUTLINES
# =========================================================================

OUTLINE_TITLE_MAX = 100
OUTLINE_HINTS_MAX = 3
OUTLINE_HINT_CHARS_MAX = 100
OUTLINE_SLIDES_MAX = 50


class OutlineSlide(BaseModel):
    """A planned slide: title, optional suggested type, up to three hints."""
    title: str = Field(..., min_length=1, max_length=OUTLINE_TITLE_MAX)
    suggested_type: Optional[SlideType] = Field(None, description="Suggested slide type")
    hints: List[str] = Field(default_factory=list, max_length=OUTLINE_HINTS_MAX)

    @property
    def effective_type(self) -> SlideType:
        """Suggested type, with a missing type counted as bullets."""
        return self.suggested_type or SlideType.BULLETS


class Outline(BaseModel):
    """Ordered list of planned slides before content is written."""
    title: str = Field(..., min_length=1, max_length=OUTLINE_TITLE_MAX)
    slides: List[OutlineSlide] = Field(..., min_length=1, max_length=OUTLINE_SLIDES_MAX)


class LenientOutlineSlide(BaseModel):
    """Outline slide as the model tends to produce it, before sanitizing."""
    title: str = Field(..., min_length=1, max_length=200)
    suggested_type: Optional[SlideType] = None
    hints: List[Annotated[str, Field(max_length=200)]] = Field(default_factory=list, max_length=10)


class LenientOutline(BaseModel):
    """Outline with relaxed limits; see sanitize_outline()."""
    title: str = Field(..., min_length=1, max_length=200)
    slides: List[LenientOutlineSlide] = Field(..., min_length=1, max_length=OUTLINE_SLIDES_MAX)


def sanitize_outline(raw: LenientOutline) -> Outline:
    """
    Truncate a lenient outline to the strict outline limits.

    Args:
        raw: Outline accepted with relaxed limits

    Returns:
        Outline within the strict title/hint limits
    """
    return Outline(
        title=raw.title[:OUTLINE_TITLE_MAX],
        slides=[
            OutlineSlide(
                title=slide.title[:OUTLINE_TITLE_MAX],
                suggested_type=slide.suggested_type,
                hints=[hint[:OUTLINE_HINT_CHARS_MAX] for hint in slide.hints[:OUTLINE_HINTS_MAX]],
            )
            for slide in raw.slides
        ],
    )
