"""
Layout Assigner
===============

Chooses a layout variant for each slide.

Two levels:
- Content-based: a small decision table per slide type maps content shape
  (item count, character count, image presence, bullet length) to a variant.
- Context-aware: a LayoutContext tracks the last two variants per slide type
  and the previous slide. Side-by-side types flip left/right when the same
  type repeats; other types avoid a variant used in the last two slides of
  that type when a fresh one exists.

Usage:
    context = LayoutContext(total_slides=len(slides))
    for slide in slides:
        variant = assign_layout_variant_with_context(slide, context)
        context.record(slide.type, variant)
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional

from deckforge.models.slide import BlockKind, Slide, SlideType
from deckforge.utils.logger import setup_logger

logger = setup_logger(__name__)


LAYOUT_VARIANTS: Dict[SlideType, List[str]] = {
    SlideType.COVER: ["default", "centered", "bottom_aligned"],
    SlideType.AGENDA: ["default", "numbered", "icons"],
    SlideType.SECTION_HEADER: ["default", "large", "subtle"],
    SlideType.BULLETS: ["default", "compact", "expanded", "two_columns"],
    SlideType.TWO_COLUMN_TEXT: ["default", "text_left", "text_right", "equal"],
    SlideType.TEXT_PLUS_IMAGE: ["default", "image_left", "image_right", "image_background"],
    SlideType.DECISIONS_LIST: ["default", "numbered", "icons"],
    SlideType.ACTION_ITEMS_TABLE: ["default", "compact", "detailed"],
    SlideType.SUMMARY_NEXT_STEPS: ["default", "numbered", "timeline"],
    SlideType.QUOTE_CALLOUT: ["default", "large", "subtle", "centered"],
    SlideType.TIMELINE_ROADMAP: ["default", "vertical", "horizontal", "compact"],
    SlideType.NUMBERED_GRID: ["default", "2x2", "3x1", "4x1"],
    SlideType.ICON_CARDS_WITH_IMAGE: ["default", "cards_left", "cards_right", "cards_top"],
    SlideType.SUMMARY_WITH_STATS: ["default", "stats_bottom", "stats_right", "stats_inline"],
    SlideType.HERO_STATS: ["default", "hero_top", "hero_background", "hero_split"],
    SlideType.SPLIT_WITH_CALLOUTS: ["default", "image_left", "image_right"],
    SlideType.PERSON_SPOTLIGHT: ["default", "centered", "side_by_side"],
}

# Side-by-side layouts that alternate when the same type repeats
ALTERNATING_TYPES = {
    SlideType.TEXT_PLUS_IMAGE,
    SlideType.SPLIT_WITH_CALLOUTS,
    SlideType.ICON_CARDS_WITH_IMAGE,
}

OPPOSITE_VARIANTS = {
    "image_left": "image_right",
    "image_right": "image_left",
    "cards_left": "cards_right",
    "cards_right": "cards_left",
    "text_left": "text_right",
    "text_right": "text_left",
}

RECENT_VARIANTS_PER_TYPE = 2


@dataclass
class LayoutContext:
    """Per-run layout state. Create one per deck and discard it afterwards."""
    total_slides: int = 0
    slide_index: int = 0
    used_variants: Dict[SlideType, Deque[str]] = field(default_factory=dict)
    previous_variant: Optional[str] = None
    previous_type: Optional[SlideType] = None

    def recent_variants(self, slide_type: SlideType) -> List[str]:
        return list(self.used_variants.get(slide_type, ()))

    def record(self, slide_type: SlideType, variant: str) -> None:
        """Remember the variant assigned to the slide just processed."""
        recent = self.used_variants.setdefault(slide_type, deque(maxlen=RECENT_VARIANTS_PER_TYPE))
        recent.append(variant)
        self.previous_variant = variant
        self.previous_type = slide_type
        self.slide_index += 1


# =========================================================================
# Content measurements
# =========================================================================

def _count_total_chars(slide: Slide) -> int:
    total = 0
    for block in slide.blocks:
        if block.kind in (BlockKind.TITLE, BlockKind.TEXT, BlockKind.CALLOUT):
            total += len(block.text or "")
        elif block.kind == BlockKind.BULLETS:
            total += sum(len(item) for item in block.items or [])
        elif block.kind == BlockKind.TABLE:
            total += sum(len(cell) for row in block.rows or [] for cell in row)
    return total


def _first(slide: Slide, kind: BlockKind):
    return slide.first_block(kind)


def _bullet_items(slide: Slide) -> List[str]:
    block = _first(slide, BlockKind.BULLETS)
    return list(block.items or []) if block else []


def _count_kind(slide: Slide, kind: BlockKind) -> int:
    return sum(1 for block in slide.blocks if block.kind == kind)


def _has_image(slide: Slide) -> bool:
    return _count_kind(slide, BlockKind.IMAGE) > 0


def _text_length(slide: Slide) -> int:
    block = _first(slide, BlockKind.TEXT)
    return len(block.text or "") if block else 0


def _has_long_bullets(items: List[str]) -> bool:
    if not items:
        return False
    return sum(len(item) for item in items) / len(items) > 50


# =========================================================================
# Content-based assignment
# =========================================================================

def assign_layout_variant(slide: Slide) -> str:
    """Pick a variant from the slide's content alone."""
    total_chars = _count_total_chars(slide)
    bullets = _bullet_items(slide)
    bullet_count = len(bullets)
    long_bullets = _has_long_bullets(bullets)
    slide_type = slide.type

    if slide_type == SlideType.COVER:
        subtitle_length = _text_length(slide)
        if subtitle_length > 80:
            return "bottom_aligned"
        if total_chars < 50 and subtitle_length == 0:
            return "centered"
        return "default"

    if slide_type == SlideType.AGENDA:
        return "numbered" if bullet_count > 5 else "default"

    if slide_type == SlideType.SECTION_HEADER:
        if total_chars < 40:
            return "large"
        if total_chars > 100:
            return "subtle"
        return "default"

    if slide_type == SlideType.BULLETS:
        if bullet_count >= 6 or total_chars > 500:
            return "two_columns"
        if bullet_count <= 3 and not long_bullets:
            return "compact"
        if long_bullets:
            return "expanded"
        return "default"

    if slide_type == SlideType.TWO_COLUMN_TEXT:
        return "equal"

    if slide_type == SlideType.TEXT_PLUS_IMAGE:
        if _text_length(slide) > 400:
            return "image_left"
        if _has_image(slide):
            return "image_right"
        return "default"

    if slide_type == SlideType.DECISIONS_LIST:
        return "numbered" if bullet_count > 3 else "icons"

    if slide_type == SlideType.ACTION_ITEMS_TABLE:
        table = _first(slide, BlockKind.TABLE)
        row_count = len(table.rows or []) if table else 0
        if row_count <= 4:
            return "compact"
        if row_count >= 7:
            return "detailed"
        return "default"

    if slide_type == SlideType.SUMMARY_NEXT_STEPS:
        return "timeline" if bullet_count >= 4 else "numbered"

    if slide_type == SlideType.QUOTE_CALLOUT:
        if total_chars < 100:
            return "large"
        if total_chars < 200:
            return "centered"
        return "default"

    if slide_type == SlideType.TIMELINE_ROADMAP:
        steps = _count_kind(slide, BlockKind.TIMELINE_STEP)
        if steps <= 3:
            return "horizontal"
        if steps >= 6:
            return "compact"
        return "vertical"

    if slide_type == SlideType.NUMBERED_GRID:
        cards = _count_kind(slide, BlockKind.NUMBERED_CARD)
        if cards == 4:
            return "2x2"
        if cards == 3:
            return "3x1"
        return "4x1"

    if slide_type == SlideType.ICON_CARDS_WITH_IMAGE:
        return "cards_left" if _has_image(slide) else "cards_top"

    if slide_type == SlideType.SUMMARY_WITH_STATS:
        stats = _count_kind(slide, BlockKind.STAT_BLOCK)
        if stats <= 2:
            return "stats_inline"
        if stats >= 4:
            return "stats_bottom"
        return "stats_right"

    if slide_type == SlideType.HERO_STATS:
        stats = _count_kind(slide, BlockKind.STAT_BLOCK)
        if stats >= 4:
            return "hero_split"
        if stats <= 2:
            return "hero_background"
        return "hero_top"

    if slide_type == SlideType.SPLIT_WITH_CALLOUTS:
        return "image_left" if _has_image(slide) else "image_right"

    if slide_type == SlideType.PERSON_SPOTLIGHT:
        if _count_kind(slide, BlockKind.BULLETS) > 0 and total_chars > 300:
            return "side_by_side"
        return "centered"

    return "default"


# =========================================================================
# Context-aware assignment
# =========================================================================

def _select_with_alternation(candidates: List[str], context: LayoutContext, slide_type: SlideType) -> Optional[str]:
    if context.previous_type != slide_type or not context.previous_variant:
        return None
    opposite = OPPOSITE_VARIANTS.get(context.previous_variant)
    if opposite and opposite in candidates:
        return opposite
    return None


def _select_with_variation(
    candidates: List[str],
    context: LayoutContext,
    slide_type: SlideType,
    content_choice: str,
) -> str:
    recent = context.recent_variants(slide_type)
    if content_choice not in recent:
        return content_choice

    fresh = [variant for variant in candidates if variant not in recent]
    if fresh:
        return fresh[0]

    # Every variant was used recently; repetition beats an arbitrary pick
    return content_choice


def assign_layout_variant_with_context(slide: Slide, context: LayoutContext) -> str:
    """
    Pick a variant, varying it against what earlier slides of the deck used.

    Does not update the context; call context.record() afterwards.
    """
    candidates = LAYOUT_VARIANTS.get(slide.type, ["default"])
    content_choice = assign_layout_variant(slide)

    if slide.type in ALTERNATING_TYPES:
        alternate = _select_with_alternation(candidates, context, slide.type)
        if alternate:
            return alternate

    return _select_with_variation(candidates, context, slide.type, content_choice)


def assign_layout_variants(slides: List[Slide]) -> List[Slide]:
    """Content-based variants for every slide, no cross-slide context."""
    return [slide.model_copy(update={"layout_variant": assign_layout_variant(slide)}) for slide in slides]


def assign_layout_variants_with_context(slides: List[Slide], context: Optional[LayoutContext] = None) -> List[Slide]:
    """
    Context-aware variants for a whole deck, in slide order.

    Args:
        slides: Finished slides
        context: Layout context for this run; a fresh one is created if omitted

    Returns:
        New slides with layout_variant set
    """
    context = context or LayoutContext(total_slides=len(slides))
    result = []

    for slide in slides:
        variant = assign_layout_variant_with_context(slide, context)
        result.append(slide.model_copy(update={"layout_variant": variant}))
        context.record(slide.type, variant)

    logger.debug(f"Assigned layout variants: {[s.layout_variant for s in result]}")
    return result
