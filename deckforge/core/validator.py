"""
Slide Validator

Checks generated slides against their type's constraints, the count promised
in the title, and a content-density heuristic. Violations are returned as
data for the repair engine; nothing here raises.
"""

from typing import List, Optional

from deckforge.core.constraints import (
    SlideContent,
    extract_number_from_title,
    extract_slide_content,
    validate_slide_constraints,
)
from deckforge.models.slide import BlockKind, Slide, SlideType
from deckforge.models.validation import (
    ConstraintViolation,
    DeckValidationResult,
    SlideValidationResult,
)

# Slide types whose title may promise a number of items
COUNTABLE_ITEM_SLIDE_TYPES = {
    SlideType.BULLETS,
    SlideType.DECISIONS_LIST,
    SlideType.ICON_CARDS_WITH_IMAGE,
    SlideType.NUMBERED_GRID,
    SlideType.TIMELINE_ROADMAP,
    SlideType.SPLIT_WITH_CALLOUTS,
    SlideType.SUMMARY_NEXT_STEPS,
    SlideType.AGENDA,
}

# Approximate character capacity of each layout
LAYOUT_CAPACITY = {
    SlideType.COVER: 180,
    SlideType.AGENDA: 500,
    SlideType.SECTION_HEADER: 160,
    SlideType.BULLETS: 600,
    SlideType.TWO_COLUMN_TEXT: 700,
    SlideType.TEXT_PLUS_IMAGE: 500,
    SlideType.DECISIONS_LIST: 600,
    SlideType.ACTION_ITEMS_TABLE: 500,
    SlideType.SUMMARY_NEXT_STEPS: 550,
    SlideType.QUOTE_CALLOUT: 400,
    SlideType.TIMELINE_ROADMAP: 500,
    SlideType.NUMBERED_GRID: 480,
    SlideType.ICON_CARDS_WITH_IMAGE: 480,
    SlideType.SUMMARY_WITH_STATS: 500,
    SlideType.HERO_STATS: 400,
    SlideType.SPLIT_WITH_CALLOUTS: 450,
    SlideType.PERSON_SPOTLIGHT: 400,
}

DEFAULT_CAPACITY = 400
IMAGE_DENSITY_BONUS = 150
MIN_DENSITY_THRESHOLD = 0.35


def validate_title_count_consistency(slide: Slide, content: SlideContent) -> Optional[ConstraintViolation]:
    """A title like "Fire fordeler" must be followed by exactly four items."""
    if slide.type not in COUNTABLE_ITEM_SLIDE_TYPES or not content.title:
        return None

    title_number = extract_number_from_title(content.title)
    if title_number is None:
        return None

    if content.bullets:
        actual = len(content.bullets)
    elif content.items:
        actual = len(content.items)
    else:
        return None

    if title_number == actual:
        return None

    return ConstraintViolation(
        field="title_count_mismatch",
        message=f"Title mentions {title_number} items but slide has {actual}",
        current=actual,
        limit=title_number,
        action="adjust_title",
    )


def calculate_content_density(slide: Slide) -> float:
    """Characters on the slide relative to its layout capacity (can exceed 1.0)."""
    total = extract_slide_content(slide).total_chars()
    if any(block.kind == BlockKind.IMAGE and block.url for block in slide.blocks):
        total += IMAGE_DENSITY_BONUS
    return total / LAYOUT_CAPACITY.get(slide.type, DEFAULT_CAPACITY)


def validate_content_density(slide: Slide) -> Optional[ConstraintViolation]:
    density = calculate_content_density(slide)
    if density >= MIN_DENSITY_THRESHOLD:
        return None

    percent_filled = round(density * 100)
    min_percent = round(MIN_DENSITY_THRESHOLD * 100)
    return ConstraintViolation(
        field="content_density",
        message=f"Slide appears sparse ({percent_filled}% filled, recommend at least {min_percent}%)",
        current=percent_filled,
        limit=min_percent,
        action="expand",
    )


def validate_slide(slide: Slide, slide_index: int = 0, check_density: bool = True) -> SlideValidationResult:
    """
    Validate one slide.

    Args:
        slide: Slide to check
        slide_index: Index reported back in the result
        check_density: Also flag sparse slides

    Returns:
        SlideValidationResult, valid when it has no violations
    """
    content = extract_slide_content(slide)
    violations = validate_slide_constraints(slide.type, content)

    title_violation = validate_title_count_consistency(slide, content)
    if title_violation:
        violations.append(title_violation)

    if check_density:
        density_violation = validate_content_density(slide)
        if density_violation:
            violations.append(density_violation)

    return SlideValidationResult(slide_index=slide_index, violations=violations)


def validate_slides(slides: List[Slide]) -> DeckValidationResult:
    results = [validate_slide(slide, index) for index, slide in enumerate(slides)]
    total = sum(len(result.violations) for result in results)
    return DeckValidationResult(is_valid=total == 0, slide_results=results, total_violations=total)


def should_split(violations: List[ConstraintViolation]) -> bool:
    """Split when a violation asks for it or there are too many to shorten."""
    return any(v.action == "split" for v in violations) or len(violations) >= 3
