"""
Outline Enforcer

Two post-composition passes over an outline:

- Slide-count enforcement trims or pads a composed outline to an exact
  requested number of slides without touching structural slides.
- Distribution enforcement limits "bullet-like" slides to two per deck and
  guarantees at least one premium visual slide, picking replacement types by
  scoring candidates against the content analysis.

Neither pass ever adds structural slides; that is the composer's job.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from deckforge.models.analysis import ContentAnalysis
from deckforge.models.slide import Outline, OutlineSlide, SlideType
from deckforge.utils.logger import setup_logger

logger = setup_logger(__name__)

# =========================================================================
# Type sets
# =========================================================================

# Never removed by count enforcement
STRUCTURAL_TYPES = {
    SlideType.COVER,
    SlideType.AGENDA,
    SlideType.SUMMARY_NEXT_STEPS,
    SlideType.SECTION_HEADER,
    SlideType.QUOTE_CALLOUT,
}

# Bullet-like slides that may be upgraded
UPGRADEABLE_BULLET_TYPES = {SlideType.BULLETS, SlideType.AGENDA, SlideType.DECISIONS_LIST}

# Everything that looks like a list on screen, protected types included
VISUAL_BULLET_TYPES = UPGRADEABLE_BULLET_TYPES | {
    SlideType.ACTION_ITEMS_TABLE,
    SlideType.SUMMARY_NEXT_STEPS,
}

PREMIUM_TYPES = [
    SlideType.ICON_CARDS_WITH_IMAGE,
    SlideType.SUMMARY_WITH_STATS,
    SlideType.TIMELINE_ROADMAP,
    SlideType.HERO_STATS,
    SlideType.NUMBERED_GRID,
    SlideType.SPLIT_WITH_CALLOUTS,
    SlideType.PERSON_SPOTLIGHT,
    SlideType.TEXT_PLUS_IMAGE,
]

# Never auto-upgraded
PROTECTED_TYPES = {
    SlideType.COVER,
    SlideType.SECTION_HEADER,
    SlideType.SUMMARY_NEXT_STEPS,
    SlideType.QUOTE_CALLOUT,
    SlideType.ACTION_ITEMS_TABLE,
}

MAX_VISUAL_BULLET_SLIDES = 2
MIN_SLIDES_FOR_DISTRIBUTION = 4
MIN_SLIDES_FOR_PREMIUM = 5

FALLBACK_PREMIUM_TYPES = [
    SlideType.TEXT_PLUS_IMAGE,
    SlideType.NUMBERED_GRID,
    SlideType.ICON_CARDS_WITH_IMAGE,
]

AUDIENCE_KEYWORDS = {
    "executives": ("executive", "leder", "ledelse", "styre"),
    "technical": ("technical", "teknisk", "utvikler"),
}


# =========================================================================
# Slide-count enforcement
# =========================================================================

def enforce_slide_count(outline: Outline, target: int, analysis: ContentAnalysis) -> Outline:
    """
    Trim or pad a composed outline to exactly `target` slides.

    Trimming removes non-structural slides from the tail inward. Padding
    inserts content slides derived from the analysis before a trailing
    summary. If not enough removable slides exist the outline is returned as
    close to the target as possible and the mismatch is logged.

    Args:
        outline: Composed outline
        target: Requested slide count
        analysis: Content analysis used to pick padding slides

    Returns:
        New outline
    """
    current = len(outline.slides)

    if current == target:
        logger.debug(f"Slide count already correct: {current}")
        return outline

    if current > target:
        logger.info(f"Trimming {current - target} slides to reach {target}")
        result = _trim_outline(outline, target)
    else:
        logger.info(f"Padding {target - current} slides to reach {target}")
        result = _pad_outline(outline, target, analysis)

    if len(result.slides) != target:
        logger.warning(
            f"Count enforcement could not reach target: wanted {target}, got {len(result.slides)} "
            f"(only structural slides left to remove)"
        )
    return result


def _trim_outline(outline: Outline, target: int) -> Outline:
    excess = len(outline.slides) - target
    removable = [
        index
        for index in range(len(outline.slides) - 1, -1, -1)
        if outline.slides[index].effective_type not in STRUCTURAL_TYPES
    ][:excess]

    removed = set(removable)
    slides = [slide for index, slide in enumerate(outline.slides) if index not in removed]
    logger.debug(f"Trimmed {len(removed)} content slides")
    return outline.model_copy(update={"slides": slides})


def _padding_candidates(analysis: ContentAnalysis, needed: int) -> List[OutlineSlide]:
    candidates: List[OutlineSlide] = []

    if len(analysis.features) >= 2:
        candidates.append(OutlineSlide(
            title="Nøkkelfunksjoner",
            suggested_type=SlideType.ICON_CARDS_WITH_IMAGE,
            hints=[f.title[:100] for f in analysis.features[:3]],
        ))
    if len(analysis.statistics) >= 2:
        candidates.append(OutlineSlide(
            title="Viktige tall",
            suggested_type=SlideType.SUMMARY_WITH_STATS,
            hints=[s[:100] for s in analysis.statistics[:3]],
        ))
    if len(analysis.sequential_process) >= 3:
        candidates.append(OutlineSlide(
            title="Prosess og milepæler",
            suggested_type=SlideType.TIMELINE_ROADMAP,
            hints=[step.text[:60] for step in analysis.sequential_process[:3]],
        ))
    if analysis.comparisons:
        candidates.append(OutlineSlide(
            title="Sammenligning",
            suggested_type=SlideType.TWO_COLUMN_TEXT,
            hints=["Alternativ A", "Alternativ B"],
        ))

    candidates = candidates[:needed]
    while len(candidates) < needed:
        candidates.append(OutlineSlide(
            title=f"Utdypende informasjon {len(candidates) + 1}",
            suggested_type=SlideType.TEXT_PLUS_IMAGE,
            hints=["Detaljer", "Kontekst", "Eksempler"],
        ))
    return candidates


def _pad_outline(outline: Outline, target: int, analysis: ContentAnalysis) -> Outline:
    needed = target - len(outline.slides)
    slides = list(outline.slides)

    last_is_summary = bool(slides) and slides[-1].suggested_type in (
        SlideType.SUMMARY_NEXT_STEPS,
        SlideType.QUOTE_CALLOUT,
    )
    insertion_index = len(slides) - 1 if last_is_summary else len(slides)

    additions = _padding_candidates(analysis, needed)
    slides[insertion_index:insertion_index] = additions

    logger.debug(f"Added {needed} slides: {', '.join(s.effective_type.value for s in additions)}")
    return outline.model_copy(update={"slides": slides})


# =========================================================================
# Distribution enforcement
# =========================================================================

@dataclass
class ScoringContext:
    """Where a replacement type would land, used to adjust candidate scores."""
    slide_position: int
    total_slides: int
    recently_used_types: List[SlideType] = field(default_factory=list)
    audience: Optional[str] = None


def classify_audience(audience: Optional[str]) -> Optional[str]:
    """Map a free-text audience description to 'executives', 'technical' or None."""
    if not audience:
        return None
    lowered = audience.lower()
    for label, keywords in AUDIENCE_KEYWORDS.items():
        if any(keyword in lowered for keyword in keywords):
            return label
    return None


def apply_score_modifiers(slide_type: SlideType, base_score: float, context: Optional[ScoringContext]) -> float:
    if context is None:
        return base_score

    score = base_score
    is_premium = slide_type in PREMIUM_TYPES

    if slide_type in context.recently_used_types:
        score *= 0.8

    # Decks need some variety before the first premium slide
    if context.slide_position <= 2 and is_premium:
        score *= 0.7

    if context.audience == "executives":
        if slide_type in (SlideType.SUMMARY_WITH_STATS, SlideType.HERO_STATS):
            score *= 1.3
    elif context.audience == "technical":
        if slide_type in (SlideType.TIMELINE_ROADMAP, SlideType.NUMBERED_GRID):
            score *= 1.2

    if context.slide_position >= context.total_slides - 3 and is_premium:
        score *= 1.1

    return score


def select_premium_type(
    analysis: ContentAnalysis,
    used_types: Set[SlideType],
    context: Optional[ScoringContext] = None,
    premium_only: bool = False,
) -> SlideType:
    """
    Pick the best replacement type for a bullet-like slide.

    Candidates earn a base score from content signals, adjusted by the
    scoring context. Types already present in the deck are skipped. Ties keep
    declaration order.

    Args:
        analysis: Content analysis
        used_types: Types already present in the outline
        context: Position and audience for score modifiers
        premium_only: Only consider premium visual types

    Returns:
        Selected slide type
    """
    base_scores: Dict[SlideType, float] = {}
    steps = analysis.sequential_process

    if len(analysis.statistics) >= 2:
        base_scores[SlideType.SUMMARY_WITH_STATS] = 100
    if len(steps) >= 3:
        base_scores[SlideType.TIMELINE_ROADMAP] = 90
    if len(analysis.features) >= 2:
        base_scores[SlideType.ICON_CARDS_WITH_IMAGE] = 85
    if analysis.comparisons:
        base_scores[SlideType.TWO_COLUMN_TEXT] = 70
    if analysis.quotes:
        base_scores[SlideType.QUOTE_CALLOUT] = 60
    if 2 <= len(steps) <= 4 and sum(len(s.text) for s in steps) / len(steps) < 60:
        base_scores[SlideType.NUMBERED_GRID] = 75

    candidates = [
        (slide_type, apply_score_modifiers(slide_type, score, context))
        for slide_type, score in base_scores.items()
        if slide_type not in used_types and (not premium_only or slide_type in PREMIUM_TYPES)
    ]
    candidates.sort(key=lambda candidate: candidate[1], reverse=True)

    if candidates:
        return candidates[0][0]

    for fallback in FALLBACK_PREMIUM_TYPES:
        if fallback not in used_types:
            return fallback

    return SlideType.TEXT_PLUS_IMAGE


def _visual_bullet_count(slides: List[OutlineSlide]) -> int:
    return sum(1 for slide in slides if slide.effective_type in VISUAL_BULLET_TYPES)


def enforce_slide_distribution(
    outline: Outline,
    analysis: ContentAnalysis,
    audience: Optional[str] = None,
) -> Outline:
    """
    Rebalance the slide-type mix of an outline.

    Rules:
    1. At most two visually bullet-like slides; excess upgradeable ones are
       upgraded from the end of the deck backwards. Protected types count
       toward the cap but are never changed.
    2. Decks with 5+ slides get at least one premium visual slide.

    Slide count never changes. Decks under four slides are left alone.

    Args:
        outline: Count-enforced outline
        analysis: Content analysis
        audience: Free-text audience description

    Returns:
        New outline
    """
    if len(outline.slides) < MIN_SLIDES_FOR_DISTRIBUTION:
        logger.debug("Skipping distribution enforcement for short deck")
        return outline

    slides = list(outline.slides)
    total = len(slides)
    audience_label = classify_audience(audience)
    used_types: Set[SlideType] = {slide.effective_type for slide in slides}
    recently_used: List[SlideType] = [slide.effective_type for slide in slides]
    changes: List[str] = []

    def context_for(position: int) -> ScoringContext:
        return ScoringContext(
            slide_position=position,
            total_slides=total,
            recently_used_types=recently_used[-3:],
            audience=audience_label,
        )

    def upgrade(index: int, premium_only: bool = False) -> SlideType:
        current = slides[index].effective_type
        new_type = select_premium_type(analysis, used_types, context_for(index), premium_only)
        slides[index] = slides[index].model_copy(update={"suggested_type": new_type})
        used_types.add(new_type)
        recently_used.append(new_type)
        changes.append(f"Slide {index + 1}: {current.value} -> {new_type.value}")
        return new_type

    # Rule 1: cap visual bullet-like slides
    excess = _visual_bullet_count(slides) - MAX_VISUAL_BULLET_SLIDES
    if excess > 0:
        logger.info(
            f"Found {excess + MAX_VISUAL_BULLET_SLIDES} bullet-like slides "
            f"(max {MAX_VISUAL_BULLET_SLIDES}), upgrading {excess}"
        )
        upgradeable = [
            index
            for index, slide in enumerate(slides)
            if index != 0 and slide.effective_type in UPGRADEABLE_BULLET_TYPES
        ]
        for index in upgradeable[-excess:]:
            upgrade(index)

        remaining = _visual_bullet_count(slides)
        if remaining > MAX_VISUAL_BULLET_SLIDES:
            logger.warning(
                f"Still {remaining} bullet-like slides, "
                f"{remaining - MAX_VISUAL_BULLET_SLIDES} of them are protected types"
            )

    # Rule 2: at least one premium slide
    if total >= MIN_SLIDES_FOR_PREMIUM and not any(s.effective_type in PREMIUM_TYPES for s in slides):
        middle = total // 2
        for index in (middle, middle - 1, middle + 1):
            if not 0 < index < total - 1:
                continue
            current = slides[index].effective_type
            if current not in PROTECTED_TYPES and current not in PREMIUM_TYPES:
                upgrade(index, premium_only=True)
                break
        else:
            logger.warning("No upgradeable slide near the middle of the deck for a premium slide")

    if changes:
        logger.info(f"Distribution changes: {'; '.join(changes)}")
    else:
        logger.debug("Distribution already balanced")

    return outline.model_copy(update={"slides": slides})


def count_slide_types(outline: Outline) -> Dict[SlideType, int]:
    counts: Dict[SlideType, int] = {}
    for slide in outline.slides:
        counts[slide.effective_type] = counts.get(slide.effective_type, 0) + 1
    return counts


def get_distribution_stats(outline: Outline) -> dict:
    counts = count_slide_types(outline)
    return {
        "total_slides": len(outline.slides),
        "bullet_like_count": sum(n for t, n in counts.items() if t in VISUAL_BULLET_TYPES),
        "premium_count": sum(n for t, n in counts.items() if t in PREMIUM_TYPES),
        "unique_types": len(counts),
    }
