"""
Deck Composer

Adds the structural slides every deck needs before content is written:
a cover first, an agenda after the cover for longer decks, and a summary
last. Composition is idempotent: structural slides are looked for anywhere in
the outline, and a misplaced one is moved instead of duplicated.
"""

from dataclasses import dataclass
from typing import List

from deckforge.models.slide import Outline, OutlineSlide, SlideType
from deckforge.utils.logger import setup_logger

logger = setup_logger(__name__)

SUMMARY_TYPES = (SlideType.SUMMARY_NEXT_STEPS, SlideType.QUOTE_CALLOUT)

# Slides the agenda should not list
AGENDA_EXCLUDED_TYPES = (
    SlideType.COVER,
    SlideType.AGENDA,
    SlideType.SUMMARY_NEXT_STEPS,
    SlideType.SECTION_HEADER,
)


@dataclass
class ComposerOptions:
    ensure_cover: bool = True
    ensure_agenda: bool = True
    ensure_summary: bool = True
    max_slides_without_agenda: int = 5


def _is_cover(slide: OutlineSlide) -> bool:
    return slide.suggested_type == SlideType.COVER


def _is_agenda(slide: OutlineSlide) -> bool:
    return slide.suggested_type == SlideType.AGENDA


def _is_summary(slide: OutlineSlide) -> bool:
    return slide.suggested_type in SUMMARY_TYPES


def create_cover_slide(title: str) -> OutlineSlide:
    return OutlineSlide(
        title=title,
        suggested_type=SlideType.COVER,
        hints=["Hovedtittel", "Undertittel eller dato"],
    )


def create_agenda_slide(slides: List[OutlineSlide]) -> OutlineSlide:
    """Agenda whose hints are the first three content slide titles."""
    hints = [
        slide.title
        for slide in slides
        if slide.effective_type not in AGENDA_EXCLUDED_TYPES
    ][:3]
    hints = [hint for hint in hints if len(hint) < 100]

    return OutlineSlide(
        title="Agenda",
        suggested_type=SlideType.AGENDA,
        hints=hints or ["Oversikt over presentasjonen"],
    )


def create_summary_slide() -> OutlineSlide:
    return OutlineSlide(
        title="Oppsummering og neste steg",
        suggested_type=SlideType.SUMMARY_NEXT_STEPS,
        hints=["Hovedkonklusjoner", "Neste steg", "Ansvarlige"],
    )


def compose_deck(outline: Outline, options: ComposerOptions = None) -> Outline:
    """
    Ensure cover, agenda and summary slides exist in their canonical positions.

    Args:
        outline: Outline as generated or supplied
        options: Which structural slides to ensure

    Returns:
        New outline; content slides keep their relative order
    """
    options = options or ComposerOptions()
    slides = list(outline.slides)

    # 1. Cover first
    if options.ensure_cover:
        cover_index = next((i for i, s in enumerate(slides) if _is_cover(s)), None)
        if cover_index is None:
            slides.insert(0, create_cover_slide(outline.title))
        elif cover_index > 0:
            slides.insert(0, slides.pop(cover_index))

    # 2. Summary last
    if options.ensure_summary:
        summary_index = next((i for i, s in enumerate(slides) if _is_summary(s)), None)
        if summary_index is None:
            slides.append(create_summary_slide())
        elif not _is_summary(slides[-1]):
            slides.append(slides.pop(summary_index))

    # 3. Agenda right after the cover; the threshold is checked on the final length
    agenda_position = 1 if slides and _is_cover(slides[0]) else 0
    agenda_index = next((i for i, s in enumerate(slides) if _is_agenda(s)), None)
    if agenda_index is not None:
        if agenda_index != agenda_position:
            slides.insert(agenda_position, slides.pop(agenda_index))
    elif options.ensure_agenda and len(slides) > options.max_slides_without_agenda:
        slides.insert(agenda_position, create_agenda_slide(slides))

    return outline.model_copy(update={"slides": slides})


def get_composer_stats(original: Outline, composed: Outline) -> dict:
    """Report which structural slides composition added."""
    def has_cover(o: Outline) -> bool:
        return bool(o.slides) and _is_cover(o.slides[0])

    def has_agenda(o: Outline) -> bool:
        return any(_is_agenda(s) for s in o.slides)

    def has_summary(o: Outline) -> bool:
        return bool(o.slides) and _is_summary(o.slides[-1])

    return {
        "added_cover": not has_cover(original) and has_cover(composed),
        "added_agenda": not has_agenda(original) and has_agenda(composed),
        "added_summary": not has_summary(original) and has_summary(composed),
        "slides_added": len(composed.slides) - len(original.slides),
    }
