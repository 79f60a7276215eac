"""
Tests for the Deck Composer

Cover, agenda and summary placement on outlines.
"""

import pytest

from deckforge.core.deck_composer import ComposerOptions, compose_deck, get_composer_stats
from deckforge.models.slide import Outline, OutlineSlide, SlideType


def make_outline(*types, title="Kvartalsrapport"):
    return Outline(
        title=title,
        slides=[
            OutlineSlide(title=f"Lysbilde {i + 1}", suggested_type=slide_type)
            for i, slide_type in enumerate(types)
        ],
    )


def test_short_outline_gets_cover_and_summary_only():
    outline = make_outline(SlideType.BULLETS, SlideType.BULLETS, SlideType.TEXT_PLUS_IMAGE)
    composed = compose_deck(outline)

    types = [s.suggested_type for s in composed.slides]
    assert types[0] == SlideType.COVER
    assert composed.slides[0].title == "Kvartalsrapport"
    assert SlideType.AGENDA not in types
    assert types[-1] == SlideType.SUMMARY_NEXT_STEPS
    assert len(composed.slides) == 5


def test_long_outline_gets_agenda_after_cover():
    outline = make_outline(*[SlideType.BULLETS] * 6)
    composed = compose_deck(outline)

    agenda = composed.slides[1]
    assert agenda.suggested_type == SlideType.AGENDA
    assert agenda.hints == ["Lysbilde 1", "Lysbilde 2", "Lysbilde 3"]
    assert len(composed.slides) == 9


def test_agenda_can_be_disabled():
    outline = make_outline(*[SlideType.BULLETS] * 6)
    composed = compose_deck(outline, ComposerOptions(ensure_agenda=False))
    assert all(s.suggested_type != SlideType.AGENDA for s in composed.slides)


def test_misplaced_structural_slides_are_moved_not_duplicated():
    outline = make_outline(SlideType.BULLETS, SlideType.COVER, SlideType.SUMMARY_NEXT_STEPS, SlideType.BULLETS)
    composed = compose_deck(outline)

    types = [s.suggested_type for s in composed.slides]
    assert types == [SlideType.COVER, SlideType.BULLETS, SlideType.BULLETS, SlideType.SUMMARY_NEXT_STEPS]
    assert composed.slides[0].title == "Lysbilde 2"


def test_quote_callout_counts_as_summary():
    outline = make_outline(SlideType.COVER, SlideType.BULLETS, SlideType.QUOTE_CALLOUT)
    composed = compose_deck(outline)
    assert [s.suggested_type for s in composed.slides] == [
        SlideType.COVER, SlideType.BULLETS, SlideType.QUOTE_CALLOUT,
    ]


def test_agenda_is_moved_after_the_cover():
    outline = make_outline(
        SlideType.COVER, SlideType.BULLETS, SlideType.BULLETS, SlideType.AGENDA, SlideType.BULLETS, SlideType.BULLETS,
    )
    composed = compose_deck(outline)

    types = [s.suggested_type for s in composed.slides]
    assert types == [
        SlideType.COVER,
        SlideType.AGENDA,
        SlideType.BULLETS,
        SlideType.BULLETS,
        SlideType.BULLETS,
        SlideType.BULLETS,
        SlideType.SUMMARY_NEXT_STEPS,
    ]
    assert composed.slides[1].title == "Lysbilde 4"


@pytest.mark.parametrize("content_slides", range(13))
def test_composition_is_idempotent(content_slides):
    outline = make_outline(*[SlideType.BULLETS] * content_slides)
    once = compose_deck(outline)
    twice = compose_deck(once)
    assert twice.slides == once.slides


def test_agenda_threshold_counts_the_added_summary():
    # Cover, four content slides and the summary make six
    composed = compose_deck(make_outline(*[SlideType.BULLETS] * 4))
    assert composed.slides[1].suggested_type == SlideType.AGENDA
    assert len(composed.slides) == 7


def test_composer_stats():
    outline = make_outline(*[SlideType.BULLETS] * 6)
    composed = compose_deck(outline)

    stats = get_composer_stats(outline, composed)
    assert stats == {
        "added_cover": True,
        "added_agenda": True,
        "added_summary": True,
        "slides_added": 3,
    }
