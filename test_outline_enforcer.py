"""
Tests for the Outline Enforcer

Slide-count trimming/padding and slide-type distribution rules.
"""

import pytest

from deckforge.core.outline_enforcer import (
    STRUCTURAL_TYPES,
    ScoringContext,
    classify_audience,
    enforce_slide_count,
    enforce_slide_distribution,
    get_distribution_stats,
    select_premium_type,
)
from deckforge.models.analysis import Comparison, ContentAnalysis, Feature, ProcessStep
from deckforge.models.slide import Outline, OutlineSlide, SlideType

EMPTY_ANALYSIS = ContentAnalysis()


def make_outline(*types):
    return Outline(
        title="Prosjektstatus",
        slides=[
            OutlineSlide(title=f"Lysbilde {i + 1}", suggested_type=slide_type)
            for i, slide_type in enumerate(types)
        ],
    )


# =========================================================================
# Slide count
# =========================================================================

def test_count_unchanged_when_on_target():
    outline = make_outline(SlideType.COVER, SlideType.BULLETS, SlideType.SUMMARY_NEXT_STEPS)
    assert enforce_slide_count(outline, 3, EMPTY_ANALYSIS) is outline


def test_trim_removes_content_slides_from_the_tail():
    outline = make_outline(
        SlideType.COVER,
        *[SlideType.BULLETS] * 6,
        SlideType.SUMMARY_NEXT_STEPS,
    )
    trimmed = enforce_slide_count(outline, 5, EMPTY_ANALYSIS)

    assert [s.title for s in trimmed.slides] == [
        "Lysbilde 1", "Lysbilde 2", "Lysbilde 3", "Lysbilde 4", "Lysbilde 8",
    ]


def test_trim_never_removes_structural_slides():
    outline = make_outline(SlideType.COVER, SlideType.AGENDA, SlideType.SECTION_HEADER, SlideType.SUMMARY_NEXT_STEPS)
    trimmed = enforce_slide_count(outline, 2, EMPTY_ANALYSIS)
    assert len(trimmed.slides) == 4


def test_pad_inserts_before_trailing_summary():
    outline = make_outline(SlideType.COVER, SlideType.BULLETS, SlideType.SUMMARY_NEXT_STEPS)
    analysis = ContentAnalysis(statistics=["25%", "3 MNOK"])

    padded = enforce_slide_count(outline, 6, analysis)

    assert len(padded.slides) == 6
    assert padded.slides[-1].suggested_type == SlideType.SUMMARY_NEXT_STEPS
    assert padded.slides[2].title == "Viktige tall"
    assert padded.slides[2].suggested_type == SlideType.SUMMARY_WITH_STATS
    assert padded.slides[3].title == "Utdypende informasjon 2"
    assert padded.slides[4].suggested_type == SlideType.TEXT_PLUS_IMAGE


# =========================================================================
# Distribution
# =========================================================================

def test_short_decks_are_left_alone():
    outline = make_outline(SlideType.BULLETS, SlideType.BULLETS, SlideType.BULLETS)
    assert enforce_slide_distribution(outline, EMPTY_ANALYSIS) is outline


def test_bullet_heavy_deck_is_upgraded():
    outline = make_outline(
        SlideType.COVER,
        *[SlideType.BULLETS] * 5,
        SlideType.SUMMARY_NEXT_STEPS,
    )
    balanced = enforce_slide_distribution(outline, EMPTY_ANALYSIS)
    stats = get_distribution_stats(balanced)

    assert stats["total_slides"] == 7
    assert stats["bullet_like_count"] <= 2
    assert stats["premium_count"] >= 1
    assert balanced.slides[0].suggested_type == SlideType.COVER
    assert balanced.slides[-1].suggested_type == SlideType.SUMMARY_NEXT_STEPS
    # Only the later bullet slides are upgraded
    assert balanced.slides[1].suggested_type == SlideType.BULLETS


def test_premium_slide_added_near_the_middle():
    outline = make_outline(
        SlideType.COVER,
        SlideType.TWO_COLUMN_TEXT,
        SlideType.TWO_COLUMN_TEXT,
        SlideType.TWO_COLUMN_TEXT,
        SlideType.SUMMARY_NEXT_STEPS,
    )
    analysis = ContentAnalysis(statistics=["25%", "3 MNOK"])

    balanced = enforce_slide_distribution(outline, analysis)

    assert balanced.slides[2].suggested_type == SlideType.SUMMARY_WITH_STATS
    assert len(balanced.slides) == 5


def test_select_premium_type_prefers_strongest_signal():
    analysis = ContentAnalysis(
        statistics=["25%", "3 MNOK"],
        sequential_process=[
            ProcessStep(order=1, text="Planlegging"),
            ProcessStep(order=2, text="Utvikling"),
            ProcessStep(order=3, text="Lansering"),
        ],
    )

    assert select_premium_type(analysis, set()) == SlideType.SUMMARY_WITH_STATS
    assert select_premium_type(analysis, {SlideType.SUMMARY_WITH_STATS}) == SlideType.TIMELINE_ROADMAP


def test_select_premium_type_audience_modifier():
    analysis = ContentAnalysis(
        statistics=["25%", "3 MNOK"],
        sequential_process=[
            ProcessStep(order=1, text="Planlegging"),
            ProcessStep(order=2, text="Utvikling"),
            ProcessStep(order=3, text="Lansering"),
        ],
    )
    # Stats was just used, so technical audiences tip the balance to the timeline
    context = ScoringContext(
        slide_position=5,
        total_slides=12,
        recently_used_types=[SlideType.SUMMARY_WITH_STATS],
        audience="technical",
    )
    assert select_premium_type(analysis, set(), context) == SlideType.TIMELINE_ROADMAP


def test_select_premium_type_fallback():
    used = {SlideType.TEXT_PLUS_IMAGE}
    assert select_premium_type(EMPTY_ANALYSIS, used) == SlideType.NUMBERED_GRID


def test_classify_audience():
    assert classify_audience("Ledergruppen") == "executives"
    assert classify_audience("Utviklerteamet") == "technical"
    assert classify_audience("Alle ansatte") is None
    assert classify_audience(None) is None


# =========================================================================
# Invariants across outline shapes
# =========================================================================

OUTLINE_SHAPES = {
    "trailing_summary": [
        SlideType.COVER, SlideType.AGENDA, SlideType.BULLETS, SlideType.TEXT_PLUS_IMAGE,
        SlideType.BULLETS, SlideType.TWO_COLUMN_TEXT, SlideType.SUMMARY_NEXT_STEPS,
    ],
    "trailing_quote": [
        SlideType.COVER, SlideType.BULLETS, SlideType.NUMBERED_GRID, SlideType.BULLETS, SlideType.QUOTE_CALLOUT,
    ],
    "open_end": [
        SlideType.COVER, SlideType.BULLETS, None, SlideType.HERO_STATS, SlideType.BULLETS, SlideType.BULLETS,
    ],
    "sections": [
        SlideType.COVER, SlideType.SECTION_HEADER, SlideType.BULLETS, SlideType.SECTION_HEADER,
        SlideType.BULLETS, SlideType.SUMMARY_NEXT_STEPS,
    ],
}

RICH_ANALYSIS = ContentAnalysis(
    statistics=["25%", "3 MNOK"],
    features=[Feature(title="Rask", description="Svarer på sekunder"), Feature(title="Trygg", description="Data i Norge")],
    sequential_process=[
        ProcessStep(order=1, text="Kartlegging"),
        ProcessStep(order=2, text="Pilot"),
        ProcessStep(order=3, text="Utrulling"),
    ],
    comparisons=[Comparison(left="Før", right="Etter")],
)


def structural_titles(outline):
    return [s.title for s in outline.slides if s.effective_type in STRUCTURAL_TYPES]


@pytest.mark.parametrize("analysis", [EMPTY_ANALYSIS, RICH_ANALYSIS], ids=["empty", "signals"])
@pytest.mark.parametrize("shape", list(OUTLINE_SHAPES))
@pytest.mark.parametrize("target", range(4, 16))
def test_count_is_exact_for_every_shape(target, shape, analysis):
    outline = make_outline(*OUTLINE_SHAPES[shape])
    structural = structural_titles(outline)
    assert len(structural) <= 4

    result = enforce_slide_count(outline, target, analysis)

    assert len(result.slides) == target
    assert structural_titles(result) == structural
    assert result.slides[0].title == outline.slides[0].title
    if shape in ("trailing_summary", "trailing_quote"):
        assert result.slides[-1].title == outline.slides[-1].title

    # Distribution keeps the count
    balanced = enforce_slide_distribution(result, analysis)
    assert len(balanced.slides) == target


def test_protected_bullet_slides_are_kept_over_the_cap():
    outline = make_outline(
        SlideType.COVER,
        SlideType.ACTION_ITEMS_TABLE,
        SlideType.ACTION_ITEMS_TABLE,
        SlideType.ACTION_ITEMS_TABLE,
        SlideType.BULLETS,
        SlideType.BULLETS,
        SlideType.SUMMARY_NEXT_STEPS,
    )

    balanced = enforce_slide_distribution(outline, EMPTY_ANALYSIS)
    types = [s.suggested_type for s in balanced.slides]

    assert len(types) == 7
    assert types[:4] == [SlideType.COVER] + [SlideType.ACTION_ITEMS_TABLE] * 3
    assert types[-1] == SlideType.SUMMARY_NEXT_STEPS
    # The upgradeable slides go; the protected ones stay even though the cap is exceeded
    assert SlideType.BULLETS not in types
    assert get_distribution_stats(balanced)["bullet_like_count"] == 4


def test_all_protected_deck_is_left_unchanged():
    outline = make_outline(
        SlideType.COVER,
        *[SlideType.ACTION_ITEMS_TABLE] * 4,
        SlideType.SUMMARY_NEXT_STEPS,
    )

    balanced = enforce_slide_distribution(outline, RICH_ANALYSIS)

    assert [s.suggested_type for s in balanced.slides] == [s.suggested_type for s in outline.slides]
    assert get_distribution_stats(balanced)["premium_count"] == 0
