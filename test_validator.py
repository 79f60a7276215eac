"""
Tests for slide validation

Per-type limits, title/count consistency and content density.
"""

from deckforge.core.constraints import extract_number_from_title, extract_slide_content, text_field_positions
from deckforge.core.validator import (
    calculate_content_density,
    should_split,
    validate_slide,
    validate_slides,
)
from deckforge.models.slide import Block, BlockKind, Slide, SlideType
from deckforge.models.validation import ConstraintViolation

BULLET = "Vi har redusert ventetiden for kundene med nesten en tredjedel i år"


def bullets_slide(title="Resultater fra året", items=None):
    return Slide(
        type=SlideType.BULLETS,
        blocks=[
            Block(kind=BlockKind.TITLE, text=title),
            Block(kind=BlockKind.BULLETS, items=items if items is not None else [BULLET] * 4),
        ],
    )


def violation(action, field="title"):
    return ConstraintViolation(field=field, message="test", current=1, limit=1, action=action)


# =========================================================================
# Slide-type limits
# =========================================================================

def test_compliant_slide_is_valid():
    result = validate_slide(bullets_slide())
    assert result.is_valid
    assert result.violations == []


def test_long_bullet_needs_shortening():
    result = validate_slide(bullets_slide(items=[BULLET, "x" * 130, BULLET, BULLET]))

    fields = {v.field: v for v in result.violations}
    assert "bullets[1]" in fields
    assert fields["bullets[1]"].action == "shorten"
    assert fields["bullets[1]"].limit == 120


def test_too_many_bullets_needs_split():
    result = validate_slide(bullets_slide(items=[BULLET] * 7))

    split = [v for v in result.violations if v.field == "bullets"]
    assert split and split[0].action == "split"
    assert split[0].current == 7


def test_quote_attribution_is_checked_as_subtitle():
    slide = Slide(
        type=SlideType.QUOTE_CALLOUT,
        blocks=[
            Block(kind=BlockKind.CALLOUT, text="Dette er det beste året vi har hatt, og vi skal bli enda bedre.", style="quote"),
            Block(kind=BlockKind.TEXT, text="A" * 90),
        ],
    )
    content = extract_slide_content(slide)
    assert content.subtitle == "A" * 90

    result = validate_slide(slide, check_density=False)
    assert [v.field for v in result.violations] == ["subtitle"]


def test_text_fields_map_to_their_blocks():
    blocks = [
        Block(kind=BlockKind.TITLE, text="Status"),
        Block(kind=BlockKind.CALLOUT, text="Levert i tide"),
        Block(kind=BlockKind.TEXT, text="Første avsnitt"),
        Block(kind=BlockKind.TEXT, text="Andre avsnitt"),
    ]
    assert text_field_positions(SlideType.TEXT_PLUS_IMAGE, blocks) == {"text": [2, 3]}
    assert text_field_positions(SlideType.TWO_COLUMN_TEXT, blocks) == {
        "text": [1], "columns[0]": [2], "columns[1]": [3],
    }
    assert text_field_positions(SlideType.QUOTE_CALLOUT, blocks[:3]) == {"text": [1], "subtitle": [2]}
    assert text_field_positions(SlideType.COVER, [blocks[0], blocks[2]]) == {"subtitle": [1]}

    slide = Slide(type=SlideType.TEXT_PLUS_IMAGE, blocks=blocks)
    assert extract_slide_content(slide).text == "Første avsnitt Andre avsnitt"


def test_stat_labels_are_items():
    slide = Slide(
        type=SlideType.HERO_STATS,
        blocks=[
            Block(kind=BlockKind.TITLE, text="Nøkkeltall"),
            Block(kind=BlockKind.STAT_BLOCK, value="25%", label="Vekst i omsetning"),
            Block(kind=BlockKind.STAT_BLOCK, value="3 MNOK", label="L" * 70),
        ],
    )
    assert extract_slide_content(slide).items == ["Vekst i omsetning", "L" * 70]

    result = validate_slide(slide, check_density=False)
    assert [v.field for v in result.violations] == ["items[1]"]


def test_table_limits():
    slide = Slide(
        type=SlideType.ACTION_ITEMS_TABLE,
        blocks=[
            Block(kind=BlockKind.TITLE, text="Oppgaver"),
            Block(kind=BlockKind.TABLE, columns=["Oppgave", "Ansvarlig", "Frist"], rows=[["a", "b", "c"]] * 9),
        ],
    )
    result = validate_slide(slide, check_density=False)
    assert [v.field for v in result.violations] == ["table_rows"]


# =========================================================================
# Title count and density
# =========================================================================

def test_extract_number_from_title():
    assert extract_number_from_title("3 punkter om budsjettet") == 3
    assert extract_number_from_title("Fire USP-er") == 4
    assert extract_number_from_title("De fem viktigste endringene") == 5
    assert extract_number_from_title("Status for prosjektet") is None
    assert extract_number_from_title("") is None


def test_title_count_mismatch():
    result = validate_slide(bullets_slide(title="Tre fordeler med løsningen"))

    mismatch = [v for v in result.violations if v.field == "title_count_mismatch"]
    assert len(mismatch) == 1
    assert mismatch[0].action == "adjust_title"
    assert mismatch[0].limit == 3
    assert mismatch[0].current == 4


def test_sparse_slide_is_flagged():
    slide = Slide(type=SlideType.COVER, blocks=[Block(kind=BlockKind.TITLE, text="Hei")])

    assert calculate_content_density(slide) < 0.35
    result = validate_slide(slide)
    assert [v.field for v in result.violations] == ["content_density"]
    assert result.violations[0].action == "expand"

    assert validate_slide(slide, check_density=False).is_valid


def test_validate_slides_totals():
    result = validate_slides([bullets_slide(), bullets_slide(items=[BULLET] * 7)])

    assert not result.is_valid
    assert result.needs_repair
    assert result.slide_results[0].is_valid
    assert result.slide_results[1].slide_index == 1
    assert result.total_violations == len(result.slide_results[1].violations)


def test_should_split():
    assert should_split([violation("split")])
    assert should_split([violation("shorten")] * 3)
    assert not should_split([violation("shorten")])
    assert not should_split([])
