"""
Tests for the Block Enforcer

Absolute per-kind limits and the two truncation helpers.
"""

from deckforge.core.block_enforcer import (
    BULLET_MAX_CHARS,
    BULLETS_MAX_ITEMS,
    STAT_VALUE_MAX_CHARS,
    TABLE_MAX_COLUMNS,
    TITLE_MAX_CHARS,
    enforce_block_constraints,
    enforce_slide_constraints,
    truncate_at_word_boundary,
    truncate_text,
)
from deckforge.models.slide import Block, BlockKind, Slide, SlideType


def test_truncate_text():
    assert truncate_text("Kort tekst", 20) == "Kort tekst"
    assert truncate_text(None, 10) is None

    long_text = "ord " * 50
    truncated = truncate_text(long_text, TITLE_MAX_CHARS)
    assert len(truncated) <= TITLE_MAX_CHARS
    assert not truncated.endswith(" ")
    assert "..." not in truncated

    assert truncate_text("a" * 30, 10) == "a" * 10


def test_truncate_at_word_boundary():
    assert truncate_at_word_boundary("Kort", 10) == "Kort"
    assert truncate_at_word_boundary("Dette er en lang setning som må kortes ned", 20) == "Dette er en lang..."
    assert truncate_at_word_boundary("a" * 30, 10) == "aaaaaaa..."
    assert truncate_at_word_boundary("abcdef", 3) == "abc"


def test_bullets_are_capped():
    block = Block(kind=BlockKind.BULLETS, items=["x" * 200] * 10)
    enforced = enforce_block_constraints(block)

    assert len(enforced.items) == BULLETS_MAX_ITEMS
    assert all(len(item) <= BULLET_MAX_CHARS for item in enforced.items)
    # Input is not mutated
    assert len(block.items) == 10


def test_wide_table_is_narrowed():
    block = Block(
        kind=BlockKind.TABLE,
        columns=[f"K{i}" for i in range(7)],
        rows=[[f"c{i}" for i in range(7)]] * 3,
    )
    enforced = enforce_block_constraints(block)

    assert len(enforced.columns) == TABLE_MAX_COLUMNS
    assert all(len(row) == TABLE_MAX_COLUMNS for row in enforced.rows)
    assert len(enforced.rows) == 3


def test_stat_block_fields():
    block = Block(kind=BlockKind.STAT_BLOCK, value="1" * 30, label="Omsetning", sublabel=None)
    enforced = enforce_block_constraints(block)

    assert len(enforced.value) == STAT_VALUE_MAX_CHARS
    assert enforced.label == "Omsetning"
    assert enforced.sublabel is None


def test_compliant_block_is_returned_unchanged():
    block = Block(kind=BlockKind.IMAGE, url="", alt="Kontorlandskap")
    assert enforce_block_constraints(block) == block


def test_enforce_slide_constraints():
    slide = Slide(
        type=SlideType.TEXT_PLUS_IMAGE,
        layout_variant="image_left",
        blocks=[
            Block(kind=BlockKind.TITLE, text="T" * 150),
            Block(kind=BlockKind.TEXT, text="Kort brødtekst"),
        ],
    )
    enforced = enforce_slide_constraints(slide)

    assert len(enforced.blocks[0].text) == TITLE_MAX_CHARS
    assert enforced.blocks[1].text == "Kort brødtekst"
    assert enforced.layout_variant == "image_left"
    assert enforced.type == SlideType.TEXT_PLUS_IMAGE
