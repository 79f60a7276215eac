"""
Block Enforcer

Absolute per-block-kind limits, applied to every slide as the last step of
validation and repair. This pass never calls a model and always terminates,
so it holds even for constraints the slide-type checks miss.
"""

from deckforge.models.slide import Block, BlockKind, Slide

TITLE_MAX_CHARS = 120
TEXT_MAX_CHARS = 500
CALLOUT_MAX_CHARS = 300
BULLETS_MAX_ITEMS = 8
BULLET_MAX_CHARS = 150
TABLE_MAX_COLUMNS = 5
TABLE_MAX_ROWS = 10
IMAGE_ALT_MAX_CHARS = 200
STAT_VALUE_MAX_CHARS = 20
STAT_LABEL_MAX_CHARS = 50
STAT_SUBLABEL_MAX_CHARS = 100
TIMELINE_TEXT_MAX_CHARS = 80
TIMELINE_DESCRIPTION_MAX_CHARS = 200
CARD_TEXT_MAX_CHARS = 60
CARD_DESCRIPTION_MAX_CHARS = 150

# (text limit, description limit) for card-like blocks
_CARD_LIMITS = {
    BlockKind.TIMELINE_STEP: (TIMELINE_TEXT_MAX_CHARS, TIMELINE_DESCRIPTION_MAX_CHARS),
    BlockKind.ICON_CARD: (CARD_TEXT_MAX_CHARS, CARD_DESCRIPTION_MAX_CHARS),
    BlockKind.NUMBERED_CARD: (CARD_TEXT_MAX_CHARS, CARD_DESCRIPTION_MAX_CHARS),
}

_TEXT_LIMITS = {
    BlockKind.TITLE: TITLE_MAX_CHARS,
    BlockKind.TEXT: TEXT_MAX_CHARS,
    BlockKind.CALLOUT: CALLOUT_MAX_CHARS,
}


def truncate_text(text: str, max_length: int) -> str:
    """
    Cut text to max_length, at a word boundary when one falls in the last 20%.

    No ellipsis is added.
    """
    if text is None or len(text) <= max_length:
        return text

    truncated = text[:max_length]
    last_space = truncated.rfind(" ")
    if last_space > max_length * 0.8:
        return truncated[:last_space].rstrip()
    return truncated


def truncate_at_word_boundary(text: str, max_length: int) -> str:
    """
    Cut text to at most max_length characters, ending with '...'.

    Cuts at the last space when it lies past half of the available length.
    """
    if len(text) <= max_length:
        return text

    target = max_length - 3
    if target <= 0:
        return text[:max_length]

    truncated = text[:target]
    last_space = truncated.rfind(" ")
    if last_space > target * 0.5:
        return truncated[:last_space] + "..."
    return truncated + "..."


def enforce_block_constraints(block: Block) -> Block:
    """Return a copy of the block with every field clamped to its kind's limit."""
    updates = {}

    if block.kind in _TEXT_LIMITS:
        if block.text:
            updates["text"] = truncate_text(block.text, _TEXT_LIMITS[block.kind])

    elif block.kind == BlockKind.BULLETS:
        if block.items is not None:
            updates["items"] = [truncate_text(item, BULLET_MAX_CHARS) for item in block.items[:BULLETS_MAX_ITEMS]]

    elif block.kind == BlockKind.TABLE:
        columns = block.columns
        rows = block.rows
        if columns is not None and len(columns) > TABLE_MAX_COLUMNS:
            columns = columns[:TABLE_MAX_COLUMNS]
            updates["columns"] = columns
        if rows is not None:
            clamped = rows[:TABLE_MAX_ROWS]
            if columns is not None:
                clamped = [row[:len(columns)] for row in clamped]
            if clamped != rows:
                updates["rows"] = clamped

    elif block.kind == BlockKind.STAT_BLOCK:
        if block.value:
            updates["value"] = truncate_text(block.value, STAT_VALUE_MAX_CHARS)
        if block.label:
            updates["label"] = truncate_text(block.label, STAT_LABEL_MAX_CHARS)
        if block.sublabel:
            updates["sublabel"] = truncate_text(block.sublabel, STAT_SUBLABEL_MAX_CHARS)

    elif block.kind in _CARD_LIMITS:
        text_limit, description_limit = _CARD_LIMITS[block.kind]
        if block.text:
            updates["text"] = truncate_text(block.text, text_limit)
        if block.description:
            updates["description"] = truncate_text(block.description, description_limit)

    elif block.kind == BlockKind.IMAGE:
        if block.alt:
            updates["alt"] = truncate_text(block.alt, IMAGE_ALT_MAX_CHARS)

    return block.model_copy(update=updates) if updates else block


def enforce_slide_constraints(slide: Slide) -> Slide:
    """Clamp every block of a slide."""
    return slide.model_copy(update={"blocks": [enforce_block_constraints(b) for b in slide.blocks]})
