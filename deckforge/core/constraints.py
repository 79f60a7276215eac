"""
Slide Constraints

Per-slide-type structural and length limits, and the checks that turn a
slide's extracted content into a list of ConstraintViolation records.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from deckforge.models.slide import Block, BlockKind, Slide, SlideType
from deckforge.models.validation import ConstraintViolation


@dataclass(frozen=True)
class CharLimit:
    max_chars: int


@dataclass(frozen=True)
class ListLimit:
    min: int
    max: int
    max_chars_per_item: int
    min_chars_per_item: Optional[int] = None


@dataclass(frozen=True)
class TableLimit:
    max_rows: int
    max_columns: int


@dataclass(frozen=True)
class SlideConstraints:
    title: Optional[CharLimit] = None
    subtitle: Optional[CharLimit] = None
    text: Optional[CharLimit] = None
    bullets: Optional[ListLimit] = None
    columns: Optional[CharLimit] = None
    items: Optional[ListLimit] = None
    table: Optional[TableLimit] = None


SLIDE_CONSTRAINTS: Dict[SlideType, SlideConstraints] = {
    SlideType.COVER: SlideConstraints(title=CharLimit(60), subtitle=CharLimit(120)),
    SlideType.AGENDA: SlideConstraints(title=CharLimit(50), bullets=ListLimit(2, 8, 80)),
    SlideType.SECTION_HEADER: SlideConstraints(title=CharLimit(60), subtitle=CharLimit(100)),
    SlideType.BULLETS: SlideConstraints(title=CharLimit(70), bullets=ListLimit(3, 6, 120)),
    SlideType.TWO_COLUMN_TEXT: SlideConstraints(title=CharLimit(70), columns=CharLimit(350)),
    SlideType.TEXT_PLUS_IMAGE: SlideConstraints(title=CharLimit(70), text=CharLimit(450)),
    SlideType.DECISIONS_LIST: SlideConstraints(title=CharLimit(70), items=ListLimit(3, 7, 140)),
    # task, owner, deadline
    SlideType.ACTION_ITEMS_TABLE: SlideConstraints(title=CharLimit(70), table=TableLimit(8, 3)),
    SlideType.SUMMARY_NEXT_STEPS: SlideConstraints(title=CharLimit(70), bullets=ListLimit(3, 6, 120)),
    # subtitle is the attribution
    SlideType.QUOTE_CALLOUT: SlideConstraints(text=CharLimit(300), subtitle=CharLimit(80)),
    SlideType.TIMELINE_ROADMAP: SlideConstraints(title=CharLimit(80), items=ListLimit(1, 10, 100)),
    SlideType.NUMBERED_GRID: SlideConstraints(title=CharLimit(80), items=ListLimit(2, 6, 120, 30)),
    SlideType.ICON_CARDS_WITH_IMAGE: SlideConstraints(title=CharLimit(80), items=ListLimit(2, 6, 120, 30)),
    SlideType.SUMMARY_WITH_STATS: SlideConstraints(
        title=CharLimit(80), text=CharLimit(400), items=ListLimit(1, 4, 60)
    ),
    SlideType.HERO_STATS: SlideConstraints(title=CharLimit(80), items=ListLimit(1, 4, 60)),
    SlideType.SPLIT_WITH_CALLOUTS: SlideConstraints(title=CharLimit(80), items=ListLimit(2, 5, 100, 25)),
    SlideType.PERSON_SPOTLIGHT: SlideConstraints(
        title=CharLimit(80), text=CharLimit(200), bullets=ListLimit(1, 6, 100)
    ),
}

# Which block kind provides the "items" of card-like slide types
ITEM_BLOCK_KINDS: Dict[SlideType, BlockKind] = {
    SlideType.ICON_CARDS_WITH_IMAGE: BlockKind.ICON_CARD,
    SlideType.SPLIT_WITH_CALLOUTS: BlockKind.ICON_CARD,
    SlideType.NUMBERED_GRID: BlockKind.NUMBERED_CARD,
    SlideType.TIMELINE_ROADMAP: BlockKind.TIMELINE_STEP,
    SlideType.SUMMARY_WITH_STATS: BlockKind.STAT_BLOCK,
    SlideType.HERO_STATS: BlockKind.STAT_BLOCK,
}


@dataclass
class SlideContent:
    """The measurable text of a slide, grouped the way constraints are expressed."""
    title: Optional[str] = None
    subtitle: Optional[str] = None
    text: Optional[str] = None
    bullets: Optional[List[str]] = None
    columns: Optional[List[str]] = None
    items: Optional[List[str]] = None
    table_rows: Optional[List[List[str]]] = None

    def total_chars(self) -> int:
        total = sum(len(value or "") for value in (self.title, self.subtitle, self.text))
        for values in (self.bullets, self.columns, self.items):
            total += sum(len(value) for value in values or [])
        for row in self.table_rows or []:
            total += sum(len(cell) for cell in row)
        return total


def text_field_positions(slide_type: SlideType, blocks: List[Block]) -> Dict[str, List[int]]:
    """
    Map the text-valued constraint fields to the blocks they are measured from.

    - The last callout with text is the body text.
    - A single text block is the subtitle on cover/section header slides
      and beside a quote callout (the attribution), and the body text
      elsewhere; several text blocks are columns on two-column slides and
      joined body text otherwise.

    A field mapped to several blocks is their text joined with spaces.
    """
    fields: Dict[str, List[int]] = {}
    callouts = [i for i, b in enumerate(blocks) if b.kind == BlockKind.CALLOUT and b.text is not None]
    texts = [i for i, b in enumerate(blocks) if b.kind == BlockKind.TEXT]

    if callouts:
        fields["text"] = [callouts[-1]]

    if not texts:
        return fields

    if slide_type == SlideType.TWO_COLUMN_TEXT:
        for column, position in enumerate(texts):
            fields[f"columns[{column}]"] = [position]
    elif len(texts) == 1:
        if slide_type in (SlideType.COVER, SlideType.SECTION_HEADER):
            fields["subtitle"] = texts
        elif slide_type == SlideType.QUOTE_CALLOUT and callouts:
            fields["subtitle"] = texts
        else:
            fields["text"] = texts
    else:
        fields["text"] = texts

    return fields


def extract_slide_content(slide: Slide) -> SlideContent:
    """
    Group a slide's block text into constraint fields.

    - Text and callout blocks are assigned by text_field_positions.
    - Bullets act as items on decisions lists.
    - Card, timeline and stat blocks provide the items of their slide types
      (card/step text, stat label).
    """
    content = SlideContent()
    item_kind = ITEM_BLOCK_KINDS.get(slide.type)
    card_texts: List[str] = []

    for block in slide.blocks:
        if block.kind == BlockKind.TITLE:
            content.title = block.text
        elif block.kind == BlockKind.BULLETS:
            content.bullets = list(block.items or [])
        elif block.kind == BlockKind.TABLE:
            content.table_rows = [list(row) for row in block.rows or []]
        elif item_kind is not None and block.kind == item_kind:
            value = block.label if item_kind == BlockKind.STAT_BLOCK else block.text
            if value:
                card_texts.append(value)

    columns: List[str] = []
    for field, positions in text_field_positions(slide.type, slide.blocks).items():
        value = " ".join(slide.blocks[i].text or "" for i in positions)
        if field.startswith("columns"):
            columns.append(value)
        else:
            setattr(content, field, value)
    if columns:
        content.columns = columns

    if slide.type == SlideType.DECISIONS_LIST and content.bullets is not None:
        content.items = content.bullets
        content.bullets = None

    if item_kind is not None:
        content.items = card_texts

    return content


# =========================================================================
# Title count extraction
# =========================================================================

NORWEGIAN_NUMBERS = {
    "en": 1, "ett": 1, "én": 1, "to": 2, "tre": 3, "fire": 4, "fem": 5,
    "seks": 6, "syv": 7, "sju": 7, "åtte": 8, "ni": 9, "ti": 10,
}

_COUNT_NOUNS = r"(?:viktigste|beste|største|hovedpunkter?|punkter?|steg|trinn|tips|grunner?|fordeler?|usp|elementer?)"


def extract_number_from_title(title: str) -> Optional[int]:
    """
    Find the item count a title promises.

    "3 punkter" -> 3, "Fire USP-er" -> 4, "De fem viktigste" -> 5.
    """
    if not title:
        return None

    lowered = title.lower().strip()

    digit_match = re.match(r"^(\d+)\s+", lowered)
    if digit_match:
        return int(digit_match.group(1))

    for word, number in NORWEGIAN_NUMBERS.items():
        if re.match(rf"^{word}\s+", lowered):
            return number

    for word, number in NORWEGIAN_NUMBERS.items():
        if re.search(rf"\b{word}\s+{_COUNT_NOUNS}\b", lowered):
            return number

    return None


# =========================================================================
# Constraint checks
# =========================================================================

def _too_long(field_name: str, label: str, value: str, limit: int) -> Optional[ConstraintViolation]:
    if len(value) <= limit:
        return None
    return ConstraintViolation(
        field=field_name,
        message=f"{label} exceeds {limit} characters",
        current=len(value),
        limit=limit,
        action="shorten",
    )


def _check_list(
    values: List[str],
    limit: ListLimit,
    field_name: str,
    plural: str,
    singular: str,
) -> List[ConstraintViolation]:
    violations = []

    if len(values) < limit.min:
        violations.append(ConstraintViolation(
            field=field_name,
            message=f"Needs at least {limit.min} {plural}",
            current=len(values),
            limit=limit.min,
            action="split",
        ))
    if len(values) > limit.max:
        violations.append(ConstraintViolation(
            field=field_name,
            message=f"Exceeds maximum {limit.max} {plural}",
            current=len(values),
            limit=limit.max,
            action="split",
        ))

    for i, value in enumerate(values):
        violation = _too_long(f"{field_name}[{i}]", f"{singular} {i + 1}", value, limit.max_chars_per_item)
        if violation:
            violations.append(violation)
        if limit.min_chars_per_item and len(value) < limit.min_chars_per_item:
            violations.append(ConstraintViolation(
                field=f"{field_name}[{i}]",
                message=f"{singular} {i + 1} is too short (minimum {limit.min_chars_per_item} characters for quality)",
                current=len(value),
                limit=limit.min_chars_per_item,
                action="expand",
            ))

    return violations


def validate_slide_constraints(slide_type: SlideType, content: SlideContent) -> List[ConstraintViolation]:
    """
    Check extracted slide content against the limits of its slide type.

    Returns:
        Violations, empty if the content is within every limit
    """
    constraints = SLIDE_CONSTRAINTS.get(slide_type, SlideConstraints())
    violations: List[Optional[ConstraintViolation]] = []

    if constraints.title and content.title:
        violations.append(_too_long("title", "Title", content.title, constraints.title.max_chars))
    if constraints.subtitle and content.subtitle:
        violations.append(_too_long("subtitle", "Subtitle", content.subtitle, constraints.subtitle.max_chars))
    if constraints.text and content.text:
        violations.append(_too_long("text", "Text", content.text, constraints.text.max_chars))

    if constraints.bullets and content.bullets is not None:
        violations.extend(_check_list(content.bullets, constraints.bullets, "bullets", "bullet points", "Bullet"))
    if constraints.items and content.items is not None:
        violations.extend(_check_list(content.items, constraints.items, "items", "items", "Item"))

    if constraints.table and content.table_rows is not None:
        rows = content.table_rows
        if len(rows) > constraints.table.max_rows:
            violations.append(ConstraintViolation(
                field="table_rows",
                message=f"Exceeds maximum {constraints.table.max_rows} rows",
                current=len(rows),
                limit=constraints.table.max_rows,
                action="split",
            ))
        if rows and len(rows[0]) > constraints.table.max_columns:
            violations.append(ConstraintViolation(
                field="table_columns",
                message=f"Exceeds maximum {constraints.table.max_columns} columns",
                current=len(rows[0]),
                limit=constraints.table.max_columns,
                action="split",
            ))

    if constraints.columns and content.columns:
        for i, column in enumerate(content.columns):
            violations.append(_too_long(f"columns[{i}]", f"Column {i + 1}", column, constraints.columns.max_chars))

    return [violation for violation in violations if violation is not None]
