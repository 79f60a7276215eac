"""
Repair and split prompts.

Shorten keeps the slide's type and block shape; split turns one overloaded
slide into 2-4 standalone slides with their own titles.
"""

import json
from typing import List

from deckforge.core.constraints import SLIDE_CONSTRAINTS
from deckforge.models.slide import BlockKind, Slide, SlideType
from deckforge.models.validation import ConstraintViolation

NUMBER_TO_NORWEGIAN = {
    1: "Ett", 2: "To", 3: "Tre", 4: "Fire", 5: "Fem",
    6: "Seks", 7: "Syv", 8: "Åtte", 9: "Ni", 10: "Ti",
}


def _status(violated: bool) -> str:
    return "VIOLATION" if violated else "OK"


def describe_constraint_status(slide_type: SlideType, violations: List[ConstraintViolation]) -> str:
    """Every limit of the slide type, marked OK or VIOLATION."""
    constraints = SLIDE_CONSTRAINTS[slide_type]
    fields = {v.field for v in violations}
    lines = []

    def touches(fragment: str) -> bool:
        return any(fragment in v.field for v in violations)

    if constraints.title:
        lines.append(f"- title: max {constraints.title.max_chars} chars [{_status('title' in fields)}]")
    if constraints.subtitle:
        lines.append(f"- subtitle: max {constraints.subtitle.max_chars} chars [{_status('subtitle' in fields)}]")
    if constraints.text:
        lines.append(f"- text: max {constraints.text.max_chars} chars [{_status('text' in fields)}]")
    if constraints.bullets:
        limit = constraints.bullets
        lines.append(
            f"- bullets: {limit.min}-{limit.max} items, max {limit.max_chars_per_item} chars each "
            f"[{_status(touches('bullet'))}]"
        )
    if constraints.items:
        limit = constraints.items
        lines.append(
            f"- items: {limit.min}-{limit.max} items, max {limit.max_chars_per_item} chars each "
            f"[{_status(touches('item'))}]"
        )
    if constraints.columns:
        lines.append(f"- columns: max {constraints.columns.max_chars} chars each [{_status(touches('column'))}]")
    if constraints.table:
        lines.append(
            f"- table: max {constraints.table.max_rows} rows, {constraints.table.max_columns} cols "
            f"[{_status(touches('table'))}]"
        )

    return "\n".join(lines)


def build_repair_system_prompt(violations: List[ConstraintViolation], slide_type: SlideType) -> str:
    violation_lines = "\n".join(
        f"- {v.field}: {v.message} (current: {v.current}, limit: {v.limit})" for v in violations
    )
    actions = {v.action for v in violations}
    instructions = ""

    if "adjust_title" in actions:
        title_violation = next(v for v in violations if v.action == "adjust_title")
        actual = title_violation.current
        word = NUMBER_TO_NORWEGIAN.get(actual, str(actual)) if isinstance(actual, int) else str(actual)
        instructions += f"""
ACTION REQUIRED: ADJUST TITLE
The title mentions a number that does not match the item count ({actual}).
1. Preferred: replace the number in the title with "{word}" or "{actual}"
2. Alternative: remove the number from the title ("Fire USP-er" -> "Våre USP-er")
Do not add or remove items, only fix the title.
"""

    if "expand" in actions:
        minimum = next(v.limit for v in violations if v.action == "expand")
        instructions += f"""
ACTION REQUIRED: EXPAND CONTENT
Some content is too short and looks empty (minimum {minimum}).
Add specific benefits, outcomes or details, never filler words.
"""

    if "shorten" in actions:
        instructions += """
ACTION REQUIRED: SHORTEN
- Remove filler words ("faktisk", "egentlig", "veldig")
- Use shorter synonyms and active voice
- Combine related points, cut redundant context
"""

    return f"""You are a presentation slide repair assistant.

TASK: Fix constraint violations in a slide without losing essential meaning.

VIOLATIONS TO FIX:
{violation_lines}

ALL CONSTRAINTS FOR {slide_type.value.upper()}:
{describe_constraint_status(slide_type, violations)}
{instructions}
RULES:
- Return the SAME slide structure: same type, same block kinds in the same order
- Only modify the blocks that have violations
- Keep as much original content as possible
- Maintain professional Norwegian language with sentence case titles
  (egennavn og forkortelser som AI og GDPR beholder stor bokstav)

OUTPUT FORMAT:
{{"type": "{slide_type.value}", "layout_variant": "...", "blocks": [...]}}"""


def build_repair_user_prompt(slide: Slide) -> str:
    return f"""Slide type: {slide.type.value}

Please repair this slide:
{json.dumps(slide.model_dump(mode='json', exclude_none=True), ensure_ascii=False, indent=2)}"""


def build_split_system_prompt(original_title: str) -> str:
    return f"""You are an expert presentation designer who excels at organizing content.

TASK: Turn one overloaded slide into 2-3 focused, standalone slides.

ORIGINAL TOPIC: "{original_title}"

UNIQUE TITLES:
Each new slide gets its own descriptive title reflecting its specific content.
Forbidden: "{original_title} (fortsettelse)", "{original_title} (del 2)" or any repetition
of the original title with a suffix.

Example: "Implementering av ny strategi" becomes
1. "Nøkkelfaser i implementeringen"
2. "Ressurser og ansvar"
3. "Tidsplan og milepæler"

SLIDE TYPES:
You may choose a different slide type per new slide (text_plus_image,
icon_cards_with_image, numbered_grid) when it fits the content better.

CONTENT DISTRIBUTION:
- Each slide is self-contained and valuable on its own
- Reorganize by theme, do not just cut the content in half

Bruk setningskapitalisering: kun første ord har stor bokstav.

OUTPUT FORMAT:
{{"slides": [{{"type": "...", "layout_variant": "...", "blocks": [...]}}, ...]}}"""


def build_split_user_prompt(slide: Slide, violations: List[ConstraintViolation]) -> str:
    summary = ", ".join(f"{v.field}: {v.current} (limit: {v.limit})" for v in violations)

    themes = []
    if slide.title:
        themes.append(f"Main topic: {slide.title}")
    text = " ".join(
        block.text for block in slide.blocks
        if block.kind in (BlockKind.TEXT, BlockKind.CALLOUT) and block.text
    )[:200]
    if text:
        themes.append(f"Key content: {text}...")
    bullets = slide.first_block(BlockKind.BULLETS)
    if bullets and bullets.items:
        more = "..." if len(bullets.items) > 3 else ""
        themes.append(f"Bullet points cover: {', '.join(bullets.items[:3])}{more}")

    theme_context = ""
    if themes:
        theme_context = "\n\nCONTENT THEMES TO CONSIDER FOR TITLES:\n" + "\n".join(themes) + "\n"

    return f"""This slide has content that exceeds limits: {summary}
{theme_context}
Create unique, descriptive titles for each new slide. Do not use "(fortsettelse)" or similar suffixes.

Original slide to split:
{json.dumps(slide.model_dump(mode='json', exclude_none=True), ensure_ascii=False, indent=2)}"""
