"""
Repair Engine for deckforge

Brings generated slides within their constraints:

1. Model repair, up to max_repair_attempts rounds: each invalid slide is either
   shortened (same type and block shape) or split into 2-4 new slides.
2. Deterministic truncation of the fields named by remaining "shorten"
   violations, using the violation's own limit.
3. Block-level enforcement of absolute limits on every slide, always.

Steps 2 and 3 never call a model, so a repair pass always terminates.
"""

import re
from typing import Callable, List, Optional

from deckforge.agents.content_generator import finalize_slide
from deckforge.clients.llm_client import LLMClient
from deckforge.core.block_enforcer import enforce_slide_constraints, truncate_at_word_boundary
from deckforge.core.constraints import ITEM_BLOCK_KINDS, text_field_positions
from deckforge.core.validator import should_split, validate_slides
from deckforge.models.progress import PipelineProgress
from deckforge.models.slide import Block, BlockKind, Slide, SlideType, SplitResult
from deckforge.models.validation import ConstraintViolation, DeckValidationResult
from deckforge.prompts.repair import (
    build_repair_system_prompt,
    build_repair_user_prompt,
    build_split_system_prompt,
    build_split_user_prompt,
)
from deckforge.utils.logger import setup_logger

logger = setup_logger(__name__)

_INDEXED_FIELD = re.compile(r"^(bullets|items)\[(\d+)\]$")


def _fit_joined_text(blocks: List[Block], positions: List[int], limit: int) -> None:
    """
    Shorten the blocks of a text field until their space-joined text fits limit.

    Trims from the last block; earlier blocks are only cut when later ones
    are already empty.
    """
    total = len(" ".join(blocks[i].text or "" for i in positions))
    for position in reversed(positions):
        if total <= limit:
            return
        text = blocks[position].text or ""
        others = total - len(text)
        shortened = truncate_at_word_boundary(text, max(limit - others, 0))
        blocks[position] = blocks[position].model_copy(update={"text": shortened})
        total = others + len(shortened)


class RepairEngine:
    """
    Validate-and-repair loop over a list of slides.

    Args:
        llm_client: Client used for shorten and split calls
        max_repair_attempts: Model repair rounds before falling back
        on_progress: Progress callback (not awaited)
    """

    def __init__(
        self,
        llm_client: LLMClient,
        max_repair_attempts: int = 3,
        on_progress: Optional[Callable[[PipelineProgress], None]] = None,
    ):
        self.llm = llm_client
        self.max_repair_attempts = max_repair_attempts
        self._emit = on_progress or (lambda progress: None)

    # =====================================================================
    # MODEL REPAIR
    # =====================================================================

    async def shorten_slide(self, slide: Slide, violations: List[ConstraintViolation]) -> Slide:
        repaired = await self.llm.generate(
            build_repair_system_prompt(violations, slide.type),
            build_repair_user_prompt(slide),
            Slide,
        )
        return finalize_slide(repaired)

    async def split_slide(self, slide: Slide, violations: List[ConstraintViolation]) -> List[Slide]:
        result = await self.llm.generate(
            build_split_system_prompt(slide.title or "Slide"),
            build_split_user_prompt(slide, violations),
            SplitResult,
        )
        return [finalize_slide(s) for s in result.slides]

    async def repair_slide(self, slide: Slide, violations: List[ConstraintViolation]) -> List[Slide]:
        """Split or shorten one slide; returns its replacement slides."""
        if should_split(violations):
            logger.info(f"✂️  Splitting '{slide.title}' ({len(violations)} violations)")
            return await self.split_slide(slide, violations)
        return [await self.shorten_slide(slide, violations)]

    # =====================================================================
    # DETERMINISTIC FALLBACK
    # =====================================================================

    @staticmethod
    def _fix_violation(slide_type: SlideType, blocks: List[Block], violation: ConstraintViolation):
        """Truncate the block field a "shorten" violation points at, in place in blocks."""
        field, limit = violation.field, violation.limit

        def truncate(index: int, **extra):
            block = blocks[index]
            blocks[index] = block.model_copy(update=extra)

        if field == "title":
            for i, block in enumerate(blocks):
                if block.kind == BlockKind.TITLE and block.text:
                    truncate(i, text=truncate_at_word_boundary(block.text, limit))
                    return
            return

        if field in ("text", "subtitle") or field.startswith("columns["):
            positions = text_field_positions(slide_type, blocks).get(field, [])
            _fit_joined_text(blocks, positions, limit)
            return

        match = _INDEXED_FIELD.match(field)
        if not match:
            return
        group, index = match.group(1), int(match.group(2))

        if group == "bullets" or (group == "items" and slide_type == SlideType.DECISIONS_LIST):
            for i, block in enumerate(blocks):
                if block.kind == BlockKind.BULLETS and block.items and index < len(block.items):
                    items = list(block.items)
                    items[index] = truncate_at_word_boundary(items[index], limit)
                    truncate(i, items=items)
                    return
            return

        if group == "items":
            item_kind = ITEM_BLOCK_KINDS.get(slide_type)
            positions = [i for i, block in enumerate(blocks) if block.kind == item_kind]
            if index >= len(positions):
                return
            block = blocks[positions[index]]
            if item_kind == BlockKind.STAT_BLOCK and block.label:
                truncate(positions[index], label=truncate_at_word_boundary(block.label, limit))
            elif block.text:
                truncate(positions[index], text=truncate_at_word_boundary(block.text, limit))
            return

    def apply_deterministic_fixes(self, slides: List[Slide], validation: DeckValidationResult) -> List[Slide]:
        """Truncate every field named by a "shorten" violation. Other actions need a model."""
        fixed = list(slides)

        for result in validation.slide_results:
            if result.is_valid:
                continue
            slide = fixed[result.slide_index]
            blocks = list(slide.blocks)
            for violation in result.violations:
                if violation.action == "shorten":
                    self._fix_violation(slide.type, blocks, violation)
            fixed[result.slide_index] = slide.model_copy(update={"blocks": blocks})

        repaired = sum(1 for r in validation.slide_results if not r.is_valid)
        logger.info(f"Applied deterministic fixes to {repaired} slides")
        return fixed

    # =====================================================================
    # LOOP
    # =====================================================================

    async def validate_and_repair(self, slides: List[Slide]) -> List[Slide]:
        """
        Run the repair loop and return slides within their limits.

        A slide whose repair call fails is kept as it was; the fallbacks
        still apply to it.
        """
        current = list(slides)

        for attempt in range(self.max_repair_attempts):
            validation = validate_slides(current)

            if not validation.needs_repair:
                self._emit(PipelineProgress(stage="validation", message="All slides pass validation"))
                return [enforce_slide_constraints(slide) for slide in current]

            self._emit(PipelineProgress(
                stage="repair",
                message=(
                    f"Repair attempt {attempt + 1}/{self.max_repair_attempts}: "
                    f"{validation.total_violations} violations"
                ),
            ))
            logger.info(
                f"🔧 Repair attempt {attempt + 1}/{self.max_repair_attempts}: "
                f"{validation.total_violations} violations"
            )

            repaired: List[Slide] = []
            for index, slide in enumerate(current):
                violations = validation.slide_results[index].violations
                if not violations:
                    repaired.append(slide)
                    continue
                try:
                    repaired.extend(await self.repair_slide(slide, violations))
                except Exception as e:
                    logger.warning(f"⚠️  Repair of slide {index + 1} failed, keeping original: {e}")
                    repaired.append(slide)

            current = repaired

        final = validate_slides(current)
        if final.needs_repair:
            logger.info(
                f"Model repair incomplete, applying deterministic truncation for "
                f"{final.total_violations} violations"
            )
            current = self.apply_deterministic_fixes(current, final)
            self._emit(PipelineProgress(stage="validation", message="Alle constraint-brudd fikset"))

        # Last resort for anything the slide-type checks missed
        return [enforce_slide_constraints(slide) for slide in current]
