"""
Content Generator for deckforge

Writes one slide from its outline entry with a streaming model call. While the
response streams in, the text of the block being written is reported as
deltas so a UI can render a live typing effect.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from deckforge.agents.errors import PipelineError, PipelineErrorCode
from deckforge.clients.llm_client import LLMClient, LLMError, StreamingCallbacks
from deckforge.core.layout_assigner import assign_layout_variant
from deckforge.models.deck import GenerationRequest
from deckforge.models.progress import PipelineProgress
from deckforge.models.slide import BlockKind, OutlineSlide, Slide
from deckforge.prompts.content import build_content_system_prompt, build_content_user_prompt
from deckforge.utils.logger import setup_logger
from deckforge.utils.sentence_case import to_sentence_case

logger = setup_logger(__name__)

SENTENCE_CASE_BLOCK_KINDS = {
    BlockKind.TITLE,
    BlockKind.NUMBERED_CARD,
    BlockKind.ICON_CARD,
    BlockKind.TIMELINE_STEP,
}


def apply_sentence_case(slide: Slide) -> Slide:
    """Norwegian sentence case for titles and card/step headings."""
    blocks = [
        block.model_copy(update={"text": to_sentence_case(block.text)})
        if block.kind in SENTENCE_CASE_BLOCK_KINDS and block.text
        else block
        for block in slide.blocks
    ]
    return slide.model_copy(update={"blocks": blocks})


def finalize_slide(slide: Slide) -> Slide:
    """Content-based layout variant plus sentence case."""
    return apply_sentence_case(slide.model_copy(update={"layout_variant": assign_layout_variant(slide)}))


@dataclass
class StreamingBlock:
    block_index: int
    kind: Optional[BlockKind]
    text: str


def _block_kind(value: Any) -> Optional[BlockKind]:
    try:
        return BlockKind(value)
    except ValueError:
        return None


def extract_streaming_block(partial: Dict[str, Any]) -> Optional[StreamingBlock]:
    """
    The last block of a partial slide that has text: its text, or the last
    of its items for list blocks.
    """
    blocks = partial.get("blocks") if isinstance(partial, dict) else None
    if not isinstance(blocks, list):
        return None

    for index in range(len(blocks) - 1, -1, -1):
        block = blocks[index]
        if not isinstance(block, dict):
            continue

        text = block.get("text")
        if isinstance(text, str) and text:
            return StreamingBlock(index, _block_kind(block.get("kind", "text")), text)

        items = block.get("items")
        if isinstance(items, list) and items and isinstance(items[-1], str):
            return StreamingBlock(index, _block_kind(block.get("kind", "bullets")), items[-1])

    return None


class DeltaTracker:
    """Turns successive partial slides into text deltas."""

    def __init__(self):
        self.last_text: Optional[str] = None
        self.last_block_index: Optional[int] = None

    def update(self, partial: Dict[str, Any]):
        """
        Returns (block, delta, is_new_block), or None when nothing new was written.
        """
        extracted = extract_streaming_block(partial)
        if extracted is None:
            return None

        is_new_block = extracted.block_index != self.last_block_index
        # A new list item restarts the text instead of extending it
        restarted = self.last_text is not None and not extracted.text.startswith(self.last_text)

        if is_new_block or not self.last_text or restarted:
            delta = extracted.text
        else:
            delta = extracted.text[len(self.last_text):]

        self.last_text = extracted.text
        self.last_block_index = extracted.block_index

        if not delta:
            return None
        return extracted, delta, is_new_block


class ContentGenerator:
    """Generates slide content through an LLMClient."""

    def __init__(self, llm_client: LLMClient):
        self.llm = llm_client

    async def generate_slide_content(
        self,
        outline_slide: OutlineSlide,
        request: GenerationRequest,
        slide_index: int,
        total_slides: int,
        on_progress: Optional[Callable[[PipelineProgress], None]] = None,
    ) -> Slide:
        """
        Generate one slide, streaming block deltas to on_progress.

        The returned slide already has its layout variant and sentence case.

        Raises:
            PipelineError: CONTENT_FAILED when the model call fails
        """
        emit = on_progress or (lambda progress: None)
        emit(PipelineProgress(
            stage="content",
            slide_index=slide_index,
            total_slides=total_slides,
            message=f"Generating slide {slide_index + 1}/{total_slides}: {outline_slide.title}",
        ))

        tracker = DeltaTracker()

        def on_partial_json(partial: Dict[str, Any]):
            update = tracker.update(partial)
            if update is None:
                return
            block, delta, is_new_block = update
            emit(PipelineProgress(
                stage="content",
                slide_index=slide_index,
                total_slides=total_slides,
                block_index=block.block_index,
                block_kind=block.kind,
                message=f"Block {block.block_index + 1} started" if is_new_block else "Streaming",
                delta=delta,
            ))

        system_prompt = build_content_system_prompt(outline_slide, request, slide_index, total_slides)
        user_prompt = build_content_user_prompt(outline_slide, request.input_text)

        try:
            slide = await self.llm.generate_streaming(
                system_prompt,
                user_prompt,
                Slide,
                StreamingCallbacks(on_partial_json=on_partial_json),
            )
        except LLMError as e:
            logger.error(f"❌ Content generation failed for slide {slide_index + 1}: {e}")
            raise PipelineError(
                f"Content generation failed for slide {slide_index + 1}: {e.message}",
                PipelineErrorCode.CONTENT_FAILED,
                slide_index=slide_index,
                cause=e,
            ) from e

        final_slide = finalize_slide(slide)
        logger.debug(f"Slide {slide_index + 1} generated: {final_slide.type.value}/{final_slide.layout_variant}")
        return final_slide
