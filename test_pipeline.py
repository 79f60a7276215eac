"""
End-to-end tests for the generation pipeline

Everything runs against the deterministic mock clients.
"""

import asyncio

import pytest

from deckforge.agents.errors import PipelineError, PipelineErrorCode
from deckforge.agents.pipeline import GenerationPipeline
from deckforge.clients.image_client import MockImageClient
from deckforge.clients.llm_client import LLMClient, LLMError, LLMErrorCode
from deckforge.clients.mock_llm_client import MockLLMClient
from deckforge.core.image_orchestrator import ImageGenerationOptions
from deckforge.models.deck import Amount, GenerationRequest, GoldenTemplateId, ImageMode, TextMode, ThemeId
from deckforge.models.slide import BlockKind, Outline, OutlineSlide, SlideType

MEETING_TEXT = "Referat fra møtet i prosjektgruppen. Vi gikk gjennom status og ble enige om veien videre."
PRODUCT_TEXT = "Vi presenterer et nytt produkt for små bedrifter som ønsker bedre oversikt over økonomien."
NEUTRAL_TEXT = "Kvartalet ga solid fremgang for virksomheten, og ledelsen er fornøyd med utviklingen."


class FailingLLMClient(LLMClient):
    async def generate(self, system_prompt, user_prompt, output_type):
        raise LLMError("quota exceeded", LLMErrorCode.RATE_LIMITED)

    async def generate_streaming(self, system_prompt, user_prompt, output_type, callbacks):
        raise LLMError("quota exceeded", LLMErrorCode.RATE_LIMITED)


def make_pipeline(**kwargs):
    kwargs.setdefault("llm_client", MockLLMClient(latency=0, chunk_delay=0))
    kwargs.setdefault("image_client", MockImageClient())
    kwargs.setdefault("image_options", ImageGenerationOptions(base_delay=0, rate_limit_backoff=0))
    return GenerationPipeline(**kwargs)


# =========================================================================
# Outline-driven generation
# =========================================================================

@pytest.mark.asyncio
async def test_meeting_notes_deck():
    checkpoints = []
    pipeline = make_pipeline(on_checkpoint=checkpoints.append)

    result = await pipeline.generate(GenerationRequest(input_text=MEETING_TEXT))

    assert result.deck.deck.title == "Møtereferat"
    assert result.deck.deck.theme_id == ThemeId.NORDIC_LIGHT
    assert len(result.outline.slides) == 5
    assert len(result.deck.slides) == 5
    assert result.deck.slides[0].type == SlideType.COVER
    assert result.deck.slides[-1].type == SlideType.SUMMARY_NEXT_STEPS
    assert all(slide.layout_variant for slide in result.deck.slides)
    assert result.failed_images == []

    # Composed outline first, then one checkpoint per finished slide
    assert [c.stage for c in checkpoints] == ["outline"] + ["content"] * 5
    assert len(checkpoints[0].outline.slides) == 5
    assert [c.slide_index for c in checkpoints[1:]] == [0, 1, 2, 3, 4]
    assert all(c.slide is not None for c in checkpoints[1:])


@pytest.mark.asyncio
async def test_condensed_meeting_notes():
    request = GenerationRequest(
        input_text="Møtenotater fra prosjektmøte uke 50",
        text_mode=TextMode.CONDENSE,
        amount=Amount.MEDIUM,
    )

    result = await make_pipeline().generate(request)

    assert result.outline.slides[0].suggested_type == SlideType.COVER
    assert result.deck.slides[0].type == SlideType.COVER
    assert result.deck.deck.language == request.language
    assert all(slide.blocks for slide in result.deck.slides)


@pytest.mark.asyncio
async def test_requested_slide_count_is_exact():
    pipeline = make_pipeline()

    result = await pipeline.generate(GenerationRequest(input_text=PRODUCT_TEXT, num_slides=10))

    assert len(result.outline.slides) == 10
    assert len(result.deck.slides) == 10
    assert result.deck.slides[0].type == SlideType.COVER
    assert result.deck.slides[-1].type == SlideType.SUMMARY_NEXT_STEPS


@pytest.mark.asyncio
async def test_provided_outline_skips_outline_generation():
    client = MockLLMClient(latency=0, chunk_delay=0)
    outline = Outline(
        title="Egen disposisjon",
        slides=[
            OutlineSlide(title="Velkommen", suggested_type=SlideType.COVER),
            OutlineSlide(title="Hovedpunkter", suggested_type=SlideType.BULLETS),
            OutlineSlide(title="Neste steg", suggested_type=SlideType.SUMMARY_NEXT_STEPS),
        ],
    )

    result = await make_pipeline(llm_client=client).generate(
        GenerationRequest(input_text=NEUTRAL_TEXT, outline=outline)
    )

    assert "LenientOutline" not in [call[0] for call in client.calls]
    assert result.deck.deck.title == "Egen disposisjon"
    assert [s.type for s in result.deck.slides] == [
        SlideType.COVER, SlideType.BULLETS, SlideType.SUMMARY_NEXT_STEPS,
    ]


@pytest.mark.asyncio
async def test_theme_is_carried_to_the_deck():
    result = await make_pipeline().generate(
        GenerationRequest(input_text=MEETING_TEXT, theme_id=ThemeId.NORDIC_DARK)
    )
    assert result.deck.deck.theme_id == ThemeId.NORDIC_DARK


# =========================================================================
# Golden templates
# =========================================================================

@pytest.mark.asyncio
async def test_executive_brief_template():
    client = MockLLMClient(latency=0, chunk_delay=0)
    progress = []
    pipeline = make_pipeline(llm_client=client, on_progress=progress.append)

    result = await pipeline.generate(
        GenerationRequest(input_text=NEUTRAL_TEXT, template_id=GoldenTemplateId.EXECUTIVE_BRIEF)
    )

    assert [s.type for s in result.deck.slides] == [
        SlideType.COVER,
        SlideType.SUMMARY_WITH_STATS,
        SlideType.TEXT_PLUS_IMAGE,
        SlideType.BULLETS,
        SlideType.SUMMARY_NEXT_STEPS,
    ]
    assert [call[0] for call in client.calls] == ["GeneratedSlot"] * 5
    assert result.deck.deck.title == "Statusrapport for fjerde kvartal"
    assert result.deck.deck.theme_id == ThemeId.NORDIC_LIGHT
    assert len(result.outline.slides) == 5

    stats = [b for b in result.deck.slides[1].blocks if b.kind == BlockKind.STAT_BLOCK]
    assert [b.value for b in stats] == ["24%", "1,2M", "98%"]
    assert result.deck.slides[0].first_block(BlockKind.IMAGE) is not None

    slot_events = [p for p in progress if p.slot_content]
    assert len(slot_events) == 5


@pytest.mark.asyncio
async def test_reserved_template_is_not_found():
    with pytest.raises(PipelineError) as exc_info:
        await make_pipeline().generate(
            GenerationRequest(input_text=NEUTRAL_TEXT, template_id=GoldenTemplateId.FEATURE_SHOWCASE)
        )
    assert exc_info.value.code == PipelineErrorCode.TEMPLATE_NOT_FOUND


@pytest.mark.asyncio
async def test_failing_slot_aborts_template():
    with pytest.raises(PipelineError) as exc_info:
        await make_pipeline(llm_client=FailingLLMClient()).generate(
            GenerationRequest(input_text=NEUTRAL_TEXT, template_id=GoldenTemplateId.EXECUTIVE_BRIEF)
        )
    assert exc_info.value.code == PipelineErrorCode.TEMPLATE_GENERATION_FAILED
    assert exc_info.value.slide_index == 0


# =========================================================================
# Stage errors
# =========================================================================

@pytest.mark.asyncio
async def test_outline_failure():
    with pytest.raises(PipelineError) as exc_info:
        await make_pipeline(llm_client=FailingLLMClient()).generate(GenerationRequest(input_text=MEETING_TEXT))

    assert exc_info.value.code == PipelineErrorCode.OUTLINE_FAILED
    assert exc_info.value.slide_index is None


@pytest.mark.asyncio
async def test_content_failure_names_the_slide():
    pipeline = make_pipeline(
        llm_client=FailingLLMClient(),
        outline_client=MockLLMClient(latency=0, chunk_delay=0),
    )

    with pytest.raises(PipelineError) as exc_info:
        await pipeline.generate(GenerationRequest(input_text=MEETING_TEXT))

    assert exc_info.value.code == PipelineErrorCode.CONTENT_FAILED
    assert exc_info.value.slide_index == 0


# =========================================================================
# Images and callbacks
# =========================================================================

@pytest.mark.asyncio
async def test_images_are_generated_with_a_deck_id():
    pipeline = make_pipeline(deck_id="deck-123")

    result = await pipeline.generate(GenerationRequest(input_text=MEETING_TEXT, image_mode=ImageMode.AI))

    cover_image = result.deck.slides[0].first_block(BlockKind.IMAGE)
    assert cover_image is not None
    assert cover_image.url.startswith("https://placehold.co/")
    assert result.failed_images == []


@pytest.mark.asyncio
async def test_no_images_without_a_deck_id():
    result = await make_pipeline().generate(GenerationRequest(input_text=MEETING_TEXT, image_mode=ImageMode.AI))
    assert result.deck.slides[0].first_block(BlockKind.IMAGE) is None


@pytest.mark.asyncio
async def test_async_progress_callback_is_not_awaited_inline():
    received = []

    async def on_progress(progress):
        await asyncio.sleep(0)
        received.append(progress)

    pipeline = make_pipeline(on_progress=on_progress)
    await pipeline.generate(GenerationRequest(input_text=MEETING_TEXT))
    await pipeline.drain_progress()

    messages = [p.message for p in received]
    assert "Completed slide 5/5" in messages
    assert any(p.delta for p in received)


@pytest.mark.asyncio
async def test_failing_progress_callback_is_ignored():
    def on_progress(progress):
        raise RuntimeError("ui went away")

    result = await make_pipeline(on_progress=on_progress).generate(GenerationRequest(input_text=MEETING_TEXT))
    assert len(result.deck.slides) == 5


@pytest.mark.asyncio
async def test_failing_checkpoint_aborts_generation():
    async def on_checkpoint(progress):
        raise RuntimeError("database unavailable")

    with pytest.raises(PipelineError) as exc_info:
        await make_pipeline(on_checkpoint=on_checkpoint).generate(GenerationRequest(input_text=MEETING_TEXT))

    error = exc_info.value
    assert error.code == PipelineErrorCode.CHECKPOINT_FAILED
    assert error.stage == "outline"
    assert error.slide_index is None
    assert isinstance(error.cause, RuntimeError)
    assert "database unavailable" in error.message
    assert error.to_dict()["stage"] == "outline"


@pytest.mark.asyncio
async def test_failing_slide_checkpoint_names_the_slide():
    saved = []

    def on_checkpoint(progress):
        if progress.stage == "content" and progress.slide_index == 2:
            raise RuntimeError("disk full")
        saved.append(progress)

    with pytest.raises(PipelineError) as exc_info:
        await make_pipeline(on_checkpoint=on_checkpoint).generate(GenerationRequest(input_text=MEETING_TEXT))

    assert exc_info.value.code == PipelineErrorCode.CHECKPOINT_FAILED
    assert exc_info.value.stage == "content"
    assert exc_info.value.slide_index == 2
    assert [p.slide_index for p in saved if p.stage == "content"] == [0, 1]
