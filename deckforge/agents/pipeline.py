"""
Generation Pipeline for deckforge

input → outline → compose → enforce count → enforce distribution → content
→ validate/repair → layout pass → images

Structural slides are added before the exact slide count is enforced
("compose first, count once"), so count enforcement is the only step that
changes the number of slides.

Two callback channels:
- on_progress: UI hints. Scheduled without being awaited; a slow or failing
  callback never holds up generation.
- on_checkpoint: durable state. Awaited for the composed outline and for
  every finished slide, before the next stage starts.
"""

import asyncio
import dataclasses
import inspect
from typing import Awaitable, Callable, List, Optional, Set, Union

from config.settings import Settings, get_settings
from deckforge.agents.content_generator import ContentGenerator, apply_sentence_case
from deckforge.agents.errors import PipelineError, PipelineErrorCode
from deckforge.agents.repair_engine import RepairEngine
from deckforge.clients.image_client import ImageClient, get_image_client
from deckforge.clients.llm_client import LLMClient, LLMError, get_llm_client
from deckforge.core.content_analyzer import analyze_content
from deckforge.core.deck_composer import ComposerOptions, compose_deck, get_composer_stats
from deckforge.core.image_orchestrator import (
    ImageGenerationOptions,
    ImageProgress,
    generate_images_for_deck,
    get_image_style,
    should_generate_image,
    should_generate_images,
)
from deckforge.core.layout_assigner import assign_layout_variants_with_context
from deckforge.core.outline_enforcer import enforce_slide_count, enforce_slide_distribution, get_distribution_stats
from deckforge.core.templates import get_golden_template, golden_slot_slide_type
from deckforge.models.analysis import ContentAnalysis
from deckforge.models.deck import Deck, DeckMeta, GenerationRequest, GenerationResult, ThemeId
from deckforge.models.progress import PipelineProgress
from deckforge.models.slide import Block, BlockKind, LenientOutline, Outline, OutlineSlide, Slide, sanitize_outline
from deckforge.models.template import GeneratedSlot, GoldenSlot, GoldenTemplate, SlotContent
from deckforge.prompts.golden import GOLDEN_SYSTEM_PROMPT, build_golden_slot_prompt
from deckforge.prompts.outline import build_outline_system_prompt, build_outline_user_prompt
from deckforge.storage.supabase import SupabaseObjectStorage
from deckforge.utils.logger import setup_logger

logger = setup_logger(__name__)

ProgressCallback = Callable[[PipelineProgress], Union[None, Awaitable[None]]]
CheckpointCallback = Callable[[PipelineProgress], Union[None, Awaitable[None]]]


class GenerationPipeline:
    """
    Orchestrates one deck generation.

    A pipeline instance holds no state between runs apart from its pending
    progress tasks, so it can be reused; the layout context and the content
    analysis live only inside one call to generate().
    """

    def __init__(
        self,
        llm_client: Optional[LLMClient] = None,
        image_client: Optional[ImageClient] = None,
        storage: Optional[SupabaseObjectStorage] = None,
        max_repair_attempts: int = 3,
        on_progress: Optional[ProgressCallback] = None,
        on_checkpoint: Optional[CheckpointCallback] = None,
        deck_id: Optional[str] = None,
        outline_client: Optional[LLMClient] = None,
        repair_client: Optional[LLMClient] = None,
        image_options: Optional[ImageGenerationOptions] = None,
    ):
        self.llm = llm_client or get_llm_client()
        self.outline_llm = outline_client or self.llm
        self._image_client = image_client
        self.storage = storage
        self.max_repair_attempts = max_repair_attempts
        self.on_progress = on_progress
        self.on_checkpoint = on_checkpoint
        self.deck_id = deck_id
        self.image_options = image_options or ImageGenerationOptions()

        self.content_generator = ContentGenerator(self.llm)
        self.repair_engine = RepairEngine(repair_client or self.llm, max_repair_attempts, self._report)
        self._pending: Set[asyncio.Future] = set()

    # =====================================================================
    # CALLBACK CHANNELS
    # =====================================================================

    def _report(self, progress: PipelineProgress) -> None:
        """Fire-and-forget progress notification."""
        if self.on_progress is None:
            return
        try:
            result = self.on_progress(progress)
        except Exception as e:
            logger.warning(f"⚠️  Progress callback failed: {e}")
            return

        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._pending.add(task)
            task.add_done_callback(self._on_progress_done)

    def _on_progress_done(self, task: asyncio.Future) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning(f"⚠️  Progress callback failed: {task.exception()}")

    async def _checkpoint(self, progress: PipelineProgress) -> None:
        """Durable checkpoint; awaited, a failure aborts the run as CHECKPOINT_FAILED."""
        if self.on_checkpoint is None:
            return
        try:
            result = self.on_checkpoint(progress)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"❌ Checkpoint for stage '{progress.stage}' failed: {e}")
            raise PipelineError(
                f"Checkpoint failed: {e}",
                PipelineErrorCode.CHECKPOINT_FAILED,
                slide_index=progress.slide_index,
                cause=e,
                stage=progress.stage,
            ) from e

    async def drain_progress(self) -> None:
        """Wait for progress notifications still in flight."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @property
    def image_client(self) -> ImageClient:
        if self._image_client is None:
            self._image_client = get_image_client(storage=self.storage)
        return self._image_client

    # =====================================================================
    # OUTLINE
    # =====================================================================

    async def generate_outline(self, request: GenerationRequest, analysis: Optional[ContentAnalysis] = None) -> Outline:
        """
        Generate a raw outline. No composition or count enforcement here.

        Raises:
            PipelineError: OUTLINE_FAILED when the model call fails
        """
        analysis = analysis or analyze_content(request.input_text)

        self._report(PipelineProgress(
            stage="outline",
            message=(
                f"Analyzing input: {analysis.word_count} words, {len(analysis.statistics)} stats, "
                f"{len(analysis.quotes)} quotes"
            ),
        ))
        self._report(PipelineProgress(stage="outline", message="Generating presentation outline..."))

        try:
            raw = await self.outline_llm.generate(
                build_outline_system_prompt(request, analysis),
                build_outline_user_prompt(request),
                LenientOutline,
            )
        except LLMError as e:
            logger.error(f"❌ Outline generation failed: {e}")
            raise PipelineError(
                f"Outline generation failed: {e.message}", PipelineErrorCode.OUTLINE_FAILED, cause=e
            ) from e

        outline = sanitize_outline(raw)
        # The outline itself is only sent once composed
        self._report(PipelineProgress(stage="outline", message=f"Outline generated: {len(outline.slides)} raw slides"))
        return outline

    async def plan_outline(self, request: GenerationRequest, analysis: Optional[ContentAnalysis] = None) -> Outline:
        """
        Raw outline (provided or generated), composed, count- and
        distribution-enforced.
        """
        analysis = analysis or analyze_content(request.input_text)

        if request.outline is not None:
            raw_outline = request.outline
            self._report(PipelineProgress(
                stage="outline",
                message=f"Using provided outline: {len(raw_outline.slides)} slides",
                outline=raw_outline,
            ))
        else:
            self._report(PipelineProgress(stage="outline", message="Generating outline..."))
            raw_outline = await self.generate_outline(request, analysis)

        composed = compose_deck(raw_outline, ComposerOptions(ensure_agenda=len(raw_outline.slides) > 4))

        stats = get_composer_stats(raw_outline, composed)
        if stats["slides_added"] > 0:
            added = " ".join(
                label for label, flag in (
                    ("+cover", stats["added_cover"]),
                    ("+agenda", stats["added_agenda"]),
                    ("+summary", stats["added_summary"]),
                ) if flag
            )
            self._report(PipelineProgress(
                stage="outline",
                message=f"Composed: {len(raw_outline.slides)} → {len(composed.slides)} slides ({added})",
            ))

        counted = composed
        if request.num_slides:
            counted = enforce_slide_count(composed, request.num_slides, analysis)
            if len(counted.slides) != request.num_slides:
                logger.warning(
                    f"⚠️  Count enforcement failed: wanted {request.num_slides}, got {len(counted.slides)}"
                )
            self._report(PipelineProgress(
                stage="outline",
                message=(
                    f"Count enforced: {len(composed.slides)} → {len(counted.slides)} slides "
                    f"(target: {request.num_slides})"
                ),
            ))

        outline = enforce_slide_distribution(counted, analysis, request.audience)

        distribution = get_distribution_stats(outline)
        logger.info(
            f"📋 Outline ready: {distribution['total_slides']} slides, "
            f"{distribution['bullet_like_count']} bullet-like, {distribution['premium_count']} premium"
        )
        return outline

    # =====================================================================
    # DECK
    # =====================================================================

    async def generate_deck(
        self,
        outline: Outline,
        request: GenerationRequest,
        analysis: Optional[ContentAnalysis] = None,
    ) -> GenerationResult:
        """Content, validation/repair, layout pass and images for a composed outline."""
        total = len(outline.slides)
        slides: List[Slide] = []

        for index, outline_slide in enumerate(outline.slides):
            slide = await self.content_generator.generate_slide_content(
                outline_slide, request, index, total, on_progress=self._report
            )
            finished = PipelineProgress(
                stage="content",
                slide_index=index,
                total_slides=total,
                message=f"Completed slide {index + 1}/{total}",
                slide=slide,
            )
            self._report(finished)
            await self._checkpoint(finished)
            slides.append(slide)

        self._report(PipelineProgress(stage="validation", message="Validating generated content..."))
        validated = await self.repair_engine.validate_and_repair(slides)

        # Re-assign with context so image layouts alternate and variants vary
        laid_out = assign_layout_variants_with_context(validated)
        self._report(PipelineProgress(stage="validation", message="Layout variants optimized for variation"))

        deck = Deck(
            deck=DeckMeta(
                title=outline.title,
                language=request.language,
                theme_id=request.theme_id or ThemeId.NORDIC_LIGHT,
            ),
            slides=laid_out,
        )

        deck, failed_images = await self._generate_images(deck, request, analysis)
        return GenerationResult(outline=outline, deck=deck, failed_images=failed_images)

    async def _generate_images(
        self,
        deck: Deck,
        request: GenerationRequest,
        analysis: Optional[ContentAnalysis],
    ):
        if not should_generate_images(request) or not self.deck_id:
            return deck, []

        total_images = sum(1 for slide in deck.slides if should_generate_image(slide))
        self._report(PipelineProgress(
            stage="images",
            total_images=total_images,
            message=f"Generating AI images for {total_images} slides...",
        ))

        def on_image_progress(progress: ImageProgress):
            self._report(PipelineProgress(
                stage="images",
                slide_index=progress.slide_index,
                total_slides=len(deck.slides),
                total_images=progress.total_images,
                image_index=progress.image_index,
                image_url=progress.image_url,
                message=progress.message,
            ))

        options = dataclasses.replace(
            self.image_options,
            style=get_image_style(request),
            analysis=analysis,
            on_progress=on_image_progress,
        )

        try:
            result = await generate_images_for_deck(deck, self.deck_id, self.image_client, options, self.storage)
        except Exception as e:
            logger.error(f"❌ Image generation failed, continuing without images: {e}")
            self._report(PipelineProgress(stage="images", message="Image generation failed, continuing without images"))
            return deck, []

        self._report(PipelineProgress(stage="images", message="Image generation complete"))
        return result.deck, result.failed_images

    # =====================================================================
    # ENTRY POINT
    # =====================================================================

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """
        Run the whole pipeline for one request.

        Raises:
            PipelineError: When a stage fails; no partial deck is returned
        """
        if request.template_id is not None:
            return await self.generate_from_template(request)

        analysis = analyze_content(request.input_text)
        outline = await self.plan_outline(request, analysis)

        stats = get_distribution_stats(outline)
        composed = PipelineProgress(
            stage="outline",
            message=(
                f"Distribution enforced: {stats['bullet_like_count']} bullet-like, "
                f"{stats['premium_count']} premium, {stats['unique_types']} unique types"
            ),
            outline=outline,
        )
        self._report(composed)
        await self._checkpoint(composed)

        return await self.generate_deck(outline, request, analysis)

    # =====================================================================
    # GOLDEN TEMPLATES
    # =====================================================================

    async def generate_slot_content(self, slot: GoldenSlot, request: GenerationRequest) -> SlotContent:
        generated = await self.llm.generate(GOLDEN_SYSTEM_PROMPT, build_golden_slot_prompt(slot, request), GeneratedSlot)
        return SlotContent(position=slot.position, **generated.model_dump())

    @staticmethod
    def convert_slots_to_slides(template: GoldenTemplate, contents: List[SlotContent]) -> List[Slide]:
        slides = []

        for slot, content in zip(template.slots, contents):
            blocks: List[Block] = []
            if content.title:
                blocks.append(Block(kind=BlockKind.TITLE, text=content.title))
            if content.body:
                blocks.append(Block(kind=BlockKind.TEXT, text=content.body))

            if content.items:
                if slot.slide_type == "stats":
                    blocks.extend(
                        Block(
                            kind=BlockKind.STAT_BLOCK,
                            value=item.value or item.text,
                            label=item.label or "",
                            sublabel=item.sublabel,
                        )
                        for item in content.items
                    )
                elif slot.slide_type in ("bullets", "cta"):
                    items = [item.text or item.label for item in content.items if item.text or item.label]
                    blocks.append(Block(kind=BlockKind.BULLETS, items=items))

            if slot.constraints.requires_image:
                blocks.append(Block(kind=BlockKind.IMAGE, url="", alt=content.title or ""))

            if not blocks:
                blocks.append(Block(kind=BlockKind.TITLE, text=slot.purpose))

            slide = Slide(type=golden_slot_slide_type(slot), layout_variant=slot.layout_variant, blocks=blocks)
            slides.append(apply_sentence_case(slide))

        return slides

    async def generate_from_template(self, request: GenerationRequest) -> GenerationResult:
        """
        Fill a golden template: one model call per slot, fixed types and layouts.

        Raises:
            PipelineError: TEMPLATE_NOT_FOUND or TEMPLATE_GENERATION_FAILED
        """
        template = get_golden_template(request.template_id) if request.template_id else None
        if template is None:
            raise PipelineError(f"Template not found: {request.template_id}", PipelineErrorCode.TEMPLATE_NOT_FOUND)

        self._report(PipelineProgress(
            stage="template",
            message=f"Using golden template: {template.name} ({template.slide_count} slides)",
        ))

        contents: List[SlotContent] = []
        for slot in template.slots:
            slot_index = slot.position - 1
            self._report(PipelineProgress(
                stage="template",
                slide_index=slot_index,
                total_slides=template.slide_count,
                message=f"Generating slot {slot.position}/{template.slide_count}: {slot.slide_type}",
            ))

            try:
                content = await self.generate_slot_content(slot, request)
            except Exception as e:
                logger.error(f"❌ Golden slot {slot.position} failed: {e}")
                raise PipelineError(
                    f"Failed to generate content for slot {slot.position}: {e}",
                    PipelineErrorCode.TEMPLATE_GENERATION_FAILED,
                    slide_index=slot_index,
                    cause=e,
                ) from e

            contents.append(content)
            self._report(PipelineProgress(
                stage="template",
                slide_index=slot_index,
                total_slides=template.slide_count,
                message=f"Completed slot {slot.position}/{template.slide_count}",
                slot_content=content.model_dump(mode="json", exclude_none=True),
            ))

        slides = self.convert_slots_to_slides(template, contents)
        title = (contents[0].title if contents and contents[0].title else template.name)[:200]

        # Golden templates use fixed styling
        deck = Deck(
            deck=DeckMeta(title=title, language=request.language, theme_id=ThemeId.NORDIC_LIGHT),
            slides=slides,
        )
        deck, failed_images = await self._generate_images(deck, request, None)

        outline = Outline(
            title=deck.deck.title[:100],
            slides=[
                OutlineSlide(title=(slide.title or template.name)[:100], suggested_type=slide.type)
                for slide in deck.slides
            ],
        )
        return GenerationResult(outline=outline, deck=deck, failed_images=failed_images)


def create_pipeline(
    settings: Optional[Settings] = None,
    on_progress: Optional[ProgressCallback] = None,
    on_checkpoint: Optional[CheckpointCallback] = None,
    deck_id: Optional[str] = None,
) -> GenerationPipeline:
    """Build a pipeline with clients, storage and retry tuning from settings."""
    settings = settings or get_settings()

    storage = None
    if settings.has_storage and not settings.use_mock_images:
        storage = SupabaseObjectStorage()

    return GenerationPipeline(
        llm_client=get_llm_client(settings, settings.GCP_MODEL_CONTENT),
        outline_client=get_llm_client(settings, settings.GCP_MODEL_OUTLINE),
        repair_client=get_llm_client(settings, settings.GCP_MODEL_REPAIR),
        image_client=get_image_client(settings, storage),
        storage=storage,
        max_repair_attempts=settings.MAX_REPAIR_ATTEMPTS,
        on_progress=on_progress,
        on_checkpoint=on_checkpoint,
        deck_id=deck_id,
        image_options=ImageGenerationOptions(
            max_retries_per_slide=settings.MAX_IMAGE_RETRIES,
            base_delay=settings.IMAGE_BASE_DELAY_SECONDS,
            rate_limit_backoff=settings.IMAGE_RATE_LIMIT_BACKOFF_SECONDS,
            signed_url_ttl=settings.SIGNED_URL_TTL_SECONDS,
        ),
    )
