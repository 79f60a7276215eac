"""
Image Orchestrator

Finds the slides that need an image, builds a topical prompt for each and
generates them one at a time. Image failures are recorded on the result and
never abort a deck.
"""

import asyncio
import re
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from deckforge.clients.image_client import ImageClient, ImageError, ImageErrorCode
from deckforge.models.analysis import ContentAnalysis
from deckforge.models.deck import Deck, FailedImage, GenerationRequest, ImageMode, ImageStyle
from deckforge.models.images import ImageGenerationResult
from deckforge.models.slide import Block, BlockKind, Slide, SlideType
from deckforge.storage.supabase import StorageError, SupabaseObjectStorage, download_image
from deckforge.utils.logger import setup_logger

logger = setup_logger(__name__)

NO_TEXT_INSTRUCTION = """
CRITICAL: The image must NOT contain any:
- Text, words, letters, or numbers
- Signs, labels, banners, or watermarks
- UI elements, buttons, or interface text
- Logos with readable text
Use photographic or abstract styles that naturally avoid text."""

IMAGE_ELIGIBLE_SLIDE_TYPES = {
    SlideType.COVER,
    SlideType.SECTION_HEADER,
    SlideType.TEXT_PLUS_IMAGE,
    SlideType.SUMMARY_NEXT_STEPS,
    SlideType.HERO_STATS,
    SlideType.SPLIT_WITH_CALLOUTS,
    SlideType.PERSON_SPOTLIGHT,
    SlideType.ICON_CARDS_WITH_IMAGE,
    SlideType.TWO_COLUMN_TEXT,
    SlideType.TIMELINE_ROADMAP,
    SlideType.NUMBERED_GRID,
}

ALWAYS_NEEDS_IMAGE = {
    SlideType.COVER,
    SlideType.TEXT_PLUS_IMAGE,
    SlideType.HERO_STATS,
    SlideType.SPLIT_WITH_CALLOUTS,
    SlideType.PERSON_SPOTLIGHT,
    SlideType.ICON_CARDS_WITH_IMAGE,
}

MAX_PROMPT_CHARS = 1000
MAX_KEYWORDS = 5
MAX_KEYWORD_CHARS = 40

_STOP_WORDS = re.compile(r"^(og|med|for|til|fra|som|det|den|de|en|et|i|på|av)$", re.IGNORECASE)
_PLACEHOLDER_MARKERS = ("placeholder", "placehold.co")


@dataclass
class ImageProgress:
    """One image progress notification. image_index is 1-based within the queue."""
    slide_index: int
    image_index: int
    total_images: int
    message: str
    image_url: Optional[str] = None


@dataclass
class ImageGenerationOptions:
    style: ImageStyle = ImageStyle.DEFAULT
    on_progress: Optional[Callable[[ImageProgress], None]] = None
    skip_slide_indices: List[int] = field(default_factory=list)
    analysis: Optional[ContentAnalysis] = None
    max_retries_per_slide: int = 1
    base_delay: float = 3.0
    rate_limit_backoff: float = 8.0
    signed_url_ttl: int = 7 * 24 * 60 * 60


# =========================================================================
# PROMPTS
# =========================================================================

def _block_text(block: Block) -> str:
    if block.kind in (BlockKind.TITLE, BlockKind.TEXT, BlockKind.CALLOUT):
        return block.text or ""
    if block.kind == BlockKind.BULLETS:
        return ". ".join(block.items or [])
    if block.kind == BlockKind.TABLE:
        return ", ".join(block.columns or [])
    return ""


def extract_keywords(slide: Slide, analysis: Optional[ContentAnalysis] = None) -> List[str]:
    """
    Up to five distinct keywords from the slide title and the content analysis.

    Title words come first, then statistics (2), feature titles (3), topics (2)
    and the first step of a sequential process.
    """
    keywords = []

    if slide.title:
        words = [w for w in slide.title.split() if len(w) > 3 and not _STOP_WORDS.match(w)]
        keywords.extend(words[:3])

    if analysis is not None:
        keywords.extend(analysis.statistics[:2])
        keywords.extend(feature.title for feature in analysis.features[:3])
        keywords.extend(analysis.topics[:2])
        if len(analysis.sequential_process) >= 3:
            keywords.append(analysis.sequential_process[0].text[:30])

    unique = list(dict.fromkeys(keywords))
    return [k[:MAX_KEYWORD_CHARS] for k in unique][:MAX_KEYWORDS]


def build_image_prompt(
    slide: Slide,
    deck_title: Optional[str] = None,
    analysis: Optional[ContentAnalysis] = None,
) -> str:
    """Per-type image prompt for a slide, capped at MAX_PROMPT_CHARS."""
    title = slide.title
    content_blocks = [b for b in slide.blocks if b.kind not in (BlockKind.TITLE, BlockKind.IMAGE)]
    key_content = ". ".join(t for t in (_block_text(b) for b in content_blocks[:2]) if t)[:200]

    keywords = extract_keywords(slide, analysis)
    keywords_text = f"Key concepts: {', '.join(keywords)}." if keywords else ""
    context_text = keywords_text or (f"Context: {key_content}." if key_content else "")
    related_text = keywords_text or (f"Related to: {key_content}." if key_content else "")

    slide_type = slide.type
    if slide_type == SlideType.COVER:
        topic = f"Topic: {deck_title}." if deck_title else ""
        prompt = (
            f'Professional business presentation cover image for "{title}". {topic} {keywords_text} '
            "Cinematic, modern, visually stunning background. High-end corporate aesthetic with "
            "dramatic lighting. Photorealistic quality."
        )
    elif slide_type == SlideType.SECTION_HEADER:
        prompt = (
            f'Section divider visual for "{title}". {keywords_text} Abstract geometric shapes or '
            "gradients representing the concept. Modern, sophisticated, premium corporate aesthetic."
        )
    elif slide_type == SlideType.TEXT_PLUS_IMAGE:
        prompt = (
            f'High-quality visual representation of: "{title}". {context_text} Professional, '
            "photorealistic image that illustrates this concept. Magazine-quality photography."
        )
    elif slide_type == SlideType.TWO_COLUMN_TEXT:
        prompt = (
            f'Split or dual concept illustration for "{title}". {keywords_text} Visual showing '
            "comparison or contrast. Modern business style with clear distinction between two elements."
        )
    elif slide_type == SlideType.SUMMARY_NEXT_STEPS:
        prompt = (
            f'Inspirational conclusion visual for "{title}". {keywords_text} Representing '
            "achievement and forward momentum. Cinematic, aspirational business imagery with warm lighting."
        )
    elif slide_type == SlideType.PERSON_SPOTLIGHT:
        prompt = (
            "Professional corporate headshot portrait. Business executive in modern office setting. "
            "Confident, approachable expression. Natural lighting, shallow depth of field. "
            "Clean background with soft bokeh."
        )
    elif slide_type == SlideType.HERO_STATS:
        stats = ", ".join(analysis.statistics[:3]) if analysis else ""
        metrics = f"Key metrics: {stats}." if stats else ""
        prompt = (
            f'Dramatic business hero image for "{title}". {metrics} {keywords_text} Wide cinematic '
            "shot with dramatic lighting. Premium corporate aesthetic suitable for overlaying statistics."
        )
    elif slide_type == SlideType.SPLIT_WITH_CALLOUTS:
        prompt = (
            f'Modern architectural or business interior image for "{title}". {context_text} Clean '
            "lines, professional environment. High-end photography for a split-layout slide."
        )
    elif slide_type == SlideType.ICON_CARDS_WITH_IMAGE:
        features = ", ".join(f.title for f in analysis.features[:3]) if analysis else ""
        features_text = f"Features: {features}." if features else ""
        prompt = (
            f'Professional concept image for "{title}". {features_text} {keywords_text} Modern, clean '
            "aesthetic that complements icon cards. Subtle, not overpowering."
        )
    elif slide_type == SlideType.TIMELINE_ROADMAP:
        steps = analysis.sequential_process[:3] if analysis else []
        phases = f"Phases: {', '.join(s.text[:25] for s in steps)}." if steps else ""
        prompt = (
            f'Conceptual image representing progress and milestones for "{title}". {phases} '
            f"{keywords_text} Abstract or architectural imagery suggesting a journey through phases."
        )
    elif slide_type == SlideType.NUMBERED_GRID:
        prompt = (
            f'Professional concept visualization for "{title}". {related_text} Modern, abstract or '
            "business imagery that complements numbered content cards."
        )
    else:
        prompt = (
            f'Premium professional business image for "{title}". {related_text} Modern, '
            "sophisticated corporate aesthetic suitable for executive presentations."
        )

    prompt = re.sub(r" {2,}", " ", prompt) + f" {NO_TEXT_INSTRUCTION}"
    return prompt[:MAX_PROMPT_CHARS]


# =========================================================================
# SLIDE HELPERS
# =========================================================================

def should_generate_image(slide: Slide) -> bool:
    """
    True for eligible slides with an empty or placeholder image block, or
    with no image block when their type always carries one.
    """
    if slide.type not in IMAGE_ELIGIBLE_SLIDE_TYPES:
        return False

    image_block = slide.first_block(BlockKind.IMAGE)
    if image_block is None:
        return slide.type in ALWAYS_NEEDS_IMAGE

    url = image_block.url or ""
    return not url or any(marker in url for marker in _PLACEHOLDER_MARKERS)


def update_slide_with_image(slide: Slide, image_url: str) -> Slide:
    """Point every image block at image_url, adding one for always-image types."""
    blocks = [
        block.model_copy(update={"url": image_url}) if block.kind == BlockKind.IMAGE else block
        for block in slide.blocks
    ]

    if slide.first_block(BlockKind.IMAGE) is None and slide.type in ALWAYS_NEEDS_IMAGE:
        blocks.append(Block(
            kind=BlockKind.IMAGE,
            url=image_url,
            alt=f"AI-generated image for {slide.title or 'slide'}",
            crop_mode="cover",
        ))

    return slide.model_copy(update={"blocks": blocks})


def should_generate_images(request: GenerationRequest) -> bool:
    return request.image_mode == ImageMode.AI


def get_image_style(request: GenerationRequest) -> ImageStyle:
    return request.image_style or ImageStyle.DEFAULT


def generate_image_key(deck_id: str, slide_index: int) -> str:
    return f"images/{deck_id}/slide-{slide_index}-{int(time.time() * 1000)}.png"


# =========================================================================
# ORCHESTRATION
# =========================================================================

async def _generate_slide_image(
    image_client: ImageClient,
    slide: Slide,
    slide_index: int,
    deck_id: str,
    deck_title: str,
    options: ImageGenerationOptions,
    storage: Optional[SupabaseObjectStorage],
) -> str:
    prompt = build_image_prompt(slide, deck_title, options.analysis)
    result = await image_client.generate_image(prompt, options.style)

    # Provider URLs are temporary; re-host them unless they already live in our bucket
    if storage is None or storage.is_storage_url(result.url):
        return result.url

    data, mime_type = await download_image(result.url)
    key = generate_image_key(deck_id, slide_index)
    await storage.upload(key, data, mime_type)
    return await storage.signed_url(key, options.signed_url_ttl)


async def generate_images_for_deck(
    deck: Deck,
    deck_id: str,
    image_client: ImageClient,
    options: Optional[ImageGenerationOptions] = None,
    storage: Optional[SupabaseObjectStorage] = None,
) -> ImageGenerationResult:
    """
    Generate images for every eligible slide, sequentially.

    Content-policy rejections are skipped and recorded as non-retryable.
    Rate limits are retried up to max_retries_per_slide times with an
    exponential backoff, then recorded as retryable. Any other failure is
    recorded as retryable.

    Args:
        deck: The finished deck
        deck_id: Used in storage keys
        image_client: Image generation client
        options: Style, delays, analysis and progress callback
        storage: Object storage for re-hosting provider URLs

    Returns:
        ImageGenerationResult with the updated deck and failed images
    """
    options = options or ImageGenerationOptions()

    queue = [
        (index, slide) for index, slide in enumerate(deck.slides)
        if index not in options.skip_slide_indices and should_generate_image(slide)
    ]
    if not queue:
        return ImageGenerationResult(deck=deck)

    total = len(queue)
    slides = list(deck.slides)
    failed: List[FailedImage] = []
    success = 0

    def report(slide_index: int, position: int, message: str, image_url: Optional[str] = None):
        if options.on_progress:
            options.on_progress(ImageProgress(slide_index, position, total, message, image_url))

    logger.info(f"🖼️  Generating {total} images for deck {deck_id} ({options.style.value})")

    for position, (index, slide) in enumerate(queue, start=1):
        retries = 0

        while True:
            if retries:
                report(index, position, f"Regenerer bilde {position}/{total} for slide {index + 1} (forsøk {retries + 1})...")
            else:
                report(index, position, f"Genererer bilde {position}/{total} for slide {index + 1}...")

            try:
                url = await _generate_slide_image(
                    image_client, slide, index, deck_id, deck.deck.title, options, storage
                )
            except ImageError as e:
                if e.code == ImageErrorCode.CONTENT_POLICY:
                    logger.warning(f"Slide {index} image blocked by content policy, skipping")
                    failed.append(FailedImage(
                        slide_index=index,
                        error="Bildet ble blokkert av innholdspolicy",
                        error_code=e.code.value,
                        retryable=False,
                    ))
                    break

                if e.code == ImageErrorCode.RATE_LIMITED:
                    if retries < options.max_retries_per_slide:
                        delay = options.rate_limit_backoff * (2 ** retries)
                        logger.warning(
                            f"⚠️  Rate limited for slide {index}, retry "
                            f"{retries + 1}/{options.max_retries_per_slide} in {delay:.0f}s"
                        )
                        report(index, position, f"Venter {delay:.0f}s før nytt forsøk...")
                        await asyncio.sleep(delay)
                        retries += 1
                        continue

                    logger.error(f"Slide {index} failed after {options.max_retries_per_slide} rate-limit retries")
                    failed.append(FailedImage(
                        slide_index=index,
                        error=f"Rate limited - prøvde {options.max_retries_per_slide} ganger",
                        error_code=e.code.value,
                        retryable=True,
                    ))
                    break

                logger.error(f"Failed to generate image for slide {index}: {e}")
                failed.append(FailedImage(
                    slide_index=index, error=e.message, error_code=e.code.value, retryable=True,
                ))
                break
            except StorageError as e:
                logger.error(f"Failed to persist image for slide {index}: {e}")
                failed.append(FailedImage(
                    slide_index=index, error=str(e), error_code="STORAGE_ERROR", retryable=True,
                ))
                break
            except Exception as e:
                logger.error(f"Failed to generate image for slide {index}: {e}")
                failed.append(FailedImage(
                    slide_index=index, error=str(e) or "Ukjent feil", error_code="UNKNOWN", retryable=True,
                ))
                break

            slides[index] = update_slide_with_image(slide, url)
            success += 1
            report(index, position, f"Bilde {position}/{total} ferdig", url)

            if position < total and options.base_delay > 0:
                await asyncio.sleep(options.base_delay)
            break

    if failed:
        logger.warning(
            f"Image generation completed: {success}/{total} successful, {len(failed)} failed "
            f"(slides {', '.join(str(f.slide_index) for f in failed)})"
        )
    else:
        logger.info(f"✅ Image generation completed: {success}/{total} successful")

    return ImageGenerationResult(
        deck=deck.model_copy(update={"slides": slides}),
        failed_images=failed,
        total_attempted=total,
        total_success=success,
    )
