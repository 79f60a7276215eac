"""
Tests for the Image Orchestrator

Uses a scripted image client and an in-memory storage; no network calls.
"""

import pytest

from deckforge.clients.image_client import (
    ImageClient,
    ImageError,
    ImageErrorCode,
    MockImageClient,
    build_styled_prompt,
    classify_image_error,
)
from deckforge.core import image_orchestrator
from deckforge.core.image_orchestrator import (
    ImageGenerationOptions,
    build_image_prompt,
    extract_keywords,
    generate_images_for_deck,
    should_generate_image,
    update_slide_with_image,
)
from deckforge.models.analysis import ContentAnalysis
from deckforge.models.deck import Deck, DeckMeta, ImageStyle
from deckforge.models.images import ImageResult
from deckforge.models.slide import Block, BlockKind, Slide, SlideType

FAST = dict(base_delay=0, rate_limit_backoff=0)


class ScriptedImageClient(ImageClient):
    """Raises the scripted errors in order, then returns numbered URLs."""

    def __init__(self, errors=None, url_prefix="https://images.example.com/img"):
        self.errors = list(errors or [])
        self.url_prefix = url_prefix
        self.prompts = []

    async def generate_image(self, prompt, style=ImageStyle.DEFAULT):
        self.prompts.append(prompt)
        if self.errors:
            error = self.errors.pop(0)
            if error is not None:
                raise error
        return ImageResult(url=f"{self.url_prefix}-{len(self.prompts)}.png")


class InMemoryStorage:
    """Duck-typed stand-in for SupabaseObjectStorage."""

    def __init__(self):
        self.objects = {}

    async def upload(self, key, data, mime_type):
        self.objects[key] = (data, mime_type)

    async def signed_url(self, key, ttl_seconds):
        return f"https://project.supabase.co/storage/v1/object/sign/deck-images/{key}?token=abc"

    def is_storage_url(self, url):
        return "/storage/v1/object/sign/deck-images/" in (url or "")


def cover_slide(title="Strategi for neste år"):
    return Slide(type=SlideType.COVER, blocks=[Block(kind=BlockKind.TITLE, text=title)])


def text_image_slide(url=""):
    return Slide(
        type=SlideType.TEXT_PLUS_IMAGE,
        blocks=[
            Block(kind=BlockKind.TITLE, text="Vår løsning"),
            Block(kind=BlockKind.TEXT, text="Samler alle prosjektdata på ett sted"),
            Block(kind=BlockKind.IMAGE, url=url, alt="Team rundt en skjerm"),
        ],
    )


def bullets_slide():
    return Slide(
        type=SlideType.BULLETS,
        blocks=[
            Block(kind=BlockKind.TITLE, text="Hovedpunkter"),
            Block(kind=BlockKind.BULLETS, items=["En", "To", "Tre"]),
        ],
    )


def make_deck(*slides):
    return Deck(deck=DeckMeta(title="Strategi"), slides=list(slides))


# =========================================================================
# Slide selection and prompts
# =========================================================================

def test_should_generate_image():
    assert should_generate_image(cover_slide())
    assert should_generate_image(text_image_slide())
    assert should_generate_image(text_image_slide("https://placehold.co/800x600"))
    assert not should_generate_image(text_image_slide("https://cdn.example.com/real.png"))
    assert not should_generate_image(bullets_slide())
    # Eligible but not always-image, and no image block
    assert not should_generate_image(Slide(
        type=SlideType.SECTION_HEADER, blocks=[Block(kind=BlockKind.TITLE, text="Del to")],
    ))


def test_update_slide_with_image():
    updated = update_slide_with_image(text_image_slide(), "https://img/1.png")
    assert updated.first_block(BlockKind.IMAGE).url == "https://img/1.png"
    assert len(updated.blocks) == 3

    cover = update_slide_with_image(cover_slide(), "https://img/2.png")
    image = cover.first_block(BlockKind.IMAGE)
    assert image.url == "https://img/2.png"
    assert image.crop_mode == "cover"


def test_extract_keywords():
    analysis = ContentAnalysis(statistics=["25%", "3 MNOK", "40%"])
    keywords = extract_keywords(cover_slide("Strategi og vekst for Norge"), analysis)

    assert keywords == ["Strategi", "vekst", "Norge", "25%", "3 MNOK"]


def test_build_image_prompt():
    prompt = build_image_prompt(cover_slide(), "Strategi 2025")

    assert prompt.startswith('Professional business presentation cover image for "Strategi for neste år"')
    assert "Topic: Strategi 2025." in prompt
    assert "must NOT contain any" in prompt
    assert "  " not in prompt.split("CRITICAL")[0]
    assert len(prompt) <= 1000


def test_styled_prompt_and_error_classification():
    assert build_styled_prompt("Kontor", ImageStyle.MINIMALIST).startswith("Kontor. Minimalist design")
    assert build_styled_prompt("Kontor").endswith("No text or watermarks.")

    assert classify_image_error(Exception("Request blocked by safety filter")) == ImageErrorCode.CONTENT_POLICY
    assert classify_image_error(Exception("429 Resource exhausted")) == ImageErrorCode.RATE_LIMITED
    assert classify_image_error(Exception("Connection reset")) == ImageErrorCode.NETWORK_ERROR
    assert classify_image_error(Exception("boom")) == ImageErrorCode.MODEL_ERROR


# =========================================================================
# Orchestration
# =========================================================================

@pytest.mark.asyncio
async def test_generates_images_for_eligible_slides_only():
    client = ScriptedImageClient()
    progress = []
    deck = make_deck(cover_slide(), bullets_slide(), text_image_slide())

    result = await generate_images_for_deck(
        deck, "deck-1", client, ImageGenerationOptions(on_progress=progress.append, **FAST)
    )

    assert result.total_attempted == 2
    assert result.total_success == 2
    assert result.failed_images == []
    assert result.deck.slides[0].first_block(BlockKind.IMAGE).url == "https://images.example.com/img-1.png"
    assert result.deck.slides[1] == deck.slides[1]
    assert result.deck.slides[2].first_block(BlockKind.IMAGE).url == "https://images.example.com/img-2.png"
    # Input deck untouched
    assert deck.slides[0].first_block(BlockKind.IMAGE) is None

    assert [p.image_index for p in progress if p.image_url] == [1, 2]
    assert all(p.total_images == 2 for p in progress)


@pytest.mark.asyncio
async def test_content_policy_failure_is_skipped():
    client = ScriptedImageClient(errors=[ImageError("blocked", ImageErrorCode.CONTENT_POLICY)])
    deck = make_deck(cover_slide(), text_image_slide())

    result = await generate_images_for_deck(deck, "deck-1", client, ImageGenerationOptions(**FAST))

    assert len(client.prompts) == 2
    assert result.total_success == 1
    assert len(result.failed_images) == 1
    failed = result.failed_images[0]
    assert failed.slide_index == 0
    assert failed.error_code == "CONTENT_POLICY"
    assert failed.retryable is False


@pytest.mark.asyncio
async def test_rate_limit_is_retried():
    client = ScriptedImageClient(errors=[ImageError("quota", ImageErrorCode.RATE_LIMITED)])
    deck = make_deck(cover_slide())

    result = await generate_images_for_deck(
        deck, "deck-1", client, ImageGenerationOptions(max_retries_per_slide=1, **FAST)
    )

    assert len(client.prompts) == 2
    assert result.total_success == 1
    assert result.failed_images == []


@pytest.mark.asyncio
async def test_rate_limit_exhausted_is_retryable_failure():
    rate_limited = [ImageError("quota", ImageErrorCode.RATE_LIMITED) for _ in range(3)]
    client = ScriptedImageClient(errors=rate_limited)
    deck = make_deck(cover_slide())

    result = await generate_images_for_deck(
        deck, "deck-1", client, ImageGenerationOptions(max_retries_per_slide=2, **FAST)
    )

    assert len(client.prompts) == 3
    assert result.total_success == 0
    assert result.failed_images[0].error_code == "RATE_LIMITED"
    assert result.failed_images[0].retryable is True


@pytest.mark.asyncio
async def test_unexpected_error_is_recorded():
    client = ScriptedImageClient(errors=[RuntimeError("kaboom")])
    result = await generate_images_for_deck(make_deck(cover_slide()), "deck-1", client, ImageGenerationOptions(**FAST))

    assert result.failed_images[0].error_code == "UNKNOWN"
    assert result.failed_images[0].error == "kaboom"


@pytest.mark.asyncio
async def test_skip_slide_indices():
    client = ScriptedImageClient()
    deck = make_deck(cover_slide(), text_image_slide())

    result = await generate_images_for_deck(
        deck, "deck-1", client, ImageGenerationOptions(skip_slide_indices=[0], **FAST)
    )

    assert result.total_attempted == 1
    assert result.deck.slides[0].first_block(BlockKind.IMAGE) is None


@pytest.mark.asyncio
async def test_provider_urls_are_rehosted_in_storage(monkeypatch):
    async def fake_download(url, timeout=30.0):
        return b"\x89PNG", "image/png"

    monkeypatch.setattr(image_orchestrator, "download_image", fake_download)
    storage = InMemoryStorage()

    result = await generate_images_for_deck(
        make_deck(cover_slide()), "deck-42", MockImageClient(), ImageGenerationOptions(**FAST), storage
    )

    assert len(storage.objects) == 1
    key = next(iter(storage.objects))
    assert key.startswith("images/deck-42/slide-0-")
    assert storage.objects[key] == (b"\x89PNG", "image/png")
    assert storage.is_storage_url(result.deck.slides[0].first_block(BlockKind.IMAGE).url)


@pytest.mark.asyncio
async def test_storage_urls_are_not_rehosted():
    storage = InMemoryStorage()
    client = ScriptedImageClient(url_prefix="https://project.supabase.co/storage/v1/object/sign/deck-images/x")

    result = await generate_images_for_deck(
        make_deck(cover_slide()), "deck-1", client, ImageGenerationOptions(**FAST), storage
    )

    assert storage.objects == {}
    assert result.total_success == 1
