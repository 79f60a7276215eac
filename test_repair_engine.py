"""
Tests for the Repair Engine

Model repair runs against the mock client; the fallback paths use a client
that always fails.
"""

import pytest

from deckforge.agents.repair_engine import RepairEngine
from deckforge.clients.llm_client import LLMClient, LLMError, LLMErrorCode
from deckforge.clients.mock_llm_client import MockLLMClient
from deckforge.core.validator import validate_slides
from deckforge.models.slide import Block, BlockKind, Slide, SlideType

BULLET = "Vi har redusert ventetiden for kundene med nesten en tredjedel i år"
LONG_BULLET = "Den nye løsningen " + "gjør hverdagen enklere for alle ansatte " * 3


class FailingLLMClient(LLMClient):
    def __init__(self):
        self.calls = 0

    async def generate(self, system_prompt, user_prompt, output_type):
        self.calls += 1
        raise LLMError("model unavailable", LLMErrorCode.MODEL_ERROR)

    async def generate_streaming(self, system_prompt, user_prompt, output_type, callbacks):
        return await self.generate(system_prompt, user_prompt, output_type)


def bullets_slide(items, title="Resultater fra året"):
    return Slide(
        type=SlideType.BULLETS,
        blocks=[Block(kind=BlockKind.TITLE, text=title), Block(kind=BlockKind.BULLETS, items=items)],
    )


def cover_slide(title):
    return Slide(
        type=SlideType.COVER,
        blocks=[
            Block(kind=BlockKind.TITLE, text=title),
            Block(kind=BlockKind.TEXT, text="Hovedfunn og prioriteringer for neste kvartal"),
        ],
    )


@pytest.mark.asyncio
async def test_valid_slides_need_no_model_calls():
    client = MockLLMClient(latency=0, chunk_delay=0)
    progress = []
    engine = RepairEngine(client, on_progress=progress.append)

    slides = await engine.validate_and_repair([bullets_slide([BULLET] * 4)])

    assert client.calls == []
    assert len(slides) == 1
    assert progress[-1].message == "All slides pass validation"


@pytest.mark.asyncio
async def test_long_bullet_is_shortened_by_the_model():
    client = MockLLMClient(latency=0, chunk_delay=0)
    slide = bullets_slide([BULLET, LONG_BULLET, BULLET, BULLET])
    assert len(LONG_BULLET) > 120

    slides = await RepairEngine(client).validate_and_repair([slide])

    assert [call[0] for call in client.calls] == ["Slide"]
    assert "repair" in client.calls[0][1].lower()
    assert len(slides) == 1
    assert slides[0].type == SlideType.BULLETS
    assert slides[0].title == "Hovedpunkter"
    assert validate_slides(slides).is_valid


@pytest.mark.asyncio
async def test_overloaded_slide_is_split():
    client = MockLLMClient(latency=0, chunk_delay=0)

    slides = await RepairEngine(client).validate_and_repair([bullets_slide([BULLET] * 7)])

    assert [call[0] for call in client.calls] == ["SplitResult"]
    assert [s.title for s in slides] == ["Status og fremdrift", "Utfordringer og tiltak"]
    assert validate_slides(slides).is_valid


@pytest.mark.asyncio
async def test_failed_repair_falls_back_to_truncation():
    client = FailingLLMClient()
    progress = []
    engine = RepairEngine(client, max_repair_attempts=1, on_progress=progress.append)

    slides = await engine.validate_and_repair([bullets_slide([BULLET, LONG_BULLET, BULLET, BULLET])])

    assert client.calls == 1
    items = slides[0].first_block(BlockKind.BULLETS).items
    assert len(items[1]) <= 120
    assert items[1].endswith("...")
    assert items[0] == BULLET
    assert progress[-1].message == "Alle constraint-brudd fikset"
    assert validate_slides(slides).is_valid


@pytest.mark.asyncio
async def test_cover_title_is_truncated_at_word_boundary():
    title = "Strategisk gjennomgang av virksomheten og veien videre mot neste år"
    assert len(title) > 60

    slides = await RepairEngine(FailingLLMClient(), max_repair_attempts=1).validate_and_repair([cover_slide(title)])

    new_title = slides[0].title
    assert len(new_title) <= 60
    assert new_title.endswith("...")
    assert title.startswith(new_title[:-3])
    # Subtitle untouched
    assert slides[0].first_block(BlockKind.TEXT).text == "Hovedfunn og prioriteringer for neste kvartal"


@pytest.mark.asyncio
async def test_unfixable_slide_still_returns():
    sparse = Slide(type=SlideType.COVER, blocks=[Block(kind=BlockKind.TITLE, text="Hei")])

    slides = await RepairEngine(FailingLLMClient(), max_repair_attempts=2).validate_and_repair([sparse])

    assert slides[0].title == "Hei"


def text_violations(slide):
    return [
        (v.field, v.current, v.limit)
        for v in validate_slides([slide]).slide_results[0].violations
        if v.field == "text"
    ]


@pytest.mark.asyncio
async def test_fallback_shortens_the_measured_text_beside_a_callout():
    body = ("Teamet har levert alle milepæler i kvartalet og kundene er fornøyde. " * 7).strip()
    slide = Slide(
        type=SlideType.TEXT_PLUS_IMAGE,
        blocks=[
            Block(kind=BlockKind.TITLE, text="Status for prosjektet"),
            Block(kind=BlockKind.CALLOUT, text="Alt er levert i tide"),
            Block(kind=BlockKind.TEXT, text=body),
            Block(kind=BlockKind.IMAGE, alt="Teamet samlet"),
        ],
    )
    assert text_violations(slide)[0][1] > 450

    slides = await RepairEngine(FailingLLMClient(), max_repair_attempts=1).validate_and_repair([slide])

    assert text_violations(slides[0]) == []
    assert len(slides[0].first_block(BlockKind.TEXT).text) <= 450
    assert slides[0].first_block(BlockKind.CALLOUT).text == "Alt er levert i tide"


@pytest.mark.asyncio
async def test_fallback_fits_joined_text_blocks():
    paragraph = ("Vi har styrket samarbeidet med kundene og forbedret leveransene. " * 4).strip()
    slide = Slide(
        type=SlideType.TEXT_PLUS_IMAGE,
        blocks=[
            Block(kind=BlockKind.TITLE, text="Året som gikk"),
            Block(kind=BlockKind.TEXT, text=paragraph),
            Block(kind=BlockKind.TEXT, text=paragraph),
        ],
    )
    assert len(paragraph) < 450 < len(paragraph) * 2

    slides = await RepairEngine(FailingLLMClient(), max_repair_attempts=1).validate_and_repair([slide])

    texts = [b.text for b in slides[0].blocks if b.kind == BlockKind.TEXT]
    assert text_violations(slides[0]) == []
    assert len(" ".join(texts)) <= 450
    # Trimmed from the last block
    assert texts[0] == paragraph
    assert texts[1].endswith("...")


@pytest.mark.asyncio
async def test_fallback_shortens_a_long_column():
    column = ("Den gamle løsningen krevde manuelle steg og mye dobbeltarbeid. " * 7).strip()
    slide = Slide(
        type=SlideType.TWO_COLUMN_TEXT,
        blocks=[
            Block(kind=BlockKind.TITLE, text="Før og etter"),
            Block(kind=BlockKind.TEXT, text="Nå går alt automatisk"),
            Block(kind=BlockKind.TEXT, text=column),
        ],
    )

    slides = await RepairEngine(FailingLLMClient(), max_repair_attempts=1).validate_and_repair([slide])

    texts = [b.text for b in slides[0].blocks if b.kind == BlockKind.TEXT]
    assert texts[0] == "Nå går alt automatisk"
    assert len(texts[1]) <= 350
    fields = [v.field for v in validate_slides(slides).slide_results[0].violations]
    assert not any(f.startswith("columns") for f in fields)
