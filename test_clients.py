"""
Tests for the model clients and their helpers

Partial JSON parsing, rate-limit retry, the mock language-model client and
client selection from settings.
"""

import pytest

from config.settings import Settings, get_settings
from deckforge.clients.image_client import MockImageClient, get_image_client
from deckforge.clients.llm_client import StreamingCallbacks, get_llm_client
from deckforge.clients.mock_llm_client import MockLLMClient
from deckforge.models.slide import LenientOutline, Slide, SlideType, SplitResult
from deckforge.models.template import GeneratedSlot
from deckforge.utils.gcp_auth import get_project_info
from deckforge.utils.partial_json import close_json, parse_partial_json
from deckforge.utils.vertex_retry import call_with_retry, is_rate_limit_error


# =========================================================================
# Partial JSON
# =========================================================================

def test_close_json():
    assert close_json('{"a": [1, 2') == '{"a": [1, 2]}'
    assert close_json('{"title": "Hei p') == '{"title": "Hei p"}'
    # Brackets inside strings are ignored
    assert close_json('{"t": "[{"') == '{"t": "[{"}'


def test_parse_partial_json():
    assert parse_partial_json('{"blocks": [{"kind": "title", "text": "Ve') == {
        "blocks": [{"kind": "title", "text": "Ve"}]
    }
    assert parse_partial_json('{"blocks": [{"kind":') is None
    assert parse_partial_json("") is None


# =========================================================================
# Retry
# =========================================================================

def test_is_rate_limit_error():
    assert is_rate_limit_error(Exception("429 Too Many Requests"))
    assert is_rate_limit_error(Exception("RESOURCE_EXHAUSTED"))
    assert is_rate_limit_error(Exception("Quota exceeded for project"))
    assert not is_rate_limit_error(Exception("400 Bad Request"))


@pytest.mark.asyncio
async def test_call_with_retry_retries_rate_limits():
    attempts = []

    async def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise Exception("429 rate limit")
        return "ok"

    assert await call_with_retry(flaky, max_retries=3, base_delay=0) == "ok"
    assert len(attempts) == 3


@pytest.mark.asyncio
async def test_call_with_retry_raises_other_errors_immediately():
    attempts = []

    async def broken():
        attempts.append(1)
        raise ValueError("bad request")

    with pytest.raises(ValueError):
        await call_with_retry(broken, max_retries=5, base_delay=0)
    assert len(attempts) == 1


# =========================================================================
# Mock language model
# =========================================================================

@pytest.mark.asyncio
async def test_mock_outline_follows_input():
    client = MockLLMClient(latency=0, chunk_delay=0)

    meeting = await client.generate("outline", "Notater fra møtet i går", LenientOutline)
    product = await client.generate("outline", "Lansering av ny app", LenientOutline)
    generic = await client.generate("outline", "Om været", LenientOutline)

    assert meeting.title == "Møtereferat"
    assert product.title == "Produktpresentasjon"
    assert generic.title == "Presentasjon"
    assert [c[0] for c in client.calls] == ["LenientOutline"] * 3


@pytest.mark.asyncio
async def test_mock_slide_split_and_slot_fixtures():
    client = MockLLMClient(latency=0, chunk_delay=0)

    slide = await client.generate("- Type: hero_stats", "Tall", Slide)
    assert slide.type == SlideType.HERO_STATS

    split = await client.generate("split", "{}", SplitResult)
    assert len(split.slides) == 2

    slot = await client.generate("slot", "Trekk ut 3 nøkkeltall", GeneratedSlot)
    assert len(slot.items) == 3


@pytest.mark.asyncio
async def test_mock_streaming_reports_tokens_and_partials():
    client = MockLLMClient(latency=0, chunk_delay=0)
    tokens, partials, completed = [], [], []
    callbacks = StreamingCallbacks(
        on_token=tokens.append,
        on_partial_json=partials.append,
        on_complete=completed.append,
    )

    slide = await client.generate_streaming("- Type: cover", "Forside", Slide, callbacks)

    assert slide.type == SlideType.COVER
    assert all(len(token) <= 3 for token in tokens)
    assert '"type": "cover"' in "".join(tokens)
    assert partials and all(isinstance(p, dict) for p in partials)
    assert completed == [slide]


# =========================================================================
# Client selection
# =========================================================================

def test_fake_llm_selects_mock_clients():
    settings = Settings(FAKE_LLM=True)

    assert isinstance(get_llm_client(settings), MockLLMClient)
    assert isinstance(get_image_client(settings), MockImageClient)


def test_image_client_without_storage_falls_back_to_mock():
    settings = Settings(FAKE_LLM=False, IMAGE_PROVIDER="vertex", SUPABASE_URL=None, SUPABASE_SERVICE_KEY=None,
                        SUPABASE_ANON_KEY=None)
    assert isinstance(get_image_client(settings), MockImageClient)


def test_project_info_reports_vertex_settings():
    info = get_project_info()

    assert set(info) == {"project_id", "location", "initialized", "has_service_account"}
    assert info["project_id"] == get_settings().GCP_PROJECT_ID
    assert isinstance(info["initialized"], bool)
