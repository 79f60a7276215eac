"""
Golden template slot prompts.

The slide type and layout of every slot are fixed; these prompts only ask
for content within the slot's limits.
"""

from deckforge.models.deck import GenerationRequest
from deckforge.models.template import GoldenSlot

GOLDEN_SYSTEM_PROMPT = """You are a professional presentation content writer.
Generate concise, high-quality content for one slot of a fixed template.
Return only the requested fields."""


def _language(language: str) -> str:
    return "norsk" if language == "no" else "English"


def _input_block(input_text: str) -> str:
    return f"""TEKST:
---
{input_text}
---"""


def build_golden_cover_prompt(input_text: str, language: str) -> str:
    return f"""Lag en kraftfull presentasjonstittel basert på følgende innhold.

{_input_block(input_text)}

KRAV:
- Tittel: maks 60 tegn, engasjerende og profesjonell
- Undertittel (body): maks 120 tegn, utdyp hovedpoenget
- Skriv på {_language(language)}
- Unngå klisjéer som "Den ultimate guiden\""""


def build_golden_stats_prompt(input_text: str, language: str) -> str:
    return f"""Analyser følgende tekst og trekk ut NØYAKTIG 3 nøkkeltall.

{_input_block(input_text)}

KRAV:
- Nøyaktig 3 statistikker, hver med value (tallet) og label (kort beskrivelse)
- Bruk tall fra teksten eller realistiske estimater
- Labels på {_language(language)}, maks 30 tegn
- Tittel, og en kort intro (body) på maks 100 tegn"""


def build_golden_bullets_prompt(input_text: str, language: str, min_items: int = 4, max_items: int = 5) -> str:
    return f"""Oppsummer følgende tekst i {min_items}-{max_items} konsise punkter.

{_input_block(input_text)}

KRAV:
- Mellom {min_items} og {max_items} punkter (items med text), hvert maks 80 tegn
- Start hvert punkt med et handlingsverb når mulig
- Skriv på {_language(language)}"""


def build_golden_cta_prompt(input_text: str, language: str) -> str:
    return f"""Lag en avsluttende "call to action" slide basert på innholdet.

{_input_block(input_text)}

KRAV:
- Tittel: maks 40 tegn, handlingsrettet
- Undertittel (body): maks 200 tegn, oppsummer neste steg
- 2-3 konkrete handlingspunkter (items med text), hvert maks 60 tegn
- Skriv på {_language(language)}"""


def build_golden_content_prompt(input_text: str, language: str, purpose: str) -> str:
    return f"""Lag hovedinnhold for en split-slide (tekst + bilde).

FORMÅL: {purpose}

{_input_block(input_text)}

KRAV:
- Tittel: maks 50 tegn
- Brødtekst (body): maks 300 tegn, ett sammenhengende avsnitt
- Beskriv også hvilket bilde som passer (image_description)
- Skriv på {_language(language)}"""


def build_golden_slot_prompt(slot: GoldenSlot, request: GenerationRequest) -> str:
    """Pick the prompt for a slot's fixed slide type."""
    text, language = request.input_text, request.language

    if slot.slide_type == "cover":
        return build_golden_cover_prompt(text, language)
    if slot.slide_type == "stats":
        return build_golden_stats_prompt(text, language)
    if slot.slide_type == "bullets":
        return build_golden_bullets_prompt(
            text,
            language,
            slot.constraints.item_count_min or 4,
            slot.constraints.item_count_max or 5,
        )
    if slot.slide_type == "cta":
        return build_golden_cta_prompt(text, language)
    if slot.slide_type == "content":
        return build_golden_content_prompt(text, language, slot.purpose)

    return f"""Generate content for a {slot.slide_type} slide based on:
{text}

Return a title, a body and items as appropriate."""
