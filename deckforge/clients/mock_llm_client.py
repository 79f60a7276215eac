"""
Mock LLM Client for deterministic testing.

Returns Norwegian fixture data chosen from the requested output type and the
prompt text. Used when FAKE_LLM=true (or LLM_PROVIDER=mock).
"""

import asyncio
import copy
import json
import re
from typing import Any, Dict, Optional, Type

from pydantic import BaseModel, ValidationError

from deckforge.clients.llm_client import LLMClient, LLMError, LLMErrorCode, StreamingCallbacks, T
from deckforge.models.slide import LenientOutline, Outline, Slide, SlideType, SplitResult
from deckforge.models.template import GeneratedSlot
from deckforge.utils.logger import setup_logger
from deckforge.utils.partial_json import parse_partial_json

logger = setup_logger(__name__)

STREAM_CHUNK_SIZE = 3
PARTIAL_PARSE_EVERY = 30

_TYPE_PATTERN = re.compile(r"\btype:\s*([a-z_]+)")


# =========================================================================
# FIXTURES
# =========================================================================

MEETING_OUTLINE = {
    "title": "Møtereferat",
    "slides": [
        {"title": "Møteoversikt", "suggested_type": "cover", "hints": ["Dato", "Deltakere"]},
        {"title": "Agenda", "suggested_type": "agenda", "hints": ["Punkter til diskusjon"]},
        {"title": "Beslutninger", "suggested_type": "decisions_list", "hints": ["Viktige avgjørelser"]},
        {"title": "Oppgaver", "suggested_type": "action_items_table", "hints": ["Hvem gjør hva"]},
        {"title": "Neste steg", "suggested_type": "summary_next_steps", "hints": ["Oppfølging"]},
    ],
}

PRODUCT_OUTLINE = {
    "title": "Produktpresentasjon",
    "slides": [
        {"title": "Velkommen", "suggested_type": "cover", "hints": ["Produktnavn"]},
        {"title": "Problemet vi løser", "suggested_type": "bullets", "hints": ["Smertepunkter"]},
        {"title": "Vår løsning", "suggested_type": "text_plus_image", "hints": ["Hovedfunksjoner"]},
        {"title": "Hvordan det fungerer", "suggested_type": "two_column_text", "hints": ["Før/etter"]},
        {"title": "Priser og pakker", "suggested_type": "bullets", "hints": ["Alternativer"]},
        {"title": "Kom i gang", "suggested_type": "summary_next_steps", "hints": ["Neste steg"]},
    ],
}

GENERIC_OUTLINE = {
    "title": "Presentasjon",
    "slides": [
        {"title": "Introduksjon", "suggested_type": "cover", "hints": ["Tittel og kontekst"]},
        {"title": "Oversikt", "suggested_type": "agenda", "hints": ["Hovedpunkter"]},
        {"title": "Hovedinnhold", "suggested_type": "bullets", "hints": ["Nøkkelpunkter"]},
        {"title": "Detaljer", "suggested_type": "two_column_text", "hints": ["Mer informasjon"]},
        {"title": "Oppsummering", "suggested_type": "summary_next_steps", "hints": ["Konklusjon"]},
    ],
}

# One slide per type, each within its limits and dense enough to pass validation
SLIDE_FIXTURES: Dict[SlideType, Dict[str, Any]] = {
    SlideType.COVER: {
        "type": "cover",
        "blocks": [
            {"kind": "title", "text": "Strategi og veien videre"},
            {"kind": "text", "text": "Hovedfunn, beslutninger og prioriteringer for neste kvartal"},
        ],
    },
    SlideType.SECTION_HEADER: {
        "type": "section_header",
        "blocks": [
            {"kind": "title", "text": "Bakgrunn og status"},
            {"kind": "text", "text": "Hvor vi står i dag, og hva som har endret seg siden forrige gjennomgang"},
        ],
    },
    SlideType.AGENDA: {
        "type": "agenda",
        "blocks": [
            {"kind": "title", "text": "Agenda"},
            {"kind": "bullets", "items": [
                "Bakgrunn og mål for prosjektet",
                "Status på leveranser og milepæler",
                "Viktige beslutninger fra forrige periode",
                "Risikoer, avhengigheter og tiltak",
                "Oppgaver, ansvar og neste steg",
                "Spørsmål og åpen diskusjon",
            ]},
        ],
    },
    SlideType.BULLETS: {
        "type": "bullets",
        "blocks": [
            {"kind": "title", "text": "Hovedpunkter"},
            {"kind": "bullets", "items": [
                "Leveransen er i rute, og første versjon er klar for testing i januar",
                "Budsjettet holdes, med en liten reserve for uforutsette kostnader",
                "Brukerne gir positive tilbakemeldinger på det nye grensesnittet",
                "Integrasjonen mot økonomisystemet krever mer tid enn planlagt",
            ]},
        ],
    },
    SlideType.TWO_COLUMN_TEXT: {
        "type": "two_column_text",
        "blocks": [
            {"kind": "title", "text": "Sammenligning av alternativene"},
            {"kind": "text", "text": (
                "Løsning A: Raskere å implementere og rimeligere i innkjøp, men gir mindre "
                "fleksibilitet når behovene endrer seg over tid."
            )},
            {"kind": "text", "text": (
                "Løsning B: Krever større investering i starten, men skalerer bedre, har "
                "sterkere support og passer langsiktige planer."
            )},
        ],
    },
    SlideType.TEXT_PLUS_IMAGE: {
        "type": "text_plus_image",
        "blocks": [
            {"kind": "title", "text": "Vår løsning i praksis"},
            {"kind": "text", "text": (
                "Løsningen samler alle prosjektdata på ett sted, gir teamet sanntidsoversikt over "
                "fremdrift og risiko, og gjør det enkelt å dele status med ledelsen uten manuelle "
                "rapporter. Det sparer tid hver uke."
            )},
            {"kind": "image", "url": "", "alt": "Team som samarbeider rundt en skjerm med prosjektoversikt"},
        ],
    },
    SlideType.DECISIONS_LIST: {
        "type": "decisions_list",
        "blocks": [
            {"kind": "title", "text": "Beslutninger"},
            {"kind": "bullets", "items": [
                "Budsjettet for første kvartal er godkjent uten endringer",
                "Ny leverandør for drift er valgt etter anbudsrunden",
                "Prosjektplanen er vedtatt med lansering i mars",
                "Ressursallokeringen for teamet er bekreftet ut året",
                "Ukentlige statusmøter erstattes av en kort skriftlig rapport",
            ]},
        ],
    },
    SlideType.ACTION_ITEMS_TABLE: {
        "type": "action_items_table",
        "blocks": [
            {"kind": "title", "text": "Oppgaver og ansvar"},
            {"kind": "table", "columns": ["Oppgave", "Ansvarlig", "Frist"], "rows": [
                ["Ferdigstille kravspesifikasjon", "Anna Hansen", "15. januar"],
                ["Gjennomgå leverandørkontrakt", "Per Olsen", "20. januar"],
                ["Planlegge brukertest med pilotgruppen", "Kari Nilsen", "27. januar"],
                ["Oppdatere risikoregister", "Ole Berg", "31. januar"],
            ]},
        ],
    },
    SlideType.SUMMARY_NEXT_STEPS: {
        "type": "summary_next_steps",
        "blocks": [
            {"kind": "title", "text": "Neste steg"},
            {"kind": "bullets", "items": [
                "Følge opp kunden med oppdatert tilbud innen fredag",
                "Ferdigstille dokumentasjonen før neste styremøte",
                "Planlegge pilot med to avdelinger i februar",
                "Sende statusrapport til ledergruppen hver måned",
                "Evaluere resultatene og justere planen etter piloten",
            ]},
        ],
    },
    SlideType.QUOTE_CALLOUT: {
        "type": "quote_callout",
        "blocks": [
            {"kind": "callout", "style": "quote", "text": (
                "Vi leverer ikke bare et nytt system. Vi endrer måten teamet samarbeider, "
                "planlegger og følger opp arbeidet på hver eneste dag."
            )},
            {"kind": "text", "text": "Prosjektleder, statusmøte uke 50"},
        ],
    },
    SlideType.TIMELINE_ROADMAP: {
        "type": "timeline_roadmap",
        "blocks": [
            {"kind": "title", "text": "Veien fra idé til lansering"},
            {"kind": "timeline_step", "step": 1, "text": "Forprosjekt og kartlegging av behov",
             "description": "Intervjuer med brukere og analyse av dagens prosesser", "status": "completed"},
            {"kind": "timeline_step", "step": 2, "text": "Utvikling av første versjon",
             "description": "Kjernefunksjoner bygges i korte iterasjoner", "status": "completed"},
            {"kind": "timeline_step", "step": 3, "text": "Pilot med utvalgte brukere og justeringer",
             "description": "To avdelinger tester løsningen i seks uker", "status": "current"},
            {"kind": "timeline_step", "step": 4, "text": "Full utrulling i hele organisasjonen",
             "description": "Opplæring og overgang fra gamle systemer", "status": "upcoming"},
            {"kind": "timeline_step", "step": 5, "text": "Evaluering og videreutvikling",
             "description": "Måling av effekt og plan for neste fase", "status": "upcoming"},
        ],
    },
    SlideType.NUMBERED_GRID: {
        "type": "numbered_grid",
        "blocks": [
            {"kind": "title", "text": "Fire prinsipper for godt samarbeid"},
            {"kind": "numbered_card", "number": 1, "text": "Tydelige mål som hele teamet forstår",
             "description": "Alle vet hva vi skal oppnå og hvorfor"},
            {"kind": "numbered_card", "number": 2, "text": "Åpen kommunikasjon om risiko og status",
             "description": "Problemer løftes tidlig, ikke i siste liten"},
            {"kind": "numbered_card", "number": 3, "text": "Korte beslutningsveier og klart ansvar",
             "description": "Hver oppgave har én tydelig eier"},
            {"kind": "numbered_card", "number": 4, "text": "Jevnlig oppfølging og læring underveis",
             "description": "Korte evalueringer etter hver leveranse"},
        ],
    },
    SlideType.ICON_CARDS_WITH_IMAGE: {
        "type": "icon_cards_with_image",
        "blocks": [
            {"kind": "title", "text": "Nøkkelfunksjoner i løsningen"},
            {"kind": "icon_card", "icon": "zap", "bg_color": "pink",
             "text": "Sanntidsoversikt over prosjektstatus", "description": "Alle ser samme tall til enhver tid"},
            {"kind": "icon_card", "icon": "shield", "bg_color": "purple",
             "text": "Automatiske varsler ved avvik og risiko", "description": "Avvik fanges opp før de blir problemer"},
            {"kind": "icon_card", "icon": "globe", "bg_color": "blue",
             "text": "Enkel deling av rapporter med ledelsen", "description": "Ferdige rapporter med ett klikk"},
            {"kind": "icon_card", "icon": "target", "bg_color": "cyan",
             "text": "Sikker tilgangsstyring for alle brukere", "description": "Riktig tilgang for riktig rolle"},
            {"kind": "image", "url": "", "alt": "Dashboard med prosjektstatus på en bærbar PC"},
        ],
    },
    SlideType.SUMMARY_WITH_STATS: {
        "type": "summary_with_stats",
        "blocks": [
            {"kind": "title", "text": "Resultater så langt"},
            {"kind": "text", "text": (
                "Prosjektet har levert over forventning det siste halvåret, med økt bruk og "
                "lavere kostnader enn planlagt."
            )},
            {"kind": "stat_block", "value": "95%", "label": "Fornøyde brukere"},
            {"kind": "stat_block", "value": "2,5 MNOK", "label": "Spart i driftskostnader"},
            {"kind": "stat_block", "value": "40%", "label": "Raskere saksbehandling"},
        ],
    },
    SlideType.HERO_STATS: {
        "type": "hero_stats",
        "blocks": [
            {"kind": "image", "url": "", "alt": "Moderne kontorlandskap i morgenlys"},
            {"kind": "title", "text": "Tallene som betyr noe"},
            {"kind": "text", "text": "Et år med solid vekst på alle områder"},
            {"kind": "stat_block", "value": "87%", "label": "Kunder som anbefaler oss videre"},
            {"kind": "stat_block", "value": "32%", "label": "Vekst i omsetning siste år"},
            {"kind": "stat_block", "value": "-25%", "label": "Reduksjon i leveringstid"},
            {"kind": "stat_block", "value": "3", "label": "Nye markeder åpnet i 2024"},
        ],
    },
    SlideType.SPLIT_WITH_CALLOUTS: {
        "type": "split_with_callouts",
        "blocks": [
            {"kind": "title", "text": "Hvorfor kundene velger oss"},
            {"kind": "image", "url": "", "alt": "Rådgiver i samtale med kunde"},
            {"kind": "icon_card", "icon": "heart", "bg_color": "pink",
             "text": "Lokal kompetanse og kort responstid", "description": "Vi er der når det trengs"},
            {"kind": "icon_card", "icon": "star", "bg_color": "purple",
             "text": "Dokumentert erfaring fra offentlig sektor", "description": "Over 40 leverte prosjekter"},
            {"kind": "icon_card", "icon": "zap", "bg_color": "cyan",
             "text": "Fleksible avtaler tilpasset behovet", "description": "Betal for det dere bruker"},
            {"kind": "icon_card", "icon": "shield", "bg_color": "pink",
             "text": "Trygg drift med norsk datalagring", "description": "Data lagres i Norge"},
        ],
    },
    SlideType.PERSON_SPOTLIGHT: {
        "type": "person_spotlight",
        "blocks": [
            {"kind": "title", "text": "Møt prosjektlederen"},
            {"kind": "image", "url": "", "alt": "Profesjonelt portrett av prosjektleder"},
            {"kind": "text", "text": (
                "Kari Nilsen har ledet digitaliseringsprosjekter i over ti år og kjenner både "
                "teknologien og brukerne."
            )},
            {"kind": "bullets", "items": [
                "Tidligere leder for IT-strategi i kommunen",
                "Sertifisert prosjektleder (PMP)",
            ]},
        ],
    },
}

SPLIT_FIXTURE = {
    "slides": [
        {
            "type": "bullets",
            "blocks": [
                {"kind": "title", "text": "Status og fremdrift"},
                {"kind": "bullets", "items": [
                    "Første versjon er ferdig utviklet og klar for brukertest",
                    "Alle milepæler for høsten er nådd innenfor budsjett",
                    "Teamet er fullt bemannet etter nyansettelser i oktober",
                    "Brukerne i piloten rapporterer høy tilfredshet",
                ]},
            ],
        },
        {
            "type": "bullets",
            "blocks": [
                {"kind": "title", "text": "Utfordringer og tiltak"},
                {"kind": "bullets", "items": [
                    "Integrasjonen mot økonomisystemet er forsinket med tre uker",
                    "Ekstra ressurser er satt inn for å ta igjen etterslepet",
                    "Risikoen for ny forsinkelse vurderes som lav",
                    "Status følges opp ukentlig i styringsgruppen",
                ]},
            ],
        },
    ],
}

SLOT_FIXTURES = {
    "cover": {"title": "Statusrapport for fjerde kvartal", "body": "Strategisk gjennomgang og veien videre"},
    "stats": {
        "title": "Nøkkeltall",
        "body": "Resultatene fra siste kvartal viser solid fremgang",
        "items": [
            {"value": "24%", "label": "Vekst i salg"},
            {"value": "1,2M", "label": "Aktive brukere"},
            {"value": "98%", "label": "Kundetilfredshet"},
        ],
    },
    "content": {
        "title": "Strategisk retning",
        "body": (
            "Vi fortsetter å investere i kjerneteknologi samtidig som vi utvider markedsposisjonen. "
            "Fokus på bærekraftige løsninger driver beslutningene."
        ),
        "image_description": "Team i moderne kontor som diskuterer strategi",
    },
    "bullets": {
        "title": "Viktige funn",
        "items": [
            {"text": "Markedsandelen økte med 3 prosentpoeng"},
            {"text": "Kundetilfredsheten er på rekordnivå"},
            {"text": "Nye produkter utgjør 40% av omsetningen"},
            {"text": "Kostnadene er redusert med 15%"},
        ],
    },
    "cta": {
        "title": "Neste steg",
        "body": "Vi inviterer til videre dialog og samarbeid",
        "items": [
            {"text": "Godkjenn strategiplan innen 15. januar"},
            {"text": "Planlegg oppfølgingsmøte i første kvartal"},
        ],
    },
}


def _slide_type_from_prompt(prompt: str) -> Optional[SlideType]:
    """First "type: X" declaration in the prompt that names a slide type."""
    for match in _TYPE_PATTERN.finditer(prompt.lower()):
        try:
            return SlideType(match.group(1))
        except ValueError:
            continue
    return None


class MockLLMClient(LLMClient):
    """Deterministic stand-in for the Vertex client."""

    def __init__(self, latency: float = 0.1, chunk_delay: float = 0.01):
        self.latency = latency
        self.chunk_delay = chunk_delay
        self.calls = []

    async def generate(self, system_prompt: str, user_prompt: str, output_type: Type[T]) -> T:
        await asyncio.sleep(self.latency)
        self.calls.append((output_type.__name__, system_prompt, user_prompt))

        data = self._fixture_for(system_prompt, user_prompt, output_type)
        try:
            return output_type.model_validate(data)
        except ValidationError as e:
            raise LLMError(f"Mock data validation failed: {e}", LLMErrorCode.INVALID_RESPONSE, e) from e

    async def generate_streaming(
        self,
        system_prompt: str,
        user_prompt: str,
        output_type: Type[T],
        callbacks: StreamingCallbacks,
    ) -> T:
        result = await self.generate(system_prompt, user_prompt, output_type)
        json_string = json.dumps(result.model_dump(mode="json", exclude_none=True), ensure_ascii=False, indent=2)

        for i in range(0, len(json_string), STREAM_CHUNK_SIZE):
            if self.chunk_delay:
                await asyncio.sleep(self.chunk_delay)
            if callbacks.on_token:
                callbacks.on_token(json_string[i:i + STREAM_CHUNK_SIZE])

            if i % PARTIAL_PARSE_EVERY == 0 and callbacks.on_partial_json:
                partial = parse_partial_json(json_string[:i + STREAM_CHUNK_SIZE])
                if isinstance(partial, dict):
                    callbacks.on_partial_json(partial)

        if callbacks.on_complete:
            callbacks.on_complete(result)
        return result

    def _fixture_for(self, system_prompt: str, user_prompt: str, output_type: Type[BaseModel]) -> Dict[str, Any]:
        if issubclass(output_type, (Outline, LenientOutline)):
            return self._outline_fixture(user_prompt)
        if issubclass(output_type, SplitResult):
            return copy.deepcopy(SPLIT_FIXTURE)
        if issubclass(output_type, GeneratedSlot):
            return self._slot_fixture(user_prompt)
        if issubclass(output_type, Slide):
            if "repair" in system_prompt.lower():
                slide_type = _slide_type_from_prompt(user_prompt)
            else:
                slide_type = _slide_type_from_prompt(system_prompt) or _slide_type_from_prompt(user_prompt)
            return copy.deepcopy(SLIDE_FIXTURES[slide_type or SlideType.BULLETS])
        raise LLMError(f"No mock fixture for {output_type.__name__}", LLMErrorCode.MODEL_ERROR)

    @staticmethod
    def _outline_fixture(user_prompt: str) -> Dict[str, Any]:
        prompt = user_prompt.lower()
        if "møte" in prompt or "meeting" in prompt:
            return copy.deepcopy(MEETING_OUTLINE)
        if "produkt" in prompt or "lansering" in prompt:
            return copy.deepcopy(PRODUCT_OUTLINE)
        return copy.deepcopy(GENERIC_OUTLINE)

    @staticmethod
    def _slot_fixture(prompt: str) -> Dict[str, Any]:
        prompt = prompt.lower()
        if "nøkkeltall" in prompt:
            key = "stats"
        elif "call to action" in prompt:
            key = "cta"
        elif "split-slide" in prompt:
            key = "content"
        elif "konsise punkter" in prompt:
            key = "bullets"
        else:
            key = "cover"
        return copy.deepcopy(SLOT_FIXTURES[key])
