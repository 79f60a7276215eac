"""
Golden Templates Registry

Pixel-perfect decks with a hardcoded structure. Only executive_brief is
defined; feature_showcase and project_update are reserved ids.
"""

from typing import Dict, List, Optional, Union

from deckforge.models.deck import GoldenTemplateId
from deckforge.models.slide import SlideType
from deckforge.models.template import (
    GoldenSlot,
    GoldenTemplate,
    SlotConstraints,
    SlotExample,
    TemplateOption,
)

EXECUTIVE_BRIEF = GoldenTemplate(
    id=GoldenTemplateId.EXECUTIVE_BRIEF,
    name="Executive Brief",
    description="Konsis oppsummering for ledelse og beslutningstakere",
    use_cases=["Statusoppdateringer", "Kvartalspresentasjoner", "Prosjektsammendrag", "Styremøter"],
    slide_count=5,
    slots=[
        GoldenSlot(
            position=1,
            slide_type="cover",
            layout_variant="centered",
            purpose="Fang oppmerksomhet med kraftig tittel og profesjonelt bakgrunnsbilde",
            constraints=SlotConstraints(
                title_max_chars=60,
                body_max_chars=120,
                requires_image=True,
                image_aspect="16:9",
                image_style="professional, corporate, abstract, modern office",
            ),
            example=SlotExample(title="Q4 2024 Statusrapport", body="Strategisk gjennomgang og veien videre"),
        ),
        GoldenSlot(
            position=2,
            slide_type="stats",
            layout_variant="horizontal",
            purpose="Presenter 3 nøkkeltall som gir umiddelbar innsikt",
            constraints=SlotConstraints(title_max_chars=50, body_max_chars=150, item_count=3, item_max_chars=30),
            example=SlotExample(
                title="Nøkkeltall",
                body="Resultater fra siste kvartal viser solid fremgang",
                items=["24% vekst", "1.2M brukere", "98% tilfredshet"],
            ),
        ),
        GoldenSlot(
            position=3,
            slide_type="content",
            layout_variant="text_left",
            purpose="Hovedbudskap med støttende visualisering",
            constraints=SlotConstraints(
                title_max_chars=50,
                body_max_chars=300,
                requires_image=True,
                image_aspect="4:3",
                image_style="business illustration, data visualization, teamwork",
            ),
            example=SlotExample(
                title="Strategisk retning",
                body=(
                    "Vi fortsetter å investere i kjerneteknologi samtidig som vi utvider "
                    "markedsposisjonen. Fokus på bærekraftige løsninger og kundetilfredshet "
                    "driver alle beslutninger."
                ),
            ),
        ),
        GoldenSlot(
            position=4,
            slide_type="bullets",
            purpose="Oppsummer 4-5 viktige funn eller konklusjoner",
            constraints=SlotConstraints(title_max_chars=50, item_count_min=4, item_count_max=5, item_max_chars=80),
            example=SlotExample(
                title="Viktige funn",
                items=[
                    "Markedsandelen økte med 3 prosentpoeng",
                    "Kundetilfredsheten er på rekordnivå",
                    "Nye produkter utgjør 40% av omsetningen",
                    "Kostnadene er redusert med 15%",
                ],
            ),
        ),
        GoldenSlot(
            position=5,
            slide_type="cta",
            layout_variant="centered",
            purpose="Avslutt med klare neste steg og handlingspunkter",
            constraints=SlotConstraints(
                title_max_chars=40, body_max_chars=200, item_count_min=2, item_count_max=3, item_max_chars=60
            ),
            example=SlotExample(
                title="Neste steg",
                body="Vi inviterer til videre dialog og samarbeid",
                items=["Godkjenn strategiplan innen 15. januar", "Planlegg oppfølgingsmøte Q1"],
            ),
        ),
    ],
)

GOLDEN_TEMPLATES: Dict[GoldenTemplateId, GoldenTemplate] = {
    GoldenTemplateId.EXECUTIVE_BRIEF: EXECUTIVE_BRIEF,
}

# Golden slot type -> regular slide type
GOLDEN_SLIDE_TYPES: Dict[str, SlideType] = {
    "cover": SlideType.COVER,
    "stats": SlideType.SUMMARY_WITH_STATS,
    "content": SlideType.TEXT_PLUS_IMAGE,
    "bullets": SlideType.BULLETS,
    "cta": SlideType.SUMMARY_NEXT_STEPS,
    "icon_grid": SlideType.ICON_CARDS_WITH_IMAGE,
    "timeline": SlideType.TIMELINE_ROADMAP,
    "checklist": SlideType.BULLETS,
    "numbered_steps": SlideType.NUMBERED_GRID,
    "circle_diagram": SlideType.BULLETS,
}


def get_golden_template(template_id: Union[GoldenTemplateId, str]) -> Optional[GoldenTemplate]:
    """Look up a template; unknown or reserved ids return None."""
    try:
        key = GoldenTemplateId(template_id)
    except ValueError:
        return None
    return GOLDEN_TEMPLATES.get(key)


def list_golden_template_ids() -> List[GoldenTemplateId]:
    return list(GOLDEN_TEMPLATES.keys())


def is_valid_golden_template_id(template_id: str) -> bool:
    return get_golden_template(template_id) is not None


def get_template_options() -> List[TemplateOption]:
    return [
        TemplateOption(
            id=template.id,
            name=template.name,
            description=template.description,
            slide_count=template.slide_count,
        )
        for template in GOLDEN_TEMPLATES.values()
    ]


def golden_slot_slide_type(slot: GoldenSlot) -> SlideType:
    return GOLDEN_SLIDE_TYPES[slot.slide_type]
