"""
Slide content prompts.

One prompt pair per outline slide. The system prompt carries the slide type,
its limits and the block structure the model must return.
"""

from deckforge.core.constraints import SLIDE_CONSTRAINTS
from deckforge.models.deck import GenerationRequest, TextMode
from deckforge.models.slide import OutlineSlide, SlideType
from deckforge.prompts.outline import language_name

MODE_INSTRUCTIONS = {
    TextMode.GENERATE: "Create engaging, original content that fits the slide theme.",
    TextMode.CONDENSE: "Extract and summarize the most relevant information for this slide.",
    TextMode.PRESERVE: "Use the original text as much as possible. Only restructure, do not rewrite.",
}

SLIDE_TYPE_GUIDANCE = {
    SlideType.COVER: (
        "- Title: memorable, 3-6 impactful words\n"
        "- Subtitle: key context such as date, company or the main takeaway"
    ),
    SlideType.AGENDA: (
        "- Keep items parallel in structure\n"
        "- Be specific: \"Budsjettgjennomgang Q4\" not \"Økonomi\"\n"
        "- 4-7 items is ideal"
    ),
    SlideType.SECTION_HEADER: "- Title signals a clear transition\n- Subtitle previews what is coming",
    SlideType.BULLETS: (
        "- Each bullet is actionable or informative, not just a noun\n"
        "- Start with strong verbs or specific data\n"
        "- WRONG: \"Strategi\" | RIGHT: \"Øk markedsandel med 15% i Norden\""
    ),
    SlideType.TWO_COLUMN_TEXT: "- Comparisons, pros/cons or before/after\n- Keep the columns balanced in length",
    SlideType.TEXT_PLUS_IMAGE: (
        "- Text complements, not repeats, what the image shows\n"
        "- Alt text describes a relevant professional image"
    ),
    SlideType.DECISIONS_LIST: "- Each decision is clear and final, not a question\n- Include context and impact",
    SlideType.ACTION_ITEMS_TABLE: "- Each task needs what, who and when\n- Tasks are specific and measurable",
    SlideType.SUMMARY_NEXT_STEPS: (
        "- Summarize key takeaways, do not repeat slide titles\n"
        "- Each step has a clear owner or timeline"
    ),
    SlideType.QUOTE_CALLOUT: (
        "- Use actual quotes from the input when available\n"
        "- Never fabricate quotes; use a key insight instead"
    ),
    SlideType.TIMELINE_ROADMAP: (
        "- Each step is a distinct phase or milestone\n"
        "- Use status to show progress: completed, current, upcoming\n"
        "- Keep step titles short (e.g. \"Q1 2025\", \"Fase 1: Planlegging\")"
    ),
    SlideType.NUMBERED_GRID: (
        "- Ordered concepts, principles or features\n"
        "- Card titles of 30-60 characters with real substance\n"
        "- 2-4 cards is ideal"
    ),
    SlideType.ICON_CARDS_WITH_IMAGE: (
        "- Icons that represent the concept (zap, shield, globe, target, heart, star)\n"
        "- Always include bg_color, rotating through pink, purple, blue, cyan, green, orange\n"
        "- Card titles of 30-60 characters with specific benefits"
    ),
    SlideType.SUMMARY_WITH_STATS: (
        "- 2-4 stat_blocks, never more than 4\n"
        "- Short values (e.g. \"95%\", \"1,2M NOK\") and labels that say what is measured\n"
        "- A text block gives context for the numbers"
    ),
    SlideType.HERO_STATS: "- 2-4 stat_blocks with large, impressive numbers\n- An impactful hero image",
    SlideType.SPLIT_WITH_CALLOUTS: (
        "- Use icon_cards for the callouts, with bg_color\n"
        "- Callout titles of 25-60 characters"
    ),
    SlideType.PERSON_SPOTLIGHT: "- Name and role in the text block\n- Bullets for bio points or achievements",
}

BLOCK_STRUCTURES = {
    SlideType.COVER: """[
  {"kind": "title", "text": "Hovedtittel"},
  {"kind": "text", "text": "Undertittel eller dato"}
]""",
    SlideType.AGENDA: """[
  {"kind": "title", "text": "Agenda"},
  {"kind": "bullets", "items": ["Punkt 1", "Punkt 2", ...]}
]""",
    SlideType.SECTION_HEADER: """[
  {"kind": "title", "text": "Seksjonstittel"},
  {"kind": "text", "text": "Valgfri undertittel"}
]""",
    SlideType.BULLETS: """[
  {"kind": "title", "text": "Slidetittel"},
  {"kind": "bullets", "items": ["Punkt 1", "Punkt 2", "Punkt 3", ...]}
]""",
    SlideType.TWO_COLUMN_TEXT: """[
  {"kind": "title", "text": "Slidetittel"},
  {"kind": "text", "text": "Venstre kolonne"},
  {"kind": "text", "text": "Høyre kolonne"}
]""",
    SlideType.TEXT_PLUS_IMAGE: """[
  {"kind": "title", "text": "Slidetittel"},
  {"kind": "text", "text": "Hovedtekst"},
  {"kind": "image", "url": "", "alt": "Bildebeskrivelse for AI-generering"}
]""",
    SlideType.DECISIONS_LIST: """[
  {"kind": "title", "text": "Beslutninger"},
  {"kind": "bullets", "items": ["Beslutning 1", "Beslutning 2", ...]}
]""",
    SlideType.ACTION_ITEMS_TABLE: """[
  {"kind": "title", "text": "Oppgaveliste"},
  {"kind": "table", "columns": ["Oppgave", "Ansvarlig", "Frist"], "rows": [["Oppgave 1", "Person", "Dato"], ...]}
]""",
    SlideType.SUMMARY_NEXT_STEPS: """[
  {"kind": "title", "text": "Neste steg"},
  {"kind": "bullets", "items": ["Steg 1", "Steg 2", ...]}
]""",
    SlideType.QUOTE_CALLOUT: """[
  {"kind": "callout", "text": "Sitat eller viktig budskap", "style": "quote"},
  {"kind": "text", "text": "Kilde eller referanse"}
]""",
    SlideType.TIMELINE_ROADMAP: """[
  {"kind": "title", "text": "Prosjektplan"},
  {"kind": "timeline_step", "step": 1, "text": "Fase 1: Planlegging", "description": "Kartlegging", "status": "completed"},
  {"kind": "timeline_step", "step": 2, "text": "Fase 2: Utvikling", "description": "Implementering", "status": "current"},
  {"kind": "timeline_step", "step": 3, "text": "Fase 3: Utrulling", "description": "Lansering", "status": "upcoming"}
]""",
    SlideType.NUMBERED_GRID: """[
  {"kind": "title", "text": "Våre kjerneverdier"},
  {"kind": "numbered_card", "number": 1, "text": "Første konsept", "description": "Beskrivelse"},
  {"kind": "numbered_card", "number": 2, "text": "Andre konsept", "description": "Beskrivelse"}
]""",
    SlideType.ICON_CARDS_WITH_IMAGE: """[
  {"kind": "title", "text": "Plattformfunksjoner"},
  {"kind": "icon_card", "icon": "zap", "text": "Lynrask", "description": "Under 100ms responstid", "bg_color": "pink"},
  {"kind": "icon_card", "icon": "shield", "text": "Sikkerhet", "description": "SOC2-sertifisert", "bg_color": "purple"},
  {"kind": "image", "url": "", "alt": "Plattform-dashboard"}
]""",
    SlideType.SUMMARY_WITH_STATS: """[
  {"kind": "title", "text": "Resultater 2024"},
  {"kind": "text", "text": "Kontekst for tallene"},
  {"kind": "stat_block", "value": "127%", "label": "Omsetningsvekst", "sublabel": "År over år"},
  {"kind": "stat_block", "value": "4,8M", "label": "Aktive brukere"}
]""",
    SlideType.HERO_STATS: """[
  {"kind": "image", "url": "", "alt": "Heltebilde for AI-generering"},
  {"kind": "title", "text": "Vår veksthistorie"},
  {"kind": "stat_block", "value": "250%", "label": "Omsetningsvekst"},
  {"kind": "stat_block", "value": "45", "label": "Land"}
]""",
    SlideType.SPLIT_WITH_CALLOUTS: """[
  {"kind": "title", "text": "Hvorfor velge oss"},
  {"kind": "image", "url": "", "alt": "Profesjonelt bilde av produkt eller team"},
  {"kind": "icon_card", "icon": "zap", "text": "Lynrask", "description": "Under ett sekunds responstid", "bg_color": "pink"},
  {"kind": "icon_card", "icon": "heart", "text": "Kundefokus", "description": "Dedikert support", "bg_color": "cyan"}
]""",
    SlideType.PERSON_SPOTLIGHT: """[
  {"kind": "title", "text": "Møt vår leder"},
  {"kind": "image", "url": "", "alt": "Profesjonelt portrett"},
  {"kind": "text", "text": "Ola Nordmann, CEO og medgründer"},
  {"kind": "bullets", "items": ["15+ års erfaring", "Tidligere VP hos Google"]}
]""",
}


def describe_constraints(slide_type: SlideType) -> str:
    """Human-readable limits for a slide type."""
    constraints = SLIDE_CONSTRAINTS[slide_type]
    parts = []

    if constraints.title:
        parts.append(f"- Title: max {constraints.title.max_chars} characters")
    if constraints.subtitle:
        parts.append(f"- Subtitle: max {constraints.subtitle.max_chars} characters")
    if constraints.text:
        parts.append(f"- Text: max {constraints.text.max_chars} characters")
    if constraints.bullets:
        limit = constraints.bullets
        parts.append(f"- Bullets: {limit.min}-{limit.max} items, each max {limit.max_chars_per_item} characters")
    if constraints.items:
        limit = constraints.items
        minimum = f", each at least {limit.min_chars_per_item}" if limit.min_chars_per_item else ""
        parts.append(
            f"- Items: {limit.min}-{limit.max} items, each max {limit.max_chars_per_item} characters{minimum}"
        )
    if constraints.columns:
        parts.append(f"- Each column: max {constraints.columns.max_chars} characters")
    if constraints.table:
        parts.append(f"- Table: max {constraints.table.max_rows} rows, {constraints.table.max_columns} columns")

    return "\n".join(parts)


def build_content_system_prompt(
    outline_slide: OutlineSlide,
    request: GenerationRequest,
    slide_index: int,
    total_slides: int,
) -> str:
    slide_type = outline_slide.effective_type
    hints = ", ".join(outline_slide.hints) or "None"
    tone = f"- Tone: {request.tone}\n" if request.tone else ""

    prompt = f"""You are a presentation slide content generator.

TASK: Generate content for slide {slide_index + 1} of {total_slides}.

SLIDE INFO:
- Title: "{outline_slide.title}"
- Type: {slide_type.value}
- Hints: {hints}

INSTRUCTIONS:
- {MODE_INSTRUCTIONS[request.text_mode]}
{tone}- Language: {language_name(request.language)}

CONSTRAINTS FOR {slide_type.value.upper()}:
{describe_constraints(slide_type)}

REQUIRED BLOCK STRUCTURE:
{BLOCK_STRUCTURES[slide_type]}

OUTPUT FORMAT:
{{"type": "{slide_type.value}", "layout_variant": "default", "blocks": [... blocks as above ...]}}

QUALITY REQUIREMENTS:
- Engaging headlines, not generic titles like "Oversikt" or "Hovedpunkter"
- Use specific numbers, facts and data from the input when available
- Avoid filler phrases like "Det er viktig å..."

SLIDE-TYPE GUIDANCE:
{SLIDE_TYPE_GUIDANCE[slide_type]}

CRITICAL RULES:
- Stay within the character limits
- Use the hints, they carry key information
- For images, write detailed alt text an image generator can use
- Never use placeholder text like "Lorem ipsum" or "[SETT INN]"

NORSK KAPITALISERING:
- Bruk setningskapitalisering for alle titler: kun første ord med stor bokstav
- FEIL: "Fem Viktige Punkter For Suksess"  RIKTIG: "Fem viktige punkter for suksess"
- Egennavn (Norge, Microsoft, Oslo) og forkortelser (AI, GDPR, NAV) beholder stor bokstav"""

    if request.additional_instructions:
        prompt += f"""

USER'S ADDITIONAL INSTRUCTIONS (MUST FOLLOW):
{request.additional_instructions}"""

    return prompt


def build_content_user_prompt(outline_slide: OutlineSlide, context: str) -> str:
    prompt = f"""Original input/context:
{context}

Generate content for this slide:
Title: {outline_slide.title}"""
    if outline_slide.hints:
        prompt += f"\nKey points to include: {', '.join(outline_slide.hints)}"
    return prompt
