"""
Outline prompts.

The model plans content slides freely; structural slides are ensured and the
exact count is enforced afterwards by the deterministic stages.
"""

from typing import Optional

from deckforge.core.content_analyzer import format_analysis_for_prompt
from deckforge.core.slide_type_selector import format_recommendations_for_prompt, recommend_slide_types
from deckforge.models.analysis import ContentAnalysis
from deckforge.models.deck import Amount, GenerationRequest, TextMode
from deckforge.models.slide import SlideType

MODE_INSTRUCTIONS = {
    TextMode.GENERATE: "Create original, engaging content based on the topic provided.",
    TextMode.CONDENSE: (
        "Summarize and structure the provided notes into clear, digestible slides. "
        "Extract key points and organize logically."
    ),
    TextMode.PRESERVE: (
        "Structure the provided content into slides while preserving the original phrasing "
        "as much as possible. Do not rewrite or paraphrase significantly."
    ),
}

AMOUNT_GUIDANCE = {
    Amount.BRIEF: "Create 3-5 content slides for a concise presentation.",
    Amount.MEDIUM: "Create 5-8 content slides for a balanced presentation.",
    Amount.DETAILED: "Create 8-12 content slides for a comprehensive presentation.",
}


def language_name(language: str) -> str:
    return "Norwegian (Bokmål)" if language == "no" else language


def _slide_count_guidance(request: GenerationRequest) -> str:
    if request.num_slides:
        low = max(request.num_slides - 3, 3)
        high = max(request.num_slides - 2, 4)
        return (
            f"Target approximately {low}-{high} content slides. Structural slides "
            f"(cover, agenda, summary) are added automatically if missing. The final deck "
            f"will have exactly {request.num_slides} slides."
        )
    return AMOUNT_GUIDANCE[request.amount]


def build_outline_system_prompt(request: GenerationRequest, analysis: Optional[ContentAnalysis] = None) -> str:
    """System prompt for outline generation, enriched with the content analysis when given."""
    slide_types = "\n".join(f"- {slide_type.value}" for slide_type in SlideType)
    tone = f"- Use a {request.tone} tone throughout.\n" if request.tone else ""
    audience = f"- The target audience is: {request.audience}.\n" if request.audience else ""

    prompt = f"""You are a presentation outline generator for a Norwegian AI presentation platform.

TASK: Generate a presentation outline as JSON.

INSTRUCTIONS:
- {MODE_INSTRUCTIONS[request.text_mode]}
- {_slide_count_guidance(request)}
{tone}{audience}- Language: {language_name(request.language)}

AVAILABLE SLIDE TYPES:
{slide_types}

SLIDE TYPE GUIDELINES:
Structure slides:
- cover: Title slide, always first, gets a large hero image
- agenda: Overview slide, only for decks with 6+ slides
- section_header: Divider between major topic changes

Basic content (use sparingly, at most 2-3 per deck):
- bullets: Simple bullet lists, only when nothing else fits
- two_column_text: Side-by-side comparisons
- decisions_list: Decisions that were made
- action_items_table: Tasks with owner and deadline

Premium visual slides (prioritize these):
- text_plus_image: Text beside a large image, for main content
- icon_cards_with_image: Feature cards with icons, for features and benefits
- summary_with_stats: Large statistics, when numbers are mentioned
- hero_stats: Hero image with prominent numbers
- timeline_roadmap: Sequential steps, phases and roadmaps
- numbered_grid: Numbered concept cards for 3-4 key points
- split_with_callouts: Image with callout boxes
- person_spotlight: Person profile, when people are named
- quote_callout: A highlighted, memorable statement
- summary_next_steps: Conclusion slide, usually last

OUTPUT FORMAT:
{{
  "title": "Presentation title (max 100 chars)",
  "slides": [
    {{"title": "Slide title (max 100 chars)", "suggested_type": "one of the types above", "hints": ["max 3 hints"]}}
  ]
}}

CONSTRAINTS:
- Titles: max 100 characters
- Hints: at most 3 per slide, each max 100 characters, specific rather than generic
  (e.g. "20% vekst i Q4", "CEO Ola Nordmann")

DISTRIBUTION RULES:
1. Never use "bullets" more than twice in a deck
2. Never use "agenda" more than once
3. Never use the same slide type more than twice in a row
4. Decks with 5+ slides include at least one of icon_cards_with_image, summary_with_stats,
   timeline_roadmap or split_with_callouts
5. Numbers in the content call for summary_with_stats or hero_stats
6. 3+ sequential steps call for timeline_roadmap
7. Prefer text_plus_image over bullets for main content

Keep titles concise and descriptive, ensure a logical flow from introduction to
conclusion and never include placeholder text like "TODO"."""

    if analysis is not None:
        prompt += f"""

PRE-EXTRACTED CONTENT ANALYSIS:
{format_analysis_for_prompt(analysis, 500, exclude_slide_count=bool(request.num_slides))}
{format_recommendations_for_prompt(recommend_slide_types(analysis))}"""

    if request.additional_instructions:
        prompt += f"""

USER'S ADDITIONAL INSTRUCTIONS (MUST FOLLOW):
{request.additional_instructions}"""

    return prompt


def build_outline_user_prompt(request: GenerationRequest) -> str:
    return request.input_text
