"""
Slide Type Selector

Maps patterns found by the content analyzer to the slide types that present
them best (statistics to stat cards, steps to timelines, and so on).
"""

from typing import List, Optional

from deckforge.models.analysis import ContentAnalysis, SlideTypeRecommendation
from deckforge.models.slide import SlideType


def recommend_slide_types(analysis: ContentAnalysis) -> List[SlideTypeRecommendation]:
    """
    Recommend slide types for the analyzed content.

    Rules, in order:
    - 2+ statistics -> summary_with_stats
    - 3+ sequential steps or roadmap keywords -> timeline_roadmap
    - 2+ features -> icon_cards_with_image
    - any comparison -> two_column_text
    - 2+ decisions -> decisions_list
    - 3+ action items -> action_items_table
    - any quote -> quote_callout
    - 2-4 short steps without a roadmap -> numbered_grid
    """
    recommendations: List[SlideTypeRecommendation] = []
    stats = len(analysis.statistics)
    steps = analysis.sequential_process

    if stats >= 2:
        recommendations.append(SlideTypeRecommendation(
            type=SlideType.SUMMARY_WITH_STATS,
            confidence="high" if stats >= 4 else "medium",
            reason=f"Found {stats} statistics",
        ))

    if len(steps) >= 3 or analysis.has_roadmap:
        recommendations.append(SlideTypeRecommendation(
            type=SlideType.TIMELINE_ROADMAP,
            confidence="high" if len(steps) >= 4 else "medium",
            reason=(
                "Roadmap/timeline keywords detected"
                if analysis.has_roadmap
                else f"Found {len(steps)} sequential steps"
            ),
        ))

    if len(analysis.features) >= 2:
        recommendations.append(SlideTypeRecommendation(
            type=SlideType.ICON_CARDS_WITH_IMAGE,
            confidence="high" if len(analysis.features) >= 3 else "medium",
            reason=f"Found {len(analysis.features)} feature descriptions",
        ))

    if analysis.comparisons:
        recommendations.append(SlideTypeRecommendation(
            type=SlideType.TWO_COLUMN_TEXT,
            confidence="medium",
            reason=f"Found {len(analysis.comparisons)} comparison(s)",
        ))

    if len(analysis.decisions) >= 2:
        recommendations.append(SlideTypeRecommendation(
            type=SlideType.DECISIONS_LIST,
            confidence="high",
            reason=f"Found {len(analysis.decisions)} decisions",
        ))

    if len(analysis.action_items) >= 3:
        recommendations.append(SlideTypeRecommendation(
            type=SlideType.ACTION_ITEMS_TABLE,
            confidence="high",
            reason=f"Found {len(analysis.action_items)} action items",
        ))

    if analysis.quotes:
        recommendations.append(SlideTypeRecommendation(
            type=SlideType.QUOTE_CALLOUT,
            confidence="medium",
            reason=f"Found {len(analysis.quotes)} quote(s)",
        ))

    # Short numbered concepts read as principles rather than a process
    if 2 <= len(steps) <= 4 and not analysis.has_roadmap:
        average_length = sum(len(step.text) for step in steps) / len(steps)
        if average_length < 60:
            recommendations.append(SlideTypeRecommendation(
                type=SlideType.NUMBERED_GRID,
                confidence="medium",
                reason=f"Found {len(steps)} short numbered concepts",
            ))

    return recommendations


def format_recommendations_for_prompt(recommendations: List[SlideTypeRecommendation]) -> str:
    lines = [
        f'- Consider "{r.type.value}": {r.reason}'
        for r in recommendations
        if r.confidence != "low"
    ]
    if not lines:
        return ""

    return (
        "\nCONTENT-BASED SLIDE SUGGESTIONS:\n"
        + "\n".join(lines)
        + "\n\nUse these suggestions to improve slide type selection where appropriate."
    )


def get_top_recommendation(
    recommendations: List[SlideTypeRecommendation],
) -> Optional[SlideTypeRecommendation]:
    """Highest confidence recommendation, first one wins within a level."""
    for level in ("high", "medium"):
        for recommendation in recommendations:
            if recommendation.confidence == level:
                return recommendation
    return recommendations[0] if recommendations else None


def is_slide_type_recommended(recommendations: List[SlideTypeRecommendation], slide_type: SlideType) -> bool:
    return any(r.type == slide_type and r.confidence != "low" for r in recommendations)
