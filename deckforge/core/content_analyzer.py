"""
Content Analyzer for deckforge

Deterministic, LLM-free extraction of key content from the raw input text.
The analysis runs once per request and feeds outline composition, slide-count
and distribution enforcement, content prompts and image prompts.

The patterns target Norwegian business text (meeting notes, project updates)
with English fallbacks. Swap in another analyzer by passing any object with
an `analyze(text) -> ContentAnalysis` method to the pipeline.

Usage:
    analysis = analyze_content(text)
    prompt_fragment = format_analysis_for_prompt(analysis)
"""

import math
import re
from typing import List

from deckforge.models.analysis import Comparison, ContentAnalysis, Feature, ProcessStep
from deckforge.utils.logger import setup_logger

logger = setup_logger(__name__)


def _unique(values: List[str]) -> List[str]:
    return list(dict.fromkeys(values))


class ContentAnalyzer:
    """
    Regex heuristics over raw text.

    Every extractor caps its output so prompts built from the analysis stay
    short regardless of input size.
    """

    QUOTE_PATTERN = re.compile(r"[\"«“‘']([^\"»”’']+)[\"»”’']")

    DECISION_PATTERNS = [
        re.compile(r"(?:besluttet|vedtatt|godkjent|bestemt|valgt|konkludert)\s*(?:å|at|med)?\s*([^.!?\n]+)", re.IGNORECASE),
        re.compile(r"beslutning:\s*([^.!?\n]+)", re.IGNORECASE),
        re.compile(r"vedtak:\s*([^.!?\n]+)", re.IGNORECASE),
        re.compile(r"konklusjon:\s*([^.!?\n]+)", re.IGNORECASE),
    ]

    ACTION_PATTERNS = [
        # Modal verbs
        re.compile(r"(?:må|skal|bør|vil|trenger å)\s+([^.!?\n]+)", re.IGNORECASE),
        # Explicit action items
        re.compile(r"(?:action|oppgave|todo|aksjonspunkt):\s*([^.!?\n]+)", re.IGNORECASE),
        # Bullet lines starting with a capital letter
        re.compile(r"^[-•*]\s*([A-ZÆØÅ][^.!?\n]+)$", re.MULTILINE),
    ]

    STATISTIC_PATTERNS = [
        # Percentages
        re.compile(r"\d+(?:[,.]\d+)?\s*(?:%|prosent)", re.IGNORECASE),
        # Norwegian currency
        re.compile(r"\d+(?:[,.]\d+)?\s*(?:MNOK|BNOK|millioner?(?:\s+kroner)?|milliarder?(?:\s+kroner)?|kr|NOK)", re.IGNORECASE),
        # Other currencies
        re.compile(r"(?:USD|EUR|€|\$)\s*\d+(?:[,.]\d+)?(?:\s*(?:million|billion|M|B))?", re.IGNORECASE),
        # Growth and change
        re.compile(r"(?:økte?|redusert?|vokste?|falt?|steg|gikk (?:opp|ned))\s*(?:med\s*)?\d+(?:[,.]\d+)?(?:\s*%)?", re.IGNORECASE),
        # Counts of people and units
        re.compile(r"\d+(?:\s*\d{3})?\s*(?:ansatte|brukere|kunder|enheter|medlemmer|deltakere)", re.IGNORECASE),
        # Quarters and half-years
        re.compile(r"(?:Q[1-4]|H[12])\s*\d{4}", re.IGNORECASE),
    ]

    TOPIC_PATTERNS = [
        # Markdown headings
        re.compile(r"^#{1,3}\s*(.+)$", re.MULTILINE),
        # Short capitalized lines
        re.compile(r"^([A-ZÆØÅ][A-Za-zæøåÆØÅ \t-]{5,50})$", re.MULTILINE),
        # Numbered section titles
        re.compile(r"^\d+\.\s*([A-ZÆØÅ][^.!?\n]{5,50})$", re.MULTILINE),
    ]

    NUMBERED_STEP_PATTERN = re.compile(r"^(\d+)\.\s*(.+)$", re.MULTILINE)
    PHASE_PATTERN = re.compile(r"(?:fase|phase|steg|step)\s*(\d+)\s*[:\-–]\s*(.+)", re.IGNORECASE)
    ORDINAL_PATTERNS = [
        (re.compile(r"\b(?:først|for det første)[,:\s]+([^.!?\n]+)", re.IGNORECASE), 1),
        (re.compile(r"\b(?:deretter|så|dernest|for det andre)[,:\s]+([^.!?\n]+)", re.IGNORECASE), 2),
        (re.compile(r"\b(?:til slutt|endelig|for det tredje|avslutningsvis)[,:\s]+([^.!?\n]+)", re.IGNORECASE), 3),
    ]

    VERSUS_PATTERN = re.compile(
        r"([A-Za-zÆØÅæøå\s]{5,40})\s+(?:vs\.?|versus|kontra|mot)\s+([A-Za-zÆØÅæøå\s]{5,40})",
        re.IGNORECASE,
    )
    BEFORE_AFTER_PATTERN = re.compile(
        r"(?:før|tidligere|gammel|nåværende)[:\s]+([^.!?\n]+?)\s+(?:etter|nå|ny|fremtidig|planlagt)[:\s]+([^.!?\n]+)",
        re.IGNORECASE,
    )

    FEATURE_COLON_PATTERN = re.compile(r"^[-•*]\s*([^:\n]{5,40}):\s*(.{10,150})$", re.MULTILINE)
    FEATURE_DASH_PATTERN = re.compile(r"^[-•*]\s*([^-\n]{5,40})\s*[-–]\s*(.{10,150})$", re.MULTILINE)
    FEATURE_PAREN_PATTERN = re.compile(r"([A-ZÆØÅ][a-zæøå\s]{3,30})\s*\(([^)]{10,100})\)")

    ROADMAP_PATTERNS = [
        re.compile(pattern, re.IGNORECASE)
        for pattern in [
            r"roadmap", r"tidslinje", r"tidsplan", r"milepæl", r"milestone",
            r"fase\s*\d", r"phase\s*\d", r"Q[1-4]\s*\d{4}", r"H[12]\s*\d{4}",
            r"sprint\s*\d", r"lanseringsplan", r"implementeringsplan",
            r"prosjektplan", r"project\s*plan", r"\d{4}\s*[-–]\s*\d{4}",
        ]
    ]

    def analyze(self, input_text: str) -> ContentAnalysis:
        """
        Analyze raw input text.

        Args:
            input_text: Text as submitted by the user

        Returns:
            Frozen ContentAnalysis snapshot
        """
        text = input_text.strip()
        word_count = len(text.split())

        analysis = ContentAnalysis(
            key_messages=self.extract_key_messages(text),
            quotes=self.extract_quotes(text),
            decisions=self.extract_decisions(text),
            action_items=self.extract_action_items(text),
            statistics=self.extract_statistics(text),
            topics=self.extract_topics(text),
            word_count=word_count,
            suggested_slide_count=self.estimate_slide_count(word_count),
            sequential_process=self.extract_sequential_process(text),
            comparisons=self.extract_comparisons(text),
            features=self.extract_features(text),
            has_roadmap=self.detect_roadmap(text),
        )

        logger.debug(
            f"Content analysis: {word_count} words, {len(analysis.statistics)} stats, "
            f"{len(analysis.sequential_process)} steps, {len(analysis.features)} features, "
            f"roadmap={analysis.has_roadmap}"
        )
        return analysis

    # =========================================================================
    # Core extractors
    # =========================================================================

    def extract_key_messages(self, text: str) -> List[str]:
        """First sentence of each substantial paragraph."""
        paragraphs = [p for p in re.split(r"\n\n+", text) if len(p.strip()) > 20]
        messages = []
        for paragraph in paragraphs:
            first_sentence = re.split(r"[.!?]", paragraph)[0].strip()
            if len(first_sentence) > 10:
                messages.append(first_sentence)
        return messages[:5]

    def extract_quotes(self, text: str) -> List[str]:
        quotes = [m.group(1).strip() for m in self.QUOTE_PATTERN.finditer(text)]
        return [q for q in quotes if 10 < len(q) < 200][:3]

    def extract_decisions(self, text: str) -> List[str]:
        decisions = []
        for pattern in self.DECISION_PATTERNS:
            decisions.extend(m.group(1).strip() for m in pattern.finditer(text))
        return [d for d in _unique(decisions) if 5 < len(d) < 150][:5]

    def extract_action_items(self, text: str) -> List[str]:
        items = []
        for pattern in self.ACTION_PATTERNS:
            items.extend(m.group(1).strip() for m in pattern.finditer(text))
        return [i for i in _unique(items) if 5 < len(i) < 100][:6]

    def extract_statistics(self, text: str) -> List[str]:
        stats = []
        for pattern in self.STATISTIC_PATTERNS:
            stats.extend(m.group(0).strip() for m in pattern.finditer(text))
        return _unique(stats)[:8]

    def extract_topics(self, text: str) -> List[str]:
        topics = []
        for pattern in self.TOPIC_PATTERNS:
            topics.extend(m.group(1).strip() for m in pattern.finditer(text))
        return [t for t in _unique(topics) if "http" not in t and 3 < len(t) < 60][:5]

    @staticmethod
    def estimate_slide_count(word_count: int) -> int:
        """About 120 words per content slide, plus cover and summary, clamped to 4..15."""
        return max(4, min(15, math.ceil(word_count / 120) + 2))

    # =========================================================================
    # Layout-oriented extractors
    # =========================================================================

    def extract_sequential_process(self, text: str) -> List[ProcessStep]:
        """Numbered lines, 'Fase N:' markers and ordinal words, sorted by order."""
        steps: List[ProcessStep] = []

        def known(order: int) -> bool:
            return any(step.order == order for step in steps)

        for match in self.NUMBERED_STEP_PATTERN.finditer(text):
            step_text = match.group(2).strip()
            if 5 < len(step_text) < 150:
                steps.append(ProcessStep(order=int(match.group(1)), text=step_text))

        for match in self.PHASE_PATTERN.finditer(text):
            order = int(match.group(1))
            step_text = re.split(r"[.!?\n]", match.group(2).strip())[0]
            if 5 < len(step_text) < 150 and not known(order):
                steps.append(ProcessStep(order=order, text=step_text))

        for pattern, order in self.ORDINAL_PATTERNS:
            for match in pattern.finditer(text):
                step_text = match.group(1).strip()
                if 5 < len(step_text) < 150 and not known(order):
                    steps.append(ProcessStep(order=order, text=step_text))

        # sorted() is stable, so equal orders keep discovery order
        return sorted(steps, key=lambda step: step.order)[:8]

    def extract_comparisons(self, text: str) -> List[Comparison]:
        comparisons = [
            Comparison(left=m.group(1).strip(), right=m.group(2).strip())
            for m in self.VERSUS_PATTERN.finditer(text)
        ]
        comparisons.extend(
            Comparison(left=m.group(1).strip()[:50], right=m.group(2).strip()[:50], basis="tid")
            for m in self.BEFORE_AFTER_PATTERN.finditer(text)
        )
        return comparisons[:4]

    def extract_features(self, text: str) -> List[Feature]:
        features: List[Feature] = []

        for match in self.FEATURE_COLON_PATTERN.finditer(text):
            features.append(Feature(title=match.group(1).strip(), description=match.group(2).strip()))

        for pattern in (self.FEATURE_DASH_PATTERN, self.FEATURE_PAREN_PATTERN):
            for match in pattern.finditer(text):
                title = match.group(1).strip()
                if not any(feature.title == title for feature in features):
                    features.append(Feature(title=title, description=match.group(2).strip()))

        return features[:6]

    def detect_roadmap(self, text: str) -> bool:
        return any(pattern.search(text) for pattern in self.ROADMAP_PATTERNS)


_default_analyzer = ContentAnalyzer()


def analyze_content(input_text: str) -> ContentAnalysis:
    """Analyze text with the default analyzer."""
    return _default_analyzer.analyze(input_text)


def format_analysis_for_prompt(
    analysis: ContentAnalysis,
    max_length: int = 500,
    exclude_slide_count: bool = False,
) -> str:
    """
    Render the analysis as a compact prompt fragment.

    Args:
        analysis: Content analysis
        max_length: Maximum length of the returned string
        exclude_slide_count: Leave out the suggested slide count, used when
            the caller asked for an exact number of slides

    Returns:
        Newline separated summary, truncated with '...' if too long
    """
    parts = []

    if analysis.statistics:
        parts.append(f"Statistics: {', '.join(analysis.statistics[:4])}")
    if analysis.quotes:
        parts.append(f'Quotes: "{analysis.quotes[0]}"')
    if analysis.decisions:
        parts.append(f"Decisions: {'; '.join(analysis.decisions[:2])}")
    if analysis.action_items:
        parts.append(f"Actions: {'; '.join(analysis.action_items[:3])}")
    if analysis.topics:
        parts.append(f"Topics: {', '.join(analysis.topics[:3])}")
    if not exclude_slide_count:
        parts.append(f"Suggested slides: {analysis.suggested_slide_count}")

    result = "\n".join(parts)
    if len(result) > max_length:
        result = result[:max_length - 3] + "..."
    return result
