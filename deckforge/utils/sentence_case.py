"""
Norwegian sentence case.

Norwegian capitalizes only the first word of a sentence and proper nouns, so
model output written in English-style Title Case is converted:

    "Store Endringer og Vedtak i Desember 2025"
    -> "Store endringer og vedtak i desember 2025"
"""

import re

ACRONYMS = frozenset({
    "AI", "GDPR", "KS", "KA", "IT", "HR", "CEO", "CFO", "CTO", "PR", "TV", "PC",
    "USB", "API", "URL", "PDF", "PPTX",
    "NAV", "NRK", "DNB", "NSB", "SAS", "UIO", "NTNU", "UIB",
    "NOK", "SEK", "EUR", "USD", "GBP",
    "KWH", "CO2", "M2", "M3",
})

PROPER_NOUNS = frozenset({
    # Countries and regions
    "Norge", "Sverige", "Danmark", "Finland", "Island", "Tyskland", "Frankrike",
    "Storbritannia", "Italia", "Spania", "Polen", "Nederland", "Belgia",
    "Europa", "Amerika", "Asia", "Afrika", "Australia", "Norden",
    # Places
    "Oslo", "Bergen", "Trondheim", "Stavanger", "Kristiansand", "Tromsø",
    "Drammen", "Fredrikstad", "Sandnes", "Bodø", "Ålesund", "Tønsberg",
    "Haugesund", "Sandefjord", "Moss", "Sarpsborg", "Skien", "Arendal",
    "Gjøvik", "Hamar", "Lillehammer", "Molde", "Harstad", "Narvik", "Alta",
    "Hammerfest", "Kirkenes", "Melhus", "Frogner", "Majorstuen",
    "Grünerløkka", "Aker", "Bærum",
    # Companies
    "Microsoft", "Google", "Apple", "Amazon", "Meta", "Facebook", "LinkedIn",
    "Equinor", "Telenor", "Hydro", "Yara", "Storebrand", "Gjensidige", "Vipps",
    "Finn", "Schibsted", "Atea", "Visma", "Kahoot",
    # Public sector and organizations
    "Stortinget", "Regjeringen", "Kirkerådet", "Kirkemøtet", "Helse",
    "Helseforetaket", "Statsforvalteren", "Fylkeskommunen",
    "Hovedorganisasjonen", "Gravplassforeningen",
})

_TRAILING_PUNCTUATION = re.compile(r"^(.+?)([.,!?:;]*)$", re.DOTALL)
_UPPERCASE_WORD = re.compile(r"^[A-ZÆØÅ]+$")
_SENTENCE_END = re.compile(r"[.!?:]$")


def _strip_punctuation(word: str) -> str:
    return re.sub(r"[.,!?:;]$", "", word)


def is_acronym(word: str) -> bool:
    """All-caps word of at least two letters."""
    clean = _strip_punctuation(word)
    return len(clean) >= 2 and bool(_UPPERCASE_WORD.match(clean))


def _capitalize(word: str) -> str:
    return word[:1].upper() + word[1:].lower()


def _convert_word(word: str, is_first_word: bool) -> str:
    match = _TRAILING_PUNCTUATION.match(word)
    if not match:
        return word
    clean, punctuation = match.groups()

    if is_acronym(clean) or clean.upper() in ACRONYMS:
        return clean.upper() + punctuation
    if clean in PROPER_NOUNS or is_first_word:
        return _capitalize(clean) + punctuation
    return clean.lower() + punctuation


def to_sentence_case(text: str) -> str:
    """
    Convert text to Norwegian sentence case.

    The first word and any word following '.', '!', '?' or ':' is
    capitalized; acronyms stay uppercase and known proper nouns keep their
    capital letter. Whitespace is preserved exactly.
    """
    if not text:
        return text

    segments = re.split(r"(\s+)", text)
    result = []
    previous_word = None

    for segment in segments:
        if not segment or segment.isspace():
            result.append(segment)
            continue
        is_first = previous_word is None or bool(_SENTENCE_END.search(previous_word))
        result.append(_convert_word(segment, is_first))
        previous_word = segment

    return "".join(result)


def is_title_case(text: str) -> bool:
    """True when more than 60% of the words (acronyms aside) start uppercase."""
    if not text:
        return False

    words = text.split()
    if len(words) < 2:
        return False

    capitalized = 0
    for word in words:
        clean = _strip_punctuation(word)
        if not clean or is_acronym(clean):
            continue
        first = clean[0]
        if first.isupper():
            capitalized += 1

    return capitalized / len(words) > 0.6


def fix_title_case_if_needed(text: str) -> str:
    """Only convert text that looks like Title Case."""
    if is_title_case(text):
        return to_sentence_case(text)
    return text
