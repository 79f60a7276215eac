"""
Tests for Norwegian sentence case
"""

from deckforge.agents.content_generator import apply_sentence_case
from deckforge.models.slide import Block, BlockKind, Slide, SlideType
from deckforge.utils.sentence_case import (
    fix_title_case_if_needed,
    is_acronym,
    is_title_case,
    to_sentence_case,
)


def test_title_case_is_lowered():
    assert to_sentence_case("Store Endringer og Vedtak i Desember 2025") == "Store endringer og vedtak i desember 2025"


def test_acronyms_and_proper_nouns_are_kept():
    assert to_sentence_case("Ny AI Strategi for NAV") == "Ny AI strategi for NAV"
    assert to_sentence_case("Møte i Oslo Og Bergen") == "Møte i Oslo og Bergen"
    assert to_sentence_case("samarbeid med Equinor") == "Samarbeid med Equinor"


def test_capitalizes_after_sentence_end():
    assert to_sentence_case("Resultat: Bedre Tall") == "Resultat: Bedre tall"
    assert to_sentence_case("Ferdig. Neste Steg") == "Ferdig. Neste steg"


def test_whitespace_is_preserved():
    assert to_sentence_case("To  Mellomrom\tHer") == "To  mellomrom\ther"
    assert to_sentence_case("") == ""


def test_is_acronym():
    assert is_acronym("GDPR")
    assert is_acronym("API,")
    assert not is_acronym("A")
    assert not is_acronym("Api")


def test_is_title_case():
    assert is_title_case("Store Endringer Og Vedtak")
    assert not is_title_case("Store endringer og vedtak")
    assert not is_title_case("Enkeltord")


def test_fix_title_case_if_needed():
    assert fix_title_case_if_needed("Vi økte salget med 20%") == "Vi økte salget med 20%"
    assert fix_title_case_if_needed("Nye Mål For Neste År") == "Nye mål for neste år"


def test_apply_sentence_case_only_touches_headings():
    slide = Slide(
        type=SlideType.ICON_CARDS_WITH_IMAGE,
        blocks=[
            Block(kind=BlockKind.TITLE, text="Våre Viktigste Fordeler"),
            Block(kind=BlockKind.ICON_CARD, text="Rask Levering", description="Levert Innen To Dager"),
            Block(kind=BlockKind.TEXT, text="Brødtekst Beholdes Som Den Er"),
        ],
    )
    converted = apply_sentence_case(slide)

    assert converted.blocks[0].text == "Våre viktigste fordeler"
    assert converted.blocks[1].text == "Rask levering"
    assert converted.blocks[1].description == "Levert Innen To Dager"
    assert converted.blocks[2].text == "Brødtekst Beholdes Som Den Er"
