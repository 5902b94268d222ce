import pytest

from cart_enricher.matchers.title_similarity import (
    dice_coefficient,
    get_bigrams,
    levenshtein_similarity,
    title_similarity,
)


def test_exact_match_after_normalization():
    """Case, punctuation and spacing differences still count as an exact match."""
    assert title_similarity("Sport Cap!", "  sport   CAP ") == 1.0


def test_prefix_containment_scores_095():
    """A title followed by a variant suffix is treated as near-certain."""
    assert title_similarity("Sport Cap", "Sport Cap - White") == 0.95
    assert title_similarity("Sport Cap White", "Sport Cap") == 0.95


def test_prefix_must_end_on_word_boundary():
    """'sport ca' is a prefix of 'sport cap' but not a whole-word one."""
    assert title_similarity("Sport Ca", "Sport Cap") != 0.95


def test_missing_or_empty_titles_score_zero():
    """A title that normalizes to nothing scores 0 against a real title."""
    assert title_similarity(None, "Sport Cap") == 0.0
    assert title_similarity("Sport Cap", "") == 0.0
    assert title_similarity("!!!", "Sport Cap") == 0.0


def test_titles_that_both_normalize_to_empty_are_exact():
    assert title_similarity("!!!", "???") == 1.0


def test_typo_still_scores_above_threshold():
    score = title_similarity("Arrival T-Shirt", "Arival T-Shirt")
    assert score >= levenshtein_similarity("arrival t-shirt", "arival t-shirt")
    assert score >= 0.8


def test_word_order_scores_through_token_dice():
    assert title_similarity("Cap Sport", "Sport Cap") == pytest.approx(1.0)


def test_unrelated_titles_score_low():
    assert title_similarity("Blue Widget", "Garden Hose") < 0.5


def test_dice_coefficient():
    assert dice_coefficient({"a", "b"}, {"b", "c"}) == 0.5
    assert dice_coefficient(set(), {"a"}) == 0.0
    assert dice_coefficient(set(), set()) == 0.0


def test_get_bigrams():
    assert get_bigrams("cap") == {"ca", "ap"}
    assert get_bigrams("c") == set()


def test_single_character_titles_do_not_match_each_other():
    """Two one-letter titles have no bigrams; that must not count as similarity."""
    assert title_similarity("a", "b") == 0.0


def test_levenshtein_similarity():
    assert levenshtein_similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)
    assert levenshtein_similarity("same", "same") == 1.0
    assert levenshtein_similarity("", "abc") == 0.0
