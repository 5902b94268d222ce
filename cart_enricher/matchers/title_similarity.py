from typing import Optional, Set

from rapidfuzz.distance import Levenshtein

from cart_enricher.matchers.text_normalization import normalize_title_for_similarity

CONTAINMENT_SCORE = 0.95


def dice_coefficient(set1: Set[str], set2: Set[str]) -> float:
    """Dice coefficient 2*|A&B| / (|A|+|B|). Zero when either set is empty."""
    if not set1 or not set2:
        return 0.0
    return 2 * len(set1 & set2) / (len(set1) + len(set2))


def get_bigrams(s: str) -> Set[str]:
    return {s[i:i + 2] for i in range(len(s) - 1)}


def levenshtein_similarity(s1: str, s2: str) -> float:
    """Edit distance normalized to 0-1 by the longer string."""
    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0
    distance = Levenshtein.distance(s1, s2)
    return 1 - distance / max(len(s1), len(s2))


def title_similarity(title1: Optional[str], title2: Optional[str]) -> float:
    """
    Score how likely two product titles name the same product.

    Scoring:
        1. Exact match after normalization -> 1.0
        2. One title is the other plus a whitespace-separated suffix
           ("sport cap" vs "sport cap white") -> 0.95
        3. Otherwise the best of token Dice, character-bigram Dice and
           Levenshtein similarity.

    Args:
        title1 (Optional[str]): First title.
        title2 (Optional[str]): Second title.

    Returns:
        float: Similarity in [0, 1]. Missing titles score 0; titles that both
            normalize to the same string, even an empty one, score 1.
    """
    if not title1 or not title2:
        return 0.0

    t1 = normalize_title_for_similarity(title1)
    t2 = normalize_title_for_similarity(title2)

    if t1 == t2:
        return 1.0
    if not t1 or not t2:
        return 0.0

    shorter, longer = (t1, t2) if len(t1) <= len(t2) else (t2, t1)
    if longer.startswith(shorter + " "):
        return CONTAINMENT_SCORE

    token_dice = dice_coefficient(set(t1.split()), set(t2.split()))
    bigram_dice = dice_coefficient(get_bigrams(t1), get_bigrams(t2))
    leven = levenshtein_similarity(t1, t2)

    return max(token_dice, bigram_dice, leven)
