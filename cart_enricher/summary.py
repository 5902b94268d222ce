from types import MappingProxyType
from typing import Sequence

from cart_enricher.models import EnrichedCartItem, EnrichmentSummary, MatchConfidence, MatchMethod


def calculate_summary(items: Sequence[EnrichedCartItem]) -> EnrichmentSummary:
    """
    Compute match statistics for a set of enriched items.

    Args:
        items (Sequence[EnrichedCartItem]): Enriched cart items.

    Returns:
        EnrichmentSummary: Counts by outcome, confidence and method. match_rate is
        a percentage and is 0.0 for an empty cart.
    """
    by_confidence = {confidence.value: 0 for confidence in MatchConfidence}
    by_method = {method.value: 0 for method in MatchMethod}

    matched_items = 0
    for item in items:
        if item.was_viewed:
            matched_items += 1
        by_confidence[item.match_confidence.value] += 1
        if item.match_method is not None:
            by_method[item.match_method.value] += 1

    total_items = len(items)
    match_rate = matched_items / total_items * 100 if total_items else 0.0

    return EnrichmentSummary(
        total_items=total_items,
        matched_items=matched_items,
        unmatched_items=total_items - matched_items,
        match_rate=match_rate,
        by_confidence=MappingProxyType(by_confidence),
        by_method=MappingProxyType(by_method),
    )
