"""
Independent cart-to-product matching strategies.

Every strategy takes one cart item and the candidate product views and returns
at most one StrategyMatch: the first product (in input order) that satisfies it.
Strategies never look at each other's results.
"""
from functools import partial
from typing import Callable, Iterable, List, Optional, Sequence

from cart_enricher.config import TITLE_SIMILARITY_THRESHOLD
from cart_enricher.matchers.text_normalization import (
    extract_skus_from_image_url,
    normalize_for_comparison,
    normalize_url,
    parse_cart_title,
)
from cart_enricher.matchers.title_similarity import title_similarity
from cart_enricher.models import (
    CartItem,
    MatchConfidence,
    MatchMethod,
    StrategyMatch,
    ViewedProduct,
)

Strategy = Callable[[CartItem, Sequence[ViewedProduct]], Optional[StrategyMatch]]


def has_intersection(values1: Optional[Iterable[str]], values2: Optional[Iterable[str]]) -> bool:
    if not values1 or not values2:
        return False
    return not set(values1).isdisjoint(values2)


def try_sku_match(cart_item: CartItem, products: Sequence[ViewedProduct]) -> Optional[StrategyMatch]:
    """Cart SKUs intersect the product SKUs."""
    cart_skus = cart_item.ids.skus
    if not cart_skus:
        return None

    for product in products:
        if has_intersection(cart_skus, product.ids.skus):
            return StrategyMatch(product, None, MatchConfidence.HIGH, MatchMethod.SKU, exact=True)
    return None


def try_variant_sku_match(cart_item: CartItem, products: Sequence[ViewedProduct]) -> Optional[StrategyMatch]:
    """Cart SKUs contain the SKU of one of the product's variants."""
    cart_skus = cart_item.ids.skus
    if not cart_skus:
        return None

    for product in products:
        for variant in product.variants:
            if variant.sku in cart_skus:
                return StrategyMatch(product, variant, MatchConfidence.HIGH, MatchMethod.VARIANT_SKU, exact=True)
    return None


def try_image_sku_match(cart_item: CartItem, products: Sequence[ViewedProduct]) -> Optional[StrategyMatch]:
    """
    SKU embedded in the cart image filename matches a product SKU.

    Useful when the cart item has no product URL but its image URL carries the SKU.
    """
    image_skus = extract_skus_from_image_url(cart_item.image_url)
    if not image_skus:
        return None

    for product in products:
        if has_intersection(image_skus, product.ids.skus):
            return StrategyMatch(product, None, MatchConfidence.HIGH, MatchMethod.IMAGE_SKU, exact=True)
    return None


def try_extracted_id_sku_match(cart_item: CartItem, products: Sequence[ViewedProduct]) -> Optional[StrategyMatch]:
    """
    Cart extracted IDs match a product or variant SKU.

    Handles cart URLs that embed a SKU-equivalent identifier, e.g. pid=7873200220004
    where the viewed product listed 7873200220004 among its SKUs even though a
    sibling variant was the one viewed.
    """
    cart_ids = cart_item.ids.extracted_ids
    if not cart_ids:
        return None

    for product in products:
        if has_intersection(cart_ids, product.ids.skus):
            return StrategyMatch(product, None, MatchConfidence.HIGH, MatchMethod.EXTRACTED_ID_SKU, exact=True)

        for variant in product.variants:
            if variant.sku in cart_ids:
                return StrategyMatch(product, variant, MatchConfidence.HIGH, MatchMethod.EXTRACTED_ID_SKU, exact=True)
    return None


def try_url_match(cart_item: CartItem, products: Sequence[ViewedProduct]) -> Optional[StrategyMatch]:
    """Normalized cart URL equals the product URL or a variant URL."""
    cart_url = normalize_url(cart_item.url)
    if not cart_url:
        return None

    for product in products:
        if normalize_url(product.url) == cart_url:
            return StrategyMatch(product, None, MatchConfidence.MEDIUM, MatchMethod.URL, exact=True)

        for variant in product.variants:
            if normalize_url(variant.url) == cart_url:
                return StrategyMatch(product, variant, MatchConfidence.MEDIUM, MatchMethod.URL, exact=True)
    return None


def try_extracted_id_match(cart_item: CartItem, products: Sequence[ViewedProduct]) -> Optional[StrategyMatch]:
    """Cart extracted IDs intersect the product or variant extracted IDs."""
    cart_ids = cart_item.ids.extracted_ids
    if not cart_ids:
        return None

    for product in products:
        if has_intersection(cart_ids, product.ids.extracted_ids):
            return StrategyMatch(product, None, MatchConfidence.MEDIUM, MatchMethod.EXTRACTED_ID, exact=True)

        for variant in product.variants:
            if has_intersection(cart_ids, variant.extracted_ids):
                return StrategyMatch(product, variant, MatchConfidence.MEDIUM, MatchMethod.EXTRACTED_ID, exact=True)
    return None


def try_title_color_match(cart_item: CartItem, products: Sequence[ViewedProduct]) -> Optional[StrategyMatch]:
    """
    Cart title "<base> - <color>" matches a product titled <base> with that color.

    The color may sit on the product itself or on one of its variants.
    """
    if not cart_item.title:
        return None

    base, color = parse_cart_title(cart_item.title)
    if not base or not color:
        return None

    cart_base = normalize_for_comparison(base)
    cart_color = normalize_for_comparison(color)

    for product in products:
        if normalize_for_comparison(product.title) != cart_base:
            continue

        if product.color and normalize_for_comparison(product.color) == cart_color:
            return StrategyMatch(product, None, MatchConfidence.MEDIUM, MatchMethod.TITLE_COLOR, exact=True)

        for variant in product.variants:
            if variant.color and normalize_for_comparison(variant.color) == cart_color:
                return StrategyMatch(product, variant, MatchConfidence.MEDIUM, MatchMethod.TITLE_COLOR, exact=True)
    return None


def try_title_match(
    cart_item: CartItem,
    products: Sequence[ViewedProduct],
    threshold: float = TITLE_SIMILARITY_THRESHOLD,
) -> Optional[StrategyMatch]:
    """
    Best title similarity at or above the threshold.

    Unlike the other strategies this one scans every product and keeps the
    highest-scoring one; on equal scores the earlier product wins.
    """
    if not cart_item.title:
        return None

    best_product = None
    best_score = 0.0
    for product in products:
        score = title_similarity(cart_item.title, product.title)
        if score >= threshold and (best_product is None or score > best_score):
            best_product, best_score = product, score

    if best_product is None:
        return None
    return StrategyMatch(best_product, None, MatchConfidence.LOW, MatchMethod.TITLE, exact=False)


# Declaration order is the tie-break between signals of equal confidence.
IDENTIFIER_STRATEGIES: Sequence[Strategy] = (
    try_sku_match,
    try_variant_sku_match,
    try_image_sku_match,
    try_extracted_id_sku_match,
    try_url_match,
    try_extracted_id_match,
    try_title_color_match,
)


def build_strategies(title_threshold: float = TITLE_SIMILARITY_THRESHOLD) -> List[Strategy]:
    """Full ordered strategy list, with the title strategy bound to its threshold."""
    return [*IDENTIFIER_STRATEGIES, partial(try_title_match, threshold=title_threshold)]


def run_strategies(
    cart_item: CartItem,
    products: Sequence[ViewedProduct],
    title_threshold: float = TITLE_SIMILARITY_THRESHOLD,
) -> List[StrategyMatch]:
    """
    Run every strategy against the candidate products.

    Args:
        cart_item (CartItem): Cart item to match.
        products (Sequence[ViewedProduct]): Candidate product views from the same store.
        title_threshold (float): Minimum similarity for the title strategy.

    Returns:
        List[StrategyMatch]: One entry per strategy that matched, in strategy order.
    """
    matches = []
    for strategy in build_strategies(title_threshold):
        match = strategy(cart_item, products)
        if match is not None:
            matches.append(match)
    return matches
