from typing import Optional, Sequence

from loguru import logger

from cart_enricher.config import PRICE_TOLERANCE, TITLE_SIMILARITY_THRESHOLD
from cart_enricher.matchers.strategies import run_strategies
from cart_enricher.models import (
    CartItem,
    MatchConfidence,
    MatchedSignal,
    MatchMethod,
    MatchResult,
    StrategyMatch,
    ViewedProduct,
)

NO_MATCH = MatchResult(
    product=None,
    variant=None,
    confidence=MatchConfidence.NONE,
    method=None,
    matched_signals=(),
)


def prices_match(price1: Optional[int], price2: Optional[int], tolerance: float = PRICE_TOLERANCE) -> bool:
    """
    Check whether two prices agree within a relative tolerance.

    Args:
        price1 (Optional[int]): First price in minor units.
        price2 (Optional[int]): Second price in minor units.
        tolerance (float): Allowed difference relative to the higher price (0.1 = 10%).

    Returns:
        bool: True when both prices are known and close enough.
    """
    if price1 is None or price2 is None:
        return False
    if price1 == price2:
        return True
    if price1 == 0 or price2 == 0:
        return False

    return abs(price1 - price2) / max(price1, price2) <= tolerance


def try_price_match(cart_item: CartItem, product: ViewedProduct) -> Optional[StrategyMatch]:
    """
    Corroborate an already matched product by price.

    Supporting signal only: it is checked against the primary product and never
    makes a match on its own. The product price is tried first, then variant prices.
    """
    if cart_item.price is None:
        return None

    if prices_match(cart_item.price, product.price):
        return StrategyMatch(
            product, None, MatchConfidence.LOW, MatchMethod.PRICE,
            exact=cart_item.price == product.price,
        )

    for variant in product.variants:
        if prices_match(cart_item.price, variant.price):
            return StrategyMatch(
                product, variant, MatchConfidence.LOW, MatchMethod.PRICE,
                exact=cart_item.price == variant.price,
            )
    return None


def match_cart_item(
    cart_item: CartItem,
    products: Sequence[ViewedProduct],
    title_threshold: float = TITLE_SIMILARITY_THRESHOLD,
) -> MatchResult:
    """
    Match one cart item against the viewed products using every strategy.

    All strategies run; their hits are ranked by confidence (stable, so strategy
    order breaks ties) and the first becomes the primary match. A price signal is
    appended when the cart price corroborates the primary product.

    Args:
        cart_item (CartItem): Cart item to match.
        products (Sequence[ViewedProduct]): Candidate product views.
        title_threshold (float): Minimum title similarity for the title strategy.

    Returns:
        MatchResult: Primary match plus every signal found, or NO_MATCH.
    """
    matches = run_strategies(cart_item, products, title_threshold)
    if not matches:
        return NO_MATCH

    matches.sort(key=lambda m: m.confidence.rank, reverse=True)
    primary = matches[0]

    signals = [MatchedSignal(m.method, m.confidence, m.exact) for m in matches]

    price_match = try_price_match(cart_item, primary.product)
    if price_match is not None:
        signals.append(MatchedSignal(MatchMethod.PRICE, MatchConfidence.LOW, price_match.exact))

    logger.debug(
        f"Matched '{cart_item.title}' via {primary.method.value} ({primary.confidence.value}), "
        f"signals: {[s.method.value for s in signals]}"
    )

    return MatchResult(
        product=primary.product,
        variant=primary.variant,
        confidence=primary.confidence,
        method=primary.method,
        matched_signals=tuple(signals),
    )
