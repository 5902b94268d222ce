# cart_enricher/enrichment_orchestrator.py

from datetime import datetime, timezone
from typing import Optional, Sequence

from loguru import logger

from cart_enricher.exceptions import StoreIdMismatchError
from cart_enricher.field_merger import build_enriched_item
from cart_enricher.matchers.signal_aggregator import match_cart_item
from cart_enricher.models import (
    CartItem,
    EnrichCartOptions,
    EnrichedCart,
    MatchConfidence,
    ViewedProduct,
)
from cart_enricher.summary import calculate_summary


def _utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2026-01-01T12:00:00.000Z"""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def resolve_store_id(
    cart_items: Sequence[CartItem],
    viewed_products: Sequence[ViewedProduct],
) -> Optional[str]:
    """
    Determine the store both collections belong to.

    Only the first element of each collection is inspected.

    Raises:
        StoreIdMismatchError: If both sides carry a store id and they differ.
    """
    cart_store_id = cart_items[0].store_id if cart_items else None
    product_store_id = viewed_products[0].store_id if viewed_products else None

    if cart_store_id and product_store_id and cart_store_id != product_store_id:
        logger.debug(f"Store id mismatch: cart={cart_store_id} products={product_store_id}")
        raise StoreIdMismatchError(cart_store_id, product_store_id)

    return cart_store_id or product_store_id


def enrich_cart(
    cart_items: Sequence[CartItem],
    viewed_products: Sequence[ViewedProduct],
    options: Optional[EnrichCartOptions] = None,
) -> EnrichedCart:
    """
    Enrich cart items with the product views captured in the same store.

    Every cart item is matched against all product views (SKU, variant SKU,
    image SKU, extracted ID to SKU, URL, extracted ID, title + color and title
    similarity strategies), then merged with the product it matched when that
    match meets options.min_confidence.

    Args:
        cart_items (Sequence[CartItem]): Normalized cart items.
        viewed_products (Sequence[ViewedProduct]): Normalized product views from the same store.
        options (Optional[EnrichCartOptions]): Confidence threshold and title similarity threshold.

    Returns:
        EnrichedCart: One enriched item per cart item, in cart order, plus summary statistics.

    Raises:
        StoreIdMismatchError: If the cart and product views come from different stores.
        ValueError: If options.min_confidence is not a known confidence level.
    """
    options = options or EnrichCartOptions()
    min_confidence = MatchConfidence(options.min_confidence)

    store_id = resolve_store_id(cart_items, viewed_products)
    enriched_at = _utc_timestamp()

    items = []
    for cart_item in cart_items:
        match_result = match_cart_item(cart_item, viewed_products, options.title_similarity_threshold)
        items.append(build_enriched_item(cart_item, match_result, min_confidence, enriched_at))

    summary = calculate_summary(items)
    logger.debug(
        f"Enriched {summary.total_items} cart items against {len(viewed_products)} products "
        f"for store {store_id}: {summary.matched_items} matched"
    )

    return EnrichedCart(
        store_id=store_id,
        items=tuple(items),
        summary=summary,
        enriched_at=enriched_at,
    )
