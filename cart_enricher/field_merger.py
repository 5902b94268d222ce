"""
Build enriched cart items from a cart item and its match result.

Field precedence:
- Shared fields (title, url, image_url): cart value, falling back to the product.
- Price: always the cart price, which is what the shopper saw.
- Product-only fields (brand, description, category, rating, currency): from the
  product, only when the match meets the confidence threshold.
- Identifiers: union of cart and product identifiers when matched.
"""
from typing import Iterable, Optional, Tuple

from cart_enricher.models import (
    CartItem,
    EnrichedCartItem,
    FieldSource,
    FieldSources,
    IdentifierSet,
    MatchConfidence,
    MatchedVariant,
    MatchResult,
    ProductVariant,
)


def meets_threshold(confidence: MatchConfidence, min_confidence: MatchConfidence) -> bool:
    return confidence.rank >= min_confidence.rank


def _present(value: Optional[str]) -> bool:
    return bool(value and value.strip())


def _merge_values(values1: Optional[Iterable[str]], values2: Optional[Iterable[str]]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys([*(values1 or ()), *(values2 or ())]))


def merge_identifiers(cart_ids: IdentifierSet, product_ids: IdentifierSet) -> IdentifierSet:
    """Union the identifiers of both sides per category, cart values first."""
    return IdentifierSet(
        product_ids=_merge_values(cart_ids.product_ids, product_ids.product_ids),
        extracted_ids=_merge_values(cart_ids.extracted_ids, product_ids.extracted_ids),
        skus=_merge_values(cart_ids.skus, product_ids.skus),
        gtins=_merge_values(cart_ids.gtins, product_ids.gtins),
        mpns=_merge_values(cart_ids.mpns, product_ids.mpns),
    )


def _pick(cart_value: Optional[str], *fallbacks: Optional[str]) -> Tuple[Optional[str], Optional[FieldSource]]:
    """Cart value if non-blank, else the first non-blank fallback, with its source."""
    if _present(cart_value):
        return cart_value, FieldSource.CART
    for value in fallbacks:
        if _present(value):
            return value, FieldSource.PRODUCT
    return None, None


def _to_matched_variant(variant: ProductVariant) -> MatchedVariant:
    return MatchedVariant(
        sku=variant.sku,
        url=variant.url,
        image_url=variant.image_url,
        price=variant.price,
        currency=variant.currency,
        color=variant.color,
    )


def build_enriched_item(
    cart_item: CartItem,
    match_result: MatchResult,
    min_confidence: MatchConfidence,
    enriched_at: str,
) -> EnrichedCartItem:
    """
    Merge a cart item with its matched product view.

    A match below min_confidence is discarded entirely: the item is reported as
    not viewed, without product fields and without signals.

    Args:
        cart_item (CartItem): Source cart item.
        match_result (MatchResult): Unfiltered match for this cart item.
        min_confidence (MatchConfidence): Lowest confidence accepted as a match.
        enriched_at (str): Shared ISO timestamp of the enrichment call.

    Returns:
        EnrichedCartItem: The enriched, immutable item.
    """
    accepted = match_result.product is not None and meets_threshold(match_result.confidence, min_confidence)
    product = match_result.product if accepted else None
    variant = match_result.variant if accepted else None

    title, title_source = _pick(cart_item.title, product and product.title)
    url, url_source = _pick(cart_item.url, product and product.url)
    image_url, image_source = _pick(
        cart_item.image_url,
        variant and variant.image_url,
        product and product.image_url,
    )

    brand = description = category = currency = rating = None
    if product is not None:
        brand = product.brand
        description = product.description
        category = product.category
        rating = product.rating
        currency = product.currency or (variant.currency if variant else None)

    sources = FieldSources(
        title=title_source,
        url=url_source,
        image_url=image_source,
        price=FieldSource.CART if cart_item.price is not None else None,
        currency=FieldSource.PRODUCT if currency else None,
        brand=FieldSource.PRODUCT if brand else None,
        description=FieldSource.PRODUCT if description else None,
        category=FieldSource.PRODUCT if category else None,
        rating=FieldSource.PRODUCT if rating is not None else None,
        ids=FieldSource.MERGED if product is not None else FieldSource.CART,
    )

    return EnrichedCartItem(
        title=title,
        url=url,
        image_url=image_url,
        store_id=cart_item.store_id,
        price=cart_item.price,
        currency=currency,
        brand=brand,
        description=description,
        category=category,
        rating=rating,
        quantity=cart_item.quantity,
        line_total=cart_item.line_total,
        ids=merge_identifiers(cart_item.ids, product.ids) if product is not None else cart_item.ids,
        in_cart=True,
        was_viewed=accepted,
        match_confidence=match_result.confidence if accepted else MatchConfidence.NONE,
        match_method=match_result.method if accepted else None,
        matched_signals=match_result.matched_signals if accepted else (),
        matched_variant=_to_matched_variant(variant) if variant is not None else None,
        sources=sources,
        enriched_at=enriched_at,
    )
