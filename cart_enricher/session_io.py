"""
Conversion between JSON session documents and enrichment models.

A session document mirrors the enrich-cart request body:

    {"cart": [...], "products": [...], "options": {"minConfidence": "medium"}}

Cart items and products use the camelCase field names produced by the event
normalizers. Output is written back in the same camelCase form.
"""
import json
import re
from dataclasses import fields
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from cart_enricher.config import MAX_ITEMS_PER_SIDE
from cart_enricher.exceptions import SessionFormatError
from cart_enricher.models import (
    CartItem,
    EnrichCartOptions,
    EnrichedCart,
    EnrichedCartItem,
    EnrichmentSummary,
    IdentifierSet,
    MatchConfidence,
    ProductVariant,
    ViewedProduct,
)

ITEM_COLUMNS = [
    "title",
    "url",
    "price",
    "quantity",
    "lineTotal",
    "wasViewed",
    "matchConfidence",
    "matchMethod",
    "matchedSignals",
    "brand",
    "category",
    "matchedVariantSku",
]


def _camel(name: str) -> str:
    return re.sub(r"_([a-z])", lambda m: m.group(1).upper(), name)


def _compact(data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop keys whose value is None."""
    return {k: v for k, v in data.items() if v is not None}


def _dataclass_to_dict(obj) -> Dict[str, Any]:
    """Shallow camelCase dict of a flat dataclass; enums become their values."""
    out = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        out[_camel(f.name)] = getattr(value, "value", value)
    return _compact(out)


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------

def identifier_set_from_dict(data: Optional[Dict[str, Any]]) -> IdentifierSet:
    data = data or {}
    return IdentifierSet(
        product_ids=data.get("productIds") or (),
        extracted_ids=data.get("extractedIds") or (),
        skus=data.get("skus"),
        gtins=data.get("gtins"),
        mpns=data.get("mpns"),
    )


def cart_item_from_dict(data: Dict[str, Any]) -> CartItem:
    return CartItem(
        title=data.get("title"),
        url=data.get("url"),
        image_url=data.get("imageUrl"),
        store_id=data.get("storeId"),
        price=data.get("price"),
        quantity=data.get("quantity"),
        line_total=data.get("lineTotal"),
        ids=identifier_set_from_dict(data.get("ids")),
    )


def variant_from_dict(data: Dict[str, Any]) -> ProductVariant:
    return ProductVariant(
        sku=data["sku"],
        url=data.get("url"),
        image_url=data.get("imageUrl"),
        price=data.get("price"),
        currency=data.get("currency"),
        color=data.get("color"),
        extracted_ids=data.get("extractedIds") or (),
    )


def viewed_product_from_dict(data: Dict[str, Any]) -> ViewedProduct:
    return ViewedProduct(
        title=data.get("title"),
        url=data.get("url"),
        image_url=data.get("imageUrl"),
        store_id=data.get("storeId"),
        brand=data.get("brand"),
        description=data.get("description"),
        category=data.get("category"),
        rating=data.get("rating"),
        color=data.get("color"),
        price=data.get("price"),
        currency=data.get("currency"),
        ids=identifier_set_from_dict(data.get("ids")),
        variants=tuple(variant_from_dict(v) for v in data.get("variants") or ()),
        variant_count=data.get("variantCount"),
        has_variants=data.get("hasVariants"),
    )


def options_from_dict(data: Optional[Dict[str, Any]], path: Optional[str] = None) -> EnrichCartOptions:
    """
    Build enrichment options, rejecting values a caller cannot have meant.

    Raises:
        SessionFormatError: If minConfidence is not a confidence level or
            titleSimilarityThreshold is not a number between 0 and 1.
    """
    if data is None:
        return EnrichCartOptions()
    if not isinstance(data, dict):
        raise SessionFormatError("'options' must be an object", path)

    kwargs = {}
    min_confidence = data.get("minConfidence")
    if min_confidence is not None:
        try:
            kwargs["min_confidence"] = MatchConfidence(min_confidence).value
        except ValueError:
            allowed = ", ".join(c.value for c in MatchConfidence)
            raise SessionFormatError(f"'minConfidence' must be one of {allowed}, got {min_confidence!r}", path)

    threshold = data.get("titleSimilarityThreshold")
    if threshold is not None:
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)) or not 0 <= threshold <= 1:
            raise SessionFormatError(
                f"'titleSimilarityThreshold' must be a number between 0 and 1, got {threshold!r}", path
            )
        kwargs["title_similarity_threshold"] = float(threshold)

    return EnrichCartOptions(**kwargs)


def parse_session(
    document: Any,
    path: Optional[str] = None,
) -> Tuple[List[CartItem], List[ViewedProduct], EnrichCartOptions]:
    """
    Turn a decoded session document into enrichment inputs.

    Args:
        document (Any): Decoded JSON document.
        path (Optional[str]): Source path, used in error messages.

    Returns:
        Tuple[List[CartItem], List[ViewedProduct], EnrichCartOptions]: Inputs for enrich_cart.

    Raises:
        SessionFormatError: If the document shape is wrong or a side exceeds MAX_ITEMS_PER_SIDE.
    """
    if not isinstance(document, dict):
        raise SessionFormatError("session document must be a JSON object", path)

    raw_cart = document.get("cart", [])
    raw_products = document.get("products", [])
    for name, raw in (("cart", raw_cart), ("products", raw_products)):
        if not isinstance(raw, list):
            raise SessionFormatError(f"'{name}' must be a list", path)
        if len(raw) > MAX_ITEMS_PER_SIDE:
            raise SessionFormatError(f"'{name}' has {len(raw)} entries, maximum is {MAX_ITEMS_PER_SIDE}", path)

    try:
        cart_items = [cart_item_from_dict(item) for item in raw_cart]
        products = [viewed_product_from_dict(product) for product in raw_products]
    except (KeyError, TypeError, AttributeError) as e:
        raise SessionFormatError(f"malformed entry: {e!r}", path) from e

    return cart_items, products, options_from_dict(document.get("options"), path)


def load_session(path: str) -> Tuple[List[CartItem], List[ViewedProduct], EnrichCartOptions]:
    """Read and parse a session JSON file."""
    with open(path, encoding="utf-8") as f:
        try:
            document = json.load(f)
        except json.JSONDecodeError as e:
            raise SessionFormatError(f"invalid JSON: {e}", path) from e
    return parse_session(document, path)


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

def identifier_set_to_dict(ids: IdentifierSet) -> Dict[str, Any]:
    return _compact({
        "productIds": list(ids.product_ids),
        "extractedIds": list(ids.extracted_ids),
        "skus": list(ids.skus) if ids.skus is not None else None,
        "gtins": list(ids.gtins) if ids.gtins is not None else None,
        "mpns": list(ids.mpns) if ids.mpns is not None else None,
    })


def enriched_item_to_dict(item: EnrichedCartItem) -> Dict[str, Any]:
    data = {
        "title": item.title,
        "url": item.url,
        "imageUrl": item.image_url,
        "storeId": item.store_id,
        "price": item.price,
        "currency": item.currency,
        "brand": item.brand,
        "description": item.description,
        "category": item.category,
        "rating": item.rating,
        "quantity": item.quantity,
        "lineTotal": item.line_total,
        "ids": identifier_set_to_dict(item.ids),
        "inCart": item.in_cart,
        "wasViewed": item.was_viewed,
        "matchConfidence": item.match_confidence.value,
        "matchedSignals": [_dataclass_to_dict(signal) for signal in item.matched_signals],
        "enrichedAt": item.enriched_at,
        "sources": _dataclass_to_dict(item.sources),
        "matchedVariant": _dataclass_to_dict(item.matched_variant) if item.matched_variant else None,
    }
    data = _compact(data)
    # matchMethod is part of the contract even when there is no match
    data["matchMethod"] = item.match_method.value if item.match_method is not None else None
    return data


def summary_to_dict(summary: EnrichmentSummary) -> Dict[str, Any]:
    return {
        "totalItems": summary.total_items,
        "matchedItems": summary.matched_items,
        "unmatchedItems": summary.unmatched_items,
        "matchRate": summary.match_rate,
        "byConfidence": dict(summary.by_confidence),
        "byMethod": dict(summary.by_method),
    }


def enriched_cart_to_dict(cart: EnrichedCart, duration_ms: Optional[float] = None) -> Dict[str, Any]:
    """
    Serialize an enriched cart to its camelCase JSON form.

    Args:
        cart (EnrichedCart): Enrichment result.
        duration_ms (Optional[float]): Processing time to report, if measured.

    Returns:
        Dict[str, Any]: JSON-serializable response body.
    """
    return _compact({
        "storeId": cart.store_id,
        "items": [enriched_item_to_dict(item) for item in cart.items],
        "summary": summary_to_dict(cart.summary),
        "enrichedAt": cart.enriched_at,
        "durationMs": duration_ms,
    })


def enriched_items_to_frame(cart: EnrichedCart) -> pd.DataFrame:
    """One row per enriched item, for CSV reporting."""
    rows = []
    for item in cart.items:
        rows.append({
            "title": item.title,
            "url": item.url,
            "price": item.price,
            "quantity": item.quantity,
            "lineTotal": item.line_total,
            "wasViewed": item.was_viewed,
            "matchConfidence": item.match_confidence.value,
            "matchMethod": item.match_method.value if item.match_method is not None else None,
            "matchedSignals": ";".join(signal.method.value for signal in item.matched_signals),
            "brand": item.brand,
            "category": item.category,
            "matchedVariantSku": item.matched_variant.sku if item.matched_variant else None,
        })
    return pd.DataFrame(rows, columns=ITEM_COLUMNS)
