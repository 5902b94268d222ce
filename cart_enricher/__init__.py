"""Cart enrichment: match cart items to viewed products and merge their data."""
from cart_enricher.enrichment_orchestrator import enrich_cart
from cart_enricher.exceptions import EnrichmentError, SessionFormatError, StoreIdMismatchError
from cart_enricher.models import (
    CartItem,
    EnrichCartOptions,
    EnrichedCart,
    EnrichedCartItem,
    EnrichmentSummary,
    IdentifierSet,
    MatchConfidence,
    MatchMethod,
    ProductVariant,
    ViewedProduct,
)

__all__ = [
    "enrich_cart",
    "EnrichmentError",
    "SessionFormatError",
    "StoreIdMismatchError",
    "CartItem",
    "EnrichCartOptions",
    "EnrichedCart",
    "EnrichedCartItem",
    "EnrichmentSummary",
    "IdentifierSet",
    "MatchConfidence",
    "MatchMethod",
    "ProductVariant",
    "ViewedProduct",
]
