"""
Typed data models for the cart enrichment pipeline.
All data structures used throughout the codebase should be defined here.
"""
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple

from cart_enricher.config import DEFAULT_MIN_CONFIDENCE, TITLE_SIMILARITY_THRESHOLD


class MatchConfidence(str, Enum):
    """Ordinal certainty of a cart-to-product match."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"

    @property
    def rank(self) -> int:
        return CONFIDENCE_ORDER[self]


CONFIDENCE_ORDER = {
    MatchConfidence.HIGH: 3,
    MatchConfidence.MEDIUM: 2,
    MatchConfidence.LOW: 1,
    MatchConfidence.NONE: 0,
}


class MatchMethod(str, Enum):
    """Strategy that produced a match signal."""
    SKU = "sku"
    VARIANT_SKU = "variant_sku"
    IMAGE_SKU = "image_sku"
    URL = "url"
    EXTRACTED_ID = "extracted_id"
    EXTRACTED_ID_SKU = "extracted_id_sku"
    TITLE_COLOR = "title_color"
    TITLE = "title"
    PRICE = "price"  # Supporting signal only, never primary


class FieldSource(str, Enum):
    """Where an enriched field value came from."""
    CART = "cart"
    PRODUCT = "product"
    MERGED = "merged"


def _dedupe(values: Optional[Iterable[str]]) -> Tuple[str, ...]:
    """Deduplicate while keeping first-occurrence order."""
    return tuple(dict.fromkeys(values or ()))


@dataclass(frozen=True)
class IdentifierSet:
    """Product identifiers grouped by category."""
    product_ids: Tuple[str, ...] = ()
    extracted_ids: Tuple[str, ...] = ()  # From the URL/ID extraction service
    skus: Optional[Tuple[str, ...]] = None
    gtins: Optional[Tuple[str, ...]] = None
    mpns: Optional[Tuple[str, ...]] = None

    def __post_init__(self):
        object.__setattr__(self, "product_ids", _dedupe(self.product_ids))
        object.__setattr__(self, "extracted_ids", _dedupe(self.extracted_ids))
        for name in ("skus", "gtins", "mpns"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, _dedupe(value))


@dataclass(frozen=True)
class CartItem:
    """Normalized cart line item."""
    title: Optional[str] = None
    url: Optional[str] = None
    image_url: Optional[str] = None
    store_id: Optional[str] = None
    price: Optional[int] = None  # Minor currency units (cents)
    quantity: Optional[int] = None
    line_total: Optional[int] = None
    ids: IdentifierSet = field(default_factory=IdentifierSet)


@dataclass(frozen=True)
class ProductVariant:
    """One purchasable option (size/color) of a viewed product."""
    sku: str
    url: Optional[str] = None
    image_url: Optional[str] = None
    price: Optional[int] = None
    currency: Optional[str] = None
    color: Optional[str] = None
    extracted_ids: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "extracted_ids", _dedupe(self.extracted_ids))


@dataclass(frozen=True)
class ViewedProduct:
    """Normalized product view captured during the shopping session."""
    title: Optional[str] = None
    url: Optional[str] = None
    image_url: Optional[str] = None
    store_id: Optional[str] = None
    brand: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    rating: Optional[float] = None
    color: Optional[str] = None
    price: Optional[int] = None
    currency: Optional[str] = None
    ids: IdentifierSet = field(default_factory=IdentifierSet)
    variants: Tuple[ProductVariant, ...] = ()
    variant_count: Optional[int] = None  # Derived from variants when omitted
    has_variants: Optional[bool] = None

    def __post_init__(self):
        object.__setattr__(self, "variants", tuple(self.variants))
        if self.variant_count is None:
            object.__setattr__(self, "variant_count", len(self.variants))
        if self.has_variants is None:
            object.__setattr__(self, "has_variants", self.variant_count > 0)


@dataclass(frozen=True)
class MatchedSignal:
    """One strategy's verdict about a cart item."""
    method: MatchMethod
    confidence: MatchConfidence
    exact: bool  # False for fuzzy title and within-tolerance price matches


@dataclass(frozen=True)
class MatchedVariant:
    sku: str
    url: Optional[str] = None
    image_url: Optional[str] = None
    price: Optional[int] = None
    currency: Optional[str] = None
    color: Optional[str] = None


@dataclass(frozen=True)
class FieldSources:
    """Provenance of each enriched field. None means no source supplied a value."""
    title: Optional[FieldSource] = None
    url: Optional[FieldSource] = None
    image_url: Optional[FieldSource] = None
    price: Optional[FieldSource] = None
    currency: Optional[FieldSource] = None
    brand: Optional[FieldSource] = None
    description: Optional[FieldSource] = None
    category: Optional[FieldSource] = None
    rating: Optional[FieldSource] = None
    ids: Optional[FieldSource] = None


@dataclass(frozen=True)
class EnrichedCartItem:
    """Cart item combined with the data of the product view it matched, if any."""
    ids: IdentifierSet
    was_viewed: bool
    match_confidence: MatchConfidence
    match_method: Optional[MatchMethod]
    sources: FieldSources
    enriched_at: str
    matched_signals: Tuple[MatchedSignal, ...] = ()  # Sorted high -> low
    title: Optional[str] = None
    url: Optional[str] = None
    image_url: Optional[str] = None
    store_id: Optional[str] = None
    price: Optional[int] = None  # Always the cart price
    currency: Optional[str] = None
    brand: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    rating: Optional[float] = None
    quantity: Optional[int] = None
    line_total: Optional[int] = None
    matched_variant: Optional[MatchedVariant] = None
    in_cart: bool = True


@dataclass(frozen=True)
class EnrichmentSummary:
    """Aggregate statistics over an enriched cart."""
    total_items: int
    matched_items: int
    unmatched_items: int
    match_rate: float  # Percentage, 0-100
    by_confidence: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    by_method: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True)
class EnrichedCart:
    """Final result of a single enrichment call."""
    store_id: Optional[str]
    items: Tuple[EnrichedCartItem, ...]
    summary: EnrichmentSummary
    enriched_at: str


@dataclass(frozen=True)
class EnrichCartOptions:
    """Caller-supplied knobs for enrich_cart."""
    min_confidence: str = DEFAULT_MIN_CONFIDENCE
    title_similarity_threshold: float = TITLE_SIMILARITY_THRESHOLD


@dataclass(frozen=True)
class StrategyMatch:
    """Internal: a single strategy hit, still carrying the matched product."""
    product: ViewedProduct
    variant: Optional[ProductVariant]
    confidence: MatchConfidence
    method: MatchMethod
    exact: bool


@dataclass(frozen=True)
class MatchResult:
    """Internal: unfiltered outcome of matching one cart item, before the confidence threshold is applied."""
    product: Optional[ViewedProduct]
    variant: Optional[ProductVariant]
    confidence: MatchConfidence
    method: Optional[MatchMethod]
    matched_signals: Tuple[MatchedSignal, ...] = ()
