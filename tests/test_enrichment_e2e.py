import dataclasses
import re
from pathlib import Path

import pytest

from cart_enricher import (
    EnrichCartOptions,
    EnrichedCart,
    IdentifierSet,
    StoreIdMismatchError,
    enrich_cart,
)
from cart_enricher.session_io import load_session

FIXTURES = Path(__file__).parent / "fixtures"


def test_enrich_cart_returns_one_item_per_cart_item_in_order(make_cart_item, make_product):
    """Output keeps cart order and shares one timestamp across the call."""
    cart_items = [
        make_cart_item(title="First", ids=IdentifierSet(skus=("A",))),
        make_cart_item(title="Second"),
        make_cart_item(title="Third", ids=IdentifierSet(skus=("C",))),
    ]
    products = [
        make_product(ids=IdentifierSet(skus=("C",))),
        make_product(ids=IdentifierSet(skus=("A",))),
    ]

    result = enrich_cart(cart_items, products)

    assert isinstance(result, EnrichedCart)
    assert [item.title for item in result.items] == ["First", "Second", "Third"]
    assert [item.was_viewed for item in result.items] == [True, False, True]
    assert result.store_id == "5246"
    assert re.match(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$", result.enriched_at)
    assert all(item.enriched_at == result.enriched_at for item in result.items)


def test_no_match_sentinels_are_consistent(make_cart_item, make_product):
    """An item is either fully matched or carries every no-match sentinel."""
    cart_items = [
        make_cart_item(ids=IdentifierSet(skus=("A",))),
        make_cart_item(url="https://store.com/product/999"),  # medium only, filtered at high
        make_cart_item(title="Unmatched"),
    ]

    result = enrich_cart(cart_items, [make_product(ids=IdentifierSet(skus=("A",)))])

    for item in result.items:
        not_viewed = [
            item.was_viewed is False,
            item.match_confidence == "none",
            item.match_method is None,
            item.matched_signals == (),
        ]
        assert all(not_viewed) or not any(not_viewed)
    summary = result.summary
    assert summary.matched_items + summary.unmatched_items == summary.total_items
    assert sum(summary.by_confidence.values()) == summary.total_items


def test_sku_beats_url_and_title(make_cart_item, make_product):
    """When SKU, URL and title all agree, the SKU signal is primary."""
    cart_item = make_cart_item(
        title="Garden Hose",
        url="https://store.com/product/999",
        ids=IdentifierSet(skus=("ABC123",)),
    )
    product = make_product(ids=IdentifierSet(skus=("ABC123",)))

    item = enrich_cart([cart_item], [product]).items[0]

    assert item.match_method == "sku"
    assert item.match_confidence == "high"
    assert [s.method for s in item.matched_signals] == ["sku", "url", "title"]


def test_sku_scenario(make_cart_item, make_product):
    """A shared SKU alone is a high-confidence match that pulls in product fields."""
    cart_item = make_cart_item(ids=IdentifierSet(skus=("ABC123",)))
    product = make_product(ids=IdentifierSet(skus=("ABC123",)))

    item = enrich_cart([cart_item], [product]).items[0]

    assert item.was_viewed is True
    assert item.match_method == "sku"
    assert item.match_confidence == "high"
    assert item.brand == "Acme"


def test_min_confidence_filters_url_only_match(make_cart_item, make_product):
    """A URL-only match is medium, so it survives only a medium threshold."""
    cart_item = make_cart_item(url="https://store.com/product/999")
    product = make_product()

    strict = enrich_cart([cart_item], [product], EnrichCartOptions(min_confidence="high")).items[0]
    relaxed = enrich_cart([cart_item], [product], EnrichCartOptions(min_confidence="medium")).items[0]

    assert strict.was_viewed is False
    assert strict.matched_signals == ()
    assert relaxed.was_viewed is True
    assert relaxed.match_method == "url"
    assert relaxed.match_confidence == "medium"


def test_title_color_scenario(make_cart_item, make_product):
    """"Name - Color" cart titles match a product with that base title and color."""
    cart_item = make_cart_item(title="Sport Cap - White")
    product = make_product(title="Sport Cap", color="White")

    item = enrich_cart([cart_item], [product], EnrichCartOptions(min_confidence="medium")).items[0]

    assert item.match_method == "title_color"
    assert item.match_confidence == "medium"
    assert [s.method for s in item.matched_signals] == ["title_color", "title"]


def test_title_threshold_option(make_cart_item, make_product):
    """Raising the title threshold drops a near-miss title match."""
    cart_item = make_cart_item(title="Arrival T-Shirt")
    product = make_product(title="Arival T-Shirt")

    loose = enrich_cart([cart_item], [product], EnrichCartOptions(min_confidence="low"))
    strict = enrich_cart(
        [cart_item], [product], EnrichCartOptions(min_confidence="low", title_similarity_threshold=0.99),
    )

    assert loose.items[0].match_method == "title"
    assert loose.items[0].matched_signals[0].exact is False
    assert strict.items[0].was_viewed is False


def test_price_only_similarity_is_not_a_match(make_cart_item, make_product):
    """Equal prices on otherwise unrelated items never count as a view."""
    cart_item = make_cart_item(price=5000)
    product = make_product(price=5000)

    result = enrich_cart([cart_item], [product], EnrichCartOptions(min_confidence="low"))

    assert result.items[0].was_viewed is False
    assert result.summary.by_method["price"] == 0


def test_empty_inputs():
    """Empty cart and products produce an empty, zeroed result."""
    result = enrich_cart([], [])

    assert result.items == ()
    assert result.store_id is None
    assert result.summary.total_items == 0
    assert result.summary.match_rate == 0


def test_store_id_mismatch_raises(make_cart_item, make_product):
    """Cart and products from different stores are refused."""
    with pytest.raises(StoreIdMismatchError) as exc_info:
        enrich_cart([make_cart_item(store_id="5246")], [make_product(store_id="9999")])

    assert exc_info.value.cart_store_id == "5246"
    assert exc_info.value.product_store_id == "9999"
    assert "Store ID mismatch" in str(exc_info.value)


def test_store_id_falls_back_to_products(make_cart_item, make_product):
    """The store id comes from the cart first, then from the products."""
    result = enrich_cart([make_cart_item(store_id=None)], [make_product(store_id="9999")])
    assert result.store_id == "9999"

    result = enrich_cart([make_cart_item(store_id="5246")], [])
    assert result.store_id == "5246"


def test_invalid_min_confidence(make_cart_item):
    """Unknown confidence levels fail before any matching."""
    with pytest.raises(ValueError):
        enrich_cart([make_cart_item()], [], EnrichCartOptions(min_confidence="certain"))


def test_results_are_deterministic_apart_from_timestamp(make_cart_item, make_product):
    """Repeated calls agree on everything except enrichedAt."""
    cart_items = [
        make_cart_item(title="Garden Hose", price=4800),
        make_cart_item(ids=IdentifierSet(skus=("ABC123",))),
    ]
    products = [make_product(ids=IdentifierSet(skus=("ABC123",)))]
    options = EnrichCartOptions(min_confidence="low")

    first = enrich_cart(cart_items, products, options)
    second = enrich_cart(cart_items, products, options)

    def strip_timestamps(cart):
        return [dataclasses.replace(item, enriched_at="") for item in cart.items]

    assert strip_timestamps(first) == strip_timestamps(second)
    assert first.summary == second.summary


def test_result_is_immutable(make_cart_item, make_product):
    """Enriched carts and their nested values cannot be modified."""
    result = enrich_cart([make_cart_item()], [make_product()])

    assert isinstance(result.items, tuple)
    with pytest.raises(dataclasses.FrozenInstanceError):
        result.store_id = "other"
    with pytest.raises(dataclasses.FrozenInstanceError):
        result.items[0].ids.skus = ("X",)


def test_recorded_gymshark_session():
    """
    Recorded session: cart titles carry the color as a suffix, product views keep it
    in a separate field, and every SKU is embedded in the image filenames.
    """
    cart_items, products, options = load_session(str(FIXTURES / "gymshark_session.json"))

    result = enrich_cart(cart_items, products, options)

    assert result.store_id == "15861"
    assert result.summary.total_items == 4
    assert result.summary.matched_items == 4
    assert result.summary.match_rate == 100.0
    assert result.summary.by_method["image_sku"] == 4
    assert result.summary.by_confidence["high"] == 4

    for item in result.items:
        assert item.match_method == "image_sku"
        assert [s.method for s in item.matched_signals] == ["image_sku", "title_color", "title", "price"]
        assert item.matched_signals[-1].exact is True
        assert item.brand == "Gymshark"
        assert item.currency == "USD"
        assert item.url is not None
        assert item.sources.url == "product"

    cap = result.items[0]
    assert cap.title == "Sport Cap - White"
    assert cap.url == "https://www.gymshark.com/products/gymshark-sport-cap-white-aw24"
    assert cap.ids.skus == ("I3A6W",)
