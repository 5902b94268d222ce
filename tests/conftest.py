import pytest

from cart_enricher.models import CartItem, IdentifierSet, ProductVariant, ViewedProduct


@pytest.fixture
def make_cart_item():
    """
    Factory for cart items. Defaults share nothing with make_product defaults,
    so every match in a test comes from the overrides it passes.
    """
    def _make(**overrides) -> CartItem:
        fields = dict(
            title="Blue Widget",
            url="https://store.com/cart-item/1",
            image_url=None,
            store_id="5246",
            price=1999,
            quantity=2,
            line_total=3998,
            ids=IdentifierSet(),
        )
        fields.update(overrides)
        return CartItem(**fields)
    return _make


@pytest.fixture
def make_variant():
    def _make(**overrides) -> ProductVariant:
        fields = dict(
            sku="VAR-001",
            url="https://store.com/product/999?color=red",
            image_url="https://store.com/img/hose-red.jpg",
            price=5000,
            currency="USD",
            color="Red",
        )
        fields.update(overrides)
        return ProductVariant(**fields)
    return _make


@pytest.fixture
def make_product():
    def _make(**overrides) -> ViewedProduct:
        fields = dict(
            title="Garden Hose",
            url="https://store.com/product/999",
            image_url="https://store.com/img/hose.jpg",
            store_id="5246",
            brand="Acme",
            description="Fifty foot garden hose",
            category="Garden",
            rating=4.5,
            price=5000,
            currency="USD",
            ids=IdentifierSet(product_ids=("prod-999",)),
        )
        fields.update(overrides)
        return ViewedProduct(**fields)
    return _make
