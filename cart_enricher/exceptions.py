"""Exceptions raised by the cart enrichment pipeline."""
from typing import Optional


class EnrichmentError(Exception):
    """Base exception for cart enrichment errors."""
    pass


class StoreIdMismatchError(EnrichmentError):
    """Raised when the cart and the product views belong to different stores."""

    def __init__(self, cart_store_id: str, product_store_id: str):
        self.cart_store_id = cart_store_id
        self.product_store_id = product_store_id
        super().__init__(
            f'Store ID mismatch: cart storeId "{cart_store_id}" '
            f'does not match product storeId "{product_store_id}"'
        )


class SessionFormatError(EnrichmentError):
    """Raised when a session document cannot be turned into enrichment inputs."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)
