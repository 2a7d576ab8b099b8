"""Product catalog reads."""

from __future__ import annotations

from typing import Optional

from gostwear.repositories.json_storage import RecordStore

PRODUCTS = "products"


class CatalogUnavailableError(Exception):
    """Raised when the products collection was never populated."""


class CatalogService:
    """Read-only access to the ``products`` collection (populated out of band)."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def list_products(self) -> list[dict]:
        if not self.store.exists(PRODUCTS):
            raise CatalogUnavailableError(PRODUCTS)
        return self.store.load_all(PRODUCTS)

    def get_product(self, product_id: str) -> Optional[dict]:
        """Exact match on the string id, then on its integer form for numeric paths."""
        product = self.store.find_by_key(PRODUCTS, product_id)
        if product is None and product_id.isascii() and product_id.isdigit():
            product = self.store.find_by_key(PRODUCTS, int(product_id))
        return product
