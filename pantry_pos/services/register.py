"""
The register: one catalog, one cart and one sale engine sharing one store.
"""
import logging

from pantry_pos.schemas.sales import Sale
from pantry_pos.services.cart import Cart
from pantry_pos.services.catalog import CatalogStore
from pantry_pos.services.persistence import KeyValueStore, PersistenceAdapter
from pantry_pos.services.sales import SaleTransactionEngine

logger = logging.getLogger(__name__)


class Register:
    """Composition root handed to every consumer of POS state."""

    def __init__(self, store: KeyValueStore, key_prefix: str = "tp_"):
        self.persistence = PersistenceAdapter(store, key_prefix=key_prefix)
        self.catalog = CatalogStore(self.persistence)
        self.sales = SaleTransactionEngine(self.catalog, self.persistence)
        self.cart = Cart()

    @classmethod
    def open(cls, store: KeyValueStore, key_prefix: str = "tp_", seed_defaults: bool = False) -> "Register":
        """Build a register and load its state from ``store``."""
        register = cls(store, key_prefix=key_prefix)
        register.catalog.load()
        register.sales.load()
        if seed_defaults:
            register.catalog.seed_defaults()
        logger.info(f"Register opened with {len(register.sales.sales)} sale(s) on record")
        return register

    def checkout(self) -> Sale:
        """Finalize the active cart."""
        return self.sales.finalize(self.cart)
