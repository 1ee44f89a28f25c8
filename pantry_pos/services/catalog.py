"""
Catalog store: the product and ingredient collections.

The store is the only writer of both collections. Every mutation
recomputes product availability and persists products and ingredients in
full; if the write fails the in-memory collections are rolled back to
what they were before the call.
"""
import logging
from collections import OrderedDict
from contextlib import contextmanager
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Iterator, List, Optional

from pantry_pos.core.clock import epoch_millis
from pantry_pos.core.exceptions import (
    IngredientNotFoundError,
    InvalidQuantityError,
    ProductNotFoundError,
)
from pantry_pos.schemas.catalog import Ingredient, Product, ProductStatus, RecipeLine
from pantry_pos.services.availability import as_quantity, build_stock_map, resolve_status
from pantry_pos.services.persistence import PersistenceAdapter

logger = logging.getLogger(__name__)


DEFAULT_INGREDIENTS = [
    ("Mozzarella Cheese", "kg", "2"),
    ("Tomato Sauce", "L", "3"),
    ("Basil", "g", "10"),
    ("Olive Oil", "L", "1"),
]

# (name, category, price, [(ingredient, quantity per unit), ...])
DEFAULT_PRODUCTS = [
    ("Margherita Pizza", "Pizza", "350", [("Mozzarella Cheese", "0.2"), ("Tomato Sauce", "0.1"), ("Basil", "1")]),
    ("Pepperoni Pizza", "Pizza", "420", [("Mozzarella Cheese", "0.25"), ("Tomato Sauce", "0.1")]),
    ("Cheese Bread", "Pastries", "80", [("Mozzarella Cheese", "0.1"), ("Olive Oil", "0.02")]),
    ("Basil Bread", "Pastries", "90", [("Basil", "2"), ("Olive Oil", "0.02")]),
    ("Tomato Basil Dip", "Beverages", "60", [("Tomato Sauce", "0.2"), ("Basil", "1"), ("Olive Oil", "0.02")]),
]


@dataclass
class CatalogCheckpoint:
    """Deep copy of the catalog's in-memory state."""
    products: List[Product]
    ingredients: List[Ingredient]
    last_issued_id: int


class CatalogStore:
    """Owns products and ingredients and keeps product status in sync with stock."""

    def __init__(self, persistence: PersistenceAdapter):
        self.persistence = persistence
        self.products: List[Product] = []
        self.ingredients: List[Ingredient] = []
        self._last_issued_id = 0

    def load(self) -> None:
        """Read both collections and recompute statuses in memory."""
        self.products = self.persistence.load_products()
        self.ingredients = _unique_by_name(self.persistence.load_ingredients())
        self._last_issued_id = max((p.id for p in self.products), default=0)
        self._recompute_statuses()
        logger.info(f"Catalog loaded: {len(self.products)} products, {len(self.ingredients)} ingredients")

    def seed_defaults(self) -> bool:
        """Fill empty collections with the starter catalog. Returns True if anything was added."""
        need_products = not self.products
        need_ingredients = not self.ingredients
        if not (need_products or need_ingredients):
            return False

        with self._committing():
            if need_ingredients:
                self.ingredients = [
                    Ingredient(name=name, stock_unit=unit, available_quantity=Decimal(qty))
                    for name, unit, qty in DEFAULT_INGREDIENTS
                ]
            if need_products:
                self.products = [
                    Product(
                        id=self.new_product_id(),
                        name=name,
                        category=category,
                        price=Decimal(price),
                        recipe=[RecipeLine(ingredient_name=i, quantity=Decimal(q)) for i, q in recipe],
                    )
                    for name, category, price, recipe in DEFAULT_PRODUCTS
                ]
            self.refresh_statuses()

        logger.info("Seeded default catalog")
        return True

    # ---- lookups ----

    def get_product(self, product_id: int) -> Optional[Product]:
        for product in self.products:
            if product.id == product_id:
                return product
        return None

    def get_ingredient(self, name: str) -> Optional[Ingredient]:
        for ingredient in self.ingredients:
            if ingredient.name == name:
                return ingredient
        return None

    def filter_products(
        self,
        query: str = "",
        category: str = "",
        available_only: bool = False,
    ) -> List[Product]:
        """Products matching a search over name, category and barcode."""
        needle = query.strip().lower()
        matches = []
        for product in self.products:
            if available_only and product.status != ProductStatus.AVAILABLE:
                continue
            if category and product.category != category:
                continue
            if needle:
                haystack = " ".join([product.name, product.category, product.barcode or ""]).lower()
                if needle not in haystack:
                    continue
            matches.append(product)
        return matches

    def categories(self) -> List[str]:
        """Distinct non-empty categories in first-seen order."""
        seen = []
        for product in self.products:
            if product.category and product.category not in seen:
                seen.append(product.category)
        return seen

    # ---- product mutations ----

    def new_product_id(self) -> int:
        """
        A fresh, time-derived product id.

        Ids are epoch milliseconds, bumped past the last issued id so that
        several products created in the same millisecond stay distinct.
        """
        candidate = epoch_millis()
        if candidate <= self._last_issued_id:
            candidate = self._last_issued_id + 1
        self._last_issued_id = candidate
        return candidate

    def upsert_product(self, product: Product) -> Product:
        """Replace the product with the same id in place, or add it to the front."""
        with self._committing():
            for index, existing in enumerate(self.products):
                if existing.id == product.id:
                    self.products[index] = product
                    break
            else:
                self.products.insert(0, product)
                self._last_issued_id = max(self._last_issued_id, product.id)
            self.refresh_statuses()
        return product

    def add_products(self, products: Iterable[Product]) -> List[Product]:
        """Put several new products in front of the existing ones, keeping their order."""
        added = list(products)
        with self._committing():
            self.products = added + self.products
            for product in added:
                self._last_issued_id = max(self._last_issued_id, product.id)
            self.refresh_statuses()
        return added

    def remove_product(self, product_id: int) -> Product:
        product = self.get_product(product_id)
        if product is None:
            raise ProductNotFoundError("Product not found.", details={"product_id": product_id})

        with self._committing():
            self.products = [p for p in self.products if p.id != product_id]
            self._persist()
        return product

    # ---- ingredient mutations ----

    def upsert_ingredient(self, ingredient: Ingredient) -> Ingredient:
        """Replace the ingredient with the same name, or append it."""
        with self._committing():
            for index, existing in enumerate(self.ingredients):
                if existing.name == ingredient.name:
                    self.ingredients[index] = ingredient
                    break
            else:
                self.ingredients.append(ingredient)
            self.refresh_statuses()
        return ingredient

    def remove_ingredient(self, name: str) -> Ingredient:
        ingredient = self.get_ingredient(name)
        if ingredient is None:
            raise IngredientNotFoundError("Ingredient not found.", details={"name": name})

        with self._committing():
            self.ingredients = [i for i in self.ingredients if i.name != name]
            self.refresh_statuses()
        return ingredient

    def set_ingredient_stock(self, name: str, quantity: object) -> Ingredient:
        """Overwrite an ingredient's available quantity."""
        value = as_quantity(quantity)
        if value is None or value < 0:
            raise InvalidQuantityError(
                "Stock must be a non-negative number.",
                details={"name": name, "quantity": str(quantity)},
            )

        ingredient = self.get_ingredient(name)
        if ingredient is None:
            raise IngredientNotFoundError("Ingredient not found.", details={"name": name})

        with self._committing():
            ingredient.available_quantity = value
            self.refresh_statuses()
        return ingredient

    def apply_stock_delta(self, name: str, delta: Decimal, floor_at_zero: bool = True) -> Optional[Decimal]:
        """
        Add ``delta`` (negative to deduct) to an ingredient's stock.

        Returns the new quantity, or None if no ingredient has that name.
        With ``floor_at_zero`` the result never drops below zero. Nothing is
        persisted; callers follow up with ``refresh_statuses()``.
        """
        ingredient = self.get_ingredient(name)
        if ingredient is None:
            return None

        current = as_quantity(ingredient.available_quantity) or Decimal(0)
        updated = current + delta
        if floor_at_zero and updated < 0:
            logger.warning(f"Stock for {name!r} clamped at 0 (had {current}, change {delta})")
            updated = Decimal(0)
        ingredient.available_quantity = updated
        return updated

    # ---- status & persistence ----

    def refresh_statuses(self) -> None:
        """Recompute every product's status from current stock, then persist."""
        with self._committing():
            self._recompute_statuses()
            self._persist()

    def _recompute_statuses(self) -> None:
        stock = build_stock_map(self.ingredients)
        for product in self.products:
            product.status = resolve_status(product, stock)

    def _persist(self) -> None:
        with self.persistence.atomic():
            self.persistence.save_products(self.products)
            self.persistence.save_ingredients(self.ingredients)

    def checkpoint(self) -> CatalogCheckpoint:
        return CatalogCheckpoint(
            products=[p.model_copy(deep=True) for p in self.products],
            ingredients=[i.model_copy(deep=True) for i in self.ingredients],
            last_issued_id=self._last_issued_id,
        )

    def restore(self, checkpoint: CatalogCheckpoint) -> None:
        self.products = checkpoint.products
        self.ingredients = checkpoint.ingredients
        self._last_issued_id = checkpoint.last_issued_id

    @contextmanager
    def _committing(self) -> Iterator[None]:
        """Run a mutation as one write batch; undo in-memory changes if it fails."""
        checkpoint = self.checkpoint()
        try:
            with self.persistence.atomic():
                yield
        except Exception:
            self.restore(checkpoint)
            raise


def _unique_by_name(ingredients: Iterable[Ingredient]) -> List[Ingredient]:
    """Collapse repeated names: the first entry keeps its position, the last one's data wins."""
    by_name: "OrderedDict[str, Ingredient]" = OrderedDict()
    for ingredient in ingredients:
        if ingredient.name in by_name:
            logger.warning(f"Duplicate ingredient {ingredient.name!r} in storage; keeping the last entry")
        by_name[ingredient.name] = ingredient
    return list(by_name.values())
