"""
Product availability from ingredient stock.

A product is Available only while every ingredient its recipe names still
has some stock left. The check is coarse: it looks for a
depleted ingredient (stock <= 0), not for enough stock to make one more
unit.
"""
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, Mapping, Optional

from pantry_pos.schemas.catalog import Ingredient, Product, ProductStatus


def as_quantity(value: object) -> Optional[Decimal]:
    """
    Coerce a stock value to a finite Decimal.

    Returns None for anything that is not a usable number (None, NaN,
    infinities, booleans, unparseable strings).
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        quantity = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not quantity.is_finite():
        return None
    return quantity


def build_stock_map(ingredients: Iterable[Ingredient]) -> Dict[str, Decimal]:
    """Map ingredient name to available quantity; unusable values count as 0."""
    stock: Dict[str, Decimal] = {}
    for ingredient in ingredients:
        stock[ingredient.name] = as_quantity(ingredient.available_quantity) or Decimal(0)
    return stock


def resolve_status(product: Optional[Product], stock_by_name: Mapping[str, object]) -> ProductStatus:
    """
    Availability of ``product`` given current stock.

    - No product, or an empty recipe: Unavailable.
    - Any recipe ingredient missing from the stock map, not a valid number,
      or at <= 0: Unavailable.
    - Otherwise Available.
    """
    if product is None or not product.recipe:
        return ProductStatus.UNAVAILABLE

    for line in product.recipe:
        available = as_quantity(stock_by_name.get(line.ingredient_name, 0))
        if available is None or available <= 0:
            return ProductStatus.UNAVAILABLE

    return ProductStatus.AVAILABLE
