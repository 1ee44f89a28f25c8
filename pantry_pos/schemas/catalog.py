"""
Catalog records: ingredients, recipes and products.

These are the shapes persisted in the key-value store. Attribute names are
snake_case in Python and camelCase in the stored JSON (``availableQuantity``,
``ingredientName``, ``imageDataUrl``...).
"""
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class PosModel(BaseModel):
    """Base for records stored as camelCase JSON."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductStatus(str, Enum):
    """Derived availability of a product."""
    AVAILABLE = "Available"
    UNAVAILABLE = "Unavailable"


class Ingredient(PosModel):
    """A stocked ingredient, keyed by its unique name."""
    name: str = Field(min_length=1)
    stock_unit: str = ""  # display only: kg, L, g
    available_quantity: Decimal = Field(default=Decimal(0), ge=0)


class RecipeLine(PosModel):
    """Amount of one ingredient consumed per unit sold."""
    ingredient_name: str
    quantity: Decimal = Field(default=Decimal(0), ge=0)


class Product(PosModel):
    """
    A sellable product.

    ``status`` is a cache of the availability resolver's answer for the
    current stock. The catalog store overwrites it on every write path, so
    a value read from input is never trusted.
    """
    id: int
    name: str = ""
    category: str = ""
    price: Decimal = Field(default=Decimal(0), ge=0)
    image_data_url: str = ""
    barcode: Optional[str] = None
    recipe: List[RecipeLine] = Field(default_factory=list)
    status: ProductStatus = ProductStatus.UNAVAILABLE


class ProductInput(PosModel):
    """Editable product fields (create and update)."""
    name: str = Field(min_length=1)
    category: str = ""
    price: Decimal = Field(default=Decimal(0), ge=0)
    image_data_url: str = ""
    barcode: Optional[str] = None
    recipe: List[RecipeLine] = Field(default_factory=list)

    def to_product(self, product_id: int) -> Product:
        return Product(id=product_id, **self.model_dump())
