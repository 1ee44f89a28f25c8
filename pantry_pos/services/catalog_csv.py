"""
CSV import/export for the product catalog.

Format (spreadsheet friendly):

    name,category,price,imageUrl,recipe,status
    Margherita Pizza,Pizza,350,,"Mozzarella Cheese:0.2; Tomato Sauce:0.1",Available

The recipe cell holds ``ingredientName:quantity`` pairs joined by ``"; "``.
On import a missing or malformed quantity becomes 0, ingredient names are
not checked against the catalog, and the status column is ignored (it is
recomputed from stock).
"""
import csv
import io
import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

import chardet
from pydantic import BaseModel, Field

from pantry_pos.schemas.catalog import Product, ProductInput, RecipeLine
from pantry_pos.services.availability import as_quantity
from pantry_pos.services.catalog import CatalogStore

logger = logging.getLogger(__name__)

CSV_HEADERS = ["name", "category", "price", "imageUrl", "recipe", "status"]
RECIPE_SEPARATOR = "; "


class CatalogImportResult(BaseModel):
    """Rows parsed from an uploaded catalog CSV."""
    products: List[ProductInput] = Field(default_factory=list)
    skipped_rows: int = 0
    warnings: List[str] = Field(default_factory=list)
    encoding: str = "utf-8"


class CatalogCSV:
    """Reads and writes the product catalog as CSV."""

    def detect_encoding(self, file_bytes: bytes) -> str:
        """
        Detect file encoding using chardet.

        Returns ``utf-8-sig`` for UTF-8 input so a spreadsheet BOM does not
        end up glued to the first header.
        """
        result = chardet.detect(file_bytes)
        encoding = result["encoding"] or "utf-8"

        encoding_lower = encoding.lower()
        if "utf" in encoding_lower or "ascii" in encoding_lower:
            return "utf-8-sig"
        if "iso-8859" in encoding_lower or "latin" in encoding_lower:
            return "iso-8859-1"
        if "windows" in encoding_lower or "cp125" in encoding_lower:
            return "windows-1252"
        return encoding

    # ---- export ----

    def export_products(self, products: Iterable[Product]) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADERS)
        for product in products:
            writer.writerow([
                product.name,
                product.category,
                str(product.price),
                product.image_data_url or "",
                self.format_recipe(product.recipe),
                product.status.value,
            ])
        return buffer.getvalue()

    def format_recipe(self, recipe: Iterable[RecipeLine]) -> str:
        return RECIPE_SEPARATOR.join(f"{line.ingredient_name}:{line.quantity}" for line in recipe)

    # ---- import ----

    def parse_recipe(self, cell: Optional[str]) -> Tuple[List[RecipeLine], List[str]]:
        """
        Parse ``"A:1; B:2"`` into recipe lines.

        Quantities that are missing, malformed or negative become 0 and are
        reported in the returned warnings.
        """
        lines: List[RecipeLine] = []
        warnings: List[str] = []
        for pair in (cell or "").split(";"):
            pair = pair.strip()
            if not pair:
                continue
            name, _, raw_qty = pair.partition(":")
            quantity = as_quantity(raw_qty.strip())
            if quantity is None or quantity < 0:
                warnings.append(f"Quantity for {name.strip()!r} is not a number; using 0")
                quantity = Decimal(0)
            lines.append(RecipeLine(ingredient_name=name.strip(), quantity=quantity))
        return lines, warnings

    def parse(self, file_bytes: bytes) -> CatalogImportResult:
        encoding = self.detect_encoding(file_bytes)
        try:
            text = file_bytes.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            logger.warning(f"Could not decode catalog CSV as {encoding}; falling back to utf-8")
            encoding = "utf-8"
            text = file_bytes.decode("utf-8", errors="replace")

        result = CatalogImportResult(encoding=encoding)
        reader = csv.DictReader(io.StringIO(text))
        if reader.fieldnames:
            reader.fieldnames = [h.strip() for h in reader.fieldnames]

        for row_number, row in enumerate(reader, start=2):
            values = {k: (v or "").strip() for k, v in row.items() if k}
            if not any(values.values()):
                continue

            name = values.get("name", "")
            if not name:
                result.skipped_rows += 1
                result.warnings.append(f"Row {row_number}: missing product name, skipped")
                continue

            price = as_quantity(values.get("price") or "0")
            if price is None or price < 0:
                result.warnings.append(f"Row {row_number}: price {values.get('price')!r} is not valid; using 0")
                price = Decimal(0)

            recipe, recipe_warnings = self.parse_recipe(values.get("recipe"))
            result.warnings.extend(f"Row {row_number}: {w}" for w in recipe_warnings)

            result.products.append(ProductInput(
                name=name,
                category=values.get("category", ""),
                price=price,
                image_data_url=values.get("imageUrl", ""),
                barcode=values.get("barcode") or None,
                recipe=recipe,
            ))

        return result

    def import_into(self, catalog: CatalogStore, file_bytes: bytes) -> Tuple[List[Product], CatalogImportResult]:
        """Parse ``file_bytes`` and add every row as a new product in front of the catalog."""
        result = self.parse(file_bytes)
        products = [item.to_product(catalog.new_product_id()) for item in result.products]
        added = catalog.add_products(products)
        logger.info(f"Imported {len(added)} product(s), skipped {result.skipped_rows} row(s)")
        return added, result
