"""
Unit tests for catalog CSV import/export.

Covers the recipe cell format, lenient row parsing, encoding handling and
importing rows as new products.
"""
import csv
import io
from decimal import Decimal

import pytest

from pantry_pos.schemas.catalog import Product, ProductStatus, RecipeLine
from pantry_pos.services.catalog_csv import CSV_HEADERS, CatalogCSV


@pytest.fixture
def codec() -> CatalogCSV:
    return CatalogCSV()


class TestRecipeCell:
    """Test the ``name:qty; name:qty`` recipe format."""

    def test_parse_pairs(self, codec):
        lines, warnings = codec.parse_recipe("Mozzarella Cheese:0.2; Tomato Sauce:0.1")
        assert [(l.ingredient_name, l.quantity) for l in lines] == [
            ("Mozzarella Cheese", Decimal("0.2")),
            ("Tomato Sauce", Decimal("0.1")),
        ]
        assert warnings == []

    def test_whitespace_and_empty_pairs(self, codec):
        lines, _ = codec.parse_recipe("  Basil : 2 ;; ")
        assert [(l.ingredient_name, l.quantity) for l in lines] == [("Basil", Decimal("2"))]

    @pytest.mark.parametrize("cell", ["Basil", "Basil:", "Basil:lots", "Basil:-1"])
    def test_bad_quantity_becomes_zero(self, codec, cell):
        """Missing or malformed quantities are kept as 0 with a warning."""
        lines, warnings = codec.parse_recipe(cell)
        assert lines[0].ingredient_name == "Basil"
        assert lines[0].quantity == Decimal("0")
        assert len(warnings) == 1

    def test_empty_cell(self, codec):
        assert codec.parse_recipe("") == ([], [])
        assert codec.parse_recipe(None) == ([], [])

    def test_format_recipe(self, codec):
        recipe = [
            RecipeLine(ingredient_name="Basil", quantity=Decimal("2")),
            RecipeLine(ingredient_name="Olive Oil", quantity=Decimal("0.02")),
        ]
        assert codec.format_recipe(recipe) == "Basil:2; Olive Oil:0.02"


class TestExport:
    """Test writing the catalog as CSV."""

    def test_header_and_row(self, codec):
        product = Product(
            id=1,
            name="Basil Bread",
            category="Pastries",
            price=Decimal("90"),
            recipe=[RecipeLine(ingredient_name="Basil", quantity=Decimal("2"))],
            status=ProductStatus.AVAILABLE,
        )
        text = codec.export_products([product])
        rows = list(csv.reader(io.StringIO(text)))

        assert rows[0] == CSV_HEADERS
        assert rows[1] == ["Basil Bread", "Pastries", "90", "", "Basil:2", "Available"]

    def test_names_with_commas_are_quoted(self, codec):
        product = Product(id=1, name="Salt, Pepper & Oil Dip", price=Decimal("40"))
        text = codec.export_products([product])
        assert '"Salt, Pepper & Oil Dip"' in text

    def test_export_then_import_keeps_catalog_fields(self, codec, register):
        """Re-importing an export yields the same names, prices and recipes."""
        text = codec.export_products(register.catalog.products)
        result = codec.parse(text.encode("utf-8"))

        assert [p.name for p in result.products] == [p.name for p in register.catalog.products]
        assert [p.price for p in result.products] == [p.price for p in register.catalog.products]
        assert result.products[0].recipe == register.catalog.products[0].recipe
        assert result.skipped_rows == 0


class TestParse:
    """Test lenient row parsing."""

    def test_rows_without_name_are_skipped(self, codec):
        data = (
            "name,category,price,imageUrl,recipe,status\n"
            "Garlic Knots,Pastries,55,,Olive Oil:0.01,Available\n"
            ",Pastries,10,,,\n"
            "Calzone,Pizza,300,,,\n"
        ).encode("utf-8")
        result = codec.parse(data)

        assert [p.name for p in result.products] == ["Garlic Knots", "Calzone"]
        assert result.skipped_rows == 1
        assert "Row 3" in result.warnings[0]

    def test_blank_lines_are_ignored(self, codec):
        data = b"name,category,price\nCalzone,Pizza,300\n,,\n"
        result = codec.parse(data)
        assert len(result.products) == 1
        assert result.skipped_rows == 0

    def test_bad_price_becomes_zero(self, codec):
        result = codec.parse(b"name,price\nCalzone,three hundred\n")
        assert result.products[0].price == Decimal("0")
        assert "price" in result.warnings[0]

    def test_missing_columns_default(self, codec):
        """Only the name column is required."""
        result = codec.parse(b"name\nFocaccia\n")
        product = result.products[0]
        assert product.category == ""
        assert product.price == Decimal("0")
        assert product.recipe == []

    def test_optional_barcode_column(self, codec):
        result = codec.parse(b"name,price,barcode\nFocaccia,120,4801234567890\n")
        assert result.products[0].barcode == "4801234567890"

    def test_utf8_bom_is_stripped(self, codec):
        data = "\ufeffname,price\nCrème Brûlée,150\n".encode("utf-8")
        result = codec.parse(data)
        assert result.products[0].name == "Crème Brûlée"
        assert result.encoding == "utf-8-sig"

    def test_header_whitespace(self, codec):
        result = codec.parse(b" name , price \nFocaccia,120\n")
        assert result.products[0].name == "Focaccia"
        assert result.products[0].price == Decimal("120")


class TestImportInto:
    """Test adding parsed rows to the catalog."""

    def test_import_adds_products_in_front(self, codec, register):
        data = (
            "name,category,price,imageUrl,recipe,status\n"
            "Garlic Knots,Pastries,55,,Olive Oil:0.01,Unavailable\n"
            "Calzone,Pizza,300,,Mozzarella Cheese:0.3; Saffron:1,Available\n"
        ).encode("utf-8")

        added, result = codec.import_into(register.catalog, data)

        assert [p.name for p in register.catalog.products[:2]] == ["Garlic Knots", "Calzone"]
        assert len(register.catalog.products) == 7
        assert len({p.id for p in register.catalog.products}) == 7
        assert result.skipped_rows == 0
        # status column is ignored; availability comes from stock
        assert added[0].status == ProductStatus.AVAILABLE
        assert added[1].status == ProductStatus.UNAVAILABLE

    def test_import_nothing(self, codec, register):
        added, result = codec.import_into(register.catalog, b"name,price\n")
        assert added == []
        assert len(register.catalog.products) == 5
