"""
Dashboard figures: daily sales and ingredient stock share.
"""
from collections import OrderedDict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional

from pantry_pos.core.clock import store_date
from pantry_pos.schemas.catalog import Ingredient
from pantry_pos.schemas.sales import Sale


@dataclass
class DailySales:
    """Sales totals for one store-local calendar day."""
    day: date
    sale_count: int
    refunded_count: int
    gross_total: Decimal  # every sale, refunded or not
    refunded_total: Decimal

    @property
    def net_total(self) -> Decimal:
        return self.gross_total - self.refunded_total


@dataclass
class StockShare:
    name: str
    unit: str
    quantity: Decimal
    percentage: Decimal  # share of all stock, 0-100


def daily_sales_summary(sales: Iterable[Sale], store_timezone: Optional[str] = None) -> List[DailySales]:
    """Group sales by the day they happened in store time, newest day first."""
    days: "OrderedDict[date, DailySales]" = OrderedDict()
    for sale in sales:
        day = store_date(sale.created_at, store_timezone)
        summary = days.get(day)
        if summary is None:
            summary = DailySales(day=day, sale_count=0, refunded_count=0, gross_total=Decimal(0), refunded_total=Decimal(0))
            days[day] = summary

        summary.sale_count += 1
        summary.gross_total += sale.total
        if sale.refunded:
            summary.refunded_count += 1
            summary.refunded_total += sale.total

    return sorted(days.values(), key=lambda d: d.day, reverse=True)


def ingredient_stock_breakdown(ingredients: Iterable[Ingredient]) -> List[StockShare]:
    """
    Each ingredient's share of total stock, as shown on the ingredients pie chart.

    Units are mixed, so the share is of raw quantities, not of weight or
    volume. With no stock at all every share is 0.
    """
    items = list(ingredients)
    total = sum((i.available_quantity for i in items), Decimal(0))
    shares = []
    for ingredient in items:
        if total > 0:
            percentage = (ingredient.available_quantity / total * 100).quantize(Decimal("0.01"))
        else:
            percentage = Decimal(0)
        shares.append(StockShare(
            name=ingredient.name,
            unit=ingredient.stock_unit,
            quantity=ingredient.available_quantity,
            percentage=percentage,
        ))
    return shares
