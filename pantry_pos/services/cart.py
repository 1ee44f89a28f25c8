"""
Cart & pricing engine for the in-progress transaction.

Totals are derived on demand, in this order:

    subtotal        = sum(price * qty)
    discount_amount = subtotal * value / 100 (percent) | value (amount) | 0
    tax_amount      = (subtotal - discount_amount) * tax_percent / 100
    total           = max(0, subtotal - discount_amount + tax_amount)

The discount is not capped at the subtotal; only the total is clamped.
"""
from decimal import Decimal
from typing import List, Optional

from pantry_pos.core.exceptions import CartLineNotFoundError, InvalidQuantityError
from pantry_pos.schemas.catalog import Product
from pantry_pos.schemas.sales import CartLine, DiscountType, PaymentMethod, SaleItem
from pantry_pos.services.availability import as_quantity

HUNDRED = Decimal(100)
ZERO = Decimal(0)


class Cart:
    """Line items plus discount, tax and payment settings for one sale."""

    def __init__(self, payment_method: PaymentMethod = PaymentMethod.CASH):
        self.lines: List[CartLine] = []
        self.discount_type = DiscountType.NONE
        self.discount_value = ZERO
        self.tax_percent = ZERO
        self.payment_method = payment_method
        self.cash_given: Optional[Decimal] = None

    @property
    def is_empty(self) -> bool:
        return not self.lines

    # ---- lines ----

    def add_line(self, product: Product) -> CartLine:
        """Add one unit of ``product``; a new line goes to the front with today's price."""
        for line in self.lines:
            if line.product_id == product.id:
                line.qty += 1
                return line

        line = CartLine(product_id=product.id, name=product.name, price=product.price, qty=1)
        self.lines.insert(0, line)
        return line

    def set_quantity(self, index: int, qty: int) -> CartLine:
        line = self._line_at(index)
        line.qty = max(1, int(qty))
        return line

    def increment(self, index: int) -> CartLine:
        line = self._line_at(index)
        line.qty += 1
        return line

    def decrement(self, index: int) -> CartLine:
        """Lower the quantity by one, never below 1. Use remove_line to drop a line."""
        line = self._line_at(index)
        line.qty = max(1, line.qty - 1)
        return line

    def remove_line(self, index: int) -> CartLine:
        line = self._line_at(index)
        del self.lines[index]
        return line

    def _line_at(self, index: int) -> CartLine:
        if index < 0 or index >= len(self.lines):
            raise CartLineNotFoundError("Cart line not found.", details={"index": index})
        return self.lines[index]

    # ---- settings ----

    def set_discount(self, discount_type: DiscountType, value: object = ZERO) -> None:
        self.discount_type = DiscountType(discount_type)
        self.discount_value = _amount(value, "discount_value")

    def set_tax_percent(self, value: object) -> None:
        self.tax_percent = _amount(value, "tax_percent")

    def set_payment(self, method: PaymentMethod, cash_given: object = None) -> None:
        self.payment_method = PaymentMethod(method)
        self.cash_given = _cash(cash_given)

    def update_settings(self, **changes: object) -> None:
        """
        Change several settings at once; keys not given keep their value.

        Accepts ``discount_type``, ``discount_value``, ``tax_percent``,
        ``payment_method`` and ``cash_given``. Every value is checked before
        any is applied, so a rejected update leaves the cart as it was.
        """
        unknown = set(changes) - {"discount_type", "discount_value", "tax_percent", "payment_method", "cash_given"}
        if unknown:
            raise TypeError(f"Unknown cart settings: {sorted(unknown)}")

        discount_type = DiscountType(changes.get("discount_type") or self.discount_type)
        discount_value = _amount(changes.get("discount_value", self.discount_value), "discount_value")
        tax_percent = _amount(changes.get("tax_percent", self.tax_percent), "tax_percent")
        payment_method = PaymentMethod(changes.get("payment_method") or self.payment_method)
        cash_given = _cash(changes.get("cash_given", self.cash_given))

        self.discount_type = discount_type
        self.discount_value = discount_value
        self.tax_percent = tax_percent
        self.payment_method = payment_method
        self.cash_given = cash_given

    # ---- derived figures ----

    def subtotal(self) -> Decimal:
        return sum((line.price * line.qty for line in self.lines), ZERO)

    def discount_amount(self) -> Decimal:
        if self.discount_type == DiscountType.PERCENT:
            return self.subtotal() * self.discount_value / HUNDRED
        if self.discount_type == DiscountType.AMOUNT:
            return self.discount_value
        return ZERO

    def tax_amount(self) -> Decimal:
        return (self.subtotal() - self.discount_amount()) * self.tax_percent / HUNDRED

    def total(self) -> Decimal:
        return max(ZERO, self.subtotal() - self.discount_amount() + self.tax_amount())

    def cash_amount(self) -> Decimal:
        """Cash given, with an empty field counting as zero."""
        return self.cash_given if self.cash_given is not None else ZERO

    def can_checkout(self) -> bool:
        if self.is_empty:
            return False
        if self.payment_method == PaymentMethod.CASH:
            return self.cash_amount() >= self.total()
        return True

    def change_due(self) -> Decimal:
        if self.payment_method != PaymentMethod.CASH:
            return ZERO
        return max(ZERO, self.cash_amount() - self.total())

    def sale_items(self) -> List[SaleItem]:
        """Snapshot of the lines with their line totals."""
        return [
            SaleItem(product_id=line.product_id, name=line.name, price=line.price, qty=line.qty, line_total=line.price * line.qty)
            for line in self.lines
        ]

    # ---- reset ----

    def clear(self) -> None:
        """Abandon the transaction. The payment method is kept for the next customer."""
        self.lines = []
        self.discount_type = DiscountType.NONE
        self.discount_value = ZERO
        self.tax_percent = ZERO
        self.cash_given = None


def _amount(value: object, field: str) -> Decimal:
    amount = as_quantity(value)
    if amount is None or amount < 0:
        raise InvalidQuantityError(
            f"{field} must be a non-negative number.",
            details={"field": field, "value": str(value)},
        )
    return amount


def _cash(value: object) -> Optional[Decimal]:
    """An empty cash field is None."""
    return None if value in (None, "") else _amount(value, "cash_given")
