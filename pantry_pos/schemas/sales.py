"""
Cart and sale records.
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import Field

from pantry_pos.schemas.catalog import PosModel


class DiscountType(str, Enum):
    NONE = "none"
    PERCENT = "percent"
    AMOUNT = "amount"


class PaymentMethod(str, Enum):
    CASH = "Cash"
    CARD = "Card"
    E_WALLET = "E-Wallet"


class CartLine(PosModel):
    """A product in the active cart, with the price captured at add time."""
    product_id: int
    name: str
    price: Decimal
    qty: int = Field(default=1, ge=1)


class SaleItem(CartLine):
    line_total: Decimal


class Sale(PosModel):
    """
    A finalized sale.

    Everything here is a snapshot taken at finalize time. Only ``refunded``
    and ``refunded_at`` ever change afterwards, and only once.
    """
    id: str
    created_at: datetime
    items: List[SaleItem]
    subtotal: Decimal
    discount_type: DiscountType = DiscountType.NONE
    discount_value: Decimal = Decimal(0)
    discount_amount: Decimal = Decimal(0)
    tax_percent: Decimal = Decimal(0)
    tax_amount: Decimal = Decimal(0)
    total: Decimal
    payment_method: PaymentMethod
    cash_given: Optional[Decimal] = None
    change: Optional[Decimal] = None
    refunded: bool = False
    refunded_at: Optional[datetime] = None
