"""
Cart router: the in-progress transaction and checkout.
"""
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import Field

from pantry_pos.core.deps import get_register
from pantry_pos.core.exceptions import ProductNotFoundError, ProductUnavailableError
from pantry_pos.schemas.catalog import PosModel, ProductStatus
from pantry_pos.schemas.sales import CartLine, DiscountType, PaymentMethod, Sale
from pantry_pos.services.cart import Cart
from pantry_pos.services.register import Register


router = APIRouter(prefix="/cart", tags=["cart"])


# Schemas
class CartResponse(PosModel):
    """Cart contents together with the derived totals."""
    lines: List[CartLine]
    discount_type: DiscountType
    discount_value: Decimal
    tax_percent: Decimal
    payment_method: PaymentMethod
    cash_given: Optional[Decimal] = None
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total: Decimal
    change_due: Decimal
    can_checkout: bool

    @classmethod
    def from_cart(cls, cart: Cart) -> "CartResponse":
        return cls(
            lines=cart.lines,
            discount_type=cart.discount_type,
            discount_value=cart.discount_value,
            tax_percent=cart.tax_percent,
            payment_method=cart.payment_method,
            cash_given=cart.cash_given,
            subtotal=cart.subtotal(),
            discount_amount=cart.discount_amount(),
            tax_amount=cart.tax_amount(),
            total=cart.total(),
            change_due=cart.change_due(),
            can_checkout=cart.can_checkout(),
        )


class AddLineRequest(PosModel):
    product_id: int


class QuantityRequest(PosModel):
    qty: int


class CartSettingsUpdate(PosModel):
    """Partial update; only the fields sent are changed. Send cashGiven: null to clear it."""
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(default=None, ge=0)
    tax_percent: Optional[Decimal] = Field(default=None, ge=0)
    payment_method: Optional[PaymentMethod] = None
    cash_given: Optional[Decimal] = Field(default=None, ge=0)


@router.get("", response_model=CartResponse)
async def get_cart(register: Register = Depends(get_register)):
    return CartResponse.from_cart(register.cart)


@router.post("/lines", response_model=CartResponse)
async def add_line(payload: AddLineRequest, register: Register = Depends(get_register)):
    """Add one unit of a product. Unavailable products cannot be added."""
    product = register.catalog.get_product(payload.product_id)
    if product is None:
        raise ProductNotFoundError("Product not found.", details={"product_id": payload.product_id})
    if product.status != ProductStatus.AVAILABLE:
        raise ProductUnavailableError(
            f"{product.name} is unavailable.",
            details={"product_id": product.id},
        )

    register.cart.add_line(product)
    return CartResponse.from_cart(register.cart)


@router.patch("/lines/{index}", response_model=CartResponse)
async def set_line_quantity(index: int, payload: QuantityRequest, register: Register = Depends(get_register)):
    register.cart.set_quantity(index, payload.qty)
    return CartResponse.from_cart(register.cart)


@router.post("/lines/{index}/increment", response_model=CartResponse)
async def increment_line(index: int, register: Register = Depends(get_register)):
    register.cart.increment(index)
    return CartResponse.from_cart(register.cart)


@router.post("/lines/{index}/decrement", response_model=CartResponse)
async def decrement_line(index: int, register: Register = Depends(get_register)):
    register.cart.decrement(index)
    return CartResponse.from_cart(register.cart)


@router.delete("/lines/{index}", response_model=CartResponse)
async def remove_line(index: int, register: Register = Depends(get_register)):
    register.cart.remove_line(index)
    return CartResponse.from_cart(register.cart)


@router.patch("", response_model=CartResponse)
async def update_cart(payload: CartSettingsUpdate, register: Register = Depends(get_register)):
    """Change discount, tax or payment settings. Nothing changes if any value is rejected."""
    changes = payload.model_dump(include=payload.model_fields_set)
    # null means "keep" for everything except cash, where it clears the field
    changes = {k: v for k, v in changes.items() if v is not None or k == "cash_given"}
    register.cart.update_settings(**changes)
    return CartResponse.from_cart(register.cart)


@router.delete("", response_model=CartResponse)
async def clear_cart(register: Register = Depends(get_register)):
    """Abandon the current transaction."""
    register.cart.clear()
    return CartResponse.from_cart(register.cart)


@router.post("/checkout", response_model=Sale, status_code=status.HTTP_201_CREATED)
async def checkout(register: Register = Depends(get_register)):
    """Finalize the cart into a sale and deduct ingredient stock."""
    return register.checkout()
