"""
Sales history router: lookup, refunds, receipts and daily summary.
"""
from datetime import date
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends

from pantry_pos.core.config import get_settings
from pantry_pos.core.deps import get_register
from pantry_pos.core.exceptions import SaleNotFoundError
from pantry_pos.schemas.catalog import PosModel
from pantry_pos.schemas.sales import Sale
from pantry_pos.services.receipt import build_receipt, render_text
from pantry_pos.services.register import Register
from pantry_pos.services.reports import daily_sales_summary


router = APIRouter(prefix="/sales", tags=["sales"])


# Schemas
class DailySalesResponse(PosModel):
    day: date
    sale_count: int
    refunded_count: int
    gross_total: Decimal
    refunded_total: Decimal
    net_total: Decimal


class ReceiptRow(PosModel):
    label: str
    amount: Decimal


class ReceiptResponse(PosModel):
    store_name: str
    sale_id: str
    issued_at: str
    lines: List[ReceiptRow]
    totals: List[ReceiptRow]
    payment_method: str
    cash_given: Optional[Decimal] = None
    change: Optional[Decimal] = None
    refunded: bool
    text: str


def _get_sale_or_404(register: Register, sale_id: str) -> Sale:
    sale = register.sales.get_sale(sale_id)
    if sale is None:
        raise SaleNotFoundError("Sale not found.", details={"sale_id": sale_id})
    return sale


@router.get("", response_model=List[Sale])
async def list_sales(q: str = "", register: Register = Depends(get_register)):
    """Sales history, newest first. ``q`` matches receipt id, item names or payment method."""
    return register.sales.list_sales(q)


@router.get("/summary", response_model=List[DailySalesResponse])
async def sales_summary(register: Register = Depends(get_register)):
    settings = get_settings()
    return [
        DailySalesResponse(
            day=d.day,
            sale_count=d.sale_count,
            refunded_count=d.refunded_count,
            gross_total=d.gross_total,
            refunded_total=d.refunded_total,
            net_total=d.net_total,
        )
        for d in daily_sales_summary(register.sales.sales, settings.STORE_TIMEZONE)
    ]


@router.get("/{sale_id}", response_model=Sale)
async def get_sale(sale_id: str, register: Register = Depends(get_register)):
    return _get_sale_or_404(register, sale_id)


@router.post("/{sale_id}/refund", response_model=Sale)
async def refund_sale(sale_id: str, register: Register = Depends(get_register)):
    """Restore the stock a sale consumed and mark it refunded. A sale can be refunded once."""
    return register.sales.refund(sale_id)


@router.get("/{sale_id}/receipt", response_model=ReceiptResponse)
async def get_receipt(sale_id: str, register: Register = Depends(get_register)):
    settings = get_settings()
    sale = _get_sale_or_404(register, sale_id)
    receipt = build_receipt(sale, settings.STORE_NAME, settings.STORE_TIMEZONE)
    return ReceiptResponse(
        store_name=receipt.store_name,
        sale_id=receipt.sale_id,
        issued_at=receipt.issued_at.isoformat(),
        lines=[ReceiptRow(label=line.label, amount=line.amount) for line in receipt.lines],
        totals=[ReceiptRow(label=line.label, amount=line.amount) for line in receipt.totals],
        payment_method=receipt.payment_method,
        cash_given=receipt.cash_given,
        change=receipt.change,
        refunded=receipt.refunded,
        text=render_text(receipt, settings.CURRENCY_SYMBOL),
    )
