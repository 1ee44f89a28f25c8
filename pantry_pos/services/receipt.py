"""
Receipt figures for a finalized sale.

Every amount on a receipt is copied from the Sale record; nothing is
recomputed here. Discount and tax rows appear only when non-zero, cash and
change only for cash sales.
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pantry_pos.core.clock import to_store_time
from pantry_pos.schemas.sales import Sale


@dataclass
class ReceiptLine:
    label: str
    amount: Decimal


@dataclass
class Receipt:
    """A printable summary of one sale."""
    store_name: str
    sale_id: str
    issued_at: datetime  # store-local time
    lines: List[ReceiptLine]
    subtotal: Decimal
    total: Decimal
    payment_method: str
    discount: Optional[Decimal] = None
    tax: Optional[Decimal] = None
    cash_given: Optional[Decimal] = None
    change: Optional[Decimal] = None
    refunded: bool = False
    footer: str = "Thank you!"
    totals: List[ReceiptLine] = field(default_factory=list)


def build_receipt(sale: Sale, store_name: str, store_timezone: Optional[str] = None) -> Receipt:
    receipt = Receipt(
        store_name=store_name,
        sale_id=sale.id,
        issued_at=to_store_time(sale.created_at, store_timezone),
        lines=[ReceiptLine(label=f"{item.name} x{item.qty}", amount=item.line_total) for item in sale.items],
        subtotal=sale.subtotal,
        total=sale.total,
        payment_method=sale.payment_method.value,
        discount=sale.discount_amount if sale.discount_amount else None,
        tax=sale.tax_amount if sale.tax_amount else None,
        cash_given=sale.cash_given,
        change=sale.change,
        refunded=sale.refunded,
    )

    receipt.totals.append(ReceiptLine("Subtotal", sale.subtotal))
    if receipt.discount is not None:
        receipt.totals.append(ReceiptLine("Discount", -receipt.discount))
    if receipt.tax is not None:
        receipt.totals.append(ReceiptLine("Tax", receipt.tax))
    receipt.totals.append(ReceiptLine("Total", sale.total))
    return receipt


def format_money(amount: Decimal, symbol: str = "₱") -> str:
    """``₱1,234.50`` style; negatives as ``- ₱20.00``."""
    quantized = abs(amount).quantize(Decimal("0.01"))
    text = f"{symbol}{quantized:,.2f}"
    return f"- {text}" if amount < 0 else text


def render_text(receipt: Receipt, currency_symbol: str = "₱", width: int = 32) -> str:
    """Plain-text rendering for thermal printers and logs."""
    def row(label: str, value: str) -> str:
        gap = max(1, width - len(label) - len(value))
        return f"{label}{' ' * gap}{value}"

    out = [
        receipt.store_name,
        receipt.issued_at.strftime("%Y-%m-%d %H:%M"),
        f"Receipt: {receipt.sale_id}",
    ]
    if receipt.refunded:
        out.append("*** REFUNDED ***")
    out.append("-" * width)
    out.extend(row(line.label, format_money(line.amount, currency_symbol)) for line in receipt.lines)
    out.append("-" * width)
    out.extend(row(line.label, format_money(line.amount, currency_symbol)) for line in receipt.totals)
    out.append(row("Payment", receipt.payment_method))
    if receipt.cash_given is not None:
        out.append(row("Cash", format_money(receipt.cash_given, currency_symbol)))
    if receipt.change is not None:
        out.append(row("Change", format_money(receipt.change, currency_symbol)))
    out.append(receipt.footer)
    return "\n".join(out) + "\n"
