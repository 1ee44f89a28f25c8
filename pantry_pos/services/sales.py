"""
Sale transaction engine.

Turns the active cart into an immutable Sale, deducts the ingredients its
products consume, and reverses that stock effect on refund.

Stock policy:
- Deductions are clamped at zero. Finalize never fails for lack of stock;
  availability was already checked (coarsely) when products were offered.
- Refunds add stock back using each product's *current* recipe, not the
  recipe at the time of sale.
- Products or ingredients that no longer exist are skipped.

Validation happens before anything is touched. The catalog, the sales
history and the store are updated as one batch; if that write fails, the
in-memory state is rolled back and StorageError propagates.
"""
import logging
from contextlib import contextmanager
from decimal import Decimal
from typing import Iterator, List, Optional

from pantry_pos.core.clock import epoch_millis, utcnow
from pantry_pos.core.exceptions import (
    AlreadyRefundedError,
    EmptyCartError,
    InsufficientPaymentError,
    SaleNotFoundError,
)
from pantry_pos.schemas.sales import PaymentMethod, Sale
from pantry_pos.services.cart import Cart
from pantry_pos.services.catalog import CatalogStore
from pantry_pos.services.persistence import PersistenceAdapter

logger = logging.getLogger(__name__)

SALE_ID_PREFIX = "SALE-"


class SaleTransactionEngine:
    """Finalizes carts into sales, keeps the sales history, and refunds sales."""

    def __init__(self, catalog: CatalogStore, persistence: PersistenceAdapter):
        self.catalog = catalog
        self.persistence = persistence
        self.sales: List[Sale] = []
        self._last_sale_millis = 0

    def load(self) -> None:
        self.sales = self.persistence.load_sales()
        self._last_sale_millis = max((_sale_millis(s.id) for s in self.sales), default=0)

    def new_sale_id(self) -> str:
        """``SALE-<epoch ms>``, never repeating an id already issued or loaded."""
        millis = epoch_millis()
        if millis <= self._last_sale_millis:
            millis = self._last_sale_millis + 1
        self._last_sale_millis = millis
        return f"{SALE_ID_PREFIX}{millis}"

    # ---- history ----

    def get_sale(self, sale_id: str) -> Optional[Sale]:
        for sale in self.sales:
            if sale.id == sale_id:
                return sale
        return None

    def list_sales(self, query: str = "") -> List[Sale]:
        """Sales history, newest first, optionally filtered by id, item name or payment method."""
        needle = query.strip().lower()
        if not needle:
            return list(self.sales)

        matches = []
        for sale in self.sales:
            haystack = " ".join([sale.id, sale.payment_method.value] + [item.name for item in sale.items]).lower()
            if needle in haystack:
                matches.append(sale)
        return matches

    # ---- finalize / refund ----

    def finalize(self, cart: Cart) -> Sale:
        """
        Convert the cart into a persisted Sale and deduct ingredient stock.

        Raises EmptyCartError for an empty cart, and InsufficientPaymentError
        when paying cash short of the total. On success the cart is cleared
        (the payment method is kept).
        """
        if cart.is_empty:
            raise EmptyCartError()

        total = cart.total()
        is_cash = cart.payment_method == PaymentMethod.CASH
        if is_cash and cart.cash_amount() < total:
            raise InsufficientPaymentError(
                details={"total": str(total), "cash_given": str(cart.cash_amount())},
            )

        sale = Sale(
            id=self.new_sale_id(),
            created_at=utcnow(),
            items=cart.sale_items(),
            subtotal=cart.subtotal(),
            discount_type=cart.discount_type,
            discount_value=cart.discount_value,
            discount_amount=cart.discount_amount(),
            tax_percent=cart.tax_percent,
            tax_amount=cart.tax_amount(),
            total=total,
            payment_method=cart.payment_method,
            cash_given=cart.cash_amount() if is_cash else None,
            change=cart.change_due() if is_cash else None,
        )

        with self._committing():
            self._apply_stock_effect(sale, restore=False)
            self.catalog.refresh_statuses()
            self.sales.insert(0, sale)
            self.persistence.save_sales(self.sales)

        cart.clear()
        logger.info(f"Finalized {sale.id}: {len(sale.items)} line(s), total {sale.total}, {sale.payment_method.value}")
        return sale

    def refund(self, sale_id: str) -> Sale:
        """
        Put back the stock a sale consumed and mark it refunded.

        The sale record is kept. Raises SaleNotFoundError for an unknown id
        and AlreadyRefundedError if the sale was refunded before; in both
        cases stock is left untouched.
        """
        sale = self.get_sale(sale_id)
        if sale is None:
            raise SaleNotFoundError("Sale not found.", details={"sale_id": sale_id})
        if sale.refunded:
            raise AlreadyRefundedError(
                details={"sale_id": sale.id, "refunded_at": sale.refunded_at.isoformat() if sale.refunded_at else None},
            )

        with self._committing():
            self._apply_stock_effect(sale, restore=True)
            self.catalog.refresh_statuses()
            sale.refunded = True
            sale.refunded_at = utcnow()
            self.persistence.save_sales(self.sales)

        logger.info(f"Refunded {sale.id}")
        return sale

    def _apply_stock_effect(self, sale: Sale, restore: bool) -> None:
        for item in sale.items:
            product = self.catalog.get_product(item.product_id)
            if product is None:
                logger.debug(f"{sale.id}: product {item.product_id} no longer exists, skipping stock effect")
                continue

            for line in product.recipe:
                amount = line.quantity * Decimal(item.qty)
                delta = amount if restore else -amount
                updated = self.catalog.apply_stock_delta(line.ingredient_name, delta, floor_at_zero=not restore)
                if updated is None:
                    logger.debug(f"{sale.id}: ingredient {line.ingredient_name!r} not stocked, skipping")

    @contextmanager
    def _committing(self) -> Iterator[None]:
        catalog_checkpoint = self.catalog.checkpoint()
        sales_checkpoint = [s.model_copy(deep=True) for s in self.sales]
        try:
            with self.persistence.atomic():
                yield
        except Exception:
            self.catalog.restore(catalog_checkpoint)
            self.sales = sales_checkpoint
            raise


def _sale_millis(sale_id: str) -> int:
    try:
        return int(sale_id.removeprefix(SALE_ID_PREFIX))
    except ValueError:
        return 0
