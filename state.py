"""
Shop state

Single owner of catalog, basket, checkout draft and form errors. Every
mutation goes through a method here, and every method publishes what changed.
"""

import logging
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional, Union

import events as ev
from checkout import validate_draft
from events import EventBroker
from product import OrderDraft, OrderRequest, PaymentMethod, Product

logger = logging.getLogger(__name__)


class BasketAction(str, Enum):
    ADD = "Add"
    REMOVE = "Remove"


class OrderInProgressError(RuntimeError):
    """An order was submitted while the previous one is still pending."""


class ShopState:
    def __init__(self, event_broker: EventBroker) -> None:
        # Created once per session; basket and draft are cleared, never replaced.
        self._events = event_broker
        self.catalog: list[Product] = []
        self.basket: list[str] = []
        self.order = OrderDraft()
        self.form_errors: dict[str, str] = {}
        self.submitting = False

    def set_catalog(self, items: Iterable[Product]) -> None:
        self.catalog = list(items)
        logger.info(f"Catalog loaded with {len(self.catalog)} products")
        self._events.emit(ev.ITEMS_RENDER, {"catalog": list(self.catalog)})

    def toggle_basket(self, product_id: str, action: Union[BasketAction, str]) -> None:
        try:
            action = BasketAction(action)
        except ValueError:
            raise ValueError(f"Invalid basket action '{action}'. Allowed: Add, Remove") from None

        if action is BasketAction.ADD:
            if product_id not in self.basket:
                self.basket.append(product_id)
        else:
            self.basket = [item for item in self.basket if item != product_id]

        # Emitted even when nothing changed; listeners must tolerate repeats.
        self._emit_basket()

    def clear_basket(self) -> None:
        self.basket = []
        self._emit_basket()

    def clear_draft(self) -> None:
        """Resets the draft. Errors are left for the next validation pass."""
        self.order.clear()

    def compute_total(self) -> Decimal:
        total = Decimal("0")
        for product_id in self.basket:
            product = self.get_product(product_id)
            # Unknown ids and unpriced products count as zero.
            if product is not None and product.price is not None:
                total += product.price
        return total

    def set_draft_field(self, name: str, value: Union[str, PaymentMethod]) -> None:
        self.order.set(name, value)
        self._events.emit(ev.ORDER_CHANGED, self.order.snapshot())

        if self.validate_draft():
            self._events.emit(ev.ORDER_READY, self.order.snapshot())

    def validate_draft(self) -> bool:
        """Recomputes the form errors, publishes them, and reports readiness."""
        self.form_errors = validate_draft(self.order)
        self._events.emit(ev.FORM_ERRORS_CHANGE, dict(self.form_errors))
        return not self.form_errors

    def get_product(self, product_id: str) -> Optional[Product]:
        return next((p for p in self.catalog if p.id == product_id), None)

    def in_basket(self, product_id: str) -> bool:
        return product_id in self.basket

    @property
    def basket_count(self) -> int:
        return len(self.basket)

    def basket_lines(self) -> list[tuple[str, Optional[Product]]]:
        """Basket ids paired with their catalog product, or None when unavailable."""
        return [(product_id, self.get_product(product_id)) for product_id in self.basket]

    def build_order(self) -> OrderRequest:
        # Read at call time so the total reflects the basket as it is now.
        return OrderRequest.from_draft(self.order, self.basket, self.compute_total())

    def begin_submission(self) -> None:
        if self.submitting:
            raise OrderInProgressError("An order is already being submitted.")
        self.submitting = True
        self._events.emit(ev.ORDER_SUBMITTING, {"submitting": True})

    def end_submission(self) -> None:
        self.submitting = False
        self._events.emit(ev.ORDER_SUBMITTING, {"submitting": False})

    def _emit_basket(self) -> None:
        self._events.emit(ev.BASKET_CHANGED, {"basket": list(self.basket)})
