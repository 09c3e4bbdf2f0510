"""
Presenter: wires shop events to the renderer and the API.

Nothing here holds rendering state of its own beyond which checkout screen is
open; every view is rebuilt from ShopState when the matching event arrives.
"""

import asyncio
import logging
from typing import Any, Optional

import events as ev
from api import ShopAPI, ShopAPIError
from checkout import CONTACTS_FORM_FIELDS, ORDER_FORM_FIELDS, CheckoutStage, checkout_stage, form_status
from events import Event, EventBroker
from product import OrderConfirmation
from state import BasketAction, OrderInProgressError, ShopState
from views import UNAVAILABLE_TITLE, BasketLineView, BasketView, CardView, FormView, Renderer, SuccessView

logger = logging.getLogger(__name__)


class ShopPresenter:
    def __init__(self, state: ShopState, event_broker: EventBroker, api: ShopAPI, renderer: Renderer) -> None:
        self.state = state
        self.events = event_broker
        self.api = api
        self.renderer = renderer
        self.active_form: Optional[str] = None
        self._tasks: set[asyncio.Task] = set()

        event_broker.subscribe_all(self._log_event)
        event_broker.subscribe(ev.ITEMS_RENDER, self._on_catalog)
        event_broker.subscribe(ev.CARD_SELECT, self._on_card_select)
        event_broker.subscribe(ev.CARD_TOGGLE, self._on_card_toggle)
        event_broker.subscribe(ev.BASKET_CHANGED, self._on_basket_changed)
        event_broker.subscribe(ev.BASKET_OPEN, self._on_basket_open)
        event_broker.subscribe(ev.ORDER_OPEN, self._on_order_open)
        event_broker.subscribe(ev.ORDER_FIELD_CHANGE, self._on_field_change)
        event_broker.subscribe(ev.CONTACTS_FIELD_CHANGE, self._on_field_change)
        event_broker.subscribe(ev.FORM_ERRORS_CHANGE, self._on_form_errors)
        event_broker.subscribe(ev.ORDER_SUBMIT, self._on_order_submit)
        event_broker.subscribe(ev.CONTACTS_OPEN, self._on_contacts_open)
        event_broker.subscribe(ev.CONTACTS_SUBMIT, self._on_contacts_submit)

    async def load_catalog(self) -> bool:
        """Fetches the catalog into the state. On failure the old catalog stays."""
        try:
            products = await self.api.get_product_list()
        except ShopAPIError as e:
            logger.error(f"Could not load catalog: {e}")
            self.renderer.show_error(f"Не удалось загрузить каталог: {e}")
            return False
        self.state.set_catalog(products)
        return True

    async def submit_order(self) -> Optional[OrderConfirmation]:
        """Sends the current basket and draft. The basket is cleared only on success."""
        if checkout_stage(self.state.order) is not CheckoutStage.READY:
            logger.warning("Order submitted before the checkout was complete")
            self.state.validate_draft()
            return None

        try:
            self.state.begin_submission()
        except OrderInProgressError as e:
            logger.warning(str(e))
            self.renderer.show_error(str(e))
            return None

        try:
            confirmation = await self.api.order_products(self.state.build_order())
        except ShopAPIError as e:
            logger.error(f"Order submission failed: {e}")
            self.renderer.show_error(f"Не удалось оформить заказ: {e}")
            return None
        finally:
            self.state.end_submission()

        self.active_form = None
        self.renderer.render_success(SuccessView(total=confirmation.total, order_id=confirmation.id))
        self.state.clear_basket()
        return confirmation

    async def wait_pending(self) -> None:
        """Waits for submissions scheduled from event handlers."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    def catalog_cards(self) -> list[CardView]:
        return [CardView.from_product(p, self.state.in_basket(p.id)) for p in self.state.catalog]

    def basket_view(self) -> BasketView:
        lines = []
        for index, (product_id, product) in enumerate(self.state.basket_lines(), start=1):
            if product is None:
                lines.append(BasketLineView(index, product_id, UNAVAILABLE_TITLE, None, available=False))
            else:
                lines.append(BasketLineView(index, product_id, product.title, product.price))
        return BasketView(lines=lines, total=self.state.compute_total(), counter=self.state.basket_count)

    def order_form(self, show_errors: bool = True) -> FormView:
        return self._form(ORDER_FORM_FIELDS, show_errors)

    def contacts_form(self, show_errors: bool = True) -> FormView:
        return self._form(CONTACTS_FORM_FIELDS, show_errors)

    def _form(self, fields: tuple[str, ...], show_errors: bool) -> FormView:
        values = {name: getattr(self.state.order, name) for name in fields}
        if not show_errors:
            return FormView(values=values, valid=False, errors="")
        status = form_status(self.state.form_errors, fields)
        # Before any validation pass the error map is empty; a blank screen is not valid.
        valid = status.valid and all(values.values())
        return FormView(values=values, valid=valid, errors=status.errors)

    def _log_event(self, event: Event) -> None:
        logger.debug(f"{event.name}: {event.payload!r}")

    def _on_catalog(self, payload: Any) -> None:
        self.renderer.render_catalog(self.catalog_cards(), self.state.basket_count)

    def _on_card_select(self, product_id: str) -> None:
        product = self.state.get_product(product_id)
        if product is None:
            logger.warning(f"Selected product {product_id} is not in the catalog")
            self.renderer.show_error(UNAVAILABLE_TITLE)
            return
        self.renderer.render_preview(CardView.from_product(product, self.state.in_basket(product_id)))

    def _on_card_toggle(self, product_id: str) -> None:
        self.renderer.close_modal()
        action = BasketAction.REMOVE if self.state.in_basket(product_id) else BasketAction.ADD
        self.state.toggle_basket(product_id, action)

    def _on_basket_changed(self, payload: Any) -> None:
        view = self.basket_view()
        self.renderer.render_catalog(self.catalog_cards(), view.counter)
        self.renderer.render_basket(view)

    def _on_basket_open(self, payload: Any) -> None:
        self.renderer.render_basket(self.basket_view())

    def _on_order_open(self, payload: Any) -> None:
        self.state.clear_draft()
        self.active_form = "order"
        self.renderer.render_order_form(self.order_form(show_errors=False))

    def _on_field_change(self, payload: dict[str, str]) -> None:
        self.state.set_draft_field(payload["field"], payload["value"])

    def _on_form_errors(self, errors: dict[str, str]) -> None:
        if self.active_form == "order":
            self.renderer.render_order_form(self.order_form())
        elif self.active_form == "contacts":
            self.renderer.render_contacts_form(self.contacts_form())

    def _on_order_submit(self, payload: Any) -> None:
        self.events.emit(ev.CONTACTS_OPEN)

    def _on_contacts_open(self, payload: Any) -> None:
        self.active_form = "contacts"
        self.renderer.render_contacts_form(self.contacts_form(show_errors=False))

    def _on_contacts_submit(self, payload: Any) -> None:
        task = asyncio.get_running_loop().create_task(self.submit_order())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
