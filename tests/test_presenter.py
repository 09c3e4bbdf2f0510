import asyncio
import unittest
from decimal import Decimal

from api import ShopAPIError
from events import EventBroker, field_change_event
from presenter import ShopPresenter
from product import OrderConfirmation, Product
from state import ShopState
from views import BUY_LABEL, REMOVE_LABEL, UNAVAILABLE_TITLE


class RecordingRenderer:
    def __init__(self) -> None:
        self.calls = []

    def __getattr__(self, name):
        if not name.startswith(("render_", "show_", "close_")):
            raise AttributeError(name)

        def record(*args):
            self.calls.append((name, *args))

        return record

    def last(self, name):
        return next(call for call in reversed(self.calls) if call[0] == name)

    def names(self):
        return [call[0] for call in self.calls]


class FakeAPI:
    def __init__(self) -> None:
        self.products = [
            Product(id="p1", title="+1 час в сутках", price=750),
            Product(id="p2", title="HEX-леденец", price=1450),
        ]
        self.catalog_error = None
        self.order_error = None
        self.orders = []
        self.release = None

    async def get_product_list(self):
        if self.catalog_error:
            raise self.catalog_error
        return list(self.products)

    async def order_products(self, order):
        self.orders.append(order)
        if self.release is not None:
            await self.release.wait()
        if self.order_error:
            raise self.order_error
        return OrderConfirmation(id="order-1", total=order.total)


class ShopPresenterTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.events = EventBroker()
        self.state = ShopState(self.events)
        self.api = FakeAPI()
        self.renderer = RecordingRenderer()
        self.presenter = ShopPresenter(self.state, self.events, self.api, self.renderer)

    def _fill_checkout(self) -> None:
        self.events.emit("order:open")
        for form, name, value in (
            ("order", "payment", "online"),
            ("order", "address", "Main St"),
            ("contacts", "email", "a@b.c"),
            ("contacts", "phone", "+70000000000"),
        ):
            if form == "contacts" and self.presenter.active_form != "contacts":
                self.events.emit("order:submit")
            self.events.emit(field_change_event(form, name), {"field": name, "value": value})

    async def test_load_catalog_renders_cards(self) -> None:
        self.assertTrue(await self.presenter.load_catalog())

        _, cards, counter = self.renderer.last("render_catalog")
        self.assertEqual([c.id for c in cards], ["p1", "p2"])
        self.assertEqual(counter, 0)

    async def test_failed_catalog_load_keeps_state(self) -> None:
        self.api.catalog_error = ShopAPIError("boom")

        with self.assertLogs("presenter", level="ERROR"):
            self.assertFalse(await self.presenter.load_catalog())

        self.assertEqual(self.state.catalog, [])
        self.assertEqual(self.renderer.names(), ["show_error"])

    async def test_add_item_updates_counter_basket_and_card_label(self) -> None:
        await self.presenter.load_catalog()
        self.events.emit("card:select", "p1")
        self.assertEqual(self.renderer.last("render_preview")[1].button, BUY_LABEL)

        self.events.emit("card:toggle", "p1")

        _, cards, counter = self.renderer.last("render_catalog")
        self.assertEqual(counter, 1)
        self.assertEqual(cards[0].button, REMOVE_LABEL)
        basket = self.renderer.last("render_basket")[1]
        self.assertEqual(basket.total, Decimal("750"))
        self.assertTrue(basket.can_order)
        self.assertIn("close_modal", self.renderer.names())

        self.events.emit("card:toggle", "p1")
        self.assertEqual(self.state.basket, [])

    async def test_missing_product_rendered_as_unavailable(self) -> None:
        await self.presenter.load_catalog()
        self.state.toggle_basket("gone", "Add")

        line = self.renderer.last("render_basket")[1].lines[0]
        self.assertEqual(line.title, UNAVAILABLE_TITLE)
        self.assertFalse(line.available)
        self.assertIsNone(line.price)

    async def test_order_form_tracks_first_screen(self) -> None:
        self.events.emit("order:open")
        form = self.renderer.last("render_order_form")[1]
        self.assertFalse(form.valid)
        self.assertEqual(form.errors, "")

        self.events.emit("order.payment:change", {"field": "payment", "value": "cash"})
        form = self.renderer.last("render_order_form")[1]
        self.assertFalse(form.valid)
        self.assertEqual(form.errors, "Необходимо указать адрес")

        self.events.emit("order.address:change", {"field": "address", "value": "Main St"})
        self.assertTrue(self.renderer.last("render_order_form")[1].valid)

    async def test_reopening_order_clears_draft(self) -> None:
        self._fill_checkout()
        self.events.emit("order:open")

        self.assertEqual(self.state.order.address, "")
        self.assertEqual(self.renderer.last("render_order_form")[1].values, {"payment": "", "address": ""})

    async def test_contacts_form_ready_after_both_fields(self) -> None:
        self._fill_checkout()

        form = self.renderer.last("render_contacts_form")[1]
        self.assertTrue(form.valid)
        self.assertEqual(form.values, {"email": "a@b.c", "phone": "+70000000000"})

    async def test_submit_renders_success_and_clears_basket(self) -> None:
        await self.presenter.load_catalog()
        self.state.toggle_basket("p1", "Add")
        self.state.toggle_basket("p2", "Add")
        self._fill_checkout()

        self.events.emit("contacts:submit")
        await self.presenter.wait_pending()

        self.assertEqual(len(self.api.orders), 1)
        self.assertEqual(self.api.orders[0].items, ["p1", "p2"])
        self.assertEqual(self.renderer.last("render_success")[1].total, Decimal("2200"))
        self.assertEqual(self.state.basket, [])
        self.assertFalse(self.state.submitting)

    async def test_failed_submit_keeps_basket(self) -> None:
        await self.presenter.load_catalog()
        self.state.toggle_basket("p1", "Add")
        self._fill_checkout()
        self.api.order_error = ShopAPIError("Неверная сумма заказа")

        with self.assertLogs("presenter", level="ERROR"):
            self.assertIsNone(await self.presenter.submit_order())

        self.assertEqual(self.state.basket, ["p1"])
        self.assertNotIn("render_success", self.renderer.names())
        self.assertFalse(self.state.submitting)

    async def test_incomplete_checkout_not_submitted(self) -> None:
        self.events.emit("order:open")

        self.assertIsNone(await self.presenter.submit_order())
        self.assertEqual(self.api.orders, [])
        self.assertEqual(set(self.state.form_errors), {"payment", "address"})

    async def test_double_submission_rejected_while_pending(self) -> None:
        await self.presenter.load_catalog()
        self.state.toggle_basket("p1", "Add")
        self._fill_checkout()
        self.api.release = asyncio.Event()

        first = asyncio.create_task(self.presenter.submit_order())
        await asyncio.sleep(0)
        second = await self.presenter.submit_order()
        self.api.release.set()
        confirmation = await first

        self.assertIsNone(second)
        self.assertEqual(confirmation.id, "order-1")
        self.assertEqual(len(self.api.orders), 1)
        self.assertIn("show_error", self.renderer.names())


if __name__ == "__main__":
    unittest.main(verbosity=2)
