"""
Command-line storefront.

The terminal plays both parts the browser plays in a web shop: it renders the
view models the presenter hands over, and it turns menu choices into events.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from decimal import Decimal
from typing import Optional

import events as ev
from api import ShopAPI
from checkout import ERROR_MESSAGES
from config import Settings, load_settings
from events import EventBroker, field_change_event
from presenter import ShopPresenter
from product import PaymentMethod
from state import ShopState
from views import BasketView, CardView, FormView, SuccessView

logger = logging.getLogger(__name__)


def _prompt_non_empty(prompt: str) -> str:
    # Keep prompting until user provides a non-empty string.
    while True:
        value = input(prompt).strip()
        if value:
            return value
        print("Input cannot be empty. Please try again.")


def _prompt_int(prompt: str, *, min_value: Optional[int] = None, max_value: Optional[int] = None) -> int:
    while True:
        raw = input(prompt).strip()
        try:
            value = int(raw)
        except ValueError:
            print("Please enter a valid whole number (integer).")
            continue

        if min_value is not None and value < min_value:
            print(f"Please enter a value >= {min_value}.")
            continue
        if max_value is not None and value > max_value:
            print(f"Please enter a value <= {max_value}.")
            continue

        return value


def _format_price(price: Optional[Decimal]) -> str:
    if price is None:
        return "Бесценно"
    return f"{price} синапсов"


class TerminalRenderer:
    """Prints view models; remembers the last ones so the menu can use them."""

    def __init__(self) -> None:
        self.cards: list[CardView] = []
        self.counter = 0
        self.preview: Optional[CardView] = None
        self.basket = BasketView()
        self.form: Optional[FormView] = None

    def render_catalog(self, cards: list[CardView], counter: int) -> None:
        self.cards = cards
        self.counter = counter

    def render_preview(self, card: CardView) -> None:
        self.preview = card
        print(f"\n{card.title} [{card.category}]")
        if card.description:
            print(card.description)
        print(f"Price: {_format_price(card.price)}")

    def render_basket(self, basket: BasketView) -> None:
        self.basket = basket

    def render_order_form(self, form: FormView) -> None:
        self._render_form(form)

    def render_contacts_form(self, form: FormView) -> None:
        self._render_form(form)

    def render_success(self, success: SuccessView) -> None:
        print(f"\nЗаказ оформлен. Списано {_format_price(success.total)}")

    def show_error(self, message: str) -> None:
        print(f"Error: {message}")

    def close_modal(self) -> None:
        self.preview = None

    def _render_form(self, form: FormView) -> None:
        self.form = form
        if form.errors:
            print(f"  ! {form.errors}")

    def print_catalog(self) -> None:
        if not self.cards:
            print("Catalog is empty.")
            return
        for number, card in enumerate(self.cards, start=1):
            print(f" {number:>2}) {card.title} | {card.category} | {_format_price(card.price)}")

    def print_basket(self) -> None:
        if not self.basket.lines:
            print("Basket is empty.")
            return
        for line in self.basket.lines:
            print(f" {line.index:>2}) {line.title} | {_format_price(line.price) if line.available else '-'}")
        print(f"Total: {_format_price(self.basket.total)}")


def _fill(events: EventBroker, renderer: TerminalRenderer, form: str, field: str, prompt: str) -> None:
    # Re-ask until the field has no error attached to it.
    while True:
        events.emit(field_change_event(form, field), {"field": field, "value": _prompt_non_empty(prompt)})
        if renderer.form is None or ERROR_MESSAGES[field] not in renderer.form.errors:
            return


def _choose_payment(events: EventBroker) -> None:
    methods = list(PaymentMethod)
    for number, method in enumerate(methods, start=1):
        print(f" {number}) {method.label}")
    choice = _prompt_int("Payment method: ", min_value=1, max_value=len(methods))
    events.emit(field_change_event("order", "payment"), {"field": "payment", "value": methods[choice - 1].value})


async def _checkout(events: EventBroker, presenter: ShopPresenter, renderer: TerminalRenderer) -> None:
    if not renderer.basket.can_order:
        print("Basket is empty.")
        return

    events.emit(ev.ORDER_OPEN)
    _choose_payment(events)
    _fill(events, renderer, "order", "address", "Delivery address: ")
    if not (renderer.form and renderer.form.valid):
        print("Order form is incomplete.")
        return

    events.emit(ev.ORDER_SUBMIT)
    _fill(events, renderer, "contacts", "email", "Email: ")
    _fill(events, renderer, "contacts", "phone", "Phone: ")
    if not (renderer.form and renderer.form.valid):
        print("Contacts form is incomplete.")
        return

    events.emit(ev.CONTACTS_SUBMIT)
    await presenter.wait_pending()


async def run(settings: Settings) -> None:
    print("Web-Larek storefront")
    print("--------------------")

    events = EventBroker()
    state = ShopState(events)
    renderer = TerminalRenderer()

    logger.debug(f"Using API at {settings.api_url}")
    async with ShopAPI(settings.api_url, settings.cdn_url, timeout=settings.timeout) as api:
        presenter = ShopPresenter(state, events, api, renderer)
        await presenter.load_catalog()

        while True:
            print(f"\nMenu (basket: {renderer.counter}):")
            print(" 1) List catalog")
            print(" 2) View product")
            print(" 3) View basket")
            print(" 4) Remove from basket")
            print(" 5) Checkout")
            print(" 6) Reload catalog")
            print(" 7) Exit")

            choice = _prompt_int("Choose an option: ", min_value=1)

            try:
                if choice == 1:
                    renderer.print_catalog()

                elif choice == 2:
                    if not renderer.cards:
                        print("Catalog is empty.")
                        continue
                    number = _prompt_int("Product number: ", min_value=1, max_value=len(renderer.cards))
                    events.emit(ev.CARD_SELECT, renderer.cards[number - 1].id)
                    card = renderer.preview
                    if card is not None and card.purchasable:
                        answer = input(f"{card.button}? [y/N]: ").strip().lower()
                        if answer == "y":
                            events.emit(ev.CARD_TOGGLE, card.id)

                elif choice == 3:
                    events.emit(ev.BASKET_OPEN)
                    renderer.print_basket()

                elif choice == 4:
                    if not renderer.basket.lines:
                        print("Basket is empty.")
                        continue
                    renderer.print_basket()
                    index = _prompt_int("Line number: ", min_value=1, max_value=len(renderer.basket.lines))
                    state.toggle_basket(renderer.basket.lines[index - 1].id, "Remove")

                elif choice == 5:
                    await _checkout(events, presenter, renderer)

                elif choice == 6:
                    if await presenter.load_catalog():
                        print(f"Loaded {len(state.catalog)} products.")

                elif choice == 7:
                    print("Goodbye.")
                    return

                else:
                    print("Invalid choice. Please try again.")

            except (ValueError, RuntimeError) as e:
                print(f"Error: {e}")


def main() -> None:
    try:
        settings = load_settings()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)

    logging.basicConfig(level=settings.log_level)
    try:
        asyncio.run(run(settings))
    except KeyboardInterrupt:
        print("\nExiting...")


if __name__ == "__main__":
    main()
