"""
View models handed to the renderer.

The presenter only ever produces these plain objects; how they are drawn is up
to the renderer (the terminal front end in cli.py, or a test double).
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Protocol

from product import Product


BUY_LABEL = "Купить"
REMOVE_LABEL = "Убрать"
UNAVAILABLE_TITLE = "Товар недоступен"


@dataclass(frozen=True)
class CardView:
    id: str
    title: str
    category: str = ""
    image: str = ""
    price: Optional[Decimal] = None
    description: str = ""
    button: str = BUY_LABEL
    purchasable: bool = True

    @classmethod
    def from_product(cls, product: Product, in_basket: bool = False) -> "CardView":
        return cls(
            id=product.id,
            title=product.title,
            category=product.category,
            image=product.image,
            price=product.price,
            description=product.description,
            button=REMOVE_LABEL if in_basket else BUY_LABEL,
            purchasable=product.purchasable,
        )


@dataclass(frozen=True)
class BasketLineView:
    index: int
    id: str
    title: str
    price: Optional[Decimal] = None
    available: bool = True


@dataclass(frozen=True)
class BasketView:
    lines: list[BasketLineView] = field(default_factory=list)
    total: Decimal = Decimal("0")
    counter: int = 0

    @property
    def can_order(self) -> bool:
        return bool(self.lines)


@dataclass(frozen=True)
class FormView:
    """One checkout screen: its field values, validity and joined errors."""
    values: dict[str, str] = field(default_factory=dict)
    valid: bool = False
    errors: str = ""


@dataclass(frozen=True)
class SuccessView:
    total: Decimal
    order_id: str = ""


class Renderer(Protocol):
    def render_catalog(self, cards: list[CardView], counter: int) -> None: ...

    def render_preview(self, card: CardView) -> None: ...

    def render_basket(self, basket: BasketView) -> None: ...

    def render_order_form(self, form: FormView) -> None: ...

    def render_contacts_form(self, form: FormView) -> None: ...

    def render_success(self, success: SuccessView) -> None: ...

    def show_error(self, message: str) -> None: ...

    def close_modal(self) -> None: ...
