"""
Shop domain model.

Products as loaded from the catalog, the checkout draft the user fills in, and
the order that is built from both at submission time.
"""

from dataclasses import asdict, dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union


@dataclass(frozen=True)
class Product:
    """
    A catalog entry.

    A `None` price means the product cannot be bought; the catalog still
    lists it.
    """

    id: str
    title: str
    description: str = ""
    image: str = ""
    category: str = ""
    price: Optional[Decimal] = None

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id.strip():
            raise ValueError("Product id must be a non-empty string.")
        if self.price is not None:
            # Frozen dataclass: normalise through object.__setattr__.
            try:
                price = Decimal(str(self.price))
            except ArithmeticError:
                raise ValueError("Product price must be a number.") from None
            if not price.is_finite():
                raise ValueError("Product price must be a finite number.")
            if price < 0:
                raise ValueError("Product price cannot be negative.")
            object.__setattr__(self, "price", price)

    @property
    def purchasable(self) -> bool:
        return self.price is not None


class PaymentMethod(str, Enum):
    ONLINE = "online"
    ON_DELIVERY = "cash"

    @property
    def label(self) -> str:
        return _PAYMENT_LABELS[self]


_PAYMENT_LABELS = {
    PaymentMethod.ONLINE: "Онлайн",
    PaymentMethod.ON_DELIVERY: "При получении",
}


@dataclass
class OrderDraft:
    """Checkout form data while the user is still typing. Empty string means unset."""

    FIELDS = ("payment", "address", "email", "phone")

    payment: str = ""
    address: str = ""
    email: str = ""
    phone: str = ""

    def set(self, name: str, value: Union[str, PaymentMethod]) -> None:
        if name not in self.FIELDS:
            raise ValueError(f"Unknown order field '{name}'. Allowed: {', '.join(self.FIELDS)}")
        if name == "payment":
            value = _payment_value(value)
        elif not isinstance(value, str):
            raise ValueError(f"Order field '{name}' must be a string.")
        setattr(self, name, value)

    def clear(self) -> None:
        for name in self.FIELDS:
            setattr(self, name, "")

    def snapshot(self) -> "OrderDraft":
        return OrderDraft(**asdict(self))


def _payment_value(value: Union[str, PaymentMethod]) -> str:
    # Empty clears the choice; anything else must be a known method.
    if value == "":
        return ""
    try:
        return PaymentMethod(value).value
    except ValueError:
        raise ValueError(
            f"Invalid payment method '{value}'. Allowed: {', '.join(m.value for m in PaymentMethod)}"
        ) from None


def _json_number(value: Decimal) -> Any:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


@dataclass(frozen=True)
class OrderRequest:
    """The order sent to the API: draft fields plus basket contents and total."""

    payment: str
    address: str
    email: str
    phone: str
    items: list[str] = field(default_factory=list)
    total: Decimal = Decimal("0")

    @classmethod
    def from_draft(cls, draft: OrderDraft, items: list[str], total: Decimal) -> "OrderRequest":
        return cls(
            payment=draft.payment,
            address=draft.address,
            email=draft.email,
            phone=draft.phone,
            items=list(items),
            total=total,
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "payment": self.payment,
            "address": self.address,
            "email": self.email,
            "phone": self.phone,
            "items": list(self.items),
            "total": _json_number(self.total),
        }


@dataclass(frozen=True)
class OrderConfirmation:
    id: str
    total: Decimal
