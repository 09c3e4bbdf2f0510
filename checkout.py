"""
Checkout validation.

The checkout is two screens: payment + address first, then email + phone.
Contact fields are only checked once the first screen is complete, so the
user never sees errors for a screen they have not reached yet.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from product import OrderDraft


ERROR_MESSAGES = {
    "payment": "Необходимо указать метод оплаты",
    "address": "Необходимо указать адрес",
    "email": "Необходимо указать email",
    "phone": "Необходимо указать телефон",
}

ORDER_FORM_FIELDS = ("payment", "address")
CONTACTS_FORM_FIELDS = ("phone", "email")


class CheckoutStage(Enum):
    NEEDS_PAYMENT_ADDRESS = "needs_payment_address"
    NEEDS_CONTACT = "needs_contact"
    READY = "ready"


_STAGE_FIELDS = {
    CheckoutStage.NEEDS_PAYMENT_ADDRESS: ORDER_FORM_FIELDS,
    CheckoutStage.NEEDS_CONTACT: CONTACTS_FORM_FIELDS,
    CheckoutStage.READY: (),
}


def _missing(draft: OrderDraft, fields: Iterable[str]) -> list[str]:
    return [name for name in fields if not getattr(draft, name)]


def checkout_stage(draft: OrderDraft) -> CheckoutStage:
    """Earliest stage whose fields are not all filled in."""
    if _missing(draft, ORDER_FORM_FIELDS):
        return CheckoutStage.NEEDS_PAYMENT_ADDRESS
    if _missing(draft, CONTACTS_FORM_FIELDS):
        return CheckoutStage.NEEDS_CONTACT
    return CheckoutStage.READY


def validate_draft(draft: OrderDraft) -> dict[str, str]:
    """
    Returns field -> message for the current stage only.

    An empty mapping means the draft can be submitted. Never raises.
    """
    stage = checkout_stage(draft)
    return {name: ERROR_MESSAGES[name] for name in _missing(draft, _STAGE_FIELDS[stage])}


@dataclass(frozen=True)
class FormStatus:
    """Validity of one checkout screen plus its errors joined for display."""
    valid: bool
    errors: str


def form_status(errors: dict[str, str], fields: Iterable[str]) -> FormStatus:
    messages = [errors[name] for name in fields if errors.get(name)]
    return FormStatus(valid=not messages, errors="; ".join(messages))
