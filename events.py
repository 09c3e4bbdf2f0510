"""
The shop state and the presenter talk to each other only through events.

A subscription key is either an exact event name ("basket:changed") or a
family pattern with a single "*" ("order.*:change").
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional, Union


ITEMS_RENDER = "items:render"
BASKET_CHANGED = "basket:changed"
BASKET_OPEN = "basket:open"
CARD_SELECT = "card:select"
CARD_TOGGLE = "card:toggle"
ORDER_OPEN = "order:open"
ORDER_CHANGED = "order:changed"
ORDER_READY = "order:ready"
ORDER_SUBMIT = "order:submit"
ORDER_SUBMITTING = "order:submitting"
FORM_ERRORS_CHANGE = "formErrors:change"
CONTACTS_OPEN = "contacts:open"
CONTACTS_SUBMIT = "contacts:submit"
ORDER_FIELD_CHANGE = "order.*:change"
CONTACTS_FIELD_CHANGE = "contacts.*:change"


def field_change_event(form: str, field: str) -> str:
    """Name of the per-field change event, e.g. "order.address:change"."""
    return f"{form}.{field}:change"


@dataclass(frozen=True)
class Event:
    """An emitted event as seen by catch-all subscribers."""
    name: str
    payload: Any = None


@dataclass(frozen=True)
class EventPattern:
    """Matches every event name with the given prefix and suffix."""
    prefix: str
    suffix: str = ""

    @classmethod
    def parse(cls, pattern: str) -> "EventPattern":
        prefix, star, suffix = pattern.partition("*")
        if not star or "*" in suffix:
            raise ValueError(f"Pattern must contain exactly one '*': {pattern!r}")
        return cls(prefix, suffix)

    def matches(self, event_name: str) -> bool:
        return (
            len(event_name) >= len(self.prefix) + len(self.suffix)
            and event_name.startswith(self.prefix)
            and event_name.endswith(self.suffix)
        )


Matcher = Union[str, EventPattern]
Handler = Callable[[Any], None]


def _normalise(matcher: Matcher) -> Matcher:
    if isinstance(matcher, EventPattern):
        return matcher
    if not isinstance(matcher, str) or not matcher.strip():
        raise ValueError("event name must be a non-empty string.")
    if "*" in matcher:
        return EventPattern.parse(matcher)
    return matcher


def _matches(matcher: Matcher, event_name: str) -> bool:
    if isinstance(matcher, EventPattern):
        return matcher.matches(event_name)
    return matcher == event_name


class EventBroker:
    """Synchronous pub/sub hub with exact and family subscriptions.

    Every subscription that matches an event fires on its own. A handler
    registered under two overlapping matchers (say "order:open" and
    "order*") therefore runs twice for one emit; callers avoid that.
    """

    def __init__(self) -> None:
        # One flat list keeps delivery in subscription order across matchers.
        self._subscriptions: list[tuple[Matcher, Handler]] = []
        self._observers: list[Callable[[Event], None]] = []

    def subscribe(self, matcher: Matcher, handler: Handler) -> None:
        key = _normalise(matcher)
        if (key, handler) not in self._subscriptions:
            self._subscriptions.append((key, handler))

    def unsubscribe(self, matcher: Matcher, handler: Handler) -> None:
        key = _normalise(matcher)
        self._subscriptions = [s for s in self._subscriptions if s != (key, handler)]

    def subscribe_all(self, handler: Callable[[Event], None]) -> None:
        """Registers an observer of every emitted event (diagnostics)."""
        if handler not in self._observers:
            self._observers.append(handler)

    def unsubscribe_all(self, handler: Callable[[Event], None]) -> None:
        if handler in self._observers:
            self._observers.remove(handler)

    def emit(self, event_name: str, payload: Any = None) -> None:
        if not isinstance(event_name, str) or not event_name.strip():
            raise ValueError("event_name must be a non-empty string.")

        # Observers see the event before any handler can emit a nested one.
        for observer in list(self._observers):
            observer(Event(event_name, payload))

        for matcher, handler in list(self._subscriptions):
            if _matches(matcher, event_name):
                handler(payload)

    def to_callback(self, event_name: str, default: Optional[Any] = None) -> Callable[..., None]:
        """Returns a callable that emits `event_name` with its argument."""
        _normalise(event_name)

        def callback(payload: Any = default) -> None:
            self.emit(event_name, payload)

        return callback
