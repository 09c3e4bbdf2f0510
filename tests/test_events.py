import unittest

from events import Event, EventBroker, EventPattern, field_change_event


class EventBrokerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.broker = EventBroker()
        self.received = []

    def test_exact_subscription_receives_payload(self) -> None:
        self.broker.subscribe("basket:changed", self.received.append)
        self.broker.emit("basket:changed", {"basket": ["a"]})
        self.broker.emit("items:render", {"catalog": []})

        self.assertEqual(self.received, [{"basket": ["a"]}])

    def test_family_pattern_matches_per_field_events(self) -> None:
        self.broker.subscribe("order.*:change", self.received.append)

        self.broker.emit("order.address:change", "address")
        self.broker.emit("order.payment:change", "payment")
        self.broker.emit("contacts.email:change", "email")
        self.broker.emit("order:changed", "draft")

        self.assertEqual(self.received, ["address", "payment"])

    def test_pattern_object_and_string_are_equivalent(self) -> None:
        self.assertEqual(EventPattern.parse("contacts.*:change"), EventPattern("contacts.", ":change"))
        self.broker.subscribe(EventPattern("contacts.", ":change"), self.received.append)
        self.broker.unsubscribe("contacts.*:change", self.received.append)
        self.broker.emit("contacts.phone:change", "phone")

        self.assertEqual(self.received, [])

    def test_pattern_with_more_than_one_star_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.broker.subscribe("order.*:*", self.received.append)

    def test_handlers_called_in_subscription_order(self) -> None:
        calls = []
        self.broker.subscribe("order.*:change", lambda _: calls.append("family"))
        self.broker.subscribe("order.address:change", lambda _: calls.append("exact"))
        self.broker.subscribe("order.*:change", lambda _: calls.append("family-2"))

        self.broker.emit("order.address:change")

        self.assertEqual(calls, ["family", "exact", "family-2"])

    def test_overlapping_matchers_fire_independently(self) -> None:
        # Same handler under two matchers that both match: it runs twice.
        self.broker.subscribe("order.address:change", self.received.append)
        self.broker.subscribe("order.*:change", self.received.append)

        self.broker.emit("order.address:change", "x")

        self.assertEqual(self.received, ["x", "x"])

    def test_same_matcher_twice_registers_once(self) -> None:
        self.broker.subscribe("basket:changed", self.received.append)
        self.broker.subscribe("basket:changed", self.received.append)

        self.broker.emit("basket:changed", 1)

        self.assertEqual(self.received, [1])

    def test_unsubscribe_is_idempotent(self) -> None:
        self.broker.unsubscribe("basket:changed", self.received.append)
        self.broker.subscribe("basket:changed", self.received.append)
        self.broker.unsubscribe("basket:changed", self.received.append)
        self.broker.unsubscribe("basket:changed", self.received.append)

        self.broker.emit("basket:changed", 1)

        self.assertEqual(self.received, [])

    def test_subscribe_all_sees_every_event_in_emission_order(self) -> None:
        seen = []
        self.broker.subscribe_all(seen.append)
        self.broker.subscribe("order.*:change", lambda _: self.broker.emit("order:changed", "draft"))

        self.broker.emit("order.address:change", "a")
        self.broker.emit("basket:changed")

        self.assertEqual(
            seen,
            [
                Event("order.address:change", "a"),
                Event("order:changed", "draft"),
                Event("basket:changed", None),
            ],
        )

    def test_reentrant_emit_is_delivered(self) -> None:
        self.broker.subscribe("order:submit", lambda _: self.broker.emit("contacts:open", "opened"))
        self.broker.subscribe("contacts:open", self.received.append)

        self.broker.emit("order:submit")

        self.assertEqual(self.received, ["opened"])

    def test_subscription_added_during_emit_waits_for_next_emit(self) -> None:
        def subscribe_more(_):
            self.broker.subscribe("basket:changed", self.received.append)

        self.broker.subscribe("basket:changed", subscribe_more)
        self.broker.emit("basket:changed", 1)
        self.broker.emit("basket:changed", 2)

        self.assertEqual(self.received, [2])

    def test_unsubscribe_all_stops_observer(self) -> None:
        seen = []
        self.broker.subscribe_all(seen.append)
        self.broker.emit("basket:changed", 1)

        self.broker.unsubscribe_all(seen.append)
        self.broker.unsubscribe_all(seen.append)
        self.broker.emit("basket:changed", 2)

        self.assertEqual(seen, [Event("basket:changed", 1)])

    def test_handler_exception_reaches_emitter(self) -> None:
        def broken(_):
            raise RuntimeError("render failed")

        self.broker.subscribe("items:render", broken)
        self.broker.subscribe("items:render", self.received.append)

        with self.assertRaises(RuntimeError):
            self.broker.emit("items:render", {"catalog": []})
        self.assertEqual(self.received, [])

    def test_to_callback_emits_named_event(self) -> None:
        self.broker.subscribe("card:select", self.received.append)
        on_click = self.broker.to_callback("card:select")

        on_click("product-1")

        self.assertEqual(self.received, ["product-1"])

    def test_empty_event_name_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.broker.emit("")
        with self.assertRaises(ValueError):
            self.broker.subscribe("  ", self.received.append)

    def test_field_change_event_name(self) -> None:
        self.assertEqual(field_change_event("contacts", "email"), "contacts.email:change")


if __name__ == "__main__":
    unittest.main(verbosity=2)
