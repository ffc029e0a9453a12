import logging
import sys
from pathlib import Path
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from tavern.application.services.event_bus import EventBus
from tavern.application.services.event_log import register_event_log_handlers
from tavern.domain.events import ChangeSetDroppedEvent, LevelUpAppliedEvent


class _Ping:
    pass


class _Pong:
    pass


class EventBusTests(unittest.TestCase):
    def test_publish_notifies_handlers_in_subscription_order(self) -> None:
        bus = EventBus()
        seen: list[str] = []

        bus.subscribe(_Ping, lambda evt: seen.append("first"))
        bus.subscribe(_Ping, lambda evt: seen.append("second"))
        bus.subscribe(_Pong, lambda evt: seen.append("pong"))

        bus.publish(_Ping())

        self.assertEqual(["first", "second"], seen)

    def test_priority_orders_handlers(self) -> None:
        bus = EventBus()
        seen: list[str] = []

        bus.subscribe(_Ping, lambda evt: seen.append("late"), priority=500)
        bus.subscribe(_Ping, lambda evt: seen.append("early"), priority=10)

        bus.publish(_Ping())

        self.assertEqual(["early", "late"], seen)

    def test_failing_handler_does_not_stop_others(self) -> None:
        bus = EventBus()
        seen: list[str] = []

        def _boom(_event) -> None:
            raise RuntimeError("handler broke")

        bus.subscribe(_Ping, _boom, priority=1)
        bus.subscribe(_Ping, lambda evt: seen.append("survivor"))

        with self.assertLogs("tavern.application.services.event_bus", level="ERROR"):
            bus.publish(_Ping())

        self.assertEqual(["survivor"], seen)
        self.assertEqual(1, len(bus.last_publish_errors()))

    def test_unsubscribe(self) -> None:
        bus = EventBus()
        seen: list[str] = []

        unsubscribe = bus.subscribe(_Ping, lambda evt: seen.append("x"))
        unsubscribe()
        bus.publish(_Ping())

        self.assertEqual([], seen)
        self.assertEqual(0, bus.handler_count(_Ping))

    def test_event_log_handlers_write_to_events_logger(self) -> None:
        bus = EventBus()
        register_event_log_handlers(bus)

        with self.assertLogs("tavern.events", level=logging.INFO) as captured:
            bus.publish(LevelUpAppliedEvent(3, 1, 2, 10, 8, 1, 3))
            bus.publish(ChangeSetDroppedEvent(character_id=3, reason="invalid JSON"))

        self.assertIn("reached level 2", captured.output[0])
        self.assertTrue(captured.output[1].startswith("WARNING"))


if __name__ == "__main__":
    unittest.main()
