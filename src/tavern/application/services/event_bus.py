from collections import defaultdict
import logging
from typing import Callable, DefaultDict, List, Type


Handler = Callable[[object], None]


class EventBus:
    """Synchronous in-process pub/sub; a failing handler never stops the others."""

    def __init__(self) -> None:
        self._handlers: DefaultDict[Type[object], List[tuple[int, int, Handler]]] = defaultdict(list)
        self._sequence = 0
        self._errors: List[Exception] = []
        self._logger = logging.getLogger(__name__)

    def subscribe(self, event_type: Type[object], handler: Handler, *, priority: int = 100) -> Callable[[], None]:
        entry = (int(priority), self._sequence, handler)
        self._sequence += 1
        rows = self._handlers[event_type]
        rows.append(entry)
        rows.sort(key=lambda row: (row[0], row[1]))

        def unsubscribe() -> None:
            if entry in rows:
                rows.remove(entry)

        return unsubscribe

    def handler_count(self, event_type: Type[object]) -> int:
        return len(self._handlers.get(event_type, ()))

    def publish(self, event: object) -> None:
        self._errors = []
        event_name = type(event).__name__
        for priority, _, handler in list(self._handlers.get(type(event), ())):
            try:
                handler(event)
            except Exception as exc:
                self._errors.append(exc)
                self._logger.exception(
                    "Handler %s failed for %s",
                    getattr(handler, "__qualname__", repr(handler)),
                    event_name,
                    extra={"event_type": event_name, "priority": priority},
                )

    def last_publish_errors(self) -> List[Exception]:
        return list(self._errors)
