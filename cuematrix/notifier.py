"""Synchronous change fan-out to registered observers."""

from __future__ import annotations

import logging
from typing import Callable

from cuematrix.models import ChangeEvent


logger = logging.getLogger(__name__)

Observer = Callable[[ChangeEvent], None]


class Subscription:
    """Handle returned by :meth:`ChangeNotifier.subscribe`."""

    def __init__(self, notifier: "ChangeNotifier", observer: Observer):
        self._notifier = notifier
        self.observer = observer

    @property
    def active(self) -> bool:
        return self._notifier.is_subscribed(self.observer)

    def cancel(self):
        self._notifier.unsubscribe(self.observer)


class ChangeNotifier:
    """Calls every observer, in registration order, for each event.

    An observer that raises is logged and skipped; the remaining observers
    still receive the event and the exception never reaches the mutator.
    """

    def __init__(self):
        self._observers: list[Observer] = []

    def __len__(self) -> int:
        return len(self._observers)

    def subscribe(self, observer: Observer) -> Subscription:
        if not callable(observer):
            raise TypeError(f"observer must be callable, got {observer!r}")
        self._observers.append(observer)
        return Subscription(self, observer)

    def unsubscribe(self, observer: Observer) -> bool:
        try:
            self._observers.remove(observer)
        except ValueError:
            return False
        return True

    def is_subscribed(self, observer: Observer) -> bool:
        return observer in self._observers

    def notify(self, event: ChangeEvent):
        # Iterate over a copy so observers may unsubscribe mid-delivery.
        for observer in list(self._observers):
            try:
                observer(event)
            except Exception:
                logger.exception("change observer %r failed on %s event", observer, event.kind.value)
