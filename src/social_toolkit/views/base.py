"""
Live view base class.

A 'LiveView' owns one or more store subscriptions and the value derived from
their latest snapshots. Subscriptions are uncorrelated: each one may deliver at
any time and in any order relative to the others, so every view recomputes its
value from whatever it last received on each channel. 'close' unsubscribes
everything at once; after it returns the value is frozen and no listener is
called again.
"""

from abc import ABC
from collections.abc import Callable
from typing import Generic, TypeVar

from loguru import logger

from social_toolkit.store.base import Subscription

T = TypeVar("T")


class LiveView(ABC, Generic[T]):
    def __init__(self, initial: T) -> None:
        self._value = initial
        self._subscriptions: list[Subscription] = []
        self._listeners: list[Callable[[T], None]] = []
        self._closed = False

    @property
    def value(self) -> T:
        return self._value

    @property
    def closed(self) -> bool:
        return self._closed

    def on_change(self, listener: Callable[[T], None]) -> None:
        self._listeners.append(listener)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions.clear()
        self._listeners.clear()
        logger.debug(f"Closed {self.__class__.__name__}")

    def __enter__(self) -> "LiveView[T]":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _track(self, subscription: Subscription) -> None:
        if self._closed:
            subscription.unsubscribe()
            return
        self._subscriptions.append(subscription)

    def _publish(self, value: T) -> None:
        if self._closed:
            return
        self._value = value
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception:
                logger.exception(f"Listener of {self.__class__.__name__} failed")
