# Copyright ©, 2022-present, Lightspark Group, Inc. - All Rights Reserved

from abc import ABC, abstractmethod
from typing import Callable, Generic, List, Optional, TypeVar

T = TypeVar("T")

Unsubscribe = Callable[[], None]


def _identity_equal(a: object, b: object) -> bool:
    return a is b


class IObserver(ABC, Generic[T]):
    """Read-only view of a value published by a single writer."""

    @abstractmethod
    def get_current_value(self) -> T:
        """Returns the most recently published value, for late subscribers."""

    @abstractmethod
    def subscribe(self, on_value_changed: Callable[[T], None]) -> Unsubscribe:
        """
        Registers a callback invoked with each newly published value.

        Args:
            on_value_changed: called synchronously on every change.

        Returns:
            A function that removes the subscription. Calling it twice is a no-op.
        """


class ObservableValue(IObserver[T]):
    """
    A value with a list of subscribers that are notified when it changes. The owner
    writes through set_value_and_notify_observers; everyone else should be handed
    the observer view so they cannot write.
    """

    def __init__(
        self,
        initial_value: T,
        is_equal: Optional[Callable[[T, T], bool]] = None,
    ) -> None:
        self._value = initial_value
        self._is_equal = is_equal or _identity_equal
        self._subscribers: List[Callable[[T], None]] = []

    @property
    def observer(self) -> IObserver[T]:
        return _ReadOnlyObserver(self)

    def get_current_value(self) -> T:
        return self._value

    def set_value_and_notify_observers(self, value: T) -> bool:
        """Publishes value unless it equals the current one. Returns whether subscribers were notified."""
        if self._is_equal(self._value, value):
            return False
        self._value = value
        # Copy so callbacks can unsubscribe while being notified.
        for subscriber in list(self._subscribers):
            subscriber(value)
        return True

    def subscribe(self, on_value_changed: Callable[[T], None]) -> Unsubscribe:
        self._subscribers.append(on_value_changed)

        def unsubscribe() -> None:
            if on_value_changed in self._subscribers:
                self._subscribers.remove(on_value_changed)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)


class _ReadOnlyObserver(IObserver[T]):
    def __init__(self, observable: ObservableValue[T]) -> None:
        self._observable = observable

    def get_current_value(self) -> T:
        return self._observable.get_current_value()

    def subscribe(self, on_value_changed: Callable[[T], None]) -> Unsubscribe:
        return self._observable.subscribe(on_value_changed)
