"""
Observable value holder.

A MutableState keeps the latest value and lets any number of async
consumers follow it. Consumers always see the current value first, then
each later value; a slow consumer skips intermediate values and only sees
the latest one. Setting a value equal to the current one is not a change.
"""

import asyncio
from typing import AsyncIterator, Generic, Set, TypeVar

T = TypeVar("T")


class MutableState(Generic[T]):
    def __init__(self, initial: T):
        self._value = initial
        self._waiters: Set[asyncio.Event] = set()

    @property
    def value(self) -> T:
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        self.set(new_value)

    def set(self, new_value: T) -> None:
        if new_value == self._value:
            return
        self._value = new_value
        for event in list(self._waiters):
            event.set()

    @property
    def subscriber_count(self) -> int:
        return len(self._waiters)

    async def updates(self) -> AsyncIterator[T]:
        event = asyncio.Event()
        self._waiters.add(event)
        try:
            yield self._value
            while True:
                await event.wait()
                event.clear()
                yield self._value
        finally:
            self._waiters.discard(event)

    def __aiter__(self) -> AsyncIterator[T]:
        return self.updates()

    def __repr__(self):
        return f"MutableState({self._value!r})"
