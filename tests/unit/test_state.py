"""
Tests for MutableState
"""
import asyncio
from contextlib import aclosing

import pytest

from cookbook.state import MutableState


@pytest.mark.unit
class TestMutableState:
    """Tests for value handling"""

    def test_initial_value(self):
        assert MutableState(3).value == 3

    def test_setter(self):
        state = MutableState("a")
        state.value = "b"
        assert state.value == "b"


@pytest.mark.unit
@pytest.mark.asyncio
class TestMutableStateUpdates:
    """Tests for following a state"""

    async def test_emits_current_value_first(self):
        state = MutableState(1)
        async with aclosing(state.updates()) as updates:
            assert await updates.__anext__() == 1

    async def test_emits_changes(self):
        state = MutableState(1)
        async with aclosing(state.updates()) as updates:
            await updates.__anext__()
            state.set(2)
            assert await asyncio.wait_for(updates.__anext__(), 1) == 2

    async def test_equal_value_is_not_a_change(self):
        state = MutableState(1)
        async with aclosing(state.updates()) as updates:
            await updates.__anext__()
            state.set(1)
            with pytest.raises(asyncio.TimeoutError):
                await asyncio.wait_for(updates.__anext__(), 0.1)

    async def test_slow_consumer_sees_latest(self):
        state = MutableState(0)
        async with aclosing(state.updates()) as updates:
            await updates.__anext__()
            for value in range(1, 6):
                state.set(value)
            assert await asyncio.wait_for(updates.__anext__(), 1) == 5

    async def test_closing_removes_subscriber(self):
        state = MutableState(0)
        async with aclosing(state.updates()) as updates:
            await updates.__anext__()
            assert state.subscriber_count == 1
        assert state.subscriber_count == 0
