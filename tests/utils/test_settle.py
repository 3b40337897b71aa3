"""Tests for the settle-all fan-out helper."""

import asyncio

import pytest

from delivery_reconciler.utils.settle import settle_all


async def _value(v, delay=0.0):
    await asyncio.sleep(delay)
    return v


async def _fail(message):
    await asyncio.sleep(0)
    raise RuntimeError(message)


class TestSettleAll:
    """Test settle_all captures every outcome."""

    @pytest.mark.asyncio
    async def test_preserves_input_order(self):
        settled = await settle_all([_value("slow", 0.02), _value("fast")])
        assert [s.value for s in settled] == ["slow", "fast"]
        assert all(s.ok for s in settled)

    @pytest.mark.asyncio
    async def test_failures_do_not_abort_siblings(self):
        settled = await settle_all([_value(1), _fail("boom"), _value(3)])

        assert [s.ok for s in settled] == [True, False, True]
        assert settled[2].value == 3
        assert isinstance(settled[1].error, RuntimeError)
        assert str(settled[1].error) == "boom"
        assert settled[1].value is None

    @pytest.mark.asyncio
    async def test_empty_input(self):
        assert await settle_all([]) == []

    @pytest.mark.asyncio
    async def test_accepts_generator(self):
        settled = await settle_all(_value(i) for i in range(3))
        assert [s.value for s in settled] == [0, 1, 2]
