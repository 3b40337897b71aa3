"""Settle-all fan-out helper.

``asyncio.gather`` without ``return_exceptions`` propagates the first
failure and leaves the caller blind to sibling results. ``settle_all``
wraps every awaitable so each one produces a ``Settled`` record, and the
batch always completes with one record per input, in input order.
"""

import asyncio
from collections.abc import Awaitable, Iterable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Settled(Generic[T]):
    """Outcome of one awaitable: either ``value`` or ``error`` is meaningful."""

    ok: bool
    value: T | None = None
    error: Exception | None = None


async def _settle(awaitable: Awaitable[T]) -> Settled[T]:
    try:
        return Settled(ok=True, value=await awaitable)
    except Exception as exc:
        return Settled(ok=False, error=exc)


async def settle_all(awaitables: Iterable[Awaitable[T]]) -> list[Settled[T]]:
    """Run awaitables concurrently and wait for every one to finish.

    Exceptions are captured per item; cancellation still propagates.
    """
    return list(await asyncio.gather(*(_settle(aw) for aw in awaitables)))
