import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Settled(Generic[T]):
    """Outcome of one fanned-out task: either a value or the exception it ended with."""

    value: T | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def _bounded(awaitable: Awaitable[T], timeout: float | None) -> T:
    if timeout is None:
        return await awaitable
    return await asyncio.wait_for(awaitable, timeout=timeout)


async def gather_settled(awaitables: list[Awaitable[T]], timeout: float | None = None) -> list[Settled[T]]:
    """
    Run every awaitable concurrently and wait for all of them to settle.

    One failure or timeout never cancels the others. Results keep input order.
    Cancelling the caller cancels every task that is still pending.
    """
    if not awaitables:
        return []

    outcomes = await asyncio.gather(*(_bounded(a, timeout) for a in awaitables), return_exceptions=True)

    settled: list[Settled[T]] = []
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            settled.append(Settled(error=outcome))
        else:
            settled.append(Settled(value=outcome))
    return settled
