import asyncio
from typing import Awaitable, TypeVar

from services.errors import StoreUnavailable

T = TypeVar("T")


async def bounded(awaitable: Awaitable[T], seconds: float) -> T:
    """
    Await a store call, failing with StoreUnavailable instead of hanging
    :return: the awaited result
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError:
        raise StoreUnavailable(f"Store did not respond within {seconds:g}s")
