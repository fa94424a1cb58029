"""Time-bounded store I/O. No operation against the blob store or ledger may hang a request."""

import asyncio
from typing import Awaitable, Optional, TypeVar

from docvault.application.exceptions import OperationTimeout

T = TypeVar("T")


async def bounded(awaitable: Awaitable[T], timeout: Optional[float], operation: str) -> T:
    """Await with a deadline. Raises OperationTimeout (retryable) when it expires."""
    if timeout is None:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise OperationTimeout(f"{operation} timed out after {timeout:g}s") from e
