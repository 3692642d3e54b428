"""Time-bounded awaitables shared by every engine stage."""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from resume_review.ingestion.errors import StageTimeoutError

T = TypeVar("T")


async def bounded(operation: Awaitable[T], seconds: float, stage: str) -> T:
    """Await ``operation`` for at most ``seconds``.

    Returns the operation's result, or raises StageTimeoutError naming the
    stage. The underlying operation is cancelled on expiry; work already
    handed to the engine worker thread finishes there and is discarded.
    """
    try:
        return await asyncio.wait_for(operation, timeout=seconds)
    except asyncio.TimeoutError:
        raise StageTimeoutError(stage, seconds) from None
