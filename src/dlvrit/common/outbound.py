"""Bounded execution of blocking SDK calls from async request handlers."""

import asyncio
import functools
from typing import Any, Callable, TypeVar

from dlvrit.common.exceptions import CollaboratorTimeoutError

T = TypeVar("T")


async def call_blocking(
    collaborator: str,
    timeout: float,
    func: Callable[..., T],
    *args: Any,
    **kwargs: Any,
) -> T:
    """Run ``func`` in a worker thread, raising CollaboratorTimeoutError past ``timeout``.

    The worker is not cancelled on timeout; the upstream call may still land.
    """
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(functools.partial(func, *args, **kwargs)),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        raise CollaboratorTimeoutError(collaborator, timeout) from None
