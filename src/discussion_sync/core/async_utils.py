"""Async utilities for bridging blocking HTTP calls to the event loop."""

import asyncio
import logging
from typing import Any, Callable, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)


async def run_sync(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a synchronous function in a thread pool without blocking the event loop.

    Used to wrap the blocking GraphQL calls of ``GitHubClient`` so that
    Discord gateway traffic keeps flowing while a request is in flight.

    Args:
        func: Synchronous function to call
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)

    Example:
        client = GitHubClient(config)
        comments = await run_sync(client.list_comments, 42)
    """
    return await asyncio.to_thread(func, *args, **kwargs)
