from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


def run_with_callback(
    aw: Awaitable[Any], fn: Callable[[Any, Any], Any]
) -> asyncio.Task:
    """
    Schedule ``aw`` and report its outcome as ``fn(error, result)``.

    ``fn`` is called exactly once: ``fn(None, result)`` on success,
    ``fn(exc, None)`` on failure. Must be called from a running loop.
    """

    async def runner():
        try:
            result = await aw
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.debug(f"Reporting failure to callback: {exc!r}")
            fn(exc, None)
            return None
        fn(None, result)
        return result

    return asyncio.get_running_loop().create_task(runner())
