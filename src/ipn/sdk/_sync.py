"""Synchronous bridge for the async verification entry points.

WSGI frameworks and scripts call verification from plain threads.
``run_sync()`` drives a coroutine to completion from such a thread:

  - No event loop in this thread: ``asyncio.run()``
  - Loop already running here (Jupyter, sync code called from async):
    the coroutine is handed to a shared daemon-thread loop and this
    thread blocks on the result
"""

from __future__ import annotations

import asyncio
import threading
from typing import Coroutine, TypeVar

T = TypeVar("T")

_bridge_loop: asyncio.AbstractEventLoop | None = None
_bridge_lock = threading.Lock()


def _bridge() -> asyncio.AbstractEventLoop:
    """Return the shared background loop, starting it on first use."""
    global _bridge_loop
    with _bridge_lock:
        if _bridge_loop is None or _bridge_loop.is_closed():
            _bridge_loop = asyncio.new_event_loop()
            threading.Thread(
                target=_bridge_loop.run_forever,
                name="ipn-sync-bridge",
                daemon=True,
            ).start()
    return _bridge_loop


def run_sync(coro: Coroutine[..., ..., T]) -> T:
    """Run *coro* to completion and return its result.

    Exceptions raised by the coroutine propagate to the caller.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    return asyncio.run_coroutine_threadsafe(coro, _bridge()).result()
