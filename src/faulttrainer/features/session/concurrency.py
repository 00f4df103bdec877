from __future__ import annotations

import asyncio
import os
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any

_WORKERS_ENV = "FAULTTRAINER_SESSION_WORKERS"

_executor: ThreadPoolExecutor | None = None
_executor_lock = threading.Lock()


def _worker_count() -> int:
    raw = os.environ.get(_WORKERS_ENV, "")
    try:
        requested = int(raw)
    except ValueError:
        requested = os.cpu_count() or 1
    return max(1, min(32, requested))


def _get_executor() -> ThreadPoolExecutor:
    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(max_workers=_worker_count(), thread_name_prefix="fault-session")
        return _executor


def shutdown_executor() -> None:
    """Stop the session worker pool; the next call to run_blocking starts a fresh one."""

    global _executor
    with _executor_lock:
        executor, _executor = _executor, None
    if executor is not None:
        executor.shutdown(wait=True)


async def run_blocking(func: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Any:
    loop = asyncio.get_running_loop()
    bound = partial(func, *args, **kwargs)
    return await loop.run_in_executor(_get_executor(), bound)
