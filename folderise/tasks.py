"""Thread-pool fan-out used wherever independent I/O calls run side by side."""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Any, Callable, Sequence

MAX_WORKERS = 8


@dataclass(frozen=True)
class Settled:
    ok: bool
    value: Any = None
    error: BaseException | None = None


class TaskTimeout(TimeoutError):
    """Raised when a fan-out does not finish within its timeout."""


def _run(
    calls: Sequence[Callable[[], Any]],
    timeout: float | None,
    thread_name_prefix: str,
    *,
    settle_all: bool,
) -> list[Any]:
    if not calls:
        return []

    executor = ThreadPoolExecutor(
        max_workers=min(MAX_WORKERS, len(calls)),
        thread_name_prefix=thread_name_prefix,
    )
    deadline = None if timeout is None else time.monotonic() + timeout
    try:
        futures = [executor.submit(call) for call in calls]
        results: list[Any] = []
        for future in futures:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            try:
                value = future.result(timeout=remaining)
            except FutureTimeoutError:
                error = TaskTimeout(f"Timed out after {timeout}s")
                if not settle_all:
                    raise error from None
                results.append(Settled(False, error=error))
            except Exception as exc:
                if not settle_all:
                    raise
                results.append(Settled(False, error=exc))
            else:
                results.append(Settled(True, value=value) if settle_all else value)
        return results
    finally:
        # Never block on a hung worker; it finishes on its own.
        executor.shutdown(wait=False, cancel_futures=True)


def gather(
    calls: Sequence[Callable[[], Any]],
    *,
    timeout: float | None = None,
    thread_name_prefix: str = "folderise",
) -> list[Any]:
    """Run calls concurrently; return values in order or raise the first failure."""
    return _run(calls, timeout, thread_name_prefix, settle_all=False)


def settle(
    calls: Sequence[Callable[[], Any]],
    *,
    timeout: float | None = None,
    thread_name_prefix: str = "folderise",
) -> list[Settled]:
    """Run calls concurrently and wait for every one of them, failures included."""
    return _run(calls, timeout, thread_name_prefix, settle_all=True)
