"""
Outcome watching: wait for a transaction receipt or a cross-chain execution to
reach a terminal state.

Primary entry points
--------------------
- OutcomeWatcher(fetch, ...).watch(subject, timeout=..., poll_interval=..., cancel=..., on_poll=...)
    Generic loop. Tries an optional push-style `wait` first, then polls `fetch`
    until a terminal value, the deadline, or cancellation.

- wait_for_receipt(provider, tx_hash, ...)
    Uses provider.wait_for_transaction_receipt / wait_for_transaction when
    available, polling provider.get_transaction_receipt otherwise.

- wait_for_execution(adapter, operation_id, ...)
    Polls adapter.get_operation_status until DONE/COMPLETED/FAILED.

Timeouts are wall-clock deadlines measured from the start of the watch;
`timeout=None` waits until a terminal value or cancellation. Both end the
watch with None. Fetch errors and on_poll observer errors never end a watch.
"""
from __future__ import annotations
import asyncio
import logging
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union
from .capabilities import HasOperationStatus, HasReceiptLookup, has_capability
from .common import maybe_await, pick
from .config import get_settings
from .observability import POLLS, WATCH_LAT

log = logging.getLogger(__name__)

Fetch = Callable[[str], Union[Any, Awaitable[Any]]]
Wait = Callable[[str, Optional[float]], Union[Any, Awaitable[Any]]]
OnPoll = Callable[[int], Any]

_UNSET: Any = object()


class ExecutionStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    ACTION_REQUIRED = "ACTION_REQUIRED"
    DONE = "DONE"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    UNKNOWN = "UNKNOWN"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL

    @property
    def is_success(self) -> bool:
        return self in (ExecutionStatus.DONE, ExecutionStatus.COMPLETED)

    @classmethod
    def coerce(cls, value: Any) -> "ExecutionStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            return cls.UNKNOWN


_TERMINAL = frozenset({ExecutionStatus.DONE, ExecutionStatus.COMPLETED, ExecutionStatus.FAILED})


def status_of(result: Any) -> ExecutionStatus:
    """Reads the status from a status string, a mapping, or an object with `.status`."""
    if result is None:
        return ExecutionStatus.UNKNOWN
    if isinstance(result, (str, ExecutionStatus)):
        return ExecutionStatus.coerce(result)
    if isinstance(result, dict):
        return ExecutionStatus.coerce(result.get("status"))
    return ExecutionStatus.coerce(getattr(result, "status", None))


def _is_set(cancel: Any) -> bool:
    return cancel is not None and cancel.is_set()


async def _sleep_or_cancel(delay: float, cancel: Any) -> None:
    if isinstance(cancel, asyncio.Event):
        try:
            await asyncio.wait_for(cancel.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass
        return
    await asyncio.sleep(delay)


class OutcomeWatcher:
    """
    One watcher per kind of subject; every `watch` call keeps its own session
    state, so concurrent watches never interfere.

    fetch        returns the current value for a subject (None or non-terminal = keep polling)
    is_terminal  decides whether a fetched value ends the watch (default: not None)
    wait         optional push-style waiter, tried once before polling
    sleep        awaitable sleep(delay, cancel); injectable for tests
    clock        monotonic clock; injectable for tests
    """

    def __init__(self, fetch: Fetch, *, is_terminal: Optional[Callable[[Any], bool]] = None,
                 wait: Optional[Wait] = None, kind: str = "generic",
                 sleep: Optional[Callable[[float, Any], Awaitable[None]]] = None,
                 clock: Callable[[], float] = time.monotonic):
        self._fetch = fetch
        self._is_terminal = is_terminal or (lambda r: r is not None)
        self._wait = wait
        self._kind = kind
        self._sleep = sleep or _sleep_or_cancel
        self._clock = clock

    async def watch(self, subject: str, *, timeout: Optional[float] = None,
                    poll_interval: float = 1.0, cancel: Any = None,
                    on_poll: Optional[OnPoll] = None) -> Optional[Any]:
        start = self._clock()
        res = await self._run(subject, start, timeout, poll_interval, cancel, on_poll)
        outcome = "terminal" if res is not None else "none"
        WATCH_LAT.labels(kind=self._kind, outcome=outcome).observe(max(self._clock() - start, 0.0))
        log.debug("Watch %s(%s) finished: %s", self._kind, subject, outcome)
        return res

    async def _run(self, subject, start, timeout, poll_interval, cancel, on_poll):
        if _is_set(cancel):
            return None

        if self._wait is not None:
            res = await self._push(subject, timeout)
            if res is not None and self._is_terminal(res):
                return res

        attempt = 0
        while True:
            if _is_set(cancel):
                log.debug("Watch %s(%s) cancelled after %d polls", self._kind, subject, attempt)
                return None

            try:
                res = await maybe_await(self._fetch(subject))
            except Exception as e:
                log.debug("Watch %s(%s) fetch failed: %s", self._kind, subject, e)
                res = None
            POLLS.labels(kind=self._kind).inc()
            if res is not None and self._is_terminal(res):
                return res

            attempt += 1
            if on_poll is not None:
                try:
                    await maybe_await(on_poll(attempt))
                except Exception as e:
                    log.debug("on_poll observer failed: %s", e)

            delay = poll_interval
            if timeout is not None:
                remaining = timeout - (self._clock() - start)
                if remaining <= 0:
                    log.debug("Watch %s(%s) timed out after %d polls", self._kind, subject, attempt)
                    return None
                delay = min(delay, remaining)
            await self._sleep(delay, cancel)

    async def _push(self, subject: str, timeout: Optional[float]) -> Optional[Any]:
        try:
            return await asyncio.wait_for(maybe_await(self._wait(subject, timeout)), timeout)
        except Exception as e:
            log.debug("Push wait for %s(%s) failed, falling back to polling: %s", self._kind, subject, e)
            return None


async def wait_for_receipt(provider: Any, tx_hash: str, *, timeout: Optional[float] = _UNSET,
                           poll_interval: Optional[float] = None, cancel: Any = None,
                           on_poll: Optional[OnPoll] = None) -> Optional[Any]:
    """
    Wait for a transaction receipt. Returns the receipt, or None on timeout or
    cancellation. Unset timeout and poll interval come from Settings.
    """
    if provider is None or not has_capability(provider, HasReceiptLookup):
        raise ValueError("Provider with get_transaction_receipt required")
    if not tx_hash:
        raise ValueError("tx_hash required")

    settings = get_settings()
    push = pick(provider, ("wait_for_transaction_receipt", "wait_for_transaction"))

    def wait(h: str, t: Optional[float]):
        return push(h) if t is None else push(h, timeout=t)

    watcher = OutcomeWatcher(
        lambda h: provider.get_transaction_receipt(h),
        wait=wait if push else None,
        kind="receipt",
    )
    if timeout is _UNSET:
        timeout = settings.default_timeout_s
    if poll_interval is None:
        poll_interval = settings.default_poll_interval_s
    return await watcher.watch(tx_hash, timeout=timeout, poll_interval=poll_interval,
                               cancel=cancel, on_poll=on_poll)


async def wait_for_execution(adapter: Any, operation_id: str, *, timeout: Optional[float] = None,
                             poll_interval: float = 5.0, cancel: Any = None,
                             on_poll: Optional[OnPoll] = None) -> Optional[Any]:
    """
    Wait for a cross-chain operation to finish. Returns the last status result
    (DONE/COMPLETED or FAILED), or None on timeout or cancellation.
    """
    if not has_capability(adapter, HasOperationStatus):
        raise ValueError("Adapter with get_operation_status required")
    if not operation_id:
        raise ValueError("operation_id required")

    push = pick(adapter, ("wait_for_completion",))
    watcher = OutcomeWatcher(
        lambda op: adapter.get_operation_status(op),
        is_terminal=lambda r: status_of(r).is_terminal,
        wait=(lambda op, t: push(op, timeout=t)) if push else None,
        kind="execution",
    )
    return await watcher.watch(operation_id, timeout=timeout, poll_interval=poll_interval,
                               cancel=cancel, on_poll=on_poll)
