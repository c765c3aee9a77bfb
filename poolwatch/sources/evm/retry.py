from typing import Any, Awaitable, Callable, Optional
import logging

import backoff

log = logging.getLogger(__name__)


def linear(factor: float = 1.0):
    """Wait generator for backoff: factor, 2*factor, 3*factor, ..."""
    # Advance past initial .send() call
    yield
    n = 1
    while True:
        yield factor * n
        n += 1


def _log_backoff(details):
    exc = details.get("exception")
    log.warning(f"Attempt {details['tries']} failed: {exc!r}; retrying in {details['wait']:.2f}s")


def _log_giveup(details):
    exc = details.get("exception")
    log.error(f"Giving up after {details['tries']} attempts: {exc!r}")


async def retry_call(
    call: Callable[[], Awaitable[Any]],
    max_tries: int = 3,
    base_delay: float = 1.0,
    before_retry: Optional[Callable[[], Awaitable[Any]]] = None,
) -> Any:
    """
    Run a zero-argument coroutine function with bounded retries.

    After the n-th failure we sleep n * base_delay, await `before_retry`
    (endpoint failover) and try again. The last exception propagates once
    `max_tries` attempts are used up.
    """
    if max_tries < 1:
        raise ValueError(f"max_tries must be >= 1, got {max_tries}")

    attempt = 0

    @backoff.on_exception(
        linear,
        Exception,
        max_tries=max_tries,
        jitter=None,
        on_backoff=_log_backoff,
        on_giveup=_log_giveup,
        logger=None,
        factor=base_delay,
    )
    async def _attempt():
        nonlocal attempt
        attempt += 1
        if attempt > 1 and before_retry is not None:
            await before_retry()
        return await call()

    return await _attempt()
