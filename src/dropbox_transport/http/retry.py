"""Retry loop for requests that fail with transient server errors.

Only two failure kinds are retried:

- :class:`~dropbox_transport.exceptions.RetryError` (HTTP 503, and its
  :class:`~dropbox_transport.exceptions.RateLimitError` subclass for
  HTTP 429), waiting the failure's ``backoff`` first;
- :class:`~dropbox_transport.exceptions.ServerError` (HTTP 500),
  retried immediately.

Every other exception, including caller-defined ones raised by the
operation, propagates on first occurrence. When the retries are used
up, the last failure is re-raised unchanged.

Backoff waits are interruptible: pass a ``threading.Event`` as
``cancel_event`` and setting it cuts the current wait short. The loop
still runs to completion and the event is left set, so the caller can
observe the cancellation once the call returns or raises.
"""

import logging
import threading
import time
from functools import wraps
from typing import Callable, Optional, TypeVar

from ..exceptions import DbxError, RateLimitError, RetryError, ServerError
from .metrics import metrics

logger = logging.getLogger(__name__)

T = TypeVar("T")


def backoff_wait(seconds: float, cancel_event: Optional[threading.Event] = None) -> bool:
    """Block for ``seconds`` unless ``cancel_event`` is set first.

    Waits longer than ``threading.TIMEOUT_MAX`` are capped to it.

    :return: True if the wait was cut short by ``cancel_event``
    """
    seconds = min(seconds, threading.TIMEOUT_MAX)
    if cancel_event is None:
        time.sleep(seconds)
        return False
    return cancel_event.wait(seconds)


def run_and_retry(
    max_retries: int,
    operation: Callable[[], T],
    cancel_event: Optional[threading.Event] = None,
    label: str = "request",
) -> T:
    """Run ``operation``, retrying retryable failures up to ``max_retries`` times.

    :param max_retries: Retries after the first attempt; 0 means one attempt
    :type max_retries: int
    :param operation: Zero-argument callable performing one attempt
    :type operation: Callable[[], T]
    :param cancel_event: Optional event that interrupts backoff waits
    :type cancel_event: Optional[threading.Event]
    :param label: Name used for metrics and log messages
    :type label: str
    :return: The value returned by the first successful attempt
    :rtype: T
    :raises ValueError: If ``max_retries`` is negative
    """
    if max_retries < 0:
        raise ValueError(f"'max_retries' must be non-negative, got {max_retries}")

    num_retries = 0
    while True:
        thrown: DbxError
        try:
            result = operation()
        except RetryError as e:
            thrown = e
            backoff = e.backoff
            if isinstance(e, RateLimitError):
                metrics.record_throttle(label)
        except ServerError as e:
            thrown = e
            backoff = 0
        else:
            if num_retries > 0:
                metrics.record_success_after_retry(label, num_retries + 1)
            return result

        if num_retries >= max_retries:
            if max_retries > 0:
                metrics.record_exhausted(label)
                logger.warning(
                    f"{label} failed after {num_retries + 1} attempts: {thrown}"
                )
            raise thrown

        if backoff > 0:
            if backoff_wait(backoff, cancel_event):
                logger.info(f"Backoff for {label} interrupted, retrying now")

        num_retries += 1
        metrics.record_retry(label, num_retries, backoff)
        logger.info(
            f"Retry {num_retries}/{max_retries} for {label} after "
            f"{type(thrown).__name__} (backoff {backoff}s)"
        )


def dbx_retry(
    max_retries: int,
    cancel_event: Optional[threading.Event] = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Create a decorator that runs the wrapped function under :func:`run_and_retry`.

    :param max_retries: Retries after the first attempt
    :type max_retries: int
    :param cancel_event: Optional event that interrupts backoff waits
    :type cancel_event: Optional[threading.Event]
    :return: Decorator function
    :rtype: Callable[[Callable[..., T]], Callable[..., T]]
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            return run_and_retry(
                max_retries,
                lambda: func(*args, **kwargs),
                cancel_event=cancel_event,
                label=func.__name__,
            )

        return wrapper

    return decorator
