"""Tag Manager API request helpers: transient-error retries and pagination."""

from __future__ import annotations

import logging
import random
import time
from typing import Any, Callable, TypeVar

from googleapiclient.errors import HttpError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


def _status_code_from_http_error(error: HttpError) -> int | None:
    resp = getattr(error, "resp", None)
    status = getattr(resp, "status", None)
    if isinstance(status, str) and status.isdigit():
        return int(status)
    return status if isinstance(status, int) else None


def is_retryable_google_api_error(error: BaseException) -> bool:
    """Return True for rate limiting, server errors and transport failures."""
    if isinstance(error, HttpError):
        return _status_code_from_http_error(error) in _RETRYABLE_STATUS_CODES
    return isinstance(error, (TimeoutError, ConnectionError, OSError))


def backoff_delay(attempt: int, *, base_delay_s: float, max_delay_s: float) -> float:
    """Exponential backoff capped at `max_delay_s`, jittered to [0.5x, 1.5x)."""
    delay_s = min(max_delay_s, base_delay_s * (2**attempt))
    return delay_s * (0.5 + random.random())


def execute_with_retry(
    fn: Callable[[], T],
    *,
    retries: int = 4,
    base_delay_s: float = 0.5,
    max_delay_s: float = 8.0,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run a single Tag Manager API request, retrying transient failures.

    Args:
        fn: Callable that performs one request and returns the decoded payload
            (typically `request.execute`).
        retries: Number of retries after the initial attempt.
        base_delay_s: Base delay in seconds.
        max_delay_s: Max delay in seconds.
        sleep: Sleep function, replaceable in tests.

    Returns:
        The return value of `fn()`.

    Raises:
        The last exception if all retries fail or the error is non-retryable.
    """
    attempt = 0
    while True:
        try:
            return fn()
        except Exception as exc:
            if attempt >= retries or not is_retryable_google_api_error(exc):
                raise
            delay_s = backoff_delay(attempt, base_delay_s=base_delay_s, max_delay_s=max_delay_s)
            logger.warning(
                "Tag Manager API request failed (%s); retry %d/%d in %.2fs",
                exc,
                attempt + 1,
                retries,
                delay_s,
            )
            sleep(delay_s)
            attempt += 1


def list_all_pages(
    fetch_page: Callable[[str | None], dict[str, Any]],
    *,
    items_field: str,
) -> list[dict[str, Any]]:
    """Collect every item of a paginated Tag Manager list endpoint.

    Args:
        fetch_page: Accepts an optional page token, returns the parsed response.
        items_field: Response field holding the items (e.g. "variable", "workspace").

    Returns:
        Items from all pages in received order; non-dict entries are dropped.
    """
    items: list[dict[str, Any]] = []
    page_token: str | None = None

    while True:
        page = fetch_page(page_token)
        raw_items = page.get(items_field) or []
        if isinstance(raw_items, list):
            items.extend(item for item in raw_items if isinstance(item, dict))
        page_token = page.get("nextPageToken")
        if not page_token:
            return items
