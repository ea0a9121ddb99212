"""
Readiness probing for the forwarded code-server port
"""
import time
from typing import Callable, Optional

import requests

from ...core.constants import READY_TIMEOUT, READY_REQUEST_TIMEOUT
from ...core.exceptions import ReadinessTimeoutError
from ...core.logging import get_logger

logger = get_logger(__name__)


def wait_ready(
    url: str,
    timeout: float = READY_TIMEOUT,
    request_timeout: float = READY_REQUEST_TIMEOUT,
    interval: float = 0.0,
    session: Optional[requests.Session] = None,
    clock: Callable[[], float] = time.monotonic,
) -> int:
    """
    Poll url until anything answers over HTTP.

    Any response counts as ready, whatever its status. Failed requests are
    retried straight away unless interval is set.

    Args:
        url: URL to probe
        timeout: Overall deadline in seconds
        request_timeout: Per-request timeout in seconds
        interval: Pause between failed probes
        session: requests session to probe with

    Returns:
        Number of failed probes before success

    Raises:
        ReadinessTimeoutError: If the deadline passes first
    """
    session = session or requests.Session()
    deadline = clock() + timeout
    failures = 0
    last_error: Optional[Exception] = None

    try:
        while True:
            remaining = deadline - clock()
            if remaining <= 0:
                raise ReadinessTimeoutError(
                    f"code-server didn't start in time: deadline of {timeout:g}s exceeded"
                    + (f" (last error: {last_error})" if last_error else "")
                )

            try:
                response = session.get(url, timeout=min(request_timeout, remaining), stream=True)
            except requests.RequestException as e:
                last_error = e
                failures += 1
                if interval:
                    time.sleep(min(interval, max(deadline - clock(), 0)))
                continue

            response.close()
            logger.debug(f"{url} answered with {response.status_code} after {failures} failed probes")
            return failures
    finally:
        session.close()
