import time
from threading import Event
from typing import Callable, Optional, TypeVar

from metareport.config.logging import logger
from metareport.core.exceptions import ReportCancelledError, TransientUpstreamError

T = TypeVar("T")

class RetryPolicy:
    """
    Exponential backoff for transient upstream failures.

    Only TransientUpstreamError is retried (timeouts, 5xx, 429). Delays double
    from base_delay: 2s, 4s, 8s with the defaults. When retries run out the
    last error is raised as is.
    """

    def __init__(self, max_retries: int = 3, base_delay: float = 2.0,
                 sleep: Callable[[float], None] = time.sleep):
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.sleep = sleep

    def delay_for(self, attempt: int) -> float:
        """Backoff before retry number `attempt` (1-based)."""
        return self.base_delay * (2 ** (attempt - 1))

    def run(self, operation: Callable[[], T], cancel_event: Optional[Event] = None,
            description: str = "request") -> T:
        attempt = 0
        while True:
            _raise_if_cancelled(cancel_event, description)
            try:
                return operation()
            except TransientUpstreamError as e:
                attempt += 1
                if attempt > self.max_retries:
                    logger.error(f"{description} failed after {self.max_retries} retries: {e}")
                    raise
                delay = self.delay_for(attempt)
                logger.warning(
                    f"{description} failed ({e}). Retry {attempt}/{self.max_retries} in {delay:g}s"
                )
                self._pause(delay, cancel_event, description)

    def _pause(self, delay: float, cancel_event: Optional[Event], description: str):
        if cancel_event is None:
            self.sleep(delay)
            return
        # Event.wait returns True as soon as the event is set
        if cancel_event.wait(delay):
            raise ReportCancelledError(f"{description} cancelled during backoff")

def _raise_if_cancelled(cancel_event: Optional[Event], description: str):
    if cancel_event is not None and cancel_event.is_set():
        raise ReportCancelledError(f"{description} cancelled")
