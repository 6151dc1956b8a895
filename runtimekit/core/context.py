"""
Cancellation and deadline handling for blocking operations.

Every network call and subprocess invocation in RuntimeKit accepts an
optional OperationContext. The context carries an absolute deadline and a
cancellation event that another thread (or a signal handler) may set.

Usage:
    from runtimekit.core.context import OperationContext

    context = OperationContext(timeout=600)
    runtime.prepare_and_build(tool, data_root, source, env, context=context)

    # From another thread:
    context.cancel()
"""

import threading
import time
from typing import Optional

from runtimekit.core.exceptions import OperationCancelled


class OperationContext:
    """
    Deadline and cancellation signal shared by one invocation.

    Attributes:
        deadline: Absolute time.monotonic() value, or None for no deadline
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        """
        Initialize context.

        Args:
            timeout: Seconds until the deadline (None for no deadline)
            cancel_event: Optional externally owned event; set it to cancel
        """
        self.deadline = time.monotonic() + timeout if timeout is not None else None
        self._event = cancel_event or threading.Event()

    def cancel(self):
        """Signal cancellation to everything using this context."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        """True once cancelled or past the deadline."""
        if self._event.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None when there is none."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def check(self):
        """
        Raise if the context is no longer live.

        Raises:
            OperationCancelled: If cancelled or the deadline passed
        """
        if self._event.is_set():
            raise OperationCancelled("Operation cancelled")
        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise OperationCancelled("Operation deadline exceeded")

    def timeout(self, default: float) -> float:
        """
        Per-call timeout clipped to the remaining deadline.

        Args:
            default: Timeout to use when the deadline is further away

        Returns:
            Timeout in seconds
        """
        remaining = self.remaining()
        if remaining is None:
            return default
        return min(default, remaining)


def ensure_context(context: Optional[OperationContext]) -> OperationContext:
    """Return context, or a fresh one without deadline when None."""
    return context if context is not None else OperationContext()
