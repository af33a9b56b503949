"""Cancellation support for async operations."""

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)


class CancellationToken:
    """Token for cooperative cancellation of RPC calls.

    A token may be cancelled from any thread. Waiters register callbacks
    with on_cancel() and remove them once they stop waiting.

    Example:
        token = CancellationToken()
        ctx = CallContext(token=token)

        task = asyncio.create_task(client.call(ctx, "slow"))
        token.cancel()  # the pending call raises CallCancelledError
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._callbacks: list[Callable[[], None]] = []
        self._lock = threading.Lock()

    @property
    def is_cancelled(self) -> bool:
        """Check if cancellation has been requested."""
        return self._cancelled

    def cancel(self) -> None:
        """Request cancellation and notify callbacks."""
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            callbacks = list(self._callbacks)
        for callback in callbacks:
            self._invoke(callback)

    def on_cancel(self, callback: Callable[[], None]) -> None:
        """Register a callback to be called when cancelled.

        If already cancelled, callback is invoked immediately.
        """
        with self._lock:
            self._callbacks.append(callback)
            cancelled = self._cancelled
        if cancelled:
            self._invoke(callback)

    def remove_callback(self, callback: Callable[[], None]) -> None:
        """Unregister a callback added with on_cancel(). Unknown callbacks are ignored."""
        with self._lock:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass

    @staticmethod
    def _invoke(callback: Callable[[], None]) -> None:
        # One failing callback must not keep the others from running
        try:
            callback()
        except Exception:
            logger.debug("Cancellation callback failed", exc_info=True)
