"""Background reconciliation runner.

This module provides:
- ReconcileRunner: Runs reconciliation off the calling thread, one run at a time

A second trigger while a run is in flight is refused rather than queued.
cancel() is for a host that is going away: the in-flight run stops at
the next draft boundary and its result is never delivered.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING

from notepost.client.api import NetworkError
from notepost.client.sync.types import ReconcileCancelled, ReconcileError, ReconcileResult
from notepost.core.types import SyncState

if TYPE_CHECKING:
    from notepost.client.sync.reconciler import Reconciler

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[ReconcileResult | None, Exception | None], None]


class ReconcileRunner:
    """Serializes reconciliation runs on a worker thread.

    Usage:
        runner = ReconcileRunner(reconciler)
        runner.trigger(on_complete=show_result)
        ...
        runner.cancel()  # host torn down
    """

    def __init__(self, reconciler: Reconciler) -> None:
        """Initialize the runner.

        Args:
            reconciler: Reconciler to run.
        """
        self._reconciler = reconciler
        self._in_flight = threading.Lock()
        self._lock = threading.Lock()
        self._cancelled = threading.Event()
        self._thread: threading.Thread | None = None
        self._state = SyncState.IDLE
        self._last_result: ReconcileResult | None = None

    @property
    def state(self) -> SyncState:
        """Get current runner state."""
        return self._state

    @property
    def last_result(self) -> ReconcileResult | None:
        """Result of the last run that was not cancelled."""
        return self._last_result

    @property
    def is_running(self) -> bool:
        return self._in_flight.locked()

    def trigger(self, on_complete: CompletionCallback | None = None) -> bool:
        """Start a reconciliation run in the background.

        Args:
            on_complete: Called from the worker thread with (result, error)
                when the run ends, unless the runner was cancelled.

        Returns:
            False if a run is already in flight or the runner was cancelled.
        """
        if self._cancelled.is_set():
            logger.debug("Runner cancelled, ignoring trigger")
            return False
        if not self._in_flight.acquire(blocking=False):
            logger.debug("Sync already in progress, ignoring trigger")
            return False

        with self._lock:
            self._state = SyncState.SYNCING
            self._thread = threading.Thread(
                target=self._run,
                args=(on_complete,),
                name="ReconcileRunner",
                daemon=True,
            )
            self._thread.start()
        return True

    def run_now(self) -> ReconcileResult:
        """Run one reconciliation on the calling thread.

        Raises:
            ReconcileError: If a run is already in flight or the listing failed.
        """
        if not self._in_flight.acquire(blocking=False):
            raise ReconcileError("Sync already in progress")
        self._state = SyncState.SYNCING
        try:
            result = self._reconciler.reconcile(cancel_check=self._cancelled.is_set)
        except ReconcileCancelled:
            self._state = SyncState.IDLE
            raise
        except Exception as e:
            self._state = self._failure_state(e)
            raise
        else:
            self._state = SyncState.IDLE
            self._last_result = result
        finally:
            # State is settled before another run can start
            self._in_flight.release()
        return result

    def _run(self, on_complete: CompletionCallback | None) -> None:
        result: ReconcileResult | None = None
        error: Exception | None = None
        try:
            result = self._reconciler.reconcile(cancel_check=self._cancelled.is_set)
        except ReconcileCancelled:
            logger.debug("Sync run discarded after cancel")
        except ReconcileError as e:
            error = e
        except Exception as e:
            logger.exception("Sync run crashed")
            error = e
        finally:
            cancelled = self._cancelled.is_set()
            if not cancelled:
                self._state = SyncState.IDLE if error is None else self._failure_state(error)
                if result is not None:
                    self._last_result = result
            self._in_flight.release()

        if cancelled:
            # Host is gone; nothing to report to
            return

        if on_complete is not None:
            try:
                on_complete(result, error)
            except Exception:
                logger.exception("Sync completion callback failed")

    @staticmethod
    def _failure_state(error: Exception) -> SyncState:
        if isinstance(error.__cause__, NetworkError):
            return SyncState.OFFLINE
        return SyncState.ERROR

    def wait(self, timeout: float | None = None) -> bool:
        """Wait for the in-flight run to finish.

        Returns:
            True if no run is in flight when this returns.
        """
        with self._lock:
            thread = self._thread
        if thread is not None:
            thread.join(timeout)
            return not thread.is_alive()
        return True

    def cancel(self) -> None:
        """Stop delivering results; the in-flight run stops at the next draft."""
        self._cancelled.set()
        logger.debug("Sync runner cancelled")
