"""Bounded parallel file transfers.

Independent files move concurrently on a small thread pool. ``run_transfers``
is a barrier: it returns only after every task has finished, and reports
failure if any task failed. The first failure sets a shared cancel event so
transfers still running or queued stop early instead of moving bytes that
will never be published.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass

from artstore.exceptions import TransferCancelledError, TransferError
from artstore.repository.base import TransferOptions

logger = logging.getLogger(__name__)

# How often the barrier re-checks the caller's cancel event (seconds)
CANCEL_POLL_INTERVAL = 0.1


@dataclass(frozen=True)
class TransferTask:
    """One file transfer.

    Attributes:
        path: Repository path the task moves, used to report failures
        run: Performs the transfer with the batch's shared options
    """

    path: str
    run: Callable[[TransferOptions], None]


def run_transfers(
    tasks: Sequence[TransferTask],
    *,
    workers: int,
    cancel_event: threading.Event | None = None,
    progress: Callable[[int], None] | None = None,
    ref: str | None = None,
) -> None:
    """Run ``tasks`` on at most ``workers`` threads and wait for all of them.

    Args:
        tasks: Transfers to perform
        workers: Maximum concurrent transfers
        cancel_event: Caller's cancel signal; setting it aborts the batch
        progress: Receives byte counts from every transfer (must be thread-safe)
        ref: Ref for error context

    Raises:
        TransferError: One or more transfers failed; lists every failed path
        TransferCancelledError: The caller cancelled and nothing else failed
    """
    if not tasks:
        return

    batch_cancel = threading.Event()
    if cancel_event is not None and cancel_event.is_set():
        batch_cancel.set()
    options = TransferOptions(cancel_event=batch_cancel, progress=progress)
    failures: dict[str, BaseException] = {}

    with ThreadPoolExecutor(
        max_workers=max(1, min(workers, len(tasks))), thread_name_prefix="art_transfer"
    ) as executor:
        futures: dict[Future[None], TransferTask] = {
            executor.submit(task.run, options): task for task in tasks
        }
        pending = set(futures)
        try:
            while pending:
                done, pending = wait(
                    pending, timeout=CANCEL_POLL_INTERVAL, return_when=FIRST_EXCEPTION
                )
                if cancel_event is not None and cancel_event.is_set():
                    batch_cancel.set()
                for future in done:
                    exc = future.exception()
                    if exc is None:
                        continue
                    task = futures[future]
                    failures[task.path] = exc
                    if not isinstance(exc, TransferCancelledError):
                        logger.warning(f"Transfer failed for {task.path}: {exc}")
                    batch_cancel.set()
        except BaseException:
            # KeyboardInterrupt and friends: stop workers so the pool can shut down
            batch_cancel.set()
            raise

    errors = {
        path: exc
        for path, exc in failures.items()
        if not isinstance(exc, TransferCancelledError)
    }
    if errors:
        raise TransferError(f"{len(errors)} of {len(tasks)} transfers failed", errors, ref=ref)
    if failures:
        raise TransferCancelledError("transfer cancelled", ref=ref)

    logger.debug(f"Completed {len(tasks)} transfers")
