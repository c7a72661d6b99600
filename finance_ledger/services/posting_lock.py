"""
Posting lock — the single-writer point of the ledger.

Posting reads each account's previous running balance, appends
rows and advances the sequence counters. Two posts interleaving
those steps would compute balances from stale reads, so every
post runs under one global lock held until its commit.
Deactivating an account takes the same lock, so its zero-balance
check cannot interleave with a post to that account.

Within one process the lock is a threading.Lock; FastAPI runs
sync endpoints on a thread pool, so this covers concurrent
requests to a worker. Across processes the sequence rows are
locked with SELECT ... FOR UPDATE (see sequence_service), which
PostgreSQL serializes for us.
"""

import logging
import threading
from contextlib import contextmanager

from finance_ledger.exceptions import LockTimeoutError

logger = logging.getLogger(__name__)

_posting_lock = threading.Lock()


@contextmanager
def posting_lock(timeout: float):
    """
    Hold the posting lock for the duration of the block.

    Raises LockTimeoutError if it cannot be acquired within
    `timeout` seconds. Nothing has been written at that point,
    so the caller may retry.
    """
    if not _posting_lock.acquire(timeout=timeout):
        logger.error("Timed out after %ss waiting for the posting lock", timeout)
        raise LockTimeoutError(
            f"Could not acquire the posting lock within {timeout}s",
            details={"timeout": timeout},
        )
    try:
        yield
    finally:
        _posting_lock.release()
