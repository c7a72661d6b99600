"""
Sequence service — gapless counters for the posting engine.

A counter is advanced with its row locked (SELECT ... FOR UPDATE)
inside the caller's transaction. If that transaction rolls back,
so does the increment, which is what keeps posted entry numbers
free of gaps. Must only be called from within the posting lock.
"""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from finance_ledger.models.ledger_sequence import LedgerSequence

logger = logging.getLogger(__name__)


def reserve(db: Session, name: str, count: int = 1) -> int:
    """
    Reserve `count` consecutive values of a counter.

    Returns the first reserved value; the block is
    first .. first + count - 1.
    """
    if count < 1:
        raise ValueError("count must be at least 1")

    sequence = db.execute(
        select(LedgerSequence)
        .where(LedgerSequence.name == name)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()

    if sequence is None:
        sequence = LedgerSequence(name=name, last_value=0)
        db.add(sequence)
        logger.info("Created ledger sequence %s", name)

    first = sequence.last_value + 1
    sequence.last_value += count
    db.flush()
    logger.debug("Reserved %s %d..%d", name, first, sequence.last_value)
    return first


def current(db: Session, name: str) -> int:
    """Last value handed out, 0 if the counter has never been used."""
    value = db.execute(
        select(LedgerSequence.last_value).where(LedgerSequence.name == name)
    ).scalar_one_or_none()
    return value or 0
