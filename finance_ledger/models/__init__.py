"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from finance_ledger.models.base import Base
from finance_ledger.models.enums import (
    AccountType,
    NormalBalance,
    JournalStatus,
)
from finance_ledger.models.audit_log import AuditLog
from finance_ledger.models.account import Account
from finance_ledger.models.journal_entry import JournalEntry, JournalLine
from finance_ledger.models.ledger_row import LedgerRow
from finance_ledger.models.ledger_sequence import LedgerSequence

__all__ = [
    "Base",
    "AccountType",
    "NormalBalance",
    "JournalStatus",
    "AuditLog",
    "Account",
    "JournalEntry",
    "JournalLine",
    "LedgerRow",
    "LedgerSequence",
]
