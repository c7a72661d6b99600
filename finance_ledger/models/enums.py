"""
Shared enumerations for database models.

Mapping Python enums to database enums means an invalid
account type or entry status is rejected by the database,
not just by Python validation.
"""

import enum


class AccountType(str, enum.Enum):
    """The five fundamental accounting categories."""
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class NormalBalance(str, enum.Enum):
    """The side on which an account naturally increases."""
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class JournalStatus(str, enum.Enum):
    """Lifecycle of a journal entry."""
    DRAFT = "DRAFT"
    APPROVED = "APPROVED"
    POSTED = "POSTED"
    VOIDED = "VOIDED"


DEBIT_NORMAL_TYPES = frozenset({AccountType.ASSET, AccountType.EXPENSE})


def default_normal_balance(account_type: AccountType) -> NormalBalance:
    """Debit for assets and expenses, credit for everything else."""
    if account_type in DEBIT_NORMAL_TYPES:
        return NormalBalance.DEBIT
    return NormalBalance.CREDIT
