"""Business logic services."""

from finance_ledger.services.account_service import AccountService
from finance_ledger.services.balance_service import BalanceService
from finance_ledger.services.posting_service import PostingService
from finance_ledger.services.void_service import VoidService

__all__ = ["AccountService", "BalanceService", "PostingService", "VoidService"]
