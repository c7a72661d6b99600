"""
Account service — the chart of accounts.

Creates accounts, arranges them into a roll-up tree and controls
whether they can receive postings (is_active). Accounts are never
deleted; the ledger keeps referencing them forever.

Parent policy: by default a child must have the same account type
as its parent. Setting ALLOW_CROSS_TYPE_ROLLUP=true lifts that,
for charts that group, say, contra accounts under a header of
another type. Cycles are always rejected.

Deactivation policy: an account can be deactivated only when it
is not a system account, has no active children and its current
balance is zero. The trial balance lists active accounts, so a
deactivated account holding a balance would make it stop summing
to zero. Deactivation takes the posting lock and commits itself.
"""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from finance_ledger.config import get_settings
from finance_ledger.exceptions import (
    CycleError,
    DuplicateCodeError,
    InUseError,
    LedgerError,
    NotFoundError,
    ParentTypeMismatchError,
)
from finance_ledger.models.account import Account
from finance_ledger.models.enums import AccountType, default_normal_balance
from finance_ledger.schemas.account import AccountCreate
from finance_ledger.services.audit import AuditAction, record_event
from finance_ledger.services.balance_service import BalanceService
from finance_ledger.services.posting_lock import posting_lock

logger = logging.getLogger(__name__)


class AccountService:

    def __init__(
        self,
        db: Session,
        allow_cross_type_rollup: bool | None = None,
        lock_timeout: float | None = None,
    ):
        self.db = db
        settings = get_settings()
        if allow_cross_type_rollup is None:
            allow_cross_type_rollup = settings.ALLOW_CROSS_TYPE_ROLLUP
        self.allow_cross_type_rollup = allow_cross_type_rollup
        if lock_timeout is None:
            lock_timeout = settings.POSTING_LOCK_TIMEOUT
        self.lock_timeout = lock_timeout

    def create_account(self, request: AccountCreate) -> Account:
        """
        Create a new account.

        Raises DuplicateCodeError if the code already exists,
        NotFoundError for an unknown parent, and CycleError
        (or ParentTypeMismatchError) if the parent is not allowed.
        """
        existing = self.db.execute(
            select(Account).where(Account.code == request.code)
        ).scalar_one_or_none()

        if existing:
            raise DuplicateCodeError(request.code)

        normal_balance = request.normal_balance or default_normal_balance(
            request.account_type
        )

        parent = None
        if request.parent_id is not None:
            parent = self.get_account(request.parent_id)
            self._check_parent_type(request.account_type, parent)

        account = Account(
            code=request.code,
            name=request.name,
            description=request.description,
            account_type=request.account_type,
            normal_balance=normal_balance,
            parent_id=parent.id if parent else None,
            is_system=request.is_system,
        )
        self.db.add(account)
        self.db.flush()

        record_event(
            self.db, AuditAction.ACCOUNT_CREATED, "account", account.id,
            code=account.code,
            account_type=account.account_type.value,
            normal_balance=normal_balance.value,
        )
        if normal_balance != default_normal_balance(request.account_type):
            logger.info(
                "Account %s created with overridden normal balance %s",
                account.code, normal_balance.value,
            )
        else:
            logger.info("Account %s created", account.code)
        return account

    def get_account(self, account_id: int) -> Account:
        """Get an account by ID."""
        account = self.db.get(Account, account_id)
        if not account:
            raise NotFoundError("Account", account_id)
        return account

    def get_account_by_code(self, code: str) -> Account:
        account = self.db.execute(
            select(Account).where(Account.code == code)
        ).scalar_one_or_none()
        if not account:
            raise NotFoundError("Account", code)
        return account

    def list_accounts(
        self,
        account_type: AccountType | None = None,
        active_only: bool = False,
    ) -> list[Account]:
        """List accounts ordered by code."""
        query = select(Account).order_by(Account.code)
        if account_type is not None:
            query = query.where(Account.account_type == account_type)
        if active_only:
            query = query.where(Account.is_active.is_(True))
        return list(self.db.execute(query).scalars().all())

    def set_parent(self, account_id: int, parent_id: int | None) -> Account:
        """
        Move an account under another one (or to the top level).

        Walks up from the proposed parent; reaching the account
        itself means the move would create a cycle.
        """
        account = self.get_account(account_id)

        if parent_id is None:
            account.parent_id = None
        else:
            parent = self.get_account(parent_id)
            ancestor = parent
            while ancestor is not None:
                if ancestor.id == account.id:
                    raise CycleError(
                        f"Cannot place account {account.code} under "
                        f"{parent.code}: it would create a cycle",
                        details={"account_id": account.id, "parent_id": parent.id},
                    )
                if ancestor.parent_id is None:
                    break
                ancestor = self.db.get(Account, ancestor.parent_id)
            self._check_parent_type(account.account_type, parent)
            account.parent_id = parent.id

        self.db.flush()
        record_event(
            self.db, AuditAction.ACCOUNT_REPARENTED, "account", account.id,
            parent_id=parent_id,
        )
        return account

    def deactivate(self, account_id: int) -> Account:
        """
        Deactivate an account so it can no longer receive postings,
        and commit.

        Runs under the posting lock so no post can move the balance
        between the zero-balance check and the commit. On failure the
        session is rolled back, including whatever the caller had
        pending.

        Raises InUseError for system accounts, accounts with active
        children, and accounts with a non-zero balance.
        """
        with posting_lock(self.lock_timeout):
            try:
                account, changed = self._deactivate(account_id)
                self.db.commit()
            except LedgerError:
                self.db.rollback()
                raise
            except Exception:
                self.db.rollback()
                logger.exception("Deactivating account %s failed", account_id)
                raise

        if changed:
            logger.info("Account %s deactivated", account.code)
        return account

    def _deactivate(self, account_id: int) -> tuple[Account, bool]:
        account = self.db.execute(
            select(Account)
            .where(Account.id == account_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if account is None:
            raise NotFoundError("Account", account_id)
        if not account.is_active:
            return account, False

        if account.is_system:
            raise InUseError(
                f"Account {account.code} is a system account",
                details={"account_id": account.id},
            )

        active_children = list(self.db.execute(
            select(Account.code).where(
                Account.parent_id == account.id,
                Account.is_active.is_(True),
            )
        ).scalars().all())
        if active_children:
            raise InUseError(
                f"Account {account.code} has active child accounts",
                details={"account_id": account.id, "children": active_children},
            )

        balance = BalanceService(self.db).current_balance(account.id)
        if balance != 0:
            raise InUseError(
                f"Account {account.code} has a non-zero balance ({balance})",
                details={"account_id": account.id, "balance": str(balance)},
            )

        account.is_active = False
        self.db.flush()
        record_event(
            self.db, AuditAction.ACCOUNT_DEACTIVATED, "account", account.id
        )
        return account, True

    def activate(self, account_id: int) -> Account:
        account = self.get_account(account_id)
        if account.is_active:
            return account
        account.is_active = True
        self.db.flush()
        record_event(
            self.db, AuditAction.ACCOUNT_ACTIVATED, "account", account.id
        )
        logger.info("Account %s reactivated", account.code)
        return account

    def _check_parent_type(self, account_type: AccountType, parent: Account) -> None:
        if self.allow_cross_type_rollup or parent.account_type == account_type:
            return
        raise ParentTypeMismatchError(
            f"Account of type {account_type.value} cannot roll up into "
            f"{parent.code} of type {parent.account_type.value}",
            details={
                "parent_id": parent.id,
                "account_type": account_type.value,
                "parent_type": parent.account_type.value,
            },
        )
