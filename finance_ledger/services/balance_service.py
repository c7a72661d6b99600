"""
Balance service — read side of the ledger.

Balances are never stored on accounts. They are derived from the
append-only ledger rows, which guarantees they are correct as long
as the rows are.

Sign convention: balances are reported in each account's
normal-balance convention (positive when the account sits on its
natural side). For debit-normal accounts that is debits minus
credits, for credit-normal accounts credits minus debits. The
trial balance also exposes the raw debit/credit column split.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from finance_ledger.exceptions import LedgerError, NotFoundError
from finance_ledger.models.account import Account
from finance_ledger.models.enums import (
    DEBIT_NORMAL_TYPES,
    AccountType,
    JournalStatus,
    NormalBalance,
)
from finance_ledger.models.journal_entry import JournalEntry
from finance_ledger.models.ledger_row import LedgerRow

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
FOUR_PLACES = Decimal("0.0001")


def to_decimal(value) -> Decimal:
    """Normalize a database aggregate (Decimal, int or float on SQLite)."""
    if value is None:
        return ZERO.quantize(FOUR_PLACES)
    return Decimal(str(value)).quantize(FOUR_PLACES)


def normal_delta(
    normal_balance: NormalBalance, debit: Decimal, credit: Decimal
) -> Decimal:
    """Effect of a debit/credit pair on a balance in normal convention."""
    if normal_balance == NormalBalance.DEBIT:
        return debit - credit
    return credit - debit


@dataclass
class StatementLine:
    sequence: int
    journal_entry_id: int
    transaction_date: date
    description: str
    debit: Decimal
    credit: Decimal
    balance: Decimal


@dataclass
class AccountStatement:
    """General-ledger / cash-book view of one account over a period."""
    account_id: int
    account_code: str
    start_date: date
    end_date: date
    opening_balance: Decimal
    lines: list[StatementLine] = field(default_factory=list)

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)

    @property
    def closing_balance(self) -> Decimal:
        if self.lines:
            return self.lines[-1].balance
        return self.opening_balance


@dataclass
class TrialBalanceLine:
    account_id: int
    account_code: str
    account_name: str
    account_type: AccountType
    normal_balance: NormalBalance
    balance: Decimal
    debit_balance: Decimal
    credit_balance: Decimal


@dataclass
class TrialBalance:
    as_of: date
    lines: list[TrialBalanceLine]

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit_balance for line in self.lines), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit_balance for line in self.lines), ZERO)

    @property
    def is_balanced(self) -> bool:
        return self.total_debit == self.total_credit

    @property
    def balances(self) -> dict[int, Decimal]:
        """Account id -> balance in normal convention."""
        return {line.account_id: line.balance for line in self.lines}


# --- Roll-up reports ---

def type_amount(account_type: AccountType, net: Decimal) -> Decimal:
    """
    A debit-positive net movement in the convention of its type's section.

    Contra accounts (say an asset with a credit normal balance)
    come out negative, so they reduce their section's total.
    """
    if account_type in DEBIT_NORMAL_TYPES:
        return net
    return -net


@dataclass
class ReportLine:
    """An account in a roll-up report, with the accounts under it."""
    account_id: int
    account_code: str
    account_name: str
    account_type: AccountType
    level: int
    amount: Decimal
    children: list["ReportLine"] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return self.amount + sum((child.total for child in self.children), ZERO)


@dataclass
class ReportSection:
    account_type: AccountType
    lines: list[ReportLine]

    @property
    def total(self) -> Decimal:
        return sum((line.total for line in self.lines), ZERO)


@dataclass
class ProfitAndLoss:
    start_date: date
    end_date: date
    income: ReportSection
    expenses: ReportSection

    @property
    def net_surplus(self) -> Decimal:
        return self.income.total - self.expenses.total


@dataclass
class FinancialPosition:
    """
    Statement of financial position (balance sheet).

    Income and expense accounts are not closed out, so their
    cumulative result is carried as accumulated_surplus next
    to equity.
    """
    as_of: date
    assets: ReportSection
    liabilities: ReportSection
    equity: ReportSection
    accumulated_surplus: Decimal

    @property
    def total_equity(self) -> Decimal:
        return self.equity.total + self.accumulated_surplus

    @property
    def total_liabilities_and_equity(self) -> Decimal:
        return self.liabilities.total + self.total_equity

    @property
    def is_balanced(self) -> bool:
        return self.assets.total == self.total_liabilities_and_equity


def build_section(
    account_type: AccountType,
    accounts: list[Account],
    net_by_account: dict[int, Decimal],
) -> ReportSection:
    """
    Arrange the accounts of one type into their parent tree.

    An account whose parent is of another type starts its own
    branch. Accounts with nothing to show are left out unless
    an account under them has.
    """
    members = [a for a in accounts if a.account_type == account_type]
    member_ids = {a.id for a in members}
    children_of: dict[int | None, list[Account]] = {}
    for account in members:
        parent_id = account.parent_id if account.parent_id in member_ids else None
        children_of.setdefault(parent_id, []).append(account)

    def build(parent_id: int | None, level: int) -> list[ReportLine]:
        lines = []
        for account in children_of.get(parent_id, []):
            line = ReportLine(
                account_id=account.id,
                account_code=account.code,
                account_name=account.name,
                account_type=account.account_type,
                level=level,
                amount=type_amount(
                    account_type, net_by_account.get(account.id, ZERO)
                ),
                children=build(account.id, level + 1),
            )
            if line.amount != 0 or line.children:
                lines.append(line)
        return lines

    return ReportSection(account_type=account_type, lines=build(None, 0))


class BalanceService:
    """
    All balance and ledger queries pass through this service.

    It never writes. Callers may use it inside or outside a
    transaction; it only sees flushed rows.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_account(self, account_id: int) -> Account:
        account = self.db.get(Account, account_id)
        if not account:
            raise NotFoundError("Account", account_id)
        return account

    def _sums(self, account_id: int, as_of: date | None = None) -> tuple[Decimal, Decimal]:
        query = select(
            func.coalesce(func.sum(LedgerRow.debit), 0),
            func.coalesce(func.sum(LedgerRow.credit), 0),
        ).where(LedgerRow.account_id == account_id)
        if as_of is not None:
            query = query.where(LedgerRow.transaction_date <= as_of)
        debits, credits = self.db.execute(query).one()
        return to_decimal(debits), to_decimal(credits)

    def _net_by_account(
        self, start_date: date | None = None, end_date: date | None = None
    ) -> dict[int, Decimal]:
        """Debit-positive net movement per account over a date range."""
        query = select(
            LedgerRow.account_id,
            func.coalesce(func.sum(LedgerRow.debit), 0),
            func.coalesce(func.sum(LedgerRow.credit), 0),
        ).group_by(LedgerRow.account_id)
        if start_date is not None:
            query = query.where(LedgerRow.transaction_date >= start_date)
        if end_date is not None:
            query = query.where(LedgerRow.transaction_date <= end_date)
        return {
            account_id: to_decimal(debits) - to_decimal(credits)
            for account_id, debits, credits in self.db.execute(query).all()
        }

    def _all_accounts(self) -> list[Account]:
        return list(self.db.execute(
            select(Account).order_by(Account.code)
        ).scalars().all())

    def balance_as_of(self, account_id: int, as_of: date) -> Decimal:
        """
        Balance of an account at the end of `as_of`.

        Sums every row dated on or before `as_of`. When entries are
        posted in date order this equals the running balance of the
        last such row in (date, sequence) order; summing keeps it
        right for back-dated postings too.

        Raises NotFoundError only for an unknown account; an
        account without rows has a zero balance.
        """
        account = self.get_account(account_id)
        debits, credits = self._sums(account_id, as_of)
        return normal_delta(account.normal_balance, debits, credits)

    def current_balance(self, account_id: int) -> Decimal:
        """Balance over every posted row regardless of date."""
        account = self.get_account(account_id)
        debits, credits = self._sums(account_id)
        return normal_delta(account.normal_balance, debits, credits)

    def range_ledger(
        self, account_id: int, start_date: date, end_date: date
    ) -> list[LedgerRow]:
        """Rows for an account between two dates inclusive, by (date, sequence)."""
        self.get_account(account_id)
        if start_date > end_date:
            raise LedgerError(
                "start_date must not be after end_date",
                details={"start_date": str(start_date), "end_date": str(end_date)},
            )
        rows = self.db.execute(
            select(LedgerRow)
            .where(
                LedgerRow.account_id == account_id,
                LedgerRow.transaction_date >= start_date,
                LedgerRow.transaction_date <= end_date,
            )
            .order_by(LedgerRow.transaction_date, LedgerRow.sequence)
        ).scalars().all()
        return list(rows)

    def account_statement(
        self, account_id: int, start_date: date, end_date: date
    ) -> AccountStatement:
        """
        Opening balance, period movements and closing balance.

        The per-line balance is recomputed in (date, sequence)
        order, which is what a reader of a dated statement
        expects; the stored running_balance follows posting order.
        """
        account = self.get_account(account_id)
        rows = self.range_ledger(account_id, start_date, end_date)
        opening = self.balance_as_of(account_id, start_date - timedelta(days=1))

        statement = AccountStatement(
            account_id=account.id,
            account_code=account.code,
            start_date=start_date,
            end_date=end_date,
            opening_balance=opening,
        )
        balance = opening
        for row in rows:
            balance += normal_delta(account.normal_balance, row.debit, row.credit)
            statement.lines.append(StatementLine(
                sequence=row.sequence,
                journal_entry_id=row.journal_entry_id,
                transaction_date=row.transaction_date,
                description=row.description,
                debit=row.debit,
                credit=row.credit,
                balance=balance,
            ))
        return statement

    def trial_balance(self, as_of: date) -> TrialBalance:
        """
        Every active account's balance as of a date.

        Inactive accounts are included only while they still carry
        a balance at that date, so historical trial balances keep
        summing to zero after an account is retired.
        """
        net_by_account = self._net_by_account(end_date=as_of)
        accounts = self._all_accounts()

        lines = []
        for account in accounts:
            # Debit-positive net movement
            net = net_by_account.get(account.id, ZERO.quantize(FOUR_PLACES))
            if not account.is_active and net == 0:
                continue
            if account.normal_balance == NormalBalance.DEBIT:
                balance = net
            else:
                balance = -net
            lines.append(TrialBalanceLine(
                account_id=account.id,
                account_code=account.code,
                account_name=account.name,
                account_type=account.account_type,
                normal_balance=account.normal_balance,
                balance=balance,
                debit_balance=net if net > 0 else ZERO,
                credit_balance=-net if net < 0 else ZERO,
            ))

        trial_balance = TrialBalance(as_of=as_of, lines=lines)
        if not trial_balance.is_balanced:
            logger.error(
                "Trial balance as of %s is out of balance: debits=%s credits=%s",
                as_of, trial_balance.total_debit, trial_balance.total_credit,
            )
        return trial_balance

    def profit_and_loss(self, start_date: date, end_date: date) -> ProfitAndLoss:
        """
        Income and expenses for a period, rolled up by account tree.

        Only rows dated within the period count; a voided entry and
        its reversal cancel out when both fall inside it.
        """
        if start_date > end_date:
            raise LedgerError(
                "start_date must not be after end_date",
                details={"start_date": str(start_date), "end_date": str(end_date)},
            )
        net_by_account = self._net_by_account(start_date, end_date)
        accounts = self._all_accounts()
        return ProfitAndLoss(
            start_date=start_date,
            end_date=end_date,
            income=build_section(AccountType.INCOME, accounts, net_by_account),
            expenses=build_section(AccountType.EXPENSE, accounts, net_by_account),
        )

    def financial_position(self, as_of: date) -> FinancialPosition:
        """Assets, liabilities and equity as of a date, rolled up by account tree."""
        net_by_account = self._net_by_account(end_date=as_of)
        accounts = self._all_accounts()

        surplus = ZERO
        for account in accounts:
            if account.account_type not in (AccountType.INCOME, AccountType.EXPENSE):
                continue
            # Credit-positive: income raises the surplus, expenses lower it
            surplus -= net_by_account.get(account.id, ZERO)

        position = FinancialPosition(
            as_of=as_of,
            assets=build_section(AccountType.ASSET, accounts, net_by_account),
            liabilities=build_section(AccountType.LIABILITY, accounts, net_by_account),
            equity=build_section(AccountType.EQUITY, accounts, net_by_account),
            accumulated_surplus=surplus,
        )
        if not position.is_balanced:
            logger.error(
                "Financial position as of %s does not balance: assets=%s "
                "liabilities+equity=%s",
                as_of, position.assets.total, position.total_liabilities_and_equity,
            )
        return position

    def check_integrity(self) -> dict:
        """
        Verify the ledger as a whole.

        Total debits must equal total credits across all rows, and
        every posted or voided entry's rows must add up to the
        totals stored on the entry.
        """
        total_debits, total_credits = self.db.execute(
            select(
                func.coalesce(func.sum(LedgerRow.debit), 0),
                func.coalesce(func.sum(LedgerRow.credit), 0),
            )
        ).one()
        total_debits = to_decimal(total_debits)
        total_credits = to_decimal(total_credits)

        row_totals = {
            entry_id: (to_decimal(debits), to_decimal(credits))
            for entry_id, debits, credits in self.db.execute(
                select(
                    LedgerRow.journal_entry_id,
                    func.sum(LedgerRow.debit),
                    func.sum(LedgerRow.credit),
                ).group_by(LedgerRow.journal_entry_id)
            ).all()
        }
        entries = self.db.execute(
            select(JournalEntry).where(
                JournalEntry.status.in_(
                    [JournalStatus.POSTED, JournalStatus.VOIDED]
                )
            )
        ).scalars().all()

        inconsistent = []
        for entry in entries:
            debits, credits = row_totals.pop(entry.id, (ZERO, ZERO))
            if debits != entry.total_debit or credits != entry.total_credit:
                inconsistent.append(entry.id)
        # Rows belonging to entries that were never posted
        inconsistent.extend(row_totals.keys())

        difference = total_debits - total_credits
        is_balanced = difference == 0 and not inconsistent
        if not is_balanced:
            logger.error(
                "Ledger integrity check failed: difference=%s entries=%s",
                difference, sorted(inconsistent),
            )
        return {
            "total_debits": total_debits,
            "total_credits": total_credits,
            "difference": difference,
            "is_balanced": is_balanced,
            "inconsistent_entries": sorted(inconsistent),
        }
