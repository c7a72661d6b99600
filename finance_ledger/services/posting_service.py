"""
Posting service — journal entries from draft to ledger.

This service enforces the fundamental rules:
1. An entry is approved only if it validates (balanced,
   two or more one-sided lines, active accounts)
2. Only approved entries are posted, exactly once
3. Posting is all-or-nothing: every ledger row, both sequence
   counters and the status change commit together
4. Ledger rows are append-only; nothing here updates or
   deletes one

No other service writes ledger rows. Voiding goes through post().

Numbering policy: entry numbers are gapless and issued only at
post time. Drafts and approved entries have no number, and a
rolled-back post returns its number to the counter.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from finance_ledger.config import get_settings
from finance_ledger.exceptions import (
    InvalidTransitionError,
    LedgerError,
    NotApprovedError,
    NotFoundError,
    ValidationFailedError,
)
from finance_ledger.models.account import Account
from finance_ledger.models.enums import JournalStatus
from finance_ledger.models.journal_entry import JournalEntry, JournalLine
from finance_ledger.models.ledger_row import LedgerRow
from finance_ledger.models.ledger_sequence import ENTRY_NUMBER, LEDGER_ROW
from finance_ledger.schemas.journal import JournalEntryCreate
from finance_ledger.services import sequence_service
from finance_ledger.services.audit import AuditAction, record_event
from finance_ledger.services.balance_service import normal_delta
from finance_ledger.services.journal_validator import (
    UnknownAccount,
    ValidationResult,
    to_amount,
    validate_lines,
)
from finance_ledger.services.posting_lock import posting_lock

logger = logging.getLogger(__name__)


class PostingService:
    """
    Journal entry lifecycle: create_draft -> approve -> post.

    The service takes a database session as a constructor
    argument. create_draft, approve and discard_draft only flush;
    the caller commits. post() is its own transaction boundary
    because the posting lock must be held until the commit.
    """

    def __init__(self, db: Session, lock_timeout: float | None = None):
        self.db = db
        if lock_timeout is None:
            lock_timeout = get_settings().POSTING_LOCK_TIMEOUT
        self.lock_timeout = lock_timeout

    def _load_accounts(
        self, account_ids: Iterable[int], refresh: bool = False
    ) -> dict[int, Account]:
        query = (
            select(Account)
            .where(Account.id.in_(set(account_ids)))
            .order_by(Account.id)
        )
        if refresh:
            query = query.with_for_update().execution_options(
                populate_existing=True
            )
        accounts = self.db.execute(query).scalars().all()
        return {a.id: a for a in accounts}

    def validate(self, lines: Iterable) -> ValidationResult:
        """
        Validate proposed lines against the current chart of accounts.

        Side-effect free; safe to call before creating a draft.
        """
        lines = list(lines)
        accounts = self._load_accounts(line.account_id for line in lines)
        return validate_lines(lines, accounts)

    def create_draft(self, request: JournalEntryCreate) -> JournalEntry:
        """
        Create a DRAFT entry.

        Drafts may be unbalanced or reference inactive accounts;
        approve() rejects those. Lines must reference existing
        accounts because they are stored with a foreign key.
        """
        accounts = self._load_accounts(line.account_id for line in request.lines)
        for line in request.lines:
            if line.account_id not in accounts:
                raise ValidationFailedError(UnknownAccount(account_id=line.account_id))

        # Drafts record the totals as entered, balanced or not
        entry = JournalEntry(
            transaction_date=request.transaction_date,
            narration=request.narration,
            entry_type=request.entry_type,
            reference=request.reference,
            prepared_by=request.prepared_by,
            status=JournalStatus.DRAFT,
            total_debit=sum(
                (to_amount(line.debit) for line in request.lines), Decimal("0")
            ),
            total_credit=sum(
                (to_amount(line.credit) for line in request.lines), Decimal("0")
            ),
        )
        for number, line in enumerate(request.lines, start=1):
            entry.lines.append(JournalLine(
                line_number=number,
                account_id=line.account_id,
                description=line.description,
                debit=to_amount(line.debit),
                credit=to_amount(line.credit),
            ))

        self.db.add(entry)
        self.db.flush()
        record_event(
            self.db, AuditAction.ENTRY_DRAFTED, "journal_entry", entry.id,
            lines=len(entry.lines), prepared_by=entry.prepared_by,
        )
        logger.info("Draft journal entry %s created", entry.id)
        return entry

    def get_entry(self, entry_id: int) -> JournalEntry:
        entry = self.db.get(JournalEntry, entry_id)
        if not entry:
            raise NotFoundError("Journal entry", entry_id)
        return entry

    def get_entry_by_number(self, entry_number: int) -> JournalEntry:
        entry = self.db.execute(
            select(JournalEntry).where(JournalEntry.entry_number == entry_number)
        ).scalar_one_or_none()
        if not entry:
            raise NotFoundError("Journal entry number", entry_number)
        return entry

    def list_entries(
        self,
        status: JournalStatus | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[JournalEntry]:
        """Entries ordered by transaction date, then creation order."""
        query = select(JournalEntry).order_by(
            JournalEntry.transaction_date, JournalEntry.id
        )
        if status is not None:
            query = query.where(JournalEntry.status == status)
        if start_date is not None:
            query = query.where(JournalEntry.transaction_date >= start_date)
        if end_date is not None:
            query = query.where(JournalEntry.transaction_date <= end_date)
        return list(self.db.execute(query).scalars().all())

    def approve(self, entry_id: int, approved_by: str | None = None) -> JournalEntry:
        """
        Approve a DRAFT entry after validating it.

        Raises InvalidTransitionError if the entry is not a draft
        and ValidationFailedError if it does not validate; either
        way the status is left unchanged.
        """
        entry = self.get_entry(entry_id)
        if not entry.can_transition_to(JournalStatus.APPROVED):
            raise InvalidTransitionError(
                f"Cannot approve journal entry {entry.id} "
                f"(status: {entry.status.value})",
                details={"entry_id": entry.id, "status": entry.status.value},
            )

        result = self.validate(entry.lines)
        if not result.is_valid:
            logger.warning(
                "Journal entry %s rejected at approval: %s",
                entry.id, result.reason.message,
            )
            raise ValidationFailedError(result.reason)

        entry.status = JournalStatus.APPROVED
        entry.approved_by = approved_by
        entry.approved_at = datetime.utcnow()
        entry.total_debit = result.total_debit
        entry.total_credit = result.total_credit
        self.db.flush()
        record_event(
            self.db, AuditAction.ENTRY_APPROVED, "journal_entry", entry.id,
            approved_by=approved_by,
        )
        logger.info("Journal entry %s approved", entry.id)
        return entry

    def post(
        self,
        entry_id: int,
        on_posted: Callable[[JournalEntry], None] | None = None,
    ) -> JournalEntry:
        """
        Post an APPROVED entry to the ledger and commit.

        Runs under the posting lock: re-validates against current
        account state, issues the entry number, writes one ledger
        row per line with the account's new running balance, marks
        the entry POSTED and commits. `on_posted` runs inside the
        same transaction just before the commit.

        On any failure the session is rolled back, including
        whatever the caller had pending — and nothing is visible.
        Raises NotApprovedError if the entry is not APPROVED, so
        posting twice never writes twice.
        """
        with posting_lock(self.lock_timeout):
            try:
                entry = self._post_entry(entry_id)
                if on_posted is not None:
                    on_posted(entry)
                self.db.commit()
            except LedgerError:
                self.db.rollback()
                raise
            except Exception:
                self.db.rollback()
                logger.exception("Posting journal entry %s failed", entry_id)
                raise

        logger.info(
            "Journal entry %s posted as %s", entry.id, entry.display_number
        )
        return entry

    def _post_entry(self, entry_id: int) -> JournalEntry:
        # Re-read under lock: another worker may have posted it already
        entry = self.db.execute(
            select(JournalEntry)
            .where(JournalEntry.id == entry_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if not entry:
            raise NotFoundError("Journal entry", entry_id)
        if entry.status != JournalStatus.APPROVED:
            raise NotApprovedError(
                f"Journal entry {entry.id} is not approved "
                f"(status: {entry.status.value})",
                details={"entry_id": entry.id, "status": entry.status.value},
            )

        lines = list(entry.lines)
        accounts = self._load_accounts(
            (line.account_id for line in lines), refresh=True
        )
        result = validate_lines(lines, accounts)
        if not result.is_valid:
            logger.warning(
                "Journal entry %s rejected at posting: %s",
                entry.id, result.reason.message,
            )
            raise ValidationFailedError(result.reason)

        entry.entry_number = sequence_service.reserve(self.db, ENTRY_NUMBER)
        first_sequence = sequence_service.reserve(self.db, LEDGER_ROW, len(lines))

        balances: dict[int, Decimal] = {}
        for offset, line in enumerate(lines):
            account = accounts[line.account_id]
            if account.id not in balances:
                balances[account.id] = self._last_running_balance(account.id)
            balances[account.id] += normal_delta(
                account.normal_balance, line.debit, line.credit
            )
            self.db.add(LedgerRow(
                sequence=first_sequence + offset,
                journal_entry_id=entry.id,
                journal_line_id=line.id,
                account_id=account.id,
                transaction_date=entry.transaction_date,
                debit=line.debit,
                credit=line.credit,
                running_balance=balances[account.id],
                description=(line.description or entry.narration)[:255],
            ))

        entry.status = JournalStatus.POSTED
        entry.posted_at = datetime.utcnow()
        entry.total_debit = result.total_debit
        entry.total_credit = result.total_credit
        self.db.flush()
        record_event(
            self.db, AuditAction.ENTRY_POSTED, "journal_entry", entry.id,
            entry_number=entry.entry_number,
            first_sequence=first_sequence,
            rows=len(lines),
        )
        return entry

    def _last_running_balance(self, account_id: int) -> Decimal:
        """Running balance after the account's latest row in posting order."""
        balance = self.db.execute(
            select(LedgerRow.running_balance)
            .where(LedgerRow.account_id == account_id)
            .order_by(LedgerRow.sequence.desc())
            .limit(1)
        ).scalar_one_or_none()
        return balance if balance is not None else Decimal("0")

    def discard_draft(self, entry_id: int) -> None:
        """
        Hard-delete a DRAFT entry and its lines.

        Approved and posted entries are never deleted; posted
        ones are voided instead.
        """
        entry = self.get_entry(entry_id)
        if entry.status != JournalStatus.DRAFT:
            raise InvalidTransitionError(
                f"Only draft entries can be discarded "
                f"(entry {entry.id} is {entry.status.value})",
                details={"entry_id": entry.id, "status": entry.status.value},
            )
        self.db.delete(entry)
        self.db.flush()
        record_event(
            self.db, AuditAction.ENTRY_DISCARDED, "journal_entry", entry_id
        )
        logger.info("Draft journal entry %s discarded", entry_id)
