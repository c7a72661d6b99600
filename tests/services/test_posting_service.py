"""
Tests for the PostingService.

Tests cover:
- Draft creation and the approval gate
- Posting: ledger rows, running balances, entry numbers
- Posting twice never writes twice
- All-or-nothing posting and gapless numbering
- Discarding drafts
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from finance_ledger.exceptions import (
    InvalidTransitionError,
    LockTimeoutError,
    NotApprovedError,
    NotFoundError,
    ValidationFailedError,
)
from finance_ledger.models.enums import AccountType, JournalStatus
from finance_ledger.models.journal_entry import JournalEntry
from finance_ledger.models.ledger_row import LedgerRow
from finance_ledger.models.ledger_sequence import ENTRY_NUMBER, LEDGER_ROW
from finance_ledger.services import sequence_service
from finance_ledger.services.account_service import AccountService
from finance_ledger.services.journal_validator import (
    InactiveAccount,
    Unbalanced,
    UnknownAccount,
)
from finance_ledger.services.posting_lock import posting_lock
from finance_ledger.services.posting_service import PostingService
from finance_ledger.schemas.account import AccountCreate
from finance_ledger.schemas.journal import JournalEntryCreate, JournalLineCreate


# --- Helpers ---

def make_account(db, code, account_type):
    return AccountService(db).create_account(AccountCreate(
        code=code, name=f"Account {code}", account_type=account_type,
    ))


def draft_request(debit_id, credit_id, debit, credit=None, when=date(2024, 1, 15)):
    return JournalEntryCreate(
        transaction_date=when,
        narration="Tuition fee received",
        lines=[
            JournalLineCreate(account_id=debit_id, debit=Decimal(debit)),
            JournalLineCreate(
                account_id=credit_id, credit=Decimal(credit or debit)
            ),
        ],
    )


def count_rows(db):
    return db.execute(select(func.count()).select_from(LedgerRow)).scalar_one()


@pytest.fixture
def accounts(db_session):
    cash = make_account(db_session, "1000", AccountType.ASSET)
    fees = make_account(db_session, "4000", AccountType.INCOME)
    db_session.commit()
    return cash, fees


# --- Drafts and approval ---

class TestCreateDraft:

    def test_draft_has_no_number_and_no_rows(self, db_session, accounts):
        cash, fees = accounts
        entry = PostingService(db_session).create_draft(
            draft_request(cash.id, fees.id, "500.00")
        )
        db_session.commit()

        assert entry.status == JournalStatus.DRAFT
        assert entry.entry_number is None
        assert entry.display_number is None
        assert entry.total_debit == Decimal("500.00")
        assert [line.line_number for line in entry.lines] == [1, 2]
        assert count_rows(db_session) == 0

    def test_unknown_account_rejected_at_creation(self, db_session, accounts):
        cash, _ = accounts
        with pytest.raises(ValidationFailedError) as exc_info:
            PostingService(db_session).create_draft(
                draft_request(cash.id, 999, "10")
            )
        assert exc_info.value.reason == UnknownAccount(account_id=999)

    def test_unbalanced_draft_is_kept_but_not_approved(self, db_session, accounts):
        cash, fees = accounts
        service = PostingService(db_session)
        entry = service.create_draft(draft_request(cash.id, fees.id, "500", "300"))
        db_session.commit()

        with pytest.raises(ValidationFailedError) as exc_info:
            service.approve(entry.id)

        assert exc_info.value.reason == Unbalanced(diff=Decimal("200"))
        assert exc_info.value.status_code == 422
        db_session.rollback()
        assert service.get_entry(entry.id).status == JournalStatus.DRAFT

    def test_approve_sets_status_and_approver(self, db_session, accounts):
        cash, fees = accounts
        service = PostingService(db_session)
        entry = service.create_draft(draft_request(cash.id, fees.id, "75"))
        service.approve(entry.id, approved_by="bursar")

        assert entry.status == JournalStatus.APPROVED
        assert entry.approved_by == "bursar"
        assert entry.approved_at is not None
        assert entry.entry_number is None

    def test_approve_twice_is_invalid(self, db_session, accounts):
        cash, fees = accounts
        service = PostingService(db_session)
        entry = service.create_draft(draft_request(cash.id, fees.id, "75"))
        service.approve(entry.id)

        with pytest.raises(InvalidTransitionError):
            service.approve(entry.id)

    def test_validate_has_no_side_effects(self, db_session, accounts):
        cash, fees = accounts
        result = PostingService(db_session).validate(
            draft_request(cash.id, fees.id, "10").lines
        )

        assert result.is_valid
        assert db_session.execute(
            select(func.count()).select_from(JournalEntry)
        ).scalar_one() == 0


# --- Posting ---

class TestPost:

    def test_post_writes_one_row_per_line(self, db_session, accounts):
        cash, fees = accounts
        service = PostingService(db_session)
        entry = service.create_draft(draft_request(cash.id, fees.id, "500.00"))
        service.approve(entry.id)
        posted = service.post(entry.id)

        assert posted.status == JournalStatus.POSTED
        assert posted.posted_at is not None
        assert posted.entry_number == 1
        assert posted.display_number == "JE-000001"

        rows = db_session.execute(
            select(LedgerRow).order_by(LedgerRow.sequence)
        ).scalars().all()
        assert [r.sequence for r in rows] == [1, 2]
        assert [r.account_id for r in rows] == [cash.id, fees.id]
        assert all(r.journal_entry_id == posted.id for r in rows)
        assert rows[0].description == "Tuition fee received"

    def test_running_balance_uses_normal_side(self, db_session, accounts):
        cash, fees = accounts
        service = PostingService(db_session)
        for amount in ("500", "300"):
            entry = service.create_draft(draft_request(cash.id, fees.id, amount))
            service.approve(entry.id)
            service.post(entry.id)

        cash_rows = db_session.execute(
            select(LedgerRow)
            .where(LedgerRow.account_id == cash.id)
            .order_by(LedgerRow.sequence)
        ).scalars().all()
        fee_rows = db_session.execute(
            select(LedgerRow)
            .where(LedgerRow.account_id == fees.id)
            .order_by(LedgerRow.sequence)
        ).scalars().all()

        # Both sides increase: cash by debits, fee income by credits
        assert [r.running_balance for r in cash_rows] == [Decimal("500"), Decimal("800")]
        assert [r.running_balance for r in fee_rows] == [Decimal("500"), Decimal("800")]

    def test_post_draft_raises_not_approved(self, db_session, accounts):
        cash, fees = accounts
        service = PostingService(db_session)
        entry = service.create_draft(draft_request(cash.id, fees.id, "10"))
        db_session.commit()

        with pytest.raises(NotApprovedError):
            service.post(entry.id)
        assert count_rows(db_session) == 0

    def test_post_twice_never_writes_twice(self, db_session, accounts):
        cash, fees = accounts
        service = PostingService(db_session)
        entry = service.create_draft(draft_request(cash.id, fees.id, "500"))
        service.approve(entry.id)
        service.post(entry.id)

        with pytest.raises(NotApprovedError):
            service.post(entry.id)

        assert count_rows(db_session) == 2
        assert sequence_service.current(db_session, ENTRY_NUMBER) == 1
        assert sequence_service.current(db_session, LEDGER_ROW) == 2

    def test_post_unknown_entry(self, db_session):
        with pytest.raises(NotFoundError):
            PostingService(db_session).post(12345)

    def test_post_revalidates_account_state(self, db_session, accounts):
        cash, fees = accounts
        service = PostingService(db_session)
        entry = service.create_draft(draft_request(cash.id, fees.id, "40"))
        service.approve(entry.id)
        db_session.commit()

        AccountService(db_session).deactivate(fees.id)
        db_session.commit()

        with pytest.raises(ValidationFailedError) as exc_info:
            service.post(entry.id)

        assert exc_info.value.reason == InactiveAccount(account_id=fees.id)
        assert service.get_entry(entry.id).status == JournalStatus.APPROVED
        assert count_rows(db_session) == 0

    def test_lock_timeout_leaves_entry_approved(self, db_session, accounts):
        cash, fees = accounts
        service = PostingService(db_session, lock_timeout=0.05)
        entry = service.create_draft(draft_request(cash.id, fees.id, "40"))
        service.approve(entry.id)
        db_session.commit()

        with posting_lock(1):
            with pytest.raises(LockTimeoutError):
                service.post(entry.id)

        assert service.get_entry(entry.id).status == JournalStatus.APPROVED
        assert count_rows(db_session) == 0


class TestNumbering:

    def test_numbers_are_issued_in_posting_order(self, db_session, accounts):
        cash, fees = accounts
        service = PostingService(db_session)
        drafts = [
            service.create_draft(draft_request(cash.id, fees.id, str(n)))
            for n in (1, 2, 3)
        ]
        for entry in drafts:
            service.approve(entry.id)

        # Posted out of creation order
        for entry in reversed(drafts):
            service.post(entry.id)

        assert [e.entry_number for e in reversed(drafts)] == [1, 2, 3]
        assert service.get_entry_by_number(2).id == drafts[1].id

    def test_failed_post_leaves_no_gap(self, db_session, accounts):
        cash, fees = accounts
        service = PostingService(db_session)
        first = service.create_draft(draft_request(cash.id, fees.id, "10"))
        second = service.create_draft(draft_request(cash.id, fees.id, "20"))
        service.approve(first.id)
        service.approve(second.id)
        db_session.commit()

        accounts_service = AccountService(db_session)
        accounts_service.deactivate(fees.id)
        db_session.commit()
        with pytest.raises(ValidationFailedError):
            service.post(first.id)

        accounts_service.activate(fees.id)
        db_session.commit()
        service.post(second.id)
        service.post(first.id)

        assert service.get_entry(second.id).entry_number == 1
        assert service.get_entry(first.id).entry_number == 2


# --- Drafts lifecycle ---

class TestDiscardAndList:

    def test_discard_draft_deletes_it(self, db_session, accounts):
        cash, fees = accounts
        service = PostingService(db_session)
        entry = service.create_draft(draft_request(cash.id, fees.id, "10"))
        db_session.commit()
        entry_id = entry.id

        service.discard_draft(entry_id)
        db_session.commit()

        with pytest.raises(NotFoundError):
            service.get_entry(entry_id)

    def test_approved_entry_cannot_be_discarded(self, db_session, accounts):
        cash, fees = accounts
        service = PostingService(db_session)
        entry = service.create_draft(draft_request(cash.id, fees.id, "10"))
        service.approve(entry.id)

        with pytest.raises(InvalidTransitionError):
            service.discard_draft(entry.id)

    def test_list_entries_filters(self, db_session, accounts):
        cash, fees = accounts
        service = PostingService(db_session)
        january = service.create_draft(
            draft_request(cash.id, fees.id, "10", when=date(2024, 1, 10))
        )
        february = service.create_draft(
            draft_request(cash.id, fees.id, "20", when=date(2024, 2, 10))
        )
        service.approve(february.id)
        service.post(february.id)

        assert [e.id for e in service.list_entries()] == [january.id, february.id]
        assert [e.id for e in service.list_entries(status=JournalStatus.POSTED)] == [february.id]
        assert [
            e.id for e in service.list_entries(
                start_date=date(2024, 1, 1), end_date=date(2024, 1, 31)
            )
        ] == [january.id]
