"""
Void service — reversing posted journal entries.

A posted entry is never edited or deleted. Voiding posts a new
entry whose lines mirror the original (debit and credit swapped)
through the normal posting path, then links the two:

    reversal.reverses_entry_id -> original
    original.voided_by_id      -> reversal, status VOIDED

Both the reversal's ledger rows and the link commit in the same
posting transaction. The unique constraint on reverses_entry_id
guarantees an entry is reversed at most once, even when two
void requests race.
"""

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from finance_ledger.exceptions import (
    AlreadyVoidedError,
    InvalidVoidDateError,
    NotPostedError,
)
from finance_ledger.models.enums import JournalStatus
from finance_ledger.models.journal_entry import JournalEntry
from finance_ledger.schemas.journal import JournalEntryCreate, JournalLineCreate
from finance_ledger.services.audit import AuditAction, record_event
from finance_ledger.services.posting_service import PostingService

logger = logging.getLogger(__name__)

REVERSAL_ENTRY_TYPE = "Reversal"


class VoidService:

    def __init__(self, db: Session, posting_service: PostingService | None = None):
        self.db = db
        self.posting = posting_service or PostingService(db)

    def _already_voided(self, entry: JournalEntry) -> bool:
        if entry.voided_by_id is not None:
            return True
        reversal_id = self.db.execute(
            select(JournalEntry.id).where(
                JournalEntry.reverses_entry_id == entry.id
            )
        ).scalar_one_or_none()
        return reversal_id is not None

    def _reversal_date(self, original: JournalEntry, void_date: date | None) -> date:
        if void_date is None:
            return max(original.transaction_date, date.today())
        if void_date < original.transaction_date:
            raise InvalidVoidDateError(
                f"Void date {void_date} is before entry {original.id}'s "
                f"date {original.transaction_date}",
                details={
                    "entry_id": original.id,
                    "void_date": str(void_date),
                    "transaction_date": str(original.transaction_date),
                },
            )
        return void_date

    def void(
        self,
        entry_id: int,
        reason: str,
        void_date: date | None = None,
        voided_by: str | None = None,
    ) -> JournalEntry:
        """
        Void a posted entry and return the reversal entry.

        Raises AlreadyVoidedError if a reversal already references
        the entry, NotPostedError if it is not POSTED.

        The reversal is dated `void_date`. By default that is today,
        or the original's date when the original is dated in the
        future, so no balance ever shows the reversal without the
        entry it cancels. A `void_date` before the original's date
        raises InvalidVoidDateError.

        The reversal is validated like any other post: if an account
        the original touched has since been deactivated, this raises
        ValidationFailedError(InactiveAccount) and changes nothing.
        """
        original = self.posting.get_entry(entry_id)
        if self._already_voided(original):
            raise AlreadyVoidedError(
                f"Journal entry {original.id} has already been voided",
                details={"entry_id": original.id, "voided_by_id": original.voided_by_id},
            )
        if original.status != JournalStatus.POSTED:
            raise NotPostedError(
                f"Only posted entries can be voided "
                f"(entry {original.id} is {original.status.value})",
                details={"entry_id": original.id, "status": original.status.value},
            )

        reversal_date = self._reversal_date(original, void_date)
        original_number = original.display_number
        mirrored = [
            JournalLineCreate(
                account_id=line.account_id,
                debit=line.credit,
                credit=line.debit,
                description=f"Reversal: {line.description}"[:255],
            )
            for line in original.lines
        ]

        def link_original(posted: JournalEntry) -> None:
            # Re-read under the posting lock; a concurrent void may have won
            current = self.db.execute(
                select(JournalEntry)
                .where(JournalEntry.id == original.id)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalar_one()
            if current.voided_by_id is not None:
                raise AlreadyVoidedError(
                    f"Journal entry {current.id} has already been voided",
                    details={"entry_id": current.id},
                )
            if current.status != JournalStatus.POSTED:
                raise NotPostedError(
                    f"Journal entry {current.id} is no longer posted",
                    details={"entry_id": current.id, "status": current.status.value},
                )
            current.status = JournalStatus.VOIDED
            current.voided_by_id = posted.id
            current.void_reason = reason
            self.db.flush()
            record_event(
                self.db, AuditAction.ENTRY_VOIDED, "journal_entry", current.id,
                reversal_id=posted.id, reason=reason, voided_by=voided_by,
            )

        # The reversal draft, its approval and the link are one unit:
        # any failure rolls all of it back.
        try:
            reversal = self.posting.create_draft(JournalEntryCreate(
                transaction_date=reversal_date,
                narration=f"Reversal of {original_number}: {reason}",
                entry_type=REVERSAL_ENTRY_TYPE,
                reference=original_number,
                prepared_by=voided_by,
                lines=mirrored,
            ))
            reversal.reverses_entry_id = original.id
            self.posting.approve(reversal.id, approved_by=voided_by)
            reversal = self.posting.post(reversal.id, on_posted=link_original)
        except IntegrityError as e:
            self.db.rollback()
            raise AlreadyVoidedError(
                f"Journal entry {entry_id} has already been voided",
                details={"entry_id": entry_id},
            ) from e
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Journal entry %s voided by %s: %s",
            original_number, reversal.display_number, reason,
        )
        return reversal
