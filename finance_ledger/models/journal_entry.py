"""
Journal entry and journal line models.

A journal entry is one business transaction: a dated narration
with an ordered set of lines, each debiting or crediting one
account. The entry moves through a state machine:

    DRAFT -> APPROVED -> POSTED -> VOIDED

Only posting writes to the ledger. Voiding never edits a posted
entry's rows; it posts a new, mirrored entry and links the two.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    String, Date, DateTime, Numeric, ForeignKey,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from finance_ledger.config import get_settings
from finance_ledger.models.base import Base
from finance_ledger.models.enums import JournalStatus


# Legal state transitions; the single source of truth for the state machine.
# Discarding a draft is a hard delete, not a transition.
VALID_TRANSITIONS: dict[JournalStatus, set[JournalStatus]] = {
    JournalStatus.DRAFT: {JournalStatus.APPROVED},
    JournalStatus.APPROVED: {JournalStatus.POSTED},
    JournalStatus.POSTED: {JournalStatus.VOIDED},
    JournalStatus.VOIDED: set(),  # Terminal state
}


class JournalEntry(Base):
    __tablename__ = "journal_entries"

    id: Mapped[int] = mapped_column(primary_key=True)
    # Issued at post time only, so posted numbers are gapless
    entry_number: Mapped[int | None] = mapped_column(
        unique=True, nullable=True, index=True
    )
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    narration: Mapped[str] = mapped_column(String(500), nullable=False)
    entry_type: Mapped[str] = mapped_column(
        String(50), nullable=False, default="Standard"
    )
    reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    status: Mapped[JournalStatus] = mapped_column(
        SAEnum(
            JournalStatus,
            name="journal_status_enum",
            create_constraint=True,
        ),
        nullable=False,
        default=JournalStatus.DRAFT,
    )
    total_debit: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    total_credit: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    prepared_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    approved_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    posted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # Void links: the reversal points at the original (unique, so an
    # entry can be reversed at most once) and the original points back.
    reverses_entry_id: Mapped[int | None] = mapped_column(
        ForeignKey("journal_entries.id"), unique=True, nullable=True
    )
    voided_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("journal_entries.id"), nullable=True
    )
    void_reason: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    lines: Mapped[list["JournalLine"]] = relationship(
        back_populates="entry",
        order_by="JournalLine.line_number",
        cascade="all, delete-orphan",
    )

    def can_transition_to(self, new_status: JournalStatus) -> bool:
        """Check if a state transition is valid."""
        return new_status in VALID_TRANSITIONS.get(self.status, set())

    @property
    def display_number(self) -> str | None:
        """Entry number as printed on reports, e.g. JE-000042."""
        if self.entry_number is None:
            return None
        return f"{get_settings().ENTRY_NUMBER_PREFIX}{self.entry_number:06d}"

    def __repr__(self) -> str:
        number = self.entry_number if self.entry_number is not None else "-"
        return f"<JournalEntry #{number} {self.transaction_date} ({self.status.value})>"


class JournalLine(Base):
    """
    One debit or credit line of a journal entry.

    Owned by its entry; deleted only together with a
    still-DRAFT entry.
    """

    __tablename__ = "journal_lines"

    id: Mapped[int] = mapped_column(primary_key=True)
    entry_id: Mapped[int] = mapped_column(
        ForeignKey("journal_entries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    line_number: Mapped[int] = mapped_column(nullable=False)
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"), nullable=False, index=True
    )
    description: Mapped[str] = mapped_column(
        String(255), nullable=False, default=""
    )
    debit: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    credit: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )

    entry: Mapped["JournalEntry"] = relationship(back_populates="lines")
    account: Mapped["Account"] = relationship()

    def __repr__(self) -> str:
        return f"<JournalLine {self.account_id} Dr {self.debit} Cr {self.credit}>"
