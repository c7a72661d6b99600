"""
Ledger row model.

One row per journal line, written when the entry is posted.
Rows are immutable — once posted, they are never modified or
deleted. Corrections are new rows from a reversal entry.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    String, Date, DateTime, Numeric, ForeignKey, Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from finance_ledger.models.base import Base


class LedgerRow(Base):
    """
    An immutable debit or credit movement against one account.

    `sequence` is the global posting order. `running_balance`
    is the account's balance right after this row in that
    order, in the account's normal-balance convention (positive
    when the account sits on its natural side).
    """

    __tablename__ = "ledger_rows"
    __table_args__ = (
        Index(
            "ix_ledger_rows_account_date_sequence",
            "account_id", "transaction_date", "sequence",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    sequence: Mapped[int] = mapped_column(unique=True, nullable=False)
    journal_entry_id: Mapped[int] = mapped_column(
        ForeignKey("journal_entries.id"), nullable=False, index=True
    )
    journal_line_id: Mapped[int] = mapped_column(
        ForeignKey("journal_lines.id"), unique=True, nullable=False
    )
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"), nullable=False
    )
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    debit: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    credit: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    running_balance: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    description: Mapped[str] = mapped_column(
        String(255), nullable=False, default=""
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    account: Mapped["Account"] = relationship()
    journal_entry: Mapped["JournalEntry"] = relationship()

    def __repr__(self) -> str:
        return (
            f"<LedgerRow #{self.sequence} account={self.account_id} "
            f"Dr {self.debit} Cr {self.credit} = {self.running_balance}>"
        )
