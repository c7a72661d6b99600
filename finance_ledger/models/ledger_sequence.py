"""
Ledger sequence counters.

One row per named counter (entry numbers, ledger row sequence).
A counter is only ever advanced while its row is locked inside
the posting transaction, so a rolled-back post leaves no gap.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from finance_ledger.models.base import Base


ENTRY_NUMBER = "journal_entry_number"
LEDGER_ROW = "ledger_row_sequence"


class LedgerSequence(Base):
    __tablename__ = "ledger_sequences"

    name: Mapped[str] = mapped_column(String(50), primary_key=True)
    last_value: Mapped[int] = mapped_column(nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<LedgerSequence {self.name}={self.last_value}>"
