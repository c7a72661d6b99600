"""
Pydantic schemas for journal entries.

Amounts are Decimal and must fit the Numeric(19, 4) columns: at
most fifteen digits before the point and four after. Structural
rules that need the database (accounts exist and are active) or
that the journal validator reports as tagged reasons (line count,
one-sided lines, balance) are deliberately not enforced here.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from finance_ledger.models.enums import JournalStatus


# --- Request Schemas ---

class JournalLineCreate(BaseModel):
    """A single debit or credit line."""
    account_id: int
    debit: Decimal = Field(
        default=Decimal("0"), ge=0, max_digits=19, decimal_places=4
    )
    credit: Decimal = Field(
        default=Decimal("0"), ge=0, max_digits=19, decimal_places=4
    )
    description: str = Field(default="", max_length=255)


class JournalEntryCreate(BaseModel):
    """Request to create a draft journal entry."""
    transaction_date: date
    narration: str = Field(min_length=1, max_length=500)
    entry_type: str = Field(default="Standard", min_length=1, max_length=50)
    reference: str | None = Field(default=None, max_length=100)
    prepared_by: str | None = Field(default=None, max_length=100)
    lines: list[JournalLineCreate]


class ValidateLinesRequest(BaseModel):
    lines: list[JournalLineCreate]


class ApproveRequest(BaseModel):
    approved_by: str | None = Field(default=None, max_length=100)


class VoidRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=255)
    void_date: date | None = None
    voided_by: str | None = Field(default=None, max_length=100)


# --- Response Schemas ---

class ValidationResultResponse(BaseModel):
    is_valid: bool
    total_debit: Decimal
    total_credit: Decimal
    reason: dict | None = None


class JournalLineResponse(BaseModel):
    id: int
    line_number: int
    account_id: int
    description: str
    debit: Decimal
    credit: Decimal

    model_config = {"from_attributes": True}


class JournalEntryResponse(BaseModel):
    id: int
    entry_number: int | None
    display_number: str | None
    transaction_date: date
    narration: str
    entry_type: str
    reference: str | None
    status: JournalStatus
    total_debit: Decimal
    total_credit: Decimal
    prepared_by: str | None
    approved_by: str | None
    approved_at: datetime | None
    posted_at: datetime | None
    reverses_entry_id: int | None
    voided_by_id: int | None
    void_reason: str | None
    created_at: datetime
    lines: list[JournalLineResponse]

    model_config = {"from_attributes": True}
