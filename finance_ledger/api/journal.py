"""
Journal entry API endpoints.

Drafts are created, approved, posted and voided here. Posting
and voiding commit inside the service; the other endpoints
commit after the service returns.
"""

from datetime import date

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from finance_ledger.api.errors import http_error
from finance_ledger.exceptions import LedgerError
from finance_ledger.models.base import get_db
from finance_ledger.models.enums import JournalStatus
from finance_ledger.services.posting_service import PostingService
from finance_ledger.services.void_service import VoidService
from finance_ledger.schemas.journal import (
    ApproveRequest,
    JournalEntryCreate,
    JournalEntryResponse,
    ValidateLinesRequest,
    ValidationResultResponse,
    VoidRequest,
)

router = APIRouter(prefix="/journal", tags=["Journal"])


@router.post("/validate", response_model=ValidationResultResponse)
def validate_lines(
    request: ValidateLinesRequest,
    db: Session = Depends(get_db),
):
    """
    Check lines without saving anything.

    Always answers 200; `is_valid` and `reason` carry the verdict.
    """
    result = PostingService(db).validate(request.lines)
    return ValidationResultResponse(
        is_valid=result.is_valid,
        total_debit=result.total_debit,
        total_credit=result.total_credit,
        reason=result.reason.to_dict() if result.reason else None,
    )


@router.post("/entries", response_model=JournalEntryResponse, status_code=201)
def create_draft(
    request: JournalEntryCreate,
    db: Session = Depends(get_db),
):
    """Create a draft journal entry."""
    service = PostingService(db)
    try:
        entry = service.create_draft(request)
        db.commit()
        return entry
    except LedgerError as e:
        db.rollback()
        raise http_error(e)


@router.get("/entries", response_model=list[JournalEntryResponse])
def list_entries(
    status: JournalStatus | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db),
):
    return PostingService(db).list_entries(status, start_date, end_date)


@router.get("/entries/{entry_id}", response_model=JournalEntryResponse)
def get_entry(
    entry_id: int,
    db: Session = Depends(get_db),
):
    try:
        return PostingService(db).get_entry(entry_id)
    except LedgerError as e:
        raise http_error(e)


@router.delete("/entries/{entry_id}", status_code=204)
def discard_draft(
    entry_id: int,
    db: Session = Depends(get_db),
):
    """Delete a draft. Approved and posted entries cannot be deleted."""
    service = PostingService(db)
    try:
        service.discard_draft(entry_id)
        db.commit()
    except LedgerError as e:
        db.rollback()
        raise http_error(e)
    return Response(status_code=204)


@router.post("/entries/{entry_id}/approve", response_model=JournalEntryResponse)
def approve_entry(
    entry_id: int,
    request: ApproveRequest | None = None,
    db: Session = Depends(get_db),
):
    service = PostingService(db)
    try:
        entry = service.approve(
            entry_id, approved_by=request.approved_by if request else None
        )
        db.commit()
        return entry
    except LedgerError as e:
        db.rollback()
        raise http_error(e)


@router.post("/entries/{entry_id}/post", response_model=JournalEntryResponse)
def post_entry(
    entry_id: int,
    db: Session = Depends(get_db),
):
    """
    Post an approved entry to the ledger.

    Posting an entry twice fails with NOT_APPROVED; the ledger is
    written exactly once.
    """
    try:
        return PostingService(db).post(entry_id)
    except LedgerError as e:
        raise http_error(e)


@router.post(
    "/entries/{entry_id}/void",
    response_model=JournalEntryResponse,
    status_code=201,
)
def void_entry(
    entry_id: int,
    request: VoidRequest,
    db: Session = Depends(get_db),
):
    """
    Void a posted entry.

    Returns the new reversal entry. The original stays in the
    ledger, marked VOIDED and linked to its reversal.
    """
    try:
        return VoidService(db).void(
            entry_id,
            request.reason,
            void_date=request.void_date,
            voided_by=request.voided_by,
        )
    except LedgerError as e:
        raise http_error(e)
