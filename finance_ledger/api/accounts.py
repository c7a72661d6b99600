"""
Chart of accounts API endpoints.

Routes translate HTTP to AccountService calls and LedgerError
to error responses; the rules live in the service.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from finance_ledger.api.errors import http_error
from finance_ledger.exceptions import LedgerError
from finance_ledger.models.base import get_db
from finance_ledger.models.enums import AccountType
from finance_ledger.services.account_service import AccountService
from finance_ledger.schemas.account import (
    AccountCreate,
    AccountParentUpdate,
    AccountResponse,
)

router = APIRouter(prefix="/accounts", tags=["Accounts"])


@router.post("", response_model=AccountResponse, status_code=201)
def create_account(
    request: AccountCreate,
    db: Session = Depends(get_db),
):
    """
    Create a new account.

    Every account must exist before journal lines can
    reference it.
    """
    service = AccountService(db)
    try:
        account = service.create_account(request)
        db.commit()
        return account
    except LedgerError as e:
        db.rollback()
        raise http_error(e)


@router.get("", response_model=list[AccountResponse])
def list_accounts(
    account_type: AccountType | None = None,
    active_only: bool = False,
    db: Session = Depends(get_db),
):
    """List accounts ordered by code."""
    return AccountService(db).list_accounts(account_type, active_only)


@router.get("/by-code/{code}", response_model=AccountResponse)
def get_account_by_code(
    code: str,
    db: Session = Depends(get_db),
):
    try:
        return AccountService(db).get_account_by_code(code)
    except LedgerError as e:
        raise http_error(e)


@router.get("/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: int,
    db: Session = Depends(get_db),
):
    try:
        return AccountService(db).get_account(account_id)
    except LedgerError as e:
        raise http_error(e)


@router.patch("/{account_id}/parent", response_model=AccountResponse)
def set_parent(
    account_id: int,
    request: AccountParentUpdate,
    db: Session = Depends(get_db),
):
    """Move an account in the roll-up tree."""
    service = AccountService(db)
    try:
        account = service.set_parent(account_id, request.parent_id)
        db.commit()
        return account
    except LedgerError as e:
        db.rollback()
        raise http_error(e)


@router.post("/{account_id}/deactivate", response_model=AccountResponse)
def deactivate_account(
    account_id: int,
    db: Session = Depends(get_db),
):
    """
    Deactivate an account.

    Refused for system accounts, accounts with active children
    and accounts whose balance is not zero.
    """
    service = AccountService(db)
    try:
        account = service.deactivate(account_id)
        db.commit()
        return account
    except LedgerError as e:
        db.rollback()
        raise http_error(e)


@router.post("/{account_id}/activate", response_model=AccountResponse)
def activate_account(
    account_id: int,
    db: Session = Depends(get_db),
):
    service = AccountService(db)
    try:
        account = service.activate(account_id)
        db.commit()
        return account
    except LedgerError as e:
        db.rollback()
        raise http_error(e)
