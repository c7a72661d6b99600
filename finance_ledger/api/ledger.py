"""
Ledger query API endpoints.

Read-only views over the posted ledger: balances, per-account
rows and statements, the trial balance, profit and loss, the
financial position and an integrity check.
Balances are calculated from ledger rows, never stored.
"""

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from finance_ledger.api.errors import http_error
from finance_ledger.exceptions import LedgerError
from finance_ledger.models.base import get_db
from finance_ledger.services.balance_service import BalanceService
from finance_ledger.schemas.ledger import (
    AccountBalanceResponse,
    AccountStatementResponse,
    FinancialPositionResponse,
    IntegrityResponse,
    LedgerRowResponse,
    ProfitAndLossResponse,
    TrialBalanceResponse,
)

router = APIRouter(prefix="/ledger", tags=["Ledger"])


@router.get(
    "/accounts/{account_id}/balance",
    response_model=AccountBalanceResponse,
)
def get_account_balance(
    account_id: int,
    as_of: date | None = None,
    db: Session = Depends(get_db),
):
    """Balance of an account at the end of `as_of` (default today)."""
    as_of = as_of or date.today()
    service = BalanceService(db)
    try:
        balance = service.balance_as_of(account_id, as_of)
    except LedgerError as e:
        raise http_error(e)

    account = service.get_account(account_id)
    return AccountBalanceResponse(
        account_id=account.id,
        account_code=account.code,
        account_type=account.account_type,
        normal_balance=account.normal_balance,
        as_of=as_of,
        balance=balance,
    )


@router.get(
    "/accounts/{account_id}/rows",
    response_model=list[LedgerRowResponse],
)
def get_account_rows(
    account_id: int,
    start_date: date,
    end_date: date,
    db: Session = Depends(get_db),
):
    """Ledger rows between two dates inclusive, by (date, sequence)."""
    try:
        return BalanceService(db).range_ledger(account_id, start_date, end_date)
    except LedgerError as e:
        raise http_error(e)


@router.get(
    "/accounts/{account_id}/statement",
    response_model=AccountStatementResponse,
)
def get_account_statement(
    account_id: int,
    start_date: date,
    end_date: date,
    db: Session = Depends(get_db),
):
    """Opening balance, movements and closing balance for a period."""
    try:
        statement = BalanceService(db).account_statement(
            account_id, start_date, end_date
        )
    except LedgerError as e:
        raise http_error(e)
    return AccountStatementResponse.model_validate(statement)


@router.get("/trial-balance", response_model=TrialBalanceResponse)
def get_trial_balance(
    as_of: date | None = None,
    db: Session = Depends(get_db),
):
    trial_balance = BalanceService(db).trial_balance(as_of or date.today())
    return TrialBalanceResponse.model_validate(trial_balance)


@router.get("/profit-and-loss", response_model=ProfitAndLossResponse)
def get_profit_and_loss(
    start_date: date,
    end_date: date,
    db: Session = Depends(get_db),
):
    """Income and expenses for a period, rolled up by account tree."""
    try:
        report = BalanceService(db).profit_and_loss(start_date, end_date)
    except LedgerError as e:
        raise http_error(e)
    return ProfitAndLossResponse.model_validate(report)


@router.get("/financial-position", response_model=FinancialPositionResponse)
def get_financial_position(
    as_of: date | None = None,
    db: Session = Depends(get_db),
):
    report = BalanceService(db).financial_position(as_of or date.today())
    return FinancialPositionResponse.model_validate(report)


@router.get("/integrity", response_model=IntegrityResponse)
def check_integrity(db: Session = Depends(get_db)):
    """Verify that the ledger as a whole balances."""
    return BalanceService(db).check_integrity()
