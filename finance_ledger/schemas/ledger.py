"""
Pydantic schemas for ledger queries: balances, account
statements, the trial balance, the roll-up reports and the
integrity check.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel

from finance_ledger.models.enums import AccountType, NormalBalance


class LedgerRowResponse(BaseModel):
    """Single ledger row in API responses."""
    id: int
    sequence: int
    journal_entry_id: int
    journal_line_id: int
    account_id: int
    transaction_date: date
    debit: Decimal
    credit: Decimal
    running_balance: Decimal
    description: str
    created_at: datetime

    model_config = {"from_attributes": True}


class AccountBalanceResponse(BaseModel):
    """Response for an account balance query."""
    account_id: int
    account_code: str
    account_type: AccountType
    normal_balance: NormalBalance
    as_of: date
    balance: Decimal


class StatementLineResponse(BaseModel):
    sequence: int
    journal_entry_id: int
    transaction_date: date
    description: str
    debit: Decimal
    credit: Decimal
    balance: Decimal

    model_config = {"from_attributes": True}


class AccountStatementResponse(BaseModel):
    account_id: int
    account_code: str
    start_date: date
    end_date: date
    opening_balance: Decimal
    total_debit: Decimal
    total_credit: Decimal
    closing_balance: Decimal
    lines: list[StatementLineResponse]

    model_config = {"from_attributes": True}


class TrialBalanceLineResponse(BaseModel):
    account_id: int
    account_code: str
    account_name: str
    account_type: AccountType
    normal_balance: NormalBalance
    balance: Decimal
    debit_balance: Decimal
    credit_balance: Decimal

    model_config = {"from_attributes": True}


class TrialBalanceResponse(BaseModel):
    as_of: date
    lines: list[TrialBalanceLineResponse]
    total_debit: Decimal
    total_credit: Decimal
    is_balanced: bool

    model_config = {"from_attributes": True}


class IntegrityResponse(BaseModel):
    total_debits: Decimal
    total_credits: Decimal
    difference: Decimal
    is_balanced: bool
    inconsistent_entries: list[int]


class ReportLineResponse(BaseModel):
    """An account in a roll-up report; `total` includes its children."""
    account_id: int
    account_code: str
    account_name: str
    account_type: AccountType
    level: int
    amount: Decimal
    total: Decimal
    children: list["ReportLineResponse"] = []

    model_config = {"from_attributes": True}


class ReportSectionResponse(BaseModel):
    account_type: AccountType
    lines: list[ReportLineResponse]
    total: Decimal

    model_config = {"from_attributes": True}


class ProfitAndLossResponse(BaseModel):
    start_date: date
    end_date: date
    income: ReportSectionResponse
    expenses: ReportSectionResponse
    net_surplus: Decimal

    model_config = {"from_attributes": True}


class FinancialPositionResponse(BaseModel):
    as_of: date
    assets: ReportSectionResponse
    liabilities: ReportSectionResponse
    equity: ReportSectionResponse
    accumulated_surplus: Decimal
    total_equity: Decimal
    total_liabilities_and_equity: Decimal
    is_balanced: bool

    model_config = {"from_attributes": True}
