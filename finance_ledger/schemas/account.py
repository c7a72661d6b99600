"""
Pydantic schemas for the chart of accounts.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from finance_ledger.models.enums import AccountType, NormalBalance


# --- Request Schemas ---

class AccountCreate(BaseModel):
    """
    Request to create an account.

    normal_balance is derived from account_type when omitted;
    supplying it records an explicit override.
    """
    code: str = Field(min_length=1, max_length=20)
    name: str = Field(min_length=1, max_length=100)
    account_type: AccountType
    normal_balance: NormalBalance | None = None
    parent_id: int | None = None
    description: str | None = Field(default=None, max_length=255)
    is_system: bool = False


class AccountParentUpdate(BaseModel):
    """Move an account under a new parent, or to the top level with null."""
    parent_id: int | None = None


# --- Response Schemas ---

class AccountResponse(BaseModel):
    id: int
    code: str
    name: str
    description: str | None
    account_type: AccountType
    normal_balance: NormalBalance
    parent_id: int | None
    is_active: bool
    is_system: bool
    created_at: datetime

    model_config = {"from_attributes": True}
