"""
Journal validator — structural and balance checks for a set of lines.

This module is pure: it never touches the database. The caller
hands it the proposed lines and a mapping of the accounts they
reference, so the same checks run before a draft is approved,
again inside the posting lock, and from the /journal/validate
endpoint that front ends call before submitting.

Checks run in a fixed order and the first failure wins:
    1. at least two lines
    2. every account exists and is active
    3. every line has exactly one side strictly positive
    4. total debits equal total credits, exactly
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, asdict
from decimal import Decimal
from typing import Any, ClassVar

MIN_LINES = 2
ZERO = Decimal("0")


# --- Tagged failure reasons ---

@dataclass(frozen=True)
class Reason:
    code: ClassVar[str] = "INVALID"

    @property
    def message(self) -> str:
        raise NotImplementedError

    def to_dict(self) -> dict[str, Any]:
        data = {
            key: str(value) if isinstance(value, Decimal) else value
            for key, value in asdict(self).items()
        }
        return {"reason": self.code, **data}


@dataclass(frozen=True)
class TooFewLines(Reason):
    line_count: int
    code: ClassVar[str] = "TOO_FEW_LINES"

    @property
    def message(self) -> str:
        return (
            f"A journal entry needs at least {MIN_LINES} lines, "
            f"got {self.line_count}"
        )


@dataclass(frozen=True)
class UnknownAccount(Reason):
    account_id: int
    code: ClassVar[str] = "UNKNOWN_ACCOUNT"

    @property
    def message(self) -> str:
        return f"Account {self.account_id} not found"


@dataclass(frozen=True)
class InactiveAccount(Reason):
    account_id: int
    code: ClassVar[str] = "INACTIVE_ACCOUNT"

    @property
    def message(self) -> str:
        return f"Account {self.account_id} is not active"


@dataclass(frozen=True)
class MixedSidedLine(Reason):
    line_index: int
    code: ClassVar[str] = "MIXED_SIDED_LINE"

    @property
    def message(self) -> str:
        return (
            f"Line {self.line_index} must have exactly one of debit or "
            f"credit greater than zero and the other zero"
        )


@dataclass(frozen=True)
class Unbalanced(Reason):
    diff: Decimal
    code: ClassVar[str] = "UNBALANCED"

    @property
    def message(self) -> str:
        return f"Journal entry does not balance: difference={self.diff}"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validate_lines. `reason` is None on success."""
    total_debit: Decimal
    total_credit: Decimal
    reason: Reason | None = None

    @property
    def is_valid(self) -> bool:
        return self.reason is None


def to_amount(value) -> Decimal:
    """
    Coerce a line amount to Decimal.

    Floats are refused outright: binary rounding would make the
    exact balance check meaningless.
    """
    if value is None:
        return ZERO
    if isinstance(value, bool) or isinstance(value, float):
        raise TypeError(
            f"amounts must be Decimal or int, not {type(value).__name__}"
        )
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    raise TypeError(
        f"amounts must be Decimal or int, not {type(value).__name__}"
    )


def validate_lines(lines: Iterable, accounts: Mapping[int, Any]) -> ValidationResult:
    """
    Validate proposed journal lines.

    `lines` are objects with account_id, debit, credit and
    description attributes (request schemas and JournalLine rows
    both qualify). `accounts` maps account id to anything with an
    `is_active` attribute.
    """
    lines = list(lines)
    amounts = [(to_amount(line.debit), to_amount(line.credit)) for line in lines]
    total_debit = sum((debit for debit, _ in amounts), ZERO)
    total_credit = sum((credit for _, credit in amounts), ZERO)

    def fail(reason: Reason) -> ValidationResult:
        return ValidationResult(total_debit, total_credit, reason)

    if len(lines) < MIN_LINES:
        return fail(TooFewLines(line_count=len(lines)))

    for line in lines:
        account = accounts.get(line.account_id)
        if account is None:
            return fail(UnknownAccount(account_id=line.account_id))
        if not account.is_active:
            return fail(InactiveAccount(account_id=line.account_id))

    for index, (debit, credit) in enumerate(amounts):
        one_sided = (debit > ZERO and credit == ZERO) or (
            credit > ZERO and debit == ZERO
        )
        if not one_sided:
            return fail(MixedSidedLine(line_index=index))

    if total_debit != total_credit:
        return fail(Unbalanced(diff=abs(total_debit - total_credit)))

    return ValidationResult(total_debit, total_credit)
