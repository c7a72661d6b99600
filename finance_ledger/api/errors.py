"""
Translation of ledger errors into HTTP responses.

Every LedgerError knows its own status code; the detail body is
{"error_code", "message", "details"} so clients can branch on the
code rather than parse the message.
"""

from fastapi import HTTPException

from finance_ledger.exceptions import LedgerError


def http_error(error: LedgerError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.to_dict())
