"""
Finance Ledger — FastAPI Application.

This is the entry point for the application.
All routers are registered here.
"""

import logging

from fastapi import FastAPI

from finance_ledger.config import get_settings
from finance_ledger.api.accounts import router as accounts_router
from finance_ledger.api.health import router as health_router
from finance_ledger.api.journal import router as journal_router
from finance_ledger.api.ledger import router as ledger_router

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Double-entry general ledger: chart of accounts, "
                "journal posting, balances and voids",
)

# Register routers
app.include_router(health_router)
app.include_router(accounts_router)
app.include_router(journal_router)
app.include_router(ledger_router)
