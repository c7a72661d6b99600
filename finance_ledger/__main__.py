"""Run the ledger API with uvicorn: python -m finance_ledger"""

import uvicorn

from finance_ledger.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "finance_ledger.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    main()
