"""Double-entry ledger posting engine for school finance."""
