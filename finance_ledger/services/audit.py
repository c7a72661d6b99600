"""
Audit trail writer.

Every state transition in the ledger leaves an AuditLog row in
the same database transaction as the change itself, so the
trail can never disagree with the data.
"""

import json
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from finance_ledger.models.audit_log import AuditLog


class AuditAction:
    """Standardized audit event types."""
    ACCOUNT_CREATED = "ACCOUNT_CREATED"
    ACCOUNT_REPARENTED = "ACCOUNT_REPARENTED"
    ACCOUNT_DEACTIVATED = "ACCOUNT_DEACTIVATED"
    ACCOUNT_ACTIVATED = "ACCOUNT_ACTIVATED"

    ENTRY_DRAFTED = "ENTRY_DRAFTED"
    ENTRY_APPROVED = "ENTRY_APPROVED"
    ENTRY_POSTED = "ENTRY_POSTED"
    ENTRY_VOIDED = "ENTRY_VOIDED"
    ENTRY_DISCARDED = "ENTRY_DISCARDED"


def record_event(
    db: Session,
    event_type: str,
    entity_type: str,
    entity_id: int | None,
    **details: Any,
) -> AuditLog:
    """Add an audit record to the session. The caller's commit persists it."""
    entry = AuditLog(
        event_type=event_type,
        entity_type=entity_type,
        entity_id=entity_id,
        details=json.dumps(details, default=str, sort_keys=True),
    )
    db.add(entry)
    return entry


def get_events(
    db: Session, entity_type: str, entity_id: int
) -> list[AuditLog]:
    """Return the audit trail of one entity, oldest first."""
    events = db.execute(
        select(AuditLog)
        .where(
            AuditLog.entity_type == entity_type,
            AuditLog.entity_id == entity_id,
        )
        .order_by(AuditLog.id)
    ).scalars().all()
    return list(events)
