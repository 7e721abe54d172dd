"""Audit trail for admin actions and money movements."""

from typing import Any

from storefront.core.logging import get_logger
from storefront.models.audit_log import AuditLog

log = get_logger(__name__)


async def log_event(
    user_id: str | None,
    event_type: str,
    entity_type: str,
    entity_id: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> None:
    """Append to audit_logs collection."""
    await AuditLog(
        user_id=user_id,
        event_type=event_type,
        entity_type=entity_type,
        entity_id=entity_id,
        metadata=metadata or {},
    ).insert()
    log.info("audit", event_type=event_type, entity_type=entity_type, entity_id=entity_id, user_id=user_id)
