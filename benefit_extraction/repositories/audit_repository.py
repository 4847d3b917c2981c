from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from benefit_extraction.database.models import AuditLog
from benefit_extraction.utils.logging import get_logger

LOGGER = get_logger(__name__)


class AuditRepository:
    """Append-only writer for the admin audit log.

    Entries are write-once: only inserts are exposed.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def record(
        self,
        action: str,
        entity_type: str,
        entity_id: Optional[str],
        details: Optional[Dict[str, Any]] = None,
        performed_by: Optional[UUID] = None,
    ) -> AuditLog:
        """Add an audit entry to the current transaction.

        Args:
            action: Action name (``extract_benefits``, ``delete``)
            entity_type: Kind of entity acted on
            entity_id: Identifier of the entity
            details: Free-form structured details
            performed_by: Acting user, when known

        Returns:
            AuditLog: The pending entry
        """
        entry = AuditLog(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details or {},
            performed_by=performed_by,
        )
        self.session.add(entry)
        await self.session.flush()
        LOGGER.debug(
            "Audit entry recorded",
            extra={"action": action, "entity_type": entity_type, "entity_id": entity_id},
        )
        return entry
