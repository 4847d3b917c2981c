"""Repository layer for database access."""

from benefit_extraction.repositories.audit_repository import AuditRepository
from benefit_extraction.repositories.base_repository import BaseRepository
from benefit_extraction.repositories.benefit_repository import BenefitRepository
from benefit_extraction.repositories.document_repository import DocumentRepository

__all__ = [
    "AuditRepository",
    "BaseRepository",
    "BenefitRepository",
    "DocumentRepository",
]
