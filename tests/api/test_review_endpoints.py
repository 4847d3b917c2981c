"""Tests for the review API under /api/v1."""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from benefit_extraction.core.exceptions import (
    BenefitNotFoundError,
    DatabaseError,
    DocumentNotFoundError,
)
from benefit_extraction.dependencies import get_review_service


def _document(**overrides):
    document = SimpleNamespace(
        id=uuid.uuid4(),
        issuer="Chase",
        card_id="chase-sapphire-preferred",
        card_name="Sapphire Preferred",
        file_path="guides/doc.pdf",
        file_name="doc.pdf",
        mime_type="application/pdf",
        processing_status="completed",
        error_message=None,
        extraction_started_at=None,
        extraction_completed_at=None,
        uploaded_by=None,
        created_at=datetime.now(timezone.utc),
    )
    for key, value in overrides.items():
        setattr(document, key, value)
    return document


def _benefit(**overrides):
    benefit = SimpleNamespace(
        id=uuid.uuid4(),
        document_id=uuid.uuid4(),
        card_id="new",
        benefit_type="rental",
        extracted_data={"coverage": "primary"},
        confidence_score=Decimal("0.65"),
        source_excerpts=["Coverage is primary"],
        requires_review=True,
        is_approved=None,
        reviewed_by=None,
        reviewed_at=None,
        created_at=datetime.now(timezone.utc),
    )
    for key, value in overrides.items():
        setattr(benefit, key, value)
    return benefit


@pytest.fixture
def review_service():
    return AsyncMock()


@pytest.fixture
def client(test_app, review_service) -> TestClient:
    test_app.dependency_overrides[get_review_service] = lambda: review_service
    return TestClient(test_app)


def test_review_api_requires_secret(client):
    response = client.get(f"/api/v1/documents/{uuid.uuid4()}/status")

    assert response.status_code == 401
    assert response.json() == {"detail": "Unauthorized"}


def test_document_status(client, auth_headers, review_service):
    review_service.get_document_status.return_value = {
        "processing_status": "failed",
        "error_message": "Failed to parse extraction result",
    }

    response = client.get(f"/api/v1/documents/{uuid.uuid4()}/status", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {
        "processing_status": "failed",
        "error_message": "Failed to parse extraction result",
    }


def test_document_status_not_found(client, auth_headers, review_service):
    review_service.get_document_status.side_effect = DocumentNotFoundError("Document not found")

    response = client.get(f"/api/v1/documents/{uuid.uuid4()}/status", headers=auth_headers)

    assert response.status_code == 404


def test_list_documents(client, auth_headers, review_service):
    documents = [_document(), _document(processing_status="pending")]
    review_service.list_documents.return_value = (documents, 2)

    response = client.get("/api/v1/documents?status=pending&limit=10", headers=auth_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert len(body["documents"]) == 2
    kwargs = review_service.list_documents.await_args.kwargs
    assert kwargs["limit"] == 10
    assert kwargs["status"].value == "pending"


def test_get_document(client, auth_headers, review_service):
    document = _document()
    review_service.get_document.return_value = document

    response = client.get(f"/api/v1/documents/{document.id}", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["card_name"] == "Sapphire Preferred"


def test_document_benefits(client, auth_headers, review_service):
    document_id = uuid.uuid4()
    review_service.get_document_benefits.return_value = [
        _benefit(document_id=document_id),
        _benefit(document_id=document_id, benefit_type="tripProtection"),
    ]

    response = client.get(f"/api/v1/documents/{document_id}/benefits", headers=auth_headers)

    assert response.status_code == 200
    assert [b["benefit_type"] for b in response.json()] == ["rental", "tripProtection"]


def test_approve_benefit(client, auth_headers, review_service):
    reviewer_id = uuid.uuid4()
    benefit = _benefit(is_approved=True, reviewed_by=reviewer_id, reviewed_at=datetime.now(timezone.utc))
    review_service.approve.return_value = benefit

    response = client.post(
        f"/api/v1/benefits/{benefit.id}/approve",
        json={"reviewer_id": str(reviewer_id)},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["is_approved"] is True
    review_service.approve.assert_awaited_once_with(benefit.id, reviewer_id)


def test_reject_missing_benefit(client, auth_headers, review_service):
    review_service.reject.side_effect = BenefitNotFoundError("Benefit not found")

    response = client.post(
        f"/api/v1/benefits/{uuid.uuid4()}/reject",
        json={"reviewer_id": str(uuid.uuid4())},
        headers=auth_headers,
    )

    assert response.status_code == 404


def test_update_benefit_data(client, auth_headers, review_service):
    benefit = _benefit(extracted_data={"coverage": "secondary"})
    review_service.update_benefit_data.return_value = benefit
    editor_id = uuid.uuid4()

    response = client.patch(
        f"/api/v1/benefits/{benefit.id}",
        json={"extracted_data": {"coverage": "secondary"}, "editor_id": str(editor_id)},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["extracted_data"] == {"coverage": "secondary"}
    review_service.update_benefit_data.assert_awaited_once_with(
        benefit.id, {"coverage": "secondary"}, editor_id=editor_id
    )


def test_benefit_revisions(client, auth_headers, review_service):
    benefit_id = uuid.uuid4()
    review_service.get_benefit_revisions.return_value = [
        SimpleNamespace(
            id=uuid.uuid4(),
            benefit_id=benefit_id,
            previous_data={"coverage": "primary"},
            new_data={"coverage": "secondary"},
            edited_by=None,
            created_at=datetime.now(timezone.utc),
        )
    ]

    response = client.get(f"/api/v1/benefits/{benefit_id}/revisions", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()[0]["new_data"] == {"coverage": "secondary"}


def test_approve_all(client, auth_headers, review_service):
    document_id = uuid.uuid4()
    review_service.approve_all_pending.return_value = 3

    response = client.post(
        f"/api/v1/documents/{document_id}/benefits/approve-all",
        json={"reviewer_id": str(uuid.uuid4())},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json() == {"document_id": str(document_id), "approved": 3}


def test_delete_document(client, auth_headers, review_service):
    document_id = uuid.uuid4()

    response = client.delete(f"/api/v1/documents/{document_id}", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"document_id": str(document_id), "deleted": True}
    review_service.delete_document.assert_awaited_once_with(document_id, actor_id=None)


def test_delete_document_failure(client, auth_headers, review_service):
    review_service.delete_document.side_effect = DatabaseError("Failed to delete document")

    response = client.delete(f"/api/v1/documents/{uuid.uuid4()}", headers=auth_headers)

    assert response.status_code == 500


def test_delete_missing_document(client, auth_headers, review_service):
    review_service.delete_document.side_effect = DocumentNotFoundError("Document not found")

    response = client.delete(f"/api/v1/documents/{uuid.uuid4()}", headers=auth_headers)

    assert response.status_code == 404
