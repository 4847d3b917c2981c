"""Tests for the document status compare-and-set."""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.sql.elements import BindParameter
from sqlalchemy.sql.visitors import iterate

from benefit_extraction.repositories.document_repository import DocumentRepository
from benefit_extraction.services.status_machine import (
    MAX_ERROR_MESSAGE_LENGTH,
    ProcessingStatus,
    source_states,
)


def _session(rowcount: int = 1) -> AsyncMock:
    session = AsyncMock()
    session.execute.return_value = MagicMock(rowcount=rowcount)
    return session


def _statement(session):
    return session.execute.await_args.args[0]


def _allowed_sources(stmt) -> list:
    for element in iterate(stmt.whereclause):
        if isinstance(element, BindParameter) and element.expanding:
            return sorted(element.value)
    raise AssertionError("UPDATE has no status condition")


def _set_values(stmt) -> dict:
    return stmt.compile(dialect=postgresql.dialect()).params


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "target",
    [ProcessingStatus.PROCESSING, ProcessingStatus.COMPLETED, ProcessingStatus.FAILED],
)
async def test_update_only_matches_legal_source_states(target):
    session = _session()
    repository = DocumentRepository(session)

    updated = await repository.transition_status(uuid.uuid4(), target)

    assert updated is True
    stmt = _statement(session)
    assert _allowed_sources(stmt) == sorted(state.value for state in source_states(target))
    assert _set_values(stmt)["processing_status"] == target.value


@pytest.mark.asyncio
async def test_claim_only_from_pending():
    session = _session()

    await DocumentRepository(session).mark_processing(uuid.uuid4())

    stmt = _statement(session)
    assert _allowed_sources(stmt) == ["pending"]
    assert _set_values(stmt)["error_message"] is None


@pytest.mark.asyncio
async def test_terminal_states_are_never_sources():
    session = _session()
    repository = DocumentRepository(session)

    await repository.mark_completed(uuid.uuid4())
    completed_sources = _allowed_sources(_statement(session))
    await repository.mark_failed(uuid.uuid4(), "boom")
    failed_sources = _allowed_sources(_statement(session))

    assert completed_sources == ["processing"]
    assert failed_sources == ["processing"]


@pytest.mark.asyncio
async def test_no_matching_row_returns_false():
    session = _session(rowcount=0)

    assert await DocumentRepository(session).mark_completed(uuid.uuid4()) is False


@pytest.mark.asyncio
async def test_failure_message_is_clamped():
    session = _session()

    await DocumentRepository(session).mark_failed(uuid.uuid4(), "x" * 2000)

    assert len(_set_values(_statement(session))["error_message"]) == MAX_ERROR_MESSAGE_LENGTH
