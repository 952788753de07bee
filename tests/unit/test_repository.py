"""Unit tests for the gateway-backed entity repository."""

import pytest

from payguard.compliance.erasure.service import ErasureRequestRepository
from payguard.compliance.erasure.types import (
    ErasureMethod,
    ErasureRequest,
    ErasureRequestStatus,
)
from payguard.compliance.repository import to_row
from payguard.core.exceptions import RequestNotFoundError
from payguard.storage.gateway import TableName, eq
from payguard.storage.memory import InMemoryStorageGateway


def make_request(subject_id: str = "emp-0001", **overrides) -> ErasureRequest:
    return ErasureRequest(
        subject_id=subject_id,
        requester_id="dpo-1",
        erasure_method=overrides.pop("erasure_method", ErasureMethod.HARD_DELETE),
        reason="Subject request",
        **overrides,
    )


class TestToRow:
    """Tests for entity serialization."""

    def test_enums_stored_by_value(self):
        row = to_row(make_request())

        assert row["status"] == "pending"
        assert row["erasure_method"] == "hard_delete"
        assert not isinstance(row["status"], ErasureRequestStatus)

    def test_selected_fields_only(self):
        row = to_row(make_request(), ["status", "notes"])

        assert set(row) == {"status", "notes"}


class TestEntityRepository:
    """Tests for EntityRepository via the erasure request repository."""

    @pytest.fixture
    def store(self) -> InMemoryStorageGateway:
        return InMemoryStorageGateway()

    @pytest.fixture
    def repo(self, store: InMemoryStorageGateway) -> ErasureRequestRepository:
        return ErasureRequestRepository(store)

    def test_model_taken_from_generic_parameter(self):
        assert ErasureRequestRepository.model is ErasureRequest

    @pytest.mark.asyncio
    async def test_create_then_get(self, repo, store):
        created = await repo.create(make_request())

        fetched = await repo.get(created.id)

        assert fetched == created
        assert store.get_row(TableName.ERASURE_REQUESTS, created.id)["status"] == "pending"

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, repo):
        assert await repo.get("nope") is None

    @pytest.mark.asyncio
    async def test_get_or_raise_names_entity(self, repo):
        with pytest.raises(RequestNotFoundError) as exc_info:
            await repo.get_or_raise("nope")

        assert exc_info.value.entity == "erasure_request"
        assert exc_info.value.entity_id == "nope"

    @pytest.mark.asyncio
    async def test_list_filters(self, repo):
        await repo.create(make_request("emp-0001"))
        await repo.create(make_request("emp-0002"))

        found = await repo.list([eq("subject_id", "emp-0002")])

        assert [r.subject_id for r in found] == ["emp-0002"]

    @pytest.mark.asyncio
    async def test_save_persists_named_fields_only(self, repo, store):
        request = await repo.create(make_request())
        request.status = ErasureRequestStatus.IN_PROGRESS
        request.notes = "not saved"

        await repo.save(request, "status")

        row = store.get_row(TableName.ERASURE_REQUESTS, request.id)
        assert row["status"] == "in_progress"
        assert row["notes"] is None

    @pytest.mark.asyncio
    async def test_save_without_fields_persists_everything(self, repo):
        request = await repo.create(make_request())
        request.records_processed = 3
        request.notes = "done"

        await repo.save(request)

        stored = await repo.get_or_raise(request.id)
        assert stored.records_processed == 3
        assert stored.notes == "done"
