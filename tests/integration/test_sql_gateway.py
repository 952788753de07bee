"""Integration tests for the SQLAlchemy storage gateway on SQLite."""

from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from payguard.db.gateway import SQLAlchemyStorageGateway
from payguard.storage.gateway import (
    Filter,
    FilterOp,
    TableName,
    eq,
    gte,
    in_,
    is_null,
    lt,
    ne,
)
from payguard.utils.exceptions import StorageError


async def seed(gateway: SQLAlchemyStorageGateway, rows_by_table) -> None:
    for table, rows in rows_by_table.items():
        for row in rows:
            await gateway.insert(table, row)


@pytest.mark.asyncio
class TestInsertAndSelect:
    """Tests for insert and select."""

    async def test_insert_returns_stored_row(self, sql_gateway):
        row = await sql_gateway.insert(
            TableName.LEGAL_HOLDS,
            {"subject_id": "emp-1", "table_name": "payroll_results", "record_id": "pay-1"},
        )

        assert len(row["id"]) == 36
        assert row["is_active"] is True
        assert row["reason"] == ""
        assert row["created_at"].tzinfo is not None

    async def test_select_by_filters(self, sql_gateway, subject_rows):
        await seed(sql_gateway, subject_rows())
        await seed(sql_gateway, subject_rows("emp-0002", "user-0002"))

        rows = await sql_gateway.select(
            TableName.PAYROLL_RESULTS,
            [eq("employee_id", "emp-0001")],
            columns=["id"],
            order_by="id",
        )

        assert rows == [{"id": "emp-0001-pay-1"}, {"id": "emp-0001-pay-2"}, {"id": "emp-0001-pay-3"}]

    async def test_ordering_and_limit(self, sql_gateway, subject_rows):
        await seed(sql_gateway, subject_rows())

        rows = await sql_gateway.select(
            TableName.PAYROLL_RESULTS,
            order_by="created_at",
            descending=True,
            limit=2,
        )

        assert [r["id"] for r in rows] == ["emp-0001-pay-1", "emp-0001-pay-2"]

    async def test_datetime_comparison(self, sql_gateway, subject_rows):
        await seed(sql_gateway, subject_rows())
        cutoff = datetime.now(UTC) - timedelta(days=365)

        old = await sql_gateway.select(
            TableName.PAYROLL_RESULTS, [lt("created_at", cutoff)], columns=["id"]
        )
        recent = await sql_gateway.select(
            TableName.PAYROLL_RESULTS, [gte("created_at", cutoff)], columns=["id"]
        )

        assert [r["id"] for r in old] == ["emp-0001-pay-3"]
        assert len(recent) == 2

    async def test_aware_datetimes_normalised_to_utc(self, sql_gateway):
        local = datetime(2026, 3, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        await sql_gateway.insert(
            TableName.DATA_ACCESS_AUDIT_LOG,
            {"id": "log-x", "accessed_table": "employees", "access_type": "read", "created_at": local},
        )

        row = (await sql_gateway.select(TableName.DATA_ACCESS_AUDIT_LOG, [eq("id", "log-x")]))[0]

        assert row["created_at"] == datetime(2026, 3, 1, 10, 0, tzinfo=UTC)

    async def test_date_columns(self, sql_gateway, subject_rows):
        await seed(sql_gateway, subject_rows())

        rows = await sql_gateway.select(
            TableName.TIMESHEET_ENTRIES,
            [lt("date", date.today() - timedelta(days=30))],
        )

        assert [r["id"] for r in rows] == ["emp-0001-ts-2"]
        assert isinstance(rows[0]["date"], date)

    async def test_null_filters(self, sql_gateway, subject_rows):
        rows = subject_rows()
        rows[TableName.EMPLOYEES].append(
            {"id": "emp-left", "status": "inactive", "leave_date": date(2015, 1, 31)}
        )
        await seed(sql_gateway, rows)

        unset = await sql_gateway.select(TableName.EMPLOYEES, [is_null("leave_date")], columns=["id"])
        eq_none = await sql_gateway.select(TableName.EMPLOYEES, [eq("leave_date", None)], columns=["id"])
        not_inactive = await sql_gateway.select(
            TableName.EMPLOYEES, [ne("status", "inactive")], columns=["id"]
        )
        left = await sql_gateway.select(
            TableName.EMPLOYEES, [Filter("leave_date", FilterOp.NOT_NULL)], columns=["id"]
        )

        assert [r["id"] for r in unset] == ["emp-0001"]
        assert [r["id"] for r in eq_none] == ["emp-0001"]
        assert [r["id"] for r in not_inactive] == ["emp-0001"]
        assert [r["id"] for r in left] == ["emp-left"]

    async def test_json_columns(self, sql_gateway):
        await sql_gateway.insert(
            TableName.ERASURE_REQUESTS,
            {
                "id": "req-1",
                "subject_id": "emp-1",
                "requester_id": "dpo-1",
                "erasure_method": "hard_delete",
                "reason": "left",
                "affected_tables": ["employees", "payroll_results"],
            },
        )

        row = (await sql_gateway.select(TableName.ERASURE_REQUESTS, [eq("id", "req-1")]))[0]

        assert row["affected_tables"] == ["employees", "payroll_results"]
        assert row["completed_tables"] == []
        assert row["status"] == "pending"

    async def test_unknown_column_raises(self, sql_gateway):
        with pytest.raises(StorageError, match="Unknown column"):
            await sql_gateway.select(TableName.EMPLOYEES, [eq("shoe_size", 9)])


@pytest.mark.asyncio
class TestMutations:
    """Tests for update, update_batch and delete."""

    async def test_update(self, sql_gateway, subject_rows):
        await seed(sql_gateway, subject_rows())

        updated = await sql_gateway.update(
            TableName.EMPLOYEES, "emp-0001", {"first_name": "ANONYMIZED"}
        )
        missing = await sql_gateway.update(TableName.EMPLOYEES, "emp-none", {"first_name": "X"})

        row = (await sql_gateway.select(TableName.EMPLOYEES, [eq("id", "emp-0001")]))[0]
        assert updated is True
        assert missing is False
        assert row["first_name"] == "ANONYMIZED"
        assert row["last_name"] == "Smith"

    async def test_update_batch(self, sql_gateway, subject_rows):
        await seed(sql_gateway, subject_rows())

        count = await sql_gateway.update_batch(
            TableName.PAYROLL_RESULTS,
            ["emp-0001-pay-1", "emp-0001-pay-2", "missing"],
            {"status": "archived", "archived_reason": "right_to_erasure"},
        )

        archived = await sql_gateway.select(
            TableName.PAYROLL_RESULTS, [eq("status", "archived")], columns=["id"]
        )
        assert count == 2
        assert len(archived) == 2
        assert await sql_gateway.update_batch(TableName.PAYROLL_RESULTS, [], {"status": "x"}) == 0

    async def test_delete(self, sql_gateway, subject_rows):
        await seed(sql_gateway, subject_rows())

        deleted = await sql_gateway.delete(
            TableName.WORK_PATTERNS, ["emp-0001-wp-monday", "missing"]
        )

        remaining = await sql_gateway.select(
            TableName.WORK_PATTERNS, [in_("id", ["emp-0001-wp-monday", "emp-0001-wp-tuesday"])]
        )
        assert deleted == 1
        assert [r["id"] for r in remaining] == ["emp-0001-wp-tuesday"]
        assert await sql_gateway.delete(TableName.WORK_PATTERNS, []) == 0

    async def test_duplicate_id_raises_storage_error(self, sql_gateway):
        row = {"id": "hold-1", "subject_id": "s", "table_name": "t", "record_id": "r"}
        await sql_gateway.insert(TableName.LEGAL_HOLDS, row)

        with pytest.raises(StorageError, match="Insert into legal_holds failed"):
            await sql_gateway.insert(TableName.LEGAL_HOLDS, row)
