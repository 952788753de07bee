"""Unit tests for the ExportPackager."""

import csv
import hashlib
import io
import json
from datetime import UTC, date, datetime

import pytest

from payguard.compliance.export.packager import ExportPackager, parse_format
from payguard.compliance.export.types import (
    ExportFormat,
    ExportMetadata,
    ExportScope,
    PersonalDataPackage,
)
from payguard.core.exceptions import UnsupportedExportFormatError


@pytest.fixture
def package() -> PersonalDataPackage:
    return PersonalDataPackage(
        employee_info={
            "id": "emp-0001",
            "first_name": "Alice",
            "hire_date": date(2019, 4, 1),
            "leave_date": None,
        },
        payroll_data=[
            {"id": "pay-1", "gross_pay_this_period": 2500.0, "tax_period": 1},
            {"id": "pay-2", "gross_pay_this_period": 2600.0, "tax_period": 2},
        ],
        audit_trail=[
            {
                "accessed_table": "payroll_results",
                "access_type": "read",
                "created_at": datetime(2026, 10, 1, 12, 0, tzinfo=UTC),
                "context": {"ip": "10.0.0.1"},
            }
        ],
        export_metadata=ExportMetadata(
            request_id="req-1",
            format=ExportFormat.JSON,
            scope=ExportScope.PAYROLL_DATA,
            total_records=4,
            data_sources=["employees", "payroll_results", "data_access_audit_log"],
        ),
    )


@pytest.fixture
def packager(tmp_path) -> ExportPackager:
    return ExportPackager(tmp_path / "exports")


class TestParseFormat:
    """Tests for parse_format."""

    def test_known_formats(self):
        assert parse_format("json") == ExportFormat.JSON
        assert parse_format(ExportFormat.PDF) == ExportFormat.PDF

    @pytest.mark.parametrize("value", ["xml", "JSON", ""])
    def test_unknown_format_raises(self, value):
        with pytest.raises(UnsupportedExportFormatError) as exc_info:
            parse_format(value)
        assert exc_info.value.export_format == value


class TestRenderJson:
    """Tests for JSON output."""

    def test_round_trips_structure(self, packager, package):
        document = json.loads(packager.render(package, ExportFormat.JSON))

        assert document["employee_info"]["hire_date"] == "2019-04-01"
        assert len(document["payroll_data"]) == 2
        assert document["audit_trail"][0]["context"] == {"ip": "10.0.0.1"}
        assert document["export_metadata"]["total_records"] == 4

    def test_empty_categories_omitted(self, packager, package):
        document = json.loads(packager.render(package, "json"))
        assert "timesheet_data" not in document
        assert "documents" not in document


class TestRenderCsv:
    """Tests for CSV output."""

    def test_sections(self, packager, package):
        text = packager.render(package, ExportFormat.CSV).decode("utf-8")
        sections = text.split("\n\n")

        assert [s.splitlines()[0] for s in sections] == [
            "EMPLOYEE INFORMATION",
            "PAYROLL DATA",
            "AUDIT TRAIL",
        ]

    def test_rows_under_header(self, packager, package):
        text = packager.render(package, ExportFormat.CSV).decode("utf-8")
        payroll = text.split("\n\n")[1]
        rows = list(csv.reader(io.StringIO(payroll)))

        assert rows[1] == ["id", "gross_pay_this_period", "tax_period"]
        assert rows[2] == ["pay-1", "2500.0", "1"]
        assert len(rows) == 4

    def test_cells_are_flattened(self, packager, package):
        text = packager.render(package, ExportFormat.CSV).decode("utf-8")
        employee = list(csv.reader(io.StringIO(text.split("\n\n")[0])))
        audit = list(csv.reader(io.StringIO(text.split("\n\n")[2])))

        assert employee[2] == ["emp-0001", "Alice", "2019-04-01", ""]
        assert audit[2][2] == "2026-10-01T12:00:00+00:00"
        assert json.loads(audit[2][3]) == {"ip": "10.0.0.1"}


class TestRenderPdf:
    """Tests for the placeholder PDF."""

    def test_markers_and_summary(self, packager, package):
        content = packager.render(package, ExportFormat.PDF)

        assert content.startswith(b"%PDF-1.4\n")
        assert content.endswith(b"\n%%EOF")
        assert b"% Request: req-1" in content
        assert b"% PAYROLL DATA: 2 record(s)" in content
        assert b"% Total Records: 4" in content


class TestGenerateFile:
    """Tests for writing export files."""

    def test_writes_named_file(self, packager, package):
        export_file = packager.generate_file(package, ExportFormat.CSV)

        path = packager.export_directory / "personal_data_req-1.csv"
        content = path.read_bytes()
        assert export_file.file_path == str(path)
        assert export_file.file_size == len(content)
        assert export_file.content_type == "text/csv"
        assert export_file.checksum == hashlib.sha256(content).hexdigest()

    def test_unsupported_format_writes_nothing(self, packager, package):
        with pytest.raises(UnsupportedExportFormatError):
            packager.generate_file(package, "docx")
        assert not packager.export_directory.exists()

    def test_remove_file(self, packager, package):
        export_file = packager.generate_file(package, ExportFormat.JSON)

        assert packager.remove_file(export_file.file_path) is True
        assert packager.remove_file(export_file.file_path) is False
