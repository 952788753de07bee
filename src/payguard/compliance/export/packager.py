"""Serialize personal data packages to export files.

JSON keeps full fidelity. CSV writes one titled section per category with a
header row and a blank line between sections; nested values are written as
JSON text rather than expanded into columns. PDF output is a placeholder
document carrying a plain-text summary.
"""

import csv
import hashlib
import io
import json
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any

from payguard.compliance.export.types import ExportFile, ExportFormat, PersonalDataPackage
from payguard.core.exceptions import UnsupportedExportFormatError
from payguard.core.logging import get_logger

logger = get_logger(__name__)

CONTENT_TYPES: dict[ExportFormat, str] = {
    ExportFormat.JSON: "application/json",
    ExportFormat.CSV: "text/csv",
    ExportFormat.PDF: "application/pdf",
}

SECTION_TITLES: dict[str, str] = {
    "employee_info": "EMPLOYEE INFORMATION",
    "payroll_data": "PAYROLL DATA",
    "timesheet_data": "TIMESHEET DATA",
    "sickness_records": "SICKNESS RECORDS",
    "work_patterns": "WORK PATTERNS",
    "documents": "DOCUMENTS",
    "audit_trail": "AUDIT TRAIL",
}


def parse_format(value: ExportFormat | str) -> ExportFormat:
    """Coerce ``value`` to a supported format.

    Raises:
        UnsupportedExportFormatError: For anything outside json, csv and pdf
    """
    try:
        return ExportFormat(value)
    except ValueError:
        raise UnsupportedExportFormatError(str(value)) from None


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str, sort_keys=True)
    if isinstance(value, Decimal):
        return str(value)
    return value


def _header(rows: list[dict[str, Any]]) -> list[str]:
    header: list[str] = []
    for row in rows:
        header.extend(key for key in row if key not in header)
    return header


class ExportPackager:
    """Render packages and write them under ``export_directory``."""

    def __init__(self, export_directory: str | Path = "exports"):
        self.export_directory = Path(export_directory)

    def render(self, package: PersonalDataPackage, export_format: ExportFormat | str) -> bytes:
        match parse_format(export_format):
            case ExportFormat.JSON:
                return self.render_json(package)
            case ExportFormat.CSV:
                return self.render_csv(package)
            case ExportFormat.PDF:
                return self.render_pdf(package)

    def render_json(self, package: PersonalDataPackage) -> bytes:
        return json.dumps(package.to_document(), indent=2, default=str).encode("utf-8")

    def render_csv(self, package: PersonalDataPackage) -> bytes:
        sections: list[tuple[str, list[dict[str, Any]]]] = []
        if package.employee_info is not None:
            sections.append((SECTION_TITLES["employee_info"], [package.employee_info]))
        for name, rows in package.categories().items():
            sections.append((SECTION_TITLES[name], rows))

        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        for index, (title, rows) in enumerate(sections):
            if index:
                writer.writerow([])
            header = _header(rows)
            writer.writerow([title])
            writer.writerow(header)
            for row in rows:
                writer.writerow([_cell(row.get(column)) for column in header])
        return buffer.getvalue().encode("utf-8")

    def render_pdf(self, package: PersonalDataPackage) -> bytes:
        meta = package.export_metadata
        content_lines = [
            "% Personal Data Export",
            f"% Request: {meta.request_id}",
            f"% Scope: {meta.scope.value}",
            f"% Exported: {meta.export_date.isoformat()}",
            f"% Total Records: {meta.total_records}",
            f"% Sources: {', '.join(meta.data_sources)}",
        ]
        if package.employee_info is not None:
            content_lines.append(f"% {SECTION_TITLES['employee_info']}: 1 record")
        for name, rows in package.categories().items():
            content_lines.append(f"% {SECTION_TITLES[name]}: {len(rows)} record(s)")
        return b"%PDF-1.4\n" + "\n".join(content_lines).encode("utf-8") + b"\n%%EOF"

    def generate_file(
        self,
        package: PersonalDataPackage,
        export_format: ExportFormat | str,
    ) -> ExportFile:
        """Serialize and write ``package``; size is the written byte length."""
        fmt = parse_format(export_format)
        content = self.render(package, fmt)

        self.export_directory.mkdir(parents=True, exist_ok=True)
        request_id = package.export_metadata.request_id or "export"
        path = self.export_directory / f"personal_data_{request_id}.{fmt.value}"
        path.write_bytes(content)

        export_file = ExportFile(
            file_path=str(path),
            file_size=len(content),
            content_type=CONTENT_TYPES[fmt],
            checksum=hashlib.sha256(content).hexdigest(),
        )
        logger.info(
            "Export file generated",
            request_id=request_id,
            format=fmt.value,
            size_bytes=export_file.file_size,
        )
        return export_file

    def remove_file(self, file_path: str) -> bool:
        path = Path(file_path)
        if not path.exists():
            return False
        path.unlink()
        return True
