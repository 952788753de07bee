"""Personal data export.

Collects a subject's data across payroll tables into a scope-filtered
package and serializes it to JSON, CSV or a placeholder PDF.
"""

from payguard.compliance.export.collector import (
    EMPLOYEE_BASE_FIELDS,
    EMPLOYEE_PROFILE_FIELDS,
    EXPORT_CATEGORIES,
    ExportCategory,
    ExportCollector,
)
from payguard.compliance.export.packager import ExportPackager, parse_format
from payguard.compliance.export.service import (
    DataExportRepository,
    DataExportService,
    ExportServiceConfig,
)
from payguard.compliance.export.types import (
    DataExportRequest,
    ExportFile,
    ExportFormat,
    ExportMetadata,
    ExportScope,
    ExportStatus,
    PersonalDataPackage,
)

__all__ = [
    # Collector
    "EMPLOYEE_BASE_FIELDS",
    "EMPLOYEE_PROFILE_FIELDS",
    "EXPORT_CATEGORIES",
    "ExportCategory",
    "ExportCollector",
    # Packager
    "ExportPackager",
    "parse_format",
    # Service
    "DataExportRepository",
    "DataExportService",
    "ExportServiceConfig",
    # Types
    "DataExportRequest",
    "ExportFile",
    "ExportFormat",
    "ExportMetadata",
    "ExportScope",
    "ExportStatus",
    "PersonalDataPackage",
]
