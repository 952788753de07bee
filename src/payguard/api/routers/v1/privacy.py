"""Privacy API endpoints.

- /privacy/subjects/{subject_id}/scope - Inspect erasure scope
- /privacy/erasure-requests - Right-to-erasure requests
- /privacy/export-requests - Subject access exports
- /privacy/retention-policies, /privacy/retention-jobs - Retention schedule
- /privacy/expired-records/{policy_type} - Preview retention candidates
"""

from typing import Annotated

from fastapi import APIRouter, Query, status

from payguard.api.dependencies import EngineDep
from payguard.api.schemas.privacy import (
    CleanupResponse,
    ErasureRequestCreate,
    ExpiredRecordsResponse,
    ExportRequestCreate,
    RetentionJobCreate,
    RetentionPolicyCreate,
    RetentionPolicyUpdate,
    ScopeSummary,
    SubjectScopeResponse,
)
from payguard.compliance.erasure.types import (
    ErasureRequest,
    ErasureRequestStatus,
    ErasureVerification,
)
from payguard.compliance.export.types import DataExportRequest, ExportStatus
from payguard.compliance.retention.types import (
    RetentionJob,
    RetentionJobStatus,
    RetentionPolicy,
    RetentionPolicyType,
)
from payguard.compliance.scope import count_records

router = APIRouter(prefix="/privacy", tags=["privacy"])


# =============================================================================
# Scope
# =============================================================================


@router.get("/subjects/{subject_id}/scope", response_model=SubjectScopeResponse)
async def get_subject_scope(subject_id: str, engine: EngineDep) -> SubjectScopeResponse:
    """List every record that an erasure of this subject would touch."""
    scopes = await engine.analyze_scope(subject_id)
    return SubjectScopeResponse(
        subject_id=subject_id,
        total_records=count_records(scopes),
        tables=[
            ScopeSummary(
                table=scope.table.value,
                record_count=scope.total_records,
                record_ids=scope.record_ids,
                sensitive_fields=scope.sensitive_fields,
                dependencies=[dep.value for dep in scope.dependencies],
            )
            for scope in scopes
        ],
    )


# =============================================================================
# Erasure
# =============================================================================


@router.post(
    "/erasure-requests",
    response_model=ErasureRequest,
    status_code=status.HTTP_201_CREATED,
)
async def create_erasure_request(body: ErasureRequestCreate, engine: EngineDep) -> ErasureRequest:
    return await engine.create_erasure_request(
        body.subject_id,
        body.requester_id,
        body.reason,
        body.erasure_method,
        legal_basis=body.legal_basis,
        retention_override=body.retention_override,
        notes=body.notes,
    )


@router.get("/erasure-requests", response_model=list[ErasureRequest])
async def list_erasure_requests(
    engine: EngineDep,
    subject_id: Annotated[str | None, Query()] = None,
    request_status: Annotated[ErasureRequestStatus | None, Query(alias="status")] = None,
) -> list[ErasureRequest]:
    return await engine.list_erasure_requests(subject_id=subject_id, status=request_status)


@router.get("/erasure-requests/{request_id}", response_model=ErasureRequest)
async def get_erasure_request(request_id: str, engine: EngineDep) -> ErasureRequest:
    return await engine.get_erasure_request(request_id)


@router.post("/erasure-requests/{request_id}/execute", response_model=ErasureRequest)
async def execute_erasure_request(request_id: str, engine: EngineDep) -> ErasureRequest:
    """Run the erasure. Rejections and batch failures are reported in the body."""
    return await engine.execute_erasure_request(request_id)


@router.post("/erasure-requests/{request_id}/resume", response_model=ErasureRequest)
async def resume_erasure_request(request_id: str, engine: EngineDep) -> ErasureRequest:
    return await engine.resume_erasure_request(request_id)


@router.post("/erasure-requests/{request_id}/cancel", response_model=ErasureRequest)
async def cancel_erasure_request(request_id: str, engine: EngineDep) -> ErasureRequest:
    return await engine.cancel_erasure_request(request_id)


@router.get("/erasure-requests/{request_id}/verification", response_model=ErasureVerification)
async def verify_erasure(request_id: str, engine: EngineDep) -> ErasureVerification:
    return await engine.verify_erasure(request_id)


# =============================================================================
# Export
# =============================================================================


@router.post(
    "/export-requests",
    response_model=DataExportRequest,
    status_code=status.HTTP_201_CREATED,
)
async def create_export_request(body: ExportRequestCreate, engine: EngineDep) -> DataExportRequest:
    return await engine.create_export_request(
        body.subject_id,
        body.requester_id,
        body.export_format,
        body.export_scope,
        include_historical=body.include_historical,
        expiry_days=body.expiry_days,
    )


@router.get("/export-requests", response_model=list[DataExportRequest])
async def list_export_requests(
    engine: EngineDep,
    subject_id: Annotated[str | None, Query()] = None,
    request_status: Annotated[ExportStatus | None, Query(alias="status")] = None,
) -> list[DataExportRequest]:
    return await engine.list_export_requests(subject_id=subject_id, status=request_status)


@router.post("/export-requests/cleanup", response_model=CleanupResponse)
async def cleanup_expired_exports(engine: EngineDep) -> CleanupResponse:
    return CleanupResponse(expired=await engine.cleanup_expired_exports())


@router.get("/export-requests/{request_id}", response_model=DataExportRequest)
async def get_export_request(request_id: str, engine: EngineDep) -> DataExportRequest:
    return await engine.get_export_request(request_id)


@router.post("/export-requests/{request_id}/process", response_model=DataExportRequest)
async def process_export_request(request_id: str, engine: EngineDep) -> DataExportRequest:
    return await engine.process_export_request(request_id)


@router.post("/export-requests/{request_id}/cancel", response_model=DataExportRequest)
async def cancel_export_request(request_id: str, engine: EngineDep) -> DataExportRequest:
    return await engine.cancel_export_request(request_id)


@router.post("/export-requests/{request_id}/downloads", response_model=DataExportRequest)
async def track_download(request_id: str, engine: EngineDep) -> DataExportRequest:
    """Record a download. Fails with 409 once the export has expired."""
    return await engine.track_download(request_id)


# =============================================================================
# Retention
# =============================================================================


@router.post(
    "/retention-policies",
    response_model=RetentionPolicy,
    status_code=status.HTTP_201_CREATED,
)
async def create_retention_policy(body: RetentionPolicyCreate, engine: EngineDep) -> RetentionPolicy:
    return await engine.create_retention_policy(
        body.policy_type,
        body.retention_period_months,
        auto_delete=body.auto_delete,
        legal_hold_override=body.legal_hold_override,
        scope_id=body.scope_id,
        description=body.description,
    )


@router.get("/retention-policies", response_model=list[RetentionPolicy])
async def list_retention_policies(
    engine: EngineDep,
    scope_id: Annotated[str | None, Query()] = None,
    include_superseded: Annotated[bool, Query()] = False,
) -> list[RetentionPolicy]:
    return await engine.list_retention_policies(
        scope_id=scope_id, include_superseded=include_superseded
    )


@router.post("/retention-policies/defaults", response_model=list[RetentionPolicy])
async def install_default_retention_policies(
    engine: EngineDep,
    scope_id: Annotated[str | None, Query()] = None,
) -> list[RetentionPolicy]:
    return await engine.install_default_retention_policies(scope_id=scope_id)


@router.get("/retention-policies/{policy_id}", response_model=RetentionPolicy)
async def get_retention_policy(policy_id: str, engine: EngineDep) -> RetentionPolicy:
    return await engine.get_retention_policy(policy_id)


@router.patch("/retention-policies/{policy_id}", response_model=RetentionPolicy)
async def update_retention_policy(
    policy_id: str, body: RetentionPolicyUpdate, engine: EngineDep
) -> RetentionPolicy:
    """Supersede a policy. Returns the new active policy."""
    return await engine.update_retention_policy(policy_id, **body.model_dump(exclude_none=True))


@router.get("/expired-records/{policy_type}", response_model=ExpiredRecordsResponse)
async def identify_expired(
    policy_type: RetentionPolicyType,
    engine: EngineDep,
    months: Annotated[int, Query(ge=1)],
) -> ExpiredRecordsResponse:
    expired = await engine.identify_expired(policy_type, months)
    return ExpiredRecordsResponse(
        table=expired.table,
        total_count=expired.total_count,
        record_ids=expired.record_ids,
        cutoff=expired.cutoff,
    )


@router.post(
    "/retention-jobs",
    response_model=RetentionJob,
    status_code=status.HTTP_201_CREATED,
)
async def schedule_retention_job(body: RetentionJobCreate, engine: EngineDep) -> RetentionJob:
    return await engine.schedule_retention_job(body.policy_id, body.scheduled_date)


@router.get("/retention-jobs", response_model=list[RetentionJob])
async def list_retention_jobs(
    engine: EngineDep,
    policy_id: Annotated[str | None, Query()] = None,
    job_status: Annotated[RetentionJobStatus | None, Query(alias="status")] = None,
) -> list[RetentionJob]:
    return await engine.list_retention_jobs(policy_id=policy_id, status=job_status)


@router.post("/retention-jobs/run-due", response_model=list[RetentionJob])
async def run_due_retention_jobs(engine: EngineDep) -> list[RetentionJob]:
    return await engine.run_due_retention_jobs()


@router.get("/retention-jobs/{job_id}", response_model=RetentionJob)
async def get_retention_job(job_id: str, engine: EngineDep) -> RetentionJob:
    return await engine.get_retention_job(job_id)


@router.post("/retention-jobs/{job_id}/execute", response_model=RetentionJob)
async def execute_retention_job(job_id: str, engine: EngineDep) -> RetentionJob:
    return await engine.execute_retention_job(job_id)


@router.post("/retention-jobs/{job_id}/cancel", response_model=RetentionJob)
async def cancel_retention_job(job_id: str, engine: EngineDep) -> RetentionJob:
    return await engine.cancel_retention_job(job_id)
