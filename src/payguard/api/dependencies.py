"""FastAPI dependencies for API endpoints."""

from typing import Annotated

from fastapi import Depends, Request

from payguard.compliance.engine import ComplianceEngine


def get_compliance_engine(request: Request) -> ComplianceEngine:
    """Get the engine built at application startup."""
    return request.app.state.compliance_engine


EngineDep = Annotated[ComplianceEngine, Depends(get_compliance_engine)]

__all__ = ["EngineDep", "get_compliance_engine"]
