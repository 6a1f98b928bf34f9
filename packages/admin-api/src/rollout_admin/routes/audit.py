"""Audit trail read endpoint."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from rollout.system import RolloutSystem
from rollout_admin.auth import verify_token
from rollout_admin.deps import get_system

router = APIRouter(prefix="/api", tags=["audit"])


@router.get("/audit", dependencies=[Depends(verify_token)])
async def list_audit(
    limit: int = Query(default=50, ge=1, le=1000),
    system: RolloutSystem = Depends(get_system),
):
    """Audit entries, newest first."""
    return {"entries": [e.to_dict() for e in system.list_audit_entries(limit)]}
