"""Audit log access (admin only)."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from wrytix.routes.dependencies import Caller, require_admin
from wrytix.services.audit_service import audit_service

router = APIRouter(prefix="/logs", tags=["Logs"])


@router.get("")
async def list_logs(
    action: Optional[str] = None,
    actor: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1, le=10000),
    caller: Caller = Depends(require_admin),
):
    return await audit_service.list_logs(action=action, actor=actor, limit=limit)


@router.delete("")
async def clear_logs(caller: Caller = Depends(require_admin)):
    async with caller.on_failure("logs-clear-failed", "logs"):
        deleted = await audit_service.clear_logs()
    await caller.log("logs-cleared", "logs", deleted=deleted)
    return {"message": "Logs cleared", "deleted": deleted}
