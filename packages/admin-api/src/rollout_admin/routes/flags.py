"""Feature flag query and control endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from rollout.control.flags import EvaluationContext
from rollout.control.plane import MutationOutcome
from rollout.system import RolloutSystem
from rollout_admin.auth import get_actor, verify_token
from rollout_admin.deps import get_system
from rollout_admin.schemas import ConfirmBody, EvaluateRequest, ReasonBody, RolloutUpdate

router = APIRouter(prefix="/api", tags=["flags"], dependencies=[Depends(verify_token)])


def _outcomes(outcomes: list[MutationOutcome]) -> dict:
    return {
        "outcomes": [
            {
                "flag_id": o.flag_id,
                "success": o.success,
                "reason": o.reason,
                "flag": o.flag.to_dict() if o.flag else None,
            }
            for o in outcomes
        ]
    }


@router.get("/flags")
async def list_flags(category: str | None = None, system: RolloutSystem = Depends(get_system)):
    """List flags, optionally restricted to one category."""
    flags = system.store.list_by_category(category) if category else system.store.list()
    return {"flags": [f.to_dict() for f in flags]}


@router.get("/flags/summary")
async def flag_summary(system: RolloutSystem = Depends(get_system)):
    return system.control.summary()


@router.get("/flags/{flag_id}")
async def get_flag(flag_id: str, system: RolloutSystem = Depends(get_system)):
    return system.store.require(flag_id).to_dict()


@router.post("/flags/{flag_id}/evaluate")
async def evaluate_flag(
    flag_id: str,
    body: EvaluateRequest,
    system: RolloutSystem = Depends(get_system),
):
    """Evaluate a flag for a subject/segment at the current time."""
    flag = system.store.require(flag_id)
    context = EvaluationContext(subject_id=body.subject_id, segment=body.segment)
    return {
        "flag_id": flag_id,
        "enabled": system.evaluator.is_enabled(flag, context),
        "value": system.evaluator.get_value(flag, context),
    }


@router.post("/flags/emergency-disable-all")
async def emergency_disable_all(
    body: ReasonBody,
    actor: str = Depends(get_actor),
    system: RolloutSystem = Depends(get_system),
):
    return _outcomes(await system.control.emergency_disable_all(body.reason, actor))


@router.post("/flags/{flag_id}/toggle")
async def toggle_flag(
    flag_id: str,
    body: ConfirmBody | None = None,
    actor: str = Depends(get_actor),
    system: RolloutSystem = Depends(get_system),
):
    confirmed = body.confirmed if body else False
    flag = await system.control.toggle(flag_id, actor, confirmed=confirmed)
    return flag.to_dict()


@router.put("/flags/{flag_id}/rollout")
async def set_rollout(
    flag_id: str,
    body: RolloutUpdate,
    actor: str = Depends(get_actor),
    system: RolloutSystem = Depends(get_system),
):
    flag = await system.control.set_rollout_percentage(
        flag_id, body.percentage, actor, confirmed=body.confirmed
    )
    return flag.to_dict()


@router.post("/flags/{flag_id}/emergency-disable")
async def emergency_disable(
    flag_id: str,
    body: ReasonBody,
    actor: str = Depends(get_actor),
    system: RolloutSystem = Depends(get_system),
):
    flag = await system.control.emergency_disable(flag_id, body.reason, actor)
    return flag.to_dict()


@router.post("/flags/{flag_id}/rollback")
async def rollback_flag(
    flag_id: str,
    body: ReasonBody,
    actor: str = Depends(get_actor),
    system: RolloutSystem = Depends(get_system),
):
    flag = await system.control.rollback(flag_id, body.reason, actor)
    return flag.to_dict()


@router.post("/flags/{flag_id}/subjects/{subject_id}/enable")
async def enable_for_subject(
    flag_id: str,
    subject_id: str,
    body: ConfirmBody | None = None,
    actor: str = Depends(get_actor),
    system: RolloutSystem = Depends(get_system),
):
    confirmed = body.confirmed if body else False
    flag = await system.control.enable_for_subject(flag_id, subject_id, actor, confirmed=confirmed)
    return flag.to_dict()


@router.post("/flags/{flag_id}/subjects/{subject_id}/disable")
async def disable_for_subject(
    flag_id: str,
    subject_id: str,
    actor: str = Depends(get_actor),
    system: RolloutSystem = Depends(get_system),
):
    flag = await system.control.disable_for_subject(flag_id, subject_id, actor)
    return flag.to_dict()


@router.post("/categories/{category}/enable")
async def enable_category(
    category: str,
    body: ConfirmBody | None = None,
    actor: str = Depends(get_actor),
    system: RolloutSystem = Depends(get_system),
):
    confirmed = body.confirmed if body else False
    return _outcomes(await system.control.enable_category(category, actor, confirmed=confirmed))


@router.post("/categories/{category}/disable")
async def disable_category(
    category: str,
    actor: str = Depends(get_actor),
    system: RolloutSystem = Depends(get_system),
):
    return _outcomes(await system.control.disable_category(category, actor))
