"""Brand canary endpoints -- preview, apply, switch, rollback."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from rollout.models import BrandRecord
from rollout.system import RolloutSystem
from rollout_admin.auth import get_actor, verify_token
from rollout_admin.deps import get_system
from rollout_admin.schemas import RolloutUpdate, WhiteLabelUpdate

router = APIRouter(prefix="/api/brands", tags=["brands"], dependencies=[Depends(verify_token)])


@router.get("")
async def list_brands(system: RolloutSystem = Depends(get_system)):
    preview = system.preview_brand()
    return {
        "brands": [b.to_dict() for b in system.brands.list_brands()],
        "current_id": system.current_brand().id,
        "preview_id": preview.id if preview else None,
        "state": system.brands.state.value,
    }


@router.post("")
async def register_brand(
    body: BrandRecord,
    actor: str = Depends(get_actor),
    system: RolloutSystem = Depends(get_system),
):
    brand = await system.brands.register_brand(body, actor)
    return brand.to_dict()


@router.get("/current")
async def current_brand(system: RolloutSystem = Depends(get_system)):
    return system.current_brand().to_dict()


@router.patch("/current/white-label")
async def update_white_label(
    body: WhiteLabelUpdate,
    actor: str = Depends(get_actor),
    system: RolloutSystem = Depends(get_system),
):
    changes = body.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No white-label settings supplied")
    brand = await system.brands.update_white_label(actor, **changes)
    return brand.to_dict()


@router.get("/preview")
async def preview_brand(system: RolloutSystem = Depends(get_system)):
    preview = system.preview_brand()
    return {"preview": preview.to_dict() if preview else None}


@router.delete("/preview")
async def exit_preview(
    actor: str = Depends(get_actor),
    system: RolloutSystem = Depends(get_system),
):
    brand = await system.brands.exit_preview(actor)
    return {"current": brand.to_dict(), "preview": None}


@router.post("/preview/apply")
async def apply_preview(
    actor: str = Depends(get_actor),
    system: RolloutSystem = Depends(get_system),
):
    brand = await system.brands.apply_preview(actor)
    return brand.to_dict()


@router.post("/{brand_id}/preview")
async def enter_preview(
    brand_id: str,
    actor: str = Depends(get_actor),
    system: RolloutSystem = Depends(get_system),
):
    brand = await system.brands.enter_preview(brand_id, actor)
    return {"current": system.current_brand().to_dict(), "preview": brand.to_dict()}


@router.post("/{brand_id}/switch")
async def switch_brand(
    brand_id: str,
    actor: str = Depends(get_actor),
    system: RolloutSystem = Depends(get_system),
):
    brand = await system.brands.switch_brand(brand_id, actor)
    return brand.to_dict()


@router.put("/{brand_id}/rollout")
async def update_rollout(
    brand_id: str,
    body: RolloutUpdate,
    actor: str = Depends(get_actor),
    system: RolloutSystem = Depends(get_system),
):
    brand = await system.brands.update_rollout_percentage(brand_id, body.percentage, actor)
    return brand.to_dict()


@router.post("/{brand_id}/rollback")
async def rollback_brand(
    brand_id: str,
    actor: str = Depends(get_actor),
    system: RolloutSystem = Depends(get_system),
):
    default = await system.brands.rollback_brand(brand_id, actor)
    return {"current": default.to_dict(), "rolled_back": system.store.require_brand(brand_id).to_dict()}
