"""
# Ad Routes

Reads are public and apply the expiry policy before answering; writes are
admin-only.
"""

from fastapi import APIRouter, Depends, status

from wrytix.models.cms_models import CreateAdRequest, UpdateAdRequest
from wrytix.routes.dependencies import Caller, require_admin
from wrytix.services.ad_service import ad_service

router = APIRouter(prefix="/ads", tags=["Ads"])


@router.get("")
async def list_ads():
    return await ad_service.list_ads()


@router.get("/{ad_id}")
async def get_ad(ad_id: str):
    return await ad_service.get_ad(ad_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_ad(body: CreateAdRequest, caller: Caller = Depends(require_admin)):
    async with caller.on_failure("ad-create-failed", body.company or "system"):
        ad = await ad_service.create_ad(body)
    await caller.log("ad-created", ad["id"], type=ad.get("type"), company=ad.get("company"))
    return {"message": "Ad created successfully", "ad": ad}


@router.put("/{ad_id}")
async def update_ad(ad_id: str, body: UpdateAdRequest, caller: Caller = Depends(require_admin)):
    async with caller.on_failure("ad-update-failed", ad_id):
        ad = await ad_service.update_ad(ad_id, body)
    await caller.log("ad-updated", ad_id, changes=sorted(body.to_document()))
    return {"message": "Ad updated", "ad": ad}


@router.delete("/{ad_id}")
async def delete_ad(ad_id: str, caller: Caller = Depends(require_admin)):
    async with caller.on_failure("ad-delete-failed", ad_id):
        ad = await ad_service.delete_ad(ad_id)
    await caller.log("ad-deleted", ad_id, type=ad.get("type"), company=ad.get("company"))
    return {"message": "Ad deleted successfully", "deleted": ad}
