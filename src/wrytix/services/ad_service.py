"""
# Ad Service

Advertisement CRUD plus the expiry policy.

**Expiry policy:**
An active ad whose `endDate` has passed is switched off. The policy runs on
every read (`list_ads`, `get_ad`) and in the `periodic_ad_expiry` background
task. It never switches an ad on; reaching `startDate` does not activate an
ad, that remains an explicit admin action.
"""

import asyncio
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from wrytix.config import settings
from wrytix.database import db_manager
from wrytix.database.store import ADS
from wrytix.errors import NotFound, ValidationError
from wrytix.managers.logging_manager import get_logger
from wrytix.models.cms_models import CreateAdRequest, UpdateAdRequest
from wrytix.utils.time_utils import parse_optional_datetime, to_iso, utcnow

logger = get_logger(prefix="[AdService]")


def expire_ads(ads: List[Dict[str, Any]], now: datetime) -> List[str]:
    """
    Return the ids of active ads whose `endDate` is before `now`.

    Does not modify `ads`. Ads with a missing or unreadable `endDate` never
    expire.
    """
    expired = []
    for ad in ads:
        if not ad.get("active"):
            continue
        try:
            end = parse_optional_datetime(ad.get("endDate"), "endDate")
        except ValidationError:
            continue
        if end is not None and end < now:
            expired.append(ad["id"])
    return expired


def _normalize_dates(fields: Dict[str, Any]) -> None:
    start = parse_optional_datetime(fields.get("startDate"), "startDate")
    end = parse_optional_datetime(fields.get("endDate"), "endDate")
    if start and end and end < start:
        raise ValidationError("endDate cannot be before startDate")
    if "startDate" in fields:
        fields["startDate"] = to_iso(start) if start else None
    if "endDate" in fields:
        fields["endDate"] = to_iso(end) if end else None


class AdService:
    async def run_expiry(self) -> List[Dict[str, Any]]:
        """Apply the expiry policy, persist the flips and return every ad."""
        async with db_manager.store.transaction():
            ads = await db_manager.store.find(ADS)
            expired = set(expire_ads(ads, utcnow()))
            if expired:
                updated_at = to_iso(utcnow())
                for ad in ads:
                    if ad["id"] in expired:
                        await db_manager.store.update_one(
                            ADS, {"id": ad["id"]}, {"active": False, "updatedAt": updated_at}
                        )
                        ad["active"] = False
                        ad["updatedAt"] = updated_at
                logger.info("Deactivated %d expired ads", len(expired))
        return ads

    async def list_ads(self) -> List[Dict[str, Any]]:
        return await self.run_expiry()

    async def get_ad(self, ad_id: str) -> Dict[str, Any]:
        for ad in await self.run_expiry():
            if ad["id"] == ad_id:
                return ad
        raise NotFound("Ad not found")

    async def create_ad(self, body: CreateAdRequest) -> Dict[str, Any]:
        """
        Raises:
            ValidationError: A date can not be parsed or `endDate` precedes
                `startDate`.
        """
        fields = body.model_dump(by_alias=True, mode="json")
        _normalize_dates(fields)
        fields.update({"id": uuid.uuid4().hex, "createdAt": to_iso(utcnow())})
        return await db_manager.store.insert_one(ADS, fields)

    async def update_ad(self, ad_id: str, body: UpdateAdRequest) -> Dict[str, Any]:
        changes = body.to_document()
        changes.pop("id", None)

        async with db_manager.store.transaction():
            ad = await db_manager.store.find_one(ADS, {"id": ad_id})
            if not ad:
                raise NotFound("Ad not found")
            merged = {**ad, **changes}
            _normalize_dates(merged)
            changes["startDate"] = merged.get("startDate")
            changes["endDate"] = merged.get("endDate")
            changes["updatedAt"] = to_iso(utcnow())
            return await db_manager.store.update_one(ADS, {"id": ad_id}, changes)

    async def delete_ad(self, ad_id: str) -> Dict[str, Any]:
        removed = await db_manager.store.delete_one(ADS, {"id": ad_id})
        if removed is None:
            raise NotFound("Ad not found")
        return removed


ad_service = AdService()


async def periodic_ad_expiry(interval: Optional[int] = None) -> None:
    """Run the expiry sweep every `AD_EXPIRY_SWEEP_INTERVAL_SECONDS`."""
    interval = interval or settings.AD_EXPIRY_SWEEP_INTERVAL_SECONDS
    while True:
        await asyncio.sleep(interval)
        try:
            await ad_service.run_expiry()
        except Exception as e:
            logger.error("Ad expiry sweep failed: %s", e, exc_info=True)
