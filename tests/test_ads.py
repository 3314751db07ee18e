"""
Tests for ad CRUD and the expiry policy.
"""
import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest

from wrytix.database.store import ADS
from wrytix.services import ad_service as ad_module
from wrytix.services.ad_service import expire_ads
from wrytix.services.audit_service import audit_service
from wrytix.utils.time_utils import to_iso, utcnow


def test_expire_ads_only_switches_off():
    now = utcnow()
    ads = [
        {"id": "expired", "active": True, "endDate": to_iso(now - timedelta(days=1))},
        {"id": "running", "active": True, "endDate": to_iso(now + timedelta(days=1))},
        {"id": "inactive", "active": False, "endDate": to_iso(now - timedelta(days=1))},
        {"id": "starting", "active": False, "startDate": to_iso(now - timedelta(days=1))},
        {"id": "open-ended", "active": True},
        {"id": "garbage", "active": True, "endDate": "whenever"},
    ]

    assert expire_ads(ads, now) == ["expired"]
    assert ads[0]["active"] is True


@pytest.mark.asyncio
async def test_create_ad(login_as):
    admin = await login_as("admin")

    response = await admin.post(
        "/ads",
        json={"type": "banner", "company": "Acme", "startDate": "2030-01-01", "endDate": "2030-02-01", "active": True},
    )

    assert response.status_code == 201
    ad = response.json()["ad"]
    assert ad["startDate"] == "2030-01-01T00:00:00.000Z"
    assert ad["active"] is True
    assert ad["link"] == ""
    assert len(await audit_service.list_logs(action="ad-created")) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "dates",
    [{"startDate": "not a date"}, {"startDate": "2030-02-01", "endDate": "2030-01-01"}],
)
async def test_create_ad_rejects_bad_dates(login_as, dates):
    admin = await login_as("admin")

    response = await admin.post("/ads", json={"company": "Acme", **dates})

    assert response.status_code == 400
    assert len(await audit_service.list_logs(action="ad-create-failed")) == 1


@pytest.mark.asyncio
async def test_reads_expire_and_persist(client, store):
    yesterday = to_iso(utcnow() - timedelta(days=1))
    await store.insert_one(ADS, {"id": "old", "active": True, "endDate": yesterday})

    listed = (await client.get("/ads")).json()

    assert listed[0]["active"] is False
    assert (await store.find_one(ADS, {"id": "old"}))["active"] is False
    assert (await client.get("/ads/old")).json()["active"] is False
    assert (await client.get("/ads/missing")).status_code == 404


@pytest.mark.asyncio
async def test_reads_never_activate(client, store):
    yesterday = to_iso(utcnow() - timedelta(days=1))
    await store.insert_one(ADS, {"id": "dormant", "active": False, "startDate": yesterday})

    assert (await client.get("/ads/dormant")).json()["active"] is False


@pytest.mark.asyncio
async def test_update_and_delete_ad(login_as):
    admin = await login_as("admin")
    ad_id = (await admin.post("/ads", json={"company": "Acme", "active": True})).json()["ad"]["id"]

    updated = await admin.put(f"/ads/{ad_id}", json={"company": "Globex"})
    bad = await admin.put(f"/ads/{ad_id}", json={"startDate": "2030-02-01", "endDate": "2030-01-01"})
    deleted = await admin.delete(f"/ads/{ad_id}")

    assert updated.json()["ad"]["company"] == "Globex"
    assert updated.json()["ad"]["active"] is True
    assert bad.status_code == 400
    assert deleted.json()["deleted"]["id"] == ad_id
    assert (await admin.delete(f"/ads/{ad_id}")).status_code == 404
    assert len(await audit_service.list_logs(action="ad-delete-failed")) == 1


@pytest.mark.asyncio
async def test_periodic_sweep_survives_errors():
    calls = []

    async def failing_sweep():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("store offline")
        raise asyncio.CancelledError

    with patch.object(ad_module.ad_service, "run_expiry", AsyncMock(side_effect=failing_sweep)):
        with pytest.raises(asyncio.CancelledError):
            await ad_module.periodic_ad_expiry(interval=0.001)

    assert len(calls) == 2


@pytest.mark.asyncio
async def test_reads_without_expiry_leave_file_alone(client, store):
    tomorrow = to_iso(utcnow() + timedelta(days=1))
    await store.insert_one(ADS, {"id": "live", "active": True, "endDate": tomorrow})

    with patch.object(store, "_write_file", wraps=store._write_file) as write_file:
        await client.get("/ads")
        await client.get("/ads/live")

    write_file.assert_not_called()
