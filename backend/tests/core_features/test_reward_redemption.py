"""
리워드 교환 테스트
- 잔액/재고 검증, 포인트 차감, 재고 감소, 교환 코드 형식
"""
from __future__ import annotations

import re

import pytest
from bson import ObjectId
from fastapi import HTTPException

from backend.app.services import rewards as reward_service
from backend.app.services.points import add_points, get_balance


def _seed_reward(fake_db, **overrides) -> str:
    doc = {
        "_id": ObjectId(),
        "name": "Reusable Bottle",
        "category": "merch",
        "points_required": 50,
        "stock_available": 2,
        "is_active": True,
    }
    doc.update(overrides)
    fake_db["rewards"].docs.append(doc)
    return str(doc["_id"])


def test_redemption_code_format() -> None:
    code = reward_service.generate_redemption_code(now_ms=1700000000000)
    assert re.fullmatch(r"ECO-1700000000000-[A-Z0-9]{6}", code)


@pytest.mark.asyncio
async def test_redeem_debits_points_and_stock(fake_db, fake_redis) -> None:
    reward_id = _seed_reward(fake_db)
    await add_points(fake_db, "user-1", 120, activity_type="report")

    result = await reward_service.redeem_reward(fake_db, fake_redis, "user-1", reward_id)

    assert result["points_spent"] == 50
    assert result["balance"] == 70
    assert result["redemption_code"].startswith("ECO-")
    assert await get_balance(fake_db, "user-1") == 70
    assert fake_db["rewards"].docs[0]["stock_available"] == 1
    assert fake_db["redemptions"].docs[0]["status"] == "pending"
    assert fake_redis.published[-1][0] == "changes:redemptions"


@pytest.mark.asyncio
async def test_insufficient_points_is_rejected(fake_db, fake_redis) -> None:
    reward_id = _seed_reward(fake_db, points_required=500)
    await add_points(fake_db, "user-1", 120, activity_type="report")

    with pytest.raises(HTTPException) as exc_info:
        await reward_service.redeem_reward(fake_db, fake_redis, "user-1", reward_id)

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == "포인트가 부족합니다."
    assert fake_db["redemptions"].docs == []
    assert await get_balance(fake_db, "user-1") == 120


@pytest.mark.asyncio
async def test_out_of_stock_is_rejected(fake_db, fake_redis) -> None:
    reward_id = _seed_reward(fake_db, stock_available=0)
    await add_points(fake_db, "user-1", 120, activity_type="report")

    with pytest.raises(HTTPException) as exc_info:
        await reward_service.redeem_reward(fake_db, fake_redis, "user-1", reward_id)

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == "리워드 재고가 없습니다."


@pytest.mark.asyncio
async def test_inactive_or_unknown_reward_is_not_found(fake_db, fake_redis) -> None:
    inactive_id = _seed_reward(fake_db, is_active=False)

    with pytest.raises(HTTPException) as inactive:
        await reward_service.redeem_reward(fake_db, fake_redis, "user-1", inactive_id)
    with pytest.raises(HTTPException) as unknown:
        await reward_service.redeem_reward(fake_db, fake_redis, "user-1", str(ObjectId()))
    with pytest.raises(HTTPException) as malformed:
        await reward_service.redeem_reward(fake_db, fake_redis, "user-1", "bottle")

    assert inactive.value.status_code == 404
    assert unknown.value.status_code == 404
    assert malformed.value.status_code == 400


@pytest.mark.asyncio
async def test_list_rewards_only_active_sorted_by_cost(fake_db) -> None:
    _seed_reward(fake_db, name="Tote Bag", points_required=80)
    _seed_reward(fake_db, name="Sticker", points_required=10)
    _seed_reward(fake_db, name="Retired", points_required=5, is_active=False)
    _seed_reward(fake_db, name="Cafe Voucher", points_required=30, category="food")

    merch = await reward_service.list_rewards(fake_db, "merch")
    everything = await reward_service.list_rewards(fake_db)

    assert [reward["name"] for reward in merch] == ["Sticker", "Tote Bag"]
    assert [reward["name"] for reward in everything] == ["Sticker", "Cafe Voucher", "Tote Bag"]


@pytest.mark.asyncio
async def test_redemption_history_includes_reward(fake_db, fake_redis) -> None:
    reward_id = _seed_reward(fake_db)
    await add_points(fake_db, "user-1", 100, activity_type="report")
    await reward_service.redeem_reward(fake_db, fake_redis, "user-1", reward_id)

    history = await reward_service.list_redemptions(fake_db, "user-1")

    assert len(history) == 1
    assert history[0]["reward_id"] == reward_id
    assert history[0]["reward"]["name"] == "Reusable Bottle"
