"""
배지 카탈로그 및 샘플 리워드 초기 데이터 삽입 스크립트

배지 이름은 services/badges.py 의 BADGE_RULES 키와 일치해야 지급된다.
이미 존재하는 항목은 설명/수치만 갱신한다.
"""

import asyncio
import sys
from datetime import datetime, timezone
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
project_root = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(project_root))

from backend.app.db import init
from backend.app.db.mongo import MongoConnectionManager
from backend.app.services.badges import BADGE_RULES, BADGES_COL
from backend.app.services.rewards import REWARDS_COL

BADGE_DESCRIPTIONS = {
    "First Report": "첫 번째 오염 제보를 등록했습니다.",
    "5 Reports": "제보 5건 달성",
    "10 Reports": "제보 10건 달성",
    "Eco Warrior": "제보 25건 달성",
    "Lake Champion": "제보 50건 달성",
    "Environmental Legend": "제보 100건 달성",
    "100 Points Club": "누적 100포인트 달성",
    "Point Master": "누적 500포인트 달성",
    "Point Legend": "누적 1000포인트 달성",
    "Cleanup Hero": "정화 활동 5회 완료",
    "Lake Guardian": "정화 활동 10회 완료",
    "Super Cleaner": "정화 활동 10회 완료",
    "Master Cleaner": "정화 활동 25회 완료",
    "Early Bird": "오전 8시 이전에 제보",
    "Night Owl": "오후 10시 이후에 제보",
    "Photo Pro": "사진이 첨부된 제보 10건",
    "Detail Detective": "50자 이상 상세 설명이 있는 제보 10건",
    "Severity Expert": "심각도 1~5를 모두 제보",
    "Category Master": "6개 카테고리를 모두 제보",
}

SAMPLE_REWARDS = [
    {"name": "Eco Sticker Pack", "category": "merch", "points_required": 50, "stock_available": 200},
    {"name": "Reusable Water Bottle", "category": "merch", "points_required": 150, "stock_available": 80},
    {"name": "Cafe Voucher", "category": "food", "points_required": 200, "stock_available": 50},
    {"name": "Tree Planting Donation", "category": "donation", "points_required": 300, "stock_available": 1000},
]


async def seed_catalog():
    """배지/리워드 초기 데이터 삽입"""
    db = MongoConnectionManager.get_database()
    await init.ensure_indexes(db)
    now = datetime.now(timezone.utc)

    print("배지 카탈로그 삽입을 시작합니다...")
    for name in BADGE_RULES:
        result = await db[BADGES_COL].update_one(
            {"name": name},
            {"$set": {"description": BADGE_DESCRIPTIONS.get(name, name), "updated_at": now}},
            upsert=True,
        )
        action = "생성" if result.upserted_id else "업데이트"
        print(f"  ✓ {name}: {action} 완료")

    print("\n샘플 리워드 삽입을 시작합니다...")
    for reward in SAMPLE_REWARDS:
        await db[REWARDS_COL].update_one(
            {"name": reward["name"]},
            {"$set": {**reward, "is_active": True, "updated_at": now}},
            upsert=True,
        )
        print(f"  ✓ {reward['name']}: {reward['points_required']}P")

    print(f"\n배지 {len(BADGE_RULES)}개, 리워드 {len(SAMPLE_REWARDS)}개가 준비되었습니다.")
    await MongoConnectionManager.close()


if __name__ == "__main__":
    asyncio.run(seed_catalog())
