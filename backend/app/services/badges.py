"""
배지 규칙 판정 및 지급

배지 카탈로그(badges 컬렉션)의 각 배지는 이름으로 규칙 테이블(BADGE_RULES)에 매칭된다.
규칙이 없는 배지는 지급하지 않는다.
"""
from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from enum import Enum
from functools import partial
from zoneinfo import ZoneInfo

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from ..core.config import settings
from ..core.errors import PersistenceFailure
from ..schemas.badges import (
    BadgeDefinition,
    BadgeGrantOutcome,
    UserActivityAggregate,
    UserBadge,
)
from .activity import build_activity_aggregate

logger = logging.getLogger(__name__)

BADGES_COL = "badges"
USER_BADGES_COL = "user_badges"

LONG_DESCRIPTION_CHARS = 50


class BadgeRuleKind(str, Enum):
    REPORT_COUNT_GTE = "report_count_gte"
    POINTS_GTE = "points_gte"
    CLEANUP_COUNT_GTE = "cleanup_count_gte"
    REPORT_BEFORE_HOUR = "report_before_hour"
    REPORT_AT_OR_AFTER_HOUR = "report_at_or_after_hour"
    REPORTS_WITH_PHOTOS_GTE = "reports_with_photos_gte"
    REPORTS_WITH_LONG_DESCRIPTION_GTE = "reports_with_long_description_gte"
    DISTINCT_SEVERITIES_GTE = "distinct_severities_gte"
    DISTINCT_CATEGORIES_GTE = "distinct_categories_gte"


def _local_hour(created_at: datetime, tz: tzinfo | None) -> int:
    # naive datetime은 이미 현지 시각으로 간주
    if created_at.tzinfo is None:
        return created_at.hour
    return created_at.astimezone(tz).hour


@dataclass(frozen=True)
class BadgeRule:
    kind: BadgeRuleKind
    threshold: int

    def matches(self, aggregate: UserActivityAggregate, tz: tzinfo | None = None) -> bool:
        kind = self.kind
        reports = aggregate.reports

        if kind is BadgeRuleKind.REPORT_COUNT_GTE:
            return aggregate.report_count >= self.threshold
        if kind is BadgeRuleKind.POINTS_GTE:
            return aggregate.points >= self.threshold
        if kind is BadgeRuleKind.CLEANUP_COUNT_GTE:
            return aggregate.cleanup_count >= self.threshold
        if kind is BadgeRuleKind.REPORT_BEFORE_HOUR:
            return any(
                r.created_at is not None and _local_hour(r.created_at, tz) < self.threshold
                for r in reports
            )
        if kind is BadgeRuleKind.REPORT_AT_OR_AFTER_HOUR:
            return any(
                r.created_at is not None and _local_hour(r.created_at, tz) >= self.threshold
                for r in reports
            )
        if kind is BadgeRuleKind.REPORTS_WITH_PHOTOS_GTE:
            return sum(1 for r in reports if r.photo_count >= 1) >= self.threshold
        if kind is BadgeRuleKind.REPORTS_WITH_LONG_DESCRIPTION_GTE:
            return (
                sum(1 for r in reports if r.description_length >= LONG_DESCRIPTION_CHARS)
                >= self.threshold
            )
        if kind is BadgeRuleKind.DISTINCT_SEVERITIES_GTE:
            return len({r.severity for r in reports if r.severity is not None}) >= self.threshold
        if kind is BadgeRuleKind.DISTINCT_CATEGORIES_GTE:
            return len({r.category for r in reports if r.category}) >= self.threshold
        return False


# 배지 이름 -> 규칙. 백엔드 카탈로그의 배지 이름이 바뀌면 규칙도 함께 수정해야 한다.
BADGE_RULES: dict[str, BadgeRule] = {
    "First Report": BadgeRule(BadgeRuleKind.REPORT_COUNT_GTE, 1),
    "5 Reports": BadgeRule(BadgeRuleKind.REPORT_COUNT_GTE, 5),
    "10 Reports": BadgeRule(BadgeRuleKind.REPORT_COUNT_GTE, 10),
    "Eco Warrior": BadgeRule(BadgeRuleKind.REPORT_COUNT_GTE, 25),
    "Lake Champion": BadgeRule(BadgeRuleKind.REPORT_COUNT_GTE, 50),
    "Environmental Legend": BadgeRule(BadgeRuleKind.REPORT_COUNT_GTE, 100),
    "100 Points Club": BadgeRule(BadgeRuleKind.POINTS_GTE, 100),
    "Point Master": BadgeRule(BadgeRuleKind.POINTS_GTE, 500),
    "Point Legend": BadgeRule(BadgeRuleKind.POINTS_GTE, 1000),
    "Cleanup Hero": BadgeRule(BadgeRuleKind.CLEANUP_COUNT_GTE, 5),
    "Lake Guardian": BadgeRule(BadgeRuleKind.CLEANUP_COUNT_GTE, 10),
    "Super Cleaner": BadgeRule(BadgeRuleKind.CLEANUP_COUNT_GTE, 10),
    "Master Cleaner": BadgeRule(BadgeRuleKind.CLEANUP_COUNT_GTE, 25),
    "Early Bird": BadgeRule(BadgeRuleKind.REPORT_BEFORE_HOUR, 8),
    "Night Owl": BadgeRule(BadgeRuleKind.REPORT_AT_OR_AFTER_HOUR, 22),
    "Photo Pro": BadgeRule(BadgeRuleKind.REPORTS_WITH_PHOTOS_GTE, 10),
    "Detail Detective": BadgeRule(BadgeRuleKind.REPORTS_WITH_LONG_DESCRIPTION_GTE, 10),
    "Severity Expert": BadgeRule(BadgeRuleKind.DISTINCT_SEVERITIES_GTE, 5),
    "Category Master": BadgeRule(BadgeRuleKind.DISTINCT_CATEGORIES_GTE, 6),
}


def configured_timezone() -> tzinfo | None:
    """배지 판정용 현지 타임존 (설정이 비어 있으면 서버 로컬 시각)"""
    if not settings.badge_timezone:
        return None
    return ZoneInfo(settings.badge_timezone)


GrantFn = Callable[[str, BadgeDefinition], Awaitable[None]]


def qualifying_badges(
    aggregate: UserActivityAggregate,
    definitions: Iterable[BadgeDefinition],
    already_earned_ids: Iterable[str],
    *,
    tz: tzinfo | None = None,
    rules: dict[str, BadgeRule] = BADGE_RULES,
) -> list[BadgeDefinition]:
    """아직 획득하지 않은 배지 중 규칙을 만족하는 배지 목록 (저장 없음)"""
    earned = set(already_earned_ids)
    qualified: list[BadgeDefinition] = []
    for badge in definitions:
        if badge.id in earned:
            continue
        rule = rules.get(badge.name)
        if rule is None:
            continue
        if rule.matches(aggregate, tz):
            qualified.append(badge)
    return qualified


async def attempt_badge_grants(
    user_id: str,
    aggregate: UserActivityAggregate,
    definitions: Iterable[BadgeDefinition],
    already_earned_ids: Iterable[str],
    grant: GrantFn,
    *,
    tz: tzinfo | None = None,
) -> list[BadgeGrantOutcome]:
    """
    조건을 만족한 배지마다 지급을 시도하고 배지별 성공/실패를 반환

    한 배지의 저장 실패는 나머지 배지 지급을 막지 않는다.
    """
    outcomes: list[BadgeGrantOutcome] = []
    for badge in qualifying_badges(aggregate, definitions, already_earned_ids, tz=tz):
        try:
            await grant(user_id, badge)
        except Exception as exc:
            failure = PersistenceFailure(f"배지 '{badge.name}' 지급 실패", cause=exc)
            logger.error("%s (user_id=%s): %s", failure, user_id, exc)
            outcomes.append(BadgeGrantOutcome(badge=badge, granted=False, error=str(exc)))
            continue
        outcomes.append(BadgeGrantOutcome(badge=badge, granted=True))
    return outcomes


async def evaluate_badges(
    user_id: str,
    aggregate: UserActivityAggregate,
    definitions: Iterable[BadgeDefinition],
    already_earned_ids: Iterable[str],
    grant: GrantFn,
    *,
    tz: tzinfo | None = None,
) -> list[BadgeDefinition]:
    """
    새로 획득한 배지를 판정하고 지급

    Args:
        user_id: 사용자 ID
        aggregate: 사용자의 활동 집계 (제보 수, 정화 수, 포인트, 제보별 메타데이터)
        definitions: 전체 배지 카탈로그
        already_earned_ids: 이미 지급된 배지 ID (최신 값이어야 중복 지급이 없다)
        grant: 배지 지급을 저장하는 코루틴 함수

    Returns:
        저장에 성공한 배지 목록. 조건은 만족했지만 저장에 실패한 배지는 포함하지 않는다.
    """
    outcomes = await attempt_badge_grants(
        user_id, aggregate, definitions, already_earned_ids, grant, tz=tz
    )
    return [outcome.badge for outcome in outcomes if outcome.granted]


def document_to_badge(doc: dict) -> BadgeDefinition:
    return BadgeDefinition(
        id=str(doc["_id"]),
        name=doc.get("name", ""),
        description=doc.get("description"),
        icon_url=doc.get("icon_url"),
    )


async def list_badges(db: AsyncIOMotorDatabase) -> list[BadgeDefinition]:
    cursor = db[BADGES_COL].find({}).sort("name", 1)
    return [document_to_badge(doc) async for doc in cursor]


async def earned_badge_ids(db: AsyncIOMotorDatabase, user_id: str) -> set[str]:
    cursor = db[USER_BADGES_COL].find({"user_id": user_id})
    return {str(doc["badge_id"]) async for doc in cursor}


async def list_user_badges(db: AsyncIOMotorDatabase, user_id: str) -> list[UserBadge]:
    catalog = {badge.id: badge for badge in await list_badges(db)}
    cursor = db[USER_BADGES_COL].find({"user_id": user_id}).sort("awarded_at", -1)
    items: list[UserBadge] = []
    async for doc in cursor:
        badge = catalog.get(str(doc["badge_id"]))
        if badge is None:
            continue
        items.append(UserBadge(badge=badge, awarded_at=doc.get("awarded_at")))
    return items


async def insert_user_badge(db: AsyncIOMotorDatabase, user_id: str, badge: BadgeDefinition) -> None:
    badge_id: ObjectId | str = ObjectId(badge.id) if ObjectId.is_valid(badge.id) else badge.id
    await db[USER_BADGES_COL].insert_one(
        {
            "user_id": user_id,
            "badge_id": badge_id,
            "awarded_at": datetime.now(timezone.utc),
        }
    )


async def check_and_award_badges(
    db: AsyncIOMotorDatabase, user_id: str, *, tz: tzinfo | None = None
) -> list[BadgeDefinition]:
    """DB에서 최신 활동 집계/획득 배지를 읽어 새 배지를 판정하고 user_badges에 저장"""
    aggregate = await build_activity_aggregate(db, user_id)
    definitions = await list_badges(db)
    already_earned = await earned_badge_ids(db, user_id)
    return await evaluate_badges(
        user_id,
        aggregate,
        definitions,
        already_earned,
        partial(insert_user_badge, db),
        tz=tz if tz is not None else configured_timezone(),
    )
