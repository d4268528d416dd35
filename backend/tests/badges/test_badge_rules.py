"""
배지 규칙 판정/지급 테스트
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from backend.app.schemas.badges import BadgeDefinition, ReportActivity, UserActivityAggregate
from backend.app.services.badges import (
    BADGE_RULES,
    BadgeRule,
    BadgeRuleKind,
    attempt_badge_grants,
    evaluate_badges,
    qualifying_badges,
)

CATALOG = [
    BadgeDefinition(id=f"b{index}", name=name)
    for index, name in enumerate(
        ["First Report", "5 Reports", "10 Reports", "Early Bird", "Night Owl", "Mystery Badge"]
    )
]


def _badge(name: str) -> BadgeDefinition:
    return next(badge for badge in CATALOG if badge.name == name)


def _reports_at_hours(*hours: int) -> list[ReportActivity]:
    return [ReportActivity(created_at=datetime(2025, 6, 1, hour, 30)) for hour in hours]


class RecordingGrant:
    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.fail_for = fail_for or set()
        self.attempted: list[str] = []

    async def __call__(self, _user_id: str, badge: BadgeDefinition) -> None:
        self.attempted.append(badge.name)
        if badge.name in self.fail_for:
            raise RuntimeError("insert into user_badges failed")


def test_rule_table_matches_published_thresholds() -> None:
    expected = {
        "First Report": (BadgeRuleKind.REPORT_COUNT_GTE, 1),
        "5 Reports": (BadgeRuleKind.REPORT_COUNT_GTE, 5),
        "10 Reports": (BadgeRuleKind.REPORT_COUNT_GTE, 10),
        "Eco Warrior": (BadgeRuleKind.REPORT_COUNT_GTE, 25),
        "Lake Champion": (BadgeRuleKind.REPORT_COUNT_GTE, 50),
        "Environmental Legend": (BadgeRuleKind.REPORT_COUNT_GTE, 100),
        "100 Points Club": (BadgeRuleKind.POINTS_GTE, 100),
        "Point Master": (BadgeRuleKind.POINTS_GTE, 500),
        "Point Legend": (BadgeRuleKind.POINTS_GTE, 1000),
        "Cleanup Hero": (BadgeRuleKind.CLEANUP_COUNT_GTE, 5),
        "Lake Guardian": (BadgeRuleKind.CLEANUP_COUNT_GTE, 10),
        "Super Cleaner": (BadgeRuleKind.CLEANUP_COUNT_GTE, 10),
        "Master Cleaner": (BadgeRuleKind.CLEANUP_COUNT_GTE, 25),
        "Early Bird": (BadgeRuleKind.REPORT_BEFORE_HOUR, 8),
        "Night Owl": (BadgeRuleKind.REPORT_AT_OR_AFTER_HOUR, 22),
        "Photo Pro": (BadgeRuleKind.REPORTS_WITH_PHOTOS_GTE, 10),
        "Detail Detective": (BadgeRuleKind.REPORTS_WITH_LONG_DESCRIPTION_GTE, 10),
        "Severity Expert": (BadgeRuleKind.DISTINCT_SEVERITIES_GTE, 5),
        "Category Master": (BadgeRuleKind.DISTINCT_CATEGORIES_GTE, 6),
    }
    assert {name: (rule.kind, rule.threshold) for name, rule in BADGE_RULES.items()} == expected


@pytest.mark.asyncio
async def test_five_reports_grants_first_and_five_but_not_ten() -> None:
    aggregate = UserActivityAggregate(report_count=5)

    granted = await evaluate_badges("u1", aggregate, CATALOG, set(), RecordingGrant())

    assert {badge.name for badge in granted} == {"First Report", "5 Reports"}


@pytest.mark.asyncio
async def test_re_evaluation_with_updated_earned_set_is_empty() -> None:
    aggregate = UserActivityAggregate(report_count=5)
    grant = RecordingGrant()

    first = await evaluate_badges("u1", aggregate, CATALOG, set(), grant)
    earned = {badge.id for badge in first}
    second = await evaluate_badges("u1", aggregate, CATALOG, earned, grant)

    assert first
    assert second == []
    assert grant.attempted == ["First Report", "5 Reports"]


@pytest.mark.asyncio
async def test_persistence_failure_is_isolated_per_badge() -> None:
    aggregate = UserActivityAggregate(report_count=5)
    grant = RecordingGrant(fail_for={"5 Reports"})

    granted = await evaluate_badges("u1", aggregate, CATALOG, set(), grant)

    assert [badge.name for badge in granted] == ["First Report"]
    assert set(grant.attempted) == {"First Report", "5 Reports"}


@pytest.mark.asyncio
async def test_failed_grant_is_reported_in_outcomes() -> None:
    grant = RecordingGrant(fail_for={"First Report"})

    outcomes = await attempt_badge_grants(
        "u1", UserActivityAggregate(report_count=1), CATALOG, set(), grant
    )

    assert len(outcomes) == 1
    assert outcomes[0].granted is False
    assert "failed" in (outcomes[0].error or "")


@pytest.mark.asyncio
async def test_early_bird_requires_report_before_eight() -> None:
    early = UserActivityAggregate(report_count=1, reports=_reports_at_hours(6))
    late = UserActivityAggregate(report_count=1, reports=_reports_at_hours(10))

    granted_early = await evaluate_badges("u1", early, [_badge("Early Bird")], set(), RecordingGrant())
    granted_late = await evaluate_badges("u1", late, [_badge("Early Bird")], set(), RecordingGrant())

    assert [badge.name for badge in granted_early] == ["Early Bird"]
    assert granted_late == []


def test_night_owl_boundary_is_inclusive() -> None:
    catalog = [_badge("Night Owl")]
    assert qualifying_badges(UserActivityAggregate(reports=_reports_at_hours(22)), catalog, set())
    assert not qualifying_badges(UserActivityAggregate(reports=_reports_at_hours(21)), catalog, set())


def test_local_hour_uses_configured_timezone() -> None:
    # 05:00 UTC == 14:00 KST
    created = datetime(2025, 6, 1, 5, 0, tzinfo=timezone.utc)
    aggregate = UserActivityAggregate(reports=[ReportActivity(created_at=created)])
    kst = timezone(timedelta(hours=9))

    assert qualifying_badges(aggregate, [_badge("Early Bird")], set(), tz=timezone.utc)
    assert not qualifying_badges(aggregate, [_badge("Early Bird")], set(), tz=kst)


def test_badge_without_rule_is_never_granted() -> None:
    aggregate = UserActivityAggregate(report_count=1000, points=100000, cleanup_count=1000)
    names = {badge.name for badge in qualifying_badges(aggregate, CATALOG, set())}
    assert "Mystery Badge" not in names


def test_already_earned_badges_are_skipped() -> None:
    aggregate = UserActivityAggregate(report_count=10)
    names = {badge.name for badge in qualifying_badges(aggregate, CATALOG, {"b0", "b1"})}
    assert names == {"10 Reports"}


@pytest.mark.parametrize(
    "rule, aggregate, expected",
    [
        (BadgeRule(BadgeRuleKind.POINTS_GTE, 100), UserActivityAggregate(points=100), True),
        (BadgeRule(BadgeRuleKind.POINTS_GTE, 100), UserActivityAggregate(points=99), False),
        (BadgeRule(BadgeRuleKind.CLEANUP_COUNT_GTE, 5), UserActivityAggregate(cleanup_count=5), True),
        (
            BadgeRule(BadgeRuleKind.REPORTS_WITH_PHOTOS_GTE, 2),
            UserActivityAggregate(reports=[ReportActivity(photo_count=1), ReportActivity(photo_count=3)]),
            True,
        ),
        (
            BadgeRule(BadgeRuleKind.REPORTS_WITH_PHOTOS_GTE, 2),
            UserActivityAggregate(reports=[ReportActivity(photo_count=1), ReportActivity(photo_count=0)]),
            False,
        ),
        (
            BadgeRule(BadgeRuleKind.REPORTS_WITH_LONG_DESCRIPTION_GTE, 1),
            UserActivityAggregate(reports=[ReportActivity(description_length=50)]),
            True,
        ),
        (
            BadgeRule(BadgeRuleKind.REPORTS_WITH_LONG_DESCRIPTION_GTE, 1),
            UserActivityAggregate(reports=[ReportActivity(description_length=49)]),
            False,
        ),
        (
            BadgeRule(BadgeRuleKind.DISTINCT_SEVERITIES_GTE, 5),
            UserActivityAggregate(reports=[ReportActivity(severity=s) for s in (1, 2, 3, 4, 5, 5)]),
            True,
        ),
        (
            BadgeRule(BadgeRuleKind.DISTINCT_SEVERITIES_GTE, 5),
            UserActivityAggregate(reports=[ReportActivity(severity=s) for s in (1, 2, 3, 4, 4)]),
            False,
        ),
        (
            BadgeRule(BadgeRuleKind.DISTINCT_CATEGORIES_GTE, 6),
            UserActivityAggregate(
                reports=[
                    ReportActivity(category=c)
                    for c in ("trash", "oil", "plastic", "vegetation", "animal", "other")
                ]
            ),
            True,
        ),
        (
            BadgeRule(BadgeRuleKind.DISTINCT_CATEGORIES_GTE, 6),
            UserActivityAggregate(reports=[ReportActivity(category="trash") for _ in range(6)]),
            False,
        ),
    ],
)
def test_rule_predicates(rule: BadgeRule, aggregate: UserActivityAggregate, expected: bool) -> None:
    assert rule.matches(aggregate) is expected
