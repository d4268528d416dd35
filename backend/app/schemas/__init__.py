from .badges import (
    BadgeDefinition,
    BadgeEvaluationResponse,
    BadgeGrantOutcome,
    ReportActivity,
    UserActivityAggregate,
    UserBadge,
)
from .lakes import Coordinate, LakeSearchResponse, LakeSearchResult, NearbyWaterBody
from .points import LeaderboardEntry, PointsBalance, PointsEntry
from .reports import (
    CleanupComplete,
    CleanupResponse,
    ReportAssignRequest,
    ReportCreate,
    ReportOut,
    ReportStatusUpdate,
    ReportSubmitResponse,
)
from .rewards import RedeemRequest, RedemptionOut, RedemptionResult, RewardOut

__all__ = [
    "BadgeDefinition",
    "BadgeEvaluationResponse",
    "BadgeGrantOutcome",
    "ReportActivity",
    "UserActivityAggregate",
    "UserBadge",
    "Coordinate",
    "LakeSearchResponse",
    "LakeSearchResult",
    "NearbyWaterBody",
    "LeaderboardEntry",
    "PointsBalance",
    "PointsEntry",
    "CleanupComplete",
    "CleanupResponse",
    "ReportAssignRequest",
    "ReportCreate",
    "ReportOut",
    "ReportStatusUpdate",
    "ReportSubmitResponse",
    "RedeemRequest",
    "RedemptionOut",
    "RedemptionResult",
    "RewardOut",
]
