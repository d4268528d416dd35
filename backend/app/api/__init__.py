from fastapi import APIRouter

from .routes import badges, changes, health, lakes, points, reports, rewards

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(lakes.router, prefix="/lakes", tags=["lakes"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
api_router.include_router(badges.router, prefix="/badges", tags=["badges"])
api_router.include_router(points.router, tags=["points"])
api_router.include_router(rewards.router, prefix="/rewards", tags=["rewards"])
api_router.include_router(changes.router, prefix="/changes", tags=["changes"])
