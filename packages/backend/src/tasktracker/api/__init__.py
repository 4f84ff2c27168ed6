"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Health and account routes are open. Task routes are protected,
but not through a router-level dependency — every task handler takes the
AuthenticatedUser from get_current_user directly, because it needs the
user's id to scope its queries anyway.
"""

from fastapi import APIRouter

from tasktracker.api.health import router as health_router
from tasktracker.api.tasks import router as tasks_router
from tasktracker.api.users import router as users_router

api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(users_router, tags=["auth"])
api_router.include_router(tasks_router, tags=["tasks"])
