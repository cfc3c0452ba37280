"""
API v1 Router

Thread-scoped endpoints are prefixed with /threads/{thread_id}.
"""

from fastapi import APIRouter
from . import admin, meetings, messages, profile, tasks, threads

router = APIRouter()

router.include_router(threads.router, prefix="/threads", tags=["Threads"])

# Include thread-scoped resource routers
router.include_router(messages.router, prefix="/threads/{thread_id}", tags=["Messages"])
router.include_router(tasks.router, prefix="/threads/{thread_id}/tasks", tags=["Tasks"])
router.include_router(meetings.router, prefix="/threads/{thread_id}/meetings", tags=["Meetings"])

router.include_router(profile.router, prefix="/profile", tags=["Profile"])
router.include_router(admin.router, prefix="/admin", tags=["Admin"])


@router.get("/", tags=["API"])
async def api_root():
    """API root: returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/threads",
            "/threads/{thread_id}/messages",
            "/threads/{thread_id}/tasks",
            "/threads/{thread_id}/meetings",
            "/threads/{thread_id}/ws",
            "/profile",
            "/admin",
        ],
    }
