"""API router package."""

from fastapi import APIRouter

from taskboard.api.v1 import (
    activity_logs,
    auth,
    favorites,
    health,
    preferences,
    profile,
    search,
    section_order,
    sessions,
    task_files,
    task_updates,
    tasks,
    update_reactions,
    users,
    workplaces,
)

router = APIRouter()

# Include all API routers
router.include_router(health.router, tags=["Health"])
router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(profile.router, prefix="/auth", tags=["Profile"])
router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])
router.include_router(activity_logs.router, prefix="/activity_logs", tags=["Activity"])
router.include_router(workplaces.router, prefix="/workplaces", tags=["Workplaces"])
router.include_router(section_order.router, prefix="/section-order", tags=["Workplaces"])
router.include_router(favorites.router, prefix="/favorites", tags=["Favorites"])
router.include_router(task_updates.router, prefix="/task_updates", tags=["Updates"])
router.include_router(task_updates.comments_router, prefix="/update_comments", tags=["Updates"])
router.include_router(update_reactions.router, prefix="/update_reactions", tags=["Updates"])
router.include_router(update_reactions.likes_router, prefix="/update_likes", tags=["Updates"])
router.include_router(task_files.router, prefix="/task_files", tags=["Files"])
router.include_router(search.router, tags=["Search"])
router.include_router(preferences.router, prefix="/user_preferences", tags=["Preferences"])
router.include_router(sessions.router, prefix="/session_history", tags=["Sessions"])
