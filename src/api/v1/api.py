from fastapi import APIRouter, Depends

from dependencies.auth import get_current_user

from .ai import router as ai_router
from .analytics import router as analytics_router
from .auth import router as auth_router
from .flashcards import router as flashcards_router
from .health import router as health_router
from .lessons import router as lessons_router
from .mind_maps import router as mind_maps_router
from .quizzes import attempts_router, router as quizzes_router
from .study_progress import router as study_progress_router
from .teacher import router as teacher_router


# Public API router (health, auth)
api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router)


# Protected routers: a router-level dependency makes every route require
# authentication and surfaces the OAuth2 security scheme in OpenAPI.
protected_deps = [Depends(get_current_user)]
api_router.include_router(ai_router, dependencies=protected_deps)
api_router.include_router(flashcards_router, dependencies=protected_deps)
api_router.include_router(quizzes_router, dependencies=protected_deps)
api_router.include_router(attempts_router, dependencies=protected_deps)
api_router.include_router(lessons_router, dependencies=protected_deps)
api_router.include_router(mind_maps_router, dependencies=protected_deps)
api_router.include_router(study_progress_router, dependencies=protected_deps)
api_router.include_router(teacher_router, dependencies=protected_deps)
api_router.include_router(analytics_router, dependencies=protected_deps)
