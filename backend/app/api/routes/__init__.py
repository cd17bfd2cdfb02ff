from fastapi import APIRouter
from .home import router as home_router
from .auth import router as auth_router
from .courses import router as courses_router
from .lessons import router as lessons_router
from .quizzes import router as quizzes_router
from .admin import router as admin_router
from .speech import router as speech_router
from .resumes import router as resumes_router
from .interviews import router as interviews_router
from .ai import router as ai_router
from .dashboard import router as dashboard_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["authentication"])
api_router.include_router(courses_router, prefix="/courses", tags=["courses"])
api_router.include_router(lessons_router, prefix="/lessons", tags=["lessons"])
api_router.include_router(quizzes_router, prefix="/quizzes", tags=["quizzes"])
api_router.include_router(admin_router, prefix="/admin", tags=["admin"])
api_router.include_router(speech_router, prefix="/speech", tags=["speech"])
api_router.include_router(resumes_router, prefix="/resumes", tags=["resumes"])
api_router.include_router(interviews_router, prefix="/interviews", tags=["interviews"])
api_router.include_router(ai_router, prefix="/ai", tags=["ai"])
api_router.include_router(dashboard_router, prefix="/dashboard", tags=["dashboard"])
api_router.include_router(home_router, tags=["home"])
