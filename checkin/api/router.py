from fastapi import APIRouter
from checkin.api.endpoints import feedback, health, pages, submission

api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(pages.router)
api_router.include_router(feedback.router)

# /{submission_id} matches any single segment, so it goes last
api_router.include_router(submission.router, tags=["Check in"])
