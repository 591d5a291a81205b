from fastapi import APIRouter

from pawmatch.api.v1.endpoints import matches

router = APIRouter()

router.include_router(matches.router, prefix="/matches")
