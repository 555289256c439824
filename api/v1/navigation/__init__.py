"""Navigation API routes"""

from fastapi import APIRouter
from . import navigation

router = APIRouter()

router.include_router(navigation.router, prefix="/navigation", tags=["Navigation"])
