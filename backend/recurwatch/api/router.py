"""
Main API router.
"""

from fastapi import APIRouter
from recurwatch.api import recurring

api_router = APIRouter()

api_router.include_router(recurring.router)
