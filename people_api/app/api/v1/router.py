"""
Top‑level router for version 1 of the API.

This router aggregates the domain routers under a unified prefix.
When new endpoints are added, update this file to include their
routers.
"""

from fastapi import APIRouter

from .endpoints import health, people

router = APIRouter()

router.include_router(health.router, tags=["health"])
router.include_router(people.router, prefix="/people", tags=["people"])
