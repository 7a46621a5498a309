"""
league_engine/routes/__init__.py
Route registration
"""
from fastapi import APIRouter
from league_engine.routes import brackets, portal, admin

router = APIRouter()

router.include_router(brackets.router)
router.include_router(portal.router)
router.include_router(admin.router)
