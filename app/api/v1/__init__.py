"""API v1 router."""
from fastapi import APIRouter

from app.api.v1 import document, folder, tests

api_router = APIRouter()

api_router.include_router(folder.router, prefix="/folders", tags=["Folders"])
api_router.include_router(document.router, tags=["Document Processing"])
api_router.include_router(tests.router, tags=["Tests"])
