"""API route modules.

- chat.py: child chat and lesson start, guarded by the FilterGate
- content.py: direct filter/validate endpoints and stats
- health.py: liveness
"""

from fastapi import APIRouter

from .chat import router as chat_router
from .content import router as content_router
from .health import router as health_router

router = APIRouter()
router.include_router(chat_router)
router.include_router(content_router, prefix="/content")

__all__ = ["chat_router", "content_router", "health_router", "router"]
