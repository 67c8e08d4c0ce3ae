"""
API routers.
"""

from .chat import router as chat_router
from .courses import router as courses_router
from .health import router as health_router
from .scans import router as scans_router
from .usage import router as usage_router

__all__ = [
    "chat_router",
    "courses_router",
    "health_router",
    "scans_router",
    "usage_router",
]
