"""
wabridge API routers.
"""

from .docs import router as docs_router
from .media import router as media_router
from .messages import router as messages_router
from .session import router as session_router

__all__ = [
    "docs_router",
    "media_router",
    "messages_router",
    "session_router",
]
