"""
wabridge Configuration

Environment-driven settings validated with pydantic.
"""

from .schemas import AppSettings

__all__ = [
    "AppSettings",
]
