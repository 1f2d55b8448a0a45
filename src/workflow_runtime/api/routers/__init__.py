"""
API routers
"""

from . import definitions, sessions, monitoring

__all__ = ["definitions", "sessions", "monitoring"]
