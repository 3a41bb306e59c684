"""API package for the Time Tool Server"""

from . import health, tools

__all__ = ["health", "tools"]
