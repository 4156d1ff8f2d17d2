"""API Routes"""

from . import floors, health

__all__ = ["floors", "health"]
