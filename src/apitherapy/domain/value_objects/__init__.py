"""
Value objects package for domain layer.
"""

from .point_id import PointId

__all__ = [
    "PointId",
]
