"""
Triangle geometry synthesis.

GeometryBuilder accumulates planes, side-only boxes and ramp quads into one
TriangleSoup whose winding encodes walkability (+Y normal is walkable).
"""

from mazenav.geometry.soup import TriangleSoup
from mazenav.geometry.builder import GeometryBuilder

__all__ = ["TriangleSoup", "GeometryBuilder"]
