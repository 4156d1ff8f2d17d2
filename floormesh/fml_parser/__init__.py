"""FML Floor Plan Module

Element data classes and plan-space utilities for FML documents. The
document loader lives in ``floormesh.fml_parser.parser``.
"""

from .elements import (
    Area,
    Balustrade,
    BoundingBox,
    Design,
    Floor,
    Item,
    Opening,
    OpeningType,
    PolygonVertex,
    Surface,
    Wall,
)
from .spatial_utils import point_in_polygon, polygon_area, signed_area

__all__ = [
    "Wall",
    "Opening",
    "OpeningType",
    "Balustrade",
    "Area",
    "Surface",
    "PolygonVertex",
    "Item",
    "Design",
    "Floor",
    "BoundingBox",
    "point_in_polygon",
    "polygon_area",
    "signed_area",
]
