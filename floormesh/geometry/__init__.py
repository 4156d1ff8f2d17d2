"""Plan geometry: tessellation, wall healing, balustrades, voids, polygon sets."""

from .balustrades import (
    balustrade_fill_polygons,
    balustrade_strips,
    build_balustrade_chains,
    detect_balustrades,
    extend_balustrades,
)
from .polygon_ops import PolygonOpError, PolygonSetEngine
from .stair_voids import detect_stair_voids
from .tessellation import flatten_balustrades, flatten_walls, tessellate_polygon
from .triangulation import ear_clip, triangulate_polygon
from .wall_healing import HealedWalls, WallHealer

__all__ = [
    "flatten_walls",
    "flatten_balustrades",
    "tessellate_polygon",
    "WallHealer",
    "HealedWalls",
    "detect_balustrades",
    "extend_balustrades",
    "build_balustrade_chains",
    "balustrade_strips",
    "balustrade_fill_polygons",
    "detect_stair_voids",
    "PolygonSetEngine",
    "PolygonOpError",
    "ear_clip",
    "triangulate_polygon",
]
