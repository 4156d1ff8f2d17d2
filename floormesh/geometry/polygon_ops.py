"""Polygon set engine: boolean union and difference over polygons with holes.

A polygon is a list of rings, the first ring being the outer boundary and the
rest holes. Results are oriented with counter-clockwise outer rings and
clockwise holes, without a repeated closing point.

Uses Shapely for the boolean operations. A failing operation never aborts
the caller: the input set is returned unchanged and the failure is counted.
"""

import logging
from typing import List, Optional, Sequence

from shapely.errors import GEOSException
from shapely.geometry import GeometryCollection, MultiPolygon, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.geometry.polygon import orient
from shapely.ops import unary_union
from shapely.validation import make_valid

from floormesh.fml_parser.elements import Ring
from floormesh.fml_parser.spatial_utils import clean_ring

logger = logging.getLogger(__name__)

PolygonRings = List[Ring]

MIN_POLYGON_AREA = 1e-6


class PolygonOpError(RuntimeError):
    """A boolean operation failed on the given polygon set."""


def as_polygon_set(rings: Sequence[Ring]) -> List[PolygonRings]:
    """Wrap simple rings (no holes) as a polygon set."""
    return [[list(ring)] for ring in rings if len(ring) >= 3]


def to_shapely(rings: PolygonRings) -> Optional[BaseGeometry]:
    """Build a valid Shapely geometry from one polygon's rings.

    Returns None when the outer ring has fewer than three distinct vertices.
    Invalid rings (self-intersections, bow ties) are repaired with
    ``make_valid``.
    """
    if not rings:
        return None
    shell = clean_ring(rings[0])
    if len(shell) < 3:
        return None
    holes = [h for h in (clean_ring(r) for r in rings[1:]) if len(h) >= 3]
    poly = Polygon(shell, holes)
    if not poly.is_valid:
        poly = make_valid(poly)
    return poly


def from_shapely(geom: BaseGeometry, min_area: float = MIN_POLYGON_AREA) -> List[PolygonRings]:
    """Extract the polygonal parts of a geometry as oriented ring lists."""
    result: List[PolygonRings] = []
    if geom is None or geom.is_empty:
        return result
    for poly in _flatten_polygons(geom):
        if poly.is_empty or poly.area < min_area:
            continue
        poly = orient(poly, sign=1.0)
        rings = [[(float(x), float(y)) for x, y in poly.exterior.coords[:-1]]]
        for interior in poly.interiors:
            rings.append([(float(x), float(y)) for x, y in interior.coords[:-1]])
        result.append(rings)
    return result


def _flatten_polygons(geom: BaseGeometry) -> List[Polygon]:
    if isinstance(geom, Polygon):
        return [geom]
    if not isinstance(geom, (MultiPolygon, GeometryCollection)):
        return []
    polygons = []
    for sub in geom.geoms:
        polygons.extend(_flatten_polygons(sub))
    return polygons


def polygon_set_area(polygons: Sequence[PolygonRings]) -> float:
    """Total area of a polygon set, holes subtracted."""
    total = 0.0
    for rings in polygons:
        geom = to_shapely(rings)
        if geom is not None:
            total += geom.area
    return total


class PolygonSetEngine:
    """Boolean operations on polygon sets with pass-through fallback.

    ``failures`` counts operations that fell back to their unmodified input.
    With ``strict`` set, failures raise PolygonOpError instead.
    """

    def __init__(self, min_area: float = MIN_POLYGON_AREA, strict: bool = False):
        self.min_area = min_area
        self.strict = strict
        self.failures = 0

    def union(self, polygons: Sequence[PolygonRings]) -> List[PolygonRings]:
        """Merge overlapping or touching polygons into connected regions."""
        geoms = self._geometries(polygons)
        if not geoms:
            return []
        try:
            merged = unary_union(geoms)
        except (GEOSException, ValueError) as e:
            return self._fallback("union", polygons, e)
        return from_shapely(merged, self.min_area)

    def difference(
        self, polygons: Sequence[PolygonRings], subtrahend: Sequence[PolygonRings]
    ) -> List[PolygonRings]:
        """Subtract ``subtrahend`` from the union of ``polygons``.

        An empty subtrahend returns the input set unchanged.
        """
        cut_geoms = self._geometries(subtrahend)
        if not cut_geoms:
            return [list(rings) for rings in polygons]
        geoms = self._geometries(polygons)
        if not geoms:
            return []
        try:
            base = unary_union(geoms)
            cut = unary_union(cut_geoms)
            result = base.difference(cut)
        except (GEOSException, ValueError) as e:
            return self._fallback("difference", polygons, e)
        return from_shapely(result, self.min_area)

    def _geometries(self, polygons: Sequence[PolygonRings]) -> List[BaseGeometry]:
        geoms = []
        for rings in polygons:
            try:
                geom = to_shapely(rings)
            except (GEOSException, ValueError) as e:
                logger.debug(f"Skipping unusable polygon: {e}")
                continue
            if geom is not None and not geom.is_empty:
                geoms.append(geom)
        return geoms

    def _fallback(
        self, operation: str, polygons: Sequence[PolygonRings], error: Exception
    ) -> List[PolygonRings]:
        if self.strict:
            raise PolygonOpError(f"Polygon {operation} failed: {error}") from error
        self.failures += 1
        logger.warning(
            f"Polygon {operation} failed on {len(polygons)} polygons, "
            f"passing input through: {error}"
        )
        return [list(rings) for rings in polygons]
