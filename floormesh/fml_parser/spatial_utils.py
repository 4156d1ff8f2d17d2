"""Spatial utility functions for plan-space geometry.

Ring tests use even-odd ray casting with half-open edge comparison, so a
vertex shared by two edges is counted once. The vectorized variants run the
same rule over numpy coordinate arrays for grid sampling.
"""

import math
from typing import List, Sequence, Tuple

import numpy as np

from .elements import BoundingBox, Point2D, Ring


def distance(p1: Point2D, p2: Point2D) -> float:
    """Calculate Euclidean distance between two points."""
    return math.hypot(p2[0] - p1[0], p2[1] - p1[1])


def signed_area(polygon: Sequence[Point2D]) -> float:
    """Shoelace area, positive for counter-clockwise rings."""
    n = len(polygon)
    if n < 3:
        return 0.0
    total = 0.0
    for i in range(n):
        x1, y1 = polygon[i]
        x2, y2 = polygon[(i + 1) % n]
        total += x1 * y2 - x2 * y1
    return total / 2.0


def polygon_area(polygon: Sequence[Point2D]) -> float:
    """Calculate the area of a polygon.

    Args:
        polygon: List of (x, y) vertices

    Returns:
        Area in square units (always positive)
    """
    return abs(signed_area(polygon))


def vertex_centroid(polygon: Sequence[Point2D]) -> Point2D:
    """Average of the polygon vertices."""
    if not polygon:
        return (0.0, 0.0)
    n = len(polygon)
    return (sum(p[0] for p in polygon) / n, sum(p[1] for p in polygon) / n)


def bbox_area(points: Sequence[Point2D]) -> float:
    """Area of the axis-aligned bounding box of a point list."""
    if not points:
        return 0.0
    box = BoundingBox.from_points(list(points))
    return box.width * box.height


def point_in_polygon(point: Point2D, polygon: Sequence[Point2D]) -> bool:
    """Check if a point is inside a ring by even-odd ray casting.

    Points exactly on the boundary have no guaranteed answer; callers that
    need coverage of shared edges expand their polygons first.
    """
    px, py = point
    inside = False
    n = len(polygon)
    j = n - 1
    for i in range(n):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        if (yi > py) != (yj > py):
            x_cross = (xj - xi) * (py - yi) / (yj - yi) + xi
            if px < x_cross:
                inside = not inside
        j = i
    return inside


def points_in_ring(xs: np.ndarray, ys: np.ndarray, ring: Sequence[Point2D]) -> np.ndarray:
    """Vectorized :func:`point_in_polygon` over coordinate arrays."""
    inside = np.zeros(np.shape(xs), dtype=bool)
    n = len(ring)
    if n < 3:
        return inside
    j = n - 1
    for i in range(n):
        xi, yi = ring[i]
        xj, yj = ring[j]
        j = i
        if yi == yj:
            continue
        straddles = (yi > ys) != (yj > ys)
        x_cross = (xj - xi) * (ys - yi) / (yj - yi) + xi
        inside ^= straddles & (xs < x_cross)
    return inside


def points_in_rings(xs: np.ndarray, ys: np.ndarray, rings: Sequence[Sequence[Point2D]]) -> np.ndarray:
    """Even-odd test across all rings of one polygon, so holes are excluded."""
    inside = np.zeros(np.shape(xs), dtype=bool)
    for ring in rings:
        inside ^= points_in_ring(xs, ys, ring)
    return inside


def expand_polygon(polygon: Sequence[Point2D], amount: float) -> Ring:
    """Push every vertex ``amount`` further away from the vertex centroid."""
    if len(polygon) < 3:
        return list(polygon)
    cx, cy = vertex_centroid(polygon)
    result = []
    for x, y in polygon:
        dx = x - cx
        dy = y - cy
        dist = math.hypot(dx, dy)
        if dist < 0.001:
            result.append((x, y))
        else:
            result.append((x + dx / dist * amount, y + dy / dist * amount))
    return result


def clean_ring(polygon: Sequence[Point2D], tolerance: float = 1e-6) -> Ring:
    """Drop a repeated closing point and consecutive near-duplicate vertices."""
    result: Ring = []
    for p in polygon:
        point = (float(p[0]), float(p[1]))
        if result and distance(result[-1], point) <= tolerance:
            continue
        result.append(point)
    while len(result) > 1 and distance(result[0], result[-1]) <= tolerance:
        result.pop()
    return result


def project_onto_segment(point: Point2D, seg_start: Point2D, seg_end: Point2D) -> Tuple[float, float]:
    """Return ``(t, distance)`` of a point projected on the infinite line.

    ``t`` is the unclamped parameter along ``seg_start -> seg_end``. A
    degenerate segment yields ``t = 0`` and the distance to its start.
    """
    dx = seg_end[0] - seg_start[0]
    dy = seg_end[1] - seg_start[1]
    length_sq = dx * dx + dy * dy
    if length_sq < 0.001:
        return 0.0, distance(point, seg_start)
    t = ((point[0] - seg_start[0]) * dx + (point[1] - seg_start[1]) * dy) / length_sq
    proj = (seg_start[0] + dx * t, seg_start[1] + dy * t)
    return t, distance(point, proj)


def offset_segment(a: Point2D, b: Point2D, half_width: float) -> List[Point2D]:
    """Rectangle swept by segment ``a -> b`` at ``half_width`` on both sides.

    Corner order is left-a, left-b, right-b, right-a (left of travel first).
    Returns an empty list for segments shorter than 0.1.
    """
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    length = math.hypot(dx, dy)
    if length < 0.1:
        return []
    nx = -dy / length * half_width
    ny = dx / length * half_width
    return [
        (a[0] + nx, a[1] + ny),
        (b[0] + nx, b[1] + ny),
        (b[0] - nx, b[1] - ny),
        (a[0] - nx, a[1] - ny),
    ]
