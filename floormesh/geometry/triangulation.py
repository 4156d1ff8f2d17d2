"""Ear-clipping triangulation for simple polygons, with hole bridging."""

import logging
import math
from typing import List, Sequence, Tuple

from floormesh.fml_parser.elements import Point2D, Ring
from floormesh.fml_parser.spatial_utils import clean_ring, point_in_polygon, signed_area

logger = logging.getLogger(__name__)

Triangle = Tuple[int, int, int]

EPSILON = 1e-9


def _cross(o: Point2D, a: Point2D, b: Point2D) -> float:
    return (a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0])


def _in_triangle(p: Point2D, a: Point2D, b: Point2D, c: Point2D) -> bool:
    """Inclusive containment for a counter-clockwise triangle."""
    return (
        _cross(a, b, p) >= -EPSILON
        and _cross(b, c, p) >= -EPSILON
        and _cross(c, a, p) >= -EPSILON
    )


def ear_clip(ring: Sequence[Point2D]) -> List[Triangle]:
    """Triangulate a simple polygon by ear clipping.

    The winding is normalized to counter-clockwise first; returned index
    triples refer to positions in ``ring`` and are counter-clockwise. A
    polygon of N vertices yields N-2 triangles. When no ear can be found
    (nearly degenerate input) the most convex vertex is clipped anyway so
    the loop always terminates.
    """
    n = len(ring)
    if n < 3:
        return []
    indices = list(range(n))
    if signed_area(ring) < 0:
        indices.reverse()

    triangles: List[Triangle] = []
    while len(indices) > 3:
        m = len(indices)
        clipped = False
        for k in range(m):
            i_prev, i_curr, i_next = indices[k - 1], indices[k], indices[(k + 1) % m]
            a, b, c = ring[i_prev], ring[i_curr], ring[i_next]
            if _cross(a, b, c) <= EPSILON:
                continue
            if any(
                _in_triangle(ring[o], a, b, c)
                for o in indices
                if o not in (i_prev, i_curr, i_next) and ring[o] not in (a, b, c)
            ):
                continue
            triangles.append((i_prev, i_curr, i_next))
            indices.pop(k)
            clipped = True
            break

        if not clipped:
            k = max(
                range(m),
                key=lambda j: _cross(ring[indices[j - 1]], ring[indices[j]], ring[indices[(j + 1) % m]]),
            )
            triangles.append((indices[k - 1], indices[k], indices[(k + 1) % m]))
            indices.pop(k)

    triangles.append((indices[0], indices[1], indices[2]))
    return triangles


def _segments_cross(p1: Point2D, p2: Point2D, q1: Point2D, q2: Point2D) -> bool:
    """Proper intersection test; touching at shared endpoints does not count."""
    if p1 in (q1, q2) or p2 in (q1, q2):
        return False
    d1 = _cross(q1, q2, p1)
    d2 = _cross(q1, q2, p2)
    d3 = _cross(p1, p2, q1)
    d4 = _cross(p1, p2, q2)
    return ((d1 > EPSILON and d2 < -EPSILON) or (d1 < -EPSILON and d2 > EPSILON)) and (
        (d3 > EPSILON and d4 < -EPSILON) or (d3 < -EPSILON and d4 > EPSILON)
    )


def _ring_edges(ring: Sequence[Point2D]):
    n = len(ring)
    for i in range(n):
        yield ring[i], ring[(i + 1) % n]


def _bridge_is_clear(
    start: Point2D,
    end: Point2D,
    outer: Ring,
    holes: Sequence[Ring],
    merged: Ring,
) -> bool:
    mid = ((start[0] + end[0]) / 2, (start[1] + end[1]) / 2)
    if not point_in_polygon(mid, outer):
        return False
    if any(point_in_polygon(mid, hole) for hole in holes):
        return False
    for ring in [merged, *holes]:
        for q1, q2 in _ring_edges(ring):
            if _segments_cross(start, end, q1, q2):
                return False
    return True


def bridge_holes(outer: Ring, holes: Sequence[Ring]) -> Ring:
    """Merge hole rings into the outer ring through zero-width bridges.

    Holes are processed by decreasing maximum x. Each hole is joined at its
    rightmost vertex to the nearest ring vertex that it can see. The merged
    ring repeats the two bridge vertices.
    """
    merged = list(outer)
    if signed_area(merged) < 0:
        merged.reverse()
    pending = []
    for hole in holes:
        hole = list(hole)
        if signed_area(hole) > 0:
            hole.reverse()
        pending.append(hole)
    pending.sort(key=lambda h: -max(p[0] for p in h))

    all_holes = list(pending)
    while pending:
        hole = pending.pop(0)
        m_idx = max(range(len(hole)), key=lambda i: (hole[i][0], -hole[i][1]))
        m = hole[m_idx]
        candidates = sorted(
            range(len(merged)),
            key=lambda i: math.hypot(merged[i][0] - m[0], merged[i][1] - m[1]),
        )
        target = candidates[0]
        for i in candidates:
            if _bridge_is_clear(m, merged[i], outer, all_holes, merged):
                target = i
                break
        else:
            logger.debug("No clear bridge found for hole, using nearest vertex")

        rotated = hole[m_idx:] + hole[:m_idx]
        merged = merged[: target + 1] + rotated + [m] + merged[target:]
    return merged


def triangulate_polygon(rings: Sequence[Ring]) -> Tuple[Ring, List[Triangle]]:
    """Triangulate a polygon with holes.

    Returns the merged vertex ring (outer with bridged holes) and triangles
    indexing into it. Degenerate outer rings yield no triangles.
    """
    if not rings:
        return [], []
    outer = clean_ring(rings[0])
    if len(outer) < 3:
        return outer, []
    holes = [h for h in (clean_ring(r) for r in rings[1:]) if len(h) >= 3]
    merged = bridge_holes(outer, holes) if holes else outer
    return merged, ear_clip(merged)
