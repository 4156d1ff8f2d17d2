"""Quadratic Bezier tessellation of curved walls, balustrades and surface edges."""

import dataclasses
import logging
from typing import List, Sequence

from floormesh.fml_parser.elements import Balustrade, Point2D, PolygonVertex, Ring, Wall

logger = logging.getLogger(__name__)

WALL_ARC_SEGMENTS = 16
BALUSTRADE_ARC_SEGMENTS = 16
SURFACE_ARC_SEGMENTS = 24


def quadratic_bezier(a: Point2D, c: Point2D, b: Point2D, t: float) -> Point2D:
    """Evaluate ``P(t) = (1-t)^2 A + 2(1-t)t C + t^2 B``."""
    u = 1.0 - t
    return (
        u * u * a[0] + 2 * u * t * c[0] + t * t * b[0],
        u * u * a[1] + 2 * u * t * c[1] + t * t * b[1],
    )


def sample_bezier(a: Point2D, c: Point2D, b: Point2D, segments: int) -> List[Point2D]:
    """Return ``segments + 1`` points along the curve, ending exactly on ``a`` and ``b``."""
    segments = max(1, segments)
    points = [a]
    for i in range(1, segments):
        points.append(quadratic_bezier(a, c, b, i / segments))
    points.append(b)
    return points


def tessellate_wall(wall: Wall, segments: int = WALL_ARC_SEGMENTS, arc_group: int = 0) -> List[Wall]:
    """Split a curved wall into straight arc sub-segments.

    Heights are interpolated linearly between the wall's endpoint heights.
    Openings are not carried onto the sub-segments.
    """
    if wall.c is None:
        return [dataclasses.replace(wall, openings=list(wall.openings))]

    points = sample_bezier(wall.a, wall.c, wall.b, segments)
    n = len(points) - 1
    result = []
    for i in range(n):
        t0 = i / n
        t1 = (i + 1) / n
        result.append(
            Wall(
                id=f"{wall.id}:{i}",
                a=points[i],
                b=points[i + 1],
                thickness=wall.thickness,
                height_a=wall.height_a + (wall.height_b - wall.height_a) * t0,
                height_b=wall.height_a + (wall.height_b - wall.height_a) * t1,
                is_arc_segment=True,
                arc_group=arc_group,
            )
        )
    if wall.openings:
        logger.debug(f"Dropped {len(wall.openings)} openings on curved wall {wall.id}")
    return result


def flatten_walls(walls: Sequence[Wall], segments: int = WALL_ARC_SEGMENTS) -> List[Wall]:
    """Replace every curved wall with straight sub-segments; copy straight walls."""
    result: List[Wall] = []
    arc_count = 0
    for wall in walls:
        if wall.is_curved:
            result.extend(tessellate_wall(wall, segments, arc_group=arc_count))
            arc_count += 1
        else:
            result.extend(tessellate_wall(wall, segments))
    return result


def tessellate_balustrade(bal: Balustrade, segments: int = BALUSTRADE_ARC_SEGMENTS) -> List[Balustrade]:
    """Split a curved balustrade into straight segments keeping thickness and height."""
    if bal.c is None:
        return [dataclasses.replace(bal)]
    points = sample_bezier(bal.a, bal.c, bal.b, segments)
    return [
        Balustrade(
            id=f"{bal.id}:{i}",
            a=points[i],
            b=points[i + 1],
            thickness=bal.thickness,
            height=bal.height,
            detected=bal.detected,
        )
        for i in range(len(points) - 1)
    ]


def flatten_balustrades(
    balustrades: Sequence[Balustrade], segments: int = BALUSTRADE_ARC_SEGMENTS
) -> List[Balustrade]:
    """Curved balustrades become segments, straight ones pass through."""
    result: List[Balustrade] = []
    for bal in balustrades:
        result.extend(tessellate_balustrade(bal, segments))
    return result


def tessellate_polygon(poly: Sequence[PolygonVertex], segments: int = SURFACE_ARC_SEGMENTS) -> Ring:
    """Flatten a polygon whose vertices may curve their incoming edge.

    When vertex ``i`` carries a control point, the edge from vertex ``i-1``
    to vertex ``i`` is a quadratic Bezier; the previous vertex is already
    emitted, so only the intermediate points and the vertex itself are added.
    """
    if len(poly) < 3:
        return [v.point for v in poly]
    result: Ring = []
    n = len(poly)
    for i, curr in enumerate(poly):
        if curr.control is None:
            result.append(curr.point)
            continue
        prev = poly[(i - 1 + n) % n]
        result.extend(sample_bezier(prev.point, curr.control, curr.point, segments)[1:])
    return result
