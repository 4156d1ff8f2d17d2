"""Wall topology healing.

Walls arrive as centerline segments that meet only at their centerlines.
Healing closes the gaps this leaves at L, T, X and angled junctions:

- extension: each wall is lengthened along its own direction by
  ``min(h / sin(angle), 3h)`` where ``h`` is the neighbor's half thickness;
  used for walls with openings, which are boxed one by one.
- union: opening-free walls become footprint rectangles extended by the
  neighbor's half thickness and are merged with a polygon union.

Junctions involving a diagonal wall, and the joints between arc
sub-segments, get a filler polygon built from the offset corners of every
wall meeting there. Input walls are never modified.
"""

import dataclasses
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from floormesh.fml_parser.elements import Point2D, Ring, Wall
from floormesh.fml_parser.spatial_utils import distance, offset_segment, polygon_area

from .junctions import (
    JUNCTION_TOLERANCE,
    PARALLEL_SIN,
    Junction,
    JunctionIndex,
    is_diagonal,
    sin_between,
    wall_direction,
)
from .polygon_ops import PolygonRings, PolygonSetEngine, as_polygon_set

logger = logging.getLogger(__name__)

STRATEGY_UNION = "union"
STRATEGY_EXTEND = "extend"
WALL_STRATEGIES = (STRATEGY_UNION, STRATEGY_EXTEND)

MAX_EXTENSION_FACTOR = 3.0
MIN_FILLER_AREA = 0.01


@dataclass
class HealedWalls:
    """Healed wall geometry for one floor.

    Attributes:
        union_polygons: merged footprints of opening-free walls
        boxed_walls: extended wall copies to be boxed individually
        fillers: junction fillers not already merged into ``union_polygons``
        footprints: every wall footprint and filler, for floor coverage
    """

    union_polygons: List[PolygonRings] = field(default_factory=list)
    boxed_walls: List[Wall] = field(default_factory=list)
    fillers: List[Ring] = field(default_factory=list)
    footprints: List[Ring] = field(default_factory=list)


def wall_footprint(wall: Wall) -> Ring:
    """Rectangle swept by the wall centerline at its thickness."""
    return offset_segment(wall.a, wall.b, wall.half_thickness)


def extend_wall(wall: Wall, extend_a: float, extend_b: float) -> Wall:
    """Copy of ``wall`` lengthened at both ends along its direction.

    Opening centers keep their absolute position along the wall.
    """
    direction = wall_direction(wall)
    if direction is None or (extend_a <= 0 and extend_b <= 0):
        return dataclasses.replace(wall, openings=list(wall.openings))
    ux, uy = direction
    length = wall.length
    new_length = length + extend_a + extend_b
    openings = [
        dataclasses.replace(o, t=(extend_a + o.t * length) / new_length)
        for o in wall.openings
    ]
    return dataclasses.replace(
        wall,
        a=(wall.a[0] - ux * extend_a, wall.a[1] - uy * extend_a),
        b=(wall.b[0] + ux * extend_b, wall.b[1] + uy * extend_b),
        openings=openings,
    )


def endpoint_extensions(
    walls: Sequence[Wall],
    junction_index: JunctionIndex,
    indices: Sequence[int],
    divide_by_sine: bool = True,
) -> Dict[int, Tuple[float, float]]:
    """Compute how far to extend each listed wall at its ``a`` and ``b`` ends.

    Diagonal walls, arc sub-segments and near-parallel neighbors contribute
    nothing. With ``divide_by_sine`` the extension is
    ``min(h / sin, 3h)``, otherwise it is the neighbor's half thickness.
    """
    result: Dict[int, Tuple[float, float]] = {}
    for i in indices:
        wall = walls[i]
        if wall.is_arc_segment or is_diagonal(wall) or wall_direction(wall) is None:
            result[i] = (0.0, 0.0)
            continue
        amounts = []
        for end in ("a", "b"):
            extension = 0.0
            for j in junction_index.neighbors_at(i, end):
                other = walls[j]
                if other.is_arc_segment or is_diagonal(other):
                    continue
                sin_angle = sin_between(wall, other)
                if sin_angle < PARALLEL_SIN:
                    continue
                half = other.half_thickness
                if divide_by_sine:
                    amount = min(half / sin_angle, half * MAX_EXTENSION_FACTOR)
                else:
                    amount = half
                extension = max(extension, amount)
            amounts.append(extension)
        result[i] = (amounts[0], amounts[1])
    return result


def extend_walls(
    walls: Sequence[Wall],
    tolerance: float = JUNCTION_TOLERANCE,
    junction_index: Optional[JunctionIndex] = None,
) -> List[Wall]:
    """Extension strategy applied to every wall; returns new wall objects."""
    if junction_index is None:
        junction_index = JunctionIndex(walls, tolerance)
    extensions = endpoint_extensions(walls, junction_index, range(len(walls)))
    return [extend_wall(w, *extensions[i]) for i, w in enumerate(walls)]


def junction_filler(junction: Junction, walls: Sequence[Wall]) -> Optional[Ring]:
    """Ring through the offset corners of all walls meeting at a junction.

    Corners are sorted by angle around the junction point, which fills the
    wedge a rectangle extension cannot cover.
    """
    cx, cy = junction.position
    points: List[Point2D] = []
    for member in junction.members:
        wall = walls[member.wall_index]
        direction = wall_direction(wall)
        if direction is None:
            continue
        if member.end == "a":
            base = wall.a
        elif member.end == "b":
            base = wall.b
        else:
            base = (
                wall.a[0] + (wall.b[0] - wall.a[0]) * member.t,
                wall.a[1] + (wall.b[1] - wall.a[1]) * member.t,
            )
        nx = -direction[1] * wall.half_thickness
        ny = direction[0] * wall.half_thickness
        for p in ((base[0] + nx, base[1] + ny), (base[0] - nx, base[1] - ny)):
            if all(distance(p, q) > 0.01 for q in points):
                points.append(p)

    if len(points) < 3:
        return None
    points.sort(key=lambda p: math.atan2(p[1] - cy, p[0] - cx))
    if polygon_area(points) < MIN_FILLER_AREA:
        return None
    return points


def junction_fillers(walls: Sequence[Wall], junction_index: JunctionIndex) -> List[Ring]:
    """Fillers for arc joints and for every junction with a diagonal wall."""
    fillers = []
    for junction in junction_index.junctions():
        if junction.arc_group is None and not junction.involves_diagonal(walls):
            continue
        filler = junction_filler(junction, walls)
        if filler is not None:
            fillers.append(filler)
    return fillers


class WallHealer:
    """Heals wall junctions with the configured strategy."""

    def __init__(
        self,
        strategy: str = STRATEGY_UNION,
        tolerance: float = JUNCTION_TOLERANCE,
        engine: Optional[PolygonSetEngine] = None,
    ):
        if strategy not in WALL_STRATEGIES:
            raise ValueError(f"Unknown wall strategy: {strategy}")
        self.strategy = strategy
        self.tolerance = tolerance
        self.engine = engine or PolygonSetEngine()

    def heal(self, walls: Sequence[Wall]) -> HealedWalls:
        """Heal a flat list of straight walls (curves already tessellated)."""
        usable = [w for w in walls if wall_direction(w) is not None]
        if len(usable) < len(walls):
            logger.debug(f"Skipped {len(walls) - len(usable)} zero-length walls")

        junction_index = JunctionIndex(usable, self.tolerance)
        fillers = junction_fillers(usable, junction_index)

        if self.strategy == STRATEGY_EXTEND:
            boxed = extend_walls(usable, self.tolerance, junction_index)
            return HealedWalls(
                boxed_walls=boxed,
                fillers=fillers,
                footprints=[wall_footprint(w) for w in boxed] + fillers,
            )

        boxed_idx = [i for i, w in enumerate(usable) if w.openings]
        plain_idx = [i for i, w in enumerate(usable) if not w.openings]
        boxed_ext = endpoint_extensions(usable, junction_index, boxed_idx)
        plain_ext = endpoint_extensions(usable, junction_index, plain_idx, divide_by_sine=False)

        boxed = [extend_wall(usable[i], *boxed_ext[i]) for i in boxed_idx]
        plain = [extend_wall(usable[i], *plain_ext[i]) for i in plain_idx]
        rectangles = [r for r in (wall_footprint(w) for w in plain) if r]

        union_polygons = self.engine.union(as_polygon_set(rectangles + fillers))
        logger.debug(
            f"Wall union: {len(rectangles)} rectangles + {len(fillers)} fillers "
            f"-> {len(union_polygons)} polygons, {len(boxed)} boxed walls"
        )
        return HealedWalls(
            union_polygons=union_polygons,
            boxed_walls=boxed,
            footprints=rectangles + [wall_footprint(w) for w in boxed] + fillers,
        )
