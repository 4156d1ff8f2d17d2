"""Wall junction detection.

Clusters wall endpoints into junction nodes and finds endpoints that land on
the interior of another wall. Uses R-tree indexes for the spatial queries so
large plans avoid an all-pairs scan.
"""

import math
import uuid
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from rtree import index

from floormesh.fml_parser.elements import Point2D, Wall
from floormesh.fml_parser.spatial_utils import distance, project_onto_segment

JUNCTION_TOLERANCE = 3.0
INTERIOR_T_MIN = 0.02
INTERIOR_T_MAX = 0.98
DIAGONAL_RATIO = 0.15
PARALLEL_SIN = 0.1
MIN_WALL_LENGTH = 0.1


def wall_direction(wall: Wall) -> Optional[Point2D]:
    """Unit vector ``a -> b``, or None for walls shorter than the minimum length."""
    dx = wall.b[0] - wall.a[0]
    dy = wall.b[1] - wall.a[1]
    length = math.hypot(dx, dy)
    if length < MIN_WALL_LENGTH:
        return None
    return (dx / length, dy / length)


def is_diagonal(wall: Wall) -> bool:
    """A wall is diagonal when neither axis component dominates its direction."""
    direction = wall_direction(wall)
    if direction is None:
        return False
    return min(abs(direction[0]), abs(direction[1])) > DIAGONAL_RATIO


def sin_between(w1: Wall, w2: Wall) -> float:
    """Absolute sine of the angle between two walls (0 for degenerate walls)."""
    d1 = wall_direction(w1)
    d2 = wall_direction(w2)
    if d1 is None or d2 is None:
        return 0.0
    return abs(d1[0] * d2[1] - d1[1] * d2[0])


@dataclass
class JunctionMember:
    """A wall taking part in a junction.

    ``end`` is ``"a"`` or ``"b"`` when one of the wall's endpoints sits at the
    junction, and None when the junction lies on the wall's interior at
    parameter ``t``.
    """

    wall_index: int
    end: Optional[str] = None
    t: float = 0.0


@dataclass
class Junction:
    """A point where two or more walls meet."""

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    position: Point2D = (0.0, 0.0)
    arc_group: Optional[int] = None
    members: List[JunctionMember] = field(default_factory=list)

    @property
    def wall_indices(self) -> List[int]:
        return sorted({m.wall_index for m in self.members})

    def involves_diagonal(self, walls: Sequence[Wall]) -> bool:
        return any(is_diagonal(walls[i]) for i in self.wall_indices)


class JunctionIndex:
    """Spatial index over a wall list answering junction queries.

    Arc sub-segments only meet sub-segments of the same curve; regular walls
    only meet regular walls.
    """

    def __init__(self, walls: Sequence[Wall], tolerance: float = JUNCTION_TOLERANCE):
        self.walls = list(walls)
        self.tolerance = tolerance
        self._wall_index = index.Index()
        for i, wall in enumerate(self.walls):
            if wall_direction(wall) is None:
                continue
            self._wall_index.insert(i, self._bounds(wall))
        self._junctions: Optional[List[Junction]] = None

    def _bounds(self, wall: Wall):
        tol = self.tolerance
        return (
            min(wall.a[0], wall.b[0]) - tol,
            min(wall.a[1], wall.b[1]) - tol,
            max(wall.a[0], wall.b[0]) + tol,
            max(wall.a[1], wall.b[1]) + tol,
        )

    def _compatible(self, i: int, j: int) -> bool:
        wi = self.walls[i]
        wj = self.walls[j]
        if wi.is_arc_segment or wj.is_arc_segment:
            return wi.is_arc_segment and wj.is_arc_segment and wi.arc_group == wj.arc_group
        return True

    def candidates_near(self, point: Point2D) -> List[int]:
        """Indexes of walls whose tolerance-expanded bounds contain ``point``."""
        x, y = point
        return sorted(self._wall_index.intersection((x, y, x, y)))

    def on_interior(self, point: Point2D, wall: Wall) -> Optional[float]:
        """Parameter ``t`` when ``point`` lies on the wall's interior span."""
        t, dist = project_onto_segment(point, wall.a, wall.b)
        if t < INTERIOR_T_MIN or t > INTERIOR_T_MAX:
            return None
        if dist >= self.tolerance:
            return None
        return t

    def touches(self, point: Point2D, wall: Wall) -> bool:
        """True when ``point`` is near either endpoint of ``wall`` or on its interior."""
        if distance(point, wall.a) < self.tolerance or distance(point, wall.b) < self.tolerance:
            return True
        return self.on_interior(point, wall) is not None

    def neighbors_at(self, wall_idx: int, end: str) -> List[int]:
        """Walls touching the given endpoint of wall ``wall_idx``."""
        wall = self.walls[wall_idx]
        point = wall.a if end == "a" else wall.b
        return [
            j
            for j in self.candidates_near(point)
            if j != wall_idx and self._compatible(wall_idx, j) and self.touches(point, self.walls[j])
        ]

    def junctions(self) -> List[Junction]:
        """Cluster endpoints into junctions and attach interior hits.

        Only junctions joining at least two distinct walls are returned.
        """
        if self._junctions is not None:
            return self._junctions

        nodes: List[Junction] = []
        node_index = index.Index()

        for i, wall in enumerate(self.walls):
            if wall_direction(wall) is None:
                continue
            for end, point in (("a", wall.a), ("b", wall.b)):
                node = self._find_node(node_index, nodes, point, wall.arc_group)
                if node is None:
                    node = Junction(position=point, arc_group=wall.arc_group)
                    node_index.insert(len(nodes), (point[0], point[1], point[0], point[1]))
                    nodes.append(node)
                node.members.append(JunctionMember(wall_index=i, end=end, t=0.0 if end == "a" else 1.0))

        for node in nodes:
            present = {m.wall_index for m in node.members}
            anchor = node.members[0].wall_index
            for j in self.candidates_near(node.position):
                if j in present or not self._compatible(anchor, j):
                    continue
                t = self.on_interior(node.position, self.walls[j])
                if t is not None:
                    node.members.append(JunctionMember(wall_index=j, end=None, t=t))
                    present.add(j)

        self._junctions = [n for n in nodes if len(n.wall_indices) >= 2]
        return self._junctions

    def _find_node(
        self,
        node_index: index.Index,
        nodes: List[Junction],
        point: Point2D,
        arc_group: Optional[int],
    ) -> Optional[Junction]:
        tol = self.tolerance
        x, y = point
        best = None
        best_dist = float("inf")
        for k in node_index.intersection((x - tol, y - tol, x + tol, y + tol)):
            node = nodes[k]
            if node.arc_group != arc_group:
                continue
            dist = distance(point, node.position)
            if dist < tol and dist < best_dist:
                best = node
                best_dist = dist
        return best
