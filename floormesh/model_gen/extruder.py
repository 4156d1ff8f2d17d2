"""Wall and floor extrusion logic for floor mesh generation.

Everything here works in plan space: centimeters with z up. Faces are wound
counter-clockwise seen from outside the solid.
"""

import logging
import math
from typing import Dict, List, Sequence

import numpy as np

from floormesh.fml_parser.elements import Point2D, Ring
from floormesh.fml_parser.spatial_utils import clean_ring, offset_segment, points_in_rings, signed_area
from floormesh.geometry.polygon_ops import PolygonRings
from floormesh.geometry.triangulation import triangulate_polygon

from .types import Mesh3D

logger = logging.getLogger(__name__)

DEFAULT_WALL_HEIGHT = 280.0
DEFAULT_FLOOR_THICKNESS = 30.0
DEFAULT_CELL_SIZE = 3.0


def add_box(mesh: Mesh3D, corners: Sequence[Point2D], z_bottom: float, z_top: float) -> bool:
    """Add an 8-vertex box over a 4-corner footprint with 6 quad faces."""
    if len(corners) != 4 or z_top <= z_bottom:
        return False
    ring = list(corners)
    if signed_area(ring) < 0:
        ring.reverse()
    base = mesh.add_vertices(
        [(x, y, z_bottom) for x, y in ring] + [(x, y, z_top) for x, y in ring]
    )
    mesh.add_face(base + 3, base + 2, base + 1, base)  # bottom
    mesh.add_face(base + 4, base + 5, base + 6, base + 7)  # top
    for i in range(4):
        j = (i + 1) % 4
        mesh.add_face(base + i, base + j, base + 4 + j, base + 4 + i)
    return True


def add_segment_box(
    mesh: Mesh3D, a: Point2D, b: Point2D, half_thickness: float, z_bottom: float, z_top: float
) -> bool:
    """Box around the segment ``a -> b``; False for degenerate segments."""
    corners = offset_segment(a, b, half_thickness)
    if not corners:
        return False
    return add_box(mesh, corners, z_bottom, z_top)


def extrude_polygon(mesh: Mesh3D, rings: PolygonRings, z_bottom: float, z_top: float) -> bool:
    """Extrude a polygon with holes into a closed solid.

    Caps are ear-clipped with the holes bridged into the outer ring; every
    ring, holes included, gets one side quad per edge. Caps and sides share
    vertices.
    """
    if not rings or z_top <= z_bottom:
        return False
    merged, triangles = triangulate_polygon(rings)
    if not triangles:
        logger.debug(f"Skipping polygon with {len(rings[0])} points: no triangles")
        return False

    outer = clean_ring(rings[0])
    if signed_area(outer) < 0:
        outer.reverse()
    oriented = [outer]
    for hole in rings[1:]:
        hole = clean_ring(hole)
        if len(hole) < 3:
            continue
        if signed_area(hole) > 0:
            hole.reverse()
        oriented.append(hole)

    bottom: Dict[Point2D, int] = {}
    top: Dict[Point2D, int] = {}
    for point in [p for ring in oriented for p in ring] + list(merged):
        if point in bottom:
            continue
        bottom[point] = mesh.add_vertices([(point[0], point[1], z_bottom)])
        top[point] = mesh.add_vertices([(point[0], point[1], z_top)])

    for i, j, k in triangles:
        pi, pj, pk = merged[i], merged[j], merged[k]
        mesh.add_face(top[pi], top[pj], top[pk])
        mesh.add_face(bottom[pk], bottom[pj], bottom[pi])

    for ring in oriented:
        n = len(ring)
        for i in range(n):
            p, q = ring[i], ring[(i + 1) % n]
            mesh.add_face(bottom[p], bottom[q], top[q], top[p])
    return True


class WallExtruder:
    """Extrudes healed wall geometry into wall solids."""

    def __init__(self, wall_height: float = DEFAULT_WALL_HEIGHT):
        self.wall_height = wall_height

    def extrude_union(self, mesh: Mesh3D, polygons: Sequence[PolygonRings]) -> int:
        """Extrude merged wall footprints; returns the number of solids added."""
        return sum(1 for rings in polygons if extrude_polygon(mesh, rings, 0.0, self.wall_height))

    def extrude_fillers(self, mesh: Mesh3D, fillers: Sequence[Ring]) -> int:
        return sum(1 for ring in fillers if extrude_polygon(mesh, [ring], 0.0, self.wall_height))


class FloorSlabExtruder:
    """Floor slab from the merged floor polygons.

    ``extrude_solid`` builds a real slab below z=0 for fabrication output.
    ``rasterize`` emits only a top surface sampled on a grid, which renders
    without seams between source polygons.
    """

    def __init__(
        self,
        thickness: float = DEFAULT_FLOOR_THICKNESS,
        cell_size: float = DEFAULT_CELL_SIZE,
    ):
        self.thickness = thickness
        self.cell_size = cell_size

    def extrude_solid(self, mesh: Mesh3D, polygons: Sequence[PolygonRings]) -> int:
        return sum(1 for rings in polygons if extrude_polygon(mesh, rings, -self.thickness, 0.0))

    def coverage(
        self,
        polygons: Sequence[PolygonRings],
        voids: Sequence[Ring] = (),
    ):
        """Grid of cell centers and the mask of cells on the floor.

        A cell is on the floor when its center lies inside any polygon
        (even-odd over that polygon's rings) and inside no void.

        Returns:
            (xs, ys, mask) where xs are column edges, ys row edges and mask
            has shape (rows, cols); None when there are no polygons
        """
        points = [p for rings in polygons for p in rings[0]] if polygons else []
        if not points:
            return None
        # Grid lines sit on multiples of the cell size
        cell = self.cell_size
        min_x = math.floor(min(p[0] for p in points) / cell) * cell
        min_y = math.floor(min(p[1] for p in points) / cell) * cell
        max_x = max(p[0] for p in points)
        max_y = max(p[1] for p in points)
        cols = max(1, math.ceil((max_x - min_x) / cell))
        rows = max(1, math.ceil((max_y - min_y) / cell))

        xs = min_x + np.arange(cols + 1) * self.cell_size
        ys = min_y + np.arange(rows + 1) * self.cell_size
        cx, cy = np.meshgrid((xs[:-1] + xs[1:]) / 2, (ys[:-1] + ys[1:]) / 2)
        cx = cx.ravel()
        cy = cy.ravel()

        mask = np.zeros(cx.shape, dtype=bool)
        for rings in polygons:
            mask |= points_in_rings(cx, cy, rings)
        for void in voids:
            mask &= ~points_in_rings(cx, cy, [void])
        return xs, ys, mask.reshape(rows, cols)

    def rasterize(
        self,
        mesh: Mesh3D,
        polygons: Sequence[PolygonRings],
        voids: Sequence[Ring] = (),
    ) -> int:
        """Top-only floor at z=0; consecutive cells of a row share one quad.

        Returns the number of quads added.
        """
        grid = self.coverage(polygons, voids)
        if grid is None:
            return 0
        xs, ys, mask = grid
        quads = 0
        for row, inside in enumerate(mask):
            for start, end in _runs(inside):
                x0, x1 = xs[start], xs[end]
                y0, y1 = ys[row], ys[row + 1]
                base = mesh.add_vertices([(x0, y0, 0.0), (x1, y0, 0.0), (x1, y1, 0.0), (x0, y1, 0.0)])
                mesh.add_face(base, base + 1, base + 2, base + 3)
                quads += 1
        return quads


def _runs(row: np.ndarray) -> List[tuple]:
    """Half-open ``(start, end)`` index ranges of consecutive True values."""
    padded = np.concatenate(([0], row.astype(np.int8), [0]))
    edges = np.flatnonzero(np.diff(padded))
    return list(zip(edges[::2].tolist(), edges[1::2].tolist()))
