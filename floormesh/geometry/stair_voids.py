"""Floor opening (stair void) detection.

Voids come from two sources:

1. surfaces flagged as cutouts (role 14 or ``isCutout``) on the same floor
2. stair items repeated at the same position on the floor below; the void
   goes on the upper floor, shrunk so it does not clip adjacent walls
"""

import logging
import math
from typing import List, Optional, Sequence

from floormesh.fml_parser.elements import Design, Item, Ring
from floormesh.fml_parser.spatial_utils import point_in_polygon, vertex_centroid

from .tessellation import tessellate_polygon

logger = logging.getLogger(__name__)

POSITION_TOLERANCE = 5.0
VOID_MARGIN = 10.0
MIN_VOID_SIZE = 30.0


def surface_voids(design: Design) -> List[Ring]:
    """Tessellated outlines of surfaces marked as floor openings."""
    voids = []
    for surface in design.surfaces:
        if not surface.is_void:
            continue
        ring = tessellate_polygon(surface.poly)
        if len(ring) >= 3:
            voids.append(ring)
    return voids


def item_void(item: Item, margin: float = VOID_MARGIN) -> Optional[Ring]:
    """Rotated rectangle of the item footprint shrunk by ``margin`` per side.

    Returns None when either shrunk dimension falls under the minimum size.
    """
    w = max(0.0, item.width - margin * 2)
    h = max(0.0, item.height - margin * 2)
    if w < MIN_VOID_SIZE or h < MIN_VOID_SIZE:
        return None
    rot = math.radians(item.rotation)
    cos_r = math.cos(rot)
    sin_r = math.sin(rot)
    hw, hh = w / 2, h / 2
    return [
        (item.x + cos_r * dx - sin_r * dy, item.y + sin_r * dx + cos_r * dy)
        for dx, dy in ((-hw, -hh), (hw, -hh), (hw, hh), (-hw, hh))
    ]


def matches_below(upper: Item, lower: Item, tolerance: float = POSITION_TOLERANCE) -> bool:
    """Same reference id and the same position within ``tolerance`` on both axes."""
    if not upper.refid or upper.refid != lower.refid:
        return False
    return abs(upper.x - lower.x) <= tolerance and abs(upper.y - lower.y) <= tolerance


def stacked_item_voids(items: Sequence[Item], items_below: Sequence[Item]) -> List[Ring]:
    """Voids for items that continue an item on the floor below.

    Only the first matching item below is considered for each item.
    """
    voids = []
    for item in items:
        if not item.refid:
            continue
        match = next((lower for lower in items_below if matches_below(item, lower)), None)
        if match is None:
            continue
        ring = item_void(item)
        if ring is not None:
            voids.append(ring)
    return voids


def detect_floor_voids(design: Design, items_below: Optional[Sequence[Item]] = None) -> List[Ring]:
    """All voids of one floor, given the items of the floor below (if any)."""
    voids = surface_voids(design)
    if items_below:
        voids.extend(stacked_item_voids(design.items, items_below))
    return voids


def detect_stair_voids(designs: Sequence[Design]) -> List[List[Ring]]:
    """Per-floor void lists for designs ordered bottom to top."""
    result = []
    for i, design in enumerate(designs):
        below = designs[i - 1].items if i > 0 else None
        voids = detect_floor_voids(design, below)
        if voids:
            logger.debug(f"Floor {i}: {len(voids)} voids")
        result.append(voids)
    return result


def overlaps_void(ring: Sequence, voids: Sequence[Ring]) -> bool:
    """True when the ring's vertex centroid falls inside any void."""
    if not voids or not ring:
        return False
    center = vertex_centroid(ring)
    return any(point_in_polygon(center, v) for v in voids)
