"""Balustrade detection, chaining and footprint polygons.

Railings are either listed explicitly or inferred from elongated items at
railing height. Segments are linked into ordered chains whose offset edges
give the railing strip footprint and, for curved chains, fill polygons that
extend the floor out to the railing. Chains are linked on the segments as
drawn; endpoint extension only applies to the boxes built from them.
"""

import dataclasses
import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from floormesh.fml_parser.elements import Balustrade, Item, Point2D, Ring
from floormesh.fml_parser.spatial_utils import bbox_area, distance

logger = logging.getLogger(__name__)

CHAIN_TOLERANCE = 15.0
MIN_SEGMENT_LENGTH = 0.1
MIN_FILL_SEGMENTS = 3

# Item shape rules for inferred railings
DETECT_MIN_ASPECT = 2.5
DETECT_MAX_THICKNESS = 20.0
DETECT_MIN_HEIGHT = 50.0
DETECT_MAX_HEIGHT = 130.0


def detect_balustrades(items: Sequence[Item]) -> List[Balustrade]:
    """Infer railings from elongated items at railing height.

    An item qualifies when its long side is more than 2.5 times its short
    side, the short side is under 20cm and its height lies strictly between
    50cm and 130cm. The segment runs along the item's rotation through its
    center.
    """
    balustrades = []
    for item in items:
        long_side = max(item.width, item.height)
        short_side = min(item.width, item.height)
        is_elongated = (
            long_side / max(1.0, short_side) > DETECT_MIN_ASPECT
            and short_side < DETECT_MAX_THICKNESS
        )
        is_railing_height = DETECT_MIN_HEIGHT < item.z_height < DETECT_MAX_HEIGHT
        if not (is_elongated and is_railing_height):
            continue
        angle = math.radians(item.rotation)
        half = long_side / 2
        dx = math.cos(angle) * half
        dy = math.sin(angle) * half
        balustrades.append(
            Balustrade(
                id=f"item:{item.id}",
                a=(item.x - dx, item.y - dy),
                b=(item.x + dx, item.y + dy),
                thickness=short_side,
                height=item.z_height,
                detected=True,
            )
        )
    if balustrades:
        logger.debug(f"Detected {len(balustrades)} balustrades from {len(items)} items")
    return balustrades


def extend_balustrades(
    balustrades: Sequence[Balustrade], tolerance: float = CHAIN_TOLERANCE
) -> List[Balustrade]:
    """Push connected endpoints outward by the neighbor's half thickness.

    Only endpoints within ``tolerance`` of another segment's endpoint move;
    free ends are left where they are. Returns new objects in input order.
    Moved endpoints no longer coincide, so chains must be built from the
    original segments.
    """
    result = []
    for i, bal in enumerate(balustrades):
        length = bal.length
        if length < MIN_SEGMENT_LENGTH:
            result.append(dataclasses.replace(bal))
            continue
        ux = (bal.b[0] - bal.a[0]) / length
        uy = (bal.b[1] - bal.a[1]) / length
        extend = []
        for point in (bal.a, bal.b):
            amount = 0.0
            for j, other in enumerate(balustrades):
                if j == i:
                    continue
                if distance(point, other.a) < tolerance or distance(point, other.b) < tolerance:
                    amount = max(amount, other.thickness / 2)
            extend.append(amount)
        result.append(
            dataclasses.replace(
                bal,
                a=(bal.a[0] - ux * extend[0], bal.a[1] - uy * extend[0]),
                b=(bal.b[0] + ux * extend[1], bal.b[1] + uy * extend[1]),
            )
        )
    return result


@dataclass
class ChainLink:
    """A balustrade in a chain; ``flipped`` reverses its a -> b direction."""

    balustrade: Balustrade
    flipped: bool = False

    @property
    def start(self) -> Point2D:
        return self.balustrade.b if self.flipped else self.balustrade.a

    @property
    def end(self) -> Point2D:
        return self.balustrade.a if self.flipped else self.balustrade.b


BalustradeChain = List[ChainLink]


def build_balustrade_chains(
    balustrades: Sequence[Balustrade], tolerance: float = CHAIN_TOLERANCE
) -> List[BalustradeChain]:
    """Group segments into ordered chains of coinciding endpoints.

    Each unused segment seeds a chain which is grown forward from its tail
    and backward from its head by repeatedly taking the nearest unused
    segment with an endpoint within ``tolerance`` of the chain tip.
    """
    if not balustrades:
        return []
    used = [False] * len(balustrades)

    def find_neighbor(tip: Point2D) -> Optional[Tuple[int, str]]:
        best = None
        best_dist = tolerance
        for i, bal in enumerate(balustrades):
            if used[i]:
                continue
            for end, point in (("a", bal.a), ("b", bal.b)):
                dist = distance(point, tip)
                if dist < best_dist:
                    best = (i, end)
                    best_dist = dist
        return best

    chains: List[BalustradeChain] = []
    for start, seed in enumerate(balustrades):
        if used[start]:
            continue
        used[start] = True
        chain: BalustradeChain = [ChainLink(seed)]

        tip = seed.b
        while True:
            found = find_neighbor(tip)
            if found is None:
                break
            idx, end = found
            used[idx] = True
            link = ChainLink(balustrades[idx], flipped=end == "b")
            chain.append(link)
            tip = link.end

        tip = seed.a
        while True:
            found = find_neighbor(tip)
            if found is None:
                break
            idx, end = found
            used[idx] = True
            link = ChainLink(balustrades[idx], flipped=end == "a")
            chain.insert(0, link)
            tip = link.start

        chains.append(chain)

    logger.debug(f"Built {len(chains)} chains from {len(balustrades)} balustrades")
    return chains


def chain_edges(chain: BalustradeChain) -> Tuple[Ring, Ring]:
    """Left and right offset polylines of a chain.

    Every joint is offset by half of the local segment's thickness, so a
    chain of N usable segments yields two polylines of N + 1 points.
    """
    left: Ring = []
    right: Ring = []
    for link in chain:
        a = link.start
        b = link.end
        dx = b[0] - a[0]
        dy = b[1] - a[1]
        length = math.hypot(dx, dy)
        if length < MIN_SEGMENT_LENGTH:
            continue
        half = link.balustrade.thickness / 2
        nx = -dy / length * half
        ny = dx / length * half
        if not left:
            left.append((a[0] + nx, a[1] + ny))
            right.append((a[0] - nx, a[1] - ny))
        left.append((b[0] + nx, b[1] + ny))
        right.append((b[0] - nx, b[1] - ny))
    return left, right


def balustrade_strips(
    balustrades: Sequence[Balustrade], tolerance: float = CHAIN_TOLERANCE
) -> List[Ring]:
    """Railing footprints: left edge forward, right edge back, per chain."""
    strips = []
    for chain in build_balustrade_chains(balustrades, tolerance):
        left, right = chain_edges(chain)
        poly = left + right[::-1]
        if len(poly) >= 3:
            strips.append(poly)
    return strips


def balustrade_fill_polygons(
    balustrades: Sequence[Balustrade], tolerance: float = CHAIN_TOLERANCE
) -> List[Ring]:
    """Floor extensions enclosed by curved chains (three or more segments).

    The edge with the larger bounding box is the outer one. Both the outer
    and the inner edge, each closed by its chord, are returned.
    """
    fills = []
    for chain in build_balustrade_chains(balustrades, tolerance):
        if len(chain) < MIN_FILL_SEGMENTS:
            continue
        left, right = chain_edges(chain)
        if bbox_area(left) >= bbox_area(right):
            outer, inner = left, right
        else:
            outer, inner = right, left
        for edge in (outer, inner):
            if len(edge) >= 3:
                fills.append(list(edge))
    return fills
