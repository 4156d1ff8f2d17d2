"""Door and window cutouts for individually boxed walls."""

from dataclasses import dataclass
from typing import List

from floormesh.fml_parser.elements import OpeningType, Point2D, Wall

from .extruder import DEFAULT_WALL_HEIGHT, add_segment_box
from .types import Mesh3D

MIN_SPAN_HEIGHT = 1.0


@dataclass
class OpeningSpan:
    """An opening resolved to a parameter range along the wall and a height range."""

    start_t: float
    end_t: float
    bottom: float
    top: float
    type: OpeningType = OpeningType.DOOR


def _lerp(a: Point2D, b: Point2D, t: float) -> Point2D:
    return (a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t)


class OpeningProcessor:
    """Splits a wall into boxes around its openings and adds frame trim."""

    def __init__(
        self,
        wall_height: float = DEFAULT_WALL_HEIGHT,
        frame_size: float = 5.0,
        frame_thickness_ratio: float = 0.8,
    ):
        self.wall_height = wall_height
        self.frame_size = frame_size
        self.frame_thickness_ratio = frame_thickness_ratio

    def resolve_spans(self, wall: Wall) -> List[OpeningSpan]:
        """Openings as clamped ``[start_t, end_t]`` spans sorted by start."""
        length = wall.length
        if length <= 0:
            return []
        spans = []
        for opening in wall.openings:
            half = opening.width / 2 / length
            spans.append(
                OpeningSpan(
                    start_t=max(0.0, opening.t - half),
                    end_t=min(1.0, opening.t + half),
                    bottom=opening.elevation,
                    top=opening.elevation + opening.height,
                    type=opening.type,
                )
            )
        spans.sort(key=lambda s: s.start_t)
        return spans

    def build_wall(self, mesh: Mesh3D, wall: Wall) -> int:
        """Emit the boxes of one wall; returns how many boxes were added.

        Solid boxes fill the runs between openings. Over each opening the
        wall continues below the sill and above the head, and a frame is
        added inside the opening.
        """
        height = self.wall_height
        half = wall.half_thickness
        a, b = wall.a, wall.b
        spans = self.resolve_spans(wall)
        if not spans:
            return int(add_segment_box(mesh, a, b, half, 0.0, height))

        boxes = 0
        current = 0.0
        for span in spans:
            if span.start_t > current:
                boxes += add_segment_box(mesh, _lerp(a, b, current), _lerp(a, b, span.start_t), half, 0.0, height)
            if span.end_t <= span.start_t:
                continue
            p1 = _lerp(a, b, span.start_t)
            p2 = _lerp(a, b, span.end_t)
            top = min(span.top, height)
            if span.bottom > MIN_SPAN_HEIGHT:
                boxes += add_segment_box(mesh, p1, p2, half, 0.0, span.bottom)
            if top < height - MIN_SPAN_HEIGHT:
                boxes += add_segment_box(mesh, p1, p2, half, top, height)
            boxes += self.add_frame(mesh, p1, p2, span.bottom, top, half * self.frame_thickness_ratio)
            current = max(current, span.end_t)
        if current < 1.0:
            boxes += add_segment_box(mesh, _lerp(a, b, current), b, half, 0.0, height)
        return boxes

    def add_frame(
        self, mesh: Mesh3D, p1: Point2D, p2: Point2D, bottom: float, top: float, half_thickness: float
    ) -> int:
        """Jambs and head, plus a sill when the opening starts above the floor."""
        dx = p2[0] - p1[0]
        dy = p2[1] - p1[1]
        length = (dx * dx + dy * dy) ** 0.5
        if length < 0.1 or top <= bottom:
            return 0
        size = min(self.frame_size, length / 2)
        ux, uy = dx / length * size, dy / length * size
        inner1 = (p1[0] + ux, p1[1] + uy)
        inner2 = (p2[0] - ux, p2[1] - uy)

        boxes = 0
        boxes += add_segment_box(mesh, p1, inner1, half_thickness, bottom, top)
        boxes += add_segment_box(mesh, inner2, p2, half_thickness, bottom, top)
        boxes += add_segment_box(mesh, inner1, inner2, half_thickness, max(bottom, top - self.frame_size), top)
        if bottom > MIN_SPAN_HEIGHT:
            boxes += add_segment_box(mesh, inner1, inner2, half_thickness, bottom, min(top, bottom + self.frame_size))
        return boxes
