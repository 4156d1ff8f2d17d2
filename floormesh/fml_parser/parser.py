"""FML Floor Plan Loader

Builds floors from an FML JSON document: first design of every floor,
inferred balustrades, bounding boxes and stair voids.
"""

import json
import logging
import statistics
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from floormesh.geometry.balustrades import detect_balustrades
from floormesh.geometry.stair_voids import detect_stair_voids
from floormesh.geometry.tessellation import flatten_balustrades, quadratic_bezier, tessellate_polygon

from .elements import BoundingBox, Design, Floor, Point2D

logger = logging.getLogger(__name__)

ARC_SAMPLES = (0.25, 0.5, 0.75)

# Floors excluded from the shared display extent
SITE_PLAN_MARKERS = ("situatie", "site")
OUTLIER_FACTOR = 2.2


class MalformedInputError(ValueError):
    """The document has no usable floor."""


def compute_bounding_box(design: Design) -> BoundingBox:
    """Plan bounds of a design.

    Curved walls and balustrades contribute three samples along their curve,
    surfaces their tessellated outline. An empty design gets ``(0,0)-(1,1)``.
    """
    points: List[Point2D] = []
    for wall in design.walls:
        points.extend((wall.a, wall.b))
        if wall.c is not None:
            points.extend(quadratic_bezier(wall.a, wall.c, wall.b, t) for t in ARC_SAMPLES)
    for area in design.areas:
        points.extend(v.point for v in area.poly)
    for surface in design.surfaces:
        points.extend(tessellate_polygon(surface.poly))
    for bal in design.balustrades or []:
        points.extend((bal.a, bal.b))
        if bal.c is not None:
            points.extend(quadratic_bezier(bal.a, bal.c, bal.b, t) for t in ARC_SAMPLES)
    return BoundingBox.from_points(points)


@dataclass
class FloorPlanMetadata:
    """Metadata about the loaded document."""

    filename: str = ""
    units: str = "cm"
    floor_count: int = 0
    max_world_size: Tuple[float, float] = (1.0, 1.0)

    def to_dict(self) -> dict:
        return {
            "filename": self.filename,
            "units": self.units,
            "floor_count": self.floor_count,
            "max_world_size": list(self.max_world_size),
        }


@dataclass
class FloorPlanDocument:
    """All floors of a document, ordered bottom to top."""

    metadata: FloorPlanMetadata = field(default_factory=FloorPlanMetadata)
    floors: List[Floor] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "metadata": self.metadata.to_dict(),
            "floors": [f.to_dict() for f in self.floors],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


def shared_world_size(floors: List[Floor]) -> Tuple[float, float]:
    """Largest floor extent, ignoring site plans and oversized outliers.

    A floor is an outlier when either dimension exceeds 2.2 times the median
    over all floors.
    """
    if not floors:
        return (1.0, 1.0)
    med_w = statistics.median(f.world_width for f in floors)
    med_h = statistics.median(f.world_height for f in floors)
    max_w, max_h = 1.0, 1.0
    for floor in floors:
        name = floor.name.lower()
        if any(marker in name for marker in SITE_PLAN_MARKERS):
            continue
        if floor.world_width > med_w * OUTLIER_FACTOR or floor.world_height > med_h * OUTLIER_FACTOR:
            continue
        max_w = max(max_w, floor.world_width)
        max_h = max(max_h, floor.world_height)
    return (max_w, max_h)


class FMLParser:
    """Loader for FML floor plan documents."""

    def __init__(self, detect_balustrades: bool = True, detect_voids: bool = True):
        """
        Initialize the parser.

        Args:
            detect_balustrades: Infer railings from items when a design lists none
            detect_voids: Detect stair voids across adjacent floors
        """
        self.detect_balustrades = detect_balustrades
        self.detect_voids = detect_voids

    def parse(self, file_path: str | Path) -> FloorPlanDocument:
        """
        Parse an FML JSON file.

        Args:
            file_path: Path to the document

        Returns:
            FloorPlanDocument with one Floor per usable source floor
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        logger.info(f"Loading FML document: {file_path}")
        try:
            with open(file_path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise MalformedInputError(f"Invalid JSON in {file_path.name}: {e}") from e
        return self.parse_data(data, filename=file_path.name)

    def parse_data(self, data: Any, filename: str = "") -> FloorPlanDocument:
        """Build a document from already decoded FML data."""
        if not isinstance(data, dict):
            raise MalformedInputError("FML document must be a JSON object")

        raw_floors = [f for f in data.get("floors") or [] if self._first_design(f) is not None]
        if not raw_floors:
            raise MalformedInputError("FML document has no floor with a design")

        floors = []
        for i, raw in enumerate(raw_floors):
            design = Design.from_dict(self._first_design(raw))
            if design.balustrades is None:
                design.balustrades = detect_balustrades(design.items) if self.detect_balustrades else []
            design.balustrades = flatten_balustrades(design.balustrades)
            floors.append(
                Floor(
                    name=str(raw.get("name") or f"Floor {i + 1}"),
                    design=design,
                    bbox=compute_bounding_box(design),
                )
            )

        if self.detect_voids:
            for floor, voids in zip(floors, detect_stair_voids([f.design for f in floors])):
                floor.voids = voids

        document = FloorPlanDocument(
            metadata=FloorPlanMetadata(
                filename=filename,
                floor_count=len(floors),
                max_world_size=shared_world_size(floors),
            ),
            floors=floors,
        )
        logger.info(
            f"Loaded {len(floors)} floors, "
            f"{sum(len(f.design.walls) for f in floors)} walls, "
            f"{sum(len(f.voids) for f in floors)} voids"
        )
        return document

    @staticmethod
    def _first_design(raw_floor: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(raw_floor, dict):
            return None
        designs = raw_floor.get("designs") or []
        if not designs or not isinstance(designs[0], dict):
            return None
        return designs[0]


def load_document(path: str | Path) -> FloorPlanDocument:
    """Convenience wrapper around ``FMLParser().parse``."""
    return FMLParser().parse(path)
