"""Main floor mesh generator that orchestrates the pipeline."""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from floormesh.fml_parser.elements import Balustrade, BoundingBox, Design, Floor, Ring, Wall
from floormesh.fml_parser.parser import FloorPlanDocument
from floormesh.fml_parser.spatial_utils import expand_polygon, vertex_centroid
from floormesh.geometry.balustrades import (
    CHAIN_TOLERANCE,
    balustrade_fill_polygons,
    balustrade_strips,
    extend_balustrades,
)
from floormesh.geometry.polygon_ops import PolygonRings, PolygonSetEngine, as_polygon_set
from floormesh.geometry.stair_voids import overlaps_void
from floormesh.geometry.tessellation import flatten_balustrades, flatten_walls, tessellate_polygon
from floormesh.geometry.wall_healing import STRATEGY_UNION, WALL_STRATEGIES, HealedWalls, WallHealer

from .extruder import FloorSlabExtruder, WallExtruder, add_segment_box
from .openings import OpeningProcessor
from .types import GROUP_BALUSTRADES, GROUP_FLOOR, GROUP_WALLS, FloorMesh

logger = logging.getLogger(__name__)

SLAB_RASTER = "raster"
SLAB_SOLID = "solid"
SLAB_MODES = (SLAB_RASTER, SLAB_SOLID)


@dataclass
class FloorGeometry:
    """Plan-space geometry of one floor before extrusion."""

    healed: HealedWalls
    balustrades: List[Balustrade] = field(default_factory=list)
    balustrade_polygons: List[Ring] = field(default_factory=list)
    floor_polygons: List[PolygonRings] = field(default_factory=list)


@dataclass
class GeneratorConfig:
    """Configuration options for the mesh generator. Lengths are centimeters."""

    # Wall settings
    wall_height: float = 280.0
    wall_strategy: str = STRATEGY_UNION

    # Floor settings
    slab_mode: str = SLAB_RASTER
    floor_thickness: float = 30.0
    raster_cell_size: float = 3.0
    floor_expand: float = 1.0
    surface_envelope_margin: float = 50.0

    # Opening trim
    frame_size: float = 5.0
    frame_thickness_ratio: float = 0.8

    # Output
    scale: float = 0.01  # cm -> m
    precision: int = 4

    def __post_init__(self) -> None:
        if self.slab_mode not in SLAB_MODES:
            raise ValueError(f"Unknown slab mode: {self.slab_mode}")
        if self.wall_strategy not in WALL_STRATEGIES:
            raise ValueError(f"Unknown wall strategy: {self.wall_strategy}")

    @classmethod
    def from_env(cls) -> "GeneratorConfig":
        """Load configuration from FLOORMESH_* environment variables."""
        return cls(
            wall_height=float(os.getenv("FLOORMESH_WALL_HEIGHT", "280")),
            wall_strategy=os.getenv("FLOORMESH_WALL_STRATEGY", STRATEGY_UNION),
            slab_mode=os.getenv("FLOORMESH_SLAB_MODE", SLAB_RASTER),
            floor_thickness=float(os.getenv("FLOORMESH_FLOOR_THICKNESS", "30")),
            raster_cell_size=float(os.getenv("FLOORMESH_RASTER_CELL_SIZE", "3")),
            floor_expand=float(os.getenv("FLOORMESH_FLOOR_EXPAND", "1")),
            surface_envelope_margin=float(os.getenv("FLOORMESH_SURFACE_ENVELOPE_MARGIN", "50")),
            frame_size=float(os.getenv("FLOORMESH_FRAME_SIZE", "5")),
            frame_thickness_ratio=float(os.getenv("FLOORMESH_FRAME_THICKNESS_RATIO", "0.8")),
            scale=float(os.getenv("FLOORMESH_SCALE", "0.01")),
            precision=int(os.getenv("FLOORMESH_PRECISION", "4")),
        )


class ModelGenerator:
    """
    Generates per-floor meshes from a loaded FML document.

    Pipeline per floor:
    1. Tessellate curved walls and heal wall junctions
    2. Extrude merged wall footprints; box walls with openings around them
    3. Collect floor sources (areas, surfaces, wall and balustrade
       footprints), merge them and subtract the stair voids
    4. Build the floor slab (raster top surface or solid slab)
    5. Box the balustrades
    6. Re-center on the floor bounding box and convert to meters, Y up
    """

    def __init__(self, config: Optional[GeneratorConfig] = None):
        self.config = config or GeneratorConfig()

        # Initialize sub-processors
        self.wall_extruder = WallExtruder(wall_height=self.config.wall_height)
        self.slab_extruder = FloorSlabExtruder(
            thickness=self.config.floor_thickness,
            cell_size=self.config.raster_cell_size,
        )
        self.opening_processor = OpeningProcessor(
            wall_height=self.config.wall_height,
            frame_size=self.config.frame_size,
            frame_thickness_ratio=self.config.frame_thickness_ratio,
        )

    def generate(self, document: FloorPlanDocument) -> List[FloorMesh]:
        """
        Generate one mesh per floor.

        Args:
            document: Loaded document with floors ordered bottom to top

        Returns:
            FloorMesh list in floor order
        """
        return [self.generate_floor(floor) for floor in document.floors]

    def build_geometry(self, floor: Floor, engine: Optional[PolygonSetEngine] = None) -> FloorGeometry:
        """Plan-space geometry of a floor: healed walls, balustrades, floor outline."""
        engine = engine or PolygonSetEngine()
        design = floor.design

        walls = flatten_walls(design.walls)
        healed = WallHealer(self.config.wall_strategy, engine=engine).heal(walls)
        balustrades = flatten_balustrades(design.balustrades or [])
        balustrade_polygons = balustrade_strips(balustrades, CHAIN_TOLERANCE)
        balustrade_polygons.extend(balustrade_fill_polygons(balustrades, CHAIN_TOLERANCE))

        sources = self.floor_sources(design, walls, floor.voids)
        sources.extend(healed.footprints)
        sources.extend(balustrade_polygons)
        sources = [expand_polygon(ring, self.config.floor_expand) for ring in sources if len(ring) >= 3]

        floor_polygons = engine.union(as_polygon_set(sources))
        floor_polygons = engine.difference(floor_polygons, as_polygon_set(floor.voids))
        return FloorGeometry(
            healed=healed,
            balustrades=extend_balustrades(balustrades, CHAIN_TOLERANCE),
            balustrade_polygons=balustrade_polygons,
            floor_polygons=floor_polygons,
        )

    def generate_floor(self, floor: Floor) -> FloorMesh:
        """Build the mesh of a single floor. Input data is not modified."""
        engine = PolygonSetEngine()
        geometry = self.build_geometry(floor, engine)
        plan = FloorMesh(name=floor.name)

        wall_mesh = plan.group(GROUP_WALLS)
        self.wall_extruder.extrude_union(wall_mesh, geometry.healed.union_polygons)
        self.wall_extruder.extrude_fillers(wall_mesh, geometry.healed.fillers)
        for wall in geometry.healed.boxed_walls:
            self.opening_processor.build_wall(wall_mesh, wall)

        floor_mesh = plan.group(GROUP_FLOOR)
        if self.config.slab_mode == SLAB_SOLID:
            self.slab_extruder.extrude_solid(floor_mesh, geometry.floor_polygons)
        else:
            self.slab_extruder.rasterize(floor_mesh, geometry.floor_polygons, floor.voids)

        balustrade_mesh = plan.group(GROUP_BALUSTRADES)
        for bal in geometry.balustrades:
            add_segment_box(balustrade_mesh, bal.a, bal.b, bal.thickness / 2, 0.0, bal.height)

        plan.metadata = {
            "void_count": len(floor.voids),
            "floor_polygon_count": len(geometry.floor_polygons),
            "polygon_op_failures": engine.failures,
            "slab_mode": self.config.slab_mode,
            "wall_strategy": self.config.wall_strategy,
        }
        result = plan.to_output_space(floor.bbox.center, self.config.scale)
        logger.info(
            f"Floor '{floor.name}': {result.vertex_count} vertices, {result.face_count} faces, "
            f"{len(floor.voids)} voids, {engine.failures} polygon op failures"
        )
        return result

    def floor_sources(self, design: Design, walls: List[Wall], voids: List[Ring]) -> List[Ring]:
        """Area and surface outlines that make up the floor.

        Surfaces are skipped when they are unnamed, sub-zones, lie inside a
        void, or have their centroid outside the wall envelope.
        """
        sources: List[Ring] = []
        for area in design.areas:
            ring = tessellate_polygon(area.poly)
            if len(ring) >= 3:
                sources.append(ring)

        envelope = self._wall_envelope(walls)
        for surface in design.surfaces:
            if surface.is_void or not surface.name.strip() or surface.is_sub_zone:
                continue
            ring = tessellate_polygon(surface.poly)
            if len(ring) < 3:
                continue
            if envelope is not None and not envelope.contains(vertex_centroid(ring)):
                logger.debug(f"Surface '{surface.name}' lies outside the wall envelope, skipped")
                continue
            if overlaps_void(ring, voids):
                continue
            sources.append(ring)
        return sources

    def _wall_envelope(self, walls: List[Wall]) -> Optional[BoundingBox]:
        if not walls:
            return None
        points = [p for w in walls for p in (w.a, w.b)]
        return BoundingBox.from_points(points).expanded(self.config.surface_envelope_margin)

