"""Floor mesh generation module for FloorMesh.

This module turns loaded FML floors (walls, openings, areas, surfaces,
balustrades, voids) into per-floor meshes exportable as OBJ and glTF.

Usage:
    from floormesh.model_gen import ModelGenerator

    generator = ModelGenerator()
    meshes = generator.generate(document)
    SceneExporter().write_archive(meshes, "output/floors.zip")
"""

from .exporter import SceneExporter, export_scene, parse_obj_groups, to_obj
from .extruder import FloorSlabExtruder, WallExtruder
from .generator import GeneratorConfig, ModelGenerator
from .openings import OpeningProcessor
from .types import FloorMesh, Mesh3D

__all__ = [
    # Main API
    "ModelGenerator",
    "GeneratorConfig",
    "FloorMesh",
    "Mesh3D",
    # Export utilities
    "SceneExporter",
    "export_scene",
    "to_obj",
    "parse_obj_groups",
    # Sub-processors (for advanced usage)
    "WallExtruder",
    "FloorSlabExtruder",
    "OpeningProcessor",
]
