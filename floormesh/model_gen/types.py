"""Data types for floor mesh generation."""

import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

import numpy as np
import trimesh

from floormesh.fml_parser.elements import Point2D, Point3D

Face = Tuple[int, ...]

# Semantic groups, in output order
GROUP_WALLS = "walls"
GROUP_FLOOR = "floor"
GROUP_BALUSTRADES = "walls_balustrades"
MESH_GROUPS = (GROUP_WALLS, GROUP_FLOOR, GROUP_BALUSTRADES)


@dataclass
class Mesh3D:
    """Vertices and polygon faces of one semantic group.

    Faces are tuples of vertex indexes (triangles or quads), wound
    counter-clockwise when seen from outside the solid.
    """

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    vertices: List[Point3D] = field(default_factory=list)
    faces: List[Face] = field(default_factory=list)
    material_id: str = "default"
    element_type: str = GROUP_WALLS

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def face_count(self) -> int:
        return len(self.faces)

    @property
    def is_empty(self) -> bool:
        return not self.faces

    def add_vertices(self, points: Sequence[Point3D]) -> int:
        """Append vertices and return the index of the first one."""
        base = len(self.vertices)
        self.vertices.extend((float(x), float(y), float(z)) for x, y, z in points)
        return base

    def add_face(self, *indices: int) -> None:
        if len(indices) < 3:
            raise ValueError(f"A face needs at least 3 vertices, got {len(indices)}")
        self.faces.append(tuple(indices))

    def vertex_array(self) -> np.ndarray:
        if not self.vertices:
            return np.zeros((0, 3))
        return np.array(self.vertices, dtype=float)

    def triangles(self) -> np.ndarray:
        """Faces fan-triangulated into an (N, 3) index array."""
        tris = [
            (face[0], face[k], face[k + 1])
            for face in self.faces
            for k in range(1, len(face) - 1)
        ]
        if not tris:
            return np.zeros((0, 3), dtype=int)
        return np.array(tris, dtype=int)

    def to_trimesh(self) -> trimesh.Trimesh:
        """Convert to trimesh object."""
        if self.is_empty:
            return trimesh.Trimesh()
        mesh = trimesh.Trimesh(vertices=self.vertex_array(), faces=self.triangles(), process=False)
        mesh.metadata["material_id"] = self.material_id
        mesh.metadata["element_type"] = self.element_type
        return mesh

    def to_output_space(self, center: Point2D, scale: float) -> "Mesh3D":
        """Plan space (cm, z up) to output space (scaled, Y up).

        ``(x, y, z)`` becomes ``((x - cx) * s, z * s, (y - cy) * s)``. The
        axis swap mirrors the geometry, so face order is reversed to keep
        faces wound outward.
        """
        cx, cy = center
        return Mesh3D(
            id=self.id,
            vertices=[((x - cx) * scale, z * scale, (y - cy) * scale) for x, y, z in self.vertices],
            faces=[tuple(reversed(face)) for face in self.faces],
            material_id=self.material_id,
            element_type=self.element_type,
        )


@dataclass
class FloorMesh:
    """Mesh of one floor, one Mesh3D per semantic group."""

    name: str = ""
    meshes: Dict[str, Mesh3D] = field(
        default_factory=lambda: {g: Mesh3D(element_type=g, material_id=g) for g in MESH_GROUPS}
    )
    metadata: dict = field(default_factory=dict)

    def group(self, name: str) -> Mesh3D:
        if name not in self.meshes:
            self.meshes[name] = Mesh3D(element_type=name, material_id=name)
        return self.meshes[name]

    @property
    def vertex_count(self) -> int:
        return sum(m.vertex_count for m in self.meshes.values())

    @property
    def face_count(self) -> int:
        return sum(m.face_count for m in self.meshes.values())

    @property
    def bounds(self) -> Tuple[Point3D, Point3D]:
        arrays = [m.vertex_array() for m in self.meshes.values() if m.vertices]
        if not arrays:
            return ((0.0, 0.0, 0.0), (0.0, 0.0, 0.0))
        combined = np.vstack(arrays)
        return (tuple(combined.min(axis=0)), tuple(combined.max(axis=0)))

    def to_output_space(self, center: Point2D, scale: float) -> "FloorMesh":
        return FloorMesh(
            name=self.name,
            meshes={k: m.to_output_space(center, scale) for k, m in self.meshes.items()},
            metadata=dict(self.metadata),
        )

    def to_trimesh_scene(self) -> trimesh.Scene:
        """Convert to trimesh Scene for export, one node per group."""
        scene = trimesh.Scene()
        for name, mesh in self.meshes.items():
            if mesh.is_empty:
                continue
            scene.add_geometry(mesh.to_trimesh(), node_name=name, geom_name=name)
        return scene

    def export_gltf(self, path: str, binary: bool = True) -> None:
        """Export to glTF/GLB format."""
        file_type = "glb" if binary else "gltf"
        self.to_trimesh_scene().export(path, file_type=file_type)

    def summary(self) -> dict:
        return {
            "name": self.name,
            "vertex_count": self.vertex_count,
            "face_count": self.face_count,
            "groups": {k: m.face_count for k, m in self.meshes.items()},
            **self.metadata,
        }
