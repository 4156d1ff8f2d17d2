"""Floor mesh export: OBJ text, ZIP bundles and glTF."""

import io
import logging
import re
import zipfile
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from .types import MESH_GROUPS, FloorMesh

logger = logging.getLogger(__name__)

GENERATOR_NAME = "FloorMesh"
DEFAULT_PRECISION = 4


def to_obj(floor_mesh: FloorMesh, precision: int = DEFAULT_PRECISION) -> str:
    """Serialize a floor mesh (already in output space) as OBJ text.

    All vertices come first, then one ``g`` block per group in the order
    walls, floor, walls_balustrades. Face indexes are 1-based and global.
    """
    ordered = [g for g in MESH_GROUPS if g in floor_mesh.meshes]
    ordered += [g for g in floor_mesh.meshes if g not in MESH_GROUPS]

    vertex_lines: List[str] = []
    face_lines: List[str] = []
    offset = 1
    for name in ordered:
        mesh = floor_mesh.meshes[name]
        for x, y, z in mesh.vertices:
            vertex_lines.append(f"v {x:.{precision}f} {y:.{precision}f} {z:.{precision}f}")
        face_lines.append(f"g {name}")
        for face in mesh.faces:
            face_lines.append("f " + " ".join(str(i + offset) for i in face))
        offset += mesh.vertex_count

    header = [
        f"# {floor_mesh.name}",
        f"# Generated by {GENERATOR_NAME}",
        "# Scale: 1 unit = 1 meter",
    ]
    return "\n".join(header + [""] + vertex_lines + [""] + face_lines) + "\n"


def parse_obj_groups(text: str) -> Dict[str, np.ndarray]:
    """Read OBJ text into vertices and fan-triangulated faces per group.

    Returns a dict with ``"vertices"`` (N, 3) and one (M, 3) zero-based
    triangle array per ``g`` group. Faces before any group land in
    ``"default"``; ``v/vt/vn`` references keep only the vertex index.
    """
    vertices: List[List[float]] = []
    groups: Dict[str, List[List[int]]] = {"default": []}
    current = "default"
    for line in text.splitlines():
        parts = line.split()
        if not parts:
            continue
        if parts[0] == "v" and len(parts) >= 4:
            vertices.append([float(parts[1]), float(parts[2]), float(parts[3])])
        elif parts[0] == "g" and len(parts) >= 2:
            current = parts[1]
            groups.setdefault(current, [])
        elif parts[0] == "f" and len(parts) >= 4:
            indices = [int(p.split("/")[0]) - 1 for p in parts[1:]]
            for k in range(1, len(indices) - 1):
                groups[current].append([indices[0], indices[k], indices[k + 1]])

    result: Dict[str, np.ndarray] = {
        "vertices": np.array(vertices, dtype=float).reshape(-1, 3)
    }
    for name, tris in groups.items():
        if name == "default" and not tris:
            continue
        result[name] = np.array(tris, dtype=int).reshape(-1, 3)
    return result


def sanitize_filename(name: str, fallback: str = "floor") -> str:
    """File-system safe, lower-case name built from a floor name."""
    cleaned = re.sub(r"[^a-zA-Z0-9\-_ ]", "", name).strip()
    cleaned = re.sub(r"\s+", "_", cleaned).lower()
    return cleaned or fallback


def unique_filenames(names: Iterable[str], extension: str = ".obj") -> List[str]:
    """Sanitized names, with ``_2``, ``_3``... suffixes on duplicates."""
    seen: Dict[str, int] = {}
    result = []
    for name in names:
        base = sanitize_filename(name)
        count = seen.get(base, 0) + 1
        seen[base] = count
        result.append(f"{base}{extension}" if count == 1 else f"{base}_{count}{extension}")
    return result


class SceneExporter:
    """Writes floor meshes to disk."""

    def __init__(self, precision: int = DEFAULT_PRECISION):
        self.precision = precision

    def to_obj(self, floor_mesh: FloorMesh) -> str:
        return to_obj(floor_mesh, self.precision)

    def write_obj(self, floor_mesh: FloorMesh, path: str | Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_obj(floor_mesh), encoding="utf-8")
        logger.info(f"Wrote {path} ({floor_mesh.vertex_count} vertices)")
        return path

    def archive_bytes(self, floor_meshes: Sequence[FloorMesh]) -> bytes:
        """One OBJ per floor in an in-memory ZIP archive."""
        buffer = io.BytesIO()
        names = unique_filenames(m.name for m in floor_meshes)
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for name, floor_mesh in zip(names, floor_meshes):
                archive.writestr(name, self.to_obj(floor_mesh))
        return buffer.getvalue()

    def write_archive(self, floor_meshes: Sequence[FloorMesh], path: str | Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.archive_bytes(floor_meshes))
        logger.info(f"Wrote {len(floor_meshes)} floors to {path}")
        return path

    def write_gltf(self, floor_mesh: FloorMesh, path: str | Path, binary: bool = True) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        floor_mesh.export_gltf(str(path), binary=binary)
        return path


def export_scene(
    floor_meshes: Sequence[FloorMesh],
    output_dir: str | Path,
    formats: Optional[Sequence[str]] = None,
) -> Dict[str, List[Path]]:
    """
    Export floors in several formats.

    Args:
        floor_meshes: Meshes to export
        output_dir: Target directory
        formats: Any of "obj", "zip", "glb" (default: obj and zip)

    Returns:
        Written paths per format
    """
    formats = list(formats or ["obj", "zip"])
    output_dir = Path(output_dir)
    exporter = SceneExporter()
    written: Dict[str, List[Path]] = {}
    names = [n.rsplit(".", 1)[0] for n in unique_filenames(m.name for m in floor_meshes)]

    if "obj" in formats:
        written["obj"] = [
            exporter.write_obj(m, output_dir / f"{name}.obj") for name, m in zip(names, floor_meshes)
        ]
    if "zip" in formats:
        written["zip"] = [exporter.write_archive(floor_meshes, output_dir / "floors.zip")]
    if "glb" in formats:
        written["glb"] = [
            exporter.write_gltf(m, output_dir / f"{name}.glb") for name, m in zip(names, floor_meshes)
        ]
    return written
