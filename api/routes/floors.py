"""Floor mesh generation routes."""

import dataclasses
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel, field_validator

from floormesh.fml_parser.parser import FMLParser, MalformedInputError
from floormesh.geometry.wall_healing import WALL_STRATEGIES
from floormesh.model_gen import GeneratorConfig, ModelGenerator, SceneExporter
from floormesh.model_gen.generator import SLAB_MODES
from floormesh.model_gen.types import FloorMesh

logger = logging.getLogger(__name__)

router = APIRouter()


class FloorMeshRequest(BaseModel):
    """FML document plus optional generation overrides."""

    document: Dict[str, Any]
    slab_mode: Optional[str] = None
    wall_strategy: Optional[str] = None

    @field_validator('slab_mode')
    @classmethod
    def slab_mode_must_be_known(cls, v: Optional[str]) -> Optional[str]:
        """Validate that the slab mode is supported."""
        if v is not None and v not in SLAB_MODES:
            raise ValueError(f"slab_mode must be one of {', '.join(SLAB_MODES)}")
        return v

    @field_validator('wall_strategy')
    @classmethod
    def wall_strategy_must_be_known(cls, v: Optional[str]) -> Optional[str]:
        """Validate that the wall strategy is supported."""
        if v is not None and v not in WALL_STRATEGIES:
            raise ValueError(f"wall_strategy must be one of {', '.join(WALL_STRATEGIES)}")
        return v


class FloorMeshResponse(BaseModel):
    """Generated mesh of one floor."""

    name: str
    obj: str
    vertex_count: int
    face_count: int
    void_count: int
    polygon_op_failures: int


class DocumentMeshResponse(BaseModel):
    floor_count: int
    floors: List[FloorMeshResponse]


def _generate(request: FloorMeshRequest) -> List[FloorMesh]:
    try:
        base = GeneratorConfig.from_env()
    except ValueError as e:
        logger.error(f"Invalid generator configuration: {e}")
        raise HTTPException(status_code=500, detail=f"Invalid generator configuration: {e}")
    overrides = {
        k: v
        for k, v in (("slab_mode", request.slab_mode), ("wall_strategy", request.wall_strategy))
        if v is not None
    }
    config = dataclasses.replace(base, **overrides)
    try:
        document = FMLParser().parse_data(request.document)
    except MalformedInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ModelGenerator(config).generate(document)


# Mesh generation is CPU bound; plain def routes run in the threadpool.
@router.post("/mesh", response_model=DocumentMeshResponse)
def generate_meshes(request: FloorMeshRequest):
    """Generate one OBJ mesh per floor of an FML document."""
    meshes = _generate(request)
    exporter = SceneExporter()
    floors = [
        FloorMeshResponse(
            name=mesh.name,
            obj=exporter.to_obj(mesh),
            vertex_count=mesh.vertex_count,
            face_count=mesh.face_count,
            void_count=mesh.metadata.get("void_count", 0),
            polygon_op_failures=mesh.metadata.get("polygon_op_failures", 0),
        )
        for mesh in meshes
    ]
    logger.info(f"Generated meshes for {len(floors)} floors")
    return DocumentMeshResponse(floor_count=len(floors), floors=floors)


@router.post("/archive")
def generate_archive(request: FloorMeshRequest):
    """Generate all floors and return them as a ZIP of OBJ files."""
    meshes = _generate(request)
    content = SceneExporter().archive_bytes(meshes)
    return Response(
        content=content,
        media_type="application/zip",
        headers={"Content-Disposition": 'attachment; filename="floors.zip"'},
    )
