"""Floor plan element data classes for FML documents.

All lengths are centimeters in plan space, rotations are degrees.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

Point2D = Tuple[float, float]
Point3D = Tuple[float, float, float]
Ring = List[Point2D]

# Defaults applied when the source document omits a field
DEFAULT_WALL_THICKNESS = 20.0
DEFAULT_WALL_HEIGHT = 265.0
DEFAULT_BALUSTRADE_THICKNESS = 10.0
DEFAULT_BALUSTRADE_HEIGHT = 100.0
DEFAULT_OPENING_T = 0.5
DEFAULT_OPENING_WIDTH = 90.0
DOOR_HEIGHT = 210.0
DOOR_ELEVATION = 0.0
WINDOW_HEIGHT = 120.0
WINDOW_ELEVATION = 90.0

# Surface role used by the editor to mark floor openings
VOID_SURFACE_ROLE = 14


def _new_id() -> str:
    return str(uuid.uuid4())[:8]


def _point(data: Optional[Dict[str, Any]]) -> Optional[Point2D]:
    """Read an ``{x, y}`` mapping, returning None when either axis is missing."""
    if not data:
        return None
    x = data.get("x")
    y = data.get("y")
    if x is None or y is None:
        return None
    return (float(x), float(y))


class OpeningType(Enum):
    """Wall opening kind."""
    DOOR = "door"
    WINDOW = "window"


@dataclass
class Opening:
    """A door or window placed along a wall.

    ``t`` is the opening center as a fraction of the wall length. Height and
    elevation default per opening type when left as None.
    """

    t: float = DEFAULT_OPENING_T
    width: float = DEFAULT_OPENING_WIDTH
    height: Optional[float] = None
    elevation: Optional[float] = None
    type: OpeningType = OpeningType.DOOR

    def __post_init__(self) -> None:
        is_door = self.type == OpeningType.DOOR
        if self.height is None:
            self.height = DOOR_HEIGHT if is_door else WINDOW_HEIGHT
        if self.elevation is None:
            self.elevation = DOOR_ELEVATION if is_door else WINDOW_ELEVATION

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Opening":
        raw_type = str(data.get("type") or "door").lower()
        opening_type = OpeningType.WINDOW if raw_type == "window" else OpeningType.DOOR
        t = data.get("t")
        return cls(
            t=DEFAULT_OPENING_T if t is None else float(t),
            width=float(data.get("width") or DEFAULT_OPENING_WIDTH),
            height=None if data.get("height") is None else float(data["height"]),
            elevation=None if data.get("elevation") is None else float(data["elevation"]),
            type=opening_type,
        )

    def to_dict(self) -> dict:
        return {
            "t": self.t,
            "width": self.width,
            "height": self.height,
            "elevation": self.elevation,
            "type": self.type.value,
        }


@dataclass
class Wall:
    """A wall segment along its centerline ``a -> b``.

    A control point ``c`` makes the wall a quadratic Bezier curve. Arc
    sub-segments produced by tessellation keep the index of their source
    curve in ``arc_group``.
    """

    id: str = field(default_factory=_new_id)
    a: Point2D = (0.0, 0.0)
    b: Point2D = (0.0, 0.0)
    c: Optional[Point2D] = None
    thickness: float = DEFAULT_WALL_THICKNESS
    openings: List[Opening] = field(default_factory=list)
    height_a: float = DEFAULT_WALL_HEIGHT
    height_b: float = DEFAULT_WALL_HEIGHT
    is_arc_segment: bool = False
    arc_group: Optional[int] = None

    def __post_init__(self) -> None:
        if self.thickness <= 0:
            self.thickness = DEFAULT_WALL_THICKNESS

    @property
    def is_curved(self) -> bool:
        return self.c is not None

    @property
    def length(self) -> float:
        return ((self.b[0] - self.a[0]) ** 2 + (self.b[1] - self.a[1]) ** 2) ** 0.5

    @property
    def half_thickness(self) -> float:
        return self.thickness / 2

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Wall":
        # Each endpoint height falls back to the other one, then to the default
        az = (data.get("az") or {}).get("h")
        bz = (data.get("bz") or {}).get("h")
        height_a = az if az is not None else bz
        height_b = bz if bz is not None else az
        return cls(
            id=str(data.get("id") or _new_id()),
            a=_point(data.get("a")) or (0.0, 0.0),
            b=_point(data.get("b")) or (0.0, 0.0),
            c=_point(data.get("c")),
            thickness=float(data.get("thickness") or DEFAULT_WALL_THICKNESS),
            openings=[Opening.from_dict(o) for o in data.get("openings") or []],
            height_a=float(height_a if height_a is not None else DEFAULT_WALL_HEIGHT),
            height_b=float(height_b if height_b is not None else DEFAULT_WALL_HEIGHT),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "a": self.a,
            "b": self.b,
            "c": self.c,
            "thickness": self.thickness,
            "openings": [o.to_dict() for o in self.openings],
            "height_a": self.height_a,
            "height_b": self.height_b,
            "is_arc_segment": self.is_arc_segment,
            "length": self.length,
        }


@dataclass
class Balustrade:
    """A railing segment, explicit in the document or detected from an item."""

    id: str = field(default_factory=_new_id)
    a: Point2D = (0.0, 0.0)
    b: Point2D = (0.0, 0.0)
    c: Optional[Point2D] = None
    thickness: float = DEFAULT_BALUSTRADE_THICKNESS
    height: float = DEFAULT_BALUSTRADE_HEIGHT
    detected: bool = False

    @property
    def is_curved(self) -> bool:
        return self.c is not None

    @property
    def length(self) -> float:
        return ((self.b[0] - self.a[0]) ** 2 + (self.b[1] - self.a[1]) ** 2) ** 0.5

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Balustrade":
        return cls(
            id=str(data.get("id") or _new_id()),
            a=_point(data.get("a")) or (0.0, 0.0),
            b=_point(data.get("b")) or (0.0, 0.0),
            c=_point(data.get("c")),
            thickness=float(data.get("thickness") or DEFAULT_BALUSTRADE_THICKNESS),
            height=float(data.get("height") or DEFAULT_BALUSTRADE_HEIGHT),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "a": self.a,
            "b": self.b,
            "c": self.c,
            "thickness": self.thickness,
            "height": self.height,
            "detected": self.detected,
        }


@dataclass
class PolygonVertex:
    """Polygon vertex; ``control`` curves the edge arriving at this vertex."""

    x: float = 0.0
    y: float = 0.0
    control: Optional[Point2D] = None

    @property
    def point(self) -> Point2D:
        return (self.x, self.y)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PolygonVertex":
        control = None
        if data.get("cx") is not None and data.get("cy") is not None:
            control = (float(data["cx"]), float(data["cy"]))
        return cls(x=float(data.get("x", 0.0)), y=float(data.get("y", 0.0)), control=control)


def _poly_from_list(raw: Optional[List[Dict[str, Any]]]) -> List[PolygonVertex]:
    return [PolygonVertex.from_dict(p) for p in raw or []]


@dataclass
class Area:
    """A named floor region."""

    id: str = field(default_factory=_new_id)
    name: str = ""
    poly: List[PolygonVertex] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Area":
        return cls(
            id=str(data.get("id") or _new_id()),
            name=str(data.get("name") or ""),
            poly=_poly_from_list(data.get("poly")),
        )


@dataclass
class Surface:
    """A floor surface; role 14 or the cutout flag marks a void."""

    id: str = field(default_factory=_new_id)
    name: str = ""
    custom_name: str = ""
    role: Optional[int] = None
    is_cutout: bool = False
    poly: List[PolygonVertex] = field(default_factory=list)

    @property
    def is_void(self) -> bool:
        return self.is_cutout or self.role == VOID_SURFACE_ROLE

    @property
    def is_sub_zone(self) -> bool:
        """Surfaces renamed away from their base name are sub-zones of another."""
        name = self.name.strip()
        custom = self.custom_name.strip()
        return bool(custom) and custom.lower() != name.lower()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Surface":
        role = data.get("role")
        return cls(
            id=str(data.get("id") or _new_id()),
            name=str(data.get("name") or ""),
            custom_name=str(data.get("customName") or ""),
            role=None if role is None else int(role),
            is_cutout=bool(data.get("isCutout", False)),
            poly=_poly_from_list(data.get("poly")),
        )


@dataclass
class Item:
    """A furniture-like item placed by its center."""

    id: str = field(default_factory=_new_id)
    refid: Optional[str] = None
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    z_height: float = 0.0
    rotation: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Item":
        refid = data.get("refid")
        return cls(
            id=str(data.get("id") or _new_id()),
            refid=str(refid) if refid else None,
            x=float(data.get("x") or 0.0),
            y=float(data.get("y") or 0.0),
            width=float(data.get("width") or 0.0),
            height=float(data.get("height") or 0.0),
            z_height=float(data.get("z_height") or 0.0),
            rotation=float(data.get("rotation") or 0.0),
        )


@dataclass
class Design:
    """One design variant of a floor.

    ``balustrades`` is None when the document did not list any, in which case
    the parser infers them from items.
    """

    walls: List[Wall] = field(default_factory=list)
    areas: List[Area] = field(default_factory=list)
    surfaces: List[Surface] = field(default_factory=list)
    balustrades: Optional[List[Balustrade]] = None
    items: List[Item] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Design":
        raw_balustrades = data.get("balustrades")
        return cls(
            walls=[Wall.from_dict(w) for w in data.get("walls") or []],
            areas=[Area.from_dict(a) for a in data.get("areas") or []],
            surfaces=[Surface.from_dict(s) for s in data.get("surfaces") or []],
            balustrades=(
                None if raw_balustrades is None
                else [Balustrade.from_dict(b) for b in raw_balustrades]
            ),
            items=[Item.from_dict(i) for i in data.get("items") or []],
        )


@dataclass
class BoundingBox:
    """Axis-aligned plan bounding box."""

    min_x: float = 0.0
    min_y: float = 0.0
    max_x: float = 1.0
    max_y: float = 1.0

    @classmethod
    def from_points(cls, points: List[Point2D]) -> "BoundingBox":
        if not points:
            return cls()
        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        return cls(min(xs), min(ys), max(xs), max(ys))

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> Point2D:
        return ((self.min_x + self.max_x) / 2, (self.min_y + self.max_y) / 2)

    def expanded(self, margin: float) -> "BoundingBox":
        return BoundingBox(
            self.min_x - margin, self.min_y - margin,
            self.max_x + margin, self.max_y + margin,
        )

    def contains(self, point: Point2D) -> bool:
        return self.min_x <= point[0] <= self.max_x and self.min_y <= point[1] <= self.max_y

    def to_dict(self) -> dict:
        return {
            "min": [self.min_x, self.min_y],
            "max": [self.max_x, self.max_y],
        }


@dataclass
class Floor:
    """One building level with its design and detected floor openings."""

    name: str = ""
    design: Design = field(default_factory=Design)
    bbox: BoundingBox = field(default_factory=BoundingBox)
    voids: List[Ring] = field(default_factory=list)

    @property
    def world_width(self) -> float:
        return max(1.0, self.bbox.width)

    @property
    def world_height(self) -> float:
        return max(1.0, self.bbox.height)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "bbox": self.bbox.to_dict(),
            "world_width": self.world_width,
            "world_height": self.world_height,
            "wall_count": len(self.design.walls),
            "void_count": len(self.voids),
        }
