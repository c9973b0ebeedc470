from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, ClassVar, Union

Point3D = tuple[float, float, float]

ORIGIN: Point3D = (0.0, 0.0, 0.0)
UNIT_SCALE: Point3D = (1.0, 1.0, 1.0)


def _point(default: Point3D = ORIGIN) -> Any:
    return field(default=default, metadata={"kind": "point"})


def _number(default: float | None) -> Any:
    return field(default=default, metadata={"kind": "number"})


def _integer(default: int) -> Any:
    return field(default=default, metadata={"kind": "integer"})


def _text(default: str = "") -> Any:
    return field(default=default, metadata={"kind": "text"})


def _flag(default: bool = False) -> Any:
    return field(default=default, metadata={"kind": "flag"})


def _sequence(kind: str) -> Any:
    return field(default=(), metadata={"kind": kind})


@dataclass(frozen=True)
class Vertex:
    x: float
    y: float
    z: float | None = None
    bulge: float | None = None

    def to_point(self) -> Point3D:
        return (self.x, self.y, self.z if self.z is not None else 0.0)


@dataclass(frozen=True)
class Line:
    dxftype: ClassVar[str] = "LINE"
    layer: str = _text("0")
    start: Point3D = _point()
    end: Point3D = _point()

    def to_points(self) -> list[Point3D]:
        return [self.start, self.end]


@dataclass(frozen=True)
class Insert:
    dxftype: ClassVar[str] = "INSERT"
    layer: str = _text("0")
    block: str = _text()
    insertion_point: Point3D = _point()
    scale: Point3D = _point(UNIT_SCALE)
    rotation: float = _number(0.0)

    def to_points(self) -> list[Point3D]:
        return [self.insertion_point]


@dataclass(frozen=True)
class Circle:
    dxftype: ClassVar[str] = "CIRCLE"
    layer: str = _text("0")
    center: Point3D = _point()
    radius: float = _number(1.0)

    def to_points(self) -> list[Point3D]:
        cx, cy, cz = self.center
        r = self.radius
        return [(cx - r, cy - r, cz), (cx + r, cy + r, cz)]


@dataclass(frozen=True)
class Arc:
    dxftype: ClassVar[str] = "ARC"
    layer: str = _text("0")
    center: Point3D = _point()
    radius: float = _number(1.0)
    start_angle: float = _number(0.0)
    end_angle: float = _number(360.0)

    def to_points(self) -> list[Point3D]:
        cx, cy, cz = self.center
        points = []
        for angle in (self.start_angle, self.end_angle):
            rad = math.radians(angle)
            points.append((cx + self.radius * math.cos(rad), cy + self.radius * math.sin(rad), cz))
        return points


@dataclass(frozen=True)
class Ellipse:
    dxftype: ClassVar[str] = "ELLIPSE"
    layer: str = _text("0")
    center: Point3D = _point()
    major_axis: Point3D = _point((1.0, 0.0, 0.0))
    ratio: float = _number(1.0)
    start_param: float = _number(0.0)
    end_param: float = _number(math.tau)

    def to_points(self) -> list[Point3D]:
        cx, cy, cz = self.center
        mx, my, mz = self.major_axis
        return [(cx - mx, cy - my, cz - mz), (cx + mx, cy + my, cz + mz)]


@dataclass(frozen=True)
class LWPolyline:
    dxftype: ClassVar[str] = "LWPOLYLINE"
    layer: str = _text("0")
    vertices: tuple[Vertex, ...] = _sequence("vertices")
    closed: bool = _flag()

    def to_points(self) -> list[Point3D]:
        return [vertex.to_point() for vertex in self.vertices]


@dataclass(frozen=True)
class Polyline:
    dxftype: ClassVar[str] = "POLYLINE"
    layer: str = _text("0")
    vertices: tuple[Vertex, ...] = _sequence("vertices")
    closed: bool = _flag()

    def to_points(self) -> list[Point3D]:
        return [vertex.to_point() for vertex in self.vertices]


@dataclass(frozen=True)
class Text:
    dxftype: ClassVar[str] = "TEXT"
    layer: str = _text("0")
    text: str = _text()
    insert: Point3D = _point()
    height: float = _number(1.0)
    rotation: float = _number(0.0)

    def to_points(self) -> list[Point3D]:
        return [self.insert]


@dataclass(frozen=True)
class MText:
    dxftype: ClassVar[str] = "MTEXT"
    layer: str = _text("0")
    text: str = _text()
    insert: Point3D = _point()
    height: float = _number(1.0)
    width: float = _number(0.0)
    rotation: float = _number(0.0)

    def to_points(self) -> list[Point3D]:
        return [self.insert]


@dataclass(frozen=True)
class Dimension:
    dxftype: ClassVar[str] = "DIMENSION"
    layer: str = _text("0")
    block: str = _text()
    text: str = _text()
    defpoint: Point3D = _point()
    text_midpoint: Point3D = _point()
    dimtype: int = _integer(0)
    measurement: float | None = _number(None)

    def to_points(self) -> list[Point3D]:
        return [self.defpoint, self.text_midpoint]


@dataclass(frozen=True)
class Spline:
    dxftype: ClassVar[str] = "SPLINE"
    layer: str = _text("0")
    degree: int = _integer(3)
    closed: bool = _flag()
    control_points: tuple[Point3D, ...] = _sequence("points")
    fit_points: tuple[Point3D, ...] = _sequence("points")
    knots: tuple[float, ...] = _sequence("numbers")

    def to_points(self) -> list[Point3D]:
        return list(self.fit_points or self.control_points)


@dataclass(frozen=True)
class Unknown:
    """An entity kind the decoder has no table for.

    ``name`` is the entity name found in the source and ``groups`` holds every
    pair of its body so the record can be written back unchanged.
    """

    dxftype: ClassVar[str] = "UNKNOWN"
    layer: str = _text("0")
    name: str = _text("UNKNOWN")
    groups: tuple[tuple[str, str], ...] = _sequence("groups")

    def to_points(self) -> list[Point3D]:
        return []


CadEntity = Union[
    Line,
    Insert,
    Circle,
    Arc,
    Ellipse,
    LWPolyline,
    Polyline,
    Text,
    MText,
    Dimension,
    Spline,
    Unknown,
]

ENTITY_CLASSES: dict[str, type] = {
    cls.dxftype: cls
    for cls in (Line, Insert, Circle, Arc, Ellipse, LWPolyline, Polyline, Text, MText, Dimension, Spline, Unknown)
}

SUPPORTED_ENTITY_TYPES = tuple(ENTITY_CLASSES)


def is_entity(value: object) -> bool:
    return type(value) in ENTITY_CLASSES.values()
