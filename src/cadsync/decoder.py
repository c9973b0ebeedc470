from __future__ import annotations

import dataclasses
import logging
from typing import Any, Callable, Iterable, Iterator

from .entity import (
    Arc,
    CadEntity,
    Circle,
    Dimension,
    Ellipse,
    Insert,
    Line,
    LWPolyline,
    MText,
    Polyline,
    Spline,
    Text,
    Unknown,
    Vertex,
)
from .errors import DecodeWarning
from .groupcodes import GroupPair, parse_int, parse_number

logger = logging.getLogger(__name__)

# group code -> (field name, component index for points)
FieldTable = dict[str, tuple[str, Any]]


def _xyz(x_code: int, name: str) -> FieldTable:
    return {str(x_code): (name, 0), str(x_code + 10): (name, 1), str(x_code + 20): (name, 2)}


FIELD_TABLES: dict[str, FieldTable] = {
    "LINE": {**_xyz(10, "start"), **_xyz(11, "end")},
    "INSERT": {
        "2": ("block", None),
        **_xyz(10, "insertion_point"),
        "41": ("scale", 0),
        "42": ("scale", 1),
        "43": ("scale", 2),
        "50": ("rotation", None),
    },
    "CIRCLE": {**_xyz(10, "center"), "40": ("radius", None)},
    "ARC": {
        **_xyz(10, "center"),
        "40": ("radius", None),
        "50": ("start_angle", None),
        "51": ("end_angle", None),
    },
    "ELLIPSE": {
        **_xyz(10, "center"),
        **_xyz(11, "major_axis"),
        "40": ("ratio", None),
        "41": ("start_param", None),
        "42": ("end_param", None),
    },
    "TEXT": {
        "1": ("text", None),
        **_xyz(10, "insert"),
        "40": ("height", None),
        "50": ("rotation", None),
    },
    "MTEXT": {
        **_xyz(10, "insert"),
        "40": ("height", None),
        "41": ("width", None),
        "50": ("rotation", None),
    },
    "DIMENSION": {
        "1": ("text", None),
        "2": ("block", None),
        **_xyz(10, "defpoint"),
        **_xyz(11, "text_midpoint"),
        "42": ("measurement", None),
        "70": ("dimtype", None),
    },
}

_TABLE_CLASSES: dict[str, type] = {
    "LINE": Line,
    "INSERT": Insert,
    "CIRCLE": Circle,
    "ARC": Arc,
    "ELLIPSE": Ellipse,
    "TEXT": Text,
    "MTEXT": MText,
    "DIMENSION": Dimension,
}

_SPLINE_COUNT_CODES = {"72", "73", "74", "42", "43", "44"}
_LWPOLYLINE_IGNORED_CODES = {"90", "43"}
_VERTEX_IGNORED_CODES = {"70"}


class _DecodeContext:
    def __init__(self, warnings: list[DecodeWarning], index: int, dxftype: str) -> None:
        self.warnings = warnings
        self.index = index
        self.dxftype = dxftype

    def warn(self, kind: str, message: str, code: str | None = None) -> None:
        self.warnings.append(
            DecodeWarning(kind=kind, message=message, entity_index=self.index, group_code=code)
        )

    def number(self, code: str, value: str, default: Any) -> Any:
        number = parse_number(value)
        if number is None:
            self.warn("invalid-number", f"{self.dxftype} group {code}: not a finite number: {value!r}", code)
            return default
        return number

    def integer(self, code: str, value: str, default: int) -> int:
        number = parse_int(value)
        if number is None:
            self.warn("invalid-number", f"{self.dxftype} group {code}: not an integer: {value!r}", code)
            return default
        return number

    def layer(self, value: str) -> str:
        if value == "":
            self.warn("empty-layer", f"{self.dxftype} has an empty layer name, using '0'", "8")
            return "0"
        return value

    def unknown_code(self, code: str) -> None:
        self.warn("unknown-group-code", f"{self.dxftype} group {code} is not decoded", code)


def iter_records(pairs: Iterable[GroupPair]) -> Iterator[tuple[str, list[GroupPair]]]:
    """Group a pair stream into ``(entity name, body pairs)`` records."""
    name: str | None = None
    body: list[GroupPair] = []
    for code, value in pairs:
        if code == "0":
            if name is not None:
                yield name, body
            name, body = value, []
        elif name is not None:
            body.append((code, value))
    if name is not None:
        yield name, body


def _decode_tabled(cls: type, body: list[GroupPair], ctx: _DecodeContext) -> CadEntity:
    table = FIELD_TABLES[cls.dxftype]
    kinds = {f.name: f.metadata.get("kind") for f in dataclasses.fields(cls)}
    defaults = cls()
    values: dict[str, Any] = {}
    for name, kind in kinds.items():
        default = getattr(defaults, name)
        values[name] = list(default) if kind == "point" else default

    for code, raw in body:
        if code == "8":
            values["layer"] = ctx.layer(raw)
            continue
        spec = table.get(code)
        if spec is None:
            ctx.unknown_code(code)
            continue
        name, component = spec
        kind = kinds[name]
        if kind == "point":
            values[name][component] = ctx.number(code, raw, values[name][component])
        elif kind == "number":
            values[name] = ctx.number(code, raw, values[name])
        elif kind == "integer":
            values[name] = ctx.integer(code, raw, values[name])
        else:
            values[name] = raw

    for name, kind in kinds.items():
        if kind == "point":
            values[name] = tuple(values[name])
    return cls(**values)


def _decode_mtext(body: list[GroupPair], ctx: _DecodeContext) -> CadEntity:
    chunks = [raw for code, raw in body if code == "3"]
    chunks.extend(raw for code, raw in body if code == "1")
    rest = [(code, raw) for code, raw in body if code not in ("1", "3")]
    entity = _decode_tabled(MText, rest, ctx)
    return dataclasses.replace(entity, text="".join(chunks))


def _decode_lwpolyline(body: list[GroupPair], ctx: _DecodeContext) -> CadEntity:
    layer = "0"
    closed = False
    elevation: float | None = None
    vertices: list[dict[str, Any]] = []
    for code, raw in body:
        if code == "8":
            layer = ctx.layer(raw)
        elif code == "10":
            vertices.append({"x": ctx.number(code, raw, 0.0), "y": 0.0})
        elif code in ("20", "42") and vertices:
            key = "y" if code == "20" else "bulge"
            vertices[-1][key] = ctx.number(code, raw, vertices[-1].get(key))
        elif code == "70":
            closed = bool(ctx.integer(code, raw, 0) & 1)
        elif code == "38":
            elevation = ctx.number(code, raw, None)
        elif code not in _LWPOLYLINE_IGNORED_CODES:
            ctx.unknown_code(code)
    if elevation is not None:
        for vertex in vertices:
            vertex["z"] = elevation
    return LWPolyline(
        layer=layer,
        vertices=tuple(Vertex(**vertex) for vertex in vertices),
        closed=closed,
    )


def _decode_spline(body: list[GroupPair], ctx: _DecodeContext) -> CadEntity:
    layer = "0"
    degree = 3
    closed = False
    control_points: list[list[float]] = []
    fit_points: list[list[float]] = []
    knots: list[float] = []
    for code, raw in body:
        if code == "8":
            layer = ctx.layer(raw)
        elif code in ("10", "11"):
            target = control_points if code == "10" else fit_points
            target.append([ctx.number(code, raw, 0.0), 0.0, 0.0])
        elif code in ("20", "30", "21", "31"):
            target = control_points if code[1] == "0" else fit_points
            if target:
                axis = 1 if code[0] == "2" else 2
                target[-1][axis] = ctx.number(code, raw, target[-1][axis])
        elif code == "40":
            knot = ctx.number(code, raw, None)
            if knot is not None:
                knots.append(knot)
        elif code == "70":
            closed = bool(ctx.integer(code, raw, 0) & 1)
        elif code == "71":
            degree = ctx.integer(code, raw, degree)
        elif code not in _SPLINE_COUNT_CODES:
            ctx.unknown_code(code)
    return Spline(
        layer=layer,
        degree=degree,
        closed=closed,
        control_points=tuple(tuple(point) for point in control_points),
        fit_points=tuple(tuple(point) for point in fit_points),
        knots=tuple(knots),
    )


def _decode_unknown(name: str, body: list[GroupPair], ctx: _DecodeContext) -> CadEntity:
    layer = "0"
    for code, raw in body:
        if code == "8":
            layer = ctx.layer(raw)
    ctx.warn("unknown-entity", f"entity {name!r} is not decoded, keeping raw groups")
    return Unknown(layer=layer, name=name, groups=tuple(body))


class _PendingPolyline:
    """Collects a POLYLINE header and the VERTEX records that follow it."""

    def __init__(self, body: list[GroupPair], ctx: _DecodeContext) -> None:
        self.layer = "0"
        self.closed = False
        self.vertices: list[Vertex] = []
        for code, raw in body:
            if code == "8":
                self.layer = ctx.layer(raw)
            elif code == "70":
                self.closed = bool(ctx.integer(code, raw, 0) & 1)
            elif code not in ("66", "10", "20", "30"):
                ctx.unknown_code(code)

    def add_vertex(self, body: list[GroupPair], ctx: _DecodeContext) -> None:
        values: dict[str, Any] = {"x": 0.0, "y": 0.0}
        for code, raw in body:
            if code == "10":
                values["x"] = ctx.number(code, raw, 0.0)
            elif code == "20":
                values["y"] = ctx.number(code, raw, 0.0)
            elif code == "30":
                values["z"] = ctx.number(code, raw, None)
            elif code == "42":
                values["bulge"] = ctx.number(code, raw, None)
            elif code != "8" and code not in _VERTEX_IGNORED_CODES:
                ctx.unknown_code(code)
        self.vertices.append(Vertex(**values))

    def finish(self) -> Polyline:
        return Polyline(layer=self.layer, vertices=tuple(self.vertices), closed=self.closed)


_DECODERS: dict[str, Callable[[list[GroupPair], _DecodeContext], CadEntity]] = {
    name: (lambda body, ctx, cls=cls: _decode_tabled(cls, body, ctx))
    for name, cls in _TABLE_CLASSES.items()
}
_DECODERS["MTEXT"] = _decode_mtext
_DECODERS["LWPOLYLINE"] = _decode_lwpolyline
_DECODERS["SPLINE"] = _decode_spline


def decode_entities(pairs: Iterable[GroupPair]) -> tuple[list[CadEntity], list[DecodeWarning]]:
    """Build entities from the body pairs of an ENTITIES section.

    Content problems never raise: bad numbers keep their field default,
    unfamiliar entities become ``Unknown`` and each case is reported in the
    returned warning list.
    """
    entities: list[CadEntity] = []
    warnings: list[DecodeWarning] = []
    polyline: _PendingPolyline | None = None

    for name, body in iter_records(pairs):
        if polyline is not None:
            if name == "VERTEX":
                polyline.add_vertex(body, _DecodeContext(warnings, len(entities), "VERTEX"))
                continue
            entities.append(polyline.finish())
            polyline = None
            if name == "SEQEND":
                continue
            logger.debug("POLYLINE closed by %s without SEQEND", name)

        ctx = _DecodeContext(warnings, len(entities), name)
        if name == "POLYLINE":
            polyline = _PendingPolyline(body, ctx)
            continue
        decoder = _DECODERS.get(name)
        if decoder is None:
            entities.append(_decode_unknown(name, body, ctx))
            continue
        entities.append(decoder(body, ctx))

    if polyline is not None:
        entities.append(polyline.finish())

    logger.debug("decoded %d entities with %d warnings", len(entities), len(warnings))
    return entities, warnings
