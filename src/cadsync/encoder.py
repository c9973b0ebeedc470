from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable

from .document import CadDocument, coerce_document
from .entity import CadEntity, Circle, Insert, Line, Unknown
from .errors import EncodeWarning, SchemaError
from .groupcodes import GroupPair, format_number, render_pairs

logger = logging.getLogger(__name__)

DEFAULT_ACAD_VERSION = "AC1015"


@dataclass(frozen=True)
class EncodeResult:
    text: str
    total_entities: int
    written_entities: int
    skipped_entities: int
    skipped_by_type: dict[str, int]
    warnings: tuple[EncodeWarning, ...]


class EncodeTally:
    """Counts written and skipped entities for one encode call."""

    def __init__(self, target: str) -> None:
        self.target = target
        self.total = 0
        self.written = 0
        self.skipped_by_type: dict[str, int] = {}
        self.warnings: list[EncodeWarning] = []

    def skip(self, index: int, entity: CadEntity, kind: str, message: str) -> None:
        dxftype = _type_label(entity)
        self.skipped_by_type[dxftype] = self.skipped_by_type.get(dxftype, 0) + 1
        self.warnings.append(EncodeWarning(kind=kind, message=message, entity_index=index, dxftype=dxftype))

    def unsupported(self, index: int, entity: CadEntity) -> None:
        self.skip(
            index,
            entity,
            "unsupported-entity",
            f"{_type_label(entity)} cannot be written to {self.target}, skipped",
        )

    def result(self, text: str, *, strict: bool) -> EncodeResult:
        skipped = self.total - self.written
        if strict and skipped > 0:
            summary = ", ".join(
                f"{dxftype}:{count}" for dxftype, count in sorted(self.skipped_by_type.items())
            )
            raise ValueError(f"failed to encode {skipped} entities ({summary})")
        logger.debug("%s: wrote %d of %d entities", self.target, self.written, self.total)
        return EncodeResult(
            text=text,
            total_entities=self.total,
            written_entities=self.written,
            skipped_entities=skipped,
            skipped_by_type=dict(sorted(self.skipped_by_type.items())),
            warnings=tuple(self.warnings),
        )


def encode_dxf(
    doc: CadDocument | dict[str, Any],
    *,
    acad_version: str = DEFAULT_ACAD_VERSION,
    units: int = 0,
    passthrough_unknown: bool = False,
    strict: bool = False,
) -> EncodeResult:
    """Serialize a document into DXF text.

    Only LINE, INSERT and CIRCLE are written (and UNKNOWN when
    ``passthrough_unknown`` is set); every other entity is left out and
    reported in ``EncodeResult.warnings``. The layer table covers the layers of
    all entities, written or not. Layer and block names that would not survive
    a value line (line breaks, edge whitespace) raise ``SchemaError``.
    """
    doc = coerce_document(doc)
    tally = EncodeTally("DXF")

    body: list[GroupPair] = []
    for index, entity in enumerate(doc.entities):
        tally.total += 1
        checked_name(entity.layer, index, "layer")
        if isinstance(entity, Unknown) and passthrough_unknown:
            body.append(("0", checked_name(entity.name, index, "name")))
            body.extend(
                (checked_name(code, index, "groups"), checked_name(value, index, "groups"))
                for code, value in entity.groups
            )
            tally.written += 1
            continue
        writer = _ENTITY_WRITERS.get(type(entity))
        if writer is None:
            tally.unsupported(index, entity)
            continue
        body.extend(writer(entity, index))
        tally.written += 1

    pairs = [
        *_header_pairs(acad_version, units),
        *_tables_pairs(doc.layers()),
        ("0", "SECTION"),
        ("2", "ENTITIES"),
        *body,
        ("0", "ENDSEC"),
        ("0", "EOF"),
    ]
    return tally.result(render_pairs(pairs), strict=strict)


def _header_pairs(acad_version: str, units: int) -> list[GroupPair]:
    return [
        ("0", "SECTION"),
        ("2", "HEADER"),
        ("9", "$ACADVER"),
        ("1", acad_version),
        ("9", "$INSUNITS"),
        ("70", str(int(units))),
        ("0", "ENDSEC"),
    ]


def _tables_pairs(layers: list[str]) -> list[GroupPair]:
    pairs = [
        ("0", "SECTION"),
        ("2", "TABLES"),
        ("0", "TABLE"),
        ("2", "LAYER"),
        ("70", str(len(layers))),
    ]
    for name in layers:
        pairs.extend([("0", "LAYER"), ("2", name), ("70", "0"), ("62", "7"), ("6", "CONTINUOUS")])
    pairs.extend([("0", "ENDTAB"), ("0", "ENDSEC")])
    return pairs


def _line_pairs(entity: Line, index: int) -> list[GroupPair]:
    return [
        ("0", "LINE"),
        ("8", _layer(entity)),
        *_xyz_pairs(10, entity.start, index, "start"),
        *_xyz_pairs(11, entity.end, index, "end"),
    ]


def _insert_pairs(entity: Insert, index: int) -> list[GroupPair]:
    sx, sy, sz = checked_point(entity.scale, index, "scale")
    return [
        ("0", "INSERT"),
        ("2", checked_name(entity.block, index, "block")),
        ("8", _layer(entity)),
        *_xyz_pairs(10, entity.insertion_point, index, "insertion_point"),
        ("41", format_number(sx)),
        ("42", format_number(sy)),
        ("43", format_number(sz)),
        ("50", format_number(checked_number(entity.rotation, index, "rotation"))),
    ]


def _circle_pairs(entity: Circle, index: int) -> list[GroupPair]:
    return [
        ("0", "CIRCLE"),
        ("8", _layer(entity)),
        *_xyz_pairs(10, entity.center, index, "center"),
        ("40", format_number(checked_number(entity.radius, index, "radius"))),
    ]


_ENTITY_WRITERS: dict[type, Callable[[Any, int], list[GroupPair]]] = {
    Line: _line_pairs,
    Insert: _insert_pairs,
    Circle: _circle_pairs,
}


def _xyz_pairs(x_code: int, point: Any, index: int, name: str) -> list[GroupPair]:
    x, y, z = checked_point(point, index, name)
    return [
        (str(x_code), format_number(x)),
        (str(x_code + 10), format_number(y)),
        (str(x_code + 20), format_number(z)),
    ]


def _layer(entity: CadEntity) -> str:
    return entity.layer or "0"


def _type_label(entity: CadEntity) -> str:
    if isinstance(entity, Unknown):
        return entity.name
    return entity.dxftype


def checked_number(value: Any, index: int, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise SchemaError(f"expected a finite number, got {value!r}", index=index, field=name)
    return float(value)


def checked_point(value: Any, index: int, name: str) -> tuple[float, float, float]:
    if not isinstance(value, (list, tuple)) or len(value) != 3:
        raise SchemaError(f"expected a point (x, y, z), got {value!r}", index=index, field=name)
    x, y, z = (checked_number(item, index, name) for item in value)
    return (x, y, z)


def checked_name(value: Any, index: int, name: str) -> str:
    """Reject strings that would not come back unchanged from a DXF value line."""
    if not isinstance(value, str):
        raise SchemaError(f"expected a string, got {value!r}", index=index, field=name)
    if "\r" in value or "\n" in value:
        raise SchemaError(f"{value!r} contains a line break", index=index, field=name)
    if value != value.strip():
        raise SchemaError(f"{value!r} has leading or trailing whitespace", index=index, field=name)
    return value
