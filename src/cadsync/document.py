from __future__ import annotations

import dataclasses
import json
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from .decoder import decode_entities
from .entity import ENTITY_CLASSES, CadEntity, Point3D, Unknown, Vertex, is_entity
from .errors import DecodeWarning, SchemaError
from .groupcodes import tokenize
from .sections import SectionStateMachine, iter_section_pairs


@dataclass(frozen=True)
class DocumentMetadata:
    version: int = 1
    last_modified: str | None = None
    filename: str | None = None


@dataclass(frozen=True)
class CadDocument:
    entities: tuple[CadEntity, ...] = ()
    metadata: DocumentMetadata | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.entities, (list, tuple)):
            raise SchemaError(
                f"entities must be a list, got {type(self.entities).__name__}",
                field="entities",
            )
        object.__setattr__(self, "entities", tuple(self.entities))

    def query(self, types: str | Iterable[str] | None = None) -> list[CadEntity]:
        if types is None:
            return list(self.entities)
        if isinstance(types, str):
            types = types.split()
        wanted = {dxftype.upper() for dxftype in types}
        return [entity for entity in self.entities if entity.dxftype in wanted]

    def layers(self) -> list[str]:
        """Distinct layer names, ``"0"`` first, then in first-seen order."""
        names = ["0"]
        for entity in self.entities:
            layer = entity.layer or "0"
            if layer not in names:
                names.append(layer)
        return names

    def revised(self, timestamp: str | None = None) -> "CadDocument":
        if timestamp is None:
            timestamp = datetime.now(timezone.utc).isoformat()
        metadata = self.metadata if self.metadata is not None else DocumentMetadata(version=0)
        metadata = dataclasses.replace(metadata, version=metadata.version + 1, last_modified=timestamp)
        return CadDocument(entities=self.entities, metadata=metadata)

    def to_dict(self) -> dict[str, Any]:
        value: dict[str, Any] = {"entities": [entity_to_dict(entity) for entity in self.entities]}
        if self.metadata is not None:
            value["metadata"] = {
                key: item for key, item in dataclasses.asdict(self.metadata).items() if item is not None
            }
        return value

    @classmethod
    def from_dict(cls, value: Any) -> "CadDocument":
        if not isinstance(value, Mapping):
            raise SchemaError(f"document must be a mapping, got {type(value).__name__}")
        entities = value.get("entities")
        if not isinstance(entities, (list, tuple)):
            raise SchemaError(
                f"entities must be a list, got {type(entities).__name__}",
                field="entities",
            )
        return cls(
            entities=tuple(entity_from_dict(item, index) for index, item in enumerate(entities)),
            metadata=_metadata_from_dict(value.get("metadata")),
        )

    def to_json(self, **kwargs: Any) -> str:
        return json.dumps(self.to_dict(), **kwargs)

    @classmethod
    def from_json(cls, text: str) -> "CadDocument":
        return cls.from_dict(json.loads(text))


@dataclass(frozen=True)
class DecodeResult:
    document: CadDocument
    warnings: tuple[DecodeWarning, ...]
    sections: tuple[str, ...]


def decode(
    text: str,
    *,
    filename: str | None = None,
    last_modified: str | None = None,
) -> DecodeResult:
    machine = SectionStateMachine()
    pairs = iter_section_pairs(tokenize(text), machine=machine)
    entities, warnings = decode_entities(pairs)
    metadata = None
    if filename is not None or last_modified is not None:
        metadata = DocumentMetadata(version=1, last_modified=last_modified, filename=filename)
    return DecodeResult(
        document=CadDocument(entities=tuple(entities), metadata=metadata),
        warnings=tuple(warnings),
        sections=tuple(machine.sections_seen),
    )


def coerce_document(doc: Any) -> CadDocument:
    """Accept a ``CadDocument`` or a document value and check its entities."""
    if isinstance(doc, Mapping):
        return CadDocument.from_dict(doc)
    if not isinstance(doc, CadDocument):
        raise SchemaError(f"expected a document, got {type(doc).__name__}")
    for index, entity in enumerate(doc.entities):
        if not is_entity(entity):
            raise SchemaError(f"not an entity: {type(entity).__name__}", index=index, field="type")
        if not isinstance(entity.layer, str):
            raise SchemaError("layer must be a string", index=index, field="layer")
    return doc


def entity_to_dict(entity: CadEntity) -> dict[str, Any]:
    value: dict[str, Any] = {"type": entity.dxftype}
    for item in dataclasses.fields(entity):
        kind = item.metadata.get("kind")
        data = getattr(entity, item.name)
        if kind == "point":
            data = list(data)
        elif kind == "points":
            data = [list(point) for point in data]
        elif kind == "numbers":
            data = list(data)
        elif kind == "vertices":
            data = [_vertex_to_dict(vertex) for vertex in data]
        elif kind == "groups":
            data = [[code, raw] for code, raw in data]
        value[item.name] = data
    return value


def entity_from_dict(value: Any, index: int) -> CadEntity:
    if not isinstance(value, Mapping):
        raise SchemaError(f"entity must be a mapping, got {type(value).__name__}", index=index)
    tag = value.get("type")
    if not isinstance(tag, str) or tag == "":
        raise SchemaError("missing entity type tag", index=index, field="type")
    cls = ENTITY_CLASSES.get(tag.upper())
    if cls is None:
        return Unknown(layer=_layer(value, index), name=tag)

    values: dict[str, Any] = {}
    for item in dataclasses.fields(cls):
        if item.name not in value or value[item.name] is None:
            continue
        if item.name == "layer":
            values["layer"] = _layer(value, index)
            continue
        values[item.name] = _coerce_field(item.metadata.get("kind"), value[item.name], index, item.name)
    return cls(**values)


def _layer(value: Mapping[str, Any], index: int) -> str:
    layer = value.get("layer")
    if layer is None or layer == "":
        return "0"
    if not isinstance(layer, str):
        raise SchemaError("layer must be a string", index=index, field="layer")
    return layer


def _coerce_field(kind: str | None, data: Any, index: int, name: str) -> Any:
    if kind == "point":
        return _point3(data, index, name)
    if kind == "number":
        return _finite(data, index, name)
    if kind == "integer":
        number = _finite(data, index, name)
        if not number.is_integer():
            raise SchemaError(f"expected an integer, got {data!r}", index=index, field=name)
        return int(number)
    if kind == "flag":
        return bool(data)
    if kind == "text":
        return str(data)
    if not isinstance(data, (list, tuple)):
        raise SchemaError(f"expected a list, got {type(data).__name__}", index=index, field=name)
    if kind == "points":
        return tuple(_point3(point, index, name) for point in data)
    if kind == "numbers":
        return tuple(_finite(number, index, name) for number in data)
    if kind == "vertices":
        return tuple(_vertex_from_dict(vertex, index, name) for vertex in data)
    if kind == "groups":
        pairs = []
        for pair in data:
            if not isinstance(pair, (list, tuple)) or len(pair) != 2:
                raise SchemaError(f"expected a [code, value] pair, got {pair!r}", index=index, field=name)
            pairs.append((str(pair[0]), str(pair[1])))
        return tuple(pairs)
    raise SchemaError(f"unsupported field kind {kind!r}", index=index, field=name)


def _finite(data: Any, index: int, name: str) -> float:
    if isinstance(data, bool):
        raise SchemaError(f"expected a number, got {data!r}", index=index, field=name)
    try:
        number = float(data)
    except (TypeError, ValueError):
        raise SchemaError(f"expected a number, got {data!r}", index=index, field=name) from None
    if not math.isfinite(number):
        raise SchemaError(f"expected a finite number, got {data!r}", index=index, field=name)
    return number


def _point3(data: Any, index: int, name: str) -> Point3D:
    if isinstance(data, Mapping):
        data = [data.get("x", 0.0), data.get("y", 0.0), data.get("z", 0.0)]
    if isinstance(data, (list, tuple)) and 2 <= len(data) <= 3:
        coords = [_finite(item, index, name) for item in data]
        if len(coords) == 2:
            coords.append(0.0)
        return (coords[0], coords[1], coords[2])
    raise SchemaError(f"expected a point [x, y, z], got {data!r}", index=index, field=name)


def _vertex_to_dict(vertex: Vertex) -> dict[str, float]:
    return {key: item for key, item in dataclasses.asdict(vertex).items() if item is not None}


def _vertex_from_dict(data: Any, index: int, name: str) -> Vertex:
    if isinstance(data, (list, tuple)):
        x, y, z = _point3(data, index, name)
        return Vertex(x=x, y=y, z=z if len(data) == 3 else None)
    if not isinstance(data, Mapping):
        raise SchemaError(f"expected a vertex mapping, got {data!r}", index=index, field=name)
    optional = {
        key: _finite(data[key], index, name) for key in ("z", "bulge") if data.get(key) is not None
    }
    return Vertex(
        x=_finite(data.get("x", 0.0), index, name),
        y=_finite(data.get("y", 0.0), index, name),
        **optional,
    )


def _metadata_from_dict(value: Any) -> DocumentMetadata | None:
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise SchemaError(f"metadata must be a mapping, got {type(value).__name__}", field="metadata")
    last_modified = value.get("last_modified", value.get("lastModified"))
    filename = value.get("filename")
    version = value.get("version", 1)
    if isinstance(version, bool) or not isinstance(version, int):
        raise SchemaError(f"metadata version must be an integer, got {version!r}", field="metadata")
    return DocumentMetadata(
        version=version,
        last_modified=str(last_modified) if last_modified is not None else None,
        filename=str(filename) if filename is not None else None,
    )
