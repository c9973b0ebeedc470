from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .document import CadDocument, coerce_document
from .entity import (
    Arc,
    CadEntity,
    Circle,
    Ellipse,
    Insert,
    Line,
    LWPolyline,
    MText,
    Polyline,
    Spline,
    Text,
    Unknown,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConvertResult:
    output_path: str | None
    total_entities: int
    written_entities: int
    skipped_entities: int
    skipped_by_type: dict[str, int]


def to_ezdxf(
    doc: CadDocument | dict[str, Any],
    *,
    dxf_version: str = "R2010",
    strict: bool = False,
) -> tuple[Any, ConvertResult]:
    """Build an ezdxf drawing holding every entity ezdxf can express."""
    ezdxf = _require_ezdxf()
    doc = coerce_document(doc)

    dxf_doc = ezdxf.new(dxfversion=dxf_version)
    modelspace = dxf_doc.modelspace()

    total = 0
    written = 0
    skipped_by_type: dict[str, int] = {}

    for entity in doc.entities:
        total += 1
        if _write_entity_to_modelspace(dxf_doc, modelspace, entity):
            written += 1
            continue
        dxftype = entity.name if isinstance(entity, Unknown) else entity.dxftype
        skipped_by_type[dxftype] = skipped_by_type.get(dxftype, 0) + 1

    skipped = total - written
    if strict and skipped > 0:
        summary = ", ".join(
            f"{dxftype}:{count}" for dxftype, count in sorted(skipped_by_type.items())
        )
        raise ValueError(f"failed to convert {skipped} entities ({summary})")

    return dxf_doc, ConvertResult(
        output_path=None,
        total_entities=total,
        written_entities=written,
        skipped_entities=skipped,
        skipped_by_type=dict(sorted(skipped_by_type.items())),
    )


def save_dxf(
    doc: CadDocument | dict[str, Any],
    output_path: str,
    *,
    dxf_version: str = "R2010",
    strict: bool = False,
) -> ConvertResult:
    dxf_doc, result = to_ezdxf(doc, dxf_version=dxf_version, strict=strict)
    out_path = Path(output_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    dxf_doc.saveas(str(out_path))
    return ConvertResult(
        output_path=str(out_path),
        total_entities=result.total_entities,
        written_entities=result.written_entities,
        skipped_entities=result.skipped_entities,
        skipped_by_type=result.skipped_by_type,
    )


def _require_ezdxf():
    try:
        import ezdxf
    except Exception as exc:
        raise ImportError(
            "ezdxf is required for exporting through ezdxf. "
            'Install it with `pip install "cadsync[dxf]"`.'
        ) from exc
    return ezdxf


def _write_entity_to_modelspace(dxf_doc: Any, modelspace: Any, entity: CadEntity) -> bool:
    try:
        return _write_entity_to_modelspace_unsafe(dxf_doc, modelspace, entity)
    except Exception as exc:
        logger.debug("ezdxf rejected %s: %s", entity.dxftype, exc)
        return False


def _write_entity_to_modelspace_unsafe(dxf_doc: Any, modelspace: Any, entity: CadEntity) -> bool:
    if isinstance(entity, Unknown):
        return False
    dxfattribs = _entity_dxfattribs(dxf_doc, entity)

    if isinstance(entity, Line):
        modelspace.add_line(entity.start, entity.end, dxfattribs=dxfattribs)
        return True

    if isinstance(entity, Circle):
        modelspace.add_circle(entity.center, entity.radius, dxfattribs=dxfattribs)
        return True

    if isinstance(entity, Arc):
        modelspace.add_arc(
            entity.center,
            entity.radius,
            entity.start_angle,
            entity.end_angle,
            dxfattribs=dxfattribs,
        )
        return True

    if isinstance(entity, Ellipse):
        modelspace.add_ellipse(
            entity.center,
            major_axis=entity.major_axis,
            ratio=entity.ratio,
            start_param=entity.start_param,
            end_param=entity.end_param,
            dxfattribs=dxfattribs,
        )
        return True

    if isinstance(entity, LWPolyline):
        if not entity.vertices:
            return False
        points = [(vertex.x, vertex.y, vertex.bulge or 0.0) for vertex in entity.vertices]
        lw = modelspace.add_lwpolyline(points, format="xyb", close=entity.closed, dxfattribs=dxfattribs)
        elevation = entity.vertices[0].z
        if elevation:
            lw.dxf.elevation = elevation
        return True

    if isinstance(entity, Polyline):
        if not entity.vertices:
            return False
        if any(vertex.z for vertex in entity.vertices):
            points = [vertex.to_point() for vertex in entity.vertices]
            modelspace.add_polyline3d(points, close=entity.closed, dxfattribs=dxfattribs)
            return True
        points = [(vertex.x, vertex.y, vertex.bulge or 0.0) for vertex in entity.vertices]
        modelspace.add_polyline2d(points, format="xyb", close=entity.closed, dxfattribs=dxfattribs)
        return True

    if isinstance(entity, Text):
        if entity.text == "":
            return False
        text_entity = modelspace.add_text(
            entity.text,
            height=entity.height,
            rotation=entity.rotation,
            dxfattribs=dxfattribs,
        )
        text_entity.dxf.insert = entity.insert
        return True

    if isinstance(entity, MText):
        if entity.text == "":
            return False
        mtext = modelspace.add_mtext(entity.text, dxfattribs=dxfattribs)
        mtext.set_location(entity.insert, rotation=entity.rotation)
        mtext.dxf.char_height = entity.height
        if entity.width:
            mtext.dxf.width = entity.width
        return True

    if isinstance(entity, Insert):
        if entity.block == "":
            return False
        if entity.block not in dxf_doc.blocks:
            dxf_doc.blocks.new(name=entity.block)
        sx, sy, sz = entity.scale
        modelspace.add_blockref(
            entity.block,
            entity.insertion_point,
            dxfattribs={**dxfattribs, "xscale": sx, "yscale": sy, "zscale": sz, "rotation": entity.rotation},
        )
        return True

    if isinstance(entity, Spline):
        return _write_spline(modelspace, entity, dxfattribs)

    return False


def _write_spline(modelspace: Any, entity: Spline, dxfattribs: dict[str, Any]) -> bool:
    degree = max(2, entity.degree)
    if len(entity.fit_points) >= 2:
        spline = modelspace.add_spline(fit_points=entity.fit_points, degree=degree, dxfattribs=dxfattribs)
        if entity.closed:
            spline.set_flag_state(spline.CLOSED, True)
        return True

    control_points = list(entity.control_points)
    if len(control_points) < 2:
        return False
    if entity.closed and len(control_points) >= 3:
        spline = modelspace.add_spline(dxfattribs=dxfattribs)
        spline.set_closed(control_points, degree=degree)
        return True
    knots = list(entity.knots)
    modelspace.add_open_spline(
        control_points=control_points,
        degree=degree,
        knots=knots if len(knots) == len(control_points) + degree + 1 else None,
        dxfattribs=dxfattribs,
    )
    return True


def _entity_dxfattribs(dxf_doc: Any, entity: CadEntity) -> dict[str, Any]:
    layer = entity.layer or "0"
    if layer not in dxf_doc.layers:
        dxf_doc.layers.add(layer)
    return {"layer": layer}
