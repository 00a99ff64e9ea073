from __future__ import annotations

import io
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from .colors import ColorMethod, ColorSpec
from .document import Document, loads
from .document import open as open_document
from .entities import (
    Arc,
    BlockReference,
    Circle,
    Ellipse,
    Entity,
    Hatch,
    Line,
    MText,
    Polyline,
    Spline,
    Text,
    Trace,
    Wipeout,
)
from .writer import dumps

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConvertResult:
    source_path: str
    output_path: str
    total_entities: int
    written_entities: int
    skipped_entities: int
    skipped_by_type: dict[str, int]


def to_ezdxf(document: Document) -> Any:
    """Hand the serialized document to ezdxf's recovering loader."""
    _require_ezdxf()
    from ezdxf import recover

    data = dumps(document).encode("utf-8")
    drawing, auditor = recover.read(io.BytesIO(data))
    if auditor.has_errors:
        logger.debug("ezdxf reported %d errors while loading", len(auditor.errors))
    return drawing


def from_ezdxf(drawing: Any, *, strict: bool = False) -> Document:
    buffer = io.StringIO()
    drawing.write(buffer)
    return loads(buffer.getvalue(), strict=strict)


def export_dxf(
    source: str | os.PathLike[str] | Document,
    output_path: str | os.PathLike[str],
    *,
    types: str | Iterable[str] | None = None,
    dxf_version: str = "R2010",
    strict: bool = False,
) -> ConvertResult:
    """Rebuild the typed entities in a fresh ezdxf drawing and save it.

    Entities ezdxf cannot recreate (dimensions, images, OLE frames and
    opaque objects) are counted as skipped; ``strict`` turns any skip into
    a ``ValueError``.
    """
    ezdxf = _require_ezdxf()
    if isinstance(source, Document):
        source_path = ""
        document = source
    else:
        source_path = str(source)
        document = open_document(source)

    dxf_doc = ezdxf.new(dxfversion=dxf_version)
    for layer in document.get_layers():
        _write_layer(dxf_doc, layer)
    for block in document.get_blocks():
        if block.name.startswith("*") or block.name in dxf_doc.blocks:
            continue
        target = dxf_doc.blocks.new(name=block.name, base_point=_point3(block.base_point))
        for entity in block.entities:
            _write_entity(target, entity)

    modelspace = dxf_doc.modelspace()
    total = 0
    written = 0
    skipped_by_type: dict[str, int] = {}
    for entity in document.query(types):
        total += 1
        if _write_entity(modelspace, entity):
            written += 1
            continue
        skipped_by_type[entity.dxftype] = skipped_by_type.get(entity.dxftype, 0) + 1

    skipped = total - written
    if strict and skipped > 0:
        summary = ", ".join(f"{dxftype}:{count}" for dxftype, count in sorted(skipped_by_type.items()))
        raise ValueError(f"failed to convert {skipped} entities ({summary})")

    out_path = Path(output_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    dxf_doc.saveas(str(out_path))

    return ConvertResult(
        source_path=source_path,
        output_path=str(out_path),
        total_entities=total,
        written_entities=written,
        skipped_entities=skipped,
        skipped_by_type=dict(sorted(skipped_by_type.items())),
    )


def _require_ezdxf():
    try:
        import ezdxf
    except Exception as exc:
        raise ImportError(
            "ezdxf is required for ezdxf interop. "
            'Install it with `pip install "dxftree[ezdxf]"`.'
        ) from exc
    return ezdxf


def _write_layer(dxf_doc: Any, layer: Any) -> None:
    if dxf_doc.layers.has_entry(layer.name):
        target = dxf_doc.layers.get(layer.name)
    else:
        target = dxf_doc.layers.add(layer.name)
    color = abs(layer.color_number)
    target.color = color if 1 <= color <= 255 else 7
    if not layer.visible:
        target.off()
    if layer.locked:
        target.lock()


def _write_entity(layout: Any, entity: Entity) -> bool:
    try:
        return _write_entity_unsafe(layout, entity)
    except Exception as exc:
        logger.debug("could not convert %r: %s", entity, exc)
        return False


def _write_entity_unsafe(layout: Any, entity: Entity) -> bool:
    dxfattribs = _entity_dxfattribs(entity)

    if isinstance(entity, Line):
        layout.add_line(_point3(entity.start), _point3(entity.end), dxfattribs=dxfattribs)
        return True

    if isinstance(entity, Arc):
        layout.add_arc(
            _point3(entity.center),
            entity.radius,
            entity.start_angle,
            entity.end_angle,
            dxfattribs=dxfattribs,
        )
        return True

    if isinstance(entity, Circle):
        layout.add_circle(_point3(entity.center), entity.radius, dxfattribs=dxfattribs)
        return True

    if isinstance(entity, Ellipse):
        layout.add_ellipse(
            _point3(entity.center),
            major_axis=_point3(entity.major_axis),
            ratio=entity.ratio,
            start_param=entity.start_param,
            end_param=entity.end_param,
            dxfattribs=dxfattribs,
        )
        return True

    if isinstance(entity, Polyline):
        if len(entity.vertices) < 2:
            return False
        layout.add_lwpolyline(entity.vertices, format="xy", close=entity.closed, dxfattribs=dxfattribs)
        return True

    if isinstance(entity, Text):
        return _write_text(layout, entity, dxfattribs)

    if isinstance(entity, MText):
        return _write_mtext(layout, entity, dxfattribs)

    if isinstance(entity, Hatch):
        return _write_hatch(layout, entity, dxfattribs)

    if isinstance(entity, Spline):
        return _write_spline(layout, entity, dxfattribs)

    if isinstance(entity, Trace):
        points = [_point3(p) for p in (entity.first, entity.second, entity.third, entity.fourth)]
        if entity.dxftype == "SOLID":
            layout.add_solid(points, dxfattribs=dxfattribs)
        else:
            layout.add_trace(points, dxfattribs=dxfattribs)
        return True

    if isinstance(entity, Wipeout):
        if len(entity.vertices) < 3:
            return False
        layout.add_wipeout(entity.vertices, dxfattribs=dxfattribs)
        return True

    if isinstance(entity, BlockReference):
        if entity.block is None or entity.block.name not in layout.doc.blocks:
            return False
        dxfattribs.update(
            xscale=entity.x_scale,
            yscale=entity.y_scale,
            rotation=entity.rotation,
        )
        layout.add_blockref(entity.block.name, _point3(entity.insert), dxfattribs=dxfattribs)
        return True

    return False


def _write_text(layout: Any, entity: Text, dxfattribs: dict[str, Any]) -> bool:
    if entity.text == "":
        return False
    text = layout.add_text(entity.text, height=entity.height, rotation=entity.rotation, dxfattribs=dxfattribs)
    text.dxf.insert = _point3(entity.insert)
    if entity.halign or entity.valign:
        text.dxf.halign = entity.halign
        text.dxf.valign = entity.valign
        text.dxf.align_point = _point3(entity.align_point)
    return True


def _write_mtext(layout: Any, entity: MText, dxfattribs: dict[str, Any]) -> bool:
    if entity.text == "":
        return False
    mtext = layout.add_mtext(entity.text, dxfattribs=dxfattribs)
    mtext.set_location(
        _point3(entity.insert),
        rotation=entity.rotation,
        attachment_point=entity.attachment_point,
    )
    mtext.dxf.char_height = entity.char_height
    if entity.width > 0.0:
        mtext.dxf.width = entity.width
    return True


def _write_hatch(layout: Any, entity: Hatch, dxfattribs: dict[str, Any]) -> bool:
    paths = [path for path in entity.paths if len(path) >= 2]
    if not paths:
        return False
    color = entity.color.aci if entity.color.method is ColorMethod.EXPLICIT else 7
    hatch = layout.add_hatch(color=color, dxfattribs=dxfattribs)
    if entity.solid_fill:
        hatch.set_solid_fill(color=color, rgb=_to_rgb(entity.color))
    else:
        hatch.set_pattern_fill(
            entity.pattern_name or "ANSI31",
            color=color,
            angle=entity.pattern_angle,
            scale=entity.pattern_scale,
        )
    for path in paths:
        hatch.paths.add_polyline_path(path, is_closed=True)
    return True


def _write_spline(layout: Any, entity: Spline, dxfattribs: dict[str, Any]) -> bool:
    if len(entity.control_points) > entity.degree:
        points = [_point3(p) for p in entity.control_points]
        knots = entity.knots or None
        if entity.weights and len(entity.weights) == len(points):
            layout.add_rational_spline(points, entity.weights, degree=entity.degree, knots=knots, dxfattribs=dxfattribs)
        else:
            layout.add_open_spline(points, degree=entity.degree, knots=knots, dxfattribs=dxfattribs)
        return True
    if len(entity.fit_points) >= 2:
        layout.add_spline([_point3(p) for p in entity.fit_points], degree=entity.degree, dxfattribs=dxfattribs)
        return True
    return False


def _entity_dxfattribs(entity: Entity) -> dict[str, Any]:
    attribs: dict[str, Any] = {"layer": entity.layer_name}
    spec = entity.color
    if spec.method is ColorMethod.TRUE_COLOR:
        attribs["true_color"] = spec.rgb
    elif spec.method is not ColorMethod.BYLAYER:
        attribs["color"] = spec.aci
    return attribs


def _to_rgb(spec: ColorSpec) -> tuple[int, int, int] | None:
    if spec.method is not ColorMethod.TRUE_COLOR or spec.rgb is None:
        return None
    return (
        (spec.rgb >> 16) & 0xFF,
        (spec.rgb >> 8) & 0xFF,
        spec.rgb & 0xFF,
    )


def _point3(value: tuple[float, float]) -> tuple[float, float, float]:
    return (float(value[0]), float(value[1]), 0.0)
