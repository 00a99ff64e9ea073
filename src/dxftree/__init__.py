from typing import Sequence

from .convert import ConvertResult, export_dxf, from_ezdxf, to_ezdxf
from .document import Document, loads, new, open, readfile, save
from .entities import (
    MAX_BLOCK_DEPTH,
    Arc,
    Block,
    BlockReference,
    Circle,
    Dimension,
    Ellipse,
    Entity,
    Hatch,
    Line,
    MText,
    Ole2Frame,
    Polyline,
    RasterImage,
    Spline,
    Text,
    Trace,
    UnknownEntity,
    Wipeout,
)
from .errors import DXFError, MalformedFieldValueError, MalformedRecordError, UnbalancedStructureError
from .geometry import Bounds
from .layer import DEFAULT_LAYER, Layer
from .node import DocumentNode, Property
from .reader import Reader, ReaderState, read
from .resolve import ResolveResult, resolve_references
from .writer import dumps, iter_tags, write

# Imported last so the ``resolve`` function is not shadowed by the ``dxftree.resolve`` submodule.
from .colors import Color, ColorMethod, ColorSpec, aci_to_color, color_to_aci, resolve

__all__ = [
    "open",
    "new",
    "readfile",
    "loads",
    "save",
    "read",
    "write",
    "dumps",
    "iter_tags",
    "Reader",
    "ReaderState",
    "Document",
    "DocumentNode",
    "Property",
    "Layer",
    "DEFAULT_LAYER",
    "Entity",
    "Line",
    "Circle",
    "Arc",
    "Ellipse",
    "Polyline",
    "Text",
    "MText",
    "Hatch",
    "Dimension",
    "Trace",
    "RasterImage",
    "Ole2Frame",
    "Spline",
    "Wipeout",
    "BlockReference",
    "Block",
    "UnknownEntity",
    "MAX_BLOCK_DEPTH",
    "Bounds",
    "Color",
    "ColorMethod",
    "ColorSpec",
    "aci_to_color",
    "color_to_aci",
    "resolve",
    "resolve_references",
    "ResolveResult",
    "DXFError",
    "MalformedRecordError",
    "UnbalancedStructureError",
    "MalformedFieldValueError",
    "to_ezdxf",
    "from_ezdxf",
    "export_dxf",
    "ConvertResult",
]


def main(argv: Sequence[str] | None = None) -> int:
    from dxftree.cli import main as cli_main

    return cli_main(argv)
