from __future__ import annotations

import argparse
import logging
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Sequence

from .convert import export_dxf
from .document import open as open_document
from .document import save


def _package_version() -> str:
    try:
        return version("dxftree")
    except PackageNotFoundError:
        return "0.0.0"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dxftree", description="Inspect, normalize, and convert DXF files.")
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_package_version()}",
    )
    subparsers = parser.add_subparsers(dest="command")

    inspect_parser = subparsers.add_parser("inspect", help="Show sections, layers and entity counts.")
    inspect_parser.add_argument("path", help="Path to DXF file.")
    inspect_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log reader diagnostics and list every unresolved reference.",
    )
    inspect_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on unbalanced end markers and malformed field values.",
    )

    normalize_parser = subparsers.add_parser(
        "normalize",
        help="Read a DXF file and write it back through the typed model.",
    )
    normalize_parser.add_argument("input_path", help="Path to input DXF file.")
    normalize_parser.add_argument("output_path", help="Path to output DXF file.")
    normalize_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on unbalanced end markers and malformed field values.",
    )

    convert_parser = subparsers.add_parser(
        "convert",
        help="Rebuild the drawing with ezdxf as the writing backend.",
    )
    convert_parser.add_argument("input_path", help="Path to input DXF file.")
    convert_parser.add_argument("output_path", help="Path to output DXF file.")
    convert_parser.add_argument(
        "--types",
        default=None,
        help='Entity filter passed to query(), e.g. "LINE ARC LWPOLYLINE".',
    )
    convert_parser.add_argument(
        "--dxf-version",
        default="R2010",
        help="DXF version for ezdxf.new(), e.g. R2000/R2010/R2018.",
    )
    convert_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail if any entity cannot be converted.",
    )
    return parser


def _run_inspect(path: str, *, verbose: bool = False, strict: bool = False) -> int:
    file_path = Path(path)
    if not file_path.exists():
        print(f"error: file not found: {file_path}", file=sys.stderr)
        return 2

    try:
        doc = open_document(file_path, strict=strict)
    except Exception as exc:
        print(f"error: failed to read DXF: {exc}", file=sys.stderr)
        return 2
    result = doc.resolve()

    print(f"file: {file_path}")
    print(f"version: {doc.version or 'unknown'}")
    sections = [child.get_value(2) for child in doc.children if child.kind == "SECTION"]
    print(f"sections: {', '.join(name or '?' for name in sections)}")
    layers = doc.get_layers()
    print(f"layers: {len(layers)}")
    if verbose:
        for layer in layers:
            print(f"layer[{layer.name}]: color={layer.color_number} visible={layer.visible}")
    print(f"blocks: {len(doc.get_blocks())}")

    counts = doc.entity_counts()
    print(f"total_entities: {sum(counts.values())}")
    for dxftype, count in sorted(counts.items()):
        print(f"{dxftype}: {count}")

    if doc.field_errors:
        print(f"field_errors: {len(doc.field_errors)}")
    top_n = None if verbose else 5
    if result.unresolved_layers:
        names = result.unresolved_layers[:top_n]
        print(f"unresolved_layers: {len(result.unresolved_layers)} ({', '.join(names)})")
    if result.unresolved_blocks:
        names = result.unresolved_blocks[:top_n]
        print(f"unresolved_blocks: {len(result.unresolved_blocks)} ({', '.join(names)})")
    return 0


def _run_normalize(input_path: str, output_path: str, *, strict: bool = False) -> int:
    dxf_path = Path(input_path)
    if not dxf_path.exists():
        print(f"error: file not found: {dxf_path}", file=sys.stderr)
        return 2

    try:
        doc = open_document(dxf_path, strict=strict)
        save(doc, output_path)
    except Exception as exc:
        print(f"error: failed to normalize DXF: {exc}", file=sys.stderr)
        return 2

    print(f"input: {dxf_path}")
    print(f"output: {output_path}")
    print(f"total_entities: {len(doc.get_entities())}")
    print(f"field_errors: {len(doc.field_errors)}")
    return 0


def _run_convert(
    input_path: str,
    output_path: str,
    *,
    types: str | None = None,
    dxf_version: str = "R2010",
    strict: bool = False,
) -> int:
    dxf_path = Path(input_path)
    if not dxf_path.exists():
        print(f"error: file not found: {dxf_path}", file=sys.stderr)
        return 2

    try:
        result = export_dxf(
            str(dxf_path),
            output_path,
            types=types,
            dxf_version=dxf_version,
            strict=strict,
        )
    except Exception as exc:
        print(f"error: failed to convert DXF: {exc}", file=sys.stderr)
        return 2

    print(f"input: {result.source_path}")
    print(f"output: {result.output_path}")
    print(f"total_entities: {result.total_entities}")
    print(f"written_entities: {result.written_entities}")
    print(f"skipped_entities: {result.skipped_entities}")
    for dxftype, count in result.skipped_by_type.items():
        print(f"skipped[{dxftype}]: {count}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "verbose", False):
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.command == "inspect":
        return _run_inspect(args.path, verbose=bool(args.verbose), strict=bool(args.strict))
    if args.command == "normalize":
        return _run_normalize(args.input_path, args.output_path, strict=bool(args.strict))
    if args.command == "convert":
        return _run_convert(
            args.input_path,
            args.output_path,
            types=args.types,
            dxf_version=args.dxf_version,
            strict=bool(args.strict),
        )

    parser.print_help()
    return 0
