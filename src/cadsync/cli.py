from __future__ import annotations

import argparse
import json
import logging
import sys
from collections import Counter, OrderedDict
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Sequence

from .convert import save_dxf
from .document import CadDocument, decode
from .encoder import DEFAULT_ACAD_VERSION, EncodeResult, encode_dxf
from .entity import SUPPORTED_ENTITY_TYPES, Unknown
from .errors import DecodeWarning
from .script import encode_script


def _package_version() -> str:
    try:
        return version("cadsync")
    except PackageNotFoundError:
        return "0.0.0"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cadsync",
        description="Decode DXF text into JSON and encode it back to DXF or AutoCAD scripts.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_package_version()}",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command")

    inspect_parser = subparsers.add_parser("inspect", help="Show entity counts and decode warnings.")
    inspect_parser.add_argument("path", help="Path to a DXF or JSON document.")

    json_parser = subparsers.add_parser("to-json", help="Decode a DXF file into a JSON document.")
    json_parser.add_argument("path", help="Path to a DXF file.")
    json_parser.add_argument("-o", "--output", default=None, help="Output path (default: stdout).")

    dxf_parser = subparsers.add_parser("to-dxf", help="Encode a document as minimal DXF text.")
    dxf_parser.add_argument("path", help="Path to a DXF or JSON document.")
    dxf_parser.add_argument("output_path", help="Path to output DXF file.")
    dxf_parser.add_argument(
        "--acad-version",
        default=DEFAULT_ACAD_VERSION,
        help="Value written to $ACADVER, e.g. AC1015.",
    )
    dxf_parser.add_argument(
        "--passthrough-unknown",
        action="store_true",
        help="Write undecoded entities back from their raw group codes.",
    )
    dxf_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail if any entity cannot be written.",
    )

    script_parser = subparsers.add_parser("to-script", help="Encode a document as an AutoCAD script.")
    script_parser.add_argument("path", help="Path to a DXF or JSON document.")
    script_parser.add_argument("output_path", help="Path to output .scr file.")
    script_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail if any entity cannot be written.",
    )

    convert_parser = subparsers.add_parser(
        "convert",
        help="Write a full DXF file using ezdxf as the writing backend.",
    )
    convert_parser.add_argument("path", help="Path to a DXF or JSON document.")
    convert_parser.add_argument("output_path", help="Path to output DXF file.")
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


def _load(path: str) -> tuple[CadDocument, tuple[DecodeWarning, ...]]:
    file_path = Path(path)
    text = file_path.read_text(encoding="utf-8", errors="replace")
    if file_path.suffix.lower() == ".json":
        return CadDocument.from_json(text), ()
    result = decode(text, filename=file_path.name)
    return result.document, result.warnings


def _load_or_report(path: str) -> tuple[CadDocument, tuple[DecodeWarning, ...]] | None:
    if not Path(path).exists():
        print(f"error: file not found: {path}", file=sys.stderr)
        return None
    try:
        return _load(path)
    except Exception as exc:
        print(f"error: failed to read document: {exc}", file=sys.stderr)
        return None


def _run_inspect(path: str) -> int:
    loaded = _load_or_report(path)
    if loaded is None:
        return 2
    doc, warnings = loaded

    counts: OrderedDict[str, int] = OrderedDict()
    unknown_names: Counter[str] = Counter()
    for entity in doc.entities:
        counts[entity.dxftype] = counts.get(entity.dxftype, 0) + 1
        if isinstance(entity, Unknown):
            unknown_names[entity.name] += 1

    print(f"file: {path}")
    print(f"total_entities: {len(doc.entities)}")
    for dxftype in SUPPORTED_ENTITY_TYPES:
        count = counts.get(dxftype, 0)
        if count > 0:
            print(f"{dxftype}: {count}")
    for name, count in sorted(unknown_names.items()):
        print(f"unknown[{name}]: {count}")
    print(f"layers: {', '.join(doc.layers())}")

    points = [point for entity in doc.entities for point in entity.to_points()]
    if points:
        xs = [point[0] for point in points]
        ys = [point[1] for point in points]
        print(f"extents: ({min(xs):g}, {min(ys):g}) - ({max(xs):g}, {max(ys):g})")

    warning_counts = Counter(warning.kind for warning in warnings)
    for kind, count in sorted(warning_counts.items()):
        print(f"warnings[{kind}]: {count}")
    return 0


def _run_to_json(path: str, output: str | None) -> int:
    loaded = _load_or_report(path)
    if loaded is None:
        return 2
    doc, warnings = loaded
    text = json.dumps(doc.to_dict(), indent=2)
    if output is None:
        print(text)
    else:
        Path(output).write_text(text + "\n", encoding="utf-8")
        print(f"output: {output}")
        print(f"entities: {len(doc.entities)}")
    for warning in warnings:
        print(f"warning: {warning.message}", file=sys.stderr)
    return 0


def _report_encode(path: str, output_path: str, result: EncodeResult) -> None:
    print(f"input: {path}")
    print(f"output: {output_path}")
    print(f"total_entities: {result.total_entities}")
    print(f"written_entities: {result.written_entities}")
    print(f"skipped_entities: {result.skipped_entities}")
    for dxftype, count in result.skipped_by_type.items():
        print(f"skipped[{dxftype}]: {count}")


def _run_to_dxf(
    path: str,
    output_path: str,
    *,
    acad_version: str = DEFAULT_ACAD_VERSION,
    passthrough_unknown: bool = False,
    strict: bool = False,
) -> int:
    loaded = _load_or_report(path)
    if loaded is None:
        return 2
    try:
        result = encode_dxf(
            loaded[0],
            acad_version=acad_version,
            passthrough_unknown=passthrough_unknown,
            strict=strict,
        )
    except Exception as exc:
        print(f"error: failed to encode DXF: {exc}", file=sys.stderr)
        return 2
    Path(output_path).write_text(result.text, encoding="utf-8")
    _report_encode(path, output_path, result)
    return 0


def _run_to_script(path: str, output_path: str, *, strict: bool = False) -> int:
    loaded = _load_or_report(path)
    if loaded is None:
        return 2
    try:
        result = encode_script(loaded[0], strict=strict)
    except Exception as exc:
        print(f"error: failed to encode script: {exc}", file=sys.stderr)
        return 2
    Path(output_path).write_text(result.text, encoding="utf-8")
    _report_encode(path, output_path, result)
    return 0


def _run_convert(path: str, output_path: str, *, dxf_version: str = "R2010", strict: bool = False) -> int:
    loaded = _load_or_report(path)
    if loaded is None:
        return 2
    try:
        result = save_dxf(loaded[0], output_path, dxf_version=dxf_version, strict=strict)
    except Exception as exc:
        print(f"error: failed to convert document to DXF: {exc}", file=sys.stderr)
        return 2
    print(f"input: {path}")
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
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.command == "inspect":
        return _run_inspect(args.path)
    if args.command == "to-json":
        return _run_to_json(args.path, args.output)
    if args.command == "to-dxf":
        return _run_to_dxf(
            args.path,
            args.output_path,
            acad_version=args.acad_version,
            passthrough_unknown=bool(args.passthrough_unknown),
            strict=bool(args.strict),
        )
    if args.command == "to-script":
        return _run_to_script(args.path, args.output_path, strict=bool(args.strict))
    if args.command == "convert":
        return _run_convert(
            args.path,
            args.output_path,
            dxf_version=args.dxf_version,
            strict=bool(args.strict),
        )

    parser.print_help()
    return 0
