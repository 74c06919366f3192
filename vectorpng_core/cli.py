from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys

from vectorpng_core.core import (
    PRESET_BACKGROUNDS,
    ConversionError,
    ConversionFailure,
    ConversionRequest,
    ConverterConfig,
    TargetBox,
    convert_request,
    inspect_document,
    is_svg_source,
    parse_background,
)


LOGGER = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="vectorpng")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    conv = sub.add_parser("convert", help="Convert an SVG document to PNG.")
    conv.add_argument("source", type=Path)
    conv.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output path. Default: source name with .svg replaced by .png.",
    )
    conv.add_argument(
        "--width",
        type=int,
        default=None,
        help="Target width in [1, 4096]. Default: the document's own width, capped at 2048.",
    )
    conv.add_argument(
        "--height",
        type=int,
        default=None,
        help="Target height in [1, 4096]. Default: the document's own height, capped at 2048.",
    )
    conv.add_argument(
        "--no-keep-aspect",
        action="store_true",
        help="Stretch to exactly width x height instead of fitting inside it.",
    )
    conv.add_argument(
        "--background",
        default="transparent",
        help=f"`transparent`, #RRGGBB, or one of: {', '.join(sorted(PRESET_BACKGROUNDS))}.",
    )

    inspect = sub.add_parser("inspect", help="Print intrinsic size and proposed target as JSON.")
    inspect.add_argument("source", type=Path)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = ConverterConfig.from_env()

    if args.command == "convert":
        return _run_convert(parser, args, config)
    if args.command == "inspect":
        return _run_inspect(parser, args, config)
    raise RuntimeError(f"unsupported command: {args.command}")


def _run_convert(parser: argparse.ArgumentParser, args: argparse.Namespace, config: ConverterConfig) -> int:
    document = _read_source(parser, args.source)
    try:
        background = parse_background(args.background)
    except ValueError as exc:
        parser.error(str(exc))

    width, height = args.width, args.height
    if width is None or height is None:
        try:
            _, proposed = inspect_document(document, config=config)
        except ConversionError as exc:
            return _report(ConversionFailure(kind=exc.kind, detail=str(exc)))
        width = proposed.width if width is None else width
        height = proposed.height if height is None else height
    try:
        target = TargetBox(width=width, height=height, maintain_aspect_ratio=not args.no_keep_aspect)
    except ValueError as exc:
        parser.error(str(exc))

    request = ConversionRequest(
        document=document,
        target=target,
        background=background,
        source_name=args.source.name,
    )
    outcome = convert_request(request, config=config)
    if isinstance(outcome, ConversionFailure):
        return _report(outcome)
    out_path = args.output if args.output is not None else args.source.with_name(request.output_name)
    out_path.write_bytes(outcome.data)
    print(f"converted: {out_path} {outcome.final_size.width}x{outcome.final_size.height}")
    return 0


def _run_inspect(parser: argparse.ArgumentParser, args: argparse.Namespace, config: ConverterConfig) -> int:
    document = _read_source(parser, args.source)
    try:
        intrinsic, proposed = inspect_document(document, config=config)
    except ConversionError as exc:
        return _report(ConversionFailure(kind=exc.kind, detail=str(exc)))
    summary = {
        "source": str(args.source),
        "intrinsic": None if intrinsic is None else {"width": intrinsic.width, "height": intrinsic.height},
        "proposed_target": {
            "width": proposed.width,
            "height": proposed.height,
            "maintain_aspect_ratio": proposed.maintain_aspect_ratio,
        },
    }
    print(json.dumps(summary, indent=2, sort_keys=True))
    return 0


def _read_source(parser: argparse.ArgumentParser, source: Path) -> bytes:
    if not source.is_file():
        parser.error(f"source not found: {source}")
    if not is_svg_source(source.name):
        LOGGER.warning("source %s has no .svg extension; trying anyway", source)
    return source.read_bytes()


def _report(failure: ConversionFailure) -> int:
    print(f"conversion failed [{failure.kind}]: {failure.detail}", file=sys.stderr)
    return 1
