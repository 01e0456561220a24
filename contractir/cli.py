import argparse
import dataclasses
import json
import logging
import sys
from collections.abc import Sequence

from contractir.assembler import encode_all
from contractir.config import EncoderConfig
from contractir.context import EncodingContext
from contractir.load import load_declarations
from contractir.report import format_report, report_json
from contractir.result import Err, Ok
from contractir.serialization import normalize_ids, serialize, spec_to_json


def handle_encode(
    files: Sequence[str],
    config: EncoderConfig,
    *,
    as_json: bool,
    workers: int,
) -> int:
    """Encode every declaration in the given recognizer files and print them."""
    any_failure = False

    for path in files:
        match load_declarations(path):
            case Err(e):
                print(f"{path}: {e}", file=sys.stderr)
                any_failure = True
                continue
            case Ok(decls):
                pass

        ctx = EncodingContext(config=config)
        report = encode_all(ctx, decls, workers=workers)
        any_failure = any_failure or not report.ok

        if as_json:
            out = {
                "file": path,
                "specifications": {
                    str(d.key): spec_to_json(spec)
                    for d in decls
                    if d.key in report.encoded and (spec := ctx.specs.get(d.key)) is not None
                },
                "report": report_json(report),
            }
            text = json.dumps(out, indent=2)
            print(normalize_ids(text) if config.hide_uuids else text)
            continue

        for d in decls:
            if d.key not in report.encoded or (spec := ctx.specs.get(d.key)) is None:
                continue
            text = serialize(spec)
            print(f"// {d.name}")
            print(normalize_ids(text) if config.hide_uuids else text)
        print(format_report(report, source=path), end="", file=sys.stderr)

    return 1 if any_failure else 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="contractir",
        description="Encode function contracts into the assertion IR",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    encode_parser = subparsers.add_parser(
        "encode",
        help="Encode recognizer output (JSON) and print the specification records.",
    )
    encode_parser.add_argument(
        "files",
        nargs="+",
        metavar="FILE",
        help="Recognizer JSON file(s).",
    )
    encode_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Print records as JSON instead of the canonical text form.",
    )
    encode_parser.add_argument(
        "--hide-uuids",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Mask specification ids (default: CONTRACTIR_HIDE_UUIDS).",
    )
    encode_parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Encode declarations on this many threads.",
    )

    args = parser.parse_args(argv)

    match EncoderConfig.from_env():
        case Ok(config):
            pass
        case Err(e):
            print(f"Invalid configuration: {e}", file=sys.stderr)
            return 2

    logging.basicConfig(
        level=config.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )

    match args.command:
        case "encode":
            if args.hide_uuids is not None:
                config = dataclasses.replace(config, hide_uuids=args.hide_uuids)
            return handle_encode(
                args.files, config, as_json=args.json, workers=args.workers
            )
        case None:
            parser.print_help()
            return 1
        case _:
            print(f"Unknown command: {args.command}", file=sys.stderr)
            parser.print_help()
            return 1


if __name__ == "__main__":
    sys.exit(main())
