from __future__ import annotations

import argparse
import logging
import sys
from contextlib import ExitStack
from dataclasses import replace
from pathlib import Path
from time import perf_counter
from typing import List, Optional

from .config import ParserOptions, TransformConfig
from .errors import InvariantViolation, MalformedInput, WriteFailure
from .pipeline import remove_idref_values

EXIT_OK = 0
EXIT_MALFORMED = 1
EXIT_USAGE = 2
EXIT_WRITE = 3
EXIT_INTERNAL = 4


def parse_args(argv: Optional[List[str]], defaults: TransformConfig) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="idrefstrip",
        description="Copy an XML document, removing the text of elements that carry an IDREF attribute (streaming).",
    )
    p.add_argument("--in", dest="in_path", required=True, help="Input XML file ('-' = stdin)")
    p.add_argument("--out", dest="out_path", required=True, help="Output XML file ('-' = stdout)")
    p.add_argument("--attr", default=defaults.attribute_name, help="Trigger attribute local name (default: %(default)s)")
    p.add_argument("--chunk-size", type=int, default=defaults.chunk_size, help="Bytes read per chunk (default: %(default)s)")
    p.add_argument(
        "--huge-tree",
        action=argparse.BooleanOptionalAction,
        default=defaults.parser.huge_tree,
        help="Lift lxml's depth/size limits (default: %(default)s)",
    )
    p.add_argument("--encoding", default=defaults.parser.encoding, help="Force input encoding (default: declared / UTF-8)")
    p.add_argument("--stats", action="store_true", help="Print run statistics")
    p.add_argument("--verbose", action="store_true", help="Debug logging")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    try:
        defaults = TransformConfig.from_env()
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_USAGE
    args = parse_args(argv, defaults)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = replace(
            defaults,
            attribute_name=args.attr,
            chunk_size=args.chunk_size,
            parser=ParserOptions(huge_tree=args.huge_tree, encoding=args.encoding or None),
        )
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_USAGE

    to_stdout = args.out_path == "-"
    # keep stdout clean for the document itself
    msg_stream = sys.stderr if to_stdout else sys.stdout

    if args.in_path != "-" and not Path(args.in_path).exists():
        print(f"ERROR: XML not found: {args.in_path}", file=sys.stderr)
        return EXIT_USAGE

    t0 = perf_counter()
    try:
        with ExitStack() as stack:
            if args.in_path == "-":
                src = sys.stdin.buffer
            else:
                try:
                    src = stack.enter_context(open(args.in_path, "rb"))
                except OSError as e:
                    print(f"ERROR: cannot open input: {e}", file=sys.stderr)
                    return EXIT_USAGE
            if to_stdout:
                dst = sys.stdout.buffer
            else:
                out_path = Path(args.out_path)
                try:
                    out_path.parent.mkdir(parents=True, exist_ok=True)
                    dst = stack.enter_context(out_path.open("wb"))
                except OSError as e:
                    raise WriteFailure(f"cannot open output: {e}") from e

            report = remove_idref_values(src, dst, config)
    except MalformedInput as e:
        print(f"ERROR: malformed input: {e}", file=sys.stderr)
        return EXIT_MALFORMED
    except WriteFailure as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_WRITE
    except InvariantViolation as e:
        print(f"ERROR: internal: {e}", file=sys.stderr)
        return EXIT_INTERNAL

    total_s = perf_counter() - t0
    print(f"OK: wrote XML -> {args.out_path} ({report.bytes_written} bytes)", file=msg_stream)
    if args.stats:
        print(
            f"STATS: elements={report.elements} flagged={report.flagged_elements} "
            f"text_kept={report.text_forwarded} text_removed={report.text_suppressed} "
            f"chars_removed={report.chars_suppressed} max_depth={report.max_depth} "
            f"total_time={total_s:.2f}s",
            file=msg_stream,
        )
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
