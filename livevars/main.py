"""livevars/main.py — command-line front end.

Usage examples
--------------
    # Print liveness for every function in a program document
    python -m livevars analyze program.json

    # One function, DOT output, post-order sweeps
    python -m livevars analyze program.json -F f --format dot --order postorder

    # Only check that the functions are well formed
    python -m livevars validate program.json

Exit codes
----------
    0   Success.
    1   The program document or one of its functions is malformed.
    2   Infrastructure failure (missing file, unwritable output, ...).
"""

from __future__ import annotations

import argparse
import logging
import sys
import textwrap
from pathlib import Path
from typing import List, Optional, Sequence, TextIO

from . import __version__
from .errors import LivenessError
from .ir import Function
from .loader import load_path, select
from .reporting import format_dot, format_json, format_text
from .solver import LivenessSolver, SweepOrder
from .validate import validate_function

_log = logging.getLogger("livevars")

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2


def _configure_logging(verbosity: int) -> None:
    """Set up the ``livevars`` logger: 0 → WARNING, 1 → INFO, 2+ → DEBUG."""
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    root = logging.getLogger("livevars")
    root.setLevel(level)
    if not any(getattr(h, "_livevars_cli", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
                datefmt="%H:%M:%S",
            )
        )
        handler._livevars_cli = True  # type: ignore[attr-defined]
        root.addHandler(handler)


def _resolve_path(raw: str, label: str = "file") -> Path:
    """Resolve *raw* to an absolute ``Path``, raising on missing files."""
    p = Path(raw).expanduser().resolve()
    if not p.exists():
        _log.error("%s not found: %s", label, p)
        raise SystemExit(EXIT_INFRA)
    return p


def _open_output(dest: Optional[str]) -> TextIO:
    if dest is None or dest == "-":
        return sys.stdout
    p = Path(dest).expanduser().resolve()
    p.parent.mkdir(parents=True, exist_ok=True)
    return open(p, "w", encoding="utf-8")


def _load(args: argparse.Namespace) -> List[Function]:
    path = _resolve_path(args.program, "program")
    return select(load_path(path), args.function)


# ===========================================================================
# Commands
# ===========================================================================

def cmd_analyze(args: argparse.Namespace) -> int:
    try:
        functions = _load(args)
        results = [
            LivenessSolver(fn, order=SweepOrder(args.order)).solve()
            for fn in functions
        ]
    except LivenessError as exc:
        _log.error("%s", exc)
        return EXIT_ERROR

    if args.format == "json":
        text = format_json(results) + "\n"
    elif args.format == "dot":
        text = "\n".join(format_dot(r) for r in results) + "\n"
    else:
        text = "".join(
            f"; function {r.function.name}\n{format_text(r)}" for r in results
        )

    try:
        out = _open_output(args.output)
    except OSError as exc:
        _log.error("cannot open output: %s", exc)
        return EXIT_INFRA
    try:
        out.write(text)
    finally:
        if out is not sys.stdout:
            out.close()
    return EXIT_OK


def cmd_validate(args: argparse.Namespace) -> int:
    try:
        functions = _load(args)
    except LivenessError as exc:
        _log.error("%s", exc)
        return EXIT_ERROR

    status = EXIT_OK
    for fn in functions:
        try:
            validate_function(fn)
        except LivenessError as exc:
            print(f"{fn.name}: {exc}")
            status = EXIT_ERROR
        else:
            print(f"{fn.name}: ok")
    return status


# ===========================================================================
# Parser
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="livevars",
        description="Intraprocedural liveness analysis over JSON program documents.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              livevars analyze program.json
              livevars analyze program.json -F main --format dot -o main.dot
              livevars validate program.json
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    def _add_input_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("program", help="JSON program document.")
        p.add_argument(
            "-F", "--function",
            action="append",
            default=None,
            metavar="NAME",
            help="Only this function (repeatable; default: all).",
        )

    p = subparsers.add_parser("analyze", help="Compute and print liveness.")
    _add_input_args(p)
    p.add_argument(
        "-f", "--format",
        choices=["text", "dot", "json"],
        default="text",
        help="Output format (default: text).",
    )
    p.add_argument(
        "--order",
        choices=[o.value for o in SweepOrder],
        default=SweepOrder.LAYOUT.value,
        help="Block sweep order (default: layout).",
    )
    p.add_argument(
        "-o", "--output",
        default=None,
        metavar="FILE",
        help='Output file ("-" or omit for stdout).',
    )
    p.set_defaults(func=cmd_analyze)

    p = subparsers.add_parser("validate", help="Check functions are well formed.")
    _add_input_args(p)
    p.set_defaults(func=cmd_validate)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the CLI and return an exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return args.func(args)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA
    except OSError as exc:
        _log.error("%s", exc)
        return EXIT_INFRA


if __name__ == "__main__":
    raise SystemExit(main())
