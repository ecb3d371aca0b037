from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterable, Optional, Union

from .backend import EMIT_FORMATS, render_module
from .codegen import compile_program
from .config import TAPE_SIZE, CompilerOptions
from .errors import BfllvmError
from .jit import JITRunner
from .parser import count_instructions, format_program, load_program, max_depth

logger = logging.getLogger(__name__)


def _write_output(path: str, data: Union[str, bytes]) -> None:
    output_path = Path(path)
    if isinstance(data, bytes):
        output_path.write_bytes(data)
    else:
        output_path.write_text(data, encoding="utf-8")


def _to_input_bytes(data: str) -> Iterable[int]:
    return data.encode("utf-8")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compile Brainfuck to LLVM IR")
    parser.add_argument("source", help="Path to Brainfuck source file")
    parser.add_argument(
        "-o",
        "--output",
        help="Destination file for the emitted code (default: print to stdout)",
    )
    parser.add_argument(
        "--emit",
        choices=EMIT_FORMATS,
        default="llvm",
        help="Output form: textual LLVM IR, native assembly or an object file (default: llvm)",
    )
    parser.add_argument(
        "-O",
        "--optimize",
        action="store_true",
        help="Run the LLVM function simplification pipeline before emitting",
    )
    parser.add_argument(
        "--tape-size",
        type=int,
        default=TAPE_SIZE,
        help=f"Number of tape cells (default: {TAPE_SIZE})",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Reject unmatched brackets instead of closing them implicitly",
    )
    parser.add_argument(
        "--print-ast",
        action="store_true",
        help="Print the canonical form of the parsed program and tree statistics to stderr",
    )
    parser.add_argument(
        "--run",
        action="store_true",
        help="Execute the compiled program in-process after compilation",
    )
    parser.add_argument(
        "--input",
        help="Optional input string supplied to the program when running",
        default="",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        options = CompilerOptions(tape_size=args.tape_size, optimize=args.optimize)
        program = load_program(args.source, strict=args.strict)
        if args.print_ast:
            print(format_program(program), file=sys.stderr)
            print(
                f"instructions: {count_instructions(program)}, loop depth: {max_depth(program)}",
                file=sys.stderr,
            )
        if args.emit == "obj" and not args.output and not args.run:
            print("Object output requires --output", file=sys.stderr)
            return 1
        llvm_module = compile_program(program, options)
        emitted = render_module(llvm_module, args.emit)
    except BfllvmError as exc:
        print(f"Compilation error: {exc}", file=sys.stderr)
        return 1

    if args.output:
        _write_output(args.output, emitted)
    elif not args.run:
        sys.stdout.write(emitted)
        if not emitted.endswith("\n"):
            sys.stdout.write("\n")

    if args.run:
        logger.debug("running %s with %d input bytes", args.source, len(args.input))
        output = JITRunner(options).run(program, input_data=_to_input_bytes(args.input))
        stream = getattr(sys.stdout, "buffer", None)
        if stream is not None:
            sys.stdout.flush()
            stream.write(output)
            stream.flush()
        else:
            sys.stdout.write(output.decode("latin-1"))

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
