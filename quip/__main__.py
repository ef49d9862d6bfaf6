"""CLI entry point for the Quip interpreter.

Usage:
    python -m quip [-v|-vv|-vvv] <program_file>
    python -m quip [-v...] -          (read the program from stdin)

Options:
  -v                    Increase debug verbosity (can be repeated)
  --debug-file FILE     Write debug information to FILE instead of stderr
  --max-iterations N    Abort a while loop after N iterations (0 disables the limit)
  --max-call-depth N    Abort when function calls nest deeper than N

The program's output lines are written to stdout. If the program fails,
the output produced so far is still printed and the error is reported on
stderr with the offending line.

Indented bodies are indented by four spaces and must not contain empty
lines; an empty line ends the body it appears in.
"""

import argparse
import sys
from pathlib import Path
from .interpreter import Interpreter
from .errors import QuipError


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Quip language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('--debug-file', metavar='FILE', help='write debug output to FILE instead of stderr')
    parser.add_argument('--max-iterations', type=int, default=1_000_000,
                        help='maximum iterations per while statement (0 disables the limit)')
    parser.add_argument('--max-call-depth', type=int, default=500, help='maximum nested function call depth')
    parser.add_argument('program', help='Quip program file (.quip) to execute, or - for stdin')
    args = parser.parse_args(argv)

    if args.program == '-':
        source = sys.stdin.read()
    else:
        program_file = Path(args.program)
        if not program_file.exists():
            print(f"Error: file {program_file} not found", file=sys.stderr)
            sys.exit(1)
        with open(program_file, 'r', encoding='utf-8') as f:
            source = f.read()

    interpreter = Interpreter(
        debug_level=args.v,
        debug_file=args.debug_file,
        max_iterations=args.max_iterations,
        max_call_depth=args.max_call_depth,
    )
    try:
        output = interpreter.run(source.splitlines())
    except QuipError as e:
        for line in e.output:
            print(line)
        print(f"Runtime error: {e.describe()}", file=sys.stderr)
        sys.exit(1)
    finally:
        interpreter.close()
    for line in output:
        print(line)


if __name__ == '__main__':
    main()
