#!/usr/bin/env python3
"""regmachine Command Line Interface.

Run register-machine programs.

Usage:
    python main.py --program programs/sum.rm
    python main.py --inline "@MAIN; LI $1 42; PRINT $1; EXIT"
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from regmachine import Machine, MachineError


def print_trace(machine: Machine) -> None:
    """Print execution trace in human-readable format."""
    print("=" * 70)
    print("EXECUTION TRACE")
    print("=" * 70)

    for entry in machine.trace:
        status = "OK" if not entry.error else f"ERROR: {entry.error}"
        print(f"\n[Cycle {entry.cycle}] {status}")
        print(f"  {entry.address:>4}: {entry.source}")

        pre_regs = entry.pre_state.get("registers", {})
        post_regs = entry.post_state.get("registers", {})
        changes = [
            f"{reg}: {pre_regs[reg]} → {post_regs[reg]}"
            for reg in pre_regs
            if pre_regs[reg] != post_regs.get(reg, pre_regs[reg])
        ]
        if changes:
            print(f"  Changes: {', '.join(changes)}")

        pre_pc = entry.pre_state.get("pc", 0)
        post_pc = entry.post_state.get("pc", 0)
        if post_pc != pre_pc + 1:
            print(f"  PC: {pre_pc} → {post_pc}")

        for line in entry.output:
            print(f"  Output: {line}")

    print("\n" + "=" * 70)
    print("FINAL STATE")
    print("=" * 70)
    summary = machine.get_summary()
    print(f"  Status: {summary['status']}")
    print(f"  Cycles: {summary['cycles']}")
    print(f"  PC: {summary['pc']}")
    nonzero = {k: v for k, v in summary["registers"].items() if v != 0}
    print(f"  Registers: {nonzero}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="regmachine: register machine interpreter",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Run a program file
    python main.py --program programs/sum.rm

    # Run with full trace output
    python main.py --program programs/countdown.rm --trace

    # Run inline source (separate lines with ;)
    python main.py --inline "@MAIN; LI $1 42; PRINT $1; EXIT"
        """
    )

    parser.add_argument(
        "--program", "-p",
        type=str,
        help="Path to program file"
    )
    parser.add_argument(
        "--inline", "-i",
        type=str,
        help="Inline program (separate lines with ;)"
    )
    parser.add_argument(
        "--max-cycles",
        type=int,
        default=0,
        help="Maximum execution cycles (safety limit). Default: 0 (unlimited)"
    )
    parser.add_argument(
        "--trace", "-t",
        action="store_true",
        help="Print full execution trace"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only print program output"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log every executed instruction"
    )
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.program and not args.inline:
        parser.error("Either --program or --inline is required")
    if args.max_cycles < 0:
        parser.error("--max-cycles must not be negative")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s:%(name)s:%(message)s",
    )

    if args.program:
        program_path = Path(args.program)
        if not program_path.exists():
            print(f"Error: Program file not found: {args.program}", file=sys.stderr)
            return 1
        lines = program_path.read_text().splitlines()
    else:
        lines = args.inline.split(";")

    machine = Machine(
        max_cycles=args.max_cycles or None,
        record_trace=args.trace,
    )

    try:
        machine.load_program(lines)
        result = machine.run()
    except MachineError as e:
        if args.trace:
            print_trace(machine)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.trace:
        print_trace(machine)
    elif not args.quiet:
        print(f"Cycles: {result.cycles}", file=sys.stderr)

    if not result.success:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
