"""regmachine: Register-machine interpreter for a small labelled assembly language.

A program is plain text, one instruction per line:

    // sum two numbers
    @MAIN
        LI $1 5
        LI $2 3
        ADD $3 $1 $2
        PRINT $3        prints "3 -> 8"
        EXIT

Architecture:
    SOURCE -> PREPROCESS -> LABELS + PARSE -> PROGRAM
    PROGRAM -> FETCH -> REGISTRY -> HANDLER -> STATE

Modules:
    errors: MachineError hierarchy (parse and execution errors)
    instructions: One frozen dataclass per mnemonic
    parser: Line grammar, label resolver and program loader
    state: MachineState with the 32-register file and PC
    registry: Frozen handler registry, one handler per instruction
    machine: Machine fetch-decode-execute engine
"""

__version__ = "0.1.0"

from .errors import (
    MachineError,
    ParseError,
    InvalidInstruction,
    InvalidParameter,
    ExecutionError,
    OutOfRange,
    DivisionByZero,
    MainNotFound,
    UnknownLabel,
    CycleLimitExceeded,
)
from .state import MachineState, REGISTER_COUNT
from .parser import Program, parse_line, parse_program, preprocess_lines, resolve_labels
from .registry import OperationRegistry
from .machine import Machine, MachineStatus, RunResult, run_program

__all__ = [
    "MachineError",
    "ParseError",
    "InvalidInstruction",
    "InvalidParameter",
    "ExecutionError",
    "OutOfRange",
    "DivisionByZero",
    "MainNotFound",
    "UnknownLabel",
    "CycleLimitExceeded",
    "MachineState",
    "REGISTER_COUNT",
    "Program",
    "parse_line",
    "parse_program",
    "preprocess_lines",
    "resolve_labels",
    "OperationRegistry",
    "Machine",
    "MachineStatus",
    "RunResult",
    "run_program",
]
