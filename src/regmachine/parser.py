"""Source parsing for the register machine.

Turns program text into a Program: a list of decoded instructions whose
indices are their addresses, plus the label table.

Pipeline:
    raw lines -> preprocess_lines -> resolve_labels + parse_line -> Program

Comment and blank lines are dropped before anything else, so the label
resolver and the parser must both see the output of preprocess_lines or
their addresses will not agree. Label declarations stay in the program as
no-op Label placeholders for the same reason.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Tuple

from .errors import InvalidInstruction, InvalidParameter, ParseError
from .instructions import (
    ARITHMETIC_TYPES,
    BRANCH_TYPES,
    Exit,
    Instruction,
    Jump,
    Label,
    LoadImmediate,
    Move,
    Print,
    Skip,
)
from .state import INT32_MAX, INT32_MIN

logger = logging.getLogger(__name__)

COMMENT_MARKER = "//"

_REG = r"\$([0-9]+)"
_IMM = r"(-?[0-9]+)"
_LABEL = r"@([A-Z]+)"

IGNORE_PATTERN = re.compile(r"^\s*(?:" + re.escape(COMMENT_MARKER) + r".*)?\s*$")
LABEL_PATTERN = re.compile(r"^\s*" + _LABEL + r"\s*$")
MNEMONIC_PATTERN = re.compile(r"^\s*([A-Z]+)(?:\s+.*)?$")

LI_PATTERN = re.compile(r"^\s*LI\s+" + _REG + r"\s+" + _IMM + r"\s*$")
MOVE_PATTERN = re.compile(r"^\s*MOVE\s+" + _REG + r"\s+" + _REG + r"\s*$")
ARITHMETIC_PATTERN = re.compile(
    r"^\s*(?:ADD|SUB|MUL|DIV|REM)\s+" + _REG + r"\s+" + _REG + r"\s+" + _REG + r"\s*$"
)
PRINT_PATTERN = re.compile(r"^\s*PRINT\s+" + _REG + r"\s*$")
JUMP_PATTERN = re.compile(r"^\s*JUMP\s+" + _LABEL + r"\s*$")
BRANCH_PATTERN = re.compile(
    r"^\s*(?:BEQ|BNE|BLT|BLE|BGT|BGE)\s+" + _REG + r"\s+" + _REG + r"\s+" + _LABEL + r"\s*$"
)
EXIT_PATTERN = re.compile(r"^\s*EXIT\s*$")
SKIP_PATTERN = re.compile(r"^\s*SKIP\s*$")


@dataclass
class Program:
    """A parsed program ready to be executed.

    Attributes:
        instructions: Decoded instructions; list index is the address
        labels: Label name (without '@') to address
        source: Preprocessed source text for each address
        line_numbers: 1-based line number in the raw source for each address
    """
    instructions: List[Instruction] = field(default_factory=list)
    labels: Dict[str, int] = field(default_factory=dict)
    source: List[str] = field(default_factory=list)
    line_numbers: List[int] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.instructions)


def split_source(source: str) -> List[str]:
    """Split program text into raw lines."""
    return source.splitlines()


def is_ignorable(line: str) -> bool:
    """True for blank lines and whole-line comments."""
    return IGNORE_PATTERN.match(line) is not None


def preprocess_lines(lines: Iterable[str]) -> List[str]:
    """Return the lines with comments and blank lines removed."""
    return [line for line in lines if not is_ignorable(line)]


def _numbered_lines(lines: Iterable[str]) -> List[Tuple[int, str]]:
    return [(number, line) for number, line in enumerate(lines, 1) if not is_ignorable(line)]


def resolve_labels(lines: Sequence[str]) -> Dict[str, int]:
    """Map every label declared in preprocessed lines to its address.

    A label declared twice resolves to its last declaration.
    """
    labels: Dict[str, int] = {}
    for address, line in enumerate(lines):
        match = LABEL_PATTERN.match(line)
        if match is None:
            continue
        name = match.group(1)
        if name in labels:
            logger.warning(
                "Label @%s redeclared at address %d (was %d); last declaration wins",
                name, address, labels[name],
            )
        labels[name] = address
    return labels


def parse_line(line: str) -> Instruction:
    """Decode one preprocessed source line.

    Args:
        line: A single line that is not blank or a comment

    Returns:
        The decoded Instruction (a Label placeholder for label declarations)

    Raises:
        InvalidInstruction: If the mnemonic is missing or unknown
        InvalidParameter: If the operands don't fit the mnemonic
    """
    label_match = LABEL_PATTERN.match(line)
    if label_match:
        return Label(label_match.group(1))

    mnemonic_match = MNEMONIC_PATTERN.match(line)
    if mnemonic_match is None:
        raise InvalidInstruction("no instruction found", line=line.strip())

    mnemonic = mnemonic_match.group(1)

    if mnemonic == "LI":
        match = _require(LI_PATTERN, line, mnemonic)
        value = int(match.group(2))
        if value < INT32_MIN or value > INT32_MAX:
            raise InvalidParameter(
                f"immediate {value} does not fit in 32 bits", line=line.strip()
            )
        return LoadImmediate(int(match.group(1)), value)

    if mnemonic == "MOVE":
        match = _require(MOVE_PATTERN, line, mnemonic)
        return Move(int(match.group(1)), int(match.group(2)))

    if mnemonic in ARITHMETIC_TYPES:
        match = _require(ARITHMETIC_PATTERN, line, mnemonic)
        return ARITHMETIC_TYPES[mnemonic](
            int(match.group(1)), int(match.group(2)), int(match.group(3))
        )

    if mnemonic == "PRINT":
        match = _require(PRINT_PATTERN, line, mnemonic)
        return Print(int(match.group(1)))

    if mnemonic == "JUMP":
        match = _require(JUMP_PATTERN, line, mnemonic)
        return Jump(match.group(1))

    if mnemonic in BRANCH_TYPES:
        match = _require(BRANCH_PATTERN, line, mnemonic)
        return BRANCH_TYPES[mnemonic](
            int(match.group(1)), int(match.group(2)), match.group(3)
        )

    if mnemonic == "EXIT":
        _require(EXIT_PATTERN, line, mnemonic)
        return Exit()

    if mnemonic == "SKIP":
        _require(SKIP_PATTERN, line, mnemonic)
        return Skip()

    raise InvalidInstruction(f"unknown instruction {mnemonic!r}", line=line.strip())


def _require(pattern: "re.Pattern[str]", line: str, mnemonic: str) -> "re.Match[str]":
    match = pattern.match(line)
    if match is None:
        raise InvalidParameter(f"invalid operands for {mnemonic}", line=line.strip())
    return match


def parse_program(lines: Iterable[str]) -> Program:
    """Parse raw source lines into a Program.

    Args:
        lines: Raw program lines, comments and blank lines included

    Returns:
        Program with instructions, labels and per-address source context

    Raises:
        ParseError: On the first malformed line, with its address and
            line number attached
    """
    numbered = _numbered_lines(lines)
    text = [line for _, line in numbered]

    program = Program(
        labels=resolve_labels(text),
        source=[line.strip() for line in text],
        line_numbers=[number for number, _ in numbered],
    )

    for address, (number, line) in enumerate(numbered):
        try:
            program.instructions.append(parse_line(line))
        except ParseError as e:
            e.with_context(address=address, line_number=number, line=line)
            raise

    logger.debug(
        "Parsed %d instructions, %d labels", len(program.instructions), len(program.labels)
    )
    return program
