"""Error hierarchy for the register machine.

Every failure the machine can report is a MachineError. Parse errors are
raised while a program is loaded; execution errors are raised by the
instruction handlers and stop the run at the offending instruction.

    MachineError
    ├── ParseError
    │   ├── InvalidInstruction
    │   └── InvalidParameter
    └── ExecutionError
        ├── OutOfRange
        ├── DivisionByZero
        ├── MainNotFound
        ├── UnknownLabel
        └── CycleLimitExceeded
"""

from typing import Optional


class MachineError(Exception):
    """Base class for all register machine errors.

    Attributes:
        message: Human-readable description
        address: Instruction address the error refers to (if known)
        line_number: 1-based line number in the original source (if known)
        line: Source text of the offending line (if known)
    """

    kind = "MachineError"

    def __init__(
        self,
        message: str,
        address: Optional[int] = None,
        line_number: Optional[int] = None,
        line: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.address = address
        self.line_number = line_number
        self.line = line

    def with_context(
        self,
        address: Optional[int] = None,
        line_number: Optional[int] = None,
        line: Optional[str] = None,
    ) -> "MachineError":
        """Fill in missing location details and return self."""
        if self.address is None:
            self.address = address
        if self.line_number is None:
            self.line_number = line_number
        if self.line is None and line is not None:
            self.line = line.strip()
        return self

    def __str__(self) -> str:
        where = []
        if self.line_number is not None:
            where.append(f"line {self.line_number}")
        if self.address is not None:
            where.append(f"address {self.address}")
        text = f"{self.kind}: {self.message}"
        if where:
            text += f" ({', '.join(where)})"
        if self.line:
            text += f": {self.line}"
        return text


class ParseError(MachineError):
    """A source line could not be decoded into an instruction."""

    kind = "ParseError"


class InvalidInstruction(ParseError):
    """The leading token is not a known mnemonic."""

    kind = "InvalidInstruction"


class InvalidParameter(ParseError):
    """The operands do not match the mnemonic's grammar."""

    kind = "InvalidParameter"


class ExecutionError(MachineError):
    """An instruction failed while the machine was running."""

    kind = "ExecutionError"


class OutOfRange(ExecutionError):
    kind = "OutOfRange"


class DivisionByZero(ExecutionError):
    kind = "DivisionByZero"


class MainNotFound(ExecutionError):
    kind = "MainNotFound"


class UnknownLabel(ExecutionError):
    kind = "UnknownLabel"


class CycleLimitExceeded(ExecutionError):
    """Raised when the optional max_cycles safety limit is reached."""

    kind = "CycleLimitExceeded"
