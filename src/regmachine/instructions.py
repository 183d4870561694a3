"""Instruction variants for the register machine.

Each mnemonic has its own frozen dataclass carrying its decoded operands.
Register operands are plain non-negative ints and are not range-checked
here; the handlers check them against the register file at execution time.
Label operands are stored without the leading '@'.

Instruction set:
    LI $d imm           Load immediate
    MOVE $d $s          Copy register
    ADD/SUB/MUL $d $a $b    Wrapping 32-bit arithmetic
    DIV/REM $d $a $b    Truncating division / remainder
    PRINT $r            Print register value
    EXIT                Stop execution
    SKIP                No operation
    JUMP @L             Unconditional jump
    BEQ/BNE/BLT/BLE/BGT/BGE $a $b @L    Conditional jump
"""

from dataclasses import dataclass
from typing import ClassVar, Tuple


@dataclass(frozen=True)
class Instruction:
    """Base class of every decoded instruction."""

    mnemonic: ClassVar[str] = ""

    def registers(self) -> Tuple[int, ...]:
        """Register indices referenced by this instruction."""
        return ()

    def __str__(self) -> str:
        return self.mnemonic


@dataclass(frozen=True)
class Label(Instruction):
    """Placeholder left at the address of a label declaration."""

    mnemonic: ClassVar[str] = "LABEL"
    name: str

    def __str__(self) -> str:
        return f"@{self.name}"


@dataclass(frozen=True)
class Skip(Instruction):
    mnemonic: ClassVar[str] = "SKIP"


@dataclass(frozen=True)
class Exit(Instruction):
    mnemonic: ClassVar[str] = "EXIT"


@dataclass(frozen=True)
class LoadImmediate(Instruction):
    mnemonic: ClassVar[str] = "LI"
    dest: int
    value: int

    def registers(self) -> Tuple[int, ...]:
        return (self.dest,)

    def __str__(self) -> str:
        return f"LI ${self.dest} {self.value}"


@dataclass(frozen=True)
class Move(Instruction):
    mnemonic: ClassVar[str] = "MOVE"
    dest: int
    src: int

    def registers(self) -> Tuple[int, ...]:
        return (self.dest, self.src)

    def __str__(self) -> str:
        return f"MOVE ${self.dest} ${self.src}"


@dataclass(frozen=True)
class Print(Instruction):
    mnemonic: ClassVar[str] = "PRINT"
    reg: int

    def registers(self) -> Tuple[int, ...]:
        return (self.reg,)

    def __str__(self) -> str:
        return f"PRINT ${self.reg}"


@dataclass(frozen=True)
class Arithmetic(Instruction):
    """Three-register operation: dest = src1 <op> src2."""

    dest: int
    src1: int
    src2: int

    def registers(self) -> Tuple[int, ...]:
        return (self.dest, self.src1, self.src2)

    def __str__(self) -> str:
        return f"{self.mnemonic} ${self.dest} ${self.src1} ${self.src2}"


@dataclass(frozen=True)
class Add(Arithmetic):
    mnemonic: ClassVar[str] = "ADD"


@dataclass(frozen=True)
class Sub(Arithmetic):
    mnemonic: ClassVar[str] = "SUB"


@dataclass(frozen=True)
class Mul(Arithmetic):
    mnemonic: ClassVar[str] = "MUL"


@dataclass(frozen=True)
class Div(Arithmetic):
    mnemonic: ClassVar[str] = "DIV"


@dataclass(frozen=True)
class Rem(Arithmetic):
    mnemonic: ClassVar[str] = "REM"


@dataclass(frozen=True)
class Jump(Instruction):
    mnemonic: ClassVar[str] = "JUMP"
    label: str

    def __str__(self) -> str:
        return f"JUMP @{self.label}"


@dataclass(frozen=True)
class Branch(Instruction):
    """Conditional jump to label when src1 <cond> src2 holds."""

    src1: int
    src2: int
    label: str

    def registers(self) -> Tuple[int, ...]:
        return (self.src1, self.src2)

    def __str__(self) -> str:
        return f"{self.mnemonic} ${self.src1} ${self.src2} @{self.label}"


@dataclass(frozen=True)
class BranchEqual(Branch):
    mnemonic: ClassVar[str] = "BEQ"


@dataclass(frozen=True)
class BranchNotEqual(Branch):
    mnemonic: ClassVar[str] = "BNE"


@dataclass(frozen=True)
class BranchLessThan(Branch):
    mnemonic: ClassVar[str] = "BLT"


@dataclass(frozen=True)
class BranchLessEqual(Branch):
    mnemonic: ClassVar[str] = "BLE"


@dataclass(frozen=True)
class BranchGreaterThan(Branch):
    mnemonic: ClassVar[str] = "BGT"


@dataclass(frozen=True)
class BranchGreaterEqual(Branch):
    mnemonic: ClassVar[str] = "BGE"


# Concrete variants, one per executable case
INSTRUCTION_TYPES = (
    Label,
    Skip,
    Exit,
    LoadImmediate,
    Move,
    Print,
    Add,
    Sub,
    Mul,
    Div,
    Rem,
    Jump,
    BranchEqual,
    BranchNotEqual,
    BranchLessThan,
    BranchLessEqual,
    BranchGreaterThan,
    BranchGreaterEqual,
)

ARITHMETIC_TYPES = {cls.mnemonic: cls for cls in (Add, Sub, Mul, Div, Rem)}

BRANCH_TYPES = {
    cls.mnemonic: cls
    for cls in (
        BranchEqual,
        BranchNotEqual,
        BranchLessThan,
        BranchLessEqual,
        BranchGreaterThan,
        BranchGreaterEqual,
    )
}
