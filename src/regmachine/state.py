"""MachineState: Immutable state representation for the register machine.

State Components:
    - Registers: $0-$31 (32 signed 32-bit integers, $0 hard-wired to 0)
    - PC: Instruction pointer (address into the program)
    - Halted: Set once EXIT has executed
    - Cycle count: Number of executed instructions

All state mutations return new state objects, so every intermediate state
can be kept in an execution trace.
"""

from dataclasses import dataclass, field
from typing import Dict, List

from .errors import OutOfRange


REGISTER_COUNT = 32

# 32-bit signed integer bounds
INT32_MIN = -(2**31)
INT32_MAX = (2**31) - 1


def wrap_int32(value: int) -> int:
    """Wrap an arbitrary int into the signed 32-bit range (two's complement)."""
    return ((value - INT32_MIN) % (2**32)) + INT32_MIN


@dataclass
class MachineState:
    """Immutable machine state.

    Attributes:
        registers: The 32 register values, indexed by register number
        pc: Instruction pointer (current instruction address)
        halted: Whether EXIT has executed
        cycle_count: Number of executed instructions
    """
    registers: List[int] = field(default_factory=lambda: [0] * REGISTER_COUNT)
    pc: int = 0
    halted: bool = False
    cycle_count: int = 0

    def snapshot(self) -> dict:
        """Create a copy of the current state for tracing.

        Returns:
            Dictionary with registers (by "$n" name), pc, halted and cycle count
        """
        return {
            "registers": self.dump_registers(),
            "pc": self.pc,
            "halted": self.halted,
            "cycle_count": self.cycle_count,
        }

    def validate(self) -> bool:
        """Validate state integrity.

        Checks:
            - Exactly REGISTER_COUNT registers, all within 32-bit signed bounds
            - Register 0 holds 0
            - PC and cycle count are non-negative

        Returns:
            True if state is valid, False otherwise
        """
        if len(self.registers) != REGISTER_COUNT:
            return False

        for value in self.registers:
            if not isinstance(value, int):
                return False
            if value < INT32_MIN or value > INT32_MAX:
                return False

        if self.registers[0] != 0:
            return False

        if self.pc < 0 or self.cycle_count < 0:
            return False

        return True

    def check_registers(self, *indices: int) -> None:
        """Raise OutOfRange if any index is not a valid register number."""
        for index in indices:
            if index < 0 or index >= REGISTER_COUNT:
                raise OutOfRange(
                    f"register ${index} does not exist (valid: $0-${REGISTER_COUNT - 1})"
                )

    def get_register(self, index: int) -> int:
        """Get value of a register.

        Raises:
            OutOfRange: If the register doesn't exist
        """
        self.check_registers(index)
        return self.registers[index]

    def set_register(self, index: int, value: int) -> "MachineState":
        """Create new state with updated register value.

        Writes to register 0 are discarded. The value is wrapped to 32 bits.

        Raises:
            OutOfRange: If the register doesn't exist
        """
        self.check_registers(index)

        new_registers = list(self.registers)
        if index != 0:
            new_registers[index] = wrap_int32(value)

        return MachineState(
            registers=new_registers,
            pc=self.pc,
            halted=self.halted,
            cycle_count=self.cycle_count
        )

    def increment_pc(self) -> "MachineState":
        """Create new state with PC advanced to the next instruction.

        Returns:
            New MachineState with pc + 1
        """
        return self.set_pc(self.pc + 1)

    def set_pc(self, new_pc: int) -> "MachineState":
        """Create new state with the PC set to an address (jumps and branches).

        Returns:
            New MachineState with updated pc
        """
        return MachineState(
            registers=list(self.registers),
            pc=new_pc,
            halted=self.halted,
            cycle_count=self.cycle_count
        )

    def set_halted(self, halted: bool = True) -> "MachineState":
        """Create new state with the halted flag set.

        Returns:
            New MachineState with updated halted flag
        """
        return MachineState(
            registers=list(self.registers),
            pc=self.pc,
            halted=halted,
            cycle_count=self.cycle_count
        )

    def increment_cycle(self) -> "MachineState":
        """Create new state with the cycle count incremented.

        Returns:
            New MachineState with cycle_count + 1
        """
        return MachineState(
            registers=list(self.registers),
            pc=self.pc,
            halted=self.halted,
            cycle_count=self.cycle_count + 1
        )

    def dump_registers(self) -> Dict[str, int]:
        """Get a copy of all register values keyed "$0".."$31"."""
        return {f"${i}": value for i, value in enumerate(self.registers)}

    def __str__(self) -> str:
        regs = " ".join(f"${i}={v}" for i, v in enumerate(self.registers) if v != 0)
        return f"[Cycle {self.cycle_count}] PC={self.pc} {regs} {'HALTED' if self.halted else ''}".rstrip()


def create_initial_state(entry: int = 0) -> MachineState:
    """Create a zeroed machine state with the PC at the entry address."""
    return MachineState(
        registers=[0] * REGISTER_COUNT,
        pc=entry,
        halted=False,
        cycle_count=0
    )
