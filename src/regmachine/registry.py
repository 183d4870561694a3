"""OperationRegistry: Instruction handlers for the register machine.

Every instruction variant maps to exactly one handler, a function
(MachineState, instruction, ExecutionContext) -> MachineState. Handlers
check their register operands before reading or writing anything and
either advance the PC or redirect it themselves.

The registry refuses to freeze while any variant in INSTRUCTION_TYPES
lacks a handler, so adding a mnemonic means touching both the parser and
this module.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Mapping, Optional, Type

from . import instructions as ins
from .errors import DivisionByZero, UnknownLabel
from .state import MachineState, wrap_int32


@dataclass
class ExecutionContext:
    """Read-only data the handlers need besides the state.

    Attributes:
        labels: Label name to address
        emit: Sink for PRINT/EXIT output lines
    """
    labels: Mapping[str, int] = field(default_factory=dict)
    emit: Callable[[str], None] = print


Handler = Callable[[MachineState, ins.Instruction, ExecutionContext], MachineState]


class OperationRegistry:
    """Frozen registry of instruction handlers.

    Attributes:
        _handlers: Instruction class to handler function
        _frozen: Whether the registry is locked against modifications
    """

    def __init__(self):
        self._handlers: Dict[Type[ins.Instruction], Handler] = {}
        self._frozen = False
        self._register_all_handlers()
        self.freeze()

    def _register_all_handlers(self) -> None:
        # Data movement
        self.register(ins.LoadImmediate, self._op_li)
        self.register(ins.Move, self._op_move)

        # Arithmetic
        self.register(ins.Add, self._op_add)
        self.register(ins.Sub, self._op_sub)
        self.register(ins.Mul, self._op_mul)
        self.register(ins.Div, self._op_div)
        self.register(ins.Rem, self._op_rem)

        # Control flow
        self.register(ins.Jump, self._op_jump)
        self.register(ins.BranchEqual, self._op_branch)
        self.register(ins.BranchNotEqual, self._op_branch)
        self.register(ins.BranchLessThan, self._op_branch)
        self.register(ins.BranchLessEqual, self._op_branch)
        self.register(ins.BranchGreaterThan, self._op_branch)
        self.register(ins.BranchGreaterEqual, self._op_branch)

        # Side effects and no-ops
        self.register(ins.Print, self._op_print)
        self.register(ins.Exit, self._op_exit)
        self.register(ins.Skip, self._op_nop)
        self.register(ins.Label, self._op_nop)

    def register(self, instruction_type: Type[ins.Instruction], handler: Handler) -> None:
        """Register the handler for an instruction class.

        Raises:
            RuntimeError: If registry is frozen
            ValueError: If the class already has a handler
        """
        if self._frozen:
            raise RuntimeError("Cannot register handlers: registry is frozen")
        if instruction_type in self._handlers:
            raise ValueError(f"Handler already registered: {instruction_type.__name__}")
        self._handlers[instruction_type] = handler

    def freeze(self) -> None:
        """Freeze the registry.

        Raises:
            RuntimeError: If some instruction variant has no handler
        """
        missing = [cls.__name__ for cls in ins.INSTRUCTION_TYPES if cls not in self._handlers]
        if missing:
            raise RuntimeError(f"No handler for: {', '.join(missing)}")
        self._frozen = True

    def is_frozen(self) -> bool:
        return self._frozen

    def get_handled_types(self) -> set:
        return set(self._handlers.keys())

    def execute(
        self,
        state: MachineState,
        instruction: ins.Instruction,
        context: ExecutionContext,
    ) -> MachineState:
        """Execute one instruction.

        Returns:
            New machine state with the cycle count incremented

        Raises:
            KeyError: If the instruction class has no handler
            ExecutionError: If the handler fails
        """
        handler = self._handlers.get(type(instruction))
        if handler is None:
            raise KeyError(f"Unknown instruction type: {type(instruction).__name__}")

        new_state = handler(state, instruction, context)
        return new_state.increment_cycle()

    # =========================================================================
    # Data Movement
    # =========================================================================

    def _op_li(self, state, instr: ins.LoadImmediate, context) -> MachineState:
        """LI $d imm - Load immediate value into register."""
        state.check_registers(instr.dest)
        return state.set_register(instr.dest, instr.value).increment_pc()

    def _op_move(self, state, instr: ins.Move, context) -> MachineState:
        """MOVE $d $s - Copy source register into destination."""
        state.check_registers(instr.dest, instr.src)
        value = state.get_register(instr.src)
        return state.set_register(instr.dest, value).increment_pc()

    # =========================================================================
    # Arithmetic
    # =========================================================================

    def _op_add(self, state, instr: ins.Add, context) -> MachineState:
        """ADD $d $a $b - $d = $a + $b, wrapping on overflow."""
        val1, val2 = self._read_sources(state, instr)
        return state.set_register(instr.dest, wrap_int32(val1 + val2)).increment_pc()

    def _op_sub(self, state, instr: ins.Sub, context) -> MachineState:
        """SUB $d $a $b - $d = $a - $b, wrapping on overflow."""
        val1, val2 = self._read_sources(state, instr)
        return state.set_register(instr.dest, wrap_int32(val1 - val2)).increment_pc()

    def _op_mul(self, state, instr: ins.Mul, context) -> MachineState:
        """MUL $d $a $b - $d = $a * $b, keeping the low 32 bits."""
        val1, val2 = self._read_sources(state, instr)
        return state.set_register(instr.dest, wrap_int32(val1 * val2)).increment_pc()

    def _op_div(self, state, instr: ins.Div, context) -> MachineState:
        """DIV $d $a $b - $d = $a / $b, truncated toward zero.

        INT32_MIN / -1 wraps back to INT32_MIN.

        Raises:
            DivisionByZero: If $b holds 0
        """
        val1, val2 = self._read_sources(state, instr)
        if val2 == 0:
            raise DivisionByZero(f"${instr.src2} is zero")
        quotient, _ = self._truncating_divmod(val1, val2)
        return state.set_register(instr.dest, wrap_int32(quotient)).increment_pc()

    def _op_rem(self, state, instr: ins.Rem, context) -> MachineState:
        """REM $d $a $b - $d = remainder of $a / $b, sign follows $a.

        Raises:
            DivisionByZero: If $b holds 0
        """
        val1, val2 = self._read_sources(state, instr)
        if val2 == 0:
            raise DivisionByZero(f"${instr.src2} is zero")
        _, remainder = self._truncating_divmod(val1, val2)
        return state.set_register(instr.dest, wrap_int32(remainder)).increment_pc()

    # =========================================================================
    # Control Flow
    # =========================================================================

    def _op_jump(self, state, instr: ins.Jump, context) -> MachineState:
        """JUMP @L - Set PC to the address of label L."""
        return state.set_pc(self._resolve_label(instr.label, context))

    def _op_branch(self, state, instr: ins.Branch, context) -> MachineState:
        """Bxx $a $b @L - Jump to L if the comparison holds, else fall through."""
        state.check_registers(instr.src1, instr.src2)
        val1 = state.get_register(instr.src1)
        val2 = state.get_register(instr.src2)

        if BRANCH_CONDITIONS[type(instr)](val1, val2):
            return state.set_pc(self._resolve_label(instr.label, context))
        return state.increment_pc()

    # =========================================================================
    # Side Effects
    # =========================================================================

    def _op_print(self, state, instr: ins.Print, context) -> MachineState:
        """PRINT $r - Emit "r -> value"."""
        value = state.get_register(instr.reg)
        context.emit(f"{instr.reg} -> {value}")
        return state.increment_pc()

    def _op_exit(self, state, instr: ins.Exit, context) -> MachineState:
        """EXIT - Emit "EXIT" and halt."""
        context.emit("EXIT")
        return state.set_halted(True)

    def _op_nop(self, state, instr, context) -> MachineState:
        """SKIP and label placeholders only advance the PC."""
        return state.increment_pc()

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def _read_sources(self, state: MachineState, instr: ins.Arithmetic):
        state.check_registers(instr.dest, instr.src1, instr.src2)
        return state.get_register(instr.src1), state.get_register(instr.src2)

    def _resolve_label(self, label: str, context: ExecutionContext) -> int:
        if label not in context.labels:
            raise UnknownLabel(f"label @{label} is not declared")
        return context.labels[label]

    @staticmethod
    def _truncating_divmod(dividend: int, divisor: int):
        """Integer division rounding toward zero, with the matching remainder."""
        quotient = abs(dividend) // abs(divisor)
        if (dividend < 0) != (divisor < 0):
            quotient = -quotient
        return quotient, dividend - divisor * quotient


BRANCH_CONDITIONS: Dict[Type[ins.Branch], Callable[[int, int], bool]] = {
    ins.BranchEqual: lambda a, b: a == b,
    ins.BranchNotEqual: lambda a, b: a != b,
    ins.BranchLessThan: lambda a, b: a < b,
    ins.BranchLessEqual: lambda a, b: a <= b,
    ins.BranchGreaterThan: lambda a, b: a > b,
    ins.BranchGreaterEqual: lambda a, b: a >= b,
}


# Singleton registry instance
_registry: Optional[OperationRegistry] = None


def get_registry() -> OperationRegistry:
    """Get the singleton, frozen OperationRegistry."""
    global _registry
    if _registry is None:
        _registry = OperationRegistry()
    return _registry
