"""Machine: fetch-decode-execute engine for the register machine.

Lifecycle:
    LOADING --load_program--> READY --start--> RUNNING --> HALTED | FAULTED

load_program parses the whole source up front, so parse errors surface
before anything runs. start looks up the @MAIN entry label. Each step
fetches the instruction at the PC and hands it to the operation registry;
the run ends when the PC leaves the program, EXIT executes, or a handler
raises.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Deque, Dict, List, Optional, Sequence, Union

from .errors import CycleLimitExceeded, ExecutionError, MachineError, MainNotFound
from .instructions import Instruction
from .parser import Program, parse_program, split_source
from .registry import ExecutionContext, OperationRegistry, get_registry
from .state import MachineState, create_initial_state

logger = logging.getLogger(__name__)

ENTRY_LABEL = "MAIN"
DEFAULT_TRACE_LIMIT = 10000


class MachineStatus(Enum):
    LOADING = "loading"
    READY = "ready"
    RUNNING = "running"
    HALTED = "halted"
    FAULTED = "faulted"


@dataclass
class ExecutionTraceEntry:
    """Single entry in the execution trace.

    Attributes:
        cycle: Cycle number (0-indexed)
        address: Address of the executed instruction
        source: Source text of the instruction
        instruction: Decoded instruction
        pre_state: State snapshot before execution
        post_state: State snapshot after execution
        output: Lines emitted by this instruction
        error: Error message if execution failed
    """
    cycle: int
    address: int
    source: str
    instruction: Instruction
    pre_state: dict
    post_state: dict
    output: List[str] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class RunResult:
    """Outcome of Machine.run.

    Attributes:
        success: True if the run halted without an error
        error: The execution error that stopped the run, if any
        output: PRINT/EXIT lines in execution order, when collected
        cycles: Number of executed instructions
        registers: Final register values keyed "$0".."$31"
    """
    success: bool
    error: Optional[MachineError] = None
    output: List[str] = field(default_factory=list)
    cycles: int = 0
    registers: Dict[str, int] = field(default_factory=dict)


class Machine:
    """Register machine interpreter.

    Attributes:
        registry: OperationRegistry with one handler per instruction variant
        program: Loaded Program (None until load_program succeeds)
        state: Current MachineState (None until start)
        status: Current MachineStatus
        trace: Most recent execution trace entries (only filled when
            record_trace is set)
        output: PRINT/EXIT lines emitted so far (only filled when there is
            no output sink)
        error: Error that faulted the machine, if any
        max_cycles: Optional safety limit; None runs forever
    """

    def __init__(
        self,
        max_cycles: Optional[int] = None,
        record_trace: bool = False,
        output: Optional[Callable[[str], None]] = print,
        trace_limit: Optional[int] = DEFAULT_TRACE_LIMIT,
    ):
        """Initialize the machine.

        Args:
            max_cycles: Stop with CycleLimitExceeded after this many cycles
            record_trace: Keep an ExecutionTraceEntry for every cycle
            output: Called with each PRINT/EXIT line; None to collect the
                lines in output instead
            trace_limit: Number of trace entries kept; older entries are
                dropped. None keeps them all
        """
        self.registry: OperationRegistry = get_registry()
        self.program: Optional[Program] = None
        self.state: Optional[MachineState] = None
        self.status = MachineStatus.LOADING
        self.trace: Deque[ExecutionTraceEntry] = deque(maxlen=trace_limit)
        self.output: List[str] = []
        self.error: Optional[MachineError] = None
        self.max_cycles = max_cycles
        self.record_trace = record_trace
        self.trace_limit = trace_limit
        self._sink = output
        self._pending: List[str] = []
        self._emitted = 0

    def load_program(self, source: Union[str, Sequence[str]]) -> None:
        """Parse a program and make the machine ready to start.

        Args:
            source: Program text, or its lines

        Raises:
            ParseError: On the first malformed line; nothing is loaded
        """
        lines = split_source(source) if isinstance(source, str) else list(source)

        self.program = None
        self.state = None
        self.status = MachineStatus.LOADING
        self.trace = deque(maxlen=self.trace_limit)
        self.output = []
        self.error = None
        self._emitted = 0

        self.program = parse_program(lines)
        self.status = MachineStatus.READY

    def start(self) -> None:
        """Point the PC at the entry label.

        Raises:
            RuntimeError: If no program is loaded
            MainNotFound: If the program has no @MAIN label
        """
        if self.status is not MachineStatus.READY:
            raise RuntimeError(f"Cannot start machine in state {self.status.value}")

        entry = self.program.labels.get(ENTRY_LABEL)
        if entry is None:
            self.error = MainNotFound(f"entry label @{ENTRY_LABEL} is not declared")
            self.status = MachineStatus.FAULTED
            raise self.error

        self.state = create_initial_state(entry)
        self.status = MachineStatus.RUNNING
        logger.debug("Starting at @%s (address %d)", ENTRY_LABEL, entry)
        self._halt_if_off_end()

    def step(self, max_cycles: Optional[int] = None) -> Optional[ExecutionTraceEntry]:
        """Execute a single instruction.

        Args:
            max_cycles: Override the instance safety limit for this step

        Returns:
            The trace entry for this cycle when tracing, else None

        Raises:
            RuntimeError: If the machine is not running
            ExecutionError: If the instruction fails; the machine is FAULTED
        """
        if self.status is not MachineStatus.RUNNING:
            raise RuntimeError(f"Cannot step machine in state {self.status.value}")

        limit = max_cycles if max_cycles is not None else self.max_cycles
        if limit is not None and self.state.cycle_count >= limit:
            self._fault(CycleLimitExceeded(f"max cycles ({limit}) exceeded"))
            raise self.error

        address = self.state.pc
        instruction = self.program.instructions[address]
        source = self.program.source[address]
        pre_state = self.state.snapshot() if self.record_trace else {}
        self._pending = []

        logger.debug("[%d] %d: %s", self.state.cycle_count, address, source)

        context = ExecutionContext(labels=self.program.labels, emit=self._emit)
        error = None
        try:
            self.state = self.registry.execute(self.state, instruction, context)
        except ExecutionError as e:
            e.with_context(
                address=address,
                line_number=self.program.line_numbers[address],
                line=source,
            )
            error = e

        entry = None
        if self.record_trace:
            entry = ExecutionTraceEntry(
                cycle=self.state.cycle_count if error else self.state.cycle_count - 1,
                address=address,
                source=source,
                instruction=instruction,
                pre_state=pre_state,
                post_state=self.state.snapshot(),
                output=self._pending,
                error=str(error) if error else None,
            )
            self.trace.append(entry)

        if error is not None:
            self._fault(error)
            raise error

        if self.state.halted:
            self.status = MachineStatus.HALTED
        else:
            self._halt_if_off_end()
        return entry

    def run(self, max_cycles: Optional[int] = None) -> RunResult:
        """Run until the program halts or fails.

        Starts the machine first if it is only READY. An error raised by an
        instruction stops the run and is reported in the result.

        Args:
            max_cycles: Override the instance safety limit for this run

        Returns:
            RunResult describing the outcome

        Raises:
            RuntimeError: If no program is loaded
            MainNotFound: If the program has no @MAIN label
            CycleLimitExceeded: If the safety limit is reached
        """
        if self.status is MachineStatus.LOADING:
            raise RuntimeError("No program loaded")
        if self.status is MachineStatus.READY:
            self.start()

        limit = max_cycles if max_cycles is not None else self.max_cycles

        while self.status is MachineStatus.RUNNING:
            try:
                self.step(limit)
            except CycleLimitExceeded:
                raise
            except ExecutionError as e:
                logger.debug("Run stopped: %s", e)
                break

        return self.result()

    def result(self) -> RunResult:
        return RunResult(
            success=self.status is MachineStatus.HALTED,
            error=self.error,
            output=list(self.output),
            cycles=self.get_cycle_count(),
            registers=self.state.dump_registers() if self.state else {},
        )

    def _emit(self, line: str) -> None:
        self._emitted += 1
        if self.record_trace:
            self._pending.append(line)
        if self._sink is not None:
            self._sink(line)
        else:
            self.output.append(line)

    def _fault(self, error: MachineError) -> None:
        self.error = error
        self.status = MachineStatus.FAULTED

    def _halt_if_off_end(self) -> None:
        if not 0 <= self.state.pc < len(self.program):
            logger.debug("PC %d is past the end of the program", self.state.pc)
            self.status = MachineStatus.HALTED

    def get_register(self, index: int) -> int:
        if self.state is None:
            raise RuntimeError("Machine has not started")
        return self.state.get_register(index)

    def dump_registers(self) -> Dict[str, int]:
        if self.state is None:
            raise RuntimeError("Machine has not started")
        return self.state.dump_registers()

    def get_pc(self) -> int:
        if self.state is None:
            raise RuntimeError("Machine has not started")
        return self.state.pc

    def get_cycle_count(self) -> int:
        if self.state is None:
            return 0
        return self.state.cycle_count

    def is_halted(self) -> bool:
        return self.status in (MachineStatus.HALTED, MachineStatus.FAULTED)

    def get_summary(self) -> Dict:
        """Get execution summary.

        Returns:
            Dictionary with status, cycle count, final registers and error
        """
        return {
            "status": self.status.value,
            "cycles": self.get_cycle_count(),
            "halted": self.is_halted(),
            "pc": self.state.pc if self.state else None,
            "registers": self.dump_registers() if self.state else {},
            "output_lines": self._emitted,
            "error": str(self.error) if self.error else None,
        }


def run_program(source: Union[str, Sequence[str]], **kwargs) -> RunResult:
    """Load and run a program in a fresh Machine.

    Keyword arguments are passed to Machine.
    """
    machine = Machine(**kwargs)
    machine.load_program(source)
    return machine.run()
