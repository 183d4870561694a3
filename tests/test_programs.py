"""Integration tests for complete programs."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from regmachine import DivisionByZero, Machine

PROGRAMS_DIR = Path(__file__).parent.parent / "programs"


@pytest.fixture
def machine():
    return Machine(output=None)


class TestScenarios:
    """Small programs with known results."""

    def test_add_and_print(self, machine):
        machine.load_program(["@MAIN", "LI $1 5", "LI $2 3", "ADD $3 $1 $2", "PRINT $3", "EXIT"])
        result = machine.run()

        assert result.success is True
        assert result.output == ["3 -> 8", "EXIT"]
        assert machine.get_register(3) == 8

    def test_division_by_zero_skips_exit(self, machine):
        machine.load_program(["@MAIN", "LI $1 10", "LI $2 0", "DIV $3 $1 $2", "EXIT"])
        result = machine.run()

        assert result.success is False
        assert isinstance(result.error, DivisionByZero)
        assert "EXIT" not in result.output

    def test_branch_never_taken_falls_through(self, machine):
        machine.load_program(["@MAIN", "LI $1 0", "@LOOP", "ADD $1 $1 $1", "BLT $1 $1 @LOOP", "EXIT"])
        result = machine.run()

        assert result.success is True
        assert result.output == ["EXIT"]
        assert result.cycles == 6

    def test_runs_off_end_without_exit(self, machine):
        machine.load_program(["@MAIN", "LI $1 7", "PRINT $1"])
        result = machine.run()

        assert result.success is True
        assert result.output == ["1 -> 7"]

    def test_register_zero_stays_zero(self, machine):
        machine.load_program([
            "@MAIN",
            "LI $0 5",
            "LI $1 9",
            "MOVE $0 $1",
            "ADD $0 $1 $1",
            "PRINT $0",
        ])
        result = machine.run()
        assert result.output == ["0 -> 0"]

    def test_overflow_wraps(self, machine):
        machine.load_program([
            "@MAIN",
            "LI $1 2147483647",
            "LI $2 1",
            "ADD $3 $1 $2",
            "PRINT $3",
        ])
        assert machine.run().output == ["3 -> -2147483648"]

    def test_register_swap(self, machine):
        machine.load_program("""
            @MAIN
            LI $1 10
            LI $2 20
            MOVE $3 $1
            MOVE $1 $2
            MOVE $2 $3
        """)
        machine.run()
        assert machine.get_register(1) == 20
        assert machine.get_register(2) == 10

    def test_skip_is_noop(self, machine):
        machine.load_program(["@MAIN", "SKIP", "LI $1 1", "SKIP", "PRINT $1"])
        assert machine.run().output == ["1 -> 1"]


class TestLoops:
    """Programs with backward branches."""

    def test_multiply_by_repeated_addition(self, machine):
        machine.load_program("""
            // 7 * 6 by repeated addition
            @MAIN
                LI $1 0
                LI $2 7
                LI $3 6
                LI $4 1
            @LOOP
                ADD $1 $1 $2
                SUB $3 $3 $4
                BNE $3 $0 @LOOP
                PRINT $1
                EXIT
        """)
        result = machine.run()
        assert result.output == ["1 -> 42", "EXIT"]

    def test_fibonacci(self, machine):
        machine.load_program("""
            @MAIN
                LI $1 0
                LI $2 1
                LI $3 10
                LI $4 0
                LI $5 1
            @LOOP
                MOVE $6 $2
                ADD $2 $1 $2
                MOVE $1 $6
                ADD $4 $4 $5
                BLT $4 $3 @LOOP
                EXIT
        """)
        machine.run()
        # After 10 iterations starting from F(0)=0, F(1)=1 we hold F(11)=89
        assert machine.get_register(2) == 89

    def test_forward_jump_over_block(self, machine):
        machine.load_program("""
            @MAIN
                LI $1 1
                LI $2 2
                BGE $2 $1 @SKIPPED
                PRINT $1
            @SKIPPED
                JUMP @END
                PRINT $2
            @END
                EXIT
        """)
        assert machine.run().output == ["EXIT"]


class TestProgramFiles:
    """Run the bundled example programs."""

    def test_sum(self, machine):
        machine.load_program((PROGRAMS_DIR / "sum.rm").read_text())
        result = machine.run()
        assert result.output == ["1 -> 55", "EXIT"]

    def test_countdown(self, machine):
        machine.load_program((PROGRAMS_DIR / "countdown.rm").read_text())
        result = machine.run()
        assert result.success is True
        assert result.output == ["1 -> 3", "1 -> 2", "1 -> 1"]

    def test_factorial(self, machine):
        machine.load_program((PROGRAMS_DIR / "factorial.rm").read_text())
        result = machine.run()
        assert result.output == ["2 -> 3628800", "5 -> 27", "EXIT"]
