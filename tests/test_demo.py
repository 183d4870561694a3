"""Tests for the Gradio demo's execution function."""

import re
import sys
from pathlib import Path

import pytest

gr = pytest.importorskip("gradio")

sys.path.insert(0, str(Path(__file__).parent.parent / "demo"))

from gradio_app import EXAMPLE_PROGRAMS, load_example, run_demo_program


class TestRunDemoProgram:
    def test_empty_program(self):
        summary, trace, registers = run_demo_program("   ", 1000)
        assert summary.startswith("Error")
        assert trace == ""
        assert registers == ""

    def test_add_example(self):
        summary, trace, registers = run_demo_program(EXAMPLE_PROGRAMS["Add"], 1000)
        assert "3 -> 8" in summary
        assert "Status: halted" in summary
        assert "Instruction: ADD $3 $1 $2" in trace
        assert re.search(r"\$3:\s+8 \*", registers)

    def test_division_by_zero_example(self):
        summary, _, _ = run_demo_program(EXAMPLE_PROGRAMS["Division by zero"], 1000)
        assert "Status: faulted" in summary
        assert "DivisionByZero" in summary

    def test_parse_error(self):
        summary, _, _ = run_demo_program("@MAIN\nLI $1\n", 1000)
        assert "InvalidParameter" in summary

    def test_cycle_limit(self):
        summary, _, _ = run_demo_program("@MAIN\nJUMP @MAIN\n", 100)
        assert "CycleLimitExceeded" in summary

    @pytest.mark.parametrize("name", [n for n in EXAMPLE_PROGRAMS if EXAMPLE_PROGRAMS[n]])
    def test_examples_parse(self, name):
        summary, _, _ = run_demo_program(EXAMPLE_PROGRAMS[name], 1000)
        assert "InvalidParameter" not in summary
        assert "InvalidInstruction" not in summary


class TestExamples:
    def test_load_example(self):
        assert load_example("Add").startswith("@MAIN")
        assert load_example("missing") == ""

    def test_create_demo(self):
        from gradio_app import create_demo

        assert create_demo() is not None
