"""regmachine Interactive Demo.

A Gradio web interface for running register-machine programs.

Usage:
    cd /path/to/regmachine
    python demo/gradio_app.py

Features:
    - Write or load example programs
    - See program output and the final register file
    - Step-by-step execution trace
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import gradio as gr
from regmachine import Machine, MachineError


# =============================================================================
# Example Programs
# =============================================================================

EXAMPLE_PROGRAMS = {
    "Add": """@MAIN
    LI $1 5
    LI $2 3
    ADD $3 $1 $2
    // prints 3 -> 8
    PRINT $3
    EXIT""",

    "Sum 1-10": """@MAIN
    // sum, counter, limit, increment
    LI $1 0
    LI $2 1
    LI $3 10
    LI $4 1
@LOOP
    ADD $1 $1 $2
    ADD $2 $2 $4
    BLE $2 $3 @LOOP
    // prints 1 -> 55
    PRINT $1
    EXIT""",

    "Overflow": """@MAIN
    LI $1 2147483647
    LI $2 1
    ADD $3 $1 $2
    // prints 3 -> -2147483648
    PRINT $3
    EXIT""",

    "Division by zero": """@MAIN
    LI $1 10
    LI $2 0
    DIV $3 $1 $2
    EXIT""",

    "Custom": ""
}

MAX_TRACE_ENTRIES = 100


# =============================================================================
# Execution Functions
# =============================================================================

def run_demo_program(program: str, max_cycles: int) -> tuple:
    """Execute a program and format the results for display.

    Args:
        program: Program source code
        max_cycles: Safety limit for the run

    Returns:
        Tuple of (summary_text, trace_text, registers_text)
    """
    if not program.strip():
        return "Error: No program provided", "", ""

    machine = Machine(max_cycles=int(max_cycles), record_trace=True, output=None)
    error_msg = None
    try:
        machine.load_program(program)
        machine.run()
    except MachineError as e:
        error_msg = str(e)

    summary = machine.get_summary()
    summary_lines = [
        "OUTPUT",
        "=" * 40,
        *machine.output,
        "",
        "SUMMARY",
        "=" * 40,
        f"Status: {summary['status']}",
        f"Cycles: {summary['cycles']}",
    ]
    error = error_msg or summary["error"]
    if error:
        summary_lines.append(f"Error: {error}")
    summary_text = "\n".join(summary_lines)

    trace = list(machine.trace)
    trace_lines = [
        "EXECUTION TRACE",
        "=" * 60,
    ]
    for entry in trace[:MAX_TRACE_ENTRIES]:
        trace_lines.append(f"\n--- Cycle {entry.cycle} (PC={entry.address}) ---")
        trace_lines.append(f"Instruction: {entry.source}")

        pre_regs = entry.pre_state["registers"]
        post_regs = entry.post_state["registers"]
        changes = [
            f"{reg}: {pre_regs[reg]} -> {post_regs[reg]}"
            for reg in pre_regs
            if pre_regs[reg] != post_regs[reg]
        ]
        if changes:
            trace_lines.append(f"Changes:     {', '.join(changes)}")
        for line in entry.output:
            trace_lines.append(f"Output:      {line}")
        if entry.error:
            trace_lines.append(f"Error:       {entry.error}")

    if len(trace) > MAX_TRACE_ENTRIES:
        trace_lines.append(f"\n... ({len(trace) - MAX_TRACE_ENTRIES} more entries)")
    trace_text = "\n".join(trace_lines)

    reg_lines = [
        "FINAL REGISTERS",
        "=" * 30,
    ]
    for reg, value in summary["registers"].items():
        marker = " *" if value != 0 else ""
        reg_lines.append(f"  {reg:>3}: {value:>11}{marker}")
    registers_text = "\n".join(reg_lines)

    return summary_text, trace_text, registers_text


def load_example(example_name: str) -> str:
    """Load an example program."""
    return EXAMPLE_PROGRAMS.get(example_name, "")


# =============================================================================
# Gradio Interface
# =============================================================================

def create_demo():
    """Create and return the Gradio demo interface."""

    with gr.Blocks(title="regmachine Demo") as demo:
        gr.Markdown("""
        # regmachine: Register Machine Interpreter

        32 signed 32-bit registers, labelled jumps, and execution from `@MAIN`.

        **Pipeline**: `source -> parse -> labels -> fetch -> handler -> state`
        """)

        with gr.Row():
            with gr.Column(scale=2):
                gr.Markdown("### Program")

                example_dropdown = gr.Dropdown(
                    choices=list(EXAMPLE_PROGRAMS.keys()),
                    value="Sum 1-10",
                    label="Load Example"
                )

                program_input = gr.Textbox(
                    value=EXAMPLE_PROGRAMS["Sum 1-10"],
                    label="Source Code",
                    lines=15,
                    placeholder="@MAIN\n    LI $1 42\n    PRINT $1\n    EXIT"
                )

                max_cycles = gr.Slider(
                    minimum=100,
                    maximum=100000,
                    value=10000,
                    step=100,
                    label="Max Cycles"
                )

                run_button = gr.Button("Run Program", variant="primary")

            with gr.Column(scale=3):
                with gr.Row():
                    summary_output = gr.Textbox(
                        label="Output",
                        lines=10,
                        interactive=False
                    )
                    registers_output = gr.Textbox(
                        label="Final Registers",
                        lines=10,
                        interactive=False
                    )

                trace_output = gr.Textbox(
                    label="Execution Trace",
                    lines=20,
                    interactive=False
                )

        with gr.Accordion("Instruction Reference", open=False):
            gr.Markdown("""
            | Instruction | Description | Example |
            |-------------|-------------|---------|
            | `LI $d imm` | Load immediate | `LI $1 42` |
            | `MOVE $d $s` | Copy register | `MOVE $2 $1` |
            | `ADD/SUB/MUL $d $a $b` | Wrapping arithmetic | `ADD $3 $1 $2` |
            | `DIV/REM $d $a $b` | Truncating division | `DIV $3 $1 $2` |
            | `PRINT $r` | Print register | `PRINT $3` |
            | `JUMP @L` | Unconditional jump | `JUMP @LOOP` |
            | `BEQ/BNE/BLT/BLE/BGT/BGE $a $b @L` | Conditional jump | `BLT $1 $2 @LOOP` |
            | `SKIP` | No operation | `SKIP` |
            | `EXIT` | Stop execution | `EXIT` |

            **Registers**: $0-$31, 32-bit signed, `$0` always reads 0
            **Labels**: `@NAME` on its own line (uppercase); execution starts at `@MAIN`
            **Comments**: lines starting with `//`
            """)

        example_dropdown.change(
            fn=load_example,
            inputs=[example_dropdown],
            outputs=[program_input]
        )

        run_button.click(
            fn=run_demo_program,
            inputs=[program_input, max_cycles],
            outputs=[summary_output, trace_output, registers_output]
        )

    return demo


# =============================================================================
# Main
# =============================================================================

if __name__ == "__main__":
    demo = create_demo()
    demo.launch(
        share=False,
        server_name="0.0.0.0",
        server_port=7861,
        show_error=True
    )
