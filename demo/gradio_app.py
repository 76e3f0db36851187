"""LC3-VM Interactive Demo.

A Gradio web interface for running LC-3 programs in the browser.

Usage:
    cd /path/to/lc3-vm
    python demo/gradio_app.py

Features:
    - Paste an object image as hex words (first word is the origin)
    - Supply keyboard input for GETC/IN and the keyboard registers
    - See terminal output, final registers and condition flags
"""

import re
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import gradio as gr
from lc3_vm import LC3VM, BufferedTerminal, LC3Error
from lc3_vm.loader import check_fits


# =============================================================================
# Example Programs
# =============================================================================

EXAMPLE_PROGRAMS = {
    "Hello": """x3000
xE002   ; LEA  R0, #2
xF022   ; PUTS
xF025   ; HALT
x0048 x0069 x0021 x000A x0000   ; Hi! and a newline""",

    "Sum 10..1": """x3000
x5020   ; AND  R0, R0, #0
x5260   ; AND  R1, R1, #0
x126A   ; ADD  R1, R1, #10
x1001   ; ADD  R0, R0, R1   <- loop
x127F   ; ADD  R1, R1, #-1
x03FD   ; BRp  loop
xF025   ; HALT              R0 = 55""",

    "Echo": """x3000
xF020   ; GETC
xF021   ; OUT
xF025   ; HALT""",

    "Custom": ""
}


# =============================================================================
# Execution Functions
# =============================================================================

_HEX_WORD = re.compile(r"^(?:0x|x)?([0-9a-fA-F]{1,4})$")


def parse_hex_image(text: str) -> tuple:
    """Parse hex words (``;`` starts a comment) into (origin, words).

    Raises:
        ValueError: If a token is not a 16-bit hex word or the text is empty
    """
    tokens = []
    for line in text.splitlines():
        line = line.split(";", 1)[0]
        tokens.extend(t for t in re.split(r"[\s,]+", line) if t)

    if not tokens:
        raise ValueError("No program provided")

    words = []
    for token in tokens:
        match = _HEX_WORD.match(token)
        if not match:
            raise ValueError(f"Not a hex word: {token!r}")
        words.append(int(match.group(1), 16))

    origin, program = words[0], words[1:]
    check_fits(origin, len(program))
    return origin, program


def run_hex_program(hex_text: str, input_text: str, max_cycles: int) -> tuple:
    """Run a hex image and return results.

    Args:
        hex_text: Image as hex words, origin first
        input_text: Keyboard input handed to the program
        max_cycles: Instruction limit

    Returns:
        Tuple of (summary_text, output_text, registers_text)
    """
    try:
        origin, words = parse_hex_image(hex_text)
    except ValueError as e:
        return f"Error: {e}", "", ""

    terminal = BufferedTerminal(input_text or "")
    vm = LC3VM(terminal=terminal, max_cycles=int(max_cycles), start_address=origin)
    vm.load_image(words, origin)

    error_msg = None
    try:
        vm.run()
    except (LC3Error, RuntimeError, EOFError) as e:
        error_msg = str(e) or type(e).__name__

    summary = vm.get_summary()
    summary_lines = [
        "EXECUTION SUMMARY",
        "=" * 40,
        f"Origin: x{origin:04X} ({len(words)} words)",
        f"Cycles: {summary['cycles']}",
        f"Halted: {'Yes' if summary['halted'] else 'No'}",
    ]
    if error_msg:
        summary_lines.append(f"\nStopped: {error_msg}")

    reg_lines = [
        "FINAL REGISTERS",
        "=" * 30,
    ]
    for reg, value in summary["registers"].items():
        marker = " *" if value != 0 else ""
        reg_lines.append(f"  {reg:>4}: x{value:04X} {value:>6}{marker}")

    reg_lines.append("")
    reg_lines.append("FLAGS")
    reg_lines.append("-" * 30)
    for flag, value in summary["flags"].items():
        reg_lines.append(f"  {flag}: {value}")

    return "\n".join(summary_lines), terminal.output, "\n".join(reg_lines)


def load_example(example_name: str) -> str:
    """Load an example program."""
    return EXAMPLE_PROGRAMS.get(example_name, "")


# =============================================================================
# Gradio Interface
# =============================================================================

def create_demo():
    """Create and return the Gradio demo interface."""

    with gr.Blocks(title="LC3-VM Demo", theme=gr.themes.Soft()) as demo:
        gr.Markdown("""
        # LC3-VM: LC-3 Virtual Machine

        Runs LC-3 object images: 16-bit words, eight registers, N/Z/P
        condition flags and the standard TRAP routines for character I/O.

        **Pipeline**: `fetch -> decode -> key -> execute -> state`
        """)

        with gr.Row():
            with gr.Column(scale=2):
                gr.Markdown("### Object Image")

                example_dropdown = gr.Dropdown(
                    choices=list(EXAMPLE_PROGRAMS.keys()),
                    value="Hello",
                    label="Load Example"
                )

                program_input = gr.Textbox(
                    value=EXAMPLE_PROGRAMS["Hello"],
                    label="Hex Words (origin first, ; for comments)",
                    lines=15,
                    placeholder="x3000 xF025"
                )

                keyboard_input = gr.Textbox(
                    value="",
                    label="Keyboard Input",
                    lines=2
                )

                max_cycles = gr.Slider(
                    minimum=100,
                    maximum=1000000,
                    value=100000,
                    step=100,
                    label="Max Cycles"
                )

                run_button = gr.Button("Run Program", variant="primary")

            with gr.Column(scale=3):
                with gr.Row():
                    summary_output = gr.Textbox(
                        label="Summary",
                        lines=10,
                        interactive=False
                    )
                    registers_output = gr.Textbox(
                        label="Final Registers",
                        lines=10,
                        interactive=False
                    )

                terminal_output = gr.Textbox(
                    label="Terminal Output",
                    lines=20,
                    interactive=False
                )

        with gr.Accordion("Trap Reference", open=False):
            gr.Markdown("""
            | Vector | Name | Effect |
            |--------|------|--------|
            | `x20` | GETC | Read a character into R0 (no echo) |
            | `x21` | OUT | Write the character in R0 |
            | `x22` | PUTS | Write the string at R0, one character per word |
            | `x23` | IN | Prompt, read and echo a character into R0 |
            | `x24` | PUTSP | Write the string at R0, two characters per word |
            | `x25` | HALT | Stop the machine |

            **Keyboard**: KBSR at `xFE00` (bit 15 = key ready), KBDR at `xFE02`
            """)

        example_dropdown.change(
            fn=load_example,
            inputs=[example_dropdown],
            outputs=[program_input]
        )

        run_button.click(
            fn=run_hex_program,
            inputs=[program_input, keyboard_input, max_cycles],
            outputs=[summary_output, terminal_output, registers_output]
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
