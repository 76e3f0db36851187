"""Tests for the browser demo's run function."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent.parent / "demo"))

import pytest

pytest.importorskip("gradio")

import gradio_app


class TestHexImage:
    """Test hex word parsing."""

    def test_prefixes_and_comments(self):
        origin, words = gradio_app.parse_hex_image("x3000 ; origin\n0xF025, 1a")
        assert origin == 0x3000
        assert words == [0xF025, 0x001A]

    def test_bad_token(self):
        with pytest.raises(ValueError):
            gradio_app.parse_hex_image("x3000 zzzz")

    def test_empty(self):
        with pytest.raises(ValueError):
            gradio_app.parse_hex_image("  ; nothing\n")


class TestRunHexProgram:
    """Test the example programs end to end."""

    def test_hello(self):
        summary, output, registers = gradio_app.run_hex_program(
            gradio_app.EXAMPLE_PROGRAMS["Hello"], "", 1000
        )
        assert output == "Hi!\nHALT\n"
        assert "Halted: Yes" in summary

    def test_sum(self):
        summary, output, registers = gradio_app.run_hex_program(
            gradio_app.EXAMPLE_PROGRAMS["Sum 10..1"], "", 1000
        )
        assert "R0: x0037" in registers

    def test_echo_with_input(self):
        _, output, _ = gradio_app.run_hex_program(
            gradio_app.EXAMPLE_PROGRAMS["Echo"], "Q", 1000
        )
        assert output == "QHALT\n"

    def test_echo_without_input_reports_error(self):
        summary, _, _ = gradio_app.run_hex_program(
            gradio_app.EXAMPLE_PROGRAMS["Echo"], "", 1000
        )
        assert "Stopped:" in summary
        assert "Halted: No" in summary
