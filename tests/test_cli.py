"""
Tests for the acc8 Command-Line Tools
=====================================

These tests drive acc8asm, acc8disasm and acc8run through click's test
runner and check their output files, printed results and exit codes.
"""

from pathlib import Path

import click
import pytest
from click.testing import CliRunner

from acc8.cli import acc8asm, acc8disasm, acc8run
from acc8.cli.errors import ExitCode, parse_address, parse_number


STORE_SOURCE = """
    LDA #$2A
    STA $10
halt:
    JMP halt
"""

STORE_BINARY = bytes([0x01, 0x2A, 0x04, 0x10, 0x50, 0x00, 0x04])

COUNT_SOURCE = """
    LDA #3
loop:
    DEC
    BNE loop
halt:
    JMP halt
"""

COUNT_FOREVER = bytes([0x16, 0x48, 0xFD])


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def store_asm(tmp_path):
    path = tmp_path / "store.asm"
    path.write_text(STORE_SOURCE)
    return path


@pytest.fixture
def store_bin(tmp_path):
    path = tmp_path / "store.bin"
    path.write_bytes(STORE_BINARY)
    return path


# =============================================================================
# Test Number Parsing
# =============================================================================

class TestParseNumber:
    """Tests for parse_number() and parse_address()."""

    @pytest.mark.parametrize("text,expected", [
        ("$1F", 0x1F),
        ("0x1f", 0x1F),
        ("0X10", 0x10),
        ("42", 42),
    ])
    def test_formats(self, text, expected):
        assert parse_number(text) == expected

    @pytest.mark.parametrize("text", ["", "$", "zz", "0xg"])
    def test_invalid(self, text):
        with pytest.raises(click.BadParameter):
            parse_number(text)

    def test_address_range(self):
        assert parse_address("$FFFF") == 0xFFFF
        with pytest.raises(click.BadParameter):
            parse_address("0x10000")


# =============================================================================
# Test acc8asm
# =============================================================================

class TestAcc8Asm:
    """Tests for the assembler CLI."""

    def test_default_output(self, runner, store_asm):
        result = runner.invoke(acc8asm.main, [str(store_asm)])

        assert result.exit_code == 0, result.output
        assert store_asm.with_suffix(".bin").read_bytes() == STORE_BINARY

    def test_listing_and_symbols(self, runner, store_asm, tmp_path):
        out = tmp_path / "out.bin"
        lst = tmp_path / "out.lst"
        sym = tmp_path / "out.sym"
        result = runner.invoke(acc8asm.main, [
            str(store_asm), "-o", str(out), "-l", str(lst), "-s", str(sym),
        ])

        assert result.exit_code == 0, result.output
        assert out.read_bytes() == STORE_BINARY
        assert "Symbol Table" in lst.read_text()
        assert sym.read_text().split() == ["halt", "=", "$0004"]

    def test_defines(self, runner, tmp_path):
        src = tmp_path / "limit.asm"
        src.write_text("LDA #LIMIT\nLDX #FLAG\n")
        out = tmp_path / "limit.bin"
        result = runner.invoke(acc8asm.main, [
            str(src), "-o", str(out), "-D", "LIMIT=$20", "-D", "FLAG",
        ])

        assert result.exit_code == 0, result.output
        assert out.read_bytes() == bytes([0x01, 0x20, 0x06, 0x01])

    def test_direct_page(self, runner, tmp_path):
        src = tmp_path / "page.asm"
        src.write_text("STA $8010\n")
        out = tmp_path / "page.bin"
        result = runner.invoke(acc8asm.main, [
            str(src), "-o", str(out), "--direct-page", "128",
        ])

        assert result.exit_code == 0, result.output
        assert out.read_bytes() == bytes([0x04, 0x10])

    def test_verbose(self, runner, store_asm):
        result = runner.invoke(acc8asm.main, [str(store_asm), "-v"])
        assert "Assembly complete: 7 bytes at $0000" in result.output

    def test_assembly_error(self, runner, tmp_path):
        src = tmp_path / "bad.asm"
        src.write_text("NOP\nFROB\n")
        result = runner.invoke(acc8asm.main, [str(src)])

        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "bad.asm:2: error: unknown mnemonic 'FROB'" in result.output
        assert not src.with_suffix(".bin").exists()

    def test_bad_define(self, runner, store_asm):
        result = runner.invoke(acc8asm.main, [str(store_asm), "-D", "X=oops"])
        assert result.exit_code == ExitCode.INVALID_ARGS

    def test_missing_input(self, runner, tmp_path):
        result = runner.invoke(acc8asm.main, [str(tmp_path / "missing.asm")])
        assert result.exit_code == 2


# =============================================================================
# Test acc8disasm
# =============================================================================

class TestAcc8Disasm:
    """Tests for the disassembler CLI."""

    def test_listing(self, runner, store_bin):
        result = runner.invoke(acc8disasm.main, [str(store_bin)])

        assert result.exit_code == 0, result.output
        assert "; Disassembly of store.bin" in result.output
        assert "$0000: 01 2A" in result.output
        assert "JMP $0004" in result.output

    def test_no_bytes(self, runner, store_bin):
        result = runner.invoke(acc8disasm.main, [str(store_bin), "--no-bytes"])

        lines = result.output.splitlines()
        assert "    LDA #$2A" in [line.split(";")[0].rstrip() for line in lines]
        assert not any(line.startswith("$0000") for line in lines)

    def test_hex_dump_and_count(self, runner, store_bin):
        result = runner.invoke(acc8disasm.main, [str(store_bin), "--hex", "-c", "1"])

        assert "; Hex dump:" in result.output
        assert "LDA #$2A" in result.output
        assert "STA $10" not in result.output

    def test_base_address(self, runner, store_bin):
        result = runner.invoke(acc8disasm.main, [str(store_bin), "-a", "$0100"])
        assert "$0100: 01 2A" in result.output

    def test_output_file(self, runner, store_bin, tmp_path):
        out = tmp_path / "store.txt"
        result = runner.invoke(acc8disasm.main, [str(store_bin), "-o", str(out)])

        assert result.exit_code == 0
        assert "STA $10" in out.read_text()

    def test_empty_file(self, runner, tmp_path):
        empty = tmp_path / "empty.bin"
        empty.write_bytes(b"")
        result = runner.invoke(acc8disasm.main, [str(empty)])
        assert result.exit_code == ExitCode.INVALID_ARGS


# =============================================================================
# Test acc8run
# =============================================================================

class TestAcc8Run:
    """Tests for the emulator CLI."""

    def test_run_binary(self, runner, store_bin):
        result = runner.invoke(acc8run.main, [str(store_bin)])

        assert result.exit_code == 0, result.output
        assert "Halted at $0004" in result.output
        assert "ACC=$2A" in result.output
        assert "Instructions:" in result.output

    def test_run_source(self, runner, tmp_path):
        src = tmp_path / "count.asm"
        src.write_text(COUNT_SOURCE)
        result = runner.invoke(acc8run.main, [str(src), "--asm"])

        assert result.exit_code == 0, result.output
        assert "ACC=$00" in result.output

    def test_dump(self, runner, store_bin):
        result = runner.invoke(acc8run.main, [str(store_bin), "--dump", "$0210:4"])
        assert "$0210: 2A 00 00 00" in result.output

    def test_breakpoint(self, runner, store_bin):
        result = runner.invoke(acc8run.main, [str(store_bin), "--break", "2"])

        assert result.exit_code == 0
        assert "Breakpoint at $0002" in result.output
        assert "PC=$0002" in result.output

    def test_watchpoint(self, runner, store_bin):
        result = runner.invoke(acc8run.main, [str(store_bin), "--watch", "$0210"])
        assert "Write $2A to $0210" in result.output

    def test_trace(self, runner, store_bin):
        result = runner.invoke(acc8run.main, [str(store_bin), "--trace"])

        lines = result.output.splitlines()
        assert lines[0].startswith("$0000  LDA #$2A")
        assert "ACC=$2A" in lines[0]
        assert lines[1].startswith("$0002  STA $10")

    def test_multiply_modes(self, runner, tmp_path):
        src = tmp_path / "mul.asm"
        src.write_text("LDA #3\nLDX #5\nMUL\nhalt: JMP halt\n")

        popcount = runner.invoke(acc8run.main, [str(src), "--asm"])
        product = runner.invoke(acc8run.main, [str(src), "--asm", "--multiply", "product"])

        assert "ACC=$06" in popcount.output
        assert "ACC=$0F" in product.output

    def test_max_cycles_exit_status(self, runner, tmp_path):
        prog = tmp_path / "forever.bin"
        prog.write_bytes(COUNT_FOREVER)
        result = runner.invoke(acc8run.main, [str(prog), "--max-cycles", "50"])

        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "Reached max cycles (50)" in result.output

    def test_snapshot(self, runner, store_bin, tmp_path):
        snap = tmp_path / "store.a8s"
        result = runner.invoke(acc8run.main, [str(store_bin), "--snapshot", str(snap)])

        assert result.exit_code == 0, result.output
        data = snap.read_bytes()
        assert data[:4] == b"A8S\x01"
        assert len(data) == 4 + 10 + 16 + 0x10000

    def test_bad_breakpoint(self, runner, store_bin):
        result = runner.invoke(acc8run.main, [str(store_bin), "--break", "nowhere"])
        assert result.exit_code == ExitCode.INVALID_ARGS

    def test_assembly_error(self, runner, tmp_path):
        src = tmp_path / "bad.asm"
        src.write_text("STA #1\n")
        result = runner.invoke(acc8run.main, [str(src), "--asm"])

        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "hint: STA supports: direct" in result.output
