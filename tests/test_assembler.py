# =============================================================================
# test_assembler.py - Full Assembler Integration Tests
# =============================================================================
# End-to-end tests for the acc8 assembler: source text in, program image out.
#
# Test coverage includes:
#   - Encoding of every addressing mode
#   - Labels, EQU constants, ORG and .BYTE data
#   - Expressions and the '$' location counter
#   - Error reporting with locations and hints
#   - Listing and symbol output
# =============================================================================

import pytest

from acc8.assembler import (
    Assembler,
    Directive,
    Instruction,
    LabelDef,
    assemble,
    assemble_file,
    parse_source,
)
from acc8.errors import (
    AddressingModeError,
    AssemblerError,
    AssemblySyntaxError,
    BranchRangeError,
    DuplicateSymbolError,
    UndefinedSymbolError,
    UnknownMnemonicError,
)


def hexcode(source: str) -> str:
    return assemble(source).hex()


# =============================================================================
# Instruction Encoding
# =============================================================================

class TestEncoding:
    """One instruction per addressing mode."""

    @pytest.mark.parametrize("source,expected", [
        ("NOP", "00"),
        ("INC", "16"),
        ("RTS", "53"),
        ("LDA #$41", "0141"),
        ("LDA #'A'", "0141"),
        ("LDA #-1", "01ff"),
        ("ldx #10", "060a"),
        ("LDA $10", "0210"),
        ("LDA $0210", "0210"),
        ("STA $10", "0410"),
        ("STY $FF", "0bff"),
        ("ADD $20", "1120"),
        ("CMP #0", "3000"),
        ("JMP $1234", "501234"),
        ("JSR $0008", "520008"),
        ("JMP $", "500000"),
        ("BRA $", "48fe"),
        ("PLP", "67"),
        ("NEG", "73"),
    ])
    def test_single_instruction(self, source, expected):
        assert hexcode(source) == expected

    def test_backward_branch(self):
        source = """
            LDA #10
        loop:
            DEC
            BNE loop
        halt:
            JMP halt
        """
        assert hexcode(source) == "010a1741fd500005"

    def test_forward_branch(self):
        source = """
            BEQ skip
            INC
        skip:
            NOP
        """
        assert hexcode(source) == "40011600"

    def test_custom_direct_page(self):
        asm = Assembler(direct_page=0x80)
        assert asm.assemble_string("LDA $8005").hex() == "0205"


# =============================================================================
# Symbols, Directives and Expressions
# =============================================================================

class TestSymbolsAndDirectives:
    """Labels, EQU, ORG and .BYTE."""

    def test_equ(self):
        assert hexcode("count EQU 10\nLDA #count") == "010a"

    def test_dot_equ_and_expression(self):
        assert hexcode("base .EQU $10\nSTA base+2") == "0412"

    def test_predefined_symbols(self):
        asm = Assembler(defines={"LIMIT": 0x20})
        assert asm.assemble_string("CMP #LIMIT").hex() == "3020"
        assert asm.get_symbols()["LIMIT"] == 0x20

    def test_define_symbol(self):
        asm = Assembler()
        asm.define_symbol("DEBUG", 1)
        assert asm.assemble_string("LDA #DEBUG").hex() == "0101"

    def test_org_gap_filled(self):
        asm = Assembler()
        code = asm.assemble_string("ORG $10\nNOP\nORG $14\nINC")
        assert code == bytes([0x00, 0x00, 0x00, 0x00, 0x16])
        assert asm.get_origin() == 0x10

    def test_labels_after_org(self):
        asm = Assembler()
        asm.assemble_string("ORG $20\nstart: JMP start+3")
        assert asm.get_code().hex() == "500023"
        assert asm.get_symbols()["start"] == 0x20

    @pytest.mark.parametrize("directive", [".BYTE", "FCB", "DB", ".byte"])
    def test_byte_spellings(self, directive):
        assert hexcode(f'{directive} 1, $FF, -1, "hi"') == "01ffff6869"

    def test_byte_label(self):
        asm = Assembler()
        asm.assemble_string('JMP over\nmsg: .BYTE "ok"\nover: LDA msg')
        assert asm.get_symbols()["msg"] == 3
        assert asm.get_code().hex() == "500005" + "6f6b" + "0203"

    def test_labels_case_sensitive(self):
        asm = Assembler()
        asm.assemble_string("Loop: NOP\nloop: INC")
        assert asm.get_symbols() == {"Loop": 0, "loop": 1}

    def test_comments_ignored(self):
        assert hexcode("* header\nNOP ; trailing\n; whole line\n") == "00"


# =============================================================================
# Error Handling
# =============================================================================

class TestErrors:
    """Errors carry a type, a location and, where possible, a hint."""

    def test_unknown_mnemonic(self):
        with pytest.raises(UnknownMnemonicError) as exc_info:
            assemble("NOP\nFROB #1")
        assert exc_info.value.location.line == 2
        assert exc_info.value.mnemonic == "FROB"

    def test_label_without_colon(self):
        with pytest.raises(UnknownMnemonicError) as exc_info:
            assemble("start")
        assert "labels must end with ':'" in str(exc_info.value)

    def test_addressing_mode(self):
        with pytest.raises(AddressingModeError) as exc_info:
            assemble("STA #1")
        assert exc_info.value.valid_modes == ["direct"]

    def test_inherent_with_operand(self):
        with pytest.raises(AddressingModeError):
            assemble("INC 5")

    def test_undefined_symbol_suggestion(self):
        with pytest.raises(UndefinedSymbolError) as exc_info:
            assemble("loop: NOP\nBNE lop")
        assert exc_info.value.similar_symbols == ["loop"]
        assert "did you mean 'loop'?" in str(exc_info.value)

    def test_duplicate_symbol(self):
        with pytest.raises(DuplicateSymbolError) as exc_info:
            assemble("a: NOP\na: INC")
        assert exc_info.value.original_location.line == 1

    def test_branch_out_of_range(self):
        with pytest.raises(BranchRangeError) as exc_info:
            assemble("BRA far\nORG $100\nfar: NOP")
        assert exc_info.value.target == "far"
        assert exc_info.value.offset == 254

    @pytest.mark.parametrize("source", ["LDA #256", "LDA #-129", ".BYTE 300"])
    def test_value_out_of_range(self, source):
        with pytest.raises(AssemblerError) as exc_info:
            assemble(source)
        assert "does not fit in a byte" in str(exc_info.value)

    def test_direct_outside_page(self):
        with pytest.raises(AssemblerError) as exc_info:
            assemble("LDA $0310")
        assert "outside the direct page" in str(exc_info.value)

    def test_overlapping_org(self):
        with pytest.raises(AssemblerError) as exc_info:
            assemble("NOP\nORG 0\nINC")
        assert "overlaps" in str(exc_info.value)

    def test_equ_without_name(self):
        with pytest.raises(AssemblySyntaxError):
            assemble("EQU 5")

    def test_bad_expression(self):
        with pytest.raises(AssemblySyntaxError):
            assemble("LDA #1+")

    def test_lexer_error(self):
        with pytest.raises(AssemblySyntaxError):
            assemble("LDA @1")

    def test_multiple_errors_collected(self):
        """Every bad line is reported in one run."""
        with pytest.raises(AssemblerError) as exc_info:
            assemble("FOO\nNOP\nBAR")
        assert len(exc_info.value.errors) == 2
        assert "2 errors" in str(exc_info.value)

    def test_error_format(self):
        with pytest.raises(AssemblerError) as exc_info:
            assemble("  STA #1", filename="prog.asm")
        lines = str(exc_info.value).splitlines()
        assert lines[0].startswith("prog.asm:1: error:")
        assert lines[1] == "    STA #1"


# =============================================================================
# Parser
# =============================================================================

class TestParser:
    """Statement structure produced by the parser."""

    def test_label_and_instruction(self):
        statements = parse_source("loop: LDA #1")
        assert isinstance(statements[0], LabelDef)
        assert statements[0].name == "loop"
        assert isinstance(statements[1], Instruction)
        assert statements[1].mnemonic == "LDA"
        assert statements[1].operand.immediate

    def test_directive_arguments(self):
        (directive,) = parse_source('.BYTE 1, "ab", x+1')
        assert isinstance(directive, Directive)
        assert directive.name == "BYTE"
        assert len(directive.arguments) == 3

    def test_equ_label(self):
        (directive,) = parse_source("size EQU 4")
        assert directive.name == "EQU"
        assert directive.label == "size"


# =============================================================================
# Output Files
# =============================================================================

class TestOutput:
    """Binary, listing and symbol output."""

    SOURCE = "start: LDA #1\nloop: INC\n BRA loop\n"

    def test_assemble_file(self, tmp_path):
        path = tmp_path / "prog.asm"
        path.write_text(self.SOURCE)
        assert assemble_file(path).hex() == "0101" + "16" + "48fd"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Assembler().assemble_file(tmp_path / "missing.asm")

    def test_write_outputs(self, tmp_path):
        asm = Assembler()
        asm.assemble_string(self.SOURCE)
        asm.write_binary(tmp_path / "prog.bin")
        asm.write_listing(tmp_path / "prog.lst")
        asm.write_symbols(tmp_path / "prog.sym")

        assert (tmp_path / "prog.bin").read_bytes() == bytes([0x01, 0x01, 0x16, 0x48, 0xFD])
        listing = (tmp_path / "prog.lst").read_text()
        assert "$0002  16" in listing
        assert "Symbol Table" in listing
        symbols = (tmp_path / "prog.sym").read_text().splitlines()
        assert [line.split()[0] for line in symbols] == ["loop", "start"]
        assert symbols[0].endswith("= $0002")

    def test_listing_shows_equ(self):
        asm = Assembler()
        asm.assemble_string("n EQU $42\nLDA #n")
        assert "=0042" in asm.get_listing()
