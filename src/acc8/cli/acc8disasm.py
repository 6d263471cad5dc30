"""
acc8disasm - acc8 Disassembler Command-Line Interface
=====================================================

Prints a listing of a raw program image; every line (apart from the
';' header) is valid acc8asm input once the address and byte columns are
dropped with --no-bytes.

    $ acc8disasm count.bin
    $ acc8disasm count.bin --address 0x20 --count 10 -o count.txt
    $ acc8disasm count.bin --hex --no-bytes
"""

from pathlib import Path
from typing import Optional

import click

from acc8 import __version__
from acc8.disassembler import DisassembledInstruction, Disassembler
from acc8.cli.errors import handle_cli_exception, parse_address


def hex_dump(data: bytes, base_address: int) -> list[str]:
    """Commented hex dump, 16 bytes and their ASCII per line."""
    rule = "; " + "-" * 60
    lines = ["; Hex dump:", rule]
    for start in range(0, len(data), 16):
        row = data[start:start + 16]
        text = "".join(chr(b) if 0x20 <= b < 0x7F else "." for b in row)
        lines.append(f"; ${base_address + start:04X}: {row.hex(' ').upper():<48} {text}")
    lines.append(rule)
    return lines


def source_line(instr: DisassembledInstruction) -> str:
    """Instruction as an indented source line, comment kept."""
    line = f"    {instr.text}"
    return f"{line:<24}; {instr.comment}" if instr.comment else line


@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: stdout)",
)
@click.option(
    "-a", "--address",
    default="0",
    help="Base address for disassembly ($hex, 0xhex or decimal). Default: 0",
)
@click.option(
    "-c", "--count",
    type=int,
    default=None,
    help="Maximum number of instructions to disassemble (default: all)",
)
@click.option(
    "--hex",
    "show_hex",
    is_flag=True,
    help="Include hex dump before disassembly",
)
@click.option(
    "--no-bytes",
    is_flag=True,
    help="Omit raw bytes from output (show only mnemonic and operand)",
)
@click.option(
    "--direct-page",
    type=click.IntRange(0, 0xFF),
    default=0x02,
    show_default=True,
    help="Page direct-mode offsets are resolved against",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="acc8disasm")
def main(
    input_file: Path,
    output: Optional[Path],
    address: str,
    count: Optional[int],
    show_hex: bool,
    no_bytes: bool,
    direct_page: int,
    verbose: bool,
) -> None:
    """
    Disassemble acc8 machine code.

    INPUT_FILE is the binary program image.
    """
    try:
        base_address = parse_address(address)
        data = input_file.read_bytes()
        if not data:
            raise click.BadParameter(f"{input_file} is empty")
        if verbose:
            click.echo(f"Read {len(data)} bytes from {input_file}, base ${base_address:04X}", err=True)

        lines = [
            f"; Disassembly of {input_file.name}",
            f"; Size: {len(data)} bytes",
            f"; Base address: ${base_address:04X}",
            "",
        ]
        if show_hex:
            lines += hex_dump(data, base_address) + [""]

        render = source_line if no_bytes else str
        disasm = Disassembler(direct_page=direct_page)
        lines += [render(i) for i in disasm.disassemble(data, base_address, count)]

        result = "\n".join(lines) + "\n"
        if output is None:
            click.echo(result, nl=False)
        else:
            output.write_text(result)
            if verbose:
                click.echo(f"Wrote {output}", err=True)

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Disassembly")


if __name__ == "__main__":
    main()
