"""
acc8run - acc8 Emulator Command-Line Interface
==============================================

Loads a program image (or assembles a source file with --asm), runs it on
the emulator and prints the final registers and the reason the run stopped.

Usage Examples
--------------
Run a binary image:
    $ acc8run count.bin

Assemble and run, tracing each instruction:
    $ acc8run --asm count.asm --trace

Stop at a breakpoint and dump data memory:
    $ acc8run count.bin --break 0x0010 --dump 0x0200:16

Use true multiplication instead of the popcount rule:
    $ acc8run prog.bin --multiply product
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from acc8 import __version__
from acc8.assembler import Assembler
from acc8.disassembler import Disassembler
from acc8.emulator import BreakReason, Emulator, EmulatorConfig, MultiplyMode
from acc8.emulator.registers import RegisterSnapshot
from acc8.cli.errors import ExitCode, handle_cli_exception, parse_address, parse_number


def parse_dump(text: str) -> tuple[int, int]:
    """
    Parse a --dump argument: ADDR or ADDR:COUNT (COUNT defaults to 16).

    Raises:
        click.BadParameter: If either part is invalid
    """
    address_str, _, count_str = text.partition(":")
    address = parse_address(address_str)
    count = parse_number(count_str) if count_str else 16
    if count <= 0 or address + count > 0x10000:
        raise click.BadParameter(f"invalid dump range '{text}'")
    return address, count


def format_registers(regs: dict) -> str:
    """One-line register summary."""
    flags = "".join(
        name.upper() if regs[name] else "-" for name in ("n", "v", "z", "c")
    )
    return (
        f"ACC=${regs['acc']:02X} X=${regs['x']:02X} Y=${regs['y']:02X} "
        f"SP=${regs['sp']:02X} PC=${regs['pc']:04X} "
        f"FLAGS=${regs['flags']:02X} [{flags}]"
    )


def format_dump(data: bytes, address: int) -> list[str]:
    """Hex dump lines, 16 bytes per line."""
    return [
        f"${address + i:04X}: " + " ".join(f"{b:02X}" for b in data[i:i + 16])
        for i in range(0, len(data), 16)
    ]


def make_tracer(emu: Emulator):
    """Build an on_retire hook that prints each retired instruction."""
    disasm = Disassembler(direct_page=emu.config.direct_page)

    def trace(address: int, regs: RegisterSnapshot) -> None:
        instr = disasm.disassemble_one(emu.read_bytes(address, 3), address)
        click.echo(
            f"${address:04X}  {instr.text:<14} "
            f"ACC=${regs.acc:02X} X=${regs.x:02X} Y=${regs.y:02X} "
            f"SP=${regs.sp:02X} F=${regs.flags:02X}"
        )

    return trace


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "program",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--asm", "assemble_source",
    is_flag=True,
    help="Treat PROGRAM as assembly source and assemble it first",
)
@click.option(
    "--load-address",
    default="0",
    help="Address to load a binary image at (ignored with --asm). Default: 0",
)
@click.option(
    "--max-cycles",
    type=click.IntRange(min=1),
    default=1_000_000,
    show_default=True,
    help="Stop after this many clock cycles",
)
@click.option(
    "--break", "breakpoints",
    multiple=True,
    metavar="ADDR",
    help="Stop before the instruction at ADDR (repeatable)",
)
@click.option(
    "--watch", "watchpoints",
    multiple=True,
    metavar="ADDR",
    help="Stop after an instruction writes ADDR (repeatable)",
)
@click.option(
    "--multiply",
    type=click.Choice([m.value for m in MultiplyMode]),
    default=MultiplyMode.POPCOUNT.value,
    show_default=True,
    help="MUL rule: popcount (a * popcount(b)) or product (a * b)",
)
@click.option(
    "--direct-page",
    type=click.IntRange(0, 0xFF),
    default=0x02,
    show_default=True,
    help="Page that direct addressing indexes into",
)
@click.option(
    "--dump",
    multiple=True,
    metavar="ADDR[:COUNT]",
    help="Print memory after the run (repeatable)",
)
@click.option(
    "--snapshot",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Save an emulator snapshot after the run",
)
@click.option(
    "-t", "--trace",
    is_flag=True,
    help="Print every retired instruction with the registers after it",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="acc8run")
def main(
    program: Path,
    assemble_source: bool,
    load_address: str,
    max_cycles: int,
    breakpoints: tuple[str, ...],
    watchpoints: tuple[str, ...],
    multiply: str,
    direct_page: int,
    dump: tuple[str, ...],
    snapshot: Optional[Path],
    trace: bool,
    verbose: bool,
) -> None:
    """
    Run an acc8 program in the emulator.

    PROGRAM is a raw binary image, or assembly source with --asm.
    Exits with status 1 if the run stops on the cycle limit.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    try:
        config = EmulatorConfig(
            multiply=MultiplyMode(multiply),
            direct_page=direct_page,
        )
        emu = Emulator(config)

        if assemble_source:
            asm = Assembler(direct_page=direct_page)
            code = asm.assemble_file(program)
            address = asm.get_origin()
        else:
            code = program.read_bytes()
            address = parse_address(load_address)
        emu.load_program(code, address)
        emu.reset()
        if verbose:
            click.echo(f"Loaded {len(code)} bytes at ${address:04X}")

        for text in breakpoints:
            emu.add_breakpoint(parse_address(text))
        for text in watchpoints:
            emu.add_watchpoint(parse_address(text))
        dumps = [parse_dump(text) for text in dump]

        if trace:
            emu.on_retire = make_tracer(emu)

        event = emu.run(max_cycles)

        click.echo(str(event))
        click.echo(format_registers(emu.registers))
        click.echo(
            f"Cycles: {emu.total_cycles}  Instructions: {emu.instructions_retired}"
        )
        for address, count in dumps:
            for line in format_dump(emu.read_bytes(address, count), address):
                click.echo(line)

        if snapshot:
            emu.save_snapshot(snapshot)
            if verbose:
                click.echo(f"Wrote snapshot to {snapshot}")

        if event.reason == BreakReason.MAX_CYCLES:
            sys.exit(ExitCode.BUILD_ERROR)

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Emulation")


if __name__ == "__main__":
    main()
