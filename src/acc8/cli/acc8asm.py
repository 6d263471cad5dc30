"""
acc8asm - acc8 Assembler Command-Line Interface
===============================================

Assembles one source file into a raw program image, which acc8run (or any
loader that places the bytes at the assembled origin) can execute.

    $ acc8asm count.asm                     # writes count.bin
    $ acc8asm count.asm -o out.bin -l count.lst -s count.sym
    $ acc8asm -D LIMIT=$20 -D DEBUG count.asm

Exit status is 1 for errors in the source and 2 for a bad command line.
"""

import logging
from pathlib import Path
from typing import Optional

import click

from acc8 import __version__
from acc8.assembler import Assembler
from acc8.cli.errors import handle_cli_exception, parse_number


def parse_define(defn: str) -> tuple[str, int]:
    """
    Parse a -D argument: NAME=VALUE, or NAME alone for the value 1.

    Raises:
        click.BadParameter: If the name is empty or the value is invalid
    """
    name, has_value, value_text = defn.partition("=")
    value = parse_number(value_text) if has_value else 1
    name = name.strip()
    if not name:
        raise click.BadParameter(f"invalid define '-D {defn}'")
    return name, value


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output binary file (default: input.bin)",
)
@click.option(
    "-l", "--listing",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate listing file",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate symbol file",
)
@click.option(
    "-D", "--define",
    multiple=True,
    metavar="NAME[=VALUE]",
    help="Pre-define a symbol (value $hex, 0xhex or decimal; default 1)",
)
@click.option(
    "--direct-page",
    type=click.IntRange(0, 0xFF),
    default=0x02,
    show_default=True,
    help="Page that direct-mode operands address",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="acc8asm")
def main(
    input_file: Path,
    output: Optional[Path],
    listing: Optional[Path],
    symbols: Optional[Path],
    define: tuple[str, ...],
    direct_page: int,
    verbose: bool,
) -> None:
    """
    Assemble acc8 source into a raw program image.

    INPUT_FILE is the assembly source file.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    try:
        asm = Assembler(
            defines=dict(parse_define(d) for d in define),
            direct_page=direct_page,
        )
        if verbose:
            click.echo(f"Assembling {input_file}...")
        asm.assemble_file(input_file)

        outputs = [
            (output or input_file.with_suffix(".bin"), asm.write_binary, "image"),
            (listing, asm.write_listing, "listing"),
            (symbols, asm.write_symbols, "symbols"),
        ]
        for path, write, what in outputs:
            if path is None:
                continue
            write(path)
            if verbose:
                click.echo(f"Wrote {what} to {path}")

        if verbose:
            click.echo(
                f"Assembly complete: {len(asm.get_code())} bytes at ${asm.get_origin():04X}"
            )
            click.echo(f"Defined {len(asm.get_symbols())} symbols")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Assembly")


if __name__ == "__main__":
    main()
