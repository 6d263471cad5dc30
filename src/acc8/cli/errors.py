"""
Exit Codes and Argument Parsing for the acc8 Tools
==================================================

acc8asm, acc8disasm and acc8run share these helpers so the three tools
accept numbers the same way and report failures with the same exit codes:

    0  success
    1  the source, image or run was bad (assembler error, load error,
       cycle limit reached)
    2  the command line was bad (unparsable number, missing file)
    3  a bug in acc8 itself
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click

from acc8.errors import Acc8Error, AssemblerError


class ExitCode(IntEnum):
    SUCCESS = 0
    BUILD_ERROR = 1
    INVALID_ARGS = 2
    INTERNAL_ERROR = 3


def parse_number(text: str) -> int:
    """
    Parse a command-line number: $FF, 0xFF or decimal.

    Raises:
        click.BadParameter: If text is not a number
    """
    text = text.strip()
    digits, base = text, 10
    if text.startswith("$"):
        digits, base = text[1:], 16
    elif text[:2].lower() == "0x":
        digits, base = text[2:], 16
    try:
        return int(digits, base)
    except ValueError:
        raise click.BadParameter(f"invalid number '{text}'") from None


def parse_address(text: str) -> int:
    """Parse a 16-bit address; see parse_number()."""
    value = parse_number(text)
    if value not in range(0x10000):
        raise click.BadParameter(f"address must be 0-65535 ($0000-$FFFF), got '{text}'")
    return value


def handle_cli_exception(
    error: Exception,
    verbose: bool = False,
    error_type: str | None = None
) -> NoReturn:
    """
    Report error on stderr and exit with the matching ExitCode.

    Assembler errors already start with 'file:line: error:' and are printed
    as they are. Other acc8 errors get an '<error_type> error:' prefix.
    Anything unexpected is an internal error; verbose adds the traceback.
    """
    if isinstance(error, AssemblerError):
        message, code = str(error), ExitCode.BUILD_ERROR
    elif isinstance(error, Acc8Error):
        label = f"{error_type} error" if error_type else "Error"
        message, code = f"{label}: {error}", ExitCode.BUILD_ERROR
    elif isinstance(error, (click.BadParameter, FileNotFoundError, PermissionError)):
        message, code = f"Error: {error}", ExitCode.INVALID_ARGS
    else:
        message, code = f"Internal error: {error}", ExitCode.INTERNAL_ERROR

    click.echo(message, err=True)
    if code is ExitCode.INTERNAL_ERROR and verbose:
        traceback.print_exc()
    sys.exit(code)
