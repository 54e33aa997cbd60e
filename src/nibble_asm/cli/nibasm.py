"""
nibasm - Assembler Command-Line Interface
=========================================

Assembles a source file into a raw 65536-byte ROM image.

Usage Examples
--------------
Basic assembly:
    $ nibasm program.asm program.rom

With listing and label table:
    $ nibasm program.asm program.rom -l program.lst -s program.sym

Verbose mode (label table and summary, debug logging):
    $ nibasm -v program.asm program.rom

The ROM file is only written when assembly succeeds; on failure any
existing file at OUTPUT_FILE is left as it was.
"""

from pathlib import Path
from typing import Optional
import logging

import click

from nibble_asm import __version__
from nibble_asm.assembler import Assembler
from nibble_asm.cli.errors import handle_cli_exception


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "warning: %(message)s",
    )


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.argument(
    "output_file",
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option(
    "-l", "--listing",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate listing file",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate label table file",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="nibasm")
def main(
    input_file: Path,
    output_file: Path,
    listing: Optional[Path],
    symbols: Optional[Path],
    verbose: bool,
) -> None:
    """
    Assemble INPUT_FILE into a 64K ROM image written to OUTPUT_FILE.

    \b
    Examples:
        nibasm prog.asm prog.rom                 # Assemble
        nibasm prog.asm prog.rom -s prog.sym     # Also write label table
        nibasm -v prog.asm prog.rom              # Show labels and summary
    """
    setup_logging(verbose)

    asm = Assembler(verbose=verbose)

    try:
        asm.assemble_file(input_file)
        asm.write_rom(output_file)

        if listing:
            asm.write_listing(listing)
            if verbose:
                click.echo(f"Wrote listing to {listing}")

        if symbols:
            asm.write_symbols(symbols)
            if verbose:
                click.echo(f"Wrote symbols to {symbols}")

        if verbose:
            labels = asm.get_symbols()
            for name, address in labels.items():
                click.echo(f"  {name:20s} ${address:04X}")
            used = asm.get_used_addresses()
            click.echo(f"Assembly complete: {len(used)} bytes written, {len(labels)} labels")
            click.echo(f"Wrote {output_file}")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Assembly")


if __name__ == "__main__":
    main()
