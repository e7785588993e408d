"""Typer CLI for panutils.

Usage:
    # Rename one genome, prefix taken from the file name
    panutils fastixe -i GCF_002012065.1_ASM201206v1_genomic.fna --up

    # Explicit prefix, output to stdout
    cat genome.fa | panutils fastixe -a - -p sample1#0# > renamed.fa

    # Whole directory, 8 threads, merged into one BGZF file with index
    panutils fastixe -d genomes/ -m -b -f -t 8
"""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from panutils import __version__
from panutils.prefix import DEFAULT_PATTERN

app = typer.Typer(
    name="panutils",
    help="Utilities for preparing genome collections for pangenome analysis",
    add_completion=False,
    no_args_is_help=True,
)

# FASTA may be streamed to stdout, so all messages go to stderr
console = Console(stderr=True)

logger = logging.getLogger(__name__)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"panutils {__version__}")
        raise typer.Exit()


@app.callback()
def callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show version and exit",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """Utilities for preparing genome collections for pangenome analysis."""


@app.command(no_args_is_help=True)
def fastixe(
    stdin: Annotated[
        str | None,
        typer.Option(
            "--stdin", "-a",
            help="Input stream, use '-' for stdin",
            rich_help_panel="Input",
        ),
    ] = None,
    input_genome: Annotated[
        Path | None,
        typer.Option(
            "--input-genome", "-i",
            help="Input genome",
            rich_help_panel="Input",
        ),
    ] = None,
    input_files: Annotated[
        list[Path] | None,
        typer.Option(
            "--input-files", "-s",
            help="Input genome file (repeat for several files)",
            rich_help_panel="Input",
        ),
    ] = None,
    input_list: Annotated[
        Path | None,
        typer.Option(
            "--input-genome-list", "-l",
            help="File listing one genome path per line",
            rich_help_panel="Input",
        ),
    ] = None,
    input_dir: Annotated[
        Path | None,
        typer.Option(
            "--input-dir", "-d",
            help="Directory containing FASTA files (.fa, .fna, .fasta, optionally .gz)",
            rich_help_panel="Input",
        ),
    ] = None,
    out_dir: Annotated[
        Path,
        typer.Option(
            "--out-dir", "-o",
            help="Output directory",
            file_okay=False,
            dir_okay=True,
            rich_help_panel="Output",
        ),
    ] = Path("genomes"),
    to_stdout: Annotated[
        bool,
        typer.Option(
            "--stdout",
            help="Write output to stdout (single input only)",
            rich_help_panel="Output",
        ),
    ] = False,
    prefix: Annotated[
        str | None,
        typer.Option(
            "--prefix", "-p",
            help="Prefix to add to headers (default: derived from file name)",
            rich_help_panel="Rename",
        ),
    ] = None,
    pattern: Annotated[
        str,
        typer.Option(
            "--regex", "-r",
            help="File name regex; the match plus '#0#' becomes the prefix",
            rich_help_panel="Rename",
        ),
    ] = DEFAULT_PATTERN,
    uppercase: Annotated[
        bool,
        typer.Option(
            "--up", "-u",
            help="Convert all bases to uppercase letters",
            rich_help_panel="Sequence",
        ),
    ] = False,
    gzip_output: Annotated[
        bool,
        typer.Option(
            "--gz", "-g",
            help="Gzip output",
            rich_help_panel="Output",
        ),
    ] = False,
    merge_file_name: Annotated[
        str,
        typer.Option(
            "--output-file-name", "-e",
            help="Merged output file name (inside --out-dir)",
            rich_help_panel="Merge output",
        ),
    ] = "merged.fa",
    merge: Annotated[
        bool,
        typer.Option(
            "--merge", "-m",
            help="Merge all genomes into one file",
            rich_help_panel="Merge output",
        ),
    ] = False,
    bgzip_output: Annotated[
        bool,
        typer.Option(
            "--bgz", "-b",
            help="BGZF-compress the merged file (requires htslib bgzip)",
            rich_help_panel="Merge output",
        ),
    ] = False,
    faidx: Annotated[
        bool,
        typer.Option(
            "--faidx", "-f",
            help="Build the faidx index for the merged file, like samtools faidx",
            rich_help_panel="Index",
        ),
    ] = False,
    compression_level: Annotated[
        int | None,
        typer.Option(
            "--level",
            help="Compression level (0-9)",
            min=0,
            max=9,
            rich_help_panel="Output",
        ),
    ] = None,
    threads: Annotated[
        int,
        typer.Option(
            "--threads", "-t",
            help="Number of threads",
            min=1,
        ),
    ] = 1,
    trace: Annotated[
        bool,
        typer.Option("--trace", help="Trace output (caution: very verbose)"),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Debug output"),
    ] = False,
) -> None:
    """Rename FASTA headers to '>{prefix}{id}' and optionally merge genomes.

    The prefix is --prefix, or the first --regex match in each file name
    followed by '#0#'. Output goes to --out-dir, one file per input, or to
    one merged file with --merge.

    Example usage:

        # Prefix from file name: >GCF_002012065.1#0#NZ_CP1
        panutils fastixe -i GCF_002012065.1_ASM201206v1_genomic.fna --up

        # Directory to gzipped per-genome files
        panutils fastixe -d genomes/ -g -t 4

        # Merge to BGZF and index
        panutils fastixe -d genomes/ -m -b -f -t 8
    """
    from panutils.config import FastixeConfig
    from panutils.logging_config import level_from_flags, setup_logging
    from panutils.pipeline import PROCESSING_ERRORS, run_fastixe
    from panutils.sinks import detect_htslib

    setup_logging(level_from_flags(debug=debug, trace=trace), console=console)

    config = FastixeConfig(
        stdin=stdin,
        input_genome=input_genome,
        input_files=input_files or [],
        input_list=input_list,
        input_dir=input_dir,
        out_dir=out_dir,
        to_stdout=to_stdout,
        prefix=prefix,
        pattern=pattern,
        uppercase=uppercase,
        gzip_output=gzip_output,
        merge=merge,
        merge_file_name=merge_file_name,
        bgzip_output=bgzip_output,
        faidx=faidx,
        compression_level=compression_level,
        threads=threads,
        debug=debug,
        trace=trace,
    )

    tools = detect_htslib()
    logger.debug(f"htslib: bgzip={tools.bgzip}, samtools={tools.samtools}")

    errors = config.validate(tools)
    if errors:
        for error in errors:
            logger.error(error)
        raise typer.Exit(code=1)

    try:
        summary = run_fastixe(config, tools=tools, console=console)
    except PROCESSING_ERRORS as e:
        logger.error(str(e))
        if debug or trace:
            import traceback
            console.print(traceback.format_exc())
        raise typer.Exit(code=1)

    if summary.mode == "merge":
        console.print(f"Merged output: {summary.outputs[0]}")
        if summary.index_path is not None:
            console.print(f"Index:         {summary.index_path}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
