"""Configuration dataclass for fastixe.

Holds the validated options structure handed from the CLI to the
pipeline: input source selection, output layout, renaming, compression,
merge and index options, and the worker count.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path

from panutils.errors import ConfigurationError
from panutils.io_utils import GZIP_SUFFIX, STDIN_SENTINEL
from panutils.prefix import DEFAULT_PATTERN
from panutils.sinks import HtslibTools, SinkKind, detect_htslib


@dataclass
class FastixeConfig:
    """Configuration for one fastixe run.

    Attributes:
        stdin: Stdin marker ("-") to read one FASTA stream from stdin
        input_genome: Single genome path
        input_files: Explicit list of genome paths
        input_list: File listing one genome path per line
        input_dir: Directory scanned for FASTA files
        out_dir: Output directory (default "genomes")
        to_stdout: Write single-input output to stdout
        prefix: Caller-supplied header prefix (bypasses the pattern)
        pattern: Regex matched against each file's base name
        uppercase: Upper-case sequence lines
        gzip_output: Gzip output files
        merge: Merge all inputs into one file
        merge_file_name: Merged output file name
        bgzip_output: BGZF-compress the merged file (needs htslib)
        faidx: Build a faidx index for the merged file (needs htslib)
        compression_level: Compression level 0-9 (None = library default)
        threads: Worker count, also passed to bgzip
        debug: Debug logging
        trace: Trace logging
    """

    stdin: str | None = None
    input_genome: Path | None = None
    input_files: list[Path] = field(default_factory=list)
    input_list: Path | None = None
    input_dir: Path | None = None

    out_dir: Path = Path("genomes")
    to_stdout: bool = False

    # Renaming
    prefix: str | None = None
    pattern: str = DEFAULT_PATTERN
    uppercase: bool = False

    # Compression and merge
    gzip_output: bool = False
    merge: bool = False
    merge_file_name: str = "merged.fa"
    bgzip_output: bool = False
    faidx: bool = False
    compression_level: int | None = None

    threads: int = 1

    # Logging flags
    debug: bool = False
    trace: bool = False

    def __post_init__(self) -> None:
        """Normalize path options."""
        if isinstance(self.input_genome, str):
            self.input_genome = Path(self.input_genome)
        if isinstance(self.input_list, str):
            self.input_list = Path(self.input_list)
        if isinstance(self.input_dir, str):
            self.input_dir = Path(self.input_dir)
        if isinstance(self.out_dir, str):
            self.out_dir = Path(self.out_dir)
        self.input_files = [Path(p) for p in self.input_files or []]

    @property
    def uses_stdin(self) -> bool:
        """Whether input is read from standard input."""
        return self.stdin is not None

    @property
    def has_file_sources(self) -> bool:
        """Whether any file-based input option is set."""
        return (
            self.input_genome is not None
            or bool(self.input_files)
            or self.input_list is not None
            or self.input_dir is not None
        )

    @property
    def per_file_sink_kind(self) -> SinkKind:
        """Sink used for each per-file output."""
        return SinkKind.GZIP if self.gzip_output else SinkKind.PLAIN

    @property
    def merge_sink_kind(self) -> SinkKind:
        """Sink used for the merged output."""
        if self.bgzip_output:
            return SinkKind.BGZIP
        if self.gzip_output:
            return SinkKind.GZIP
        return SinkKind.PLAIN

    @property
    def merged_output_path(self) -> Path:
        """Path of the merged file.

        BGZF output replaces the file extension with ``.gz``; plain gzip
        output appends ``.gz``.
        """
        path = self.out_dir / self.merge_file_name
        if self.bgzip_output:
            return path.with_suffix(GZIP_SUFFIX)
        if self.gzip_output and path.suffix != GZIP_SUFFIX:
            return path.with_name(path.name + GZIP_SUFFIX)
        return path

    def output_path_for(self, file_name: str) -> Path:
        """Get the per-file output path for an input base name.

        Args:
            file_name: Base name of the input file

        Returns:
            Output path inside out_dir (``.gz`` appended when compressing)
        """
        if self.gzip_output:
            return self.out_dir / f"{file_name}{GZIP_SUFFIX}"
        return self.out_dir / file_name

    def validate(self, tools: HtslibTools | None = None) -> list[str]:
        """Validate configuration and return list of errors.

        Args:
            tools: Detected htslib capability (detected from PATH if None)

        Returns:
            List of error messages (empty if valid)
        """
        errors: list[str] = []

        if not self.uses_stdin and not self.has_file_sources:
            errors.append(
                "No genome found! Provide --stdin, --input-genome, --input-files, "
                "--input-genome-list or --input-dir."
            )

        if self.uses_stdin:
            if self.has_file_sources:
                errors.append(
                    "Input stream option --stdin cannot be shared with other input options."
                )
            if self.prefix is None:
                errors.append("Input stream option --stdin requires --prefix.")
            if self.stdin != STDIN_SENTINEL:
                errors.append(
                    f"Input stream option --stdin only accepts '{STDIN_SENTINEL}', got '{self.stdin}'."
                )

        if self.prefix is None:
            try:
                re.compile(self.pattern)
            except re.error as e:
                errors.append(f"Invalid regex '{self.pattern}': {e}")

        if self.compression_level is not None and not 0 <= self.compression_level <= 9:
            errors.append(
                f"Compression level must be between 0 and 9: {self.compression_level}"
            )

        if self.threads < 1:
            errors.append(f"Thread count must be at least 1: {self.threads}")

        if self.merge and self.to_stdout:
            errors.append("--stdout cannot be combined with --merge.")

        if self.merge and (self.bgzip_output or self.faidx):
            if tools is None:
                tools = detect_htslib()
            if self.bgzip_output and not tools.available:
                errors.append(f"--bgz {tools.missing_message()}")
            if self.faidx and not tools.available:
                errors.append(f"--faidx {tools.missing_message()}")
            if self.faidx and self.merge_sink_kind == SinkKind.GZIP:
                errors.append(
                    "--faidx cannot index plain gzip output; use --bgz for an indexable file."
                )

        return errors

    def require_valid(self, tools: HtslibTools | None = None) -> None:
        """Raise ConfigurationError if validate() reports any problem.

        Raises:
            ConfigurationError: With all error messages joined
        """
        errors = self.validate(tools)
        if errors:
            raise ConfigurationError("\n".join(errors))
