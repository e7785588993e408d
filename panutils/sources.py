"""Input source resolution.

Turns the five input options (stdin, single genome, explicit file list,
list-file, directory) into one ordered list of InputReference values.
Missing files are reported and skipped; duplicates are kept.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from panutils.io_utils import STDIN_SENTINEL, is_gzip_name

if TYPE_CHECKING:
    from panutils.config import FastixeConfig

logger = logging.getLogger(__name__)

FASTA_SUFFIXES = (".fa", ".fna", ".fasta")
FASTA_GZ_SUFFIXES = tuple(f"{s}.gz" for s in FASTA_SUFFIXES)


class Compression(Enum):
    """Input compression, detected from the file name."""

    NONE = "none"
    GZIP = "gzip"


@dataclass(frozen=True, slots=True)
class InputReference:
    """A resolved input file or the stdin sentinel.

    Attributes:
        raw: Path string as given (``-`` for stdin)
        exists: Whether the path existed at resolution time
        compression: NONE or GZIP (from the ``.gz`` suffix)
    """

    raw: str
    exists: bool
    compression: Compression

    @classmethod
    def from_path(cls, path: str | Path) -> "InputReference":
        """Reference a file path.

        A path spelled ``-`` is a file named ``-`` in the working directory,
        never standard input; only the --stdin option reads stdin.
        """
        raw = str(path)
        if raw == STDIN_SENTINEL:
            raw = f"./{STDIN_SENTINEL}"
        compression = Compression.GZIP if is_gzip_name(raw) else Compression.NONE
        return cls(raw=raw, exists=os.path.exists(raw), compression=compression)

    @classmethod
    def stdin(cls) -> "InputReference":
        return cls(raw=STDIN_SENTINEL, exists=True, compression=Compression.NONE)

    @property
    def is_stdin(self) -> bool:
        return self.raw == STDIN_SENTINEL

    @property
    def path(self) -> Path:
        return Path(self.raw)

    @property
    def name(self) -> str:
        """Base name of the input (``-`` for stdin)."""
        return self.path.name if not self.is_stdin else STDIN_SENTINEL


def is_fasta(path: str | Path) -> bool:
    """Check whether a file name has a recognized FASTA suffix.

    Example:
        >>> is_fasta("genome.fna.gz")
        True
        >>> is_fasta("notes.txt")
        False
    """
    name = str(path)
    return name.endswith(FASTA_SUFFIXES) or name.endswith(FASTA_GZ_SUFFIXES)


def read_list_file(list_file: Path) -> list[InputReference]:
    """Read a list-file with one genome path per line.

    Blank lines are ignored; paths that do not exist are logged and skipped.

    Args:
        list_file: Path to the list-file

    Returns:
        InputReference for each existing path, in file order

    Raises:
        OSError: If the list-file cannot be read
    """
    refs: list[InputReference] = []
    with open(list_file) as f:
        for line in f:
            entry = line.strip()
            if not entry:
                continue
            ref = InputReference.from_path(entry)
            if ref.exists:
                refs.append(ref)
            else:
                logger.warning(f"{entry} does not exist!")
    return refs


def scan_directory(directory: Path) -> list[InputReference]:
    """List FASTA files in a directory (not recursive), sorted by name.

    Args:
        directory: Directory to scan

    Returns:
        InputReference for each regular file with a FASTA suffix
    """
    refs: list[InputReference] = []
    for entry in sorted(directory.iterdir()):
        if entry.is_file() and is_fasta(entry.name):
            refs.append(InputReference.from_path(entry))
    return refs


def resolve_sources(config: "FastixeConfig") -> list[InputReference]:
    """Resolve all configured input options into one ordered list.

    Order: stdin, single genome, explicit files, list-file entries,
    directory entries. Option validation (mutually exclusive stdin,
    required prefix) is done by FastixeConfig.validate().

    Args:
        config: Run configuration

    Returns:
        Ordered list of InputReference (duplicates preserved)
    """
    refs: list[InputReference] = []

    if config.uses_stdin:
        refs.append(InputReference.stdin())

    if config.input_genome is not None:
        ref = InputReference.from_path(config.input_genome)
        if ref.exists:
            refs.append(ref)
        else:
            logger.warning(f"{config.input_genome} does not exist!")

    for input_file in config.input_files:
        if input_file.is_file() and is_fasta(input_file):
            refs.append(InputReference.from_path(input_file))
        else:
            logger.debug(f"Skipping {input_file}: not an existing FASTA file")

    if config.input_list is not None:
        if config.input_list.exists():
            refs.extend(read_list_file(config.input_list))
        else:
            logger.warning(f"Genome list {config.input_list} does not exist!")

    if config.input_dir is not None:
        if config.input_dir.is_dir():
            refs.extend(scan_directory(config.input_dir))
        else:
            logger.warning(f"Input directory {config.input_dir} does not exist!")

    logger.debug(f"Resolved {len(refs)} input file(s)")
    return refs
