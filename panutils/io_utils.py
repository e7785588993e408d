"""I/O helpers for reading FASTA input.

Compression is detected from the file name (``.gz`` suffix), not by
sniffing content, and the stdin sentinel ``-`` reads the process's
standard input.

Example:
    with open_input(ref) as handle:
        for line in handle:
            process(line)
"""

import gzip
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator

STDIN_SENTINEL = "-"
GZIP_SUFFIX = ".gz"


def is_gzip_name(path: str | Path) -> bool:
    """Return True if the file name says it is gzip-compressed.

    Example:
        >>> is_gzip_name("genome.fna.gz")
        True
        >>> is_gzip_name("genome.fna")
        False
    """
    return str(path).endswith(GZIP_SUFFIX)


@contextmanager
def open_input(path: str | Path) -> Iterator[IO[bytes]]:
    """Open a FASTA input as a binary line stream.

    Args:
        path: File path, or ``-`` for standard input

    Yields:
        Binary file handle. Standard input is yielded but never closed.

    Raises:
        OSError: If the file cannot be opened
    """
    if str(path) == STDIN_SENTINEL:
        yield sys.stdin.buffer
        return

    if is_gzip_name(path):
        # GzipFile reads concatenated members, like bgzip output
        f: IO[bytes] = gzip.open(path, "rb")
    else:
        f = open(path, "rb")

    try:
        yield f
    finally:
        f.close()


def iter_lines(path: str | Path) -> Iterator[bytes]:
    """Iterate over lines of an input with line terminators removed.

    Handles both ``\\n`` and ``\\r\\n`` endings. Exactly one terminator is
    removed; any other trailing ``\\r`` is part of the line.

    Args:
        path: File path (may be gzipped) or ``-``

    Yields:
        Lines as bytes without their line terminator
    """
    with open_input(path) as f:
        for line in f:
            if line.endswith(b"\n"):
                line = line[:-1]
                if line.endswith(b"\r"):
                    line = line[:-1]
            yield line
