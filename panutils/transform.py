"""Streaming FASTA header rewrite.

Every header line ``>ID description`` becomes ``>{prefix}ID``; sequence
lines pass through unchanged or upper-cased. Input is streamed line by
line so memory use does not depend on file size.
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from panutils.config import FastixeConfig
from panutils.errors import MalformedRecordError
from panutils.io_utils import iter_lines
from panutils.logging_config import TRACE
from panutils.sinks import OutputSink, open_sink
from panutils.sources import InputReference

logger = logging.getLogger(__name__)

HEADER_SIGIL = b">"
NEWLINE = b"\n"


@dataclass(slots=True)
class TransformStats:
    """Counts collected while rewriting one input.

    Attributes:
        records: Headers rewritten
        malformed: Header lines skipped because they had no identifier
    """

    records: int = 0
    malformed: int = 0

    def add(self, other: "TransformStats") -> None:
        self.records += other.records
        self.malformed += other.malformed


@dataclass(slots=True)
class Record:
    """One rewritten FASTA record.

    Attributes:
        identifier: First header token, or None for sequence lines that
            precede the first valid header
        prefix: Prefix placed before the identifier
        payload: Output sequence lines, each newline-terminated
    """

    identifier: bytes | None
    prefix: bytes = b""
    payload: list[bytes] = field(default_factory=list)

    @property
    def header(self) -> bytes | None:
        if self.identifier is None:
            return None
        return HEADER_SIGIL + self.prefix + self.identifier + NEWLINE

    def format(self) -> bytes:
        """Return the record as output bytes (header then payload)."""
        header = self.header
        body = b"".join(self.payload)
        return body if header is None else header + body


def parse_identifier(line: bytes) -> bytes | None:
    """Return the first whitespace-delimited token after ``>``.

    Example:
        >>> parse_identifier(b">NZ_CP1 some description")
        b'NZ_CP1'
        >>> parse_identifier(b">") is None
        True
    """
    tokens = line[len(HEADER_SIGIL):].split(None, 1)
    return tokens[0] if tokens else None


def rewrite_lines(
    lines: Iterable[bytes],
    prefix: bytes,
    uppercase: bool,
    source: str,
    stats: TransformStats,
) -> Iterator[tuple[bytes | None, bytes]]:
    """Rewrite FASTA lines.

    Args:
        lines: Input lines without line terminators
        prefix: Prefix inserted before each identifier
        uppercase: Upper-case sequence lines
        source: Input name used in diagnostics
        stats: Updated in place

    Yields:
        (identifier, output line) pairs; identifier is None for sequence
        lines. Output lines are newline-terminated.
    """
    for line_number, line in enumerate(lines, 1):
        if line.startswith(HEADER_SIGIL):
            identifier = parse_identifier(line)
            if identifier is None:
                stats.malformed += 1
                logger.warning(str(MalformedRecordError(source, line_number)))
                continue
            stats.records += 1
            if logger.isEnabledFor(TRACE):
                logger.log(TRACE, f"{source}: record {identifier.decode(errors='replace')}")
            yield identifier, HEADER_SIGIL + prefix + identifier + NEWLINE
        elif uppercase:
            # bytes.upper() only folds ASCII letters
            yield None, line.upper() + NEWLINE
        else:
            yield None, line + NEWLINE


def transform(
    ref: InputReference,
    sink: OutputSink,
    prefix: str,
    uppercase: bool = False,
) -> TransformStats:
    """Stream one input into a sink, rewriting headers.

    The sink is not closed; its owner decides when.

    Args:
        ref: Input file or stdin
        sink: Destination sink
        prefix: Header prefix
        uppercase: Upper-case sequence lines

    Returns:
        TransformStats for the input

    Raises:
        OSError: If the input cannot be read or decompressed
    """
    stats = TransformStats()
    lines = iter_lines(ref.raw)
    for _, out in rewrite_lines(lines, prefix.encode(), uppercase, ref.raw, stats):
        sink.write(out)
    return stats


def iter_records(
    ref: InputReference,
    prefix: str,
    uppercase: bool = False,
    stats: TransformStats | None = None,
) -> Iterator[Record]:
    """Yield rewritten records of one input, in file order.

    Concatenating ``record.format()`` over the result reproduces the
    output of transform() byte for byte.

    Args:
        ref: Input file or stdin
        prefix: Header prefix
        uppercase: Upper-case sequence lines
        stats: Optional stats object updated in place

    Yields:
        Record objects
    """
    if stats is None:
        stats = TransformStats()
    prefix_bytes = prefix.encode()

    current = Record(identifier=None, prefix=prefix_bytes)
    lines = iter_lines(ref.raw)
    for identifier, out in rewrite_lines(lines, prefix_bytes, uppercase, ref.raw, stats):
        if identifier is None:
            current.payload.append(out)
            continue
        if current.identifier is not None or current.payload:
            yield current
        current = Record(identifier=identifier, prefix=prefix_bytes)

    if current.identifier is not None or current.payload:
        yield current


def process_file(
    ref: InputReference,
    destination: str | Path,
    prefix: str,
    config: FastixeConfig,
) -> TransformStats:
    """Rewrite one input into its own output (per-file mode unit of work).

    Args:
        ref: Input file or stdin
        destination: Output path, or ``-`` for stdout
        prefix: Header prefix
        config: Run configuration (compression and case options)

    Returns:
        TransformStats for the input
    """
    with open_sink(
        config.per_file_sink_kind,
        destination,
        level=config.compression_level,
    ) as sink:
        stats = transform(ref, sink, prefix, config.uppercase)

    logger.debug(f"{ref.raw} -> {destination}: {stats.records} records")
    return stats
