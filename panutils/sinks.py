"""Output sinks for rewritten FASTA data.

Three interchangeable writers share one ``write(bytes)``/``close()``
interface:

- PlainSink: buffered file or stdout
- GzipSink: single-threaded gzip at a configurable level
- BgzipSink: BGZF via the htslib ``bgzip`` executable with worker threads

BGZF output and FASTA indexing need htslib (``bgzip`` and ``samtools`` on
PATH). The capability is detected once at startup with detect_htslib();
requesting either feature without it is a configuration error.
"""

import gzip
import logging
import shutil
import subprocess
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import TracebackType
from typing import IO

from panutils.errors import ConfigurationError, IndexBuildError

logger = logging.getLogger(__name__)

STDOUT_SENTINEL = "-"
DEFAULT_COMPRESSION_LEVEL = 6  # zlib default


class SinkKind(str, Enum):
    """Output compression kind."""

    PLAIN = "plain"
    GZIP = "gzip"
    BGZIP = "bgzip"


@dataclass(frozen=True, slots=True)
class HtslibTools:
    """htslib executables used for BGZF output and FASTA indexing.

    Attributes:
        bgzip: Path to bgzip, or None if not installed
        samtools: Path to samtools, or None if not installed
    """

    bgzip: Path | None = None
    samtools: Path | None = None

    @property
    def available(self) -> bool:
        """Whether both executables were found."""
        return self.bgzip is not None and self.samtools is not None

    @property
    def missing(self) -> list[str]:
        """Names of executables that were not found."""
        names = []
        if self.bgzip is None:
            names.append("bgzip")
        if self.samtools is None:
            names.append("samtools")
        return names

    def missing_message(self) -> str:
        return (
            "requires htslib support, but these executables were not found in PATH: "
            + ", ".join(self.missing)
        )

    def require(self) -> None:
        """Raise ConfigurationError if htslib support is unavailable."""
        if not self.available:
            raise ConfigurationError(f"BGZF output and indexing {self.missing_message()}")


def detect_htslib() -> HtslibTools:
    """Find the htslib executables in PATH.

    Returns:
        HtslibTools with the paths found (None for missing tools)
    """
    found = {}
    for name in ["bgzip", "samtools"]:
        path = shutil.which(name)
        found[name] = Path(path) if path else None
    return HtslibTools(bgzip=found["bgzip"], samtools=found["samtools"])


def is_stdout(destination: str | Path) -> bool:
    """Return True if destination means standard output."""
    return str(destination) == STDOUT_SENTINEL


class OutputSink:
    """Base class for output writers.

    Subclasses implement write() and _close(). close() runs at most once,
    and the context manager closes the sink on exit.
    """

    def __init__(self, destination: str | Path) -> None:
        self.destination = destination
        self.bytes_written = 0
        self._closed = False

    def write(self, data: bytes) -> None:
        raise NotImplementedError

    def _close(self) -> None:
        raise NotImplementedError

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Flush and close the sink (stdout is flushed but left open)."""
        if self._closed:
            return
        self._closed = True
        self._close()

    def __enter__(self) -> "OutputSink":
        """Context manager entry."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Context manager exit - close the sink."""
        self.close()


def _open_raw(destination: str | Path) -> tuple[IO[bytes], bool]:
    """Open a binary destination, returning (handle, owned)."""
    if is_stdout(destination):
        return sys.stdout.buffer, False
    return open(destination, "wb"), True


class PlainSink(OutputSink):
    """Buffered passthrough to a file or stdout."""

    def __init__(self, destination: str | Path) -> None:
        super().__init__(destination)
        self._handle, self._owned = _open_raw(destination)

    def write(self, data: bytes) -> None:
        self._handle.write(data)
        self.bytes_written += len(data)

    def _close(self) -> None:
        if self._owned:
            self._handle.close()
        else:
            self._handle.flush()


class GzipSink(OutputSink):
    """Single-threaded gzip compression to a file or stdout."""

    def __init__(self, destination: str | Path, level: int | None = None) -> None:
        super().__init__(destination)
        self.level = DEFAULT_COMPRESSION_LEVEL if level is None else level
        self._raw, self._owned = _open_raw(destination)
        self._gzip = gzip.GzipFile(fileobj=self._raw, mode="wb", compresslevel=self.level)

    def write(self, data: bytes) -> None:
        self._gzip.write(data)
        self.bytes_written += len(data)

    def _close(self) -> None:
        # GzipFile never closes a fileobj it was given
        self._gzip.close()
        if self._owned:
            self._raw.close()
        else:
            self._raw.flush()


class BgzipSink(OutputSink):
    """Multi-threaded BGZF compression through the bgzip executable.

    Bytes are piped to ``bgzip -c -@ <threads>`` whose stdout is the
    destination file. Errors reported by bgzip surface on close().
    """

    def __init__(
        self,
        destination: str | Path,
        tools: HtslibTools,
        threads: int = 1,
        level: int | None = None,
    ) -> None:
        super().__init__(destination)
        tools.require()
        if is_stdout(destination):
            raise ConfigurationError("BGZF output must be written to a file, not stdout")

        cmd = [str(tools.bgzip), "-c", "-@", str(threads)]
        if level is not None:
            cmd += ["-l", str(level)]
        self.command = " ".join(cmd)
        logger.debug(f"Running: {self.command} > {destination}")

        self._out = open(destination, "wb")
        try:
            self._proc = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=self._out,
                stderr=subprocess.PIPE,
            )
        except OSError:
            self._out.close()
            raise

    def write(self, data: bytes) -> None:
        assert self._proc.stdin is not None
        self._proc.stdin.write(data)
        self.bytes_written += len(data)

    def _close(self) -> None:
        # communicate() flushes and closes bgzip's stdin, then waits
        _, stderr = self._proc.communicate()
        self._out.close()
        if self._proc.returncode != 0:
            raise OSError(
                f"bgzip failed with exit code {self._proc.returncode}: "
                f"{stderr.decode(errors='replace').strip()}"
            )


def open_sink(
    kind: SinkKind,
    destination: str | Path,
    level: int | None = None,
    threads: int = 1,
    tools: HtslibTools | None = None,
) -> OutputSink:
    """Create the sink for a compression kind.

    Args:
        kind: PLAIN, GZIP or BGZIP
        destination: Output path, or ``-`` for stdout (not BGZIP)
        level: Compression level 0-9 (None = backend default)
        threads: bgzip worker threads
        tools: htslib capability, required for BGZIP

    Returns:
        An open OutputSink

    Raises:
        ConfigurationError: If BGZIP is requested without htslib
        OSError: If the destination cannot be opened
    """
    if kind == SinkKind.PLAIN:
        return PlainSink(destination)
    if kind == SinkKind.GZIP:
        return GzipSink(destination, level=level)
    return BgzipSink(destination, tools or HtslibTools(), threads=threads, level=level)


def build_fasta_index(path: Path, tools: HtslibTools) -> Path:
    """Build a faidx index for a finished FASTA (plain or BGZF) file.

    Runs ``samtools faidx`` once. For BGZF input samtools also writes the
    ``.gzi`` block index next to the ``.fai``.

    Args:
        path: FASTA file to index
        tools: htslib capability

    Returns:
        Path to the ``.fai`` index

    Raises:
        ConfigurationError: If htslib is unavailable
        IndexBuildError: If samtools fails
    """
    tools.require()
    cmd = [str(tools.samtools), "faidx", str(path)]
    logger.debug(f"Running: {' '.join(cmd)}")

    result = subprocess.run(cmd, capture_output=True, text=True, check=False)
    if result.returncode != 0:
        raise IndexBuildError(
            f"samtools faidx failed with exit code {result.returncode}: {result.stderr.strip()}"
        )

    index_path = path.with_name(path.name + ".fai")
    logger.info(f"Built FASTA index {index_path}")
    return index_path
