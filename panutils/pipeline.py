"""Parallel orchestration of fastixe runs.

Pipeline:
1. Validate options (before any output is created)
2. Resolve input sources
3. Process inputs on a thread pool:
   - per-file mode: each worker rewrites one input into its own output
   - merge mode: workers spool each rewritten input and hand it to one
     writer thread through an unbounded queue
4. Build the FASTA index for merged output (optional)

In merge mode each input is written as one contiguous block, in file
order; inputs appear in whatever order workers finish them. An input
that fails contributes nothing.
"""

import logging
import queue
import tempfile
import threading
import zlib
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Literal

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)

from panutils.config import FastixeConfig
from panutils.errors import ConfigurationError, FastixeError
from panutils.prefix import resolve_prefix
from panutils.sinks import (
    STDOUT_SENTINEL,
    HtslibTools,
    OutputSink,
    build_fasta_index,
    detect_htslib,
    open_sink,
)
from panutils.sources import InputReference, resolve_sources
from panutils.transform import TransformStats, iter_records, process_file

logger = logging.getLogger(__name__)

# Failures contained to one input (gzip raises EOFError/zlib.error on bad data)
PROCESSING_ERRORS = (FastixeError, OSError, EOFError, zlib.error)

_DONE = object()

# Per-input merge buffer: kept in memory up to this size, then on disk
MERGE_SPOOL_SIZE = 64 * 1024 * 1024
MERGE_CHUNK_SIZE = 1024 * 1024


@dataclass
class RunSummary:
    """Outcome of a fastixe run.

    Attributes:
        mode: "per-file" or "merge"
        inputs: Number of resolved inputs
        files_processed: Inputs rewritten successfully
        files_failed: Inputs that failed
        records: Headers written
        malformed: Header lines skipped for missing identifiers
        outputs: Output paths (``-`` for stdout)
        index_path: faidx index of the merged file, if built
    """

    mode: Literal["per-file", "merge"]
    inputs: int = 0
    files_processed: int = 0
    files_failed: int = 0
    records: int = 0
    malformed: int = 0
    outputs: list[str | Path] = field(default_factory=list)
    index_path: Path | None = None

    def add(self, stats: TransformStats) -> None:
        self.files_processed += 1
        self.records += stats.records
        self.malformed += stats.malformed


def _make_progress(console: Console | None) -> Progress:
    """Create a file progress bar (disabled when no console is given)."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
        disable=console is None,
        transient=True,
    )


def plan_outputs(config: FastixeConfig, refs: list[InputReference]) -> list[str | Path]:
    """Map each input to its per-file output destination.

    A stdin input, or --stdout with exactly one input, writes to stdout.

    Args:
        config: Run configuration
        refs: Resolved inputs

    Returns:
        Destinations in input order (``-`` for stdout)

    Raises:
        ConfigurationError: If --stdout is used with several inputs, or two
            inputs would write the same output file
    """
    if config.to_stdout and len(refs) > 1:
        raise ConfigurationError(
            f"--stdout requires exactly one input file, got {len(refs)}."
        )

    destinations: list[str | Path] = []
    seen: dict[Path, str] = {}
    for ref in refs:
        if ref.is_stdin or config.to_stdout:
            destinations.append(STDOUT_SENTINEL)
            continue
        destination = config.output_path_for(ref.name)
        if destination in seen:
            raise ConfigurationError(
                f"{ref.raw} and {seen[destination]} would both be written to {destination}."
            )
        seen[destination] = ref.raw
        destinations.append(destination)
    return destinations


def _process_one(
    ref: InputReference,
    destination: str | Path,
    config: FastixeConfig,
) -> TransformStats:
    """Per-file unit of work: derive prefix, then rewrite into destination."""
    prefix = resolve_prefix(ref.raw, config.prefix, config.pattern)
    return process_file(ref, destination, prefix, config)


def run_per_file(
    config: FastixeConfig,
    refs: list[InputReference],
    console: Console | None = None,
) -> RunSummary:
    """Rewrite each input into its own output file.

    A single input runs inline; several inputs run on a thread pool. Every
    worker finishes its own file; the first failure is re-raised after all
    workers are done.

    Raises:
        ConfigurationError: See plan_outputs()
        FastixeError, OSError: First failure of any worker
    """
    destinations = plan_outputs(config, refs)
    summary = RunSummary(mode="per-file", inputs=len(refs), outputs=list(destinations))

    if any(d != STDOUT_SENTINEL for d in destinations):
        config.out_dir.mkdir(parents=True, exist_ok=True)

    if len(refs) == 1:
        summary.add(_process_one(refs[0], destinations[0], config))
        return summary

    first_error: BaseException | None = None

    with _make_progress(console) as progress:
        task = progress.add_task("Processing genomes...", total=len(refs))

        with ThreadPoolExecutor(max_workers=config.threads) as executor:
            future_to_ref = {
                executor.submit(_process_one, ref, destination, config): ref
                for ref, destination in zip(refs, destinations)
            }

            for future in as_completed(future_to_ref):
                ref = future_to_ref[future]
                progress.advance(task)
                try:
                    stats = future.result()
                except PROCESSING_ERRORS as e:
                    summary.files_failed += 1
                    logger.error(f"Failed to process {ref.raw}: {e}")
                    if first_error is None:
                        first_error = e
                    continue
                summary.add(stats)

    if first_error is not None:
        raise first_error
    return summary


class MergeWriter(threading.Thread):
    """Single consumer that copies spooled inputs into the merged sink.

    Each queue item is one input's complete, rewritten content. The writer
    runs until it receives the end-of-input sentinel. A write failure is
    stored in ``error`` and re-raised by the orchestrator.
    """

    def __init__(self, records: "queue.Queue[object]", sink: OutputSink) -> None:
        super().__init__(name="fastixe-merge-writer", daemon=True)
        self.records = records
        self.sink = sink
        self.inputs_written = 0
        self.error: BaseException | None = None

    def run(self) -> None:
        while True:
            item = self.records.get()
            if item is _DONE:
                return
            spool: IO[bytes] = item  # type: ignore[assignment]
            try:
                if self.error is not None:
                    # Keep draining so producers never wait on a dead writer
                    continue
                for chunk in iter(lambda: spool.read(MERGE_CHUNK_SIZE), b""):
                    self.sink.write(chunk)
                self.inputs_written += 1
            except Exception as e:
                self.error = e
            finally:
                spool.close()


def _produce_records(
    ref: InputReference,
    config: FastixeConfig,
    records: "queue.Queue[object]",
) -> TransformStats:
    """Merge-mode producer: rewrite one input and queue it for the writer.

    Records are spooled (in memory, then on disk for large inputs) and the
    spool is queued only once the whole file has been read, so a file that
    fails part way contributes nothing to the merged output.
    """
    prefix = resolve_prefix(ref.raw, config.prefix, config.pattern)
    stats = TransformStats()
    spool = tempfile.SpooledTemporaryFile(max_size=MERGE_SPOOL_SIZE)
    try:
        for record in iter_records(ref, prefix, config.uppercase, stats):
            spool.write(record.format())
    except BaseException:
        spool.close()
        raise

    spool.seek(0)
    records.put(spool)
    return stats


def run_merge(
    config: FastixeConfig,
    refs: list[InputReference],
    tools: HtslibTools,
    console: Console | None = None,
) -> RunSummary:
    """Merge all inputs into one output file.

    Failing inputs are logged and skipped; the run continues. Write or
    index failures are fatal.

    Raises:
        OSError: If the merged file cannot be written
        IndexBuildError: If samtools faidx fails
    """
    output_path = config.merged_output_path
    summary = RunSummary(mode="merge", inputs=len(refs), outputs=[output_path])

    config.out_dir.mkdir(parents=True, exist_ok=True)
    sink = open_sink(
        config.merge_sink_kind,
        output_path,
        level=config.compression_level,
        threads=config.threads,
        tools=tools,
    )

    records: "queue.Queue[object]" = queue.Queue()
    writer = MergeWriter(records, sink)
    writer.start()

    try:
        with _make_progress(console) as progress:
            task = progress.add_task("Merging genomes...", total=len(refs))

            with ThreadPoolExecutor(max_workers=config.threads) as executor:
                future_to_ref = {
                    executor.submit(_produce_records, ref, config, records): ref
                    for ref in refs
                }

                for future in as_completed(future_to_ref):
                    ref = future_to_ref[future]
                    progress.advance(task)
                    try:
                        stats = future.result()
                    except PROCESSING_ERRORS as e:
                        summary.files_failed += 1
                        logger.warning(f"Skipping {ref.raw} in merged output: {e}")
                        continue
                    summary.add(stats)
    finally:
        records.put(_DONE)
        writer.join()
        sink.close()

    if writer.error is not None:
        raise writer.error

    logger.debug(f"Merge writer copied {writer.inputs_written} input(s)")

    if config.faidx:
        summary.index_path = build_fasta_index(output_path, tools)

    return summary


def run_fastixe(
    config: FastixeConfig,
    tools: HtslibTools | None = None,
    console: Console | None = None,
) -> RunSummary:
    """Run fastixe end to end.

    Args:
        config: Run configuration
        tools: htslib capability (detected from PATH if None)
        console: Console for the progress bar (no progress if None)

    Returns:
        RunSummary describing the run

    Raises:
        ConfigurationError: Invalid options, missing htslib, no inputs
        FastixeError, OSError: Per-file mode processing failures
    """
    if tools is None:
        tools = detect_htslib()

    config.require_valid(tools)

    if not config.merge and (config.bgzip_output or config.faidx):
        logger.warning("--bgz and --faidx only apply to merged output (--merge); ignoring.")

    refs = resolve_sources(config)
    if not refs:
        raise ConfigurationError("No input files found.")

    if config.merge:
        summary = run_merge(config, refs, tools, console)
    else:
        summary = run_per_file(config, refs, console)

    logger.info(
        f"Processed {summary.files_processed}/{summary.inputs} file(s), "
        f"{summary.records:,} records"
    )
    if summary.malformed:
        logger.warning(f"Skipped {summary.malformed} header line(s) without a record id")
    if summary.files_failed:
        logger.warning(f"{summary.files_failed} file(s) failed")

    return summary
