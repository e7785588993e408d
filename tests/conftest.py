"""Pytest fixtures for panutils tests."""

import shutil
from pathlib import Path

import pytest

from panutils.sinks import HtslibTools

GENOME_A = "GCF_002012065.1_ASM201206v1_genomic.fna"
GENOME_B = "GCF_006400955.1_ASM640095v1_genomic.fna"


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def genome_a(fixtures_dir: Path) -> Path:
    """Two records, mixed-case sequence, descriptions after the id."""
    return fixtures_dir / GENOME_A


@pytest.fixture
def genome_b(fixtures_dir: Path) -> Path:
    """Two records plus one header line without an id."""
    return fixtures_dir / GENOME_B


@pytest.fixture
def genome_dir(tmp_path: Path, genome_a: Path, genome_b: Path) -> Path:
    """Directory holding both genomes plus files that are not FASTA."""
    directory = tmp_path / "genomes_in"
    directory.mkdir()
    shutil.copy(genome_a, directory / genome_a.name)
    shutil.copy(genome_b, directory / genome_b.name)
    (directory / "README.txt").write_text("not a genome\n")
    (directory / "nested.fa").mkdir()
    return directory


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    """Output directory (not created yet)."""
    return tmp_path / "out"


@pytest.fixture
def no_htslib() -> HtslibTools:
    """htslib capability absent."""
    return HtslibTools()


@pytest.fixture
def fake_htslib(tmp_path: Path) -> HtslibTools:
    """Stand-in bgzip/samtools scripts.

    bgzip copies stdin to stdout unchanged; samtools faidx writes an empty
    ``<file>.fai``. Enough to exercise the subprocess plumbing.
    """
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()

    bgzip = bin_dir / "bgzip"
    bgzip.write_text("#!/bin/sh\ncat\n")
    bgzip.chmod(0o755)

    samtools = bin_dir / "samtools"
    samtools.write_text('#!/bin/sh\n: > "$2.fai"\n')
    samtools.chmod(0o755)

    return HtslibTools(bgzip=bgzip, samtools=samtools)
