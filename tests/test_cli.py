"""Tests for the Typer CLI."""

import logging
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from panutils import __version__
from panutils.cli import app
from panutils.logging_config import reset_logging

runner = CliRunner()


@pytest.fixture(autouse=True)
def restore_logging():
    """The command configures the root logger; undo it after each test."""
    root = logging.getLogger()
    level = root.level
    handlers = list(root.handlers)
    yield
    reset_logging()
    root.setLevel(level)
    for handler in handlers:
        root.addHandler(handler)


class TestVersion:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"panutils {__version__}" in result.output


class TestFastixeCommand:
    """Test the fastixe command end to end."""

    def test_single_genome_uppercase(self, genome_a: Path, out_dir: Path) -> None:
        result = runner.invoke(
            app, ["fastixe", "-i", str(genome_a), "--up", "-o", str(out_dir)]
        )

        assert result.exit_code == 0
        assert (out_dir / genome_a.name).read_bytes() == (
            b">GCF_002012065.1#0#NZ_CP1\nACGTACGT\nNNACGTTT\n"
            b">GCF_002012065.1#0#NZ_CP2\nGGCCAATT\n"
        )

    def test_repeated_input_files(self, genome_a: Path, genome_b: Path, out_dir: Path) -> None:
        result = runner.invoke(
            app,
            ["fastixe", "-s", str(genome_a), "-s", str(genome_b), "-o", str(out_dir), "-t", "2"],
        )

        assert result.exit_code == 0
        assert (out_dir / genome_a.name).exists()
        assert (out_dir / genome_b.name).exists()

    def test_no_source(self, out_dir: Path) -> None:
        result = runner.invoke(app, ["fastixe", "-o", str(out_dir)])

        assert result.exit_code == 1
        assert not out_dir.exists()

    def test_stdin_requires_prefix(self, out_dir: Path) -> None:
        result = runner.invoke(app, ["fastixe", "-a", "-", "-o", str(out_dir)], input=b">x\nA\n")

        assert result.exit_code == 1

    def test_stdin_to_stdout(self) -> None:
        result = runner.invoke(
            app, ["fastixe", "-a", "-", "-p", "s1#0#", "--up"], input=b">x desc\nacgt\n"
        )

        assert result.exit_code == 0
        assert b">s1#0#x\nACGT\n" in result.stdout_bytes

    def test_merge_with_faidx_without_htslib(self, genome_dir: Path, out_dir: Path) -> None:
        """No htslib in PATH: exit 1 and nothing written."""
        with patch("shutil.which", return_value=None):
            result = runner.invoke(
                app, ["fastixe", "-d", str(genome_dir), "-m", "-f", "-o", str(out_dir)]
            )

        assert result.exit_code == 1
        assert not (out_dir / "merged.fa").exists()

    def test_merge_custom_name(self, genome_dir: Path, out_dir: Path) -> None:
        result = runner.invoke(
            app,
            ["fastixe", "-d", str(genome_dir), "-m", "-e", "pangenome.fa", "-o", str(out_dir)],
        )

        assert result.exit_code == 0
        merged = (out_dir / "pangenome.fa").read_bytes()
        assert merged.count(b">") == 4

    def test_pattern_mismatch_exit_code(self, tmp_path: Path, out_dir: Path) -> None:
        genome = tmp_path / "genome.fa"
        genome.write_text(">x\nACGT\n")

        result = runner.invoke(app, ["fastixe", "-i", str(genome), "-o", str(out_dir)])

        assert result.exit_code == 1

    def test_level_out_of_range(self, genome_a: Path, out_dir: Path) -> None:
        result = runner.invoke(
            app, ["fastixe", "-i", str(genome_a), "-g", "--level", "12", "-o", str(out_dir)]
        )

        assert result.exit_code == 2
