"""Tests for config module."""

from pathlib import Path

import pytest

from panutils.config import FastixeConfig
from panutils.errors import ConfigurationError
from panutils.sinks import HtslibTools, SinkKind

HTSLIB = HtslibTools(bgzip=Path("/usr/bin/bgzip"), samtools=Path("/usr/bin/samtools"))


class TestConfigDefaults:
    """Test defaults and normalization."""

    def test_defaults(self) -> None:
        config = FastixeConfig()

        assert config.out_dir == Path("genomes")
        assert config.pattern == "[^_]+_[^_]+"
        assert config.merge_file_name == "merged.fa"
        assert config.threads == 1
        assert config.input_files == []

    def test_string_paths_converted(self) -> None:
        config = FastixeConfig(input_genome="a.fa", out_dir="out", input_files=["b.fa"])

        assert config.input_genome == Path("a.fa")
        assert config.out_dir == Path("out")
        assert config.input_files == [Path("b.fa")]


class TestOutputPaths:
    """Test output path derivation."""

    def test_per_file(self) -> None:
        assert FastixeConfig(out_dir="o").output_path_for("g.fna") == Path("o/g.fna")

    def test_per_file_gzip(self) -> None:
        config = FastixeConfig(out_dir="o", gzip_output=True)

        assert config.output_path_for("g.fna") == Path("o/g.fna.gz")
        assert config.per_file_sink_kind == SinkKind.GZIP

    def test_merged_plain(self) -> None:
        config = FastixeConfig(out_dir="o", merge=True)

        assert config.merged_output_path == Path("o/merged.fa")
        assert config.merge_sink_kind == SinkKind.PLAIN

    def test_merged_bgzip_replaces_extension(self) -> None:
        config = FastixeConfig(out_dir="o", merge=True, bgzip_output=True)

        assert config.merged_output_path == Path("o/merged.gz")
        assert config.merge_sink_kind == SinkKind.BGZIP

    def test_merged_gzip_appends_extension(self) -> None:
        config = FastixeConfig(out_dir="o", merge=True, gzip_output=True)

        assert config.merged_output_path == Path("o/merged.fa.gz")
        assert config.merge_sink_kind == SinkKind.GZIP


class TestValidate:
    """Test option validation."""

    def test_valid(self, genome_a: Path) -> None:
        assert FastixeConfig(input_genome=genome_a).validate(HTSLIB) == []

    def test_no_source(self) -> None:
        errors = FastixeConfig().validate(HTSLIB)

        assert len(errors) == 1
        assert "No genome found" in errors[0]

    def test_stdin_with_file_source(self, genome_a: Path) -> None:
        errors = FastixeConfig(stdin="-", prefix="p", input_genome=genome_a).validate(HTSLIB)

        assert any("cannot be shared" in e for e in errors)

    def test_stdin_requires_prefix(self) -> None:
        errors = FastixeConfig(stdin="-").validate(HTSLIB)

        assert any("requires --prefix" in e for e in errors)

    def test_stdin_marker_value(self) -> None:
        errors = FastixeConfig(stdin="input.fa", prefix="p").validate(HTSLIB)

        assert any("only accepts '-'" in e for e in errors)

    def test_stdin_with_prefix_is_valid(self) -> None:
        assert FastixeConfig(stdin="-", prefix="s#0#").validate(HTSLIB) == []

    def test_invalid_regex(self, genome_a: Path) -> None:
        errors = FastixeConfig(input_genome=genome_a, pattern="[unclosed").validate(HTSLIB)

        assert any("Invalid regex" in e for e in errors)

    def test_invalid_regex_ignored_with_prefix(self, genome_a: Path) -> None:
        """The pattern is unused when a prefix is given."""
        config = FastixeConfig(input_genome=genome_a, pattern="[unclosed", prefix="p")

        assert config.validate(HTSLIB) == []

    @pytest.mark.parametrize("level", [-1, 10])
    def test_compression_level_range(self, genome_a: Path, level: int) -> None:
        errors = FastixeConfig(input_genome=genome_a, compression_level=level).validate(HTSLIB)

        assert any("Compression level" in e for e in errors)

    def test_threads(self, genome_a: Path) -> None:
        errors = FastixeConfig(input_genome=genome_a, threads=0).validate(HTSLIB)

        assert any("Thread count" in e for e in errors)

    def test_stdout_with_merge(self, genome_a: Path) -> None:
        errors = FastixeConfig(input_genome=genome_a, merge=True, to_stdout=True).validate(HTSLIB)

        assert any("--stdout" in e for e in errors)

    def test_bgzip_without_htslib(self, genome_a: Path, no_htslib: HtslibTools) -> None:
        config = FastixeConfig(input_genome=genome_a, merge=True, bgzip_output=True)

        errors = config.validate(no_htslib)

        assert len(errors) == 1
        assert errors[0].startswith("--bgz requires htslib")
        assert config.validate(HTSLIB) == []

    def test_faidx_without_htslib(self, genome_a: Path, no_htslib: HtslibTools) -> None:
        config = FastixeConfig(input_genome=genome_a, merge=True, faidx=True)

        errors = config.validate(no_htslib)

        assert any(e.startswith("--faidx requires htslib") for e in errors)

    def test_faidx_on_plain_gzip(self, genome_a: Path) -> None:
        config = FastixeConfig(input_genome=genome_a, merge=True, faidx=True, gzip_output=True)

        assert any("cannot index plain gzip" in e for e in config.validate(HTSLIB))

    def test_htslib_not_needed_without_merge(self, genome_a: Path, no_htslib: HtslibTools) -> None:
        """--bgz/--faidx only matter in merge mode."""
        config = FastixeConfig(input_genome=genome_a, bgzip_output=True, faidx=True)

        assert config.validate(no_htslib) == []

    def test_require_valid_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="No genome found"):
            FastixeConfig().require_valid(HTSLIB)
