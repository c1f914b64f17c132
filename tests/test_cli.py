"""
Tests for the mt-lintocirc command line.
"""

import pysam
import pytest
import yaml

from mtcirc import __version__
from mtcirc.cli import build_parser, main, resolve_settings
from mtcirc.errors import ConfigurationError

SEQ = "ACGT" * 50
QUAL = "I" * 200


@pytest.fixture
def input_sam(write_sam):
    return write_sam([
        "\t".join(["r1", "0", "chrM_doubled", "16501", "60", "200M", "*", "0", "0", SEQ, QUAL]),
        "\t".join(["r2", "0", "chrM_doubled", "101", "60", "50M", "*", "0", "0",
                   SEQ[:50], QUAL[:50]]),
    ])


class TestMain:
    """Exit codes and outputs."""

    def test_success(self, input_sam, temp_dir):
        output = temp_dir / "out.sam"
        code = main(["--alignmentfile", str(input_sam), "--ref", "chrM_doubled",
                     "-o", str(output)])
        assert code == 0
        with pysam.AlignmentFile(str(output), "r") as f:
            assert [r.query_name for r in f] == ["r1", "r1_right", "r2"]

    def test_custom_target(self, input_sam, temp_dir):
        output = temp_dir / "out.sam"
        code = main(["--alignmentfile", str(input_sam), "--ref", "chrM_doubled",
                     "--targetref", "MT", "-o", str(output)])
        assert code == 0
        with pysam.AlignmentFile(str(output), "r") as f:
            assert f.references == ("MT", "chr1")
            assert f.header.to_dict()["PG"][-1]["ID"] == "mtcirc"

    def test_summary(self, input_sam, temp_dir):
        output = temp_dir / "out.sam"
        summary = temp_dir / "summary.tsv"
        code = main(["--alignmentfile", str(input_sam), "--ref", "chrM_doubled",
                     "-o", str(output), "--summary", str(summary), "-q"])
        assert code == 0
        assert "split\t1" in summary.read_text()

    def test_unwritable_summary(self, input_sam, temp_dir):
        summary = temp_dir / "missing_dir" / "summary.tsv"
        code = main(["--alignmentfile", str(input_sam), "--ref", "chrM_doubled",
                     "-o", str(temp_dir / "out.sam"), "--summary", str(summary)])
        assert code == 1
        assert not summary.exists()

    def test_config_file(self, input_sam, temp_dir):
        config = temp_dir / "config.yaml"
        config.write_text(yaml.safe_dump({
            "reference": {"name": "chrM_doubled", "target": "chrM"},
            "split": {"right_suffix": "_wrap"},
        }))
        output = temp_dir / "out.sam"
        code = main(["--alignmentfile", str(input_sam), "--config", str(config),
                     "-o", str(output)])
        assert code == 0
        with pysam.AlignmentFile(str(output), "r") as f:
            assert [r.query_name for r in f] == ["r1", "r1_wrap", "r2"]

    def test_missing_ref(self, input_sam, temp_dir):
        code = main(["--alignmentfile", str(input_sam), "-o", str(temp_dir / "o.sam")])
        assert code == 1

    def test_bad_reflen(self, input_sam, temp_dir):
        code = main(["--alignmentfile", str(input_sam), "--ref", "chrM_doubled",
                     "--reflen", "0", "-o", str(temp_dir / "o.sam")])
        assert code == 1

    def test_unknown_reference(self, input_sam, temp_dir):
        output = temp_dir / "o.sam"
        code = main(["--alignmentfile", str(input_sam), "--ref", "chrX",
                     "-o", str(output)])
        assert code == 1
        assert not output.exists()

    def test_missing_input(self, temp_dir):
        code = main(["--alignmentfile", str(temp_dir / "missing.bam"), "--ref", "chrM_doubled",
                     "-o", str(temp_dir / "o.sam")])
        assert code == 1

    def test_missing_config(self, input_sam, temp_dir):
        code = main(["--alignmentfile", str(input_sam), "--ref", "chrM_doubled",
                     "--config", str(temp_dir / "nope.yaml")])
        assert code == 1

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        assert exc.value.code == 0
        assert __version__ in capsys.readouterr().out


class TestResolveSettings:
    """Command line over config over defaults."""

    def _args(self, *argv):
        return build_parser().parse_args(["--alignmentfile", "in.bam", *argv])

    def test_defaults(self):
        settings = resolve_settings(self._args("--ref", "chrM_doubled"), {})
        assert settings["reflen"] == 16569
        assert settings["targetref"] == "chrM"
        assert settings["right_suffix"] == "_right"
        assert settings["length_tolerance"] == 0
        assert "NM" in settings["drop_tags"]

    def test_cli_wins(self):
        config = {"reference": {"name": "from_config", "length": 1000}}
        settings = resolve_settings(self._args("--ref", "from_cli", "--reflen", "2000"), config)
        assert settings["ref"] == "from_cli"
        assert settings["reflen"] == 2000

    def test_config_fills_gaps(self):
        config = {"reference": {"name": "from_config", "length": 1000}}
        settings = resolve_settings(self._args(), config)
        assert settings["ref"] == "from_config"
        assert settings["reflen"] == 1000

    def test_invalid_config(self):
        with pytest.raises(ConfigurationError):
            resolve_settings(self._args(), {"reference": {"length": -1}})
