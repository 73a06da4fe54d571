"""Tests for the structview command line interface."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from structview.cli import cli
from structview.cli.args import generate_output_log_path, generate_output_report_path
from structview.io import read_report

TEST_DATA_DIR = Path(__file__).parent / "data"
SMALL_PROTEIN = TEST_DATA_DIR / "small_protein.pdb"


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def mock_setup_logging():
    with patch("structview.cli.setup_logging") as mock:
        yield mock


def test_output_paths():
    assert generate_output_report_path("1abc") == Path("1abc_structview.json")
    assert generate_output_log_path("1abc") == Path("1abc_structview.log")


class TestCli:
    def test_stdout(self, runner):
        result = runner.invoke(cli, [str(SMALL_PROTEIN), "--stdout"])
        assert result.exit_code == 0, result.output
        report = json.loads(result.stdout)
        assert report["structure_file"] == "small_protein.pdb"
        assert report["molecule_name"] == "small_protein"
        assert report["statistics"]["total_atoms"] == 12
        assert report["sequence"] == {"A": "AG", "B": "S"}
        assert report["distogram"] is None
        assert report["runtime_in_seconds"] >= 0

    def test_distogram(self, runner):
        result = runner.invoke(cli, [str(SMALL_PROTEIN), "-s", "--distogram", "--method", "minimum"])
        assert result.exit_code == 0, result.output
        report = json.loads(result.stdout)
        assert report["residue_ids"] == [1, 2, 101, 201]
        assert report["distogram_method"] == "minimum"
        assert len(report["distogram"]) == 4

    def test_report_file(self, runner, mock_setup_logging):
        with runner.isolated_filesystem():
            result = runner.invoke(cli, [str(SMALL_PROTEIN), "--verbose"])
            assert result.exit_code == 0, result.output
            report = read_report("small_protein_structview.json")
        assert report.statistics.total_atoms == 12
        mock_setup_logging.assert_called_once_with(Path("small_protein_structview.log"), True)

    def test_invalid_method(self, runner):
        result = runner.invoke(cli, [str(SMALL_PROTEIN), "--method", "average"])
        assert result.exit_code != 0

    def test_invalid_extension(self, runner, tmp_path):
        path = tmp_path / "model.cif"
        path.write_text("data_model\n")
        result = runner.invoke(cli, [str(path)])
        assert result.exit_code == 1

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(cli, [str(tmp_path / "missing.pdb")])
        assert result.exit_code == 1
