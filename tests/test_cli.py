"""Tests for the command-line interface."""

import json

import pytest
import yaml
from click.testing import CliRunner

from tablescan.cli import main


@pytest.fixture
def runner():
    """Create CLI runner."""
    return CliRunner()


@pytest.fixture
def csv_file(tmp_path):
    """Write a small CSV file with one IP address and one NINO."""
    path = tmp_path / "data.csv"
    path.write_text("ip,note\n192.168.0.1,hello\nplain,AB123456C\n", encoding="utf-8")
    return path


class TestScanCommand:
    """Tests for the scan command."""

    def test_scan_writes_report(self, runner, csv_file, tmp_path):
        """Test scanning a file into a report file."""
        out = tmp_path / "report.json"
        result = runner.invoke(main, ["scan", str(csv_file), "--out", str(out)])

        assert result.exit_code == 0, result.output
        report = json.loads(out.read_text(encoding="utf-8"))
        assert report["item-count"] == 4
        assert [e["code"] for e in report["errors"]] == [
            "ip-address-found",
            "national-insurance-number-found",
        ]

    def test_scan_to_stdout(self, runner, csv_file):
        """Test printing the report instead of writing it."""
        result = runner.invoke(main, ["scan", str(csv_file), "--out", "-"])

        assert result.exit_code == 0
        report = json.loads(result.stdout)
        assert report["version"] == 1
        assert report["format"] == "csv"

    def test_scan_detector_filter(self, runner, csv_file):
        """Test running a subset of detectors."""
        result = runner.invoke(
            main, ["scan", str(csv_file), "--out", "-", "--detector", "ip-address-found"]
        )

        assert result.exit_code == 0
        codes = [e["code"] for e in json.loads(result.stdout)["errors"]]
        assert codes == ["ip-address-found"]

    def test_scan_unknown_detector(self, runner, csv_file):
        """Test that an unknown detector code is an error."""
        result = runner.invoke(main, ["scan", str(csv_file), "--detector", "nope"])
        assert result.exit_code == 2

    def test_scan_ragged_file(self, runner, tmp_path):
        """Test that ragged rows fail unless --lenient is given."""
        path = tmp_path / "ragged.csv"
        path.write_text("a,b\n1,2,3\n", encoding="utf-8")

        strict = runner.invoke(main, ["scan", str(path), "--out", "-"])
        assert strict.exit_code == 2
        assert "Data row 0 has 3 cells" in strict.stderr

        lenient = runner.invoke(main, ["scan", str(path), "--out", "-", "--lenient"])
        assert lenient.exit_code == 0
        assert json.loads(lenient.stdout)["item-count"] == 3

    def test_fail_on_findings(self, runner, csv_file, tmp_path):
        """Test the non-zero exit status when something is found."""
        result = runner.invoke(
            main,
            ["scan", str(csv_file), "--out", str(tmp_path / "r.json"), "--fail-on-findings"],
        )
        assert result.exit_code == 1

    def test_config_file(self, runner, csv_file, tmp_path):
        """Test that scan settings are read from a config file."""
        config = tmp_path / "config.yml"
        config.write_text(yaml.dump({"scan": {"format": "spreadsheet"}}), encoding="utf-8")

        result = runner.invoke(main, ["scan", str(csv_file), "--out", "-", "--config", str(config)])

        assert result.exit_code == 0
        assert json.loads(result.stdout)["format"] == "spreadsheet"


class TestOtherCommands:
    """Tests for classify and list-detectors."""

    def test_classify(self, runner):
        """Test classifying a single value."""
        result = runner.invoke(main, ["classify", "--text", "AB123456C"])

        assert result.exit_code == 0
        assert result.stdout.startswith("national-insurance-number-found")

    def test_classify_json_no_match(self, runner):
        """Test JSON output for a clean value."""
        result = runner.invoke(main, ["classify", "--text", "not sensitive", "-o", "json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"code": None, "message": None}

    def test_list_detectors(self, runner):
        """Test listing detectors in priority order."""
        result = runner.invoke(main, ["list-detectors"])

        assert result.exit_code == 0
        assert "Loaded 9 detectors" in result.stdout
        assert result.stdout.index("ip-address-found") < result.stdout.index(
            "social-media-handle-found"
        )

    def test_scan_unparseable_csv(self, runner, tmp_path):
        """Test that a CSV the parser rejects is reported as malformed input."""
        path = tmp_path / "huge_field.csv"
        path.write_text("a\n" + "x" * 200000 + "\n", encoding="utf-8")

        result = runner.invoke(main, ["scan", str(path), "--out", "-"])

        assert result.exit_code == 2
        assert "Could not parse CSV" in result.stderr
        assert result.stdout == ""

    def test_serve_has_no_reload_flag(self, runner):
        """Test that serve does not offer auto-reload for an app instance."""
        result = runner.invoke(main, ["serve", "--reload"])
        assert result.exit_code == 2
        assert "No such option" in result.stderr
