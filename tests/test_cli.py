"""Tests for the command line interface."""

import json
import zipfile

from typer.testing import CliRunner

from epub_gen.cli import app

runner = CliRunner()


class TestBuild:
    def test_build(self, manifest_path):
        output = manifest_path.parent / "out.epub"
        result = runner.invoke(app, ["build", str(manifest_path), str(output)])

        assert result.exit_code == 0, result.output
        assert "Complete" in result.output
        assert zipfile.is_zipfile(output)

    def test_build_quiet(self, manifest_path):
        result = runner.invoke(app, ["build", str(manifest_path), "--quiet"])

        assert result.exit_code == 0, result.output
        assert result.output == ""
        assert (manifest_path.parent / "the-test-book.epub").is_file()

    def test_build_to_standard_output(self, manifest_path):
        result = runner.invoke(app, ["build", str(manifest_path), "-", "-q"])

        assert result.exit_code == 0
        assert result.stdout_bytes.startswith(b"PK")

    def test_invalid_manifest(self, tmp_path):
        path = tmp_path / "book.json"
        path.write_text(json.dumps({"title": "Empty"}), encoding="utf-8")

        result = runner.invoke(app, ["build", str(path)])

        assert result.exit_code == 1
        assert "Error" in result.output
        assert "contents" in result.output

    def test_missing_manifest(self, tmp_path):
        result = runner.invoke(app, ["build", str(tmp_path / "nope.json")])
        assert result.exit_code == 1


class TestOutline:
    def test_outline(self, manifest_path):
        before = manifest_path.read_text(encoding="utf-8")
        result = runner.invoke(app, ["outline", str(manifest_path)])

        assert result.exit_code == 0, result.output
        for text in ("Table of Contents", "Beginning", "Details", "Ending"):
            assert text in result.output
        assert manifest_path.read_text(encoding="utf-8") == before

    def test_outline_respects_depth(self, manifest_path):
        data = json.loads(manifest_path.read_text(encoding="utf-8"))
        data["tocDepth"] = 1
        manifest_path.write_text(json.dumps(data), encoding="utf-8")

        result = runner.invoke(app, ["outline", str(manifest_path)])

        assert result.exit_code == 0
        assert "Beginning" in result.output
        assert "Details" not in result.output
