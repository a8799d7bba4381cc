"""Tests for the Typer CLI (dry-run only, no network)."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from insight.cli import app

runner = CliRunner()


@pytest.fixture
def offline_config(tmp_path: Path) -> Path:
    cfg = tmp_path / "config.yml"
    cfg.write_text(yaml.safe_dump({
        "llm": {"api_key": ""},
        "tools": {name: {"enabled": False} for name in ("github", "news", "weather")},
    }))
    return cfg


@pytest.fixture
def project_file(tmp_path: Path, sample_project) -> Path:
    path = tmp_path / "project.yml"
    path.write_text(yaml.safe_dump(sample_project.model_dump(mode="json")))
    return path


class TestAdvise:
    def test_dry_run_writes_reports(self, tmp_path, offline_config, project_file) -> None:
        out = tmp_path / "out"
        result = runner.invoke(app, [
            "advise", "--project", str(project_file), "--config", str(offline_config),
            "--output", str(out), "--dry-run",
        ])

        assert result.exit_code == 0, result.output
        report = json.loads((out / "report.json").read_text())
        assert report["project_name"] == "Community Garden App"
        assert report["project_id"].startswith("cli-")
        assert (out / "insight-report.md").read_text().startswith("# Insight Report: Community Garden App")
        assert "<!DOCTYPE html>" in (out / "insight-report.html").read_text()

    def test_missing_project_file(self, tmp_path, offline_config) -> None:
        result = runner.invoke(app, [
            "advise", "--project", str(tmp_path / "nope.yml"), "--config", str(offline_config),
        ])
        assert result.exit_code == 1
        assert "Project file not found" in result.output

    def test_bad_config(self, tmp_path, project_file) -> None:
        bad = tmp_path / "bad.yml"
        bad.write_text("- a list")
        result = runner.invoke(app, ["advise", "--project", str(project_file), "--config", str(bad)])
        assert result.exit_code == 1
        assert "Config validation failed" in result.output


class TestRender:
    def test_rerenders_from_report_json(self, tmp_path, offline_config, project_file) -> None:
        out = tmp_path / "out"
        runner.invoke(app, [
            "advise", "--project", str(project_file), "--config", str(offline_config),
            "--output", str(out), "--dry-run",
        ])
        (out / "insight-report.md").unlink()

        result = runner.invoke(app, ["render", "--output", str(out)])

        assert result.exit_code == 0, result.output
        assert (out / "insight-report.md").exists()

    def test_without_report_json(self, tmp_path) -> None:
        result = runner.invoke(app, ["render", "--output", str(tmp_path)])
        assert result.exit_code == 1
        assert "No report.json found" in result.output


class TestValidateAndTemplates:
    def test_valid_project(self, project_file) -> None:
        result = runner.invoke(app, ["validate", "--project", str(project_file)])
        assert result.exit_code == 0, result.output
        assert "Project is valid!" in result.output

    def test_short_name_is_invalid(self, tmp_path, sample_project) -> None:
        path = tmp_path / "short.json"
        path.write_text(sample_project.model_copy(update={"project_name": "Hi"}).model_dump_json())
        result = runner.invoke(app, ["validate", "--project", str(path)])
        assert result.exit_code == 1
        assert "Project is not valid." in result.output

    def test_templates(self) -> None:
        result = runner.invoke(app, ["templates"])
        assert result.exit_code == 0
        assert "Project templates" in result.output
