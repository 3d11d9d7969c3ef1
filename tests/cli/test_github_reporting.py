"""Tests for GitHub Actions reporting helpers."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from kube_scorecard.cli import github_reporting
from kube_scorecard.cli.github_reporting import ReportError, format_summary, iter_annotations, read_report


def _build_report() -> dict[str, object]:
    return {
        "metadata": {"inputs": ["deploy.yaml"], "kubernetes_version": "v1.18"},
        "summary": {
            "total_objects": 1,
            "worst_grade": "CRITICAL",
            "counts": {"critical": 1, "warning": 1, "ok": 3, "skipped": 2},
        },
        "objects": [
            {
                "kind": "Deployment",
                "name": "web",
                "file_name": "deploy.yaml",
                "file_line": 4,
                "checks": [
                    {
                        "rule_id": "container-resources",
                        "rule_name": "Container Resources",
                        "grade": "CRITICAL",
                        "skipped": False,
                        "comments": [{"path": "web", "title": "CPU limit is not set"}],
                    },
                    {
                        "rule_id": "deployment-replicas",
                        "rule_name": "Deployment Replicas",
                        "grade": "WARNING",
                        "skipped": False,
                        "comments": [],
                    },
                    {
                        "rule_id": "container-image-tag",
                        "rule_name": "Container Image Tag",
                        "grade": "OK",
                        "skipped": False,
                        "comments": [],
                    },
                    {
                        "rule_id": "container-ports-check",
                        "rule_name": "Container Ports Check",
                        "grade": "CRITICAL",
                        "skipped": True,
                        "comments": [],
                    },
                ],
            }
        ],
    }


def test_format_summary_includes_key_sections() -> None:
    """Rendered summaries should include metadata, counts, and findings."""

    summary = format_summary(_build_report())

    assert "# Kubernetes Scorecard" in summary
    assert "**Objects scored:** 1" in summary
    assert "**Worst grade:** Critical" in summary
    assert "| Critical | 1 |" in summary
    assert "| Skipped | 2 |" in summary
    assert "- **kubernetes_version:** v1.18" in summary
    assert "`container-resources` on `Deployment/web` _(deploy.yaml:4)_" in summary
    assert "container-ports-check" not in summary


def test_iter_annotations_maps_grade_levels() -> None:
    """Workflow commands should map grades to the correct annotation levels."""

    annotations = list(iter_annotations(_build_report()))

    assert len(annotations) == 2
    assert annotations[0] == (
        "::error file=deploy.yaml,line=4,title=Container Resources (Deployment/web)"
        "::web: CPU limit is not set"
    )
    assert annotations[1].startswith("::warning file=deploy.yaml,line=4,")
    assert annotations[1].endswith("::deployment-replicas graded WARNING")


def test_main_writes_summary_and_prints_annotations(tmp_path: Path, capsys, monkeypatch) -> None:
    report_path = tmp_path / "report.json"
    report_path.write_text(json.dumps(_build_report()), encoding="utf-8")
    summary_path = tmp_path / "summary" / "step.md"
    monkeypatch.setenv("GITHUB_STEP_SUMMARY", str(summary_path))

    assert github_reporting.main([str(report_path)]) == 0

    assert "# Kubernetes Scorecard" in summary_path.read_text(encoding="utf-8")
    assert capsys.readouterr().out.count("::") == 4


def test_format_summary_honours_findings_limit() -> None:
    summary = format_summary(_build_report(), findings_limit=1)

    assert "`container-resources` on `Deployment/web`" in summary
    assert "deployment-replicas" not in summary
    assert "- ...and 1 more findings." in summary


def test_annotations_from_stdin_have_no_file() -> None:
    report = _build_report()
    report["objects"][0]["file_name"] = "-"

    first = next(iter(iter_annotations(report)))

    assert first.startswith("::error title=Container Resources (Deployment/web)::")


def test_read_report_rejects_non_object(tmp_path: Path) -> None:
    report_path = tmp_path / "report.json"
    report_path.write_text("[1, 2]", encoding="utf-8")

    with pytest.raises(ReportError, match="must contain a JSON object"):
        read_report(report_path)


def test_main_reports_invalid_json(tmp_path: Path, capsys) -> None:
    report_path = tmp_path / "report.json"
    report_path.write_text("{not json", encoding="utf-8")

    assert github_reporting.main([str(report_path), "--no-annotations"]) == 2
    assert "is not valid JSON" in capsys.readouterr().err


def test_main_can_skip_annotations(tmp_path: Path, capsys, monkeypatch) -> None:
    report_path = tmp_path / "report.json"
    report_path.write_text(json.dumps(_build_report()), encoding="utf-8")
    monkeypatch.delenv("GITHUB_STEP_SUMMARY", raising=False)

    assert github_reporting.main([str(report_path), "--no-annotations"]) == 0
    assert capsys.readouterr().out == ""
