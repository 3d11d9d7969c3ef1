"""Integration tests for the ``kube-scorecard`` command."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from kube_scorecard import __version__
from kube_scorecard.cli import app

FIXTURES = Path(__file__).resolve().parents[1] / "fixtures" / "manifests"


def _fixture(name: str) -> str:
    return str(FIXTURES / name)


@pytest.mark.parametrize(
    ("fixture", "expected_exit"),
    [
        ("disruption-budget.yaml", 0),
        ("statefulset-without-budget.yaml", 1),
        ("ingress-port-mismatch.yaml", 1),
    ],
)
def test_exit_status_follows_worst_grade(fixture: str, expected_exit: int, capsys) -> None:
    assert app.main(["score", _fixture(fixture)]) == expected_exit
    assert capsys.readouterr().out


def test_json_output_round_trips(capsys) -> None:
    exit_status = app.main(["score", "--output-format", "json", _fixture("networkpolicy-inferred-egress.yaml")])

    payload = json.loads(capsys.readouterr().out)
    assert exit_status == 1
    pod = next(obj for obj in payload["objects"] if obj["kind"] == "Pod")
    policy = next(check for check in pod["checks"] if check["rule_id"] == "pod-networkpolicy")
    assert policy["grade"] == "OK"
    assert payload["metadata"]["kubernetes_version"] == "v1.18"


def test_ignore_test_flag_removes_rule(capsys) -> None:
    exit_status = app.main(
        [
            "score",
            "-o",
            "json",
            "--ignore-test",
            "statefulset-has-poddisruptionbudget",
            _fixture("statefulset-without-budget.yaml"),
        ]
    )

    payload = json.loads(capsys.readouterr().out)
    checks = [check["rule_id"] for check in payload["objects"][0]["checks"]]
    assert "statefulset-has-poddisruptionbudget" not in checks
    assert exit_status == 1


def test_skip_expression_drops_documents(capsys) -> None:
    exit_status = app.main(
        ["score", "-o", "json", "--skip", "kind=StatefulSet", _fixture("statefulset-without-budget.yaml")]
    )

    payload = json.loads(capsys.readouterr().out)
    assert payload["objects"] == []
    assert exit_status == 0


def test_sarif_output(capsys) -> None:
    app.main(["score", "-o", "sarif", _fixture("ingress-port-mismatch.yaml")])

    sarif = json.loads(capsys.readouterr().out)
    assert sarif["version"] == "2.1.0"
    assert any(result["ruleId"] == "ingress-targets-service" for result in sarif["runs"][0]["results"])


def test_missing_file_is_reported_on_stderr(tmp_path: Path, capsys) -> None:
    exit_status = app.main(["score", str(tmp_path / "absent.yaml")])

    captured = capsys.readouterr()
    assert exit_status == 2
    assert captured.out == ""
    assert captured.err.startswith("Error: Manifest file not found")


def test_malformed_skip_expression(capsys) -> None:
    exit_status = app.main(["score", "--skip", "kind", _fixture("disruption-budget.yaml")])

    assert exit_status == 2
    assert "Invalid skip expression" in capsys.readouterr().err


def test_list_command(capsys) -> None:
    assert app.main(["list"]) == 0

    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 38
    assert "container-ports-check,Pod,Makes sure that named container ports are unique and valid,optional" in lines


def test_version_command(capsys) -> None:
    assert app.main(["version"]) == 0
    assert capsys.readouterr().out.strip() == f"kube-scorecard {__version__}"
