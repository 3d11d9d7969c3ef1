"""Command-line interface implementation for kube-scorecard."""

from __future__ import annotations

import argparse
import csv
import io
import json
import logging
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, List, Mapping, MutableMapping, Sequence

from .. import __version__
from ..adapters import ManifestLoadError, SkipExpressionError, parse_skip_expressions
from ..config import (
    ConfigError,
    KubernetesVersion,
    RunConfiguration,
    load_config_file,
)
from ..engine import RuleExecutionError
from ..models import Grade, Rule, RuleResult, ScoredObject, Scorecard
from ..rules import DuplicateRuleError
from ..service import ScoringResult, ScoringService
from .sarif import build_sarif

OUTPUT_FORMATS = ("human", "json", "ci", "sarif")

GRADE_KEYS = {
    Grade.CRITICAL: "critical",
    Grade.WARNING: "warning",
    Grade.ALMOST_OK: "ok",
    Grade.ALL_OK: "ok",
}

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


@dataclass(slots=True)
class ScorecardReport:
    """A scorecard plus the rule listing and run metadata."""

    scorecard: Scorecard
    rules: Sequence[Rule]
    metadata: Mapping[str, Any]

    @property
    def worst_grade(self) -> Grade | None:
        graded = [scored.aggregate_grade for scored in self.scorecard if scored.graded()]
        if not graded:
            return None
        return min(graded)

    def counts_by_grade(self) -> dict[str, int]:
        counts: MutableMapping[str, int] = {"critical": 0, "warning": 0, "ok": 0, "skipped": 0}
        for scored in self.scorecard:
            for result in scored.checks:
                if result.score.skipped:
                    counts["skipped"] += 1
                else:
                    counts[GRADE_KEYS[result.score.grade]] += 1
        return dict(counts)

    def to_dict(self) -> dict[str, Any]:
        worst = self.worst_grade
        return {
            "metadata": dict(self.metadata),
            "summary": {
                "total_objects": len(self.scorecard),
                "worst_grade": worst.label if worst is not None else None,
                "counts": self.counts_by_grade(),
            },
            "objects": [_serialize_object(scored) for scored in self.scorecard],
        }


def _serialize_object(scored: ScoredObject) -> dict[str, Any]:
    identity = scored.identity
    return {
        "key": scored.key,
        "kind": identity.kind,
        "api_version": identity.api_version,
        "name": identity.name,
        "namespace": identity.namespace,
        "file_name": scored.location.name,
        "file_line": scored.location.line,
        "grade": scored.aggregate_grade.label,
        "checks": [_serialize_result(result) for result in scored.checks],
    }


def _serialize_result(result: RuleResult) -> dict[str, Any]:
    return {
        "rule_id": result.rule.id,
        "rule_name": result.rule.name,
        "target_kind": result.rule.target_kind.value,
        "optional": result.rule.optional,
        "grade": result.score.grade.label,
        "skipped": result.score.skipped,
        "comments": [
            {"path": comment.path, "title": comment.title, "details": comment.details}
            for comment in result.score.comments
        ],
    }


# ----------------------------------------------------------------------
def render_human(report: ScorecardReport, *, verbosity: int = 0) -> str:
    """Render the scorecard grouped by object for terminal output."""

    if not len(report.scorecard):
        return "No objects found."

    lines: List[str] = []
    for scored in report.scorecard:
        identity = scored.identity
        header = f"{identity.display_name} ({identity.api_version})"
        if identity.namespace:
            header += f" in {identity.namespace}"
        if scored.location.name:
            header += f"  [{scored.location.name}:{scored.location.line}]"
        lines.append(header)

        for result in scored.checks:
            if result.score.skipped and verbosity < 1:
                continue
            status = "SKIPPED" if result.score.skipped else result.score.grade.label
            lines.append(f"    [{status}] {result.rule.name}")
            for comment in result.score.comments:
                prefix = f"{comment.path} -> " if comment.path else ""
                lines.append(f"        - {prefix}{comment.title}")
                if comment.details:
                    lines.append(f"            {comment.details}")
    return "\n".join(lines)


def render_ci(report: ScorecardReport) -> str:
    """One line per graded check, easy to grep in CI logs."""

    lines: List[str] = []
    for scored in report.scorecard:
        for result in scored.graded():
            line = f"[{result.score.grade.label}] {scored.identity.display_name}: {result.rule.name}"
            if not result.score.comments:
                lines.append(line)
                continue
            for comment in result.score.comments:
                detail = f"({comment.path}) {comment.title}" if comment.path else comment.title
                lines.append(f"{line}: {detail}")
    return "\n".join(lines)


def render_rule_list(rules: Sequence[Rule]) -> str:
    """CSV listing of every registered rule."""

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    for rule in rules:
        writer.writerow(
            [
                rule.id,
                rule.target_kind.value,
                rule.help_text,
                "optional" if rule.optional else "default",
            ]
        )
    return buffer.getvalue().rstrip("\n")


# ----------------------------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    """Construct the CLI argument parser."""

    parser = argparse.ArgumentParser(
        prog="kube-scorecard", description="Score Kubernetes manifests against best practices"
    )
    subparsers = parser.add_subparsers(dest="command")

    score_parser = subparsers.add_parser("score", help="Score Kubernetes manifest files.")
    score_parser.add_argument(
        "files",
        nargs="+",
        help="Manifest files to score. Use - to read from standard input.",
    )
    score_parser.add_argument(
        "-n",
        "--namespace",
        default=None,
        help="Namespace assumed for objects that do not set one.",
    )
    score_parser.add_argument(
        "--ignore-init-containers",
        action="store_true",
        help="Do not run container checks against init containers.",
    )
    score_parser.add_argument(
        "--ignore-jobs",
        action="store_true",
        help="Do not score Jobs and CronJobs.",
    )
    score_parser.add_argument(
        "--ignore-container-cpu-limit",
        action="store_true",
        help="Do not require containers to have a CPU limit.",
    )
    score_parser.add_argument(
        "--ignore-container-memory-limit",
        action="store_true",
        help="Do not require containers to have a memory limit.",
    )
    score_parser.add_argument(
        "--ignore-test",
        dest="ignore_tests",
        action="append",
        default=None,
        metavar="RULE_ID",
        help="Rule id to disable for every object. Can be repeated.",
    )
    score_parser.add_argument(
        "--enable-optional-test",
        dest="enable_optional_tests",
        action="append",
        default=None,
        metavar="RULE_ID",
        help="Optional rule id to enable for every object. Can be repeated.",
    )
    score_parser.add_argument(
        "--all-default-optional",
        action="store_true",
        help="Enable every optional rule.",
    )
    score_parser.add_argument(
        "--disable-ignore-checks-annotations",
        action="store_true",
        help="Do not honor kube-score/ignore and deny annotations.",
    )
    score_parser.add_argument(
        "--disable-optional-checks-annotations",
        action="store_true",
        help="Do not honor kube-score/enable and allow annotations.",
    )
    score_parser.add_argument(
        "--kubernetes-version",
        default=None,
        help="Kubernetes version the manifests target, in the form v1.18.",
    )
    score_parser.add_argument(
        "--skip",
        dest="skip_expressions",
        action="append",
        default=None,
        metavar="PATH=REGEX",
        help="Drop documents where every value at PATH matches REGEX. Can be repeated.",
    )
    score_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML configuration file. Command-line flags take precedence.",
    )
    score_parser.add_argument(
        "--exit-one-on-warning",
        action="store_true",
        help="Exit with status 1 when any object has a warning.",
    )
    score_parser.add_argument(
        "--abort-on-rule-error",
        action="store_true",
        help="Abort the run when a rule fails instead of grading it Critical.",
    )
    score_parser.add_argument(
        "-o",
        "--output-format",
        choices=OUTPUT_FORMATS,
        default="human",
        help="Output format for the scorecard.",
    )
    score_parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity. Repeat for debug logging.",
    )

    list_parser = subparsers.add_parser("list", help="List every available rule as CSV.")
    list_parser.add_argument(
        "--kubernetes-version",
        default=None,
        help="Kubernetes version the listing is computed for.",
    )

    subparsers.add_parser("version", help="Print the kube-scorecard version.")

    return parser


def configure_logging(verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def create_service() -> ScoringService:
    """Create a scoring service using the default loader, normalizer and rules."""

    return ScoringService()


def build_configuration(args: argparse.Namespace) -> RunConfiguration:
    """Merge the optional configuration file with command-line flags."""

    config = load_config_file(args.config) if args.config else RunConfiguration()

    overrides: dict[str, Any] = {}
    if args.namespace is not None:
        overrides["namespace"] = args.namespace
    if args.kubernetes_version is not None:
        overrides["kubernetes_version"] = KubernetesVersion.parse(args.kubernetes_version)
    if args.ignore_tests:
        overrides["ignored_rules"] = set(config.ignored_rules) | _split_ids(args.ignore_tests)
    if args.enable_optional_tests:
        overrides["enabled_optional_rules"] = set(config.enabled_optional_rules) | _split_ids(
            args.enable_optional_tests
        )

    flags = {
        "skip_init_containers": args.ignore_init_containers,
        "skip_jobs": args.ignore_jobs,
        "ignore_container_cpu_limit": args.ignore_container_cpu_limit,
        "ignore_container_memory_limit": args.ignore_container_memory_limit,
        "all_optional_enabled": args.all_default_optional,
        "abort_on_rule_error": args.abort_on_rule_error,
    }
    for key, value in flags.items():
        if value:
            overrides[key] = True
    if args.disable_ignore_checks_annotations:
        overrides["use_ignore_annotations"] = False
    if args.disable_optional_checks_annotations:
        overrides["use_optional_annotations"] = False

    return replace(config, **overrides)


def _split_ids(values: Sequence[str]) -> set[str]:
    ids: set[str] = set()
    for value in values:
        ids.update(item.strip() for item in value.split(",") if item.strip())
    return ids


def _format_report(report: ScorecardReport, *, output_format: str, verbosity: int) -> str:
    if output_format not in OUTPUT_FORMATS:
        raise ValueError(f"format must be one of {', '.join(OUTPUT_FORMATS)}")

    if output_format == "json":
        return json.dumps(report.to_dict(), indent=2)
    if output_format == "sarif":
        return json.dumps(build_sarif(report.scorecard, report.rules), indent=2)
    if output_format == "ci":
        return render_ci(report)
    return render_human(report, verbosity=verbosity)


def exit_code(scorecard: Scorecard, *, exit_one_on_warning: bool = False) -> int:
    threshold = Grade.WARNING if exit_one_on_warning else Grade.CRITICAL
    return 1 if scorecard.any_below_or_equal(threshold) else 0


def _error(message: object) -> int:
    print(f"Error: {message}", file=sys.stderr)
    return 2


def _handle_score(args: argparse.Namespace) -> int:
    configure_logging(args.verbose)

    try:
        config = build_configuration(args)
        skip_expressions = parse_skip_expressions(args.skip_expressions or [])
        result: ScoringResult = create_service().score(
            args.files, config, skip_expressions=skip_expressions
        )
    except (
        ConfigError,
        SkipExpressionError,
        ManifestLoadError,
        DuplicateRuleError,
        RuleExecutionError,
    ) as exc:
        return _error(exc)

    report = ScorecardReport(scorecard=result.scorecard, rules=result.rules, metadata=result.metadata)
    output = _format_report(report, output_format=args.output_format, verbosity=args.verbose)
    if output:
        print(output)
    return exit_code(result.scorecard, exit_one_on_warning=args.exit_one_on_warning)


def _handle_list(args: argparse.Namespace) -> int:
    try:
        config = RunConfiguration()
        if args.kubernetes_version is not None:
            config = replace(config, kubernetes_version=KubernetesVersion.parse(args.kubernetes_version))
        rules = create_service().list_rules(config)
    except (ConfigError, DuplicateRuleError) as exc:
        return _error(exc)

    print(render_rule_list(rules))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point used by tests and the console script."""

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "score":
        return _handle_score(args)
    if args.command == "list":
        return _handle_list(args)
    if args.command == "version":
        print(f"kube-scorecard {__version__}")
        return 0

    parser.print_help()
    return 0


def run() -> None:  # pragma: no cover - thin wrapper for module execution
    """Execute the CLI and exit with the produced status code."""

    raise SystemExit(main())


if __name__ == "__main__":  # pragma: no cover - module execution guard
    run()
