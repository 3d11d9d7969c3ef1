"""Publish scorecard reports to GitHub Actions job summaries and annotations."""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Dict, Iterable, Mapping, Sequence, Tuple

GRADE_ORDER = ["critical", "warning", "ok", "skipped"]
ANNOTATION_LEVELS = {
    "critical": "error",
    "warning": "warning",
}
DEFAULT_FINDINGS_LIMIT = 10

Finding = Tuple[Mapping[str, object], Mapping[str, object]]


def _grade_counts(summary: Mapping[str, object]) -> Dict[str, int]:
    raw: Mapping[str, object] = summary.get("counts") or {}
    lowered = {str(key).lower(): value for key, value in raw.items()}
    return {grade: int(lowered.get(grade) or 0) for grade in GRADE_ORDER}


def _failing_checks(report: Mapping[str, object]) -> Iterable[Finding]:
    for obj in report.get("objects") or []:
        for check in obj.get("checks") or []:
            graded = not check.get("skipped")
            if graded and str(check.get("grade", "")).lower() in ANNOTATION_LEVELS:
                yield obj, check


def format_summary(report: Mapping[str, object], *, findings_limit: int = DEFAULT_FINDINGS_LIMIT) -> str:
    """Render the Markdown job summary.

    Lists the per-grade check counts, the run metadata and at most
    ``findings_limit`` failing checks in report order.
    """

    summary: Mapping[str, object] = report.get("summary") or {}
    metadata: Mapping[str, object] = report.get("metadata") or {}
    worst = summary.get("worst_grade")
    counts = _grade_counts(summary)

    lines: list[str] = [
        "# Kubernetes Scorecard",
        "",
        f"**Objects scored:** {int(summary.get('total_objects') or 0)}",
        f"**Worst grade:** {str(worst).title() if worst else 'None'}",
        "",
        "| Grade | Checks |",
        "| --- | ---: |",
    ]
    lines.extend(f"| {grade.title()} | {counts[grade]} |" for grade in GRADE_ORDER)

    if metadata:
        lines.extend(["", "## Metadata", ""])
        lines.extend(f"- **{key}:** {metadata[key]}" for key in sorted(metadata))

    findings = list(_failing_checks(report))
    if findings:
        lines.extend(["", "## Findings", ""])
        for obj, check in findings[: max(findings_limit, 0)]:
            grade = str(check.get("grade", "")).title()
            bullet = f"- **{grade}** `{str(check.get('rule_id', '')).strip()}` on `{_target(obj)}`"
            file_name, line = _location(obj)
            if file_name:
                bullet += f" _({file_name}:{line})_"
            lines.append(bullet)

        hidden = len(findings) - max(findings_limit, 0)
        if hidden > 0:
            lines.append(f"- ...and {hidden} more findings.")

    lines.append("")
    return "\n".join(lines)


def iter_annotations(report: Mapping[str, object]) -> Iterable[str]:
    """Yield one ``::error``/``::warning`` workflow command per failing check."""

    for obj, check in _failing_checks(report):
        level = ANNOTATION_LEVELS[str(check.get("grade", "")).lower()]
        title = f"{check.get('rule_name') or check.get('rule_id', '')} ({_target(obj)})"

        messages = [_comment_text(comment) for comment in check.get("comments") or []]
        messages = [message for message in messages if message]
        if not messages:
            messages = [f"{check.get('rule_id', '')} graded {check.get('grade', '')}"]

        properties: list[str] = []
        file_name, line = _location(obj)
        if file_name:
            properties.append(f"file={file_name}")
            if line:
                properties.append(f"line={line}")
        properties.append(f"title={_escape_property(title)}")

        yield f"::{level} {','.join(properties)}::{_escape_data('; '.join(messages))}"


def _target(obj: Mapping[str, object]) -> str:
    return f"{obj.get('kind', '')}/{obj.get('name', '')}"


def _comment_text(comment: Mapping[str, object]) -> str:
    title = str(comment.get("title", "")).strip()
    path = str(comment.get("path", "")).strip()
    return f"{path}: {title}" if path else title


def _location(obj: Mapping[str, object]) -> tuple[str, int]:
    """File and line of an object; stdin input has no usable file."""

    file_name = str(obj.get("file_name", "")).strip()
    if file_name in ("", "-"):
        return "", 0
    line = obj.get("file_line")
    if isinstance(line, bool) or not isinstance(line, (int, str)):
        return file_name, 0
    text = str(line).strip()
    return file_name, int(text) if text.isdigit() else 0


def _escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _escape_property(value: str) -> str:
    return _escape_data(value).replace(":", "%3A").replace(",", "%2C")


class ReportError(RuntimeError):
    """Raised when a scorecard report cannot be read."""


def read_report(path: Path) -> Mapping[str, object]:
    """Load a JSON report written by ``kube-scorecard score -o json``."""

    try:
        raw = path.read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise ReportError(f"Unable to read report '{path}': {exc.strerror or exc}") from exc
    if not raw.strip():
        return {}

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ReportError(f"Report '{path}' is not valid JSON: {exc.msg} (line {exc.lineno})") from exc
    if not isinstance(data, Mapping):
        raise ReportError(f"Report '{path}' must contain a JSON object")
    return data


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kube-scorecard-github",
        description="Publish a kube-scorecard JSON report as a GitHub job summary and annotations.",
    )
    parser.add_argument("report", type=Path, help="JSON report produced with --output-format json.")
    parser.add_argument(
        "--summary-path",
        type=Path,
        default=None,
        help="Job summary file to append to. Defaults to $GITHUB_STEP_SUMMARY.",
    )
    parser.add_argument(
        "--findings-limit",
        type=int,
        default=DEFAULT_FINDINGS_LIMIT,
        help="Maximum number of findings listed in the summary.",
    )
    parser.add_argument(
        "--no-annotations",
        action="store_true",
        help="Only write the job summary.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        report = read_report(args.report)
    except ReportError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    destination = args.summary_path
    if destination is None and os.getenv("GITHUB_STEP_SUMMARY"):
        destination = Path(os.environ["GITHUB_STEP_SUMMARY"])
    if destination is not None:
        destination.parent.mkdir(parents=True, exist_ok=True)
        with destination.open("a", encoding="utf-8") as handle:
            handle.write(format_summary(report, findings_limit=args.findings_limit))

    if not args.no_annotations:
        for command in iter_annotations(report):
            print(command)
    return 0


def run() -> None:  # pragma: no cover
    raise SystemExit(main())


if __name__ == "__main__":  # pragma: no cover
    run()
