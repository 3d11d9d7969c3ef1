"""SARIF 2.1.0 rendering of a scorecard."""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from .. import __version__
from ..models import Grade, Rule, RuleResult, ScoredObject, Scorecard

SARIF_VERSION = "2.1.0"
SARIF_SCHEMA = "https://json.schemastore.org/sarif-2.1.0.json"
INFORMATION_URI = "https://github.com/zegl/kube-score"

_LEVELS = {Grade.CRITICAL: "error", Grade.WARNING: "warning"}


def build_sarif(scorecard: Scorecard, rules: Sequence[Rule]) -> Dict[str, Any]:
    """Return a SARIF log with one result per Critical or Warning comment."""

    driver_rules = [
        {
            "id": rule.id,
            "name": rule.name,
            "shortDescription": {"text": rule.name},
            "fullDescription": {"text": rule.help_text or rule.name},
            "properties": {"targetKind": rule.target_kind.value, "optional": rule.optional},
        }
        for rule in _unique_rules(rules)
    ]

    results: List[Dict[str, Any]] = []
    for scored in scorecard:
        for result in scored.graded():
            level = _LEVELS.get(result.score.grade)
            if level is None:
                continue
            results.extend(_results_for(scored, result, level))

    return {
        "$schema": SARIF_SCHEMA,
        "version": SARIF_VERSION,
        "runs": [
            {
                "tool": {
                    "driver": {
                        "name": "kube-scorecard",
                        "version": __version__,
                        "informationUri": INFORMATION_URI,
                        "rules": driver_rules,
                    }
                },
                "results": results,
            }
        ],
    }


def _unique_rules(rules: Sequence[Rule]) -> List[Rule]:
    # Rules registered for different kinds may share an id.
    seen: Dict[str, Rule] = {}
    for rule in rules:
        seen.setdefault(rule.id, rule)
    return list(seen.values())


def _results_for(scored: ScoredObject, result: RuleResult, level: str) -> List[Dict[str, Any]]:
    location = {
        "physicalLocation": {
            "artifactLocation": {"uri": scored.location.name},
            "region": {"startLine": max(scored.location.line, 1)},
        }
    }
    prefix = f"{scored.identity.display_name}: "
    comments = result.score.comments or []
    if not comments:
        return [
            {
                "ruleId": result.rule.id,
                "level": level,
                "message": {"text": prefix + result.rule.name},
                "locations": [location],
            }
        ]

    entries = []
    for comment in comments:
        text = comment.title
        if comment.path:
            text = f"({comment.path}) {text}"
        if comment.details:
            text = f"{text}: {comment.details}"
        entries.append(
            {
                "ruleId": result.rule.id,
                "level": level,
                "message": {"text": prefix + text},
                "locations": [location],
            }
        )
    return entries


__all__ = ["SARIF_SCHEMA", "SARIF_VERSION", "build_sarif"]
