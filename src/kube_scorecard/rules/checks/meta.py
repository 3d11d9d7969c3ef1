"""Rules that apply to every object regardless of kind."""

from __future__ import annotations

from ...models import Grade, KubeObject, TargetKind, TestScore
from ...relationships.selectors import is_valid_label_value
from ..registry import RuleRegistry


def label_values(obj: KubeObject) -> TestScore:
    score = TestScore()
    for key, value in obj.labels.items():
        if not is_valid_label_value(value):
            score.grade = Grade.CRITICAL
            score.add_comment(
                key,
                "Invalid label value",
                "The label value is invalid, and will not be accepted by Kubernetes",
            )
    return score


def register(registry: RuleRegistry) -> None:
    registry.register(
        "Label values",
        TargetKind.ALL,
        label_values,
        help_text="Validates label values",
    )
