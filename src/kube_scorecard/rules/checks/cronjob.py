"""CronJob rules."""

from __future__ import annotations

from ...models import CronJob, Grade, TargetKind, TestScore
from ..registry import RuleRegistry

ALLOWED_RESTART_POLICIES = ("OnFailure", "Never")


def has_deadline(cronjob: CronJob) -> TestScore:
    score = TestScore()
    if cronjob.starting_deadline_seconds is None:
        score.grade = Grade.CRITICAL
        score.add_comment(
            "",
            "The CronJob should have startingDeadlineSeconds configured",
            "This makes sure that jobs are automatically cancelled if they can not be scheduled",
        )
    return score


def restart_policy(cronjob: CronJob) -> TestScore:
    score = TestScore()
    policy = str(cronjob.pod_template.spec.get("restartPolicy") or "")
    if policy not in ALLOWED_RESTART_POLICIES:
        score.grade = Grade.CRITICAL
        score.add_comment(
            "",
            "The pod has an invalid restartPolicy",
            "The restartPolicy of a CronJob pod template must be either OnFailure or Never",
        )
    return score


def register(registry: RuleRegistry) -> None:
    registry.register(
        "CronJob has deadline",
        TargetKind.CRONJOB,
        has_deadline,
        help_text="Makes sure that all CronJobs has a configured deadline",
    )
    registry.register(
        "CronJob RestartPolicy",
        TargetKind.CRONJOB,
        restart_policy,
        help_text="Makes sure CronJobs have a valid RestartPolicy",
    )
