"""Scoring engine: run every enabled rule against every object of its kind."""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from .config import RunConfiguration
from .models import (
    CronJob,
    Grade,
    Job,
    KubeObject,
    ManifestSet,
    PodSpecer,
    Scorecard,
    TargetKind,
    TestScore,
)
from .rules import EnablementPolicy, RuleRegistry, Verdict
from .rules.enablement import OPTIONAL_DEFAULT_STEP

logger = logging.getLogger(__name__)


class RuleExecutionError(RuntimeError):
    """Raised when a rule function fails and the run is configured to abort."""

    def __init__(self, object_key: str, rule_id: str, cause: BaseException) -> None:
        super().__init__(f"Rule {rule_id} failed for {object_key}: {cause}")
        self.object_key = object_key
        self.rule_id = rule_id
        self.cause = cause


class ScoringEngine:
    """Evaluate a :class:`ManifestSet` into a :class:`Scorecard`.

    Objects are visited grouped by kind in a fixed order so that the
    resulting scorecard is deterministic for a given input.
    """

    def __init__(
        self,
        registry: RuleRegistry,
        policy: EnablementPolicy,
        config: RunConfiguration | None = None,
    ) -> None:
        self.registry = registry
        self.policy = policy
        self.config = config or RunConfiguration()

    # ------------------------------------------------------------------
    def score(self, manifests: ManifestSet) -> Scorecard:
        scorecard = Scorecard()
        skip_jobs = self.config.skip_jobs

        for ingress in manifests.ingresses:
            self._evaluate(scorecard, TargetKind.INGRESS, ingress)
        for meta in manifests.metas:
            self._evaluate(scorecard, TargetKind.ALL, meta)
        for pod in manifests.pods:
            self._evaluate(scorecard, TargetKind.POD, pod)
        for owner in manifests.pod_specers:
            if skip_jobs and isinstance(owner, (Job, CronJob)):
                continue
            self._evaluate(scorecard, TargetKind.POD, owner, _template_annotations(owner))
        for service in manifests.services:
            self._evaluate(scorecard, TargetKind.SERVICE, service)
        for statefulset in manifests.statefulsets:
            self._evaluate(
                scorecard, TargetKind.STATEFULSET, statefulset, _template_annotations(statefulset)
            )
        for deployment in manifests.deployments:
            self._evaluate(
                scorecard, TargetKind.DEPLOYMENT, deployment, _template_annotations(deployment)
            )
        for policy in manifests.network_policies:
            self._evaluate(scorecard, TargetKind.NETWORK_POLICY, policy)
        if not skip_jobs:
            for cronjob in manifests.cronjobs:
                self._evaluate(scorecard, TargetKind.CRONJOB, cronjob, _template_annotations(cronjob))
        for hpa in manifests.hpas:
            self._evaluate(scorecard, TargetKind.HORIZONTAL_POD_AUTOSCALER, hpa)
        for pdb in manifests.pdbs:
            self._evaluate(scorecard, TargetKind.POD_DISRUPTION_BUDGET, pdb)

        logger.info("Scored %d objects", len(scorecard))
        return scorecard

    # ------------------------------------------------------------------
    def _evaluate(
        self,
        scorecard: Scorecard,
        kind: TargetKind,
        obj: KubeObject,
        template_annotations: Optional[Mapping[str, str]] = None,
    ) -> None:
        scored = scorecard.new_object(obj.identity)
        annotations = obj.annotations

        for registered in self.registry.rules_for(kind):
            rule = registered.rule
            verdict = self.policy.decide(rule, annotations, template_annotations)
            if not verdict.enabled:
                logger.debug("Rule %s disabled for %s by %s", rule.id, scored.key, verdict.step)
                scored.add(rule, TestScore().skip(_skip_reason(rule.id, verdict)))
                continue

            try:
                score = registered.fn(obj)
            except Exception as exc:
                if self.config.abort_on_rule_error:
                    raise RuleExecutionError(scored.key, rule.id, exc) from exc
                logger.error("Rule %s failed for %s: %s", rule.id, scored.key, exc, exc_info=True)
                score = TestScore(grade=Grade.CRITICAL)
                score.add_comment("", "Rule execution failed", f"{type(exc).__name__}: {exc}")

            scored.add(rule, score)


def _template_annotations(owner: PodSpecer) -> Mapping[str, str]:
    return owner.pod_template.annotations


def _skip_reason(rule_id: str, verdict: Verdict) -> str:
    if verdict.step == OPTIONAL_DEFAULT_STEP:
        return f"Skipped because {rule_id} is optional and not enabled"
    return f"Skipped because {rule_id} is ignored"


__all__ = ["RuleExecutionError", "ScoringEngine"]
