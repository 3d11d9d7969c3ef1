from __future__ import annotations

from pathlib import Path
from typing import Sequence

import pytest

from kube_scorecard.adapters import ManifestDocument, ManifestLoader, SkipExpression
from kube_scorecard.config import RunConfiguration
from kube_scorecard.models import FileLocation, Grade, TargetKind, TestScore
from kube_scorecard.normalization import ManifestNormalizer
from kube_scorecard.relationships import RelationshipIndex
from kube_scorecard.rules import DuplicateRuleError, RuleRegistry
from kube_scorecard.service import ScoringResult, ScoringService


class DummyLoader(ManifestLoader):
    def load(self, inputs: Sequence[str | Path]) -> list[ManifestDocument]:
        self.inputs = list(inputs)
        return [
            ManifestDocument(
                content={
                    "apiVersion": "v1",
                    "kind": "Service",
                    "metadata": {"name": "web", "namespace": "shop"},
                    "spec": {"type": "NodePort", "selector": {"app": "web"}},
                },
                location=FileLocation("service.yaml", 1),
            )
        ]


def _registry(index: RelationshipIndex, config: RunConfiguration) -> RuleRegistry:
    registry = RuleRegistry(ignored_rules=config.ignored_rules)
    registry.register("Service Exists", TargetKind.SERVICE, lambda service: TestScore())
    registry.register(
        "Service Is Fancy",
        TargetKind.SERVICE,
        lambda service: TestScore(grade=Grade.WARNING),
        optional=True,
    )
    return registry


def test_scoring_service_runs_pipeline() -> None:
    seen: list[Sequence[SkipExpression]] = []

    def normalizer_factory(expressions: Sequence[SkipExpression]) -> ManifestNormalizer:
        seen.append(expressions)
        return ManifestNormalizer(expressions)

    service = ScoringService(
        loader_factory=DummyLoader,
        normalizer_factory=normalizer_factory,
        registry_factory=_registry,
    )
    expression = SkipExpression.parse("kind=Deployment")

    result = service.score(["service.yaml"], skip_expressions=[expression])

    assert isinstance(result, ScoringResult)
    assert seen == [[expression]]
    assert result.metadata["object_count"] == 1
    assert result.metadata["rule_count"] == 2
    scored = result.scorecard["Service/v1/shop/web"]
    assert [check.score.skipped for check in scored.checks] == [False, True]


def test_all_optional_rules_can_be_enabled() -> None:
    service = ScoringService(loader_factory=DummyLoader, registry_factory=_registry)

    result = service.score(["service.yaml"], RunConfiguration(all_optional_enabled=True))

    scored = result.scorecard["Service/v1/shop/web"]
    assert scored.aggregate_grade is Grade.WARNING
    assert not any(check.score.skipped for check in scored.checks)


def test_ignored_optional_rule_stays_disabled() -> None:
    service = ScoringService(loader_factory=DummyLoader, registry_factory=_registry)
    config = RunConfiguration(all_optional_enabled=True, ignored_rules={"service-is-fancy"})

    result = service.score(["service.yaml"], config)

    scored = result.scorecard["Service/v1/shop/web"]
    assert [check.rule.id for check in scored.checks] == ["service-exists"]
    assert [rule.id for rule in result.rules] == ["service-exists", "service-is-fancy"]


def test_duplicate_rules_abort_before_scoring() -> None:
    def duplicate(index: RelationshipIndex, config: RunConfiguration) -> RuleRegistry:
        registry = _registry(index, config)
        registry.register("service exists", TargetKind.SERVICE, lambda service: TestScore())
        return registry

    service = ScoringService(loader_factory=DummyLoader, registry_factory=duplicate)

    with pytest.raises(DuplicateRuleError):
        service.score(["service.yaml"])


def test_default_service_lists_builtin_rules() -> None:
    rules = ScoringService().list_rules()

    assert len(rules) == 38
    assert rules[0].id == "deployment-strategy"
