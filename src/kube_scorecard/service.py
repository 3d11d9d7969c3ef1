"""Orchestration layer used by the CLI to score manifest files."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, List, Mapping, Sequence

from .adapters import ManifestLoader, ManifestLoadError, SkipExpression
from .config import ConfigError, RunConfiguration
from .engine import RuleExecutionError, ScoringEngine
from .models import Rule, Scorecard
from .normalization import ManifestNormalizer
from .relationships import RelationshipIndex
from .rules import DuplicateRuleError, EnablementPolicy, RuleRegistry, register_all_rules

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ScoringResult:
    """Result returned by :class:`ScoringService` runs."""

    scorecard: Scorecard
    rules: List[Rule]
    metadata: Mapping[str, Any]


LoaderFactory = Callable[[], ManifestLoader]
NormalizerFactory = Callable[[Sequence[SkipExpression]], ManifestNormalizer]
RegistryFactory = Callable[[RelationshipIndex, RunConfiguration], RuleRegistry]


def build_registry(index: RelationshipIndex, config: RunConfiguration) -> RuleRegistry:
    """Registry holding every built-in rule wired to ``index``."""

    registry = RuleRegistry(ignored_rules=config.ignored_rules)
    return register_all_rules(registry, index, config)


class ScoringService:
    """High level service responsible for manifest ingestion and scoring."""

    def __init__(
        self,
        *,
        loader_factory: LoaderFactory | None = None,
        normalizer_factory: NormalizerFactory | None = None,
        registry_factory: RegistryFactory | None = None,
    ) -> None:
        self._loader_factory = loader_factory or ManifestLoader
        self._normalizer_factory = normalizer_factory or ManifestNormalizer
        self._registry_factory = registry_factory or build_registry

    # ------------------------------------------------------------------
    def score(
        self,
        inputs: Sequence[str | Path],
        config: RunConfiguration | None = None,
        *,
        skip_expressions: Sequence[SkipExpression] | None = None,
    ) -> ScoringResult:
        """Load, normalize and score ``inputs``."""

        config = config or RunConfiguration()
        documents = self._loader_factory().load(inputs)
        manifests = self._normalizer_factory(list(skip_expressions or [])).normalize(documents)

        index = RelationshipIndex.build(manifests, config.namespace)
        registry = self._registry_factory(index, config)
        config = self._effective_config(registry, config)

        engine = ScoringEngine(registry, EnablementPolicy.from_config(config), config)
        scorecard = engine.score(manifests)

        metadata: dict[str, Any] = {
            "inputs": [str(item) for item in inputs],
            "object_count": len(manifests),
            "rule_count": len(registry),
            "kubernetes_version": str(config.kubernetes_version),
        }
        return ScoringResult(scorecard=scorecard, rules=registry.all_rules(), metadata=metadata)

    def list_rules(self, config: RunConfiguration | None = None) -> List[Rule]:
        """Every rule the registry knows about, ignored ones included."""

        config = config or RunConfiguration()
        index = RelationshipIndex.build(self._normalizer_factory([]).normalize([]), config.namespace)
        return self._registry_factory(index, config).all_rules()

    # ------------------------------------------------------------------
    def _effective_config(self, registry: RuleRegistry, config: RunConfiguration) -> RunConfiguration:
        if not config.all_optional_enabled:
            return config
        enabled = set(config.enabled_optional_rules) | set(registry.optional_rule_ids())
        logger.info("Enabling all %d optional rules", len(enabled))
        return replace(config, enabled_optional_rules=enabled)


__all__ = [
    "ConfigError",
    "DuplicateRuleError",
    "ManifestLoadError",
    "RuleExecutionError",
    "ScoringResult",
    "ScoringService",
    "build_registry",
]
