from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Callable

import pytest

from kube_scorecard.adapters import ManifestLoader
from kube_scorecard.config import RunConfiguration
from kube_scorecard.engine import ScoringEngine
from kube_scorecard.models import ManifestSet, Scorecard
from kube_scorecard.normalization import ManifestNormalizer
from kube_scorecard.relationships import RelationshipIndex
from kube_scorecard.rules import EnablementPolicy
from kube_scorecard.service import build_registry

FIXTURES = Path(__file__).parent / "fixtures" / "manifests"


def parse_manifests(text: str, name: str = "test.yaml") -> ManifestSet:
    documents = ManifestLoader().parse(textwrap.dedent(text), name)
    return ManifestNormalizer().normalize(documents)


def score_manifests(manifests: ManifestSet, config: RunConfiguration | None = None) -> Scorecard:
    config = config or RunConfiguration()
    index = RelationshipIndex.build(manifests, config.namespace)
    registry = build_registry(index, config)
    engine = ScoringEngine(registry, EnablementPolicy.from_config(config), config)
    return engine.score(manifests)


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES


@pytest.fixture
def score_text() -> Callable[..., Scorecard]:
    def _score(text: str, config: RunConfiguration | None = None) -> Scorecard:
        return score_manifests(parse_manifests(text), config)

    return _score


@pytest.fixture
def score_fixture() -> Callable[..., Scorecard]:
    def _score(name: str, config: RunConfiguration | None = None) -> Scorecard:
        path = FIXTURES / name
        return score_manifests(parse_manifests(path.read_text(encoding="utf-8"), str(path)), config)

    return _score


@pytest.fixture
def parse_text() -> Callable[..., ManifestSet]:
    return parse_manifests
