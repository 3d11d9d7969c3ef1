"""Scorecard models: the per-object, per-rule output of a run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from .resource import FileLocation, ResourceIdentity
from .rule import Rule
from .score import Grade, TestScore


@dataclass(slots=True)
class RuleResult:
    """A rule paired with the score it produced for one object."""

    rule: Rule
    score: TestScore


@dataclass(slots=True)
class ScoredObject:
    """Every rule result recorded for a single resource."""

    identity: ResourceIdentity
    checks: List[RuleResult] = field(default_factory=list)

    @property
    def key(self) -> str:
        return self.identity.key

    @property
    def location(self) -> FileLocation:
        return self.identity.location

    def add(self, rule: Rule, score: TestScore) -> None:
        self.checks.append(RuleResult(rule=rule, score=score))

    def graded(self) -> List[RuleResult]:
        return [result for result in self.checks if not result.score.skipped]

    @property
    def aggregate_grade(self) -> Grade:
        """Worst grade over all non-skipped results, ``ALL_OK`` if none."""

        graded = self.graded()
        if not graded:
            return Grade.ALL_OK
        return min(result.score.grade for result in graded)

    def any_below_or_equal(self, grade: Grade) -> bool:
        return any(result.score.grade <= grade for result in self.graded())

    def result_for(self, rule_id: str) -> Optional[RuleResult]:
        for result in self.checks:
            if result.rule.id == rule_id:
                return result
        return None


class Scorecard:
    """Objects keyed by ``kind/apiVersion/namespace/name`` in encounter order."""

    def __init__(self) -> None:
        self._objects: Dict[str, ScoredObject] = {}

    def new_object(self, identity: ResourceIdentity) -> ScoredObject:
        """Return the scored object for ``identity``, creating it on first use."""

        scored = self._objects.get(identity.key)
        if scored is None:
            scored = ScoredObject(identity=identity)
            self._objects[identity.key] = scored
        return scored

    def any_below_or_equal(self, grade: Grade) -> bool:
        """``True`` when any graded result is at or below ``grade``."""

        return any(scored.any_below_or_equal(grade) for scored in self._objects.values())

    def __getitem__(self, key: str) -> ScoredObject:
        return self._objects[key]

    def __contains__(self, key: object) -> bool:
        return key in self._objects

    def __iter__(self) -> Iterator[ScoredObject]:
        return iter(self._objects.values())

    def __len__(self) -> int:
        return len(self._objects)

    def keys(self) -> List[str]:
        return list(self._objects)
