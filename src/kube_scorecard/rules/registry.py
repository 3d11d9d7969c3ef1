"""Kind-indexed catalog of rules and the functions that grade objects."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List

from ..models import Rule, TargetKind, TestScore
from .enablement import normalize

logger = logging.getLogger(__name__)

RuleFunction = Callable[[Any], TestScore]


class DuplicateRuleError(RuntimeError):
    """Raised when two rules derive the same id for one target kind."""


@dataclass(slots=True, frozen=True)
class RegisteredRule:
    rule: Rule
    fn: RuleFunction


class RuleRegistry:
    """Write-once catalog with one ordered rule map per target kind.

    Rules ignored by id are kept in :meth:`all_rules` for listing but never
    reach the per-kind execution maps.
    """

    def __init__(self, ignored_rules: Iterable[str] | None = None) -> None:
        self._ignored = {normalize(rule_id) for rule_id in ignored_rules or () if rule_id.strip()}
        self._all: List[Rule] = []
        self._by_kind: Dict[TargetKind, Dict[str, RegisteredRule]] = {
            kind: {} for kind in TargetKind
        }

    # ------------------------------------------------------------------
    def register(
        self,
        name: str,
        target_kind: TargetKind,
        fn: RuleFunction,
        *,
        help_text: str = "",
        optional: bool = False,
    ) -> Rule:
        """Register ``fn`` under the id derived from ``name``."""

        rule = Rule.create(name, target_kind, help_text=help_text, optional=optional)
        for existing in self._all:
            if existing.id == rule.id and existing.target_kind is rule.target_kind:
                raise DuplicateRuleError(
                    f"Rule {rule.name!r} derives id {rule.id!r} which is already registered "
                    f"for {target_kind.value} by {existing.name!r}"
                )

        self._all.append(rule)
        if normalize(rule.id) in self._ignored:
            logger.info("Rule %s is ignored by configuration", rule.id)
            return rule

        self._by_kind[target_kind][rule.id] = RegisteredRule(rule=rule, fn=fn)
        logger.debug("Registered rule %s for %s", rule.id, target_kind.value)
        return rule

    def rule(
        self,
        name: str,
        target_kind: TargetKind,
        *,
        help_text: str = "",
        optional: bool = False,
    ) -> Callable[[RuleFunction], RuleFunction]:
        """Decorator form of :meth:`register`."""

        def decorator(fn: RuleFunction) -> RuleFunction:
            self.register(name, target_kind, fn, help_text=help_text, optional=optional)
            return fn

        return decorator

    # ------------------------------------------------------------------
    def rules_for(self, target_kind: TargetKind) -> List[RegisteredRule]:
        """Executable rules for ``target_kind`` in registration order."""

        return list(self._by_kind[target_kind].values())

    def all_rules(self) -> List[Rule]:
        """Every registered rule, ignored ones included."""

        return list(self._all)

    def is_ignored(self, rule_id: str) -> bool:
        return normalize(rule_id) in self._ignored

    def optional_rule_ids(self) -> List[str]:
        return [rule.id for rule in self._all if rule.optional and not self.is_ignored(rule.id)]

    def __len__(self) -> int:
        return len(self._all)


__all__ = ["DuplicateRuleError", "RegisteredRule", "RuleFunction", "RuleRegistry"]
