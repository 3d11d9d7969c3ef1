"""Per-object decision of whether a rule runs.

The precedence is an ordered table of :class:`PrecedenceStep` entries; the
first step whose predicate holds decides. Pod template annotations are
consulted before the object's own annotations, then run configuration, then
the rule's optional flag.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from ..config import RunConfiguration
from ..models import Rule

ANNOTATION_PREFIX = "kube-score/"
IGNORE_ANNOTATION = "kube-score/ignore"
ENABLE_ANNOTATION = "kube-score/enable"
WILDCARD = "*"
OPTIONAL_DEFAULT_STEP = "optional-default"

# "true" and "false" cover unquoted YAML booleans such as `yes` and `no`.
ALLOW_VALUES = frozenset({"allow", "allowed", "enable", "enabled", "yes", "true"})
DENY_VALUES = frozenset({"deny", "denied", "disable", "disabled", "no", "false"})

# Group names usable in the ignore/enable lists.
IMPLIED_GROUPS: Dict[str, Tuple[str, ...]] = {
    "container-resources": ("container-ephemeral-storage-request-and-limit",),
    "container-security-context": (
        "container-security-context-user-group-id",
        "container-security-context-privileged",
        "container-security-context-readonlyrootfilesystem",
    ),
}


def normalize(value: str) -> str:
    return value.strip().lower()


class Decision(str, Enum):
    RUN = "run"
    SKIP = "skip"


@dataclass(slots=True, frozen=True)
class EnablementContext:
    """Everything one decision looks at."""

    rule: Rule
    annotations: Mapping[str, str]
    template_annotations: Optional[Mapping[str, str]] = None


def directive(annotations: Optional[Mapping[str, str]], rule_id: str) -> Optional[Decision]:
    """Value of the rule specific ``kube-score/<id>`` annotation, if recognised."""

    if not annotations:
        return None
    raw = annotations.get(f"{ANNOTATION_PREFIX}{rule_id}")
    if raw is None:
        return None
    value = normalize(str(raw))
    if value in ALLOW_VALUES:
        return Decision.RUN
    if value in DENY_VALUES:
        return Decision.SKIP
    return None


def list_contains(annotations: Optional[Mapping[str, str]], key: str, rule_id: str) -> bool:
    """Whether the comma separated list under ``key`` names ``rule_id``."""

    if not annotations or key not in annotations:
        return False
    target = normalize(rule_id)
    for entry in str(annotations[key]).split(","):
        entry = normalize(entry)
        if not entry:
            continue
        if entry == WILDCARD or entry == target:
            return True
        if target in IMPLIED_GROUPS.get(entry, ()):
            return True
    return False


Predicate = Callable[[EnablementContext], bool]


@dataclass(slots=True, frozen=True)
class PrecedenceStep:
    name: str
    predicate: Predicate
    decision: Decision


@dataclass(slots=True, frozen=True)
class Verdict:
    step: str
    decision: Decision

    @property
    def enabled(self) -> bool:
        return self.decision is Decision.RUN


def _annotation_steps(
    source: str,
    pick: Callable[[EnablementContext], Optional[Mapping[str, str]]],
    *,
    use_ignore_annotations: bool,
    use_optional_annotations: bool,
) -> List[PrecedenceStep]:
    steps: List[PrecedenceStep] = []
    if use_optional_annotations:
        steps.append(
            PrecedenceStep(
                f"{source}-directive-allow",
                lambda ctx: directive(pick(ctx), ctx.rule.id) is Decision.RUN,
                Decision.RUN,
            )
        )
    if use_ignore_annotations:
        steps.append(
            PrecedenceStep(
                f"{source}-directive-deny",
                lambda ctx: directive(pick(ctx), ctx.rule.id) is Decision.SKIP,
                Decision.SKIP,
            )
        )
        steps.append(
            PrecedenceStep(
                f"{source}-ignore",
                lambda ctx: list_contains(pick(ctx), IGNORE_ANNOTATION, ctx.rule.id),
                Decision.SKIP,
            )
        )
    if use_optional_annotations:
        steps.append(
            PrecedenceStep(
                f"{source}-enable",
                lambda ctx: list_contains(pick(ctx), ENABLE_ANNOTATION, ctx.rule.id),
                Decision.RUN,
            )
        )
    return steps


class EnablementPolicy:
    """Decide whether a rule runs against one object."""

    def __init__(
        self,
        *,
        enabled_optional_rules: Iterable[str] | None = None,
        use_ignore_annotations: bool = True,
        use_optional_annotations: bool = True,
    ) -> None:
        self.enabled_optional_rules: FrozenSet[str] = frozenset(
            normalize(rule_id) for rule_id in enabled_optional_rules or ()
        )
        self.use_ignore_annotations = use_ignore_annotations
        self.use_optional_annotations = use_optional_annotations

        flags = {
            "use_ignore_annotations": use_ignore_annotations,
            "use_optional_annotations": use_optional_annotations,
        }
        self.steps: Tuple[PrecedenceStep, ...] = (
            *_annotation_steps("template", lambda ctx: ctx.template_annotations, **flags),
            *_annotation_steps("object", lambda ctx: ctx.annotations, **flags),
            PrecedenceStep(
                "run-configuration",
                lambda ctx: ctx.rule.id in self.enabled_optional_rules,
                Decision.RUN,
            ),
            PrecedenceStep(OPTIONAL_DEFAULT_STEP, lambda ctx: ctx.rule.optional, Decision.SKIP),
            PrecedenceStep("default", lambda ctx: True, Decision.RUN),
        )

    @classmethod
    def from_config(cls, config: RunConfiguration) -> "EnablementPolicy":
        return cls(
            enabled_optional_rules=config.enabled_optional_rules,
            use_ignore_annotations=config.use_ignore_annotations,
            use_optional_annotations=config.use_optional_annotations,
        )

    # ------------------------------------------------------------------
    def decide(
        self,
        rule: Rule,
        annotations: Mapping[str, str] | None,
        template_annotations: Mapping[str, str] | None = None,
    ) -> Verdict:
        """Return the first precedence step that fires and its decision."""

        context = EnablementContext(
            rule=rule,
            annotations=annotations or {},
            template_annotations=template_annotations,
        )
        for step in self.steps:
            if step.predicate(context):
                return Verdict(step=step.name, decision=step.decision)
        raise AssertionError("the default step always fires")

    def is_enabled(
        self,
        rule: Rule,
        annotations: Mapping[str, str] | None,
        template_annotations: Mapping[str, str] | None = None,
    ) -> bool:
        return self.decide(rule, annotations, template_annotations).enabled


__all__ = [
    "ALLOW_VALUES",
    "DENY_VALUES",
    "Decision",
    "ENABLE_ANNOTATION",
    "EnablementPolicy",
    "IGNORE_ANNOTATION",
    "IMPLIED_GROUPS",
    "OPTIONAL_DEFAULT_STEP",
    "PrecedenceStep",
    "Verdict",
    "directive",
    "list_contains",
    "normalize",
]
