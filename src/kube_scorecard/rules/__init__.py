"""Rule registry, enablement policy and the built-in rule families."""

from .checks import register_all_rules
from .enablement import Decision, EnablementPolicy, Verdict
from .registry import DuplicateRuleError, RegisteredRule, RuleFunction, RuleRegistry

__all__ = [
    "Decision",
    "DuplicateRuleError",
    "EnablementPolicy",
    "RegisteredRule",
    "RuleFunction",
    "RuleRegistry",
    "Verdict",
    "register_all_rules",
]
