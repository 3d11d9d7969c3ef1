"""Command-line interface package for kube-scorecard."""

from .app import (
    ScorecardReport,
    build_configuration,
    build_parser,
    exit_code,
    main,
    render_ci,
    render_human,
    render_rule_list,
    run,
)
from .sarif import build_sarif

__all__ = [
    "ScorecardReport",
    "build_configuration",
    "build_parser",
    "build_sarif",
    "exit_code",
    "main",
    "render_ci",
    "render_human",
    "render_rule_list",
    "run",
]
