from __future__ import annotations

import pytest

from kube_scorecard.relationships import resolve_namespace, same_namespace


@pytest.mark.parametrize("default", ["", "default", "shop"])
def test_resolution_is_idempotent(default: str) -> None:
    once = resolve_namespace("", default)

    assert once == default
    assert resolve_namespace(once, default) == once
    assert resolve_namespace("", default) == once


def test_explicit_namespace_is_never_replaced() -> None:
    assert resolve_namespace("prod", "default") == "prod"
    assert resolve_namespace(None, "default") == "default"


def test_same_namespace_applies_default_on_both_sides() -> None:
    assert same_namespace("", "team", "team")
    assert same_namespace("team", "", "team")
    assert same_namespace("", "", "")
    assert not same_namespace("", "team", "default")
