from __future__ import annotations

import pytest

from kube_scorecard.adapters import SkipExpression, SkipExpressionError, parse_skip_expressions

DOCUMENT = {
    "kind": "Deployment",
    "metadata": {"name": "web", "labels": {"team": "payments"}},
    "spec": {
        "template": {
            "spec": {
                "containers": [
                    {"name": "web", "image": "internal/web:1.0"},
                    {"name": "proxy", "image": "internal/proxy:2.0"},
                ]
            }
        }
    },
}


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("metadata.labels.team=payments", True),
        ("metadata.labels.team=^pay", True),
        ("metadata.labels.team=billing", False),
        ("metadata.labels.owner=.*", False),
        ("$.kind=Deployment", True),
        ("spec.template.spec.containers[*].image=^internal/", True),
        ("spec.template.spec.containers[*].name=web", False),
        ("spec.template.spec.containers[1].name=proxy", True),
        ("spec.template.spec.containers[5].name=proxy", False),
        ("'metadata.name'='web'", True),
        ("metadata.name=\"w.b\"", True),
    ],
)
def test_matches(raw: str, expected: bool) -> None:
    assert SkipExpression.parse(raw).matches(DOCUMENT) is expected


def test_equals_inside_single_quotes_is_part_of_the_value() -> None:
    expression = SkipExpression.parse("metadata.labels.team='a=b'")

    assert expression.raw_value == "a=b"
    assert expression.matches({"metadata": {"labels": {"team": "a=b"}}})


@pytest.mark.parametrize(
    "raw",
    ["metadata.name", "a=b=c", "=web", "metadata..name=web", "metadata.name='web", "kind=(unclosed"],
)
def test_malformed_expressions(raw: str) -> None:
    with pytest.raises(SkipExpressionError):
        SkipExpression.parse(raw)


def test_parse_list() -> None:
    expressions = parse_skip_expressions(["kind=Pod", "metadata.name=web"])

    assert [str(expression) for expression in expressions] == ["kind=Pod", "metadata.name=web"]
    assert parse_skip_expressions(None) == []
