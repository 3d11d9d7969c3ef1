"""``PATH=REGEX`` expressions that exclude whole documents from a run."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Sequence, Tuple


class SkipExpressionError(ValueError):
    """Raised when a skip expression cannot be parsed."""


_SEGMENT_PATTERN = re.compile(r"([^.\[\]]+)|\[(\*|\d+)\]")
_WILDCARD = "*"


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def _split_expression(raw: str) -> Tuple[str, str]:
    """Split on every ``=`` outside single quotes; exactly two parts are allowed."""

    parts: List[str] = []
    current: List[str] = []
    quoted = False
    for char in raw:
        if char == "'":
            quoted = not quoted
        if char == "=" and not quoted:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    if quoted:
        raise SkipExpressionError(f"Unterminated quote in skip expression {raw!r}")
    parts.append("".join(current))

    if len(parts) != 2:
        raise SkipExpressionError(f"Invalid skip expression {raw!r}, expected PATH=REGEX")
    return parts[0].strip(), parts[1].strip()


def _parse_path(raw_path: str) -> Tuple[str | int, ...]:
    path = raw_path
    if path.startswith("$"):
        path = path[1:].lstrip(".")
    if not path:
        raise SkipExpressionError(f"Invalid path {raw_path!r}")

    segments: List[str | int] = []
    position = 0
    for match in _SEGMENT_PATTERN.finditer(path):
        gap = path[position:match.start()]
        if gap not in ("", "."):
            raise SkipExpressionError(f"Invalid path {raw_path!r}")
        name, index = match.groups()
        if name is not None:
            segments.append(name)
        elif index == _WILDCARD:
            segments.append(_WILDCARD)
        else:
            segments.append(int(index))
        position = match.end()

    if position != len(path) or not segments:
        raise SkipExpressionError(f"Invalid path {raw_path!r}")
    return tuple(segments)


def _scalar_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value).strip()


@dataclass(slots=True, frozen=True)
class SkipExpression:
    raw_path: str
    path: Tuple[str | int, ...]
    raw_value: str
    pattern: re.Pattern[str]

    @classmethod
    def parse(cls, raw: str) -> "SkipExpression":
        raw_path, raw_value = _split_expression(raw)
        raw_path = _unquote(raw_path)
        raw_value = _unquote(raw_value)
        try:
            pattern = re.compile(raw_value)
        except re.error as exc:
            raise SkipExpressionError(f"Invalid value pattern {raw_value!r}: {exc}") from exc
        return cls(
            raw_path=raw_path,
            path=_parse_path(raw_path),
            raw_value=raw_value,
            pattern=pattern,
        )

    def resolve(self, document: Any) -> List[Any]:
        """Every value the path resolves to in ``document``."""

        current: List[Any] = [document]
        for segment in self.path:
            following: List[Any] = []
            for node in current:
                if segment == _WILDCARD:
                    if isinstance(node, list):
                        following.extend(node)
                    elif isinstance(node, Mapping):
                        following.extend(node.values())
                elif isinstance(segment, int):
                    if isinstance(node, list) and segment < len(node):
                        following.append(node[segment])
                elif isinstance(node, Mapping) and segment in node:
                    following.append(node[segment])
            current = following
        return current

    def matches(self, document: Any) -> bool:
        """``True`` when the path resolves and every value matches the pattern."""

        values = self.resolve(document)
        if not values:
            return False
        return all(self.pattern.search(_scalar_text(value)) for value in values)

    def __str__(self) -> str:
        return f"{self.raw_path}={self.raw_value}"


def parse_skip_expressions(raw_expressions: Sequence[str] | None) -> List[SkipExpression]:
    return [SkipExpression.parse(raw) for raw in raw_expressions or ()]


__all__ = ["SkipExpression", "SkipExpressionError", "parse_skip_expressions"]
