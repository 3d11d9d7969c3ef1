"""Grade and test score models shared by rules, the engine and renderers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List


class Grade(IntEnum):
    """Ordered outcome of a rule. Lower is worse, values are summable."""

    CRITICAL = 0
    WARNING = 5
    ALMOST_OK = 7
    ALL_OK = 10

    @property
    def label(self) -> str:
        return _GRADE_LABELS[self]


_GRADE_LABELS = {
    Grade.CRITICAL: "CRITICAL",
    Grade.WARNING: "WARNING",
    Grade.ALMOST_OK: "OK",
    Grade.ALL_OK: "OK",
}


@dataclass(slots=True)
class Comment:
    """An explanation attached to a test score."""

    path: str
    title: str
    details: str = ""


@dataclass(slots=True)
class TestScore:
    """Result of running one rule against one object."""

    __test__ = False  # keeps pytest from collecting this class

    grade: Grade = Grade.ALL_OK
    skipped: bool = False
    comments: List[Comment] = field(default_factory=list)

    def add_comment(self, path: str, title: str, details: str = "") -> None:
        self.comments.append(Comment(path=path, title=title, details=details))

    def skip(self, reason: str) -> "TestScore":
        """Mark the score as skipped with ``reason`` and return it."""

        self.skipped = True
        self.add_comment("", reason)
        return self
