"""Read multi-document YAML manifests and tag each document with its location."""

from __future__ import annotations

import logging
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Sequence, TextIO

import yaml

from ..models import FileLocation

logger = logging.getLogger(__name__)

STDIN_NAME = "-"

_SEPARATOR = re.compile(r"^---(\s.*)?$")
_HELM_SOURCE = re.compile(r"^#\s*Source:\s*(?P<path>\S.*?)\s*$")


class ManifestLoadError(RuntimeError):
    """Raised when a manifest file cannot be read or parsed."""


@dataclass(slots=True)
class ManifestDocument:
    """A decoded YAML document and where it came from."""

    content: Dict[str, Any]
    location: FileLocation


class ManifestLoader:
    """Load manifest documents from files or standard input."""

    def __init__(self, *, stdin: TextIO | None = None) -> None:
        self._stdin = stdin

    def load(self, inputs: Sequence[str | Path]) -> List[ManifestDocument]:
        """Decode every document of every input in order."""

        documents: List[ManifestDocument] = []
        for item in inputs:
            name = str(item)
            text = self._read(name)
            documents.extend(self.parse(text, name))
        logger.info("Loaded %d documents from %d inputs", len(documents), len(inputs))
        return documents

    # ------------------------------------------------------------------
    def parse(self, text: str, name: str) -> List[ManifestDocument]:
        """Split ``text`` on ``---`` separators and decode each chunk."""

        documents: List[ManifestDocument] = []
        for location, chunk in _split_documents(text, name):
            try:
                content = yaml.safe_load(chunk)
            except yaml.YAMLError as exc:
                raise ManifestLoadError(
                    f"Invalid YAML in {location.name} at line {location.line}: {exc}"
                ) from exc

            if content is None:
                continue
            if not isinstance(content, dict):
                logger.debug("Ignoring non-mapping document in %s:%d", location.name, location.line)
                continue
            documents.append(ManifestDocument(content=content, location=location))
        return documents

    def _read(self, name: str) -> str:
        if name == STDIN_NAME:
            stream = self._stdin or sys.stdin
            try:
                return stream.read()
            except (OSError, UnicodeDecodeError) as exc:
                raise ManifestLoadError(f"Failed to read manifests from standard input: {exc}") from exc

        path = Path(name)
        if not path.exists():
            raise ManifestLoadError(f"Manifest file not found: {path}")
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ManifestLoadError(f"Failed to read manifest file {path}: {exc}") from exc


def _is_content(line: str) -> bool:
    stripped = line.strip()
    return bool(stripped) and not stripped.startswith("#")


def _split_documents(text: str, name: str) -> List[tuple[FileLocation, str]]:
    """Return ``(location, chunk)`` pairs for every document in ``text``.

    The location line is the first line after the separator. A Helm
    ``# Source: <path>`` comment renames the location and restarts the line
    count so the line after the comment is line 1.
    """

    chunks: List[tuple[FileLocation, str]] = []
    current: List[str] = []
    location_name = name
    start_line = 1

    def flush() -> None:
        if current:
            chunks.append((FileLocation(name=location_name, line=start_line), "\n".join(current)))

    for number, line in enumerate(text.splitlines(), start=1):
        if _SEPARATOR.match(line):
            flush()
            current = []
            location_name = name
            start_line = number + 1
            continue

        source = _HELM_SOURCE.match(line)
        if source and not any(_is_content(item) for item in current):
            location_name = source.group("path")
            start_line = 1
            current = []
            continue

        current.append(line)

    flush()
    return chunks


__all__ = ["ManifestDocument", "ManifestLoadError", "ManifestLoader", "STDIN_NAME"]
