"""File utilities: candidate discovery and filtering."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional


logger = logging.getLogger(__name__)

COMMON_JUNK_DIRS = frozenset(
    {"node_modules", ".git", ".next", ".vscode", ".idea", ".github", "dist", "build"}
)


@dataclass(frozen=True)
class FileCandidate:
    absolute_path: Path
    relative_path: str


@dataclass(frozen=True)
class FilterCriteria:
    """Inclusion rules. An empty field places no restriction."""

    extensions: frozenset[str] = frozenset()
    substrings: frozenset[str] = frozenset()

    @classmethod
    def build(
        cls, extensions: Optional[Iterable[str]] = None, substrings: Optional[Iterable[str]] = None
    ) -> "FilterCriteria":
        return cls(frozenset(extensions or ()), frozenset(substrings or ()))


def read_text(path: str | Path) -> str:
    # newline="" keeps \r\n intact; undecodable bytes become U+FFFD
    with open(path, "r", encoding="utf-8", errors="replace", newline="") as f:
        return f.read()


def iter_files(root: str | Path) -> Iterator[Path]:
    """Yield absolute file paths under ``root``, depth-first.

    Entries named in ``COMMON_JUNK_DIRS`` are skipped along with everything
    below them. Uses an explicit stack, so deep trees never hit the
    recursion limit. An unreadable directory raises ``OSError``.
    """
    start = Path(root).resolve()
    logger.debug("Scanning %s", start)
    # Each frame holds the not-yet-visited entries of one directory
    stack: list[Iterator[os.DirEntry]] = [iter(_sorted_entries(start))]
    while stack:
        entry = next(stack[-1], None)
        if entry is None:
            stack.pop()
            continue
        if entry.name in COMMON_JUNK_DIRS:
            continue
        if entry.is_dir():
            # Symlinked directories are neither followed nor listed
            if not entry.is_symlink():
                stack.append(iter(_sorted_entries(Path(entry.path))))
            continue
        if entry.is_file():
            yield Path(entry.path)


def _sorted_entries(directory: Path) -> list[os.DirEntry]:
    with os.scandir(directory) as it:
        return sorted(it, key=lambda e: e.name)


def matches(candidate: FileCandidate, criteria: FilterCriteria) -> bool:
    path = str(candidate.absolute_path)
    if criteria.extensions and not any(path.endswith(ext) for ext in criteria.extensions):
        return False
    if criteria.substrings and not any(s in path for s in criteria.substrings):
        return False
    return True


def list_candidates(root: str | Path, criteria: Optional[FilterCriteria] = None) -> list[FileCandidate]:
    """Enumerate ``root`` and keep the files that pass ``criteria``."""
    base = Path(root).resolve()
    criteria = criteria or FilterCriteria()
    result: list[FileCandidate] = []
    for f in iter_files(base):
        candidate = FileCandidate(f, os.path.relpath(f, base))
        if matches(candidate, criteria):
            result.append(candidate)
    logger.debug("%d matching files under %s", len(result), base)
    return result


def resolve_selection(root: str | Path, relative_paths: Iterable[str]) -> list[FileCandidate]:
    """Turn picked relative paths back into candidates, keeping order."""
    base = Path(root).resolve()
    return [FileCandidate((base / rel).resolve(), rel) for rel in relative_paths]
