"""Classify an extracted source tree and pick the entry TeX file."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

from paperscan.errors import InputNotFound
from paperscan.models import EntrySelection, EntrySource, ExtractedFileSet


MARKUP_SUFFIX = ".tex"
BIBLIOGRAPHY_SUFFIX = ".bib"
IMAGE_SUFFIXES = frozenset({".png", ".jpg", ".jpeg", ".pdf", ".eps", ".gif"})

ROOT_DECLARATIONS: tuple[str, ...] = (r"\documentclass", r"\documentstyle")
ENTRY_FILE_NAMES: tuple[str, ...] = ("main.tex", "paper.tex", "article.tex", "ms.tex", "template.tex")


def _has_root_declaration(path: Path) -> bool:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return False
    return any(decl in text for decl in ROOT_DECLARATIONS)


def _has_entry_name(path: Path) -> bool:
    return path.name.lower() in ENTRY_FILE_NAMES


# Tried in order; the first strategy with a matching file wins
_ENTRY_STRATEGIES: tuple[tuple[EntrySource, Callable[[Path], bool]], ...] = (
    (EntrySource.CONTENT, _has_root_declaration),
    (EntrySource.NAME, _has_entry_name),
)


def select_entry_file(markup_files: list[Path]) -> EntrySelection:
    """
    Pick the main TeX file.

    Priority:
    1. First file declaring \\documentclass or \\documentstyle
    2. First file with a conventional name (main.tex, paper.tex, ...)
    3. None: every file is equally authoritative
    """
    for source, matches in _ENTRY_STRATEGIES:
        for path in markup_files:
            if matches(path):
                return EntrySelection(path=path, source=source)
    return EntrySelection(path=None, source=EntrySource.NONE)


def classify(root_directory: Path | str) -> ExtractedFileSet:
    """
    Walk an extracted source tree and group files by role.

    Files with unrecognized extensions are ignored. Raises InputNotFound if the
    directory does not exist.
    """
    root = Path(root_directory)
    if not root.is_dir():
        raise InputNotFound(f"extracted directory not found: {root}")

    markup: list[Path] = []
    bibliography: list[Path] = []
    images: list[Path] = []

    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue
        if path.suffix == MARKUP_SUFFIX:
            markup.append(path)
        elif path.suffix == BIBLIOGRAPHY_SUFFIX:
            bibliography.append(path)
        elif path.suffix.lower() in IMAGE_SUFFIXES:
            images.append(path)

    entry = select_entry_file(markup)

    return ExtractedFileSet(
        root_directory=root,
        markup_files=markup,
        bibliography_files=bibliography,
        image_files=images,
        entry_file=entry.path,
        entry_source=entry.source,
    )
