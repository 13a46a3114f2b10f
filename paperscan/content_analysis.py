"""Pure analysis functions for extracting structured content from TeX sources."""

from __future__ import annotations

import re
from pathlib import Path
from typing import NamedTuple

from tqdm import tqdm

from paperscan.errors import NoReadableSource
from paperscan.models import (
    UNKNOWN_PAPER_ID,
    UNTITLED,
    ExtractedFileSet,
    Section,
    StructuredDocument,
)
from paperscan.tex_clean import clean_tex


_TITLE_RE = re.compile(r"\\title\s*(?:\[[^\]]*\])?\{([^}]*)\}")
_AUTHOR_RE = re.compile(r"\\author\s*(?:\[[^\]]*\])?\{([^}]*)\}")

# Tried in this order; the first non-empty capture wins
_ABSTRACT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\\begin\{abstract\}(.*?)\\end\{abstract\}", re.S),
    re.compile(r"\\abstract\{([^}]*)\}"),
    re.compile(r"\\section\*?\{abstract\}([^\\]*)", re.I),
)

_SECTION_RE = re.compile(r"\\section\*?\{([^}]*)\}")
_SUBSECTION_RE = re.compile(r"\\subsection\*?\{([^}]*)\}")

_FIGURE_RE = re.compile(r"\\includegraphics\s*(?:\[[^\]]*\])?\{([^}]*)\}")

_DISPLAY_EQUATION_RE = re.compile(
    r"\\begin\{(equation\*?)\}(.*?)\\end\{\1\}|\$\$(.+?)\$\$", re.S
)
# Single-dollar spans; skips escaped \$ and both halves of $$, but not \\$ (line break, then math)
_INLINE_EQUATION_RE = re.compile(r"(?:(?<=[^\\$])|^)(?:\\\\)*\$([^$]+)\$")


class Heading(NamedTuple):
    offset: int
    level: int
    title: str


def read_sources(file_set: ExtractedFileSet) -> tuple[str, int]:
    """
    Concatenate the paper's TeX files, entry file first.

    Each file is read at most once. Unreadable files are skipped with a warning.

    Returns: (combined text, number of files read)
    """
    ordered: list[Path] = []
    if file_set.entry_file is not None:
        ordered.append(file_set.entry_file)
    ordered.extend(p for p in file_set.markup_files if p != file_set.entry_file)

    parts: list[str] = []
    files_read = 0
    for path in ordered:
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            tqdm.write(f"[WARN] Skipping unreadable TeX file {path}: {type(e).__name__}")
            continue
        parts.append(content)
        parts.append("\n\n")
        files_read += 1

    return "".join(parts), files_read


def extract_title(text: str) -> str:
    m = _TITLE_RE.search(text)
    if not m:
        return UNTITLED
    title = m.group(1).replace("\\", "").strip()
    return title or UNTITLED


def extract_authors(text: str) -> list[str]:
    """Flatten every \\author{...} declaration into one list of names."""
    authors: list[str] = []
    for m in _AUTHOR_RE.finditer(text):
        authors.extend(name.strip() for name in m.group(1).split(",") if name.strip())
    return authors


def extract_abstract(text: str) -> str:
    """Extract the abstract using the first strategy that captures any text."""
    for pattern in _ABSTRACT_PATTERNS:
        m = pattern.search(text)
        if not m:
            continue
        captured = m.group(1).strip()
        if captured:
            return clean_tex(captured)
    return ""


def find_headings(text: str) -> list[Heading]:
    """Locate section and subsection headings, sorted by position in the text."""
    headings: list[Heading] = []
    for level, pattern in ((1, _SECTION_RE), (2, _SUBSECTION_RE)):
        for m in pattern.finditer(text):
            title = m.group(1).strip()
            if title:
                headings.append(Heading(m.start(), level, title))
    headings.sort(key=lambda h: h.offset)
    return headings


def extract_sections(text: str) -> list[Section]:
    """
    Split text into sections at every heading.

    A section runs from its own heading command up to the next heading of any
    level. Text before the first heading belongs to no section.
    """
    headings = find_headings(text)
    sections: list[Section] = []
    for i, h in enumerate(headings):
        end = headings[i + 1].offset if i + 1 < len(headings) else len(text)
        sections.append(
            Section(title=h.title, content=clean_tex(text[h.offset:end]), level=h.level)
        )
    return sections


def extract_figures(text: str) -> list[str]:
    return [m.group(1) for m in _FIGURE_RE.finditer(text)]


def extract_equations(text: str) -> list[str]:
    """
    Extract equation bodies.

    Display equations come first, then inline math, each group in document
    order. The two groups are not interleaved.
    """
    display = [
        (m.group(2) if m.group(2) is not None else m.group(3)).strip()
        for m in _DISPLAY_EQUATION_RE.finditer(text)
    ]
    inline = [m.group(1).strip() for m in _INLINE_EQUATION_RE.finditer(text)]
    return display + inline


def paper_id_for(root_directory: Path) -> str:
    """Papers are extracted into output/<paper_id>/extracted."""
    return root_directory.parent.name or UNKNOWN_PAPER_ID


def analyze(file_set: ExtractedFileSet) -> StructuredDocument:
    """
    Build a StructuredDocument from a classified source tree.

    Missing fields fall back to defaults ("Untitled", empty lists, "").
    Raises: NoReadableSource if no TeX file could be read.
    """
    text, files_read = read_sources(file_set)
    if files_read == 0:
        raise NoReadableSource(f"no readable TeX files under {file_set.root_directory}")

    return StructuredDocument(
        paper_id=paper_id_for(file_set.root_directory),
        title=extract_title(text),
        authors=extract_authors(text),
        abstract_text=extract_abstract(text),
        sections=extract_sections(text),
        figure_references=extract_figures(text),
        equations=extract_equations(text),
        full_text=clean_tex(text),
        image_files=[str(p) for p in file_set.image_files],
    )
