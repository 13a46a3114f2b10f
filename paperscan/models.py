"""Data models for paperscan."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


UNTITLED = "Untitled"
UNKNOWN_PAPER_ID = "unknown"


class EntrySource(str, Enum):
    """How the entry (main) TeX file was chosen."""
    CONTENT = "content"
    NAME = "name"
    NONE = "none"


@dataclass(frozen=True)
class EntrySelection:
    path: Path | None
    source: EntrySource = EntrySource.NONE


@dataclass(frozen=True)
class ExtractedFileSet:
    """Files found in one paper's extracted source tree, grouped by role."""
    root_directory: Path
    markup_files: list[Path] = field(default_factory=list)
    bibliography_files: list[Path] = field(default_factory=list)
    image_files: list[Path] = field(default_factory=list)
    entry_file: Path | None = None
    entry_source: EntrySource = EntrySource.NONE


@dataclass(frozen=True)
class Section:
    title: str
    content: str
    level: int


@dataclass(frozen=True)
class StructuredDocument:
    """Structured content extracted from a paper's TeX sources."""
    paper_id: str
    title: str
    authors: list[str]
    abstract_text: str
    sections: list[Section]
    figure_references: list[str]
    equations: list[str]
    full_text: str
    image_files: list[str]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StructuredDocument:
        return cls(
            paper_id=data.get("paper_id", UNKNOWN_PAPER_ID),
            title=data.get("title", UNTITLED),
            authors=list(data.get("authors", [])),
            abstract_text=data.get("abstract_text", ""),
            sections=[Section(**s) for s in data.get("sections", [])],
            figure_references=list(data.get("figure_references", [])),
            equations=list(data.get("equations", [])),
            full_text=data.get("full_text", ""),
            image_files=list(data.get("image_files", [])),
        )


@dataclass(frozen=True)
class ArxivUrl:
    paper_id: str
    src_url: str


@dataclass(frozen=True)
class PaperArchive:
    """A downloaded source bundle waiting to be extracted."""
    paper_id: str
    archive_path: Path
    output_dir: Path


@dataclass(frozen=True)
class GeneratedNote:
    paper_id: str
    title: str
    latex_content: str
    generated_at: str
    model_used: str
