"""Caching: skip re-downloading and re-analyzing papers seen before."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from paperscan.models import StructuredDocument


DEFAULT_CACHE_DIR = ".paperscan"
DEFAULT_CACHE_FILE = f"{DEFAULT_CACHE_DIR}/cache.json"
CACHE_VERSION = 1


class DocumentCache:
    """
    Cache of analyzed documents keyed by arXiv paper id.

    Schema:
    {
        "version": 1,
        "papers": {
            "2401.08027": { ...StructuredDocument fields... }
        }
    }

    Note: notes are never cached. They depend on the model and prompt, so they
    are regenerated on every run.
    """

    def __init__(self, cache_path: Path | str = DEFAULT_CACHE_FILE):
        self.cache_path = Path(cache_path)
        self._data: dict[str, Any] = self._load()

    def _load(self) -> dict[str, Any]:
        """Load cache from disk or initialize empty."""
        if self.cache_path.exists():
            try:
                data = json.loads(self.cache_path.read_text(encoding="utf-8"))
                if isinstance(data, dict) and data.get("version") == CACHE_VERSION:
                    return data
            except (json.JSONDecodeError, OSError):
                pass
        return {"version": CACHE_VERSION, "papers": {}}

    def save(self) -> None:
        """Persist cache to disk."""
        self.cache_path.parent.mkdir(parents=True, exist_ok=True)
        self.cache_path.write_text(
            json.dumps(self._data, indent=2, ensure_ascii=False),
            encoding="utf-8"
        )

    def get_cached(self, paper_id: str) -> StructuredDocument | None:
        entry = self._data["papers"].get(paper_id)
        if not entry:
            return None
        try:
            return StructuredDocument.from_dict(entry)
        except (TypeError, KeyError):
            # Entry written by an incompatible layout
            return None

    def store(self, document: StructuredDocument, paper_id: str | None = None) -> None:
        self._data["papers"][paper_id or document.paper_id] = document.to_dict()

    def clear(self) -> None:
        """Clear all cached entries."""
        self._data["papers"] = {}

    def stats(self) -> dict[str, int]:
        """Return cache statistics."""
        papers = self._data["papers"].values()
        return {
            "total_entries": len(papers),
            "with_sections": sum(1 for e in papers if e.get("sections")),
        }
