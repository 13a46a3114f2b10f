"""arXiv URL parsing."""

from __future__ import annotations

import re

from paperscan.errors import InvalidArxivUrl
from paperscan.models import ArxivUrl


ARXIV_SRC_BASE = "https://arxiv.org/src"

# 2401.08027, 2401.08027v2
_NEW_STYLE_ID_RE = re.compile(r"arxiv\.org/(?:abs|pdf)/([0-9]+\.?[0-9]+(?:v[0-9]+)?)", re.I)
# hep-th/9901001v1
_OLD_STYLE_ID_RE = re.compile(r"arxiv\.org/(?:abs|pdf)/([a-z-]+(?:\.[A-Z]{2})?/[0-9]+(?:v[0-9]+)?)", re.I)


def extract_paper_id(url: str) -> str:
    for pattern in (_NEW_STYLE_ID_RE, _OLD_STYLE_ID_RE):
        m = pattern.search(url)
        if m:
            return m.group(1)
    raise InvalidArxivUrl(f"Invalid arXiv URL format: {url}")


def parse_arxiv_url(url: str) -> ArxivUrl:
    """Parse an arxiv.org/abs or arxiv.org/pdf URL into its id and source URL."""
    paper_id = extract_paper_id(url.strip())
    return ArxivUrl(paper_id=paper_id, src_url=f"{ARXIV_SRC_BASE}/{paper_id}")


def safe_paper_id(paper_id: str) -> str:
    """Old-style ids contain a slash; make them usable as a directory name."""
    return paper_id.replace("/", "_")
