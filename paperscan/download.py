"""Download arXiv source bundles."""

from __future__ import annotations

from pathlib import Path

import requests
from tqdm import tqdm

from paperscan.arxiv import safe_paper_id
from paperscan.errors import DownloadError
from paperscan.models import ArxivUrl, PaperArchive


DEFAULT_OUTPUT_DIR = "output"
DEFAULT_TIMEOUT = 30
USER_AGENT = "paper-scan/0.1"


def download_source(
    arxiv_url: ArxivUrl,
    output_root: Path | str = DEFAULT_OUTPUT_DIR,
    timeout: float = DEFAULT_TIMEOUT,
    session: requests.Session | None = None,
) -> PaperArchive:
    """
    Fetch a paper's source bundle into output/<paper_id>/<paper_id>.tar.gz.

    Raises: DownloadError on a non-success HTTP status.
    """
    paper_dir_name = safe_paper_id(arxiv_url.paper_id)
    output_dir = Path(output_root) / paper_dir_name
    output_dir.mkdir(parents=True, exist_ok=True)
    archive_path = output_dir / f"{paper_dir_name}.tar.gz"

    http = session or requests
    tqdm.write(f"[INFO] Downloading from: {arxiv_url.src_url}")
    res = http.get(
        arxiv_url.src_url,
        stream=True,
        timeout=timeout,
        headers={"User-Agent": USER_AGENT},
    )
    if not res.ok:
        raise DownloadError(f"Failed to download paper {arxiv_url.paper_id}: HTTP {res.status_code}")

    size = 0
    with open(archive_path, "wb") as f:
        for chunk in res.iter_content(chunk_size=8192):
            if chunk:
                f.write(chunk)
                size += len(chunk)

    tqdm.write(f"[INFO] Downloaded {size} bytes to {archive_path}")
    return PaperArchive(paper_id=arxiv_url.paper_id, archive_path=archive_path, output_dir=output_dir)
