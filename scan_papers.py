#!/usr/bin/env python3
"""
Turn arXiv papers into LaTeX study notes.

Behavior:
- Downloads each paper's TeX source bundle from arXiv and unpacks it.
- Finds the main TeX file, then extracts title, authors, abstract, sections,
  figures and equations.
- Generates LaTeX notes with an OpenAI-compatible chat API.
- Caches analyzed documents in .paperscan/ so reruns skip download + analysis.

Usage:
  python scan_papers.py single https://arxiv.org/abs/2401.08027
  python scan_papers.py batch urls.txt            # one URL per line, run concurrently
  python scan_papers.py collect-pdf [-s notes] [-d pdfs]
  python scan_papers.py --no-cache single URL     # Force re-download and re-analysis

Required env vars:
  OPENAI_API_KEY          -> API key for the LLM provider

Optional env vars:
  OPENAI_BASE_URL         -> default: Gemini's OpenAI-compatible endpoint
  OPENAI_MODEL            -> default: gemini-1.5-flash
  OPENAI_TEMPERATURE      -> default: 0.7
  OPENAI_MAX_TOKENS       -> default: provider default
  PAPERSCAN_PROMPT_FILE   -> system prompt file (default: prompts.txt)
  PAPERSCAN_DEBUG_TRACE   -> print tracebacks for failures
"""

from __future__ import annotations

import argparse
import os
import shutil
import traceback
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import NamedTuple

from dotenv import load_dotenv
from tqdm import tqdm

from paperscan.arxiv import parse_arxiv_url, safe_paper_id
from paperscan.cache import DocumentCache
from paperscan.download import DEFAULT_OUTPUT_DIR, download_source
from paperscan.models import StructuredDocument
from paperscan.note_generation import generate_note, save_note
from paperscan.processor import process_archive

# Load environment variables from root .env if it exists
load_dotenv(Path(__file__).parent / ".env")

DEFAULT_NOTES_DIR = "notes"
DEFAULT_PDFS_DIR = "pdfs"


def _truthy_env(name: str) -> bool:
    v = os.environ.get(name, "").strip().lower()
    return v not in {"", "0", "false", "no", "off"}


def _format_exc(e: Exception) -> str:
    msg = str(e).strip()
    if msg:
        return f"{type(e).__name__}: {msg}"
    return type(e).__name__


def _report_error(stage: str, paper: str, e: Exception) -> None:
    tqdm.write(f"[ERROR] {stage} failed for {paper}: {_format_exc(e)}")
    if _truthy_env("PAPERSCAN_DEBUG_TRACE"):
        tqdm.write(traceback.format_exc())


class PaperResult(NamedTuple):
    url: str
    ok: bool
    paper_id: str | None = None
    # Set only when the document was analyzed in this run (for the cache)
    fresh_document: StructuredDocument | None = None


def process_single_paper(
    url: str,
    output_dir: Path,
    notes_dir: Path,
    cache: DocumentCache | None = None,
    force: bool = False,
) -> PaperResult:
    """Run the whole pipeline for one URL. Failures are reported, never raised."""
    stage = "parse url"
    paper_id: str | None = None
    fresh: StructuredDocument | None = None
    try:
        arxiv_url = parse_arxiv_url(url)
        paper_id = arxiv_url.paper_id
        note_dir = notes_dir / safe_paper_id(paper_id)
        if note_dir.exists() and not force:
            tqdm.write(f"[INFO] Note for {paper_id} already exists, skipping")
            return PaperResult(url, True, paper_id)

        document = cache.get_cached(paper_id) if cache else None
        if document is None:
            stage = "download"
            archive = download_source(arxiv_url, output_root=output_dir)
            stage = "analyze"
            document = process_archive(archive)
            fresh = document
        else:
            tqdm.write(f"[INFO] Using cached analysis for {paper_id}")

        if not document.sections:
            tqdm.write(f"[WARN] No sections found for {paper_id}; note will rely on full text")

        stage = "generate note"
        note = generate_note(document)
        output_path = note_dir / f"{document.paper_id}.tex"
        save_note(note, output_path)
        tqdm.write(f"[INFO] Processed: {document.title} -> {output_path}")
        return PaperResult(url, True, paper_id, fresh)
    except Exception as e:
        _report_error(stage, paper_id or url, e)
        return PaperResult(url, False, paper_id, fresh)


def read_urls(file_path: Path) -> list[str]:
    lines = file_path.read_text(encoding="utf-8").splitlines()
    return [ln.strip() for ln in lines if ln.strip()]


def process_batch(
    urls: list[str],
    output_dir: Path,
    notes_dir: Path,
    cache: DocumentCache | None = None,
    force: bool = False,
) -> list[PaperResult]:
    """Run one pipeline per URL, all at once. A failing paper never stops the others."""
    if not urls:
        return []

    results: list[PaperResult] = []
    with ThreadPoolExecutor(max_workers=len(urls)) as pool:
        futures = [
            pool.submit(process_single_paper, url, output_dir, notes_dir, cache, force)
            for url in urls
        ]
        for fut in tqdm(as_completed(futures), total=len(futures), desc="Processing papers"):
            results.append(fut.result())
    return results


def collect_pdf_files(source_dir: Path, dest_dir: Path) -> int:
    """Copy compiled note PDFs from <source>/<paper>/ into one folder."""
    if not source_dir.exists():
        raise SystemExit(f"source dir not found: {source_dir}")
    dest_dir.mkdir(parents=True, exist_ok=True)

    count = 0
    for paper_dir in sorted(p for p in source_dir.iterdir() if p.is_dir()):
        for pdf in sorted(paper_dir.iterdir()):
            if pdf.is_file() and pdf.suffix.lower() == ".pdf":
                shutil.copy2(pdf, dest_dir / pdf.name)
                tqdm.write(f"[INFO] Copied: {pdf} -> {dest_dir / pdf.name}")
                count += 1

    if count:
        tqdm.write(f"[INFO] Collected {count} PDF file(s)")
    else:
        tqdm.write(f"[INFO] No PDF files found in {source_dir}")
    return count


def _store_fresh(cache: DocumentCache | None, results: list[PaperResult]) -> None:
    if cache is None:
        return
    stored = 0
    for result in results:
        if result.paper_id and result.fresh_document is not None:
            cache.store(result.fresh_document, paper_id=result.paper_id)
            stored += 1
    if stored:
        cache.save()
        tqdm.write(f"[INFO] Cached analysis for {stored} newly processed papers")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="arXiv paper -> LaTeX note generator")
    ap.add_argument("--output-dir", default=DEFAULT_OUTPUT_DIR, help="Download/extraction dir (default: output)")
    ap.add_argument("--notes-dir", default=DEFAULT_NOTES_DIR, help="Generated notes dir (default: notes)")
    ap.add_argument(
        "--no-cache",
        action="store_true",
        help="Disable caching, re-download and re-analyze every paper"
    )
    ap.add_argument(
        "--clear-cache",
        action="store_true",
        help="Clear cache before running"
    )
    ap.add_argument("--force", action="store_true", help="Regenerate notes that already exist")

    sub = ap.add_subparsers(dest="command", required=True)
    single = sub.add_parser("single", help="Process a single arXiv paper URL")
    single.add_argument("url", help="arXiv paper URL")
    batch = sub.add_parser("batch", help="Process arXiv URLs from a file (one per line)")
    batch.add_argument("file_path", help="Path to file containing URLs")
    collect = sub.add_parser("collect-pdf", help="Collect PDF files from the notes folder")
    collect.add_argument("-s", "--source", default=DEFAULT_NOTES_DIR, help="Source dir (default: notes)")
    collect.add_argument("-d", "--destination", default=DEFAULT_PDFS_DIR, help="Destination dir (default: pdfs)")
    return ap


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    if args.command == "collect-pdf":
        collect_pdf_files(Path(args.source), Path(args.destination))
        return 0

    output_dir = Path(args.output_dir)
    notes_dir = Path(args.notes_dir)

    # Initialize cache (unless disabled)
    cache = None if args.no_cache else DocumentCache()
    if cache and args.clear_cache:
        cache.clear()
        cache.save()
        print("[INFO] Cache cleared")

    if args.command == "single":
        results = [process_single_paper(args.url, output_dir, notes_dir, cache, args.force)]
    else:
        file_path = Path(args.file_path)
        if not file_path.exists():
            raise SystemExit(f"URL file not found: {file_path}")
        urls = read_urls(file_path)
        tqdm.write(f"[INFO] Processing {len(urls)} papers from {file_path}")
        results = process_batch(urls, output_dir, notes_dir, cache, args.force)

    _store_fresh(cache, results)

    failures = sum(1 for r in results if not r.ok)
    if failures:
        tqdm.write(f"[WARN] Failures: {failures}/{len(results)} papers")
    return 1 if args.command == "single" and failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
