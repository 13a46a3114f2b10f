"""Turn a downloaded source bundle into a StructuredDocument."""

from __future__ import annotations

from tqdm import tqdm

from paperscan.archive import extract_archive
from paperscan.content_analysis import analyze
from paperscan.file_classify import classify
from paperscan.models import EntrySource, PaperArchive, StructuredDocument


EXTRACTED_DIR_NAME = "extracted"


def process_archive(paper: PaperArchive) -> StructuredDocument:
    """
    Extract, classify and analyze one paper's sources.

    The downloaded archive is removed once analysis succeeds; the extracted
    tree is kept so generated notes can reference its images.
    """
    extract_dir = extract_archive(paper.archive_path, paper.output_dir / EXTRACTED_DIR_NAME)
    file_set = classify(extract_dir)

    if file_set.entry_source is EntrySource.NONE:
        tqdm.write(
            f"[INFO] No main TeX file found for {paper.paper_id}; "
            f"using all {len(file_set.markup_files)} TeX files"
        )
    else:
        tqdm.write(f"[INFO] Main TeX file ({file_set.entry_source.value}): {file_set.entry_file}")

    document = analyze(file_set)

    try:
        paper.archive_path.unlink(missing_ok=True)
    except OSError as e:
        tqdm.write(f"[WARN] Failed to remove downloaded archive {paper.archive_path}: {e}")

    return document
