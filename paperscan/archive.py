"""Unpack arXiv source bundles (tar, zip, gzip'd single file or plain TeX)."""

from __future__ import annotations

import gzip
import tarfile
import zipfile
from pathlib import Path

from tqdm import tqdm

from paperscan.errors import UnsupportedArchive


_TEX_MARKERS: tuple[bytes, ...] = (b"\\documentclass", b"\\documentstyle", b"\\begin{document}", b"\\section")

SINGLE_FILE_NAME = "main.tex"


def _is_within_directory(candidate: Path, root: Path) -> bool:
    try:
        candidate.relative_to(root)
    except ValueError:
        return False
    return True


def _link_target(member: tarfile.TarInfo, destination: Path) -> Path:
    # Symlinks resolve next to the member, hard links from the archive root
    if member.issym():
        return (destination / member.name).parent / member.linkname
    return destination / member.linkname


def _safe_extract_tar(tar: tarfile.TarFile, destination: Path) -> None:
    root = destination.resolve()
    for member in tar.getmembers():
        name = member.name.strip()
        if not name:
            continue
        if not _is_within_directory((destination / name).resolve(), root):
            tqdm.write(f"[WARN] Skipping archive member outside extraction dir: {name}")
            continue
        if (member.issym() or member.islnk()) and not _is_within_directory(
            _link_target(member, destination).resolve(), root
        ):
            tqdm.write(f"[WARN] Skipping link pointing outside extraction dir: {name} -> {member.linkname}")
            continue
        try:
            tar.extract(member, path=str(destination), filter="data")
        except TypeError:
            # Interpreters without extraction filters
            tar.extract(member, path=str(destination))
        except tarfile.FilterError as e:
            tqdm.write(f"[WARN] Skipping archive member rejected by tar filter: {name} ({e})")


def _safe_extract_zip(archive: zipfile.ZipFile, destination: Path) -> None:
    root = destination.resolve()
    for name in archive.namelist():
        clean_name = name.strip()
        if not clean_name:
            continue
        if not _is_within_directory((destination / clean_name).resolve(), root):
            tqdm.write(f"[WARN] Skipping archive member outside extraction dir: {clean_name}")
            continue
        archive.extract(name, path=str(destination))


def _looks_like_tex(payload: bytes) -> bool:
    return any(marker in payload for marker in _TEX_MARKERS)


def extract_archive(archive_path: Path | str, extract_dir: Path | str) -> Path:
    """
    Unpack a source bundle into extract_dir.

    arXiv serves multi-file submissions as tar.gz, but a single-file submission
    comes back as a bare gzip'd TeX file. Formats are tried in order:
    1. tar (any compression)
    2. zip
    3. gzip stream holding TeX -> extract_dir/main.tex
    4. plain TeX bytes -> extract_dir/main.tex

    Returns: extract_dir
    Raises: UnsupportedArchive if none of the formats apply.
    """
    archive_path = Path(archive_path)
    extract_dir = Path(extract_dir)
    extract_dir.mkdir(parents=True, exist_ok=True)

    if tarfile.is_tarfile(archive_path):
        with tarfile.open(archive_path, "r:*") as tar:
            _safe_extract_tar(tar, extract_dir)
        tqdm.write(f"[INFO] Extracted tar archive to {extract_dir}")
        return extract_dir

    if zipfile.is_zipfile(archive_path):
        with zipfile.ZipFile(archive_path) as archive:
            _safe_extract_zip(archive, extract_dir)
        tqdm.write(f"[INFO] Extracted zip archive to {extract_dir}")
        return extract_dir

    payload = archive_path.read_bytes()
    if payload[:2] == b"\x1f\x8b":
        try:
            payload = gzip.decompress(payload)
        except (OSError, EOFError) as e:
            raise UnsupportedArchive(f"corrupt gzip stream in {archive_path}: {e}") from e

    if _looks_like_tex(payload):
        (extract_dir / SINGLE_FILE_NAME).write_bytes(payload)
        tqdm.write(f"[INFO] Wrote single-file source to {extract_dir / SINGLE_FILE_NAME}")
        return extract_dir

    raise UnsupportedArchive(f"Unsupported archive format: {archive_path}")
