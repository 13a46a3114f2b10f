import gzip
import io
import tarfile
import zipfile

import pytest

from paperscan.archive import extract_archive
from paperscan.errors import UnsupportedArchive


def _make_tar_gz(path, files):
    with tarfile.open(path, "w:gz") as tar:
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return path


def test_tar_gz_extracted(tmp_path):
    archive = _make_tar_gz(
        tmp_path / "src.tar.gz",
        {"main.tex": b"\\documentclass{article}", "figs/a.png": b"\x89PNG"},
    )
    out = extract_archive(archive, tmp_path / "extracted")

    assert (out / "main.tex").read_bytes() == b"\\documentclass{article}"
    assert (out / "figs" / "a.png").exists()


def test_zip_extracted(tmp_path):
    archive = tmp_path / "src.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr("paper/ms.tex", "\\section{A}")

    out = extract_archive(archive, tmp_path / "extracted")

    assert (out / "paper" / "ms.tex").read_text() == "\\section{A}"


def test_single_gzipped_tex_file(tmp_path):
    archive = tmp_path / "src.tar.gz"
    archive.write_bytes(gzip.compress(b"\\documentclass{article}\n\\begin{document}Hi\\end{document}"))

    out = extract_archive(archive, tmp_path / "extracted")

    assert (out / "main.tex").read_bytes().startswith(b"\\documentclass")


def test_tar_member_escaping_destination_skipped(tmp_path):
    archive = _make_tar_gz(
        tmp_path / "evil.tar.gz",
        {"../escape.tex": b"nope", "ok.tex": b"\\section{A}"},
    )
    out = extract_archive(archive, tmp_path / "extracted")

    assert (out / "ok.tex").exists()
    assert not (tmp_path / "escape.tex").exists()


def test_links_outside_destination_skipped(tmp_path, capsys):
    archive = tmp_path / "links.tar.gz"
    with tarfile.open(archive, "w:gz") as tar:
        for name, target in (("abs.tex", "/etc/passwd"), ("sub/up.tex", "../../outside.tex")):
            info = tarfile.TarInfo(name)
            info.type = tarfile.SYMTYPE
            info.linkname = target
            tar.addfile(info)
        data = b"\\section{A}"
        info = tarfile.TarInfo("ok.tex")
        info.size = len(data)
        tar.addfile(info, io.BytesIO(data))

    out = extract_archive(archive, tmp_path / "extracted")

    assert (out / "ok.tex").read_bytes() == b"\\section{A}"
    assert not (out / "abs.tex").is_symlink()
    assert not (out / "sub" / "up.tex").is_symlink()
    assert capsys.readouterr().out.count("[WARN]") == 2


def test_unknown_payload_rejected(tmp_path):
    archive = tmp_path / "src.tar.gz"
    archive.write_bytes(b"<html>rate limited</html>")

    with pytest.raises(UnsupportedArchive):
        extract_archive(archive, tmp_path / "extracted")
