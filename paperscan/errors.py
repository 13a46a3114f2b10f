"""Exception types raised by the paperscan pipeline."""

from __future__ import annotations


class PaperScanError(Exception):
    """Base class for fatal, per-paper pipeline failures."""


class InputNotFound(PaperScanError):
    """The directory to classify does not exist."""


class NoReadableSource(PaperScanError):
    """None of the paper's TeX files could be read."""


NoContentError = NoReadableSource


class InvalidArxivUrl(PaperScanError, ValueError):
    pass


class DownloadError(PaperScanError):
    pass


class UnsupportedArchive(PaperScanError):
    pass


class NoteGenerationError(PaperScanError):
    pass
