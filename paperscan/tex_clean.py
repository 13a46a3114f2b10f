"""Pure TeX cleaning and normalization functions."""

from __future__ import annotations

import re


# `%` starts a comment unless escaped as `\%`; `\\%` is a line break then a comment
_COMMENT_RE = re.compile(r"(?<!\\)((?:\\\\)*)%.*$", re.M)

# Setup commands whose argument is dropped along with the command
_DISCARDED_COMMAND_RE = re.compile(
    r"\\(?:usepackage|documentclass|documentstyle|pagestyle|thispagestyle|geometry|hypersetup)"
    r"\s*(?:\[[^\]]*\])?\{[^}]*\}"
)

_ENVIRONMENT_MARKER_RE = re.compile(r"\\(?:begin|end)\{[^}]*\}")

# Inline formatting commands replaced by their argument text
_FORMATTING_COMMAND_RE = re.compile(
    r"\\(?:textbf|textit|emph|texttt|small|large|Large|LARGE|huge|Huge)\{([^}]*)\}"
)

_TRAILING_SPACE_RE = re.compile(r"[ \t]+\n")
_BLANK_RUN_RE = re.compile(r"\n\s*\n\s*\n")
_SPACE_RUN_RE = re.compile(r" {2,}")


def strip_comments(s: str) -> str:
    """Drop everything from an unescaped `%` to end of line."""
    return _COMMENT_RE.sub(r"\1", s)


def _normalize_whitespace(s: str) -> str:
    s = _TRAILING_SPACE_RE.sub("\n", s)
    s = _BLANK_RUN_RE.sub("\n\n", s)
    s = _SPACE_RUN_RE.sub(" ", s)
    return s.strip()


def _clean_pass(s: str) -> str:
    s = strip_comments(s)
    s = _DISCARDED_COMMAND_RE.sub("", s)
    s = _ENVIRONMENT_MARKER_RE.sub("", s)
    s = _FORMATTING_COMMAND_RE.sub(r"\1", s)
    return _normalize_whitespace(s)


def clean_tex(raw_text: str) -> str:
    """
    Strip comments, setup commands and formatting wrappers from TeX source.

    Every substitution only ever shortens the text, so the pass is repeated
    until nothing changes. That unwraps nested formatting like
    ``\\textbf{\\emph{x}}`` and makes ``clean_tex(clean_tex(s)) == clean_tex(s)``.

    Pure function: deterministic, no side effects.
    """
    txt = raw_text.replace("\x00", "")
    while True:
        cleaned = _clean_pass(txt)
        if cleaned == txt:
            return cleaned
        txt = cleaned
