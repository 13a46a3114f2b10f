import pytest

from paperscan.tex_clean import clean_tex, strip_comments


def test_strip_comments_keeps_escaped_percent():
    src = "50\\% of runs % this is a comment\nnext line"
    assert strip_comments(src) == "50\\% of runs \nnext line"


def test_comment_after_line_break_is_stripped():
    assert strip_comments("a & b \\\\% row note\nnext") == "a & b \\\\\nnext"
    assert clean_tex("line\\\\% secret\nnext") == "line\\\\\nnext"


def test_odd_backslash_run_still_escapes_percent():
    assert strip_comments("cost \\\\\\% kept") == "cost \\\\\\% kept"


def test_setup_commands_are_removed_with_argument():
    src = (
        "\\documentclass[11pt]{article}\n"
        "\\usepackage{amsmath}\n"
        "\\hypersetup{colorlinks=true}\n"
        "Body text."
    )
    assert clean_tex(src) == "Body text."


def test_environment_markers_removed_text_kept():
    src = "\\begin{itemize}\nItem one\n\\end{itemize}"
    assert clean_tex(src) == "Item one"


def test_formatting_commands_unwrapped():
    assert clean_tex("A \\textbf{bold} and \\emph{em} and \\texttt{code}.") == "A bold and em and code."


def test_nested_formatting_fully_unwrapped():
    assert clean_tex("\\textbf{\\emph{deep}}") == "deep"


def test_blank_lines_and_spaces_collapsed():
    src = "one\n\n\n\n\ntwo   three  \n"
    assert clean_tex(src) == "one\n\ntwo three"


@pytest.mark.parametrize(
    "src",
    [
        "\\textbf{\\emph{x}} % note\n\n\n\ny",
        "\\section{Intro}  Hello \\LARGE{big}\n\n \n\n text",
        "\\textbf{a\\}\\%b",
        "100\\% % comment\n\\begin{abstract}A  B\\end{abstract}",
        "",
    ],
)
def test_clean_is_idempotent(src):
    once = clean_tex(src)
    assert clean_tex(once) == once
