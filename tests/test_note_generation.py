from types import SimpleNamespace

import pytest

from paperscan.errors import NoteGenerationError
from paperscan.models import Section, StructuredDocument
from paperscan.note_generation import (
    DEFAULT_MODEL,
    DEFAULT_SYSTEM_PROMPT,
    LLMConfig,
    format_paper_content,
    generate_note,
    load_llm_config,
    load_system_prompt,
    post_process_latex,
    save_note,
)


def _doc(**overrides):
    fields = dict(
        paper_id="2401.08027",
        title="Scan",
        authors=["A", "B"],
        abstract_text="Short.",
        sections=[Section("Intro", "Hi", 1), Section("Sub", "Yo", 2)],
        figure_references=[],
        equations=["E=mc^2"],
        full_text="Hi Yo",
        image_files=["output/2401.08027/extracted/a.png"],
    )
    fields.update(overrides)
    return StructuredDocument(**fields)


class FakeCompletions:
    def __init__(self, content):
        self.content = content
        self.requests = []

    def create(self, **kwargs):
        self.requests.append(kwargs)
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)] if self.content is not None else [])


def _client(content):
    completions = FakeCompletions(content)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def test_format_paper_content():
    text = format_paper_content(_doc())

    assert text.startswith("Title: Scan\n\nAuthors: A, B\n\nAbstract:\nShort.\n")
    assert "# Intro\nHi\n" in text
    assert "## Sub\nYo\n" in text
    assert "Equation 1: E=mc^2" in text
    assert "- Image 1: output/2401.08027/extracted/a.png" in text


def test_format_skips_empty_equation_and_image_blocks():
    text = format_paper_content(_doc(equations=[], image_files=[]))
    assert "Key equations" not in text
    assert "Image files" not in text


def test_post_process_strips_fences_and_rewrites_paths():
    raw = "```latex\n\\includegraphics{output/x/a.png}\n```"
    assert post_process_latex(raw) == "\\includegraphics{../../output/x/a.png}"
    assert post_process_latex("  plain  ") == "plain"


def test_generate_note_sends_system_and_user_messages():
    client, completions = _client("```latex\n\\section{Notes}\n```")
    config = LLMConfig(api_key="k", model="m", temperature=0.2, max_tokens=100)

    note = generate_note(_doc(), client=client, config=config, system_prompt="SYS")

    req = completions.requests[0]
    assert req["model"] == "m"
    assert req["max_tokens"] == 100
    assert req["messages"][0] == {"role": "system", "content": "SYS"}
    assert req["messages"][1]["content"].startswith("Title: Scan")
    assert note.latex_content == "\\section{Notes}"
    assert note.model_used == "m"
    assert note.paper_id == "2401.08027"


def test_generate_note_without_max_tokens_omits_it():
    client, completions = _client("ok")
    generate_note(_doc(), client=client, config=LLMConfig(api_key="k"), system_prompt="SYS")
    assert "max_tokens" not in completions.requests[0]


def test_empty_model_response_raises():
    client, _ = _client(None)
    with pytest.raises(NoteGenerationError):
        generate_note(_doc(), client=client, config=LLMConfig(api_key="k"), system_prompt="SYS")


def test_load_llm_config_from_env(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "secret")
    monkeypatch.setenv("OPENAI_TEMPERATURE", "0.3")
    monkeypatch.setenv("OPENAI_MAX_TOKENS", "not-a-number")
    monkeypatch.delenv("OPENAI_MODEL", raising=False)
    monkeypatch.delenv("OPENAI_BASE_URL", raising=False)

    config = load_llm_config()

    assert config.api_key == "secret"
    assert config.model == DEFAULT_MODEL
    assert config.temperature == 0.3
    assert config.max_tokens is None


def test_missing_api_key_raises(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(NoteGenerationError):
        load_llm_config()


def test_system_prompt_file_or_default(tmp_path, monkeypatch):
    monkeypatch.delenv("PAPERSCAN_PROMPT_FILE", raising=False)
    prompt = tmp_path / "prompts.txt"
    prompt.write_text("Custom prompt\n", encoding="utf-8")

    assert load_system_prompt(prompt) == "Custom prompt"
    assert load_system_prompt(tmp_path / "missing.txt") == DEFAULT_SYSTEM_PROMPT


def test_save_note(tmp_path):
    client, _ = _client("body")
    note = generate_note(_doc(), client=client, config=LLMConfig(api_key="k"), system_prompt="SYS")
    out = tmp_path / "notes" / "2401.08027" / "2401.08027.tex"

    save_note(note, out)

    assert out.read_text(encoding="utf-8") == "body\n"
