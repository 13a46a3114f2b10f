"""Note generation: LaTeX study notes from a StructuredDocument via an OpenAI-compatible API."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Final

from paperscan.errors import NoteGenerationError
from paperscan.models import GeneratedNote, StructuredDocument


DEFAULT_BASE_URL: Final[str] = "https://generativelanguage.googleapis.com/v1beta/openai"
DEFAULT_MODEL: Final[str] = "gemini-1.5-flash"
DEFAULT_TEMPERATURE: Final[float] = 0.7
DEFAULT_PROMPT_FILE: Final[str] = "prompts.txt"

DEFAULT_SYSTEM_PROMPT: Final[str] = (
    "You are writing study notes on a research paper for a reader who will compile them with LaTeX.\n"
    "Produce a complete, compilable LaTeX document (article class) covering:\n"
    "- the problem and motivation\n"
    "- the method, including the key equations in proper math environments\n"
    "- the main results and how they were evaluated\n"
    "- limitations and open questions\n"
    "Reference figures by the image paths you are given when they help.\n"
    "Return only the LaTeX source."
)


@dataclass(frozen=True)
class LLMConfig:
    api_key: str
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int | None = None


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ[name])
    except (KeyError, ValueError):
        return default


def _env_int(name: str) -> int | None:
    try:
        return int(os.environ[name])
    except (KeyError, ValueError):
        return None


def load_llm_config() -> LLMConfig:
    """
    Read API settings from the environment (.env is loaded by the CLI).

    Raises: NoteGenerationError if OPENAI_API_KEY is not set.
    """
    api_key = os.environ.get("OPENAI_API_KEY")
    if not api_key:
        raise NoteGenerationError(
            "OPENAI_API_KEY environment variable is required. "
            "Set it in .env or export OPENAI_API_KEY=..."
        )
    return LLMConfig(
        api_key=api_key,
        base_url=os.environ.get("OPENAI_BASE_URL") or DEFAULT_BASE_URL,
        model=os.environ.get("OPENAI_MODEL") or DEFAULT_MODEL,
        temperature=_env_float("OPENAI_TEMPERATURE", DEFAULT_TEMPERATURE),
        max_tokens=_env_int("OPENAI_MAX_TOKENS"),
    )


def load_system_prompt(path: Path | str | None = None) -> str:
    """Load the system prompt from prompts.txt if it exists, else the built-in one."""
    prompt_path = Path(path or os.environ.get("PAPERSCAN_PROMPT_FILE") or DEFAULT_PROMPT_FILE)
    if prompt_path.exists():
        prompt = prompt_path.read_text(encoding="utf-8").strip()
        if prompt:
            return prompt
    return DEFAULT_SYSTEM_PROMPT


def format_paper_content(document: StructuredDocument) -> str:
    """Render the structured document as the user message for the model."""
    lines: list[str] = []
    lines.append(f"Title: {document.title}")
    lines.append("")
    lines.append(f"Authors: {', '.join(document.authors)}")
    lines.append("")
    lines.append("Abstract:")
    lines.append(document.abstract_text)
    lines.append("")

    lines.append("Sections:")
    for section in document.sections:
        lines.append(f"{'#' * section.level} {section.title}")
        lines.append(section.content)
        lines.append("")

    if document.equations:
        lines.append("Key equations:")
        for i, eq in enumerate(document.equations, start=1):
            lines.append(f"Equation {i}: {eq}")
        lines.append("")

    if document.image_files:
        lines.append("Image files:")
        for i, img in enumerate(document.image_files, start=1):
            lines.append(f"- Image {i}: {img}")
        lines.append("")

    return "\n".join(lines)


def post_process_latex(content: str) -> str:
    """Strip markdown code fences and point image paths at the output tree."""
    lines = content.splitlines()
    if lines:
        start = 1 if lines[0].strip().startswith("```") else 0
        end = len(lines)
        if end > start and lines[-1].strip() == "```":
            end -= 1
        content = "\n".join(lines[start:end])

    # Notes are saved two levels below the working directory
    content = content.replace("{output/", "{../../output/")
    return content.strip()


def _make_client(config: LLMConfig) -> Any:
    try:
        from openai import OpenAI  # type: ignore
    except ImportError:
        raise RuntimeError(
            "openai package not installed. Run: pip install openai"
        )
    return OpenAI(api_key=config.api_key, base_url=config.base_url)


def generate_note(
    document: StructuredDocument,
    client: Any = None,
    config: LLMConfig | None = None,
    system_prompt: str | None = None,
) -> GeneratedNote:
    """
    Generate LaTeX notes for a paper with one chat completion.

    Returns: GeneratedNote with post-processed LaTeX.
    Raises: NoteGenerationError if no API key is configured or the model returns nothing.
    """
    config = config or load_llm_config()
    client = client or _make_client(config)
    prompt = system_prompt or load_system_prompt()

    request: dict[str, Any] = {
        "model": config.model,
        "messages": [
            {"role": "system", "content": prompt},
            {"role": "user", "content": format_paper_content(document)},
        ],
        "temperature": config.temperature,
    }
    if config.max_tokens is not None:
        request["max_tokens"] = config.max_tokens

    resp = client.chat.completions.create(**request)
    if not resp.choices or not resp.choices[0].message.content:
        raise NoteGenerationError(f"No response from model {config.model} for {document.paper_id}")

    return GeneratedNote(
        paper_id=document.paper_id,
        title=document.title,
        latex_content=post_process_latex(resp.choices[0].message.content),
        generated_at=datetime.now(timezone.utc).isoformat(),
        model_used=config.model,
    )


def save_note(note: GeneratedNote, output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(note.latex_content + "\n", encoding="utf-8")
