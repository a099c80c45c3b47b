"""Config helpers.

Holds the effective run settings and the credential store at
``~/.explain-config`` (a dotenv-style file with ``OPENAI_API_KEY=...``).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values, set_key


logger = logging.getLogger(__name__)

API_KEY_VAR = "OPENAI_API_KEY"
DEFAULT_BASE_URL = "https://api.openai.com/v1"

DEFAULT_TEMPERATURE = 0.8
DEFAULT_MAX_TOKENS = 400
DEFAULT_PROMPT = """
Explain the following code. Focus on a high level overview. Use bullet points.
"""


def get_env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(key, default)


def config_path() -> Path:
    """Location of the credential file (``EXPLAIN_CONFIG`` overrides it)."""
    override = get_env("EXPLAIN_CONFIG")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".explain-config"


@dataclass
class Settings:
    """Effective options for one run.

    Every field is defaulted up front. Interactive answers only fill the
    fields an explicit flag left unset.
    """

    cwd: Path = field(default_factory=Path.cwd)
    model: Optional[str] = None
    temperature: float = DEFAULT_TEMPERATURE
    prompt: str = DEFAULT_PROMPT.strip()
    max_tokens: int = DEFAULT_MAX_TOKENS
    extensions: tuple[str, ...] = ()
    substrings: tuple[str, ...] = ()
    files: tuple[str, ...] = ()
    base_url: str = DEFAULT_BASE_URL

    @classmethod
    def from_options(
        cls,
        cwd: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        prompt: Optional[str] = None,
        max_tokens: Optional[int] = None,
        extensions: Optional[list[str]] = None,
        substrings: Optional[list[str]] = None,
        files: Optional[list[str]] = None,
    ) -> "Settings":
        return cls(
            cwd=Path(cwd).resolve() if cwd else Path.cwd(),
            model=model or None,
            temperature=DEFAULT_TEMPERATURE if temperature is None else temperature,
            prompt=(prompt or DEFAULT_PROMPT).strip(),
            max_tokens=DEFAULT_MAX_TOKENS if max_tokens is None else max_tokens,
            extensions=tuple(extensions or ()),
            substrings=tuple(substrings or ()),
            files=tuple(files or ()),
            base_url=(get_env("OPENAI_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
        )

    def with_answers(self, model: Optional[str] = None, prompt: Optional[str] = None) -> "Settings":
        """Merge interactive answers; explicit values already set win."""
        merged = replace(self)
        if not merged.model and model:
            merged.model = model
        if prompt and prompt.strip():
            merged.prompt = prompt.strip()
        return merged

    def as_display_dict(self) -> dict:
        return {
            "ext": list(self.extensions) or None,
            "filter": list(self.substrings) or None,
            "cwd": str(self.cwd),
            "model": self.model,
            "temperature": self.temperature,
            "prompt": self.prompt,
            "maxTokens": self.max_tokens,
        }


def load_api_key(path: Optional[Path] = None) -> Optional[str]:
    """Read the stored key, falling back to the environment."""
    p = path or config_path()
    if p.exists():
        key = dotenv_values(p).get(API_KEY_VAR)
        if key:
            logger.debug("Loaded %s from %s", API_KEY_VAR, p)
            return key.strip()
    return get_env(API_KEY_VAR) or None


def save_api_key(api_key: str, path: Optional[Path] = None) -> Path:
    """Create or overwrite the credential file with ``api_key``."""
    p = path or config_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    # Overwrite rather than merge: the file only ever holds the one key
    p.write_text("", encoding="utf-8")
    set_key(str(p), API_KEY_VAR, api_key.strip(), quote_mode="never")
    return p


def reset_api_key(path: Optional[Path] = None) -> bool:
    """Delete the credential file. Returns False if it did not exist."""
    p = path or config_path()
    try:
        p.unlink()
    except FileNotFoundError:
        return False
    return True
