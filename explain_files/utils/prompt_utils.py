"""Build the chat messages sent to the model."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Iterable, Literal

from explain_files.utils.file_utils import FileCandidate, read_text


SYSTEM_PROMPT = (
    "You are an experienced software engineer with computer science background. "
    "You are great at explaining code to others."
)


@dataclass(frozen=True)
class Message:
    role: Literal["system", "user"]
    content: str

    def to_dict(self) -> dict:
        return asdict(self)


def file_message(relative_path: str, content: str) -> Message:
    return Message("user", f"Filename: {relative_path}\n\n```\n{content}\n```\n".strip())


def build_messages(prompt: str, files: Iterable[tuple[str, str]]) -> list[Message]:
    """Return the system message, the instruction, then one message per file.

    ``files`` holds ``(relative_path, content)`` pairs and is used in the
    given order, duplicates included.
    """
    messages = [Message("system", SYSTEM_PROMPT), Message("user", prompt.strip())]
    messages.extend(file_message(rel, content) for rel, content in files)
    return messages


def load_file_contents(candidates: Iterable[FileCandidate]) -> list[tuple[str, str]]:
    return [(c.relative_path, read_text(c.absolute_path)) for c in candidates]
