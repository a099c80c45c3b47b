"""AI utilities for the OpenAI REST API.

Lists the chat-capable models and streams a chat completion. Streamed
payloads are decoded into one of three chunk variants (delta text, legacy
text, error) before anything else looks at them.
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, Optional, TextIO, Union

import requests

from explain_files.utils.errors import CompletionError
from explain_files.utils.prompt_utils import Message


logger = logging.getLogger(__name__)

DONE_SENTINEL = "[DONE]"
FINISH_STOP = "stop"

_CHAT_PREFIXES = ("gpt-", "chatgpt-", "o1", "o3", "o4")
_NON_CHAT_MARKERS = ("instruct", "realtime", "audio", "transcribe", "tts", "image", "search", "embedding")


@dataclass(frozen=True)
class DeltaChunk:
    text: str
    finish_reason: Optional[str] = None


@dataclass(frozen=True)
class TextChunk:
    """Completion-style chunk carrying ``choices[0].text``."""

    text: str
    finish_reason: Optional[str] = None


@dataclass(frozen=True)
class ErrorChunk:
    message: str


StreamChunk = Union[DeltaChunk, TextChunk, ErrorChunk]


@dataclass
class StreamResult:
    chunks: int = 0
    finish_reason: Optional[str] = None
    text_parts: list[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(self.text_parts)

    @property
    def stopped_early(self) -> bool:
        return self.finish_reason is not None and self.finish_reason != FINISH_STOP


def _headers(api_key: str) -> dict:
    return {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {api_key}",
    }


def is_chat_model(model_id: str) -> bool:
    lower = model_id.lower()
    if not lower.startswith(_CHAT_PREFIXES):
        return False
    return not any(marker in lower for marker in _NON_CHAT_MARKERS)


def list_chat_models(api_key: str, base_url: str) -> list[str]:
    """Return the sorted ids of chat-capable models visible to ``api_key``."""
    response = requests.get(f"{base_url}/models", headers=_headers(api_key), timeout=60)
    data = response.json()
    if isinstance(data, dict) and data.get("error"):
        raise CompletionError(_error_message(data["error"]))
    response.raise_for_status()
    ids = [m.get("id", "") for m in data.get("data", []) if isinstance(m, dict)]
    return sorted(i for i in ids if i and is_chat_model(i))


def _error_message(error: object) -> str:
    if isinstance(error, dict):
        return str(error.get("message") or error)
    return str(error)


def parse_chunk(payload: dict) -> StreamChunk:
    """Resolve one decoded payload into its chunk variant.

    A delta field wins over a legacy ``text`` field when both are present.
    """
    if payload.get("error"):
        return ErrorChunk(_error_message(payload["error"]))

    choices = payload.get("choices") or [{}]
    first = choices[0] if isinstance(choices[0], dict) else {}
    finish = first.get("finish_reason")

    delta = first.get("delta")
    if isinstance(delta, dict):
        return DeltaChunk(delta.get("content") or "", finish)
    if "text" in first:
        return TextChunk(first.get("text") or "", finish)
    return DeltaChunk("", finish)


def iter_chunks(lines: Iterable[str]) -> Iterator[StreamChunk]:
    """Decode server-sent event lines into chunks, in arrival order.

    Lines without the ``data:`` prefix are collected and, if the stream
    carried no events at all, decoded as one plain JSON body. That is how
    the API reports request errors when it refuses to stream.
    """
    saw_event = False
    plain: list[str] = []
    for line in lines:
        if not line:
            continue
        if not line.startswith("data:"):
            plain.append(line)
            continue
        saw_event = True
        data = line[len("data:"):].strip()
        if data == DONE_SENTINEL:
            return
        yield parse_chunk(json.loads(data))

    if not saw_event and plain:
        yield parse_chunk(json.loads("\n".join(plain)))


def consume_stream(
    chunks: Iterable[StreamChunk],
    out: Optional[TextIO] = None,
    on_start: Optional[Callable[[], None]] = None,
) -> StreamResult:
    """Write chunk text to ``out`` as it arrives.

    ``on_start`` runs once, before the first non-error chunk is written.
    An error chunk raises ``CompletionError`` and nothing more is written.
    Stops after the first chunk with a finish reason.
    """
    out = out or sys.stdout
    result = StreamResult()
    for chunk in chunks:
        if isinstance(chunk, ErrorChunk):
            raise CompletionError(chunk.message)
        if result.chunks == 0 and on_start is not None:
            on_start()
        result.chunks += 1
        if chunk.text:
            result.text_parts.append(chunk.text)
            out.write(chunk.text)
            out.flush()
        if chunk.finish_reason is not None:
            result.finish_reason = chunk.finish_reason
            logger.debug("Stream finished: %s", chunk.finish_reason)
            break
    if result.chunks:
        out.write("\n")
        out.flush()
    return result


def build_payload(
    messages: Iterable[Message], model: str, temperature: float, max_tokens: int
) -> dict:
    return {
        "messages": [m.to_dict() for m in messages],
        "model": model,
        "temperature": temperature,
        "max_tokens": max_tokens,
        "stream": True,
    }


def stream_completion(
    messages: Iterable[Message],
    *,
    api_key: str,
    model: str,
    temperature: float,
    max_tokens: int,
    base_url: str,
    out: Optional[TextIO] = None,
    on_start: Optional[Callable[[], None]] = None,
) -> StreamResult:
    """POST one streamed chat completion and echo it to ``out``."""
    url = f"{base_url}/chat/completions"
    logger.debug("POST %s model=%s", url, model)
    response = requests.post(
        url,
        headers=_headers(api_key),
        json=build_payload(messages, model, temperature, max_tokens),
        stream=True,
        timeout=60,
    )
    with response:
        lines = (raw.decode("utf-8") for raw in response.iter_lines())
        return consume_stream(iter_chunks(lines), out=out, on_start=on_start)
