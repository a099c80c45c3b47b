"""Token estimation and the per-model selection budget.

Counts come from tiktoken. They approximate what the remote model will
charge and are only meant as a pre-flight check before sending files.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable

import tiktoken

from explain_files.utils.errors import BudgetExceededError
from explain_files.utils.file_utils import read_text


logger = logging.getLogger(__name__)

FALLBACK_ENCODING = "cl100k_base"
DEFAULT_MAX_TOKENS = 4000

_CONTEXT_HINT = re.compile(r"(\d+)k")


@dataclass(frozen=True)
class TokenBudget:
    model_id: str
    max_tokens: int


@lru_cache(maxsize=None)
def encoding_for(model_id: str) -> Any:
    """Return the tiktoken encoding for ``model_id``.

    Unknown models get the generic ``cl100k_base`` encoding.
    """
    try:
        return tiktoken.encoding_for_model(model_id)
    except KeyError:
        logger.debug("No tokenizer registered for %r, using %s", model_id, FALLBACK_ENCODING)
        return tiktoken.get_encoding(FALLBACK_ENCODING)


def count_tokens(model_id: str, text: str) -> int:
    if not text:
        return 0
    return len(encoding_for(model_id).encode(text, disallowed_special=()))


def budget_for_model(model_id: str) -> TokenBudget:
    """Infer the context size from a ``<digits>k`` hint in the model id.

    ``gpt-4-32k`` gives 32000. Ids without a hint get 4000.
    """
    # TODO: prefer the provider's model capability data once it exposes context sizes
    match = _CONTEXT_HINT.search(model_id or "")
    if match:
        return TokenBudget(model_id, int(match.group(1)) * 1000)
    return TokenBudget(model_id, DEFAULT_MAX_TOKENS)


def sum_tokens(model_id: str, paths: Iterable[str | Path]) -> int:
    total = 0
    for path in paths:
        total += count_tokens(model_id, read_text(path))
    return total


def validate_selection(paths: Iterable[str | Path], budget: TokenBudget) -> int:
    """Check the combined size of ``paths`` against ``budget``.

    Returns the token sum, or raises ``BudgetExceededError``. A sum equal
    to the limit passes.
    """
    total = sum_tokens(budget.model_id, paths)
    logger.debug("Selection uses %d of %d tokens", total, budget.max_tokens)
    if total > budget.max_tokens:
        raise BudgetExceededError(total, budget.max_tokens)
    return total
