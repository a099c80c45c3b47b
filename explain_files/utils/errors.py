"""Exceptions surfaced to the user by the explain command."""

from __future__ import annotations


class ExplainError(Exception):
    """Base class for errors reported to the user."""


class BudgetExceededError(ExplainError):
    def __init__(self, token_count: int, limit: int) -> None:
        self.token_count = token_count
        self.limit = limit
        super().__init__(
            f"You selected files with a sum of {token_count} tokens. "
            f"The maximum is {limit}. Please select fewer files."
        )


class CompletionError(ExplainError):
    """The API answered with an error payload."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)
