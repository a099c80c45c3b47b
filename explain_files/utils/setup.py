"""Interactive prompts: API key, model, files and prompt override.

Every function returns ``None`` when the user cancels (Ctrl-C in a
questionary prompt), leaving the exit decision to the caller.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional, Sequence, Union

import questionary

from explain_files.utils.config import DEFAULT_PROMPT
from explain_files.utils.errors import BudgetExceededError
from explain_files.utils.token_utils import TokenBudget, validate_selection
from explain_files.utils.ui_utils import format_box


DEFAULT_MODEL = "gpt-3.5-turbo"


def ask_api_key(store_path: Path) -> Optional[str]:
    print(
        format_box(
            "OpenAI API key",
            f"Please enter your OpenAI API key.\nIt will be stored in {store_path}",
        )
    )
    api_key = questionary.password("OPENAI_API_KEY:").ask()
    if api_key is None:
        return None
    return api_key.strip()


def ask_model(models: Sequence[str]) -> Optional[str]:
    default = DEFAULT_MODEL if DEFAULT_MODEL in models else None
    return questionary.select(
        "Which model do you want to use?",
        choices=list(models),
        default=default,
    ).ask()


def selection_validator(
    root: Path, budget: TokenBudget
) -> Callable[[list[str]], Union[bool, str]]:
    """Build the checkbox validator enforcing ``budget``.

    Returning a string keeps the checklist open with that message shown.
    """

    def validate(selected: list[str]) -> Union[bool, str]:
        try:
            validate_selection([root / rel for rel in selected], budget)
        except BudgetExceededError as exc:
            return str(exc)
        return True

    return validate


def ask_files(choices: Sequence[str], root: Path, budget: TokenBudget) -> Optional[list[str]]:
    return questionary.checkbox(
        "Which files do you want an explanation for?",
        choices=list(choices),
        validate=selection_validator(root, budget),
    ).ask()


def ask_prompt() -> Optional[str]:
    """Offer to replace the default instruction. Empty answers keep it."""
    customize = questionary.confirm("Do you want to customize the prompt?", default=False).ask()
    if customize is None:
        return None
    if not customize:
        return ""
    answer = questionary.text("Prompt:", default=DEFAULT_PROMPT.strip()).ask()
    if answer is None:
        return None
    return answer.strip()
