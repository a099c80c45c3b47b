"""Explain command using Typer."""

from __future__ import annotations

import logging
from importlib.metadata import PackageNotFoundError, version as package_version
from typing import List, NoReturn, Optional

import typer

from explain_files.utils import setup
from explain_files.utils.ai_utils import list_chat_models, stream_completion
from explain_files.utils.config import (
    Settings,
    config_path,
    load_api_key,
    reset_api_key,
    save_api_key,
)
from explain_files.utils.errors import BudgetExceededError, CompletionError
from explain_files.utils.file_utils import FilterCriteria, list_candidates, resolve_selection
from explain_files.utils.prompt_utils import build_messages, load_file_contents
from explain_files.utils.token_utils import budget_for_model, validate_selection
from explain_files.utils.ui_utils import echo_options, error, heading, info, success


logger = logging.getLogger(__name__)

EXAMPLES = """
Examples:

  # Explain all files in the current directory
  $ explain

  # Only files with the .js and .ts extension
  $ explain --ext js --ext ts

  # Pick the model, temperature and prompt up front
  $ explain --ext py --model gpt-4 --temperature 0.5 --prompt "Explain the following code:"

  # Skip the file picker and allow a longer answer
  $ explain src/main.py src/util.py --max-tokens 800
"""

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

app = typer.Typer(add_completion=False, context_settings=CONTEXT_SETTINGS)


def _version() -> str:
    try:
        return package_version("explain-files")
    except PackageNotFoundError:
        return "0.0.0"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"v{_version()}")
        raise typer.Exit()


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _fail(message: str) -> NoReturn:
    error(message)
    raise typer.Exit(code=1)


def _report_api_error(exc: CompletionError) -> NoReturn:
    typer.echo()
    heading("OpenAI error:", typer.colors.RED)
    typer.echo()
    typer.echo(exc.message)
    raise typer.Exit(code=1)


def _reset_key() -> None:
    path = config_path()
    if reset_api_key(path):
        success(f"Successfully deleted {path}")
    else:
        error(f"{path} does not exist")
    typer.echo()


def _ensure_api_key() -> str:
    api_key = load_api_key()
    if api_key:
        return api_key
    path = config_path()
    api_key = setup.ask_api_key(path)
    if api_key is None:
        _fail("Cancelled.")
    if not api_key:
        _fail("No API key provided.")
    save_api_key(api_key, path)
    info(f"API key stored in {path}")
    return api_key


def _choose_model(settings: Settings, api_key: str) -> Settings:
    if settings.model:
        return settings
    try:
        models = list_chat_models(api_key, settings.base_url)
    except CompletionError as exc:
        _report_api_error(exc)
    if not models:
        _fail("No chat models available for this API key.")
    model = setup.ask_model(models)
    if model is None:
        _fail("Cancelled.")
    return settings.with_answers(model=model)


def _select_files(settings: Settings, choices: List[str]) -> List[str]:
    budget = budget_for_model(settings.model)
    if settings.files:
        missing = [f for f in settings.files if not (settings.cwd / f).is_file()]
        if missing:
            _fail(f"File not found: {', '.join(missing)}")
        try:
            validate_selection([settings.cwd / f for f in settings.files], budget)
        except BudgetExceededError as exc:
            _fail(str(exc))
        return list(settings.files)

    selected = setup.ask_files(choices, settings.cwd, budget)
    if selected is None:
        _fail("Cancelled.")
    return selected


def _print_answer_heading() -> None:
    typer.echo()
    heading("OpenAI says:", typer.colors.BLUE)
    typer.echo()


@app.command(epilog=EXAMPLES, context_settings=CONTEXT_SETTINGS)
def run(
    files: Optional[List[str]] = typer.Argument(
        None, help="Files to explain, relative to --cwd. Skips the interactive picker."
    ),
    ext: Optional[List[str]] = typer.Option(
        None, "--ext", "-e", help="Only consider files with the given extension"
    ),
    filter_: Optional[List[str]] = typer.Option(
        None, "--filter", "-f", help="Only consider files that include the given string"
    ),
    cwd: Optional[str] = typer.Option(None, "--cwd", help="The directory to run in (defaults to ./)"),
    model: Optional[str] = typer.Option(
        None, "--model", "-m", help="The model to use (picked from a list when omitted)"
    ),
    temperature: Optional[float] = typer.Option(
        None, "--temperature", "-t", help="The temperature to use [default: 0.8]"
    ),
    prompt: Optional[str] = typer.Option(None, "--prompt", "-p", help="The prompt to use"),
    max_tokens: Optional[int] = typer.Option(
        None, "--max-tokens", "-mt", min=1, help="The maximum number of tokens to generate [default: 400]"
    ),
    reset_key: bool = typer.Option(
        False, "--reset-key", "-r", help="Resets the OpenAI API key by deleting ~/.explain-config"
    ),
    debug: bool = typer.Option(False, "--debug", help="Log diagnostics to stderr"),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=_version_callback,
        is_eager=True,
        help="Shows the version number",
    ),
) -> None:
    """Ask OpenAI to explain the files you pick."""
    _configure_logging(debug)

    if reset_key:
        _reset_key()

    settings = Settings.from_options(
        cwd=cwd,
        model=model,
        temperature=temperature,
        prompt=prompt,
        max_tokens=max_tokens,
        extensions=ext,
        substrings=filter_,
        files=files,
    )

    criteria = FilterCriteria.build(settings.extensions, settings.substrings)
    candidates = [] if settings.files else list_candidates(settings.cwd, criteria)
    if not settings.files and not candidates:
        _fail("No matching files found")

    api_key = _ensure_api_key()
    settings = _choose_model(settings, api_key)

    echo_options(settings.as_display_dict())

    selected = _select_files(settings, [c.relative_path for c in candidates])
    if not selected:
        _fail("No files selected.")
    logger.debug("Selected %d file(s): %s", len(selected), selected)

    if prompt is None:
        answer = setup.ask_prompt()
        if answer is None:
            _fail("Cancelled.")
        settings = settings.with_answers(prompt=answer)

    contents = load_file_contents(resolve_selection(settings.cwd, selected))
    messages = build_messages(settings.prompt, contents)

    typer.echo()
    heading("Talking to OpenAI...")

    try:
        result = stream_completion(
            messages,
            api_key=api_key,
            model=settings.model,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
            base_url=settings.base_url,
            on_start=_print_answer_heading,
        )
    except CompletionError as exc:
        _report_api_error(exc)

    if result.chunks == 0:
        _fail("OpenAI returned an empty response.")

    if result.stopped_early:
        typer.echo()
        error(f"OpenAI stopped early, reason: {result.finish_reason}")
