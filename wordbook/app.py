# wordbook/app.py
"""
Interactive slash-command shell for the word book.

Every line is a command (leading ``/`` optional). One configuration bundle
and one router live for the whole session.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
try:
    import readline
except ImportError:  # pragma: no cover
    readline = None
import shlex
import sys
from typing import List, Optional

from rich.console import Console

from .commands import COMMANDS
from .configuration import (
    ConfigurationBundle,
    Diagnostic,
    load_runtime_configuration,
    resolve_home_dir,
)
from .logging_utils import setup_logging
from .slash_commands import CommandRouter

logger = logging.getLogger("wordbook")
TRUE_STRINGS = {"1", "true", "yes", "on"}
FALSE_STRINGS = {"0", "false", "no", "off"}


def _parse_env_flag(value: str, *, default: bool = True) -> bool:
    normalized = value.strip().lower()
    if normalized in TRUE_STRINGS:
        return True
    if normalized in FALSE_STRINGS:
        return False
    return default


def _resolve_ui_verbose(config_bundle: ConfigurationBundle) -> bool:
    env_value = os.environ.get("WORDBOOK_UI_VERBOSE")
    if env_value is not None:
        return _parse_env_flag(env_value)
    return bool(config_bundle.section("ui").get("verbose", True))


def build_router(config: ConfigurationBundle) -> CommandRouter:
    router = CommandRouter(config, metadata={})
    for command in COMMANDS:
        router.register(command)
    return router


LEVEL_STYLES = {"info": "dim", "warning": "yellow", "error": "bold red"}


def emit_configuration_report(config: ConfigurationBundle, console: Console) -> None:
    """Summarize loaded files, then list warnings and errors."""

    notable = [d for d in config.diagnostics if d.level != "info"]
    console.print(
        f"[dim]\\[config] {len(config.files_loaded)} file(s) loaded, status {config.status}.[/dim]"
    )
    for diag in notable:
        style = LEVEL_STYLES[diag.level]
        where = f" ({diag.source})" if diag.source else ""
        console.print(f"  [{style}]{diag.level.upper()}[/{style}] {diag.message}{where}", highlight=False)
    if notable:
        console.print("  [dim]Run /config validate for details.[/dim]")


def configure_autocomplete(router: CommandRouter) -> None:
    """Enable readline tab completion for slash commands."""

    if readline is None:
        return

    commands = list(router.completion_names)

    def completer(text: str, state: int):
        fragment = text[1:] if text.startswith("/") else text
        matches = [f"/{cmd}" for cmd in commands if cmd.startswith(fragment)]
        if state < len(matches):
            return matches[state]
        return None

    readline.set_completer(completer)
    readline.parse_and_bind("tab: complete")
    readline.set_completer_delims(" \t")


def execute_command(command_line: str, router: CommandRouter) -> str:
    """Run one command line through the router."""

    stripped = command_line.strip().lstrip("/")
    if not stripped:
        return ""

    try:
        parts = shlex.split(stripped)
    except ValueError as e:
        return f"[router] Could not parse command: {e}"

    command, args = parts[0], parts[1:]
    logger.info("Executing command: /%s", command)
    return router.handle(command, args)


def bootstrap(home_dir: Optional[Path] = None) -> CommandRouter:
    """Load configuration, set up logging and build the router."""

    resolved_home = home_dir or resolve_home_dir()
    resolved_home.mkdir(parents=True, exist_ok=True)
    config_bundle = load_runtime_configuration(resolved_home)

    logging_cfg = config_bundle.section("logging")
    level_name = str(logging_cfg.get("level") or "WARNING").upper()
    log_path = setup_logging(
        config_bundle.home_dir,
        level_name,
        structured=bool(logging_cfg.get("structured", True)),
    )
    config_bundle.log_path = log_path
    try:
        log_path.relative_to(config_bundle.home_dir)
    except ValueError:
        config_bundle.diagnostics.append(
            Diagnostic(
                level="warning",
                message=f"Home log directory is not writable; logging to '{log_path}'.",
                source=log_path,
            )
        )
    logger.info("Logging initialized at %s", log_path)
    return build_router(config_bundle)


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``wordbook`` / ``python -m wordbook``.

    With arguments, runs that single command and exits.
    """

    if argv is None:
        argv = sys.argv[1:]

    router = bootstrap()

    if argv:
        print(execute_command(" ".join(shlex.quote(a) for a in argv), router))
        return

    console = Console()
    if _resolve_ui_verbose(router.config):
        name = router.config.section("runtime").get("name", "Wordbook")
        console.print(f"[bold cyan]{name}[/bold cyan] [dim]home: {router.config.home_dir}[/dim]")
        emit_configuration_report(router.config, console)
        console.print("[dim]Type /help for commands, 'exit' to quit.[/dim]")
    configure_autocomplete(router)

    while True:
        try:
            line = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\n[Exiting]")
            break

        if line.lower().lstrip("/") in {"quit", "exit"}:
            print("[Goodbye]")
            break
        if not line:
            continue

        print(execute_command(line, router))
