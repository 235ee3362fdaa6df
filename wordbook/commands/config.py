"""Slash command for viewing and editing configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.tree import Tree

from ..configuration import CONFIG_SCHEMA, ConfigurationBundle, load_runtime_configuration
from ..slash_commands import SlashCommand, SlashCommandContext, render_rich

YAML_FLAGS = {"--yaml", "-y", "yaml"}
CLI_OVERRIDE_FILENAME = "99-cli-overrides.yml"
SENSITIVE_KEYS = {"token"}
SYNC_CLIENT_KEY = "sync_client"


class ConfigMutationError(RuntimeError):
    """Signals a failure while editing home overrides."""


def _handler(context: SlashCommandContext, args: List[str]) -> str:
    if not args or all(arg.lower() in YAML_FLAGS for arg in args):
        return _render_config_view(context.config, show_yaml=bool(args))

    action = args[0].lower()
    if action == "validate":
        return _render_diagnostics(context.config)

    try:
        if action == "unset" and len(args) == 2:
            return _unset_value(context, _split_key(args[1]))
        key = _split_key(args[0])
        if len(args) == 1:
            return _show_value(context.config, key)
        return _set_value(context, key, " ".join(args[1:]).strip())
    except ConfigMutationError as exc:
        return f"[config] {exc}"


def _split_key(expr: str) -> List[str]:
    parts = [segment.strip() for segment in expr.split(".") if segment.strip()]
    if not parts:
        raise ConfigMutationError("key path cannot be empty.")
    return parts


def _format_value(value: Any) -> str:
    if isinstance(value, str):
        return f'"{value}"'
    return repr(value)


def _dig(data: Any, parts: List[str]) -> Any:
    for part in parts:
        if not isinstance(data, dict) or part not in data:
            return None
        data = data[part]
    return data


def _mask(data: Any) -> Any:
    if isinstance(data, dict):
        return {k: ("****" if k in SENSITIVE_KEYS else _mask(v)) for k, v in data.items()}
    return data


def _build_config_tree(data: Dict[str, Any]) -> Tree:
    root = Tree("config", guide_style="cyan")

    def _add(node: Tree, value: Any, label: str) -> None:
        if isinstance(value, dict):
            branch = node.add(f"[bold]{label}[/]")
            for key in sorted(value):
                _add(branch, value[key], str(key))
        else:
            node.add(f"[bold]{label}[/]: {_format_value(value)}")

    masked = _mask(data)
    for key in sorted(masked):
        _add(root, masked[key], str(key))
    return root


def _render_config_view(bundle: ConfigurationBundle, show_yaml: bool) -> str:
    files = Table(show_header=True, header_style="bold magenta", box=box.SIMPLE, pad_edge=False)
    files.add_column("Order", justify="right", style="magenta", no_wrap=True)
    files.add_column("File", overflow="fold", ratio=1)
    for idx, path in enumerate(bundle.files_loaded, start=1):
        files.add_row(str(idx), str(path))
    if not bundle.files_loaded:
        files.add_row("-", "[dim]No config files loaded[/dim]")

    def _render(console: Console) -> None:
        console.print(Panel(files, title="Loaded Config Files", border_style="magenta"))
        console.print(Panel(_build_config_tree(bundle.merged or {}), title="Merged Configuration", border_style="cyan"))
        if show_yaml:
            yaml_text = yaml.safe_dump(_mask(bundle.merged or {}), sort_keys=True).strip()
            console.print(Panel(Syntax(yaml_text or "# empty", "yaml"), border_style="cyan"))
        else:
            console.print("[dim]Tip: use '/config --yaml' to view the merged YAML.[/dim]")

    return render_rich(_render)


def _render_diagnostics(bundle: ConfigurationBundle) -> str:
    if not bundle.diagnostics:
        return f"[config] No diagnostics (status: {bundle.status})."

    def _render(console: Console) -> None:
        table = Table(title=f"Diagnostics (status: {bundle.status})", show_header=True)
        table.add_column("Level", no_wrap=True)
        table.add_column("Message", overflow="fold")
        for diag in bundle.diagnostics:
            table.add_row(diag.level.upper(), diag.message)
        console.print(table)

    return render_rich(_render)


def _show_value(config: ConfigurationBundle, key: List[str]) -> str:
    dotted = ".".join(key)
    value = _dig(config.merged, key)
    if value is None:
        return f"[config] {dotted} is not set."
    if key[-1] in SENSITIVE_KEYS:
        return f"[config] {dotted} = ****"
    return f"[config] {dotted} = {_format_value(value)}"


def _check_against_schema(key: List[str], value: Any) -> Optional[str]:
    """Reason the value would be rejected on reload, or None."""
    dotted = ".".join(key)
    if len(key) != 2 or key[1] not in CONFIG_SCHEMA.get(key[0], {}):
        return f"unknown setting '{dotted}'."
    problem = CONFIG_SCHEMA[key[0]][key[1]].problem(value)
    return f"'{dotted}' {problem}." if problem else None


def _set_value(context: SlashCommandContext, key: List[str], value_raw: str) -> str:
    try:
        value = yaml.safe_load(value_raw)
    except yaml.YAMLError as exc:
        raise ConfigMutationError(f"could not parse value: {exc}") from exc
    if isinstance(value, (list, dict)):
        raise ConfigMutationError("only scalar values can be set from the command line.")
    rejection = _check_against_schema(key, value)
    if rejection:
        raise ConfigMutationError(rejection)

    def _assign(data: Dict[str, Any]) -> None:
        cursor = data
        for part in key[:-1]:
            if not isinstance(cursor.get(part), dict):
                cursor[part] = {}
            cursor = cursor[part]
        cursor[key[-1]] = value

    path = _edit_overrides(context, _assign)
    new_value = _dig(context.config.merged, key)
    return f"[config] {'.'.join(key)} updated to {_format_value(new_value)} (stored in {path.name})"


def _unset_value(context: SlashCommandContext, key: List[str]) -> str:
    removed: List[str] = []

    def _remove(data: Dict[str, Any]) -> None:
        parent = _dig(data, key[:-1]) if len(key) > 1 else data
        if isinstance(parent, dict) and key[-1] in parent:
            del parent[key[-1]]
            removed.append(key[-1])

    path = _edit_overrides(context, _remove)
    dotted = ".".join(key)
    if not removed:
        return f"[config] {dotted} has no override in {path.name}."
    return f"[config] {dotted} reset to {_format_value(_dig(context.config.merged, key))}."


def _edit_overrides(context: SlashCommandContext, mutate: Callable[[Dict[str, Any]], None]) -> Path:
    """Apply ``mutate`` to the CLI override file, then reload the bundle."""
    path = context.config.home_dir / "config" / CLI_OVERRIDE_FILENAME
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) if path.exists() else {}
        data = data or {}
        if not isinstance(data, dict):
            raise ConfigMutationError(f"override file '{path}' must contain a mapping.")
        mutate(data)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(data, sort_keys=True), encoding="utf-8")
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigMutationError(f"failed to update {path}: {exc}") from exc

    bundle = load_runtime_configuration(context.config.home_dir)
    bundle.log_path = context.config.log_path
    context.router.config = bundle
    context.config = bundle
    # Settings changed; rebuild the sync client on next use
    context.metadata.pop(SYNC_CLIENT_KEY, None)
    return path


COMMAND = SlashCommand(
    name="config",
    description="Show, validate or set configuration.",
    handler=_handler,
    usage=(
        "/config [--yaml]\n"
        "/config validate\n"
        "/config KEY [VALUE]     e.g. /config sync.enabled true\n"
        "/config unset KEY"
    ),
)
