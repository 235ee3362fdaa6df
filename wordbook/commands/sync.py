"""Slash command for word-book synchronization."""

from __future__ import annotations

from typing import List

from rich.console import Console
from rich.table import Table

from ..services import sync_client_for, word_store_for
from ..slash_commands import (
    SlashCommand,
    SlashCommandContext,
    last_flag,
    parse_flags,
    render_rich,
)
from ..store import WordStoreError
from ..sync import ConfigError, StoreCredentials, StoreError, SyncClient, merge_entries

CLIENT_KEY = "sync_client"

USAGE = """\
  /sync                           Show sync status
  /sync status                    Show sync status
  /sync run                       Pull, merge and push the word book
  /sync diff                      Preview changes without pushing
  /sync connect TOKEN [--gist ID] [--public]
                                  Validate and store a GitHub token
  /sync connect --path FILE       Use a plain file as the remote (provider: file)
  /sync disconnect                Forget stored credentials
  /sync help                      Show this help

Configuration (in <home>/config/*.yml):
  sync:
    enabled: true
    provider: gist                 # gist or file
    private: true
    timeout: 30"""


def _handler(context: SlashCommandContext, args: List[str]) -> str:
    """Manage word-book synchronization."""

    if not args:
        return _show_status(context)

    subcommand = args[0].lower()

    if subcommand == "status":
        return _show_status(context)
    elif subcommand in ("run", "sync"):
        return _run_sync(context)
    elif subcommand == "diff":
        return _show_diff(context)
    elif subcommand == "connect":
        return _connect(context, args[1:])
    elif subcommand == "disconnect":
        return _disconnect(context)
    elif subcommand == "help":
        return _show_help()
    else:
        return f"[sync] Unknown subcommand '{subcommand}'. Use /sync help for usage."


def _client(context: SlashCommandContext) -> SyncClient:
    """One client per session so its in-progress guard covers every /sync call."""
    client = context.metadata.get(CLIENT_KEY)
    if client is None:
        client = sync_client_for(context.config)
        context.metadata[CLIENT_KEY] = client
    return client


def _show_status(context: SlashCommandContext) -> str:
    try:
        status = _client(context).get_status()
    except ConfigError as e:
        return f"[sync] Configuration error: {e}"

    def _render(console: Console) -> None:
        table = Table(title="Word Book Sync Status", show_header=False)
        table.add_column("Property", style="bold")
        table.add_column("Value")

        table.add_row("Enabled", str(status["enabled"]))
        table.add_row("Provider", status["provider"])
        table.add_row("Configured", str(status["configured"]))
        table.add_row("Remote", status["remote_id"])
        table.add_row("Running", str(status["running"]))
        console.print(table)

    return render_rich(_render)


def _run_sync(context: SlashCommandContext) -> str:
    if not context.config.section("sync").get("enabled", False):
        return "[sync] Sync is disabled. Enable it with /config sync.enabled true."

    try:
        client = _client(context)
        store = word_store_for(context.config)
        local_entries = store.fetch_all()
    except (ConfigError, WordStoreError) as e:
        return f"[sync] {e}"

    result = client.sync(local_entries)
    if not result.success:
        return f"[sync] Sync failed: {result.error}"

    try:
        store.replace_all(result.merged)
    except WordStoreError as e:
        return f"[sync] Synced remotely but failed to update the local word book: {e}"

    lines = [f"[sync] Sync completed ({len(result.merged)} entries, remote {result.remote_id})"]
    if result.added:
        lines.append(f"  Added from remote: {result.added}")
    if result.pushed:
        lines.append(f"  Pushed to remote: {result.pushed}")
    if result.updated:
        lines.append(f"  Conflicts resolved: {result.updated}")
        for conflict in result.conflicts[:10]:
            lines.append(f"    ! {conflict.text} -> {conflict.resolution}")
    return "\n".join(lines)


def _show_diff(context: SlashCommandContext) -> str:
    """Preview what a sync would change, without pushing."""
    try:
        client = _client(context)
        if not client.store.is_configured():
            return "[sync] Sync is not configured. Use /sync connect first."
        local_entries = word_store_for(context.config).fetch_all()
        remote = client.store.pull()
    except (ConfigError, StoreError, WordStoreError) as e:
        return f"[sync] Error computing diff: {e}"

    remote_entries = remote.entries if remote else []
    merge = merge_entries(local_entries, remote_entries, client.resolver)

    if not merge.has_changes:
        return "[sync] Local and remote word books are in sync."

    by_id = {entry.id: entry for entry in merge.merged}

    def _render(console: Console) -> None:
        console.print(f"[bold]Pending changes:[/bold] {merge.summary()}\n")

        if merge.local_only:
            console.print("[green]To Push:[/green]")
            for entry_id in merge.local_only[:10]:
                console.print(f"  + {by_id[entry_id].text}")
            if len(merge.local_only) > 10:
                console.print(f"  ... and {len(merge.local_only) - 10} more")
            console.print()

        if merge.remote_only:
            console.print("[blue]To Pull:[/blue]")
            for entry_id in merge.remote_only[:10]:
                console.print(f"  - {by_id[entry_id].text}")
            if len(merge.remote_only) > 10:
                console.print(f"  ... and {len(merge.remote_only) - 10} more")
            console.print()

        if merge.conflicts:
            console.print("[yellow]Conflicts:[/yellow]")
            for conflict in merge.conflicts[:10]:
                console.print(f"  ! {conflict.text} ({conflict.resolution} wins)")
            if len(merge.conflicts) > 10:
                console.print(f"  ... and {len(merge.conflicts) - 10} more")

    return render_rich(_render)


def _connect(context: SlashCommandContext, args: List[str]) -> str:
    flags, positional = parse_flags(args, ("--gist", "--path"))
    sync_config = context.config.section("sync")

    try:
        client = _client(context)
    except ConfigError as e:
        return f"[sync] Configuration error: {e}"

    credentials = StoreCredentials(
        token=positional[0] if positional else "",
        resource_id=last_flag(flags, "--gist"),
        private=not ("--public" in flags) and bool(sync_config.get("private", True)),
        path=last_flag(flags, "--path"),
    )

    try:
        client.store.configure(credentials)
    except ConfigError as e:
        return f"[sync] Could not connect: {e}"

    return f"[sync] Connected to {client.store.provider} store."


def _disconnect(context: SlashCommandContext) -> str:
    try:
        client = _client(context)
        client.store.disconnect()
    except (ConfigError, StoreError, OSError) as e:
        return f"[sync] Could not disconnect: {e}"
    return "[sync] Disconnected. The remote copy was left untouched."


def _show_help() -> str:
    return "[sync] Usage:\n" + USAGE


COMMAND = SlashCommand(
    name="sync",
    description="Sync the word book with a gist or a shared file.",
    handler=_handler,
    usage=USAGE,
    requires_ready=True,
)
