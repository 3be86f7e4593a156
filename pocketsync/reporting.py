"""Text reports of archive and sync state rendered with Rich."""

from __future__ import annotations

from io import StringIO
import shutil
from typing import Callable, Iterable

from rich.console import Console
from rich.table import Table

from .archive.item import ArchiveItem, ItemStatus
from .sync.engine import SyncResult
from .sync.protocol import SyncDelta

MAX_LISTED = 10

_STATUS_STYLES = {
    ItemStatus.SYNCHRONIZED: "green",
    ItemStatus.SYNCHRONIZING: "cyan",
    ItemStatus.IMPORTED: "blue",
    ItemStatus.ERROR: "bold red",
    ItemStatus.DELETED: "dim",
    ItemStatus.NONE: "",
}


def render_rich(render_fn: Callable[[Console], None]) -> str:
    """Render a Rich layout to a string without printing live."""

    terminal_size = shutil.get_terminal_size(fallback=(100, 24))
    # Clamp to a reasonable minimum so Rich does not choke on ultra-small widths.
    width = max(60, terminal_size.columns)

    console = Console(
        record=True,
        force_terminal=False,
        width=width,
        file=StringIO(),
    )
    render_fn(console)
    return console.export_text(clear=False)


def render_archive(items: Iterable[ArchiveItem]) -> str:
    """Render the archive as a table, one row per item."""
    rows = list(items)

    def _render(console: Console) -> None:
        table = Table(title=f"Archive ({len(rows)} items)", show_header=True)
        table.add_column("Path", style="cyan", no_wrap=True)
        table.add_column("Status")
        table.add_column("Fav", justify="center")
        table.add_column("Hash", style="dim", max_width=16)

        for item in sorted(rows, key=lambda i: i.path):
            style = _STATUS_STYLES.get(item.status, "")
            status = f"[{style}]{item.status.value}[/]" if style else item.status.value
            table.add_row(
                item.path,
                status,
                "*" if item.is_favorite else "",
                item.hash[:12] + "...",
            )
        console.print(table)

    return render_rich(_render)


def render_delta(delta: SyncDelta) -> str:
    """Render the pending changes of a delta."""
    if not delta.has_changes:
        return "[sync] No changes."

    def _render(console: Console) -> None:
        console.print(f"Summary: {delta.summary()}\n")
        sections = [
            ("To Import", "blue", "+", delta.to_import),
            ("To Export", "green", ">", delta.to_export),
            ("To Delete", "red", "-", delta.to_delete),
            ("To Delete On Device", "red", "x", delta.to_delete_remote),
        ]
        for title, style, marker, changes in sections:
            if not changes:
                continue
            console.print(f"[{style}]{title}:[/{style}]")
            for change in changes[:MAX_LISTED]:
                suffix = " (conflict)" if change.conflict else ""
                console.print(f"  {marker} {change.path}{suffix}")
            if len(changes) > MAX_LISTED:
                console.print(f"  ... and {len(changes) - MAX_LISTED} more")
            console.print()

    return render_rich(_render)


def render_sync_result(result: SyncResult) -> str:
    """Render the outcome of a sync pass."""
    if result.skipped:
        return f"[sync] {result.message}"
    if result.transport_error:
        return f"[sync] Sync failed: {result.transport_error}"

    def _render(console: Console) -> None:
        table = Table(title="Sync Result", show_header=False)
        table.add_column("Property", style="bold")
        table.add_column("Value")

        table.add_row("Status", "ok" if result.success else "partial")
        table.add_row("Summary", result.message)
        table.add_row("Imported", str(len(result.imported)))
        table.add_row("Exported", str(len(result.exported)))
        table.add_row("Deleted", str(len(result.deleted)))
        table.add_row("Deleted On Device", str(len(result.deleted_remote)))
        table.add_row("Duration", f"{result.duration:.2f}s")
        for path, reason in result.failed.items():
            table.add_row("[red]Failed[/red]", f"{path}: {reason}")
        console.print(table)

    return render_rich(_render)


__all__ = ["render_rich", "render_archive", "render_delta", "render_sync_result"]
