"""Command-line tools for capturing and restoring anchors on HTML files.

Usage:
    anchorlight capture page.html "hello world" --url https://example.com/a
    anchorlight locate page.html anchors.json
    anchorlight restore page.html anchors.json -o highlighted.html

Commands:
    capture   Capture the N-th occurrence of TEXT and print its anchor record
    locate    Resolve each anchor record and report how it was found
    restore   Run the page-load restore and write the highlighted document
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from anchorlight import _setup_logging
from anchorlight.anchoring.models import AnchorRecord
from anchorlight.anchoring.orchestrator import RestorationOrchestrator
from anchorlight.anchoring.text_nodes import (
    TextRange,
    iter_text_leaves,
    skip_invisible,
)
from anchorlight.config import get_settings
from anchorlight.errors import MalformedAnchorError
from anchorlight.notifications import Notice, NoticeKind
from anchorlight.page import Page
from anchorlight.store import InMemoryAnchorStore

console = Console()

_NOTICE_STYLES = {
    NoticeKind.SAVED: "green",
    NoticeKind.NOT_LOCATED: "yellow",
    NoticeKind.EXPIRED: "yellow",
    NoticeKind.UNSUPPORTED_PAGE: "red",
}


class ConsoleNotifier:
    """Prints notices to a Rich console."""

    def __init__(self, con: Console) -> None:
        self._console = con

    def notify(self, notice: Notice) -> None:
        style = _NOTICE_STYLES.get(notice.kind, "white")
        suffix = f" [dim]({notice.anchor_id})[/]" if notice.anchor_id else ""
        self._console.print(f"[{style}]{notice.message}[/]{suffix}")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="anchorlight",
        description="Capture, locate and restore text anchors in HTML files.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # capture
    capture_p = sub.add_parser("capture", help="Capture an anchor for TEXT")
    capture_p.add_argument("file", type=Path, help="HTML document")
    capture_p.add_argument("text", help="Exact text to select")
    capture_p.add_argument("--url", default="", help="URL to record on the anchor")
    capture_p.add_argument(
        "--occurrence",
        type=int,
        default=1,
        help="Which occurrence of TEXT to select (1-based, default: 1)",
    )

    # locate
    locate_p = sub.add_parser("locate", help="Resolve anchor records")
    locate_p.add_argument("file", type=Path, help="HTML document")
    locate_p.add_argument("anchors", type=Path, help="JSON list of anchor records")

    # restore
    restore_p = sub.add_parser("restore", help="Write the highlighted document")
    restore_p.add_argument("file", type=Path, help="HTML document")
    restore_p.add_argument("anchors", type=Path, help="JSON list of anchor records")
    restore_p.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output file (default: <file>.highlighted.html)",
    )

    return parser


def _read_text(path: Path, con: Console) -> str:
    """Read *path* or exit with an error."""
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        con.print(f"[red]Error:[/] cannot read {path}: {exc.strerror or exc}")
        sys.exit(1)


def _load_records(path: Path, con: Console) -> list[AnchorRecord]:
    """Parse a JSON list of anchor records or exit with an error."""
    raw = _read_text(path, con)
    try:
        data: Any = json.loads(raw)
    except json.JSONDecodeError as exc:
        con.print(f"[red]Error:[/] {path} is not valid JSON: {exc}")
        sys.exit(1)
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        con.print(f"[red]Error:[/] {path} must hold a list of anchor records")
        sys.exit(1)

    records: list[AnchorRecord] = []
    for index, item in enumerate(data):
        try:
            records.append(AnchorRecord.from_dict(item))
        except MalformedAnchorError as exc:
            con.print(f"[yellow]Skipping record {index}:[/] {exc}")
    return records


def _select_occurrence(page: Page, text: str, occurrence: int) -> TextRange | None:
    """Range over the *occurrence*-th visible single-leaf match of *text*."""
    seen = 0
    for leaf in iter_text_leaves(page.content_root, skip=skip_invisible):
        start = leaf.value.find(text)
        while start != -1:
            seen += 1
            if seen == occurrence:
                return TextRange.within(leaf, start, start + len(text))
            start = leaf.value.find(text, start + 1)
    return None


async def _cmd_capture(
    file: Path,
    text: str,
    *,
    url: str = "",
    occurrence: int = 1,
    console: Console | None = None,
) -> None:
    """Capture an anchor and print its record as JSON."""
    con = console or globals()["console"]
    page = Page.from_html(_read_text(file, con), url=url)
    store = InMemoryAnchorStore()
    orchestrator = RestorationOrchestrator(
        page, store, ConsoleNotifier(con), get_settings().anchor
    )

    page.selection = _select_occurrence(page, text, occurrence)
    if page.selection is None:
        con.print(f"[red]Error:[/] occurrence {occurrence} of {text!r} not found")
        sys.exit(1)

    anchor = orchestrator.capture()
    if anchor is None:
        con.print("[red]Error:[/] nothing captured")
        sys.exit(1)

    record = await store.save(anchor)
    con.print_json(json.dumps(record.to_dict()))


async def _cmd_locate(
    file: Path,
    anchors: Path,
    *,
    console: Console | None = None,
) -> None:
    """Resolve each record without changing the document."""
    con = console or globals()["console"]
    page = Page.from_html(_read_text(file, con))
    records = _load_records(anchors, con)
    orchestrator = RestorationOrchestrator(
        page, InMemoryAnchorStore(records), ConsoleNotifier(con), get_settings().anchor
    )

    table = Table(title=f"Anchors in {file.name}")
    table.add_column("Id", style="cyan")
    table.add_column("Via")
    table.add_column("Container")
    table.add_column("Offsets")
    table.add_column("Reason")

    for record in records:
        resolution = orchestrator.resolver.resolve(record.anchor_id, record.anchor)
        if resolution.text_range is not None:
            text_range = resolution.text_range
            container = text_range.start_leaf.parent_element
            table.add_row(
                record.anchor_id,
                resolution.via.value if resolution.via else "",
                str(container.tag) if container is not None else "",
                f"{text_range.start_offset}-{text_range.end_offset}",
                "",
            )
        elif resolution.marker is not None:
            table.add_row(
                record.anchor_id,
                resolution.via.value if resolution.via else "",
                str(resolution.marker.tag),
                "",
                "",
            )
        else:
            table.add_row(
                record.anchor_id, "[red]-[/]", "", "", resolution.reason
            )

    con.print(table)


async def _cmd_restore(
    file: Path,
    anchors: Path,
    *,
    output: Path | None = None,
    console: Console | None = None,
) -> None:
    """Apply every locatable highlight and write the result."""
    con = console or globals()["console"]
    html = _read_text(file, con)
    records = _load_records(anchors, con)
    page_url = records[0].anchor.url if records else ""
    page = Page.from_html(html, url=page_url)
    orchestrator = RestorationOrchestrator(
        page, InMemoryAnchorStore(records), ConsoleNotifier(con), get_settings().anchor
    )

    restored = await orchestrator.load_page_anchors()
    unresolved = orchestrator.registry.pending_ids()
    # A static file never mutates; nothing left to wait for
    orchestrator.registry.halt()

    output = output or file.with_suffix(".highlighted.html")
    output.write_text(page.serialize(), encoding="utf-8")

    con.print(f"Restored [bold]{restored}[/] of {len(records)} highlight(s)")
    for anchor_id in unresolved:
        con.print(f"  [yellow]Unresolved[/] {anchor_id}")
    con.print(f"Wrote [cyan]{output}[/]")


def main(argv: list[str] | None = None) -> None:
    """Capture, locate and restore anchors in HTML files.

    Usage:
        anchorlight <command> [options]
    """
    parser = _build_parser()
    args = parser.parse_args(argv if argv is not None else sys.argv[1:])

    app_config = get_settings().app
    _setup_logging(app_config.log_dir, app_config.log_level)

    match args.command:
        case "capture":
            asyncio.run(
                _cmd_capture(
                    args.file, args.text, url=args.url, occurrence=args.occurrence
                )
            )
        case "locate":
            asyncio.run(_cmd_locate(args.file, args.anchors))
        case "restore":
            asyncio.run(_cmd_restore(args.file, args.anchors, output=args.output))
