"""CLI entry point for view-query."""

import argparse
import sys
from collections.abc import Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from view_query.core.config import EngineSettings
from view_query.core.device import AdbDevice, DeviceBridge
from view_query.core.errors import ViewQueryError
from view_query.core.logging import ErrorIds, enable_file_logging, logError, set_log_level
from view_query.core.recording import RecordedDevice, record
from view_query.models.element import ElementNode
from view_query.models.snapshot import Snapshot
from view_query.tools.creative import (
    DEFAULT_MARKER,
    CreativeHost,
    CreativeNotRendered,
    assert_creative_rendered,
)
from view_query.tools.inspect import inspect
from view_query.tools.query import QueryEngine

console = Console()

EXIT_OK = 0
EXIT_NO_MATCH = 1
EXIT_ERROR = 2

# Longest preview of a property value shown in the results table
_PREVIEW_LENGTH = 120


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="view-query",
        description="View Query - query and inspect the UI of a running Android app",
    )
    parser.add_argument("--serial", help="Device serial (default: $VIEW_QUERY_SERIAL or the only device)")
    parser.add_argument("--package", help="Application package under test")
    parser.add_argument("--adb", dest="adb_path", help="Path to the adb executable")
    parser.add_argument("--timeout", type=float, help="Seconds to wait for a settled hierarchy")
    parser.add_argument("--recording", help="Replay a recorded screen (YAML) instead of a device")
    parser.add_argument(
        "--log-level",
        default="warning",
        choices=["debug", "info", "warning", "error"],
        help="Console log level (default: warning)",
    )
    parser.add_argument("--log-file", help="Also write a debug log to this file")

    commands = parser.add_subparsers(dest="command", required=True)

    query = commands.add_parser("query", help="Print the elements matching a selector")
    query.add_argument("selector", help="Selector, e.g. \"zzra index:1 css:'*'\"")
    query.add_argument("--scope", help="Restrict the capture to this top-level container")
    query.add_argument(
        "--property",
        dest="properties",
        action="append",
        default=[],
        help="Property to inspect on each match (repeatable), e.g. html",
    )
    query.add_argument("--contains", help="Require the first match's html to contain this text")

    tree = commands.add_parser("tree", help="Print the captured element tree")
    tree.add_argument("--scope", help="Restrict the capture to this top-level container")

    check = commands.add_parser("check", help="Check that an ad creative rendered")
    check.add_argument("host", choices=[h.value for h in CreativeHost])
    check.add_argument("--index", type=int, help="0-based host instance")
    check.add_argument("--marker", default=DEFAULT_MARKER, help=f"Marker text (default: {DEFAULT_MARKER})")

    rec = commands.add_parser("record", help="Save the current screen as a YAML recording")
    rec.add_argument("output", help="Path of the recording to write")

    return parser


def _device(args: argparse.Namespace, settings: EngineSettings) -> DeviceBridge:
    if args.recording:
        return RecordedDevice.load(args.recording)
    return AdbDevice(settings)


def _label(node: ElementNode) -> str:
    label = f"[bold]{escape(node.type)}[/bold] [dim]{node.id}[/dim]"
    resource_id = node.attributes.get("resource-id") or node.attributes.get("id")
    if resource_id:
        label += f" #{escape(resource_id)}"
    text = node.attributes.get("text")
    if text:
        label += f" {escape(repr(text))}"
    if node.content is not None:
        label += f" [cyan]<web {escape(node.content.url)}>[/cyan]"
    return label


def _print_tree(snapshot: Snapshot) -> None:
    root = Tree(f"Snapshot {snapshot.captured_at.isoformat()} ({len(snapshot)} elements)")

    def add(branch: Tree, node: ElementNode) -> None:
        child = branch.add(_label(node))
        for sub in snapshot.children_of(node):
            add(child, sub)

    for container in snapshot.roots:
        add(root, container)
    console.print(root)


def _preview(value: str) -> str:
    value = " ".join(value.split())
    if len(value) > _PREVIEW_LENGTH:
        return escape(value[:_PREVIEW_LENGTH]) + "..."
    return escape(value)


def _run_query(engine: QueryEngine, args: argparse.Namespace) -> int:
    matches = engine.query(args.selector, scope=args.scope)
    if matches.is_empty:
        console.print(f"[yellow]No elements match {escape(repr(args.selector))}[/yellow]")
        return EXIT_NO_MATCH

    properties = list(dict.fromkeys(args.properties + (["html"] if args.contains else [])))
    table = Table(title=f"{len(matches)} match(es) for {escape(repr(args.selector))}")
    table.add_column("#", justify="right")
    table.add_column("id")
    table.add_column("type")
    for name in properties:
        table.add_column(name)

    inspected = [inspect(matches.snapshot, node, properties) for node in matches]
    for position, (node, content) in enumerate(zip(matches, inspected)):
        table.add_row(
            str(position),
            node.id,
            node.type,
            *(_preview(content.get(name, "")) for name in properties),
        )
    console.print(table)

    if args.contains and args.contains not in (inspected[0].html or ""):
        console.print(f"[red]{escape(repr(args.contains))} not found in the html of {matches[0].id}[/red]")
        return EXIT_NO_MATCH
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    """Main CLI entry point."""
    args = _build_parser().parse_args(argv)
    set_log_level(args.log_level)
    if args.log_file:
        enable_file_logging(args.log_file)

    settings = EngineSettings.from_env().with_overrides(
        serial=args.serial,
        package=args.package,
        adb_path=args.adb_path,
        capture_timeout=args.timeout,
    )

    try:
        device = _device(args, settings)
        engine = QueryEngine(device, settings)

        if args.command == "query":
            return _run_query(engine, args)

        if args.command == "tree":
            _print_tree(engine.snapshot(scope=args.scope))
            return EXIT_OK

        if args.command == "record":
            recording = record(device, args.output)
            console.print(
                f"[green]Recorded {recording.activity or 'screen'} "
                f"with {len(recording.web_contents)} web view(s) to {args.output}[/green]"
            )
            return EXIT_OK

        assert_creative_rendered(
            engine,
            host=CreativeHost(args.host),
            index=args.index,
            marker=args.marker,
        )
        console.print("[green]Creative rendered[/green]")
        return EXIT_OK

    except CreativeNotRendered as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        return EXIT_NO_MATCH
    except ViewQueryError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        return EXIT_ERROR
    except KeyboardInterrupt:
        logError(ErrorIds.KEYBOARD_INTERRUPT, "Interrupted by user")
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
