"""mdtrello CLI entry point."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import structlog

from mdtrello import __version__
from mdtrello.checklist import WorkItem, scan_file
from mdtrello.config import ScanSettings, Settings, load_settings
from mdtrello.trello import BoardExporter, TrelloClient, group_items

log = structlog.get_logger()


def configure_logging(level: str) -> None:
    """Configure structlog for the application."""
    level_no = getattr(logging, level.upper(), logging.INFO)

    # Configure stdlib logging; basicConfig is a no-op on repeat calls
    logging.basicConfig(format="%(message)s", level=level_no)
    logging.getLogger().setLevel(level_no)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def read_items(
    settings: ScanSettings, root: Path, source: Path | None = None
) -> list[WorkItem] | None:
    """Scan the configured document.

    Args:
        settings: Loaded settings.
        root: Project root the source path is relative to.
        source: Optional override for the configured source file.

    Returns:
        Work items, or None if the document does not exist.
    """
    if source is not None:
        settings = settings.model_copy(update={"source_file": source})
    path = settings.source_path(root)

    if not path.is_file():
        print(f"File not found: {path}", file=sys.stderr)
        return None

    items = scan_file(path, settings.scan_options, settings.source_file.as_posix())
    log.info(
        "document_loaded",
        path=str(path),
        items=len(items),
        group_by=settings.group_by.value,
    )
    return items


async def export(root: Path, source: Path | None = None) -> int:
    """Scan the document and export its items to Trello.

    Args:
        root: Project root directory.
        source: Optional document path overriding SOURCE_FILE.

    Returns:
        Process exit code.
    """
    settings = load_settings(root)
    assert isinstance(settings, Settings)
    configure_logging(settings.log_level)

    items = read_items(settings, root, source)
    if items is None:
        return 1

    if not items:
        print("No TODO items found to export.")
        return 0

    if settings.single_list_mode:
        log.info(
            "single_list_mode",
            list_id=settings.trello_list_id,
            list_name=settings.trello_list_name,
        )

    async with TrelloClient(settings.trello_key, settings.trello_token) as client:
        exporter = BoardExporter(client, settings.trello_board_id)
        result = await exporter.export(items, settings.trello_list_id)

    if result.failed:
        log.warning("export_incomplete", failed=result.failed, total=result.total)
    return 0


def scan_only(root: Path, source: Path | None = None) -> int:
    """Print the items that would be exported, without calling Trello.

    Args:
        root: Project root directory.
        source: Optional document path overriding SOURCE_FILE.

    Returns:
        Process exit code.
    """
    settings = load_settings(root, require_trello=False)
    configure_logging(settings.log_level)

    items = read_items(settings, root, source)
    if items is None:
        return 1

    if not items:
        print("No TODO items found to export.")
        return 0

    groups = group_items(items)
    print(f"Found {len(items)} items across {len(groups)} groups:\n")
    for list_name, group in groups.items():
        print(f"  {list_name} ({len(group)})")
        for item in group:
            mark = "x" if item.is_done else " "
            print(f"    [{mark}] {item.title}")
        print()
    return 0


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="mdtrello",
        description="Export markdown checklist items to Trello cards",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    for name, help_text in (
        ("export", "Create Trello lists and cards from the document"),
        ("scan", "List the items that would be exported without calling Trello"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument(
            "--root",
            type=Path,
            default=Path.cwd(),
            help="Project root directory (default: current directory)",
        )
        sub.add_argument(
            "--file",
            type=Path,
            default=None,
            help="Markdown document relative to root (default: SOURCE_FILE or "
            "docs/SYSTEM_ANALYSIS.md)",
        )

    args = parser.parse_args()
    configure_logging("INFO")

    try:
        if args.command == "export":
            code = asyncio.run(export(args.root, args.file))
        elif args.command == "scan":
            code = scan_only(args.root, args.file)
        else:
            parser.print_help()
            code = 1
    except Exception:
        log.exception("export_failed")
        code = 1

    sys.exit(code)


if __name__ == "__main__":
    main()
