"""Main CLI entry point for the notion-backup command.

This module provides the Typer application with the list, backup, export
and html commands.
"""

import locale
import logging
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, NoReturn, Optional

import typer

from notion_backup import __version__
from notion_backup.backup.archive_builder import backup_filename
from notion_backup.backup.backup_runner import BackupRunner
from notion_backup.backup.progress import BackupProgress
from notion_backup.batch.batch_converter import BatchConverter
from notion_backup.cli.config import DEFAULT_CONFIG_PATH, ConfigLoader
from notion_backup.cli.errors import CLIError, ConfigError, NoPagesSelectedError
from notion_backup.cli.models import BackupConfig, ExitCode
from notion_backup.cli.output import OutputHandler
from notion_backup.cli.selection import select_pages
from notion_backup.content_converter.markdown_to_html import to_standalone_html
from notion_backup.images.html_embedder import HtmlImageEmbedder
from notion_backup.images.image_cache import ImageCache
from notion_backup.images.image_fetcher import ImageFetcher
from notion_backup.images.image_processor import ImageDeduper
from notion_backup.notion_client.api_wrapper import NotionAPI
from notion_backup.notion_client.auth import Authenticator
from notion_backup.notion_client.errors import (
    APIUnreachableError,
    BackupError,
    InvalidTokenError,
    PermissionDeniedError,
    RateLimitedError,
    ServerError,
)
from notion_backup.notion_client.exporter import PageExporter, load_exporter
from notion_backup.notion_client.page_ids import parse_page_id
from notion_backup.notion_client.page_records import extract_title
from notion_backup.notion_client.retry_logic import with_retry
from notion_backup.page_tree.filesafe_converter import sanitize
from notion_backup.page_tree.hierarchy_builder import build_tree

app = typer.Typer(
    name="notion-backup",
    help="""Offline backups of a Notion workspace.

QUICK START:
  notion-backup list                          # Show the page tree
  notion-backup backup <page-url>             # ZIP of one page
  notion-backup backup --all                  # ZIP of the whole workspace
  notion-backup export <page-url>             # One page as standalone HTML
  notion-backup html notes.md                 # Markdown file to HTML

The integration token is read from NOTION_TOKEN (environment or .env).""",
    add_completion=False,
    rich_markup_mode=None,
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)


@dataclass
class CLIState:
    """Global options shared by every command."""
    config_path: str = DEFAULT_CONFIG_PATH
    verbosity: int = 0
    no_color: bool = False


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure logging based on verbosity level.

    Configures only the 'notion_backup' namespace logger; the root logger
    and third-party libraries are left unchanged.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for log files (creates timestamped log file)
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    app_logger = logging.getLogger("notion_backup")
    app_logger.setLevel(level)

    # Reconfiguring replaces the handlers of a previous run
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)

    date_format = "%Y-%m-%d %H:%M:%S"
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter("%(asctime)s [%(levelname)8s] %(message)s", datefmt=date_format)
    )
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"notion-backup_{timestamp}.log"

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt=date_format)
        )
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


def _configure_locale() -> None:
    """Collate page titles with the user's locale instead of the C locale."""
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as e:
        logger.debug(f"Keeping default collation: {e}")


def _exit_code_for(error: Exception) -> ExitCode:
    """Map an exception to the CLI exit code."""
    if isinstance(error, (InvalidTokenError, PermissionDeniedError)):
        return ExitCode.AUTH_ERROR
    if isinstance(error, (APIUnreachableError, ServerError, RateLimitedError)):
        return ExitCode.NETWORK_ERROR
    return ExitCode.GENERAL_ERROR


def _fail(output: OutputHandler, error: Exception) -> NoReturn:
    logger.error(f"{type(error).__name__}: {error}")
    output.error(str(error))
    raise typer.Exit(_exit_code_for(error))


def _proxy_url(config: BackupConfig) -> Optional[str]:
    return config.proxy_url or Authenticator.get_proxy_url()


def _build_api(config: BackupConfig) -> NotionAPI:
    return NotionAPI(
        Authenticator(),
        proxy_url=_proxy_url(config),
        max_attempts=config.max_attempts,
        base_delay_ms=config.base_delay_ms,
    )


def _build_exporter(config: BackupConfig, api: NotionAPI) -> PageExporter:
    if not config.exporter:
        raise ConfigError("no page exporter configured", "exporter")
    return load_exporter(config.exporter, api)


def _write_file(path: Path, data: bytes) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as e:
        raise CLIError(f"Cannot write {path}: {e}") from e


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"notion-backup version {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    config_path: str = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        "-c",
        help="Path to the YAML configuration file",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for log files (creates timestamped log file)",
    ),
    verbosity: int = typer.Option(
        0,
        "--verbosity",
        "-v",
        help="Verbosity level: 0=summary, 1=info, 2=debug",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Offline backups of a Notion workspace."""
    _configure_logging(verbosity, logdir)
    _configure_locale()
    ctx.obj = CLIState(config_path=config_path, verbosity=verbosity, no_color=no_color)


@app.command("list")
def list_command(ctx: typer.Context) -> None:
    """Show every page shared with the integration as a tree."""
    state: CLIState = ctx.obj
    output = OutputHandler(verbosity=state.verbosity, no_color=state.no_color)

    try:
        config = ConfigLoader.load(state.config_path)
        api = _build_api(config)
        with output.spinner("Listing pages..."):
            records = api.list_pages()
    except BackupError as e:
        _fail(output, e)
    except typer.Exit:
        raise
    except Exception as e:
        logger.exception("Unexpected error")
        output.error(f"Unexpected error: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    if not records:
        output.warning("No pages are shared with the integration")
        raise typer.Exit(ExitCode.SUCCESS)

    output.print_page_tree(build_tree(records))
    output.success(f"{len(records)} page(s) available")


@app.command("backup")
def backup_command(
    ctx: typer.Context,
    pages: Optional[List[str]] = typer.Argument(
        None,
        help="Page URLs or ids to back up",
        metavar="PAGE...",
    ),
    all_pages: bool = typer.Option(
        False,
        "--all",
        help="Back up every page shared with the integration",
    ),
    with_children: bool = typer.Option(
        False,
        "--with-children",
        help="Include every descendant of the given pages",
    ),
    output_dir: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Directory receiving the archive (overrides output_dir)",
    ),
) -> None:
    """Back up pages into a ZIP of nested markdown folders with images."""
    state: CLIState = ctx.obj
    output = OutputHandler(verbosity=state.verbosity, no_color=state.no_color)

    try:
        config = ConfigLoader.load(state.config_path)
        if not pages and not all_pages:
            raise NoPagesSelectedError("Give at least one page or use --all")

        api = _build_api(config)
        exporter = _build_exporter(config, api)

        with output.spinner("Listing pages..."):
            records = api.list_pages()

        selected, unresolved = select_pages(records, pages or [], all_pages, with_children)
        for ref in unresolved:
            output.warning(f"No page matches {ref}")
        if not selected:
            raise NoPagesSelectedError()

        output.info(f"Backing up {len(selected)} page(s)")

        runner = BackupRunner(
            BatchConverter(
                exporter,
                concurrency=config.concurrency,
                delay_ms=config.batch_delay_ms,
                max_attempts=config.max_attempts,
                base_delay_ms=config.base_delay_ms,
            ),
            ImageDeduper(
                ImageFetcher(proxy_url=_proxy_url(config), timeout=config.image_timeout),
                ImageCache(ttl_seconds=config.image_cache_ttl),
            ),
        )

        snapshots: List[BackupProgress] = []
        with output.progress_bar(100, "Backing up") as progress:
            task = progress.task_ids[0]

            def _on_progress(snapshot: BackupProgress) -> None:
                snapshots.append(snapshot)
                progress.update(
                    task,
                    completed=snapshot.overall_percent,
                    description=output.describe_progress(snapshot),
                )

            data = runner.run_backup(selected, records, on_progress=_on_progress)

        archive_path = Path(output_dir or config.output_dir) / backup_filename(config.archive_prefix)
        _write_file(archive_path, data)
    except BackupError as e:
        _fail(output, e)
    except typer.Exit:
        raise
    except Exception as e:
        logger.exception("Unexpected error")
        output.error(f"Unexpected error: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    output.print_backup_summary(snapshots[-1], str(archive_path))


@app.command("export")
def export_command(
    ctx: typer.Context,
    page: str = typer.Argument(..., help="Page URL or id"),
    title: Optional[str] = typer.Option(
        None,
        "--title",
        "-t",
        help="Document title (defaults to the page title)",
    ),
    output_path: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Target HTML file (defaults to <output_dir>/<page title>.html)",
    ),
) -> None:
    """Export one page as a self-contained HTML document."""
    state: CLIState = ctx.obj
    output = OutputHandler(verbosity=state.verbosity, no_color=state.no_color)

    try:
        config = ConfigLoader.load(state.config_path)
        page_id = parse_page_id(page)
        if page_id is None:
            raise NoPagesSelectedError(f"Not a Notion page URL or id: {page}")

        api = _build_api(config)
        exporter = _build_exporter(config, api)
        fetcher = ImageFetcher(proxy_url=_proxy_url(config), timeout=config.image_timeout)
        cache = ImageCache(ttl_seconds=config.image_cache_ttl)

        with output.spinner("Exporting page..."):
            if title is None:
                title = extract_title(api.retrieve_page(page_id))
            markdown = with_retry(
                lambda: exporter.export_markdown(page_id),
                max_attempts=config.max_attempts,
                base_delay_ms=config.base_delay_ms,
            )
            markdown = ImageDeduper(fetcher, cache).stage_inbound(markdown)
            document = HtmlImageEmbedder(fetcher, cache).embed(to_standalone_html(markdown, title))

        target = Path(output_path) if output_path else Path(config.output_dir) / f"{sanitize(title)}.html"
        _write_file(target, document.encode('utf-8'))
    except BackupError as e:
        _fail(output, e)
    except typer.Exit:
        raise
    except Exception as e:
        logger.exception("Unexpected error")
        output.error(f"Unexpected error: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    output.success(f"Exported '{title}' to {target}")


@app.command("html")
def html_command(
    ctx: typer.Context,
    file: str = typer.Argument(..., help="Markdown file to convert"),
    title: Optional[str] = typer.Option(
        None,
        "--title",
        "-t",
        help="Document title (defaults to the file name)",
    ),
    output_path: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Target HTML file (defaults to the input with .html)",
    ),
    embed_images: bool = typer.Option(
        False,
        "--embed-images",
        help="Download remote images and inline them as data URIs",
    ),
) -> None:
    """Render a markdown file as a standalone themed HTML document."""
    state: CLIState = ctx.obj
    output = OutputHandler(verbosity=state.verbosity, no_color=state.no_color)
    source = Path(file)

    try:
        markdown = source.read_text(encoding='utf-8')
    except OSError as e:
        output.error(f"Cannot read {file}: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    try:
        document = to_standalone_html(markdown, title or source.stem)

        if embed_images:
            config = ConfigLoader.load(state.config_path)
            embedder = HtmlImageEmbedder(
                ImageFetcher(proxy_url=_proxy_url(config), timeout=config.image_timeout),
                ImageCache(ttl_seconds=config.image_cache_ttl),
            )
            with output.spinner("Embedding images..."):
                document = embedder.embed(document)

        target = Path(output_path) if output_path else source.with_suffix('.html')
        _write_file(target, document.encode('utf-8'))
    except BackupError as e:
        _fail(output, e)
    except typer.Exit:
        raise
    except Exception as e:
        logger.exception("Unexpected error")
        output.error(f"Unexpected error: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    output.success(f"Wrote {target}")


def main() -> None:
    """Main entry point for the CLI application."""
    app()


# Allow running as: python -m notion_backup.cli.main
if __name__ == "__main__":
    main()
