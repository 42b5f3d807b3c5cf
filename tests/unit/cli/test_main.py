"""Unit tests for cli.main module."""

import locale
import logging

import pytest
from typer.testing import CliRunner
from unittest.mock import patch

from notion_backup.backup.progress import BackupProgress
from notion_backup.cli.main import _configure_locale, _configure_logging, _exit_code_for, app
from notion_backup.cli.models import ExitCode
from notion_backup.models.backup_stats import PageStats
from notion_backup.notion_client.errors import (
    APIUnreachableError,
    InvalidTokenError,
    PageNotFoundError,
    PermissionDeniedError,
    RateLimitedError,
)

from conftest import make_record

runner = CliRunner()

HOME_ID = "1" * 32
CHILD_ID = "2" * 32


@pytest.fixture(autouse=True)
def reset_app_logger():
    yield
    app_logger = logging.getLogger("notion_backup")
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()
    app_logger.setLevel(logging.NOTSET)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "notion-backup.yaml"
    path.write_text(f"output_dir: {tmp_path / 'out'}\nexporter: my_exporters:Exporter\n")
    return str(path)


@pytest.fixture
def mock_api():
    with patch('notion_backup.cli.main.Authenticator') as mock_auth, \
            patch('notion_backup.cli.main.NotionAPI') as mock_api_class:
        mock_auth.get_proxy_url.return_value = None
        api = mock_api_class.return_value
        api.list_pages.return_value = [
            make_record(HOME_ID, "Home"),
            make_record(CHILD_ID, "Projects", HOME_ID),
        ]
        yield api


class TestGlobalOptions:
    """Test cases for the app callback."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert "notion-backup version 0.1.0" in result.output

    @patch('notion_backup.cli.main.locale.setlocale')
    def test_configure_locale_uses_user_collation(self, mock_setlocale):
        _configure_locale()

        mock_setlocale.assert_called_once_with(locale.LC_COLLATE, "")

    @patch('notion_backup.cli.main.locale.setlocale', side_effect=locale.Error("unsupported locale setting"))
    def test_configure_locale_tolerates_unknown_locale(self, mock_setlocale):
        _configure_locale()

        mock_setlocale.assert_called_once()

    def test_configure_logging_levels(self):
        _configure_logging(0)
        assert logging.getLogger("notion_backup").level == logging.WARNING

        _configure_logging(2)
        assert logging.getLogger("notion_backup").level == logging.DEBUG

    def test_configure_logging_replaces_handlers(self):
        _configure_logging(1)
        _configure_logging(1)

        assert len(logging.getLogger("notion_backup").handlers) == 1

    def test_configure_logging_with_logdir(self, tmp_path):
        _configure_logging(1, str(tmp_path / "logs"))

        assert len(logging.getLogger("notion_backup").handlers) == 2
        assert len(list((tmp_path / "logs").glob("notion-backup_*.log"))) == 1


class TestExitCodes:
    """Test cases for the error to exit code mapping."""

    @pytest.mark.parametrize("error,code", [
        (InvalidTokenError(), ExitCode.AUTH_ERROR),
        (PermissionDeniedError("page"), ExitCode.AUTH_ERROR),
        (APIUnreachableError("https://api.notion.com/v1"), ExitCode.NETWORK_ERROR),
        (RateLimitedError(), ExitCode.NETWORK_ERROR),
        (PageNotFoundError("abc"), ExitCode.GENERAL_ERROR),
        (ValueError("x"), ExitCode.GENERAL_ERROR),
    ])
    def test_mapping(self, error, code):
        assert _exit_code_for(error) == code


class TestListCommand:
    """Test cases for the list command."""

    def test_prints_tree(self, mock_api, config_file):
        result = runner.invoke(app, ["--config", config_file, "list"])

        assert result.exit_code == 0
        assert "Home" in result.output
        assert "Projects" in result.output
        assert "2 page(s) available" in result.output

    def test_empty_workspace(self, mock_api, config_file):
        mock_api.list_pages.return_value = []

        result = runner.invoke(app, ["--config", config_file, "list"])

        assert result.exit_code == 0
        assert "No pages are shared" in result.output

    def test_invalid_token_exit_code(self, mock_api, config_file):
        mock_api.list_pages.side_effect = InvalidTokenError()

        result = runner.invoke(app, ["--config", config_file, "list"])

        assert result.exit_code == 3

    def test_unreachable_exit_code(self, mock_api, config_file):
        mock_api.list_pages.side_effect = APIUnreachableError("https://api.notion.com/v1")

        result = runner.invoke(app, ["--config", config_file, "list"])

        assert result.exit_code == 4

    def test_unexpected_error(self, mock_api, config_file):
        mock_api.list_pages.side_effect = RuntimeError("kaboom")

        result = runner.invoke(app, ["--config", config_file, "list"])

        assert result.exit_code == 1
        assert "kaboom" in result.output


class TestBackupCommand:
    """Test cases for the backup command."""

    def test_requires_pages_or_all(self, mock_api, config_file):
        result = runner.invoke(app, ["--config", config_file, "backup"])

        assert result.exit_code == 1
        assert "--all" in result.output

    def test_requires_exporter(self, mock_api, tmp_path):
        result = runner.invoke(app, ["--config", str(tmp_path / "none.yaml"), "backup", HOME_ID])

        assert result.exit_code == 1
        assert "exporter" in result.output

    @patch('notion_backup.cli.main.load_exporter')
    def test_unresolved_page(self, mock_load, mock_api, config_file):
        result = runner.invoke(app, ["--config", config_file, "backup", "f" * 32])

        assert result.exit_code == 1
        assert "No page matches" in result.output

    @patch('notion_backup.cli.main.BackupRunner')
    @patch('notion_backup.cli.main.load_exporter')
    def test_writes_archive(self, mock_load, mock_runner_class, mock_api, config_file, tmp_path):
        def fake_run(selected, records, on_progress=None):
            on_progress(BackupProgress(
                phase="creating-zip",
                current=1,
                total=1,
                overall_percent=100,
                page_stats=PageStats(total=1, converted=1),
            ))
            return b"zipdata"

        mock_runner_class.return_value.run_backup.side_effect = fake_run
        target = tmp_path / "archives"

        result = runner.invoke(
            app, ["--config", config_file, "backup", HOME_ID, "--output", str(target)]
        )

        assert result.exit_code == 0, result.output
        archives = list(target.glob("notion-backup-*.zip"))
        assert len(archives) == 1
        assert archives[0].read_bytes() == b"zipdata"
        assert "Backup written to" in result.output

        selected = mock_runner_class.return_value.run_backup.call_args[0][0]
        assert [record.page_id for record in selected] == [HOME_ID]
        mock_load.assert_called_once_with("my_exporters:Exporter", mock_api)

    @patch('notion_backup.cli.main.BackupRunner')
    @patch('notion_backup.cli.main.load_exporter')
    def test_all_with_default_output_dir(self, mock_load, mock_runner_class, mock_api, config_file, tmp_path):
        mock_runner_class.return_value.run_backup.side_effect = (
            lambda selected, records, on_progress=None: (
                on_progress(BackupProgress("creating-zip", 1, 1, 100)) or b"zip"
            )
        )

        result = runner.invoke(app, ["--config", config_file, "backup", "--all"])

        assert result.exit_code == 0, result.output
        assert len(list((tmp_path / "out").glob("*.zip"))) == 1
        selected = mock_runner_class.return_value.run_backup.call_args[0][0]
        assert [record.page_id for record in selected] == [HOME_ID, CHILD_ID]


class TestExportCommand:
    """Test cases for the export command."""

    @patch('notion_backup.cli.main.load_exporter')
    def test_exports_html(self, mock_load, mock_api, config_file, tmp_path):
        mock_load.return_value.export_markdown.return_value = "# Hello\n\nBody"
        target = tmp_path / "page.html"

        result = runner.invoke(
            app,
            ["--config", config_file, "export", HOME_ID, "--title", "My Page", "--output", str(target)],
        )

        assert result.exit_code == 0, result.output
        document = target.read_text(encoding="utf-8")
        assert "<title>My Page</title>" in document
        assert "<h1>Hello</h1>" in document
        mock_load.return_value.export_markdown.assert_called_once_with(HOME_ID)

    def test_invalid_page_reference(self, mock_api, config_file):
        result = runner.invoke(app, ["--config", config_file, "export", "not-a-page"])

        assert result.exit_code == 1
        assert "not-a-page" in result.output


class TestHtmlCommand:
    """Test cases for the html command."""

    def test_converts_file(self, tmp_path):
        source = tmp_path / "notes.md"
        source.write_text("# Hi\n\n**bold**", encoding="utf-8")

        result = runner.invoke(app, ["html", str(source)])

        assert result.exit_code == 0, result.output
        document = (tmp_path / "notes.html").read_text(encoding="utf-8")
        assert "<title>notes</title>" in document
        assert "<h1>Hi</h1>" in document
        assert "<strong>bold</strong>" in document

    def test_title_and_output_options(self, tmp_path):
        source = tmp_path / "notes.md"
        source.write_text("text", encoding="utf-8")
        target = tmp_path / "site" / "index.html"

        result = runner.invoke(app, ["html", str(source), "-t", "Docs", "-o", str(target)])

        assert result.exit_code == 0, result.output
        assert "<title>Docs</title>" in target.read_text(encoding="utf-8")

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["html", str(tmp_path / "missing.md")])

        assert result.exit_code == 1
        assert "Cannot read" in result.output

    @patch('notion_backup.cli.main.HtmlImageEmbedder')
    def test_embed_images(self, mock_embedder_class, tmp_path):
        source = tmp_path / "notes.md"
        source.write_text("![x](https://example.com/x.png)", encoding="utf-8")
        mock_embedder_class.return_value.embed.return_value = "<html>embedded</html>"

        result = runner.invoke(
            app,
            ["--config", str(tmp_path / "none.yaml"), "html", str(source), "--embed-images"],
        )

        assert result.exit_code == 0, result.output
        assert (tmp_path / "notes.html").read_text(encoding="utf-8") == "<html>embedded</html>"
        embedded_input = mock_embedder_class.return_value.embed.call_args[0][0]
        assert '<img src="https://example.com/x.png" alt="x" />' in embedded_input
