"""Command-line interface handlers."""

import argparse
import logging
import mimetypes
from dataclasses import replace
from pathlib import Path
from typing import Any, Optional

from papervault.config import SETTINGS_FILE, STORAGE_BACKENDS, Settings, save_settings
from papervault.console import ConsoleUI
from papervault.errors import PaperVaultError, ValidationFailure
from papervault.logging_setup import configure_logging
from papervault.models.paper import UploadedFile
from papervault.services.paper_service import PaperService

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INVALID = 2


class PaperVaultCLI:
    """CLI application for PaperVault."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        service: Optional[PaperService] = None,
        ui: Optional[ConsoleUI] = None,
    ):
        """Initialize CLI with settings.

        Args:
            settings: Application settings (loads from disk if not provided)
            service: Pre-built catalog service (built from settings if not provided)
            ui: Console UI (a default Rich console if not provided)
        """
        self.settings = settings or Settings.load()
        self.ui = ui or ConsoleUI()
        if service is None:
            from papervault.api.app import build_service

            service = build_service(self.settings)
        self.service = service

    def cmd_upload(
        self,
        path: Path,
        title: Optional[str],
        authors: Optional[str],
        abstract: Optional[str] = None,
        keywords: Optional[str] = None,
        year: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> None:
        """Upload a local PDF with its metadata.

        A missing path is reported by validation as a missing file.
        """
        file = None
        if path.is_file():
            guessed, _ = mimetypes.guess_type(path.name)
            file = UploadedFile(
                filename=path.name,
                content_type=content_type or guessed or "application/octet-stream",
                data=path.read_bytes(),
            )

        paper = self.service.upload(
            {
                "title": title,
                "authors": authors,
                "abstract": abstract,
                "keywords": keywords,
                "year": year,
            },
            file,
        )
        self.ui.uploaded(paper)

    def cmd_list(
        self,
        query: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        sort_by: Optional[str] = None,
        order: Optional[str] = None,
    ) -> None:
        """List papers, optionally filtered by free text."""
        result = self.service.search({
            "query": query,
            "page": page,
            "limit": limit,
            "sortBy": sort_by,
            "sortOrder": order,
        })
        self.ui.display_papers(result.papers, result.pagination)

    def cmd_search(
        self,
        q: str,
        field: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> None:
        """Search papers within one field or all of them."""
        result = self.service.search({"query": q, "field": field, "page": page, "limit": limit})
        self.ui.display_papers(
            result.papers,
            result.pagination,
            title=f"Search: {result.spec.query!r} in {result.spec.field}",
        )

    def cmd_show(self, paper_id: str) -> None:
        """Show one paper."""
        self.ui.display_paper(self.service.get_paper(paper_id))

    def cmd_delete(self, paper_id: str, purge: bool = False) -> None:
        """Delete a paper's metadata row (and optionally its PDF)."""
        paper = self.service.delete_paper(paper_id, purge_object=purge)
        self.ui.deleted(paper, purge)

    def cmd_config(
        self,
        log_level: Optional[str] = None,
        storage_backend: Optional[str] = None,
        storage_root: Optional[Path] = None,
        bucket: Optional[str] = None,
    ) -> None:
        """Show the settings, writing any given changes to settings.yaml first.

        The file is re-read afterwards so the table shows what the next
        run will see (environment overrides included).
        """
        changes: dict[str, Any] = {}
        if log_level:
            changes["log_level"] = log_level.upper()
        storage_changes = {
            name: value
            for name, value in (
                ("backend", storage_backend),
                ("root", storage_root),
                ("bucket", bucket),
            )
            if value is not None
        }
        if storage_changes:
            changes["storage"] = replace(self.settings.storage, **storage_changes)

        if changes:
            self.settings.update(**changes)
            metadata_dir = self.settings.metadata_dir
            metadata_dir.mkdir(parents=True, exist_ok=True)
            save_settings(metadata_dir / SETTINGS_FILE, self.settings)
            logger.info("Saved settings to %s", metadata_dir / SETTINGS_FILE)
            self.settings = Settings.reload(metadata_dir.parent)

        self.ui.display_settings(self.settings)


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="papervault",
        description="PDF paper catalog: upload → object store + SQLite → search",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # upload command
    upload_parser = subparsers.add_parser("upload", help="Upload a PDF with metadata")
    upload_parser.add_argument("path", type=Path, help="Path to the PDF file")
    upload_parser.add_argument("--title", help="Paper title")
    upload_parser.add_argument("--authors", help="Comma-separated authors")
    upload_parser.add_argument("--abstract", help="Abstract text")
    upload_parser.add_argument("--keywords", help="Comma-separated keywords")
    upload_parser.add_argument("--year", help="Publication year")
    upload_parser.add_argument(
        "--content-type",
        help="Override the content type guessed from the file name",
    )

    # list command
    list_parser = subparsers.add_parser("list", help="List papers")
    list_parser.add_argument("--query", help="Free-text filter over all fields")
    list_parser.add_argument("--page", type=int, help="Page number (default: 1)")
    list_parser.add_argument("--limit", type=int, help="Page size, 1-50 (default: 10)")
    list_parser.add_argument(
        "--sort",
        choices=["createdAt", "title", "year"],
        dest="sort_by",
        help="Sort key (default: createdAt)",
    )
    list_parser.add_argument(
        "--order",
        choices=["asc", "desc"],
        help="Sort direction (default: desc)",
    )

    # search command
    search_parser = subparsers.add_parser("search", help="Search papers")
    search_parser.add_argument("q", help="Search text")
    search_parser.add_argument(
        "--field",
        choices=["all", "title", "authors", "abstract", "keywords"],
        help="Field to search (default: all)",
    )
    search_parser.add_argument("--page", type=int, help="Page number (default: 1)")
    search_parser.add_argument("--limit", type=int, help="Page size, 1-50 (default: 10)")

    # show command
    show_parser = subparsers.add_parser("show", help="Show one paper")
    show_parser.add_argument("id", help="Paper ID")

    # delete command
    delete_parser = subparsers.add_parser("delete", help="Delete a paper")
    delete_parser.add_argument("id", help="Paper ID")
    delete_parser.add_argument(
        "--purge",
        action="store_true",
        help="Also delete the stored PDF",
    )

    # config command
    config_parser = subparsers.add_parser(
        "config", help="Show settings, saving any options given to settings.yaml"
    )
    config_parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Log level",
    )
    config_parser.add_argument(
        "--storage-backend",
        choices=list(STORAGE_BACKENDS),
        help="Object store backend",
    )
    config_parser.add_argument("--storage-root", type=Path, help="Local store directory")
    config_parser.add_argument("--bucket", help="S3 bucket name")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", help="Bind address (default: from settings)")
    serve_parser.add_argument("--port", type=int, help="Port (default: from settings)")

    return parser


def serve(settings: Settings, host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "papervault.api.app:create_app",
        factory=True,
        host=host or settings.api_host,
        port=port or settings.api_port,
    )


def main(argv: Optional[list[str]] = None, cli: Optional[PaperVaultCLI] = None) -> int:
    """Main entry point for CLI. Returns the process exit code."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command == "serve":
        settings = Settings.load()
        configure_logging(settings.log_level)
        serve(settings, args.host, args.port)
        return EXIT_OK

    cli = cli or PaperVaultCLI()
    configure_logging(cli.settings.log_level)

    try:
        if args.command == "upload":
            cli.cmd_upload(
                args.path,
                args.title,
                args.authors,
                args.abstract,
                args.keywords,
                args.year,
                args.content_type,
            )
        elif args.command == "list":
            cli.cmd_list(args.query, args.page, args.limit, args.sort_by, args.order)
        elif args.command == "search":
            cli.cmd_search(args.q, args.field, args.page, args.limit)
        elif args.command == "show":
            cli.cmd_show(args.id)
        elif args.command == "delete":
            cli.cmd_delete(args.id, args.purge)
        elif args.command == "config":
            cli.cmd_config(args.log_level, args.storage_backend, args.storage_root, args.bucket)
    except ValidationFailure as e:
        cli.ui.validation_errors(e.errors)
        return EXIT_INVALID
    except PaperVaultError as e:
        cli.ui.error(f"[{e.code}] {e.message}")
        return EXIT_ERROR
    finally:
        cli.service.close()

    return EXIT_OK
