"""Main entry point for the Cosmic Archive checker.

This module provides the application entry point with:
- Command-line argument parsing
- Application initialization and dependency injection
- Printing of fresh JAR paths and exit status
"""

import argparse
import asyncio
import sys
from collections.abc import Sequence
from pathlib import Path

import httpx
import structlog

from . import __version__
from .models import AppConfig
from .services.config import ConfigurationService
from .services.digest import DigestComparator
from .services.discovery import DownloadDiscoverer
from .services.errors import AppError, handle_error
from .services.http_client import HttpClientService
from .services.logging import VALID_LOG_LEVELS, setup_logging
from .services.manifest import ManifestFetcher
from .services.pipeline import ArchiveCheckPipeline
from .services.retriever import ArchiveRetriever
from .services.storefront import StorefrontClient

log = structlog.stdlib.get_logger()

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130  # Standard exit code for SIGINT


class ApplicationContext:
    """Container for application services.

    Services are built lazily from the configuration and share one HTTP
    client, which ``cleanup`` closes.
    """

    def __init__(
        self,
        config: AppConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config: AppConfig = config
        self._transport = transport

        self._http_client: HttpClientService | None = None
        self._storefront: StorefrontClient | None = None
        self._pipeline: ArchiveCheckPipeline | None = None

    @property
    def http_client(self) -> HttpClientService:
        """Get the HTTP client service (lazy initialization)."""
        if self._http_client is None:
            self._http_client = HttpClientService(
                timeout=self.config.request_timeout,
                max_retries=self.config.max_retries,
                transport=self._transport,
            )
        return self._http_client

    @property
    def storefront(self) -> StorefrontClient:
        """Get the storefront client (lazy initialization)."""
        if self._storefront is None:
            self._storefront = StorefrontClient(self.http_client)
        return self._storefront

    @property
    def pipeline(self) -> ArchiveCheckPipeline:
        """Get the archive check pipeline (lazy initialization)."""
        if self._pipeline is None:
            self._pipeline = ArchiveCheckPipeline(
                manifest_fetcher=ManifestFetcher(self.http_client, self.config.manifest_url),
                discoverer=DownloadDiscoverer(self.storefront, self.config.game_url),
                retriever=ArchiveRetriever(
                    http_client=self.http_client,
                    storefront=self.storefront,
                    game_url=self.config.game_url,
                    csrf_token=self.config.csrf_token,
                    destination_root=self.config.destination_root,
                ),
                comparator=DigestComparator(),
            )
        return self._pipeline

    async def cleanup(self) -> None:
        """Close connections."""
        if self._http_client is not None:
            await self._http_client.close()


class ParsedArgs:
    """Type-safe container for parsed command-line arguments."""

    def __init__(
        self,
        config: Path | None,
        log_level: str | None,
        log_dir: Path | None,
    ) -> None:
        self.config: Path | None = config
        self.log_level: str | None = log_level
        self.log_dir: Path | None = log_dir


def parse_arguments(argv: Sequence[str] | None = None) -> ParsedArgs:
    """Parse command-line arguments.

    Returns:
        Parsed arguments container
    """
    parser = argparse.ArgumentParser(
        prog="cosmic-archive-checker",
        description=(
            "Download the latest Cosmic Reach builds from itch.io and print the "
            "game JARs whose sha256 is not yet in the Cosmic Archive."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment:
  CSRF_TOKEN    itch.io session token used to resolve download links
  LOG_LEVEL     log verbosity (DEBUG, INFO, WARNING, ERROR, CRITICAL)
  ENVIRONMENT   development (readable logs) or production (JSON logs)
        """
    )

    _ = parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    _ = parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a JSON configuration file"
    )

    _ = parser.add_argument(
        "--log-level",
        choices=list(VALID_LOG_LEVELS),
        type=str.upper,
        default=None,
        help="Set the logging level (default: $LOG_LEVEL or INFO)"
    )

    _ = parser.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Directory for rotating log files (default: console only)"
    )

    ns = parser.parse_args(argv)

    return ParsedArgs(
        config=ns.config,
        log_level=ns.log_level,
        log_dir=ns.log_dir,
    )


async def run_check(context: ApplicationContext) -> list[Path]:
    """Run the pipeline and release the HTTP client afterwards."""
    try:
        return await context.pipeline.run()
    finally:
        await context.cleanup()


def main(
    argv: Sequence[str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    """Run the checker and return the process exit status.

    Args:
        argv: Command-line arguments (defaults to sys.argv)
        transport: Optional HTTP transport override

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    args = parse_arguments(argv)

    _ = setup_logging(log_level=args.log_level, log_dir=args.log_dir)

    try:
        config = ConfigurationService(config_path=args.config).load_config()
    except AppError as e:
        handle_error(e, operation="load_config", component="main")
        return EXIT_FAILURE

    if args.log_level is None and args.config is not None:
        # The config file may pick a level; the flag and $LOG_LEVEL already did otherwise
        _ = setup_logging(log_level=config.log_level, log_dir=args.log_dir)

    log.info("Starting Cosmic Archive checker", version=__version__)

    context = ApplicationContext(config, transport=transport)
    try:
        paths = asyncio.run(run_check(context))
    except KeyboardInterrupt:
        log.info("Interrupted by user")
        return EXIT_INTERRUPTED
    except AppError as e:
        handle_error(e, operation="run", component="main")
        return EXIT_FAILURE
    except Exception as e:
        handle_error(e, operation="run", component="main")
        log.error("Unhandled exception", error=str(e), exc_info=True)
        return EXIT_FAILURE

    # NOTE: most runs print nothing when the latest version is archived, and
    #       one path when the current latest is not archived yet.
    for path in paths:
        print(path, flush=True)

    return EXIT_OK


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
