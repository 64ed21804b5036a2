"""Service layer for the pipeline and its external integrations."""

from .config import ConfigurationService, ValidationResult
from .digest import DigestComparator
from .discovery import DownloadDiscoverer, is_jar_candidate
from .errors import (
    AppError,
    ArchiveError,
    ConfigurationError,
    DigestSizeError,
    ErrorCategory,
    ErrorHandlingService,
    ErrorSeverity,
    FileSystemError,
    NetworkError,
    ParseError,
    get_error_service,
    handle_error,
)
from .http_client import HttpClientService
from .manifest import ManifestFetcher, parse_manifest
from .pipeline import ArchiveCheckPipeline
from .retriever import ArchiveRetriever, is_game_jar, sanitize_entry_name
from .storefront import StorefrontClient, parse_download_info, parse_game_page

__all__ = [
    "AppError",
    "ArchiveCheckPipeline",
    "ArchiveError",
    "ArchiveRetriever",
    "ConfigurationError",
    "ConfigurationService",
    "DigestComparator",
    "DigestSizeError",
    "DownloadDiscoverer",
    "ErrorCategory",
    "ErrorHandlingService",
    "ErrorSeverity",
    "FileSystemError",
    "HttpClientService",
    "ManifestFetcher",
    "NetworkError",
    "ParseError",
    "StorefrontClient",
    "ValidationResult",
    "get_error_service",
    "handle_error",
    "is_game_jar",
    "is_jar_candidate",
    "parse_download_info",
    "parse_game_page",
    "parse_manifest",
    "sanitize_entry_name",
]
