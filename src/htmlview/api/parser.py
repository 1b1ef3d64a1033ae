"""Core parser API with progressive disclosure.

This module provides the main parsing API, from simple module-level functions to a
configured, reusable parser class. Every entry point reads its input into text,
tokenizes it with ``HtmlTokenCursor`` and builds the document with
``HtmlTreeBuilder``.

By default a fatal parse error propagates as ``HtmlParseError``. With
``ApiConfig.never_fail_mode`` it is returned instead as a failed ``ParseResult``
carrying one CRITICAL diagnostic.
"""

import time
import uuid
from pathlib import Path
from typing import Any, BinaryIO, Dict, Optional, TextIO, Union

import psutil

from htmlview.character import EncodingDetector
from htmlview.shared import (
    DiagnosticSeverity,
    HtmlParseError,
    MarkupError,
    ProcessorConfig,
    get_logger,
)
from htmlview.tokenization import HtmlTokenCursor
from htmlview.tree import HtmlTreeBuilder, PageContext, ParseResult

# Type definitions for input data
InputType = Union[str, bytes, BinaryIO, TextIO, Path]

PREVIEW_LENGTH = 100  # Max length for content preview in logs
MS_PER_SECOND = 1000


def parse(
    input_data: InputType,
    page_context: Optional[PageContext] = None,
    config: Optional[ProcessorConfig] = None,
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Parse HTML from various input sources with automatic type detection.

    Args:
        input_data: HTML content as string, bytes, file-like object, or Path
        page_context: Page collaborators and base location (defaults are used if None)
        config: Processor configuration
        correlation_id: Optional correlation ID for request tracking

    Returns:
        ParseResult containing both trees, diagnostics and metrics

    Raises:
        HtmlParseError: On a fatal parse error, unless never-fail mode is configured

    Examples:
        >>> result = parse('<p>Hello <b>world</b></p>')
        >>> result.document.find('b').text_content
        'world'
    """
    config = config or ProcessorConfig()
    correlation_id = _correlation_id(config, correlation_id)
    logger = get_logger(__name__, correlation_id, "parse")

    logger.info(
        "Starting universal parse operation",
        extra={
            "input_type": type(input_data).__name__,
            "has_correlation_id": correlation_id is not None
        }
    )

    if isinstance(input_data, Path):
        return parse_file(input_data, page_context=page_context, config=config,
                          correlation_id=correlation_id)
    if isinstance(input_data, (str, bytes)):
        return _parse_guarded(input_data, page_context, config, correlation_id)
    if hasattr(input_data, "read"):
        start_time = time.time()
        try:
            content = input_data.read()
        except OSError as e:
            return _handle_failure(
                MarkupError(f"Unable to read input: {e}"), config, correlation_id, start_time
            )
        return _parse_guarded(content, page_context, config, correlation_id)

    raise TypeError(f"Unsupported input type: {type(input_data).__name__}")


def parse_string(
    html: str,
    page_context: Optional[PageContext] = None,
    config: Optional[ProcessorConfig] = None,
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Parse HTML from a string.

    Examples:
        >>> result = parse_string('<title>Demo</title><div id="main"></div>')
        >>> result.document.title
        'Demo'
    """
    config = config or ProcessorConfig()
    correlation_id = _correlation_id(config, correlation_id)
    logger = get_logger(__name__, correlation_id, "parse_string")
    logger.info(
        "Starting string parse operation",
        extra={
            "content_length": len(html),
            "preview": (
                html[:PREVIEW_LENGTH] + "..."
                if len(html) > PREVIEW_LENGTH else html
            )
        }
    )
    return _parse_guarded(html, page_context, config, correlation_id)


def parse_file(
    file_path: Union[str, Path],
    encoding: Optional[str] = None,
    page_context: Optional[PageContext] = None,
    config: Optional[ProcessorConfig] = None,
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Parse HTML from a file with encoding detection.

    When no page context is given, the file's URI becomes the base location for
    relative stylesheet references.

    Args:
        file_path: Path to the HTML file
        encoding: Optional encoding override (auto-detected if not provided)
        page_context: Page collaborators and base location
        config: Processor configuration
        correlation_id: Optional correlation ID for request tracking

    Raises:
        HtmlParseError: If the file cannot be read or parsed, unless never-fail mode
            is configured
    """
    start_time = time.time()
    config = config or ProcessorConfig()
    correlation_id = _correlation_id(config, correlation_id)
    logger = get_logger(__name__, correlation_id, "parse_file")
    path_obj = Path(file_path)

    logger.info(
        "Starting file parse operation",
        extra={
            "file_path": str(path_obj),
            "encoding_override": encoding
        }
    )

    try:
        if encoding:
            with path_obj.open(encoding=encoding, errors="replace") as file:
                content: Union[str, bytes] = file.read()
        else:
            with path_obj.open("rb") as file:
                content = file.read()
    except (OSError, LookupError) as e:
        return _handle_failure(
            MarkupError(f"Unable to read {path_obj}: {e}"), config, correlation_id, start_time
        )

    if page_context is None:
        page_context = PageContext(base_uri=path_obj.resolve().as_uri())

    result = _parse_guarded(content, page_context, config, correlation_id)
    if result.success:
        result.add_diagnostic(
            DiagnosticSeverity.INFO,
            f"File parsed: {path_obj}",
            "file_parser",
            details={"file_path": str(path_obj), "encoding": encoding or "auto"}
        )
    return result


def _correlation_id(config: ProcessorConfig, correlation_id: Optional[str]) -> Optional[str]:
    if correlation_id is None and config.global_.enable_correlation_tracking:
        return str(uuid.uuid4())
    return correlation_id


def _parse_guarded(
    content: Union[str, bytes],
    page_context: Optional[PageContext],
    config: ProcessorConfig,
    correlation_id: Optional[str]
) -> ParseResult:
    start_time = time.time()
    try:
        return _parse_content(content, page_context, config, correlation_id)
    except HtmlParseError as e:
        return _handle_failure(e, config, correlation_id, start_time)


def _parse_content(
    content: Union[str, bytes],
    page_context: Optional[PageContext],
    config: ProcessorConfig,
    correlation_id: Optional[str]
) -> ParseResult:
    """Decode, tokenize and build one document.

    Raises:
        HtmlParseError: On any fatal error
    """
    start_time = time.time()
    process = psutil.Process()
    rss_before = process.memory_info().rss
    logger = get_logger(__name__, correlation_id, "parse_direct")

    limit = config.global_.max_input_size_bytes
    if limit is not None and len(content) > limit:
        raise MarkupError(f"Input of {len(content)} exceeds the limit of {limit}")

    encoding_result = None
    if isinstance(content, bytes):
        detector = EncodingDetector(config.api.default_encoding)
        content, encoding_result = detector.decode(content)
        logger.debug(
            "Character decoding completed",
            extra={
                "encoding": encoding_result.encoding,
                "method": encoding_result.method.value,
                "confidence": encoding_result.confidence
            }
        )
    elif not isinstance(content, str):
        raise MarkupError(f"Expected text or bytes, got {type(content).__name__}")

    cursor = HtmlTokenCursor(content, config.cursor)
    builder = HtmlTreeBuilder(config.tree, correlation_id)
    result = builder.build(cursor, page_context)

    if encoding_result is not None:
        for issue in encoding_result.issues:
            result.add_diagnostic(
                DiagnosticSeverity.WARNING,
                issue,
                "encoding_detector",
                details={"encoding": encoding_result.encoding}
            )

    processing_time = (time.time() - start_time) * MS_PER_SECOND
    result.performance.processing_time_ms = processing_time
    result.performance.memory_used_bytes = max(0, process.memory_info().rss - rss_before)
    logger.info(
        "Direct content parsing completed",
        extra={
            "element_count": result.element_count,
            "memory_used_bytes": result.performance.memory_used_bytes,
            "diagnostic_count": len(result.diagnostics),
            "processing_time_ms": processing_time
        }
    )
    return result


def _handle_failure(
    error: HtmlParseError,
    config: ProcessorConfig,
    correlation_id: Optional[str],
    start_time: float
) -> ParseResult:
    """Raise ``error`` or, in never-fail mode, turn it into a failed result."""
    if not config.api.never_fail_mode:
        raise error
    processing_time = (time.time() - start_time) * MS_PER_SECOND
    get_logger(__name__, correlation_id, "parse").warning(
        "Parse failed, returning error result",
        extra={"error": str(error), "processing_time_ms": processing_time}
    )
    return _create_error_result(error, correlation_id, processing_time)


def _create_error_result(
    error: HtmlParseError,
    correlation_id: Optional[str],
    processing_time: float
) -> ParseResult:
    """Create a failed result with a single CRITICAL diagnostic."""
    result = ParseResult(correlation_id=correlation_id, success=False)
    result.performance.processing_time_ms = processing_time
    result.add_diagnostic(
        DiagnosticSeverity.CRITICAL,
        error.message,
        "api_parser",
        position=error.position,
        details={"exception_type": type(error).__name__}
    )
    return result


class HtmlViewParser:
    """Configured HTML parser for repeated use.

    Holds a configuration and a page context shared by all documents parsed with it
    (for example one style sheet collecting the rules of several documents).

    Examples:
        >>> parser = HtmlViewParser(ProcessorConfig.lenient())
        >>> results = [parser.parse(page) for page in pages]
        >>> parser.statistics["total_parses"] == len(pages)
        True
    """

    def __init__(
        self,
        config: Optional[ProcessorConfig] = None,
        page_context: Optional[PageContext] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or ProcessorConfig()
        self.page_context = page_context or PageContext()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "html_view_parser")

        self._parse_count = 0
        self._successful_parses = 0
        self._total_processing_time = 0.0

        self.logger.info(
            "HtmlViewParser initialized",
            extra={"config_name": self.config.name}
        )

    def parse(
        self,
        input_data: InputType,
        correlation_id_override: Optional[str] = None
    ) -> ParseResult:
        """Parse one document with this parser's configuration and page context."""
        start_time = time.time()
        correlation_id = correlation_id_override or self.correlation_id
        try:
            result = parse(input_data, self.page_context, self.config, correlation_id)
        except HtmlParseError:
            self._record(False, start_time)
            raise
        self._record(result.success, start_time)
        return result

    def reconfigure(self, config: ProcessorConfig) -> None:
        self.config = config
        self.logger.info("Parser reconfigured", extra={"config_name": config.name})

    def _record(self, success: bool, start_time: float) -> None:
        self._parse_count += 1
        self._total_processing_time += (time.time() - start_time) * MS_PER_SECOND
        if success:
            self._successful_parses += 1

    @property
    def statistics(self) -> Dict[str, Any]:
        """Get parser usage statistics."""
        return {
            "total_parses": self._parse_count,
            "successful_parses": self._successful_parses,
            "success_rate": (
                self._successful_parses / self._parse_count
                if self._parse_count > 0 else 0.0
            ),
            "total_processing_time_ms": self._total_processing_time,
            "average_processing_time_ms": (
                self._total_processing_time / self._parse_count
                if self._parse_count > 0 else 0.0
            ),
            "correlation_id": self.correlation_id,
        }

    def reset_statistics(self) -> None:
        self._parse_count = 0
        self._total_processing_time = 0.0
        self._successful_parses = 0
        self.logger.info("Parser statistics reset")
