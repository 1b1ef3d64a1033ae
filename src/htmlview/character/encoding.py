"""Encoding detection for byte input.

Detection runs in stages: byte order mark, ``<meta charset>`` declaration in the
document head, strict UTF-8 validation and finally the configured default
encoding. Decoding never fails; undecodable bytes are replaced and reported as
issues.
"""

import codecs
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Dict, List, Optional, Tuple

from htmlview.shared import get_logger

# Declarations are only honoured near the start of the document
META_SCAN_LIMIT = 1024

logger = get_logger(__name__, component="encoding_detector")


class DetectionMethod(Enum):
    """Enumeration of encoding detection methods."""
    BOM = "bom"
    META_DECLARATION = "meta_declaration"
    UTF8_VALIDATION = "utf8_validation"
    FALLBACK = "fallback"


@dataclass
class EncodingResult:
    """Result of encoding detection.

    Attributes:
        encoding: Detected encoding name (canonical codec name)
        confidence: Confidence score from 0.0 to 1.0
        method: Detection method used
        issues: Problems found during detection or decoding
        bom_length: Number of leading bytes taken by a byte order mark
    """
    encoding: str
    confidence: float
    method: DetectionMethod
    issues: List[str] = field(default_factory=list)
    bom_length: int = 0

    def __post_init__(self) -> None:
        """Validate confidence score range."""
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(
                f"Confidence must be between 0.0 and 1.0, got {self.confidence}"
            )


def canonical_encoding(name: str) -> Optional[str]:
    """Return Python's canonical codec name for ``name``, or None if unknown."""
    try:
        return codecs.lookup(name.strip()).name
    except LookupError:
        return None


class BOMDetector:
    """Byte Order Mark (BOM) detection."""

    BOM_PATTERNS: ClassVar[Dict[bytes, str]] = {
        b"\xef\xbb\xbf": "utf-8",
        b"\xff\xfe": "utf-16-le",
        b"\xfe\xff": "utf-16-be",
        b"\xff\xfe\x00\x00": "utf-32-le",
        b"\x00\x00\xfe\xff": "utf-32-be",
    }

    def detect(self, data: bytes) -> Optional[EncodingResult]:
        """Detect encoding based on BOM.

        Returns:
            EncodingResult if BOM detected, None otherwise
        """
        # Longer patterns first; the UTF-32 LE mark starts with the UTF-16 LE one
        for bom_bytes, encoding in sorted(
            self.BOM_PATTERNS.items(), key=lambda x: len(x[0]), reverse=True
        ):
            if data.startswith(bom_bytes):
                return EncodingResult(
                    encoding=encoding,
                    confidence=1.0,
                    method=DetectionMethod.BOM,
                    bom_length=len(bom_bytes),
                )
        return None


class MetaCharsetParser:
    """Finds ``<meta charset>`` and ``http-equiv`` content-type declarations."""

    META_CHARSET_PATTERN = re.compile(
        rb'<meta[^>]+charset\s*=\s*["\']?\s*([A-Za-z0-9._:-]+)',
        re.IGNORECASE
    )

    def parse_declaration(self, data: bytes) -> Optional[EncodingResult]:
        """Parse the declared encoding from the document head.

        Returns:
            EncodingResult if a declaration was found, None otherwise
        """
        match = self.META_CHARSET_PATTERN.search(data[:META_SCAN_LIMIT])
        if not match:
            return None

        declared = match.group(1).decode("ascii", errors="ignore")
        encoding = canonical_encoding(declared)
        if encoding is None:
            return EncodingResult(
                encoding="utf-8",
                confidence=0.3,
                method=DetectionMethod.META_DECLARATION,
                issues=[f"Invalid declared encoding: {declared}"],
            )
        # A document that got this far in an ASCII-compatible read cannot be UTF-16
        if encoding.startswith("utf-16") or encoding.startswith("utf-32"):
            encoding = "utf-8"
        return EncodingResult(
            encoding=encoding,
            confidence=0.9,
            method=DetectionMethod.META_DECLARATION,
        )


class EncodingDetector:
    """Cascading encoding detection with a configurable default."""

    def __init__(self, default_encoding: str = "utf-8") -> None:
        encoding = canonical_encoding(default_encoding)
        if encoding is None:
            raise ValueError(f"Unknown default encoding: {default_encoding}")
        self.default_encoding = encoding
        self.bom_detector = BOMDetector()
        self.meta_parser = MetaCharsetParser()

    def detect(self, data: bytes) -> EncodingResult:
        """Detect the encoding of ``data``."""
        if not data:
            return EncodingResult(
                encoding=self.default_encoding,
                confidence=1.0,
                method=DetectionMethod.FALLBACK,
            )

        bom_result = self.bom_detector.detect(data)
        if bom_result is not None:
            return bom_result

        meta_result = self.meta_parser.parse_declaration(data)
        if meta_result is not None and not meta_result.issues:
            return meta_result

        issues = list(meta_result.issues) if meta_result else []
        try:
            data.decode("utf-8", errors="strict")
        except UnicodeDecodeError as e:
            issues.append(f"UTF-8 decode error: {e}")
        else:
            return EncodingResult(
                encoding="utf-8",
                confidence=0.8,
                method=DetectionMethod.UTF8_VALIDATION,
                issues=issues,
            )

        return EncodingResult(
            encoding=self.default_encoding,
            confidence=0.5,
            method=DetectionMethod.FALLBACK,
            issues=issues,
        )

    def decode(self, data: bytes) -> Tuple[str, EncodingResult]:
        """Detect the encoding and decode ``data``.

        Returns:
            The decoded text and the detection result
        """
        result = self.detect(data)
        payload = data[result.bom_length:]
        try:
            text = payload.decode(result.encoding, errors="strict")
        except UnicodeDecodeError as e:
            result.issues.append(f"Replaced undecodable bytes: {e}")
            result.confidence = min(result.confidence, 0.3)
            text = payload.decode(result.encoding, errors="replace")

        if result.issues:
            logger.warning(
                "Encoding detection issues",
                extra={"encoding": result.encoding, "issues": result.issues},
            )
        else:
            logger.debug(
                "Encoding detected",
                extra={"encoding": result.encoding, "method": result.method.value},
            )
        return text, result
