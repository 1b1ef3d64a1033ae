"""Character layer for htmlview.

This module turns byte input into text, detecting the document encoding.
"""

from .encoding import (
    BOMDetector,
    DetectionMethod,
    EncodingDetector,
    EncodingResult,
    MetaCharsetParser,
    canonical_encoding,
)

__all__ = [
    "BOMDetector",
    "DetectionMethod",
    "EncodingDetector",
    "EncodingResult",
    "MetaCharsetParser",
    "canonical_encoding",
]
