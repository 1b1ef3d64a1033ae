"""htmlview.

Builds two synchronized trees from HTML: a physical render tree of widget-layer
nodes and a logical element tree for style application. Inline elements split by
block content keep one logical identity across the inline runs they appear in.

Progressive API Disclosure:
- Level 1: Simple functions - parse(), parse_string(), parse_file()
- Level 2: Configured parser - HtmlViewParser class
- Level 3: Tree builder over any token cursor - HtmlTreeBuilder
"""

__version__ = "0.1.0"
__author__ = "htmlview Team"

# Progressive API disclosure - Level 1 and 2
from .api import HtmlViewParser, parse, parse_file, parse_string

# Configuration classes for advanced usage
from .shared.config import ProcessorConfig

# Level 3 and core result objects
from .tokenization import HtmlTokenCursor, TokenCursor
from .tree import Document, HtmlTreeBuilder, PageContext, ParseResult

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple parsing functions
    "parse",
    "parse_string",
    "parse_file",

    # Level 2: Configured parser
    "HtmlViewParser",
    "ProcessorConfig",

    # Level 3: Tree building
    "HtmlTreeBuilder",
    "HtmlTokenCursor",
    "TokenCursor",
    "PageContext",

    # Result objects
    "Document",
    "ParseResult",
]
