"""Public API for htmlview.

Progressive disclosure: ``parse``/``parse_string``/``parse_file`` for one-off use,
``HtmlViewParser`` for configured, repeated parsing, and adapters for exporting
results.
"""

from .adapters import (
    AdapterMetadata,
    AdapterRegistry,
    AdapterType,
    ConversionResult,
    DictAdapter,
    IntegrationAdapter,
    LxmlAdapter,
    get_adapter,
    list_available_adapters,
    register_adapter,
)
from .parser import (
    HtmlViewParser,
    InputType,
    parse,
    parse_file,
    parse_string,
)

__all__ = [
    "AdapterMetadata",
    "AdapterRegistry",
    "AdapterType",
    "ConversionResult",
    "DictAdapter",
    "IntegrationAdapter",
    "LxmlAdapter",
    "get_adapter",
    "list_available_adapters",
    "register_adapter",
    "HtmlViewParser",
    "InputType",
    "parse",
    "parse_file",
    "parse_string",
]
