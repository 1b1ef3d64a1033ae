"""Configuration classes for htmlview parsing.

This module provides configuration objects for the cursor, the tree builder and the
public API, plus an immutable aggregate used by parser instances.
"""

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional

_COMPONENTS = ("cursor", "tree", "api", "global_")


@dataclass
class CursorConfig:
    """Configuration for the default HTML token cursor."""

    # Mismatched or missing end tags raise MarkupError when True; when False
    # they are repaired by synthesizing end tags.
    strict_nesting: bool = True
    merge_adjacent_text: bool = True

    def __post_init__(self) -> None:
        """Validate cursor configuration."""
        for name in ("strict_nesting", "merge_adjacent_text"):
            if not isinstance(getattr(self, name), bool):
                raise ValueError(f"{name} must be a bool")


@dataclass
class TreeConfig:
    """Configuration for document tree building."""

    max_depth: int = 512
    apply_styles: bool = True
    record_title: bool = True

    def __post_init__(self) -> None:
        """Validate tree configuration."""
        if self.max_depth <= 0:
            raise ValueError("max_depth must be > 0")


@dataclass
class ApiConfig:
    """Configuration for the public parsing API."""

    never_fail_mode: bool = False
    default_output_format: str = "json"
    default_encoding: str = "utf-8"

    def __post_init__(self) -> None:
        """Validate API configuration."""
        valid_formats = ["json", "tree"]
        if self.default_output_format not in valid_formats:
            raise ValueError(f"default_output_format must be one of {valid_formats}")
        if not self.default_encoding:
            raise ValueError("default_encoding cannot be empty")


@dataclass
class GlobalConfig:
    """Global settings that apply across all components."""

    logging_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    enable_correlation_tracking: bool = True
    max_input_size_bytes: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate global configuration."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.logging_level not in valid_levels:
            raise ValueError(f"logging_level must be one of {valid_levels}")
        if self.max_input_size_bytes is not None and self.max_input_size_bytes <= 0:
            raise ValueError("max_input_size_bytes must be > 0 or None")


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class ProcessorConfig:
    """Immutable configuration for all htmlview components.

    Instances are safe to share between parser instances; use ``override`` to
    derive a modified copy.
    """

    cursor: CursorConfig = field(default_factory=CursorConfig)
    tree: TreeConfig = field(default_factory=TreeConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    global_: GlobalConfig = field(default_factory=GlobalConfig)

    name: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the complete configuration."""
        try:
            for component in _COMPONENTS:
                getattr(self, component).__post_init__()
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

    def override(self, **kwargs: Any) -> "ProcessorConfig":
        """Create a new configuration with specific overrides.

        Nested fields use ``component__field`` notation.

        Example:
            >>> config = ProcessorConfig()
            >>> lenient = config.override(cursor__strict_nesting=False)
        """
        nested_overrides: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = key.split("__", 1)
                if component not in _COMPONENTS:
                    raise ConfigValidationError(
                        f"Unknown configuration component: {component}",
                        field_name=key,
                    )
                nested_overrides.setdefault(component, {})[field_name] = value
            else:
                nested_overrides[key] = value

        new_fields: Dict[str, Any] = {}
        for key, value in nested_overrides.items():
            if key in _COMPONENTS:
                try:
                    new_fields[key] = replace(getattr(self, key), **value)
                except (TypeError, ValueError) as e:
                    raise ConfigValidationError(str(e), field_name=key) from e
            else:
                new_fields[key] = value

        return replace(self, **new_fields)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        def _dataclass_to_dict(obj: Any) -> Any:
            if hasattr(obj, "__dataclass_fields__"):
                return {
                    name: _dataclass_to_dict(getattr(obj, name))
                    for name in obj.__dataclass_fields__
                }
            if isinstance(obj, Enum):
                return obj.name
            if isinstance(obj, (list, tuple, set)):
                return [_dataclass_to_dict(item) for item in obj]
            if isinstance(obj, dict):
                return {key: _dataclass_to_dict(value) for key, value in obj.items()}
            return obj

        result = _dataclass_to_dict(self)
        if not isinstance(result, dict):
            raise ConfigValidationError("Configuration serialization failed")
        return result

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProcessorConfig":
        """Create configuration from dictionary.

        Unknown keys are rejected so that typos in configuration files surface
        immediately.
        """
        def _dict_to_dataclass(data_dict: Dict[str, Any], target_class: type) -> Any:
            unknown = set(data_dict) - set(target_class.__dataclass_fields__)
            if unknown:
                raise ConfigValidationError(
                    f"Unknown fields for {target_class.__name__}: {sorted(unknown)}"
                )
            field_values: Dict[str, Any] = {}
            for field_name, field_info in target_class.__dataclass_fields__.items():
                if field_name not in data_dict:
                    continue
                value = data_dict[field_name]
                field_type = field_info.type
                if hasattr(field_type, "__dataclass_fields__") and isinstance(value, dict):
                    field_values[field_name] = _dict_to_dataclass(value, field_type)
                else:
                    field_values[field_name] = value
            return target_class(**field_values)

        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration data must be a mapping")
        try:
            return _dict_to_dataclass(data, cls)
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(f"Failed to deserialize to {cls.__name__}: {e}") from e

    @classmethod
    def from_json(cls, json_str: str) -> "ProcessorConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def strict(cls) -> "ProcessorConfig":
        """Preset that rejects any malformed nesting."""
        return cls(name="strict")

    @classmethod
    def lenient(cls) -> "ProcessorConfig":
        """Preset that repairs missing end tags and never raises from the API."""
        return cls(
            cursor=CursorConfig(strict_nesting=False),
            api=ApiConfig(never_fail_mode=True),
            name="lenient",
        )
