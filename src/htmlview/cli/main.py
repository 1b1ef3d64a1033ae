"""Main CLI entry point for the htmlview command-line tool.

Parses HTML files into their logical and physical trees and prints the result as
JSON or as an indented tree listing.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from htmlview import __version__
from htmlview.api import parse_file
from htmlview.shared import (
    ConfigError,
    HtmlParseError,
    ProcessorConfig,
    get_logger,
)
from htmlview.tree import (
    ChoiceNode,
    ContainerNode,
    InlineRun,
    LogicalElement,
    ParseResult,
    PageContext,
    PhysicalNode,
    TextElement,
)

OUTPUT_FORMATS = ["json", "tree"]


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self) -> None:
        self.processor_config = ProcessorConfig()
        self.output_format = self.processor_config.api.default_output_format
        self.base_uri: Optional[str] = None

    @classmethod
    def from_file(cls, config_path: Path) -> "CLIConfig":
        """Load CLI configuration from a JSON file.

        The file may hold a ``processor`` mapping in ``ProcessorConfig.to_dict``
        form, an ``output_format`` and a ``base_uri``.
        """
        config = cls()
        try:
            with config_path.open() as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("configuration must be a JSON object")
            if "processor" in data:
                config.processor_config = ProcessorConfig.from_dict(data["processor"])
                config.output_format = config.processor_config.api.default_output_format
            config.output_format = data.get("output_format", config.output_format)
            config.base_uri = data.get("base_uri", config.base_uri)
        except (OSError, ValueError, ConfigError) as e:
            print(f"Warning: Could not load config file: {e}", file=sys.stderr)
        return config


class HtmlFileProcessor:
    """Parses files for the CLI and collects per-file outcomes."""

    def __init__(self, config: CLIConfig) -> None:
        self.config = config
        self.logger = get_logger(__name__, None, "cli_processor")

    def process_single_file(self, file_path: Path) -> Dict[str, Any]:
        page_context = None
        if self.config.base_uri is not None:
            page_context = PageContext(base_uri=self.config.base_uri)
        try:
            result = parse_file(file_path, page_context=page_context,
                                config=self.config.processor_config)
        except HtmlParseError as e:
            self.logger.warning("Failed to parse file",
                                extra={"file": str(file_path), "error": str(e)})
            return {"file": str(file_path), "success": False, "error": str(e)}
        return {"file": str(file_path), "success": result.success, "result": result}


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="htmlview",
        description="Build logical and physical view trees from HTML documents"
    )
    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    parse_parser = subparsers.add_parser("parse", help="Parse HTML files")
    parse_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="HTML files to parse"
    )
    parse_parser.add_argument(
        "--format", "-f",
        choices=OUTPUT_FORMATS,
        help="Output format (default: from configuration, json)"
    )
    parse_parser.add_argument(
        "--base-uri",
        help="Base location for resolving stylesheet references"
    )
    parse_parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Configuration file path"
    )
    parse_parser.add_argument(
        "--lenient",
        action="store_true",
        help="Repair malformed nesting and report failures instead of aborting"
    )
    parse_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )

    return parser


def render_tree(result: ParseResult) -> List[str]:
    """Render both trees of a result as indented lines."""
    lines: List[str] = []
    document = result.document
    if document is None:
        return lines
    if document.title is not None:
        lines.append(f"title: {document.title}")
    lines.append("logical:")
    for child in document.logical_root.children:
        _render_logical(child, 1, lines)
    lines.append("physical:")
    for node in document.physical_root.children:
        _render_physical(node, 1, lines)
    return lines


def _render_logical(element: LogicalElement, depth: int, lines: List[str]) -> None:
    label = f"{'  ' * depth}{element.kind.name} <{element.name}>"
    if element.element_id:
        label += f" #{element.element_id}"
    if isinstance(element, TextElement):
        label += f" {element.text_content.strip()!r}"
    if element.computed_style:
        style = "; ".join(f"{k}: {v}" for k, v in sorted(element.computed_style.items()))
        label += f" {{{style}}}"
    lines.append(label)
    for child in element.children:
        _render_logical(child, depth + 1, lines)


def _render_physical(node: PhysicalNode, depth: int, lines: List[str]) -> None:
    indent = "  " * depth
    if isinstance(node, InlineRun):
        lines.append(f"{indent}{node.kind.name} {node.text!r}")
    elif isinstance(node, ChoiceNode):
        lines.append(f"{indent}{node.kind.name} <{node.name}> {node.options} "
                     f"selected={node.selection}")
    elif isinstance(node, ContainerNode):
        lines.append(f"{indent}{node.kind.name} <{node.name}>")
        for child in node.children:
            _render_physical(child, depth + 1, lines)
    else:
        lines.append(f"{indent}{node.kind.name} <{node.name}> "
                     f"{getattr(node, 'text', '')!r}")


def format_results(outcomes: List[Dict[str, Any]], format_type: str) -> str:
    """Format processing outcomes for output."""
    if format_type == "json":
        entries = []
        for outcome in outcomes:
            entry = {"file": outcome["file"], "success": outcome["success"]}
            if "result" in outcome:
                entry.update(outcome["result"].to_dict())
            else:
                entry["error"] = outcome["error"]
            entries.append(entry)
        return json.dumps(entries, indent=2)

    lines: List[str] = []
    for outcome in outcomes:
        status = "ok" if outcome["success"] else "FAILED"
        lines.append(f"== {outcome['file']} [{status}]")
        if "error" in outcome:
            lines.append(f"   Error: {outcome['error']}")
            continue
        result = outcome["result"]
        lines.extend(render_tree(result))
        for diag in result.diagnostics:
            lines.append(f"   {diag.severity.name}: {diag.message}")
        lines.append("")
    return "\n".join(lines)


def configure_logging(args: argparse.Namespace, config: CLIConfig) -> None:
    """Set up logging from -v/-q, falling back to the configured logging level."""
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.ERROR
    else:
        level = getattr(logging, config.processor_config.global_.logging_level)
    logging.basicConfig(level=level)


def cmd_parse(args: argparse.Namespace) -> int:
    """Handle parse command."""
    config = CLIConfig()
    if args.config:
        config = CLIConfig.from_file(args.config)
    configure_logging(args, config)

    if args.lenient:
        config.processor_config = config.processor_config.override(
            cursor__strict_nesting=False,
            api__never_fail_mode=True,
        )
    if args.base_uri:
        config.base_uri = args.base_uri
    if args.format:
        config.output_format = args.format

    processor = HtmlFileProcessor(config)
    outcomes = [processor.process_single_file(path) for path in args.paths]
    output = format_results(outcomes, config.output_format)

    if args.output:
        args.output.write_text(output + "\n", encoding="utf-8")
    else:
        print(output)

    return 0 if all(outcome["success"] for outcome in outcomes) else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command == "parse":
            return cmd_parse(args)
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
