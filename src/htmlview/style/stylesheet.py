"""Style engine boundary and the default cascading style sheet.

The tree builder only ever calls ``ingest`` (for embedded style source) and
``apply`` (once per top-level element after the document is complete).
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from htmlview.shared import get_logger

if TYPE_CHECKING:
    from htmlview.tree.elements import LogicalElement

INHERITED_PROPERTIES = frozenset({
    "color", "font-family", "font-size", "font-style", "font-variant", "font-weight",
    "letter-spacing", "line-height", "list-style-type", "text-align", "text-indent",
    "text-transform", "visibility", "white-space", "word-spacing",
})

_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_SIMPLE_PART = re.compile(r"([#.]?)(-?[_a-zA-Z][_a-zA-Z0-9-]*|\*)")
_IMPORTANT = re.compile(r"\s*!\s*important\s*$", re.IGNORECASE)

Specificity = Tuple[int, int, int]

logger = get_logger(__name__, component="style_sheet")


class StyleEngine(ABC):
    """Consumes style source and applies the cascade to logical elements."""

    @abstractmethod
    def ingest(self, style_text: str, base_location: Optional[str] = None) -> None:
        """Add the rules of ``style_text``; relative URLs resolve against ``base_location``."""

    @abstractmethod
    def apply(self, element: "LogicalElement",
              inherited: Optional[Dict[str, str]] = None) -> None:
        """Compute styles for ``element`` and its descendants."""


@dataclass(frozen=True)
class CompoundSelector:
    """Tag, id and class constraints on a single element."""

    tag: Optional[str] = None
    element_id: Optional[str] = None
    classes: Tuple[str, ...] = ()

    @property
    def specificity(self) -> Specificity:
        return (
            1 if self.element_id else 0,
            len(self.classes),
            1 if self.tag else 0,
        )

    def matches(self, element: "LogicalElement") -> bool:
        if self.tag is not None and element.name != self.tag:
            return False
        if self.element_id is not None and element.element_id != self.element_id:
            return False
        if self.classes:
            element_classes = element.classes
            return all(cls in element_classes for cls in self.classes)
        return True


@dataclass(frozen=True)
class Selector:
    """Compound selectors joined by descendant (" ") or child (">") combinators.

    ``parts`` is ordered left to right; ``combinators[i]`` joins ``parts[i]`` and
    ``parts[i + 1]``.
    """

    parts: Tuple[CompoundSelector, ...]
    combinators: Tuple[str, ...] = ()

    @property
    def specificity(self) -> Specificity:
        ids = classes = tags = 0
        for part in self.parts:
            part_ids, part_classes, part_tags = part.specificity
            ids += part_ids
            classes += part_classes
            tags += part_tags
        return (ids, classes, tags)

    def matches(self, element: "LogicalElement") -> bool:
        return self._matches_from(len(self.parts) - 1, element)

    def _matches_from(self, index: int, element: "LogicalElement") -> bool:
        if not self.parts[index].matches(element):
            return False
        if index == 0:
            return True
        combinator = self.combinators[index - 1]
        ancestor = element.parent
        if combinator == ">":
            return ancestor is not None and self._matches_from(index - 1, ancestor)
        while ancestor is not None:
            if self._matches_from(index - 1, ancestor):
                return True
            ancestor = ancestor.parent
        return False


@dataclass
class StyleRule:
    selector: Selector
    declarations: Dict[str, str]
    important: Dict[str, str]
    order: int
    base_location: Optional[str] = None


def parse_declarations(block: str) -> Tuple[Dict[str, str], Dict[str, str]]:
    """Split a declaration block into normal and ``!important`` declarations."""
    normal: Dict[str, str] = {}
    important: Dict[str, str] = {}
    for declaration in block.split(";"):
        if ":" not in declaration:
            continue
        name, value = declaration.split(":", 1)
        name = name.strip().lower()
        value = value.strip()
        if not name or not value:
            continue
        if _IMPORTANT.search(value):
            important[name] = _IMPORTANT.sub("", value)
        else:
            normal[name] = value
    return normal, important


def parse_selector(text: str) -> Optional[Selector]:
    """Parse one selector of a selector list; None when unsupported."""
    tokens = text.replace(">", " > ").split()
    parts: List[CompoundSelector] = []
    combinators: List[str] = []
    pending = " "
    for token in tokens:
        if token == ">":
            if not parts or pending == ">":
                return None
            pending = ">"
            continue
        compound = _parse_compound(token)
        if compound is None:
            return None
        if parts:
            combinators.append(pending)
        parts.append(compound)
        pending = " "
    if not parts or pending == ">":
        return None
    return Selector(tuple(parts), tuple(combinators))


def _parse_compound(token: str) -> Optional[CompoundSelector]:
    tag = None
    element_id = None
    classes: List[str] = []
    position = 0
    while position < len(token):
        match = _SIMPLE_PART.match(token, position)
        if match is None:
            return None
        prefix, name = match.groups()
        if prefix == "#":
            element_id = name
        elif prefix == ".":
            classes.append(name)
        elif position == 0:
            tag = None if name == "*" else name.lower()
        else:
            return None
        position = match.end()
    return CompoundSelector(tag, element_id, tuple(classes))


class StyleSheet(StyleEngine):
    """A minimal cascading style sheet.

    Supports type, class, id and universal selectors, compound selectors,
    descendant and child combinators, selector lists, ``!important``,
    inheritance of inherited properties, the ``inherit`` keyword and inline
    ``style`` attributes. At-rules are skipped.
    """

    def __init__(self) -> None:
        self.rules: List[StyleRule] = []
        self._order = 0

    def ingest(self, style_text: str, base_location: Optional[str] = None) -> None:
        source = _COMMENT.sub("", style_text or "")
        position = 0
        added = 0
        while True:
            brace = source.find("{", position)
            if brace < 0:
                break
            # Statement at-rules such as @import end with ";" before the next rule
            prelude = source[position:brace].rsplit(";", 1)[-1].strip()
            end = _find_block_end(source, brace)
            block = source[brace + 1:end]
            position = end + 1
            if prelude.startswith("@"):
                logger.debug("Skipped at-rule", extra={"rule": prelude.split()[0]})
                continue
            normal, important = parse_declarations(block)
            if not normal and not important:
                continue
            for selector_text in prelude.split(","):
                selector = parse_selector(selector_text.strip())
                if selector is None:
                    logger.debug("Skipped unsupported selector",
                                 extra={"selector": selector_text.strip()})
                    continue
                self.rules.append(StyleRule(selector, normal, important,
                                            self._order, base_location))
                self._order += 1
                added += 1
            if end >= len(source):
                break
        logger.debug("Style source ingested", extra={"rules_added": added})

    def matching_rules(self, element: "LogicalElement") -> List[StyleRule]:
        """Rules matching ``element`` in ascending cascade order."""
        matching = [rule for rule in self.rules if rule.selector.matches(element)]
        matching.sort(key=lambda rule: (rule.selector.specificity, rule.order))
        return matching

    def compute(self, element: "LogicalElement",
                inherited: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        """Computed style of ``element`` given its parent's computed style."""
        parent_style = inherited or {}
        style = {
            name: value for name, value in parent_style.items()
            if name in INHERITED_PROPERTIES
        }
        rules = self.matching_rules(element)
        for rule in rules:
            style.update(rule.declarations)
        inline_normal, inline_important = parse_declarations(
            element.attributes.get("style", "")
        )
        style.update(inline_normal)
        for rule in rules:
            style.update(rule.important)
        style.update(inline_important)

        for name, value in list(style.items()):
            if value.lower() == "inherit":
                if name in parent_style:
                    style[name] = parent_style[name]
                else:
                    del style[name]
        return style

    def apply(self, element: "LogicalElement",
              inherited: Optional[Dict[str, str]] = None) -> None:
        element.computed_style = self.compute(element, inherited)
        for child in element.children:
            self.apply(child, element.computed_style)


def _find_block_end(source: str, brace: int) -> int:
    """Index of the brace closing the block opened at ``brace``."""
    depth = 0
    for index in range(brace, len(source)):
        char = source[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return len(source)
