"""
Annotation-based suppression of diagnostics.

Declarations annotated with one of the configured annotation names (by
default ``@SuppressWarnings``) suppress every diagnostic reported inside
their source range, except for rules matching one of the exempt
patterns.
"""

import logging
from typing import List, NamedTuple, Pattern

from pydantic import field_validator

from treecheck.config import CommaSeparatedList, OptionsModel
from treecheck.models.diagnostic import Diagnostic
from treecheck.models.node import Node, NodeKind, Position

logger = logging.getLogger(__name__)


class SuppressionOptions(OptionsModel):
    """Options of the suppression filter."""

    annotation_names: CommaSeparatedList = ["SuppressWarnings"]
    exempt_rules: List[Pattern[str]] = []
    modifiers_excluded: bool = True

    @field_validator("annotation_names")
    @classmethod
    def _simple_names(cls, names: List[str]) -> List[str]:
        # "@java.lang.SuppressWarnings" -> "SuppressWarnings"
        return [name.lstrip("@").rsplit(".", 1)[-1] for name in names]

    @field_validator("exempt_rules", mode="before")
    @classmethod
    def _split_patterns(cls, value):
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value


class SuppressedRange(NamedTuple):
    start: Position
    end_line: int

    def contains(self, position: Position) -> bool:
        return self.start <= position and position.line <= self.end_line


class SuppressionIndex:
    """Suppressed ranges of one tree, recorded as declarations are entered."""

    def __init__(self, options: SuppressionOptions = None):
        self.options = options or SuppressionOptions()
        self.ranges: List[SuppressedRange] = []

    def observe(self, node: Node) -> None:
        """Record the range of ``node`` if it carries a suppressing annotation."""
        modifiers = node.first_child_of_kind(NodeKind.MODIFIERS)
        if modifiers is None:
            return
        for annotation in modifiers.children_of_kind(NodeKind.ANNOTATION):
            name = (annotation.text or "").rsplit(".", 1)[-1]
            if name in self.options.annotation_names:
                self.ranges.append(self._range_of(node, modifiers))
                logger.debug(f"Suppressing diagnostics in {node!r} via @{name}")
                return

    def _range_of(self, node: Node, modifiers: Node) -> SuppressedRange:
        start = node.position
        if self.options.modifiers_excluded:
            following = modifiers.next_sibling
            if following is not None:
                start = following.position
        return SuppressedRange(start=start, end_line=node.last_line)

    def is_exempt(self, rule: str) -> bool:
        return any(p.fullmatch(rule) for p in self.options.exempt_rules)

    def is_suppressed(self, diagnostic: Diagnostic) -> bool:
        if not self.ranges or self.is_exempt(diagnostic.rule):
            return False
        return any(r.contains(diagnostic.position) for r in self.ranges)
