"""
Tree Analyzer component for running rules over many syntax trees.

This module provides the TreeAnalyzer class that runs one independent
traversal per tree with freshly configured rules, and runs many trees in
parallel worker threads.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import ValidationError

from checks.manager import RuleManager
from treecheck.config import Settings
from treecheck.engine.sink import DiagnosticSink
from treecheck.engine.traversal import TraversalEngine
from treecheck.errors import TreeInvariantError
from treecheck.models.error import ErrorRecord, FailurePhase
from treecheck.models.node import Node
from treecheck.models.report import FileReport
from treecheck.models.tree import SyntaxTree
from treecheck.utils.logging import get_logger, log_error_with_context, setup_logging
from treecheck.utils.metrics import emit_metric

logger = logging.getLogger(__name__)

TreeInput = Union[SyntaxTree, Node]


class TreeAnalyzer:
    """
    Runs the configured rules over syntax trees.

    Every tree gets new rule instances and its own engine, so trees can be
    analyzed concurrently without sharing any traversal state.
    """

    def __init__(
        self,
        rule_manager: Optional[RuleManager] = None,
        settings: Optional[Settings] = None,
        sink: Optional[DiagnosticSink] = None,
    ):
        """
        Initialize Tree Analyzer.

        Args:
            rule_manager: Source of configured rules (built-in rules with the
                YAML config from ``settings.rules_config`` if not provided)
            settings: Analysis settings (global settings if not provided)
            sink: Optional sink receiving every diagnostic as it is reported;
                it must be thread-safe when trees are analyzed concurrently
        """
        if settings is None:
            from treecheck.config import settings as global_settings
            settings = global_settings
        self.settings = settings

        if rule_manager is None:
            rule_manager = RuleManager.with_builtin_rules()
            if settings.rules_config is not None:
                rule_manager.load_config(settings.rules_config)
        self.rule_manager = rule_manager
        self.sink = sink
        self._batch_size = max(1, settings.max_workers)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "TreeAnalyzer":
        """
        Build an analyzer for an application entry point.

        Configures structured logging at ``settings.log_level`` and loads the
        rule configuration named by ``settings.rules_config``.

        Args:
            settings: Analysis settings (global settings if not provided)

        Returns:
            Configured TreeAnalyzer
        """
        if settings is None:
            from treecheck.config import settings as global_settings
            settings = global_settings
        setup_logging(settings.log_level)
        return cls(settings=settings)

    def analyze_tree(self, tree: TreeInput, file_path: Optional[str] = None) -> FileReport:
        """
        Analyze a single tree.

        Args:
            tree: Linked tree, or a root node to link first
            file_path: Overrides the tree's file path

        Returns:
            FileReport with diagnostics and failures; a malformed tree
            yields a report holding one traversal failure and no diagnostics
        """
        path = file_path or getattr(tree, "file_path", None) or "<memory>"
        try:
            if isinstance(tree, Node):
                tree = SyntaxTree(tree, file_path=path)
        except TreeInvariantError as e:
            log_error_with_context(get_logger(__name__), f"Malformed syntax tree in {path}", e, file_path=path)
            return _failed_report(path, e)

        engine = TraversalEngine(
            self.rule_manager.instantiate(),
            sink=self.sink,
            fail_fast=self.settings.fail_fast,
            suppression=self.rule_manager.suppression,
            honor_suppressions=self.settings.honor_suppressions,
        )
        result = engine.walk(tree, file_path=path)
        report = result.to_report()
        if self.rule_manager.configuration_errors:
            report.failures = list(self.rule_manager.configuration_errors) + report.failures
        emit_metric("traversal_duration_ms", result.metrics.duration_ms or 0, file_path=path)
        emit_metric("diagnostics_count", result.metrics.diagnostics_count, file_path=path)

        logger.info(
            f"Analyzed {path}: {len(report.diagnostics)} diagnostics, "
            f"{len(report.failures)} failures"
        )
        return report

    def analyze_data(self, data: Dict[str, Any], file_path: str) -> FileReport:
        """
        Analyze a tree given in its plain-data form.

        Args:
            data: Nested node mapping as accepted by ``SyntaxTree.from_dict``
            file_path: Path reported alongside diagnostics

        Returns:
            FileReport; data that does not form a valid tree yields a failed report
        """
        try:
            tree = SyntaxTree.from_dict(data, file_path=file_path)
        except (ValidationError, TreeInvariantError) as e:
            logger.error(f"Invalid syntax tree data for {file_path}: {e}")
            return _failed_report(file_path, e)
        return self.analyze_tree(tree)

    async def analyze_trees(self, trees: Sequence[TreeInput]) -> List[FileReport]:
        """
        Analyze many trees in parallel worker threads.

        Trees are processed in batches of ``settings.max_workers``.

        Args:
            trees: Trees to analyze

        Returns:
            One FileReport per tree, in input order
        """
        enabled = self.rule_manager.get_statistics()["enabled_rules"]
        logger.info(f"Analyzing {len(trees)} trees with {enabled} rules")

        reports: List[FileReport] = []
        for i in range(0, len(trees), self._batch_size):
            batch = trees[i:i + self._batch_size]
            reports.extend(await self._analyze_batch(batch))

        failed = sum(1 for r in reports if not r.ok)
        logger.info(f"Analyzed {len(reports)} trees, {failed} with failures")
        return reports

    async def _analyze_batch(self, trees: Sequence[TreeInput]) -> List[FileReport]:
        tasks = [asyncio.to_thread(self.analyze_tree, tree) for tree in trees]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        reports = []
        for tree, result in zip(trees, results):
            if isinstance(result, Exception):
                if self.settings.fail_fast:
                    raise result
                path = getattr(tree, "file_path", None) or "<memory>"
                logger.error(f"Analysis of {path} failed with exception: {result}")
                reports.append(_failed_report(path, result))
            else:
                reports.append(result)
        return reports


def _failed_report(file_path: str, error: Exception) -> FileReport:
    return FileReport(
        file_path=file_path,
        failures=[ErrorRecord.from_exception(error, FailurePhase.TRAVERSAL)],
    )
