"""Multi-file analysis orchestration package."""

from treecheck.analyzers.tree_analyzer import TreeAnalyzer

__all__ = ["TreeAnalyzer"]
