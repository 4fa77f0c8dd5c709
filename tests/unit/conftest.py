"""
Shared fixtures for unit tests.
"""

from typing import List

import pytest

from treecheck.engine.traversal import TraversalEngine
from treecheck.models.diagnostic import Diagnostic


@pytest.fixture
def run_rules():
    """Walk a tree with the given rules and return the diagnostics."""

    def _run(tree, *rules, **engine_options) -> List[Diagnostic]:
        engine = TraversalEngine(list(rules), **engine_options)
        result = engine.walk(tree)
        assert result.failures == [], result.failures
        return result.diagnostics

    return _run
