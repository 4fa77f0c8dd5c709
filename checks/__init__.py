"""
Analysis rules for the traversal engine.

This package provides the rule interface, the rule manager and the
built-in rules, grouped by concern.
"""

from checks.base import Rule
from checks.manager import BUILTIN_RULES, RuleManager

__all__ = ['Rule', 'RuleManager', 'BUILTIN_RULES']
