"""Rules about coding practices."""

from checks.coding.avoid_hiding_cause_exception import AvoidHidingCauseException
from checks.coding.avoid_not_short_circuit_operators_for_boolean import (
    AvoidNotShortCircuitOperatorsForBoolean,
)
from checks.coding.forbid_certain_imports import ForbidCertainImports
from checks.coding.forbid_return_in_finally_block import ForbidReturnInFinallyBlock
from checks.coding.nested_ternary import NestedTernary

__all__ = [
    'AvoidHidingCauseException',
    'AvoidNotShortCircuitOperatorsForBoolean',
    'ForbidCertainImports',
    'ForbidReturnInFinallyBlock',
    'NestedTernary',
]
