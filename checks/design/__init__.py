"""Rules about class and method design."""

from checks.design.avoid_condition_inversion import AvoidConditionInversion
from checks.design.cause_parameter_in_exception import CauseParameterInException
from checks.design.child_block_length import ChildBlockLength
from checks.design.static_method_candidate import StaticMethodCandidate
from checks.design.variable_declaration_usage_distance import VariableDeclarationUsageDistance

__all__ = [
    'AvoidConditionInversion',
    'CauseParameterInException',
    'ChildBlockLength',
    'StaticMethodCandidate',
    'VariableDeclarationUsageDistance',
]
