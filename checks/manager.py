"""
Rule Manager for analysis rules.

This module manages rule registration, configuration and instantiation.
Rule instances hold per-tree state, so every traversal gets fresh ones
from ``instantiate``.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type, Union

import yaml
from pydantic import ValidationError

from checks.base import Rule
from checks.coding import (
    AvoidHidingCauseException,
    AvoidNotShortCircuitOperatorsForBoolean,
    ForbidCertainImports,
    ForbidReturnInFinallyBlock,
    NestedTernary,
)
from checks.design import (
    AvoidConditionInversion,
    CauseParameterInException,
    ChildBlockLength,
    StaticMethodCandidate,
    VariableDeclarationUsageDistance,
)
from checks.naming import AbbreviationAsWordInName
from treecheck.config import OptionsModel
from treecheck.engine.suppression import SuppressionOptions
from treecheck.errors import RuleConfigurationError
from treecheck.models.error import ErrorRecord, FailurePhase

logger = logging.getLogger(__name__)

# Registration order is callback order.
BUILTIN_RULES: List[Type[Rule]] = [
    AvoidConditionInversion,
    StaticMethodCandidate,
    ChildBlockLength,
    VariableDeclarationUsageDistance,
    CauseParameterInException,
    ForbidReturnInFinallyBlock,
    ForbidCertainImports,
    NestedTernary,
    AvoidHidingCauseException,
    AvoidNotShortCircuitOperatorsForBoolean,
    AbbreviationAsWordInName,
]

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"


class RuleManager:
    """Manages rule registration, configuration and instantiation."""

    def __init__(self):
        """Initialize the rule manager."""
        self._rules: Dict[str, Type[Rule]] = {}
        self._options: Dict[str, OptionsModel] = {}
        self._enabled: Dict[str, bool] = {}
        self.suppression = SuppressionOptions()
        self.configuration_errors: List[ErrorRecord] = []

    @classmethod
    def with_builtin_rules(cls) -> "RuleManager":
        """Create a manager with every built-in rule registered and enabled."""
        manager = cls()
        for rule_class in BUILTIN_RULES:
            manager.register_rule(rule_class)
        return manager

    def register_rule(self, rule_class: Type[Rule], enabled: bool = True) -> None:
        """
        Register a rule class under its class name.

        Args:
            rule_class: Rule subclass to register
            enabled: Whether ``instantiate`` includes it
        """
        name = rule_class.__name__
        if name in self._rules:
            logger.warning(f"Rule '{name}' already registered, overwriting")

        self._rules[name] = rule_class
        self._options[name] = rule_class.Options()
        self._enabled[name] = enabled
        logger.debug(f"Registered rule '{name}'")

    def unregister_rule(self, name: str) -> bool:
        """
        Unregister a rule.

        Args:
            name: Name of the rule to unregister

        Returns:
            True if the rule was unregistered, False if not found
        """
        if name not in self._rules:
            return False

        del self._rules[name]
        del self._options[name]
        del self._enabled[name]

        logger.info(f"Unregistered rule '{name}'")
        return True

    def get_rule(self, name: str) -> Optional[Type[Rule]]:
        return self._rules.get(name)

    def list_rules(self) -> List[str]:
        """
        List registered rules in registration order.

        Returns:
            List of rule names
        """
        return list(self._rules.keys())

    def is_enabled(self, name: str) -> bool:
        return self._enabled.get(name, False)

    def enable(self, name: str, enabled: bool = True) -> None:
        self._require(name)
        self._enabled[name] = enabled

    def configure(self, name: str, options: Union[Mapping[str, Any], OptionsModel]) -> None:
        """
        Validate and store options for a rule.

        Options are checked here, before any traversal, by configuring a
        throwaway instance.

        Args:
            name: Registered rule name
            options: Option values keyed by camelCase or snake_case name

        Raises:
            RuleConfigurationError: If the rule is unknown or the options are invalid
        """
        rule_class = self._require(name)
        candidate = rule_class(options)
        self._options[name] = candidate.options
        logger.debug(f"Configured rule '{name}': {candidate.options!r}")

    def load_config(self, config_path: Path) -> Dict:
        """
        Load rule configuration from a YAML file.

        The file holds a ``rules`` mapping of rule name to
        ``{enabled, options}`` and an optional ``suppression`` mapping.
        Every entry is validated before anything is applied. An entry
        naming an unknown rule or carrying invalid options disables that
        rule only; its error is logged and kept in ``configuration_errors``
        while the other entries take effect.

        Args:
            config_path: Path to the YAML file

        Returns:
            The parsed configuration

        Raises:
            FileNotFoundError: If the file does not exist
            yaml.YAMLError: If the file is malformed
            ValueError: If the ``rules`` field is missing
            RuleConfigurationError: If the suppression options are invalid;
                the manager is left unchanged
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Rule configuration not found: {config_path}")

        try:
            with open(config_path, 'r') as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error(f"Failed to parse rule configuration {config_path}: {e}")
            raise

        if 'rules' not in config:
            raise ValueError(f"Missing required field 'rules' in {config_path}")

        suppression = self.suppression
        if config.get('suppression') is not None:
            try:
                suppression = SuppressionOptions.model_validate(config['suppression'])
            except ValidationError as e:
                raise RuleConfigurationError("suppression", str(e)) from e

        options = dict(self._options)
        enabled = dict(self._enabled)
        errors: List[ErrorRecord] = []
        for name, entry in (config['rules'] or {}).items():
            try:
                rule_options, rule_enabled = self._validate_entry(name, entry)
            except RuleConfigurationError as e:
                logger.error(f"Rule '{name}' disabled: {e.message}")
                errors.append(ErrorRecord.from_exception(e, FailurePhase.CONFIGURE, name))
                if name in enabled:
                    enabled[name] = False
                continue
            options[name] = rule_options
            enabled[name] = rule_enabled

        self._options = options
        self._enabled = enabled
        self.suppression = suppression
        self.configuration_errors = errors

        logger.info(
            f"Loaded rule configuration from {config_path} "
            f"({len(errors)} rules rejected)"
        )
        return config

    def load_default_config(self) -> Dict:
        return self.load_config(DEFAULT_CONFIG_PATH)

    def instantiate(self) -> List[Rule]:
        """
        Build fresh, configured instances of the enabled rules.

        Returns:
            Rule instances in registration order
        """
        return [
            rule_class(self._options[name])
            for name, rule_class in self._rules.items()
            if self._enabled[name]
        ]

    def get_statistics(self) -> Dict[str, Any]:
        """
        Get rule manager statistics.

        Returns:
            Dictionary with statistics
        """
        enabled = [name for name in self._rules if self._enabled[name]]
        return {
            "total_rules": len(self._rules),
            "enabled_rules": len(enabled),
            "rules": enabled,
            "configuration_errors": len(self.configuration_errors),
        }

    def _validate_entry(self, name: str, entry: Any) -> Tuple[OptionsModel, bool]:
        rule_class = self._require(name)
        entry = entry or {}
        if not isinstance(entry, Mapping):
            raise RuleConfigurationError(name, "entry must be a mapping of 'enabled' and 'options'")
        candidate = rule_class(entry.get('options') or {})
        return candidate.options, bool(entry.get('enabled', True))

    def _require(self, name: str) -> Type[Rule]:
        rule_class = self._rules.get(name)
        if rule_class is None:
            raise RuleConfigurationError(name, "unknown rule")
        return rule_class
