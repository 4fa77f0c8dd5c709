"""
Unit tests for configuration management.
"""

import os
import re
from pathlib import Path
from typing import Pattern
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from treecheck.config import CommaSeparatedList, OptionsModel, Settings


class SampleOptions(OptionsModel):
    allowed_distance: int = 3
    ignore_pattern: Pattern = re.compile("")
    names: CommaSeparatedList = []
    validate_between_scopes: bool = False


def test_settings_loads_from_environment():
    """Test that settings can be loaded from environment variables."""
    with patch.dict(os.environ, {
        'TREECHECK_LOG_LEVEL': 'DEBUG',
        'TREECHECK_MAX_WORKERS': '8',
        'TREECHECK_FAIL_FAST': 'true',
        'TREECHECK_HONOR_SUPPRESSIONS': 'false',
        'TREECHECK_RULES_CONFIG': '/etc/treecheck/rules.yaml',
    }):
        settings = Settings()

        assert settings.log_level == 'DEBUG'
        assert settings.max_workers == 8
        assert settings.fail_fast is True
        assert settings.honor_suppressions is False
        assert settings.rules_config == Path('/etc/treecheck/rules.yaml')


def test_settings_has_default_values():
    """Test that settings have appropriate default values."""
    with patch.dict(os.environ, {}, clear=True):
        settings = Settings(_env_file=None)

        assert settings.log_level == 'INFO'
        assert settings.max_workers == 4
        assert settings.fail_fast is False
        assert settings.honor_suppressions is True
        assert settings.rules_config is None


def test_settings_ignores_unprefixed_variables():
    """Test that only TREECHECK_ variables are read."""
    with patch.dict(os.environ, {'MAX_WORKERS': '16'}, clear=True):
        settings = Settings(_env_file=None)

        assert settings.max_workers == 4


def test_options_accept_camel_case():
    """Test that options can be given in camelCase."""
    options = SampleOptions.model_validate({'allowedDistance': 5, 'validateBetweenScopes': True})

    assert options.allowed_distance == 5
    assert options.validate_between_scopes is True


def test_options_accept_snake_case():
    """Test that options can be given in snake_case."""
    options = SampleOptions.model_validate({'allowed_distance': 1})

    assert options.allowed_distance == 1


def test_options_reject_unknown_names():
    """Test that unknown option names are rejected."""
    with pytest.raises(ValidationError):
        SampleOptions.model_validate({'allowedDistanse': 5})


def test_options_reject_malformed_values():
    """Test that malformed values are rejected."""
    with pytest.raises(ValidationError):
        SampleOptions.model_validate({'allowedDistance': 'far'})

    with pytest.raises(ValidationError):
        SampleOptions.model_validate({'ignorePattern': '(unclosed'})


def test_options_compile_patterns():
    """Test that pattern options are compiled, defaults included."""
    options = SampleOptions.model_validate({'ignorePattern': '^temp$'})

    assert options.ignore_pattern.fullmatch('temp')
    assert SampleOptions().ignore_pattern.pattern == ''


def test_comma_separated_list():
    """Test that list options accept a comma separated string."""
    options = SampleOptions.model_validate({'names': 'Exception, Throwable,,'})

    assert options.names == ['Exception', 'Throwable']
    assert SampleOptions.model_validate({'names': ['A']}).names == ['A']


def test_options_are_frozen():
    """Test that options cannot be changed after validation."""
    options = SampleOptions()

    with pytest.raises(ValidationError):
        options.allowed_distance = 10


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
