"""
Shared fixtures.
"""

import pytest

from cchs_harmonizer.examples import build_example_extracts, build_example_rule_set


@pytest.fixture
def example_rules():
    return build_example_rule_set()


@pytest.fixture
def example_extracts():
    return build_example_extracts()
