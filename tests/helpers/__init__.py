"""
Test helpers package for the login selection verifier.

This package contains the pytest-facing helpers used across the test suite.
The verification logic itself lives in ``idp_probe``.

Submodules:
    - assertions: pytest-specific assertion helpers
    - mock_console: In-process mock OAuth login server
    - utils: General test utilities (section headers, formatted lists)
"""

# Re-export commonly used items for convenience
from tests.helpers.assertions import (
    assert_login_selection_valid,
    assert_url_expectation,
)

from tests.helpers.mock_console import MockConsoleServer

from tests.helpers.utils import (
    print_section_header,
    print_provider_list,
)

__all__ = [
    # assertions
    'assert_login_selection_valid',
    'assert_url_expectation',
    # mock server
    'MockConsoleServer',
    # utils
    'print_section_header',
    'print_provider_list',
]
