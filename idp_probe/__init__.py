"""
Login selection verifier for multi-identity-provider OAuth servers.

This package holds the pure verification logic (no pytest dependency); the
pytest harness under ``tests/`` wraps it into assertions.

Submodules:
    - escaping: HTML attribute escaping via template rendering
    - probe: Single insecure, non-redirecting HTTP GET
    - expectations: Expected redirects and selection page link patterns
    - verifier: Full verification run producing a report
    - config: Option/environment resolution of run settings
"""

from idp_probe.escaping import escape_attribute
from idp_probe.exceptions import (
    ConfigurationError,
    DuplicateExpectationError,
    EnvironmentFault,
    ProbeError,
    TransportFault,
    VerificationFailed,
)
from idp_probe.expectations import (
    build_expectations,
    idp_query_param,
    link_pattern_for,
    login_path,
    selection_page_url,
)
from idp_probe.models import (
    Expectation,
    ExpectationMap,
    IdentityProvider,
    LinkPattern,
    ProbeResult,
    UrlCheck,
    VerificationReport,
)
from idp_probe.probe import create_session, probe_url
from idp_probe.verifier import assert_report, verify_login_selection

__version__ = "0.1.0"

__all__ = [
    # escaping
    'escape_attribute',
    # expectations
    'build_expectations',
    'idp_query_param',
    'link_pattern_for',
    'login_path',
    'selection_page_url',
    # probing
    'create_session',
    'probe_url',
    # verification
    'verify_login_selection',
    'assert_report',
    # models
    'Expectation',
    'ExpectationMap',
    'IdentityProvider',
    'LinkPattern',
    'ProbeResult',
    'UrlCheck',
    'VerificationReport',
    # errors
    'ProbeError',
    'EnvironmentFault',
    'ConfigurationError',
    'DuplicateExpectationError',
    'TransportFault',
    'VerificationFailed',
]
