"""Pytest fixtures for the login selection verifier test suite"""
import pytest
import os
import sys
from pathlib import Path
import logging

from idp_probe import IdentityProvider, create_session
from idp_probe.config import (
    resolve_asset_public_url,
    resolve_client_id,
    resolve_identity_providers,
    resolve_master_public_url,
    resolve_response_type,
    resolve_timeout,
)
from idp_probe.constants import DEFAULT_PROVIDER_NAMES
from tests.helpers.mock_console import MockConsoleServer
from tests.helpers.utils import print_provider_list


def _utf8_safe(value):
    return value.encode('utf-8', errors='replace').decode('utf-8')


class SafeUnicodeFilter(logging.Filter):
    """Replace lone surrogates in log records before they reach Allure.

    Provider names read from IDENTITY_PROVIDERS keep undecodable bytes as
    surrogates (os.environ uses surrogateescape), and they end up in every
    URL, link pattern and problem line that mentions the provider. Allure
    cannot attach captured logs holding such characters.
    """

    def filter(self, record):
        if isinstance(record.msg, str):
            record.msg = _utf8_safe(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(_utf8_safe(arg) if isinstance(arg, str) else arg for arg in record.args)
        return True


logger = logging.getLogger(__name__)


@pytest.fixture(scope="session", autouse=True)
def configure_safe_logging():
    """Install SafeUnicodeFilter on the root and every existing logger for the session."""
    safe_filter = SafeUnicodeFilter()

    loggers = [logging.root] + [
        logging.getLogger(name) for name in logging.Logger.manager.loggerDict
        if isinstance(logging.Logger.manager.loggerDict[name], logging.Logger)
    ]
    for logger_obj in loggers:
        logger_obj.addFilter(safe_filter)

    yield

    for logger_obj in loggers:
        logger_obj.removeFilter(safe_filter)


# =============================================================================
# TARGET SERVER CONFIGURATION FIXTURES
# =============================================================================

@pytest.fixture(scope="session")
def master_public_url(request):
    """
    Public URL of the OAuth server under test.

    Priority: --master-public-url > MASTER_PUBLIC_URL > none.

    Returns:
        str: URL without trailing slash (e.g., 'https://127.0.0.1:8443')

    Raises:
        pytest.skip: If no server is configured
    """
    url = resolve_master_public_url(request.config.getoption("--master-public-url", default=None))
    if not url:
        pytest.skip("MASTER_PUBLIC_URL environment variable not set")
    return url


@pytest.fixture(scope="session")
def asset_public_url(request, master_public_url):
    """Console URL used as the OAuth redirect_uri (default: <master>/console/)"""
    return resolve_asset_public_url(
        master_public_url,
        request.config.getoption("--asset-public-url", default=None),
    )


@pytest.fixture(scope="session")
def oauth_client_id(request):
    """OAuth client whose authorize URL renders the selection page"""
    return resolve_client_id(request.config.getoption("--oauth-client-id", default=None))


@pytest.fixture(scope="session")
def oauth_response_type(request):
    """OAuth response type on the authorize URL (default: token)"""
    return resolve_response_type(request.config.getoption("--oauth-response-type", default=None))


@pytest.fixture(scope="session")
def probe_timeout(request):
    """Per-request timeout in seconds"""
    return resolve_timeout(request.config.getoption("--probe-timeout", default=None))


@pytest.fixture(scope="session")
def identity_providers(request):
    """
    Identity providers configured on the server under test.

    Reads --identity-providers or IDENTITY_PROVIDERS (JSON list of names or
    {"name", "usedForLogin", "usedForChallenge"} objects). Defaults to
    'foo', 'bar' and a name with a space, Unicode and punctuation.

    Returns:
        list: IdentityProvider instances in configuration order
    """
    providers = resolve_identity_providers(request.config.getoption("--identity-providers", default=None))
    print_provider_list(providers)
    return providers


@pytest.fixture(scope="session")
def probe_session():
    """
    Insecure, non-redirect-following HTML session shared by all probes.

    Closed at the end of the test session.
    """
    session = create_session()
    yield session
    session.close()


# =============================================================================
# MOCK SERVER FIXTURES
# =============================================================================

@pytest.fixture
def default_providers():
    """The three default providers as IdentityProvider instances"""
    return [IdentityProvider(name=name) for name in DEFAULT_PROVIDER_NAMES]


@pytest.fixture
def mock_console(request, default_providers):
    """
    Mock OAuth login server serving the default providers.

    Marker Options:
        @pytest.mark.mock_console(missing_link=True)  # Enable non-conformance flags

    Yields:
        MockConsoleServer: Running server; use .base_url and .asset_url
    """
    marker = request.node.get_closest_marker("mock_console")
    non_conformances = dict(marker.kwargs) if marker else {}

    if non_conformances:
        logger.info(f"Mock console non-conformances: {non_conformances}")

    with MockConsoleServer([p.name for p in default_providers], non_conformances) as server:
        yield server


def pytest_addoption(parser):
    """Add custom command-line options"""
    parser.addoption(
        "--master-public-url",
        action="store",
        default=None,
        help="Public URL of the OAuth server under test (env: MASTER_PUBLIC_URL)"
    )
    parser.addoption(
        "--asset-public-url",
        action="store",
        default=None,
        help="Public URL of the console used as redirect_uri (default: <master>/console/)"
    )
    parser.addoption(
        "--identity-providers",
        action="store",
        default=None,
        help="JSON list of configured identity providers (env: IDENTITY_PROVIDERS)"
    )
    parser.addoption(
        "--oauth-client-id",
        action="store",
        default=None,
        help="OAuth client rendering the selection page (default: openshift-web-console)"
    )
    parser.addoption(
        "--oauth-response-type",
        action="store",
        default=None,
        help="OAuth response type on the authorize URL (env: OAUTH_RESPONSE_TYPE, default: token)"
    )
    parser.addoption(
        "--probe-timeout",
        action="store",
        default=None,
        help="Per-request timeout in seconds (default: 30)"
    )


def pytest_configure(config):
    """Configure pytest with custom settings"""
    # Register custom markers
    config.addinivalue_line("markers", "quick: Quick tests that run in <5 seconds")
    config.addinivalue_line("markers", "smoke: Smoke tests against a live OAuth server")
    config.addinivalue_line("markers", "readonly: Tests that only issue GET requests")
    config.addinivalue_line("markers", "oauth_redirect: OAuth redirect flow tests")
    config.addinivalue_line("markers", "integration: Tests against the in-process mock server")
    config.addinivalue_line("markers", "mock_console(**flags): Non-conformance flags for the mock server")

    # Allure report metadata (environment properties)
    allure_dir = getattr(config.option, "allure_report_dir", None) or "allure-results"
    allure_env_path = Path(allure_dir) / "environment.properties"
    allure_env_path.parent.mkdir(parents=True, exist_ok=True)
    with open(allure_env_path, "w") as f:
        f.write(f"Project=IdP Login Selection Verifier\n")
        f.write(f"Environment={os.getenv('MASTER_PUBLIC_URL', 'Mock server only')}\n")
        f.write(f"Tester={os.getenv('USER', 'CI/CD Pipeline')}\n")
        f.write(f"Branch={os.getenv('GIT_BRANCH', 'N/A')}\n")
        f.write(f"Commit={os.getenv('GIT_COMMIT', 'N/A')}\n")
        f.write(f"Python.version={sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}\n")


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers dynamically"""
    for item in items:
        # Add 'smoke' marker to all tests in tests/smoke/
        if "tests/smoke" in str(item.path):
            item.add_marker(pytest.mark.smoke)
        # Add 'integration' marker to all tests in tests/integration/
        elif "tests/integration" in str(item.path):
            item.add_marker(pytest.mark.integration)


def pytest_terminal_summary(terminalreporter, exitstatus, config):
    """Custom terminal summary"""
    terminalreporter.section("Summary", sep="=", bold=True)
    passed = len(terminalreporter.stats.get("passed", []))
    failed = len(terminalreporter.stats.get("failed", []))
    skipped = len(terminalreporter.stats.get("skipped", []))

    terminalreporter.write_line(f"Passed: {passed}")
    terminalreporter.write_line(f"Failed: {failed}")
    terminalreporter.write_line(f"Skipped: {skipped}")
