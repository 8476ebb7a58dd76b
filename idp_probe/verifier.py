"""Runs a full login selection verification against a live server.

Phases, each run once:

1. Build expectations from the provider list
2. Probe the selection page and look for every provider's link
3. Probe every expected URL and compare status and redirect
4. Return the report; nothing is raised for mismatches

Every URL owns its own ``UrlCheck`` so problems always stay attached to the
request that produced them, and one unreachable URL never hides the rest.
"""
import logging

from idp_probe.constants import (
    BODY_EXCERPT_LIMIT,
    DEFAULT_CLIENT_ID,
    DEFAULT_RESPONSE_TYPE,
    DEFAULT_TIMEOUT,
    SELECTION_PAGE_STATUS,
)
from idp_probe.exceptions import TransportFault, VerificationFailed
from idp_probe.expectations import build_expectations, selection_page_url
from idp_probe.models import UrlCheck, VerificationReport
from idp_probe.probe import create_session, probe_url

logger = logging.getLogger(__name__)


def _compare(check, result):
    """Record status and redirect mismatches of a probe result on its check."""
    check.status_code = result.status_code
    check.location = result.location

    if result.status_code != check.expected_status:
        check.problems.append(f"expected status {check.expected_status}, got {result.status_code}")

    if result.location != check.expected_location:
        check.problems.append(
            f"expected redirect to {check.expected_location!r}, got {result.location!r}"
        )


def _check_url(url, expected_status, expected_location, session, timeout):
    """Probe one URL into a fresh check; returns (check, ProbeResult or None)."""
    check = UrlCheck(url=url, expected_status=expected_status, expected_location=expected_location)
    try:
        result = probe_url(url, session=session, timeout=timeout)
    except TransportFault as e:
        check.problems.append(f"request failed: {e.cause}")
        logger.info(f"   ✗ {url}\n      {check.problems[-1]}")
        return check, None

    _compare(check, result)
    if check.passed:
        logger.info(f"   ✓ {result.status_code} {url}")
    else:
        logger.info(f"   ✗ {url}")
        for problem in check.problems:
            logger.info(f"      {problem}")
    return check, result


def _body_excerpt(text, limit=BODY_EXCERPT_LIMIT):
    if len(text) <= limit:
        return text
    return text[:limit] + f"... ({len(text) - limit} more characters)"


def verify_login_selection(
    providers,
    master_public_url,
    asset_public_url,
    session=None,
    client_id=DEFAULT_CLIENT_ID,
    response_type=DEFAULT_RESPONSE_TYPE,
    timeout=DEFAULT_TIMEOUT,
    allow_overwrite=False,
):
    """
    Verify the selection page, provider redirects and login pages.

    Args:
        providers: List of IdentityProvider, in configuration order
        master_public_url: Public URL of the OAuth server
        asset_public_url: Public URL of the console (redirect_uri)
        session: Shared requests session (default: insecure HTML session,
            closed again before returning)
        client_id: OAuth client whose authorize URL renders the page
        response_type: OAuth response type on the authorize URL (default: token)
        timeout: Per-request timeout in seconds (default: 30)
        allow_overwrite: Last-write-wins on colliding URLs instead of raising

    Returns:
        VerificationReport: One check per probed URL plus link problems

    Raises:
        EnvironmentFault: If the escaping oracle is broken
        DuplicateExpectationError: If two expectations share a URL
    """
    report = VerificationReport()

    logger.info(f"\n🔍 Building expectations for {len(providers)} identity provider(s)...")
    expectations, link_patterns = build_expectations(
        providers,
        master_public_url,
        asset_public_url,
        client_id=client_id,
        response_type=response_type,
        allow_overwrite=allow_overwrite,
    )

    owns_session = session is None
    if owns_session:
        session = create_session()

    try:
        page_url = selection_page_url(
            master_public_url, asset_public_url, client_id=client_id, response_type=response_type,
        )
        logger.info(f"\n🔍 Probing selection page...")
        page_check, page = _check_url(page_url, SELECTION_PAGE_STATUS, "", session, timeout)
        report.checks.append(page_check)

        if page is None:
            report.pattern_problems.append(
                f"{page_url}: selection page unavailable, {len(link_patterns)} provider link(s) not checked"
            )
        else:
            body = page.text
            for link in link_patterns:
                if link.matches(body):
                    logger.info(f"   ✓ link for {link.provider!r}")
                    continue
                logger.info(f"   ✗ link for {link.provider!r} not found")
                report.pattern_problems.append(
                    f"{page_url}: pattern not found in body: {link.pattern}\n"
                    f"      body: {_body_excerpt(body)}"
                )

        logger.info(f"\n🔍 Probing {len(expectations)} expected URL(s)...")
        for expectation in expectations:
            check, _ = _check_url(
                expectation.url,
                expectation.expected_status,
                expectation.expected_location,
                session,
                timeout,
            )
            report.checks.append(check)
    finally:
        if owns_session:
            session.close()

    if report.passed:
        logger.info(f"\n✓ All {len(report.checks)} URL(s) and {len(link_patterns)} link(s) as expected")
    else:
        logger.info(f"\n✗ {len(report.problems)} problem(s) found")

    return report


def assert_report(report):
    """Raise VerificationFailed listing every problem in the report."""
    if not report.passed:
        raise VerificationFailed(report.problems)
