"""Expected redirects and selection page links for a set of identity providers.

Two different encodings are in play for the same provider name:

- as the ``idp`` query value on the authorize URL (``+`` for spaces,
  everything outside the unreserved set percent-encoded), and
- as a path segment of the login page the authorize URL redirects to
  (``%20`` for spaces, path-reserved characters such as ``@`` and ``&`` kept).

The selection page then embeds the query form inside an ``href`` attribute,
so its ``&`` separators show up as ``&amp;``.
"""
import logging
import posixpath
import re
from typing import List, Tuple
from urllib.parse import quote, quote_plus, urlencode

from idp_probe.constants import (
    AUTHORIZE_PATH,
    BARE_LOGIN_STATUS,
    DEFAULT_CLIENT_ID,
    DEFAULT_RESPONSE_TYPE,
    ENCODED_ROOT,
    LOGIN_PAGE_STATUS,
    LOGIN_PATH,
    PATH_SAFE_CHARS,
    PROVIDER_REDIRECT_STATUS,
)
from idp_probe.escaping import escape_attribute
from idp_probe.models import Expectation, ExpectationMap, IdentityProvider, LinkPattern

logger = logging.getLogger(__name__)


def login_selector_base(asset_public_url, client_id=DEFAULT_CLIENT_ID, response_type=DEFAULT_RESPONSE_TYPE):
    """Authorize path and query that renders the provider selection page."""
    return (
        f"{AUTHORIZE_PATH}?client_id={client_id}&response_type={response_type}"
        f"&state={ENCODED_ROOT}&redirect_uri={quote_plus(asset_public_url)}"
    )


def selection_page_url(master_public_url, asset_public_url, client_id=DEFAULT_CLIENT_ID,
                       response_type=DEFAULT_RESPONSE_TYPE):
    """Absolute URL of the provider selection page."""
    return master_public_url.rstrip("/") + login_selector_base(asset_public_url, client_id, response_type)


def idp_query_param(name):
    """``idp=<name>`` with the name query-value encoded."""
    return urlencode({"idp": name})


def login_path(name):
    """
    Login page path for a provider: ``/login/<name>`` path-encoded.

    The name is joined and cleaned like a POSIX path before encoding, so an
    empty name yields ``/login`` and ``..`` segments are resolved.
    """
    joined = posixpath.normpath(f"{LOGIN_PATH}/{name}")
    return quote(joined, safe=PATH_SAFE_CHARS)


def link_pattern_for(name):
    """
    Regular expression for the provider's link on the selection page.

    The ``idp`` parameter may be preceded by other escaped query parameters and
    must be followed by another escaped ``&`` or the closing attribute quote.
    """
    escaped_param = escape_attribute(idp_query_param(name))
    pattern = rf'{re.escape(AUTHORIZE_PATH)}\?(.*&amp;)?{re.escape(escaped_param)}(&amp;|")'
    return LinkPattern(provider=name, pattern=pattern)


def build_expectations(
    providers: List[IdentityProvider],
    master_public_url: str,
    asset_public_url: str,
    client_id: str = DEFAULT_CLIENT_ID,
    response_type: str = DEFAULT_RESPONSE_TYPE,
    allow_overwrite: bool = False,
) -> Tuple[ExpectationMap, List[LinkPattern]]:
    """
    Build the URL expectations and selection page link patterns.

    For every provider two URLs are expected: its selection URL redirecting
    to its login page, and that login page rendering with ``then=%2F``.
    The bare login path is always expected to be missing.

    Args:
        providers: Identity providers in configuration order
        master_public_url: Public URL of the OAuth server (no trailing slash)
        asset_public_url: Public URL of the console, used as redirect_uri
        client_id: OAuth client whose authorize URL is probed
        response_type: OAuth response type on the authorize URL
        allow_overwrite: Let a later URL silently replace an earlier one
            instead of raising ``DuplicateExpectationError``

    Returns:
        tuple: (ExpectationMap, list of LinkPattern, one per provider)
    """
    master_public_url = master_public_url.rstrip("/")

    if len(providers) < 2:
        logger.warning(
            f"⚠ Only {len(providers)} identity provider(s) configured; "
            f"{LOGIN_PATH} is only guaranteed to be missing with two or more"
        )

    expectations = ExpectationMap(allow_overwrite=allow_overwrite)
    link_patterns = []

    expectations.add(Expectation(master_public_url + LOGIN_PATH, BARE_LOGIN_STATUS))

    base = login_selector_base(asset_public_url, client_id, response_type)

    for provider in providers:
        if not provider.used_for_login:
            logger.warning(f"⚠ Provider {provider.name!r} is not used for login but is still expected on the page")

        param = idp_query_param(provider.name)
        provider_login_path = login_path(provider.name)

        expectations.add(Expectation(
            master_public_url + base + "&" + param,
            PROVIDER_REDIRECT_STATUS,
            provider_login_path,
        ))
        expectations.add(Expectation(
            f"{master_public_url}{provider_login_path}?then={ENCODED_ROOT}",
            LOGIN_PAGE_STATUS,
        ))
        link_patterns.append(link_pattern_for(provider.name))

    logger.info(f"✓ Built {len(expectations)} URL expectation(s) and {len(link_patterns)} link pattern(s)")

    return expectations, link_patterns
