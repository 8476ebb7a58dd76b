"""Single-request HTTP probe against the target OAuth server.

The probe never follows redirects: the raw 3xx response is the thing being
checked. Certificate verification is off because test servers run with
self-signed serving certificates.
"""
import logging

import requests
import urllib3

from idp_probe.constants import DEFAULT_TIMEOUT
from idp_probe.exceptions import TransportFault
from idp_probe.models import ProbeResult

logger = logging.getLogger(__name__)


def create_session():
    """
    Build the shared insecure HTML session used for every probe.

    Returns:
        requests.Session: Session with TLS verification disabled and
        ``Accept: text/html`` set
    """
    urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    session = requests.Session()
    session.verify = False
    session.headers.update({"Accept": "text/html"})
    return session


def strip_query(location):
    """Drop everything from the first ``?`` of a Location header value."""
    return (location or "").split("?", 1)[0]


def probe_url(url, session=None, timeout=DEFAULT_TIMEOUT):
    """
    GET a URL once and capture status, redirect target and body.

    Args:
        url: Absolute URL to request
        session: Session from ``create_session()``; a new one is built and
            closed again if omitted
        timeout: Per-request timeout in seconds (default: 30)

    Returns:
        ProbeResult: Status code, query-less ``Location`` and body bytes

    Raises:
        TransportFault: If no response was obtained (refused, timeout, DNS)
    """
    owns_session = session is None
    if owns_session:
        session = create_session()

    logger.debug(f"GET {url}")
    try:
        response = session.get(url, allow_redirects=False, timeout=timeout)
    except requests.exceptions.RequestException as e:
        raise TransportFault(url, e) from e
    finally:
        if owns_session:
            session.close()

    result = ProbeResult(
        url=url,
        status_code=response.status_code,
        location=strip_query(response.headers.get("Location")),
        body=response.content,
    )
    logger.debug(f"  -> {result.status_code} {result.location or '(no redirect)'}")
    return result
