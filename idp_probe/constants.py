"""Shared constants for the login selection verifier.

Centralizes the OAuth authorize parameters, the static login path policy
and the default provider set used against a fresh server.
"""

# OAuth client the web console registers; its authorize URL renders the
# provider selection page.
DEFAULT_CLIENT_ID = "openshift-web-console"
DEFAULT_RESPONSE_TYPE = "token"

# Already query-encoded "/" used for both the OAuth state and the
# post-login destination.
ENCODED_ROOT = "%2F"

AUTHORIZE_PATH = "/oauth/authorize"
LOGIN_PATH = "/login"

# With several providers the bare login path has no single target.
BARE_LOGIN_STATUS = 404
SELECTION_PAGE_STATUS = 200
PROVIDER_REDIRECT_STATUS = 302
LOGIN_PAGE_STATUS = 200

# Characters Go-style path encoding leaves alone besides the unreserved set.
PATH_SAFE_CHARS = "/:@&=+$,;"

# Per-request timeout in seconds.
DEFAULT_TIMEOUT = 30

# How much of a selection page body is quoted when a link is missing.
BODY_EXCERPT_LIMIT = 2000

# Provider names exercised when no list is configured: two plain names and
# one with a space, Unicode and punctuation.
DEFAULT_PROVIDER_NAMES: list[str] = [
    "foo",
    "bar",
    "Iñtërnâtiônàlizætiøn, !@#$^&*()",
]
