"""
Run settings for the verifier.

Every setting is resolved with the same priority: explicit value (usually a
pytest command-line option) > environment variable > default.

Environment Variables:
    MASTER_PUBLIC_URL: Public URL of the OAuth server (no default)
    ASSET_PUBLIC_URL: Public URL of the console (default: <master>/console/)
    IDENTITY_PROVIDERS: JSON list of provider names or provider objects
    OAUTH_CLIENT_ID: OAuth client rendering the selection page
    OAUTH_RESPONSE_TYPE: OAuth response type on the authorize URL
    PROBE_TIMEOUT: Per-request timeout in seconds
"""
import json
import logging
import os

from idp_probe.constants import DEFAULT_CLIENT_ID, DEFAULT_PROVIDER_NAMES, DEFAULT_RESPONSE_TYPE, DEFAULT_TIMEOUT
from idp_probe.exceptions import ConfigurationError
from idp_probe.models import IdentityProvider

logger = logging.getLogger(__name__)


def _resolve(value, env_var, default=None):
    if value:
        return value
    env_value = os.getenv(env_var)
    if env_value:
        return env_value
    return default


def resolve_master_public_url(value=None):
    """Master public URL without trailing slash, or None if not configured."""
    url = _resolve(value, "MASTER_PUBLIC_URL")
    return url.rstrip("/") if url else None


def resolve_asset_public_url(master_public_url, value=None):
    """Console URL; defaults to the console path on the master."""
    return _resolve(value, "ASSET_PUBLIC_URL", f"{master_public_url}/console/")


def resolve_client_id(value=None):
    return _resolve(value, "OAUTH_CLIENT_ID", DEFAULT_CLIENT_ID)


def resolve_response_type(value=None):
    return _resolve(value, "OAUTH_RESPONSE_TYPE", DEFAULT_RESPONSE_TYPE)


def resolve_timeout(value=None):
    raw = _resolve(value, "PROBE_TIMEOUT", DEFAULT_TIMEOUT)
    try:
        timeout = float(raw)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Probe timeout must be a number, got {raw!r}")
    if timeout <= 0:
        raise ConfigurationError(f"Probe timeout must be positive, got {raw!r}")
    return timeout


def _flag_from_entry(entry, key, index):
    value = entry.get(key, True)
    if not isinstance(value, bool):
        raise ConfigurationError(f"Identity provider #{index} '{key}' must be true or false, got {value!r}")
    return value


def _provider_from_entry(entry, index):
    if isinstance(entry, str):
        return IdentityProvider(name=entry)

    if isinstance(entry, dict):
        if not isinstance(entry.get("name"), str):
            raise ConfigurationError(f"Identity provider #{index} has no string 'name': {entry!r}")
        return IdentityProvider(
            name=entry["name"],
            used_for_login=_flag_from_entry(entry, "usedForLogin", index),
            used_for_challenge=_flag_from_entry(entry, "usedForChallenge", index),
        )

    raise ConfigurationError(f"Identity provider #{index} must be a string or object, got {entry!r}")


def parse_identity_providers(raw):
    """
    Parse a JSON provider list.

    Accepts ``["foo", "bar"]`` or objects with ``name``, ``usedForLogin`` and
    ``usedForChallenge`` keys; both forms may be mixed. A JSON list is used
    because provider names may themselves contain commas.

    Args:
        raw: JSON text

    Returns:
        list: IdentityProvider instances in the given order

    Raises:
        ConfigurationError: If the text is not a JSON list of valid entries
    """
    try:
        entries = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Identity providers are not valid JSON: {e}") from e

    if not isinstance(entries, list):
        raise ConfigurationError(f"Identity providers must be a JSON list, got {type(entries).__name__}")

    return [_provider_from_entry(entry, index) for index, entry in enumerate(entries, 1)]


def resolve_identity_providers(value=None):
    """Configured providers, or the default foo/bar/Unicode trio."""
    raw = _resolve(value, "IDENTITY_PROVIDERS")
    if raw is None:
        return [IdentityProvider(name=name) for name in DEFAULT_PROVIDER_NAMES]

    providers = parse_identity_providers(raw)
    logger.info(f"Using {len(providers)} configured identity provider(s)")
    return providers
