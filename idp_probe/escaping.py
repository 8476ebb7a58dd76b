"""HTML attribute escaping, computed by rendering rather than by rule.

The selection page is produced by an autoescaping template engine. Instead of
re-implementing its substitutions, the raw string is rendered into a
one-attribute anchor tag with Jinja2 autoescaping and the static text around
it is cut off again. Whatever the renderer does to the value is then exactly
what the verifier expects to find in the page.

The target's attribute escaper goes two characters further than Jinja2's
autoescape: ``+`` becomes ``&#43;`` and NUL becomes U+FFFD. The href
template's ``finalize`` hook applies those on top of the autoescaped value.
"""
from functools import lru_cache

from jinja2 import Environment, TemplateError
from markupsafe import Markup, escape

from idp_probe.exceptions import EnvironmentFault


HREF_PREFIX = '<a href="'
HREF_SUFFIX = '">'

# Substitutions the target makes in attribute values beyond & < > " '
ATTRIBUTE_EXTRA_REPLACEMENTS = (
    ("+", "&#43;"),
    ("\0", "\ufffd"),
)


def _finalize_attribute(value):
    """Autoescape a value and apply the extra attribute substitutions."""
    if isinstance(value, Markup):
        return value

    escaped = str(escape(value))
    for char, replacement in ATTRIBUTE_EXTRA_REPLACEMENTS:
        escaped = escaped.replace(char, replacement)
    return Markup(escaped)


@lru_cache(maxsize=1)
def _href_template():
    env = Environment(autoescape=True, finalize=_finalize_attribute)
    return env.from_string(HREF_PREFIX + "{{ value }}" + HREF_SUFFIX)


def escape_attribute(raw):
    """
    Escape a string the way it appears inside an HTML attribute value.

    ``&``, ``<``, ``>``, ``"``, ``'`` and ``+`` become entities and NUL becomes
    U+FFFD; everything else, Unicode included, passes through. A
    ``markupsafe.Markup`` value is already safe and is returned unchanged, so
    an escaped string is never escaped twice.

    Args:
        raw: String to embed in an ``href="..."`` attribute

    Returns:
        str: The escaped substring as the renderer would emit it

    Raises:
        EnvironmentFault: If the template engine cannot render the probe template
    """
    try:
        rendered = _href_template().render(value=raw)
    except TemplateError as e:
        raise EnvironmentFault(f"Cannot render attribute template for {raw!r}: {e}") from e

    if not (rendered.startswith(HREF_PREFIX) and rendered.endswith(HREF_SUFFIX)):
        raise EnvironmentFault(f"Attribute template rendered unexpected output: {rendered!r}")

    return rendered[len(HREF_PREFIX):len(rendered) - len(HREF_SUFFIX)]
