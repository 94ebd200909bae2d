"""
Declarative field tag parser.

A tag is a compact option string attached to a record attribute::

    label=Title,list,Field=url

Tokens are separated by commas. Each token is either ``key=value`` or a bare
``key`` flag. Which keys mean something is up to the field variants; this
module only checks syntax.
"""

from __future__ import annotations

from .errors import MalformedAnnotation

# Value stored for bare flag keys such as ``list``
PRESENT = ""

# A tag that is exactly this string removes the attribute from the model
SKIP = "-"


def parse_tag(raw: str) -> dict[str, str]:
    """
    Parse a tag string into an option mapping.

    Args:
        raw: Tag string, e.g. ``"label=Title,list"``

    Returns:
        Mapping of option key to value; flag keys map to ``PRESENT``

    Raises:
        MalformedAnnotation: on empty tokens, empty keys or values,
            tokens with more than one ``=``, or repeated keys

    Examples:
        >>> parse_tag("label=Title,list")
        {'label': 'Title', 'list': ''}
        >>> parse_tag("")
        {}
    """
    if not raw.strip():
        return {}

    options: dict[str, str] = {}
    for token in raw.split(","):
        token = token.strip()
        if not token:
            raise MalformedAnnotation("empty option", raw)

        if token.count("=") > 1:
            raise MalformedAnnotation(f"unbalanced option {token!r}", raw)

        if "=" in token:
            key, value = (part.strip() for part in token.split("="))
            if not value:
                raise MalformedAnnotation(f"option {key!r} has no value", raw)
        else:
            key, value = token, PRESENT

        if not key:
            raise MalformedAnnotation(f"option {token!r} has no key", raw)
        if key in options:
            raise MalformedAnnotation(f"option {key!r} given twice", raw)

        options[key] = value

    return options
