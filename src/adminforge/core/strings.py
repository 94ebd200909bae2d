"""
String utility functions for adminforge.

Slugs for URLs and the stock name-transforms for table and column names.
"""

from __future__ import annotations

import re
import unicodedata


def slugify(text: str) -> str:
    """
    Convert a display name to an ASCII, lowercase, hyphenated slug.

    Non-ASCII letters are folded to their closest ASCII form and dropped
    when there is none. Runs of anything else become a single hyphen.

    Examples:
        >>> slugify("Blog Post")
        'blog-post'
        >>> slugify("Crème Brûlée")
        'creme-brulee'
        >>> slugify("HTTPRequest")
        'httprequest'
    """
    folded = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    folded = re.sub(r"[^a-z0-9]+", "-", folded.lower())
    return folded.strip("-")


def snake_case(name: str) -> str:
    """
    Convert a PascalCase or camelCase name to snake_case.

    Usable as a name-transform for ``setup``.

    Examples:
        >>> snake_case("BlogPost")
        'blog_post'
        >>> snake_case("authorId")
        'author_id'
        >>> snake_case("HTTPRequest")
        'http_request'
    """
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    name = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name)
    return name.lower()


def lower_case(name: str) -> str:
    """Lower-case name-transform, for databases created with unquoted identifiers."""
    return name.lower()
