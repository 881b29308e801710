#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/page2mhtml/utils/html_utils.py
"""HTML declaration builders embedded verbatim in saved documents."""

from __future__ import annotations

from page2mhtml.constants import MARK_OF_THE_WEB_TEMPLATE
from page2mhtml.exceptions import ValidationError


def _check_attribute_value(name: str, value: str) -> str:
    # Values are written verbatim inside double-quoted attributes
    if '"' in value:
        raise ValidationError(
            f"{name} must not contain a double quote: {value!r}", parameter_name=name, parameter_value=value
        )
    return value


def generate_meta_charset_declaration(charset: str) -> str:
    """Return a ``<meta>`` tag declaring ``text/html`` in ``charset``.

    The charset is written verbatim.

    Raises
    ------
    ValidationError
        If ``charset`` contains a double quote

    Examples
    --------
        >>> generate_meta_charset_declaration("utf-8")
        '<meta http-equiv="Content-Type" content="text/html; charset=utf-8">'

    """
    charset = _check_attribute_value("charset", charset)
    return f'<meta http-equiv="Content-Type" content="text/html; charset={charset}">'


def mark_of_the_web(url: str) -> str:
    """Return the bare ``saved from url=(NNNN)<url>`` marker.

    NNNN is the zero-padded length of the UTF-8 encoded URL.
    """
    return MARK_OF_THE_WEB_TEMPLATE.format(length=len(url.encode("utf-8")), url=url)


def generate_mark_of_the_web_declaration(url: str) -> str:
    """Return the mark of the web wrapped in an HTML comment on its own line.

    Operating systems read this comment to apply the security zone of
    ``url`` to the saved file, so the marker must be written exactly.

    Examples
    --------
        >>> generate_mark_of_the_web_declaration("http://www.example.com/")
        '\\n<!-- saved from url=(0023)http://www.example.com/ -->\\n'

    """
    return f"\n<!-- {mark_of_the_web(url)} -->\n"


def generate_base_tag_declaration(target: str = "") -> str:
    """Return a ``<base>`` tag resolving relative links against the archive root.

    ``target`` is written verbatim; a double quote raises ``ValidationError``.
    """
    if not target:
        return '<base href=".">'
    return f'<base href="." target="{_check_attribute_value("target", target)}">'


__all__ = [
    "generate_base_tag_declaration",
    "generate_mark_of_the_web_declaration",
    "generate_meta_charset_declaration",
    "mark_of_the_web",
]
