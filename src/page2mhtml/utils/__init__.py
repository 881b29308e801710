#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/page2mhtml/utils/__init__.py
"""Utility modules for page2mhtml package.

This package contains the HTML declaration builders that are embedded
verbatim in saved documents.
"""

from page2mhtml.utils.html_utils import (
    generate_base_tag_declaration,
    generate_mark_of_the_web_declaration,
    generate_meta_charset_declaration,
)

__all__ = [
    "generate_base_tag_declaration",
    "generate_mark_of_the_web_declaration",
    "generate_meta_charset_declaration",
]
