#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Constants and default values for page2mhtml.

This module centralizes the hardcoded values used when writing MHTML
archives. Constants are organized by category:

1. Type Definitions - Literal types and type aliases
2. MIME Framing - line endings, header values and line-length limits
3. Encoding Selection - media types treated as text
4. Link Rewriting - frame-owner elements and suppressed attributes
5. Declarations - strings embedded verbatim in saved markup
"""

from __future__ import annotations

import string
from typing import Literal

# =============================================================================
# Type Definitions
# =============================================================================

FrameOwnerTagName = Literal["iframe", "frame", "object", "embed"]

# =============================================================================
# MIME Framing
# =============================================================================

CRLF = b"\r\n"

DEFAULT_SAVED_BY = "<Saved by page2mhtml>"
MIME_VERSION = "1.0"

# RFC 2045 section 6.7 / 6.8: encoded lines must not exceed 76 characters
DEFAULT_MAX_LINE_LENGTH = 76
MIN_MAX_LINE_LENGTH = 4
# RFC 5322 section 2.1.1 hard limit, excluding CRLF
MAX_MAX_LINE_LENGTH = 998

DEFAULT_EMIT_CONTENT_IDS = True
DEFAULT_CHECK_BOUNDARY_COLLISIONS = False

# RFC 2046 section 5.1.1
MAX_BOUNDARY_LENGTH = 70
BOUNDARY_CHARS = frozenset(string.ascii_letters + string.digits + "'()+_,-./:=? ")
BOUNDARY_PREFIX = "----MultipartBoundary--"

DEFAULT_CONTENT_ID_DOMAIN = "mhtml.page2mhtml"

# =============================================================================
# Encoding Selection
# =============================================================================

TEXT_MEDIA_TYPE_PREFIX = "text/"

TEXT_LIKE_MEDIA_TYPES = frozenset(
    {
        "application/ecmascript",
        "application/javascript",
        "application/x-ecmascript",
        "application/x-javascript",
        "application/json",
        "application/xml",
        "application/xhtml+xml",
        "application/rss+xml",
        "application/atom+xml",
        "image/svg+xml",
        "message/rfc822",
        "multipart/related",
    }
)

TEXT_LIKE_MEDIA_TYPE_SUFFIXES = ("+xml", "+json")

# =============================================================================
# Link Rewriting
# =============================================================================

FRAME_ELEMENT_TAGS = frozenset({"iframe", "frame"})
# Elements whose fallback content renders only when embedding fails
FALLBACK_CONTENT_ELEMENT_TAGS = frozenset({"object"})
FRAME_OWNER_TAGS = FRAME_ELEMENT_TAGS | FALLBACK_CONTENT_ELEMENT_TAGS | {"embed"}

# Attribute carrying the frame's URL for each frame-owner element
FRAME_OWNER_URL_ATTRIBUTES: dict[str, str] = {
    "iframe": "src",
    "frame": "src",
    "embed": "src",
    "object": "data",
}

# Responsive-image candidate lists only pull the ``src`` image into the archive,
# so readers that honour them would reach for live network resources.
SUPPRESSED_ATTRIBUTES = frozenset({"srcset"})

CID_SCHEME = "cid:"
# RFC 3986 unreserved + sub-delims + ":" and "@" (pchar)
CID_SAFE_CHARS = "-._~!$&'()*+,;=:@"

# =============================================================================
# Declarations
# =============================================================================

MARK_OF_THE_WEB_TEMPLATE = "saved from url=({length:04d}){url}"
