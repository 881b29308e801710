#  Copyright (c) 2025 Tom Villani, Ph.D.

# src/page2mhtml/options/mhtml.py
"""Configuration options for MHTML archive encoding.

This module defines options for writing MHTML (MIME HTML) web archives.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from page2mhtml.constants import (
    DEFAULT_CHECK_BOUNDARY_COLLISIONS,
    DEFAULT_EMIT_CONTENT_IDS,
    DEFAULT_SAVED_BY,
)
from page2mhtml.models import EncodingPolicy
from page2mhtml.options.base import BaseEncoderOptions


@dataclass(frozen=True)
class MhtmlArchiveOptions(BaseEncoderOptions):
    """Configuration options for MHTML archive generation.

    One instance is chosen per archive-generation session and applied to
    every part of that session.

    Parameters
    ----------
    encoding_policy : EncodingPolicy, default EncodingPolicy.DEFAULT
        ``DEFAULT`` writes text-like resources as quoted-printable and
        everything else as base64. ``FORCE_BINARY`` copies every body through
        unmodified.
    max_line_length : int, default 76
        Maximum length of encoded body lines, excluding CRLF.
    emit_content_ids : bool, default True
        Write a ``Content-ID`` header on each frame's document part.
    check_boundary_collisions : bool, default False
        Scan encoded bodies for the delimiter line and fail on a match.
    saved_by : str, default "<Saved by page2mhtml>"
        Value of the archive's ``From`` header.

    """

    encoding_policy: EncodingPolicy = field(
        default=EncodingPolicy.DEFAULT,
        metadata={
            "help": "Transfer encoding policy: 'default' (quoted-printable/base64) or 'binary'",
            "importance": "core",
        },
    )
    emit_content_ids: bool = field(
        default=DEFAULT_EMIT_CONTENT_IDS,
        metadata={
            "help": "Write Content-ID headers on frame document parts",
            "importance": "advanced",
        },
    )
    check_boundary_collisions: bool = field(
        default=DEFAULT_CHECK_BOUNDARY_COLLISIONS,
        metadata={
            "help": "Fail when an encoded part body contains the multipart delimiter",
            "importance": "security",
        },
    )
    saved_by: str = field(
        default=DEFAULT_SAVED_BY,
        metadata={"help": "Value written to the archive's From header", "importance": "advanced"},
    )

    def __post_init__(self) -> None:
        """Validate option values.

        Raises
        ------
        ValueError
            If any field value is outside its valid range.

        """
        super().__post_init__()

        if isinstance(self.encoding_policy, str):
            object.__setattr__(self, "encoding_policy", EncodingPolicy(self.encoding_policy))

        if "\r" in self.saved_by or "\n" in self.saved_by:
            raise ValueError("saved_by must be a single header line")
