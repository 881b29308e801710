"""Base classes for encoder options.

This module defines the foundation classes for the immutable configuration
objects used throughout page2mhtml.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field, replace
from typing import Any

from page2mhtml.constants import DEFAULT_MAX_LINE_LENGTH, MAX_MAX_LINE_LENGTH, MIN_MAX_LINE_LENGTH

if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self


@dataclass(frozen=True)
class CloneFrozenMixin:
    """Mixin providing frozen dataclass cloning capabilities.

    This mixin adds the ability to create modified copies of frozen dataclass
    instances, which is useful for immutable configuration objects.
    """

    def create_updated(self, **kwargs: Any) -> Self:
        """Create a new instance with updated field values.

        Parameters
        ----------
        **kwargs : Any
            Field names and their new values

        Returns
        -------
        Self
            New instance with specified fields updated

        """
        return replace(self, **kwargs)


@dataclass(frozen=True)
class BaseEncoderOptions(CloneFrozenMixin):
    """Base class for all encoder options.

    Parameters
    ----------
    max_line_length : int, default 76
        Maximum length of encoded body lines, excluding CRLF. Must lie
        between 4 and 998, the MIME line limit.

    Notes
    -----
    Subclasses should define format-specific options as frozen dataclass fields
    with a ``help`` entry in the field metadata.

    """

    max_line_length: int = field(
        default=DEFAULT_MAX_LINE_LENGTH,
        metadata={
            "help": "Maximum length of quoted-printable and base64 lines",
            "type": int,
            "importance": "advanced",
        },
    )

    def __post_init__(self) -> None:
        """Validate numeric ranges for base encoder options.

        Raises
        ------
        ValueError
            If any field value is outside its valid range.

        """
        if not MIN_MAX_LINE_LENGTH <= self.max_line_length <= MAX_MAX_LINE_LENGTH:
            raise ValueError(
                f"max_line_length must be between {MIN_MAX_LINE_LENGTH} and {MAX_MAX_LINE_LENGTH}, "
                f"got {self.max_line_length}"
            )
