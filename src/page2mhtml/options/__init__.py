"""Configuration options for page2mhtml.

This package contains the frozen dataclass options used by the archive
encoder.
"""

from page2mhtml.options.base import BaseEncoderOptions, CloneFrozenMixin
from page2mhtml.options.mhtml import MhtmlArchiveOptions

__all__ = [
    "BaseEncoderOptions",
    "CloneFrozenMixin",
    "MhtmlArchiveOptions",
]
