#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/page2mhtml/models.py
"""Data model for MHTML archive generation.

Every object here is created for a single archive-generation session and
discarded afterwards. Resources and batches are frozen snapshots produced by
the page serializer; the encoder never mutates them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, NewType, Sequence

from page2mhtml.exceptions import ValidationError

FrameId = NewType("FrameId", int)
"""Opaque per-session frame token. Frames sharing a URL still get distinct ids."""


class EncodingPolicy(Enum):
    """Transfer-encoding policy applied uniformly to every resource of a session."""

    DEFAULT = "default"
    FORCE_BINARY = "binary"


class TransferEncoding(Enum):
    """MIME ``Content-Transfer-Encoding`` values, keyed by their header token."""

    SEVEN_BIT = "7bit"
    QUOTED_PRINTABLE = "quoted-printable"
    BASE64 = "base64"
    BINARY = "binary"


class DocumentKind(Enum):
    """Kind of document loaded into a nested frame."""

    HTML = "html"
    XHTML = "xhtml"
    IMAGE = "image"
    PLUGIN = "plugin"
    TEXT = "text"
    OTHER = "other"


@dataclass(frozen=True)
class Resource:
    """One serialized document, stylesheet, image or other subresource.

    Parameters
    ----------
    url : str
        Location of the resource, written verbatim as ``Content-Location``
    media_type : str
        Declared media type, e.g. ``text/html``
    data : bytes
        Raw resource bytes
    text_encoding_name : str or None
        Character set of textual resources, emitted as the ``charset`` parameter

    """

    url: str
    media_type: str
    data: bytes = b""
    text_encoding_name: str | None = None


@dataclass(frozen=True)
class ResourceBatch:
    """Resources produced by serializing one frame.

    The frame's own document is held apart from its subresources so the
    archive can never confuse which part represents the frame itself.

    Parameters
    ----------
    document : Resource
        The frame's document
    subresources : tuple of Resource
        Direct subresources of the document, in serializer order

    """

    document: Resource
    subresources: tuple[Resource, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        """Freeze subresources into a tuple."""
        if not isinstance(self.subresources, tuple):
            object.__setattr__(self, "subresources", tuple(self.subresources))

    @classmethod
    def from_sequence(cls, resources: Sequence[Resource]) -> ResourceBatch:
        """Build a batch from a positional list whose first element is the document.

        Raises
        ------
        ValidationError
            If ``resources`` is empty

        """
        if not resources:
            raise ValidationError(
                "A resource batch needs at least the frame's document", parameter_name="resources", parameter_value=[]
            )
        return cls(document=resources[0], subresources=tuple(resources[1:]))

    def __iter__(self) -> Iterator[Resource]:
        yield self.document
        yield from self.subresources

    def __len__(self) -> int:
        return 1 + len(self.subresources)


@dataclass(frozen=True)
class NestedFrame:
    """The frame hosted by a frame-owner element, as seen by the link rewriter."""

    frame_id: FrameId
    document_kind: DocumentKind = DocumentKind.HTML


@dataclass(frozen=True)
class FrameOwnerElement:
    """A markup element whose content is supplied by a nested frame.

    Parameters
    ----------
    tag_name : str
        Lower-case element name (``iframe``, ``frame``, ``object``, ``embed``)
    content_frame : NestedFrame or None
        The hosted frame, or None when nothing is loaded

    """

    tag_name: str
    content_frame: NestedFrame | None = None
