#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/page2mhtml/content_ids.py
"""Frame to Content-ID mapping.

The content-id table is the encoder's only handle on frame identity. It is
built once per session, before any part is written, and covers every frame
that will appear in the archive.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from typing import Iterable, Iterator, Union
from urllib.parse import quote

from page2mhtml.constants import CID_SAFE_CHARS, CID_SCHEME, DEFAULT_CONTENT_ID_DOMAIN
from page2mhtml.exceptions import MissingContentIdError, ValidationError
from page2mhtml.models import FrameId

logger = logging.getLogger(__name__)

ContentIdSource = Union[Mapping[FrameId, str], Iterable[tuple[FrameId, str]]]


def normalize_content_id(content_id: str) -> str:
    """Return the bare ``addr-spec`` form of a content id.

    Accepts either ``abc@host`` or the RFC 2822 msg-id form ``<abc@host>``.

    Raises
    ------
    ValidationError
        If the id is empty or cannot be written into a header

    """
    value = content_id.strip()
    if len(value) >= 2 and value.startswith("<") and value.endswith(">"):
        value = value[1:-1]

    if not value:
        raise ValidationError("Content-ID must not be empty", parameter_name="content_id", parameter_value=content_id)
    if any(ch in value for ch in "<>\r\n") or any(ch.isspace() for ch in value):
        raise ValidationError(
            f"Content-ID {content_id!r} contains characters not allowed in a msg-id",
            parameter_name="content_id",
            parameter_value=content_id,
        )
    return value


def content_id_to_uri(content_id: str) -> str:
    """Convert a content id to the ``cid:`` URI that references it.

    See RFC 2392 and RFC 2557 section 8.3: the URI is the msg-id without its
    angle brackets, with URI-reserved characters percent-escaped.

    Examples
    --------
        >>> content_id_to_uri("<frame-1@mhtml.example>")
        'cid:frame-1@mhtml.example'

    """
    return CID_SCHEME + quote(normalize_content_id(content_id), safe=CID_SAFE_CHARS)


class ContentIdTable(Mapping):
    """Immutable mapping from FrameId to bare content-id string.

    Parameters
    ----------
    entries : mapping or iterable of (FrameId, str)
        Content ids per frame, bare or in ``<...>`` form

    Raises
    ------
    ValidationError
        If an id is malformed or two frames share the same id

    """

    def __init__(self, entries: ContentIdSource = ()):
        """Normalize and freeze the entries."""
        items = entries.items() if isinstance(entries, Mapping) else entries
        table: dict[FrameId, str] = {}
        seen: dict[str, FrameId] = {}
        for frame_id, content_id in items:
            normalized = normalize_content_id(content_id)
            if normalized in seen and seen[normalized] != frame_id:
                raise ValidationError(
                    f"Frames {seen[normalized]!r} and {frame_id!r} share Content-ID {normalized!r}",
                    parameter_name="content_id",
                    parameter_value=normalized,
                )
            seen[normalized] = frame_id
            table[frame_id] = normalized
        self._table = table

    @classmethod
    def generate(cls, frame_ids: Iterable[FrameId], domain: str = DEFAULT_CONTENT_ID_DOMAIN) -> ContentIdTable:
        """Mint a unique content id for each frame.

        Ids have the form ``frame-<frame id>-<uuid4>@<domain>``.
        """
        return cls((frame_id, f"frame-{frame_id}-{uuid.uuid4()}@{domain}") for frame_id in frame_ids)

    def lookup(self, frame_id: FrameId) -> str:
        """Return the content id of ``frame_id``.

        Raises
        ------
        MissingContentIdError
            If the frame has no entry. This is a caller bug: the frame is part
            of the archive but was left out of the table.

        """
        try:
            return self._table[frame_id]
        except KeyError:
            logger.debug("Content-ID lookup miss for frame %r (%d entries)", frame_id, len(self._table))
            raise MissingContentIdError(frame_id) from None

    def uri_for(self, frame_id: FrameId) -> str:
        """Return the ``cid:`` URI of ``frame_id``."""
        return content_id_to_uri(self.lookup(frame_id))

    def __getitem__(self, frame_id: FrameId) -> str:
        return self._table[frame_id]

    def __iter__(self) -> Iterator[FrameId]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._table!r})"
