#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/page2mhtml/archive.py
"""MHTML archive encoder.

This module writes ``multipart/related`` MHTML archives in three phases:

1. :func:`generate_header` once, naming the root document's media type
2. :func:`generate_parts` once per frame, with that frame's resource batch
3. :func:`generate_footer` once, after every frame has been written

Concatenating the three outputs in that order yields the complete archive.
Only the first resource of each batch, the frame's own document, receives a
``Content-ID``; that id is what ``cid:`` links in other frames point at.

The module level functions are stateless. :class:`MhtmlArchiveEncoder` binds
them to a set of options, and :class:`MhtmlArchiveSession` additionally
enforces the phase ordering of a single archive.
"""

from __future__ import annotations

import base64
import logging
import secrets
from datetime import datetime, timezone
from email.header import Header
from email.utils import format_datetime
from typing import Iterable, Optional, Sequence, Union

from page2mhtml.constants import BOUNDARY_CHARS, BOUNDARY_PREFIX, CRLF, MAX_BOUNDARY_LENGTH, MIME_VERSION
from page2mhtml.content_ids import ContentIdTable
from page2mhtml.encoding import encode_body, select_encoding
from page2mhtml.exceptions import (
    ArchiveStateError,
    BoundaryCollisionError,
    InvalidBoundaryError,
    InvalidOptionsError,
    ValidationError,
)
from page2mhtml.models import EncodingPolicy, FrameId, Resource, ResourceBatch, TransferEncoding
from page2mhtml.options.mhtml import MhtmlArchiveOptions

logger = logging.getLogger(__name__)

BatchInput = Union[ResourceBatch, Sequence[Resource]]

_PHASE_NEW = "new"
_PHASE_PARTS = "parts"
_PHASE_CLOSED = "closed"


def generate_boundary() -> str:
    """Create a random boundary of the form ``----MultipartBoundary--<random>----``."""
    token = base64.urlsafe_b64encode(secrets.token_bytes(30)).decode("ascii").rstrip("=")
    return f"{BOUNDARY_PREFIX}{token}----"


def validate_boundary(boundary: str) -> None:
    """Check that ``boundary`` is a legal RFC 2046 boundary.

    Raises
    ------
    InvalidBoundaryError
        If the boundary is empty, longer than 70 characters, contains
        characters outside ``bchars`` or ends with a space

    """
    if not isinstance(boundary, str) or not boundary:
        raise InvalidBoundaryError("Boundary must be a non-empty string", boundary=boundary)
    if len(boundary) > MAX_BOUNDARY_LENGTH:
        raise InvalidBoundaryError(
            f"Boundary must be at most {MAX_BOUNDARY_LENGTH} characters, got {len(boundary)}", boundary=boundary
        )
    invalid = sorted({ch for ch in boundary if ch not in BOUNDARY_CHARS})
    if invalid:
        raise InvalidBoundaryError(f"Boundary contains invalid characters: {invalid!r}", boundary=boundary)
    if boundary.endswith(" "):
        raise InvalidBoundaryError("Boundary must not end with a space", boundary=boundary)


def encode_subject(title: str) -> str:
    """Return ``title`` in a form safe for the ``Subject`` header.

    Printable ASCII titles are returned unchanged. Anything else is written as
    RFC 2047 encoded words so that decoding the header reproduces the title.
    """
    if all(" " <= ch <= "~" for ch in title) and "=?" not in title:
        return title
    return Header(title, "utf-8", header_name="Subject").encode(linesep="\r\n")


def _check_header_value(name: str, value: str) -> str:
    if "\r" in value or "\n" in value:
        raise ValidationError(
            f"{name} value must not contain line breaks: {value!r}", parameter_name=name, parameter_value=value
        )
    return value


def _format_date(date: Optional[datetime]) -> str:
    if date is None:
        date = datetime.now(timezone.utc)
    elif date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    return format_datetime(date)


def _content_type(resource: Resource) -> str:
    media_type = _check_header_value("media_type", resource.media_type)
    if resource.text_encoding_name:
        charset = _check_header_value("text_encoding_name", resource.text_encoding_name)
        return f"{media_type}; charset={charset}"
    return media_type


def _check_collision(body: bytes, boundary: str, url: str) -> None:
    delimiter = b"--" + boundary.encode("ascii")
    for line in body.split(b"\n"):
        if line.lstrip(b"\r").startswith(delimiter):
            raise BoundaryCollisionError(boundary, url)


def generate_header(
    boundary: str,
    title: str,
    root_media_type: str,
    *,
    date: Optional[datetime] = None,
    options: Optional[MhtmlArchiveOptions] = None,
) -> bytes:
    """Generate the archive envelope that precedes the first part.

    Parameters
    ----------
    boundary : str
        Multipart boundary shared by every part of the archive
    title : str
        Document title, written to ``Subject``
    root_media_type : str
        Media type of the root document, written as the ``type`` parameter
    date : datetime, optional
        Save date; defaults to the current UTC time
    options : MhtmlArchiveOptions, optional
        Archive options (only ``saved_by`` is used here)

    Returns
    -------
    bytes
        Header block ending with the blank line that precedes the first part

    Raises
    ------
    InvalidBoundaryError
        If the boundary is not a legal multipart boundary
    ValidationError
        If the media type contains quotes or line breaks

    """
    options = options or MhtmlArchiveOptions()
    validate_boundary(boundary)
    _check_header_value("root_media_type", root_media_type)
    if '"' in root_media_type:
        raise ValidationError(
            "root_media_type must not contain quotes", parameter_name="root_media_type", parameter_value=root_media_type
        )

    lines = [
        f"From: {options.saved_by}",
        f"Subject: {encode_subject(title)}",
        f"Date: {_format_date(date)}",
        f"MIME-Version: {MIME_VERSION}",
        "Content-Type: multipart/related;",
        f'\ttype="{root_media_type}";',
        f'\tboundary="{boundary}"',
        "",
        "",
    ]
    logger.debug("Generated MHTML header for %r (type=%s)", title, root_media_type)
    return "\r\n".join(lines).encode("utf-8")


def _generate_part(
    boundary: str,
    resource: Resource,
    content_id: Optional[str],
    encoding: TransferEncoding,
    options: MhtmlArchiveOptions,
) -> bytes:
    lines = [f"--{boundary}", f"Content-Type: {_content_type(resource)}"]
    if content_id is not None:
        lines.append(f"Content-ID: <{content_id}>")
    lines.append(f"Content-Transfer-Encoding: {encoding.value}")
    lines.append(f"Content-Location: {_check_header_value('url', resource.url)}")
    lines.append("")
    lines.append("")

    body = encode_body(resource.data, encoding, options.max_line_length)
    if options.check_boundary_collisions:
        _check_collision(body, boundary, resource.url)

    logger.debug(
        "Encoded %s (%s, %d bytes) as %s%s",
        resource.url,
        resource.media_type,
        len(resource.data),
        encoding.value,
        f" with Content-ID <{content_id}>" if content_id is not None else "",
    )
    return "\r\n".join(lines).encode("utf-8") + body + CRLF


def generate_parts(
    boundary: str,
    policy: EncodingPolicy,
    content_id_table: ContentIdTable,
    frame_id: FrameId,
    batch: BatchInput,
    *,
    options: Optional[MhtmlArchiveOptions] = None,
) -> bytes:
    """Generate one MIME part per resource of a frame's batch.

    Parameters
    ----------
    boundary : str
        Multipart boundary given to :func:`generate_header`
    policy : EncodingPolicy
        Transfer-encoding policy for every resource of the session
    content_id_table : ContentIdTable
        Content ids for every frame of the archive
    frame_id : FrameId
        The frame whose batch is being written
    batch : ResourceBatch or sequence of Resource
        The frame's document followed by its subresources
    options : MhtmlArchiveOptions, optional
        Archive options; ``encoding_policy`` is ignored in favour of ``policy``

    Returns
    -------
    bytes
        The encoded parts, each starting with its ``--boundary`` line

    Raises
    ------
    MissingContentIdError
        If ``frame_id`` has no entry in ``content_id_table``
    InvalidBoundaryError
        If the boundary is not a legal multipart boundary
    BoundaryCollisionError
        If collision checks are enabled and a body contains the delimiter

    """
    options = options or MhtmlArchiveOptions()
    validate_boundary(boundary)
    if not isinstance(batch, ResourceBatch):
        batch = ResourceBatch.from_sequence(batch)

    # Resolved before any output so a missing entry never yields a partial batch
    content_id = content_id_table.lookup(frame_id) if options.emit_content_ids else None

    output = bytearray()
    for index, resource in enumerate(batch):
        encoding = select_encoding(resource.media_type, policy)
        output += _generate_part(boundary, resource, content_id if index == 0 else None, encoding, options)

    logger.debug("Generated %d MHTML part(s) for frame %r", len(batch), frame_id)
    return bytes(output)


def generate_footer(boundary: str) -> bytes:
    """Generate the closing ``--boundary--`` delimiter.

    Raises
    ------
    InvalidBoundaryError
        If the boundary is not a legal multipart boundary

    """
    validate_boundary(boundary)
    return f"--{boundary}--".encode("ascii") + CRLF


class MhtmlArchiveEncoder:
    """Archive encoder bound to a set of options.

    Parameters
    ----------
    options : MhtmlArchiveOptions or None
        Archive options; defaults are used when None

    Examples
    --------
        >>> encoder = MhtmlArchiveEncoder()
        >>> table = ContentIdTable({FrameId(0): "root@example"})
        >>> batch = ResourceBatch(Resource("http://example.com/", "text/html", b"<p>hi</p>"))
        >>> archive = (
        ...     encoder.generate_header("B", "Example", "text/html")
        ...     + encoder.generate_parts("B", table, FrameId(0), batch)
        ...     + encoder.generate_footer("B")
        ... )

    """

    def __init__(self, options: MhtmlArchiveOptions | None = None):
        """Initialize the encoder with options."""
        self._validate_options_type(options, MhtmlArchiveOptions, "mhtml")
        self.options: MhtmlArchiveOptions = options or MhtmlArchiveOptions()

    @staticmethod
    def _validate_options_type(options: object, expected_type: type, component_name: str) -> None:
        """Raise InvalidOptionsError unless options is None or an ``expected_type`` instance."""
        if options is not None and not isinstance(options, expected_type):
            raise InvalidOptionsError(
                component_name=component_name,
                expected_type=expected_type,
                received_type=type(options),
            )

    def generate_header(
        self, boundary: str, title: str, root_media_type: str, *, date: Optional[datetime] = None
    ) -> bytes:
        """Generate the archive header. See :func:`generate_header`."""
        return generate_header(boundary, title, root_media_type, date=date, options=self.options)

    def generate_parts(
        self, boundary: str, content_id_table: ContentIdTable, frame_id: FrameId, batch: BatchInput
    ) -> bytes:
        """Generate the parts of one frame using the configured policy. See :func:`generate_parts`."""
        return generate_parts(
            boundary, self.options.encoding_policy, content_id_table, frame_id, batch, options=self.options
        )

    def generate_footer(self, boundary: str) -> bytes:
        """Generate the closing delimiter. See :func:`generate_footer`."""
        return generate_footer(boundary)


class MhtmlArchiveSession:
    """A single archive-generation session.

    The session fixes the boundary, content-id table and options for one
    archive and rejects calls made out of order: parts before the header, a
    second header, anything after the footer, or the same frame twice. Each
    call returns only the bytes of its own phase; the caller concatenates
    them.

    Parameters
    ----------
    content_id_table : ContentIdTable
        Content ids for every frame that will be written
    boundary : str, optional
        Multipart boundary; a random one is generated when omitted
    options : MhtmlArchiveOptions, optional
        Archive options

    """

    def __init__(
        self,
        content_id_table: ContentIdTable,
        boundary: str | None = None,
        options: MhtmlArchiveOptions | None = None,
    ):
        """Validate the boundary and start the session."""
        self.encoder = MhtmlArchiveEncoder(options)
        self.boundary = boundary if boundary is not None else generate_boundary()
        validate_boundary(self.boundary)
        self.content_id_table = content_id_table
        self.phase = _PHASE_NEW
        self._written_frames: set[FrameId] = set()
        self.part_count = 0

    @property
    def options(self) -> MhtmlArchiveOptions:
        """Options shared by every phase of the session."""
        return self.encoder.options

    @property
    def written_frames(self) -> frozenset[FrameId]:
        """Frames whose parts have been generated."""
        return frozenset(self._written_frames)

    def generate_header(self, title: str, root_media_type: str, *, date: Optional[datetime] = None) -> bytes:
        """Generate the archive header; must be the first call of the session."""
        if self.phase != _PHASE_NEW:
            raise ArchiveStateError("Archive header has already been generated", phase=self.phase)
        header = self.encoder.generate_header(self.boundary, title, root_media_type, date=date)
        self.phase = _PHASE_PARTS
        return header

    def generate_parts(self, frame_id: FrameId, batch: BatchInput) -> bytes:
        """Generate the parts of one frame; only valid between header and footer."""
        if self.phase == _PHASE_NEW:
            raise ArchiveStateError("Archive parts requested before the header", phase=self.phase)
        if self.phase == _PHASE_CLOSED:
            raise ArchiveStateError("Archive parts requested after the footer", phase=self.phase)
        if frame_id in self._written_frames:
            raise ArchiveStateError(f"Frame {frame_id!r} has already been written to this archive", phase=self.phase)

        parts = self.encoder.generate_parts(self.boundary, self.content_id_table, frame_id, batch)
        self._written_frames.add(frame_id)
        self.part_count += len(batch)
        return parts

    def generate_footer(self) -> bytes:
        """Generate the closing delimiter; ends the session."""
        if self.phase == _PHASE_NEW:
            raise ArchiveStateError("Archive footer requested before the header", phase=self.phase)
        if self.phase == _PHASE_CLOSED:
            raise ArchiveStateError("Archive footer has already been generated", phase=self.phase)
        footer = self.encoder.generate_footer(self.boundary)
        self.phase = _PHASE_CLOSED
        logger.debug(
            "Closed MHTML archive with %d part(s) across %d frame(s)", self.part_count, len(self._written_frames)
        )
        return footer


def build_archive(
    frames: Iterable[tuple[FrameId, BatchInput]],
    title: str,
    *,
    root_media_type: str | None = None,
    boundary: str | None = None,
    content_id_table: ContentIdTable | None = None,
    date: Optional[datetime] = None,
    options: MhtmlArchiveOptions | None = None,
) -> bytes:
    """Write a complete archive in one call.

    Parameters
    ----------
    frames : iterable of (FrameId, batch)
        Frame batches in the order they should appear; the first is the root
    title : str
        Document title
    root_media_type : str, optional
        Defaults to the media type of the first frame's document
    boundary : str, optional
        Defaults to a freshly generated boundary
    content_id_table : ContentIdTable, optional
        Defaults to a generated table covering every frame in ``frames``
    date : datetime, optional
        Save date for the header
    options : MhtmlArchiveOptions, optional
        Archive options

    Returns
    -------
    bytes
        Header, parts and footer concatenated

    Raises
    ------
    ValidationError
        If ``frames`` is empty

    """
    batches = [
        (frame_id, batch if isinstance(batch, ResourceBatch) else ResourceBatch.from_sequence(batch))
        for frame_id, batch in frames
    ]
    if not batches:
        raise ValidationError("An archive needs at least one frame", parameter_name="frames", parameter_value=[])

    if content_id_table is None:
        content_id_table = ContentIdTable.generate(frame_id for frame_id, _ in batches)
    if root_media_type is None:
        root_media_type = batches[0][1].document.media_type

    session = MhtmlArchiveSession(content_id_table, boundary=boundary, options=options)
    output = bytearray(session.generate_header(title, root_media_type, date=date))
    for frame_id, batch in batches:
        output += session.generate_parts(frame_id, batch)
    output += session.generate_footer()
    return bytes(output)
