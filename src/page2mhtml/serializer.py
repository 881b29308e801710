#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/page2mhtml/serializer.py
"""Apply the archive link-rewriting policy to HTML markup.

This is a thin adapter for callers that hold a frame's document as HTML text
rather than a live DOM. It drops suppressed attributes, points frame-owner
elements at their archived frames and, on request, adds a meta charset
declaration, producing the :class:`~page2mhtml.models.Resource` that becomes
the first entry of the frame's batch.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Mapping, Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

from page2mhtml.constants import FRAME_OWNER_TAGS, FRAME_OWNER_URL_ATTRIBUTES
from page2mhtml.exceptions import ContractViolationError, DuplicateFrameOwnerError
from page2mhtml.link_rewriter import MhtmlLinkRewriter
from page2mhtml.models import FrameOwnerElement, NestedFrame, Resource
from page2mhtml.utils.html_utils import generate_meta_charset_declaration

logger = logging.getLogger(__name__)

FrameResolver = Callable[[Tag], Optional[NestedFrame]]


def frames_by_url(frames: Mapping[str, NestedFrame]) -> FrameResolver:
    """Build a resolver that finds nested frames by the owner element's URL attribute.

    Frames are identified by their id, not their URL. When two owner elements
    carry the same URL both resolve to the same frame and
    :func:`rewrite_markup` raises :class:`DuplicateFrameOwnerError`; use
    :func:`frames_in_document_order` for such documents.
    """

    def resolve(tag: Tag) -> Optional[NestedFrame]:
        attribute = FRAME_OWNER_URL_ATTRIBUTES.get(tag.name)
        value = tag.get(attribute) if attribute else None
        if not isinstance(value, str):
            return None
        return frames.get(value)

    return resolve


def frames_in_document_order(frames: Iterable[Optional[NestedFrame]]) -> FrameResolver:
    """Build a resolver that hands out nested frames in document order.

    ``frames`` holds one entry per frame-owner element (``iframe``, ``frame``,
    ``object``, ``embed``) in the order they appear in the markup, with None
    for owners that host no frame. The resolver is consumed by a single
    :func:`rewrite_markup` call.

    Raises
    ------
    ContractViolationError
        From the resolver, when the markup has more owner elements than entries

    """
    remaining = iter(frames)

    def resolve(tag: Tag) -> Optional[NestedFrame]:
        try:
            return next(remaining)
        except StopIteration:
            raise ContractViolationError(f"No nested frame entry left for <{tag.name}> element") from None

    return resolve



def _has_charset_declaration(soup: BeautifulSoup) -> bool:
    for meta in soup.find_all("meta"):
        if not isinstance(meta, Tag):
            continue
        if meta.get("charset"):
            return True
        http_equiv = meta.get("http-equiv")
        if isinstance(http_equiv, str) and http_equiv.lower() == "content-type":
            return True
    return False


def insert_meta_charset(soup: BeautifulSoup, charset: str) -> bool:
    """Insert a meta charset declaration unless the document already has one.

    Returns
    -------
    bool
        True if a declaration was inserted

    """
    if _has_charset_declaration(soup):
        return False

    meta = BeautifulSoup(generate_meta_charset_declaration(charset), "html.parser").find("meta")
    head = soup.find("head")
    if isinstance(head, Tag):
        head.insert(0, meta)
    else:
        soup.insert(0, meta)
    return True


def rewrite_markup(
    html: str,
    rewriter: MhtmlLinkRewriter,
    frame_resolver: FrameResolver,
    *,
    charset: Optional[str] = None,
    parser: str = "html.parser",
) -> str:
    """Rewrite a frame's HTML for inclusion in an archive.

    Parameters
    ----------
    html : str
        Markup of the frame's document
    rewriter : MhtmlLinkRewriter
        Link-rewriting policy of the session
    frame_resolver : callable
        Maps a frame-owner tag to the frame it hosts, or None
    charset : str, optional
        When given, add a meta charset declaration if none is present
    parser : str, default "html.parser"
        BeautifulSoup tree builder

    Returns
    -------
    str
        The rewritten markup

    Raises
    ------
    MissingContentIdError
        If a hosted frame has no entry in the rewriter's content-id table
    DuplicateFrameOwnerError
        If two frame-owner elements resolve to the same frame

    """
    soup = BeautifulSoup(html, parser)
    hosted: set[int] = set()

    for tag in soup.find_all(True):
        if not isinstance(tag, Tag):
            continue

        for name in list(tag.attrs):
            if rewriter.should_suppress_attribute(name):
                del tag[name]

        if tag.name not in FRAME_OWNER_TAGS:
            continue

        frame = frame_resolver(tag)
        if frame is not None:
            if frame.frame_id in hosted:
                raise DuplicateFrameOwnerError(frame.frame_id, tag.name)
            hosted.add(frame.frame_id)

        element = FrameOwnerElement(tag_name=tag.name, content_frame=frame)
        link = rewriter.rewrite_link(element)
        if link is not None:
            tag[FRAME_OWNER_URL_ATTRIBUTES[tag.name]] = link

    if charset:
        insert_meta_charset(soup, charset)

    return str(soup)


def serialize_frame_document(
    url: str,
    html: str,
    rewriter: MhtmlLinkRewriter,
    frame_resolver: FrameResolver,
    *,
    charset: str = "utf-8",
    media_type: str = "text/html",
) -> Resource:
    """Rewrite a frame's markup and package it as the frame's document resource."""
    markup = rewrite_markup(html, rewriter, frame_resolver, charset=charset)
    logger.debug("Serialized frame document %s (%d characters)", url, len(markup))
    return Resource(url=url, media_type=media_type, data=markup.encode(charset), text_encoding_name=charset)
