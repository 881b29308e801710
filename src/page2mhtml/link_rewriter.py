#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/page2mhtml/link_rewriter.py
"""Link rewriting policy used while serializing frames into an archive.

The page serializer consults this delegate for every candidate attribute and
element during its markup walk. Only structural embedding references whose
targets are themselves archived are rewritten; ordinary hyperlinks are left
alone.
"""

from __future__ import annotations

import logging
from typing import Optional

from page2mhtml.constants import FALLBACK_CONTENT_ELEMENT_TAGS, FRAME_ELEMENT_TAGS, SUPPRESSED_ATTRIBUTES
from page2mhtml.content_ids import ContentIdTable
from page2mhtml.models import DocumentKind, FrameOwnerElement

logger = logging.getLogger(__name__)

# Document kinds the serializer writes for object content. Anything else
# would leave the element pointing at a part that does not exist, and its
# fallback content would never render.
ARCHIVED_EMBEDDED_DOCUMENT_KINDS = frozenset({DocumentKind.HTML, DocumentKind.XHTML, DocumentKind.IMAGE})


class MhtmlLinkRewriter:
    """Rewrite frame-owner links to ``cid:`` references into the archive.

    Parameters
    ----------
    content_id_table : ContentIdTable
        Content ids of every frame in the archive

    """

    def __init__(self, content_id_table: ContentIdTable):
        """Bind the rewriter to the session's content-id table."""
        self.content_id_table = content_id_table

    def should_suppress_attribute(self, attribute_name: str) -> bool:
        """Return True if the attribute must be dropped from serialized markup.

        ``srcset`` is dropped because only the ``src`` image is archived;
        keeping the candidate list would make readers fetch the other
        candidates from the network. Responsive images therefore render at
        the ``src`` resolution.
        """
        return attribute_name.lower() in SUPPRESSED_ATTRIBUTES

    def rewrite_link(self, element: FrameOwnerElement) -> Optional[str]:
        """Return the ``cid:`` link for a frame-owner element, or None to keep its link.

        Raises
        ------
        MissingContentIdError
            If the element's nested frame has no content id

        """
        frame = element.content_frame
        if frame is None:
            return None

        tag_name = element.tag_name.lower()
        if tag_name in FALLBACK_CONTENT_ELEMENT_TAGS:
            if frame.document_kind not in ARCHIVED_EMBEDDED_DOCUMENT_KINDS:
                return None
        elif tag_name not in FRAME_ELEMENT_TAGS:
            return None

        link = self.content_id_table.uri_for(frame.frame_id)
        logger.debug("Rewriting <%s> link to frame %r as %s", tag_name, frame.frame_id, link)
        return link
