"""page2mhtml - Save multi-frame web pages as self-contained MHTML archives.

page2mhtml takes the resources a page serializer collected for each frame of
a document and writes them as a single ``multipart/related`` MHTML archive
that reopens offline with every subresource and nested frame intact.

Key Features
------------
- Header, per-frame parts and footer emitted as independent byte chunks
- Content-ID on each frame's document so ``cid:`` links resolve in-archive
- Quoted-printable / base64 / binary transfer encodings, all lossless
- Link-rewriting policy for frame-owner elements and ``srcset`` suppression
- Meta charset, mark-of-the-web and base tag declarations

Requirements
------------
- Python 3.10+
- beautifulsoup4 for markup rewriting

Examples
--------
Writing a two-frame archive:

    >>> from page2mhtml import ContentIdTable, FrameId, Resource, ResourceBatch, build_archive
    >>> root, child = FrameId(0), FrameId(1)
    >>> archive = build_archive(
    ...     [
    ...         (root, ResourceBatch(Resource("http://example.com/", "text/html", b"<iframe src='cid:c@x'>"))),
    ...         (child, ResourceBatch(Resource("http://example.com/c", "text/html", b"<p>child</p>"))),
    ...     ],
    ...     title="Example",
    ...     content_id_table=ContentIdTable({root: "r@x", child: "c@x"}),
    ... )

"""

from page2mhtml.archive import (
    MhtmlArchiveEncoder,
    MhtmlArchiveSession,
    build_archive,
    generate_boundary,
    generate_footer,
    generate_header,
    generate_parts,
)
from page2mhtml.content_ids import ContentIdTable, content_id_to_uri
from page2mhtml.encoding import decode_body, encode_body, select_encoding
from page2mhtml.exceptions import (
    ArchiveStateError,
    BoundaryCollisionError,
    ContractViolationError,
    DuplicateFrameOwnerError,
    InvalidBoundaryError,
    MissingContentIdError,
    Page2MhtmlError,
    ValidationError,
)
from page2mhtml.link_rewriter import MhtmlLinkRewriter
from page2mhtml.models import (
    DocumentKind,
    EncodingPolicy,
    FrameId,
    FrameOwnerElement,
    NestedFrame,
    Resource,
    ResourceBatch,
    TransferEncoding,
)
from page2mhtml.options import MhtmlArchiveOptions
from page2mhtml.utils.html_utils import (
    generate_base_tag_declaration,
    generate_mark_of_the_web_declaration,
    generate_meta_charset_declaration,
)

__version__ = "1.0.0"

__all__ = [
    "__version__",
    # Archive encoding
    "MhtmlArchiveEncoder",
    "MhtmlArchiveSession",
    "build_archive",
    "generate_boundary",
    "generate_footer",
    "generate_header",
    "generate_parts",
    # Content ids and link rewriting
    "ContentIdTable",
    "MhtmlLinkRewriter",
    "content_id_to_uri",
    # Transfer encodings
    "decode_body",
    "encode_body",
    "select_encoding",
    # Models and options
    "DocumentKind",
    "EncodingPolicy",
    "FrameId",
    "FrameOwnerElement",
    "MhtmlArchiveOptions",
    "NestedFrame",
    "Resource",
    "ResourceBatch",
    "TransferEncoding",
    # Declarations
    "generate_base_tag_declaration",
    "generate_mark_of_the_web_declaration",
    "generate_meta_charset_declaration",
    # Exceptions
    "ArchiveStateError",
    "BoundaryCollisionError",
    "ContractViolationError",
    "DuplicateFrameOwnerError",
    "InvalidBoundaryError",
    "MissingContentIdError",
    "Page2MhtmlError",
    "ValidationError",
]
