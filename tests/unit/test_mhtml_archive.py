"""Unit tests for MHTML archive header, part and footer generation.

Tests cover:
- Header fields, Subject encoding and the multipart Content-Type
- Part headers, Content-ID placement and body encoding
- Footer delimiter
- Boundary validation and generation
- Options handling on the encoder class
- Phase ordering enforced by sessions
"""

from datetime import datetime, timedelta, timezone
from email.header import decode_header, make_header

import pytest
from fixtures.generators.mhtml_fixtures import (
    CHILD_FRAME,
    FIXED_DATE,
    IMAGE_URL,
    MINIMAL_PNG_BYTES,
    ROOT_FRAME,
    ROOT_URL,
    create_image_resource,
    split_archive,
)

from page2mhtml.archive import (
    MhtmlArchiveEncoder,
    MhtmlArchiveSession,
    build_archive,
    encode_subject,
    generate_boundary,
    generate_footer,
    generate_header,
    generate_parts,
    validate_boundary,
)
from page2mhtml.content_ids import ContentIdTable
from page2mhtml.encoding import decode_body
from page2mhtml.exceptions import (
    ArchiveStateError,
    BoundaryCollisionError,
    InvalidBoundaryError,
    InvalidOptionsError,
    MissingContentIdError,
    ValidationError,
)
from page2mhtml.models import EncodingPolicy, FrameId, Resource, ResourceBatch
from page2mhtml.options import BaseEncoderOptions, MhtmlArchiveOptions

BOUNDARY = "----MultipartBoundary--test----"


@pytest.mark.unit
@pytest.mark.mhtml
class TestGenerateHeader:
    """Tests for generate_header."""

    def test_exact_header(self):
        """The header block is byte-exact for a fixed date."""
        header = generate_header(BOUNDARY, "Example", "text/html", date=FIXED_DATE)

        assert header == (
            b"From: <Saved by page2mhtml>\r\n"
            b"Subject: Example\r\n"
            b"Date: Tue, 05 Mar 2024 14:30:00 +0000\r\n"
            b"MIME-Version: 1.0\r\n"
            b"Content-Type: multipart/related;\r\n"
            b'\ttype="text/html";\r\n'
            b'\tboundary="----MultipartBoundary--test----"\r\n'
            b"\r\n"
        )

    def test_root_media_type_named(self):
        """The type parameter carries the root document's media type."""
        header = generate_header(BOUNDARY, "Doc", "application/xhtml+xml", date=FIXED_DATE)
        assert b'type="application/xhtml+xml"' in header

    def test_non_ascii_title_encoded(self):
        """Non-ASCII titles are written as encoded words that decode to the title."""
        title = "Über café ☕ – 日本語のページ"
        header = generate_header(BOUNDARY, title, "text/html", date=FIXED_DATE)

        assert header.isascii()
        text = header.decode("ascii")
        subject = text.split("Subject: ", 1)[1].split("\r\nDate:", 1)[0]
        assert "=?utf-8?" in subject
        assert str(make_header(decode_header(subject))) == title

    def test_title_with_line_break_cannot_inject_headers(self):
        """Control characters in the title are encoded, not written raw."""
        header = generate_header(BOUNDARY, "Evil\r\nX-Injected: yes", "text/html", date=FIXED_DATE)
        assert b"\r\nX-Injected" not in header

    def test_naive_date_treated_as_utc(self):
        """Naive datetimes are written as UTC."""
        header = generate_header(BOUNDARY, "t", "text/html", date=datetime(2024, 3, 5, 14, 30))
        assert b"Date: Tue, 05 Mar 2024 14:30:00 +0000\r\n" in header

    def test_aware_date_keeps_offset(self):
        """Timezone offsets are preserved."""
        date = datetime(2024, 3, 5, 9, 0, tzinfo=timezone(timedelta(hours=-5)))
        header = generate_header(BOUNDARY, "t", "text/html", date=date)
        assert b"Date: Tue, 05 Mar 2024 09:00:00 -0500\r\n" in header

    def test_custom_saved_by(self):
        """The From header comes from options."""
        options = MhtmlArchiveOptions(saved_by="<Saved by Tests>")
        header = generate_header(BOUNDARY, "t", "text/html", date=FIXED_DATE, options=options)
        assert header.startswith(b"From: <Saved by Tests>\r\n")

    def test_pure_for_fixed_date(self):
        """Identical inputs produce identical bytes."""
        first = generate_header(BOUNDARY, "t", "text/html", date=FIXED_DATE)
        second = generate_header(BOUNDARY, "t", "text/html", date=FIXED_DATE)
        assert first == second

    @pytest.mark.parametrize("media_type", ['text/html"', "text/html\r\nX: y"])
    def test_invalid_root_media_type(self, media_type):
        """Root media types that would break the Content-Type header are rejected."""
        with pytest.raises(ValidationError):
            generate_header(BOUNDARY, "t", media_type)


@pytest.mark.unit
@pytest.mark.mhtml
class TestEncodeSubject:
    """Tests for encode_subject."""

    def test_ascii_unchanged(self):
        """Printable ASCII titles are written unchanged."""
        assert encode_subject("A plain title: (1/2)") == "A plain title: (1/2)"

    def test_empty_title(self):
        """An empty title stays empty."""
        assert encode_subject("") == ""

    def test_encoded_word_lookalike_encoded(self):
        """ASCII titles that look like encoded words are encoded themselves."""
        title = "=?utf-8?q?not_really?="
        encoded = encode_subject(title)
        assert encoded != title
        assert str(make_header(decode_header(encoded))) == title


@pytest.mark.unit
@pytest.mark.mhtml
class TestGenerateParts:
    """Tests for generate_parts."""

    def test_document_part_headers(self, content_id_table, root_batch):
        """The document part carries type, charset, Content-ID, encoding and location."""
        parts = generate_parts(BOUNDARY, EncodingPolicy.DEFAULT, content_id_table, ROOT_FRAME, root_batch)

        assert parts.startswith(
            b"--" + BOUNDARY.encode() + b"\r\n"
            b"Content-Type: text/html; charset=utf-8\r\n"
            b"Content-ID: <root@archive>\r\n"
            b"Content-Transfer-Encoding: quoted-printable\r\n"
            b"Content-Location: http://example.com/index.html\r\n"
            b"\r\n"
        )

    def test_content_id_only_on_first_part(self, content_id_table, root_batch):
        """Only the frame's document receives a Content-ID."""
        parts = generate_parts(BOUNDARY, EncodingPolicy.DEFAULT, content_id_table, ROOT_FRAME, root_batch)
        _, split, _ = split_archive(b"\r\n" + parts + b"--" + BOUNDARY.encode() + b"--\r\n", BOUNDARY)

        assert len(split) == 3
        assert split[0].headers["content-id"] == "<root@archive>"
        assert all("content-id" not in part.headers for part in split[1:])

    def test_subresource_encodings(self, content_id_table, root_batch):
        """Images are base64 and stylesheets quoted-printable under the default policy."""
        parts = generate_parts(BOUNDARY, EncodingPolicy.DEFAULT, content_id_table, ROOT_FRAME, root_batch)
        _, split, _ = split_archive(b"\r\n" + parts + b"--" + BOUNDARY.encode() + b"--\r\n", BOUNDARY)

        image, stylesheet = split[1], split[2]
        assert image.headers["content-type"] == "image/png"
        assert image.headers["content-transfer-encoding"] == "base64"
        assert image.headers["content-location"] == IMAGE_URL
        assert decode_body(image.body, "base64") == MINIMAL_PNG_BYTES
        assert stylesheet.headers["content-type"] == "text/css; charset=utf-8"
        assert stylesheet.headers["content-transfer-encoding"] == "quoted-printable"

    def test_force_binary(self, content_id_table, root_batch):
        """The binary policy copies every body through unmodified."""
        parts = generate_parts(BOUNDARY, EncodingPolicy.FORCE_BINARY, content_id_table, ROOT_FRAME, root_batch)
        _, split, _ = split_archive(b"\r\n" + parts + b"--" + BOUNDARY.encode() + b"--\r\n", BOUNDARY)

        for part, resource in zip(split, root_batch):
            assert part.headers["content-transfer-encoding"] == "binary"
            assert part.body == resource.data

    def test_bodies_round_trip(self, content_id_table, root_batch):
        """Every part body decodes back to the resource bytes."""
        parts = generate_parts(BOUNDARY, EncodingPolicy.DEFAULT, content_id_table, ROOT_FRAME, root_batch)
        _, split, _ = split_archive(b"\r\n" + parts + b"--" + BOUNDARY.encode() + b"--\r\n", BOUNDARY)

        for part, resource in zip(split, root_batch):
            assert decode_body(part.body, part.headers["content-transfer-encoding"]) == resource.data

    def test_positional_list_accepted(self, content_id_table):
        """A plain list is treated as document followed by subresources."""
        resources = [Resource(ROOT_URL, "text/html", b"<p>x</p>"), create_image_resource()]
        parts = generate_parts(BOUNDARY, EncodingPolicy.DEFAULT, content_id_table, ROOT_FRAME, resources)
        assert parts.count(b"Content-ID:") == 1

    def test_url_written_verbatim(self, content_id_table):
        """Content-Location is not normalized."""
        url = "HTTP://Example.COM/a/../b?q=1#frag"
        parts = generate_parts(
            BOUNDARY, EncodingPolicy.DEFAULT, content_id_table, ROOT_FRAME, ResourceBatch(Resource(url, "text/html"))
        )
        assert f"Content-Location: {url}\r\n".encode() in parts

    def test_empty_body_and_media_type(self, content_id_table):
        """Empty resources are valid parts."""
        batch = ResourceBatch(Resource(ROOT_URL, "text/html"), (Resource("about:blank", ""),))
        parts = generate_parts(BOUNDARY, EncodingPolicy.DEFAULT, content_id_table, ROOT_FRAME, batch)
        _, split, _ = split_archive(b"\r\n" + parts + b"--" + BOUNDARY.encode() + b"--\r\n", BOUNDARY)

        assert [part.body for part in split] == [b"", b""]
        assert split[1].headers["content-transfer-encoding"] == "base64"

    def test_missing_content_id_is_fatal(self, root_batch):
        """A frame absent from the table aborts before any output."""
        table = ContentIdTable({CHILD_FRAME: "child@archive"})
        with pytest.raises(MissingContentIdError) as exc_info:
            generate_parts(BOUNDARY, EncodingPolicy.DEFAULT, table, ROOT_FRAME, root_batch)
        assert exc_info.value.frame_id == ROOT_FRAME

    def test_content_ids_can_be_disabled(self, root_batch):
        """With Content-IDs disabled no lookup happens and no header is written."""
        options = MhtmlArchiveOptions(emit_content_ids=False)
        parts = generate_parts(
            BOUNDARY, EncodingPolicy.DEFAULT, ContentIdTable(), ROOT_FRAME, root_batch, options=options
        )
        assert b"Content-ID:" not in parts

    def test_header_injection_rejected(self, content_id_table):
        """URLs with line breaks are rejected."""
        batch = ResourceBatch(Resource("http://example.com/\r\nX-Evil: 1", "text/html"))
        with pytest.raises(ValidationError):
            generate_parts(BOUNDARY, EncodingPolicy.DEFAULT, content_id_table, ROOT_FRAME, batch)

    def test_boundary_collision_detected(self, content_id_table):
        """Collision checks catch a binary body containing the delimiter."""
        batch = ResourceBatch(Resource(ROOT_URL, "text/html", b"before\r\n--" + BOUNDARY.encode() + b"\r\nafter"))
        options = MhtmlArchiveOptions(check_boundary_collisions=True)

        with pytest.raises(BoundaryCollisionError):
            generate_parts(BOUNDARY, EncodingPolicy.FORCE_BINARY, content_id_table, ROOT_FRAME, batch, options=options)

    def test_quoted_printable_cannot_collide(self, content_id_table):
        """Quoted-printable bodies never contain a delimiter line."""
        batch = ResourceBatch(Resource(ROOT_URL, "text/html", b"before\r\n--" + BOUNDARY.encode() + b"\r\nafter"))
        options = MhtmlArchiveOptions(check_boundary_collisions=True)

        parts = generate_parts(BOUNDARY, EncodingPolicy.DEFAULT, content_id_table, ROOT_FRAME, batch, options=options)
        assert parts.count(b"--" + BOUNDARY.encode()) == 1


@pytest.mark.unit
@pytest.mark.mhtml
class TestGenerateFooter:
    """Tests for generate_footer."""

    def test_footer(self):
        """The footer is the closing delimiter line."""
        assert generate_footer("BOUNDARY1") == b"--BOUNDARY1--\r\n"


@pytest.mark.unit
@pytest.mark.mhtml
class TestBoundary:
    """Tests for boundary validation and generation."""

    @pytest.mark.parametrize("boundary", ["", "a" * 71, "bad\r\nboundary", "trailing ", "quote\"d", "semi;colon"])
    def test_invalid_boundaries(self, boundary):
        """Boundaries outside RFC 2046 are rejected everywhere."""
        with pytest.raises(InvalidBoundaryError):
            validate_boundary(boundary)
        with pytest.raises(InvalidBoundaryError):
            generate_footer(boundary)

    @pytest.mark.parametrize("boundary", ["BOUNDARY1", "a" * 70, "----=_Part_0_123.456", "with space inside"])
    def test_valid_boundaries(self, boundary):
        """Legal boundaries pass validation."""
        validate_boundary(boundary)

    def test_generated_boundaries_valid_and_unique(self):
        """Generated boundaries are valid and differ between calls."""
        first, second = generate_boundary(), generate_boundary()
        validate_boundary(first)
        validate_boundary(second)
        assert first != second
        assert first.startswith("----MultipartBoundary--")


@pytest.mark.unit
@pytest.mark.mhtml
class TestMhtmlArchiveEncoder:
    """Tests for the options-bound encoder."""

    def test_invalid_options_type(self):
        """Passing the wrong options class is rejected."""
        with pytest.raises(InvalidOptionsError):
            MhtmlArchiveEncoder(options=object())

    def test_uses_configured_policy(self, content_id_table, root_batch):
        """The encoder applies its configured encoding policy."""
        encoder = MhtmlArchiveEncoder(MhtmlArchiveOptions(encoding_policy=EncodingPolicy.FORCE_BINARY))
        parts = encoder.generate_parts(BOUNDARY, content_id_table, ROOT_FRAME, root_batch)
        assert b"Content-Transfer-Encoding: binary" in parts
        assert b"quoted-printable" not in parts

    def test_policy_from_string(self):
        """Options accept the policy's string value."""
        assert MhtmlArchiveOptions(encoding_policy="binary").encoding_policy is EncodingPolicy.FORCE_BINARY

    def test_options_validation(self):
        """Out of range options are rejected."""
        with pytest.raises(ValueError):
            MhtmlArchiveOptions(max_line_length=2)
        with pytest.raises(ValueError):
            MhtmlArchiveOptions(saved_by="a\r\nb")

    @pytest.mark.parametrize("max_line_length", [3, 999])
    def test_base_options_validate_line_length(self, max_line_length):
        """The line-length range is enforced by the base encoder options."""
        assert BaseEncoderOptions().max_line_length == 76
        with pytest.raises(ValueError, match="max_line_length"):
            BaseEncoderOptions(max_line_length=max_line_length)


    def test_create_updated(self):
        """Options are cloned, not mutated."""
        options = MhtmlArchiveOptions()
        updated = options.create_updated(max_line_length=40)
        assert updated.max_line_length == 40
        assert options.max_line_length == 76


@pytest.mark.unit
@pytest.mark.mhtml
class TestMhtmlArchiveSession:
    """Tests for phase ordering in a session."""

    def test_full_session(self, content_id_table, root_batch, child_batch):
        """Header, parts and footer in order produce a closed session."""
        session = MhtmlArchiveSession(content_id_table, boundary=BOUNDARY)
        output = session.generate_header("Root", "text/html", date=FIXED_DATE)
        output += session.generate_parts(ROOT_FRAME, root_batch)
        output += session.generate_parts(CHILD_FRAME, child_batch)
        output += session.generate_footer()

        assert session.phase == "closed"
        assert session.part_count == 4
        assert session.written_frames == {ROOT_FRAME, CHILD_FRAME}
        assert output.endswith(b"--" + BOUNDARY.encode() + b"--\r\n")

    def test_parts_before_header(self, content_id_table, root_batch):
        """Parts cannot be written before the header."""
        session = MhtmlArchiveSession(content_id_table, boundary=BOUNDARY)
        with pytest.raises(ArchiveStateError):
            session.generate_parts(ROOT_FRAME, root_batch)

    def test_footer_before_header(self, content_id_table):
        """The footer cannot precede the header."""
        session = MhtmlArchiveSession(content_id_table, boundary=BOUNDARY)
        with pytest.raises(ArchiveStateError):
            session.generate_footer()

    def test_calls_after_footer(self, content_id_table, root_batch):
        """Nothing may follow the footer."""
        session = MhtmlArchiveSession(content_id_table, boundary=BOUNDARY)
        session.generate_header("Root", "text/html")
        session.generate_footer()

        with pytest.raises(ArchiveStateError):
            session.generate_parts(ROOT_FRAME, root_batch)
        with pytest.raises(ArchiveStateError):
            session.generate_footer()
        with pytest.raises(ArchiveStateError):
            session.generate_header("Root", "text/html")

    def test_second_header(self, content_id_table):
        """The header is written once."""
        session = MhtmlArchiveSession(content_id_table, boundary=BOUNDARY)
        session.generate_header("Root", "text/html")
        with pytest.raises(ArchiveStateError):
            session.generate_header("Root", "text/html")

    def test_frame_written_twice(self, content_id_table, root_batch):
        """A frame's batch is written once per archive."""
        session = MhtmlArchiveSession(content_id_table, boundary=BOUNDARY)
        session.generate_header("Root", "text/html")
        session.generate_parts(ROOT_FRAME, root_batch)
        with pytest.raises(ArchiveStateError):
            session.generate_parts(ROOT_FRAME, root_batch)

    def test_invalid_boundary(self, content_id_table):
        """The session validates its boundary up front."""
        with pytest.raises(InvalidBoundaryError):
            MhtmlArchiveSession(content_id_table, boundary="")

    def test_generated_boundary(self, content_id_table):
        """A boundary is generated when none is given."""
        session = MhtmlArchiveSession(content_id_table)
        validate_boundary(session.boundary)


@pytest.mark.unit
@pytest.mark.mhtml
class TestBuildArchive:
    """Tests for the one-shot helper."""

    def test_defaults(self, root_batch):
        """Root media type, boundary and content ids are derived when omitted."""
        archive = build_archive([(FrameId(7), root_batch)], "Root", date=FIXED_DATE)

        assert b'type="text/html"' in archive
        assert archive.count(b"Content-ID: <frame-7-") == 1

    def test_empty_frames(self):
        """An archive needs at least one frame."""
        with pytest.raises(ValidationError):
            build_archive([], "Nothing")

    def test_empty_batch_list(self):
        """A frame with no resources is rejected."""
        with pytest.raises(ValidationError):
            build_archive([(ROOT_FRAME, [])], "Nothing")
