#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/page2mhtml/encoding.py
"""Transfer-encoding selection and body re-encoding for MHTML parts.

Every encoder here is lossless: ``decode_body(encode_body(data, enc), enc)``
returns ``data`` for any byte string. Encoded output uses CRLF line endings
and never carries a trailing line break; the part writer adds the CRLF that
separates a body from the next delimiter.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Union

from page2mhtml.constants import (
    CRLF,
    DEFAULT_MAX_LINE_LENGTH,
    MIN_MAX_LINE_LENGTH,
    TEXT_LIKE_MEDIA_TYPE_SUFFIXES,
    TEXT_LIKE_MEDIA_TYPES,
    TEXT_MEDIA_TYPE_PREFIX,
)
from page2mhtml.exceptions import ValidationError
from page2mhtml.models import EncodingPolicy, TransferEncoding

logger = logging.getLogger(__name__)

_HEX = b"0123456789ABCDEF"
_SPACE = 0x20
_TAB = 0x09
_EQUALS = 0x3D
_HYPHEN = 0x2D


def normalize_media_type(media_type: str) -> str:
    """Lower-case a media type and drop any parameters."""
    return media_type.split(";", 1)[0].strip().lower()


def is_text_media_type(media_type: str) -> bool:
    """Return True for declared text types and known text-like formats."""
    normalized = normalize_media_type(media_type)
    if normalized.startswith(TEXT_MEDIA_TYPE_PREFIX) or normalized in TEXT_LIKE_MEDIA_TYPES:
        return True
    return normalized.endswith(TEXT_LIKE_MEDIA_TYPE_SUFFIXES)


def select_encoding(media_type: str, policy: EncodingPolicy) -> TransferEncoding:
    """Choose the transfer encoding for a resource.

    Parameters
    ----------
    media_type : str
        Declared media type of the resource (parameters are ignored)
    policy : EncodingPolicy
        Session-wide encoding policy

    Returns
    -------
    TransferEncoding
        ``BINARY`` under ``FORCE_BINARY``; otherwise ``QUOTED_PRINTABLE`` for
        text-like media types and ``BASE64`` for everything else

    """
    if policy is EncodingPolicy.FORCE_BINARY:
        return TransferEncoding.BINARY
    if is_text_media_type(media_type):
        return TransferEncoding.QUOTED_PRINTABLE
    return TransferEncoding.BASE64


def _escape(byte: int) -> bytes:
    return bytes((_EQUALS, _HEX[byte >> 4], _HEX[byte & 0x0F]))


def encode_quoted_printable(data: bytes, max_line_length: int = DEFAULT_MAX_LINE_LENGTH) -> bytes:
    """Encode bytes as quoted-printable (RFC 2045 section 6.7).

    CRLF pairs are kept as hard line breaks. Bare CR and LF, ``=``, non-ASCII
    and control bytes, whitespace before a line break and a ``-`` at the start
    of a line are escaped. The last rule keeps encoded lines from ever looking
    like a multipart delimiter. Lines longer than ``max_line_length`` are
    split with soft line breaks.
    """
    limit = max_line_length - 1  # room for the soft-break "="
    lines: list[bytes] = []
    line = bytearray()
    length = len(data)
    i = 0

    while i < length:
        byte = data[i]

        if byte == 0x0D and i + 1 < length and data[i + 1] == 0x0A:
            lines.append(bytes(line))
            line = bytearray()
            i += 2
            continue

        if byte in (_SPACE, _TAB):
            at_line_end = i + 1 == length or data[i + 1 : i + 3] == CRLF
            token = _escape(byte) if at_line_end else bytes((byte,))
        elif byte == _HYPHEN and not line:
            token = _escape(byte)
        elif 33 <= byte <= 126 and byte != _EQUALS:
            token = bytes((byte,))
        else:
            token = _escape(byte)

        if len(line) + len(token) > limit:
            lines.append(bytes(line) + b"=")
            line = bytearray()
            if byte == _HYPHEN:
                token = _escape(byte)

        line += token
        i += 1

    lines.append(bytes(line))
    return CRLF.join(lines)


def encode_base64(data: bytes, max_line_length: int = DEFAULT_MAX_LINE_LENGTH) -> bytes:
    """Encode bytes as base64 wrapped at ``max_line_length`` characters."""
    encoded = base64.b64encode(data)
    return CRLF.join(encoded[i : i + max_line_length] for i in range(0, len(encoded), max_line_length))


def encode_body(
    data: bytes, encoding: TransferEncoding, max_line_length: int = DEFAULT_MAX_LINE_LENGTH
) -> bytes:
    """Re-encode resource bytes for the given transfer encoding.

    Parameters
    ----------
    data : bytes
        Raw resource bytes
    encoding : TransferEncoding
        Encoding chosen by :func:`select_encoding`
    max_line_length : int, default 76
        Maximum encoded line length, excluding CRLF

    Returns
    -------
    bytes
        Encoded body without a trailing line break

    Raises
    ------
    ValidationError
        If ``max_line_length`` is too small to hold an escape sequence

    """
    if max_line_length < MIN_MAX_LINE_LENGTH:
        raise ValidationError(
            f"max_line_length must be at least {MIN_MAX_LINE_LENGTH}",
            parameter_name="max_line_length",
            parameter_value=max_line_length,
        )

    if encoding is TransferEncoding.QUOTED_PRINTABLE:
        return encode_quoted_printable(data, max_line_length)
    if encoding is TransferEncoding.BASE64:
        return encode_base64(data, max_line_length)
    if encoding is TransferEncoding.SEVEN_BIT and any(b > 0x7F or b == 0 for b in data):
        raise ValidationError(
            "7bit bodies must not contain NUL or 8-bit bytes", parameter_name="encoding", parameter_value=encoding
        )
    return data


def decode_body(data: bytes, encoding: Union[TransferEncoding, str]) -> bytes:
    """Decode a part body written with ``encoding``.

    ``encoding`` may be a :class:`TransferEncoding` or the raw header token;
    ``7bit``, ``8bit`` and ``binary`` bodies are returned unchanged.

    Raises
    ------
    ValidationError
        If the token is unknown or the body is not valid for its encoding

    """
    token = encoding.value if isinstance(encoding, TransferEncoding) else encoding.strip().lower()

    if token == TransferEncoding.QUOTED_PRINTABLE.value:
        return binascii.a2b_qp(data)
    if token == TransferEncoding.BASE64.value:
        try:
            return base64.b64decode(data)
        except binascii.Error as e:
            raise ValidationError(
                f"Invalid base64 body: {e}", parameter_name="data", original_error=e
            ) from e
    if token in (TransferEncoding.SEVEN_BIT.value, "8bit", TransferEncoding.BINARY.value):
        return data

    raise ValidationError(
        f"Unknown Content-Transfer-Encoding: {token!r}", parameter_name="encoding", parameter_value=token
    )
