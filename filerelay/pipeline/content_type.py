"""
Content type detection from the leading bytes of a payload.

Only the first 512 bytes are ever inspected. Declared metadata (HTTP
Content-Type, object ContentType) is not trusted; stored objects always carry
the sniffed type.

Detection order:
- markup (HTML, XML), after skipping leading whitespace
- exact signatures (documents, byte-order marks, images, media, fonts, archives)
- masked RIFF/ISO-BMFF containers (WebP, WAV, AVI, MP4)
- text heuristic: no binary control bytes means text/plain
- application/octet-stream otherwise
"""

from __future__ import annotations

from typing import Final

SNIFF_LENGTH: Final[int] = 512
DEFAULT_CONTENT_TYPE: Final[str] = "application/octet-stream"
TEXT_PLAIN: Final[str] = "text/plain; charset=utf-8"

HTML_TAGS: Final[tuple[bytes, ...]] = (
    b"<!DOCTYPE HTML",
    b"<HTML",
    b"<HEAD",
    b"<SCRIPT",
    b"<IFRAME",
    b"<H1",
    b"<DIV",
    b"<FONT",
    b"<TABLE",
    b"<A",
    b"<STYLE",
    b"<TITLE",
    b"<B",
    b"<BODY",
    b"<BR",
    b"<P",
    b"<!--",
)

SIGNATURES: Final[tuple[tuple[bytes, str], ...]] = (
    (b"%PDF-", "application/pdf"),
    (b"%!PS-Adobe-", "application/postscript"),
    (b"\xfe\xff", "text/plain; charset=utf-16be"),
    (b"\xff\xfe", "text/plain; charset=utf-16le"),
    (b"\xef\xbb\xbf", TEXT_PLAIN),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"BM", "image/bmp"),
    (b"\x00\x00\x01\x00", "image/x-icon"),
    (b"\x00\x00\x02\x00", "image/x-icon"),
    (b"ID3", "audio/mpeg"),
    (b"OggS\x00", "application/ogg"),
    (b"MThd\x00\x00\x00\x06", "audio/midi"),
    (b"\x1a\x45\xdf\xa3", "video/webm"),
    (b"wOFF", "font/woff"),
    (b"wOF2", "font/woff2"),
    (b"\x00\x01\x00\x00", "font/ttf"),
    (b"OTTO", "font/otf"),
    (b"ttcf", "font/collection"),
    (b"\x1f\x8b\x08", "application/x-gzip"),
    (b"PK\x03\x04", "application/zip"),
    (b"Rar!\x1a\x07\x00", "application/x-rar-compressed"),
    (b"Rar!\x1a\x07\x01\x00", "application/x-rar-compressed"),
    (b"7z\xbc\xaf\x27\x1c", "application/x-7z-compressed"),
    (b"\x00asm", "application/wasm"),
)

# RIFF containers: bytes 0-3 are "RIFF", bytes 8-11 name the format.
RIFF_FORMATS: Final[dict[bytes, str]] = {
    b"WEBP": "image/webp",
    b"WAVE": "audio/wave",
    b"AVI ": "video/avi",
}

_BINARY_BYTES: Final[frozenset[int]] = frozenset(
    [*range(0x00, 0x09), 0x0B, *range(0x0E, 0x1B), *range(0x1C, 0x20)]
)
_WHITESPACE: Final[bytes] = b"\t\n\x0c\r "


def _match_markup(data: bytes) -> str | None:
    stripped = data.lstrip(_WHITESPACE)
    for tag in HTML_TAGS:
        if len(stripped) <= len(tag):
            continue
        if stripped[: len(tag)].upper() != tag:
            continue
        # the tag name must end here, otherwise "<Brand" would look like "<B"
        if stripped[len(tag)] in b" >":
            return "text/html; charset=utf-8"
    if stripped.startswith(b"<?xml"):
        return "text/xml; charset=utf-8"
    return None


def _match_container(data: bytes) -> str | None:
    if len(data) >= 12 and data[:4] == b"RIFF":
        return RIFF_FORMATS.get(data[8:12])
    if len(data) >= 12 and data[4:8] == b"ftyp":
        box_size = int.from_bytes(data[:4], "big")
        if box_size >= 12 and box_size % 4 == 0 and box_size <= len(data):
            # brand list starts at offset 8, skipping the minor version
            brands = [data[8:11]]
            brands.extend(data[i : i + 3] for i in range(16, box_size, 4))
            if b"mp4" in brands:
                return "video/mp4"
    return None


def sniff_content_type(data: bytes) -> str:
    """Infer a MIME type from the leading bytes of ``data``.

    Example:
        >>> sniff_content_type(b"\\x89PNG\\r\\n\\x1a\\n....")
        'image/png'
        >>> sniff_content_type(b"\\x00\\x9f\\x92\\x96")
        'application/octet-stream'
    """
    head = bytes(data[:SNIFF_LENGTH])

    markup = _match_markup(head)
    if markup:
        return markup

    for signature, mime_type in SIGNATURES:
        if head.startswith(signature):
            return mime_type

    container = _match_container(head)
    if container:
        return container

    if not any(byte in _BINARY_BYTES for byte in head):
        return TEXT_PLAIN
    return DEFAULT_CONTENT_TYPE
