"""Image type sniffing from leading file bytes.

Uploaded profile photos and QR codes are checked against their actual
content, not only the Content-Type the browser sent.
"""

from typing import NamedTuple


MIN_BYTES_FOR_DETECTION = 4
SNIFF_LENGTH = 64


class ImageSignature(NamedTuple):
    pattern: bytes
    mime_type: str
    offset: int = 0


# Reference: https://en.wikipedia.org/wiki/List_of_file_signatures
IMAGE_SIGNATURES: tuple[ImageSignature, ...] = (
    ImageSignature(b"\xff\xd8\xff", "image/jpeg"),
    ImageSignature(b"\x89PNG\r\n\x1a\n", "image/png"),
    ImageSignature(b"GIF87a", "image/gif"),
    ImageSignature(b"GIF89a", "image/gif"),
    ImageSignature(b"WEBP", "image/webp", offset=8),  # after RIFF....
    ImageSignature(b"BM", "image/bmp"),
    ImageSignature(b"ftypavif", "image/avif", offset=4),
    ImageSignature(b"ftypheic", "image/heic", offset=4),
)


class ContentCheck(NamedTuple):
    """Outcome of comparing file content with its declared type."""

    ok: bool
    detected_type: str | None
    error: str | None = None


def sniff_image_type(data: bytes) -> str | None:
    """Return the image MIME type found in the leading bytes, if any."""
    if len(data) < MIN_BYTES_FOR_DETECTION:
        return None

    for sig in IMAGE_SIGNATURES:
        end = sig.offset + len(sig.pattern)
        if len(data) >= end and data[sig.offset : end] == sig.pattern:
            if sig.mime_type == "image/webp" and data[:4] != b"RIFF":
                continue
            return sig.mime_type
    return None


def check_image_content(
    data: bytes,
    declared_type: str | None,
    allowed_types: frozenset[str] | None = None,
) -> ContentCheck:
    """Check that data is an allowed image and the declared type is an image.

    A declared type that differs from the sniffed one is accepted as long
    as both are images (browsers often mislabel .jpeg/.jpg/.png uploads).
    """
    detected = sniff_image_type(data[:SNIFF_LENGTH])
    if detected is None:
        return ContentCheck(False, None, "File content is not a recognized image")

    if allowed_types is not None and detected not in allowed_types:
        return ContentCheck(
            False,
            detected,
            f"Image type '{detected}' is not allowed. "
            f"Allowed: {', '.join(sorted(allowed_types))}",
        )

    if declared_type:
        declared = declared_type.split(";")[0].strip().lower()
        if not declared.startswith("image/"):
            return ContentCheck(
                False, detected, f"Declared type '{declared}' is not an image"
            )

    return ContentCheck(True, detected)
