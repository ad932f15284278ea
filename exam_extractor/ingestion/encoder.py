import os
import base64
import logging
import mimetypes
from pathlib import Path
from typing import Optional, Union, Any

from exam_extractor.constants import FALLBACK_MIME, MAX_UPLOAD_BYTES, PDF_MIME
from exam_extractor.models import EncodedDocument

logger = logging.getLogger(__name__)

Source = Union[str, os.PathLike, bytes, bytearray, Any]


def _read_bytes(source: Source) -> bytes:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    if isinstance(source, (str, os.PathLike)):
        return Path(source).read_bytes()
    # Streamlit UploadedFile and other file-like objects
    if hasattr(source, "getvalue"):
        return source.getvalue()
    if hasattr(source, "read"):
        if hasattr(source, "seek"):
            source.seek(0)
        return source.read()
    raise TypeError(f"Unsupported document source: {type(source).__name__}")


def _source_name(source: Source) -> Optional[str]:
    if isinstance(source, (str, os.PathLike)):
        return os.fspath(source)
    name = getattr(source, "name", None)
    return name if isinstance(name, str) else None


def guess_mime_type(source: Source, mime_type: Optional[str] = None) -> str:
    """Explicit MIME type, else the upload's declared `type`, else a guess from the name."""
    if mime_type:
        return mime_type
    declared = getattr(source, "type", None)
    if isinstance(declared, str) and declared:
        return declared
    name = _source_name(source)
    if name:
        guessed, _ = mimetypes.guess_type(name)
        if guessed:
            return guessed
    return FALLBACK_MIME


def encode_document(source: Source, mime_type: Optional[str] = None) -> EncodedDocument:
    """Read the whole document and return it as base64 plus its MIME type.

    Args:
        source: Path, raw bytes, or a file-like upload (e.g. Streamlit's UploadedFile).
        mime_type: Optional explicit MIME type; otherwise detected from the source.

    Raises:
        OSError: If the file cannot be read.
    """
    content = _read_bytes(source)
    mt = guess_mime_type(source, mime_type)
    logger.debug(f"Encoded {_source_name(source) or '<bytes>'}: {len(content)} bytes, {mt}")
    return EncodedDocument(
        data=base64.b64encode(content).decode("ascii"),
        mime_type=mt,
        size=len(content),
    )


def is_supported_upload(name: Optional[str], mime_type: Optional[str] = None) -> bool:
    """Accept images of any kind and PDFs, mirroring the uploader's `image/*,.pdf` filter."""
    mt = (mime_type or "").lower()
    if mt.startswith("image/") or mt == PDF_MIME:
        return True
    if name:
        if name.lower().endswith(".pdf"):
            return True
        guessed, _ = mimetypes.guess_type(name)
        if guessed and guessed.startswith("image/"):
            return True
    return False


def exceeds_size_limit(size: int, limit: int = MAX_UPLOAD_BYTES) -> bool:
    return size > limit
