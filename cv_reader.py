"""Upload-time gate for CV files.

Only plain readable text is accepted. Binary documents (PDF, DOCX, images) are
rejected here so the analyzer never sees them.
"""

import logging
import os
import re

from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)

MAX_CV_BYTES = int(os.environ.get('CV_MAX_BYTES', 2 * 1024 * 1024))
SAMPLE_CHARS = 2000
MIN_PRINTABLE_RATIO = 0.7

_PRINTABLE_RE = re.compile(r'[\x09\x0A\x0D\x20-\x7E]')


class UnrecognisedFormatError(ValueError):
    """Raised when an upload does not look like readable text."""


class UploadTooLargeError(ValueError):
    """Raised when an upload exceeds the size bound."""


def is_readable_text(value) -> bool:
    """True when the first 2000 chars of the trimmed text are mostly printable."""
    if not isinstance(value, str):
        return False
    trimmed = value.strip()
    if not trimmed:
        return False
    sample = trimmed[:SAMPLE_CHARS]
    printable = len(_PRINTABLE_RE.findall(sample))
    return printable / len(sample) > MIN_PRINTABLE_RATIO


def decode_cv_bytes(data: bytes, max_bytes: int = MAX_CV_BYTES) -> str:
    """Decode raw upload bytes, enforcing the size bound and readability gate."""
    if len(data) > max_bytes:
        raise UploadTooLargeError(
            f'The file is larger than {max_bytes // (1024 * 1024)} MB. '
            'Please upload a smaller text-based CV.')
    # Undecodable bytes become U+FFFD, which counts against the printable ratio
    text = data.decode('utf-8', errors='replace')
    if text.startswith('\ufeff'):
        text = text[1:]
    if not is_readable_text(text):
        raise UnrecognisedFormatError('Unrecognised format')
    return text


def read_cv_upload(file_storage, max_bytes: int = MAX_CV_BYTES) -> tuple[str, str]:
    """Read a werkzeug FileStorage upload. Returns (safe filename, text)."""
    filename = secure_filename(file_storage.filename or '') or 'cv.txt'
    # Read one byte past the bound so oversized files are detected without loading them fully
    data = file_storage.stream.read(max_bytes + 1)
    try:
        text = decode_cv_bytes(data, max_bytes=max_bytes)
    except ValueError as e:
        logger.warning('CV upload %s rejected: %s', filename, e)
        raise
    logger.info('CV upload %s accepted (%d chars)', filename, len(text))
    return filename, text
