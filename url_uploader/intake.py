"""
Module for turning raw user input into source URLs and safe object names.
"""
import logging
import re
from pathlib import Path
from typing import List, Optional
from urllib.parse import unquote, urlparse

logger = logging.getLogger(__name__)

MAX_FILE_NAME_LENGTH = 255
DEFAULT_FILE_NAME = "uploaded-file"

_URL_SEPARATORS = re.compile(r"[,\n\r]+")
_URL_STRIP_CHARS = re.compile(r"[<>'\"]")
_INPUT_STRIP_CHARS = re.compile(r"[<>'\"&]")
_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_UNDERSCORE_RUNS = re.compile(r"_{2,}")


def sanitize_url(url: str) -> str:
    """Trim a candidate URL and drop angle brackets and quotes."""
    return _URL_STRIP_CHARS.sub("", url.strip())


def sanitize_input(value: str) -> str:
    """Trim free-form input such as a media type and drop markup characters."""
    return _INPUT_STRIP_CHARS.sub("", value.strip())


def is_valid_url(url: str) -> bool:
    """Check that a string is an absolute http(s) URL.

    Args:
        url: Candidate URL

    Returns:
        True if the scheme is http or https and a host is present
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def parse_urls(text: str) -> List[str]:
    """Split comma/newline separated text into valid source URLs.

    Invalid candidates are dropped silently; input order is preserved.

    Args:
        text: Raw multi-line or comma-separated input

    Returns:
        List of sanitized, valid URLs
    """
    candidates = (sanitize_url(part) for part in _URL_SEPARATORS.split(text))
    urls = [url for url in candidates if url and is_valid_url(url)]
    logger.debug(f"Parsed {len(urls)} valid URLs from input")
    return urls


def read_url_file(path: Path) -> List[str]:
    """Read a text file of URLs and return the valid ones.

    Args:
        path: File containing comma or newline separated URLs

    Returns:
        List of sanitized, valid URLs
    """
    return parse_urls(Path(path).read_text(encoding="utf-8"))


def sanitize_file_name(file_name: str) -> str:
    """Restrict a file name to ``[A-Za-z0-9._-]``.

    Other characters become ``_``, runs of ``_`` collapse to one and the
    result is cut to 255 characters. Applying it twice changes nothing.
    """
    cleaned = _UNSAFE_NAME_CHARS.sub("_", file_name)
    cleaned = _UNDERSCORE_RUNS.sub("_", cleaned)
    return cleaned[:MAX_FILE_NAME_LENGTH]


def derive_file_name(url: str, file_name: Optional[str] = None) -> str:
    """Pick the object name for a source.

    Uses the explicit name if given, then the last path segment of the URL,
    then a generic default.

    Args:
        url: Source URL
        file_name: Optional name chosen by the caller

    Returns:
        Sanitized, non-empty file name
    """
    if not file_name:
        file_name = unquote(urlparse(url).path.rsplit("/", 1)[-1])
    return sanitize_file_name(file_name) or DEFAULT_FILE_NAME
