"""Short code and URL normalization helpers.

Pure functions shared by the allocator and the resolver. None of them
touch the store.
"""

import random
import re
import string
import time
from typing import Annotated, Optional

from pydantic import AnyUrl, TypeAdapter, UrlConstraints, ValidationError

from shortlink.core.config import settings
from shortlink.services.exceptions import InvalidCodeFormatError, InvalidURLError

CODE_ALPHABET = string.digits + string.ascii_lowercase  # base-36, in digit order

_INVALID_CODE_CHARS = re.compile(r"[^a-z0-9]")
# URLs are not length-capped.
_URL_ADAPTER = TypeAdapter(
    Annotated[AnyUrl, UrlConstraints(host_required=True, allowed_schemes=["http", "https"])]
)


def normalize_code(raw: str, min_length: Optional[int] = None) -> str:
    """
    Normalize a short code.

    Lowercases, trims, strips everything outside ``[a-z0-9]`` and truncates
    to ``CODE_MAX_LENGTH`` characters. Applying it twice gives the same result.

    Args:
        raw: Code as typed by a user or produced by the generator
        min_length: Shortest acceptable result, defaults to ``CODE_MIN_LENGTH``

    Returns:
        str: The normalized code

    Raises:
        InvalidCodeFormatError: If the normalized code is too short
    """
    if min_length is None:
        min_length = settings.CODE_MIN_LENGTH
    if not isinstance(raw, str):
        raise InvalidCodeFormatError("Invalid short code format")

    code = _INVALID_CODE_CHARS.sub("", raw.strip().lower())[:settings.CODE_MAX_LENGTH]
    if len(code) < min_length:
        raise InvalidCodeFormatError("Invalid short code format")
    return code


def normalize_url(raw: str) -> str:
    """
    Normalize a user-submitted URL.

    Surrounding whitespace is trimmed and ``https://`` is prepended unless the
    value already starts with ``http://`` or ``https://``. The string is
    otherwise returned as typed.

    Raises:
        InvalidURLError: If the result is not an absolute URL with a host
    """
    if not isinstance(raw, str):
        raise InvalidURLError("Invalid URL format")

    url = raw.strip()
    if not (url.startswith("http://") or url.startswith("https://")):
        url = f"https://{url}"

    try:
        parsed = _URL_ADAPTER.validate_python(url)
    except ValidationError as e:
        raise InvalidURLError(f"Invalid URL format: {raw!r}") from e
    if not parsed.host:
        raise InvalidURLError(f"Invalid URL format: {raw!r}")
    return url


def to_base36(number: int) -> str:
    """Encode a non-negative integer in lowercase base-36."""
    if number < 0:
        raise ValueError("number must be non-negative")
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(CODE_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_candidate(length: Optional[int] = None) -> str:
    """
    Generate a random short code candidate.

    Args:
        length: Number of base-36 characters, defaults to ``CODE_LENGTH``

    Raises:
        InvalidCodeFormatError: If ``length`` is below the minimum code length
    """
    if length is None:
        length = settings.CODE_LENGTH
    candidate = "".join(random.choice(CODE_ALPHABET) for _ in range(length))
    return normalize_code(candidate)


def timestamp_candidate() -> str:
    """Millisecond clock in base-36 followed by two random base-36 characters."""
    stamp = to_base36(int(time.time() * 1000))
    suffix = "".join(random.choice(CODE_ALPHABET) for _ in range(2))
    return normalize_code(stamp + suffix)
