# oauthkit/rfc3986.py
"""RFC 3986 percent-encoding as required by OAuth 1.0a section 5.1."""
from typing import Iterable, List, Optional
from urllib.parse import quote, unquote

# ALPHA / DIGIT / "-" / "." / "_" / "~" are left as-is; quote() already keeps ALPHA/DIGIT/_.-~
UNRESERVED = "-._~"


def encode(value: Optional[str]) -> str:
    """Percent-encode a value using UTF-8 and upper-case hex digits."""
    if not value:
        return ""
    return quote(value, safe=UNRESERVED, encoding="utf-8", errors="strict")


def decode(value: Optional[str]) -> str:
    """Decode a percent-encoded value. A '+' is kept literally."""
    if not value:
        return ""
    return unquote(value, encoding="utf-8", errors="strict")


def encode_and_join(values: Iterable[str], separator: str = "&") -> str:
    return separator.join(encode(v) for v in values)


def split_and_decode(value: Optional[str], separator: str = "&") -> List[str]:
    if not value:
        return []
    return [decode(part) for part in value.split(separator) if part]
