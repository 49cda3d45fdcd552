import re

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f]")


def sanitize_query(query: str, max_length: int) -> str:
    """Trim, drop ASCII control characters and cap the length of a search query."""
    return _CONTROL_CHARS_RE.sub("", (query or "").strip())[:max_length].strip()
